"""
Krylov-Schur eigen solvers for A x = lambda B x.

The restarted Krylov-Schur method follows Stewart's algorithm as it is used by
MATLAB's ``eigs``:

[1] G. W. Stewart, "A Krylov-Schur Algorithm for Large Eigenproblems",
    SIAM J. Matrix Anal. Appl. 23(3), 2001, pp. 601-614.
[2] R. B. Lehoucq, D. C. Sorensen, C. Yang, "ARPACK Users' Guide", SIAM, 1998.
"""

import warnings
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np
from scipy.linalg import eig, schur

from .arnoldi import ArnoldiOp, KrylovSchurFactorization
from .matop import IdentityBOp, RegularInverseOp, as_bop, as_operator
from .ordschur import ordschur, schur_blocks, schur_diagonal
from .selection import (
    CompInfo,
    SortRule,
    check_selection_rule,
    check_sorting_rule,
    which_eigenvalues,
)

__all__ = [
    "KrylovSchurGEigsBase",
    "KrylovSchurEigsSolver",
    "KrylovSchurGEigsSolver",
    "KrylovSchurResult",
    "eigs",
    "eigs_scipy",
]


# =============================================================================
# Result Container
# =============================================================================


@dataclass
class KrylovSchurResult:
    """Result container for the Krylov-Schur solvers."""

    eigenvalues: np.ndarray
    eigenvectors: np.ndarray
    info: CompInfo
    nconv: int
    iterations: int
    nops: int

    @property
    def converged(self) -> bool:
        return self.info == CompInfo.Successful

    def __repr__(self) -> str:
        status = "converged" if self.converged else f"info={self.info.name}"
        return (
            f"KrylovSchurResult({status}, nconv={self.nconv}, "
            f"iter={self.iterations}, nops={self.nops})"
        )


# =============================================================================
# Restarted Krylov-Schur Solver
# =============================================================================


class KrylovSchurGEigsBase:
    """
    Restarted Krylov-Schur iteration for a few eigenpairs of a real operator.

    Parameters
    ----------
    op : operator
        Object with ``rows()`` and ``apply(x)`` generating the Krylov subspace
        (dense arrays, scipy sparse matrices and LinearOperators are wrapped).
    bop : operator or None
        Object with ``apply(x)`` defining the inner product ``x^T B y``.
        ``None`` means the Euclidean inner product.
    nev : int
        Number of eigenvalues requested, ``1 <= nev <= n - 1``.
    ncv : int
        Dimension of the Krylov subspace, ``nev < ncv <= n``.

    Notes
    -----
    Each restart keeps ``nev_new`` Schur vectors of the projected matrix,
    chosen by the selection rule, and discards the rest. ``nev_new`` grows with
    the number of converged values and never reaches ``ncv``. The ordering of
    Ritz values is done by ``which_eigenvalues``, which subclasses may
    override.
    """

    def __init__(self, op, bop, nev: int, ncv: int):
        op = as_operator(op)
        n = op.rows()

        if nev < 1 or nev > n - 1:
            raise ValueError(
                "nev must satisfy 1 <= nev <= n - 1, n is the size of matrix"
            )
        if ncv <= nev or ncv > n:
            raise ValueError(
                "ncv must satisfy nev < ncv <= n, n is the size of matrix"
            )

        self._op = op
        self._n = n
        self._nev = nev
        self._ncv = ncv
        self._niter = 0
        self._fac = KrylovSchurFactorization(ArnoldiOp(op, bop), ncv)

        self._evals = np.zeros(0)
        self._evecs = np.zeros((n, 0))
        self._evals_conv = np.zeros(0, dtype=bool)
        self._info = CompInfo.NotComputed
        self._initialized = False

    # -------------------------------------------------------------------------
    # Restart heuristics
    # -------------------------------------------------------------------------

    def _num_converged(self, tol: float, evals: np.ndarray, res: np.ndarray) -> int:
        """Count the leading ``nev`` Ritz values whose residual passes the test."""
        eps23 = np.finfo(np.float64).eps ** (2.0 / 3.0)
        thresh = tol * np.maximum(np.abs(evals[: self._nev]), eps23)
        self._evals_conv = res[: self._nev] < thresh
        return int(np.count_nonzero(self._evals_conv))

    def _nev_adjusted(self, nconv: int, nconv_old: int) -> int:
        """Size of the subspace kept at the next restart."""
        nev, ncv = self._nev, self._ncv
        nev_new = nev + min(nconv, (ncv - nev) // 2)
        if nev_new == 1 and ncv > 3:
            nev_new = ncv // 2

        # lost converged values since the last restart: keep one more vector
        if nev_new + 1 < ncv and nconv_old > nconv:
            nev_new += 1

        return nev_new

    def _restart_selection(
        self, T: np.ndarray, selection: SortRule, nev_new: int
    ) -> Tuple[np.ndarray, int]:
        """
        Mark the diagonal positions of ``T`` to keep at the restart.

        The ``nev_new`` wanted positions are ranked by the eigenvalues of the
        diagonal blocks of ``T`` (the diagonal itself for 1x1 blocks).
        A 2x2 block is never split: the partner of a kept position is kept as
        well. If a pair does not fit below ``ncv`` while fewer than ``nev``
        positions are kept, the lowest-ranked kept 1x1 position is traded for
        the pair. The retained size is at least ``nev`` except when every
        kept position belongs to a 2x2 block and no further pair fits.
        """
        ncv = self._ncv
        ind = self.which_eigenvalues(schur_diagonal(T), selection)

        # diagonal positions of the block containing each position
        blocks = []
        start = 0
        for size in schur_blocks(T):
            blocks.extend([list(range(start, start + size))] * size)
            start += size

        select = np.zeros(ncv, dtype=bool)
        count = 0
        for i in ind[:nev_new]:
            if select[i]:
                continue
            block = blocks[i]
            if count + len(block) < ncv:
                select[block] = True
                count += len(block)
                continue

            # the pair of position i does not fit below ncv
            if count < self._nev:
                singles = [j for j in ind if select[j] and len(blocks[j]) == 1]
                if singles:
                    select[singles[-1]] = False
                    select[block] = True
                    count += 1
            break

        return select, count

    def _contract(self, H: np.ndarray, X: np.ndarray, T: np.ndarray, k: int) -> int:
        """Truncate the factorization to the leading ``k`` reordered Schur vectors."""
        ncv = self._ncv
        V = self._fac.V

        if k == 0:
            # no Schur vector can be kept: restart from the leading one
            V_new = np.zeros_like(V)
            V_new[:, 0] = V[:, :ncv] @ X[:, 0]
            self._fac.H = np.zeros_like(H)
            self._fac.V = V_new
            return 0

        Xk = X[:, :k]

        H_new = np.zeros_like(H)
        H_new[:k, :k] = T[:k, :k]
        H_new[k, :k] = H[ncv, :] @ Xk

        V_new = np.zeros_like(V)
        V_new[:, :k] = V[:, :ncv] @ Xk
        V_new[:, k] = V[:, ncv]

        self._fac.H = H_new
        self._fac.V = V_new
        return k

    def which_eigenvalues(self, evals: np.ndarray, rule: SortRule) -> np.ndarray:
        """Permutation putting the wanted Ritz values first."""
        return which_eigenvalues(evals, rule)

    # -------------------------------------------------------------------------
    # Public interface
    # -------------------------------------------------------------------------

    def init(self, residual: Optional[np.ndarray] = None):
        """
        Initialize the solver with a starting residual vector.

        Parameters
        ----------
        residual : ndarray, optional
            Initial residual of length n. If omitted, a vector with entries
            uniform on [-0.5, 0.5) is drawn from a generator seeded with 0,
            so repeated runs are reproducible.
        """
        if residual is None:
            rng = np.random.default_rng(0)
            residual = rng.uniform(-0.5, 0.5, self._n)

        self._fac.init(residual)

        self._evals = np.zeros(self._nev)
        self._evecs = np.zeros((self._n, self._nev))
        self._evals_conv = np.zeros(self._nev, dtype=bool)
        self._niter = 0
        self._info = CompInfo.NotComputed
        self._initialized = True

    def compute(
        self,
        selection: Union[SortRule, str] = SortRule.LargestMagn,
        maxit: int = 1000,
        tol: float = 1e-10,
        sorting: Union[SortRule, str] = SortRule.LargestAlge,
    ) -> int:
        """
        Run the restarted Krylov-Schur iteration.

        Parameters
        ----------
        selection : SortRule or str
            Part of the spectrum wanted: LM, LR, LI, SM, SR or SI.
        maxit : int
            Maximum number of restart iterations.
        tol : float
            Relative tolerance of the residual test.
        sorting : SortRule or str
            LA, LM, SA or SM. Validated only; the results are returned in
            the order given by ``selection``.

        Returns
        -------
        int
            Number of converged eigenvalues, at most ``nev``.
        """
        selection = check_selection_rule(selection)
        check_sorting_rule(sorting)
        if maxit < 1:
            raise ValueError(f"maxit must be positive, got {maxit}")
        if tol < 0:
            raise ValueError(f"tol must be non-negative, got {tol}")

        if not self._initialized:
            self.init()

        n, nev, ncv = self._n, self._nev, self._ncv
        fac = self._fac
        size_v = 0
        nconv = 0

        for i in range(maxit):
            if fac.factorize_from(size_v, ncv):
                self._evals = np.zeros(0)
                self._evecs = np.zeros((n, 0))
                self._evals_conv = np.zeros(0, dtype=bool)
                self._niter += i + 1
                warnings.warn(
                    "Krylov subspace became invariant before reaching "
                    f"ncv={ncv} vectors, no eigenpairs computed",
                    RuntimeWarning,
                    stacklevel=2,
                )
                return 0

            H = fac.H
            T, X = schur(H[:ncv, :ncv], output="real")

            d, evecs_T = eig(T)
            U = X @ evecs_T
            res = np.abs(H[ncv, :] @ U)

            ind = self.which_eigenvalues(d, selection)
            d = d[ind]
            res = res[ind]

            nconv_old = nconv
            nconv = self._num_converged(tol, d, res)
            if nconv >= nev or i == maxit - 1:
                break

            nev_new = self._nev_adjusted(nconv, nconv_old)
            select, nev_new = self._restart_selection(T, selection, nev_new)
            ordschur(X, T, select)
            size_v = self._contract(H, X, T, nev_new)

        self._evals = d[:nev].real.copy()
        self._evecs = (fac.V[:, :ncv] @ U[:, ind[:nev]]).real
        self._niter += i + 1
        self._info = CompInfo.Successful if nconv >= nev else CompInfo.NotConverging

        return min(nev, nconv)

    def info(self) -> CompInfo:
        """Status of the last computation."""
        return self._info

    def num_iterations(self) -> int:
        return self._niter

    def num_operations(self) -> int:
        return self._fac.num_operations

    def eigenvalues(self) -> np.ndarray:
        """Ritz values of the last computation, in selection order."""
        return self._evals.copy()

    def eigenvectors(self, nvec: Optional[int] = None) -> np.ndarray:
        """
        Leading Ritz vectors of the last computation.

        Parameters
        ----------
        nvec : int, optional
            Number of vectors requested (default ``nev``). At most the number
            of converged values is returned.

        Returns
        -------
        ndarray
            Matrix of shape ``(n, min(nvec, nconv))``.

        Notes
        -----
        The columns are the leading Ritz vectors in selection order, whether
        or not each of them passed the convergence test. When the converged
        values are not a prefix of the selection (see ``converged_mask``),
        an unconverged vector can be returned in place of a converged one.
        """
        if nvec is None:
            nvec = self._nev
        nconv = int(np.count_nonzero(self._evals_conv))
        nvec = max(0, min(nvec, nconv))
        return self._evecs[:, :nvec].copy()

    def converged_mask(self) -> np.ndarray:
        return self._evals_conv.copy()


class KrylovSchurEigsSolver(KrylovSchurGEigsBase):
    """Krylov-Schur solver for the standard problem ``A x = lambda x``."""

    def __init__(self, op, nev: int, ncv: int):
        op = as_operator(op)
        super().__init__(op, IdentityBOp(op.rows()), nev, ncv)


class KrylovSchurGEigsSolver(KrylovSchurGEigsBase):
    """
    Krylov-Schur solver for ``A x = lambda B x`` in regular inverse mode.

    The Krylov subspace is built with ``B^{-1} A`` and orthonormalized in the
    B-inner product. ``bop`` must provide ``apply`` (``B x``) and ``solve``
    (``B^{-1} x``); dense arrays and scipy sparse matrices are factorized.
    """

    def __init__(self, op, bop, nev: int, ncv: int):
        if bop is None:
            raise ValueError("bop is required for the generalized problem")
        op = as_operator(op)
        bop = as_bop(bop)
        super().__init__(RegularInverseOp(op, bop), bop, nev, ncv)


# =============================================================================
# High-Level Interface
# =============================================================================


def eigs(
    A,
    k: int = 6,
    M=None,
    which: Union[SortRule, str] = "LM",
    ncv: Optional[int] = None,
    maxiter: int = 1000,
    tol: float = 1e-10,
    v0: Optional[np.ndarray] = None,
) -> KrylovSchurResult:
    """
    Find k eigenvalues and eigenvectors of A (or of the pencil (A, M)).

    Parameters
    ----------
    A : ndarray, sparse matrix, LinearOperator or operator
        Real square operator.
    k : int
        Number of eigenvalues wanted.
    M : ndarray or sparse matrix, optional
        Symmetric positive definite B of the generalized problem.
    which : str
        'LM', 'LR', 'LI', 'SM', 'SR' or 'SI'.
    ncv : int, optional
        Krylov subspace dimension (default: min(n, max(2k + 1, 20))).
    maxiter : int
        Maximum number of restarts.
    tol : float
        Relative tolerance.
    v0 : ndarray, optional
        Starting residual (default: fixed-seed random vector).

    Returns
    -------
    KrylovSchurResult
    """
    op = as_operator(A)
    n = op.rows()
    if ncv is None:
        ncv = min(n, max(2 * k + 1, 20))

    if M is None:
        solver = KrylovSchurEigsSolver(op, k, ncv)
    else:
        solver = KrylovSchurGEigsSolver(op, M, k, ncv)

    solver.init(v0)
    nconv = solver.compute(which, maxiter, tol)

    if solver.info() == CompInfo.NotConverging:
        warnings.warn(
            f"only {nconv} of {k} eigenvalues converged after "
            f"{solver.num_iterations()} iterations",
            RuntimeWarning,
            stacklevel=2,
        )

    return KrylovSchurResult(
        eigenvalues=solver.eigenvalues(),
        eigenvectors=solver.eigenvectors(),
        info=solver.info(),
        nconv=nconv,
        iterations=solver.num_iterations(),
        nops=solver.num_operations(),
    )


def eigs_scipy(
    A, k: int = 6, M=None, which: str = "LM", **kwargs
) -> Tuple[np.ndarray, np.ndarray]:
    """
    SciPy-style interface returning ``(w, v)``.

    Additional keyword arguments are passed to ``eigs``.
    """
    result = eigs(A, k=k, M=M, which=which, **kwargs)
    return result.eigenvalues, result.eigenvectors


# =============================================================================
# Test Function
# =============================================================================


def _test():
    """Quick test to verify installation."""
    print("Krylov-Schur eigen solver test")
    print("=" * 40)

    n = 10
    A = (
        np.diag(np.full(n, 2.0))
        + np.diag(np.full(n - 1, -1.0), 1)
        + np.diag(np.full(n - 1, -1.0), -1)
    )
    exact = 2.0 - 2.0 * np.cos(np.arange(n, 0, -1) * np.pi / (n + 1))

    print(f"Matrix: {n}x{n} tridiagonal (2, -1)")
    print("\nCalling eigs(k=3)...")

    result = eigs(A, k=3, ncv=6)

    print(f"\n{result}")
    print(f"Eigenvalues: {result.eigenvalues}")
    print(f"Exact:       {exact[:3]}")

    return result.converged
