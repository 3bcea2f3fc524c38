"""
Arnoldi factorization used by the Krylov-Schur solvers.

Maintains ``A V[:, :m] = V[:, :m+1] H[:m+1, :m]`` with ``V`` orthonormal in
the B-inner product. After a Krylov-Schur contraction the leading block of
``H`` is quasi-triangular rather than Hessenberg; the extension step does not
depend on that structure.
"""

import numpy as np

__all__ = ["ArnoldiOp", "KrylovSchurFactorization"]


# =============================================================================
# Operator with B-inner product
# =============================================================================


class ArnoldiOp:
    """
    Operator applied during the Arnoldi process, together with the inner
    product ``<x, y>_B = x^T B y`` (Euclidean when ``bop`` is None).
    """

    __slots__ = ("op", "bop")

    def __init__(self, op, bop=None):
        self.op = op
        self.bop = bop

    def rows(self):
        return self.op.rows()

    def apply(self, x: np.ndarray) -> np.ndarray:
        return np.asarray(self.op.apply(x), dtype=np.float64).ravel()

    def _bprod(self, y):
        if self.bop is None:
            return y
        return np.asarray(self.bop.apply(y), dtype=np.float64).ravel()

    def inner_product(self, x: np.ndarray, y: np.ndarray) -> float:
        return float(x @ self._bprod(y))

    def trans_product(self, V: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Return ``V^T B y``."""
        return V.T @ self._bprod(y)

    def norm(self, x: np.ndarray) -> float:
        return np.sqrt(max(self.inner_product(x, x), 0.0))


# =============================================================================
# Krylov factorization
# =============================================================================


class KrylovSchurFactorization:
    """
    Storage and extension of a Krylov factorization of size up to ``ncv``.

    Parameters
    ----------
    op : ArnoldiOp
        Operator and inner product.
    ncv : int
        Maximum dimension of the Krylov subspace.
    """

    __slots__ = ("op", "n", "ncv", "_V", "_H", "num_operations", "_eps", "_near_0")

    # DGKS criterion: reorthogonalize when the residual lost this much of ||w||
    _reorth_eta = 1.0 / np.sqrt(2.0)

    def __init__(self, op: ArnoldiOp, ncv: int):
        self.op = op
        self.n = op.rows()
        self.ncv = ncv
        self._V = np.zeros((self.n, ncv + 1))
        self._H = np.zeros((ncv + 1, ncv))
        self.num_operations = 0
        self._eps = np.finfo(np.float64).eps
        self._near_0 = np.finfo(np.float64).tiny ** (2.0 / 3.0)

    # -------------------------------------------------------------------------
    # Buffers
    # -------------------------------------------------------------------------

    @property
    def V(self) -> np.ndarray:
        """Basis matrix, ``n x (ncv + 1)``."""
        return self._V

    @V.setter
    def V(self, value: np.ndarray):
        if value.shape != self._V.shape:
            raise ValueError(f"V must have shape {self._V.shape}, got {value.shape}")
        self._V = value

    @property
    def H(self) -> np.ndarray:
        """Projected matrix, ``(ncv + 1) x ncv``."""
        return self._H

    @H.setter
    def H(self, value: np.ndarray):
        if value.shape != self._H.shape:
            raise ValueError(f"H must have shape {self._H.shape}, got {value.shape}")
        self._H = value

    # -------------------------------------------------------------------------
    # Factorization
    # -------------------------------------------------------------------------

    def init(self, v0: np.ndarray):
        """Start a new factorization from the residual vector ``v0``."""
        v0 = np.asarray(v0, dtype=np.float64).ravel()
        if v0.shape[0] != self.n:
            raise ValueError(
                f"initial residual must have length {self.n}, got {v0.shape[0]}"
            )
        if not np.all(np.isfinite(v0)):
            raise ValueError("initial residual contains non-finite values")

        v0norm = self.op.norm(v0)
        if v0norm < self._near_0:
            raise ValueError("initial residual vector cannot be zero")

        self._V = np.zeros((self.n, self.ncv + 1))
        self._H = np.zeros((self.ncv + 1, self.ncv))
        self._V[:, 0] = v0 / v0norm
        self.num_operations = 0

    def factorize_from(self, from_k: int, to_m: int) -> bool:
        """
        Extend the factorization from size ``from_k`` to ``to_m``.

        Column ``from_k`` of ``V`` must hold the current (normalized) residual
        direction.

        Returns
        -------
        bool
            True if the Krylov subspace became invariant before reaching
            ``to_m`` columns, in which case the factorization cannot be
            extended.
        """
        V, H, op = self._V, self._H, self.op

        for j in range(from_k, to_m):
            w = op.apply(V[:, j])
            self.num_operations += 1
            wnorm = op.norm(w)

            Vj = V[:, : j + 1]
            h = op.trans_product(Vj, w)
            f = w - Vj @ h
            beta = op.norm(f)

            # at most two DGKS corrections
            for _ in range(2):
                if beta >= self._reorth_eta * wnorm:
                    break
                s = op.trans_product(Vj, f)
                f -= Vj @ s
                h += s
                beta = op.norm(f)

            H[: j + 1, j] = h
            H[j + 1 :, j] = 0.0

            if j + 1 >= self.n:
                # a basis of dimension n spans the whole space
                H[j + 1, j] = 0.0
                V[:, j + 1] = 0.0
                continue

            if beta < self._near_0 or beta <= np.sqrt(j + 1) * self._eps * wnorm:
                return True

            H[j + 1, j] = beta
            V[:, j + 1] = f / beta

        return False
