"""
Matrix operation wrappers used by the Krylov-Schur solvers.

Every operator exposes ``rows()``, ``cols()`` and ``apply(x)``. Operators on
the B side of a generalized problem additionally expose ``solve(x)``.
"""

import numpy as np
from scipy import sparse
from scipy.linalg import lu_factor, lu_solve
from scipy.sparse.linalg import LinearOperator, aslinearoperator, splu

__all__ = [
    "DenseGenMatProd",
    "SparseGenMatProd",
    "LinearOperatorProd",
    "IdentityBOp",
    "DenseRegularInverse",
    "SparseRegularInverse",
    "RegularInverseOp",
    "as_operator",
    "as_bop",
]


def _check_square(shape, name="A"):
    if len(shape) != 2 or shape[0] != shape[1]:
        raise ValueError(f"{name} must be square, got shape {tuple(shape)}")
    return shape[0]


# =============================================================================
# Operators for A
# =============================================================================


class DenseGenMatProd:
    """Product with a general dense matrix."""

    __slots__ = ("mat", "n")

    def __init__(self, A):
        self.mat = np.asarray(A, dtype=np.float64)
        self.n = _check_square(self.mat.shape)

    def rows(self):
        return self.n

    def cols(self):
        return self.n

    def apply(self, x: np.ndarray) -> np.ndarray:
        return self.mat @ x


class SparseGenMatProd:
    """Product with a scipy sparse matrix (stored as CSR)."""

    __slots__ = ("mat", "n")

    def __init__(self, A):
        self.n = _check_square(A.shape)
        self.mat = sparse.csr_matrix(A, dtype=np.float64)

    def rows(self):
        return self.n

    def cols(self):
        return self.n

    def apply(self, x: np.ndarray) -> np.ndarray:
        return self.mat @ x


class LinearOperatorProd:
    """Product with a ``scipy.sparse.linalg.LinearOperator``."""

    __slots__ = ("op", "n")

    def __init__(self, A):
        self.op = aslinearoperator(A)
        self.n = _check_square(self.op.shape)

    def rows(self):
        return self.n

    def cols(self):
        return self.n

    def apply(self, x: np.ndarray) -> np.ndarray:
        return np.asarray(self.op.matvec(x)).ravel()


# =============================================================================
# Operators for B
# =============================================================================


class IdentityBOp:
    """B = I."""

    __slots__ = ("n",)

    def __init__(self, n: int):
        self.n = n

    def rows(self):
        return self.n

    def cols(self):
        return self.n

    def apply(self, x: np.ndarray) -> np.ndarray:
        return x

    def solve(self, x: np.ndarray) -> np.ndarray:
        return x


class DenseRegularInverse:
    """Dense B with products ``B x`` and solves ``B^{-1} x`` through an LU factorization."""

    __slots__ = ("mat", "lu", "piv", "n")

    def __init__(self, B):
        self.mat = np.asarray(B, dtype=np.float64)
        self.n = _check_square(self.mat.shape, "B")
        self.lu, self.piv = lu_factor(self.mat)

    def rows(self):
        return self.n

    def cols(self):
        return self.n

    def apply(self, x: np.ndarray) -> np.ndarray:
        return self.mat @ x

    def solve(self, x: np.ndarray) -> np.ndarray:
        return lu_solve((self.lu, self.piv), x)


class SparseRegularInverse:
    """Sparse B with products ``B x`` and solves ``B^{-1} x`` through SuperLU."""

    __slots__ = ("mat", "lu", "n")

    def __init__(self, B):
        self.n = _check_square(B.shape, "B")
        self.mat = sparse.csc_matrix(B, dtype=np.float64)
        self.lu = splu(self.mat)

    def rows(self):
        return self.n

    def cols(self):
        return self.n

    def apply(self, x: np.ndarray) -> np.ndarray:
        return self.mat @ x

    def solve(self, x: np.ndarray) -> np.ndarray:
        return self.lu.solve(x)


class RegularInverseOp:
    """The combined operator ``B^{-1} A`` of the regular inverse mode."""

    __slots__ = ("op", "bop")

    def __init__(self, op, bop):
        if op.rows() != bop.rows():
            raise ValueError(
                f"A and B sizes differ: {op.rows()} != {bop.rows()}"
            )
        self.op = op
        self.bop = bop

    def rows(self):
        return self.op.rows()

    def cols(self):
        return self.op.rows()

    def apply(self, x: np.ndarray) -> np.ndarray:
        return self.bop.solve(self.op.apply(x))


# =============================================================================
# Factories
# =============================================================================


def as_operator(A):
    """
    Wrap ``A`` into an operator exposing ``rows()`` and ``apply()``.

    Objects that already expose both are returned unchanged. Dense arrays,
    scipy sparse matrices and LinearOperators are wrapped.
    """
    if hasattr(A, "apply") and hasattr(A, "rows"):
        return A
    if sparse.issparse(A):
        return SparseGenMatProd(A)
    if isinstance(A, LinearOperator):
        return LinearOperatorProd(A)
    if isinstance(A, np.ndarray):
        return DenseGenMatProd(A)
    return LinearOperatorProd(A)


def as_bop(B):
    """Wrap ``B`` for the B side of a generalized problem (``None`` stays ``None``)."""
    if B is None:
        return None
    if hasattr(B, "apply") and hasattr(B, "solve"):
        return B
    if sparse.issparse(B):
        return SparseRegularInverse(B)
    return DenseRegularInverse(B)
