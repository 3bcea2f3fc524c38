"""
krylovschur - Restarted Krylov-Schur eigen solvers

Computes a few eigenpairs of large real operators, A x = lambda x or
A x = lambda B x, using only matrix-vector products.

Examples
--------
>>> from krylovschur import eigs
>>> result = eigs(A, k=3, which="LM")
>>> print(result.eigenvalues, result.converged)

>>> # Generalized problem with a SPD matrix B:
>>> result = eigs(A, k=3, M=B, which="SR")

>>> # Solver object with explicit control over the restart loop:
>>> from krylovschur import KrylovSchurEigsSolver, SortRule, CompInfo
>>> solver = KrylovSchurEigsSolver(A, nev=3, ncv=10)
>>> solver.init()
>>> nconv = solver.compute(SortRule.LargestMagn, maxit=1000, tol=1e-10)
>>> if solver.info() == CompInfo.Successful:
...     evals, evecs = solver.eigenvalues(), solver.eigenvectors()
"""

from .selection import (
    SortRule,
    CompInfo,
    SELECTION_RULES,
    SORTING_RULES,
    which_eigenvalues,
)
from .matop import (
    DenseGenMatProd,
    SparseGenMatProd,
    LinearOperatorProd,
    IdentityBOp,
    DenseRegularInverse,
    SparseRegularInverse,
    RegularInverseOp,
    as_operator,
    as_bop,
)
from .arnoldi import ArnoldiOp, KrylovSchurFactorization
from .ordschur import ordschur
from .geigs import (
    KrylovSchurGEigsBase,
    KrylovSchurEigsSolver,
    KrylovSchurGEigsSolver,
    KrylovSchurResult,
    eigs,
    eigs_scipy,
)

__version__ = "0.1.0"

__all__ = [
    "SortRule",
    "CompInfo",
    "SELECTION_RULES",
    "SORTING_RULES",
    "which_eigenvalues",
    "DenseGenMatProd",
    "SparseGenMatProd",
    "LinearOperatorProd",
    "IdentityBOp",
    "DenseRegularInverse",
    "SparseRegularInverse",
    "RegularInverseOp",
    "as_operator",
    "as_bop",
    "ArnoldiOp",
    "KrylovSchurFactorization",
    "ordschur",
    "KrylovSchurGEigsBase",
    "KrylovSchurEigsSolver",
    "KrylovSchurGEigsSolver",
    "KrylovSchurResult",
    "eigs",
    "eigs_scipy",
]


def test():
    """Run basic tests to verify installation."""
    from .geigs import _test

    return _test()


def get_backend_info():
    """Return information about the numerical backend.

    Returns
    -------
    dict
        Dictionary containing:
        - 'numpy': numpy version
        - 'scipy': scipy version
        - 'eps': machine epsilon of the float64 arithmetic used
    """
    import numpy as np
    import scipy

    return {
        "numpy": np.__version__,
        "scipy": scipy.__version__,
        "eps": float(np.finfo(np.float64).eps),
    }
