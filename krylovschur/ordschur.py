"""
Reordering of a real Schur decomposition.

Given ``A = U T U^T`` with ``T`` quasi-upper-triangular, ``ordschur`` moves
selected diagonal positions to the leading block of ``T`` by a sequence of
swaps of adjacent diagonal blocks, each an orthogonal similarity.
"""

from typing import List, Tuple

import numpy as np
from scipy.linalg import solve_sylvester
from scipy.linalg.lapack import dlartg

__all__ = ["ordschur", "schur_blocks", "schur_diagonal"]


def schur_blocks(T: np.ndarray) -> List[int]:
    """Sizes (1 or 2) of the diagonal blocks of a quasi-triangular ``T``."""
    n = T.shape[0]
    sizes = []
    i = 0
    while i < n:
        if i + 1 < n and T[i + 1, i] != 0:
            sizes.append(2)
            i += 2
        else:
            sizes.append(1)
            i += 1
    return sizes


def schur_diagonal(T: np.ndarray) -> np.ndarray:
    """
    Eigenvalues of ``T`` listed by diagonal position.

    A 1x1 block contributes its diagonal entry; a 2x2 block contributes its
    conjugate pair, the one with positive imaginary part first.
    """
    d = np.diag(T).astype(np.complex128)
    start = 0
    for size in schur_blocks(T):
        if size == 2:
            pair = np.linalg.eigvals(T[start : start + 2, start : start + 2])
            lam = pair[0] if pair[0].imag >= pair[1].imag else pair[1]
            d[start] = lam
            d[start + 1] = np.conj(lam)
        start += size
    return d


# =============================================================================
# Adjacent Swaps
# =============================================================================


def _givens_swap(T: np.ndarray, k: int) -> np.ndarray:
    """Rotation exchanging the 1x1 blocks at ``k`` and ``k + 1``."""
    # first column of Q is the eigenvector of T[k+1, k+1] in the 2x2 window
    c, s, _ = dlartg(T[k, k + 1], T[k + 1, k + 1] - T[k, k])
    return np.array([[c, -s], [s, c]])


def _sylvester_swap(T: np.ndarray, k: int, p: int, q: int) -> np.ndarray:
    """Orthogonal transform exchanging a p x p block with the q x q block below it."""
    T11 = T[k : k + p, k : k + p]
    T12 = T[k : k + p, k + p : k + p + q]
    T22 = T[k + p : k + p + q, k + p : k + p + q]
    # [-X; I] spans the invariant subspace belonging to T22
    X = solve_sylvester(T11, -T22, T12)
    Q, _ = np.linalg.qr(np.vstack([-X, np.eye(q)]), mode="complete")
    return Q


def _swap_adjacent(U: np.ndarray, T: np.ndarray, k: int, p: int, q: int):
    if p == 1 and q == 1:
        Q = _givens_swap(T, k)
    else:
        Q = _sylvester_swap(T, k, p, q)

    w = slice(k, k + p + q)
    T[w, :] = Q.T @ T[w, :]
    T[:, w] = T[:, w] @ Q
    U[:, w] = U[:, w] @ Q

    T[k + q : k + p + q, k : k + q] = 0.0


# =============================================================================
# Reordering
# =============================================================================


def ordschur(
    U: np.ndarray, T: np.ndarray, select: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Reorder a real Schur form in place.

    Parameters
    ----------
    U : ndarray
        Orthogonal Schur vectors (m x n), updated as ``U Q``.
    T : ndarray
        Quasi-upper-triangular Schur factor (n x n), updated as ``Q^T T Q``.
    select : array_like of bool
        Diagonal positions to move to the leading block. Both positions of a
        2x2 block must have the same value.

    Returns
    -------
    U, T : ndarray
        The same arrays, reordered so that the selected positions come first
        (in their original relative order), followed by the others.
    """
    select = np.asarray(select, dtype=bool)
    n = T.shape[0]
    if select.shape != (n,):
        raise ValueError(f"select must have length {n}, got shape {select.shape}")

    sizes = schur_blocks(T)
    keep = []
    start = 0
    for size in sizes:
        if size == 2 and select[start] != select[start + 1]:
            raise ValueError(f"selection splits the 2x2 block at position {start}")
        keep.append(bool(select[start]))
        start += size

    # target position of each block
    nblk = len(sizes)
    permutation = np.empty(nblk, dtype=int)
    ind = 0
    for j in range(nblk):
        if keep[j]:
            permutation[j] = ind
            ind += 1
    for j in range(nblk):
        if not keep[j]:
            permutation[j] = ind
            ind += 1

    for i in range(nblk - 1):
        j = int(np.flatnonzero(permutation == i)[0])
        for b in range(j - 1, i - 1, -1):
            k = sum(sizes[:b])
            _swap_adjacent(U, T, k, sizes[b], sizes[b + 1])
            sizes[b], sizes[b + 1] = sizes[b + 1], sizes[b]
            permutation[b], permutation[b + 1] = permutation[b + 1], permutation[b]

    return U, T
