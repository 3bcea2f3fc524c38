"""
Benchmark script for the Krylov-Schur solver comparing against ARPACK:
1. krylovschur.eigs
2. scipy.sparse.linalg.eigsh (symmetric) / eigs (non-symmetric)

Uses 3D FEM-like matrices (anisotropic 7-point stencil Laplacian), with an
optional upwind convection term that makes them non-symmetric.
"""

import numpy as np
from scipy import sparse
from scipy.sparse.linalg import eigs as arpack_eigs, eigsh as arpack_eigsh
import time
import sys
import os
import warnings

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from krylovschur import eigs, get_backend_info


def create_3d_fem_matrix(n_target, matrix_type="symmetric"):
    """
    Create a 3D FEM-like sparse matrix on an m x m x m grid.

    The diffusion coefficients differ per direction (1, 1.3, 1.7), which
    splits the multiple eigenvalues of the isotropic Laplacian. For
    ``matrix_type="convection"`` a first-order upwind term along x is added,
    giving a non-symmetric matrix with a real spectrum.
    """
    m = max(2, int(round(n_target ** (1 / 3))))
    n = m * m * m

    I = sparse.identity(m, format="csr")
    L = sparse.diags([-1.0, 2.0, -1.0], [-1, 0, 1], shape=(m, m), format="csr")
    Lx = sparse.kron(sparse.kron(L, I), I)
    Ly = sparse.kron(sparse.kron(I, L), I)
    Lz = sparse.kron(sparse.kron(I, I), L)
    A = 1.0 * Lx + 1.3 * Ly + 1.7 * Lz

    if matrix_type == "convection":
        D = sparse.diags([-1.0, 1.0], [-1, 0], shape=(m, m), format="csr")
        A = A + 0.5 * sparse.kron(sparse.kron(D, I), I)

    return A.tocsr(), n, m


def benchmark_krylovschur(A, k, which, tol=1e-10, n_runs=3):
    """Benchmark krylovschur.eigs."""
    times, result = [], None
    for _ in range(n_runs):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", RuntimeWarning)
            t0 = time.perf_counter()
            result = eigs(A, k=k, which=which, tol=tol)
            times.append(time.perf_counter() - t0)
    return np.median(times), result


def benchmark_arpack(A, k, which, symmetric, tol=1e-10, n_runs=3):
    """Benchmark ARPACK through scipy."""
    n = A.shape[0]
    ncv = min(n, max(2 * k + 1, 20))
    times, w = [], None
    for _ in range(n_runs):
        t0 = time.perf_counter()
        if symmetric:
            w = arpack_eigsh(A, k=k, which="LA" if which == "LR" else which,
                             ncv=ncv, tol=tol, return_eigenvectors=False)
        else:
            w = arpack_eigs(A, k=k, which=which, ncv=ncv, tol=tol,
                            return_eigenvectors=False)
        times.append(time.perf_counter() - t0)
    return np.median(times), w


def max_relative_error(w_ks, w_ref, which):
    """Compare the wanted ends of two spectra."""
    key = np.abs if which in ("LM", "SM") else np.real
    a = np.sort(key(np.asarray(w_ks)))
    b = np.sort(key(np.asarray(w_ref)))
    return float(np.max(np.abs(a - b) / np.abs(b)))


def run_benchmark(sizes, matrix_type, k=6, which="LM", n_runs=3):
    results = []
    symmetric = matrix_type == "symmetric"

    for n_target in sizes:
        A, n, m = create_3d_fem_matrix(n_target, matrix_type)
        print(f"  n={n:>7,} (grid={m}³) ... ", end="", flush=True)

        t_ks, res_ks = benchmark_krylovschur(A, k, which, n_runs=n_runs)
        t_ar, w_ar = benchmark_arpack(A, k, which, symmetric, n_runs=n_runs)

        err = (
            max_relative_error(res_ks.eigenvalues[: res_ks.nconv], w_ar[: res_ks.nconv], which)
            if res_ks.nconv == k
            else float("inf")
        )
        results.append(
            {
                "grid": m,
                "n": n,
                "nnz": A.nnz,
                "t_ks": t_ks,
                "info_ks": int(res_ks.info),
                "iter_ks": res_ks.iterations,
                "nops_ks": res_ks.nops,
                "t_arpack": t_ar,
                "err": err,
            }
        )
        print("done")

    return results


def print_results_table(results, matrix_type, which):
    print(f"\n{'='*100}")
    print(f"BENCHMARK RESULTS - {matrix_type.upper()} MATRICES, which={which}")
    print(f"{'='*100}")
    print("Info: 0=successful, 1=not computed, 2=not converging")
    print()
    print(
        f"{'Grid':>6} {'Size':>8} {'NNZ':>10} │ {'Krylov-Schur':>12} {'Iter':>5} "
        f"{'Ops':>6} {'Inf':>3} │ {'ARPACK':>10} │ {'KS/ARPACK':>10} {'Rel. err':>10}"
    )
    print(
        f"{'-'*6} {'-'*8} {'-'*10} │ {'-'*12} {'-'*5} {'-'*6} {'-'*3} │ "
        f"{'-'*10} │ {'-'*10} {'-'*10}"
    )

    for r in results:
        ratio = r["t_ks"] / r["t_arpack"] if r["t_arpack"] > 0 else float("nan")
        err = f"{r['err']:.2e}" if np.isfinite(r["err"]) else "FAILED"
        print(
            f"{str(r['grid']) + '³':>6} {r['n']:>8,} {r['nnz']:>10,} │ "
            f"{r['t_ks']*1000:>10.1f}ms {r['iter_ks']:>5} {r['nops_ks']:>6} "
            f"{r['info_ks']:>3} │ {r['t_arpack']*1000:>8.1f}ms │ {ratio:>9.2f}x {err:>10}"
        )


def main():
    print("=" * 100)
    print("KRYLOV-SCHUR BENCHMARK: krylovschur.eigs vs ARPACK")
    print("=" * 100)

    info = get_backend_info()
    print("\nBackend Info:")
    print(f"  numpy: {info['numpy']}")
    print(f"  scipy: {info['scipy']}")

    sizes = [125, 512, 1000, 3375, 8000, 27000]
    k = 6

    print("\n3D FEM Test Configuration:")
    print(f"  Target sizes: {sizes}")
    print(f"  Eigenvalues (k): {k}")
    print("  Tolerance: 1e-10")
    print("  Runs per test: 3 (median time reported)")

    for matrix_type, which in [("symmetric", "LM"), ("convection", "LR")]:
        print("\n" + "─" * 100)
        print(f"Testing {matrix_type.upper()} matrices, which={which} ...")
        print("─" * 100)
        results = run_benchmark(sizes, matrix_type, k=k, which=which)
        print_results_table(results, matrix_type, which)


if __name__ == "__main__":
    main()
