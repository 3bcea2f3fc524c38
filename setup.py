"""
Setup script for the krylovschur Python package.

Build commands (run from the repository root):
    pip install .              # Install
    pip install -e .           # Editable install
    pip install -e .[test]     # Editable install with test dependencies
"""

from pathlib import Path

from setuptools import setup

ROOT_DIR = Path(__file__).parent.absolute()


def read_version():
    """Read __version__ from the package without importing it."""
    init_py = ROOT_DIR / "krylovschur" / "__init__.py"
    for line in init_py.read_text().splitlines():
        if line.startswith("__version__"):
            return line.split("=", 1)[1].strip().strip("\"'")
    raise RuntimeError("Unable to find __version__ in krylovschur/__init__.py")


setup(
    name="krylovschur",
    version=read_version(),
    description="Restarted Krylov-Schur eigen solvers for large real operators",
    license="MPL-2.0",
    packages=["krylovschur"],
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.20",
        "scipy>=1.6",
    ],
    extras_require={
        "test": ["pytest>=6.0"],
    },
)
