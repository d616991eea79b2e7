"""
Dense linear solve for the pendulum mass matrix
Gaussian elimination with partial pivoting
"""

from __future__ import annotations

import logging

import numpy as np

import sim_config
from pendulum_types import DimensionMismatchError, SingularMatrixError

logger = logging.getLogger(__name__)


def solve_linear_system(
    A: np.ndarray,
    b: np.ndarray,
    singular_policy: str = sim_config.DEFAULT_SINGULAR_POLICY,
) -> np.ndarray:
    """
    Solve A x = b by Gaussian elimination with partial pivoting.

    Parameters
    ----------
    A : array (N, N)
        Coefficient matrix. Not modified.
    b : array (N,)
        Right-hand side. Not modified.
    singular_policy : str
        What to do when a diagonal pivot is exactly zero after elimination:
        'zero' logs a warning and returns the zero vector, 'lstsq' logs a warning
        and returns the least-squares solution, 'raise' raises SingularMatrixError.

    Returns
    -------
    x : array (N,)
    """
    if singular_policy not in sim_config.SINGULAR_POLICIES:
        raise ValueError(
            f"Unknown singular policy '{singular_policy}'. Use one of {sim_config.SINGULAR_POLICIES}."
        )

    A = np.asarray(A, dtype=float)
    b = np.asarray(b, dtype=float).reshape(-1)
    n = b.size
    if A.shape != (n, n):
        raise DimensionMismatchError(f"Matrix of shape {A.shape} does not match vector of length {n}")
    if n == 0:
        return np.zeros(0)

    # Augmented matrix [A | b], C-contiguous so row (i, j) lives at i*(n+1)+j
    a = np.empty((n, n + 1))
    a[:, :n] = A
    a[:, n] = b

    for i in range(n):
        pivot = pivot_row(a, i)
        if pivot != i:
            a[[i, pivot]] = a[[pivot, i]]

        if a[i, i] == 0:
            continue  # degenerate column, nothing to eliminate with
        factors = a[i + 1:, i] / a[i, i]
        a[i + 1:, i:] -= np.outer(factors, a[i, i:])

    x = np.zeros(n)
    for i in range(n - 1, -1, -1):
        if a[i, i] == 0:
            return _singular_fallback(A, b, singular_policy)
        x[i] = (a[i, n] - a[i, i + 1:n] @ x[i + 1:]) / a[i, i]

    return x


def pivot_row(a: np.ndarray, i: int) -> int:
    """
    Row k >= i with the largest |a[k, i]|.

    Only a strictly larger magnitude replaces the current candidate, so the
    first row wins ties and a NaN entry is never chosen over row i.
    """
    pivot = i
    for k in range(i + 1, a.shape[0]):
        if abs(a[k, i]) > abs(a[pivot, i]):
            pivot = k
    return pivot


def _singular_fallback(A: np.ndarray, b: np.ndarray, singular_policy: str) -> np.ndarray:
    n = b.size
    if singular_policy == "raise":
        raise SingularMatrixError(f"Singular {n}x{n} system: zero pivot after elimination")

    if singular_policy == "lstsq":
        logger.warning("Singular %dx%d system, falling back to least squares", n, n)
        x, *_ = np.linalg.lstsq(A, b, rcond=None)
        return x

    logger.warning("Singular %dx%d system, returning zero accelerations", n, n)
    return np.zeros(n)
