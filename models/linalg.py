"""
Direct solve for the small mass/inertia systems M(x) a = C(x, u).

Gaussian elimination with partial pivoting, with an explicit singularity
test on each pivot instead of relying on a generic solver to fail.
"""

import numpy as np

from .errors import NonFiniteStateError, SingularDynamicsError

# Pivot threshold relative to the largest entry of M
SINGULAR_RTOL = 1e-12


def solve_small(M: np.ndarray, C: np.ndarray,
                rtol: float = SINGULAR_RTOL) -> np.ndarray:
    """
    Solve M @ a = C for a small square M (n <= 3 in practice).

    Args:
        M: Square matrix (n x n)
        C: Right-hand side (n,)
        rtol: Relative pivot tolerance

    Returns:
        a: Solution vector (n,)

    Raises:
        SingularDynamicsError: if M is singular
        NonFiniteStateError: if M or C contain NaN or Inf
    """
    A = np.array(M, dtype=float)
    a = np.array(C, dtype=float).reshape(-1)
    n = A.shape[0]

    if A.shape != (n, n) or a.shape[0] != n:
        raise ValueError(f"Shape mismatch: M {A.shape}, C {a.shape}")
    if not (np.all(np.isfinite(A)) and np.all(np.isfinite(a))):
        raise NonFiniteStateError("mass matrix or forcing vector is not finite")

    scale = np.max(np.abs(A))
    tol = rtol * scale
    if scale == 0.0:
        raise SingularDynamicsError("mass matrix is identically zero")

    # Forward elimination
    for k in range(n):
        p = k + int(np.argmax(np.abs(A[k:, k])))
        if abs(A[p, k]) <= tol:
            raise SingularDynamicsError(
                f"mass matrix is singular (pivot {A[p, k]:.3e} at column {k})")
        if p != k:
            A[[k, p]] = A[[p, k]]
            a[[k, p]] = a[[p, k]]
        for i in range(k + 1, n):
            factor = A[i, k] / A[k, k]
            A[i, k:] -= factor * A[k, k:]
            a[i] -= factor * a[k]

    # Back substitution
    x = np.zeros(n)
    for k in range(n - 1, -1, -1):
        x[k] = (a[k] - A[k, k + 1:] @ x[k + 1:]) / A[k, k]

    return x
