"""
Hermite polynomial utilities for systemic risk analysis.

Probabilists' Hermite polynomials via the three-term recurrence

    He_0(x) = 1
    He_1(x) = x
    He_{k+1}(x) = x * He_k(x) - k * He_{k-1}(x)

evaluated iteratively (two running values, O(n) per point). The kernels are
compiled with numba without fastmath so NaN/Inf inputs propagate exactly as
IEEE arithmetic dictates.
"""

from typing import Optional, Tuple

import numpy as np
from numba import njit
from numpy.polynomial import hermite_e


# ============================================================================
# NUMBA KERNELS
# ============================================================================

@njit(cache=True)
def _hermite_scalar(n, x):
    if n == 0:
        return 1.0
    if n == 1:
        return x
    h_prev2 = 1.0
    h_prev1 = x
    for k in range(2, n + 1):
        h_current = x * h_prev1 - (k - 1) * h_prev2
        h_prev2 = h_prev1
        h_prev1 = h_current
    return h_prev1


@njit(cache=True)
def _hermite_fill(n, xs, out):
    for i in range(xs.shape[0]):
        out[i] = _hermite_scalar(n, xs[i])
    return out


@njit(cache=True)
def _design_fill(z, mu, degree, out):
    """Write He_0..He_degree of (z - mu) into the columns of out."""
    for i in range(z.shape[0]):
        t = z[i] - mu
        out[i, 0] = 1.0
        if degree >= 1:
            out[i, 1] = t
            h_prev2 = 1.0
            h_prev1 = t
            for k in range(2, degree + 1):
                h_current = t * h_prev1 - (k - 1) * h_prev2
                out[i, k] = h_current
                h_prev2 = h_prev1
                h_prev1 = h_current
    return out


# ============================================================================
# PUBLIC API
# ============================================================================

def hermite_polynomial(n: int, x: float) -> float:
    """
    Compute the n-th probabilists' Hermite polynomial at point x.

    ``n = 0`` returns exactly 1.0 for any x, including non-finite x.
    """
    if n < 0:
        raise ValueError(f"Hermite degree must be non-negative, got {n}")
    return float(_hermite_scalar(int(n), float(x)))


def probabilist_hermite(n: int, x, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Vectorized Hermite polynomial evaluation.

    Args:
        n: Polynomial degree (>= 0)
        x: Sequence of evaluation points
        out: Optional float64 buffer of the same length to write into

    Returns:
        Array of He_n(x_i), same length and order as x
    """
    if n < 0:
        raise ValueError(f"Hermite degree must be non-negative, got {n}")
    xs = np.ascontiguousarray(x, dtype=np.float64).ravel()
    if out is None:
        out = np.empty_like(xs)
    elif out.shape != xs.shape:
        raise ValueError(f"out has shape {out.shape}, expected {xs.shape}")
    return _hermite_fill(int(n), xs, out)


def hermite_design_matrix(
    z,
    degree: int,
    mu: float = 0.0,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Build the W x (degree + 1) feature matrix with column d = He_d(z - mu).

    When ``out`` is given every element is overwritten, so a reused buffer
    never leaks values from a previous window.
    """
    if degree < 0:
        raise ValueError(f"Hermite degree must be non-negative, got {degree}")
    zs = np.ascontiguousarray(z, dtype=np.float64).ravel()
    shape = (zs.shape[0], degree + 1)
    if out is None:
        out = np.empty(shape, dtype=np.float64)
    elif out.shape != shape:
        raise ValueError(f"out has shape {out.shape}, expected {shape}")
    return _design_fill(zs, float(mu), int(degree), out)


def hermite_quadrature(n: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gauss-Hermite quadrature nodes and weights for the probabilists'
    weight function exp(-x^2 / 2).
    """
    if n <= 0:
        raise ValueError(f"Number of quadrature points must be positive, got {n}")
    nodes, weights = hermite_e.hermegauss(n)
    return nodes, weights
