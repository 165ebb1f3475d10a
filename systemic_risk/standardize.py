"""
Window standardization (z-scoring) ahead of basis expansion.

Uses the sample standard deviation (ddof=1). A constant window has zero
dispersion and produces NaN output; the NaNs are left to propagate so the
fit solver reports the window as infeasible.
"""

from typing import Optional, Tuple

import numpy as np


def window_moments(v: np.ndarray) -> Tuple[float, float]:
    """Return (mean, sample std) of a 1-D window."""
    n = v.shape[0]
    if n == 0:
        return np.nan, np.nan
    mean = v.mean()
    if n < 2:
        return float(mean), np.nan
    return float(mean), float(v.std(ddof=1))


def standardize_window(v, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Compute (v - mean) / std element-wise.

    Args:
        v: 1-D window values
        out: Optional buffer of the same shape; fully overwritten

    Returns:
        Standardized window (``out`` when given)
    """
    v = np.asarray(v, dtype=np.float64)
    mean, std = window_moments(v)
    with np.errstate(divide='ignore', invalid='ignore'):
        if out is None:
            return (v - mean) / std
        np.subtract(v, mean, out=out)
        np.divide(out, std, out=out)
    return out


def destandardize(z, mean: float, std: float) -> np.ndarray:
    """Inverse of standardize_window: z * std + mean."""
    return np.asarray(z, dtype=np.float64) * std + mean
