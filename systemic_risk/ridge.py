"""
Regularized Fit Solver
======================
Ridge regression of a standardized reference window on the Hermite
expansion of a standardized factor window, scanned over a (mu, alpha) grid.

For each grid point:
    H    = [He_0(z_x - mu), ..., He_D(z_x - mu)]          (W x (D+1))
    beta = (H^T H + alpha I)^{-1} H^T z_y                 (Cholesky)
    rmse = sqrt(mean((z_y - H beta)^2))

The solver returns the smallest finite in-sample RMSE across the grid.
A window whose standardized predictor or target is not finite (for example
a constant window) is infeasible as a whole. Grid points whose normal matrix is not positive definite, or whose RMSE is
non-finite, are skipped. If no grid point is feasible the result is NaN.

Two implementations share this contract:
- simple_fit_lnlm: baseline, plain numpy expressions, fresh allocations
- scan_grid_workspace / fit_lnlm_workspace: writes every intermediate into
  a Workspace and reuses H, H^T H and H^T y across consecutive grid points
  with the same mu. Floating-point operations and their order are the same
  as the baseline.
"""

from typing import Optional

import numpy as np
from scipy.linalg import LinAlgError, cho_factor, cho_solve

from .config import build_grid
from .hermite import hermite_design_matrix
from .standardize import standardize_window
from .workspace import Workspace


def _windows_finite(x: np.ndarray, y: np.ndarray) -> bool:
    """False when either standardized window is degenerate (constant or non-finite input)."""
    return bool(np.isfinite(x).all() and np.isfinite(y).all())


# ============================================================================
# Baseline path
# ============================================================================

def ridge_coefficients(H: np.ndarray, y: np.ndarray, alpha: float) -> Optional[np.ndarray]:
    """
    Closed-form ridge solve (H^T H + alpha I) beta = H^T y, no intercept.

    Returns None when the normal matrix is not positive definite.
    """
    k = H.shape[1]
    system = H.T @ H + alpha * np.eye(k)
    try:
        factor = cho_factor(system, lower=True, check_finite=False)
    except LinAlgError:
        return None
    return cho_solve(factor, H.T @ y, check_finite=False)


def simple_fit_lnlm(factor_window, reference_window, grid, herm_degree: int) -> float:
    """
    Best in-sample RMSE of the ridge-on-Hermite fit across the grid.

    Parameters
    ----------
    factor_window : array-like
        Raw factor returns for the window (predictor)
    reference_window : array-like
        Raw reference returns for the same window (target)
    grid : array-like
        (mu, alpha) pairs
    herm_degree : int
        Highest Hermite degree in the expansion

    Returns
    -------
    float
        Minimum finite RMSE, or NaN if every grid point is infeasible
    """
    grid = build_grid(pairs=grid)
    x = standardize_window(factor_window)
    y = standardize_window(reference_window)
    if x.shape != y.shape:
        raise ValueError(f"Window length mismatch: factor {x.shape} vs reference {y.shape}")

    # He_0 is 1.0 even for NaN input, so a degree-0 design would hide a constant window
    if not _windows_finite(x, y):
        return np.nan

    best = np.inf
    with np.errstate(invalid='ignore', over='ignore'):
        for mu, alpha in grid:
            H = hermite_design_matrix(x, herm_degree, mu)
            beta = ridge_coefficients(H, y, alpha)
            if beta is None:
                continue
            rmse = np.sqrt(np.mean((y - H @ beta) ** 2))
            if np.isfinite(rmse) and rmse < best:
                best = rmse

    return float(best) if np.isfinite(best) else np.nan


# ============================================================================
# Workspace path
# ============================================================================

def scan_grid_workspace(ws: Workspace, grid: np.ndarray) -> float:
    """
    Grid scan over the standardized windows already held in ``ws``.

    Reads ws.factor_std and ws.reference_std; writes every other buffer.
    """
    x = ws.factor_std
    y = ws.reference_std
    if not _windows_finite(x, y):
        return np.nan

    best = np.inf
    current_mu = None

    with np.errstate(invalid='ignore', over='ignore'):
        for g in range(grid.shape[0]):
            mu = grid[g, 0]
            alpha = grid[g, 1]

            if current_mu is None or mu != current_mu:
                hermite_design_matrix(x, ws.herm_degree, mu, out=ws.design)
                np.matmul(ws.design.T, ws.design, out=ws.gram)
                np.matmul(ws.design.T, y, out=ws.xty)
                current_mu = mu

            np.copyto(ws.system, ws.gram)
            ws.system[ws.diag] += alpha
            try:
                factor = cho_factor(ws.system, lower=True, overwrite_a=True, check_finite=False)
            except LinAlgError:
                continue

            np.copyto(ws.coef, ws.xty)
            coef = cho_solve(factor, ws.coef, overwrite_b=True, check_finite=False)

            np.matmul(ws.design, coef, out=ws.prediction)
            np.subtract(y, ws.prediction, out=ws.residual)
            np.square(ws.residual, out=ws.residual)
            rmse = np.sqrt(ws.residual.mean())
            if np.isfinite(rmse) and rmse < best:
                best = rmse

    return float(best) if np.isfinite(best) else np.nan


def fit_lnlm_workspace(
    factor_window,
    reference_window,
    grid,
    herm_degree: int,
    workspace: Optional[Workspace] = None,
) -> float:
    """
    Same contract as simple_fit_lnlm, computed inside a reusable Workspace.
    """
    grid = build_grid(pairs=grid)
    factor_window = np.asarray(factor_window, dtype=np.float64)
    reference_window = np.asarray(reference_window, dtype=np.float64)
    if factor_window.shape != reference_window.shape:
        raise ValueError(
            f"Window length mismatch: factor {factor_window.shape} vs reference {reference_window.shape}"
        )

    window_size = factor_window.shape[0]
    if workspace is None:
        workspace = Workspace(window_size, herm_degree)
    elif not workspace.matches(window_size, herm_degree):
        raise ValueError(
            f"{workspace!r} does not match window_size={window_size}, herm_degree={herm_degree}"
        )

    np.copyto(workspace.factor_window, factor_window)
    np.copyto(workspace.reference_window, reference_window)
    standardize_window(workspace.factor_window, out=workspace.factor_std)
    standardize_window(workspace.reference_window, out=workspace.reference_std)
    return scan_grid_workspace(workspace, grid)
