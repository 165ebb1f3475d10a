"""
Rolling Systemic Risk Engine
============================
Slides a fixed-width window across the reference and factor return series,
fits the ridge-on-Hermite model per factor per window, and averages the
per-factor RMSEs into one risk value per window.

Time structure for window start s (0-based):
  fit rows:      [s, s + window_size)
  horizon rows:  [s + window_size, s + window_size + pred_horizon)
  n_windows = N - window_size - pred_horizon + 1

The horizon only limits how many windows are valid; the fit is in-sample.

Execution strategy is explicit and never changes results:
  use_parallel=False, preallocate=True   one Workspace for the whole run
  use_parallel=False, preallocate=False  baseline path, fresh arrays per fit
  use_parallel=True,  preallocate=True   one Workspace per joblib task
  use_parallel=True,  preallocate=False  baseline path inside joblib tasks
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from .config import RiskConfig, build_grid, get_default_config
from .parallel import run_parallel
from .ridge import scan_grid_workspace, simple_fit_lnlm
from .standardize import standardize_window
from .verification import VerificationResult, verify_against_baseline
from .workspace import Workspace, log_memory_usage

logger = logging.getLogger(__name__)


# ============================================================================
# Input handling
# ============================================================================

def prepare_inputs(reference, factors) -> Tuple[np.ndarray, np.ndarray, Optional[pd.Index]]:
    """
    Convert reference/factor inputs into float64 arrays and check alignment.

    Returns:
        (reference array (N,), factor array (N, F), pandas index or None)
    """
    index = reference.index if isinstance(reference, (pd.Series, pd.DataFrame)) else None

    if isinstance(reference, pd.DataFrame):
        if reference.shape[1] != 1:
            raise ValueError(f"Reference must be a single series, got {reference.shape[1]} columns")
        reference = reference.iloc[:, 0]

    ref = np.ascontiguousarray(reference, dtype=np.float64)
    if ref.ndim != 1:
        raise ValueError(f"Reference series must be 1-D, got shape {ref.shape}")

    fac = np.ascontiguousarray(factors, dtype=np.float64)
    if fac.ndim == 1:
        fac = fac.reshape(-1, 1)
    if fac.ndim != 2:
        raise ValueError(f"Factor returns must be 2-D (N x F), got shape {fac.shape}")
    if fac.shape[0] != ref.shape[0]:
        raise ValueError(
            f"Reference and factor series must share the same length: {ref.shape[0]} vs {fac.shape[0]}"
        )
    if index is not None and isinstance(factors, (pd.Series, pd.DataFrame)):
        if not index.equals(factors.index):
            raise ValueError("Reference and factor series must share the same index (align them first)")

    return ref, fac, index


def count_windows(n_obs: int, window_size: int, pred_horizon: int) -> int:
    """Number of valid window start indices (may be <= 0)."""
    return n_obs - window_size - pred_horizon + 1


def _check_geometry(window_size: int, pred_horizon: int, herm_degree: int):
    if window_size <= 0:
        raise ValueError(f"window_size must be positive, got {window_size}")
    if pred_horizon < 0:
        raise ValueError(f"pred_horizon must be non-negative, got {pred_horizon}")
    if herm_degree < 0:
        raise ValueError(f"herm_degree must be non-negative, got {herm_degree}")


# ============================================================================
# Unit of work
# ============================================================================

def average_finite(rmses) -> float:
    """Mean of the finite entries, NaN when none are finite."""
    total = 0.0
    valid_count = 0
    for rmse in rmses:
        if np.isfinite(rmse):
            total += rmse
            valid_count += 1
    return total / valid_count if valid_count > 0 else np.nan


def compute_window_risk(
    reference: np.ndarray,
    factors: np.ndarray,
    start: int,
    window_size: int,
    herm_degree: int,
    grid: np.ndarray,
    workspace: Optional[Workspace] = None,
) -> float:
    """
    Risk value for the window starting at ``start``.

    With ``workspace=None`` every window slice and intermediate is freshly
    allocated (baseline path). Otherwise all scratch data lives in the
    workspace, which is fully overwritten here.
    """
    n_factors = factors.shape[1]
    stop = start + window_size

    if workspace is None:
        reference_window = np.ascontiguousarray(reference[start:stop])
        rmses = [
            simple_fit_lnlm(np.ascontiguousarray(factors[start:stop, j]), reference_window, grid, herm_degree)
            for j in range(n_factors)
        ]
        return average_finite(rmses)

    ws = workspace
    ws.load_reference(reference, start)
    standardize_window(ws.reference_window, out=ws.reference_std)

    rmses = []
    for j in range(n_factors):
        ws.load_factor(factors, start, j)
        standardize_window(ws.factor_window, out=ws.factor_std)
        rmses.append(scan_grid_workspace(ws, grid))
    return average_finite(rmses)


def process_window_block(
    indices: np.ndarray,
    reference: np.ndarray,
    factors: np.ndarray,
    window_size: int,
    herm_degree: int,
    grid: np.ndarray,
    preallocate: bool = True,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Process a chunk of window start indices with one privately owned workspace.

    Returns:
        (indices, values) with values[k] the risk for window indices[k]
    """
    workspace = Workspace(window_size, herm_degree) if preallocate else None
    values = np.empty(len(indices), dtype=np.float64)
    for k, start in enumerate(indices):
        values[k] = compute_window_risk(
            reference, factors, int(start), window_size, herm_degree, grid, workspace
        )
    return np.asarray(indices), values


# ============================================================================
# Orchestration
# ============================================================================

def _run_strategy(
    ref: np.ndarray,
    fac: np.ndarray,
    n_windows: int,
    window_size: int,
    herm_degree: int,
    grid: np.ndarray,
    use_parallel: bool,
    preallocate: bool,
    n_jobs: int,
    backend: str,
    tasks_per_worker: int,
) -> Tuple[np.ndarray, Dict]:
    block_kwargs = dict(
        reference=ref,
        factors=fac,
        window_size=window_size,
        herm_degree=herm_degree,
        grid=grid,
        preallocate=preallocate,
    )

    if use_parallel:
        results, info = run_parallel(
            process_window_block,
            n_windows,
            n_jobs=n_jobs,
            backend=backend,
            tasks_per_worker=tasks_per_worker,
            **block_kwargs,
        )
        n_workspaces = info['n_tasks'] if preallocate else 0
    else:
        _, results = process_window_block(np.arange(n_windows), **block_kwargs)
        info = {'n_workers': 1, 'n_tasks': 1, 'backend': 'sequential'}
        n_workspaces = 1 if preallocate else 0

    info['workspace_bytes'] = n_workspaces * Workspace.required_bytes(window_size, herm_degree)
    return results, info


def calculate_systemic_risk(
    reference,
    factors,
    window_size: int,
    pred_horizon: int,
    herm_degree: int,
    grid,
    use_parallel: bool = False,
    preallocate: bool = True,
    n_jobs: int = -1,
    backend: str = 'loky',
    tasks_per_worker: int = 4,
) -> np.ndarray:
    """
    Rolling systemic risk series.

    Parameters
    ----------
    reference : array-like or pd.Series
        Reference asset returns, length N
    factors : array-like or pd.DataFrame
        Factor returns, N x F, aligned with ``reference``
    window_size : int
        Observations per fit window (W)
    pred_horizon : int
        Look-ahead buffer (H) reserved after each window
    herm_degree : int
        Highest Hermite degree (D)
    grid : array-like
        (mu, alpha) pairs
    use_parallel : bool
        Distribute windows across joblib workers
    preallocate : bool
        Reuse Workspace buffers instead of allocating per fit
    n_jobs, backend, tasks_per_worker
        Parallel scheduling controls (ignored when use_parallel=False)

    Returns
    -------
    np.ndarray
        float64 array of length max(0, N - W - H + 1); NaN marks windows
        where no factor produced a finite fit
    """
    ref, fac, _ = prepare_inputs(reference, factors)
    _check_geometry(window_size, pred_horizon, herm_degree)
    grid = build_grid(pairs=grid)

    n_windows = count_windows(len(ref), window_size, pred_horizon)
    if n_windows <= 0:
        return np.empty(0, dtype=np.float64)

    results, _ = _run_strategy(
        ref, fac, n_windows, window_size, herm_degree, grid,
        use_parallel, preallocate, n_jobs, backend, tasks_per_worker,
    )
    return results


@dataclass
class RiskResult:
    """Output of a configured run."""

    values: np.ndarray
    verification: Optional[VerificationResult] = None
    diagnostics: Dict = field(default_factory=dict)
    index: Optional[pd.Index] = None

    def __len__(self):
        return len(self.values)

    @property
    def verified(self) -> bool:
        """True unless verification ran and failed."""
        return self.verification is None or self.verification.passed

    def to_series(self, name: str = 'systemic_risk') -> pd.Series:
        """Risk values indexed by window start label (or integer start index)."""
        if self.index is not None:
            index = self.index[:len(self.values)]
        else:
            index = pd.RangeIndex(len(self.values), name='window_start')
        return pd.Series(self.values, index=index, name=name)


def rolling_systemic_risk(
    reference,
    factors,
    config: Optional[RiskConfig] = None,
) -> RiskResult:
    """
    Run the configured strategy, then (optionally) verify a leading sample of
    windows against the baseline path.

    Verification is advisory: a failure is logged as a warning and reported
    in ``RiskResult.verification`` but the computed values are returned as-is.
    """
    if config is None:
        config = get_default_config()
    else:
        config.validate()

    wc, cc, vc = config.window, config.compute, config.verification
    herm_degree = config.basis.herm_degree

    ref, fac, index = prepare_inputs(reference, factors)
    grid = config.grid.grid()
    n_windows = count_windows(len(ref), wc.window_size, wc.pred_horizon)

    strategy = ("parallel" if cc.use_parallel else "sequential") + \
               ("+workspace" if cc.preallocate else "+baseline")

    if cc.verbose:
        print("=" * 80)
        print("ROLLING SYSTEMIC RISK")
        print("=" * 80)
        print(f"Observations: {len(ref)}, factors: {fac.shape[1]}")
        print(f"Window size: {wc.window_size}, horizon: {wc.pred_horizon}, Hermite degree: {herm_degree}")
        print(f"Grid points: {len(grid)}")
        print(f"Strategy: {strategy}", flush=True)

    diagnostics = {
        'strategy': strategy,
        'n_obs': len(ref),
        'n_factors': fac.shape[1],
        'n_windows': max(0, n_windows),
        'grid_size': len(grid),
    }

    if n_windows <= 0:
        logger.info(f"[rolling] No valid windows (N={len(ref)}, W={wc.window_size}, H={wc.pred_horizon})")
        return RiskResult(values=np.empty(0, dtype=np.float64), diagnostics=diagnostics, index=index)

    start_time = time.time()
    values, info = _run_strategy(
        ref, fac, n_windows, wc.window_size, herm_degree, grid,
        cc.use_parallel, cc.preallocate, cc.n_jobs, cc.backend, cc.tasks_per_worker,
    )
    elapsed = time.time() - start_time

    diagnostics.update(info)
    diagnostics['elapsed_seconds'] = elapsed
    diagnostics['n_nan_windows'] = int(np.isnan(values).sum())

    logger.info(f"[rolling] {n_windows} windows computed in {elapsed:.2f}s ({strategy}, "
                f"{diagnostics['n_nan_windows']} NaN)")
    log_memory_usage("rolling")

    verification = None
    if vc.verify_accuracy:
        verification = verify_against_baseline(
            values, ref, fac,
            window_size=wc.window_size,
            herm_degree=herm_degree,
            grid=grid,
            sample_size=vc.sample_size,
            rtol=vc.rtol,
            atol=vc.atol,
        )
        if verification.passed:
            logger.info(f"[verify] Accuracy verification passed: {verification.message}")
        else:
            logger.warning(f"[verify] Accuracy verification FAILED: {verification.message}")

    if cc.verbose:
        valid = values[np.isfinite(values)]
        print(f"[done] {n_windows} windows in {elapsed:.2f}s "
              f"({diagnostics['n_nan_windows']} NaN)")
        if len(valid) > 0:
            print(f"[done] Risk range: [{valid.min():.4f}, {valid.max():.4f}], mean {valid.mean():.4f}")
        if verification is not None:
            status = "PASS" if verification.passed else "FAIL"
            print(f"[verify] {status}: {verification.message}", flush=True)

    return RiskResult(values=values, verification=verification, diagnostics=diagnostics, index=index)


def risk_series(reference, factors, config: Optional[RiskConfig] = None) -> pd.Series:
    """Convenience wrapper returning the risk series as a pd.Series."""
    return rolling_systemic_risk(reference, factors, config).to_series()
