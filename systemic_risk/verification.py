"""
Equivalence verification between an optimized run and the baseline path.

Recomputes a leading sample of windows with fresh allocations and the
baseline solver, then compares NaN patterns and finite values. The check is
advisory: it reports, it never modifies the results under test.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of an equivalence check."""

    passed: bool
    identical: bool                      # Bit-for-bit equal, not just within tolerance
    message: str
    max_abs_diff: Optional[float] = None
    n_checked: int = 0

    def __bool__(self):
        return self.passed


def verify_identical_results(
    results1,
    results2,
    rtol: float = 1e-10,
    atol: float = 1e-12,
) -> VerificationResult:
    """
    Compare two risk series.

    Checks, in order: equal length, identical NaN positions, exact equality
    of the finite values, then |a - b| <= atol + rtol * |b| elementwise.
    """
    a = np.asarray(results1, dtype=np.float64)
    b = np.asarray(results2, dtype=np.float64)

    if len(a) != len(b):
        return VerificationResult(False, False, f"Different lengths: {len(a)} vs {len(b)}")

    if len(a) == 0:
        return VerificationResult(True, True, "Both empty (identical)")

    nan1 = np.isnan(a)
    nan2 = np.isnan(b)
    if not np.array_equal(nan1, nan2):
        positions = np.flatnonzero(nan1 != nan2)
        return VerificationResult(
            False, False,
            f"Different NaN patterns at positions {positions[:10].tolist()}",
            n_checked=len(a),
        )

    valid = ~nan1
    if not valid.any():
        return VerificationResult(True, True, "All NaN (identical)", max_abs_diff=0.0, n_checked=len(a))

    valid1 = a[valid]
    valid2 = b[valid]

    if np.array_equal(valid1, valid2):
        return VerificationResult(
            True, True, f"Perfectly identical ({len(valid1)} values)",
            max_abs_diff=0.0, n_checked=len(a),
        )

    diff = np.abs(valid1 - valid2)
    max_diff = float(diff.max())
    within = bool(np.all(diff <= atol + rtol * np.abs(valid2)))
    if within:
        message = f"Within tolerance, max difference: {max_diff:.3e} (rtol={rtol}, atol={atol})"
    else:
        message = f"Not identical, max difference: {max_diff:.3e} (rtol={rtol}, atol={atol})"
    return VerificationResult(within, False, message, max_abs_diff=max_diff, n_checked=len(a))


def verify_against_baseline(
    results,
    reference,
    factors,
    window_size: int,
    herm_degree: int,
    grid,
    sample_size: int = 10,
    rtol: float = 1e-10,
    atol: float = 1e-12,
) -> VerificationResult:
    """
    Recompute the first min(sample_size, n_windows) windows with the baseline
    path and compare them against ``results``.

    Parameters
    ----------
    results : array-like
        Output of an optimized run (not modified)
    reference, factors : array-like
        The same inputs the optimized run consumed
    window_size, herm_degree, grid
        The same fit configuration
    sample_size : int
        Number of leading windows to recompute

    Returns
    -------
    VerificationResult
    """
    from .config import build_grid
    from .rolling import compute_window_risk, prepare_inputs

    results = np.asarray(results, dtype=np.float64)
    ref, fac, _ = prepare_inputs(reference, factors)
    grid = build_grid(pairs=grid)

    n_test = min(sample_size, len(results))
    if n_test == 0:
        return VerificationResult(True, True, "Nothing to verify (no windows)")

    baseline_sample = np.empty(n_test, dtype=np.float64)
    for i in range(n_test):
        baseline_sample[i] = compute_window_risk(ref, fac, i, window_size, herm_degree, grid, workspace=None)

    outcome = verify_identical_results(results[:n_test].copy(), baseline_sample, rtol=rtol, atol=atol)
    logger.debug(f"[verify] {n_test} windows checked: {outcome.message}")
    return outcome
