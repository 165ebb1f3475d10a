"""
Shared fixtures for the systemic_risk test suite.
"""

import os
import sys

import numpy as np
import pandas as pd
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def returns_arrays():
    """Reference (100,) and factor (100, 3) returns, seeded."""
    np.random.seed(42)
    n_obs = 100
    reference = np.random.randn(n_obs) * 0.02    # ~2% daily vol
    factors = np.random.randn(n_obs, 3) * 0.015  # 3 factors, ~1.5% vol
    return reference, factors


@pytest.fixture
def returns_frames(returns_arrays):
    """Same data as returns_arrays on a business-day index."""
    reference, factors = returns_arrays
    dates = pd.bdate_range('2020-01-01', periods=len(reference), name='Date')
    return (
        pd.Series(reference, index=dates, name='SPY'),
        pd.DataFrame(factors, index=dates, columns=['MKT', 'SMB', 'HML']),
    )


@pytest.fixture
def small_grid():
    """The three-point (mu, alpha) grid used throughout the scenario tests."""
    return [(0.01, 0.001), (0.01, 0.01), (0.05, 0.1)]


@pytest.fixture
def scenario_params(small_grid):
    return dict(window_size=50, pred_horizon=5, herm_degree=3, grid=small_grid)
