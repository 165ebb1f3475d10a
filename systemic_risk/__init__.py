"""
Rolling Systemic Risk
=====================

Time-varying systemic risk from ridge-regularized Hermite polynomial fits of
a reference asset's returns on each factor, refit over sliding windows.

Usage:
    from systemic_risk import calculate_systemic_risk, rolling_systemic_risk, get_default_config

    # Plain array API
    risk = calculate_systemic_risk(
        spy_returns, factor_returns,
        window_size=50, pred_horizon=5, herm_degree=3,
        grid=[(0.01, 0.001), (0.01, 0.01), (0.05, 0.1)],
        use_parallel=True, n_jobs=4,
    )

    # Configured run with baseline verification
    config = get_default_config()
    result = rolling_systemic_risk(spy_returns, factor_returns, config)
    result.values, result.verification.passed, result.to_series()
"""

from .config import (
    RiskConfig,
    WindowConfig,
    BasisConfig,
    GridConfig,
    ComputeConfig,
    VerificationConfig,
    build_grid,
    get_default_config,
)
from .hermite import (
    hermite_polynomial,
    probabilist_hermite,
    hermite_design_matrix,
    hermite_quadrature,
)
from .standardize import standardize_window, destandardize, window_moments
from .ridge import ridge_coefficients, simple_fit_lnlm, fit_lnlm_workspace, scan_grid_workspace
from .workspace import Workspace
from .parallel import partition_windows, run_parallel
from .verification import VerificationResult, verify_identical_results, verify_against_baseline
from .rolling import (
    RiskResult,
    calculate_systemic_risk,
    compute_window_risk,
    count_windows,
    risk_series,
    rolling_systemic_risk,
)


__all__ = [
    # Config
    'RiskConfig',
    'WindowConfig',
    'BasisConfig',
    'GridConfig',
    'ComputeConfig',
    'VerificationConfig',
    'build_grid',
    'get_default_config',
    # Basis
    'hermite_polynomial',
    'probabilist_hermite',
    'hermite_design_matrix',
    'hermite_quadrature',
    # Standardization
    'standardize_window',
    'destandardize',
    'window_moments',
    # Solver
    'ridge_coefficients',
    'simple_fit_lnlm',
    'fit_lnlm_workspace',
    'scan_grid_workspace',
    'Workspace',
    # Scheduling
    'partition_windows',
    'run_parallel',
    # Verification
    'VerificationResult',
    'verify_identical_results',
    'verify_against_baseline',
    # Orchestration
    'RiskResult',
    'calculate_systemic_risk',
    'compute_window_risk',
    'count_windows',
    'risk_series',
    'rolling_systemic_risk',
]
