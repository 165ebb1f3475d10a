"""
Configuration Module
====================
Centralized configuration for the rolling systemic risk estimator.
Window geometry, basis degree, hyperparameter grid, execution strategy and
verification thresholds are defined here.
"""

from dataclasses import dataclass, field
from itertools import product
from typing import List, Optional, Sequence, Tuple

import numpy as np


VALID_BACKENDS = ("loky", "threading", "multiprocessing")


def build_grid(
    mu_grid: Optional[Sequence[float]] = None,
    alphas: Optional[Sequence[float]] = None,
    pairs: Optional[Sequence[Tuple[float, float]]] = None,
) -> np.ndarray:
    """
    Build the (mu, alpha) hyperparameter grid as a read-only (G, 2) array.

    Either pass explicit ``pairs`` or both ``mu_grid`` and ``alphas``; in the
    latter case the grid is the Cartesian product, mu-major. A single
    ``(mu, alpha)`` pair is accepted as a one-point grid.
    """
    if pairs is not None:
        grid = np.asarray(pairs, dtype=np.float64)
        if grid.size == 0:
            raise ValueError("Hyperparameter grid must not be empty")
        if grid.shape == (2,):
            grid = grid.reshape(1, 2)
        if grid.ndim != 2 or grid.shape[1] != 2:
            raise ValueError(f"Grid pairs must have shape (G, 2), got {grid.shape}")
    else:
        if mu_grid is None or alphas is None:
            raise ValueError("Provide either pairs or both mu_grid and alphas")
        combos = list(product(mu_grid, alphas))
        if not combos:
            raise ValueError("Hyperparameter grid must not be empty")
        grid = np.asarray(combos, dtype=np.float64)

    if not np.all(np.isfinite(grid)):
        raise ValueError("Hyperparameter grid contains non-finite values")
    if np.any(grid[:, 1] < 0):
        raise ValueError("Ridge alphas must be non-negative")

    grid = np.ascontiguousarray(grid)
    grid.setflags(write=False)
    return grid


@dataclass
class WindowConfig:
    """Rolling window geometry (all in observations)."""

    window_size: int = 50    # Observations per regression window
    pred_horizon: int = 5    # Look-ahead buffer reserved after each window


@dataclass
class BasisConfig:
    """Polynomial feature basis."""

    herm_degree: int = 3     # Highest Hermite degree (features = degree + 1 columns)


@dataclass
class GridConfig:
    """Hyperparameter grid scanned by every fit."""

    mu_grid: List[float] = field(default_factory=lambda: [0.01, 0.05, 0.1])
    alphas: List[float] = field(default_factory=lambda: [0.001, 0.01, 0.1])

    # Explicit (mu, alpha) pairs; overrides the mu_grid x alphas product when set
    pairs: Optional[List[Tuple[float, float]]] = None

    def grid(self) -> np.ndarray:
        """Materialize the grid as a (G, 2) array."""
        return build_grid(self.mu_grid, self.alphas, self.pairs)

    @property
    def size(self) -> int:
        if self.pairs is not None:
            return len(self.pairs)
        return len(self.mu_grid) * len(self.alphas)


@dataclass
class ComputeConfig:
    """Execution strategy."""

    use_parallel: bool = False        # Distribute windows across joblib workers
    preallocate: bool = True          # Reuse a Workspace instead of allocating per fit
    n_jobs: int = -1                  # Parallel jobs (-1 = all cores)
    backend: str = "loky"             # joblib backend for the parallel path
    tasks_per_worker: int = 4         # Chunks per worker (each chunk owns one workspace)
    verbose: bool = False             # Print run banner and summary


@dataclass
class VerificationConfig:
    """Post-hoc equivalence check against the baseline path."""

    verify_accuracy: bool = True
    sample_size: int = 10             # Leading windows recomputed with the baseline
    rtol: float = 1e-10
    atol: float = 1e-12


@dataclass
class RiskConfig:
    """Complete configuration combining all sub-configs."""

    window: WindowConfig
    basis: BasisConfig
    grid: GridConfig
    compute: ComputeConfig
    verification: VerificationConfig

    @classmethod
    def default(cls):
        """Create a default configuration."""
        return cls(
            window=WindowConfig(),
            basis=BasisConfig(),
            grid=GridConfig(),
            compute=ComputeConfig(),
            verification=VerificationConfig(),
        )

    def validate(self):
        """Validate configuration parameters."""
        assert self.window.window_size > 0, "window_size must be positive"
        assert self.window.pred_horizon >= 0, "pred_horizon must be non-negative"
        assert self.basis.herm_degree >= 0, "herm_degree must be non-negative"

        if self.window.window_size < self.basis.herm_degree + 2:
            import warnings
            warnings.warn(
                f"window_size={self.window.window_size} is small relative to "
                f"herm_degree={self.basis.herm_degree}; fits will rely heavily on the ridge penalty.",
                UserWarning,
                stacklevel=2,
            )

        # Raises ValueError on empty / malformed grids
        self.grid.grid()

        assert self.compute.backend in VALID_BACKENDS, \
            f"backend must be one of {VALID_BACKENDS}"
        assert self.compute.n_jobs != 0, "n_jobs must be non-zero (-1 = all cores)"
        assert self.compute.tasks_per_worker > 0, "tasks_per_worker must be positive"

        assert self.verification.sample_size > 0, "sample_size must be positive"
        assert self.verification.rtol >= 0, "rtol must be non-negative"
        assert self.verification.atol >= 0, "atol must be non-negative"

        return True


def get_default_config() -> RiskConfig:
    """Get the default configuration."""
    config = RiskConfig.default()
    config.validate()
    return config
