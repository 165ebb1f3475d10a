"""
Preallocated scratch buffers for per-window processing.

A Workspace is owned by exactly one execution context: one instance for a
whole sequential run, or one per task on the parallel path. Every buffer is
fully overwritten before it is read in each iteration, so reuse across
windows never changes results.
"""

import logging

import numpy as np
import psutil

logger = logging.getLogger(__name__)


class Workspace:
    """
    Scratch buffers sized for one (window_size, herm_degree) configuration.

    Attributes:
        reference_window / factor_window: raw window copies (W,)
        reference_std / factor_std: standardized windows (W,)
        design: Hermite feature matrix (W, D+1)
        gram: H^T H for the current mu (D+1, D+1)
        system: H^T H + alpha I, factored in place (D+1, D+1), Fortran order
        xty: H^T y for the current mu (D+1,)
        coef: right-hand side / ridge coefficients (D+1,)
        prediction / residual: fitted values and squared residuals (W,)
    """

    def __init__(self, window_size: int, herm_degree: int):
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")
        if herm_degree < 0:
            raise ValueError(f"herm_degree must be non-negative, got {herm_degree}")

        self.window_size = window_size
        self.herm_degree = herm_degree
        n_basis = herm_degree + 1

        self.reference_window = np.empty(window_size, dtype=np.float64)
        self.factor_window = np.empty(window_size, dtype=np.float64)
        self.reference_std = np.empty(window_size, dtype=np.float64)
        self.factor_std = np.empty(window_size, dtype=np.float64)

        self.design = np.empty((window_size, n_basis), dtype=np.float64)
        self.gram = np.empty((n_basis, n_basis), dtype=np.float64)
        self.system = np.empty((n_basis, n_basis), dtype=np.float64, order='F')
        self.xty = np.empty(n_basis, dtype=np.float64)
        self.coef = np.empty(n_basis, dtype=np.float64)

        self.prediction = np.empty(window_size, dtype=np.float64)
        self.residual = np.empty(window_size, dtype=np.float64)

        self.diag = np.diag_indices(n_basis)

    def __repr__(self):
        return (f"Workspace(window_size={self.window_size}, "
                f"herm_degree={self.herm_degree}, nbytes={self.nbytes})")

    @property
    def buffers(self):
        return (
            self.reference_window, self.factor_window,
            self.reference_std, self.factor_std,
            self.design, self.gram, self.system, self.xty, self.coef,
            self.prediction, self.residual,
        )

    @property
    def nbytes(self) -> int:
        """Total bytes held by the scratch buffers."""
        return int(sum(buf.nbytes for buf in self.buffers))

    @staticmethod
    def required_bytes(window_size: int, herm_degree: int) -> int:
        """Footprint of a Workspace with these dimensions, without allocating one."""
        n_basis = herm_degree + 1
        n_floats = 6 * window_size + window_size * n_basis + 2 * n_basis * n_basis + 2 * n_basis
        return n_floats * np.dtype(np.float64).itemsize

    def matches(self, window_size: int, herm_degree: int) -> bool:
        return self.window_size == window_size and self.herm_degree == herm_degree

    def load_reference(self, reference: np.ndarray, start: int) -> np.ndarray:
        """Copy reference[start:start + W] into the owned buffer."""
        np.copyto(self.reference_window, reference[start:start + self.window_size])
        return self.reference_window

    def load_factor(self, factors: np.ndarray, start: int, factor_idx: int) -> np.ndarray:
        """Copy factors[start:start + W, factor_idx] into the owned buffer."""
        np.copyto(self.factor_window, factors[start:start + self.window_size, factor_idx])
        return self.factor_window


def log_memory_usage(stage: str):
    """Log current memory usage."""
    process = psutil.Process()
    mem_mb = process.memory_info().rss / 1024 / 1024
    logger.info(f"[{stage}] Memory usage: {mem_mb:.1f} MB")
