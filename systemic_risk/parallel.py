"""
Concurrency scheduler for window-level work.

Splits the window index range into contiguous chunks and dispatches one
joblib task per chunk. A task owns its scratch state for its whole lifetime
and returns (indices, values); results are index-written into a NaN-filled
buffer, so output order never depends on completion order.
"""

import logging
from typing import Callable, Dict, List, Tuple

import numpy as np
from joblib import Parallel, delayed, effective_n_jobs

from .config import VALID_BACKENDS

logger = logging.getLogger(__name__)


def partition_windows(n_windows: int, n_tasks: int) -> List[np.ndarray]:
    """
    Split [0, n_windows) into at most n_tasks contiguous, non-empty chunks.

    Chunks are disjoint and together cover every index exactly once.
    """
    if n_windows <= 0:
        return []
    n_tasks = max(1, min(int(n_tasks), n_windows))
    return [chunk for chunk in np.array_split(np.arange(n_windows), n_tasks) if len(chunk) > 0]


def gather_results(
    outputs: List[Tuple[np.ndarray, np.ndarray]],
    n_windows: int,
) -> np.ndarray:
    """Index-write task outputs into a single result array, once per slot."""
    results = np.full(n_windows, np.nan, dtype=np.float64)
    written = np.zeros(n_windows, dtype=bool)

    for indices, values in outputs:
        if np.any(written[indices]):
            dupes = indices[written[indices]]
            raise RuntimeError(f"Window slots written more than once: {dupes[:10].tolist()}")
        results[indices] = values
        written[indices] = True

    if not written.all():
        missing = np.flatnonzero(~written)
        raise RuntimeError(f"Window slots never written: {missing[:10].tolist()}")

    return results


def run_parallel(
    block_fn: Callable[..., Tuple[np.ndarray, np.ndarray]],
    n_windows: int,
    n_jobs: int = -1,
    backend: str = 'loky',
    tasks_per_worker: int = 4,
    **block_kwargs,
) -> Tuple[np.ndarray, Dict]:
    """
    Run ``block_fn(indices, **block_kwargs)`` over chunks of the window range.

    Args:
        block_fn: Module-level function returning (indices, values) for a chunk
        n_windows: Total number of windows
        n_jobs: joblib worker count (-1 = all cores)
        backend: 'loky' (processes), 'threading' or 'multiprocessing'
        tasks_per_worker: Chunks per worker
        **block_kwargs: Read-only inputs forwarded to every task

    Returns:
        Tuple of (results array ordered by window index, scheduling info dict)
    """
    if backend not in VALID_BACKENDS:
        raise ValueError(f"backend must be one of {VALID_BACKENDS}, got '{backend}'")
    if tasks_per_worker <= 0:
        raise ValueError(f"tasks_per_worker must be positive, got {tasks_per_worker}")

    n_workers = effective_n_jobs(n_jobs)
    chunks = partition_windows(n_windows, n_workers * tasks_per_worker)
    info = {'n_workers': n_workers, 'n_tasks': len(chunks), 'backend': backend}

    if not chunks:
        return np.empty(0, dtype=np.float64), info

    logger.info(f"[parallel] {n_windows} windows -> {len(chunks)} tasks on {n_workers} workers ({backend})")

    outputs = Parallel(n_jobs=n_jobs, backend=backend)(
        delayed(block_fn)(chunk, **block_kwargs) for chunk in chunks
    )

    return gather_results(outputs, n_windows), info
