"""
Input helpers: synthetic returns and file loading.

The rolling engine itself only consumes arrays; these helpers feed it from a
CSV/parquet file with one reference column and factor columns, or from a
seeded random generator.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def generate_synthetic_returns(
    n_obs: int = 100,
    n_factors: int = 3,
    reference_vol: float = 0.02,
    factor_vol: float = 0.015,
    seed: Optional[int] = 42,
    start_date: str = "2020-01-01",
) -> Tuple[pd.Series, pd.DataFrame]:
    """
    Gaussian daily returns for a reference asset and ``n_factors`` factors.

    Returns:
        (reference Series, factor DataFrame) on a shared business-day index
    """
    rng = np.random.default_rng(seed)
    dates = pd.bdate_range(start_date, periods=n_obs, name='Date')
    reference = pd.Series(rng.standard_normal(n_obs) * reference_vol, index=dates, name='reference')
    factors = pd.DataFrame(
        rng.standard_normal((n_obs, n_factors)) * factor_vol,
        index=dates,
        columns=[f'factor_{i}' for i in range(n_factors)],
    )
    return reference, factors


def load_returns(
    path: str,
    reference_column: str,
    factor_columns: Optional[List[str]] = None,
    dropna: bool = True,
) -> Tuple[pd.Series, pd.DataFrame]:
    """
    Load aligned reference and factor returns from a CSV or parquet file.

    CSV files are read with the first column as a parsed date index.

    Args:
        path: .csv or .parquet file
        reference_column: Column holding the reference returns
        factor_columns: Factor columns (default: every other numeric column)
        dropna: Drop rows with any missing value in the selected columns

    Returns:
        (reference Series, factor DataFrame)
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Returns file not found: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix == '.parquet':
        df = pd.read_parquet(file_path)
    elif suffix == '.csv':
        df = pd.read_csv(file_path, index_col=0, parse_dates=True)
    else:
        raise ValueError(f"Unsupported file type '{suffix}' (expected .csv or .parquet)")

    if reference_column not in df.columns:
        raise ValueError(
            f"Reference column '{reference_column}' not found. Available: {list(df.columns)}"
        )

    if factor_columns is None:
        numeric = df.select_dtypes(include=[np.number]).columns
        factor_columns = [c for c in numeric if c != reference_column]
    missing = [c for c in factor_columns if c not in df.columns]
    if missing:
        raise ValueError(f"Factor columns not found: {missing}")
    if not factor_columns:
        raise ValueError("No factor columns selected")

    selected = df[[reference_column] + list(factor_columns)].astype(np.float64)
    if dropna:
        n_before = len(selected)
        selected = selected.dropna()
        n_dropped = n_before - len(selected)
        if n_dropped > 0:
            logger.info(f"[load] Dropped {n_dropped} rows with missing values")

    logger.info(f"[load] {len(selected)} rows, {len(factor_columns)} factors from {file_path.name}")
    return selected[reference_column], selected[list(factor_columns)]
