"""
Main Entry Point for Rolling Systemic Risk
==========================================

Usage:
    systemic-risk --synthetic
    systemic-risk --input returns.csv --reference SPY --window 50 --horizon 5 --degree 3
    systemic-risk --input returns.parquet --reference SPY --parallel on --n-jobs 4 --output risk.csv
"""

import argparse
import logging
import os

from .config import get_default_config
from .data import generate_synthetic_returns, load_returns
from .rolling import rolling_systemic_risk


def _float_list(text: str):
    return [float(v) for v in text.split(',') if v.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Rolling systemic risk from Hermite ridge fits')

    source = parser.add_mutually_exclusive_group()
    source.add_argument('--input', type=str, default=None,
                        help='CSV or parquet file with reference and factor return columns')
    source.add_argument('--synthetic', action='store_true',
                        help='Use seeded synthetic returns (default when no --input)')

    parser.add_argument('--reference', type=str, default=None,
                        help='Reference column name (required with --input)')
    parser.add_argument('--factors', type=str, default=None,
                        help='Comma-separated factor columns (default: all other numeric columns)')
    parser.add_argument('--n-obs', type=int, default=100, help='Synthetic observations')
    parser.add_argument('--n-factors', type=int, default=3, help='Synthetic factors')
    parser.add_argument('--seed', type=int, default=42, help='Synthetic data seed')

    parser.add_argument('--window', type=int, default=None, help='Window size')
    parser.add_argument('--horizon', type=int, default=None, help='Prediction horizon')
    parser.add_argument('--degree', type=int, default=None, help='Hermite degree')
    parser.add_argument('--mu-grid', type=_float_list, default=None, help='Comma-separated mu values')
    parser.add_argument('--alphas', type=_float_list, default=None, help='Comma-separated ridge alphas')

    parser.add_argument('--parallel', type=str, choices=['auto', 'on', 'off'], default='auto',
                        help="Parallel execution ('auto' = on when more than one CPU)")
    parser.add_argument('--n-jobs', type=int, default=None, help='Parallel jobs (-1 = all cores)')
    parser.add_argument('--backend', type=str, choices=['loky', 'threading', 'multiprocessing'],
                        default=None, help='joblib backend')
    parser.add_argument('--no-preallocate', action='store_true', help='Use the baseline allocation path')
    parser.add_argument('--no-verify', action='store_true', help='Skip baseline verification')

    parser.add_argument('--output', type=str, default=None, help='Write the risk series to CSV')
    parser.add_argument('--quiet', action='store_true', help='Only log warnings')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    config = get_default_config()
    if args.window is not None:
        config.window.window_size = args.window
    if args.horizon is not None:
        config.window.pred_horizon = args.horizon
    if args.degree is not None:
        config.basis.herm_degree = args.degree
    if args.mu_grid is not None:
        config.grid.mu_grid = args.mu_grid
    if args.alphas is not None:
        config.grid.alphas = args.alphas

    if args.parallel == 'auto':
        config.compute.use_parallel = (os.cpu_count() or 1) > 1
    else:
        config.compute.use_parallel = args.parallel == 'on'
    if args.n_jobs is not None:
        config.compute.n_jobs = args.n_jobs
    if args.backend is not None:
        config.compute.backend = args.backend
    config.compute.preallocate = not args.no_preallocate
    config.compute.verbose = not args.quiet
    config.verification.verify_accuracy = not args.no_verify
    config.validate()

    if args.input:
        if not args.reference:
            raise SystemExit("--reference is required with --input")
        factor_columns = args.factors.split(',') if args.factors else None
        reference, factors = load_returns(args.input, args.reference, factor_columns)
    else:
        reference, factors = generate_synthetic_returns(
            n_obs=args.n_obs, n_factors=args.n_factors, seed=args.seed
        )

    result = rolling_systemic_risk(reference, factors, config)

    if args.output:
        result.to_series().to_csv(args.output)
        print(f"[save] Risk series saved to: {args.output}")

    return 0 if result.verified else 1


if __name__ == "__main__":
    raise SystemExit(main())
