"""
Tests for the command-line entry point and input loaders.
"""

import numpy as np
import pandas as pd
import pytest

from systemic_risk.data import generate_synthetic_returns, load_returns
from systemic_risk.main import build_parser, main


@pytest.fixture
def returns_csv(tmp_path, returns_frames):
    reference, factors = returns_frames
    df = pd.concat([reference, factors], axis=1)
    path = tmp_path / "returns.csv"
    df.to_csv(path)
    return path


class TestSyntheticData:

    def test_shapes_and_index(self):
        reference, factors = generate_synthetic_returns(n_obs=80, n_factors=4, seed=1)
        assert len(reference) == 80
        assert factors.shape == (80, 4)
        assert list(factors.columns) == ['factor_0', 'factor_1', 'factor_2', 'factor_3']
        assert reference.index.equals(factors.index)
        assert reference.index.name == 'Date'

    def test_seeded(self):
        a, fa = generate_synthetic_returns(seed=3)
        b, fb = generate_synthetic_returns(seed=3)
        pd.testing.assert_series_equal(a, b)
        pd.testing.assert_frame_equal(fa, fb)


class TestLoadReturns:

    def test_csv_default_factor_columns(self, returns_csv):
        reference, factors = load_returns(str(returns_csv), 'SPY')
        assert reference.name == 'SPY'
        assert list(factors.columns) == ['MKT', 'SMB', 'HML']
        assert isinstance(reference.index, pd.DatetimeIndex)

    def test_explicit_factor_columns(self, returns_csv):
        _, factors = load_returns(str(returns_csv), 'SPY', ['HML'])
        assert list(factors.columns) == ['HML']

    def test_drops_missing_rows(self, tmp_path, returns_frames):
        reference, factors = returns_frames
        df = pd.concat([reference, factors], axis=1)
        df.iloc[3, 1] = np.nan
        path = tmp_path / "gappy.csv"
        df.to_csv(path)
        ref, fac = load_returns(str(path), 'SPY')
        assert len(ref) == len(fac) == 99

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_returns(str(tmp_path / "nope.csv"), 'SPY')

    def test_unknown_reference_column(self, returns_csv):
        with pytest.raises(ValueError, match="not found"):
            load_returns(str(returns_csv), 'QQQ')

    def test_unknown_factor_column(self, returns_csv):
        with pytest.raises(ValueError, match="not found"):
            load_returns(str(returns_csv), 'SPY', ['MKT', 'UMD'])

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "returns.txt"
        path.write_text("x")
        with pytest.raises(ValueError, match="Unsupported"):
            load_returns(str(path), 'SPY')


class TestCommandLine:

    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        assert args.parallel == 'auto'
        assert args.input is None
        assert not args.no_verify

    def test_grid_lists_parsed(self):
        args = build_parser().parse_args(['--mu-grid', '0.0,0.1', '--alphas', '1e-3, 1e-2'])
        assert args.mu_grid == [0.0, 0.1]
        assert args.alphas == [0.001, 0.01]

    def test_synthetic_run_writes_series(self, tmp_path):
        out = tmp_path / "risk.csv"
        code = main(['--synthetic', '--parallel', 'off', '--quiet', '--output', str(out)])
        assert code == 0
        series = pd.read_csv(out, index_col=0)
        assert len(series) == 46
        assert series.iloc[:, 0].notna().all()

    def test_csv_run(self, returns_csv, tmp_path, capsys):
        out = tmp_path / "risk.csv"
        code = main(['--input', str(returns_csv), '--reference', 'SPY', '--window', '40',
                     '--horizon', '0', '--parallel', 'on', '--n-jobs', '2', '--backend', 'threading',
                     '--output', str(out)])
        assert code == 0
        assert len(pd.read_csv(out, index_col=0)) == 61
        assert "[save]" in capsys.readouterr().out

    def test_input_requires_reference(self, returns_csv):
        with pytest.raises(SystemExit):
            main(['--input', str(returns_csv), '--quiet'])
