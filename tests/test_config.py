"""
Unit tests for config.py
"""

import numpy as np
import pytest

from systemic_risk.config import RiskConfig, build_grid, get_default_config


class TestBuildGrid:

    def test_product_is_mu_major(self):
        grid = build_grid([0.01, 0.05], [0.1, 1.0, 10.0])
        assert grid.shape == (6, 2)
        np.testing.assert_array_equal(grid[:3, 0], [0.01, 0.01, 0.01])
        np.testing.assert_array_equal(grid[:3, 1], [0.1, 1.0, 10.0])

    def test_pairs_override_product(self):
        grid = build_grid([0.01], [0.1], pairs=[(0.2, 0.3)])
        np.testing.assert_array_equal(grid, [[0.2, 0.3]])

    def test_single_pair_is_one_point_grid(self):
        np.testing.assert_array_equal(build_grid(pairs=(0.01, 0.1)), [[0.01, 0.1]])

    def test_grid_is_read_only(self):
        grid = build_grid(pairs=[(0.0, 1.0)])
        with pytest.raises(ValueError):
            grid[0, 0] = 5.0

    @pytest.mark.parametrize("kwargs", [
        dict(pairs=[]),
        dict(mu_grid=[], alphas=[0.1]),
        dict(mu_grid=[0.1]),
        dict(pairs=[(0.1, 0.2, 0.3)]),
        dict(pairs=[(np.nan, 0.1)]),
        dict(pairs=[(0.1, -0.5)]),
    ])
    def test_invalid_grids_raise(self, kwargs):
        with pytest.raises(ValueError):
            build_grid(**kwargs)


class TestRiskConfig:

    def test_default_validates(self):
        config = get_default_config()
        assert config.window.window_size == 50
        assert config.window.pred_horizon == 5
        assert config.basis.herm_degree == 3
        assert config.grid.size == 9
        assert config.grid.grid().shape == (9, 2)
        assert not config.compute.use_parallel
        assert config.compute.preallocate
        assert config.verification.verify_accuracy

    def test_pairs_set_grid_size(self, small_grid):
        config = RiskConfig.default()
        config.grid.pairs = small_grid
        assert config.grid.size == 3
        assert config.validate()

    def test_invalid_backend(self):
        config = RiskConfig.default()
        config.compute.backend = 'dask'
        with pytest.raises(AssertionError):
            config.validate()

    @pytest.mark.parametrize("section, name, value", [
        ('window', 'window_size', 0),
        ('window', 'pred_horizon', -1),
        ('basis', 'herm_degree', -1),
        ('compute', 'n_jobs', 0),
        ('compute', 'tasks_per_worker', 0),
        ('verification', 'sample_size', 0),
    ])
    def test_invalid_values(self, section, name, value):
        config = RiskConfig.default()
        setattr(getattr(config, section), name, value)
        with pytest.raises(AssertionError):
            config.validate()

    def test_empty_grid(self):
        config = RiskConfig.default()
        config.grid.alphas = []
        with pytest.raises(ValueError):
            config.validate()

    def test_small_window_warns(self):
        config = RiskConfig.default()
        config.window.window_size = 4
        with pytest.warns(UserWarning, match="small relative"):
            config.validate()
