"""
Unit tests for standardize.py
"""

import numpy as np
import pytest

from systemic_risk.standardize import destandardize, standardize_window, window_moments


class TestStandardizeWindow:
    """Z-scoring with the sample standard deviation."""

    def test_round_trip_reconstructs_window(self):
        np.random.seed(7)
        for _ in range(20):
            v = np.random.randn(50) * 0.02 + 0.001
            mean, std = window_moments(v)
            z = standardize_window(v)
            np.testing.assert_allclose(destandardize(z, mean, std), v, rtol=1e-12, atol=1e-15)

    def test_uses_sample_std(self):
        np.random.seed(8)
        v = np.random.randn(30)
        z = standardize_window(v)
        np.testing.assert_allclose(z.mean(), 0.0, atol=1e-12)
        np.testing.assert_allclose(z.std(ddof=1), 1.0, rtol=1e-12)

    def test_out_buffer_matches_allocating_path(self):
        np.random.seed(9)
        v = np.random.randn(40)
        buf = np.full(40, -1.0)
        result = standardize_window(v, out=buf)
        assert result is buf
        np.testing.assert_array_equal(buf, standardize_window(v))

    def test_input_not_mutated(self):
        v = np.array([0.01, -0.02, 0.03, 0.0])
        before = v.copy()
        standardize_window(v)
        np.testing.assert_array_equal(v, before)

    @pytest.mark.parametrize("value", [0.0, 0.5, -1.0])
    def test_constant_window_yields_nan(self, value):
        z = standardize_window(np.full(10, value))
        assert np.all(np.isnan(z))

    def test_single_observation_yields_nan(self):
        mean, std = window_moments(np.array([0.3]))
        assert mean == 0.3
        assert np.isnan(std)
        assert np.all(np.isnan(standardize_window([0.3])))
