"""
Unit tests for verification.py
"""

import numpy as np
import pytest

from systemic_risk.rolling import calculate_systemic_risk
from systemic_risk.verification import (
    VerificationResult,
    verify_against_baseline,
    verify_identical_results,
)


class TestVerifyIdenticalResults:

    def test_identical(self):
        a = np.array([0.5, np.nan, 0.7])
        result = verify_identical_results(a, a.copy())
        assert result.passed and result.identical
        assert result.max_abs_diff == 0.0
        assert "Perfectly identical (2 values)" in result.message

    def test_different_lengths(self):
        result = verify_identical_results([1.0, 2.0], [1.0])
        assert not result.passed
        assert "Different lengths" in result.message

    def test_nan_pattern_mismatch(self):
        result = verify_identical_results([1.0, np.nan, 3.0], [1.0, 2.0, 3.0])
        assert not result.passed
        assert "NaN patterns" in result.message
        assert "[1]" in result.message

    def test_all_nan(self):
        result = verify_identical_results([np.nan, np.nan], [np.nan, np.nan])
        assert result.passed and result.identical

    def test_both_empty(self):
        result = verify_identical_results([], [])
        assert result.passed and result.identical

    def test_within_tolerance_passes_but_not_identical(self):
        a = np.array([1.0, 2.0])
        b = a + np.array([0.0, 2.0 * np.finfo(float).eps])
        result = verify_identical_results(a, b)
        assert result.passed
        assert not result.identical
        assert 0.0 < result.max_abs_diff < 1e-14

    def test_large_difference_fails(self):
        result = verify_identical_results([1.0, 2.0], [1.0, 2.1])
        assert not result.passed
        assert "Not identical" in result.message
        np.testing.assert_allclose(result.max_abs_diff, 0.1)

    def test_tolerances_are_configurable(self):
        assert verify_identical_results([1.0], [1.001], rtol=1e-2).passed
        assert not verify_identical_results([1.0], [1.001]).passed

    def test_truthiness(self):
        assert bool(VerificationResult(True, True, "ok"))
        assert not bool(VerificationResult(False, False, "bad"))


class TestVerifyAgainstBaseline:

    def test_optimized_run_passes(self, returns_arrays, scenario_params):
        reference, factors = returns_arrays
        results = calculate_systemic_risk(reference, factors, **scenario_params)
        outcome = verify_against_baseline(
            results, reference, factors,
            scenario_params['window_size'], scenario_params['herm_degree'], scenario_params['grid'],
        )
        assert outcome.passed
        assert outcome.n_checked == 10

    def test_corrupted_sample_fails(self, returns_arrays, scenario_params):
        reference, factors = returns_arrays
        results = calculate_systemic_risk(reference, factors, **scenario_params)
        results[3] += 1e-3
        outcome = verify_against_baseline(results, reference, factors, 50, 3, scenario_params['grid'])
        assert not outcome.passed

    def test_nan_injected_into_sample_fails(self, returns_arrays, scenario_params):
        reference, factors = returns_arrays
        results = calculate_systemic_risk(reference, factors, **scenario_params)
        results[0] = np.nan
        outcome = verify_against_baseline(results, reference, factors, 50, 3, scenario_params['grid'])
        assert not outcome.passed
        assert "NaN" in outcome.message

    def test_only_leading_windows_are_checked(self, returns_arrays, scenario_params):
        reference, factors = returns_arrays
        results = calculate_systemic_risk(reference, factors, **scenario_params)
        results[30] += 1.0
        outcome = verify_against_baseline(results, reference, factors, 50, 3, scenario_params['grid'], sample_size=10)
        assert outcome.passed

    def test_sample_larger_than_series(self, returns_arrays, small_grid):
        reference, factors = returns_arrays
        results = calculate_systemic_risk(reference, factors, 90, 5, 3, small_grid)
        assert len(results) == 6
        outcome = verify_against_baseline(results, reference, factors, 90, 3, small_grid, sample_size=10)
        assert outcome.passed
        assert outcome.n_checked == 6

    def test_results_not_mutated(self, returns_arrays, scenario_params):
        reference, factors = returns_arrays
        results = calculate_systemic_risk(reference, factors, **scenario_params)
        before = results.copy()
        verify_against_baseline(results, reference, factors, 50, 3, scenario_params['grid'])
        np.testing.assert_array_equal(results, before)

    def test_empty_results(self, returns_arrays, small_grid):
        reference, factors = returns_arrays
        outcome = verify_against_baseline(np.empty(0), reference, factors, 96, 3, small_grid)
        assert outcome.passed
        assert outcome.n_checked == 0

    def test_invalid_grid_raises(self, returns_arrays):
        reference, factors = returns_arrays
        with pytest.raises(ValueError):
            verify_against_baseline(np.zeros(5), reference, factors, 50, 3, [(0.0, -1.0)])
