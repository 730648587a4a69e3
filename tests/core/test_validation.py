"""
Tests for input validation utilities.

Validates every function in core/validation.py:
    - check_array: conversion, dtype coercion, object rejection, NaN allowed
    - check_ndim / check_1d / check_2d / check_square: dimensionality checks
    - check_length: exact length
"""

import numpy as np
import pytest

from pyregstats.core.exceptions import DimensionError, ValidationError
from pyregstats.core.validation import (
    check_1d,
    check_2d,
    check_array,
    check_length,
    check_ndim,
    check_square,
)


# ═══════════════════════════════════════════════════════════════════════
# check_array
# ═══════════════════════════════════════════════════════════════════════


class TestCheckArray:
    """check_array converts to float64 and rejects non-numeric data."""

    def test_list_to_float_array(self):
        result = check_array([1, 2, 3], "x")
        assert result.dtype == np.float64
        np.testing.assert_array_equal(result, [1.0, 2.0, 3.0])

    def test_bool_accepted(self):
        result = check_array([True, False], "x")
        np.testing.assert_array_equal(result, [1.0, 0.0])

    def test_nan_allowed(self):
        result = check_array([1.0, np.nan], "x")
        assert np.isnan(result[1])

    def test_strings_rejected(self):
        with pytest.raises(ValidationError, match="non-numeric"):
            check_array(["a", "b"], "x")

    def test_mixed_rejected(self):
        with pytest.raises(ValidationError, match="object dtype"):
            check_array([1, "a", None], "x")


# ═══════════════════════════════════════════════════════════════════════
# Shape checks
# ═══════════════════════════════════════════════════════════════════════


class TestShapeChecks:

    def test_ndim_ok(self):
        check_ndim(np.zeros((2, 2)), 2, "m")

    def test_1d_rejects_2d(self):
        with pytest.raises(DimensionError, match="expected 1D"):
            check_1d(np.zeros((2, 2)), "v")

    def test_2d_rejects_1d(self):
        with pytest.raises(DimensionError, match="expected 2D"):
            check_2d(np.zeros(3), "m")

    def test_square_rejects_rectangle(self):
        with pytest.raises(DimensionError, match="square"):
            check_square(np.zeros((2, 3)), "m")

    def test_square_ok(self):
        check_square(np.eye(3), "m")

    def test_length_mismatch(self):
        with pytest.raises(DimensionError, match="expected length 4, got 3"):
            check_length(np.zeros(3), 4, "v")

    def test_length_ok(self):
        check_length(np.zeros(4), 4, "v")
