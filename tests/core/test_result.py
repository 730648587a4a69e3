"""
Tests for the Result[P] envelope.

Validates:
    - Generic type parameter works with arbitrary payload types
    - Frozen immutability
    - Default warnings
    - has_warning() method
"""

from dataclasses import FrozenInstanceError, dataclass

import pytest

from pyregstats.core.result import Result


@dataclass(frozen=True)
class FakeParams:
    """Minimal payload for testing."""
    value: float


class TestResultConstruction:
    """Result can be created with any payload type."""

    def test_basic_creation(self):
        result = Result(
            params=FakeParams(value=42.0),
            info={'rows': 10},
            timing={'total_seconds': 0.5},
            backend_name='cpu_incremental_ols',
        )
        assert result.params.value == 42.0
        assert result.info['rows'] == 10
        assert result.timing['total_seconds'] == 0.5
        assert result.backend_name == 'cpu_incremental_ols'

    def test_timing_optional(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None, backend_name='x')
        assert result.timing is None

    def test_default_warnings_empty(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None, backend_name='x')
        assert result.warnings == ()


class TestResultImmutability:

    def test_cannot_reassign_params(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None, backend_name='x')
        with pytest.raises(FrozenInstanceError):
            result.params = FakeParams(2.0)


class TestHasWarning:

    def test_substring_match(self):
        result = Result(
            params=FakeParams(1.0), info={}, timing=None, backend_name='x',
            warnings=("The following columns are redundant and will not contribute",),
        )
        assert result.has_warning("redundant")
        assert not result.has_warning("converged")

    def test_no_warnings(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None, backend_name='x')
        assert not result.has_warning("anything")
