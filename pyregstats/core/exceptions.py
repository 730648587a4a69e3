"""
Exception hierarchy for PyRegStats.

All errors inherit from PyRegStatsError so callers can catch any
library-specific failure. Cancellation is the one exception that does not:
a cancelled run is an outcome, not an error, and must never be swallowed by
an ``except PyRegStatsError`` clause.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""

from typing import Any


class PyRegStatsError(Exception):
    """Base exception for all PyRegStats errors."""
    pass


class ValidationError(PyRegStatsError):
    """
    Input validation failed.
    
    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.
    
    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class ConfigurationError(ValidationError):
    """
    The column layout cannot be derived from the table schema.

    Raised before any row is scanned: a nominal column without a
    precomputed domain, a vector column with zero or unrepresentable
    length, an unknown target reference category, or a parameter count
    that does not fit the solver.

    Attributes:
        column: Name of the offending column, if any
        reason: Short machine-readable reason (e.g. 'missing_domain')
    """

    def __init__(
        self,
        message: str,
        column: str | None = None,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.column = column
        self.reason = reason


class DataError(PyRegStatsError):
    """
    A row violated the column plan while the table was being scanned.

    Attributes:
        column: Name of the column holding the bad cell
        row_index: Zero-based position of the row in the table, if known
    """

    def __init__(
        self,
        message: str,
        column: str | None = None,
        row_index: int | None = None,
    ):
        super().__init__(message)
        self.column = column
        self.row_index = row_index


class MissingValueError(DataError):
    """
    A missing cell was found while missing values are configured to fail.
    """
    pass


class DataIntegrityError(DataError):
    """
    A cell is inconsistent with the precomputed column metadata.

    Typically a category that is absent from the column domain (the domain
    is stale), or a vector whose length differs from the planned length
    under the exact-length policy.

    Attributes:
        value: The offending cell value
    """

    def __init__(
        self,
        message: str,
        column: str | None = None,
        row_index: int | None = None,
        value: Any = None,
    ):
        super().__init__(message, column=column, row_index=row_index)
        self.value = value


class NumericalError(PyRegStatsError):
    """
    Numerical computation failed.
    
    Base class for errors arising from numerical issues during computation.
    """
    pass


class ModelSpecificationError(NumericalError):
    """
    The solver could not produce any fit.

    Attributes:
        value_count: Number of rows the solver accepted
        parameter_count: Number of parameters it was asked to estimate
    """

    def __init__(
        self,
        message: str,
        value_count: int | None = None,
        parameter_count: int | None = None,
    ):
        super().__init__(message)
        self.value_count = value_count
        self.parameter_count = parameter_count


class Cancelled(Exception):
    """
    Execution was cancelled through the execution monitor.

    Not a PyRegStatsError. No partial result exists when this is raised.

    Attributes:
        rows_processed: Rows consumed before the cancellation was observed
    """

    def __init__(self, message: str = "Execution cancelled", rows_processed: int = 0):
        super().__init__(message)
        self.rows_processed = rows_processed
