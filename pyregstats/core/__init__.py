"""
Core infrastructure for PyRegStats.

Shared abstractions used by the regression module.

Key components:
    table: Row-oriented DataTable, column specs and cursors
    protocols: TableSource, IncrementalSolver, ExecutionMonitor
    monitor: ExecutionContext (cancellation + progress)
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing utilities
"""

from pyregstats.core.protocols import TableSource, IncrementalSolver, ExecutionMonitor
from pyregstats.core.result import Result
from pyregstats.core.table import ColumnSpec, ColumnType, DataTable, TableSpec
from pyregstats.core.monitor import ExecutionContext, NullMonitor
from pyregstats.core.exceptions import (
    PyRegStatsError,
    ValidationError,
    DimensionError,
    ConfigurationError,
    DataError,
    MissingValueError,
    DataIntegrityError,
    NumericalError,
    ModelSpecificationError,
    Cancelled,
)

__all__ = [
    # Protocols
    "TableSource",
    "IncrementalSolver",
    "ExecutionMonitor",
    # Table
    "ColumnSpec",
    "ColumnType",
    "DataTable",
    "TableSpec",
    # Monitors
    "ExecutionContext",
    "NullMonitor",
    # Result
    "Result",
    # Exceptions
    "PyRegStatsError",
    "ValidationError",
    "DimensionError",
    "ConfigurationError",
    "DataError",
    "MissingValueError",
    "DataIntegrityError",
    "NumericalError",
    "ModelSpecificationError",
    "Cancelled",
]
