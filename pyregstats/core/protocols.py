"""
Core protocols for PyRegStats.

These define the structural interfaces of the collaborators a fit depends
on but does not implement: where rows come from, who solves the least
squares problem, and who may cancel the run. We use Protocol (structural
typing) rather than ABC so that callers can plug in their own objects
without inheriting from anything.
"""

from __future__ import annotations

from typing import Any, Iterator, Protocol, TYPE_CHECKING, runtime_checkable

if TYPE_CHECKING:
    from pyregstats.core.table import TableSpec
    from pyregstats.regression._common import FittedModel


@runtime_checkable
class TableSource(Protocol):
    """
    Row-oriented table with named, typed columns.

    ``cursor()`` must return a context manager that iterates rows as
    tuples in schema order and releases its resources on exit.
    """

    @property
    def spec(self) -> 'TableSpec':
        ...

    @property
    def n_rows(self) -> int:
        ...

    def cursor(self) -> Any:
        ...

    def column_values(self, name: str) -> Iterator[Any]:
        ...


@runtime_checkable
class IncrementalSolver(Protocol):
    """
    Least-squares solver fed one row at a time.

    The solver decides for itself how to treat NaN features; it never
    retains the rows it is given.
    """

    @property
    def name(self) -> str:
        """
        Solver identifier.

        Convention: '{device}_{algorithm}', e.g. 'cpu_incremental_ols'
        """
        ...

    def update(self, features: Any, target: float) -> None:
        ...

    def result(self) -> 'FittedModel':
        """
        Fitted coefficients (intercept first when estimated) and covariance.

        Raises:
            ModelSpecificationError: If no fit can be produced
        """
        ...


@runtime_checkable
class ExecutionMonitor(Protocol):
    """Cooperative cancellation and progress reporting."""

    def is_cancelled(self) -> bool:
        ...

    def report_progress(self, fraction: float, message: str | None = None) -> None:
        ...
