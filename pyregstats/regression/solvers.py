"""
Learner orchestration for linear regression.

This module provides the Learner (one pass of a TrainingDataset through an
incremental solver) and the fit() function (public API).

The scan loop knows nothing about what happens to a row: it hands every
EncodedRow to a row consumer, a plain callable composed from the solver
update and the running statistics. Between rows it checks the execution
monitor for cancellation.
"""

from __future__ import annotations

import warnings
from contextlib import closing
from typing import Any, Callable, Iterable, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from pyregstats.core.compute.timing import Timer
from pyregstats.core.capabilities import CAPABILITY_REPEATABLE
from pyregstats.core.exceptions import Cancelled, ValidationError
from pyregstats.core.monitor import NullMonitor
from pyregstats.core.protocols import ExecutionMonitor, IncrementalSolver, TableSource
from pyregstats.core.result import Result
from pyregstats.core.table import DataTable
from pyregstats.regression._common import EncodedRow, FittedModel
from pyregstats.regression.backends.cpu import IncrementalOLSSolver
from pyregstats.regression.design import TrainingDataset
from pyregstats.regression.plan import ColumnPlan, build_column_plan
from pyregstats.regression.settings import LearnerSettings, VectorLengthPolicy
from pyregstats.regression.solution import RegressionContent, RegressionSolution

if TYPE_CHECKING:
    import pandas as pd


RowConsumer = Callable[[EncodedRow], None]
SolverFactory = Callable[[ColumnPlan, LearnerSettings], IncrementalSolver]


def default_solver_factory(plan: ColumnPlan, settings: LearnerSettings) -> IncrementalSolver:
    """CPU streaming OLS sized for the plan."""
    return IncrementalOLSSolver(
        plan.parameter_count,
        include_constant=plan.include_constant,
        offset_value=settings.offset_value,
    )


def compose(*consumers: RowConsumer) -> RowConsumer:
    """Row consumer that feeds every row to each of ``consumers`` in turn."""
    def consume(row: EncodedRow) -> None:
        for consumer in consumers:
            consumer(row)
    return consume


class RowStatistics:
    """
    Running counts and parameter sums over a scan.

    Only complete rows (no NaN parameter, non-NaN target) enter the sums.
    """

    def __init__(self, parameter_count: int):
        self.rows = 0
        self.rows_with_missing = 0
        self.complete_rows = 0
        self._parameter_sums = np.zeros(parameter_count, dtype=np.float64)
        self._target_sum = 0.0

    def add(self, row: EncodedRow) -> None:
        self.rows += 1
        if row.has_missing or np.isnan(row.target) or np.isnan(row.parameters).any():
            self.rows_with_missing += 1
            return
        self.complete_rows += 1
        self._parameter_sums += row.parameters
        self._target_sum += row.target

    @property
    def parameter_means(self) -> NDArray[np.floating[Any]]:
        if self.complete_rows == 0:
            return np.full(self._parameter_sums.shape, np.nan, dtype=np.float64)
        return self._parameter_sums / self.complete_rows

    @property
    def target_mean(self) -> float:
        if self.complete_rows == 0:
            return float('nan')
        return self._target_sum / self.complete_rows


class Learner:
    """
    Drives a TrainingDataset through an incremental solver.

    Args:
        plan: Column plan of the dataset
        settings: Learner settings (offset, cancellation cadence)
        solver_factory: (plan, settings) -> IncrementalSolver; a fresh
            solver is created for every learn() call
        monitor: Cancellation and progress sink
        verbose: Print progress lines

    After learn() returns, ``statistics`` describes the scan.
    """

    def __init__(
        self,
        plan: ColumnPlan,
        settings: LearnerSettings,
        *,
        solver_factory: SolverFactory | None = None,
        monitor: ExecutionMonitor | None = None,
        verbose: bool = False,
    ):
        self._plan = plan
        self._settings = settings
        self._solver_factory = solver_factory or default_solver_factory
        self._monitor = monitor if monitor is not None else NullMonitor()
        self._verbose = verbose
        self.statistics: RowStatistics | None = None
        self.solver_name: str = 'unknown'
        self.model: FittedModel | None = None

    def learn(self, dataset: TrainingDataset, timer: Timer | None = None) -> RegressionContent:
        """
        Scan the dataset once, solve, and build the statistics content.

        Raises:
            Cancelled: The monitor was cancelled; no content is built
            MissingValueError, DataIntegrityError: Raised by the encoder
            ModelSpecificationError: The solver had no usable rows
        """
        timer = timer if timer is not None else Timer()
        solver = self._solver_factory(self._plan, self._settings)
        self.solver_name = getattr(solver, 'name', type(solver).__name__)
        statistics = RowStatistics(self._plan.parameter_count)

        def update(row: EncodedRow) -> None:
            solver.update(row.parameters, row.target)

        with timer.section('scan'):
            self._drive(dataset, compose(update, statistics.add), 'Learning')
        self.statistics = statistics

        if self._verbose:
            print(f"Scanned {statistics.rows} rows, "
                  f"{statistics.rows_with_missing} with missing values")

        with timer.section('solve'):
            model = solver.result()
        self.model = model

        with timer.section('statistics'):
            rss, tss = model.rss, model.tss
            if np.isnan(rss) or np.isnan(tss):
                rss, tss = self._residual_pass(dataset, model, statistics.target_mean)
            r_squared, adjusted = _r_squared(
                rss, tss, model.value_count, self._plan.coefficient_count,
                self._plan.include_constant,
            )

            warning = None
            if statistics.rows_with_missing:
                warning = (f"{statistics.rows_with_missing} of {statistics.rows} rows "
                           f"contain missing values")

            content = RegressionContent(
                plan=self._plan,
                coefficients=model.coefficients,
                covariance=model.covariance,
                value_count=model.value_count,
                r_squared=r_squared,
                adjusted_r_squared=adjusted,
                means=statistics.parameter_means,
                offset_value=self._settings.offset_value,
                warning_message=warning,
            )
            content.init()

        self._monitor.report_progress(1.0, 'Done')
        return content

    def _drive(self, dataset: Iterable[EncodedRow], consume: RowConsumer, phase: str) -> int:
        """
        Feed every row of ``dataset`` to ``consume``.

        The monitor is polled before the first row and then every
        cancel_check_interval rows. The dataset iterator is closed on
        every exit path, which releases the table cursor.
        """
        total = self._plan_rows(dataset)
        interval = self._settings.cancel_check_interval
        count = 0
        with closing(iter(dataset)) as rows:
            for row in rows:
                if count % interval == 0:
                    self._checkpoint(count, total, phase)
                consume(row)
                count += 1
        return count

    def _checkpoint(self, count: int, total: int, phase: str) -> None:
        if self._monitor.is_cancelled():
            raise Cancelled(f"{phase} cancelled after {count} rows", rows_processed=count)
        fraction = count / total if total else 0.0
        self._monitor.report_progress(fraction, f"{phase}: row {count} of {total}")

    @staticmethod
    def _plan_rows(dataset: Iterable[EncodedRow]) -> int:
        row_count = getattr(dataset, 'row_count', None)
        return row_count() if row_count is not None else 0

    def _residual_pass(
        self,
        dataset: TrainingDataset,
        model: FittedModel,
        target_mean: float,
    ) -> tuple[float, float]:
        """Second scan computing RSS and TSS for solvers that do not report them."""
        supports = getattr(dataset.table, 'supports', None)
        if supports is not None and not supports(CAPABILITY_REPEATABLE):
            raise ValidationError(
                f"Solver '{self.solver_name}' reports no residual sums and the table "
                f"cannot be scanned a second time"
            )
        coefficients = np.nan_to_num(model.coefficients, nan=0.0)
        if self._plan.include_constant:
            intercept, beta = coefficients[0], coefficients[1:]
            center = target_mean
        else:
            intercept, beta = self._settings.offset_value, coefficients
            center = self._settings.offset_value
        sums = {'rss': 0.0, 'tss': 0.0}

        def accumulate(row: EncodedRow) -> None:
            if np.isnan(row.target) or np.isnan(row.parameters).any():
                return
            residual = row.target - intercept - float(row.parameters @ beta)
            sums['rss'] += residual * residual
            sums['tss'] += (row.target - center) ** 2

        self._drive(dataset, accumulate, 'Residuals')
        return sums['rss'], sums['tss']


def _r_squared(
    rss: float,
    tss: float,
    n: int,
    p: int,
    include_constant: bool,
) -> tuple[float, float]:
    """
    R-squared and adjusted R-squared.

    ``p`` counts every estimated coefficient, intercept included. Adjusted
    R-squared is NaN when n - p <= 0.
    """
    if tss == 0:
        r_squared = 1.0 if rss == 0 else 0.0
    else:
        r_squared = 1.0 - rss / tss

    if n - p <= 0:
        return r_squared, float('nan')
    if include_constant:
        adjusted = 1.0 - (1.0 - r_squared) * (n - 1) / (n - p)
    else:
        adjusted = 1.0 - (1.0 - r_squared) * n / (n - p)
    return r_squared, adjusted


def fit(
    table: TableSource | 'pd.DataFrame',
    target: str,
    *,
    learning_columns: Iterable[str] | None = None,
    fail_on_missing: bool = False,
    sort_factor_categories: bool = True,
    sort_target_categories: bool = True,
    target_reference_category: Any = None,
    max_exponent: int = 1,
    include_constant: bool = True,
    offset_value: float = 0.0,
    vector_length_policy: VectorLengthPolicy = 'max',
    cancel_check_interval: int = 100,
    monitor: ExecutionMonitor | None = None,
    solver: IncrementalSolver | None = None,
    verbose: bool = False,
) -> RegressionSolution:
    """
    Fit a linear (optionally polynomial) regression model to a table.

    This is the primary public API for linear regression. Settings
    validation, plan construction, the scan and result wrapping happen here.

    Args:
        table: DataTable (or any TableSource), or a pandas DataFrame
        target: Response column
        learning_columns: Predictor columns; None for all non-target columns
        fail_on_missing: Raise MissingValueError on the first missing cell
            instead of skipping the row
        sort_factor_categories: Sort factor domains (first category is the
            reference)
        sort_target_categories: Sort the domain of a nominal target
        target_reference_category: Category of a nominal target moved to
            the end of its domain
        max_exponent: Highest polynomial degree
        include_constant: Estimate an intercept
        offset_value: Fixed intercept when include_constant is False
        vector_length_policy: 'max' or 'exact' for vector columns
        cancel_check_interval: Rows between cancellation checks
        monitor: ExecutionContext for cancellation and progress
        solver: IncrementalSolver to use instead of the CPU default; must
            be fresh and sized for the plan
        verbose: Print progress lines

    Returns:
        RegressionSolution with the coefficient statistics and run metadata

    Raises:
        ValidationError: Invalid settings
        ConfigurationError: The schema does not admit a column plan
        MissingValueError: Missing cell with fail_on_missing=True
        DataIntegrityError: Category absent from the precomputed domain
        ModelSpecificationError: No usable rows
        Cancelled: The monitor was cancelled

    Example:
        >>> from pyregstats import DataTable, fit
        >>> table = DataTable.from_columns({'x': [1, 2, 3, 4, 5],
        ...                                 'y': [2, 4, 6, 8, 10]})
        >>> solution = fit(table, target='y')
        >>> print(solution.summary())
    """
    settings = LearnerSettings(
        target=target,
        learning_columns=tuple(learning_columns) if learning_columns is not None else None,
        fail_on_missing=fail_on_missing,
        sort_factor_categories=sort_factor_categories,
        sort_target_categories=sort_target_categories,
        target_reference_category=target_reference_category,
        max_exponent=max_exponent,
        include_constant=include_constant,
        offset_value=offset_value,
        vector_length_policy=vector_length_policy,
        cancel_check_interval=cancel_check_interval,
    )

    if not isinstance(table, TableSource):
        table = DataTable.from_dataframe(table)

    timer = Timer()
    timer.start()

    with timer.section('plan'):
        plan = build_column_plan(table, settings)
    if verbose:
        print(f"Column plan: {len(plan.learning_columns)} learning columns "
              f"({len(plan.factors)} factors), {plan.parameter_count} parameters, "
              f"degree {plan.max_exponent}")

    solver_factory = None
    if solver is not None:
        solver_factory = lambda plan, settings: solver

    learner = Learner(
        plan, settings,
        solver_factory=solver_factory,
        monitor=monitor,
        verbose=verbose,
    )
    content = learner.learn(TrainingDataset(table, plan), timer=timer)
    timer.stop()

    result_warnings = []
    if content.warning_message:
        for message in content.warning_message.split('\n'):
            warnings.warn(message, UserWarning, stacklevel=2)
            result_warnings.append(message)

    statistics = learner.statistics
    info: dict[str, Any] = {
        'rows': statistics.rows,
        'rows_with_missing': statistics.rows_with_missing,
        'rows_skipped': statistics.rows - content.value_count,
        'value_count': content.value_count,
        'parameter_count': plan.parameter_count,
        'rank': learner.model.rank,
        'degrees_of_freedom': content.degrees_of_freedom,
    }

    return RegressionSolution(Result(
        params=content,
        info=info,
        timing=timer.result(),
        backend_name=learner.solver_name,
        warnings=tuple(result_warnings),
    ))
