"""
Linear and polynomial regression over row-oriented tables.

Public API:
    fit(table, target, ...) -> RegressionSolution

The fit() function is the usual entry point. It handles:
    - Settings validation
    - Column plan construction
    - The streaming scan through an incremental solver
    - Result wrapping

The pieces are usable on their own: build_column_plan(), TrainingDataset,
Learner and RegressionContent.

Example:
    >>> from pyregstats.regression import fit
    >>> solution = fit(table, target='price', max_exponent=2)
    >>> print(solution.summary())
    >>> solution.results_table()
"""

from pyregstats.regression._common import EncodedRow, FittedModel, ResultsTableRow
from pyregstats.regression.settings import LearnerSettings
from pyregstats.regression.plan import (
    MAX_PARAMETER_COUNT,
    ColumnPlan,
    ColumnRole,
    ParameterSlot,
    build_column_plan,
)
from pyregstats.regression.encoding import encode_row
from pyregstats.regression.design import TrainingDataset
from pyregstats.regression.backends.cpu import IncrementalOLSSolver
from pyregstats.regression.solution import (
    RegressionContent,
    RegressionSolution,
    uniform_term_label,
)
from pyregstats.regression.solvers import Learner, fit
from pyregstats.regression.prediction import predict, prediction_errors, mean_squared_error

__all__ = [
    "fit",
    "LearnerSettings",
    "ColumnPlan",
    "ColumnRole",
    "ParameterSlot",
    "MAX_PARAMETER_COUNT",
    "build_column_plan",
    "encode_row",
    "EncodedRow",
    "TrainingDataset",
    "IncrementalOLSSolver",
    "FittedModel",
    "Learner",
    "RegressionContent",
    "RegressionSolution",
    "ResultsTableRow",
    "uniform_term_label",
    "predict",
    "prediction_errors",
    "mean_squared_error",
]
