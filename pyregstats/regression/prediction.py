"""
Prediction with a fitted regression.

Applies the coefficients of a RegressionContent to the rows of a
TrainingDataset encoded with the same column plan.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray

from pyregstats.core.exceptions import ValidationError
from pyregstats.regression.design import TrainingDataset
from pyregstats.regression.solution import RegressionContent


def predict(content: RegressionContent, dataset: TrainingDataset) -> NDArray[np.floating[Any]]:
    """
    Predicted target for every row of ``dataset``.

    The intercept (or the fixed offset when no constant was estimated) is
    added. Rows with a missing input predict NaN.

    Raises:
        ValidationError: If the dataset was encoded with a different layout
    """
    if dataset.parameter_count() != content.parameter_count:
        raise ValidationError(
            f"dataset has {dataset.parameter_count()} parameters, "
            f"model has {content.parameter_count}"
        )

    coefficients = content.coefficients
    if content.include_constant:
        intercept, beta = coefficients[0], coefficients[1:]
    else:
        intercept, beta = content.offset_value, coefficients

    predictions = np.empty(dataset.row_count(), dtype=np.float64)
    n = 0
    for row in dataset:
        predictions[n] = intercept + row.parameters @ beta
        n += 1
    return predictions[:n]


def prediction_errors(content: RegressionContent, dataset: TrainingDataset) -> NDArray[np.floating[Any]]:
    """Absolute error |prediction - target| per row; NaN where either is missing."""
    targets = np.array([row.target for row in dataset], dtype=np.float64)
    return np.abs(predict(content, dataset) - targets)


def mean_squared_error(content: RegressionContent, dataset: TrainingDataset) -> float:
    """Mean squared prediction error over rows without missing values."""
    errors = prediction_errors(content, dataset)
    errors = errors[~np.isnan(errors)]
    if len(errors) == 0:
        return float('nan')
    return float(np.mean(errors ** 2))
