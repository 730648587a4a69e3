"""
Common data types for linear regression.

Frozen payloads passed between the encoder, the solver and the statistics
object. Each is a pure data container.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class EncodedRow:
    """
    One source row as the solver sees it.

    ``parameters`` always has exactly ``ColumnPlan.parameter_count`` entries.
    NaN marks an input that was missing under the tolerant policy.
    """
    target: float
    parameters: NDArray[np.floating[Any]]
    has_missing: bool = False


@dataclass(frozen=True)
class FittedModel:
    """
    Output of an incremental solver.

    Attributes:
        coefficients: (p,) intercept first when a constant was estimated;
            NaN for structurally singular columns
        covariance: (p, p) covariance of the coefficients
        value_count: Number of rows the solver used
        rss: Residual sum of squares, NaN when the solver does not report it
        tss: Total sum of squares (about the mean when a constant was
            estimated, about zero otherwise), NaN when not reported
        rank: Number of non-aliased coefficients, or None when unknown
    """
    coefficients: NDArray[np.floating[Any]]
    covariance: NDArray[np.floating[Any]]
    value_count: int
    rss: float = float('nan')
    tss: float = float('nan')
    rank: int | None = None


@dataclass(frozen=True)
class ResultsTableRow:
    """
    One row of the coefficient statistics table.

    Missing statistics are None, never 0. The intercept row has degree 0.
    """
    parameter: str
    degree: int
    coefficient: float | None
    std_err: float | None
    t_value: float | None
    p_value: float | None

