"""
CPU incremental least-squares backend.

Keeps the upper-triangular factor R of the augmented matrix [X | y] and
folds every row into it with Givens rotations, so memory is O(p^2)
regardless of the number of rows and X'X is never formed. The last
diagonal entry of R is the residual norm of the full fit; the target's
mean and centered sum of squares are tracked with Welford's update.

Aliased columns are read off R's diagonal: R[j, j] is the distance of
column j to the span of the columns before it, and a column whose distance
is at machine-epsilon scale relative to its own norm is a linear
combination of them. Its coefficient and its covariance row/column are
NaN, and the kept columns are re-triangularized with QR before solving.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import cho_solve, solve_triangular

from pyregstats.core.exceptions import DimensionError, ModelSpecificationError
from pyregstats.regression._common import FittedModel


class IncrementalOLSSolver:
    """
    Streaming OLS solver.

    Implements the IncrementalSolver protocol.

    Args:
        parameter_count: Length of every feature vector (no intercept)
        include_constant: Prepend an intercept column
        offset_value: Fixed intercept subtracted from the target when no
            constant is estimated
        tolerance: Relative diagonal of R at or below which a column counts
            as aliased. Defaults to ``max(n, p) * eps`` at solve time.

    Rows with a NaN feature or a NaN target are skipped and counted.
    """

    def __init__(
        self,
        parameter_count: int,
        include_constant: bool = True,
        offset_value: float = 0.0,
        tolerance: float | None = None,
    ):
        if parameter_count < 0:
            raise DimensionError(f"parameter_count must be >= 0, got {parameter_count}")
        self._parameter_count = parameter_count
        self._include_constant = include_constant
        self._offset_value = 0.0 if include_constant else float(offset_value)
        self._tolerance = tolerance

        self._width = parameter_count + (1 if include_constant else 0)
        self._r = np.zeros((self._width + 1, self._width + 1), dtype=np.float64)
        self._y_mean = 0.0
        self._y_m2 = 0.0
        self._n = 0
        self._skipped = 0

    @property
    def name(self) -> str:
        return 'cpu_incremental_ols'

    @property
    def value_count(self) -> int:
        """Rows accumulated so far."""
        return self._n

    @property
    def skipped(self) -> int:
        """Rows rejected because of a missing feature or target."""
        return self._skipped

    def update(self, features: NDArray[np.floating[Any]], target: float) -> None:
        """Rotate one row into the triangular factor."""
        features = np.asarray(features, dtype=np.float64)
        if features.shape != (self._parameter_count,):
            raise DimensionError(
                f"features: expected shape ({self._parameter_count},), got {features.shape}"
            )
        if np.isnan(target) or np.isnan(features).any():
            self._skipped += 1
            return

        y = float(target) - self._offset_value
        row = np.empty(self._width + 1, dtype=np.float64)
        if self._include_constant:
            row[0] = 1.0
            row[1:-1] = features
        else:
            row[:-1] = features
        row[-1] = y

        r = self._r
        for j in range(row.shape[0]):
            a = row[j]
            if a == 0.0:
                continue
            b = r[j, j]
            h = np.hypot(b, a)
            c, s = b / h, a / h
            top = r[j, j:].copy()
            r[j, j:] = c * top + s * row[j:]
            row[j:] = c * row[j:] - s * top

        self._n += 1
        delta = y - self._y_mean
        self._y_mean += delta / self._n
        self._y_m2 += delta * (y - self._y_mean)

    def result(self) -> FittedModel:
        """
        Solve the accumulated triangular system.

        Raises:
            ModelSpecificationError: If no row was accumulated
        """
        width = self._width
        if self._n == 0:
            raise ModelSpecificationError(
                f"No usable rows: all {self._skipped} rows had a missing value",
                value_count=0, parameter_count=width,
            )

        kept = _independent_columns(self._r[:, :width], self._n, self._tolerance)
        rank = len(kept)

        coefficients = np.full(width, np.nan, dtype=np.float64)
        covariance = np.full((width, width), np.nan, dtype=np.float64)

        if rank > 0:
            _, reduced = np.linalg.qr(self._r[:, kept + [width]])
            upper = reduced[:rank, :rank]
            coefficients[kept] = solve_triangular(upper, reduced[:rank, rank])
            rss = float(reduced[rank, rank] ** 2)
        else:
            upper = np.zeros((0, 0))
            rss = float(self._r[:, width] @ self._r[:, width])

        if self._include_constant:
            tss = self._y_m2
        else:
            tss = self._y_m2 + self._n * self._y_mean ** 2

        df_residual = self._n - rank
        if rank > 0 and df_residual > 0:
            sigma2 = rss / df_residual
            inverse = cho_solve((upper, False), np.eye(rank))
            covariance[np.ix_(kept, kept)] = sigma2 * inverse

        return FittedModel(
            coefficients=coefficients,
            covariance=covariance,
            value_count=self._n,
            rss=rss,
            tss=tss,
            rank=rank,
        )


def _independent_columns(
    r: NDArray[np.floating[Any]],
    n: int,
    tolerance: float | None,
) -> list[int]:
    """
    Indices of the columns of X that are not aliased, in order.

    ``r`` holds the columns of X in an orthogonal basis, so the norm of
    ``r[:, j]`` is the norm of column j and ``|r[j, j]|`` is its distance to
    the span of the columns before it. Column j is kept when that distance
    exceeds ``tolerance`` times its norm.
    """
    width = r.shape[1]
    if tolerance is None:
        tolerance = max(n, width) * np.finfo(np.float64).eps
    norms = np.sqrt(np.sum(r ** 2, axis=0))
    return [
        j for j in range(width)
        if norms[j] > 0.0 and abs(r[j, j]) > tolerance * norms[j]
    ]
