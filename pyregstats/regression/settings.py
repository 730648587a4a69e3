"""
Learner settings.

All configuration of a fit lives in one frozen LearnerSettings value. It is
validated once, on construction, and read by the plan builder, the encoder
and the learner.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pyregstats.core.exceptions import ValidationError


VectorLengthPolicy = Literal['max', 'exact']

_VECTOR_LENGTH_POLICIES = ('max', 'exact')


@dataclass(frozen=True)
class LearnerSettings:
    """
    Configuration of a linear regression fit.

    Attributes:
        target: Name of the response column
        learning_columns: Predictor columns in the order they enter the
            model, or None for every non-target column in table order
        fail_on_missing: Raise on the first missing cell instead of
            encoding it as NaN
        sort_factor_categories: Sort factor domains; otherwise keep the
            first-seen order of the precomputed domain
        sort_target_categories: Sort the domain of a nominal target
        target_reference_category: Category of a nominal target that is
            moved to the end of its domain
        max_exponent: Highest polynomial degree (1 for a linear model)
        include_constant: Estimate an intercept
        offset_value: Fixed intercept used when include_constant is False
        vector_length_policy: 'max' pads shorter vectors with NaN up to the
            longest vector in the column; 'exact' requires one length
        cancel_check_interval: Rows between two cancellation checks
    """
    target: str
    learning_columns: tuple[str, ...] | None = None
    fail_on_missing: bool = False
    sort_factor_categories: bool = True
    sort_target_categories: bool = True
    target_reference_category: Any = None
    max_exponent: int = 1
    include_constant: bool = True
    offset_value: float = 0.0
    vector_length_policy: VectorLengthPolicy = 'max'
    cancel_check_interval: int = 100

    def __post_init__(self):
        if not isinstance(self.target, str) or not self.target:
            raise ValidationError(f"target: expected a column name, got {self.target!r}")
        if self.learning_columns is not None:
            # accept any sequence but store a tuple
            object.__setattr__(self, 'learning_columns', tuple(self.learning_columns))
            if self.target in self.learning_columns:
                raise ValidationError(
                    f"learning_columns must not contain the target column {self.target!r}"
                )
            duplicates = sorted({c for c in self.learning_columns
                                 if self.learning_columns.count(c) > 1})
            if duplicates:
                raise ValidationError(f"learning_columns: duplicate columns {duplicates}")
        if isinstance(self.max_exponent, bool) or not isinstance(self.max_exponent, int) \
                or self.max_exponent < 1:
            raise ValidationError(
                f"max_exponent: must be an integer >= 1, got {self.max_exponent!r}"
            )
        if self.vector_length_policy not in _VECTOR_LENGTH_POLICIES:
            raise ValidationError(
                f"vector_length_policy: must be one of {list(_VECTOR_LENGTH_POLICIES)}, "
                f"got {self.vector_length_policy!r}"
            )
        if isinstance(self.cancel_check_interval, bool) \
                or not isinstance(self.cancel_check_interval, int) \
                or self.cancel_check_interval < 1:
            raise ValidationError(
                f"cancel_check_interval: must be an integer >= 1, "
                f"got {self.cancel_check_interval!r}"
            )
