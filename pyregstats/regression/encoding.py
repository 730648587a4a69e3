"""
Row encoding.

Turns one source row into the parameter vector the solver sees, following a
ColumnPlan. Pure function: no state, no side effects.

Key concepts:
    - Factor: treatment (dummy) coding against the non-reference categories
    - Vector covariate: one slot per element, NaN past the end of a short vector
    - Covariate: the raw numeric value
    - Degree d slots hold the degree-1 value raised to the power d
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from pyregstats.core.exceptions import DataIntegrityError, MissingValueError
from pyregstats.core.table import ColumnType, is_missing
from pyregstats.regression._common import EncodedRow
from pyregstats.regression.plan import ColumnPlan, ColumnRole, vector_cell_length


def encode_row(
    row: Sequence[Any],
    plan: ColumnPlan,
    row_index: int | None = None,
) -> EncodedRow:
    """
    Encode one table row.

    Args:
        row: Cells in table-schema order
        plan: Column plan the row is encoded against
        row_index: Position of the row, reported in errors

    Returns:
        EncodedRow with exactly plan.parameter_count parameters

    Raises:
        MissingValueError: A cell is missing and plan.fail_on_missing is set
        DataIntegrityError: A category is not in the planned domain, or a
            cell does not fit its column type
    """
    base = np.full(plan.base_parameter_count, np.nan, dtype=np.float64)
    has_missing = False

    for slot in plan.base_slots():
        value = row[plan.column_indices[plan.learning_columns.index(slot.column)]]

        if is_missing(value):
            if plan.fail_on_missing:
                raise MissingValueError(
                    f"Missing value in column '{slot.column}' (row {row_index})",
                    column=slot.column, row_index=row_index,
                )
            has_missing = True
            continue

        if slot.role is ColumnRole.FACTOR:
            base[slot.start:slot.stop] = _encode_factor(
                value, plan.factor_domains[slot.column], slot.column, row_index
            )
        elif slot.role is ColumnRole.VECTOR_COVARIATE:
            base[slot.start:slot.stop] = _encode_vector(
                value, plan, slot.column, row_index
            )
        else:
            base[slot.start] = _as_float(value, slot.column, row_index)

    if plan.max_exponent > 1:
        parameters = np.concatenate(
            [base ** degree for degree in range(1, plan.max_exponent + 1)]
        )
    else:
        parameters = base

    target, target_missing = encode_target(row[plan.target_index], plan, row_index)

    return EncodedRow(
        target=target,
        parameters=parameters,
        has_missing=has_missing or target_missing,
    )


def encode_target(
    value: Any,
    plan: ColumnPlan,
    row_index: int | None = None,
) -> tuple[float, bool]:
    """
    Encode the target cell as a scalar.

    A nominal target becomes the index of its category in the planned
    target domain.

    Returns:
        (target, was_missing)
    """
    if is_missing(value):
        if plan.fail_on_missing:
            raise MissingValueError(
                f"Missing value in target column '{plan.target}' (row {row_index})",
                column=plan.target, row_index=row_index,
            )
        return float('nan'), True

    if plan.target_role is ColumnRole.FACTOR:
        try:
            return float(plan.target_domain.index(value)), False
        except ValueError:
            raise DataIntegrityError(
                f"Target column '{plan.target}': category {value!r} is not in the "
                f"precomputed domain {list(plan.target_domain)}",
                column=plan.target, row_index=row_index, value=value,
            ) from None

    return _as_float(value, plan.target, row_index), False


def _encode_factor(
    value: Any,
    domain: tuple[Any, ...],
    column: str,
    row_index: int | None,
) -> NDArray[np.floating[Any]]:
    try:
        position = domain.index(value)
    except ValueError:
        raise DataIntegrityError(
            f"Column '{column}': category {value!r} is not in the precomputed "
            f"domain {list(domain)}",
            column=column, row_index=row_index, value=value,
        ) from None

    coded = np.zeros(len(domain) - 1, dtype=np.float64)
    # position 0 is the reference category
    if position > 0:
        coded[position - 1] = 1.0
    return coded


def _encode_vector(
    value: Any,
    plan: ColumnPlan,
    column: str,
    row_index: int | None,
) -> NDArray[np.floating[Any]]:
    length = plan.vector_lengths[column]
    col_type = plan.column_types[plan.learning_columns.index(column)]
    actual = vector_cell_length(value, col_type, column, row_index)

    if actual > length or (plan.vector_length_policy == 'exact' and actual != length):
        raise DataIntegrityError(
            f"Column '{column}': vector of length {actual}, planned length {length}",
            column=column, row_index=row_index, value=value,
        )

    elements = np.full(length, np.nan, dtype=np.float64)
    if col_type is ColumnType.BIT_VECTOR:
        elements[:actual] = [_bit(v, column, row_index) for v in value]
    elif col_type is ColumnType.BYTE_VECTOR:
        elements[:actual] = [_byte(v, column, row_index) for v in value]
    else:
        elements[:actual] = [
            np.nan if is_missing(v) else _as_float(v, column, row_index) for v in value
        ]
    return elements


def _bit(value: Any, column: str, row_index: int | None) -> float:
    if value in ('0', '1', 0, 1, False, True):
        return float(int(value))
    raise DataIntegrityError(
        f"Column '{column}': {value!r} is not a bit (expected 0 or 1)",
        column=column, row_index=row_index, value=value,
    )


def _byte(value: Any, column: str, row_index: int | None) -> float:
    number = _as_float(value, column, row_index)
    if not (0.0 <= number <= 255.0 and number == int(number)):
        raise DataIntegrityError(
            f"Column '{column}': {value!r} is not a byte (expected an integer 0-255)",
            column=column, row_index=row_index, value=value,
        )
    return number


def _as_float(value: Any, column: str, row_index: int | None) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise DataIntegrityError(
            f"Column '{column}': expected a number, got {value!r}",
            column=column, row_index=row_index, value=value,
        ) from None
