"""
Column plan: the parameter layout of a regression.

The plan is derived once from the table schema and the learner settings,
before any row is encoded, and is read-only afterwards. It fixes

    - the role of every learning column (factor, covariate, vector covariate)
    - the ordered domain of every factor (reference category first)
    - the length of every vector column
    - the contiguous parameter-index range ("slot") of every column/degree

Layout is degree-major. With base columns a (factor, 2 slots) and x
(covariate) and max_exponent=2 the parameter vector is

    [a=B, a=C, x, a=B^2, a=C^2, x^2]

Key concepts:
    - Factor: k categories contribute k-1 indicator slots
    - Vector covariate: contributes one slot per vector element
    - Covariate: contributes one slot
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from pyregstats.core.exceptions import ConfigurationError, DataIntegrityError
from pyregstats.core.protocols import TableSource
from pyregstats.core.table import ColumnSpec, ColumnType, compute_domain, is_missing
from pyregstats.regression.settings import LearnerSettings


# Largest parameter count (intercept included) a solver is asked to handle
MAX_PARAMETER_COUNT = 2**31 - 1


class ColumnRole(Enum):
    """How a column enters the model."""
    TARGET = 'target'
    FACTOR = 'factor'
    COVARIATE = 'covariate'
    VECTOR_COVARIATE = 'vector_covariate'


@dataclass(frozen=True)
class ParameterSlot:
    """
    Contiguous range of parameter indices owned by one column at one degree.

    Indices are positions in the encoded parameter vector (no intercept).
    """
    column: str
    role: ColumnRole
    degree: int
    start: int
    stop: int
    labels: tuple[str, ...]

    @property
    def width(self) -> int:
        return self.stop - self.start


@dataclass(frozen=True)
class ColumnPlan:
    """
    Immutable parameter layout shared by the encoder, the dataset and the
    statistics object.

    Construct with build_column_plan().
    """
    target: str
    target_index: int
    target_role: ColumnRole
    target_domain: tuple[Any, ...] | None
    learning_columns: tuple[str, ...]
    column_indices: tuple[int, ...]
    roles: tuple[ColumnRole, ...]
    column_types: tuple[ColumnType, ...]
    factor_domains: Mapping[str, tuple[Any, ...]]
    vector_lengths: Mapping[str, int]
    base_parameter_count: int
    max_exponent: int
    include_constant: bool
    fail_on_missing: bool
    vector_length_policy: str
    slots: tuple[ParameterSlot, ...]

    @property
    def parameter_count(self) -> int:
        """Length of every encoded parameter vector."""
        return self.base_parameter_count * self.max_exponent

    @property
    def coefficient_count(self) -> int:
        """Length of the fitted coefficient vector (intercept included)."""
        return self.parameter_count + (1 if self.include_constant else 0)

    @property
    def factors(self) -> tuple[str, ...]:
        """Factor columns in schema order."""
        return tuple(name for name, role in zip(self.learning_columns, self.roles)
                     if role is ColumnRole.FACTOR)

    @property
    def covariates(self) -> tuple[str, ...]:
        """Numeric and vector columns in schema order."""
        return tuple(name for name, role in zip(self.learning_columns, self.roles)
                     if role is not ColumnRole.FACTOR)

    def role_of(self, column: str) -> ColumnRole:
        if column == self.target:
            return ColumnRole.TARGET
        try:
            return self.roles[self.learning_columns.index(column)]
        except ValueError:
            raise KeyError(f"'{column}' is not part of this plan") from None

    def base_slots(self) -> tuple[ParameterSlot, ...]:
        """Degree-1 slots in schema order."""
        return tuple(s for s in self.slots if s.degree == 1)

    def slots_for(self, column: str) -> tuple[ParameterSlot, ...]:
        """All slots of one column, one per degree."""
        return tuple(s for s in self.slots if s.column == column)

    def parameter_names(self) -> tuple[str, ...]:
        """
        One name per degree-1 parameter.

        "col=value" for every non-reference factor category, "col" for a
        covariate and "col[i]" for element i of a vector covariate.
        """
        return tuple(label for slot in self.base_slots() for label in slot.labels)

    def slot_at(self, parameter_index: int) -> ParameterSlot:
        """Slot holding a parameter-vector index."""
        for slot in self.slots:
            if slot.start <= parameter_index < slot.stop:
                return slot
        raise IndexError(
            f"parameter index {parameter_index} out of range [0, {self.parameter_count})"
        )

    def term_for_index(self, coefficient_index: int) -> str:
        """
        Column name (with "^degree" above 1) of a coefficient index.

        Coefficient indices count the intercept first when it is estimated.
        """
        offset = 1 if self.include_constant else 0
        if coefficient_index < offset:
            return 'Intercept'
        slot = self.slot_at(coefficient_index - offset)
        if slot.degree > 1:
            return f"{slot.column}^{slot.degree}"
        return slot.column


def build_column_plan(table: TableSource, settings: LearnerSettings) -> ColumnPlan:
    """
    Derive the parameter layout from the table schema.

    Vector columns are scanned once to find their length; nothing else
    touches the rows.

    Args:
        table: Table source with a schema (and domains for nominal columns)
        settings: Learner configuration

    Returns:
        ColumnPlan ready for encoding

    Raises:
        ConfigurationError: Unknown columns, a nominal column without a
            precomputed domain, a zero or unrepresentable vector length, an
            unknown target reference category, or a parameter count that
            does not fit
    """
    spec = table.spec

    if settings.target not in spec:
        raise ConfigurationError(
            f"Target column '{settings.target}' does not exist. "
            f"Available: {list(spec.names)}",
            column=settings.target, reason='unknown_column',
        )

    if settings.learning_columns is None:
        learning = tuple(name for name in spec.names if name != settings.target)
    else:
        learning = settings.learning_columns
        for name in learning:
            if name not in spec:
                raise ConfigurationError(
                    f"Learning column '{name}' does not exist. Available: {list(spec.names)}",
                    column=name, reason='unknown_column',
                )
    if not learning:
        raise ConfigurationError(
            "No learning columns: the table holds only the target column",
            reason='no_learning_columns',
        )

    roles: list[ColumnRole] = []
    types: list[ColumnType] = []
    widths: list[int] = []
    labels: list[tuple[str, ...]] = []
    factor_domains: dict[str, tuple[Any, ...]] = {}
    vector_lengths: dict[str, int] = {}

    for name in learning:
        col = spec.column(name)
        types.append(col.type)
        if col.type is ColumnType.NOMINAL:
            domain = _factor_domain(col, settings.sort_factor_categories)
            factor_domains[name] = domain
            roles.append(ColumnRole.FACTOR)
            labels.append(tuple(f"{name}={value}" for value in domain[1:]))
        elif col.type.is_vector:
            length = _vector_length(table, col, settings.vector_length_policy)
            vector_lengths[name] = length
            roles.append(ColumnRole.VECTOR_COVARIATE)
            labels.append(tuple(f"{name}[{i}]" for i in range(length)))
        else:
            roles.append(ColumnRole.COVARIATE)
            labels.append((name,))
        widths.append(len(labels[-1]))

    base = sum(widths)
    total = base * settings.max_exponent + (1 if settings.include_constant else 0)
    if total > MAX_PARAMETER_COUNT:
        raise ConfigurationError(
            f"Parameter count {total} exceeds the maximum of {MAX_PARAMETER_COUNT} "
            f"({base} base parameters x degree {settings.max_exponent})",
            reason='parameter_count',
        )

    slots = []
    for degree in range(1, settings.max_exponent + 1):
        start = (degree - 1) * base
        for name, role, width, names in zip(learning, roles, widths, labels):
            slots.append(ParameterSlot(
                column=name,
                role=role,
                degree=degree,
                start=start,
                stop=start + width,
                labels=names,
            ))
            start += width

    target_role, target_domain = _target_layout(table, spec.column(settings.target), settings)

    return ColumnPlan(
        target=settings.target,
        target_index=spec.index_of(settings.target),
        target_role=target_role,
        target_domain=target_domain,
        learning_columns=tuple(learning),
        column_indices=tuple(spec.index_of(name) for name in learning),
        roles=tuple(roles),
        column_types=tuple(types),
        factor_domains=MappingProxyType(factor_domains),
        vector_lengths=MappingProxyType(vector_lengths),
        base_parameter_count=base,
        max_exponent=settings.max_exponent,
        include_constant=settings.include_constant,
        fail_on_missing=settings.fail_on_missing,
        vector_length_policy=settings.vector_length_policy,
        slots=tuple(slots),
    )


def category_sort_key(value: Any) -> tuple[int, Any]:
    """Numbers sort numerically and before everything else, which sorts as text."""
    if isinstance(value, (int, float)):
        return (0, value)
    return (1, str(value))


def _factor_domain(col: ColumnSpec, sort: bool) -> tuple[Any, ...]:
    if col.domain is None:
        raise ConfigurationError(
            f"Nominal column '{col.name}' has no precomputed domain. "
            f"Build the table with compute_domains=True or supply the domain.",
            column=col.name, reason='missing_domain',
        )
    if len(col.domain) == 0:
        raise ConfigurationError(
            f"Nominal column '{col.name}' has an empty domain",
            column=col.name, reason='empty_domain',
        )
    if sort:
        return tuple(sorted(col.domain, key=category_sort_key))
    return tuple(col.domain)


def vector_cell_length(value: Any, col_type: ColumnType, column: str,
                       row_index: int | None = None) -> int:
    """
    Number of elements in a non-missing vector cell.

    Bit vectors may be given as '0101' strings; byte vectors as bytes.

    Raises:
        DataIntegrityError: If the cell is not a sequence
    """
    if col_type is ColumnType.BIT_VECTOR and isinstance(value, str):
        return len(value)
    if isinstance(value, (str, dict)) or not hasattr(value, '__len__'):
        raise DataIntegrityError(
            f"Column '{column}' expects {col_type.value} cells, got {type(value).__name__}",
            column=column, row_index=row_index, value=value,
        )
    return len(value)


def _iter_vector_lengths(table: TableSource, col: ColumnSpec) -> Iterator[int]:
    for i, value in enumerate(table.column_values(col.name)):
        if is_missing(value):
            continue
        yield vector_cell_length(value, col.type, col.name, i)


def _vector_length(table: TableSource, col: ColumnSpec, policy: str) -> int:
    lengths = set(_iter_vector_lengths(table, col))

    if policy == 'exact' and len(lengths) > 1:
        raise ConfigurationError(
            f"Vector column '{col.name}' has rows of different lengths "
            f"{sorted(lengths)}; the exact-length policy requires one length",
            column=col.name, reason='vector_length_mismatch',
        )

    length = max(lengths, default=0)
    if length <= 0:
        raise ConfigurationError(
            f"Vector column '{col.name}' has no elements in any row",
            column=col.name, reason='vector_length',
        )
    if length > MAX_PARAMETER_COUNT:
        raise ConfigurationError(
            f"Vector column '{col.name}' length {length} exceeds {MAX_PARAMETER_COUNT}",
            column=col.name, reason='vector_length',
        )
    return length


def _target_layout(
    table: TableSource,
    col: ColumnSpec,
    settings: LearnerSettings,
) -> tuple[ColumnRole, tuple[Any, ...] | None]:
    """Role and (for a nominal target) ordered domain of the target column."""
    reference = settings.target_reference_category

    if col.type.is_vector:
        raise ConfigurationError(
            f"Target column '{col.name}' is a {col.type.value} column; "
            f"the target must be numeric or nominal",
            column=col.name, reason='target_type',
        )

    if col.type is not ColumnType.NOMINAL:
        if reference is not None:
            raise ConfigurationError(
                f"Target reference category {reference!r} given, but target "
                f"'{col.name}' is numeric",
                column=col.name, reason='unknown_reference_category',
            )
        return ColumnRole.COVARIATE, None

    if col.domain is not None:
        domain = list(col.domain)
    else:
        domain = list(compute_domain(table.column_values(col.name), col.name))
    if settings.sort_target_categories:
        domain.sort(key=category_sort_key)

    if reference is not None:
        if reference not in domain:
            raise ConfigurationError(
                f"Target reference category {reference!r} is not in the domain "
                f"of '{col.name}': {domain}",
                column=col.name, reason='unknown_reference_category',
            )
        # the reference category is the last one
        domain.remove(reference)
        domain.append(reference)

    return ColumnRole.FACTOR, tuple(domain)
