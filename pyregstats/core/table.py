"""
Row-oriented table source for PyRegStats.

DataTable is the "I have rows" abstraction. It knows its column names,
column types and, for nominal columns, the precomputed domain of distinct
values. It does not know what a regression is.

Rows are read through a cursor. A cursor is a scoped resource: open it with
``with table.cursor() as cursor:`` so it is released whether the scan
finishes, fails, or is cancelled.

Usage:
    from pyregstats.core.table import DataTable

    table = DataTable.from_columns({'x': [1.0, 2.0], 'color': ['red', 'blue']})
    table = DataTable.from_dataframe(df)
    table = DataTable.from_file("data.csv")

    with table.cursor() as cursor:
        for row in cursor:
            ...
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Mapping, Sequence, TYPE_CHECKING
import numpy as np

from pyregstats.core.exceptions import ValidationError, DimensionError
from pyregstats.core.capabilities import (
    CAPABILITY_MATERIALIZED,
    CAPABILITY_REPEATABLE,
    CAPABILITY_STREAMING,
)

if TYPE_CHECKING:
    import pandas as pd


class ColumnType(Enum):
    """Storage type of a table column."""
    NUMERIC = 'numeric'
    NOMINAL = 'nominal'
    BIT_VECTOR = 'bit_vector'
    BYTE_VECTOR = 'byte_vector'
    NUMERIC_LIST = 'numeric_list'

    @property
    def is_vector(self) -> bool:
        return self in (ColumnType.BIT_VECTOR, ColumnType.BYTE_VECTOR, ColumnType.NUMERIC_LIST)


@dataclass(frozen=True)
class ColumnSpec:
    """
    Name, type and (for nominal columns) domain of one column.

    Attributes:
        name: Column name
        type: Storage type
        domain: Distinct non-missing values in first-seen order, or None
            when the domain was never computed
    """
    name: str
    type: ColumnType
    domain: tuple[Any, ...] | None = None

    def with_domain(self, values: Sequence[Any]) -> ColumnSpec:
        return replace(self, domain=tuple(values))


@dataclass(frozen=True)
class TableSpec:
    """Ordered collection of column specs with name lookup."""
    columns: tuple[ColumnSpec, ...]

    def __post_init__(self):
        names = [c.name for c in self.columns]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValidationError(f"Duplicate column names: {duplicates}")

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self) -> Iterator[ColumnSpec]:
        return iter(self.columns)

    def __contains__(self, name: str) -> bool:
        return name in self.names

    def index_of(self, name: str) -> int:
        """
        Position of a column.

        Raises:
            KeyError: If the column does not exist, listing the available names
        """
        try:
            return self.names.index(name)
        except ValueError:
            raise KeyError(
                f"Table has no column '{name}'. Available: {list(self.names)}"
            ) from None

    def column(self, name: str) -> ColumnSpec:
        return self.columns[self.index_of(name)]


def is_missing(value: Any) -> bool:
    """True for None and floating-point NaN cells."""
    if value is None:
        return True
    if isinstance(value, (float, np.floating)):
        return bool(np.isnan(value))
    return False


def compute_domain(values: Iterator[Any] | Sequence[Any], name: str = 'column') -> tuple[Any, ...]:
    """
    Distinct non-missing values in first-seen order.

    Raises:
        ValidationError: If a value is unhashable (cannot be a category)
    """
    seen: dict[Any, None] = {}
    for value in values:
        if is_missing(value):
            continue
        try:
            seen.setdefault(value, None)
        except TypeError as e:
            raise ValidationError(
                f"{name}: unhashable value {value!r} cannot be a category"
            ) from e
    return tuple(seen)


def infer_column_type(values: Sequence[Any]) -> ColumnType:
    """
    Guess a column type from its cells.

    Numbers and booleans give NUMERIC, bytes give BYTE_VECTOR, lists,
    tuples and arrays give NUMERIC_LIST, anything else is NOMINAL.
    An all-missing column is NUMERIC.
    """
    present = [v for v in values if not is_missing(v)]
    if not present:
        return ColumnType.NUMERIC
    if all(isinstance(v, (bool, int, float, np.number, np.bool_)) for v in present):
        return ColumnType.NUMERIC
    if all(isinstance(v, (bytes, bytearray)) for v in present):
        return ColumnType.BYTE_VECTOR
    if all(isinstance(v, (list, tuple, np.ndarray)) for v in present):
        return ColumnType.NUMERIC_LIST
    return ColumnType.NOMINAL


def _normalize_cell(value: Any) -> Any:
    """Map missing markers to None and numpy scalars to Python scalars."""
    if is_missing(value):
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value


class TableCursor:
    """
    Forward-only iterator over the rows of a DataTable.

    Holds one row at a time. Must be closed; use it as a context manager.
    """

    def __init__(self, table: DataTable):
        self._table = table
        self._position = 0
        self._closed = False
        table._open_cursors += 1

    @property
    def position(self) -> int:
        """Number of rows handed out so far."""
        return self._position

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> TableCursor:
        return self

    def __next__(self) -> tuple[Any, ...]:
        if self._closed:
            raise RuntimeError("TableCursor used after close()")
        rows = self._table._rows
        if self._position >= len(rows):
            raise StopIteration
        row = rows[self._position]
        self._position += 1
        return row

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._table._open_cursors -= 1

    def __enter__(self) -> TableCursor:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@dataclass
class DataTable:
    """
    In-memory, repeatable, row-oriented table.

    Construct via factory classmethods, not directly.
    """
    _spec: TableSpec
    _rows: tuple[tuple[Any, ...], ...]
    _capabilities: frozenset[str]
    _metadata: dict[str, Any] = field(default_factory=dict)
    _open_cursors: int = 0

    # === Row Access ===

    def cursor(self) -> TableCursor:
        """Open a cursor positioned before the first row."""
        return TableCursor(self)

    def column_values(self, name: str) -> Iterator[Any]:
        """Yield the cells of one column, row by row."""
        index = self._spec.index_of(name)
        with self.cursor() as cursor:
            for row in cursor:
                yield row[index]

    # === Properties ===

    @property
    def spec(self) -> TableSpec:
        return self._spec

    @property
    def n_rows(self) -> int:
        """Number of rows."""
        return len(self._rows)

    @property
    def open_cursors(self) -> int:
        """Cursors opened and not yet closed."""
        return self._open_cursors

    @property
    def metadata(self) -> dict[str, Any]:
        return self._metadata.copy()

    def supports(self, capability: str) -> bool:
        """
        Check if this table supports a capability.

        Unknown capabilities return False, never raise.
        """
        return capability in self._capabilities

    # === Factory Methods ===

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[Any]],
        spec: TableSpec | Sequence[ColumnSpec],
        *,
        compute_domains: bool = False,
    ) -> DataTable:
        """
        Construct from row tuples and an explicit schema.

        Nominal columns keep the domain given in ``spec``; with
        ``compute_domains=True`` the ones without a domain get one computed
        from the data.
        """
        if not isinstance(spec, TableSpec):
            spec = TableSpec(tuple(spec))
        width = len(spec)
        normalized = []
        for i, row in enumerate(rows):
            if len(row) != width:
                raise DimensionError(
                    f"Row {i} has {len(row)} cells, schema has {width} columns"
                )
            normalized.append(tuple(_normalize_cell(v) for v in row))
        normalized = tuple(normalized)

        if compute_domains:
            spec = _with_computed_domains(spec, normalized)

        return cls(
            _spec=spec,
            _rows=normalized,
            _capabilities=_IN_MEMORY_CAPABILITIES,
            _metadata={'n_rows': len(normalized), 'source': 'rows'},
        )

    @classmethod
    def from_columns(
        cls,
        columns: Mapping[str, Sequence[Any]],
        *,
        types: Mapping[str, ColumnType | str] | None = None,
        compute_domains: bool = True,
    ) -> DataTable:
        """Construct from a name -> cells mapping (column order is kept)."""
        names = list(columns)
        lengths = {name: len(columns[name]) for name in names}
        if len(set(lengths.values())) > 1:
            details = ", ".join(f"{name}={n}" for name, n in lengths.items())
            raise DimensionError(f"Inconsistent column lengths: {details}")

        specs = []
        for name in names:
            values = list(columns[name])
            specs.append(ColumnSpec(name, _resolve_type(name, values, types)))
        rows = list(zip(*(columns[name] for name in names))) if names else []
        table = cls.from_rows(rows, TableSpec(tuple(specs)), compute_domains=compute_domains)
        table._metadata['source'] = 'columns'
        return table

    @classmethod
    def from_dataframe(
        cls,
        df: 'pd.DataFrame',
        *,
        types: Mapping[str, ColumnType | str] | None = None,
        compute_domains: bool = True,
        source_path: str | None = None,
    ) -> DataTable:
        """Construct from a pandas DataFrame."""
        import pandas as pd

        columns: dict[str, list[Any]] = {}
        for col in df.columns:
            values = df[col].tolist()
            columns[str(col)] = [
                None if (not isinstance(v, (list, tuple, np.ndarray)) and pd.isna(v)) else v
                for v in values
            ]

        table = cls.from_columns(columns, types=types, compute_domains=compute_domains)
        table._metadata['source'] = 'dataframe'
        if source_path:
            table._metadata['source_path'] = source_path
        return table

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        *,
        types: Mapping[str, ColumnType | str] | None = None,
        compute_domains: bool = True,
    ) -> DataTable:
        """Construct from a delimited text file (CSV, TSV)."""
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix not in ('.csv', '.tsv'):
            raise ValidationError(f"Unknown file format: {suffix}")

        import pandas as pd
        sep = '\t' if suffix == '.tsv' else ','
        df = pd.read_csv(path, sep=sep)
        return cls.from_dataframe(
            df, types=types, compute_domains=compute_domains, source_path=str(path)
        )


_IN_MEMORY_CAPABILITIES = frozenset({
    CAPABILITY_MATERIALIZED,
    CAPABILITY_STREAMING,
    CAPABILITY_REPEATABLE,
})


def _resolve_type(
    name: str,
    values: Sequence[Any],
    types: Mapping[str, ColumnType | str] | None,
) -> ColumnType:
    if types is None or name not in types:
        return infer_column_type(values)
    declared = types[name]
    if isinstance(declared, ColumnType):
        return declared
    try:
        return ColumnType(declared)
    except ValueError:
        valid = [t.value for t in ColumnType]
        raise ValidationError(
            f"{name}: unknown column type {declared!r}. Must be one of {valid}"
        ) from None


def _with_computed_domains(spec: TableSpec, rows: tuple[tuple[Any, ...], ...]) -> TableSpec:
    columns = []
    for i, col in enumerate(spec.columns):
        if col.type is ColumnType.NOMINAL and col.domain is None:
            col = col.with_domain(compute_domain((row[i] for row in rows), col.name))
        columns.append(col)
    return TableSpec(tuple(columns))
