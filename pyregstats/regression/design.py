"""
Training dataset.

TrainingDataset wraps a table source and a ColumnPlan and yields encoded
rows. It knows it is feeding a regression; the table doesn't.

The dataset holds no rows itself. Each iteration opens a fresh cursor on
the table, encodes one row at a time and closes the cursor when the
iteration ends, fails, or is abandoned.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from pyregstats.core.protocols import TableSource
from pyregstats.regression._common import EncodedRow
from pyregstats.regression.encoding import encode_row
from pyregstats.regression.plan import ColumnPlan, build_column_plan
from pyregstats.regression.settings import LearnerSettings


@dataclass(frozen=True)
class TrainingDataset:
    """
    Lazy, re-iterable sequence of EncodedRow.

    Construction:
        TrainingDataset(table, plan)                 # plan already built
        TrainingDataset.build(table, settings)       # plan built from schema

    Iterating twice scans the table twice with the same plan.
    """
    table: TableSource
    plan: ColumnPlan

    @classmethod
    def build(cls, table: TableSource, settings: LearnerSettings) -> TrainingDataset:
        """Build the column plan for ``table`` and wrap both."""
        return cls(table=table, plan=build_column_plan(table, settings))

    def __iter__(self) -> Iterator[EncodedRow]:
        with self.table.cursor() as cursor:
            for i, row in enumerate(cursor):
                yield encode_row(row, self.plan, row_index=i)

    def row_count(self) -> int:
        """Number of rows in the backing table."""
        return self.table.n_rows

    def parameter_count(self) -> int:
        """Length of every encoded parameter vector."""
        return self.plan.parameter_count
