"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pyregstats.core.table import ColumnSpec, ColumnType, DataTable, TableSpec
from pyregstats.regression.plan import build_column_plan
from pyregstats.regression.settings import LearnerSettings


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def line_table():
    """X = 1..5, Y = 2X: an exact line through the origin."""
    return DataTable.from_columns({
        'x': [1.0, 2.0, 3.0, 4.0, 5.0],
        'y': [2.0, 4.0, 6.0, 8.0, 10.0],
    })


@pytest.fixture
def color_table():
    """Nominal column with domain [Red, Green, Blue] in first-seen order."""
    spec = TableSpec((
        ColumnSpec('Color', ColumnType.NOMINAL, ('Red', 'Green', 'Blue')),
        ColumnSpec('y', ColumnType.NUMERIC),
    ))
    rows = [
        ('Red', 1.0), ('Green', 3.0), ('Blue', 6.0),
        ('Red', 1.2), ('Green', 2.9), ('Blue', 6.1),
        ('Red', 0.8), ('Green', 3.1), ('Blue', 5.9),
    ]
    return DataTable.from_rows(rows, spec)


@pytest.fixture
def mixed_table(rng):
    """Factor, covariate and vector column with a known linear signal."""
    n = 60
    groups = ['a', 'b', 'c']
    g = [groups[i % 3] for i in range(n)]
    x = rng.standard_normal(n)
    v = [tuple(rng.standard_normal(2)) for _ in range(n)]
    effect = {'a': 0.0, 'b': 1.5, 'c': -2.0}
    y = [
        1.0 + effect[g[i]] + 2.0 * x[i] + 0.5 * v[i][0] - 1.0 * v[i][1]
        + 0.01 * rng.standard_normal()
        for i in range(n)
    ]
    return DataTable.from_columns(
        {'g': g, 'x': list(x), 'v': v, 'y': y},
    )


@pytest.fixture
def color_plan(color_table):
    return build_column_plan(
        color_table,
        LearnerSettings(target='y', sort_factor_categories=False),
    )
