"""
Tests for column plan construction and learner settings.

Validates:
    - Slot layout (factor |domain|-1, vector length, covariate 1, degree-major)
    - Domain ordering and reference categories
    - Vector length policies
    - Every ConfigurationError path, raised before any row is encoded
"""

import pytest

from pyregstats.core.exceptions import ConfigurationError, ValidationError
from pyregstats.core.table import ColumnSpec, ColumnType, DataTable, TableSpec
from pyregstats.regression.plan import (
    MAX_PARAMETER_COUNT,
    ColumnRole,
    build_column_plan,
    category_sort_key,
)
from pyregstats.regression.settings import LearnerSettings


def _plan(columns, types=None, **settings):
    table = DataTable.from_columns(columns, types=types)
    settings.setdefault('target', 'y')
    return build_column_plan(table, LearnerSettings(**settings))


# ═══════════════════════════════════════════════════════════════════════
# Settings
# ═══════════════════════════════════════════════════════════════════════


class TestLearnerSettings:

    def test_defaults(self):
        s = LearnerSettings(target='y')
        assert s.max_exponent == 1
        assert s.include_constant
        assert not s.fail_on_missing
        assert s.vector_length_policy == 'max'

    def test_learning_columns_stored_as_tuple(self):
        s = LearnerSettings(target='y', learning_columns=['a', 'b'])
        assert s.learning_columns == ('a', 'b')

    def test_target_in_learning_columns(self):
        with pytest.raises(ValidationError, match="must not contain the target"):
            LearnerSettings(target='y', learning_columns=['a', 'y'])

    def test_duplicate_learning_columns(self):
        with pytest.raises(ValidationError, match="duplicate"):
            LearnerSettings(target='y', learning_columns=['a', 'a'])

    @pytest.mark.parametrize("value", [0, -1, 1.5, True])
    def test_bad_max_exponent(self, value):
        with pytest.raises(ValidationError, match="max_exponent"):
            LearnerSettings(target='y', max_exponent=value)

    def test_bad_policy(self):
        with pytest.raises(ValidationError, match="vector_length_policy"):
            LearnerSettings(target='y', vector_length_policy='min')

    def test_bad_interval(self):
        with pytest.raises(ValidationError, match="cancel_check_interval"):
            LearnerSettings(target='y', cancel_check_interval=0)

    def test_empty_target(self):
        with pytest.raises(ValidationError, match="target"):
            LearnerSettings(target='')


# ═══════════════════════════════════════════════════════════════════════
# Layout
# ═══════════════════════════════════════════════════════════════════════


class TestLayout:

    def test_factor_keeps_first_seen_order_unsorted(self, color_plan):
        assert color_plan.factor_domains['Color'] == ('Red', 'Green', 'Blue')
        assert color_plan.parameter_names() == ('Color=Green', 'Color=Blue')
        assert color_plan.parameter_count == 2
        assert color_plan.coefficient_count == 3

    def test_factor_sorted(self, color_table):
        plan = build_column_plan(color_table, LearnerSettings(target='y'))
        assert plan.factor_domains['Color'] == ('Blue', 'Green', 'Red')
        assert plan.parameter_names() == ('Color=Green', 'Color=Red')

    def test_mixed_roles(self, mixed_table):
        plan = build_column_plan(mixed_table, LearnerSettings(target='y'))
        assert plan.learning_columns == ('g', 'x', 'v')
        assert plan.roles == (ColumnRole.FACTOR, ColumnRole.COVARIATE,
                              ColumnRole.VECTOR_COVARIATE)
        assert plan.factors == ('g',)
        assert plan.covariates == ('x', 'v')
        assert plan.vector_lengths['v'] == 2
        assert plan.parameter_names() == ('g=b', 'g=c', 'x', 'v[0]', 'v[1]')
        assert plan.role_of('y') is ColumnRole.TARGET

    def test_parameter_count_is_sum_of_slots(self, mixed_table):
        plan = build_column_plan(mixed_table, LearnerSettings(target='y', max_exponent=3))
        assert plan.base_parameter_count == 5
        assert plan.parameter_count == 15
        assert sum(slot.width for slot in plan.slots) == plan.parameter_count

    def test_degree_major_slots(self, mixed_table):
        plan = build_column_plan(mixed_table, LearnerSettings(target='y', max_exponent=2))
        g1, g2 = plan.slots_for('g')
        assert (g1.degree, g1.start, g1.stop) == (1, 0, 2)
        assert (g2.degree, g2.start, g2.stop) == (2, 5, 7)
        (x2,) = [s for s in plan.slots_for('x') if s.degree == 2]
        assert list(x2.indices()) == [7]

    def test_term_for_index(self, mixed_table):
        plan = build_column_plan(mixed_table, LearnerSettings(target='y', max_exponent=2))
        assert plan.term_for_index(0) == 'Intercept'
        assert plan.term_for_index(1) == 'g'
        assert plan.term_for_index(2) == 'g'
        assert plan.term_for_index(3) == 'x'
        assert plan.term_for_index(6) == 'g^2'
        assert plan.term_for_index(8) == 'x^2'
        assert plan.term_for_index(10) == 'v^2'

    def test_term_for_index_without_constant(self, mixed_table):
        plan = build_column_plan(
            mixed_table, LearnerSettings(target='y', include_constant=False)
        )
        assert plan.term_for_index(0) == 'g'
        with pytest.raises(IndexError):
            plan.term_for_index(5)

    def test_learning_columns_order(self):
        plan = _plan({'a': [1.0], 'b': [2.0], 'y': [3.0]}, learning_columns=['b', 'a'])
        assert plan.parameter_names() == ('b', 'a')
        assert plan.column_indices == (1, 0)

    def test_single_category_factor_has_no_slots(self):
        plan = _plan({'c': ['only', 'only'], 'x': [1.0, 2.0], 'y': [1.0, 2.0]})
        assert plan.parameter_names() == ('x',)

    def test_category_sort_key_numbers_first(self):
        assert sorted(['b', 10, 'a', 2], key=category_sort_key) == [2, 10, 'a', 'b']


# ═══════════════════════════════════════════════════════════════════════
# Vector columns
# ═══════════════════════════════════════════════════════════════════════


class TestVectorLength:

    def test_max_policy(self):
        plan = _plan({'v': [[1.0, 2.0], [1.0, 2.0, 3.0], None], 'y': [1.0, 2.0, 3.0]})
        assert plan.vector_lengths['v'] == 3

    def test_exact_policy_mismatch(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _plan({'v': [[1.0, 2.0], [1.0, 2.0, 3.0]], 'y': [1.0, 2.0]},
                  vector_length_policy='exact')
        assert exc_info.value.reason == 'vector_length_mismatch'
        assert exc_info.value.column == 'v'

    def test_exact_policy_uniform(self):
        plan = _plan({'v': [[1.0, 2.0], [3.0, 4.0]], 'y': [1.0, 2.0]},
                     vector_length_policy='exact')
        assert plan.vector_lengths['v'] == 2

    def test_zero_length(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _plan({'v': [[], []], 'y': [1.0, 2.0]})
        assert exc_info.value.reason == 'vector_length'

    def test_all_missing(self):
        with pytest.raises(ConfigurationError, match="no elements"):
            _plan({'v': [None, None], 'y': [1.0, 2.0]}, types={'v': 'numeric_list'})

    def test_bit_strings(self):
        plan = _plan({'b': ['0101', '11'], 'y': [1.0, 2.0]}, types={'b': 'bit_vector'})
        assert plan.vector_lengths['b'] == 4
        assert plan.parameter_names() == ('b[0]', 'b[1]', 'b[2]', 'b[3]')

    def test_bytes(self):
        plan = _plan({'b': [b'\x01\x02\x03', b'\x04'], 'y': [1.0, 2.0]})
        assert plan.roles == (ColumnRole.VECTOR_COVARIATE,)
        assert plan.vector_lengths['b'] == 3


# ═══════════════════════════════════════════════════════════════════════
# Target
# ═══════════════════════════════════════════════════════════════════════


class TestTarget:

    def test_numeric_target(self, color_plan):
        assert color_plan.target_role is ColumnRole.COVARIATE
        assert color_plan.target_domain is None
        assert color_plan.target_index == 1

    def test_nominal_target_sorted(self):
        plan = _plan({'x': [1.0, 2.0, 3.0], 'y': ['mid', 'lo', 'hi']})
        assert plan.target_role is ColumnRole.FACTOR
        assert plan.target_domain == ('hi', 'lo', 'mid')

    def test_nominal_target_unsorted(self):
        plan = _plan({'x': [1.0, 2.0, 3.0], 'y': ['mid', 'lo', 'hi']},
                     sort_target_categories=False)
        assert plan.target_domain == ('mid', 'lo', 'hi')

    def test_reference_category_moved_to_end(self):
        plan = _plan({'x': [1.0, 2.0, 3.0], 'y': ['mid', 'lo', 'hi']},
                     target_reference_category='hi')
        assert plan.target_domain == ('lo', 'mid', 'hi')

    def test_unknown_reference_category(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _plan({'x': [1.0, 2.0], 'y': ['lo', 'hi']}, target_reference_category='max')
        assert exc_info.value.reason == 'unknown_reference_category'

    def test_reference_category_on_numeric_target(self):
        with pytest.raises(ConfigurationError, match="numeric"):
            _plan({'x': [1.0], 'y': [1.0]}, target_reference_category='a')

    def test_nominal_target_without_domain(self):
        spec = TableSpec((
            ColumnSpec('x', ColumnType.NUMERIC),
            ColumnSpec('y', ColumnType.NOMINAL),
        ))
        table = DataTable.from_rows([(1.0, 'b'), (2.0, 'a')], spec)
        plan = build_column_plan(table, LearnerSettings(target='y'))
        assert plan.target_domain == ('a', 'b')

    def test_vector_target(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _plan({'x': [1.0], 'y': [[1.0, 2.0]]})
        assert exc_info.value.reason == 'target_type'


# ═══════════════════════════════════════════════════════════════════════
# Configuration errors
# ═══════════════════════════════════════════════════════════════════════


class TestConfigurationErrors:

    def test_missing_domain(self):
        spec = TableSpec((
            ColumnSpec('c', ColumnType.NOMINAL),
            ColumnSpec('y', ColumnType.NUMERIC),
        ))
        table = DataTable.from_rows([('a', 1.0)], spec)
        with pytest.raises(ConfigurationError) as exc_info:
            build_column_plan(table, LearnerSettings(target='y'))
        assert exc_info.value.reason == 'missing_domain'
        assert exc_info.value.column == 'c'

    def test_missing_domain_raised_before_any_row_is_read(self):
        spec = TableSpec((
            ColumnSpec('c', ColumnType.NOMINAL),
            ColumnSpec('y', ColumnType.NUMERIC),
        ))
        table = DataTable.from_rows([('a', 1.0)], spec)
        with pytest.raises(ConfigurationError):
            build_column_plan(table, LearnerSettings(target='y'))
        assert table.open_cursors == 0

    def test_empty_domain(self):
        spec = TableSpec((
            ColumnSpec('c', ColumnType.NOMINAL, ()),
            ColumnSpec('y', ColumnType.NUMERIC),
        ))
        table = DataTable.from_rows([(None, 1.0)], spec)
        with pytest.raises(ConfigurationError) as exc_info:
            build_column_plan(table, LearnerSettings(target='y'))
        assert exc_info.value.reason == 'empty_domain'

    def test_unknown_target(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _plan({'x': [1.0]}, target='nope')
        assert exc_info.value.reason == 'unknown_column'

    def test_unknown_learning_column(self):
        with pytest.raises(ConfigurationError, match="'z' does not exist"):
            _plan({'x': [1.0], 'y': [1.0]}, learning_columns=['z'])

    def test_no_learning_columns(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _plan({'y': [1.0]})
        assert exc_info.value.reason == 'no_learning_columns'

    def test_parameter_count_overflow(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _plan({'x': [1.0], 'y': [1.0]}, max_exponent=MAX_PARAMETER_COUNT)
        assert exc_info.value.reason == 'parameter_count'
