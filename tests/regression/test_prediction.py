"""
Tests for prediction with a fitted RegressionContent.
"""

import numpy as np
import pytest

from pyregstats import fit
from pyregstats.core.exceptions import ValidationError
from pyregstats.core.table import DataTable
from pyregstats.regression.design import TrainingDataset
from pyregstats.regression.prediction import mean_squared_error, predict, prediction_errors
from pyregstats.regression.settings import LearnerSettings


class TestPredict:

    def test_line(self, line_table):
        content = fit(line_table, target='y').content
        dataset = TrainingDataset(line_table, content.plan)
        np.testing.assert_allclose(predict(content, dataset), [2.0, 4.0, 6.0, 8.0, 10.0],
                                   atol=1e-8)
        np.testing.assert_allclose(prediction_errors(content, dataset), 0.0, atol=1e-8)
        assert mean_squared_error(content, dataset) == pytest.approx(0.0, abs=1e-12)

    def test_new_rows_with_missing_input(self, line_table):
        content = fit(line_table, target='y').content
        new = DataTable.from_columns({'x': [10.0, None], 'y': [20.0, 1.0]})
        dataset = TrainingDataset(new, content.plan)
        predictions = predict(content, dataset)
        assert predictions[0] == pytest.approx(20.0)
        assert np.isnan(predictions[1])
        assert mean_squared_error(content, dataset) == pytest.approx(0.0, abs=1e-12)

    def test_offset_added(self):
        x = [1.0, 2.0, 3.0]
        table = DataTable.from_columns({'x': x, 'y': [5.0 + 2.0 * v for v in x]})
        content = fit(table, target='y', include_constant=False, offset_value=5.0).content
        predictions = predict(content, TrainingDataset(table, content.plan))
        np.testing.assert_allclose(predictions, [7.0, 9.0, 11.0], atol=1e-10)

    def test_factor_model(self, color_table):
        content = fit(color_table, target='y').content
        dataset = TrainingDataset(color_table, content.plan)
        np.testing.assert_allclose(predict(content, dataset)[:3], [1.0, 3.0, 6.0], atol=1e-10)

    def test_layout_mismatch(self, line_table, mixed_table):
        content = fit(line_table, target='y').content
        dataset = TrainingDataset.build(mixed_table, LearnerSettings(target='y'))
        with pytest.raises(ValidationError, match="parameters"):
            predict(content, dataset)

    def test_all_missing(self, line_table):
        content = fit(line_table, target='y').content
        new = DataTable.from_columns({'x': [None], 'y': [1.0]}, types={'x': 'numeric'})
        assert np.isnan(mean_squared_error(content, TrainingDataset(new, content.plan)))
