"""
PyRegStats: streaming linear regression with coefficient statistics.

Fits linear and polynomial regression models over row-oriented tables with
nominal (dummy-coded), numeric and vector columns, one row at a time, and
reports R-style coefficient statistics.

Submodules:
    core: Tables, monitors, result envelope, exceptions
    regression: Column plans, encoding, the learner and its statistics
"""

__version__ = "0.1.0"

from pyregstats import regression
from pyregstats.core.table import DataTable
from pyregstats.core.monitor import ExecutionContext
from pyregstats.regression import fit

__all__ = [
    "__version__",
    "regression",
    "DataTable",
    "ExecutionContext",
    "fit",
]
