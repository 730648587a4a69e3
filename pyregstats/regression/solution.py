"""
Regression solution types.

RegressionContent holds a fitted model together with its column plan and
derives the coefficient statistics (standard errors, t-values, p-values)
from the coefficient vector and its covariance matrix.

RegressionSolution is the user-facing wrapper returned by fit(): the
content plus run metadata (timing, solver name, warnings).
"""

from __future__ import annotations

from typing import Any, Callable, Sequence, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from pyregstats.core.exceptions import ValidationError
from pyregstats.core.result import Result
from pyregstats.core.validation import check_array, check_length, check_square
from pyregstats.regression._common import ResultsTableRow
from pyregstats.regression.plan import ColumnPlan

if TYPE_CHECKING:
    import pandas as pd


REDUNDANT_TERMS_MESSAGE = (
    "The following columns are redundant and will not contribute to the model: {terms}. "
    "Coefficient statistics will not be accurate and contain missing information."
)

RESULTS_TABLE_COLUMNS = ('Parameter', 'Degree', 'Coefficient', 'StdErr', 't-value', 'P>|t|')


def uniform_term_label(index: int, fields: Sequence[str], include_constant: bool = True) -> str:
    """
    Attribute a coefficient index to "<column>[^exponent]" assuming every
    learning field owns exactly one slot per degree.

    Only exact when all fields are plain covariates. Factors and vector
    covariates own several slots, and with those the arithmetic points at
    the wrong column; use ColumnPlan.term_for_index instead.
    """
    position = index - (1 if include_constant else 0)
    size = len(fields)
    column = fields[position % size]
    exponent = position // size + 1
    if exponent > 1:
        return f"{column}^{exponent}"
    return column


def _significance_stars(p: float) -> str:
    """Return significance stars like R."""
    if np.isnan(p):
        return ' '
    if p < 0.001:
        return '***'
    elif p < 0.01:
        return '**'
    elif p < 0.05:
        return '*'
    elif p < 0.1:
        return '.'
    else:
        return ' '


def _format_pvalue(p: float) -> str:
    """Format p-value like R."""
    if np.isnan(p):
        return 'NA'
    if p < 2e-16:
        return '< 2e-16'
    elif p < 0.001:
        return f'{p:.2e}'
    else:
        return f'{p:.4f}'


def _missing_to_none(value: float) -> float | None:
    return None if np.isnan(value) else float(value)


class RegressionContent:
    """
    Statistics of a fitted linear regression.

    Coefficient vectors are laid out intercept first (when a constant was
    estimated), then the encoded parameters in plan order: the degree-1
    block in schema order, followed by the degree-2 block and so on.

    Call init() once after construction; it zeroes coefficients the solver
    could not estimate and records a warning naming their terms. After
    init() the content is read-only.

    Args:
        plan: Column plan the model was fitted with
        coefficients: (coefficient_count,) fitted coefficients
        covariance: (coefficient_count, coefficient_count) coefficient covariance
        value_count: Rows used by the solver
        r_squared: Coefficient of determination
        adjusted_r_squared: R-squared adjusted for the parameter count
        means: (parameter_count,) mean of every encoded parameter
        offset_value: User-defined intercept when no constant was estimated
        warning_message: Warning carried over from the learner, if any
        term_labeler: index -> "<column>[^exponent]" used by init() to
            name redundant coefficients; defaults to plan.term_for_index
    """

    def __init__(
        self,
        plan: ColumnPlan,
        coefficients: NDArray[np.floating[Any]],
        covariance: NDArray[np.floating[Any]],
        value_count: int,
        r_squared: float,
        adjusted_r_squared: float,
        means: NDArray[np.floating[Any]] | None = None,
        offset_value: float = 0.0,
        warning_message: str | None = None,
        term_labeler: Callable[[int], str] | None = None,
    ):
        coefficients = check_array(coefficients, 'coefficients').ravel()
        covariance = check_array(covariance, 'covariance')
        check_length(coefficients, plan.coefficient_count, 'coefficients')
        check_square(covariance, 'covariance')
        check_length(covariance, plan.coefficient_count, 'covariance')
        if means is None:
            means = np.full(plan.parameter_count, np.nan, dtype=np.float64)
        else:
            means = check_array(means, 'means').ravel()
            check_length(means, plan.parameter_count, 'means')

        self._plan = plan
        self._coefficients = coefficients.copy()
        self._covariance = covariance.copy()
        self._value_count = int(value_count)
        self._r_squared = float(r_squared)
        self._adjusted_r_squared = float(adjusted_r_squared)
        self._means = means.copy()
        self._offset_value = float(offset_value) if not plan.include_constant else 0.0
        self._warning_message = warning_message
        self._term_labeler = term_labeler if term_labeler is not None else plan.term_for_index
        self._initialized = False

    # === Initialization ===

    def init(self) -> None:
        """
        Zero coefficients that are NaN because of structural singularity and
        record a warning naming the redundant terms. Idempotent.
        """
        if self._initialized:
            return
        self._initialized = True

        redundant = np.flatnonzero(np.isnan(self._coefficients))
        if len(redundant) == 0:
            return

        self._coefficients[redundant] = 0.0
        terms = ", ".join(self._term_labeler(int(i)) for i in redundant)
        message = REDUNDANT_TERMS_MESSAGE.format(terms=terms)
        if self._warning_message:
            self._warning_message = f"{self._warning_message}\n{message}"
        else:
            self._warning_message = message

    # === Model Description ===

    @property
    def plan(self) -> ColumnPlan:
        return self._plan

    @property
    def target(self) -> str:
        return self._plan.target

    @property
    def learning_fields(self) -> tuple[str, ...]:
        return self._plan.learning_columns

    @property
    def factors(self) -> tuple[str, ...]:
        return self._plan.factors

    @property
    def covariates(self) -> tuple[str, ...]:
        return self._plan.covariates

    @property
    def factor_domain_values(self) -> dict[str, tuple[Any, ...]]:
        """Ordered domain of every factor, reference category first."""
        return dict(self._plan.factor_domains)

    @property
    def max_exponent(self) -> int:
        return self._plan.max_exponent

    @property
    def include_constant(self) -> bool:
        return self._plan.include_constant

    @property
    def offset_value(self) -> float:
        """User-defined intercept (0.0 when a constant was estimated)."""
        return self._offset_value

    @property
    def parameter_count(self) -> int:
        return self._plan.parameter_count

    @property
    def warning_message(self) -> str | None:
        return self._warning_message

    # === Fit ===

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._coefficients.copy()

    @property
    def covariance(self) -> NDArray[np.floating[Any]]:
        return self._covariance.copy()

    @property
    def value_count(self) -> int:
        return self._value_count

    @property
    def r_squared(self) -> float:
        return self._r_squared

    @property
    def adjusted_r_squared(self) -> float:
        return self._adjusted_r_squared

    @property
    def means(self) -> NDArray[np.floating[Any]]:
        """Mean of every encoded parameter over the rows the solver used."""
        return self._means.copy()

    @property
    def degrees_of_freedom(self) -> int:
        """Residual degrees of freedom: rows minus estimated parameters."""
        return (self._value_count - self._plan.parameter_count
                - (1 if self._plan.include_constant else 0))

    # === Coefficient Statistics ===

    def std_errors(self) -> NDArray[np.floating[Any]]:
        """
        Standard errors: sqrt(|diag(covariance)|).

        The absolute value turns small negative round-off variances into
        small positive ones.
        """
        return np.sqrt(np.abs(np.diag(self._covariance)))

    def t_values(self) -> NDArray[np.floating[Any]]:
        """Coefficient divided by its standard error."""
        with np.errstate(divide='ignore', invalid='ignore'):
            return self._coefficients / self.std_errors()

    def p_values(self) -> NDArray[np.floating[Any]]:
        """
        Two-tailed Student-t p-values.

        All NaN when the residual degrees of freedom are not positive.
        """
        df = self.degrees_of_freedom
        if df <= 0:
            return np.full(len(self._coefficients), np.nan, dtype=np.float64)
        return 2.0 * stats.t.sf(np.abs(self.t_values()), df)

    # === Parameter Naming ===

    def parameter_names(self) -> list[str]:
        """
        Degree-1 parameter names in schema order.

        "col=value" for every non-reference factor category, "col" for a
        covariate, "col[i]" for element i of a vector covariate.
        """
        return list(self._plan.parameter_names())

    def values_by_parameter(
        self,
        matrix: NDArray[np.floating[Any]],
    ) -> dict[tuple[str, int], float]:
        """
        Map (parameter name, degree) to the matching entry of ``matrix``.

        ``matrix`` is a coefficient-shaped row vector or any matrix whose
        first row is one (the intercept entry, if any, is skipped).
        """
        matrix = np.asarray(matrix, dtype=np.float64)
        row = matrix[0] if matrix.ndim == 2 else matrix
        check_length(row, self._plan.coefficient_count, 'matrix row')

        names = self._plan.parameter_names()
        index = 1 if self._plan.include_constant else 0
        values = {}
        for degree in range(1, self._plan.max_exponent + 1):
            for name in names:
                values[(name, degree)] = float(row[index])
                index += 1
        return values

    def coefficients_by_parameter(self) -> dict[tuple[str, int], float]:
        return self.values_by_parameter(self._coefficients)

    def std_errors_by_parameter(self) -> dict[tuple[str, int], float]:
        return self.values_by_parameter(self.std_errors())

    def t_values_by_parameter(self) -> dict[tuple[str, int], float]:
        return self.values_by_parameter(self.t_values())

    def p_values_by_parameter(self) -> dict[tuple[str, int], float]:
        return self.values_by_parameter(self.p_values())

    # === Intercept ===

    def _require_constant(self) -> None:
        if not self._plan.include_constant:
            raise ValidationError(
                "The model has no estimated intercept (include_constant=False); "
                f"the fixed offset is {self._offset_value}"
            )

    def intercept(self) -> float:
        self._require_constant()
        return float(self._coefficients[0])

    def intercept_std_err(self) -> float:
        self._require_constant()
        return float(self.std_errors()[0])

    def intercept_t_value(self) -> float:
        self._require_constant()
        return float(self.t_values()[0])

    def intercept_p_value(self) -> float:
        self._require_constant()
        return float(self.p_values()[0])

    # === Tabular Output ===

    def results_table(self) -> tuple[ResultsTableRow, ...]:
        """
        One row per (parameter, degree), degree-major, then an "Intercept"
        row with degree 0 when a constant was estimated.

        NaN statistics are None.
        """
        coefficients = self.coefficients_by_parameter()
        std_errors = self.std_errors_by_parameter()
        t_values = self.t_values_by_parameter()
        p_values = self.p_values_by_parameter()

        rows = []
        for degree in range(1, self._plan.max_exponent + 1):
            for name in self._plan.parameter_names():
                key = (name, degree)
                rows.append(ResultsTableRow(
                    parameter=name,
                    degree=degree,
                    coefficient=_missing_to_none(coefficients[key]),
                    std_err=_missing_to_none(std_errors[key]),
                    t_value=_missing_to_none(t_values[key]),
                    p_value=_missing_to_none(p_values[key]),
                ))

        if self._plan.include_constant:
            rows.append(ResultsTableRow(
                parameter='Intercept',
                degree=0,
                coefficient=_missing_to_none(self.intercept()),
                std_err=_missing_to_none(self.intercept_std_err()),
                t_value=_missing_to_none(self.intercept_t_value()),
                p_value=_missing_to_none(self.intercept_p_value()),
            ))
        return tuple(rows)

    def to_dataframe(self) -> 'pd.DataFrame':
        """Results table as a DataFrame; missing statistics are pd.NA."""
        import pandas as pd

        records = [
            (r.parameter, r.degree, r.coefficient, r.std_err, r.t_value, r.p_value)
            for r in self.results_table()
        ]
        df = pd.DataFrame.from_records(records, columns=list(RESULTS_TABLE_COLUMNS))
        for col in RESULTS_TABLE_COLUMNS[2:]:
            df[col] = df[col].astype('Float64')
        return df

    def summary(self) -> str:
        """R-style coefficient table."""
        p_values = self.p_values()
        std_errors = self.std_errors()
        t_values = self.t_values()
        labels = []
        if self._plan.include_constant:
            labels.append('(Intercept)')
        names = self._plan.parameter_names()
        for degree in range(1, self._plan.max_exponent + 1):
            for name in names:
                labels.append(name if degree == 1 else f"{name}^{degree}")
        width = max(15, max((len(label) for label in labels), default=0))

        lines = [
            f"Linear Regression: {self.target}",
            "",
            "Coefficients:",
            f" {'':>{width}s} {'Estimate':>10s} {'Std. Error':>10s} "
            f"{'t value':>8s} {'Pr(>|t|)':>10s}",
        ]
        for i, label in enumerate(labels):
            stars = _significance_stars(p_values[i])
            lines.append(
                f" {label:>{width}s} {self._coefficients[i]:10.4f} "
                f"{std_errors[i]:10.4f} {t_values[i]:8.3f} "
                f"{_format_pvalue(p_values[i]):>10s} {stars}"
            )
        lines.append("---")
        lines.append("Signif. codes:  0 '***' 0.001 '**' 0.01 '*' 0.05 '.' 0.1 ' ' 1")
        lines.append("")
        if not self._plan.include_constant:
            lines.append(f"Fixed intercept (offset): {self._offset_value}")
        lines.append(
            f"Multiple R-squared: {self._r_squared:.4f},  "
            f"Adjusted R-squared: {self._adjusted_r_squared:.4f}"
        )
        lines.append(
            f"{self._value_count} observations, {self.degrees_of_freedom} degrees of freedom"
        )
        if self._warning_message:
            lines.append("")
            lines.append(f"Warning: {self._warning_message}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"RegressionContent(target={self.target!r}, "
            f"parameters={self._plan.parameter_count}, n={self._value_count}, "
            f"r_squared={self._r_squared:.4f})"
        )


class RegressionSolution:
    """
    User-facing regression results.

    Wraps the Result envelope: the RegressionContent plus run metadata.
    """

    def __init__(self, result: Result[RegressionContent]):
        self._result = result

    @property
    def content(self) -> RegressionContent:
        return self._result.params

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._result.params.coefficients

    @property
    def r_squared(self) -> float:
        return self._result.params.r_squared

    @property
    def adjusted_r_squared(self) -> float:
        return self._result.params.adjusted_r_squared

    def results_table(self) -> tuple[ResultsTableRow, ...]:
        return self._result.params.results_table()

    def to_dataframe(self) -> 'pd.DataFrame':
        return self._result.params.to_dataframe()

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def has_warning(self, substring: str) -> bool:
        return self._result.has_warning(substring)

    def summary(self) -> str:
        """Coefficient table followed by run metadata."""
        lines = [self._result.params.summary(), ""]
        lines.append(f"Rows scanned: {self.info.get('rows', 'NA')}, "
                     f"rows skipped: {self.info.get('rows_skipped', 'NA')}")
        lines.append(f"Backend: {self.backend_name}")
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")
        return "\n".join(lines)

    def __repr__(self) -> str:
        content = self._result.params
        return (
            f"RegressionSolution(target={content.target!r}, n={content.value_count}, "
            f"r_squared={content.r_squared:.4f})"
        )
