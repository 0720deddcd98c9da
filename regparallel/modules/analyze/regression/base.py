import warnings
from abc import ABCMeta, abstractmethod
from typing import Callable, Dict, List, Optional

import numpy as np
import pandas as pd

from regparallel.internal.calculations import as_finite, confidence_bounds, exponentiate
from regparallel.internal.errors import FitFailure, NormalizationWarning
from regparallel.internal.utilities import collect_output, collect_warnings

from ..types import Failure, FitOutcome, ResultRow, Success
from ..utils import unquote_term

# fit_function(formula, data, **kwargs) -> fitted model (statsmodels results interface)
FitFunction = Callable[..., object]


class ModelFamily(metaclass=ABCMeta):
    """
    Abstract Base Class for the model families that can be fit for each variable.

    A family wraps a fit function, turning whatever it returns (or raises) into a FitOutcome, and knows which
    statistics can be extracted from its fitted models.  Fitted models are expected to provide the statsmodels
    results interface: `params`, `bse`, `tvalues` and `pvalues`.

    Class attributes
    ----------------
    name: the name used to select the family
    statistic_name: column name of the test statistic ('t' or 'Z')
    ratio_name: column name of the exponentiated estimate ('OR', 'HR'), or None to report bounds on the Beta
    extra_columns: family-specific model statistics, repeated on every row of a model

    Notes
    -----
    These are the abstract methods:
    * default_fit_function() -> FitFunction
    """

    name = ""
    statistic_name = "Z"
    ratio_name: Optional[str] = "OR"
    extra_columns: List[str] = []
    # Parameters that are reported as family-specific statistics rather than terms
    hidden_terms: List[str] = []

    def __str__(self):
        return self.__class__.__name__

    @abstractmethod
    def default_fit_function(self) -> FitFunction:
        """Return the fit function used when none is provided"""

    def columns(self) -> List[str]:
        """Result columns, in order"""
        columns = ["Variable", "Term", "Beta", "StandardError", self.statistic_name, "P"]
        columns += self.extra_columns
        if self.ratio_name is None:
            columns += ["BetaLower", "BetaUpper"]
        else:
            columns += [self.ratio_name, f"{self.ratio_name}lower", f"{self.ratio_name}upper"]
        return columns

    def get_default_result_dict(self, variable) -> Dict:
        """Placeholder row for a variable whose model could not be fit"""
        result = {c: np.nan for c in self.columns()}
        result["Variable"] = variable
        result["Term"] = None
        return result

    def row_to_dict(self, row: ResultRow) -> Dict:
        result = {
            "Variable": row.variable,
            "Term": row.term,
            "Beta": row.beta,
            "StandardError": row.standard_error,
            self.statistic_name: row.statistic,
            "P": row.p,
        }
        for c in self.extra_columns:
            result[c] = row.extras.get(c, None)
        if self.ratio_name is None:
            result["BetaLower"] = row.lower
            result["BetaUpper"] = row.upper
        else:
            result[self.ratio_name] = row.ratio
            result[f"{self.ratio_name}lower"] = row.ratio_lower
            result[f"{self.ratio_name}upper"] = row.ratio_upper
        return result

    def fit(
        self,
        variable: str,
        formula: str,
        data: pd.DataFrame,
        fit_function: FitFunction,
        z: float,
        **kwargs,
    ) -> FitOutcome:
        """
        Fit the model for one variable and extract its rows.
        Any error is returned as a Failure.  Warnings and printed output are recorded on the outcome rather than
        shown (printed output is only captured while `route_output` is active, as it is during a scheduled run).
        """
        with collect_warnings() as captured, collect_output() as output:
            try:
                fitted = fit_function(formula, data, **kwargs)
                self._check_converged(fitted)
                rows = self.extract_rows(variable, fitted, z)
            except Exception as e:
                return Failure(
                    variable=variable,
                    formula=formula,
                    warnings=tuple(captured),
                    reason=str(e) or e.__class__.__name__,
                    output=output.getvalue(),
                )
        return Success(
            variable=variable,
            formula=formula,
            warnings=tuple(captured),
            rows=tuple(rows),
            output=output.getvalue(),
        )

    @staticmethod
    def _check_converged(fitted):
        converged = getattr(fitted, "converged", None)
        if converged is None:
            mle_retvals = getattr(fitted, "mle_retvals", None)
            if isinstance(mle_retvals, dict):
                converged = mle_retvals.get("converged", None)
        if converged is not None and not converged:
            raise FitFailure("model did not converge")

    @staticmethod
    def _get_statistic(fitted, name, n_params) -> np.ndarray:
        """Get one of the per-parameter statistics, or missing values if it can't be calculated"""
        try:
            values = getattr(fitted, name)
        except (AttributeError, ValueError, ArithmeticError, np.linalg.LinAlgError):
            values = None
        if values is None:
            return np.full(n_params, np.nan)
        return np.asarray(values, dtype=float).reshape(n_params)

    def coefficient_table(self, fitted) -> pd.DataFrame:
        """Beta, StandardError, Statistic, and P for each term of the fitted model"""
        params = fitted.params
        if isinstance(params, pd.Series):
            names = list(params.index)
        else:
            names = list(fitted.model.exog_names)
        beta = np.asarray(params, dtype=float).reshape(len(names))
        se = self._get_statistic(fitted, "bse", len(names))
        statistic = self._get_statistic(fitted, "tvalues", len(names))
        with np.errstate(divide="ignore", invalid="ignore"):
            statistic = np.where(np.isnan(statistic), beta / se, statistic)
        pvalues = self._get_statistic(fitted, "pvalues", len(names))
        return pd.DataFrame(
            {"Beta": beta, "StandardError": se, "Statistic": statistic, "P": pvalues},
            index=[unquote_term(n) for n in names],
        )

    def extra_statistics(self, variable: str, fitted, table: pd.DataFrame) -> Dict[str, Optional[float]]:
        """Family-specific model statistics.  None by default."""
        return dict()

    def extract_rows(self, variable: str, fitted, z: float) -> List[ResultRow]:
        """Normalize a fitted model into one ResultRow per term"""
        table = self.coefficient_table(fitted)
        extras = self.extra_statistics(variable, fitted, table)
        table = table.loc[[t not in self.hidden_terms for t in table.index]]

        rows = []
        for term, values in table.iterrows():
            beta = as_finite(values["Beta"])
            se = as_finite(values["StandardError"])
            lower, upper = confidence_bounds(beta, se, z)
            row = ResultRow(
                variable=variable,
                term=term,
                beta=beta,
                standard_error=se,
                statistic=as_finite(values["Statistic"]),
                p=as_finite(values["P"]),
                lower=lower,
                upper=upper,
                ratio=exponentiate(beta) if self.ratio_name else None,
                ratio_lower=exponentiate(lower) if self.ratio_name else None,
                ratio_upper=exponentiate(upper) if self.ratio_name else None,
                extras=dict(extras),
            )
            missing = row.missing_fields(with_ratio=self.ratio_name is not None)
            if len(missing) > 0:
                warnings.warn(
                    f"'{term}' is missing {', '.join(missing)}",
                    NormalizationWarning,
                )
            rows.append(row)
        return rows
