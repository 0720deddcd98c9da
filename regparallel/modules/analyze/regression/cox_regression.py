import warnings

import numpy as np
from statsmodels.discrete.conditional_models import ConditionalLogit
from statsmodels.duration.hazard_regression import PHReg

from regparallel.internal.calculations import (
    as_finite,
    likelihood_ratio_pvalue,
    score_pvalue,
    wald_pvalue,
)
from regparallel.internal.errors import NormalizationWarning

from .base import ModelFamily


def _fit_phreg(formula, data, **kwargs):
    return PHReg.from_formula(formula, data=data, **kwargs).fit()


def _fit_conditional_logit(formula, data, **kwargs):
    return ConditionalLogit.from_formula(formula, data=data, **kwargs).fit()


class CoxFamily(ModelFamily):
    """
    Cox proportional hazards regression.  Hazard ratios are reported.

    Every row also reports three tests of the whole model against the null model:
    LRT (likelihood ratio), Wald, and LogRank (the score test, which is the log-rank test for a single
    binary variable).

    The default fit function is statsmodels PHReg (`PHReg.from_formula(formula, data, **kwargs).fit()`),
    pass the event indicator as `status` (a column name or array).
    """

    name = "cox"
    ratio_name = "HR"
    extra_columns = ["LRT", "Wald", "LogRank"]

    def default_fit_function(self):
        return _fit_phreg

    def extra_statistics(self, variable, fitted, table):
        model = fitted.model
        params = np.asarray(fitted.params, dtype=float)
        tests = {
            "LRT": lambda: likelihood_ratio_pvalue(model, params, fitted.llf),
            "Wald": lambda: wald_pvalue(params, fitted.cov_params()),
            "LogRank": lambda: score_pvalue(model, len(params)),
        }
        result = dict()
        for name, test in tests.items():
            try:
                result[name] = as_finite(test())
            except (ArithmeticError, ValueError, AttributeError, np.linalg.LinAlgError) as e:
                warnings.warn(f"{name} test could not be calculated: {e}", NormalizationWarning)
                result[name] = None
        return result


class ConditionalLogisticFamily(CoxFamily):
    """
    Conditional logistic regression for matched sets, reported the same way as a Cox model.

    The default fit function is statsmodels ConditionalLogit, pass the matched set as `groups`
    (a column name or array).  The formula should not include an intercept ("y ~ 0 + [*]").
    """

    name = "conditional_logistic"

    def default_fit_function(self):
        return _fit_conditional_logit
