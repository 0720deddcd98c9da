import statsmodels.api as sm
import statsmodels.formula.api as smf

from regparallel.internal.errors import ConfigurationError

from .base import ModelFamily


def _fit_ols(formula, data, **kwargs):
    return smf.ols(formula, data=data, **kwargs).fit()


def _fit_logistic(formula, data, **kwargs):
    return smf.glm(
        formula, data=data, family=sm.families.Binomial(link=sm.families.links.Logit()), **kwargs
    ).fit()


class LinearFamily(ModelFamily):
    """
    Linear regression.  Results are reported on the natural scale, with confidence bounds on the Beta.

    The default fit function is statsmodels OLS (`smf.ols(formula, data).fit()`).
    """

    name = "linear"
    statistic_name = "t"
    ratio_name = None

    def default_fit_function(self):
        return _fit_ols


class LogisticFamily(ModelFamily):
    """
    Logistic regression (binomial family, logit link).  Odds ratios are reported.

    The default fit function is a statsmodels GLM with a Binomial family.
    """

    name = "logistic"

    def default_fit_function(self):
        return _fit_logistic


class BayesianLogisticFamily(LogisticFamily):
    """
    Bayesian logistic regression, reported the same way as logistic regression.

    There is no default fit function: a `fit_function` returning an object with the statsmodels results interface
    (posterior means as `params`, posterior standard deviations as `bse`) must be provided.
    """

    name = "bayesian_logistic"

    def default_fit_function(self):
        raise ConfigurationError(
            f"A 'fit_function' must be provided for the '{self.name}' model family"
        )
