import statsmodels.formula.api as smf

from regparallel.internal.calculations import as_finite

from .base import ModelFamily


def _fit_negative_binomial(formula, data, **kwargs):
    return smf.negativebinomial(formula, data=data, **kwargs).fit(disp=0)


class NegativeBinomialFamily(ModelFamily):
    """
    Negative binomial regression for overdispersed counts.  Rate ratios are reported in the 'OR' columns.

    The dispersion is reported as Theta (= 1 / alpha, as in R's glm.nb) along with its standard error (SEtheta)
    obtained by the delta method.  The 'alpha' parameter itself is not reported as a term.
    Models fit with a fixed-alpha NegativeBinomial GLM family report Theta without a standard error.
    """

    name = "negative_binomial"
    extra_columns = ["Theta", "SEtheta"]
    hidden_terms = ["alpha"]

    def default_fit_function(self):
        return _fit_negative_binomial

    def extra_statistics(self, variable, fitted, table):
        if "alpha" in table.index:
            alpha = as_finite(table.loc["alpha", "Beta"])
            alpha_se = as_finite(table.loc["alpha", "StandardError"])
        else:
            # GLM with a NegativeBinomial family has a fixed alpha
            family = getattr(getattr(fitted, "model", None), "family", None)
            alpha = as_finite(getattr(family, "alpha", None))
            alpha_se = None
        if alpha is None or alpha == 0:
            return {"Theta": None, "SEtheta": None}
        theta = as_finite(1 / alpha)
        theta_se = None if alpha_se is None else as_finite(alpha_se / alpha ** 2)
        return {"Theta": theta, "SEtheta": theta_se}
