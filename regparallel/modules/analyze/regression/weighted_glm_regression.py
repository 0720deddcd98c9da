from regparallel.internal.errors import ConfigurationError

from .base import ModelFamily


class SurveyGLMFamily(ModelFamily):
    """
    Survey-weighted generalized linear model.
    Test statistics are t values (using the design degrees of freedom) and odds ratios are reported.

    Notes
    -----
    The survey design is specific to each dataset, so there is no default fit function.  Provide a
    `fit_function` such as:

    >>> def fit(formula, data):
    ...     return smf.glm(formula, data, family=sm.families.Binomial(), var_weights=data["weight"]).fit()
    """

    name = "survey_glm"
    statistic_name = "t"

    def default_fit_function(self):
        raise ConfigurationError(
            f"A 'fit_function' must be provided for the '{self.name}' model family"
        )
