class ConfigurationError(ValueError):
    """Invalid run configuration, raised before any model is fit"""


class FitFailure(Exception):
    """A single variable's model could not be fit"""


class NormalizationWarning(UserWarning):
    """A derived statistic could not be computed for one result row"""
