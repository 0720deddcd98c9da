"""
Model Families
==============

Base Class
----------

.. autoclass:: ModelFamily


regparallel.analyze.regparallel
-------------------------------

The `family` parameter can be set to the name of one of the built-in model families, or a custom subclass
(or instance) of `ModelFamily` can be used.

.. autoclass:: LinearFamily

.. autoclass:: LogisticFamily

.. autoclass:: BayesianLogisticFamily

.. autoclass:: SurveyGLMFamily

.. autoclass:: NegativeBinomialFamily

.. autoclass:: CoxFamily

.. autoclass:: ConditionalLogisticFamily

"""

from typing import Type, Union

from regparallel.internal.errors import ConfigurationError

from .base import ModelFamily
from .cox_regression import CoxFamily, ConditionalLogisticFamily
from .glm_regression import BayesianLogisticFamily, LinearFamily, LogisticFamily
from .negative_binomial_regression import NegativeBinomialFamily
from .weighted_glm_regression import SurveyGLMFamily

builtin_model_families = {
    cls.name: cls
    for cls in [
        LinearFamily,
        LogisticFamily,
        CoxFamily,
        ConditionalLogisticFamily,
        NegativeBinomialFamily,
        BayesianLogisticFamily,
        SurveyGLMFamily,
    ]
}


def get_model_family(family: Union[str, ModelFamily, Type[ModelFamily]]) -> ModelFamily:
    """Return a ModelFamily instance from a name, instance, or subclass"""
    if isinstance(family, ModelFamily):
        return family
    elif isinstance(family, str):
        family_cls = builtin_model_families.get(family, None)
        if family_cls is None:
            raise ConfigurationError(
                f"Unknown model family '{family}', known values are {', '.join(builtin_model_families.keys())}"
            )
        return family_cls()
    elif isinstance(family, type) and issubclass(family, ModelFamily):
        return family()
    else:
        raise ConfigurationError(
            f"Incorrect model family type ({type(family)}).  "
            f"A valid string or a subclass of ModelFamily is required."
        )


__all__ = [
    "ModelFamily",
    "LinearFamily",
    "LogisticFamily",
    "BayesianLogisticFamily",
    "SurveyGLMFamily",
    "NegativeBinomialFamily",
    "CoxFamily",
    "ConditionalLogisticFamily",
    "builtin_model_families",
    "get_model_family",
]
