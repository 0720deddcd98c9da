"""
Analyze
========

Functions used to run one regression per variable and combine the results

  .. autofunction:: regparallel
  .. autofunction:: add_corrected_pvalues
  .. autofunction:: correct_pvalues
  .. autofunction:: filter_terms
  .. autofunction:: partition

"""

from regparallel.internal.errors import ConfigurationError, FitFailure, NormalizationWarning

from .blocks import default_block_size, partition
from .formula import FormulaTemplate, render
from .regparallel import RegParallel, regparallel
from .scheduler import NestedScheduler, default_cores
from .types import Block, Failure, FitOutcome, ResultRow, Success
from .utils import add_corrected_pvalues, correct_pvalues, filter_terms
from . import regression

__all__ = [
    "regparallel",
    "RegParallel",
    "FormulaTemplate",
    "render",
    "partition",
    "default_block_size",
    "NestedScheduler",
    "default_cores",
    "add_corrected_pvalues",
    "correct_pvalues",
    "filter_terms",
    "regression",
    "Block",
    "FitOutcome",
    "Success",
    "Failure",
    "ResultRow",
    "ConfigurationError",
    "FitFailure",
    "NormalizationWarning",
]

# Constants
required_result_columns = ["Variable", "Term", "Beta", "StandardError", "P", "P.adjust"]
corrected_pvalue_column = "P.adjust"

__all__.append("required_result_columns")
__all__.append("corrected_pvalue_column")
