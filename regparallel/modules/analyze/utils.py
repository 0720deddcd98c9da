import re
from typing import Iterable, Optional

import numpy as np
import pandas as pd
from statsmodels.stats.multitest import multipletests

from regparallel.internal.errors import ConfigurationError

INTERCEPT_TERMS = {"Intercept", "(Intercept)", "const"}

# Correction names (as accepted by R's p.adjust) mapped to statsmodels `multipletests` methods
CORRECTION_METHODS = {
    "none": None,
    "bonferroni": "bonferroni",
    "holm": "holm",
    "hochberg": "simes-hochberg",
    "hommel": "hommel",
    "bh": "fdr_bh",
    "fdr": "fdr_bh",
    "by": "fdr_by",
}


def validate_correction_method(method: Optional[str]) -> Optional[str]:
    """Return the statsmodels name of a correction method, or None for no correction"""
    if method is None:
        return None
    if not isinstance(method, str) or method.lower() not in CORRECTION_METHODS:
        raise ConfigurationError(
            f"Unknown multiple testing correction '{method}', known values are {', '.join(CORRECTION_METHODS)}"
        )
    return CORRECTION_METHODS[method.lower()]


def correct_pvalues(pvalues: Iterable[float], method: Optional[str] = "none") -> np.ndarray:
    """
    Correct a pooled set of pvalues for multiple testing.
    Missing pvalues are not counted as a test and stay missing.

    Examples
    --------
    >>> correct_pvalues([0.01, 0.2], method="bonferroni")
    array([0.02, 0.4 ])
    """
    sm_method = validate_correction_method(method)
    pvalues = np.asarray(pvalues, dtype=float)
    if sm_method is None:
        return pvalues.copy()
    corrected = np.full(pvalues.shape, np.nan)
    tested = ~np.isnan(pvalues)
    if tested.sum() > 0:
        corrected[tested] = multipletests(pvalues[tested], method=sm_method)[1]
    return corrected


def add_corrected_pvalues(
    data: pd.DataFrame,
    method: Optional[str] = "none",
    pvalue: str = "P",
    name: str = "P.adjust",
):
    """
    Add a column of corrected pvalues (in-place).  Row order is unchanged.
    Rows with a missing pvalue are not counted as a test.

    Parameters
    ----------
    data:
        A dataframe that will be modified in-place to add corrected pvalues
    method:
        One of 'none', 'bonferroni', 'holm', 'hochberg', 'hommel', 'BH' (or 'fdr'), 'BY'
    pvalue:
        Name of a column in data that the calculations will be based on.
    name:
        Name of the column that is added

    Returns
    -------
    None

    Examples
    --------
    >>> regparallel.analyze.add_corrected_pvalues(results, method="BH")
    """
    if pvalue not in data.columns:
        raise ValueError(f"'{pvalue}' is not a column in the passed data")
    data[name] = correct_pvalues(data[pvalue].astype(float).values, method=method)


def unquote_term(term: str) -> str:
    """Remove Q('...') quoting (and escapes inside it) from each part of a (possibly interaction) term name"""
    QUOTED_NAME_REGEX = r"^Q\('(.*)'\)(\[.*\])?$"
    parts = []
    for part in str(term).split(":"):
        match = re.search(QUOTED_NAME_REGEX, part)
        if match is None:
            parts.append(part)
        else:
            name = re.sub(r"\\(.)", r"\1", match.group(1))
            parts.append(name + (match.group(2) or ""))
    return ":".join(parts)


def filter_terms(
    data: pd.DataFrame,
    exclude_terms: Optional[Iterable[str]] = None,
    exclude_intercept: bool = True,
    term: str = "Term",
) -> pd.DataFrame:
    """
    Drop result rows for unwanted terms.

    Parameters
    ----------
    data:
        Results with a column of term names
    exclude_terms:
        Names or prefixes of terms to drop.  Any term starting with one of them is dropped, which covers
        categorical levels ('race' matches 'race[T.2]' and R's 'raceB') and numbered series ('PC' matches 'PC1').
    exclude_intercept:
        True by default.  If True, drop the intercept term.
    term:
        Name of the column containing term names

    Returns
    -------
    result: pd.DataFrame
        Rows without a term (placeholders for failed fits) are always kept
    """
    if isinstance(exclude_terms, str):
        exclude_terms = [exclude_terms]
    elif exclude_terms is None:
        exclude_terms = []

    terms = data[term]
    has_term = terms.notna()
    drop = pd.Series(False, index=data.index)
    for name in exclude_terms:
        drop |= has_term & terms.astype(str).str.startswith(str(name))
    if exclude_intercept:
        drop |= has_term & terms.isin(INTERCEPT_TERMS)
    return data.loc[~drop].copy()
