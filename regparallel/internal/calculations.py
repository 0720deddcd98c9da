from typing import Optional, Tuple

import numpy as np
from scipy import stats
from statsmodels.tools.numdiff import approx_fprime


def critical_value(conf_level: float) -> float:
    """Two-sided standard normal quantile for a confidence level given in percent (95 -> 1.959964)"""
    return float(stats.norm.ppf(1 - (1 - conf_level / 100) / 2))


def as_finite(value) -> Optional[float]:
    """Return the value as a float, or None if it is missing or not finite"""
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if not np.isfinite(value):
        return None
    return value


def confidence_bounds(
    beta: Optional[float], se: Optional[float], z: float
) -> Tuple[Optional[float], Optional[float]]:
    beta = as_finite(beta)
    se = as_finite(se)
    if beta is None or se is None:
        return None, None
    return as_finite(beta - z * se), as_finite(beta + z * se)


def exponentiate(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    with np.errstate(over="ignore"):
        return as_finite(np.exp(value))


def likelihood_ratio_pvalue(model, params, llf) -> float:
    """
    LRT of the fitted model against the null model (all coefficients zero).
    `model` must provide `loglike(params)`, as statsmodels likelihood models do.
    """
    params = np.asarray(params, dtype=float)
    ll_null = model.loglike(np.zeros_like(params))
    lrstat = 2 * (llf - ll_null)
    return float(stats.chi2.sf(lrstat, len(params)))


def wald_pvalue(params, cov) -> float:
    """Joint Wald test that all coefficients are zero"""
    params = np.asarray(params, dtype=float)
    cov = np.asarray(cov, dtype=float)
    wstat = params @ np.linalg.solve(cov, params)
    return float(stats.chi2.sf(wstat, len(params)))


def score_pvalue(model, n_params: int) -> float:
    """
    Score test at beta = 0.  For a Cox model with a single binary covariate this is the log-rank test.
    The hessian is approximated from the score function if the model doesn't provide one.
    """
    zero = np.zeros(n_params)
    score = np.asarray(model.score(zero), dtype=float)
    try:
        hessian = np.asarray(model.hessian(zero), dtype=float)
    except NotImplementedError:
        hessian = approx_fprime(zero, model.score)
    sstat = score @ np.linalg.solve(-np.atleast_2d(hessian), score)
    return float(stats.chi2.sf(sstat, n_params))
