from types import SimpleNamespace

import numpy as np
import pytest
from scipy import stats

import regparallel.internal.calculations as calc


@pytest.mark.parametrize("conf_level,expected", [(95, 1.959964), (99, 2.575829), (90, 1.644854)])
def test_critical_value(conf_level, expected):
    assert np.isclose(calc.critical_value(conf_level), expected, atol=1e-6)


@pytest.mark.parametrize("value", [None, np.nan, np.inf, -np.inf, "abc"])
def test_as_finite_missing(value):
    assert calc.as_finite(value) is None


def test_as_finite():
    assert calc.as_finite(np.float32(0.5)) == 0.5
    assert calc.as_finite("2") == 2.0


def test_confidence_bounds():
    lower, upper = calc.confidence_bounds(1.0, 0.5, 1.959964)
    assert np.isclose(lower, 1.0 - 0.979982)
    assert np.isclose(upper, 1.0 + 0.979982)
    assert calc.confidence_bounds(1.0, None, 1.96) == (None, None)
    assert calc.confidence_bounds(np.nan, 0.5, 1.96) == (None, None)


def test_exponentiate():
    assert np.isclose(calc.exponentiate(np.log(2)), 2)
    assert calc.exponentiate(None) is None
    assert calc.exponentiate(1000) is None


def test_wald_pvalue():
    params = np.array([0.5, -0.2])
    cov = np.diag([0.04, 0.01])
    expected = stats.chi2.sf(0.5 ** 2 / 0.04 + 0.2 ** 2 / 0.01, 2)
    assert np.isclose(calc.wald_pvalue(params, cov), expected)


def test_likelihood_ratio_pvalue():
    model = SimpleNamespace(loglike=lambda params: -100.0)
    assert np.isclose(calc.likelihood_ratio_pvalue(model, [0.3], -98.0), stats.chi2.sf(4.0, 1))


def test_score_pvalue():
    """A quadratic log likelihood with curvature -4 and a score of 2 at zero"""

    def hessian(params):
        return np.array([[-4.0]])

    def no_hessian(params):
        raise NotImplementedError

    def score(params):
        return np.array([2.0 - 4.0 * params[0]])

    expected = stats.chi2.sf(1.0, 1)
    assert np.isclose(calc.score_pvalue(SimpleNamespace(score=score, hessian=hessian), 1), expected)
    # Falls back to a numerical hessian
    assert np.isclose(calc.score_pvalue(SimpleNamespace(score=score, hessian=no_hessian), 1), expected, rtol=1e-4)
