import numpy as np
import pandas as pd
import pytest
from pandas.testing import assert_frame_equal

from regparallel.modules.analyze import (
    ConfigurationError,
    add_corrected_pvalues,
    correct_pvalues,
    filter_terms,
)

PVALUES = np.array([0.001, 0.2, 0.04, 0.03, 0.5, 0.0004, 0.9, 0.01])


def test_none_is_identity():
    assert np.array_equal(correct_pvalues(PVALUES, "none"), PVALUES)
    assert np.array_equal(correct_pvalues(PVALUES, None), PVALUES)
    with_na = np.array([0.1, np.nan, 0.3])
    assert np.array_equal(correct_pvalues(with_na, "none"), with_na, equal_nan=True)


def test_bonferroni():
    corrected = correct_pvalues(PVALUES, "bonferroni")
    assert np.allclose(corrected, np.minimum(1, PVALUES * len(PVALUES)))


def test_holm():
    corrected = correct_pvalues([0.01, 0.04, 0.03], "holm")
    assert np.allclose(corrected, [0.03, 0.06, 0.06])


@pytest.mark.parametrize("method", ["BH", "fdr", "bh"])
def test_benjamini_hochberg(method):
    corrected = correct_pvalues([0.01, 0.04, 0.03, 0.005], method)
    assert np.allclose(corrected, [0.02, 0.04, 0.04, 0.02])


@pytest.mark.parametrize(
    "method,expected",
    [
        # Values from R: p.adjust(c(0.5, 0.01, 0.025, 0.02), method)
        ("hochberg", [0.5, 0.04, 0.05, 0.05]),
        ("hommel", [0.5, 1 / 30, 0.05, 0.04]),
    ],
)
def test_step_up_methods(method, expected):
    corrected = correct_pvalues([0.5, 0.01, 0.025, 0.02], method)
    assert np.allclose(corrected, expected)


@pytest.mark.parametrize("method", ["BY", "by"])
def test_benjamini_yekutieli(method):
    # BH values scaled by 1 + 1/2 + 1/3 + 1/4
    corrected = correct_pvalues([0.01, 0.04, 0.03, 0.005], method)
    assert np.allclose(corrected, [1 / 24, 1 / 12, 1 / 12, 1 / 24])


@pytest.mark.parametrize("method", ["bonferroni", "holm", "hochberg", "hommel", "BH", "BY"])
def test_corrected_at_least_raw(method):
    corrected = correct_pvalues(PVALUES, method)
    assert corrected.shape == PVALUES.shape
    assert (corrected >= PVALUES - 1e-12).all()
    assert (corrected <= 1).all()


def test_missing_pvalues_are_not_tests():
    corrected = correct_pvalues([0.01, np.nan, 0.02], "bonferroni")
    assert np.isnan(corrected[1])
    assert np.allclose(corrected[[0, 2]], [0.02, 0.04])
    assert np.isnan(correct_pvalues([np.nan, np.nan], "BH")).all()


def test_unknown_method():
    with pytest.raises(ConfigurationError):
        correct_pvalues(PVALUES, "sidak")


def test_add_corrected_pvalues_keeps_order():
    df = pd.DataFrame({"Variable": ["a", "b", "c"], "P": [0.5, 0.01, np.nan]})
    add_corrected_pvalues(df, method="bonferroni")
    assert list(df["Variable"]) == ["a", "b", "c"]
    assert np.allclose(df["P.adjust"].iloc[:2], [1.0, 0.02])
    assert np.isnan(df["P.adjust"].iloc[2])


def test_add_corrected_pvalues_missing_column():
    with pytest.raises(ValueError):
        add_corrected_pvalues(pd.DataFrame({"pvalue": [0.1]}))


@pytest.fixture()
def terms():
    return pd.DataFrame(
        {
            "Variable": ["x1", "x1", "x1", "x1", "x2", "x3"],
            "Term": ["Intercept", "x1", "age", "race[T.2]", "x2", None],
            "P": [0.1, 0.2, 0.3, 0.4, 0.5, np.nan],
        }
    )


def test_filter_intercept(terms):
    result = filter_terms(terms, exclude_intercept=True)
    assert list(result["Term"].fillna("NA")) == ["x1", "age", "race[T.2]", "x2", "NA"]
    result = filter_terms(terms, exclude_intercept=False)
    assert_frame_equal(result, terms)


def test_filter_terms(terms):
    result = filter_terms(terms, exclude_terms=["age", "race"], exclude_intercept=False)
    assert list(result["Term"].fillna("NA")) == ["Intercept", "x1", "x2", "NA"]
    # A name is also a prefix: 'x' drops every x term
    result = filter_terms(terms, exclude_terms="x", exclude_intercept=True)
    assert list(result["Term"].fillna("NA")) == ["age", "race[T.2]", "NA"]


def test_filter_terms_by_prefix():
    df = pd.DataFrame(
        {
            "Variable": ["g", "g", "g", "g", "g"],
            "Term": ["g", "PC1", "PC2", "raceB", "race[T.C]"],
            "P": [0.1, 0.2, 0.3, 0.4, 0.5],
        }
    )
    assert list(filter_terms(df, exclude_terms=["PC"])["Term"]) == ["g", "raceB", "race[T.C]"]
    # R prints categorical levels directly after the name
    assert list(filter_terms(df, exclude_terms=["race"])["Term"]) == ["g", "PC1", "PC2"]


def test_filter_keeps_failures(terms):
    result = filter_terms(terms, exclude_terms=["x3"], exclude_intercept=True)
    assert result["Term"].isna().sum() == 1
