import numpy as np
import pandas as pd
import pytest


# Dataset fixtures
@pytest.fixture()
def logistic_data():
    """Binary outcome 'y' with 100 candidate variables, only x1 and x2 are associated"""
    rng = np.random.RandomState(1855)
    n = 300
    df = pd.DataFrame({f"x{i}": rng.normal(size=n) for i in range(1, 101)})
    df["age"] = rng.uniform(20, 80, size=n)
    linear_predictor = -0.2 + 1.2 * df["x1"] - 0.8 * df["x2"]
    df["y"] = (rng.uniform(size=n) < 1 / (1 + np.exp(-linear_predictor))).astype(int)
    return df


@pytest.fixture()
def linear_data():
    rng = np.random.RandomState(20)
    n = 150
    df = pd.DataFrame({f"gene{i}": rng.normal(size=n) for i in range(1, 21)})
    df["sex"] = rng.choice(["F", "M"], size=n)
    df["y"] = 2.0 + 0.5 * df["gene1"] + (df["sex"] == "M") * 1.0 + rng.normal(size=n)
    return df


@pytest.fixture()
def count_data():
    rng = np.random.RandomState(7)
    n = 400
    df = pd.DataFrame({f"x{i}": rng.normal(size=n) for i in range(1, 6)})
    mu = np.exp(1.0 + 0.4 * df["x1"])
    # Negative binomial counts with theta = 2
    theta = 2.0
    df["count"] = rng.negative_binomial(theta, theta / (theta + mu))
    return df


@pytest.fixture()
def survival_data():
    rng = np.random.RandomState(11)
    n = 250
    df = pd.DataFrame({f"x{i}": rng.normal(size=n) for i in range(1, 6)})
    df["group"] = rng.binomial(1, 0.5, size=n)
    event_time = rng.exponential(scale=np.exp(-0.7 * df["x1"]))
    censor_time = rng.exponential(scale=2.0, size=n)
    df["time"] = np.minimum(event_time, censor_time)
    df["status"] = (event_time <= censor_time).astype(int)
    return df


@pytest.fixture()
def matched_data():
    """100 matched sets of one case and three controls"""
    rng = np.random.RandomState(3)
    n_sets = 100
    df = pd.DataFrame(
        {
            "set": np.repeat(np.arange(n_sets), 4),
            "case": np.tile([1, 0, 0, 0], n_sets),
        }
    )
    for i in range(1, 4):
        df[f"x{i}"] = rng.normal(size=len(df))
    df.loc[df["case"] == 1, "x1"] += 0.8
    return df
