"""Pytest configuration and fixtures."""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest
from pathlib import Path

DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture
def mtcars_path():
    """Path to the bundled mtcars CSV."""
    return DATA_DIR / "mtcars.csv"


@pytest.fixture
def mtcars(mtcars_path):
    """Motor Trend car road tests (32 cars, 12 columns)."""
    return pd.read_csv(mtcars_path)


@pytest.fixture
def sleep_data():
    """Student's sleep data: extra sleep of 10 subjects under two drugs."""
    return pd.DataFrame(
        {
            "extra": [0.7, -1.6, -0.2, -1.2, -0.1, 3.4, 3.7, 0.8, 0.0, 2.0,
                      1.9, 0.8, 1.1, 0.1, -0.1, 4.4, 5.5, 1.6, 4.6, 3.4],
            "group": ["1"] * 10 + ["2"] * 10,
            "ID": [str(i) for i in range(1, 11)] * 2,
        }
    )


@pytest.fixture
def repeated_data():
    """Three repeated conditions for 12 subjects with a clear trend."""
    rng = np.random.default_rng(42)
    subjects = np.repeat(np.arange(12), 3)
    condition = np.tile(["pre", "mid", "post"], 12)
    base = np.repeat(rng.normal(10, 2, 12), 3)
    shift = np.tile([0.0, 1.5, 3.0], 12)
    return pd.DataFrame(
        {
            "subject": subjects,
            "condition": pd.Categorical(condition, categories=["pre", "mid", "post"]),
            "score": base + shift + rng.normal(0, 0.5, 36),
        }
    )


@pytest.fixture(autouse=True)
def close_figures():
    """Close all figures after each test."""
    yield
    plt.close("all")
