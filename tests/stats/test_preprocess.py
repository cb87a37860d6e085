"""Tests for data preparation helpers."""

import numpy as np
import pandas as pd
import pytest

from statsplot.stats.preprocess import (
    as_factor,
    compute_group_stats,
    ensure_numeric,
    factor_levels,
    long_to_paired,
    mean_labels,
    paired_to_long,
    select_columns,
    uncount,
)


def test_select_columns_renames_and_drops_missing():
    data = pd.DataFrame({"a": [1.0, 2.0, np.nan], "b": ["u", "v", "w"], "c": [0, 0, 0]})

    df = select_columns(data, x="b", y="a")

    assert list(df.columns) == ["x", "y"]
    assert len(df) == 2


def test_select_columns_skips_none_roles():
    data = pd.DataFrame({"a": [1, 2]})

    df = select_columns(data, x="a", counts=None)

    assert list(df.columns) == ["x"]


def test_select_columns_missing_column():
    with pytest.raises(ValueError, match="not found"):
        select_columns(pd.DataFrame({"a": [1]}), x="zzz")


def test_select_columns_rejects_non_dataframe():
    with pytest.raises(ValueError, match="DataFrame"):
        select_columns([1, 2, 3], x="a")


def test_ensure_numeric():
    assert ensure_numeric(pd.Series([1, 2]), "a").dtype == float
    with pytest.raises(ValueError, match="must be numeric"):
        ensure_numeric(pd.Series(["a", "b"]), "a")
    with pytest.raises(ValueError):
        ensure_numeric(pd.Series([True, False]), "flag")


def test_as_factor_numeric_levels_sorted(mtcars):
    cyl = as_factor(mtcars["cyl"])

    assert factor_levels(cyl) == ["4", "6", "8"]
    assert cyl.iloc[0] == "6"


def test_as_factor_explicit_levels_and_unused_dropped():
    series = pd.Series(["b", "a", "b", "c"])

    out = as_factor(series, levels=["c", "b", "a", "d"])

    assert factor_levels(out) == ["c", "b", "a"]


def test_as_factor_categorical_keeps_order():
    series = pd.Series(pd.Categorical(["lo", "hi"], categories=["hi", "mid", "lo"]))

    assert factor_levels(as_factor(series)) == ["hi", "lo"]


def test_uncount():
    data = pd.DataFrame({"main": ["a", "b", "c"], "counts": [2, 0, 3]})

    out = uncount(data)

    assert list(out["main"]) == ["a", "a", "c", "c", "c"]
    assert "counts" not in out.columns


def test_uncount_negative():
    with pytest.raises(ValueError, match="negative"):
        uncount(pd.DataFrame({"main": ["a"], "counts": [-1]}))


def test_long_to_paired_with_subject(sleep_data):
    wide = long_to_paired(sleep_data, x="group", y="extra", subject="ID")

    assert wide.shape == (10, 2)
    assert list(wide.columns) == ["1", "2"]
    assert wide.loc["1", "2"] == pytest.approx(1.9)


def test_long_to_paired_by_order_drops_incomplete():
    data = pd.DataFrame({"x": ["a", "a", "a", "b", "b"], "y": [1.0, 2.0, 3.0, 4.0, 5.0]})

    wide = long_to_paired(data)

    assert len(wide) == 2
    assert list(wide["b"]) == [4.0, 5.0]


def test_long_to_paired_duplicate_subject():
    data = pd.DataFrame({"x": ["a", "a"], "y": [1.0, 2.0], "id": [1, 1]})

    with pytest.raises(ValueError, match="at most one observation"):
        long_to_paired(data, subject="id")


def test_paired_to_long():
    wide = pd.DataFrame({"pre": [1.0, 2.0], "post": [3.0, 4.0]})

    long = paired_to_long(wide)

    assert len(long) == 4
    assert list(long["x"].cat.categories) == ["pre", "post"]
    assert list(long.columns) == ["subject", "x", "y"]


def test_compute_group_stats(mtcars):
    data = pd.DataFrame({"x": as_factor(mtcars["cyl"]), "y": mtcars["mpg"]})

    stats = compute_group_stats(data)

    assert list(stats["level"]) == ["4", "6", "8"]
    assert list(stats["n"]) == [11, 7, 14]
    assert stats.loc[0, "mean"] == pytest.approx(26.663636, abs=1e-5)
    assert stats.loc[2, "median"] == pytest.approx(15.2)


def test_mean_labels():
    stats = pd.DataFrame({"mean": [2.2857, 3.1]})

    assert mean_labels(stats, k=2) == [r"$\hat{\mu}$ = 2.29", r"$\hat{\mu}$ = 3.10"]
