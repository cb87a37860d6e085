"""Tests for correlation matrices."""

import numpy as np
import pytest
from matplotlib.axes import Axes

from statsplot.plots import corrmat, get_caption, get_subtitle
from statsplot.plots.corrmat import correlation_table

VARS = ["mpg", "wt", "hp"]


def _cell_texts(ax):
    return [t for t in ax.texts if t.get_gid() is None]


def test_correlation_table(mtcars):
    table = correlation_table(mtcars, VARS)

    assert list(table["parameter1"]) == ["mpg", "mpg", "wt"]
    assert list(table["parameter2"]) == ["wt", "hp", "hp"]
    assert table.loc[0, "estimate"] == pytest.approx(-0.8677, abs=1e-4)
    assert table.loc[0, "conf_low"] == pytest.approx(-0.9338, abs=1e-4)
    assert (table["p_value_adjusted"] >= table["p_value"]).all()
    assert (table["n"] == 32).all()


def test_correlation_table_defaults_to_numeric_columns(mtcars):
    table = correlation_table(mtcars)

    # 11 numeric columns, the model name is skipped
    assert len(table) == 55
    assert "model" not in set(table["parameter1"]) | set(table["parameter2"])


def test_correlation_matrix_output(mtcars):
    r = corrmat(mtcars, VARS, output="correlations")

    assert list(r.index) == VARS
    assert np.allclose(np.diag(r.values), 1.0)
    assert r.loc["mpg", "wt"] == r.loc["wt", "mpg"]
    assert r.loc["mpg", "wt"] == pytest.approx(-0.8677, abs=1e-4)


def test_p_value_matrix_output(mtcars):
    p = corrmat(mtcars, VARS, output="p-values", p_adjust_method="none")

    assert np.allclose(np.diag(p.values), 0.0)
    assert p.loc["mpg", "wt"] < 0.001


def test_ci_output(mtcars):
    table = corrmat(mtcars, VARS, type="np", output="ci")

    assert {"conf_low", "conf_high", "estimate"}.issubset(table.columns)
    assert table.loc[0, "estimate"] == pytest.approx(-0.8864, abs=1e-4)


def test_corrmat_plot(mtcars):
    ax = corrmat(mtcars, VARS)

    assert isinstance(ax, Axes)
    assert get_subtitle(ax) == "$n$ = 32"
    caption = get_caption(ax)
    assert "Adjustment: Holm" in caption
    assert "correlation: Pearson" in caption


@pytest.mark.parametrize("matrix_type,cells", [("full", 9), ("upper", 6), ("lower", 6)])
def test_corrmat_matrix_types(mtcars, matrix_type, cells):
    ax = corrmat(mtcars, VARS, matrix_type=matrix_type)

    assert len(_cell_texts(ax)) == cells


def test_corrmat_pairwise_complete_n(mtcars):
    data = mtcars[VARS].copy()
    data.loc[:1, "hp"] = np.nan

    ax = corrmat(data, type="robust")

    assert get_subtitle(ax) == "$n$ = 30-32"
    assert "percentage bend" in get_caption(ax)


def test_corrmat_rejects_bayes(mtcars):
    with pytest.raises(ValueError, match="Bayesian"):
        corrmat(mtcars, VARS, type="bayes")


@pytest.mark.parametrize(
    "kwargs",
    [{"output": "html"}, {"matrix_type": "diagonal"}, {"cor_vars": ["mpg"]}, {"cor_vars": ["mpg", "kpl"]}],
)
def test_corrmat_invalid_arguments(mtcars, kwargs):
    kwargs.setdefault("cor_vars", VARS)
    with pytest.raises(ValueError):
        corrmat(mtcars, **kwargs)
