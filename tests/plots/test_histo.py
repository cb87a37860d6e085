"""Tests for the one-sample histogram."""

import numpy as np
import pandas as pd
import pytest
from matplotlib.axes import Axes

from statsplot.plots import get_caption, get_subtitle, histostats
from statsplot.plots.histo import centrality_value


def test_centrality_value():
    values = np.array([1.0, 2.0, 3.0, 10.0])

    assert centrality_value(values)[0] == pytest.approx(4.0)
    assert centrality_value(values, "nonparametric")[0] == pytest.approx(2.5)
    assert "trimmed" in centrality_value(values, "robust")[1]


def test_histostats_parametric(mtcars):
    ax = histostats(mtcars, x="mpg", test_value=20, seed=1)

    assert isinstance(ax, Axes)
    assert get_subtitle(ax).startswith("$t$(31) = ")
    assert r"$\log_e(BF_{01})$" in get_caption(ax)
    texts = [t.get_text() for t in ax.texts]
    assert r"$\hat{\mu}_{mean}$ = 20.09" in texts


def test_histostats_nonparametric_centrality(mtcars):
    ax = histostats(mtcars, x="mpg", test_value=20, type="np", seed=1)

    assert get_subtitle(ax).startswith(r"$\log_e(V)$ = ")
    assert get_caption(ax) is None
    texts = [t.get_text() for t in ax.texts]
    assert r"$\hat{\mu}_{median}$ = 19.20" in texts


def test_histostats_mix_adds_proportion_axis(mtcars):
    ax = histostats(mtcars, x="mpg", bar_measure="mix", binwidth=2, seed=1)

    assert len(ax.figure.axes) == 2
    assert ax.figure.axes[1].get_ylabel() == "proportion"


def test_histostats_test_value_line(mtcars):
    ax = histostats(mtcars, x="mpg", test_value=25, test_value_line=True, centrality_plotting=False, seed=1)

    xs = [line.get_xdata()[0] for line in ax.lines]
    assert 25 in xs


def test_histostats_single_value_falls_back_to_n():
    ax = histostats(pd.DataFrame({"v": [3.0]}), x="v", bf_message=False)

    assert get_subtitle(ax) == "$n$ = 1"


def test_histostats_invalid_bar_measure(mtcars):
    with pytest.raises(ValueError, match="bar_measure"):
        histostats(mtcars, x="mpg", bar_measure="percent")


def test_histostats_non_numeric(mtcars):
    with pytest.raises(ValueError, match="numeric"):
        histostats(mtcars, x="model")
