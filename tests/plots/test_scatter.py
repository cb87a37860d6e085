"""Tests for the correlation scatterplot."""

import logging

import pytest

from statsplot.plots import get_subtitle, scatterstats

PEARSON = (
    r"$t$(30) = -9.56, $p$ < 0.001, $r_{Pearson}$ = -0.87, "
    r"CI$_{95\%}$ [-0.93, -0.74], $n_{pairs}$ = 32"
)


def test_scatterstats_with_marginals(mtcars):
    ax = scatterstats(mtcars, x="wt", y="mpg")

    # joint axes plus the two marginals
    assert len(ax.figure.axes) == 3
    assert get_subtitle(ax) == PEARSON
    assert get_subtitle(ax.figure) == PEARSON
    assert ax.get_xlabel() == "wt"


def test_scatterstats_without_marginals(mtcars):
    ax = scatterstats(mtcars, x="wt", y="mpg", marginal=False, title="Weight and mileage")

    assert len(ax.figure.axes) == 1
    assert get_subtitle(ax) == PEARSON
    assert ax.get_title(loc="left") == "Weight and mileage"


@pytest.mark.parametrize("marginal_type", ["histogram", "boxplot", "density", "violin"])
def test_scatterstats_marginal_types(mtcars, marginal_type):
    ax = scatterstats(mtcars, x="wt", y="mpg", marginal_type=marginal_type)

    assert len(ax.figure.axes) == 3


def test_scatterstats_nonparametric(mtcars):
    ax = scatterstats(mtcars, x="wt", y="mpg", type="np", marginal=False)

    assert get_subtitle(ax).startswith(r"$\log_e(S)$ = 9.24")


def test_scatterstats_lowess(mtcars):
    ax = scatterstats(mtcars, x="wt", y="mpg", method="lowess", marginal=False)

    assert get_subtitle(ax) == PEARSON


def test_scatterstats_labels_selected_points(mtcars):
    ax = scatterstats(
        mtcars, x="wt", y="mpg", marginal=False, label_var="model", label_expression="mpg > 30",
    )

    labels = {t.get_text() for t in ax.texts} & set(mtcars["model"])
    assert labels == {"Fiat 128", "Honda Civic", "Toyota Corolla", "Lotus Europa"}


def test_scatterstats_bayes_falls_back_to_n(mtcars, caplog):
    with caplog.at_level(logging.WARNING, logger="statsplot"):
        ax = scatterstats(mtcars, x="wt", y="mpg", type="bayes", marginal=False)

    assert get_subtitle(ax) == "$n$ = 32"
    assert "not available" in caplog.text


def test_scatterstats_invalid_marginal_type(mtcars):
    with pytest.raises(ValueError, match="marginal_type"):
        scatterstats(mtcars, x="wt", y="mpg", marginal_type="rug")


def test_scatterstats_invalid_method(mtcars):
    with pytest.raises(ValueError, match="method"):
        scatterstats(mtcars, x="wt", y="mpg", method="loess")
