"""Tests for pie and bar charts of categorical data."""

import pandas as pd
import pytest
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from statsplot.plots import barstats, get_caption, get_subtitle, piestats
from statsplot.plots.categorical import slice_text


def test_slice_text():
    assert slice_text(12, 32) == "38%"
    assert slice_text(12, 32, perc_k=1) == "37.5%"
    assert slice_text(12, 32, "counts") == "n = 12"
    assert slice_text(12, 32, "both") == "38%\n(n = 12)"
    assert slice_text(0, 0) == "NA"
    with pytest.raises(ValueError):
        slice_text(1, 2, "ratio")


def test_piestats_goodness_of_fit(mtcars):
    fig = piestats(mtcars, "cyl", seed=1)

    assert isinstance(fig, Figure)
    assert len(fig.axes) == 1
    assert get_subtitle(fig).startswith(r"$\chi^2_{gof}$(2) = 2.31, $p$ = 0.315")
    slices = [t.get_text() for t in fig.axes[0].texts]
    assert slices == ["34%", "22%", "44%"]


def test_piestats_ratio(mtcars):
    fig = piestats(mtcars, "am", ratio=[0.5, 0.5], seed=1)

    assert get_subtitle(fig).startswith(r"$\chi^2_{gof}$(1) = ")


def test_piestats_with_condition(mtcars):
    fig = piestats(mtcars, "am", condition="cyl", title="Transmission by cylinders", seed=1)

    assert len(fig.axes) == 3
    assert get_subtitle(fig).startswith(r"$\chi^2$(2) = 8.74, $p$ = 0.013, $V$ = 0.52")
    headers = [ax.get_title() for ax in fig.axes]
    assert headers[0].startswith("4\n(n = 11)\n")
    assert r"$\chi^2_{gof}$(1) = 7.14" in headers[2]
    assert fig.get_suptitle() == "Transmission by cylinders"


def test_piestats_without_facet_tests(mtcars):
    fig = piestats(mtcars, "am", condition="cyl", facet_proptest=False, seed=1)

    assert [ax.get_title() for ax in fig.axes] == ["4\n(n = 11)", "6\n(n = 7)", "8\n(n = 14)"]


def test_piestats_counts_column():
    data = pd.DataFrame(
        {
            "survived": ["yes", "no", "yes", "no"],
            "class": ["first", "first", "third", "third"],
            "n": [20, 5, 10, 25],
        }
    )

    fig = piestats(data, "survived", condition="class", counts="n", seed=1)

    assert get_subtitle(fig).endswith("$n$ = 60")


def test_piestats_paired():
    data = pd.DataFrame(
        {
            "before": pd.Categorical(["yes"] * 15 + ["no"] * 7, categories=["yes", "no"]),
            "after": pd.Categorical(["yes"] * 5 + ["no"] * 10 + ["yes"] * 2 + ["no"] * 5, categories=["yes", "no"]),
        }
    )

    fig = piestats(data, "before", condition="after", paired=True, seed=1)

    assert get_subtitle(fig).startswith(r"$\chi^2_{McNemar}$(1) = 5.33")


def test_piestats_caption(mtcars):
    fig = piestats(mtcars, "cyl", caption="mtcars", seed=1)

    assert get_caption(fig) == "mtcars"


def test_barstats(mtcars):
    ax = barstats(mtcars, "am", "cyl", seed=1)

    assert isinstance(ax, Axes)
    assert get_subtitle(ax).startswith(r"$\chi^2$(2) = 8.74, $p$ = 0.013")
    labels = [t.get_text() for t in ax.get_xticklabels()]
    assert labels == ["4\n(n = 11)", "6\n(n = 7)", "8\n(n = 14)"]
    texts = [t.get_text() for t in ax.texts]
    assert "**" in texts
    assert ax.get_ylim() == (0, 110)


def test_barstats_counts_labels(mtcars):
    ax = barstats(mtcars, "am", "cyl", label="counts", proptest_plotting=False, seed=1)

    texts = {t.get_text() for t in ax.texts}
    assert "n = 12" in texts
    assert "**" not in texts


def test_barstats_missing_column(mtcars):
    with pytest.raises(ValueError, match="not found"):
        barstats(mtcars, "am", "cylinders")


def test_piestats_zero_count_level_shows_n_only():
    data = pd.DataFrame({"eye": ["a", "b", "c"], "freq": [10, 5, 0]})

    fig = piestats(data, "eye", counts="freq", seed=1)

    assert get_subtitle(fig) == "$n$ = 15"
