"""Tests for grouped (faceted) plots."""

import numpy as np
import pytest
from matplotlib.figure import Figure

from statsplot.plots import (
    combine_plots,
    get_caption,
    get_subtitle,
    grouped_barstats,
    grouped_betweenstats,
    grouped_corrmat,
    grouped_histostats,
    grouped_piestats,
    grouped_scatterstats,
    grouped_withinstats,
)
from statsplot.plots.grouped import _grid_shape, split_by


def _panel_titles(fig):
    return [ax.get_title(loc="left") for ax in fig.axes if ax.get_title(loc="left")]


@pytest.mark.parametrize(
    "n_panels,ncols,expected",
    [(1, None, (1, 1)), (2, None, (1, 2)), (3, None, (2, 2)), (5, 3, (2, 3))],
)
def test_grid_shape(n_panels, ncols, expected):
    assert _grid_shape(n_panels, ncols) == expected


def test_grid_shape_needs_a_panel():
    with pytest.raises(ValueError):
        _grid_shape(0, None)


def test_combine_plots_removes_unused_cells():
    fig, axes = combine_plots(3, title_text="Overview", caption_text="Source: mtcars")

    assert len(axes) == 3
    assert len(fig.axes) == 3
    assert fig.get_suptitle() == "Overview"
    assert get_caption(fig) == "Source: mtcars"


def test_split_by_drops_missing_levels(mtcars):
    data = mtcars.copy()
    data["am"] = data["am"].map({0: "automatic", 1: "manual"})
    data.loc[0, "am"] = np.nan

    parts = split_by(data, "am")

    assert [level for level, _ in parts] == ["automatic", "manual"]
    assert sum(len(part) for _, part in parts) == 31


def test_split_by_missing_column(mtcars):
    with pytest.raises(ValueError, match="not found"):
        split_by(mtcars, "gears")


def test_grouped_betweenstats(mtcars):
    fig = grouped_betweenstats(mtcars, x="am", y="mpg", grouping_var="cyl", seed=1)

    assert isinstance(fig, Figure)
    assert _panel_titles(fig) == ["cyl: 4", "cyl: 6", "cyl: 8"]
    assert all(get_subtitle(ax).startswith("$t$(") for ax in fig.axes)


def test_grouped_withinstats(sleep_data):
    data = sleep_data.assign(site=["a"] * 5 + ["b"] * 5 + ["a"] * 5 + ["b"] * 5)

    fig = grouped_withinstats(data, x="group", y="extra", grouping_var="site", subject="ID", seed=1)

    assert _panel_titles(fig) == ["site: a", "site: b"]
    assert get_subtitle(fig.axes[0]).startswith("$t$(4) = ")


def test_grouped_histostats(mtcars):
    fig = grouped_histostats(mtcars, x="mpg", grouping_var="am", test_value=20, seed=1)

    assert _panel_titles(fig) == ["am: 0", "am: 1"]


def test_grouped_scatterstats_has_no_marginals(mtcars):
    fig = grouped_scatterstats(mtcars, x="wt", y="mpg", grouping_var="am", title_text="By transmission")

    assert len(fig.axes) == 2
    assert fig.get_suptitle() == "By transmission"
    assert get_subtitle(fig.axes[0]).startswith("$t$(17) = ")


def test_grouped_barstats(mtcars):
    fig = grouped_barstats(mtcars, main="cyl", condition="gear", grouping_var="am", seed=1)

    assert _panel_titles(fig) == ["am: 0", "am: 1"]


def test_grouped_corrmat(mtcars):
    fig = grouped_corrmat(mtcars, grouping_var="am", cor_vars=["mpg", "wt", "hp"], ncols=1)

    assert _panel_titles(fig) == ["am: 0", "am: 1"]
    assert get_subtitle(fig.axes[0]) == "$n$ = 19"


def test_grouped_piestats_uses_subfigures(mtcars):
    fig = grouped_piestats(mtcars, main="cyl", grouping_var="am", caption_text="mtcars", seed=1)

    assert len(fig.subfigs) == 2
    assert fig.subfigs[0].get_suptitle() == "am: 0"
    assert get_subtitle(fig.subfigs[1]).startswith(r"$\chi^2_{gof}$(2) = ")
    assert get_caption(fig) == "mtcars"
