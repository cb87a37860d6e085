"""Pie charts and percentage bar charts for categorical data."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from matplotlib.axes import Axes
from matplotlib.figure import FigureBase
from matplotlib.patches import Patch

from statsplot.config import PlotConfig, StatsConfig
from statsplot.plots.common import (
    choose_colors,
    n_tick_labels,
    new_axes,
    new_figure,
    set_figure_texts,
    set_texts,
    subtitle_or_n,
)
from statsplot.stats.preprocess import as_factor, factor_levels, select_columns, uncount
from statsplot.subtitles import (
    proportion_tests,
    subtitle_contingency_tab,
    subtitle_onesample_proptest,
)

logger = logging.getLogger(__name__)

SLICE_LABELS = ["percentage", "counts", "both"]


def _prepare(data: pd.DataFrame, main: str, condition: Optional[str], counts: Optional[str]) -> pd.DataFrame:
    df = select_columns(data, main=main, condition=condition, counts=counts)
    if counts is not None:
        df = uncount(df, counts="counts")
    df["main"] = as_factor(df["main"])
    if condition is not None:
        df["condition"] = as_factor(df["condition"])
    return df


def slice_text(count: int, total: int, label: str = "percentage", perc_k: int = 0) -> str:
    """Text for a pie slice or bar segment: "38%", "(n = 12)" or both."""
    if label not in SLICE_LABELS:
        raise ValueError(f"label must be one of {SLICE_LABELS}, got {label}")

    perc = f"{100 * count / total:.{perc_k}f}%" if total > 0 else "NA"
    if label == "percentage":
        return perc
    if label == "counts":
        return f"n = {count}"
    return f"{perc}\n(n = {count})"


def _pie(ax: Axes, freq: pd.Series, colors, slice_label: str, perc_k: int) -> None:
    freq = freq[freq > 0]
    total = int(freq.sum())
    ax.pie(
        freq.to_numpy(),
        colors=[colors[str(lv)] for lv in freq.index],
        labels=[slice_text(int(c), total, slice_label, perc_k) for c in freq],
        labeldistance=0.6,
        startangle=90,
        counterclock=False,
        wedgeprops={"edgecolor": "black", "linewidth": 0.8},
        textprops={"fontsize": 8, "ha": "center"},
    )
    ax.set_aspect("equal")


def piestats(
    data: pd.DataFrame,
    main: str,
    condition: Optional[str] = None,
    counts: Optional[str] = None,
    paired: bool = False,
    ratio: Optional[Sequence[float]] = None,
    slice_label: str = "percentage",
    perc_k: int = 0,
    facet_proptest: bool = True,
    results_subtitle: bool = True,
    conf_level: float = 0.95,
    nboot: int = 100,
    simulate_p_value: bool = False,
    B: int = 2000,
    k: int = 2,
    legend_title: Optional[str] = None,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    palette: str = "Dark2",
    messages: bool = True,
    seed: Optional[int] = None,
    fig: Optional[FigureBase] = None,
) -> FigureBase:
    """Pie chart of `main`, one pie per level of `condition` when given.

    Without `condition` the subtitle is a goodness-of-fit test against `ratio`;
    with it, a test of independence (McNemar's test when `paired`), and each
    pie is titled with its own goodness-of-fit result when `facet_proptest`.

    Args:
        data: Input dataframe
        main: Categorical column shown as slices
        condition: Optional categorical column, one pie per level
        counts: Optional column of frequencies
        paired: Paired nominal data (McNemar's test)
        ratio: Expected proportions for the goodness-of-fit test
        slice_label: "percentage", "counts" or "both"
        perc_k: Decimals in slice percentages
        facet_proptest: Per-pie goodness-of-fit results
        legend_title: Legend title (default: `main`)
        fig: Figure or SubFigure to draw on (new figure if None)

    Returns:
        The Figure (or SubFigure)
    """
    stats_config = StatsConfig(conf_level=conf_level, k=k, nboot=nboot, messages=messages, seed=seed)
    plot_config = PlotConfig(palette=palette)

    df = _prepare(data, main, condition, counts)
    main_levels = factor_levels(df["main"])
    colors = choose_colors(main_levels, plot_config.palette)
    legend_title = legend_title or main
    fig = new_figure(fig, plot_config)

    if condition is None:
        ax = fig.subplots()
        _pie(ax, df["main"].value_counts(sort=False), colors, slice_label, perc_k)
        subtitle = None
        if results_subtitle:
            subtitle = subtitle_onesample_proptest(
                data, main, counts=counts, ratio=ratio, legend_title=legend_title, k=k,
            )
    else:
        cond_levels = factor_levels(df["condition"])
        axes = np.atleast_1d(fig.subplots(1, max(len(cond_levels), 1)))
        facet = None
        if facet_proptest:
            facet = proportion_tests(df, "main", "condition", ratio=ratio, k=k).set_index("condition")

        for ax, level in zip(axes, cond_levels):
            group = df[df["condition"] == level]
            _pie(ax, group["main"].value_counts(sort=False), colors, slice_label, perc_k)
            header = f"{level}\n(n = {len(group)})"
            if facet is not None and level in facet.index:
                header = f"{header}\n{facet.loc[level, 'label']}"
            ax.set_title(header, fontsize=8)

        subtitle = None
        if results_subtitle:
            subtitle = subtitle_contingency_tab(
                df, "main", "condition", nboot=nboot, paired=paired, conf_level=conf_level,
                conf_type=stats_config.conf_type, simulate_p_value=simulate_p_value, B=B,
                k=k, messages=messages, seed=seed,
            )

    handles = [Patch(facecolor=colors[lv], edgecolor="black", label=lv) for lv in main_levels]
    fig.legend(handles=handles, title=legend_title, loc="center right", fontsize=8)
    set_figure_texts(fig, plot_config, title=title, subtitle=subtitle_or_n(subtitle, len(df)), caption=caption)
    return fig


def barstats(
    data: pd.DataFrame,
    main: str,
    condition: str,
    counts: Optional[str] = None,
    paired: bool = False,
    ratio: Optional[Sequence[float]] = None,
    label: str = "percentage",
    perc_k: int = 0,
    proptest_plotting: bool = True,
    results_subtitle: bool = True,
    conf_level: float = 0.95,
    nboot: int = 100,
    simulate_p_value: bool = False,
    B: int = 2000,
    k: int = 2,
    legend_title: Optional[str] = None,
    xlab: Optional[str] = None,
    ylab: str = "Percent",
    title: Optional[str] = None,
    caption: Optional[str] = None,
    palette: str = "Dark2",
    messages: bool = True,
    seed: Optional[int] = None,
    ax: Optional[Axes] = None,
) -> Axes:
    """Stacked percentage bars of `main` for each level of `condition`.

    Each bar is labeled with its goodness-of-fit significance and counts;
    the subtitle is the test of independence between `main` and `condition`.
    Arguments are as in :func:`piestats`.

    Returns:
        The matplotlib Axes
    """
    stats_config = StatsConfig(conf_level=conf_level, k=k, nboot=nboot, messages=messages, seed=seed)
    plot_config = PlotConfig(palette=palette)

    df = _prepare(data, main, condition, counts)
    main_levels = factor_levels(df["main"])
    cond_levels = factor_levels(df["condition"])
    colors = choose_colors(main_levels, plot_config.palette)

    table = pd.crosstab(df["condition"], df["main"]).reindex(index=cond_levels, columns=main_levels, fill_value=0)
    totals = table.sum(axis=1)
    percents = table.div(totals.replace(0, np.nan), axis=0).fillna(0) * 100

    ax = new_axes(ax, plot_config)
    positions = np.arange(len(cond_levels))
    bottom = np.zeros(len(cond_levels))

    # stack from the last level so the first sits on top
    for lv in reversed(main_levels):
        heights = percents[lv].to_numpy()
        ax.bar(positions, heights, bottom=bottom, color=colors[lv], edgecolor="black", width=0.7, label=lv)
        for pos, h, b, c, tot in zip(positions, heights, bottom, table[lv], totals):
            if c > 0:
                ax.text(pos, b + h / 2, slice_text(int(c), int(tot), label, perc_k),
                        ha="center", va="center", fontsize=7,
                        bbox={"boxstyle": "round,pad=0.15", "fc": "white", "lw": 0})
        bottom += heights

    if proptest_plotting:
        facet = proportion_tests(df, "main", "condition", ratio=ratio, k=k).set_index("condition")
        for pos, lv in zip(positions, cond_levels):
            if lv in facet.index:
                ax.text(pos, 102, facet.loc[lv, "significance"], ha="center", va="bottom", fontsize=8)
        ax.set_ylim(0, 110)

    subtitle = None
    if results_subtitle:
        subtitle = subtitle_contingency_tab(
            df, "main", "condition", nboot=nboot, paired=paired, conf_level=conf_level,
            conf_type=stats_config.conf_type, simulate_p_value=simulate_p_value, B=B,
            k=k, messages=messages, seed=seed,
        )

    ax.set_xticks(positions)
    ax.set_xticklabels(n_tick_labels(cond_levels, totals.to_dict()))
    ax.set_xlabel(xlab if xlab is not None else condition)
    ax.set_ylabel(ylab)
    handles, labels = ax.get_legend_handles_labels()
    ax.legend(handles[::-1], labels[::-1], title=legend_title or main, bbox_to_anchor=(1.02, 1), loc="upper left", fontsize=8)

    set_texts(ax, plot_config, title=title, subtitle=subtitle_or_n(subtitle, len(df)), caption=caption)
    return ax
