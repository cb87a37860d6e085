"""Histogram of one numeric variable with a one-sample test."""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd
from matplotlib.axes import Axes
from scipy import stats as sp_stats
import seaborn as sns

from statsplot.config import PlotConfig, StatsConfig
from statsplot.formatting import bf_caption, specify_decimal_p
from statsplot.plots.common import new_axes, set_texts, subtitle_or_n
from statsplot.stats.preprocess import ensure_numeric, select_columns
from statsplot.stats.tests import bayes_t_test
from statsplot.subtitles import subtitle_t_onesample

BAR_MEASURES = {"count": "count", "proportion": "proportion", "density": "density", "mix": "count"}


def centrality_value(values: np.ndarray, type: str = "parametric", tr: float = 0.1):
    """Centrality measure matching the test type, with its display label."""
    if type == "nonparametric":
        return float(np.median(values)), r"$\hat{\mu}_{median}$"
    if type == "robust":
        return float(sp_stats.trim_mean(values, tr)), r"$\hat{\mu}_{trimmed}$"
    return float(np.mean(values)), r"$\hat{\mu}_{mean}$"


def histostats(
    data: pd.DataFrame,
    x: str,
    test_value: float = 0.0,
    type: str = "parametric",
    bar_measure: str = "count",
    binwidth: Optional[float] = None,
    centrality_plotting: bool = True,
    test_value_line: bool = False,
    effsize_type: str = "unbiased",
    tr: float = 0.1,
    bf_prior: float = 0.707,
    bf_message: bool = True,
    results_subtitle: bool = True,
    conf_level: float = 0.95,
    nboot: int = 100,
    k: int = 2,
    xlab: Optional[str] = None,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    color: str = "#1B9E77",
    messages: bool = True,
    seed: Optional[int] = None,
    ax: Optional[Axes] = None,
) -> Axes:
    """Histogram of `x` with a one-sample test against `test_value`.

    Args:
        data: Input dataframe
        x: Numeric column
        test_value: Value tested against
        type: parametric, nonparametric, robust or bayes
        bar_measure: "count", "proportion", "density" or "mix" (count bars
            with a proportion axis on the right)
        binwidth: Bin width (Freedman-Diaconis rule if None)
        centrality_plotting: Draw and label the centrality line
        test_value_line: Draw a line at `test_value`
        bf_message: Add the Bayes factor caption for parametric tests
        results_subtitle: Run the test and show its results
        ax: Axes to draw on (new figure if None)

    Returns:
        The matplotlib Axes
    """
    stats_config = StatsConfig(
        type=type, conf_level=conf_level, k=k, nboot=nboot, effsize_type=effsize_type,
        tr=tr, bf_prior=bf_prior, messages=messages, seed=seed,
    )
    plot_config = PlotConfig()

    if bar_measure not in BAR_MEASURES:
        raise ValueError(f"bar_measure must be one of {list(BAR_MEASURES)}, got {bar_measure}")

    df = select_columns(data, x=x)
    values = ensure_numeric(df["x"], x).to_numpy()

    ax = new_axes(ax, plot_config)
    # Freedman-Diaconis bins unless a width is given
    bins = "fd" if len(values) > 1 else "auto"

    sns.histplot(
        x=values, stat=BAR_MEASURES[bar_measure], binwidth=binwidth,
        bins=bins, color=color, alpha=0.7, edgecolor="black", ax=ax,
    )

    if bar_measure == "mix" and len(values) > 0:
        right = ax.twinx()
        lo, hi = ax.get_ylim()
        right.set_ylim(lo / len(values), hi / len(values))
        right.set_ylabel("proportion")

    if centrality_plotting and len(values) > 0:
        value, label = centrality_value(values, stats_config.type, stats_config.tr)
        ax.axvline(value, color="blue", ls="--", lw=1)
        ax.annotate(
            f"{label} = {specify_decimal_p(value, stats_config.k)}",
            xy=(value, 1),
            xycoords=("data", "axes fraction"),
            xytext=(4, -12),
            textcoords="offset points",
            fontsize=8,
            color="blue",
        )

    if test_value_line:
        ax.axvline(test_value, color="black", ls=":", lw=1)

    subtitle = None
    if results_subtitle:
        subtitle = subtitle_t_onesample(
            df.rename(columns={"x": x}), x, test_value=test_value, type=stats_config.type,
            effsize_type=effsize_type, tr=tr, bf_prior=bf_prior, conf_level=conf_level,
            conf_type=stats_config.conf_type, nboot=nboot, k=k, messages=messages, seed=seed,
        )

        if bf_message and stats_config.type == "parametric" and len(values) > 1:
            bf = bayes_t_test(values, mu=test_value, bf_prior=bf_prior)
            caption = bf_caption(bf["bf10"], bf_prior, k, caption)

    ax.set_xlabel(xlab if xlab is not None else x)
    ax.grid(axis="y", alpha=0.2)
    set_texts(ax, plot_config, title=title, subtitle=subtitle_or_n(subtitle, len(values)), caption=caption)
    return ax
