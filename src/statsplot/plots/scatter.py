"""Scatterplot with a correlation test and optional marginal distributions."""

from __future__ import annotations

import logging
from typing import Optional

import pandas as pd
from matplotlib.axes import Axes
import seaborn as sns

from statsplot.config import PlotConfig, StatsConfig
from statsplot.plots.common import new_axes, set_figure_texts, set_texts, subtitle_or_n
from statsplot.stats.preprocess import ensure_numeric, select_columns
from statsplot.subtitles import subtitle_scatterstats

logger = logging.getLogger(__name__)

MARGINAL_TYPES = ["histogram", "boxplot", "density", "violin"]
SMOOTH_METHODS = ["linear", "lowess"]


def _draw_marginals(grid: sns.JointGrid, marginal_type: str, xfill: str, yfill: str) -> None:
    xs, ys = grid.x, grid.y

    if marginal_type == "histogram":
        sns.histplot(x=xs, ax=grid.ax_marg_x, color=xfill, alpha=0.6)
        sns.histplot(y=ys, ax=grid.ax_marg_y, color=yfill, alpha=0.6)
    elif marginal_type == "density":
        sns.kdeplot(x=xs, ax=grid.ax_marg_x, color=xfill, fill=True)
        sns.kdeplot(y=ys, ax=grid.ax_marg_y, color=yfill, fill=True)
    elif marginal_type == "boxplot":
        sns.boxplot(x=xs, ax=grid.ax_marg_x, color=xfill)
        sns.boxplot(y=ys, ax=grid.ax_marg_y, color=yfill)
    else:
        sns.violinplot(x=xs, ax=grid.ax_marg_x, color=xfill)
        sns.violinplot(y=ys, ax=grid.ax_marg_y, color=yfill)


def scatterstats(
    data: pd.DataFrame,
    x: str,
    y: str,
    type: str = "parametric",
    conf_level: float = 0.95,
    k: int = 2,
    marginal: bool = True,
    marginal_type: str = "histogram",
    method: str = "linear",
    xfill: str = "#009E73",
    yfill: str = "#D55E00",
    label_var: Optional[str] = None,
    label_expression: Optional[str] = None,
    point_size: float = 20.0,
    point_alpha: float = 0.4,
    results_subtitle: bool = True,
    xlab: Optional[str] = None,
    ylab: Optional[str] = None,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    ax: Optional[Axes] = None,
) -> Axes:
    """Scatterplot of `y` against `x` with a fitted line and a correlation test.

    Args:
        data: Input dataframe
        x: Numeric column on the x axis
        y: Numeric column on the y axis
        type: parametric (Pearson), nonparametric (Spearman) or robust
            (percentage bend)
        conf_level: Confidence level of the correlation and the smoother band
        k: Decimals in the subtitle
        marginal: Draw marginal distributions (only when `ax` is None)
        marginal_type: "histogram", "boxplot", "density" or "violin"
        method: Smoother, "linear" (least squares) or "lowess"
        xfill: Color of the x marginal
        yfill: Color of the y marginal
        label_var: Column whose values label points
        label_expression: ``DataFrame.query`` expression selecting the points to label
        point_size: Marker size
        point_alpha: Marker transparency
        results_subtitle: Run the test and show its results
        ax: Axes to draw on; a JointGrid figure is created when None and `marginal`

    Returns:
        The joint (main) Axes
    """
    stats_config = StatsConfig(type=type, conf_level=conf_level, k=k)
    plot_config = PlotConfig(point_size=point_size, point_alpha=point_alpha)

    if marginal_type not in MARGINAL_TYPES:
        raise ValueError(f"marginal_type must be one of {MARGINAL_TYPES}, got {marginal_type}")
    if method not in SMOOTH_METHODS:
        raise ValueError(f"method must be one of {SMOOTH_METHODS}, got {method}")

    df = select_columns(data, dropna=False, x=x, y=y, label=label_var).dropna(subset=["x", "y"])
    df["x"] = ensure_numeric(df["x"], x)
    df["y"] = ensure_numeric(df["y"], y)

    grid = None
    if ax is None and marginal:
        grid = sns.JointGrid(data=df, x="x", y="y", height=plot_config.figsize[1])
        ax = grid.ax_joint
    else:
        ax = new_axes(ax, plot_config)

    ax.scatter(
        df["x"], df["y"], s=plot_config.point_size, alpha=plot_config.point_alpha,
        color="black", edgecolors="none",
    )
    sns.regplot(
        data=df, x="x", y="y", scatter=False, ci=int(round(conf_level * 100)),
        lowess=method == "lowess", color="blue", line_kws={"lw": 1.2}, ax=ax,
    )

    if grid is not None:
        _draw_marginals(grid, marginal_type, xfill, yfill)

    if label_var is not None:
        labeled = df
        if label_expression is not None:
            labeled = df[df.index.isin(data.query(label_expression).index)]
        for _, row in labeled.iterrows():
            ax.annotate(
                str(row["label"]), xy=(row["x"], row["y"]), xytext=(3, 3),
                textcoords="offset points", fontsize=7,
            )
        logger.debug(f"Labeled {len(labeled)} points")

    subtitle = None
    if results_subtitle:
        subtitle = subtitle_scatterstats(
            data, x, y,
            type=stats_config.type, conf_level=conf_level, k=k,
        )

    ax.set_xlabel(xlab if xlab is not None else x)
    ax.set_ylabel(ylab if ylab is not None else y)
    subtitle = subtitle_or_n(subtitle, len(df))

    if grid is not None:
        fig = grid.figure
        fig.subplots_adjust(top=0.86, bottom=0.14)
        set_figure_texts(fig, plot_config, title=title, subtitle=subtitle, caption=caption)
    else:
        set_texts(ax, plot_config, title=title, subtitle=subtitle, caption=caption)

    return ax
