"""Box/violin plots comparing a measurement across factor levels."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pandas as pd
from matplotlib.axes import Axes
import seaborn as sns

from statsplot.config import PlotConfig, StatsConfig
from statsplot.formatting import bf_caption, pairwise_caption
from statsplot.plots.common import (
    choose_colors,
    draw_brackets,
    n_tick_labels,
    new_axes,
    outlier_mask,
    set_texts,
    subtitle_or_n,
)
from statsplot.stats.pairwise import (
    bracket_positions,
    filter_display,
    p_adjust_text,
    pairwise_comparisons as run_pairwise,
    pairwise_method_text,
)
from statsplot.stats.preprocess import compute_group_stats, mean_labels
from statsplot.subtitles import bayes_factor_t, prepare_groups, subtitle_for

logger = logging.getLogger(__name__)

PLOT_TYPES = ["box", "violin", "boxviolin"]


def _draw_distributions(ax: Axes, df: pd.DataFrame, levels, colors, plot_type: str, paired: bool, config: PlotConfig):
    palette = [colors[lv] for lv in levels]

    if plot_type in ("violin", "boxviolin"):
        sns.violinplot(
            data=df, x="x", y="y", order=levels, hue="x", hue_order=levels, palette=palette,
            inner=None, cut=0, linewidth=0.8, legend=False, ax=ax,
        )
        for collection in ax.collections:
            collection.set_alpha(0.2)

    if plot_type in ("box", "boxviolin"):
        sns.boxplot(
            data=df, x="x", y="y", order=levels, width=0.3 if plot_type == "boxviolin" else 0.6,
            fliersize=0, fill=False, color="black", linewidth=1.0, ax=ax,
        )

    sns.stripplot(
        data=df, x="x", y="y", order=levels, hue="x", hue_order=levels, palette=palette,
        size=np.sqrt(config.point_size), alpha=config.point_alpha,
        jitter=0.0 if paired else 0.15, legend=False, ax=ax,
    )


def _draw_means(ax: Axes, group_stats: pd.DataFrame, positions, k: int) -> None:
    labels = mean_labels(group_stats, k)
    for (_, row), label in zip(group_stats.iterrows(), labels):
        pos = positions[row["level"]]
        ax.scatter([pos], [row["mean"]], s=40, color="darkred", zorder=5)
        ax.annotate(
            label,
            xy=(pos, row["mean"]),
            xytext=(18, 0),
            textcoords="offset points",
            fontsize=8,
            va="center",
            bbox={"boxstyle": "round,pad=0.2", "fc": "white", "ec": "darkred", "lw": 0.6},
        )


def _draw_outliers(ax: Axes, df: pd.DataFrame, positions, label_col: Optional[str], coef: float) -> None:
    for level, group in df.groupby("x", observed=True):
        mask = outlier_mask(group["y"], coef)
        for idx, row in group[mask].iterrows():
            text = str(row["label"]) if label_col is not None else f"{row['y']:g}"
            ax.annotate(
                text,
                xy=(positions[str(level)], row["y"]),
                xytext=(-6, 0),
                textcoords="offset points",
                ha="right",
                va="center",
                fontsize=7,
            )


def _comparison_plot(
    data: pd.DataFrame,
    x: str,
    y: str,
    paired: bool,
    subject: Optional[str],
    stats_config: StatsConfig,
    plot_config: PlotConfig,
    plot_type: str,
    pairwise_comparisons: bool,
    pairwise_display: str,
    pairwise_annotation: str,
    results_subtitle: bool,
    bf_message: bool,
    mean_plotting: bool,
    outlier_tagging: bool,
    outlier_label: Optional[str],
    outlier_coef: float,
    xlab: Optional[str],
    ylab: Optional[str],
    title: Optional[str],
    caption: Optional[str],
    ax: Optional[Axes],
) -> Axes:
    if plot_type not in PLOT_TYPES:
        raise ValueError(f"plot_type must be one of {PLOT_TYPES}, got {plot_type}")

    df, levels, wide = prepare_groups(data, x, y, paired=paired, subject=subject)
    if outlier_label is not None:
        df["label"] = data.loc[df.index, outlier_label]

    if paired:
        # keep complete subjects only
        df = df[df["subject"].isin(wide.index)]

    ax = new_axes(ax, plot_config)
    colors = choose_colors(levels, plot_config.palette)
    positions = {lv: float(i) for i, lv in enumerate(levels)}
    group_stats = compute_group_stats(df)

    _draw_distributions(ax, df, levels, colors, plot_type, paired, plot_config)

    if paired and len(levels) > 1:
        for _, row in wide.iterrows():
            ax.plot(
                [positions[lv] for lv in levels], row[levels].to_numpy(),
                color="gray", alpha=0.3, lw=0.6, zorder=1,
            )

    if mean_plotting:
        _draw_means(ax, group_stats, positions, stats_config.k)

    if outlier_tagging:
        _draw_outliers(ax, df, positions, outlier_label, outlier_coef)

    n = len(wide) if paired else len(df)
    subtitle = None
    if results_subtitle:
        subtitle = subtitle_for(df.rename(columns={"x": x, "y": y}), x, y, config=stats_config,
                                paired=paired, subject="subject" if paired else None)

    if (
        bf_message and results_subtitle and stats_config.type == "parametric"
        and len(levels) == 2
    ):
        bf = bayes_factor_t(df, "x", "y", paired=paired, subject="subject" if paired else None,
                            bf_prior=stats_config.bf_prior)
        if bf is not None:
            caption = bf_caption(bf["bf10"], stats_config.bf_prior, stats_config.k, caption)

    if pairwise_comparisons and len(levels) > 2:
        pairs = run_pairwise(
            df, x="x", y="y", type=stats_config.type, var_equal=stats_config.var_equal,
            paired=paired, subject="subject" if paired else None, tr=stats_config.tr,
            p_adjust_method=stats_config.p_adjust_method, conf_level=stats_config.conf_level,
            bf_prior=stats_config.bf_prior, annotation=pairwise_annotation, k=stats_config.k,
        )
        shown = pairs if stats_config.type == "bayes" else filter_display(pairs, pairwise_display)
        heights = bracket_positions(df["y"], len(shown))
        draw_brackets(ax, shown, positions, heights)

        if stats_config.type == "bayes":
            caption = pairwise_caption(caption, pairwise_method_text("bayes"), "None")
        else:
            caption = pairwise_caption(
                caption,
                pairwise_method_text(stats_config.type, stats_config.var_equal, paired),
                p_adjust_text(stats_config.p_adjust_method),
            )
        logger.info(f"Drew {len(shown)} of {len(pairs)} pairwise comparisons")

    counts = dict(zip(group_stats["level"], group_stats["n"]))
    ax.set_xticks(list(positions.values()))
    ax.set_xticklabels(n_tick_labels(levels, counts))
    ax.set_xlabel(xlab if xlab is not None else x)
    ax.set_ylabel(ylab if ylab is not None else y)
    ax.grid(axis="y", alpha=0.2)

    set_texts(ax, plot_config, title=title, subtitle=subtitle_or_n(subtitle, n), caption=caption)
    return ax


def betweenstats(
    data: pd.DataFrame,
    x: str,
    y: str,
    type: str = "parametric",
    plot_type: str = "boxviolin",
    pairwise_comparisons: bool = True,
    pairwise_display: str = "significant",
    pairwise_annotation: str = "p.value",
    p_adjust_method: str = "holm",
    effsize_type: str = "unbiased",
    partial: bool = True,
    var_equal: bool = False,
    tr: float = 0.1,
    bf_prior: float = 0.707,
    bf_message: bool = True,
    results_subtitle: bool = True,
    conf_level: float = 0.95,
    nboot: int = 100,
    k: int = 2,
    mean_plotting: bool = True,
    outlier_tagging: bool = False,
    outlier_label: Optional[str] = None,
    outlier_coef: float = 1.5,
    xlab: Optional[str] = None,
    ylab: Optional[str] = None,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    palette: str = "Dark2",
    messages: bool = True,
    seed: Optional[int] = None,
    ax: Optional[Axes] = None,
) -> Axes:
    """Compare `y` between the levels of `x` (independent groups).

    Args:
        data: Input dataframe
        x: Grouping column
        y: Numeric measurement column
        type: parametric, nonparametric, robust or bayes (or p/np/r/bf)
        plot_type: "box", "violin" or "boxviolin"
        pairwise_comparisons: Draw pairwise brackets when there are more than 2 groups
        pairwise_display: "significant", "non-significant" or "all"
        pairwise_annotation: "p.value" or "asterisk"
        p_adjust_method: Adjustment for the pairwise p-values
        effsize_type: "unbiased" (g, omega) or "biased" (d, eta)
        partial: Partial eta/omega squared
        var_equal: Student's t / Fisher's ANOVA instead of Welch
        tr: Trim proportion for robust tests
        bf_prior: Cauchy prior scale for Bayes factors
        bf_message: Add the Bayes factor caption for parametric two-group tests
        results_subtitle: Run the test and show its results
        conf_level: Confidence level
        nboot: Bootstrap samples for effect size intervals
        k: Decimals in the subtitle
        mean_plotting: Mark and label group means
        outlier_tagging: Label outliers (Tukey's rule)
        outlier_label: Column used to label outliers (value itself if None)
        outlier_coef: IQR multiple for outliers
        xlab: X axis label (default: `x`)
        ylab: Y axis label (default: `y`)
        title: Plot title
        caption: Plot caption
        palette: Palette name
        messages: Log notes about effect size intervals
        seed: Random seed for bootstrap resampling
        ax: Axes to draw on (new figure if None)

    Returns:
        The matplotlib Axes

    Example:
        >>> ax = betweenstats(mtcars, x="cyl", y="wt", seed=123)
        >>> get_subtitle(ax)
    """
    stats_config = StatsConfig(
        type=type, conf_level=conf_level, k=k, nboot=nboot, effsize_type=effsize_type,
        partial=partial, var_equal=var_equal, p_adjust_method=p_adjust_method, tr=tr,
        bf_prior=bf_prior, messages=messages, seed=seed,
    )
    plot_config = PlotConfig(palette=palette)

    return _comparison_plot(
        data, x, y, False, None, stats_config, plot_config, plot_type,
        pairwise_comparisons, pairwise_display, pairwise_annotation, results_subtitle,
        bf_message, mean_plotting, outlier_tagging, outlier_label, outlier_coef,
        xlab, ylab, title, caption, ax,
    )


def withinstats(
    data: pd.DataFrame,
    x: str,
    y: str,
    subject: Optional[str] = None,
    type: str = "parametric",
    plot_type: str = "boxviolin",
    pairwise_comparisons: bool = True,
    pairwise_display: str = "significant",
    pairwise_annotation: str = "p.value",
    p_adjust_method: str = "holm",
    effsize_type: str = "unbiased",
    tr: float = 0.1,
    bf_prior: float = 0.707,
    bf_message: bool = True,
    results_subtitle: bool = True,
    conf_level: float = 0.95,
    nboot: int = 100,
    k: int = 2,
    mean_plotting: bool = True,
    outlier_tagging: bool = False,
    outlier_label: Optional[str] = None,
    outlier_coef: float = 1.5,
    xlab: Optional[str] = None,
    ylab: Optional[str] = None,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    palette: str = "Dark2",
    messages: bool = True,
    seed: Optional[int] = None,
    ax: Optional[Axes] = None,
) -> Axes:
    """Compare `y` across repeated measurements (levels of `x`) of the same subjects.

    Subjects are matched by `subject` when given, otherwise by order of
    appearance within each level. Lines connect each subject's measurements.
    Other arguments are as in :func:`betweenstats`.
    """
    stats_config = StatsConfig(
        type=type, conf_level=conf_level, k=k, nboot=nboot, effsize_type=effsize_type,
        p_adjust_method=p_adjust_method, tr=tr, bf_prior=bf_prior, messages=messages, seed=seed,
    )
    plot_config = PlotConfig(palette=palette)

    return _comparison_plot(
        data, x, y, True, subject, stats_config, plot_config, plot_type,
        pairwise_comparisons, pairwise_display, pairwise_annotation, results_subtitle,
        bf_message, mean_plotting, outlier_tagging, outlier_label, outlier_coef,
        xlab, ylab, title, caption, ax,
    )
