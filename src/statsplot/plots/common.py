"""Shared plotting helpers: colors, subtitle/caption text, brackets, outliers."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Union
import warnings

import pandas as pd
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import FigureBase
import seaborn as sns

from statsplot.config import PlotConfig
from statsplot.formatting import n_only_subtitle

# Suppress seaborn/pandas FutureWarnings
warnings.filterwarnings("ignore", category=FutureWarning, module="seaborn")
warnings.filterwarnings("ignore", category=FutureWarning, module="pandas")

SUBTITLE_GID = "subtitle"
CAPTION_GID = "caption"


def choose_colors(levels: List[str], palette: str = "Dark2") -> Dict[str, tuple]:
    """Map factor levels to colors.

    Uses the named palette for as many levels as it has colors, then the
    tab20 colormap for additional levels.

    Args:
        levels: Factor levels in display order
        palette: Seaborn/matplotlib palette name

    Returns:
        Dictionary mapping level to RGB tuple
    """
    base = sns.color_palette(palette)
    colors = {}

    for i, lv in enumerate(levels[: len(base)]):
        colors[lv] = tuple(base[i])

    if len(levels) > len(base):
        extra_cmap = plt.get_cmap("tab20", len(levels) - len(base))
        for j, lv in enumerate(levels[len(base) :]):
            colors[lv] = tuple(extra_cmap(j)[:3])

    return colors


def new_axes(ax: Optional[Axes], config: PlotConfig) -> Axes:
    """Return `ax`, or the axes of a new figure sized by `config`."""
    if ax is not None:
        return ax
    _, ax = plt.subplots(figsize=config.figsize, dpi=config.dpi)
    return ax


def set_texts(
    ax: Axes,
    config: PlotConfig,
    title: Optional[str] = None,
    subtitle: Optional[str] = None,
    caption: Optional[str] = None,
) -> None:
    """Place title, subtitle and caption on a single panel.

    The subtitle sits just above the axes and the title above it; the caption
    sits below the x-axis label. Both carry a gid so they can be looked up.
    """
    if subtitle is not None:
        ax.annotate(
            subtitle,
            xy=(0, 1),
            xycoords="axes fraction",
            xytext=(0, 6),
            textcoords="offset points",
            ha="left",
            va="bottom",
            fontsize=config.subtitle_fontsize,
            gid=SUBTITLE_GID,
        )

    if title is not None:
        ax.set_title(title, loc="left", pad=22 if subtitle is not None else 6, fontsize=config.title_fontsize)

    if caption is not None:
        ax.annotate(
            caption,
            xy=(0, 0),
            xycoords="axes fraction",
            xytext=(0, -42),
            textcoords="offset points",
            ha="left",
            va="top",
            fontsize=config.caption_fontsize,
            gid=CAPTION_GID,
        )


def set_figure_texts(
    fig: FigureBase,
    config: PlotConfig,
    title: Optional[str] = None,
    subtitle: Optional[str] = None,
    caption: Optional[str] = None,
) -> None:
    """Place title, subtitle and caption on a figure or subfigure."""
    if title is not None:
        fig.suptitle(title, x=0.02, y=0.99, ha="left", fontsize=config.title_fontsize)
    if subtitle is not None:
        fig.text(0.02, 0.93, subtitle, ha="left", va="top", fontsize=config.subtitle_fontsize, gid=SUBTITLE_GID)
    if caption is not None:
        fig.text(0.02, 0.01, caption, ha="left", va="bottom", fontsize=config.caption_fontsize, gid=CAPTION_GID)


def _find_text(obj: Union[Axes, FigureBase], gid: str) -> Optional[str]:
    if isinstance(obj, Axes):
        for text in obj.texts:
            if text.get_gid() == gid:
                return text.get_text()
        fig = obj.figure
        # marginal plots keep their texts on the figure
        return _find_text(fig, gid) if len(fig.axes) > 1 and fig.texts else None

    for text in obj.texts:
        if text.get_gid() == gid:
            return text.get_text()
    for sub in getattr(obj, "subfigs", []):
        found = _find_text(sub, gid)
        if found is not None:
            return found
    for ax in obj.axes:
        for text in ax.texts:
            if text.get_gid() == gid:
                return text.get_text()
    return None


def get_subtitle(obj: Union[Axes, FigureBase]) -> Optional[str]:
    """Subtitle text of a plot (Axes, Figure or SubFigure), or None."""
    return _find_text(obj, SUBTITLE_GID)


def get_caption(obj: Union[Axes, FigureBase]) -> Optional[str]:
    """Caption text of a plot (Axes, Figure or SubFigure), or None."""
    return _find_text(obj, CAPTION_GID)


def subtitle_or_n(subtitle: Optional[str], n: int) -> str:
    """The subtitle, or the sample-size fallback when no test ran."""
    return subtitle if subtitle is not None else n_only_subtitle(n)


def n_tick_labels(levels: Sequence[str], counts: Dict[str, int]) -> List[str]:
    """Tick labels like "4\\n(n = 11)"."""
    return [f"{lv}\n(n = {counts.get(lv, 0)})" for lv in levels]


def draw_brackets(
    ax: Axes,
    pairs: pd.DataFrame,
    positions: Dict[str, float],
    heights: Sequence[float],
    fontsize: float = 8.0,
) -> None:
    """Draw comparison brackets between level positions.

    Args:
        ax: Target axes
        pairs: Frame with columns group1, group2, label
        positions: Mapping of level -> x position
        heights: Bracket y position for each row of `pairs`
        fontsize: Label font size
    """
    if len(heights) == 0:
        return

    tick = (heights[1] - heights[0]) * 0.2 if len(heights) > 1 else abs(heights[0]) * 0.01
    for (_, row), h in zip(pairs.iterrows(), heights):
        x1, x2 = positions[row["group1"]], positions[row["group2"]]
        ax.plot([x1, x1, x2, x2], [h - tick, h, h, h - tick], color="black", lw=0.8)
        ax.text((x1 + x2) / 2, h, row["label"], ha="center", va="bottom", fontsize=fontsize)

    lo, hi = ax.get_ylim()
    top = max(heights) + 2.5 * tick + (hi - lo) * 0.03
    if top > hi:
        ax.set_ylim(lo, top)


def outlier_mask(values: pd.Series, coef: float = 1.5) -> pd.Series:
    """Tukey's rule: values beyond `coef` IQRs from the quartiles."""
    q1, q3 = values.quantile(0.25), values.quantile(0.75)
    iqr = q3 - q1
    return (values < q1 - coef * iqr) | (values > q3 + coef * iqr)


def new_figure(fig: Optional[FigureBase], config: PlotConfig, figsize=None) -> FigureBase:
    """Return `fig`, or a new figure sized by `config`."""
    if fig is not None:
        return fig
    return plt.figure(figsize=figsize or config.figsize, dpi=config.dpi)
