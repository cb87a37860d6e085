"""Repeat a plot across the levels of a grouping column and combine the panels."""

from __future__ import annotations

import logging
import math
from typing import Callable, List, Optional, Tuple

import pandas as pd
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from statsplot.config import PlotConfig
from statsplot.plots.categorical import barstats, piestats
from statsplot.plots.common import set_figure_texts
from statsplot.plots.comparison import betweenstats, withinstats
from statsplot.plots.corrmat import corrmat
from statsplot.plots.histo import histostats
from statsplot.plots.scatter import scatterstats
from statsplot.stats.preprocess import as_factor, factor_levels

logger = logging.getLogger(__name__)


def _grid_shape(n_panels: int, ncols: Optional[int]) -> Tuple[int, int]:
    if n_panels < 1:
        raise ValueError(f"n_panels must be >= 1, got {n_panels}")
    ncols = ncols or min(n_panels, 2)
    return math.ceil(n_panels / ncols), ncols


def combine_plots(
    n_panels: int,
    ncols: Optional[int] = None,
    title_text: Optional[str] = None,
    caption_text: Optional[str] = None,
    panel_size: Tuple[float, float] = (6.5, 5.5),
    dpi: int = 100,
) -> Tuple[Figure, List[Axes]]:
    """Figure with a grid of `n_panels` axes plus a shared title and caption.

    Unused grid cells are removed.

    Returns:
        Tuple of (figure, list of axes in row-major order)
    """
    nrows, ncols = _grid_shape(n_panels, ncols)
    fig, axes = plt.subplots(
        nrows, ncols, figsize=(panel_size[0] * ncols, panel_size[1] * nrows),
        dpi=dpi, squeeze=False,
    )
    flat = list(axes.ravel())
    for extra in flat[n_panels:]:
        extra.remove()

    fig.subplots_adjust(hspace=0.8, wspace=0.35, top=0.85, bottom=0.15)
    set_figure_texts(fig, PlotConfig(), title=title_text, caption=caption_text)
    return fig, flat[:n_panels]


def split_by(data: pd.DataFrame, grouping_var: str) -> List[Tuple[str, pd.DataFrame]]:
    """Split rows by the levels of `grouping_var` (missing values dropped)."""
    if grouping_var not in data.columns:
        raise ValueError(f"Column(s) not found in dataframe: {[grouping_var]}")

    df = data[data[grouping_var].notna()].copy()
    groups = as_factor(df[grouping_var])
    return [(level, df[groups == level]) for level in factor_levels(groups)]


def _grouped(
    plot_fn: Callable,
    data: pd.DataFrame,
    grouping_var: str,
    ncols: Optional[int],
    title_text: Optional[str],
    caption_text: Optional[str],
    **kwargs,
) -> Figure:
    parts = split_by(data, grouping_var)
    fig, axes = combine_plots(len(parts), ncols, title_text, caption_text)

    for ax, (level, subset) in zip(axes, parts):
        logger.info(f"Panel {grouping_var}: {level} (n = {len(subset)})")
        plot_fn(subset, title=f"{grouping_var}: {level}", ax=ax, **kwargs)

    return fig


def grouped_betweenstats(
    data: pd.DataFrame,
    x: str,
    y: str,
    grouping_var: str,
    ncols: Optional[int] = None,
    title_text: Optional[str] = None,
    caption_text: Optional[str] = None,
    **kwargs,
) -> Figure:
    """:func:`betweenstats` for each level of `grouping_var`."""
    return _grouped(betweenstats, data, grouping_var, ncols, title_text, caption_text, x=x, y=y, **kwargs)


def grouped_withinstats(
    data: pd.DataFrame,
    x: str,
    y: str,
    grouping_var: str,
    ncols: Optional[int] = None,
    title_text: Optional[str] = None,
    caption_text: Optional[str] = None,
    **kwargs,
) -> Figure:
    """:func:`withinstats` for each level of `grouping_var`."""
    return _grouped(withinstats, data, grouping_var, ncols, title_text, caption_text, x=x, y=y, **kwargs)


def grouped_histostats(
    data: pd.DataFrame,
    x: str,
    grouping_var: str,
    ncols: Optional[int] = None,
    title_text: Optional[str] = None,
    caption_text: Optional[str] = None,
    **kwargs,
) -> Figure:
    """:func:`histostats` for each level of `grouping_var`."""
    return _grouped(histostats, data, grouping_var, ncols, title_text, caption_text, x=x, **kwargs)


def grouped_scatterstats(
    data: pd.DataFrame,
    x: str,
    y: str,
    grouping_var: str,
    ncols: Optional[int] = None,
    title_text: Optional[str] = None,
    caption_text: Optional[str] = None,
    **kwargs,
) -> Figure:
    """:func:`scatterstats` for each level of `grouping_var` (no marginal plots)."""
    kwargs["marginal"] = False
    return _grouped(scatterstats, data, grouping_var, ncols, title_text, caption_text, x=x, y=y, **kwargs)


def grouped_barstats(
    data: pd.DataFrame,
    main: str,
    condition: str,
    grouping_var: str,
    ncols: Optional[int] = None,
    title_text: Optional[str] = None,
    caption_text: Optional[str] = None,
    **kwargs,
) -> Figure:
    """:func:`barstats` for each level of `grouping_var`."""
    return _grouped(
        barstats, data, grouping_var, ncols, title_text, caption_text,
        main=main, condition=condition, **kwargs,
    )


def grouped_corrmat(
    data: pd.DataFrame,
    grouping_var: str,
    cor_vars: Optional[List[str]] = None,
    ncols: Optional[int] = None,
    title_text: Optional[str] = None,
    caption_text: Optional[str] = None,
    **kwargs,
) -> Figure:
    """:func:`corrmat` heatmap for each level of `grouping_var`.

    Without `cor_vars`, all numeric columns except `grouping_var` are used.
    """
    if cor_vars is None:
        cor_vars = [
            c for c in data.columns
            if c != grouping_var and pd.api.types.is_numeric_dtype(data[c])
            and not pd.api.types.is_bool_dtype(data[c])
        ]
    kwargs["output"] = "plot"
    return _grouped(corrmat, data, grouping_var, ncols, title_text, caption_text, cor_vars=cor_vars, **kwargs)


def grouped_piestats(
    data: pd.DataFrame,
    main: str,
    grouping_var: str,
    condition: Optional[str] = None,
    ncols: Optional[int] = None,
    title_text: Optional[str] = None,
    caption_text: Optional[str] = None,
    panel_size: Tuple[float, float] = (6.5, 5.5),
    **kwargs,
) -> Figure:
    """:func:`piestats` in one subfigure per level of `grouping_var`."""
    parts = split_by(data, grouping_var)
    nrows, ncols = _grid_shape(len(parts), ncols)

    fig = plt.figure(figsize=(panel_size[0] * ncols, panel_size[1] * nrows))
    subfigs = fig.subfigures(nrows, ncols, squeeze=False).ravel()

    for subfig, (level, subset) in zip(subfigs, parts):
        logger.info(f"Panel {grouping_var}: {level} (n = {len(subset)})")
        piestats(subset, main, condition=condition, title=f"{grouping_var}: {level}", fig=subfig, **kwargs)

    set_figure_texts(fig, PlotConfig(), title=title_text, caption=caption_text)
    return fig
