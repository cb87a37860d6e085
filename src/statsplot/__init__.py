"""
statsplot: plots annotated with the statistical tests behind them.

This package provides:
- Between- and within-subjects comparison plots with pairwise comparisons
- Histograms with one-sample tests and scatterplots with correlation tests
- Pie and bar charts with contingency and proportion tests
- Correlation matrices and regression coefficient plots
- Grouped variants that repeat a plot across the levels of a column
- A Typer CLI for rendering plots from CSV or Parquet files
"""

__version__ = "0.1.0"

from statsplot.config import PlotConfig, StatsConfig
from statsplot.plots import (
    barstats,
    betweenstats,
    coefstats,
    combine_plots,
    corrmat,
    get_caption,
    get_subtitle,
    grouped_barstats,
    grouped_betweenstats,
    grouped_corrmat,
    grouped_histostats,
    grouped_piestats,
    grouped_scatterstats,
    grouped_withinstats,
    histostats,
    piestats,
    scatterstats,
    withinstats,
)

__all__ = [
    "__version__",
    "StatsConfig",
    "PlotConfig",
    "betweenstats",
    "withinstats",
    "histostats",
    "scatterstats",
    "piestats",
    "barstats",
    "corrmat",
    "coefstats",
    "combine_plots",
    "grouped_betweenstats",
    "grouped_withinstats",
    "grouped_histostats",
    "grouped_scatterstats",
    "grouped_piestats",
    "grouped_barstats",
    "grouped_corrmat",
    "get_subtitle",
    "get_caption",
]
