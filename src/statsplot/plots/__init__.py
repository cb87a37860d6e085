"""Annotated statistical plots."""

from statsplot.plots.categorical import barstats, piestats
from statsplot.plots.coefs import coefstats
from statsplot.plots.common import get_caption, get_subtitle
from statsplot.plots.comparison import betweenstats, withinstats
from statsplot.plots.corrmat import corrmat
from statsplot.plots.grouped import (
    combine_plots,
    grouped_barstats,
    grouped_betweenstats,
    grouped_corrmat,
    grouped_histostats,
    grouped_piestats,
    grouped_scatterstats,
    grouped_withinstats,
)
from statsplot.plots.histo import histostats
from statsplot.plots.scatter import scatterstats

__all__ = [
    # Single panels
    "betweenstats",
    "withinstats",
    "histostats",
    "scatterstats",
    "piestats",
    "barstats",
    "corrmat",
    "coefstats",
    # Combined panels
    "combine_plots",
    "grouped_betweenstats",
    "grouped_withinstats",
    "grouped_histostats",
    "grouped_scatterstats",
    "grouped_piestats",
    "grouped_barstats",
    "grouped_corrmat",
    # Text lookup
    "get_subtitle",
    "get_caption",
]
