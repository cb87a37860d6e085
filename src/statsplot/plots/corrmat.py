"""Correlation matrix heatmaps."""

from __future__ import annotations

import itertools
import logging
from typing import List, Optional, Union

import numpy as np
import pandas as pd
from matplotlib.axes import Axes
import seaborn as sns

from statsplot.config import PlotConfig, StatsConfig
from statsplot.formatting import specify_decimal_p
from statsplot.plots.common import new_axes, set_texts
from statsplot.stats.pairwise import adjust_p_values, p_adjust_text
from statsplot.stats.tests import correlation

logger = logging.getLogger(__name__)

OUTPUTS = ["plot", "correlations", "p-values", "ci"]
MATRIX_TYPES = ["full", "upper", "lower"]


def correlation_table(
    data: pd.DataFrame,
    cor_vars: Optional[List[str]] = None,
    type: str = "parametric",
    p_adjust_method: str = "holm",
    conf_level: float = 0.95,
) -> pd.DataFrame:
    """Correlation of every pair of numeric columns (pairwise complete rows).

    Returns:
        DataFrame with columns: parameter1, parameter2, estimate, conf_low,
        conf_high, statistic, p_value, p_value_adjusted, n
    """
    type = StatsConfig(type=type).type
    if type == "bayes":
        raise ValueError("Bayesian correlation matrices are not available; use parametric, nonparametric or robust")

    if cor_vars is None:
        cor_vars = [c for c in data.columns if pd.api.types.is_numeric_dtype(data[c]) and not pd.api.types.is_bool_dtype(data[c])]
    missing = [c for c in cor_vars if c not in data.columns]
    if missing:
        raise ValueError(f"Column(s) not found in dataframe: {missing}")
    if len(cor_vars) < 2:
        raise ValueError(f"At least 2 numeric columns are needed, got {len(cor_vars)}")

    rows = []
    for a, b in itertools.combinations(cor_vars, 2):
        pair = data[[a, b]].dropna()
        res = correlation(pair[a].to_numpy(dtype=float), pair[b].to_numpy(dtype=float), type=type, conf_level=conf_level)
        rows.append(
            {
                "parameter1": a,
                "parameter2": b,
                "estimate": res["estimate"],
                "conf_low": res["conf_low"],
                "conf_high": res["conf_high"],
                "statistic": res["statistic"],
                "p_value": res["p_value"],
                "n": res["n"],
            }
        )

    table = pd.DataFrame(rows)
    table["p_value_adjusted"] = adjust_p_values(table["p_value"], p_adjust_method)
    return table[
        ["parameter1", "parameter2", "estimate", "conf_low", "conf_high",
         "statistic", "p_value", "p_value_adjusted", "n"]
    ]


def _to_matrix(table: pd.DataFrame, column: str, variables: List[str], diagonal: float) -> pd.DataFrame:
    matrix = pd.DataFrame(np.nan, index=variables, columns=variables)
    for _, row in table.iterrows():
        matrix.loc[row["parameter1"], row["parameter2"]] = row[column]
        matrix.loc[row["parameter2"], row["parameter1"]] = row[column]
    np.fill_diagonal(matrix.values, diagonal)
    return matrix


def corrmat(
    data: pd.DataFrame,
    cor_vars: Optional[List[str]] = None,
    type: str = "parametric",
    p_adjust_method: str = "holm",
    sig_level: float = 0.05,
    conf_level: float = 0.95,
    output: str = "plot",
    matrix_type: str = "upper",
    k: int = 2,
    cmap: str = "vlag",
    title: Optional[str] = None,
    caption: Optional[str] = None,
    ax: Optional[Axes] = None,
) -> Union[Axes, pd.DataFrame]:
    """Correlation matrix of numeric columns as a heatmap or a table.

    Cells whose adjusted p-value is not below `sig_level` are crossed out.

    Args:
        data: Input dataframe
        cor_vars: Columns to correlate (all numeric columns if None)
        type: parametric (Pearson), nonparametric (Spearman) or robust (percentage bend)
        p_adjust_method: Adjustment across all pairs
        sig_level: Significance level for crossing out cells
        conf_level: Confidence level of the coefficients
        output: "plot", "correlations", "p-values" or "ci"
        matrix_type: "full", "upper" or "lower" triangle
        k: Decimals in cell labels
        cmap: Colormap
        ax: Axes to draw on (new figure if None)

    Returns:
        Axes for ``output="plot"``, otherwise a DataFrame (square matrices for
        correlations and p-values, the long table for ci)
    """
    if output not in OUTPUTS:
        raise ValueError(f"output must be one of {OUTPUTS}, got {output}")
    if matrix_type not in MATRIX_TYPES:
        raise ValueError(f"matrix_type must be one of {MATRIX_TYPES}, got {matrix_type}")

    stats_config = StatsConfig(type=type, p_adjust_method=p_adjust_method, conf_level=conf_level, k=k)
    table = correlation_table(data, cor_vars, stats_config.type, p_adjust_method, conf_level)
    variables = list(dict.fromkeys(table["parameter1"].tolist() + table["parameter2"].tolist()))

    if output == "ci":
        return table
    if output == "correlations":
        return _to_matrix(table, "estimate", variables, 1.0)
    if output == "p-values":
        return _to_matrix(table, "p_value_adjusted", variables, 0.0)

    plot_config = PlotConfig()
    r = _to_matrix(table, "estimate", variables, 1.0)
    p = _to_matrix(table, "p_value_adjusted", variables, 0.0)

    mask = np.zeros_like(r.values, dtype=bool)
    if matrix_type == "upper":
        mask[np.tril_indices_from(mask, k=-1)] = True
    elif matrix_type == "lower":
        mask[np.triu_indices_from(mask, k=1)] = True

    annot = r.map(lambda v: specify_decimal_p(v, k))
    ax = new_axes(ax, plot_config)
    sns.heatmap(
        r, mask=mask, cmap=cmap, vmin=-1, vmax=1, center=0, square=True,
        annot=annot.values, fmt="", annot_kws={"fontsize": 8},
        linewidths=0.5, linecolor="white", cbar_kws={"label": "correlation", "shrink": 0.8}, ax=ax,
    )

    for i, j in zip(*np.where(~mask & (p.values >= sig_level))):
        ax.plot([j + 0.15, j + 0.85], [i + 0.15, i + 0.85], color="black", lw=0.8)
        ax.plot([j + 0.15, j + 0.85], [i + 0.85, i + 0.15], color="black", lw=0.8)

    n_values = table["n"]
    subtitle = (
        f"$n$ = {int(n_values.iloc[0])}" if n_values.nunique() == 1
        else f"$n$ = {int(n_values.min())}-{int(n_values.max())}"
    )
    method = {
        "parametric": "Pearson",
        "nonparametric": "Spearman",
        "robust": "percentage bend",
    }[stats_config.type]
    note = (
        f"X = non-significant at p < {sig_level} "
        f"(Adjustment: {p_adjust_text(p_adjust_method)}); correlation: {method}"
    )
    caption = f"{caption}\n{note}" if caption else note

    set_texts(ax, plot_config, title=title, subtitle=subtitle, caption=caption)
    logger.info(f"Correlation matrix of {len(variables)} variables ({method})")
    return ax
