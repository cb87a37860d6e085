"""Dot-and-whisker plots of regression coefficients."""

from __future__ import annotations

from typing import Optional, Union

import numpy as np
import pandas as pd
from matplotlib.axes import Axes

from statsplot.config import PlotConfig
from statsplot.formatting import p_value_text, specify_decimal_p
from statsplot.plots.common import new_axes, set_texts, subtitle_or_n
from statsplot.stats.models import tidy_model

OUTPUTS = ["plot", "tidy"]
SORT_ORDERS = ["none", "ascending", "descending"]


def coefficient_label(row: pd.Series, statistic: str = "t", k: int = 2) -> str:
    """Label like "$\\hat{\\beta}$ = 0.12, $t$(28) = 2.10, $p$ = 0.045"."""
    parts = [r"$\hat{\beta}$ = " + specify_decimal_p(row["estimate"], k)]
    if statistic == "t" and np.isfinite(row.get("df_error", np.nan)):
        parts.append(f"$t$({specify_decimal_p(row['df_error'], 0)}) = {specify_decimal_p(row['statistic'], k)}")
    else:
        parts.append(f"${statistic}$ = {specify_decimal_p(row['statistic'], k)}")
    parts.append(p_value_text(row["p_value"], 3))
    return ", ".join(parts)


def model_subtitle(model, k: int = 2) -> Optional[str]:
    """Overall fit of a linear model: F test, R-squared and n; None for other models."""
    fvalue = getattr(model, "fvalue", None)
    if fvalue is None or not hasattr(model, "rsquared"):
        return None
    return (
        f"$F$({specify_decimal_p(model.df_model, 0)},{specify_decimal_p(model.df_resid, 0)}) = "
        f"{specify_decimal_p(float(fvalue), k)}, {p_value_text(float(model.f_pvalue), 3)}, "
        f"$R^2$ = {specify_decimal_p(model.rsquared, k)}, $n$ = {int(model.nobs)}"
    )


def model_caption(model, k: int = 2) -> Optional[str]:
    """AIC and BIC of a fitted model, when available."""
    aic, bic = getattr(model, "aic", None), getattr(model, "bic", None)
    if aic is None or bic is None:
        return None
    return f"AIC = {specify_decimal_p(aic, k)}, BIC = {specify_decimal_p(bic, k)}"


def coefstats(
    x,
    exclude_intercept: bool = True,
    stats_labels: bool = True,
    conf_level: float = 0.95,
    k: int = 2,
    sort: str = "none",
    output: str = "plot",
    statistic: Optional[str] = None,
    point_color: str = "blue",
    xlab: str = "estimate",
    ylab: str = "term",
    title: Optional[str] = None,
    caption: Optional[str] = None,
    ax: Optional[Axes] = None,
) -> Union[Axes, pd.DataFrame]:
    """Coefficients with confidence intervals from a fitted model or a tidy table.

    Args:
        x: Fitted statsmodels results, or a DataFrame with at least term,
            estimate, conf_low and conf_high
        exclude_intercept: Drop the intercept term
        stats_labels: Label each coefficient with its estimate, statistic and p-value
        conf_level: Confidence level of the intervals (fitted models only)
        k: Decimals in labels
        sort: "none", "ascending" or "descending" by estimate
        output: "plot" or "tidy"
        statistic: Statistic symbol for tidy input ("t" or "z"); taken from
            the model otherwise
        ax: Axes to draw on (new figure if None)

    Returns:
        Axes for ``output="plot"``, the tidy DataFrame for ``output="tidy"``
    """
    if output not in OUTPUTS:
        raise ValueError(f"output must be one of {OUTPUTS}, got {output}")
    if sort not in SORT_ORDERS:
        raise ValueError(f"sort must be one of {SORT_ORDERS}, got {sort}")

    if isinstance(x, pd.DataFrame):
        required = {"term", "estimate", "conf_low", "conf_high"}
        if not required.issubset(x.columns):
            raise ValueError(f"Tidy dataframe must contain columns {sorted(required)}")
        tidy = x.copy()
        statistic = statistic or tidy.attrs.get("statistic", "t")
        model = None
    else:
        tidy = tidy_model(x, conf_level=conf_level)
        statistic = statistic or tidy.attrs["statistic"]
        model = x

    if exclude_intercept:
        tidy = tidy[~tidy["term"].str.lower().isin(["intercept", "(intercept)", "const"])]

    if sort != "none":
        tidy = tidy.sort_values("estimate", ascending=sort == "ascending")
    tidy = tidy.reset_index(drop=True)

    if output == "tidy":
        return tidy

    plot_config = PlotConfig()
    ax = new_axes(ax, plot_config)
    positions = np.arange(len(tidy))[::-1]

    ax.errorbar(
        tidy["estimate"], positions,
        xerr=[tidy["estimate"] - tidy["conf_low"], tidy["conf_high"] - tidy["estimate"]],
        fmt="o", color=point_color, ecolor="black", elinewidth=1, capsize=3,
    )
    ax.axvline(0, color="black", ls="--", lw=0.8)

    has_stats = {"statistic", "p_value"}.issubset(tidy.columns)
    if stats_labels and has_stats:
        for pos, (_, row) in zip(positions, tidy.iterrows()):
            ax.annotate(
                coefficient_label(row, statistic, k), xy=(row["estimate"], pos),
                xytext=(0, 8), textcoords="offset points", ha="center", fontsize=7,
                bbox={"boxstyle": "round,pad=0.2", "fc": "white", "ec": "gray", "lw": 0.5},
            )

    ax.set_yticks(positions)
    ax.set_yticklabels(tidy["term"])
    ax.set_xlabel(xlab)
    ax.set_ylabel(ylab)
    ax.grid(axis="x", alpha=0.2)

    subtitle = None
    if model is not None:
        subtitle = subtitle_or_n(model_subtitle(model, k), int(model.nobs))
        fit_caption = model_caption(model, k)
        if fit_caption is not None:
            caption = f"{caption}\n{fit_caption}" if caption else fit_caption

    set_texts(ax, plot_config, title=title, subtitle=subtitle, caption=caption)
    return ax

