"""Pairwise comparisons between factor levels with p-value adjustment."""

from __future__ import annotations

import itertools
import logging
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
import pingouin as pg
import scikit_posthocs as sp
from scipy import stats as sp_stats
from statsmodels.stats.multitest import multipletests

from statsplot.config import P_ADJUST_METHODS, normalize_type
from statsplot.formatting import specify_decimal_p
from statsplot.stats.preprocess import as_factor, factor_levels, long_to_paired
from statsplot.stats.tests import (
    pingouin_p_value,
    t_test,
    wilcoxon_signed_rank,
    yuen_paired,
    yuen_test,
)

logger = logging.getLogger(__name__)

PAIRWISE_COLUMNS = [
    "group1",
    "group2",
    "estimate",
    "conf_low",
    "conf_high",
    "statistic",
    "p_value_unadjusted",
    "p_value",
    "significance",
    "p_value_label",
    "label",
    "test",
]

P_ADJUST_TEXT = {
    "holm": "Holm",
    "hochberg": "Hochberg",
    "hommel": "Hommel",
    "bonferroni": "Bonferroni",
    "BH": "Benjamini & Hochberg",
    "fdr": "Benjamini & Hochberg",
    "BY": "Benjamini & Yekutieli",
    "none": "None",
}


def p_adjust_text(method: str) -> str:
    """Display name of a p-value adjustment method."""
    if method not in P_ADJUST_TEXT:
        raise ValueError(f"p_adjust_method must be one of {list(P_ADJUST_TEXT)}, got {method}")
    return P_ADJUST_TEXT[method]


def pairwise_method_text(type: str = "parametric", var_equal: bool = False, paired: bool = False) -> str:
    """Name of the pairwise test chosen for a design."""
    type = normalize_type(type)

    if type == "bayes":
        return "Student's t-test"
    if type == "robust":
        return "Yuen's trimmed means test"
    if paired:
        return "Wilcoxon signed-rank test" if type == "nonparametric" else "Student's t-test"
    if type == "nonparametric":
        return "Dwass-Steel-Crichtlow-Fligner test"
    return "Student's t-test" if var_equal else "Games-Howell test"


def adjust_p_values(p_values: Sequence[float], method: str = "holm") -> np.ndarray:
    """Adjust p-values with statsmodels ``multipletests``; NaNs are kept in place.

    Args:
        p_values: Raw p-values
        method: R-style adjustment name (holm, hochberg, hommel, bonferroni, BH, BY, fdr, none)

    Returns:
        Adjusted p-values
    """
    if method not in P_ADJUST_METHODS:
        raise ValueError(f"p_adjust_method must be one of {list(P_ADJUST_METHODS)}, got {method}")

    pvals = np.asarray(p_values, dtype=float)
    sm_method = P_ADJUST_METHODS[method]
    if sm_method is None:
        return pvals

    mask = np.isfinite(pvals)
    p_adj = np.full_like(pvals, np.nan)
    if mask.sum() > 0:
        _, p_adj[mask], _, _ = multipletests(pvals[mask], method=sm_method)
    return p_adj


def significance_stars(p: float) -> str:
    """Significance code: ns, *, ** or ***."""
    if not np.isfinite(p) or p >= 0.05:
        return "ns"
    if p < 0.001:
        return "***"
    if p < 0.01:
        return "**"
    return "*"


def pairwise_label(p: float, annotation: str = "p.value", k: int = 3) -> str:
    """Bracket label for an adjusted p-value.

    Args:
        p: Adjusted p-value
        annotation: "p.value" for the number, "asterisk" for significance stars
        k: Decimals for the p-value

    Returns:
        "p = 0.032", "p <= 0.001" or stars
    """
    if annotation in ("asterisk", "stars"):
        return significance_stars(p)
    if annotation not in ("p.value", "p", "p-value"):
        raise ValueError(f"pairwise_annotation must be 'p.value' or 'asterisk', got {annotation}")

    if np.isfinite(p) and p <= 0.001:
        return "p <= 0.001"
    return f"p = {specify_decimal_p(p, k)}"


def filter_display(df: pd.DataFrame, display: str = "significant") -> pd.DataFrame:
    """Keep the comparisons to draw: significant, non-significant or all."""
    if display in ("all", "everything"):
        return df
    if display in ("significant", "s"):
        return df[df["p_value"] < 0.05]
    if display in ("non-significant", "ns"):
        return df[~(df["p_value"] < 0.05)]
    raise ValueError(
        f"pairwise_display must be 'significant', 'non-significant' or 'all', got {display}"
    )


def bracket_positions(y: Sequence[float], n_pairs: int) -> List[float]:
    """Heights of stacked comparison brackets above the data."""
    y = np.asarray(y, dtype=float)
    y = y[np.isfinite(y)]
    if n_pairs == 0 or len(y) == 0:
        return []

    start = y.max() * 1.025
    step = (y.max() - y.min()) * 0.075
    return [float(start + i * step) for i in range(n_pairs)]


def _studentized_margin(k: int, df: float, se: float, conf_level: float) -> float:
    q = sp_stats.studentized_range.ppf(conf_level, k, df)
    return q / np.sqrt(2) * se


def _student_pairs(groups: dict, pairs, conf_level: float) -> List[dict]:
    """Pooled-SD t-tests with Tukey-Kramer intervals."""
    k = len(groups)
    n_total = sum(len(g) for g in groups.values())
    df = n_total - k
    mse = sum((len(g) - 1) * np.var(g, ddof=1) for g in groups.values() if len(g) > 1) / df

    rows = []
    for a, b in pairs:
        xa, xb = groups[a], groups[b]
        diff = float(np.mean(xb) - np.mean(xa))
        se = np.sqrt(mse * (1 / len(xa) + 1 / len(xb)))
        t_val = diff / se
        margin = _studentized_margin(k, df, se, conf_level)
        rows.append(
            {
                "group1": a,
                "group2": b,
                "estimate": diff,
                "conf_low": diff - margin,
                "conf_high": diff + margin,
                "statistic": float(t_val),
                "p_value_unadjusted": float(2 * sp_stats.t.sf(abs(t_val), df)),
            }
        )
    return rows


def _games_howell_pairs(data: pd.DataFrame, groups: dict, pairs, conf_level: float) -> List[dict]:
    """Games-Howell test via pingouin, re-oriented to ``group2 - group1``."""
    gh = pg.pairwise_gameshowell(data=data.assign(x=data["x"].astype(str)), dv="y", between="x")
    lookup = {(str(r["A"]), str(r["B"])): r for _, r in gh.iterrows()}
    k = len(groups)

    rows = []
    for a, b in pairs:
        if (a, b) in lookup:
            r, sign = lookup[(a, b)], -1.0
        else:
            r, sign = lookup[(b, a)], 1.0

        xa, xb = groups[a], groups[b]
        diff = float(np.mean(xb) - np.mean(xa))
        se = np.sqrt(np.var(xa, ddof=1) / len(xa) + np.var(xb, ddof=1) / len(xb))
        margin = _studentized_margin(k, float(r["df"]), se, conf_level)
        rows.append(
            {
                "group1": a,
                "group2": b,
                "estimate": diff,
                "conf_low": diff - margin,
                "conf_high": diff + margin,
                "statistic": sign * float(r["T"]),
                "p_value_unadjusted": float(pingouin_p_value(r)),
            }
        )
    return rows


def dscf_statistic(x: np.ndarray, y: np.ndarray) -> float:
    """Dwass-Steel-Critchlow-Fligner W statistic for one pair (tie corrected)."""
    n1, n2 = len(x), len(y)
    n = n1 + n2
    ranks = sp_stats.rankdata(np.concatenate([x, y]))
    r2 = ranks[n1:].sum()

    _, tie_counts = np.unique(ranks, return_counts=True)
    ties = np.sum(tie_counts**3 - tie_counts) / (n * (n - 1))
    var = n1 * n2 / 12.0 * (n + 1 - ties)
    if var <= 0:
        return np.nan
    return float(np.sqrt(2) * (r2 - n2 * (n + 1) / 2.0) / np.sqrt(var))


def _dscf_pairs(data: pd.DataFrame, groups: dict, pairs) -> List[dict]:
    frame = data.assign(x=data["x"].astype(str))
    ph = sp.posthoc_dscf(frame, val_col="y", group_col="x")

    rows = []
    for a, b in pairs:
        xa, xb = groups[a], groups[b]
        rows.append(
            {
                "group1": a,
                "group2": b,
                "estimate": float(np.median(xb) - np.median(xa)),
                "conf_low": np.nan,
                "conf_high": np.nan,
                "statistic": dscf_statistic(xa, xb),
                "p_value_unadjusted": float(ph.loc[a, b]),
            }
        )
    return rows


def _yuen_pairs(groups: dict, pairs, tr: float, conf_level: float, paired: bool) -> List[dict]:
    rows = []
    for a, b in pairs:
        if paired:
            res = yuen_paired(groups[b], groups[a], tr=tr, conf_level=conf_level)
        else:
            res = yuen_test(groups[b], groups[a], tr=tr, conf_level=conf_level)
        rows.append(
            {
                "group1": a,
                "group2": b,
                "estimate": res["estimate"],
                "conf_low": res["conf_low"],
                "conf_high": res["conf_high"],
                "statistic": res["statistic"],
                "p_value_unadjusted": res["p_value"],
            }
        )
    return rows


def _paired_pairs(groups: dict, pairs, type: str, conf_level: float) -> List[dict]:
    rows = []
    for a, b in pairs:
        if type == "nonparametric":
            res = wilcoxon_signed_rank(groups[b], groups[a])
            estimate = float(np.median(groups[b] - groups[a]))
            low = high = np.nan
        else:
            res = t_test(groups[b], groups[a], paired=True, conf_level=conf_level)
            estimate, low, high = res["estimate"], res["conf_low"], res["conf_high"]
        rows.append(
            {
                "group1": a,
                "group2": b,
                "estimate": estimate,
                "conf_low": low,
                "conf_high": high,
                "statistic": res["statistic"],
                "p_value_unadjusted": res["p_value"],
            }
        )
    return rows


def _bayes_pairs(groups: dict, pairs, paired: bool, bf_prior: float) -> List[dict]:
    rows = []
    for a, b in pairs:
        xa, xb = groups[a], groups[b]
        if paired:
            res = sp_stats.ttest_rel(xb, xa)
            bf10 = pg.bayesfactor_ttest(res.statistic, len(xa), paired=True, r=bf_prior)
            diff = float(np.mean(xb - xa))
        else:
            res = sp_stats.ttest_ind(xb, xa, equal_var=True)
            bf10 = pg.bayesfactor_ttest(res.statistic, len(xb), len(xa), r=bf_prior)
            diff = float(np.mean(xb) - np.mean(xa))
        rows.append(
            {
                "group1": a,
                "group2": b,
                "estimate": diff,
                "conf_low": np.nan,
                "conf_high": np.nan,
                "statistic": float(res.statistic),
                "p_value_unadjusted": np.nan,
                "log_bf01": -float(np.log(bf10)),
            }
        )
    return rows


def pairwise_comparisons(
    data: pd.DataFrame,
    x: str = "x",
    y: str = "y",
    type: str = "parametric",
    var_equal: bool = False,
    paired: bool = False,
    subject: Optional[str] = None,
    tr: float = 0.1,
    p_adjust_method: str = "holm",
    conf_level: float = 0.95,
    bf_prior: float = 0.707,
    annotation: str = "p.value",
    k: int = 2,
) -> pd.DataFrame:
    """All pairwise comparisons between the levels of `x`.

    Pairs follow the level order (first with second, first with third, ...)
    and estimates are ``group2 - group1``.

    Args:
        data: Long dataframe
        x: Grouping (or condition) column
        y: Measurement column
        type: Test family (parametric, nonparametric, robust, bayes)
        var_equal: Student's t with pooled SD instead of Games-Howell
        paired: Within-subjects design
        subject: Subject column for paired designs; rows are matched by order otherwise
        tr: Trim proportion for Yuen's test
        p_adjust_method: Adjustment for multiple comparisons
        conf_level: Confidence level of the estimate intervals
        bf_prior: Cauchy prior scale for Bayesian comparisons
        annotation: "p.value" or "asterisk" for the bracket labels
        k: Decimals in the labels

    Returns:
        DataFrame with columns group1, group2, estimate, conf_low, conf_high,
        statistic, p_value_unadjusted, p_value, significance, p_value_label,
        label, test (plus log_bf01 for Bayesian comparisons)
    """
    type = normalize_type(type)
    columns = [x, y] + ([subject] if subject is not None else [])
    df = data[columns].dropna().rename(columns={x: "x", y: "y"})

    if not isinstance(df["x"].dtype, pd.CategoricalDtype):
        df["x"] = as_factor(df["x"])
    else:
        df["x"] = df["x"].cat.remove_unused_categories()

    levels = factor_levels(df["x"])
    if len(levels) < 2:
        raise ValueError(f"Pairwise comparisons need at least 2 levels of '{x}', got {len(levels)}")

    if paired:
        wide = long_to_paired(df, x="x", y="y", subject=subject)
        groups = {lv: wide[lv].to_numpy(dtype=float) for lv in levels}
    else:
        groups = {lv: df.loc[df["x"] == lv, "y"].to_numpy(dtype=float) for lv in levels}

    pairs = list(itertools.combinations(levels, 2))

    if type == "bayes":
        rows = _bayes_pairs(groups, pairs, paired, bf_prior)
    elif type == "robust":
        rows = _yuen_pairs(groups, pairs, tr, conf_level, paired)
    elif paired:
        rows = _paired_pairs(groups, pairs, type, conf_level)
    elif type == "nonparametric":
        rows = _dscf_pairs(df, groups, pairs)
    elif var_equal:
        rows = _student_pairs(groups, pairs, conf_level)
    else:
        rows = _games_howell_pairs(df, groups, pairs, conf_level)

    result = pd.DataFrame(rows)
    result["p_value"] = adjust_p_values(result["p_value_unadjusted"], p_adjust_method)
    result["significance"] = [significance_stars(p) for p in result["p_value"]]
    result["p_value_label"] = [pairwise_label(p, "p.value", k=3) for p in result["p_value"]]

    if type == "bayes":
        result["label"] = [
            r"$\log_e(BF_{01})$ = " + specify_decimal_p(v, k) for v in result["log_bf01"]
        ]
    else:
        result["label"] = [pairwise_label(p, annotation, k=3) for p in result["p_value"]]

    result["test"] = pairwise_method_text(type, var_equal, paired)

    extra = [c for c in result.columns if c not in PAIRWISE_COLUMNS]
    logger.debug(f"Computed {len(result)} pairwise comparisons ({result['test'].iloc[0]})")
    return result[PAIRWISE_COLUMNS + extra]
