"""Effect size calculations and bootstrap confidence intervals."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple
import numpy as np
import pandas as pd
from scipy import stats as sp_stats
from scipy.stats import mstats
import statsmodels.formula.api as smf
from statsmodels.stats.anova import anova_lm

logger = logging.getLogger(__name__)


def cohen_d(x: np.ndarray, y: np.ndarray) -> float:
    """Calculate Cohen's d effect size.

    Args:
        x: First group values
        y: Second group values

    Returns:
        Cohen's d (pooled standard deviation)

    Notes:
        Returns NaN if insufficient data or zero variance
    """
    x, y = np.asarray(x, dtype=float), np.asarray(y, dtype=float)
    nx, ny = len(x), len(y)

    if nx < 2 or ny < 2:
        return np.nan

    # Sample variances
    sx, sy = np.var(x, ddof=1), np.var(y, ddof=1)

    # Pooled variance
    sp2 = ((nx - 1) * sx + (ny - 1) * sy) / (nx + ny - 2)

    if not np.isfinite(sp2) or sp2 <= 0:
        return np.nan

    return float((np.mean(x) - np.mean(y)) / np.sqrt(sp2))


def hedges_correction(df: float) -> float:
    """Small-sample correction factor J(df)."""
    if df <= 0:
        return np.nan
    return 1.0 - (3.0 / (4.0 * df - 1.0))


def hedges_g(x: np.ndarray, y: np.ndarray) -> float:
    """Calculate Hedges' g effect size (small-sample corrected Cohen's d).

    Notes:
        Returns NaN if insufficient data or zero variance
    """
    d = cohen_d(x, y)
    if not np.isfinite(d):
        return np.nan

    return d * hedges_correction(len(x) + len(y) - 2)


def paired_d(x: np.ndarray, y: Optional[np.ndarray] = None, mu: float = 0.0) -> float:
    """Standardized mean difference for paired samples or a single sample.

    With `y`, uses the differences ``x - y``; otherwise ``x - mu``.
    """
    x = np.asarray(x, dtype=float)
    diff = x - np.asarray(y, dtype=float) if y is not None else x - mu

    if len(diff) < 2:
        return np.nan

    sd = np.std(diff, ddof=1)
    if not np.isfinite(sd) or sd <= 0:
        return np.nan

    return float(np.mean(diff) / sd)


def d_confidence_interval(
    d: float, n1: int, n2: Optional[int] = None, conf_level: float = 0.95
) -> Tuple[float, float]:
    """Approximate confidence interval for a standardized mean difference.

    Args:
        d: Effect size estimate
        n1: Size of the first (or only) sample
        n2: Size of the second sample; None for paired/one-sample designs
        conf_level: Confidence level

    Returns:
        Tuple of (conf_low, conf_high)

    Notes:
        Uses the large-sample variance of d with a t critical value.
    """
    if not np.isfinite(d):
        return np.nan, np.nan

    if n2 is None:
        se = np.sqrt(1.0 / n1 + d**2 / (2.0 * n1))
        df = n1 - 1
    else:
        se = np.sqrt((n1 + n2) / (n1 * n2) + d**2 / (2.0 * (n1 + n2)))
        df = n1 + n2 - 2

    crit = sp_stats.t.ppf((1 + conf_level) / 2, df)
    return float(d - crit * se), float(d + crit * se)


def rank_biserial(x: np.ndarray, y: np.ndarray) -> float:
    """Calculate rank-biserial correlation from Mann-Whitney U.

    Args:
        x: First group values
        y: Second group values

    Returns:
        Rank-biserial correlation in range [-1, 1], positive when x tends to exceed y

    Notes:
        Computed as: r = 2*U_x / (nx * ny) - 1
        Returns NaN if insufficient data
    """
    x, y = np.asarray(x, dtype=float), np.asarray(y, dtype=float)
    nx, ny = len(x), len(y)

    if nx == 0 or ny == 0:
        return np.nan

    U, _ = sp_stats.mannwhitneyu(x, y, alternative="two-sided")
    return float(2.0 * U / (nx * ny) - 1.0)


def matched_rank_biserial(x: np.ndarray, y: Optional[np.ndarray] = None, mu: float = 0.0) -> float:
    """Matched-pairs rank-biserial correlation (Wilcoxon signed-rank effect size).

    Zero differences are dropped; returns NaN if none remain.
    """
    x = np.asarray(x, dtype=float)
    diff = x - np.asarray(y, dtype=float) if y is not None else x - mu
    diff = diff[diff != 0]

    if len(diff) == 0:
        return np.nan

    ranks = sp_stats.rankdata(np.abs(diff))
    r_plus = ranks[diff > 0].sum()
    r_minus = ranks[diff < 0].sum()
    return float((r_plus - r_minus) / ranks.sum())


def cramers_v(table: np.ndarray) -> float:
    """Cramér's V for a contingency table (no continuity correction).

    Returns NaN for tables with a single row or column, or empty margins.
    """
    table = np.asarray(table, dtype=float)
    if table.ndim != 2 or min(table.shape) < 2:
        return np.nan

    # empty rows/columns make expected counts zero
    table = table[table.sum(axis=1) > 0][:, table.sum(axis=0) > 0]
    if min(table.shape) < 2:
        return np.nan

    chi2 = sp_stats.chi2_contingency(table, correction=False)[0]
    n = table.sum()
    return float(np.sqrt(chi2 / (n * (min(table.shape) - 1))))


def epsilon_squared(H: float, n: int) -> float:
    """Epsilon-squared for Kruskal-Wallis: H / ((n^2 - 1) / (n + 1))."""
    if n < 2:
        return np.nan
    return float(H / ((n**2 - 1) / (n + 1)))


def kendalls_w(chi2: float, n: int, k: int) -> float:
    """Kendall's coefficient of concordance from a Friedman statistic."""
    if n < 1 or k < 2:
        return np.nan
    return float(chi2 / (n * (k - 1)))


def winsorized_variance(x: np.ndarray, tr: float = 0.2) -> float:
    """Sample variance of the winsorized values."""
    x = np.asarray(x, dtype=float)
    if len(x) < 2:
        return np.nan
    w = np.asarray(mstats.winsorize(x, limits=(tr, tr)), dtype=float)
    return float(np.var(w, ddof=1))


def robust_xi(groups, tr: float = 0.2) -> float:
    """Explanatory measure of effect size for trimmed-means comparisons.

    xi^2 is the variance of the group trimmed means over the winsorized
    variance of the pooled observations; capped at 1.

    Args:
        groups: Sequence of group arrays
        tr: Trim proportion

    Returns:
        xi in [0, 1]
    """
    groups = [np.asarray(g, dtype=float) for g in groups]
    if len(groups) < 2 or any(len(g) < 2 for g in groups):
        return np.nan

    trimmed = np.array([sp_stats.trim_mean(g, tr) for g in groups])
    between = np.var(trimmed, ddof=1)
    total = winsorized_variance(np.concatenate(groups), tr)

    if not np.isfinite(total) or total <= 0:
        return np.nan

    return float(np.sqrt(min(between / total, 1.0)))


def eta_squared_from_anova(anova_table: pd.DataFrame, partial: bool = False) -> pd.Series:
    """Eta-squared for each effect row of a statsmodels ``anova_lm`` table.

    Args:
        anova_table: Output of ``anova_lm`` with a ``Residual`` row
        partial: Whether to compute partial eta-squared

    Returns:
        Series indexed by term (residual row excluded)
    """
    ss = anova_table["sum_sq"]
    ss_resid = ss.loc["Residual"]
    effects = ss.drop("Residual")

    if partial:
        return effects / (effects + ss_resid)
    return effects / ss.sum()


def omega_squared_from_anova(
    anova_table: pd.DataFrame, n: int, partial: bool = False
) -> pd.Series:
    """Omega-squared for each effect row of a statsmodels ``anova_lm`` table.

    Args:
        anova_table: Output of ``anova_lm`` with a ``Residual`` row
        n: Number of observations used in the fit
        partial: Whether to compute partial omega-squared

    Returns:
        Series indexed by term (residual row excluded)
    """
    ss = anova_table["sum_sq"]
    dfs = anova_table["df"]
    mse = ss.loc["Residual"] / dfs.loc["Residual"]
    effects = ss.drop("Residual")
    df_effects = dfs.drop("Residual")

    if partial:
        ms_effects = effects / df_effects
        return (df_effects * (ms_effects - mse)) / (df_effects * ms_effects + (n - df_effects) * mse)
    return (effects - df_effects * mse) / (ss.sum() + mse)


def bootstrap_ci(
    data: pd.DataFrame,
    statistic: Callable[[pd.DataFrame], float],
    nboot: int = 100,
    conf_level: float = 0.95,
    conf_type: str = "norm",
    seed: Optional[int] = None,
    strata: Optional[str] = None,
) -> Tuple[float, float]:
    """Bootstrap confidence interval by resampling rows.

    Args:
        data: Dataframe whose rows are resampled with replacement
        statistic: Function mapping a dataframe to a scalar
        nboot: Number of bootstrap samples
        conf_level: Confidence level
        conf_type: "norm" (bias-corrected normal), "perc" (percentile), or "basic"
        seed: Optional random seed
        strata: Optional column; rows are resampled within each of its levels

    Returns:
        Tuple of (conf_low, conf_high); NaNs if fewer than 2 finite replicates
    """
    if conf_type not in ("norm", "perc", "basic"):
        raise ValueError(f"conf_type must be 'norm', 'perc' or 'basic', got {conf_type}")

    rng = np.random.default_rng(seed)
    estimate = statistic(data)

    if strata is not None:
        blocks = [g for _, g in data.groupby(strata, observed=True)]

    replicates = np.empty(nboot, dtype=float)
    for i in range(nboot):
        # resampled rows repeat index labels; crosstab and groupby need them unique
        if strata is None:
            sample = data.iloc[rng.integers(0, len(data), len(data))].reset_index(drop=True)
        else:
            sample = pd.concat(
                [b.iloc[rng.integers(0, len(b), len(b))] for b in blocks], ignore_index=True
            )
        replicates[i] = statistic(sample)

    replicates = replicates[np.isfinite(replicates)]
    if len(replicates) < 2 or not np.isfinite(estimate):
        logger.warning("Bootstrap produced too few finite replicates; CI not available")
        return np.nan, np.nan

    return _interval(replicates, estimate, conf_level, conf_type)


def _interval(
    replicates: np.ndarray, estimate: float, conf_level: float, conf_type: str
) -> Tuple[float, float]:
    """Interval from finite bootstrap replicates around `estimate`."""
    alpha = 1.0 - conf_level

    if conf_type == "norm":
        bias = replicates.mean() - estimate
        se = replicates.std(ddof=1)
        z = sp_stats.norm.ppf(1 - alpha / 2)
        return float(estimate - bias - z * se), float(estimate - bias + z * se)

    low_q, high_q = np.quantile(replicates, [alpha / 2, 1 - alpha / 2])
    if conf_type == "perc":
        return float(low_q), float(high_q)
    return float(2 * estimate - high_q), float(2 * estimate - low_q)


def chisq_v_ci(
    data: pd.DataFrame,
    rows: str,
    cols: str,
    nboot: int = 100,
    conf_level: float = 0.95,
    conf_type: str = "norm",
    seed: Optional[int] = None,
) -> pd.DataFrame:
    """Cramér's V with a bootstrap confidence interval.

    Args:
        data: Long dataframe, one row per observation
        rows: Column used as table rows
        cols: Column used as table columns
        nboot: Number of bootstrap samples
        conf_level: Confidence level
        conf_type: Bootstrap interval type
        seed: Optional random seed

    Returns:
        One-row DataFrame with columns: cramer_v, conf_low, conf_high
    """

    def _v(frame: pd.DataFrame) -> float:
        return cramers_v(pd.crosstab(frame[rows], frame[cols]).to_numpy())

    estimate = _v(data)
    low, high = bootstrap_ci(
        data[[rows, cols]], _v, nboot=nboot, conf_level=conf_level, conf_type=conf_type, seed=seed
    )

    return pd.DataFrame([{"cramer_v": estimate, "conf_low": low, "conf_high": high}])


def akp_delta(x: np.ndarray, y: Optional[np.ndarray] = None, tr: float = 0.2) -> float:
    """Algina-Keselman-Penfield robust standardized difference for paired samples.

    Trimmed mean of the differences over their winsorized SD, rescaled by 0.642
    so it matches Cohen's d under normality at 20% trimming.
    """
    x = np.asarray(x, dtype=float)
    diff = x - np.asarray(y, dtype=float) if y is not None else x
    sd = np.sqrt(winsorized_variance(diff, tr))

    if not np.isfinite(sd) or sd <= 0:
        return np.nan
    return float(0.642 * sp_stats.trim_mean(diff, tr) / sd)


def rm_partial_eta_squared(wide: pd.DataFrame) -> float:
    """Partial eta-squared of the condition effect in a subjects x conditions table."""
    values = wide.to_numpy(dtype=float)
    n, k = values.shape
    if n < 2 or k < 2:
        return np.nan

    grand = values.mean()
    ss_cond = n * np.sum((values.mean(axis=0) - grand) ** 2)
    ss_subj = k * np.sum((values.mean(axis=1) - grand) ** 2)
    ss_error = np.sum((values - grand) ** 2) - ss_cond - ss_subj

    if ss_cond + ss_error <= 0:
        return np.nan
    return float(ss_cond / (ss_cond + ss_error))


def _anova_effsize(fit, effsize: str, partial: bool) -> pd.DataFrame:
    table = anova_lm(fit, typ=1)
    n = int(fit.nobs)

    if effsize == "eta":
        values = eta_squared_from_anova(table, partial=partial)
    else:
        values = omega_squared_from_anova(table, n=n, partial=partial)

    out = table.drop("Residual")[["df", "F", "PR(>F)"]].copy()
    out["effsize"] = values
    out["df2"] = table.loc["Residual", "df"]
    return out


def lm_effsize_ci(
    model,
    effsize: str = "eta",
    partial: bool = True,
    conf_level: float = 0.95,
    nboot: int = 500,
    seed: Optional[int] = None,
    conf_type: str = "perc",
) -> pd.DataFrame:
    """Eta- or omega-squared for each term of a linear model, with bootstrap CIs.

    Args:
        model: Fitted statsmodels OLS results created from a formula
        effsize: "eta" or "omega"
        partial: Partial effect sizes (default: True)
        conf_level: Confidence level
        nboot: Bootstrap samples; rows are resampled and the formula refitted
        seed: Optional random seed
        conf_type: Bootstrap interval type (perc, norm, basic)

    Returns:
        DataFrame with columns: term, df1, df2, F_value, p_value,
        <effect size column>, conf_low, conf_high

    Notes:
        Sums of squares are sequential (type I), so term order matters.
        Effect size column is etasq, partial_etasq, omegasq or partial_omegasq.
    """
    if effsize not in ("eta", "omega"):
        raise ValueError(f"effsize must be 'eta' or 'omega', got {effsize}")

    formula = getattr(model.model, "formula", None)
    if formula is None:
        raise ValueError("model must be fitted from a formula (statsmodels.formula.api.ols)")

    if conf_type not in ("norm", "perc", "basic"):
        raise ValueError(f"conf_type must be 'norm', 'perc' or 'basic', got {conf_type}")

    # only the rows the fit kept after dropping missing values
    frame = model.model.data.frame.loc[model.model.data.row_labels]
    table = _anova_effsize(model, effsize, partial)
    terms = list(table.index)

    rng = np.random.default_rng(seed)
    replicates = np.full((nboot, len(terms)), np.nan)
    for i in range(nboot):
        sample = frame.iloc[rng.integers(0, len(frame), len(frame))].reset_index(drop=True)
        boot = _anova_effsize(smf.ols(formula, data=sample).fit(), effsize, partial)
        replicates[i] = boot["effsize"].reindex(terms).to_numpy(dtype=float)

    lows, highs = [], []
    for j, term in enumerate(terms):
        reps = replicates[:, j][np.isfinite(replicates[:, j])]
        if len(reps) < 2:
            low, high = np.nan, np.nan
        else:
            low, high = _interval(reps, float(table.loc[term, "effsize"]), conf_level, conf_type)
        lows.append(low)
        highs.append(high)

    name = ("partial_" if partial else "") + ("etasq" if effsize == "eta" else "omegasq")

    return pd.DataFrame(
        {
            "term": terms,
            "df1": table["df"].to_numpy(dtype=float),
            "df2": table["df2"].to_numpy(dtype=float),
            "F_value": table["F"].to_numpy(dtype=float),
            "p_value": table["PR(>F)"].to_numpy(dtype=float),
            name: table["effsize"].to_numpy(dtype=float),
            "conf_low": lows,
            "conf_high": highs,
        }
    )
