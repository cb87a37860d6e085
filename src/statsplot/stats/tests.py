"""Statistical tests (parametric, nonparametric, robust, Bayesian, contingency)."""

from __future__ import annotations

from typing import List, Dict, Any, Optional, Sequence
import numpy as np
import pandas as pd
from scipy import stats
from scipy.stats import mstats
import pingouin as pg
import statsmodels.formula.api as smf
from statsmodels.stats.anova import anova_lm
from statsmodels.stats.contingency_tables import mcnemar as sm_mcnemar

from statsplot.stats.effects import winsorized_variance


def _finite(value) -> float:
    value = float(value)
    return value if np.isfinite(value) else np.nan


# pingouin renamed its p-value columns across releases
_PINGOUIN_P_COLUMNS = ("p-unc", "p_unc", "p-val", "p_val", "pval")


def pingouin_p_value(record):
    """Uncorrected p-value column (or entry) of a pingouin result table or row."""
    for name in _PINGOUIN_P_COLUMNS:
        if name in record:
            return record[name]
    raise KeyError(f"no p-value column among {list(record.keys())}")


# ──────────────────────────────────────────────────────────────
# Two groups
# ──────────────────────────────────────────────────────────────


def t_test(
    x: np.ndarray,
    y: np.ndarray,
    var_equal: bool = False,
    paired: bool = False,
    conf_level: float = 0.95,
) -> Dict[str, Any]:
    """Student's, Welch's or paired t-test.

    Args:
        x: First group values
        y: Second group values
        var_equal: Pool variances (Student) instead of Welch's correction
        paired: Paired-samples test on ``x - y``
        conf_level: Confidence level for the mean difference

    Returns:
        Dictionary with keys: statistic, parameter, p_value, estimate,
        conf_low, conf_high, n, method
    """
    x, y = np.asarray(x, dtype=float), np.asarray(y, dtype=float)

    if paired:
        res = stats.ttest_rel(x, y)
        method = "Paired t-test"
        n = len(x)
    else:
        res = stats.ttest_ind(x, y, equal_var=var_equal)
        method = "Student's t-test" if var_equal else "Welch's t-test"
        n = len(x) + len(y)

    ci = res.confidence_interval(confidence_level=conf_level)
    estimate = float(np.mean(x - y)) if paired else float(np.mean(x) - np.mean(y))

    return {
        "statistic": _finite(res.statistic),
        "parameter": _finite(res.df),
        "p_value": _finite(res.pvalue),
        "estimate": estimate,
        "conf_low": _finite(ci.low),
        "conf_high": _finite(ci.high),
        "n": n,
        "method": method,
    }


def mann_whitney(x: np.ndarray, y: np.ndarray) -> Dict[str, Any]:
    """Two-sided Mann-Whitney U test; statistic is U for `x`."""
    x, y = np.asarray(x, dtype=float), np.asarray(y, dtype=float)
    res = stats.mannwhitneyu(x, y, alternative="two-sided")

    return {
        "statistic": _finite(res.statistic),
        "p_value": _finite(res.pvalue),
        "n": len(x) + len(y),
        "method": "Mann-Whitney U test",
    }


def wilcoxon_signed_rank(
    x: np.ndarray, y: Optional[np.ndarray] = None, mu: float = 0.0
) -> Dict[str, Any]:
    """Wilcoxon signed-rank test on ``x - y`` (paired) or ``x - mu`` (one sample).

    The statistic is the sum of positive ranks (V).
    """
    x = np.asarray(x, dtype=float)
    diff = x - np.asarray(y, dtype=float) if y is not None else x - mu
    nonzero = diff[diff != 0]

    if len(nonzero) == 0:
        return {"statistic": np.nan, "p_value": np.nan, "n": len(diff), "method": "Wilcoxon signed-rank test"}

    ranks = stats.rankdata(np.abs(nonzero))
    v_plus = float(ranks[nonzero > 0].sum())
    res = stats.wilcoxon(diff, zero_method="wilcox", alternative="two-sided")

    return {
        "statistic": v_plus,
        "p_value": _finite(res.pvalue),
        "n": len(diff),
        "method": "Wilcoxon signed-rank test",
    }


def yuen_test(x: np.ndarray, y: np.ndarray, tr: float = 0.2, conf_level: float = 0.95) -> Dict[str, Any]:
    """Yuen's test for independent trimmed means.

    Returns:
        Dictionary with keys: statistic, parameter, p_value, estimate
        (difference of trimmed means), conf_low, conf_high, n, method
    """
    x, y = np.asarray(x, dtype=float), np.asarray(y, dtype=float)
    n1, n2 = len(x), len(y)
    h1 = n1 - 2 * int(np.floor(tr * n1))
    h2 = n2 - 2 * int(np.floor(tr * n2))

    if h1 < 2 or h2 < 2:
        raise ValueError("Not enough observations left after trimming for Yuen's test")

    d1 = (n1 - 1) * winsorized_variance(x, tr) / (h1 * (h1 - 1))
    d2 = (n2 - 1) * winsorized_variance(y, tr) / (h2 * (h2 - 1))
    se = np.sqrt(d1 + d2)

    estimate = float(stats.trim_mean(x, tr) - stats.trim_mean(y, tr))
    df = (d1 + d2) ** 2 / (d1**2 / (h1 - 1) + d2**2 / (h2 - 1))
    t_stat = estimate / se if se > 0 else np.nan
    p_val = 2 * stats.t.sf(abs(t_stat), df)
    crit = stats.t.ppf((1 + conf_level) / 2, df)

    return {
        "statistic": _finite(t_stat),
        "parameter": _finite(df),
        "p_value": _finite(p_val),
        "estimate": estimate,
        "conf_low": float(estimate - crit * se),
        "conf_high": float(estimate + crit * se),
        "n": n1 + n2,
        "method": "Yuen's trimmed means test",
    }


def yuen_paired(x: np.ndarray, y: np.ndarray, tr: float = 0.2, conf_level: float = 0.95) -> Dict[str, Any]:
    """Yuen's test for dependent trimmed means."""
    x, y = np.asarray(x, dtype=float), np.asarray(y, dtype=float)
    n = len(x)
    h = n - 2 * int(np.floor(tr * n))

    if h < 2:
        raise ValueError("Not enough observations left after trimming for Yuen's test")

    xw = np.asarray(mstats.winsorize(x, limits=(tr, tr)), dtype=float)
    yw = np.asarray(mstats.winsorize(y, limits=(tr, tr)), dtype=float)
    q1 = (n - 1) * np.var(xw, ddof=1)
    q2 = (n - 1) * np.var(yw, ddof=1)
    q3 = (n - 1) * np.cov(xw, yw, ddof=1)[0, 1]
    df = h - 1
    se = np.sqrt((q1 + q2 - 2 * q3) / (h * (h - 1)))

    estimate = float(stats.trim_mean(x, tr) - stats.trim_mean(y, tr))
    t_stat = estimate / se if se > 0 else np.nan
    p_val = 2 * stats.t.sf(abs(t_stat), df)
    crit = stats.t.ppf((1 + conf_level) / 2, df)

    return {
        "statistic": _finite(t_stat),
        "parameter": float(df),
        "p_value": _finite(p_val),
        "estimate": estimate,
        "conf_low": float(estimate - crit * se),
        "conf_high": float(estimate + crit * se),
        "n": n,
        "method": "Yuen's test on trimmed means for dependent samples",
    }


def bayes_t_test(
    x: np.ndarray,
    y: Optional[np.ndarray] = None,
    paired: bool = False,
    mu: float = 0.0,
    bf_prior: float = 0.707,
) -> Dict[str, Any]:
    """JZS Bayes factor (BF10) for a one-sample, paired or two-sample t-test."""
    x = np.asarray(x, dtype=float)

    if y is None:
        res = stats.ttest_1samp(x, mu)
        bf10 = pg.bayesfactor_ttest(res.statistic, len(x), r=bf_prior)
        n = len(x)
    elif paired:
        y = np.asarray(y, dtype=float)
        res = stats.ttest_rel(x, y)
        bf10 = pg.bayesfactor_ttest(res.statistic, len(x), paired=True, r=bf_prior)
        n = len(x)
    else:
        y = np.asarray(y, dtype=float)
        res = stats.ttest_ind(x, y, equal_var=True)
        bf10 = pg.bayesfactor_ttest(res.statistic, len(x), len(y), r=bf_prior)
        n = len(x) + len(y)

    return {
        "statistic": _finite(res.statistic),
        "parameter": _finite(res.df),
        "p_value": _finite(res.pvalue),
        "bf10": float(bf10),
        "n": n,
        "method": "Bayesian t-test",
    }


# ──────────────────────────────────────────────────────────────
# One sample
# ──────────────────────────────────────────────────────────────


def one_sample_t(x: np.ndarray, mu: float = 0.0, conf_level: float = 0.95) -> Dict[str, Any]:
    """One-sample t-test against `mu`."""
    x = np.asarray(x, dtype=float)
    res = stats.ttest_1samp(x, mu)
    ci = res.confidence_interval(confidence_level=conf_level)

    return {
        "statistic": _finite(res.statistic),
        "parameter": _finite(res.df),
        "p_value": _finite(res.pvalue),
        "estimate": float(np.mean(x)),
        "conf_low": _finite(ci.low),
        "conf_high": _finite(ci.high),
        "n": len(x),
        "method": "One sample t-test",
    }


def one_sample_trimmed(x: np.ndarray, mu: float = 0.0, tr: float = 0.2, conf_level: float = 0.95) -> Dict[str, Any]:
    """One-sample test on the trimmed mean."""
    x = np.asarray(x, dtype=float)
    n = len(x)
    h = n - 2 * int(np.floor(tr * n))

    if h < 2:
        raise ValueError("Not enough observations left after trimming")

    se = np.sqrt(winsorized_variance(x, tr)) / ((1 - 2 * tr) * np.sqrt(n))
    df = h - 1
    estimate = float(stats.trim_mean(x, tr))
    t_stat = (estimate - mu) / se if se > 0 else np.nan
    crit = stats.t.ppf((1 + conf_level) / 2, df)

    return {
        "statistic": _finite(t_stat),
        "parameter": float(df),
        "p_value": _finite(2 * stats.t.sf(abs(t_stat), df)),
        "estimate": estimate,
        "conf_low": float(estimate - crit * se),
        "conf_high": float(estimate + crit * se),
        "n": n,
        "method": "One-sample trimmed mean test",
    }


# ──────────────────────────────────────────────────────────────
# k groups
# ──────────────────────────────────────────────────────────────


def anova_oneway(data: pd.DataFrame, x: str = "x", y: str = "y", var_equal: bool = False) -> Dict[str, Any]:
    """Fisher's or Welch's one-way ANOVA.

    Args:
        data: Long dataframe
        x: Grouping column
        y: Measurement column
        var_equal: Fisher's ANOVA if True, Welch's otherwise

    Returns:
        Dictionary with keys: statistic, df1, df2, p_value, k_groups, n, method
    """
    k = data[x].nunique()
    n = len(data)

    if var_equal:
        fit = smf.ols(f"Q('{y}') ~ C(Q('{x}'))", data=data).fit()
        table = anova_lm(fit, typ=1)
        row = table.iloc[0]
        result = {
            "statistic": _finite(row["F"]),
            "df1": float(row["df"]),
            "df2": float(table.loc["Residual", "df"]),
            "p_value": _finite(row["PR(>F)"]),
            "method": "Fisher's ANOVA",
        }
    else:
        table = pg.welch_anova(data=data, dv=y, between=x)
        result = {
            "statistic": _finite(table.loc[0, "F"]),
            "df1": float(table.loc[0, "ddof1"]),
            "df2": float(table.loc[0, "ddof2"]),
            "p_value": _finite(pingouin_p_value(table).iloc[0]),
            "method": "Welch's ANOVA",
        }

    return {**result, "k_groups": k, "n": n}


def kruskal_wallis(groups: List[np.ndarray]) -> Dict[str, Any]:
    """Perform Kruskal-Wallis H test.

    Args:
        groups: List of group arrays

    Returns:
        Dictionary with keys: statistic, parameter, p_value, k_groups, n
    """
    H_stat, p_val = stats.kruskal(*groups)
    k = len(groups)

    return {
        "statistic": _finite(H_stat),
        "parameter": k - 1,
        "p_value": _finite(p_val),
        "k_groups": k,
        "n": sum(len(g) for g in groups),
        "method": "Kruskal-Wallis rank sum test",
    }


def trimmed_anova(groups: List[np.ndarray], tr: float = 0.2) -> Dict[str, Any]:
    """Heteroscedastic one-way ANOVA on trimmed means (Wilcox's t1way).

    Returns:
        Dictionary with keys: statistic, df1, df2, p_value, k_groups, n
    """
    groups = [np.asarray(g, dtype=float) for g in groups]
    J = len(groups)
    n = np.array([len(g) for g in groups], dtype=float)
    h = np.array([len(g) - 2 * int(np.floor(tr * len(g))) for g in groups], dtype=float)

    if np.any(h < 2):
        raise ValueError("Not enough observations left after trimming for the trimmed-means ANOVA")

    trimmed = np.array([stats.trim_mean(g, tr) for g in groups])
    winvar = np.array([winsorized_variance(g, tr) for g in groups])

    w = h * (h - 1) / ((n - 1) * winvar)
    U = w.sum()
    xtil = (w * trimmed).sum() / U
    A = (w * (trimmed - xtil) ** 2).sum() / (J - 1)
    tmp = ((1 - w / U) ** 2 / (h - 1)).sum()
    B = 2 * (J - 2) / (J**2 - 1) * tmp
    F_stat = A / (1 + B)
    df1 = J - 1
    df2 = 1.0 / (3 * tmp / (J**2 - 1))

    return {
        "statistic": _finite(F_stat),
        "df1": float(df1),
        "df2": _finite(df2),
        "p_value": _finite(stats.f.sf(F_stat, df1, df2)),
        "k_groups": J,
        "n": int(n.sum()),
        "method": "A heteroscedastic one-way ANOVA for trimmed means",
    }


def rm_anova(wide: pd.DataFrame) -> Dict[str, Any]:
    """One-way repeated-measures ANOVA on a subjects x conditions table.

    Returns:
        Dictionary with keys: statistic, df1, df2, p_value, partial_eta_sq, n
    """
    long = wide.reset_index(drop=True).rename_axis("subject").reset_index()
    long = long.melt(id_vars="subject", var_name="condition", value_name="value")

    table = pg.rm_anova(data=long, dv="value", within="condition", subject="subject", detailed=True)
    effect, error = table.iloc[0], table.iloc[1]

    return {
        "statistic": _finite(effect["F"]),
        "df1": float(effect["DF"]),
        "df2": float(error["DF"]),
        "p_value": _finite(pingouin_p_value(effect)),
        "partial_eta_sq": float(effect["SS"] / (effect["SS"] + error["SS"])),
        "n": len(wide),
        "method": "Repeated measures ANOVA",
    }


def friedman(wide: pd.DataFrame) -> Dict[str, Any]:
    """Friedman rank sum test on a subjects x conditions table."""
    columns = [wide[c].to_numpy(dtype=float) for c in wide.columns]
    chi2, p_val = stats.friedmanchisquare(*columns)

    return {
        "statistic": _finite(chi2),
        "parameter": len(columns) - 1,
        "p_value": _finite(p_val),
        "n": len(wide),
        "method": "Friedman rank sum test",
    }


# ──────────────────────────────────────────────────────────────
# Correlation
# ──────────────────────────────────────────────────────────────


def fisher_z_ci(r: float, n: int, conf_level: float = 0.95) -> tuple:
    """Fisher z-transformation confidence interval for a correlation."""
    if n <= 3 or not np.isfinite(r) or abs(r) >= 1:
        return np.nan, np.nan
    z = np.arctanh(r)
    se = 1.0 / np.sqrt(n - 3)
    crit = stats.norm.ppf((1 + conf_level) / 2)
    return float(np.tanh(z - crit * se)), float(np.tanh(z + crit * se))


def correlation(
    x: np.ndarray, y: np.ndarray, type: str = "parametric", conf_level: float = 0.95
) -> Dict[str, Any]:
    """Pearson, Spearman or percentage-bend correlation.

    Args:
        x: First variable
        y: Second variable
        type: parametric (Pearson), nonparametric (Spearman) or robust (percentage bend)
        conf_level: Confidence level for the coefficient

    Returns:
        Dictionary with keys: estimate, statistic, parameter, p_value,
        conf_low, conf_high, n, method
    """
    x, y = np.asarray(x, dtype=float), np.asarray(y, dtype=float)
    n = len(x)

    if type == "parametric":
        res = stats.pearsonr(x, y)
        r = float(res.statistic)
        ci = res.confidence_interval(confidence_level=conf_level)
        low, high = float(ci.low), float(ci.high)
        p_val = float(res.pvalue)
        method = "Pearson's product-moment correlation"
    elif type == "nonparametric":
        r, p_val = stats.spearmanr(x, y)
        r, p_val = float(r), float(p_val)
        low, high = fisher_z_ci(r, n, conf_level)
        method = "Spearman's rank correlation rho"
    elif type == "robust":
        res = pg.corr(x, y, method="percbend")
        r = float(res["r"].iloc[0])
        p_val = float(pingouin_p_value(res).iloc[0])
        low, high = fisher_z_ci(r, n, conf_level)
        method = "Percentage bend correlation"
    else:
        raise ValueError(f"Correlation type must be parametric, nonparametric or robust, got {type}")

    if type == "nonparametric":
        # Spearman's S statistic
        statistic = (n**3 - n) * (1 - r) / 6
    else:
        statistic = r * np.sqrt((n - 2) / (1 - r**2)) if abs(r) < 1 else np.inf * np.sign(r)

    return {
        "estimate": r,
        "statistic": float(statistic),
        "parameter": n - 2,
        "p_value": _finite(p_val),
        "conf_low": low,
        "conf_high": high,
        "n": n,
        "method": method,
    }


# ──────────────────────────────────────────────────────────────
# Contingency tables
# ──────────────────────────────────────────────────────────────


def chisq_independence(
    data: pd.DataFrame,
    rows: str,
    cols: str,
    simulate_p_value: bool = False,
    B: int = 2000,
    seed: Optional[int] = None,
) -> Dict[str, Any]:
    """Pearson's chi-squared test of independence (no continuity correction).

    With `simulate_p_value`, the p-value is a Monte Carlo estimate over `B`
    tables with fixed margins: (1 + #{sim >= obs}) / (B + 1).
    """
    table = pd.crosstab(data[rows], data[cols])
    chi2, p_val, dof, _ = stats.chi2_contingency(table.to_numpy(), correction=False)

    if simulate_p_value:
        rng = np.random.default_rng(seed)
        row_values = data[rows].to_numpy()
        col_values = data[cols].to_numpy()
        simulated = np.empty(B)
        for i in range(B):
            shuffled = pd.crosstab(row_values, rng.permutation(col_values))
            simulated[i] = stats.chi2_contingency(shuffled.to_numpy(), correction=False)[0]
        p_val = (1 + np.sum(simulated >= chi2 - 1e-12)) / (B + 1)

    return {
        "statistic": _finite(chi2),
        "parameter": int(dof),
        "p_value": _finite(p_val),
        "n": int(table.to_numpy().sum()),
        "table": table,
        "method": "Pearson's Chi-squared test",
    }


def mcnemar_test(data: pd.DataFrame, rows: str, cols: str, conf_level: float = 0.95) -> Dict[str, Any]:
    """McNemar's test (no continuity correction) with the conditional odds ratio.

    The odds ratio is b / c from the discordant cells, with an exact
    Clopper-Pearson interval on b / (b + c).

    Raises:
        ValueError: If the table is not 2 x 2
    """
    table = pd.crosstab(data[rows], data[cols])
    if table.shape != (2, 2):
        raise ValueError(
            f"McNemar's test requires a 2 x 2 table, got {table.shape[0]} x {table.shape[1]}"
        )

    counts = table.to_numpy()
    res = sm_mcnemar(counts, exact=False, correction=False)

    b, c = int(counts[0, 1]), int(counts[1, 0])
    if b + c == 0:
        odds, low, high = np.nan, np.nan, np.nan
    else:
        ci = stats.binomtest(b, b + c).proportion_ci(confidence_level=conf_level, method="exact")
        odds = b / c if c > 0 else np.inf
        low = ci.low / (1 - ci.low) if ci.low < 1 else np.inf
        high = ci.high / (1 - ci.high) if ci.high < 1 else np.inf

    return {
        "statistic": _finite(res.statistic),
        "parameter": 1,
        "p_value": _finite(res.pvalue),
        "odds_ratio": odds,
        "conf_low": low,
        "conf_high": high,
        "n": int(counts.sum()),
        "table": table,
        "method": "McNemar's Chi-squared test",
    }


def chisq_goodness_of_fit(counts: Sequence[float], ratio: Optional[Sequence[float]] = None) -> Dict[str, Any]:
    """Chi-squared goodness of fit against expected proportions `ratio`.

    Args:
        counts: Observed frequency per level
        ratio: Expected proportions (normalised); equal by default

    Returns:
        Dictionary with keys: statistic, parameter, p_value, n
    """
    observed = np.asarray(counts, dtype=float)
    k = len(observed)

    if ratio is None:
        ratio = np.ones(k)
    ratio = np.asarray(ratio, dtype=float)

    if len(ratio) != k:
        raise ValueError(f"ratio has {len(ratio)} values but there are {k} levels")
    if np.any(ratio < 0) or ratio.sum() <= 0:
        raise ValueError("ratio must contain non-negative values with a positive sum")

    n = observed.sum()
    if k < 2 or n == 0:
        return {"statistic": np.nan, "parameter": k - 1, "p_value": np.nan, "n": int(n)}

    expected = n * ratio / ratio.sum()
    chi2, p_val = stats.chisquare(observed, f_exp=expected)

    return {
        "statistic": _finite(chi2),
        "parameter": k - 1,
        "p_value": _finite(p_val),
        "n": int(n),
        "method": "Chi-squared test for given probabilities",
    }
