"""Subtitle builders: run the chosen test and format its results.

Every builder returns a mathtext subtitle string, or ``None`` when the test
cannot be run (the plot then shows the sample size only).
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats as sp_stats
import statsmodels.formula.api as smf

from statsplot.config import StatsConfig, is_unbiased, normalize_type
from statsplot import formatting as fmt
from statsplot.stats import effects, tests
from statsplot.stats.pairwise import significance_stars
from statsplot.stats.preprocess import (
    as_factor,
    ensure_numeric,
    factor_levels,
    long_to_paired,
    select_columns,
    uncount,
)

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────
# Data preparation
# ──────────────────────────────────────────────────────────────


def prepare_groups(
    data: pd.DataFrame,
    x: str,
    y: str,
    paired: bool = False,
    subject: Optional[str] = None,
) -> Tuple[pd.DataFrame, list, Optional[pd.DataFrame]]:
    """Select, clean and (for paired designs) reshape the analysis columns.

    Returns:
        Tuple of (long frame with columns x and y, levels, wide frame or None)
    """
    df = select_columns(data, dropna=not paired, x=x, y=y, subject=subject)
    df = df[df["x"].notna()].copy()
    df["x"] = as_factor(df["x"])
    df["y"] = ensure_numeric(df["y"], y)
    levels = factor_levels(df["x"])

    wide = None
    if paired:
        if subject is None:
            df["subject"] = df.groupby("x", observed=True).cumcount()
        wide = long_to_paired(df, x="x", y="y", subject="subject")
        df = df[df["y"].notna()]

    return df, levels, wide


def _groups(df: pd.DataFrame, levels: Sequence[str]) -> list:
    return [df.loc[df["x"] == lv, "y"].to_numpy(dtype=float) for lv in levels]


def _two_levels(levels: Sequence[str], x: str) -> bool:
    if len(levels) != 2:
        logger.warning(f"'{x}' must have exactly 2 levels for this test, got {len(levels)}")
        return False
    return True


def _ci_note(messages: bool, nboot: int, conf_level: float) -> None:
    if messages:
        fmt.effsize_ci_message(nboot, conf_level)


# ──────────────────────────────────────────────────────────────
# Two groups
# ──────────────────────────────────────────────────────────────


def subtitle_t_parametric(
    data: pd.DataFrame,
    x: str,
    y: str,
    paired: bool = False,
    subject: Optional[str] = None,
    effsize_type: str = "unbiased",
    var_equal: bool = False,
    conf_level: float = 0.95,
    k: int = 2,
    stat_title: Optional[str] = None,
) -> Optional[str]:
    """Student's/Welch's or paired t-test with Hedges' g (or Cohen's d).

    Example:
        >>> subtitle_t_parametric(mtcars, x="am", y="mpg")
        '$t$(18.33) = -3.77, $p$ = 0.001, $g$ = -1.38, CI$_{95\\%}$ [...], $n$ = 32'
    """
    df, levels, wide = prepare_groups(data, x, y, paired, subject)
    if not _two_levels(levels, x):
        return None

    unbiased = is_unbiased(effsize_type)

    if paired:
        a, b = wide[levels[0]].to_numpy(), wide[levels[1]].to_numpy()
        res = tests.t_test(a, b, paired=True, conf_level=conf_level)
        d = effects.paired_d(a, b)
        if unbiased:
            d *= effects.hedges_correction(len(a) - 1)
        low, high = effects.d_confidence_interval(d, len(a), conf_level=conf_level)
        k_parameter = 0
    else:
        a, b = _groups(df, levels)
        res = tests.t_test(a, b, var_equal=var_equal, conf_level=conf_level)
        d = effects.hedges_g(a, b) if unbiased else effects.cohen_d(a, b)
        low, high = effects.d_confidence_interval(d, len(a), len(b), conf_level=conf_level)
        k_parameter = 0 if var_equal else k

    return fmt.subtitle_template(
        no_parameters=1,
        statistic_text=fmt.T_TEXT,
        statistic=res["statistic"],
        parameter=res["parameter"],
        p_value=res["p_value"],
        effsize_text=fmt.G_TEXT if unbiased else fmt.D_TEXT,
        effsize_estimate=d,
        effsize_low=low,
        effsize_high=high,
        n=res["n"],
        stat_title=stat_title,
        conf_level=conf_level,
        k=k,
        k_parameter=k_parameter,
        n_text="$n_{pairs}$" if paired else "$n$",
    )


def subtitle_mann_nonparametric(
    data: pd.DataFrame,
    x: str,
    y: str,
    paired: bool = False,
    subject: Optional[str] = None,
    conf_level: float = 0.95,
    conf_type: str = "norm",
    nboot: int = 100,
    k: int = 2,
    stat_title: Optional[str] = None,
    messages: bool = True,
    seed: Optional[int] = None,
) -> Optional[str]:
    """Mann-Whitney U (or Wilcoxon signed-rank) test with rank-biserial r."""
    df, levels, wide = prepare_groups(data, x, y, paired, subject)
    if not _two_levels(levels, x):
        return None

    if paired:
        res = tests.wilcoxon_signed_rank(wide[levels[0]].to_numpy(), wide[levels[1]].to_numpy())
        statistic_text = fmt.LOG_V_TEXT

        def _r(frame: pd.DataFrame) -> float:
            return effects.matched_rank_biserial(frame[levels[0]].to_numpy(), frame[levels[1]].to_numpy())

        estimate = _r(wide)
        low, high = effects.bootstrap_ci(
            wide, _r, nboot=nboot, conf_level=conf_level, conf_type=conf_type, seed=seed
        )
    else:
        a, b = _groups(df, levels)
        res = tests.mann_whitney(a, b)
        statistic_text = fmt.LOG_W_TEXT

        def _r(frame: pd.DataFrame) -> float:
            return effects.rank_biserial(
                frame.loc[frame["x"] == levels[0], "y"].to_numpy(),
                frame.loc[frame["x"] == levels[1], "y"].to_numpy(),
            )

        estimate = _r(df)
        low, high = effects.bootstrap_ci(
            df, _r, nboot=nboot, conf_level=conf_level, conf_type=conf_type, seed=seed, strata="x"
        )

    _ci_note(messages, nboot, conf_level)
    log_stat = np.log(res["statistic"]) if res["statistic"] > 0 else np.nan

    return fmt.subtitle_template(
        no_parameters=0,
        statistic_text=statistic_text,
        statistic=log_stat,
        p_value=res["p_value"],
        effsize_text=r"$r_{biserial}^{rank}$",
        effsize_estimate=estimate,
        effsize_low=low,
        effsize_high=high,
        n=res["n"],
        stat_title=stat_title,
        conf_level=conf_level,
        k=k,
        n_text="$n_{pairs}$" if paired else "$n$",
    )


def subtitle_t_robust(
    data: pd.DataFrame,
    x: str,
    y: str,
    paired: bool = False,
    subject: Optional[str] = None,
    tr: float = 0.1,
    conf_level: float = 0.95,
    conf_type: str = "norm",
    nboot: int = 100,
    k: int = 2,
    stat_title: Optional[str] = None,
    messages: bool = True,
    seed: Optional[int] = None,
) -> Optional[str]:
    """Yuen's trimmed-means test with xi (independent) or AKP delta (paired)."""
    df, levels, wide = prepare_groups(data, x, y, paired, subject)
    if not _two_levels(levels, x):
        return None

    if paired:
        res = tests.yuen_paired(wide[levels[0]].to_numpy(), wide[levels[1]].to_numpy(), tr=tr, conf_level=conf_level)
        effsize_text = fmt.DELTA_TEXT

        def _effect(frame: pd.DataFrame) -> float:
            return effects.akp_delta(frame[levels[0]].to_numpy(), frame[levels[1]].to_numpy(), tr=tr)

        estimate = _effect(wide)
        low, high = effects.bootstrap_ci(
            wide, _effect, nboot=nboot, conf_level=conf_level, conf_type=conf_type, seed=seed
        )
    else:
        a, b = _groups(df, levels)
        res = tests.yuen_test(a, b, tr=tr, conf_level=conf_level)
        effsize_text = fmt.XI_TEXT

        def _effect(frame: pd.DataFrame) -> float:
            return effects.robust_xi(_groups(frame, levels), tr=tr)

        estimate = _effect(df)
        low, high = effects.bootstrap_ci(
            df, _effect, nboot=nboot, conf_level=conf_level, conf_type=conf_type, seed=seed, strata="x"
        )

    _ci_note(messages, nboot, conf_level)

    return fmt.subtitle_template(
        no_parameters=1,
        statistic_text=fmt.T_TEXT,
        statistic=res["statistic"],
        parameter=res["parameter"],
        p_value=res["p_value"],
        effsize_text=effsize_text,
        effsize_estimate=estimate,
        effsize_low=low,
        effsize_high=high,
        n=res["n"],
        stat_title=stat_title,
        conf_level=conf_level,
        k=k,
        k_parameter=0 if paired else k,
        n_text="$n_{pairs}$" if paired else "$n$",
    )


def bayes_factor_t(
    data: pd.DataFrame,
    x: str,
    y: str,
    paired: bool = False,
    subject: Optional[str] = None,
    bf_prior: float = 0.707,
) -> Optional[dict]:
    """Bayes factor results for a two-level comparison, or None."""
    df, levels, wide = prepare_groups(data, x, y, paired, subject)
    if not _two_levels(levels, x):
        return None

    if paired:
        return tests.bayes_t_test(
            wide[levels[0]].to_numpy(), wide[levels[1]].to_numpy(), paired=True, bf_prior=bf_prior
        )
    a, b = _groups(df, levels)
    return tests.bayes_t_test(a, b, bf_prior=bf_prior)


def subtitle_t_bayes(
    data: pd.DataFrame,
    x: str,
    y: str,
    paired: bool = False,
    subject: Optional[str] = None,
    bf_prior: float = 0.707,
    k: int = 2,
    stat_title: Optional[str] = None,
) -> Optional[str]:
    """JZS Bayes factor t-test subtitle."""
    res = bayes_factor_t(data, x, y, paired=paired, subject=subject, bf_prior=bf_prior)
    if res is None:
        return None

    subtitle = f"{fmt.bf_text(res['bf10'], bf_prior, k)}, " + ("$n_{pairs}$" if paired else "$n$") + f" = {res['n']}"
    if stat_title is not None:
        subtitle = f"{stat_title}: {subtitle}"
    return subtitle


# ──────────────────────────────────────────────────────────────
# k groups
# ──────────────────────────────────────────────────────────────


def _anova_effsize_text(effsize_type: str, partial: bool) -> Tuple[str, str]:
    if is_unbiased(effsize_type):
        return "omega", fmt.OMEGA2_P_TEXT if partial else fmt.OMEGA2_TEXT
    return "eta", fmt.ETA2_P_TEXT if partial else fmt.ETA2_TEXT


def subtitle_anova_parametric(
    data: pd.DataFrame,
    x: str,
    y: str,
    paired: bool = False,
    subject: Optional[str] = None,
    effsize_type: str = "unbiased",
    partial: bool = True,
    var_equal: bool = False,
    conf_level: float = 0.95,
    conf_type: str = "norm",
    nboot: int = 100,
    k: int = 2,
    stat_title: Optional[str] = None,
    messages: bool = True,
    seed: Optional[int] = None,
) -> Optional[str]:
    """Fisher's/Welch's one-way ANOVA with eta- or omega-squared.

    Paired designs are delegated to :func:`subtitle_rm_anova`.
    """
    if paired:
        return subtitle_rm_anova(
            data, x, y, subject=subject, conf_level=conf_level, conf_type=conf_type,
            nboot=nboot, k=k, stat_title=stat_title, messages=messages, seed=seed,
        )

    df, levels, _ = prepare_groups(data, x, y)
    if len(levels) < 2:
        logger.warning(f"'{x}' has fewer than 2 levels; ANOVA not run")
        return None

    res = tests.anova_oneway(df, var_equal=var_equal)
    effsize, effsize_text = _anova_effsize_text(effsize_type, partial)

    fit = smf.ols("y ~ C(x)", data=df.assign(x=df["x"].astype(str))).fit()
    table = effects.lm_effsize_ci(
        fit, effsize=effsize, partial=partial, conf_level=conf_level,
        nboot=nboot, seed=seed, conf_type=conf_type,
    )
    row = table.iloc[0]
    estimate = row[table.columns[5]]
    _ci_note(messages, nboot, conf_level)

    return fmt.subtitle_template(
        no_parameters=2,
        statistic_text=fmt.F_TEXT,
        statistic=res["statistic"],
        parameter=res["df1"],
        parameter2=res["df2"],
        p_value=res["p_value"],
        effsize_text=effsize_text,
        effsize_estimate=estimate,
        effsize_low=row["conf_low"],
        effsize_high=row["conf_high"],
        n=res["n"],
        stat_title=stat_title,
        conf_level=conf_level,
        k=k,
        k_parameter=0,
        k_parameter2=0 if var_equal else k,
    )


def subtitle_rm_anova(
    data: pd.DataFrame,
    x: str,
    y: str,
    subject: Optional[str] = None,
    conf_level: float = 0.95,
    conf_type: str = "norm",
    nboot: int = 100,
    k: int = 2,
    stat_title: Optional[str] = None,
    messages: bool = True,
    seed: Optional[int] = None,
) -> Optional[str]:
    """One-way repeated-measures ANOVA with partial eta-squared."""
    _, levels, wide = prepare_groups(data, x, y, paired=True, subject=subject)
    if len(levels) < 2 or len(wide) < 2:
        logger.warning(f"'{x}' needs at least 2 levels and 2 complete subjects; ANOVA not run")
        return None

    res = tests.rm_anova(wide)
    low, high = effects.bootstrap_ci(
        wide, effects.rm_partial_eta_squared, nboot=nboot, conf_level=conf_level,
        conf_type=conf_type, seed=seed,
    )
    _ci_note(messages, nboot, conf_level)

    return fmt.subtitle_template(
        no_parameters=2,
        statistic_text=fmt.F_TEXT,
        statistic=res["statistic"],
        parameter=res["df1"],
        parameter2=res["df2"],
        p_value=res["p_value"],
        effsize_text=fmt.ETA2_P_TEXT,
        effsize_estimate=res["partial_eta_sq"],
        effsize_low=low,
        effsize_high=high,
        n=res["n"],
        stat_title=stat_title,
        conf_level=conf_level,
        k=k,
        n_text="$n_{pairs}$",
    )


def subtitle_kw_nonparametric(
    data: pd.DataFrame,
    x: str,
    y: str,
    paired: bool = False,
    subject: Optional[str] = None,
    conf_level: float = 0.95,
    conf_type: str = "norm",
    nboot: int = 100,
    k: int = 2,
    stat_title: Optional[str] = None,
    messages: bool = True,
    seed: Optional[int] = None,
) -> Optional[str]:
    """Kruskal-Wallis test with epsilon-squared (Friedman for paired designs)."""
    if paired:
        return subtitle_friedman(
            data, x, y, subject=subject, conf_level=conf_level, conf_type=conf_type,
            nboot=nboot, k=k, stat_title=stat_title, messages=messages, seed=seed,
        )

    df, levels, _ = prepare_groups(data, x, y)
    if len(levels) < 2:
        logger.warning(f"'{x}' has fewer than 2 levels; Kruskal-Wallis test not run")
        return None

    res = tests.kruskal_wallis(_groups(df, levels))

    def _epsilon(frame: pd.DataFrame) -> float:
        if frame["y"].nunique() < 2:
            return np.nan
        H = sp_stats.kruskal(*_groups(frame, levels)).statistic
        return effects.epsilon_squared(H, len(frame))

    low, high = effects.bootstrap_ci(
        df, _epsilon, nboot=nboot, conf_level=conf_level, conf_type=conf_type, seed=seed, strata="x"
    )
    _ci_note(messages, nboot, conf_level)

    return fmt.subtitle_template(
        no_parameters=1,
        statistic_text=fmt.KW_TEXT,
        statistic=res["statistic"],
        parameter=res["parameter"],
        p_value=res["p_value"],
        effsize_text=fmt.EPSILON2_TEXT,
        effsize_estimate=effects.epsilon_squared(res["statistic"], res["n"]),
        effsize_low=low,
        effsize_high=high,
        n=res["n"],
        stat_title=stat_title,
        conf_level=conf_level,
        k=k,
    )


def subtitle_friedman(
    data: pd.DataFrame,
    x: str,
    y: str,
    subject: Optional[str] = None,
    conf_level: float = 0.95,
    conf_type: str = "norm",
    nboot: int = 100,
    k: int = 2,
    stat_title: Optional[str] = None,
    messages: bool = True,
    seed: Optional[int] = None,
) -> Optional[str]:
    """Friedman rank sum test with Kendall's W."""
    _, levels, wide = prepare_groups(data, x, y, paired=True, subject=subject)
    if len(levels) < 2 or len(wide) < 2:
        logger.warning(f"'{x}' needs at least 2 levels and 2 complete subjects; Friedman test not run")
        return None

    res = tests.friedman(wide)
    n_cond = wide.shape[1]

    def _w(frame: pd.DataFrame) -> float:
        if frame.nunique().max() < 2:
            return np.nan
        chi2 = tests.friedman(frame)["statistic"]
        return effects.kendalls_w(chi2, len(frame), n_cond)

    low, high = effects.bootstrap_ci(
        wide, _w, nboot=nboot, conf_level=conf_level, conf_type=conf_type, seed=seed
    )
    _ci_note(messages, nboot, conf_level)

    return fmt.subtitle_template(
        no_parameters=1,
        statistic_text=fmt.FRIEDMAN_TEXT,
        statistic=res["statistic"],
        parameter=res["parameter"],
        p_value=res["p_value"],
        effsize_text=fmt.KENDALL_W_TEXT,
        effsize_estimate=effects.kendalls_w(res["statistic"], res["n"], n_cond),
        effsize_low=low,
        effsize_high=high,
        n=res["n"],
        stat_title=stat_title,
        conf_level=conf_level,
        k=k,
        n_text="$n_{pairs}$",
    )


def subtitle_anova_robust(
    data: pd.DataFrame,
    x: str,
    y: str,
    paired: bool = False,
    subject: Optional[str] = None,
    tr: float = 0.1,
    conf_level: float = 0.95,
    conf_type: str = "norm",
    nboot: int = 100,
    k: int = 2,
    stat_title: Optional[str] = None,
    messages: bool = True,
    seed: Optional[int] = None,
) -> Optional[str]:
    """Heteroscedastic one-way ANOVA on trimmed means with xi."""
    if paired:
        logger.warning("Robust repeated-measures ANOVA is not available; subtitle omitted")
        return None

    df, levels, _ = prepare_groups(data, x, y)
    if len(levels) < 2:
        logger.warning(f"'{x}' has fewer than 2 levels; trimmed-means ANOVA not run")
        return None

    res = tests.trimmed_anova(_groups(df, levels), tr=tr)

    def _xi(frame: pd.DataFrame) -> float:
        return effects.robust_xi(_groups(frame, levels), tr=tr)

    low, high = effects.bootstrap_ci(
        df, _xi, nboot=nboot, conf_level=conf_level, conf_type=conf_type, seed=seed, strata="x"
    )
    _ci_note(messages, nboot, conf_level)

    return fmt.subtitle_template(
        no_parameters=2,
        statistic_text=fmt.F_TEXT,
        statistic=res["statistic"],
        parameter=res["df1"],
        parameter2=res["df2"],
        p_value=res["p_value"],
        effsize_text=fmt.XI_TEXT,
        effsize_estimate=_xi(df),
        effsize_low=low,
        effsize_high=high,
        n=res["n"],
        stat_title=stat_title,
        conf_level=conf_level,
        k=k,
        k_parameter=0,
        k_parameter2=k,
    )


# ──────────────────────────────────────────────────────────────
# One sample
# ──────────────────────────────────────────────────────────────


def subtitle_t_onesample(
    data: pd.DataFrame,
    x: str,
    test_value: float = 0.0,
    type: str = "parametric",
    effsize_type: str = "unbiased",
    tr: float = 0.1,
    bf_prior: float = 0.707,
    conf_level: float = 0.95,
    conf_type: str = "norm",
    nboot: int = 100,
    k: int = 2,
    stat_title: Optional[str] = None,
    messages: bool = True,
    seed: Optional[int] = None,
) -> Optional[str]:
    """One-sample test of `x` against `test_value` for any test type."""
    type = normalize_type(type)
    df = select_columns(data, x=x)
    values = ensure_numeric(df["x"], x).to_numpy()

    if len(values) < 2:
        logger.warning(f"'{x}' has fewer than 2 observations; one-sample test not run")
        return None

    if type == "bayes":
        res = tests.bayes_t_test(values, mu=test_value, bf_prior=bf_prior)
        subtitle = f"{fmt.bf_text(res['bf10'], bf_prior, k)}, $n$ = {res['n']}"
        return f"{stat_title}: {subtitle}" if stat_title is not None else subtitle

    frame = pd.DataFrame({"x": values})

    if type == "parametric":
        res = tests.one_sample_t(values, mu=test_value, conf_level=conf_level)
        unbiased = is_unbiased(effsize_type)
        estimate = effects.paired_d(values, mu=test_value)
        if unbiased:
            estimate *= effects.hedges_correction(len(values) - 1)
        low, high = effects.d_confidence_interval(estimate, len(values), conf_level=conf_level)
        statistic_text, statistic = fmt.T_TEXT, res["statistic"]
        effsize_text = fmt.G_TEXT if unbiased else fmt.D_TEXT
        no_parameters = 1
    elif type == "nonparametric":
        res = tests.wilcoxon_signed_rank(values, mu=test_value)

        def _r(f: pd.DataFrame) -> float:
            return effects.matched_rank_biserial(f["x"].to_numpy(), mu=test_value)

        estimate = _r(frame)
        low, high = effects.bootstrap_ci(
            frame, _r, nboot=nboot, conf_level=conf_level, conf_type=conf_type, seed=seed
        )
        _ci_note(messages, nboot, conf_level)
        statistic_text = fmt.LOG_V_TEXT
        statistic = np.log(res["statistic"]) if res["statistic"] > 0 else np.nan
        effsize_text = r"$r_{biserial}^{rank}$"
        no_parameters = 0
    else:
        res = tests.one_sample_trimmed(values, mu=test_value, tr=tr, conf_level=conf_level)
        estimate, low, high = res["estimate"], res["conf_low"], res["conf_high"]
        statistic_text, statistic = fmt.T_TEXT, res["statistic"]
        effsize_text = r"$\hat{\mu}_{trimmed}$"
        no_parameters = 1

    return fmt.subtitle_template(
        no_parameters=no_parameters,
        statistic_text=statistic_text,
        statistic=statistic,
        parameter=res.get("parameter"),
        p_value=res["p_value"],
        effsize_text=effsize_text,
        effsize_estimate=estimate,
        effsize_low=low,
        effsize_high=high,
        n=res["n"],
        stat_title=stat_title,
        conf_level=conf_level,
        k=k,
    )


# ──────────────────────────────────────────────────────────────
# Correlation
# ──────────────────────────────────────────────────────────────


def subtitle_scatterstats(
    data: pd.DataFrame,
    x: str,
    y: str,
    type: str = "parametric",
    conf_level: float = 0.95,
    k: int = 2,
    stat_title: Optional[str] = None,
) -> Optional[str]:
    """Correlation test subtitle (Pearson, Spearman or percentage bend)."""
    type = normalize_type(type)
    if type == "bayes":
        logger.warning("Bayesian correlation is not available; subtitle omitted")
        return None

    df = select_columns(data, x=x, y=y)
    xs = ensure_numeric(df["x"], x).to_numpy()
    ys = ensure_numeric(df["y"], y).to_numpy()

    if len(xs) < 3:
        logger.warning(f"Fewer than 3 complete pairs of '{x}' and '{y}'; correlation not run")
        return None

    res = tests.correlation(xs, ys, type=type, conf_level=conf_level)

    if type == "nonparametric":
        statistic_text = fmt.LOG_S_TEXT
        statistic = np.log(res["statistic"]) if res["statistic"] > 0 else np.nan
        effsize_text = r"$\rho_{Spearman}$"
        no_parameters = 0
    else:
        statistic_text = fmt.T_TEXT
        statistic = res["statistic"]
        effsize_text = "$r_{Pearson}$" if type == "parametric" else r"$\rho_{pb}$"
        no_parameters = 1

    return fmt.subtitle_template(
        no_parameters=no_parameters,
        statistic_text=statistic_text,
        statistic=statistic,
        parameter=res["parameter"],
        p_value=res["p_value"],
        effsize_text=effsize_text,
        effsize_estimate=res["estimate"],
        effsize_low=res["conf_low"],
        effsize_high=res["conf_high"],
        n=res["n"],
        stat_title=stat_title,
        conf_level=conf_level,
        k=k,
        n_text="$n_{pairs}$",
    )


# ──────────────────────────────────────────────────────────────
# Contingency tables
# ──────────────────────────────────────────────────────────────


def subtitle_contingency_tab(
    data: pd.DataFrame,
    main: str,
    condition: str,
    counts: Optional[str] = None,
    nboot: int = 100,
    paired: bool = False,
    stat_title: Optional[str] = None,
    conf_level: float = 0.95,
    conf_type: str = "norm",
    simulate_p_value: bool = False,
    B: int = 2000,
    k: int = 2,
    messages: bool = True,
    seed: Optional[int] = None,
) -> Optional[str]:
    """Chi-squared test of independence (or McNemar's test) subtitle.

    Args:
        data: Dataframe, one row per observation (or per cell with `counts`)
        main: Column shown as the outcome
        condition: Column defining the groups
        counts: Optional column of frequencies
        nboot: Bootstrap samples for the Cramér's V interval
        paired: McNemar's test for paired nominal data
        stat_title: Optional prefix
        conf_level: Confidence level
        conf_type: Bootstrap interval type
        simulate_p_value: Monte Carlo p-value for the chi-squared test
        B: Replicates for the Monte Carlo p-value
        k: Decimals
        messages: Log the bootstrap note
        seed: Optional random seed

    Returns:
        Subtitle, or None if `condition` has fewer than 2 levels
    """
    df = select_columns(data, main=main, condition=condition, counts=counts)
    if counts is not None:
        df = uncount(df, counts="counts")

    df["main"] = as_factor(df["main"])
    df["condition"] = as_factor(df["condition"])

    if df["condition"].nunique() < 2:
        logger.warning(f"'{condition}' has fewer than 2 levels; chi-squared test not run")
        return None

    if paired:
        res = tests.mcnemar_test(df, rows="main", cols="condition", conf_level=conf_level)
        log_or = np.log(res["odds_ratio"]) if res["odds_ratio"] > 0 else np.nan
        log_low = np.log(res["conf_low"]) if res["conf_low"] > 0 else np.nan
        log_high = np.log(res["conf_high"]) if res["conf_high"] > 0 else np.nan

        return fmt.subtitle_template(
            no_parameters=1,
            statistic_text=r"$\chi^2_{McNemar}$",
            statistic=res["statistic"],
            parameter=res["parameter"],
            p_value=res["p_value"],
            effsize_text=fmt.LOG_OR_TEXT,
            effsize_estimate=log_or,
            effsize_low=log_low,
            effsize_high=log_high,
            n=res["n"],
            stat_title=stat_title,
            conf_level=conf_level,
            k=k,
            n_text="$n_{pairs}$",
        )

    res = tests.chisq_independence(
        df, rows="main", cols="condition", simulate_p_value=simulate_p_value, B=B, seed=seed
    )
    v = effects.chisq_v_ci(
        df, rows="main", cols="condition", nboot=nboot, conf_level=conf_level,
        conf_type=conf_type, seed=seed,
    ).iloc[0]
    _ci_note(messages, nboot, conf_level)

    return fmt.subtitle_template(
        no_parameters=1,
        statistic_text=fmt.CHI2_TEXT,
        statistic=res["statistic"],
        parameter=res["parameter"],
        p_value=res["p_value"],
        effsize_text=fmt.V_TEXT,
        effsize_estimate=v["cramer_v"],
        effsize_low=v["conf_low"],
        effsize_high=v["conf_high"],
        n=res["n"],
        stat_title=stat_title,
        conf_level=conf_level,
        k=k,
    )


def _gof_text(res: dict, n: int, k: int) -> str:
    return (
        r"$\chi^2_{gof}$(" + fmt.specify_decimal_p(res["parameter"], 0) + ") = "
        + fmt.specify_decimal_p(res["statistic"], k) + ", "
        + fmt.p_value_text(res["p_value"], max(k, 3)) + f", $n$ = {n}"
    )


def _declared_levels(series: pd.Series) -> list:
    # categories of a Categorical, otherwise every observed value
    if isinstance(series.dtype, pd.CategoricalDtype):
        return [str(c) for c in series.cat.categories]
    return factor_levels(as_factor(series))


def subtitle_onesample_proptest(
    data: pd.DataFrame,
    main: str,
    counts: Optional[str] = None,
    ratio: Optional[Sequence[float]] = None,
    legend_title: Optional[str] = None,
    k: int = 2,
    stat_title: Optional[str] = None,
) -> str:
    """Chi-squared goodness-of-fit subtitle: ``chi2_gof(df) = ..., p = ..., n = ...``.

    The levels tested are the declared categories of `main` (for a
    Categorical) or every value present before counts are expanded, so a
    level with a zero count is kept. When such a level exists, or there is a
    single level, the result is the ``n = N`` subtitle and a warning naming
    `legend_title`.

    No effect size is reported. The p-value uses at least 3 decimals.
    """
    df = select_columns(data, main=main, counts=counts)
    levels = _declared_levels(df["main"])
    if counts is not None:
        df = uncount(df, counts="counts")
    df["main"] = as_factor(df["main"], levels=levels)

    freq = df["main"].value_counts(sort=False).reindex(levels, fill_value=0)
    n = int(freq.sum())
    legend_title = legend_title or main

    if len(freq) < 2 or (freq == 0).any():
        logger.warning(
            f"Proportion test will not be run because it requires '{legend_title}' "
            f"to have at least 2 levels with non-zero frequencies"
        )
        return fmt.n_only_subtitle(n)

    res = tests.chisq_goodness_of_fit(freq.to_numpy(), ratio=ratio)
    subtitle = _gof_text(res, n, k)
    if stat_title is not None:
        subtitle = f"{stat_title}: {subtitle}"
    return subtitle


# ──────────────────────────────────────────────────────────────
# Dispatch
# ──────────────────────────────────────────────────────────────


def subtitle_for(
    data: pd.DataFrame,
    x: str,
    y: str,
    config: Optional[StatsConfig] = None,
    paired: bool = False,
    subject: Optional[str] = None,
    stat_title: Optional[str] = None,
) -> Optional[str]:
    """Pick and run the subtitle builder for a between- or within-subjects design.

    Two levels use t-tests and their counterparts; more levels use ANOVA and
    its counterparts. Bayesian ANOVA is not available, so ``bayes`` with more
    than two levels returns None.
    """
    config = config or StatsConfig()
    n_levels = as_factor(select_columns(data, x=x)["x"]).nunique()

    common = dict(paired=paired, subject=subject, k=config.k, stat_title=stat_title)
    boot = dict(
        conf_level=config.conf_level, conf_type=config.conf_type, nboot=config.nboot,
        messages=config.messages, seed=config.seed,
    )

    if n_levels < 2:
        logger.warning(f"'{x}' has fewer than 2 levels; test not run")
        return None

    if n_levels == 2:
        if config.type == "parametric":
            return subtitle_t_parametric(
                data, x, y, effsize_type=config.effsize_type, var_equal=config.var_equal,
                conf_level=config.conf_level, **common,
            )
        if config.type == "nonparametric":
            return subtitle_mann_nonparametric(data, x, y, **common, **boot)
        if config.type == "robust":
            return subtitle_t_robust(data, x, y, tr=config.tr, **common, **boot)
        return subtitle_t_bayes(data, x, y, bf_prior=config.bf_prior, **common)

    if config.type == "parametric":
        return subtitle_anova_parametric(
            data, x, y, effsize_type=config.effsize_type, partial=config.partial,
            var_equal=config.var_equal, **common, **boot,
        )
    if config.type == "nonparametric":
        return subtitle_kw_nonparametric(data, x, y, **common, **boot)
    if config.type == "robust":
        return subtitle_anova_robust(data, x, y, tr=config.tr, **common, **boot)

    logger.warning("Bayesian ANOVA is not available; subtitle omitted")
    return None


def proportion_tests(
    data: pd.DataFrame,
    main: str,
    condition: str,
    counts: Optional[str] = None,
    ratio: Optional[Sequence[float]] = None,
    k: int = 2,
) -> pd.DataFrame:
    """Goodness-of-fit test of `main` within each level of `condition`.

    Levels of `main` absent from a condition are dropped before testing; a
    condition with fewer than 2 remaining levels is not tested.

    Returns:
        DataFrame with columns: condition, n, statistic, parameter, p_value,
        significance, label
    """
    df = select_columns(data, main=main, condition=condition, counts=counts)
    if counts is not None:
        df = uncount(df, counts="counts")
    df["main"] = as_factor(df["main"])
    df["condition"] = as_factor(df["condition"])

    rows = []
    for level, group in df.groupby("condition", observed=True, sort=True):
        freq = group["main"].value_counts(sort=False)
        freq = freq[freq > 0]
        n = int(freq.sum())

        if len(freq) < 2:
            res = {"statistic": np.nan, "parameter": np.nan, "p_value": np.nan}
            label = fmt.n_only_subtitle(n)
        else:
            level_ratio = ratio if ratio is not None and len(ratio) == len(freq) else None
            res = tests.chisq_goodness_of_fit(freq.to_numpy(), ratio=level_ratio)
            label = _gof_text(res, n, k)

        rows.append(
            {
                "condition": str(level),
                "n": n,
                "statistic": res["statistic"],
                "parameter": res["parameter"],
                "p_value": res["p_value"],
                "significance": significance_stars(res["p_value"]),
                "label": label,
            }
        )

    return pd.DataFrame(rows, columns=["condition", "n", "statistic", "parameter", "p_value", "significance", "label"])
