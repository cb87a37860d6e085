"""Number formatting and subtitle/caption text assembly.

Subtitles are matplotlib mathtext strings, e.g.::

    $\\chi^2$(2) = 8.74, $p$ = 0.013, $V$ = 0.52, CI$_{95\\%}$ [0.29, 0.75], $n$ = 32
"""

from __future__ import annotations

import logging
import math
from typing import Optional

logger = logging.getLogger(__name__)

# Statistic symbols
T_TEXT = "$t$"
F_TEXT = "$F$"
CHI2_TEXT = r"$\chi^2$"
LOG_W_TEXT = r"$\log_e(W)$"
LOG_V_TEXT = r"$\log_e(V)$"
LOG_S_TEXT = r"$\log_e(S)$"
KW_TEXT = r"$\chi^2_{Kruskal-Wallis}$"
FRIEDMAN_TEXT = r"$\chi^2_{Friedman}$"

# Effect size symbols
D_TEXT = "$d$"
G_TEXT = "$g$"
V_TEXT = "$V$"
XI_TEXT = r"$\xi$"
ETA2_TEXT = r"$\eta^2$"
ETA2_P_TEXT = r"$\eta^2_p$"
OMEGA2_TEXT = r"$\omega^2$"
OMEGA2_P_TEXT = r"$\omega^2_p$"
EPSILON2_TEXT = r"$\epsilon^2$"
KENDALL_W_TEXT = r"$W_{Kendall}$"
LOG_OR_TEXT = r"$\log_e(OR)$"
DELTA_TEXT = r"$\Delta_{trimmed}$"


def specify_decimal_p(x: float, k: int = 3, p_value: bool = False) -> str:
    """Format a number with exactly `k` decimals.

    Args:
        x: Value to format
        k: Number of decimal places (trailing zeros kept)
        p_value: If True, values below 0.001 are shown as "< 0.001"

    Returns:
        Formatted string ("NA" for missing values)

    Examples:
        >>> specify_decimal_p(0.64, k=4, p_value=True)
        '0.6400'
        >>> specify_decimal_p(0.0002, p_value=True)
        '< 0.001'
    """
    if x is None or (isinstance(x, float) and math.isnan(x)):
        return "NA"

    x = float(x)
    if p_value and x < 0.001:
        return "< 0.001"

    rounded = round(x, k)
    if rounded == 0:
        rounded = 0.0
    return f"{rounded:.{k}f}"


def conf_level_text(conf_level: float) -> str:
    """CI subscript, e.g. CI$_{95\\%}$."""
    return "CI$_{" + f"{conf_level * 100:g}" + r"\%}$"


def p_value_text(p_value: float, k: int = 3) -> str:
    """Subtitle fragment for a p-value: "$p$ = 0.013" or "$p$ < 0.001".

    Subtitle builders pass ``max(k, 3)`` rather than `k`, so the default
    ``k=2`` never prints "$p$ = 0.00" for a significant result.
    """
    formatted = specify_decimal_p(p_value, k=k, p_value=True)
    if formatted.startswith("<"):
        return f"$p$ {formatted}"
    return f"$p$ = {formatted}"


def subtitle_template(
    no_parameters: int,
    statistic_text: str,
    statistic: float,
    p_value: float,
    effsize_text: str,
    effsize_estimate: float,
    effsize_low: float,
    effsize_high: float,
    n: int,
    parameter: Optional[float] = None,
    parameter2: Optional[float] = None,
    stat_title: Optional[str] = None,
    conf_level: float = 0.95,
    k: int = 2,
    k_parameter: int = 0,
    k_parameter2: int = 0,
    n_text: str = "$n$",
) -> str:
    """Assemble the standard results subtitle.

    Layout: ``[stat_title: ]STAT(param[, param2]) = s, p = p, EFF = e, CI [LL, UL], n = n``

    Args:
        no_parameters: Number of parameters (0, 1, or 2) shown after the statistic
        statistic_text: Mathtext symbol for the statistic
        statistic: Test statistic value
        p_value: P-value
        effsize_text: Mathtext symbol for the effect size
        effsize_estimate: Effect size estimate
        effsize_low: Lower CI bound of the effect size
        effsize_high: Upper CI bound of the effect size
        n: Sample size
        parameter: First parameter (e.g. degrees of freedom)
        parameter2: Second parameter (e.g. denominator df)
        stat_title: Optional prefix describing the effect
        conf_level: Confidence level of the interval
        k: Decimals for statistic and effect size (p-values use at least 3)
        k_parameter: Decimals for the first parameter
        k_parameter2: Decimals for the second parameter
        n_text: Symbol for the sample size

    Returns:
        Mathtext subtitle string
    """
    if no_parameters not in (0, 1, 2):
        raise ValueError(f"no_parameters must be 0, 1 or 2, got {no_parameters}")

    if no_parameters == 0:
        stat_part = statistic_text
    elif no_parameters == 1:
        stat_part = f"{statistic_text}({specify_decimal_p(parameter, k_parameter)})"
    else:
        stat_part = (
            f"{statistic_text}({specify_decimal_p(parameter, k_parameter)},"
            f"{specify_decimal_p(parameter2, k_parameter2)})"
        )

    parts = [
        f"{stat_part} = {specify_decimal_p(statistic, k)}",
        p_value_text(p_value, k=max(k, 3)),
        f"{effsize_text} = {specify_decimal_p(effsize_estimate, k)}",
        f"{conf_level_text(conf_level)} "
        f"[{specify_decimal_p(effsize_low, k)}, {specify_decimal_p(effsize_high, k)}]",
        f"{n_text} = {int(n)}",
    ]
    subtitle = ", ".join(parts)

    if stat_title is not None:
        subtitle = f"{stat_title}: {subtitle}"

    return subtitle


def n_only_subtitle(n: int, n_text: str = "$n$") -> str:
    """Fallback subtitle when no test could be run."""
    return f"{n_text} = {int(n)}"


def bf_text(bf10: float, bf_prior: float = 0.707, k: int = 2) -> str:
    """Bayes factor fragment: log_e(BF10) and the Cauchy prior width."""
    log_bf = math.log(bf10) if bf10 > 0 else float("nan")
    return (
        r"$\log_e(BF_{10})$ = " + specify_decimal_p(log_bf, k)
        + r", $r_{Cauchy}$ = " + specify_decimal_p(bf_prior, 3)
    )


def bf_caption(bf10: float, bf_prior: float = 0.707, k: int = 2, caption: Optional[str] = None) -> str:
    """Caption reporting the Bayes factor in favour of the null."""
    log_bf01 = -math.log(bf10) if bf10 > 0 else float("nan")
    text = (
        r"$\log_e(BF_{01})$ = " + specify_decimal_p(log_bf01, k)
        + r", Prior width = " + specify_decimal_p(bf_prior, 3)
    )
    if caption:
        return f"{caption}\n{text}"
    return text


def effsize_ci_message(nboot: int = 100, conf_level: float = 0.95) -> None:
    """Log a note about how the effect size interval was computed."""
    logger.info(
        f"Note: {conf_level * 100:g}% CI for effect size estimate was computed "
        f"with {nboot} bootstrap samples."
    )


def pairwise_caption(
    caption: Optional[str], test_description: str, p_adjust_description: str
) -> str:
    """Caption describing the pairwise comparison method and adjustment."""
    text = (
        f"Pairwise comparisons: {test_description}; "
        f"Adjustment (p-value): {p_adjust_description}"
    )
    if caption:
        return f"{caption}\n{text}"
    return text
