"""Tests for number formatting and subtitle assembly."""

import logging
import math

import numpy as np
import pytest

from statsplot.formatting import (
    CHI2_TEXT,
    V_TEXT,
    bf_caption,
    bf_text,
    conf_level_text,
    effsize_ci_message,
    n_only_subtitle,
    p_value_text,
    pairwise_caption,
    specify_decimal_p,
    subtitle_template,
)


def test_specify_decimal_p_keeps_trailing_zeros():
    assert specify_decimal_p(0.64, k=4, p_value=True) == "0.6400"
    assert specify_decimal_p(2.5, k=2) == "2.50"
    assert specify_decimal_p(3, k=0) == "3"


def test_specify_decimal_p_small_p_values():
    assert specify_decimal_p(0.0002, p_value=True) == "< 0.001"
    assert specify_decimal_p(0.0002, k=4) == "0.0002"


def test_specify_decimal_p_missing():
    assert specify_decimal_p(np.nan) == "NA"
    assert specify_decimal_p(None) == "NA"


def test_specify_decimal_p_negative_zero():
    assert specify_decimal_p(-0.0001, k=2) == "0.00"


def test_p_value_text():
    assert p_value_text(0.01265) == "$p$ = 0.013"
    assert p_value_text(1e-6) == "$p$ < 0.001"


def test_conf_level_text():
    assert conf_level_text(0.95) == r"CI$_{95\%}$"
    assert conf_level_text(0.9) == r"CI$_{90\%}$"


def test_subtitle_template_one_parameter():
    subtitle = subtitle_template(
        no_parameters=1,
        statistic_text=CHI2_TEXT,
        statistic=8.740733,
        parameter=2,
        p_value=0.01264661,
        effsize_text=V_TEXT,
        effsize_estimate=0.4683,
        effsize_low=0.0,
        effsize_high=0.7608,
        n=32,
    )

    assert subtitle == (
        r"$\chi^2$(2) = 8.74, $p$ = 0.013, $V$ = 0.47, "
        r"CI$_{95\%}$ [0.00, 0.76], $n$ = 32"
    )


def test_subtitle_template_two_parameters_and_title():
    subtitle = subtitle_template(
        no_parameters=2,
        statistic_text="$F$",
        statistic=31.624,
        parameter=2,
        parameter2=18.032,
        k_parameter2=2,
        p_value=1.27e-06,
        effsize_text=r"$\omega^2$",
        effsize_estimate=0.7,
        effsize_low=0.5,
        effsize_high=0.8,
        n=32,
        stat_title="Welch",
        k=3,
    )

    assert subtitle.startswith("Welch: $F$(2,18.03) = 31.624, $p$ < 0.001")
    assert subtitle.endswith("$n$ = 32")


def test_subtitle_template_no_parameters():
    subtitle = subtitle_template(
        no_parameters=0,
        statistic_text=r"$\log_e(W)$",
        statistic=math.log(42.0),
        p_value=0.5,
        effsize_text="$r$",
        effsize_estimate=0.1,
        effsize_low=-0.2,
        effsize_high=0.4,
        n=20,
    )

    assert subtitle.startswith(r"$\log_e(W)$ = 3.74,")


def test_subtitle_template_rejects_bad_parameter_count():
    with pytest.raises(ValueError):
        subtitle_template(3, "$t$", 1.0, 0.5, "$d$", 0.1, 0.0, 0.2, 10)


def test_n_only_subtitle():
    assert n_only_subtitle(32) == "$n$ = 32"


def test_bf_text_and_caption():
    assert bf_text(math.e, 0.707) == r"$\log_e(BF_{10})$ = 1.00, $r_{Cauchy}$ = 0.707"
    assert bf_caption(math.e).startswith(r"$\log_e(BF_{01})$ = -1.00")
    assert bf_caption(math.e, caption="Source: mtcars").startswith("Source: mtcars\n")


def test_pairwise_caption():
    text = pairwise_caption(None, "Games-Howell test", "Holm")
    assert text == "Pairwise comparisons: Games-Howell test; Adjustment (p-value): Holm"
    assert pairwise_caption("Data: mtcars", "x", "y").startswith("Data: mtcars\n")


def test_effsize_ci_message_logs(caplog):
    with caplog.at_level(logging.INFO, logger="statsplot.formatting"):
        effsize_ci_message(nboot=100, conf_level=0.95)

    assert "95% CI for effect size estimate was computed with 100 bootstrap samples" in caplog.text
