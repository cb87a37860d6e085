"""Tests for pairwise comparisons and p-value adjustment."""

import numpy as np
import pandas as pd
import pytest

from statsplot.stats.pairwise import (
    PAIRWISE_COLUMNS,
    adjust_p_values,
    bracket_positions,
    dscf_statistic,
    filter_display,
    p_adjust_text,
    pairwise_comparisons,
    pairwise_label,
    pairwise_method_text,
    significance_stars,
)


def test_p_adjust_text():
    assert p_adjust_text("holm") == "Holm"
    assert p_adjust_text("fdr") == "Benjamini & Hochberg"
    assert p_adjust_text("BH") == "Benjamini & Hochberg"
    assert p_adjust_text("none") == "None"
    with pytest.raises(ValueError):
        p_adjust_text("sidak")


@pytest.mark.parametrize(
    "type,var_equal,paired,expected",
    [
        ("parametric", False, False, "Games-Howell test"),
        ("parametric", True, False, "Student's t-test"),
        ("nonparametric", False, False, "Dwass-Steel-Crichtlow-Fligner test"),
        ("robust", False, False, "Yuen's trimmed means test"),
        ("nonparametric", False, True, "Wilcoxon signed-rank test"),
        ("parametric", False, True, "Student's t-test"),
    ],
)
def test_pairwise_method_text(type, var_equal, paired, expected):
    assert pairwise_method_text(type, var_equal, paired) == expected


def test_adjust_p_values():
    p = [0.01, 0.02, 0.03]

    np.testing.assert_allclose(adjust_p_values(p, "holm"), [0.03, 0.04, 0.04])
    np.testing.assert_allclose(adjust_p_values(p, "bonferroni"), [0.03, 0.06, 0.09])
    np.testing.assert_allclose(adjust_p_values(p, "none"), p)


def test_adjust_p_values_keeps_nan():
    adjusted = adjust_p_values([0.01, np.nan, 0.04], "bonferroni")

    assert np.isnan(adjusted[1])
    np.testing.assert_allclose(adjusted[[0, 2]], [0.02, 0.08])


def test_adjust_p_values_unknown_method():
    with pytest.raises(ValueError):
        adjust_p_values([0.1], "tukey")


@pytest.mark.parametrize(
    "p,expected",
    [(0.2, "ns"), (0.05, "ns"), (0.04, "*"), (0.009, "**"), (0.0005, "***"), (np.nan, "ns")],
)
def test_significance_stars(p, expected):
    assert significance_stars(p) == expected


def test_pairwise_label():
    assert pairwise_label(0.0321) == "p = 0.032"
    assert pairwise_label(0.0004) == "p <= 0.001"
    assert pairwise_label(0.0004, annotation="asterisk") == "***"
    with pytest.raises(ValueError):
        pairwise_label(0.1, annotation="stars-and-bars")


def test_filter_display():
    df = pd.DataFrame({"p_value": [0.01, 0.2, 0.04]})

    assert len(filter_display(df, "significant")) == 2
    assert len(filter_display(df, "ns")) == 1
    assert len(filter_display(df, "everything")) == 3
    with pytest.raises(ValueError):
        filter_display(df, "some")


def test_bracket_positions(mtcars):
    heights = bracket_positions(mtcars["wt"], 3)

    np.testing.assert_allclose(heights, [5.5596, 5.852925, 6.14625], rtol=1e-6)
    assert bracket_positions(mtcars["wt"], 0) == []


def test_dscf_statistic_sign():
    x = np.array([1.0, 2.0, 3.0, 4.0])
    y = np.array([5.0, 6.0, 7.0, 8.0])

    assert dscf_statistic(x, y) > 0
    assert dscf_statistic(y, x) == pytest.approx(-dscf_statistic(x, y))


def test_pairwise_student(mtcars):
    result = pairwise_comparisons(mtcars, x="cyl", y="wt", var_equal=True)

    assert list(result.columns) == PAIRWISE_COLUMNS
    assert list(zip(result["group1"], result["group2"])) == [("4", "6"), ("4", "8"), ("6", "8")]
    np.testing.assert_allclose(result["estimate"], [0.831, 1.714, 0.882], atol=1e-3)
    assert result.loc[0, "conf_low"] == pytest.approx(0.0794, abs=0.01)
    assert result.loc[0, "conf_high"] == pytest.approx(1.580, abs=0.01)
    assert (result["test"] == "Student's t-test").all()


def test_pairwise_games_howell(mtcars):
    result = pairwise_comparisons(mtcars, x="cyl", y="mpg")

    np.testing.assert_allclose(result["estimate"], [-6.921, -11.564, -4.643], atol=1e-3)
    assert (result["statistic"] < 0).all()
    assert (result["p_value"] < 0.05).all()
    assert (result["conf_high"] < 0).all()
    assert (result["p_value"] >= result["p_value_unadjusted"]).all()


def test_pairwise_dscf(mtcars):
    result = pairwise_comparisons(mtcars, x="cyl", y="mpg", type="np")

    assert result["test"].iloc[0] == "Dwass-Steel-Crichtlow-Fligner test"
    assert result["p_value"].between(0, 1).all()
    assert result.loc[1, "p_value"] < 0.05
    assert (result["statistic"] < 0).all()


def test_pairwise_yuen(mtcars):
    result = pairwise_comparisons(mtcars, x="cyl", y="mpg", type="robust", tr=0.1)

    assert result["test"].iloc[0] == "Yuen's trimmed means test"
    assert (result["estimate"] < 0).all()


def test_pairwise_paired(repeated_data):
    result = pairwise_comparisons(
        repeated_data, x="condition", y="score", paired=True, subject="subject"
    )

    assert list(result["group1"]) == ["pre", "pre", "mid"]
    assert list(result["group2"]) == ["mid", "post", "post"]
    assert (result["estimate"] > 0).all()
    assert (result["p_value"] < 0.001).all()


def test_pairwise_paired_wilcoxon(repeated_data):
    result = pairwise_comparisons(
        repeated_data, x="condition", y="score", type="np", paired=True, subject="subject"
    )

    assert (result["test"] == "Wilcoxon signed-rank test").all()


def test_pairwise_bayes(mtcars):
    result = pairwise_comparisons(mtcars, x="cyl", y="mpg", type="bayes", var_equal=True)

    assert "log_bf01" in result.columns
    assert (result["log_bf01"] < 0).all()
    assert result["label"].str.startswith(r"$\log_e(BF_{01})$").all()


def test_pairwise_asterisk_labels(mtcars):
    result = pairwise_comparisons(mtcars, x="cyl", y="wt", var_equal=True, annotation="asterisk")

    assert set(result["label"]) <= {"ns", "*", "**", "***"}


def test_pairwise_requires_two_levels():
    data = pd.DataFrame({"x": ["a", "a"], "y": [1.0, 2.0]})

    with pytest.raises(ValueError, match="at least 2 levels"):
        pairwise_comparisons(data)
