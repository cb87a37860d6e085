"""Tests for regression coefficient plots."""

import pandas as pd
import pytest
import statsmodels.formula.api as smf
from matplotlib.axes import Axes

from statsplot.plots import coefstats, get_caption, get_subtitle
from statsplot.plots.coefs import coefficient_label, model_subtitle


@pytest.fixture
def ols_model(mtcars):
    return smf.ols("mpg ~ wt + hp", data=mtcars).fit()


def test_coefficient_label():
    row = pd.Series({"estimate": 0.123, "statistic": 2.1, "df_error": 28.0, "p_value": 0.045})

    assert coefficient_label(row) == r"$\hat{\beta}$ = 0.12, $t$(28) = 2.10, $p$ = 0.045"
    assert coefficient_label(row, statistic="z").startswith(r"$\hat{\beta}$ = 0.12, $z$ = 2.10")


def test_model_subtitle(ols_model):
    subtitle = model_subtitle(ols_model)

    assert subtitle.startswith("$F$(2,29) = 69.21, $p$ < 0.001, $R^2$ = 0.83")
    assert subtitle.endswith("$n$ = 32")


def test_coefstats_tidy_output(ols_model):
    tidy = coefstats(ols_model, output="tidy")

    assert list(tidy["term"]) == ["wt", "hp"]
    assert tidy.loc[0, "estimate"] == pytest.approx(-3.8778, abs=1e-4)


def test_coefstats_keep_intercept_and_sort(ols_model):
    tidy = coefstats(ols_model, exclude_intercept=False, sort="descending", output="tidy")

    assert list(tidy["term"]) == ["Intercept", "hp", "wt"]


def test_coefstats_plot(ols_model):
    ax = coefstats(ols_model, title="Fuel economy")

    assert isinstance(ax, Axes)
    assert {t.get_text() for t in ax.get_yticklabels()} == {"hp", "wt"}
    assert get_subtitle(ax).startswith("$F$(2,29) = 69.21")
    assert get_caption(ax).startswith("AIC = ")
    labels = [t.get_text() for t in ax.texts if t.get_gid() is None]
    assert any(label.startswith(r"$\hat{\beta}$ = -3.88, $t$(29)") for label in labels)


def test_coefstats_logit_model(mtcars):
    model = smf.logit("am ~ wt", data=mtcars).fit(disp=0)

    ax = coefstats(model)

    # no F test for GLM-type models
    assert get_subtitle(ax) == "$n$ = 32"
    labels = [t.get_text() for t in ax.texts if t.get_gid() is None]
    assert "$z$ = " in labels[0]


def test_coefstats_from_tidy_frame():
    tidy = pd.DataFrame(
        {
            "term": ["age", "dose"],
            "estimate": [0.5, -1.2],
            "conf_low": [0.1, -2.0],
            "conf_high": [0.9, -0.4],
        }
    )

    ax = coefstats(tidy)

    assert get_subtitle(ax) is None
    assert {t.get_text() for t in ax.get_yticklabels()} == {"age", "dose"}


def test_coefstats_tidy_frame_missing_columns():
    with pytest.raises(ValueError, match="must contain"):
        coefstats(pd.DataFrame({"term": ["a"], "estimate": [1.0]}))


@pytest.mark.parametrize("kwargs", [{"output": "table"}, {"sort": "random"}])
def test_coefstats_invalid_arguments(ols_model, kwargs):
    with pytest.raises(ValueError):
        coefstats(ols_model, **kwargs)
