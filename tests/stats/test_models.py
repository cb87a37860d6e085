"""Tests for tidy coefficient tables."""

import numpy as np
import pytest
import statsmodels.formula.api as smf

from statsplot.stats.models import TIDY_COLUMNS, statistic_name, tidy_model


def test_tidy_ols(mtcars):
    model = smf.ols("mpg ~ wt", data=mtcars).fit()

    tidy = tidy_model(model)

    assert list(tidy.columns) == TIDY_COLUMNS
    assert list(tidy["term"]) == ["Intercept", "wt"]
    assert tidy.loc[1, "estimate"] == pytest.approx(-5.3445, abs=1e-4)
    assert tidy.loc[1, "statistic"] == pytest.approx(-9.559, abs=1e-3)
    assert tidy.loc[1, "df_error"] == pytest.approx(30)
    assert tidy.loc[1, "conf_low"] == pytest.approx(-6.486, abs=1e-3)
    assert tidy.loc[1, "conf_high"] == pytest.approx(-4.203, abs=1e-3)
    assert tidy.attrs["statistic"] == "t"


def test_tidy_conf_level_narrows_interval(mtcars):
    model = smf.ols("mpg ~ wt", data=mtcars).fit()

    wide = tidy_model(model, conf_level=0.99)
    narrow = tidy_model(model, conf_level=0.90)

    assert (wide["conf_high"] - wide["conf_low"] > narrow["conf_high"] - narrow["conf_low"]).all()


def test_tidy_logit_uses_z(mtcars):
    model = smf.logit("am ~ wt", data=mtcars).fit(disp=0)

    tidy = tidy_model(model)

    assert statistic_name(model) == "z"
    assert tidy.attrs["statistic"] == "z"
    assert np.isfinite(tidy["p_value"]).all()


def test_tidy_rejects_non_model():
    with pytest.raises(ValueError, match="statsmodels"):
        tidy_model(object())


def test_tidy_invalid_conf_level(mtcars):
    model = smf.ols("mpg ~ wt", data=mtcars).fit()

    with pytest.raises(ValueError):
        tidy_model(model, conf_level=1.5)
