"""Tests for configuration dataclasses."""

import pytest

from statsplot.config import PlotConfig, StatsConfig, is_unbiased, normalize_type


@pytest.mark.parametrize(
    "alias,expected",
    [
        ("p", "parametric"),
        ("parametric", "parametric"),
        ("np", "nonparametric"),
        ("r", "robust"),
        ("bf", "bayes"),
        ("bayes", "bayes"),
    ],
)
def test_normalize_type_aliases(alias, expected):
    assert normalize_type(alias) == expected


def test_normalize_type_unknown():
    with pytest.raises(ValueError, match="xyz"):
        normalize_type("xyz")


def test_stats_config_defaults():
    config = StatsConfig()

    assert config.type == "parametric"
    assert config.conf_level == 0.95
    assert config.k == 2
    assert config.nboot == 100
    assert config.p_adjust_method == "holm"
    assert config.tr == 0.1
    assert config.bf_prior == 0.707


def test_stats_config_normalizes_type():
    assert StatsConfig(type="np").type == "nonparametric"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"conf_level": 0.0},
        {"conf_level": 1.0},
        {"nboot": 0},
        {"k": -1},
        {"effsize_type": "cohen"},
        {"p_adjust_method": "sidak"},
        {"tr": 0.5},
        {"bf_prior": 0},
        {"conf_type": "bca"},
    ],
)
def test_stats_config_invalid(kwargs):
    with pytest.raises(ValueError):
        StatsConfig(**kwargs)


def test_is_unbiased():
    assert is_unbiased("unbiased")
    assert is_unbiased("g")
    assert is_unbiased("omega")
    assert not is_unbiased("biased")
    assert not is_unbiased("eta")


def test_plot_config_validation():
    assert PlotConfig().palette == "Dark2"
    with pytest.raises(ValueError):
        PlotConfig(dpi=0)
    with pytest.raises(ValueError):
        PlotConfig(point_alpha=1.5)
