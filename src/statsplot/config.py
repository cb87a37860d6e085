"""Configuration dataclasses for statistical annotation and plotting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

TEST_TYPES = {
    "p": "parametric",
    "parametric": "parametric",
    "np": "nonparametric",
    "nonparametric": "nonparametric",
    "r": "robust",
    "robust": "robust",
    "bf": "bayes",
    "bayes": "bayes",
}

# R-style adjustment names -> statsmodels multipletests methods
P_ADJUST_METHODS = {
    "holm": "holm",
    "hochberg": "simes-hochberg",
    "hommel": "hommel",
    "bonferroni": "bonferroni",
    "BH": "fdr_bh",
    "fdr": "fdr_bh",
    "BY": "fdr_by",
    "none": None,
}

EFFSIZE_TYPES = ["unbiased", "biased", "g", "d", "omega", "eta"]

CONF_TYPES = ["norm", "perc", "basic"]


def normalize_type(type: str) -> str:
    """Map a test type or its short alias to the canonical name.

    Args:
        type: One of p/parametric, np/nonparametric, r/robust, bf/bayes

    Returns:
        Canonical test type name

    Raises:
        ValueError: If the type is not recognised
    """
    key = str(type).strip()
    if key not in TEST_TYPES:
        raise ValueError(
            f"type must be one of {sorted(set(TEST_TYPES))}, got {type!r}"
        )
    return TEST_TYPES[key]


def is_unbiased(effsize_type: str) -> bool:
    """Whether the effect size should be the bias-corrected variant (g, omega)."""
    return effsize_type in ("unbiased", "g", "omega")


@dataclass
class StatsConfig:
    """Configuration for test selection and result formatting.

    Attributes:
        type: Test family (parametric, nonparametric, robust, bayes or a short alias)
        conf_level: Confidence level for effect size intervals (default: 0.95)
        k: Number of decimals in the subtitle (default: 2)
        nboot: Bootstrap samples for effect size intervals (default: 100)
        effsize_type: "unbiased" (g, omega) or "biased" (d, eta)
        partial: Report partial eta/omega squared for ANOVA
        var_equal: Assume equal variances (Student's t, Fisher's ANOVA)
        p_adjust_method: Multiple comparison adjustment for pairwise tests
            Options: holm, hochberg, hommel, bonferroni, BH, BY, fdr, none
        tr: Trim proportion for robust tests (default: 0.1)
        bf_prior: Cauchy prior scale for Bayes factors (default: 0.707)
        conf_type: Bootstrap interval type (norm, perc, basic)
        messages: Whether to log notes about effect size intervals
        seed: Optional random seed for bootstrap resampling
    """

    type: str = "parametric"
    conf_level: float = 0.95
    k: int = 2
    nboot: int = 100
    effsize_type: str = "unbiased"
    partial: bool = True
    var_equal: bool = False
    p_adjust_method: str = "holm"
    tr: float = 0.1
    bf_prior: float = 0.707
    conf_type: str = "norm"
    messages: bool = True
    seed: Optional[int] = None

    def __post_init__(self):
        """Validate configuration."""
        self.type = normalize_type(self.type)

        if self.conf_level <= 0 or self.conf_level >= 1:
            raise ValueError(f"conf_level must be in (0, 1), got {self.conf_level}")

        if self.k < 0:
            raise ValueError(f"k must be >= 0, got {self.k}")

        if self.nboot < 1:
            raise ValueError(f"nboot must be >= 1, got {self.nboot}")

        if self.effsize_type not in EFFSIZE_TYPES:
            raise ValueError(
                f"effsize_type must be one of {EFFSIZE_TYPES}, got {self.effsize_type}"
            )

        if self.p_adjust_method not in P_ADJUST_METHODS:
            raise ValueError(
                f"p_adjust_method must be one of {list(P_ADJUST_METHODS)}, "
                f"got {self.p_adjust_method}"
            )

        if self.tr < 0 or self.tr >= 0.5:
            raise ValueError(f"tr must be in [0, 0.5), got {self.tr}")

        if self.bf_prior <= 0:
            raise ValueError(f"bf_prior must be > 0, got {self.bf_prior}")

        if self.conf_type not in CONF_TYPES:
            raise ValueError(f"conf_type must be one of {CONF_TYPES}, got {self.conf_type}")


@dataclass
class PlotConfig:
    """Configuration for figure appearance.

    Attributes:
        figsize: Figure size in inches for single-panel plots
        dpi: Figure DPI (default: 100)
        palette: Seaborn/matplotlib palette name
        point_size: Scatter point size (default: 20.0)
        point_alpha: Scatter point transparency (default: 0.4)
        title_fontsize: Font size of the plot title
        subtitle_fontsize: Font size of the statistical subtitle
        caption_fontsize: Font size of the caption
    """

    figsize: Tuple[float, float] = (7.0, 5.5)
    dpi: int = 100
    palette: str = "Dark2"
    point_size: float = 20.0
    point_alpha: float = 0.4
    title_fontsize: float = 12.0
    subtitle_fontsize: float = 9.0
    caption_fontsize: float = 8.0

    def __post_init__(self):
        """Validate configuration."""
        if self.dpi <= 0:
            raise ValueError(f"dpi must be > 0, got {self.dpi}")

        if not 0 <= self.point_alpha <= 1:
            raise ValueError(f"point_alpha must be in [0, 1], got {self.point_alpha}")
