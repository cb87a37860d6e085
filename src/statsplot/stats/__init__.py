"""Statistical backends: preprocessing, tests, effect sizes, pairwise comparisons.

Public API:
-----------
from statsplot.stats import pairwise_comparisons, lm_effsize_ci, tidy_model

pairs = pairwise_comparisons(mtcars, x="cyl", y="wt", var_equal=True)
"""

from statsplot.stats.effects import bootstrap_ci, chisq_v_ci, lm_effsize_ci
from statsplot.stats.models import tidy_model
from statsplot.stats.pairwise import (
    p_adjust_text,
    pairwise_comparisons,
    pairwise_method_text,
    significance_stars,
)
from statsplot.stats.preprocess import (
    as_factor,
    compute_group_stats,
    long_to_paired,
    select_columns,
    uncount,
)

__all__ = [
    "bootstrap_ci",
    "chisq_v_ci",
    "lm_effsize_ci",
    "tidy_model",
    "p_adjust_text",
    "pairwise_comparisons",
    "pairwise_method_text",
    "significance_stars",
    "as_factor",
    "compute_group_stats",
    "long_to_paired",
    "select_columns",
    "uncount",
]
