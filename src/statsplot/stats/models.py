"""Tidy coefficient tables from fitted statsmodels results."""

from __future__ import annotations

import numpy as np
import pandas as pd

TIDY_COLUMNS = [
    "term",
    "estimate",
    "std_error",
    "statistic",
    "df_error",
    "p_value",
    "conf_low",
    "conf_high",
]


def statistic_name(model) -> str:
    """'t' for models with t-based inference (OLS, WLS), 'z' otherwise (GLM, Logit)."""
    return "t" if getattr(model, "use_t", False) else "z"


def tidy_model(model, conf_level: float = 0.95) -> pd.DataFrame:
    """Coefficient table for a fitted statsmodels results object.

    Args:
        model: Fitted results (``smf.ols(...).fit()``, ``smf.glm(...).fit()``, ...)
        conf_level: Confidence level of the coefficient intervals

    Returns:
        DataFrame with columns: term, estimate, std_error, statistic,
        df_error, p_value, conf_low, conf_high. ``df.attrs["statistic"]``
        holds "t" or "z".

    Raises:
        ValueError: If the object does not look like fitted statsmodels results
    """
    if not hasattr(model, "params") or not hasattr(model, "bse"):
        raise ValueError(
            f"Expected fitted statsmodels results, got {type(model).__name__}"
        )

    if conf_level <= 0 or conf_level >= 1:
        raise ValueError(f"conf_level must be in (0, 1), got {conf_level}")

    params = pd.Series(model.params)
    ci = pd.DataFrame(model.conf_int(alpha=1 - conf_level))
    ci.index = params.index
    df_resid = getattr(model, "df_resid", np.nan)

    tidy = pd.DataFrame(
        {
            "term": [str(t) for t in params.index],
            "estimate": params.to_numpy(dtype=float),
            "std_error": pd.Series(model.bse).to_numpy(dtype=float),
            "statistic": pd.Series(model.tvalues).to_numpy(dtype=float),
            "df_error": float(df_resid),
            "p_value": pd.Series(model.pvalues).to_numpy(dtype=float),
            "conf_low": ci.iloc[:, 0].to_numpy(dtype=float),
            "conf_high": ci.iloc[:, 1].to_numpy(dtype=float),
        },
        columns=TIDY_COLUMNS,
    )
    tidy.attrs["statistic"] = statistic_name(model)
    return tidy
