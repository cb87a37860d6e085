"""Data preparation: column selection, factors, counts and reshaping."""

from __future__ import annotations

from typing import List, Optional
import pandas as pd
import numpy as np

from statsplot.formatting import specify_decimal_p


def select_columns(data: pd.DataFrame, dropna: bool = True, **columns: Optional[str]) -> pd.DataFrame:
    """Select columns by role and rename them to the role names.

    Args:
        data: Input dataframe
        dropna: Whether to drop rows with missing values in the selected columns
        **columns: Mapping of role name -> column name; ``None`` roles are skipped

    Returns:
        DataFrame with one column per role

    Raises:
        ValueError: If a column is not present in the dataframe

    Example:
        >>> df = select_columns(mtcars, x="cyl", y="wt")
        >>> list(df.columns)
        ['x', 'y']
    """
    if not isinstance(data, pd.DataFrame):
        raise ValueError(f"data must be a pandas DataFrame, got {type(data).__name__}")

    mapping = {role: col for role, col in columns.items() if col is not None}
    missing = [col for col in mapping.values() if col not in data.columns]
    if missing:
        raise ValueError(f"Column(s) not found in dataframe: {missing}")

    df = pd.DataFrame({role: data[col] for role, col in mapping.items()}, index=data.index)

    if dropna:
        df = df.dropna()

    return df


def ensure_numeric(series: pd.Series, name: str) -> pd.Series:
    """Validate that a column holds numeric data.

    Raises:
        ValueError: If the series is not numeric
    """
    if not pd.api.types.is_numeric_dtype(series) or pd.api.types.is_bool_dtype(series):
        raise ValueError(f"Column '{name}' must be numeric, got dtype {series.dtype}")
    return series.astype(float)


def as_factor(series: pd.Series, levels: Optional[List] = None) -> pd.Series:
    """Convert a column to a categorical with string levels and no unused levels.

    Args:
        series: Input series
        levels: Optional explicit level order; values outside it become missing

    Returns:
        Categorical series

    Notes:
        - Existing categoricals keep their category order
        - Otherwise levels are the sorted unique values (numeric sort for numbers)
    """
    if levels is not None:
        cats = pd.Categorical(series.astype(str), categories=[str(lv) for lv in levels])
        out = pd.Series(cats, index=series.index, name=series.name)
        return out.cat.remove_unused_categories()

    if isinstance(series.dtype, pd.CategoricalDtype):
        out = series.cat.remove_unused_categories()
        return out.cat.rename_categories([str(c) for c in out.cat.categories])

    natural = pd.Categorical(series.dropna()).categories
    cats = pd.Categorical(
        series.map(lambda v: v if pd.isna(v) else str(v)),
        categories=[str(c) for c in natural],
    )
    return pd.Series(cats, index=series.index, name=series.name)


def factor_levels(series: pd.Series) -> List[str]:
    """Levels of a categorical series in category order."""
    return [str(c) for c in series.cat.categories]


def uncount(data: pd.DataFrame, counts: str = "counts") -> pd.DataFrame:
    """Expand a counts column into one row per observation.

    Args:
        data: Dataframe with one row per cell and a counts column
        counts: Name of the counts column (dropped from the output)

    Returns:
        Long dataframe with ``sum(counts)`` rows
    """
    weights = data[counts].astype(int)
    if (weights < 0).any():
        raise ValueError(f"Counts column '{counts}' contains negative values")

    out = data.loc[data.index.repeat(weights)].drop(columns=[counts])
    return out.reset_index(drop=True)


def long_to_paired(
    data: pd.DataFrame, x: str = "x", y: str = "y", subject: Optional[str] = None
) -> pd.DataFrame:
    """Reshape repeated-measures data from long to wide.

    Args:
        data: Long dataframe with a condition column and a measurement column
        x: Condition column (categorical)
        y: Measurement column
        subject: Optional subject identifier; if None, rows are matched by
            order of appearance within each condition

    Returns:
        Wide dataframe (one row per subject, one column per condition level)
        with incomplete subjects dropped
    """
    df = data.copy()
    if subject is None:
        df["_subject"] = df.groupby(x, observed=True).cumcount()
        subject = "_subject"

    if df.duplicated(subset=[subject, x]).any():
        raise ValueError(
            f"Each subject must have at most one observation per level of '{x}'"
        )

    wide = df.pivot(index=subject, columns=x, values=y)
    if isinstance(df[x].dtype, pd.CategoricalDtype):
        wide = wide.reindex(columns=df[x].cat.categories)

    wide.columns = [str(c) for c in wide.columns]
    return wide.dropna()


def paired_to_long(wide: pd.DataFrame) -> pd.DataFrame:
    """Inverse of long_to_paired: columns subject, x, y."""
    levels = list(wide.columns)
    long = wide.reset_index(drop=True).rename_axis("subject").reset_index()
    long = long.melt(id_vars="subject", var_name="x", value_name="y")
    long["x"] = pd.Categorical(long["x"], categories=levels)
    return long


def compute_group_stats(data: pd.DataFrame, x: str = "x", y: str = "y") -> pd.DataFrame:
    """Compute descriptive statistics per level of `x`.

    Args:
        data: Input dataframe with a categorical `x`
        x: Grouping column
        y: Measurement column

    Returns:
        DataFrame with columns: level, n, mean, sd, median, q25, q75, iqr
    """
    rows = []
    for level, group in data.groupby(x, observed=True, sort=True):
        values = group[y].dropna()
        n_valid = len(values)

        if n_valid > 0:
            mean_val = float(np.mean(values))
            sd_val = float(np.std(values, ddof=1)) if n_valid > 1 else np.nan
            median_val = float(np.median(values))
            q25 = float(np.percentile(values, 25))
            q75 = float(np.percentile(values, 75))
            iqr = q75 - q25
        else:
            mean_val = sd_val = median_val = q25 = q75 = iqr = np.nan

        rows.append(
            {
                "level": str(level),
                "n": n_valid,
                "mean": mean_val,
                "sd": sd_val,
                "median": median_val,
                "q25": q25,
                "q75": q75,
                "iqr": iqr,
            }
        )

    return pd.DataFrame(rows, columns=["level", "n", "mean", "sd", "median", "q25", "q75", "iqr"])


def mean_labels(group_stats: pd.DataFrame, k: int = 2) -> List[str]:
    """Labels like "$\\hat{\\mu}$ = 2.29" for each group mean."""
    return [r"$\hat{\mu}$ = " + specify_decimal_p(m, k) for m in group_stats["mean"]]
