"""Main CLI entrypoint using Typer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
from matplotlib.axes import Axes
import typer

from statsplot import __version__
from statsplot.data import load_table
from statsplot.plots import (
    barstats,
    betweenstats,
    corrmat,
    get_subtitle,
    histostats,
    piestats,
    scatterstats,
    withinstats,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="statsplot",
    help="Render plots annotated with the statistical tests behind them.",
    add_completion=False,
)

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

DATA_HELP = "Path to data file (.csv, .parquet) or directory (parquet dataset)."
TYPE_HELP = "Test type: parametric (p), nonparametric (np), robust (r) or bayes (bf)."


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"statsplot {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """statsplot: plots annotated with statistical test results."""
    pass


def _render(data: Path, out: Path, dpi: int, draw: Callable, verbose: bool = False) -> None:
    """Load the table, draw, save and echo the subtitle; errors exit with code 1."""
    if verbose:
        logging.getLogger("statsplot").setLevel(logging.DEBUG)

    try:
        df = load_table(data)
        result = draw(df)
        fig = result.figure if isinstance(result, Axes) else result
        out.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out, dpi=dpi, bbox_inches="tight")
        subtitle = get_subtitle(result)
        plt.close(fig)
    except Exception as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    logger.info(f"Saved plot to {out}")
    if subtitle is not None:
        typer.echo(subtitle)
    typer.secho(f"✓ Saved {out}", fg=typer.colors.GREEN)


@app.command()
def between(
    data: Path = typer.Option(..., "--data", help=DATA_HELP),
    x: str = typer.Option(..., "--x", help="Grouping column"),
    y: str = typer.Option(..., "--y", help="Numeric outcome column"),
    out: Path = typer.Option(Path("betweenstats.png"), "--out", help="Output image path"),
    type: str = typer.Option("parametric", "--type", help=TYPE_HELP),
    plot_type: str = typer.Option("boxviolin", "--plot-type", help="box, violin or boxviolin"),
    pairwise_display: str = typer.Option("significant", "--pairwise-display", help="significant, non-significant or all"),
    p_adjust_method: str = typer.Option("holm", "--p-adjust", help="P-value adjustment for pairwise comparisons"),
    var_equal: bool = typer.Option(False, "--var-equal", help="Assume equal variances"),
    conf_level: float = typer.Option(0.95, "--conf-level", help="Confidence level"),
    k: int = typer.Option(2, "--k", help="Decimals in the subtitle"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for bootstrap CIs"),
    title: Optional[str] = typer.Option(None, "--title", help="Plot title"),
    dpi: int = typer.Option(150, "--dpi", help="Figure DPI"),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose logging"),
):
    """
    Compare a numeric column across independent groups.

    Examples:
        statsplot between --data mtcars.csv --x cyl --y mpg --out mpg.png
    """
    _render(
        data, out, dpi,
        lambda df: betweenstats(
            df, x, y, type=type, plot_type=plot_type, pairwise_display=pairwise_display,
            p_adjust_method=p_adjust_method, var_equal=var_equal, conf_level=conf_level,
            k=k, seed=seed, title=title,
        ),
        verbose,
    )


@app.command()
def within(
    data: Path = typer.Option(..., "--data", help=DATA_HELP),
    x: str = typer.Option(..., "--x", help="Condition column"),
    y: str = typer.Option(..., "--y", help="Numeric outcome column"),
    subject: Optional[str] = typer.Option(None, "--subject", help="Subject id column (default: order within condition)"),
    out: Path = typer.Option(Path("withinstats.png"), "--out", help="Output image path"),
    type: str = typer.Option("parametric", "--type", help=TYPE_HELP),
    plot_type: str = typer.Option("boxviolin", "--plot-type", help="box, violin or boxviolin"),
    pairwise_display: str = typer.Option("significant", "--pairwise-display", help="significant, non-significant or all"),
    p_adjust_method: str = typer.Option("holm", "--p-adjust", help="P-value adjustment for pairwise comparisons"),
    conf_level: float = typer.Option(0.95, "--conf-level", help="Confidence level"),
    k: int = typer.Option(2, "--k", help="Decimals in the subtitle"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for bootstrap CIs"),
    title: Optional[str] = typer.Option(None, "--title", help="Plot title"),
    dpi: int = typer.Option(150, "--dpi", help="Figure DPI"),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose logging"),
):
    """
    Compare a numeric column across repeated-measures conditions.

    Examples:
        statsplot within --data sleep.csv --x group --y extra --subject ID
    """
    _render(
        data, out, dpi,
        lambda df: withinstats(
            df, x, y, subject=subject, type=type, plot_type=plot_type,
            pairwise_display=pairwise_display, p_adjust_method=p_adjust_method,
            conf_level=conf_level, k=k, seed=seed, title=title,
        ),
        verbose,
    )


@app.command()
def histo(
    data: Path = typer.Option(..., "--data", help=DATA_HELP),
    x: str = typer.Option(..., "--x", help="Numeric column"),
    out: Path = typer.Option(Path("histostats.png"), "--out", help="Output image path"),
    test_value: float = typer.Option(0.0, "--test-value", help="Value tested against"),
    type: str = typer.Option("parametric", "--type", help=TYPE_HELP),
    binwidth: Optional[float] = typer.Option(None, "--binwidth", help="Histogram bin width"),
    conf_level: float = typer.Option(0.95, "--conf-level", help="Confidence level"),
    k: int = typer.Option(2, "--k", help="Decimals in the subtitle"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for bootstrap CIs"),
    title: Optional[str] = typer.Option(None, "--title", help="Plot title"),
    dpi: int = typer.Option(150, "--dpi", help="Figure DPI"),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose logging"),
):
    """
    Histogram of a numeric column with a one-sample test.

    Examples:
        statsplot histo --data mtcars.csv --x mpg --test-value 20
    """
    _render(
        data, out, dpi,
        lambda df: histostats(
            df, x, test_value=test_value, type=type, binwidth=binwidth,
            conf_level=conf_level, k=k, seed=seed, title=title,
        ),
        verbose,
    )


@app.command()
def scatter(
    data: Path = typer.Option(..., "--data", help=DATA_HELP),
    x: str = typer.Option(..., "--x", help="Numeric column on the x axis"),
    y: str = typer.Option(..., "--y", help="Numeric column on the y axis"),
    out: Path = typer.Option(Path("scatterstats.png"), "--out", help="Output image path"),
    type: str = typer.Option("parametric", "--type", help=TYPE_HELP),
    marginal: bool = typer.Option(True, "--marginal/--no-marginal", help="Draw marginal distributions"),
    marginal_type: str = typer.Option("histogram", "--marginal-type", help="histogram, boxplot, density or violin"),
    label_var: Optional[str] = typer.Option(None, "--label-var", help="Column labelling points"),
    conf_level: float = typer.Option(0.95, "--conf-level", help="Confidence level"),
    k: int = typer.Option(2, "--k", help="Decimals in the subtitle"),
    title: Optional[str] = typer.Option(None, "--title", help="Plot title"),
    dpi: int = typer.Option(150, "--dpi", help="Figure DPI"),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose logging"),
):
    """
    Scatterplot with a correlation test.

    Examples:
        statsplot scatter --data mtcars.csv --x wt --y mpg --type np
    """
    _render(
        data, out, dpi,
        lambda df: scatterstats(
            df, x, y, type=type, marginal=marginal, marginal_type=marginal_type,
            label_var=label_var, conf_level=conf_level, k=k, title=title,
        ),
        verbose,
    )


@app.command()
def pie(
    data: Path = typer.Option(..., "--data", help=DATA_HELP),
    main_col: str = typer.Option(..., "--main", help="Categorical column shown as slices"),
    condition: Optional[str] = typer.Option(None, "--condition", help="Categorical column, one pie per level"),
    counts: Optional[str] = typer.Option(None, "--counts", help="Column of frequencies"),
    out: Path = typer.Option(Path("piestats.png"), "--out", help="Output image path"),
    paired: bool = typer.Option(False, "--paired", help="Paired data (McNemar's test)"),
    ratio: Optional[List[float]] = typer.Option(None, "--ratio", help="Expected proportion per level (repeatable)"),
    slice_label: str = typer.Option("percentage", "--slice-label", help="percentage, counts or both"),
    k: int = typer.Option(2, "--k", help="Decimals in the subtitle"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for bootstrap CIs"),
    title: Optional[str] = typer.Option(None, "--title", help="Plot title"),
    dpi: int = typer.Option(150, "--dpi", help="Figure DPI"),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose logging"),
):
    """
    Pie chart with a goodness-of-fit or contingency table test.

    Examples:
        statsplot pie --data mtcars.csv --main am --condition cyl
    """
    _render(
        data, out, dpi,
        lambda df: piestats(
            df, main_col, condition=condition, counts=counts, paired=paired,
            ratio=ratio or None, slice_label=slice_label, k=k, seed=seed, title=title,
        ),
        verbose,
    )


@app.command()
def bar(
    data: Path = typer.Option(..., "--data", help=DATA_HELP),
    main_col: str = typer.Option(..., "--main", help="Categorical column stacked in each bar"),
    condition: str = typer.Option(..., "--condition", help="Categorical column, one bar per level"),
    counts: Optional[str] = typer.Option(None, "--counts", help="Column of frequencies"),
    out: Path = typer.Option(Path("barstats.png"), "--out", help="Output image path"),
    paired: bool = typer.Option(False, "--paired", help="Paired data (McNemar's test)"),
    label: str = typer.Option("percentage", "--label", help="percentage, counts or both"),
    k: int = typer.Option(2, "--k", help="Decimals in the subtitle"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for bootstrap CIs"),
    title: Optional[str] = typer.Option(None, "--title", help="Plot title"),
    dpi: int = typer.Option(150, "--dpi", help="Figure DPI"),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose logging"),
):
    """
    Stacked percentage bars with a contingency table test.

    Examples:
        statsplot bar --data mtcars.csv --main am --condition cyl --label both
    """
    _render(
        data, out, dpi,
        lambda df: barstats(
            df, main_col, condition, counts=counts, paired=paired, label=label,
            k=k, seed=seed, title=title,
        ),
        verbose,
    )


@app.command("corrmat")
def corrmat_cmd(
    data: Path = typer.Option(..., "--data", help=DATA_HELP),
    cor_vars: Optional[List[str]] = typer.Option(None, "--var", help="Column to correlate (repeatable; default all numeric)"),
    out: Path = typer.Option(Path("corrmat.png"), "--out", help="Output image path"),
    type: str = typer.Option("parametric", "--type", help="parametric, nonparametric or robust"),
    p_adjust_method: str = typer.Option("holm", "--p-adjust", help="P-value adjustment across pairs"),
    sig_level: float = typer.Option(0.05, "--sig-level", help="Level below which cells are kept"),
    matrix_type: str = typer.Option("upper", "--matrix-type", help="full, upper or lower"),
    title: Optional[str] = typer.Option(None, "--title", help="Plot title"),
    dpi: int = typer.Option(150, "--dpi", help="Figure DPI"),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose logging"),
):
    """
    Correlation matrix heatmap.

    Examples:
        statsplot corrmat --data mtcars.csv --var mpg --var wt --var hp
    """
    _render(
        data, out, dpi,
        lambda df: corrmat(
            df, cor_vars=cor_vars or None, type=type, p_adjust_method=p_adjust_method,
            sig_level=sig_level, matrix_type=matrix_type, title=title,
        ),
        verbose,
    )


if __name__ == "__main__":
    app()
