"""Main CLI entrypoint using Typer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from growthfit import __version__
from growthfit.config import AnalysisConfig, load_config, save_config
from growthfit.exceptions import GrowthFitError

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="growthfit",
    help="Per-gene growth-rate regressions with q-value filtering.",
    add_completion=False,
)

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"growthfit {__version__}")
        raise typer.Exit()


def _set_verbose(verbose: bool) -> None:
    if verbose:
        logging.getLogger("growthfit").setLevel(logging.DEBUG)


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
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
):
    """growthfit: tidy per-gene regression of expression on growth rate."""
    _set_verbose(verbose)


def _build_config(config_path: Optional[Path], **overrides) -> AnalysisConfig:
    if config_path is not None:
        return load_config(config_path, **overrides)
    return AnalysisConfig(**{k: v for k, v in overrides.items() if v is not None})


@app.command("run")
def run_cmd(
    data: Optional[str] = typer.Option(
        None, "--data", help="URL or path of the expression table (default: Brauer 2008)."
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML config file."),
    q_threshold: Optional[float] = typer.Option(
        None, "--q-threshold", help="Keep slope terms with q-value below this."
    ),
    top_k: Optional[int] = typer.Option(None, "--top-k", help="Intercept records kept per nutrient."),
    pi0_method: Optional[str] = typer.Option(
        None, "--pi0-method", help="pi0 estimator: smoother or bootstrap."
    ),
    outdir: Optional[Path] = typer.Option(None, "--outdir", help="Write result tables as CSV here."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
):
    """
    Run the complete analysis: load, tidy, fit, q-values, filter.

    Examples:
        # Brauer (2008) dataset with default thresholds
        growthfit run

        # Local copy, stricter threshold, CSV output
        growthfit run --data Brauer2008_DataSet1.tds --q-threshold 0.001 --outdir derived
    """
    from growthfit.stats import run_analysis_from_config, write_results

    _set_verbose(verbose)

    try:
        config = _build_config(
            config_path,
            data_uri=data,
            q_threshold=q_threshold,
            top_k=top_k,
            pi0_method=pi0_method,
        )
        result = run_analysis_from_config(config)
    except (GrowthFitError, ValueError, OSError) as e:
        typer.secho(f"\n✗ Analysis failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    summary = result.summary()
    typer.secho("\n✓ Analysis complete!", fg=typer.colors.GREEN)
    typer.echo(f"  Observations: {summary['n_observations']}")
    typer.echo(f"  Genes: {summary['n_genes']}  Nutrients: {summary['n_nutrients']}")
    typer.echo(f"  Groups fitted: {summary['n_groups_fitted']}")
    typer.echo(f"  Groups unfittable: {summary['n_groups_unfittable']}")
    typer.echo(f"  pi0: {summary['pi0']:.4f}")
    typer.echo(f"  Significant (q < {summary['q_threshold']}): {summary['n_significant']}")

    if outdir is not None:
        paths = write_results(result, outdir)
        typer.echo(f"  Tables written to: {outdir} ({len(paths)} files)")


@app.command("tidy")
def tidy_cmd(
    out: Path = typer.Option(..., "--out", help="Output CSV for the tidy table."),
    data: Optional[str] = typer.Option(None, "--data", help="URL or path of the expression table."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML config file."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
):
    """Load and reshape the expression table only."""
    from growthfit.data import load_table
    from growthfit.tidy import tidy_expression

    _set_verbose(verbose)

    try:
        config = _build_config(config_path, data_uri=data)
        raw = load_table(config.data_uri, delimiter=config.delimiter, timeout=config.timeout)
        tidy = tidy_expression(raw, config)
    except (GrowthFitError, ValueError, OSError) as e:
        typer.secho(f"\n✗ Tidy failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    out.parent.mkdir(parents=True, exist_ok=True)
    tidy.to_csv(out, index=False)
    typer.secho(f"✓ Wrote {len(tidy)} observations to {out}", fg=typer.colors.GREEN)


@app.command("config")
def config_cmd(
    out: Optional[Path] = typer.Option(None, "--out", help="Write the default config YAML here."),
):
    """Print (or write) the default configuration as YAML."""
    import yaml

    config = AnalysisConfig()
    if out is None:
        typer.echo(yaml.safe_dump(config.to_dict(), sort_keys=False, default_flow_style=False))
        return
    save_config(config, out)
    typer.echo(f"Wrote default config to {out}")


if __name__ == "__main__":
    app()
