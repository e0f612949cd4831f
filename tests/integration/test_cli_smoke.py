from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
import pytest
import yaml
from typer.testing import CliRunner

from growthfit.cli.main import app


def _write_config(tmp_path: Path) -> Path:
    path = tmp_path / "analysis.yaml"
    path.write_text(
        yaml.safe_dump({"first_measure": "G0.05", "last_measure": "L0.3", "q_threshold": 0.5}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def package_logger():
    logger = logging.getLogger("growthfit")
    level = logger.level
    logger.setLevel(logging.NOTSET)
    yield logger
    logger.setLevel(level)


def test_cli_version_flag() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "growthfit" in result.stdout


def test_cli_run_smoke(tmp_path: Path, tds_file: Path) -> None:
    runner = CliRunner()
    outdir = tmp_path / "derived"

    result = runner.invoke(
        app,
        [
            "run",
            "--data",
            str(tds_file),
            "--config",
            str(_write_config(tmp_path)),
            "--top-k",
            "1",
            "--outdir",
            str(outdir),
        ],
    )
    assert result.exit_code == 0, result.stdout
    assert "Groups fitted: 3" in result.stdout
    assert "Groups unfittable: 1" in result.stdout

    for name in ["terms", "slopes", "significant", "top_intercepts", "unfittable"]:
        assert (outdir / f"{name}.csv").exists()
    top = pd.read_csv(outdir / "top_intercepts.csv")
    assert top.groupby("nutrient").size().max() == 1


def test_cli_run_missing_file_fails(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["run", "--data", str(tmp_path / "missing.tds")])
    assert result.exit_code == 1


def test_cli_run_invalid_option_fails(tmp_path: Path, tds_file: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["run", "--data", str(tds_file), "--q-threshold", "2"])
    assert result.exit_code == 1


def test_cli_tidy_smoke(tmp_path: Path, tds_file: Path) -> None:
    runner = CliRunner()
    out = tmp_path / "tidy.csv"

    result = runner.invoke(
        app,
        ["tidy", "--data", str(tds_file), "--config", str(_write_config(tmp_path)), "--out", str(out)],
    )
    assert result.exit_code == 0, result.stdout

    tidy = pd.read_csv(out)
    assert len(tidy) == 13
    assert set(tidy["nutrient"]) == {"Glucose", "Leucine"}


def test_cli_config_writes_defaults(tmp_path: Path) -> None:
    runner = CliRunner()
    out = tmp_path / "defaults.yaml"

    result = runner.invoke(app, ["config", "--out", str(out)])
    assert result.exit_code == 0

    payload = yaml.safe_load(out.read_text(encoding="utf-8"))
    assert payload["separator"] == "||"
    assert payload["q_threshold"] == 0.01


def test_cli_run_verbose_enables_debug(tmp_path: Path, tds_file: Path, package_logger) -> None:
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["run", "--verbose", "--data", str(tds_file), "--config", str(_write_config(tmp_path))],
    )
    assert result.exit_code == 0, result.stdout
    assert package_logger.level == logging.DEBUG


def test_cli_tidy_verbose_enables_debug(tmp_path: Path, tds_file: Path, package_logger) -> None:
    runner = CliRunner()
    out = tmp_path / "tidy.csv"

    result = runner.invoke(
        app,
        [
            "tidy",
            "--verbose",
            "--data",
            str(tds_file),
            "--config",
            str(_write_config(tmp_path)),
            "--out",
            str(out),
        ],
    )
    assert result.exit_code == 0, result.stdout
    assert package_logger.level == logging.DEBUG


def test_cli_run_without_verbose_keeps_level(tmp_path: Path, tds_file: Path, package_logger) -> None:
    runner = CliRunner()

    result = runner.invoke(
        app, ["run", "--data", str(tds_file), "--config", str(_write_config(tmp_path))]
    )
    assert result.exit_code == 0, result.stdout
    assert package_logger.level == logging.NOTSET
