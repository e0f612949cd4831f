"""Public API for the growth-rate regression workflow."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
import requests

from growthfit.config import AnalysisConfig, BRAUER_URL
from growthfit.data import load_table
from growthfit.stats.filters import (
    center_by_group,
    filter_by_qvalue,
    rank_by,
    top_k_per_group,
)
from growthfit.stats.qvalue import add_qvalues, estimate_pi0
from growthfit.stats.regression import extract_terms, fit_groups
from growthfit.tidy import tidy_expression

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Tables produced by one analysis run.

    Attributes:
        tidy: Observation rows
        terms: Intercept and slope records of every fitted group
        slopes: Records of the q-value term category with a ``q_value`` column
        significant: ``slopes`` below the q-value threshold, ranked by estimate
        top_intercepts: Intercepts centered per gene, top-K per nutrient
        unfittable: Groups skipped for insufficient data
        pi0: Estimated proportion of true nulls (NaN if undefined)
        config: Configuration of the run
    """

    tidy: pd.DataFrame
    terms: pd.DataFrame
    slopes: pd.DataFrame
    significant: pd.DataFrame
    top_intercepts: pd.DataFrame
    unfittable: pd.DataFrame
    pi0: float
    config: AnalysisConfig

    def summary(self) -> Dict[str, Any]:
        """Counts describing the run."""
        entity, condition = self.config.entity_col, self.config.condition_col
        return {
            "n_observations": len(self.tidy),
            "n_genes": int(self.tidy[entity].nunique()) if len(self.tidy) else 0,
            "n_nutrients": int(self.tidy[condition].nunique()) if len(self.tidy) else 0,
            "n_groups_fitted": len(self.terms) // 2,
            "n_groups_unfittable": len(self.unfittable),
            "pi0": self.pi0,
            "q_threshold": self.config.q_threshold,
            "n_significant": len(self.significant),
        }


def run_analysis(
    data_uri: str = BRAUER_URL,
    q_threshold: float = 0.01,
    top_k: int = 2,
    pi0_method: str = "smoother",
    session: Optional[requests.Session] = None,
) -> AnalysisResult:
    """Run the complete workflow: load, tidy, fit, extract, correct, filter.

    Args:
        data_uri: URL or path of the wide expression table
        q_threshold: Keep slope terms with q-value below this (default: 0.01)
        top_k: Intercept records kept per nutrient (default: 2)
        pi0_method: pi0 estimator, "smoother" or "bootstrap"
        session: Optional requests session for the remote read

    Returns:
        AnalysisResult

    Example:
        >>> from growthfit import run_analysis
        >>> result = run_analysis(q_threshold=0.01)
        >>> result.significant.head()
    """
    config = AnalysisConfig(
        data_uri=data_uri,
        q_threshold=q_threshold,
        top_k=top_k,
        pi0_method=pi0_method,
    )
    return run_analysis_from_config(config, session=session)


def run_analysis_from_config(
    config: AnalysisConfig, session: Optional[requests.Session] = None
) -> AnalysisResult:
    """Load the table named by ``config.data_uri`` and analyze it.

    Retrieval and parse failures propagate; nothing is returned for a
    failed run.
    """
    logger.info(f"Loading data from {config.data_uri}")
    raw = load_table(
        config.data_uri,
        delimiter=config.delimiter,
        session=session,
        timeout=config.timeout,
    )
    return analyze_table(raw, config)


def analyze_table(raw: pd.DataFrame, config: Optional[AnalysisConfig] = None) -> AnalysisResult:
    """Run every stage after loading on an in-memory wide table."""
    config = config or AnalysisConfig()
    keys = [config.entity_col, config.condition_col]

    logger.info("[1/4] Reshaping to tidy observations")
    tidy = tidy_expression(raw, config)

    logger.info("[2/4] Fitting expression ~ rate per gene and nutrient")
    fits = fit_groups(tidy, keys=keys, carry=config.carry_cols)
    terms = extract_terms(fits)

    logger.info(f"[3/4] Computing q-values over {config.q_term} terms")
    category = terms[terms["term"] == config.q_term]["p_value"]
    if category.notna().any():
        pi0 = estimate_pi0(category.dropna().to_numpy(), method=config.pi0_method)
        logger.info(f"  pi0 = {pi0:.4f}")
    else:
        pi0 = np.nan
    slopes = add_qvalues(
        terms, term=config.q_term, pi0=pi0 if np.isfinite(pi0) else None
    )

    logger.info(f"[4/4] Filtering q < {config.q_threshold} and ranking intercepts")
    significant = rank_by(filter_by_qvalue(slopes, config.q_threshold), "estimate")

    intercepts = terms[terms["term"] == "intercept"]
    centered = center_by_group(intercepts, group=config.entity_col, value="estimate")
    top_intercepts = top_k_per_group(
        centered, group=config.condition_col, by="centered", k=config.top_k
    )

    logger.info(f"  {len(significant)} {config.q_term} terms with q < {config.q_threshold}")

    return AnalysisResult(
        tidy=tidy,
        terms=terms,
        slopes=slopes,
        significant=significant,
        top_intercepts=top_intercepts,
        unfittable=fits.unfittable,
        pi0=pi0,
        config=config,
    )


def write_results(result: AnalysisResult, outdir: Path) -> Dict[str, Path]:
    """Write the result tables as CSV files into ``outdir``.

    Returns:
        Mapping of table name -> written path
    """
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    tables = {
        "terms": result.terms,
        "slopes": result.slopes,
        "significant": result.significant,
        "top_intercepts": result.top_intercepts,
        "unfittable": result.unfittable,
    }
    paths = {}
    for name, table in tables.items():
        path = outdir / f"{name}.csv"
        table.to_csv(path, index=False)
        paths[name] = path
        logger.info(f"  • {path}")
    return paths
