"""
growthfit: tidy per-gene growth-rate regressions for yeast expression data.

This package provides:
- Loading of delimited or Parquet expression tables from a URL or path
- Tidy reshaping of the wide Brauer (2008) layout
- One linear model of expression on growth rate per gene and nutrient
- Storey q-values and filtering/ranking of the fitted terms
- A small Typer CLI
"""

__version__ = "0.1.0"

from growthfit.config import AnalysisConfig, load_config, save_config
from growthfit.exceptions import GrowthFitError, ParseError, RetrievalError, UnfittableGroupError
from growthfit.stats import AnalysisResult, analyze_table, run_analysis, run_analysis_from_config

__all__ = [
    "__version__",
    "AnalysisConfig",
    "load_config",
    "save_config",
    "GrowthFitError",
    "ParseError",
    "RetrievalError",
    "UnfittableGroupError",
    "AnalysisResult",
    "analyze_table",
    "run_analysis",
    "run_analysis_from_config",
]
