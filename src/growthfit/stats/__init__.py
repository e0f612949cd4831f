"""Per-group regression, q-value correction and filtering.

Public API:
-----------
from growthfit.stats import run_analysis, analyze_table

# Complete workflow on the Brauer (2008) dataset
result = run_analysis(q_threshold=0.01, top_k=2)

# Slope terms with q < 0.01, most negative first
result.significant
"""

from growthfit.stats.api import (
    AnalysisResult,
    analyze_table,
    run_analysis,
    run_analysis_from_config,
    write_results,
)
from growthfit.stats.filters import center_by_group, filter_by_qvalue, rank_by, top_k_per_group
from growthfit.stats.qvalue import add_qvalues, estimate_pi0, qvalues
from growthfit.stats.regression import GroupFits, coefficient_table, extract_terms, fit_group, fit_groups

__all__ = [
    "AnalysisResult",
    "analyze_table",
    "run_analysis",
    "run_analysis_from_config",
    "write_results",
    "center_by_group",
    "filter_by_qvalue",
    "rank_by",
    "top_k_per_group",
    "add_qvalues",
    "estimate_pi0",
    "qvalues",
    "GroupFits",
    "coefficient_table",
    "extract_terms",
    "fit_group",
    "fit_groups",
]
