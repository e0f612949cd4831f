"""Storey q-value estimation.

q-values are derived from the full set of p-values of one term category:
pi0, the proportion of true null hypotheses, is estimated from the p-value
distribution, and ``q = pi0 * BH-adjusted p``. The estimate needs the whole
set at once.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.interpolate import make_smoothing_spline
from statsmodels.stats.multitest import multipletests

from growthfit.data.validation import validate_columns

logger = logging.getLogger(__name__)

DEFAULT_LAMBDAS = np.round(np.arange(0.05, 0.951, 0.05), 2)

SMOOTH_DF = 3.0

# Estimates at or below this are treated as zero
PI0_FLOOR = 1e-8


def _finite_pvalues(pvals: Sequence[float]) -> np.ndarray:
    p = np.asarray(pvals, dtype=float)
    p = p[np.isfinite(p)]
    if ((p < 0) | (p > 1)).any():
        raise ValueError("p-values must lie in [0, 1]")
    return p


def pi0_by_lambda(pvals: Sequence[float], lambdas: Sequence[float] = DEFAULT_LAMBDAS) -> np.ndarray:
    """Raw pi0 estimates ``#{p >= lambda} / (m * (1 - lambda))`` for each lambda."""
    p = _finite_pvalues(pvals)
    m = len(p)
    if m == 0:
        raise ValueError("At least one finite p-value is required")
    return np.array([np.sum(p >= lam) / (m * (1.0 - lam)) for lam in lambdas])


@lru_cache(maxsize=32)
def _penalty_for_df(x: Tuple[float, ...], df: float) -> float:
    """Smoothing penalty giving ``df`` effective degrees of freedom on abscissas ``x``.

    Found by bisection on log10(lam) so that the trace of the (linear)
    smoother matrix equals ``df``. Depends on ``x`` only, not on the data.
    """
    x = np.asarray(x, dtype=float)
    n = len(x)
    identity = np.eye(n)

    def trace(log_lam: float) -> float:
        lam = 10.0 ** log_lam
        return sum(make_smoothing_spline(x, identity[j], lam=lam)(x)[j] for j in range(n))

    lo, hi = -12.0, 8.0
    for _ in range(60):
        mid = 0.5 * (lo + hi)
        if trace(mid) > df:
            lo = mid
        else:
            hi = mid

    return 10.0 ** (0.5 * (lo + hi))


def _smoothing_spline_df(x: np.ndarray, y: np.ndarray, df: float) -> np.ndarray:
    """Fitted values of a cubic smoothing spline with ``df`` degrees of freedom."""
    lam = _penalty_for_df(tuple(float(v) for v in x), float(df))
    return make_smoothing_spline(x, y, lam=lam)(x)


def estimate_pi0(
    pvals: Sequence[float],
    lambdas: Optional[Sequence[float]] = None,
    method: str = "smoother",
    smooth_df: float = SMOOTH_DF,
) -> float:
    """Estimate the proportion of true null hypotheses.

    Args:
        pvals: Complete set of p-values (NaN entries are ignored)
        lambdas: Tuning values in [0, 1); defaults to 0.05, 0.10, ..., 0.95
        method: "smoother" (cubic smoothing spline over lambda, evaluated at the
            largest lambda) or "bootstrap" (closed-form MSE minimisation)
        smooth_df: Degrees of freedom of the smoothing spline

    Returns:
        pi0 in (0, 1]

    Notes:
        A non-positive estimate, which happens when every p-value lies below
        the smallest lambda, falls back to 1 (Benjamini-Hochberg).
    """
    p = _finite_pvalues(pvals)
    m = len(p)
    if m == 0:
        raise ValueError("At least one finite p-value is required")

    lambdas = np.sort(np.asarray(DEFAULT_LAMBDAS if lambdas is None else lambdas, dtype=float))
    if ((lambdas < 0) | (lambdas >= 1)).any():
        raise ValueError("lambdas must lie in [0, 1)")

    if len(lambdas) == 1:
        pi0 = float(np.mean(p >= lambdas[0]) / (1.0 - lambdas[0]))
    else:
        pi0s = pi0_by_lambda(p, lambdas)
        if method == "smoother":
            if len(lambdas) < 5:
                raise ValueError("The smoother method needs at least 5 lambda values")
            pi0 = float(_smoothing_spline_df(lambdas, pi0s, smooth_df)[-1])
        elif method == "bootstrap":
            min_pi0 = np.quantile(pi0s, 0.1)
            w = np.array([np.sum(p >= lam) for lam in lambdas])
            mse = (w / (m ** 2 * (1.0 - lambdas) ** 2)) * (1.0 - w / m) + (pi0s - min_pi0) ** 2
            pi0 = float(pi0s[mse == mse.min()].min())
        else:
            raise ValueError(f"method must be 'smoother' or 'bootstrap', got {method}")

    pi0 = min(pi0, 1.0)
    if not np.isfinite(pi0) or pi0 <= PI0_FLOOR:
        logger.warning(f"pi0 estimate {pi0:.4g} is not positive; using pi0 = 1")
        pi0 = 1.0
    return pi0


def qvalues(
    pvals: Sequence[float],
    pi0: Optional[float] = None,
    lambdas: Optional[Sequence[float]] = None,
    method: str = "smoother",
) -> np.ndarray:
    """Compute q-values for a complete set of p-values.

    NaN p-values yield NaN q-values and take no part in the estimation.
    Sorted by p-value, the q-values are non-decreasing.
    """
    p = np.asarray(pvals, dtype=float)
    q = np.full_like(p, np.nan, dtype=float)
    mask = np.isfinite(p)
    if not mask.any():
        return q

    if pi0 is None:
        pi0 = estimate_pi0(p[mask], lambdas=lambdas, method=method)
    if not 0 < pi0 <= 1:
        raise ValueError(f"pi0 must be in (0, 1], got {pi0}")

    _, p_bh, _, _ = multipletests(p[mask], method="fdr_bh")
    q[mask] = np.minimum(pi0 * p_bh, 1.0)
    return q


def add_qvalues(
    terms: pd.DataFrame,
    term: str = "slope",
    pi0: Optional[float] = None,
    method: str = "smoother",
    p_col: str = "p_value",
    out: str = "q_value",
) -> pd.DataFrame:
    """Select one term category and add q-values computed over all of its p-values.

    Args:
        terms: Term records (all categories)
        term: Category the q-values are computed over
        pi0: Fixed pi0; estimated from the category's p-values when None
        method: pi0 estimator when ``pi0`` is None

    Returns:
        Copy of the records of ``term`` with an ``out`` column
    """
    validate_columns(terms, ["term", p_col])
    subset = terms[terms["term"] == term].reset_index(drop=True)

    if subset[p_col].notna().sum() == 0:
        logger.warning(f"No defined p-values for term '{term}'; q-values are undefined")
        subset[out] = np.nan
        return subset

    subset[out] = qvalues(subset[p_col].to_numpy(), pi0=pi0, method=method)
    return subset
