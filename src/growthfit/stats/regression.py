"""Per-group simple linear regression and coefficient term extraction."""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy import stats as sp_stats

from growthfit.data.validation import validate_columns
from growthfit.exceptions import UnfittableGroupError

logger = logging.getLogger(__name__)

MIN_OBS = 2
MIN_RATES = 2

# Standard errors at or below this (relative to the estimate) count as zero
SE_TOL = 1e-12

TERM_NAMES = ("intercept", "slope")

TERM_STATS = ["term", "estimate", "std_error", "statistic", "p_value", "n_obs"]


@dataclass
class GroupFits:
    """Fitted models keyed by group, plus the groups that could not be fit.

    Attributes:
        keys: Grouping column names, e.g. ["systematic_name", "nutrient"]
        carry: Descriptive columns carried per group (e.g. ["name"])
        models: Group key -> fitted statsmodels OLS results
        n_obs: Group key -> number of observations used in the fit
        attributes: Group key -> values of the carried columns
        unfittable: One row per skipped group with n_obs, n_rates and reason
    """

    keys: List[str]
    carry: List[str] = field(default_factory=list)
    models: Dict[Tuple[Any, ...], Any] = field(default_factory=dict)
    n_obs: Dict[Tuple[Any, ...], int] = field(default_factory=dict)
    attributes: Dict[Tuple[Any, ...], Dict[str, Any]] = field(default_factory=dict)
    unfittable: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def n_fitted(self) -> int:
        return len(self.models)

    @property
    def n_unfittable(self) -> int:
        return len(self.unfittable)


def fit_group(
    frame: pd.DataFrame,
    x: str = "rate",
    y: str = "expression",
    key: Tuple[Any, ...] = (),
):
    """Fit ``y ~ x`` by ordinary least squares for one group.

    Args:
        frame: Observations of a single group
        x: Predictor column (growth rate)
        y: Response column (expression)
        key: Group key, used in error messages

    Returns:
        statsmodels ``RegressionResults`` with parameters [const, x]

    Raises:
        UnfittableGroupError: If fewer than 2 observations or 2 distinct ``x`` values remain
    """
    sub = frame[[x, y]].dropna()
    n_obs = len(sub)
    n_rates = int(sub[x].nunique())

    if n_obs < MIN_OBS:
        raise UnfittableGroupError(
            key, f"{n_obs} observation(s), need at least {MIN_OBS}", n_obs, n_rates
        )
    if n_rates < MIN_RATES:
        raise UnfittableGroupError(
            key, f"{n_rates} distinct {x} value(s), need at least {MIN_RATES}", n_obs, n_rates
        )

    design = sm.add_constant(sub[x].astype(float).to_numpy(), has_constant="add")
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        return sm.OLS(sub[y].astype(float).to_numpy(), design).fit()


def coefficient_table(result, n_obs: int) -> pd.DataFrame:
    """Build the intercept/slope coefficient table of one fitted model.

    Standard errors come from the diagonal of the coefficient covariance
    matrix; p-values are two-sided from a t distribution with ``n_obs - 2``
    degrees of freedom. A zero or non-finite standard error, or zero residual
    degrees of freedom, gives a NaN statistic and p-value.
    """
    params = np.asarray(result.params, dtype=float)
    df_resid = n_obs - len(params)

    with warnings.catch_warnings(), np.errstate(all="ignore"):
        warnings.simplefilter("ignore", RuntimeWarning)
        cov = np.asarray(result.cov_params(), dtype=float)
        variances = np.diag(cov)
        se = np.where(variances >= 0, np.sqrt(np.abs(variances)), np.nan)
        se = np.where(np.isfinite(se), se, np.nan)

        degenerate = (
            np.isnan(se)
            | (se <= SE_TOL * np.maximum(1.0, np.abs(params)))
            | (df_resid <= 0)
        )
        statistic = np.where(degenerate, np.nan, params / se)
        p_value = np.where(
            degenerate,
            np.nan,
            2.0 * sp_stats.t.sf(np.abs(statistic), max(df_resid, 1)),
        )

    return pd.DataFrame(
        {
            "term": list(TERM_NAMES),
            "estimate": params,
            "std_error": se,
            "statistic": statistic,
            "p_value": p_value,
            "n_obs": n_obs,
        }
    )


def fit_groups(
    tidy: pd.DataFrame,
    keys: Sequence[str] = ("systematic_name", "nutrient"),
    x: str = "rate",
    y: str = "expression",
    carry: Sequence[str] = ("name",),
) -> GroupFits:
    """Partition tidy rows by ``keys`` and fit one regression per partition.

    Groups that cannot be fit are recorded in ``GroupFits.unfittable`` and
    do not stop the run.
    """
    keys = list(keys)
    validate_columns(tidy, keys + [x, y])
    carry = [c for c in carry if c in tidy.columns and c not in keys]

    fits = GroupFits(keys=keys, carry=carry)
    skipped = []

    for group_key, frame in tidy.groupby(keys, sort=True):
        group_key = group_key if isinstance(group_key, tuple) else (group_key,)
        attrs = {c: frame[c].iloc[0] for c in carry}
        try:
            model = fit_group(frame, x=x, y=y, key=group_key)
        except UnfittableGroupError as exc:
            logger.debug(str(exc))
            skipped.append(
                {
                    **dict(zip(keys, group_key)),
                    **attrs,
                    "n_obs": exc.n_obs,
                    "n_rates": exc.n_rates,
                    "reason": exc.reason,
                }
            )
            continue

        fits.models[group_key] = model
        fits.n_obs[group_key] = int(model.nobs)
        fits.attributes[group_key] = attrs

    fits.unfittable = pd.DataFrame(
        skipped, columns=keys + carry + ["n_obs", "n_rates", "reason"]
    )

    logger.info(f"Fitted {fits.n_fitted} groups, skipped {fits.n_unfittable} unfittable groups")
    return fits


def extract_terms(fits: GroupFits) -> pd.DataFrame:
    """Convert every fitted model into two term records (intercept, slope)."""
    columns = fits.keys + fits.carry + TERM_STATS
    tables = []

    for group_key, model in fits.models.items():
        table = coefficient_table(model, fits.n_obs[group_key])
        for name, value in zip(fits.keys, group_key):
            table[name] = value
        for name, value in fits.attributes[group_key].items():
            table[name] = value
        tables.append(table[columns])

    if not tables:
        return pd.DataFrame(columns=columns)

    terms = pd.concat(tables, ignore_index=True)
    n_undefined = int(terms["p_value"].isna().sum())
    if n_undefined:
        logger.info(f"{n_undefined} term(s) have an undefined p-value (degenerate fit)")
    return terms
