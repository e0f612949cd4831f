"""Filtering and ranking of fitted term records."""

from __future__ import annotations

from typing import Sequence, Union

import pandas as pd

from growthfit.data.validation import validate_columns


def filter_by_qvalue(terms: pd.DataFrame, threshold: float, column: str = "q_value") -> pd.DataFrame:
    """Keep records with ``q_value < threshold``; undefined q-values are dropped."""
    validate_columns(terms, [column])
    return terms[terms[column] < threshold].reset_index(drop=True)


def rank_by(terms: pd.DataFrame, column: str = "estimate", ascending: bool = True) -> pd.DataFrame:
    """Sort records by one column (stable)."""
    validate_columns(terms, [column])
    return terms.sort_values(column, ascending=ascending, kind="mergesort").reset_index(drop=True)


def center_by_group(
    terms: pd.DataFrame,
    group: Union[str, Sequence[str]] = "systematic_name",
    value: str = "estimate",
    out: str = "centered",
) -> pd.DataFrame:
    """Add ``out = value - mean(value within group)``.

    With intercept terms grouped by gene this gives each nutrient's
    expression at low growth rate relative to the gene's average.
    """
    group = [group] if isinstance(group, str) else list(group)
    validate_columns(terms, group + [value])

    centered = terms.copy()
    centered[out] = terms[value] - terms.groupby(group)[value].transform("mean")
    return centered


def top_k_per_group(
    terms: pd.DataFrame,
    group: Union[str, Sequence[str]],
    by: str,
    k: int,
    ascending: bool = False,
) -> pd.DataFrame:
    """Keep, per group, the ``k`` records ranked highest by ``by``.

    Ties at the cutoff are all kept, so a group can return more than ``k``
    records. Set ``ascending=True`` to keep the lowest values instead.
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    group = [group] if isinstance(group, str) else list(group)
    validate_columns(terms, group + [by])

    ranks = terms.groupby(group)[by].rank(method="min", ascending=ascending)
    kept = terms[ranks <= k]
    return kept.sort_values(
        group + [by], ascending=[True] * len(group) + [ascending], kind="mergesort"
    ).reset_index(drop=True)
