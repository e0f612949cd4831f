"""Column validation utilities for growthfit."""

from __future__ import annotations

import logging
from typing import List, Sequence

import pandas as pd

from growthfit.exceptions import ParseError

logger = logging.getLogger(__name__)


def validate_columns(df: pd.DataFrame, required: Sequence[str]) -> None:
    """
    Validate that required columns exist in DataFrame.

    Parameters
    ----------
    df : pd.DataFrame
        Input dataframe
    required : Sequence[str]
        Column names that must be present

    Raises
    ------
    ParseError
        If any required column is missing
    """
    available = set(df.columns)
    missing = [c for c in required if c not in available]
    if missing:
        raise ParseError(
            f"Columns not found: {missing}. Available: {sorted(map(str, available))[:10]}..."
        )


def measurement_columns(df: pd.DataFrame, first: str, last: str) -> List[str]:
    """
    Resolve the contiguous span of columns from ``first`` to ``last`` (inclusive).

    Raises
    ------
    ParseError
        If either bound is missing or ``last`` precedes ``first``
    """
    validate_columns(df, [first, last])

    cols = list(df.columns)
    start, stop = cols.index(first), cols.index(last)
    if stop < start:
        raise ParseError(f"Measurement span is reversed: '{last}' precedes '{first}'")

    span = cols[start : stop + 1]
    logger.debug(f"Measurement span {first}..{last}: {len(span)} columns")
    return span
