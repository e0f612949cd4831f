"""Reshape the wide expression table into tidy observation rows.

Each function returns a new DataFrame and leaves its input untouched.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import pandas as pd

from growthfit.config import AnalysisConfig
from growthfit.data.validation import measurement_columns, validate_columns
from growthfit.exceptions import ParseError

logger = logging.getLogger(__name__)


def split_parts(text: str, n: int, separator: str = "||") -> List[str]:
    """Split ``text`` on a literal separator into exactly ``n`` trimmed parts.

    Args:
        text: Compound value, e.g. ``"LEU1 || leucine biosynthesis || ..."``
        n: Required number of parts
        separator: Literal (non-regex) separator

    Returns:
        List of ``n`` whitespace-trimmed strings

    Raises:
        ParseError: If ``text`` is not a string or does not split into ``n`` parts
    """
    if not isinstance(text, str):
        raise ParseError(f"Expected text to split, got {text!r}")

    parts = text.split(separator)
    if len(parts) != n:
        raise ParseError(
            f"Expected {n} parts separated by '{separator}', got {len(parts)}: {text!r}"
        )
    return [part.strip() for part in parts]


def split_compound_column(
    df: pd.DataFrame,
    column: str,
    fields: Sequence[str],
    separator: str = "||",
) -> pd.DataFrame:
    """Replace a compound text column by one column per sub-field.

    The new columns take the position of ``column``. Any malformed row fails
    the whole split.
    """
    validate_columns(df, [column])
    clashes = [f for f in fields if f in df.columns and f != column]
    if clashes:
        raise ParseError(f"Split fields already exist as columns: {clashes}")

    rows = []
    for idx, text in df[column].items():
        try:
            rows.append(split_parts(text, len(fields), separator))
        except ParseError as exc:
            raise ParseError(f"Row {idx} of column '{column}': {exc}") from exc

    parts = pd.DataFrame(rows, columns=list(fields), index=df.index)
    pos = df.columns.get_loc(column)
    rest = df.drop(columns=[column])
    return pd.concat([rest.iloc[:, :pos], parts, rest.iloc[:, pos:]], axis=1)


def drop_columns(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """Drop a fixed list of columns; names not present are ignored."""
    absent = [c for c in columns if c not in df.columns]
    if absent:
        logger.debug(f"Columns not present, nothing to drop: {absent}")
    return df.drop(columns=[c for c in columns if c in df.columns])


def gather_measurements(
    df: pd.DataFrame,
    first: str,
    last: str,
    key: str = "sample",
    value: str = "expression",
) -> pd.DataFrame:
    """Pivot the measurement span ``first..last`` into ``key``/``value`` rows.

    All columns outside the span are duplicated across the long rows.
    """
    span = measurement_columns(df, first, last)
    id_vars = [c for c in df.columns if c not in span]

    long = pd.melt(df, id_vars=id_vars, value_vars=span, var_name=key, value_name=value)
    try:
        long[value] = pd.to_numeric(long[value], errors="raise").astype(float)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"Non-numeric measurement value: {exc}") from exc

    logger.debug(f"Gathered {len(span)} measurement columns into {len(long)} rows")
    return long


def split_sample_label(
    df: pd.DataFrame,
    key: str = "sample",
    code_width: int = 1,
    code: str = "nutrient",
    rate: str = "rate",
) -> pd.DataFrame:
    """Split a sample label like ``"G0.05"`` into a code (``"G"``) and a float rate (0.05)."""
    validate_columns(df, [key])
    labels = df[key].astype(str)
    rates = pd.to_numeric(labels.str[code_width:], errors="coerce")

    bad = labels[rates.isna()].unique().tolist()
    if bad:
        raise ParseError(f"Sample labels without a numeric rate after position {code_width}: {bad[:10]}")

    out = df.copy()
    pos = out.columns.get_loc(key)
    out = out.drop(columns=[key])
    out.insert(pos, code, labels.str[:code_width].values)
    out.insert(pos + 1, rate, rates.astype(float).values)
    return out


def map_conditions(
    df: pd.DataFrame,
    mapping: Dict[str, str],
    column: str = "nutrient",
) -> pd.DataFrame:
    """Map condition codes to human-readable names.

    Raises:
        ParseError: If a code has no entry in ``mapping``
    """
    validate_columns(df, [column])
    unknown = sorted(set(df[column].unique()) - set(mapping))
    if unknown:
        raise ParseError(f"Unknown condition codes in '{column}': {unknown}")

    out = df.copy()
    out[column] = out[column].map(mapping)
    return out


def drop_incomplete(
    df: pd.DataFrame,
    value: str = "expression",
    entity: str = "systematic_name",
) -> pd.DataFrame:
    """Discard rows with a missing value or an empty entity id."""
    validate_columns(df, [value, entity])
    ids = df[entity]
    keep = df[value].notna() & ids.notna() & (ids.astype(str).str.strip() != "")

    n_dropped = int((~keep).sum())
    if n_dropped:
        logger.info(f"Dropping {n_dropped} rows with missing {value} or empty {entity}")
    return df[keep].reset_index(drop=True)


def tidy_expression(raw: pd.DataFrame, config: Optional[AnalysisConfig] = None) -> pd.DataFrame:
    """Turn the raw wide table into tidy observation rows.

    Steps: split the compound description column, drop irrelevant columns,
    gather the measurement span, split sample labels into nutrient code and
    rate, name the nutrients, and drop incomplete rows.

    Args:
        raw: Wide table as loaded from the source
        config: Column layout and lookup tables (defaults to the Brauer layout)

    Returns:
        DataFrame with one row per (gene, nutrient, rate) observation
    """
    config = config or AnalysisConfig()
    validate_columns(raw, [config.compound_col, config.first_measure, config.last_measure])

    df = split_compound_column(raw, config.compound_col, config.compound_fields, config.separator)
    df = drop_columns(df, config.drop_cols)
    df = gather_measurements(df, config.first_measure, config.last_measure)
    df = split_sample_label(df, code_width=config.code_width, code=config.condition_col)
    df = map_conditions(df, config.nutrient_names, column=config.condition_col)
    df = drop_incomplete(df, entity=config.entity_col)

    logger.info(
        f"Tidy table: {len(df)} observations, "
        f"{df[config.entity_col].nunique()} genes, {df[config.condition_col].nunique()} nutrients"
    )
    return df
