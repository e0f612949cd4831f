"""Tidy reshaping of wide expression tables."""

from growthfit.tidy.transform import (
    split_parts,
    split_compound_column,
    drop_columns,
    gather_measurements,
    split_sample_label,
    map_conditions,
    drop_incomplete,
    tidy_expression,
)

__all__ = [
    "split_parts",
    "split_compound_column",
    "drop_columns",
    "gather_measurements",
    "split_sample_label",
    "map_conditions",
    "drop_incomplete",
    "tidy_expression",
]
