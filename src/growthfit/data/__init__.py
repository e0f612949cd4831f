"""
Data loading layer for growthfit.

Supports tab-delimited text (*.tds, *.tsv, *.txt), CSV and Parquet sources,
read from an http(s) URL or a local path.

Example usage:
    from growthfit.data import load_table

    raw = load_table("http://varianceexplained.org/files/Brauer2008_DataSet1.tds")
"""

from growthfit.data.spec import DataFormat, is_remote
from growthfit.data.loaders import (
    create_session,
    fetch_bytes,
    infer_format,
    load_table,
    parse_delimited,
    validate_parquet_available,
)
from growthfit.data.validation import measurement_columns, validate_columns

__all__ = [
    "DataFormat",
    "is_remote",
    "create_session",
    "fetch_bytes",
    "infer_format",
    "load_table",
    "parse_delimited",
    "validate_parquet_available",
    "measurement_columns",
    "validate_columns",
]
