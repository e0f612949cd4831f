"""Source format types for growthfit data loading."""

from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import urlparse


class DataFormat(str, Enum):
    """Supported source formats."""

    TSV = "tsv"
    CSV = "csv"
    PARQUET = "parquet"

    @property
    def delimiter(self) -> Optional[str]:
        """Field delimiter for text formats (None for binary formats)."""
        if self is DataFormat.TSV:
            return "\t"
        if self is DataFormat.CSV:
            return ","
        return None

    @classmethod
    def from_uri(cls, uri: str) -> DataFormat:
        """
        Infer format from a URI or local path.

        Parameters
        ----------
        uri : str
            URL or path of the source file

        Returns
        -------
        DataFormat
            Inferred format

        Raises
        ------
        ValueError
            If format cannot be inferred
        """
        path = urlparse(str(uri)).path if is_remote(uri) else str(uri)
        suffix = PurePosixPath(path.replace("\\", "/")).suffix.lower()

        if suffix in (".tds", ".tsv", ".txt", ".tab"):
            return cls.TSV
        elif suffix == ".csv":
            return cls.CSV
        elif suffix == ".parquet":
            return cls.PARQUET
        else:
            raise ValueError(
                f"Cannot infer data format from {uri}. "
                f"Expected .tds/.tsv/.txt/.tab, .csv or .parquet."
            )


def is_remote(uri: str) -> bool:
    """Return True for http(s) URIs."""
    return urlparse(str(uri)).scheme.lower() in ("http", "https")
