"""Data loading functions for growthfit.

Sources are fetched once (no retries) from an http(s) URL or a local path and
parsed into a pandas DataFrame. Network and IO failures raise
``RetrievalError``; inconsistent delimited input raises ``ParseError``.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Optional

import pandas as pd
import requests

from growthfit.data.spec import DataFormat, is_remote
from growthfit.exceptions import ParseError, RetrievalError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
USER_AGENT = "growthfit/0.1"


def create_session(user_agent: str = USER_AGENT) -> requests.Session:
    """
    Create a requests Session with standard headers.

    No retry adapter is mounted: a failed read aborts the run.
    """
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent})
    return session


def infer_format(uri: str) -> DataFormat:
    """Infer the source format from a URI or path suffix."""
    return DataFormat.from_uri(uri)


def fetch_bytes(
    uri: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> bytes:
    """
    Read the raw bytes of a source.

    Parameters
    ----------
    uri : str
        http(s) URL or local path
    session : requests.Session, optional
        Session used for remote reads; a new one is created if omitted
    timeout : float
        Request timeout in seconds

    Returns
    -------
    bytes
        Source payload

    Raises
    ------
    RetrievalError
        If the resource is unreachable, returns a non-2xx status or cannot be read
    """
    uri = str(uri)

    if not is_remote(uri):
        try:
            return Path(uri).read_bytes()
        except OSError as exc:
            raise RetrievalError(uri, str(exc)) from exc

    own_session = session is None
    session = session or create_session()
    try:
        response = session.get(uri, timeout=timeout)
        response.raise_for_status()
        return response.content
    except requests.RequestException as exc:
        raise RetrievalError(uri, str(exc)) from exc
    finally:
        if own_session:
            session.close()


def parse_delimited(payload: bytes, delimiter: str, source: str = "<bytes>") -> pd.DataFrame:
    """
    Parse delimited text, requiring a consistent field count on every row.

    Parameters
    ----------
    payload : bytes
        Raw file contents (UTF-8, latin-1 accepted as fallback)
    delimiter : str
        Single-character field delimiter
    source : str
        Name used in error messages

    Returns
    -------
    pd.DataFrame
        Parsed table

    Raises
    ------
    ParseError
        If the payload is empty or any row's field count differs from the header's
    ValueError
        If ``delimiter`` is not a single character
    """
    if len(delimiter) != 1:
        raise ValueError(f"delimiter must be a single character, got {delimiter!r}")

    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError:
        text = payload.decode("latin-1")

    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    n_fields = None
    for line_no, row in enumerate(reader, start=1):
        if not row:
            continue
        if n_fields is None:
            n_fields = len(row)
        elif len(row) != n_fields:
            raise ParseError(
                f"{source}: line {line_no} has {len(row)} fields, expected {n_fields}"
            )

    if n_fields is None:
        raise ParseError(f"{source}: no rows found")

    try:
        return pd.read_csv(io.StringIO(text), sep=delimiter)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise ParseError(f"{source}: {exc}") from exc


def validate_parquet_available() -> None:
    """
    Check if PyArrow is available for Parquet operations.

    Raises
    ------
    ImportError
        If PyArrow is not installed
    """
    try:
        import pyarrow  # noqa: F401
    except ImportError as exc:
        raise ImportError(
            "PyArrow is required for Parquet support but is not installed.\n"
            "Install with: pip install growthfit[parquet] or pip install pyarrow"
        ) from exc


def _parse_parquet(payload: bytes, source: str) -> pd.DataFrame:
    validate_parquet_available()
    try:
        return pd.read_parquet(io.BytesIO(payload))
    except (OSError, ValueError) as exc:
        raise ParseError(f"{source}: unreadable parquet payload ({exc})") from exc


def load_table(
    uri: str,
    delimiter: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> pd.DataFrame:
    """
    Load a table from a URL or path (tab-delimited, CSV or Parquet).

    Parameters
    ----------
    uri : str
        http(s) URL or local path
    delimiter : str, optional
        Overrides the delimiter implied by the file suffix
    session : requests.Session, optional
        Session used for remote reads
    timeout : float
        Request timeout in seconds

    Returns
    -------
    pd.DataFrame
        Loaded data

    Examples
    --------
    >>> df = load_table("http://varianceexplained.org/files/Brauer2008_DataSet1.tds")
    >>> df = load_table("data/expression.csv")
    """
    uri = str(uri)
    fmt = None if delimiter is not None else infer_format(uri)

    logger.info(f"Loading table from {uri} (format: {fmt.value if fmt else repr(delimiter)})")
    payload = fetch_bytes(uri, session=session, timeout=timeout)

    if fmt == DataFormat.PARQUET:
        df = _parse_parquet(payload, uri)
    else:
        df = parse_delimited(payload, delimiter or fmt.delimiter, source=uri)

    logger.info(f"Loaded {len(df)} rows, {len(df.columns)} columns")
    return df
