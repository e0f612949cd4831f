"""Tests for growthfit.data.loaders module."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
import requests

from growthfit.data import DataFormat, fetch_bytes, infer_format, load_table, parse_delimited
from growthfit.data.loaders import create_session
from growthfit.exceptions import ParseError, RetrievalError


# ============================================================================
# Test DataFormat
# ============================================================================


class TestDataFormat:
    def test_tab_delimited_suffixes(self):
        for name in ["data.tds", "data.tsv", "data.txt", "data.tab", "DATA.TDS"]:
            assert infer_format(name) == DataFormat.TSV

    def test_csv_and_parquet(self):
        assert infer_format("data.csv") == DataFormat.CSV
        assert infer_format("data.parquet") == DataFormat.PARQUET

    def test_remote_uri_ignores_query(self):
        uri = "http://varianceexplained.org/files/Brauer2008_DataSet1.tds?raw=1"
        assert infer_format(uri) == DataFormat.TSV

    def test_delimiters(self):
        assert DataFormat.TSV.delimiter == "\t"
        assert DataFormat.CSV.delimiter == ","
        assert DataFormat.PARQUET.delimiter is None

    def test_unknown_suffix_raises(self):
        with pytest.raises(ValueError, match="Cannot infer data format") as exc_info:
            infer_format("data.xlsx")
        assert ".tab" in str(exc_info.value)


# ============================================================================
# Test parse_delimited
# ============================================================================


class TestParseDelimited:
    def test_parses_consistent_rows(self):
        payload = b"a\tb\tc\n1\t2\t3\n4\t\t6\n"
        df = parse_delimited(payload, "\t")

        assert list(df.columns) == ["a", "b", "c"]
        assert len(df) == 2
        assert np.isnan(df.loc[1, "b"])

    def test_short_row_raises(self):
        payload = b"a\tb\tc\n1\t2\t3\n4\t5\n"
        with pytest.raises(ParseError, match="line 3 has 2 fields, expected 3"):
            parse_delimited(payload, "\t")

    def test_long_row_raises(self):
        payload = b"a,b\n1,2,3\n"
        with pytest.raises(ParseError, match="line 2"):
            parse_delimited(payload, ",")

    def test_empty_payload_raises(self):
        with pytest.raises(ParseError, match="no rows"):
            parse_delimited(b"", "\t")

    def test_blank_lines_ignored(self):
        payload = b"a,b\n1,2\n\n3,4\n"
        df = parse_delimited(payload, ",")
        assert len(df) == 2

    def test_multi_character_delimiter_rejected(self):
        with pytest.raises(ValueError, match="single character"):
            parse_delimited(b"a||b\n1||2\n", "||")


# ============================================================================
# Test fetch_bytes / load_table
# ============================================================================


class TestLoadTable:
    def test_load_local_tds(self, tds_file, wide_table):
        df = load_table(str(tds_file))

        assert list(df.columns) == list(wide_table.columns)
        assert len(df) == 3
        assert df.loc[0, "G0.05"] == pytest.approx(1.0)
        assert df["L0.1"].isna().sum() == 1

    def test_load_local_csv(self, tmp_path, wide_table):
        path = tmp_path / "expression.csv"
        wide_table.to_csv(path, index=False)

        df = load_table(str(path))
        assert df.shape == wide_table.shape

    def test_explicit_delimiter_overrides_suffix(self, tmp_path):
        path = tmp_path / "semicolons.dat"
        path.write_text("a;b\n1;2\n", encoding="utf-8")

        df = load_table(str(path), delimiter=";")
        assert list(df.columns) == ["a", "b"]

    def test_load_parquet(self, tmp_path, wide_table):
        pytest.importorskip("pyarrow")
        path = tmp_path / "expression.parquet"
        wide_table.to_parquet(path, index=False)

        df = load_table(str(path))
        pd.testing.assert_frame_equal(df, wide_table)

    def test_corrupt_parquet_raises_parse_error(self, tmp_path):
        pytest.importorskip("pyarrow")
        path = tmp_path / "broken.parquet"
        path.write_bytes(b"not a parquet file")

        with pytest.raises(ParseError, match="unreadable parquet"):
            load_table(str(path))

    def test_missing_local_file_raises_retrieval_error(self, tmp_path):
        with pytest.raises(RetrievalError) as excinfo:
            load_table(str(tmp_path / "missing.tds"))
        assert "missing.tds" in excinfo.value.uri

    def test_remote_load_uses_session(self, tds_file, fake_session_factory):
        uri = "http://example.org/files/expression.tds"
        session = fake_session_factory({uri: tds_file.read_bytes()})

        df = load_table(uri, session=session)

        assert session.requested == [uri]
        assert len(df) == 3

    def test_remote_http_error_raises_retrieval_error(self, fake_session_factory):
        session = fake_session_factory({})
        with pytest.raises(RetrievalError, match="404"):
            fetch_bytes("https://example.org/missing.tds", session=session)

    def test_remote_connection_error_raises_retrieval_error(self, fake_session_factory):
        session = fake_session_factory(error=requests.ConnectionError("unreachable"))
        with pytest.raises(RetrievalError, match="unreachable"):
            fetch_bytes("https://example.org/data.tds", session=session)

    def test_single_attempt_only(self, fake_session_factory):
        session = fake_session_factory(error=requests.Timeout("timed out"))
        with pytest.raises(RetrievalError):
            fetch_bytes("https://example.org/data.tds", session=session)
        assert len(session.requested) == 1


def test_create_session_sets_user_agent():
    session = create_session(user_agent="growthfit-test")
    assert session.headers["User-Agent"] == "growthfit-test"
    session.close()
