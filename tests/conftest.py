"""Pytest configuration and fixtures."""

import pytest
import numpy as np
import pandas as pd
from pathlib import Path

from growthfit.config import AnalysisConfig


@pytest.fixture
def wide_table():
    """Small table in the Brauer (2008) wide layout, glucose and leucine only.

    - LEU1 / YGL154C: falls with rate under glucose, flat under leucine
    - SFB2 / YNL049C: rises under glucose, a single leucine measurement
    - a row with an empty systematic name
    """
    return pd.DataFrame(
        {
            "GID": ["GENE1", "GENE2", "GENE3"],
            "YORF": ["YGL154C", "YNL049C", ""],
            "NAME": [
                "LEU1 || leucine biosynthesis || transferase activity || YGL154C || 1234",
                "SFB2       || ER to Golgi transport || molecular_function unknown || YNL049C || 1082129",
                " ||  ||  ||  || 99",
            ],
            "GWEIGHT": [1, 1, 1],
            "G0.05": [1.0, 0.2, 0.3],
            "G0.1": [0.8, 0.4, 0.3],
            "G0.2": [0.5, 0.7, 0.3],
            "G0.3": [0.2, 1.0, 0.3],
            "L0.05": [0.1, 0.5, 0.3],
            "L0.1": [0.12, np.nan, 0.3],
            "L0.2": [0.09, np.nan, 0.3],
            "L0.3": [0.11, np.nan, 0.3],
        }
    )


@pytest.fixture
def small_config():
    """Config matching the ``wide_table`` measurement span."""
    return AnalysisConfig(data_uri="unused.tds", first_measure="G0.05", last_measure="L0.3")


@pytest.fixture
def tds_file(tmp_path, wide_table) -> Path:
    """Write ``wide_table`` as a tab-delimited .tds file."""
    path = tmp_path / "expression.tds"
    wide_table.to_csv(path, sep="\t", index=False)
    return path


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        import requests

        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


class FakeSession:
    """Stand-in for ``requests.Session`` serving fixed payloads by URL."""

    def __init__(self, payloads=None, error=None):
        self.payloads = payloads or {}
        self.error = error
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        if self.error is not None:
            raise self.error
        if url not in self.payloads:
            return FakeResponse(b"", status_code=404)
        return FakeResponse(self.payloads[url])

    def close(self):
        pass


@pytest.fixture
def fake_session_factory():
    return FakeSession
