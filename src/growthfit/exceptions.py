"""Exception types raised by the growthfit workflow."""

from __future__ import annotations

from typing import Any, Tuple


class GrowthFitError(Exception):
    """Base class for growthfit errors."""


class RetrievalError(GrowthFitError):
    """Raised when a source file cannot be fetched (network or IO failure)."""

    def __init__(self, uri: str, reason: str):
        self.uri = uri
        self.reason = reason
        super().__init__(f"Failed to retrieve {uri}: {reason}")


class ParseError(GrowthFitError, ValueError):
    """Raised for malformed delimited input or a compound-field split mismatch."""


class UnfittableGroupError(GrowthFitError):
    """Raised when one regression group has too little data to be fit.

    This is a local failure: ``fit_groups`` records it and moves on.
    """

    def __init__(self, key: Tuple[Any, ...], reason: str, n_obs: int = 0, n_rates: int = 0):
        self.key = key
        self.reason = reason
        self.n_obs = n_obs
        self.n_rates = n_rates
        super().__init__(f"Group {key} cannot be fit: {reason}")
