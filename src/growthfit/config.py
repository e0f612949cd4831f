"""Configuration for the growth-rate regression workflow."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Optional, List, Dict, Any

import yaml

logger = logging.getLogger(__name__)

# Brauer et al. (2008) supplementary dataset 1, tab-delimited
BRAUER_URL = "http://varianceexplained.org/files/Brauer2008_DataSet1.tds"

NUTRIENT_NAMES: Dict[str, str] = {
    "G": "Glucose",
    "L": "Leucine",
    "P": "Phosphate",
    "S": "Sulfate",
    "N": "Ammonia",
    "U": "Uracil",
}

COMPOUND_FIELDS: List[str] = [
    "name",
    "biological_process",
    "molecular_function",
    "systematic_name",
    "number",
]

DROP_COLUMNS: List[str] = ["number", "GID", "YORF", "GWEIGHT"]

# Descriptive fields copied onto every term record
CARRY_COLUMNS: List[str] = ["name"]

PI0_METHODS = ["smoother", "bootstrap"]


@dataclass
class AnalysisConfig:
    """Configuration for one end-to-end analysis run.

    Attributes:
        data_uri: URI (http/https or local path) of the wide expression table
        delimiter: Field delimiter; inferred from the file suffix when None
        compound_col: Column holding the ``||``-separated gene description
        compound_fields: Names of the fields the compound column splits into
        separator: Literal separator inside the compound column
        drop_cols: Columns removed after splitting
        first_measure: First measurement column of the contiguous span
        last_measure: Last measurement column of the contiguous span
        code_width: Number of leading characters of a sample label that form
            the nutrient code; the remainder is the growth rate
        nutrient_names: Nutrient code -> human-readable name
        entity_col: Column identifying a gene
        carry_cols: Compound fields copied onto each group's term records
        condition_col: Column identifying a nutrient condition
        q_term: Term category the q-values are computed over
        q_threshold: Keep slope terms with q-value below this (default: 0.01)
        pi0_method: pi0 estimator, "smoother" or "bootstrap"
        top_k: Number of intercept records kept per nutrient (default: 2)
        timeout: Timeout in seconds for remote reads
    """

    data_uri: str = BRAUER_URL
    delimiter: Optional[str] = None
    compound_col: str = "NAME"
    compound_fields: List[str] = field(default_factory=lambda: list(COMPOUND_FIELDS))
    separator: str = "||"
    drop_cols: List[str] = field(default_factory=lambda: list(DROP_COLUMNS))
    first_measure: str = "G0.05"
    last_measure: str = "U0.3"
    code_width: int = 1
    nutrient_names: Dict[str, str] = field(default_factory=lambda: dict(NUTRIENT_NAMES))
    entity_col: str = "systematic_name"
    carry_cols: List[str] = field(default_factory=lambda: list(CARRY_COLUMNS))
    condition_col: str = "nutrient"
    q_term: str = "slope"
    q_threshold: float = 0.01
    pi0_method: str = "smoother"
    top_k: int = 2
    timeout: float = 60.0

    def __post_init__(self):
        """Validate configuration."""
        self.data_uri = str(self.data_uri)
        self.compound_fields = list(self.compound_fields)
        self.drop_cols = list(self.drop_cols)
        self.carry_cols = list(self.carry_cols)
        self.nutrient_names = dict(self.nutrient_names)

        if self.delimiter is not None and len(self.delimiter) != 1:
            raise ValueError(f"delimiter must be a single character, got {self.delimiter!r}")

        if not self.separator:
            raise ValueError("separator must be a non-empty string")

        if len(self.compound_fields) < 2:
            raise ValueError(
                f"compound_fields must name at least 2 fields, got {self.compound_fields}"
            )

        if len(set(self.compound_fields)) != len(self.compound_fields):
            raise ValueError(f"compound_fields must be unique, got {self.compound_fields}")

        if self.entity_col not in self.compound_fields:
            raise ValueError(
                f"entity_col '{self.entity_col}' must be one of compound_fields {self.compound_fields}"
            )

        bad_carry = [
            c
            for c in self.carry_cols
            if c not in self.compound_fields or c == self.entity_col or c in self.drop_cols
        ]
        if bad_carry:
            raise ValueError(
                f"carry_cols must be kept compound_fields other than entity_col, got {bad_carry}"
            )

        if self.code_width < 1:
            raise ValueError(f"code_width must be >= 1, got {self.code_width}")

        if self.q_threshold <= 0 or self.q_threshold >= 1:
            raise ValueError(f"q_threshold must be in (0, 1), got {self.q_threshold}")

        if self.q_term not in ("intercept", "slope"):
            raise ValueError(f"q_term must be 'intercept' or 'slope', got {self.q_term}")

        if self.pi0_method not in PI0_METHODS:
            raise ValueError(f"pi0_method must be one of {PI0_METHODS}, got {self.pi0_method}")

        if self.top_k < 1:
            raise ValueError(f"top_k must be >= 1, got {self.top_k}")

        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a plain dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AnalysisConfig:
        """Create config from a dict, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {unknown}")
        return cls(**data)


def load_config(path: Path, **overrides: Any) -> AnalysisConfig:
    """Load an ``AnalysisConfig`` from a YAML file.

    Keyword overrides with a value of None are ignored, so CLI options that
    were not given leave the file's values in place.
    """
    with open(path, "r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(payload).__name__}")

    payload.update({k: v for k, v in overrides.items() if v is not None})
    logger.info(f"Loaded config from {path}")
    return AnalysisConfig.from_dict(payload)


def save_config(config: AnalysisConfig, path: Path) -> None:
    """Write an ``AnalysisConfig`` to a YAML file, keeping field order."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(config.to_dict(), handle, sort_keys=False, default_flow_style=False, width=120)
    logger.info(f"Wrote config to {path}")
