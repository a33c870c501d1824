"""Data validation utilities for Sales Insight Generator.

Responsibilities:
- Validate that required columns are present in the raw data
- Count values the insight engine will not be able to use
- Produce a validation report
"""

from __future__ import annotations

import math
from typing import Any, Dict

import pandas as pd

from .config import Config
from .dates import date_to_text, parse_date
from .fields import to_number


def _count_invalid_dates(series: pd.Series) -> int:
    """Count values that are present but not a valid sales date."""
    present = series.dropna()
    return int(sum(parse_date(date_to_text(value)) is None for value in present))


def _count_invalid_numbers(series: pd.Series) -> int:
    """Count values that are present but cannot be read as a number."""
    present = series.dropna()
    return int(sum(not math.isfinite(to_number(value)) for value in present))


def validate_sales(df: pd.DataFrame, config: Config) -> Dict[str, Any]:
    """Validate sales data against the configured column mapping.

    Args:
        df: Raw DataFrame as loaded from disk (original column names).
        config: Loaded configuration.

    Raises:
        ValueError: If required columns are missing.

    Returns:
        dict: Validation report with basic info and issue counts.
    """
    report: Dict[str, Any] = {}
    report["n_rows"] = int(len(df))
    report["n_columns"] = int(len(df.columns))

    col_cfg = config.columns

    required_fields = ["date", "product", "units", "price"]
    missing_required_columns: list[str] = []

    for field in required_fields:
        raw_name = getattr(col_cfg, field)
        if raw_name not in df.columns:
            missing_required_columns.append(raw_name)

    report["missing_required_columns"] = missing_required_columns

    if missing_required_columns:
        raise ValueError(
            "The following required columns are missing from the input data: "
            + ", ".join(missing_required_columns)
        )

    report["invalid_dates"] = _count_invalid_dates(df[col_cfg.date])
    report["invalid_units"] = _count_invalid_numbers(df[col_cfg.units])
    report["invalid_prices"] = _count_invalid_numbers(df[col_cfg.price])

    return report
