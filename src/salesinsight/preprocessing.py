"""Row preparation for Sales Insight Generator.

Responsibilities:
- Apply column mappings from the config
- Turn a DataFrame into the list-of-rows shape the insight engine reads
- Apply dashboard-style filters (category + product search)
- Provide a convenience entry point to run the full data pipeline
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from .config import Config, load_config
from .dates import date_to_text
from . import data_loader, validation

ALL_CATEGORIES = "All"


def records_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a DataFrame to row dicts, with missing cells as None.

    A ``date`` column holding parsed dates is rendered back to text so the
    rows read the same as a CSV import.
    """
    cleaned = df.astype(object).where(pd.notna(df), None)
    if "date" in cleaned.columns:
        cleaned["date"] = cleaned["date"].map(date_to_text)
    return cleaned.to_dict("records")


def frame_to_rows(df: pd.DataFrame, config: Config) -> List[Dict[str, Any]]:
    """Rename physical columns to the internal schema and return rows.

    Internal names: date, product, category, units, price, revenue, id.
    Columns that are not mapped are kept as-is.
    """
    col_cfg = config.columns

    internal_fields = ["date", "product", "category", "units", "price", "revenue", "id"]
    rename_map: Dict[str, str] = {}
    for field in internal_fields:
        raw_name = getattr(col_cfg, field, None)
        if raw_name and raw_name in df.columns and raw_name != field:
            rename_map[raw_name] = field

    return records_from_frame(df.rename(columns=rename_map))


def filter_rows(
    rows: Iterable[Mapping[str, Any]],
    category: Optional[str] = ALL_CATEGORIES,
    search: Optional[str] = "",
) -> List[Mapping[str, Any]]:
    """Keep rows matching a category selection and a product search.

    ``category`` must match exactly unless it is "All" (or empty); ``search``
    is a case-insensitive substring of the product name.
    """
    needle = (search or "").lower()
    selected = category or ALL_CATEGORIES

    filtered: List[Mapping[str, Any]] = []
    for row in rows:
        if selected != ALL_CATEGORIES and row.get("category") != selected:
            continue
        product = row.get("product")
        if needle not in ("" if product is None else str(product)).lower():
            continue
        filtered.append(row)
    return filtered


def load_sales_rows(
    config_path: str | Path = "config.yaml",
    input_path: str | Path | None = None,
) -> Tuple[List[Dict[str, Any]], Dict[str, Any], Config]:
    """Convenience entry point for the data pipeline.

    Steps:
    - Load configuration
    - Load raw data (``input_path`` overrides config.data.input_path)
    - Validate columns and count unusable values
    - Convert to rows

    Returns:
        (rows, validation_report, config)
    """
    cfg = load_config(config_path)
    print(f"[SIG] Loaded config from {Path(config_path).resolve()}")

    data_path = Path(input_path) if input_path is not None else cfg.data.input_path
    df_raw = data_loader.load_sales(data_path)
    print(f"[SIG] Loaded raw data with {len(df_raw)} rows from {data_path}")

    validation_report = validation.validate_sales(df_raw, cfg)
    print("[SIG] Validation complete.")

    rows = frame_to_rows(df_raw, cfg)
    return rows, validation_report, cfg
