"""Aggregation, growth and anomaly computation for Sales Insight Generator.

Responsibilities:
- Normalize raw rows into a sales DataFrame (parsed dates, resolved numbers)
- Group revenue/quantity by month, week, product and category
- Compare two period totals (growth)
- Flag unusual period totals (spikes and drops)

All functions are pure: they take rows/DataFrames and return new data
structures without printing or doing I/O. Grouped results keep the order in
which keys first appear in the input.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import InsightsConfig
from .dates import parse_date
from .fields import category_label, get_quantity, get_revenue, product_label
from .preprocessing import records_from_frame

FRAME_COLUMNS = [
    "product",
    "category",
    "month_key",
    "week_key",
    "month",
    "day_of_week",
    "quantity",
    "revenue",
]


# ---------------------------------------------------------------------------
# Row normalization
# ---------------------------------------------------------------------------


def build_sales_frame(rows: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    """Resolve every row into one record of the internal schema.

    Date-derived columns are None for rows whose date does not parse, so
    grouping on them silently leaves those rows out.
    """
    records: List[Dict[str, Any]] = []
    for row in rows:
        parsed = parse_date(row.get("date"))
        records.append(
            {
                "product": product_label(row.get("product")),
                "category": category_label(row.get("category")),
                "month_key": parsed.month_key if parsed else None,
                "week_key": parsed.week_key if parsed else None,
                "month": parsed.month if parsed else None,
                "day_of_week": parsed.day_of_week if parsed else None,
                "quantity": get_quantity(row),
                "revenue": get_revenue(row),
            }
        )
    frame = pd.DataFrame.from_records(records, columns=FRAME_COLUMNS)
    frame["quantity"] = frame["quantity"].astype(float)
    frame["revenue"] = frame["revenue"].astype(float)
    return frame


def _as_frame(data: pd.DataFrame | Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    if isinstance(data, pd.DataFrame):
        if set(FRAME_COLUMNS).issubset(data.columns):
            return data
        return build_sales_frame(records_from_frame(data))
    return build_sales_frame(data)


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


def _sum_by(frame: pd.DataFrame, key: str) -> Dict[Any, Dict[str, float]]:
    """Sum revenue and quantity per key, first-seen order, NA keys dropped."""
    if frame.empty:
        return {}
    grouped = frame.groupby(key, sort=False)[["revenue", "quantity"]].sum()
    return {
        label: {"revenue": float(values["revenue"]), "quantity": float(values["quantity"])}
        for label, values in grouped.iterrows()
    }


def aggregate_by_month(data: pd.DataFrame | Sequence[Mapping[str, Any]]) -> Dict[str, Dict[str, float]]:
    """Revenue and quantity keyed by ``YYYY-MM``."""
    return _sum_by(_as_frame(data), "month_key")


def aggregate_by_week(data: pd.DataFrame | Sequence[Mapping[str, Any]]) -> Dict[str, Dict[str, float]]:
    """Revenue and quantity keyed by the Monday of each week."""
    return _sum_by(_as_frame(data), "week_key")


def group_by_product(data: pd.DataFrame | Sequence[Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Per-product totals; ``category`` is taken from the product's first row."""
    frame = _as_frame(data)
    if frame.empty:
        return {}
    grouped = frame.groupby("product", sort=False).agg(
        revenue=("revenue", "sum"),
        quantity=("quantity", "sum"),
        category=("category", "first"),
    )
    return {
        name: {
            "product": name,
            "revenue": float(values["revenue"]),
            "quantity": float(values["quantity"]),
            "category": values["category"],
        }
        for name, values in grouped.iterrows()
    }


def group_by_category(data: pd.DataFrame | Sequence[Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Per-category totals keyed by normalized category."""
    totals = _sum_by(_as_frame(data), "category")
    return {name: {"category": name, **values} for name, values in totals.items()}


def revenue_by(frame: pd.DataFrame, keys: Sequence[str]) -> Dict[Any, float]:
    """Revenue summed over one or more key columns, first-seen order.

    Rows with a missing value in any key column are left out.
    """
    if frame.empty:
        return {}
    key_list = list(keys)
    series = frame.groupby(key_list if len(key_list) > 1 else key_list[0], sort=False)[
        "revenue"
    ].sum()
    return {label: float(value) for label, value in series.items()}


def periods_per_product(frame: pd.DataFrame, period_col: str) -> Dict[str, int]:
    """Number of distinct periods each product sold in (products without dated rows get 0)."""
    if frame.empty:
        return {}
    counts = frame.groupby("product", sort=False)[period_col].nunique()
    return {name: int(count) for name, count in counts.items()}


# ---------------------------------------------------------------------------
# Growth
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GrowthResult:
    pct: int
    direction: str  # "up", "down" or "flat"
    text: str


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero; 0 when not finite."""
    if not math.isfinite(value):
        return 0
    rounded = math.floor(abs(value) + 0.5)
    return int(rounded if value >= 0 else -rounded)


def compute_growth(current: float, previous: float) -> GrowthResult:
    """Compare two period totals as a signed whole percentage.

    A missing or zero previous value cannot anchor a percentage: any positive
    current value then counts as a full 100% rise.
    """
    if previous is None or not math.isfinite(previous) or previous == 0:
        if current > 0:
            return GrowthResult(pct=100, direction="up", text="up from no prior sales")
        return GrowthResult(pct=0, direction="flat", text="no change")

    pct = round_half_away((current - previous) / previous * 100)
    if pct > 0:
        return GrowthResult(pct=pct, direction="up", text=f"up {pct}%")
    if pct < 0:
        return GrowthResult(pct=pct, direction="down", text=f"down {abs(pct)}%")
    return GrowthResult(pct=0, direction="flat", text="flat")


# ---------------------------------------------------------------------------
# Anomaly detection (population z-score + relative change)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Anomaly:
    period: str
    value: float
    average: float
    type: str  # "spike" or "drop"
    message: str


def _unpack(entry: Any) -> Tuple[Any, Any]:
    if isinstance(entry, Mapping):
        return entry.get("period"), entry.get("value")
    period, value = entry
    return period, value


def _finite(value: Any) -> bool:
    try:
        return value is not None and math.isfinite(value)
    except (TypeError, OverflowError):
        return False


def detect_anomalies(
    period_values: Iterable[Any],
    config: Optional[InsightsConfig] = None,
) -> List[Anomaly]:
    """Flag periods whose value is far from the series mean.

    Approach:
    - Keep finite, non-negative values for the statistics.
    - Compute the mean and the population standard deviation (ddof=0).
    - A value above the mean is a spike when its relative change is at least
      ``anomaly_change_threshold`` or its z-score is at least
      ``anomaly_std_threshold``; drops mirror this below the mean.

    Args:
        period_values: ordered ``(period, value)`` pairs or mappings with
            ``period`` and ``value`` keys.
        config: thresholds; defaults to InsightsConfig().

    Returns:
        Anomalies in input order. Empty when fewer than
        ``anomaly_min_points`` valid values exist.
    """
    cfg = config or InsightsConfig()
    entries = [_unpack(entry) for entry in period_values]

    values = np.array(
        [float(value) if _finite(value) else np.nan for _, value in entries],
        dtype=float,
    )
    valid = values[np.isfinite(values) & (np.nan_to_num(values, nan=-1.0) >= 0)]
    if len(valid) < max(cfg.anomaly_min_points, 1):
        return []

    with np.errstate(over="ignore", invalid="ignore"):
        average = float(valid.mean())
        std = float(valid.std(ddof=0))  # population std

        deviation = values - average
        pct_change = np.abs(deviation / average) if average != 0 else np.zeros_like(values)
        z_scores = deviation / std if std > 0 else np.zeros_like(values)

    anomalies: List[Anomaly] = []
    for (period, _), value, change, z_score in zip(entries, values, pct_change, z_scores):
        if not np.isfinite(value):
            continue
        value = float(value)

        if value > average and (
            change >= cfg.anomaly_change_threshold
            or z_score >= cfg.anomaly_std_threshold
        ):
            anomalies.append(
                Anomaly(period, value, average, "spike", f"Unusual spike in {period}")
            )
        elif value < average and (
            change >= cfg.anomaly_change_threshold
            or z_score <= -cfg.anomaly_std_threshold
        ):
            anomalies.append(
                Anomaly(period, value, average, "drop", f"Unusual drop in {period}")
            )

    return anomalies
