"""Configuration loading and validation for Sales Insight Generator.

This module is responsible for:
- Loading YAML configuration from config.yaml (or a custom path)
- Validating required column mappings
- Exposing a Config object used by other modules

The `insights` section holds every threshold used by the rule engine, so
tests and deployments can tune them without touching code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml


# ---------------------------------------------------------------------------
# Dataclasses representing each config section
# ---------------------------------------------------------------------------


@dataclass
class DataConfig:
    """Configuration for the raw input data."""

    input_path: Path = Path("data/raw/sample_sales.csv")


@dataclass
class ColumnsConfig:
    """Logical -> physical column name mappings.

    Required fields:
    - date
    - product
    - units
    - price

    Optional fields:
    - category
    - revenue
    - id
    """

    date: str = "date"
    product: str = "product"
    units: str = "units"
    price: str = "price"
    category: str | None = "category"
    revenue: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class InsightsConfig:
    """Thresholds for the rule-based insight engine."""

    # Below this many rows no insight is produced at all.
    min_rows: int = 3

    # Warn when the top 3 products hold at least this share of revenue.
    concentration_warn_pct: float = 60.0

    # Anomaly rules: relative change vs the mean, or z-score, and the
    # minimum number of valid points before statistics are computed.
    anomaly_change_threshold: float = 0.5
    anomaly_std_threshold: float = 2.0
    anomaly_min_points: int = 2

    max_findings: int = 6
    max_actions: int = 5

    # High volume / low revenue products.
    mismatch_unit_share_pct: float = 15.0
    mismatch_revenue_share_pct: float = 5.0

    # Category decline is reported only beyond this many percentage points.
    decline_alert_pct: float = 10.0

    # Last-period revenue vs per-period average for a "recent spike".
    spike_multiplier: float = 1.5

    steady_min_periods: int = 3
    seasonality_min_buckets: int = 3
    top_n: int = 3


@dataclass
class FiltersConfig:
    """Default dashboard-style filters applied before analysis."""

    category: str = "All"
    search: str = ""


@dataclass
class OutputConfig:
    """Configuration for what gets written to disk."""

    save_report: bool = False
    report_path: Path = Path("reports/sales_insights.txt")


@dataclass
class Config:
    """Top-level configuration object passed around the application."""

    # Raw config dictionary (useful for debugging / advanced access).
    raw: Dict[str, Any] = field(default_factory=dict)

    data: DataConfig = field(default_factory=DataConfig)
    columns: ColumnsConfig = field(default_factory=ColumnsConfig)
    insights: InsightsConfig = field(default_factory=InsightsConfig)
    filters: FiltersConfig = field(default_factory=FiltersConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML file into a dictionary.

    Returns an empty dict if the file is empty.
    """
    with path.open("r", encoding="utf-8") as f:
        content = yaml.safe_load(f) or {}
    if not isinstance(content, dict):
        raise ValueError(f"Configuration file {path} must contain a YAML mapping at the top level.")
    return content


def _section(raw_cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = raw_cfg.get(name, {}) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Configuration section '{name}' must be a mapping.")
    return section


def build_insights_config(insights_raw: Dict[str, Any]) -> InsightsConfig:
    """Build an InsightsConfig from a (possibly partial) mapping."""
    defaults = InsightsConfig()
    return InsightsConfig(
        min_rows=int(insights_raw.get("min_rows", defaults.min_rows)),
        concentration_warn_pct=float(
            insights_raw.get("concentration_warn_pct", defaults.concentration_warn_pct)
        ),
        anomaly_change_threshold=float(
            insights_raw.get("anomaly_change_threshold", defaults.anomaly_change_threshold)
        ),
        anomaly_std_threshold=float(
            insights_raw.get("anomaly_std_threshold", defaults.anomaly_std_threshold)
        ),
        anomaly_min_points=int(
            insights_raw.get("anomaly_min_points", defaults.anomaly_min_points)
        ),
        max_findings=int(insights_raw.get("max_findings", defaults.max_findings)),
        max_actions=int(insights_raw.get("max_actions", defaults.max_actions)),
        mismatch_unit_share_pct=float(
            insights_raw.get("mismatch_unit_share_pct", defaults.mismatch_unit_share_pct)
        ),
        mismatch_revenue_share_pct=float(
            insights_raw.get(
                "mismatch_revenue_share_pct",
                defaults.mismatch_revenue_share_pct,
            )
        ),
        decline_alert_pct=float(
            insights_raw.get("decline_alert_pct", defaults.decline_alert_pct)
        ),
        spike_multiplier=float(
            insights_raw.get("spike_multiplier", defaults.spike_multiplier)
        ),
        steady_min_periods=int(
            insights_raw.get("steady_min_periods", defaults.steady_min_periods)
        ),
        seasonality_min_buckets=int(
            insights_raw.get("seasonality_min_buckets", defaults.seasonality_min_buckets)
        ),
        top_n=int(insights_raw.get("top_n", defaults.top_n)),
    )


def load_config(path: str | Path = "config.yaml") -> Config:
    """Load configuration from a YAML file and return a Config object.

    This function is the single entry point for configuration loading.
    Other modules should import and use it instead of talking to YAML directly.
    """
    config_path = Path(path)
    raw_cfg = _load_yaml(config_path)

    # --- Data section (optional with defaults) ---
    data_raw = _section(raw_cfg, "data")
    data_defaults = DataConfig()
    data_cfg = DataConfig(
        input_path=Path(data_raw.get("input_path", data_defaults.input_path)),
    )

    # --- Columns section (optional; required keys when present) ---
    columns_raw = _section(raw_cfg, "columns")
    if columns_raw:
        try:
            date_col = columns_raw["date"]
            product_col = columns_raw["product"]
            units_col = columns_raw["units"]
            price_col = columns_raw["price"]
        except KeyError as exc:
            raise KeyError(
                "Missing required column mapping in config.yaml under 'columns'. "
                "Expected at least 'date', 'product', 'units' and 'price'."
            ) from exc

        columns_cfg = ColumnsConfig(
            date=str(date_col),
            product=str(product_col),
            units=str(units_col),
            price=str(price_col),
            category=columns_raw.get("category"),
            revenue=columns_raw.get("revenue"),
            id=columns_raw.get("id"),
        )
    else:
        columns_cfg = ColumnsConfig()

    # --- Insights section (optional with defaults) ---
    insights_cfg = build_insights_config(_section(raw_cfg, "insights"))

    # --- Filters section (optional with defaults) ---
    filters_raw = _section(raw_cfg, "filters")
    filters_defaults = FiltersConfig()
    filters_cfg = FiltersConfig(
        category=str(filters_raw.get("category") or filters_defaults.category),
        search=str(filters_raw.get("search") or filters_defaults.search),
    )

    # --- Output section (optional with defaults) ---
    output_raw = _section(raw_cfg, "output")
    output_defaults = OutputConfig()
    output_cfg = OutputConfig(
        save_report=bool(output_raw.get("save_report", output_defaults.save_report)),
        report_path=Path(output_raw.get("report_path", output_defaults.report_path)),
    )

    return Config(
        raw=raw_cfg,
        data=data_cfg,
        columns=columns_cfg,
        insights=insights_cfg,
        filters=filters_cfg,
        output=output_cfg,
    )
