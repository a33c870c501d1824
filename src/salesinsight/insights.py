"""Rule-based insight generation for Sales Insight Generator.

This module turns raw sales rows into three lists of sentences:
findings, recommended actions and data-quality warnings.

Design goals:
- Deterministic: the same rows (in the same order) always give the same text.
- Total: malformed rows degrade into warnings or are left out of the
  affected aggregates; nothing is raised for bad data.
- Ordered: rules run in a fixed sequence and the list order is the priority
  order shown to users.

A few rules report only the first qualifying product in row order (volume
mismatch, steady demand, recent spike). They are deliberately
non-exhaustive, so reordering rows can change which product is named.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from .analytics import (
    aggregate_by_month,
    aggregate_by_week,
    build_sales_frame,
    compute_growth,
    detect_anomalies,
    group_by_category,
    group_by_product,
    periods_per_product,
    revenue_by,
    round_half_away,
)
from .config import InsightsConfig
from .dates import parse_date
from .fields import get_price, get_quantity, has_quantity_field
from .messages import render
from .preprocessing import records_from_frame

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InsightResult:
    """Findings, actions and warnings in priority order."""

    findings: List[str] = field(default_factory=list)
    actions: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.findings or self.actions or self.warnings)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "findings": list(self.findings),
            "actions": list(self.actions),
            "warnings": list(self.warnings),
        }


@dataclass
class _Draft:
    findings: List[str] = field(default_factory=list)
    actions: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def finding(self, key: str, **kwargs: Any) -> None:
        self.findings.append(render(f"insights.findings.{key}", **kwargs))

    def action(self, key: str, **kwargs: Any) -> None:
        self.actions.append(render(f"insights.actions.{key}", **kwargs))

    def warning(self, key: str, **kwargs: Any) -> None:
        self.warnings.append(render(f"insights.warnings.{key}", **kwargs))


@dataclass
class _Dataset:
    """Aggregates shared by several rules, built once per call."""

    rows: List[Mapping[str, Any]]
    frame: pd.DataFrame
    config: InsightsConfig
    total_revenue: float
    total_quantity: float
    by_month: Dict[str, Dict[str, float]]
    month_keys: List[str]
    week_keys: List[str]
    products: List[Dict[str, Any]]
    by_revenue: List[Dict[str, Any]]

    @property
    def use_weekly(self) -> bool:
        return len(self.month_keys) < 2

    @property
    def period_col(self) -> str:
        return "week_key" if self.use_weekly else "month_key"

    @property
    def period_count(self) -> int:
        return len(self.week_keys) if self.use_weekly else len(self.month_keys)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _fmt_currency(value: float) -> str:
    """Format a value as whole dollars with thousands separators."""
    return f"${round_half_away(value):,}"


def _month_name(month_key: str) -> str:
    return MONTH_NAMES[int(month_key[5:7]) - 1]


def _dedupe(items: Sequence[str], limit: Optional[int] = None) -> List[str]:
    unique = list(dict.fromkeys(items))
    return unique if limit is None else unique[:limit]


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def _check_data_quality(data: _Dataset, out: _Draft) -> None:
    """Count bad dates, non-positive quantities, negative prices and duplicates."""
    missing_dates = 0
    invalid_quantity = 0
    negative_price = 0
    duplicates = 0
    seen = set()

    for row in data.rows:
        if parse_date(row.get("date")) is None:
            missing_dates += 1
        quantity = get_quantity(row)
        if quantity <= 0 and has_quantity_field(row):
            invalid_quantity += 1
        price = get_price(row)
        if math.isfinite(price) and price < 0:
            negative_price += 1

        key = (
            str(row.get("date")),
            str(row.get("product")),
            str(row.get("category")),
            quantity,
            price if math.isfinite(price) else None,
        )
        if key in seen:
            duplicates += 1
        seen.add(key)

    if missing_dates:
        out.warning("invalid_dates", count=missing_dates)
    if invalid_quantity:
        out.warning("invalid_quantity", count=invalid_quantity)
    if negative_price:
        out.warning("negative_price", count=negative_price)
    if duplicates:
        out.warning("duplicates", count=duplicates)


def _check_trend(data: _Dataset, out: _Draft) -> None:
    """Compare the two most recent months (or weeks when no month exists)."""
    if len(data.month_keys) >= 2:
        prev_key, last_key = data.month_keys[-2], data.month_keys[-1]
        last_rev = data.by_month[last_key]["revenue"]
        prev_rev = data.by_month[prev_key]["revenue"]
        growth = compute_growth(last_rev, prev_rev)
        out.finding(
            "trend_month",
            growth=growth.text,
            current=_month_name(last_key),
            previous=_month_name(prev_key),
            current_revenue=_fmt_currency(last_rev),
            previous_revenue=_fmt_currency(prev_rev),
        )
        if growth.direction in {"up", "down"}:
            out.action(f"trend_month_{growth.direction}")
        return

    # Weekly comparison only stands in when no month key exists at all.
    if data.month_keys:
        return
    by_week = aggregate_by_week(data.frame)
    week_keys = sorted(by_week)
    if len(week_keys) < 2:
        return
    last_rev = by_week[week_keys[-1]]["revenue"]
    prev_rev = by_week[week_keys[-2]]["revenue"]
    growth = compute_growth(last_rev, prev_rev)
    out.finding(
        "trend_week",
        growth=growth.text,
        current_revenue=_fmt_currency(last_rev),
        previous_revenue=_fmt_currency(prev_rev),
    )
    if growth.direction in {"up", "down"}:
        out.action(f"trend_week_{growth.direction}")


def _check_top_products(data: _Dataset, out: _Draft) -> None:
    top_n = data.config.top_n
    top_revenue = data.by_revenue[:top_n]
    if top_revenue:
        out.finding(
            "top_revenue",
            n=top_n,
            names=", ".join(p["product"] for p in top_revenue),
        )
        out.action("restock_top", product=top_revenue[0]["product"])

    top_units = sorted(data.products, key=lambda p: p["quantity"], reverse=True)[:top_n]
    if top_units and data.total_revenue > 0:
        out.finding(
            "top_units",
            n=top_n,
            names=", ".join(p["product"] for p in top_units),
        )


def _check_volume_mismatch(data: _Dataset, out: _Draft) -> None:
    """First product with a large unit share but a small revenue share."""
    cfg = data.config
    for product in data.products:
        revenue_share = (
            product["revenue"] / data.total_revenue * 100 if data.total_revenue > 0 else 0.0
        )
        unit_share = (
            product["quantity"] / data.total_quantity * 100 if data.total_quantity > 0 else 0.0
        )
        if (
            unit_share >= cfg.mismatch_unit_share_pct
            and revenue_share < cfg.mismatch_revenue_share_pct
            and product["revenue"] > 0
        ):
            out.finding(
                "volume_mismatch",
                product=product["product"],
                unit_share=round_half_away(unit_share),
                revenue_share=round_half_away(revenue_share),
            )
            out.action("review_price", product=product["product"])
            return


def _check_categories(data: _Dataset, out: _Draft) -> None:
    """Top category, then month-over-month growth and decline per category."""
    categories = group_by_category(data.frame)
    if categories:
        top = max(categories.values(), key=lambda c: c["revenue"])
        out.finding(
            "top_category",
            category=top["category"],
            revenue=_fmt_currency(top["revenue"]),
        )
        out.action("focus_category", category=top["category"])

    if len(data.month_keys) < 2:
        return

    prev_key, last_key = data.month_keys[-2], data.month_keys[-1]
    category_month = revenue_by(data.frame, ["category", "month_key"])

    fastest: Optional[str] = None
    fastest_growth = -math.inf
    declining: Optional[str] = None
    declining_growth = math.inf

    # Strict comparisons keep the first-seen category on ties.
    for name in categories:
        last = category_month.get((name, last_key), 0.0)
        prev = category_month.get((name, prev_key), 0.0)
        if prev <= 0:
            continue
        growth = (last - prev) / prev * 100
        if growth > fastest_growth and last > prev:
            fastest_growth = growth
            fastest = name
        if growth < declining_growth and last < prev:
            declining_growth = growth
            declining = name

    if fastest is not None:
        out.finding("fastest_category", category=fastest, pct=round_half_away(fastest_growth))
        out.action("promote_category", category=fastest)
    if declining is not None and declining_growth < -data.config.decline_alert_pct:
        out.finding(
            "declining_category",
            category=declining,
            pct=round_half_away(abs(declining_growth)),
        )
        out.action("check_category", category=declining)


def _check_concentration(data: _Dataset, out: _Draft) -> None:
    if data.total_revenue <= 0 or not data.by_revenue:
        return
    top_n = data.config.top_n
    top_one = data.by_revenue[0]["revenue"]
    top_many = sum(p["revenue"] for p in data.by_revenue[:top_n])
    pct_one = round_half_away(top_one / data.total_revenue * 100)
    pct_many = round_half_away(top_many / data.total_revenue * 100)

    out.finding("concentration", top_one=pct_one, top_share=pct_many, n=top_n)
    if pct_many >= data.config.concentration_warn_pct:
        out.warning("concentration", top_share=pct_many, n=top_n)
        out.action("diversify")


def _check_stock_signals(data: _Dataset, out: _Draft) -> None:
    """Steady demand and recent spikes, each naming the first qualifying product."""
    period_count = data.period_count
    if period_count < 2:
        return

    dated = data.frame.dropna(subset=[data.period_col])
    product_periods = periods_per_product(dated, data.period_col)

    required = min(data.config.steady_min_periods, period_count)
    for name, count in product_periods.items():
        if count >= required:
            out.finding("steady_demand", product=name)
            out.action("reorder", product=name)
            break

    last_period = data.week_keys[-1] if data.use_weekly else data.month_keys[-1]
    product_period_revenue = revenue_by(data.frame, ["product", data.period_col])
    for product in data.products:
        name = product["product"]
        last_revenue = product_period_revenue.get((name, last_period), 0.0)
        periods = product_periods.get(name, 0) if data.use_weekly else len(data.month_keys)
        average = product["revenue"] / periods if periods > 0 else 0.0
        if average > 0 and last_revenue >= average * data.config.spike_multiplier:
            out.finding("recent_spike", product=name)
            out.action("restock_spike", product=name)
            break


def _check_seasonality(data: _Dataset, out: _Draft) -> None:
    """Best weekday and best calendar month, across all dated rows."""
    min_buckets = data.config.seasonality_min_buckets

    by_day = revenue_by(data.frame, ["day_of_week"])
    if len(by_day) >= min_buckets:
        best_day, _ = max(by_day.items(), key=lambda item: item[1])
        day_name = DAY_NAMES[int(best_day)]
        out.finding("best_day", day=day_name)
        out.action("schedule_day", day=day_name)

    by_calendar_month = revenue_by(data.frame, ["month"])
    if len(by_calendar_month) >= min_buckets:
        best_month, _ = max(by_calendar_month.items(), key=lambda item: item[1])
        out.finding("best_month", month=MONTH_NAMES[int(best_month) - 1])


def _check_period_anomalies(data: _Dataset, out: _Draft) -> None:
    if len(data.month_keys) >= 2:
        period_values = [
            (_month_name(key), data.by_month[key]["revenue"]) for key in data.month_keys
        ]
    else:
        by_week = aggregate_by_week(data.frame)
        period_values = [
            (f"Week {key}", by_week[key]["revenue"]) for key in sorted(by_week)
        ]

    anomalies = detect_anomalies(period_values, data.config)
    logger.debug("SIG insights: %d period anomalies", len(anomalies))
    for anomaly in anomalies:
        if anomaly.type == "spike":
            out.finding(
                "period_spike",
                period=anomaly.period,
                value=_fmt_currency(anomaly.value),
                average=_fmt_currency(anomaly.average),
            )
        else:
            out.warning("period_drop", period=anomaly.period)


_RULES = (
    _check_data_quality,
    _check_trend,
    _check_top_products,
    _check_volume_mismatch,
    _check_categories,
    _check_concentration,
    _check_stock_signals,
    _check_seasonality,
    _check_period_anomalies,
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _build_dataset(rows: List[Mapping[str, Any]], config: InsightsConfig) -> _Dataset:
    frame = build_sales_frame(rows)
    by_month = aggregate_by_month(frame)
    products = list(group_by_product(frame).values())
    week_keys = sorted(frame["week_key"].dropna().unique()) if not frame.empty else []
    return _Dataset(
        rows=rows,
        frame=frame,
        config=config,
        total_revenue=float(frame["revenue"].sum()),
        total_quantity=float(frame["quantity"].sum()),
        by_month=by_month,
        month_keys=sorted(by_month),
        week_keys=[str(key) for key in week_keys],
        products=products,
        # Stable sort: equal revenue keeps first-seen order.
        by_revenue=sorted(products, key=lambda p: p["revenue"], reverse=True),
    )


def generate_insights(
    rows: Sequence[Mapping[str, Any]] | pd.DataFrame | None,
    config: Optional[InsightsConfig] = None,
) -> InsightResult:
    """Generate findings, actions and warnings from sales rows.

    Args:
        rows: Sales rows with ``date``, ``product``, ``category``,
            ``units`` or ``quantity``, ``price`` and optional ``revenue``.
            A DataFrame with those columns is accepted too.
        config: Rule thresholds; defaults to InsightsConfig().

    Returns:
        InsightResult. All lists are empty when there are fewer than
        ``config.min_rows`` rows.
    """
    cfg = config or InsightsConfig()

    if rows is None:
        return InsightResult()
    if isinstance(rows, pd.DataFrame):
        rows = records_from_frame(rows)
    row_list = [row if isinstance(row, Mapping) else {} for row in rows]

    if len(row_list) < cfg.min_rows:
        logger.debug(
            "SIG insights: %d row(s) is below the minimum of %d", len(row_list), cfg.min_rows
        )
        return InsightResult()

    data = _build_dataset(row_list, cfg)
    logger.debug(
        "SIG insights: %d rows, %d month(s), %d week(s), granularity=%s",
        len(row_list),
        len(data.month_keys),
        len(data.week_keys),
        "week" if data.use_weekly else "month",
    )

    draft = _Draft()
    for rule in _RULES:
        rule(data, draft)

    return InsightResult(
        findings=_dedupe(draft.findings, cfg.max_findings),
        actions=_dedupe(draft.actions, cfg.max_actions),
        warnings=_dedupe(draft.warnings),
    )
