"""Field accessors for semi-trusted sales rows.

Rows come from manual entry or CSV import and may name the quantity field
``units`` or ``quantity``, carry numbers as strings, or omit values. The
accessors here resolve those variants with a fixed precedence and always
return finite numbers.
"""

from __future__ import annotations

import math
import numbers
from typing import Any, Mapping

UNKNOWN_PRODUCT = "Unknown"
UNCATEGORIZED = "Uncategorized"


def to_number(value: Any) -> float:
    """Coerce a loosely typed value to float.

    Missing values (None), unparsable text and numbers outside the float
    range become NaN, the empty string becomes 0.0, booleans count as 1/0.
    """
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, numbers.Real):
        try:
            return float(value)
        except OverflowError:
            return math.nan
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except (ValueError, OverflowError):
            return math.nan
    return math.nan


def is_finite_number(value: Any) -> bool:
    """True for real (non-bool) numbers that are neither NaN nor infinite."""
    if not isinstance(value, numbers.Real) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def has_quantity_field(row: Mapping[str, Any]) -> bool:
    return "units" in row or "quantity" in row


def get_quantity(row: Mapping[str, Any]) -> float:
    """Units sold: ``units`` first, then ``quantity``; 0 when not finite."""
    raw = row.get("units")
    if raw is None:
        raw = row.get("quantity")
    qty = to_number(raw)
    return qty if math.isfinite(qty) else 0.0


def get_price(row: Mapping[str, Any]) -> float:
    """Unit price as a float, NaN when missing or unparsable."""
    return to_number(row.get("price"))


def get_revenue(row: Mapping[str, Any]) -> float:
    """Row revenue. An explicit finite ``revenue`` always wins."""
    explicit = row.get("revenue")
    if is_finite_number(explicit):
        return float(explicit)
    price = get_price(row)
    if not math.isfinite(price):
        return 0.0
    return get_quantity(row) * price


def _as_text(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()


def normalize_category(value: Any) -> str:
    """Trim and title-case the first letter; empty string when blank."""
    text = _as_text(value)
    if not text:
        return ""
    return text[0].upper() + text[1:].lower()


def category_label(value: Any) -> str:
    return normalize_category(value) or UNCATEGORIZED


def product_label(value: Any) -> str:
    return _as_text(value) or UNKNOWN_PRODUCT
