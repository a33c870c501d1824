"""
SIG (Sales Insight Generator) package.

This package provides tools to:
- Parse and validate sales rows (dates, quantities, prices)
- Aggregate sales by month, week, product and category
- Generate rule-based findings, actions and data warnings
- Expose a simple CLI report
"""

from .insights import InsightResult, generate_insights

__all__ = [
    "InsightResult",
    "generate_insights",
    "config",
    "dates",
    "fields",
    "analytics",
    "insights",
    "messages",
    "data_loader",
    "validation",
    "preprocessing",
    "cli",
]
