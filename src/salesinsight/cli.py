"""Command-line interface for Sales Insight Generator.

This module provides a convenient entry point for:

- Loading a sales file (CSV/Excel) through the configured column mapping.
- Applying the dashboard-style category / product filters.
- Printing findings, recommended actions and data warnings.

The CLI intentionally stays thin and delegates to the core modules:

- salesinsight.preprocessing.load_sales_rows
- salesinsight.preprocessing.filter_rows
- salesinsight.insights.generate_insights
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from .config import Config
from .insights import InsightResult, generate_insights
from .messages import render
from .preprocessing import filter_rows, load_sales_rows


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for the SIG CLI."""
    parser = argparse.ArgumentParser(
        description="Sales Insight Generator (SIG) CLI",
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.yaml",
        help="Path to config.yaml (default: config.yaml)",
    )
    parser.add_argument(
        "--input",
        help="Sales file to analyse. Defaults to config.data.input_path.",
    )
    parser.add_argument(
        "--category",
        help="Only analyse rows in this category ('All' for every category).",
    )
    parser.add_argument(
        "--search",
        help="Only analyse products whose name contains this text.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON instead of a text report.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser.parse_args(argv)


def format_report(result: InsightResult, min_rows: int) -> str:
    """Render an InsightResult as a plain-text report."""
    lines: List[str] = [render("cli.banner"), render("cli.underline"), ""]

    if result.is_empty():
        lines.append(render("cli.not_enough_data", min_rows=min_rows))
        return "\n".join(lines)

    sections = [
        ("cli.section.findings", result.findings),
        ("cli.section.actions", result.actions),
        ("cli.section.warnings", result.warnings),
    ]
    for heading_key, items in sections:
        if not items:
            continue
        heading = render(heading_key)
        lines.append(heading)
        lines.append("-" * len(heading))
        lines.extend(f"- {item}" for item in items)
        lines.append("")

    return "\n".join(lines).rstrip()


def _save_report(cfg: Config, report_text: str) -> None:
    report_path = Path(cfg.output.report_path)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(report_text, encoding="utf-8")
    print()
    print(render("cli.report_saved_to", path=report_path))


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the SIG CLI."""
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    rows, _validation_report, cfg = load_sales_rows(Path(args.config), input_path=args.input)

    category = args.category if args.category is not None else cfg.filters.category
    search = args.search if args.search is not None else cfg.filters.search
    rows = filter_rows(rows, category=category, search=search)

    result = generate_insights(rows, cfg.insights)

    if args.json:
        report_text = json.dumps(result.to_dict(), indent=2)
    else:
        report_text = format_report(result, cfg.insights.min_rows)

    print()
    print(report_text)

    if cfg.output.save_report:
        _save_report(cfg, report_text)


if __name__ == "__main__":  # pragma: no cover - manual CLI entry
    main()
