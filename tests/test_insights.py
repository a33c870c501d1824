import pandas as pd

from salesinsight.config import InsightsConfig
from salesinsight.insights import InsightResult, generate_insights

from conftest import make_row


def _with_revenue(rows):
    return [dict(row, id=i + 1, revenue=row["units"] * row["price"]) for i, row in enumerate(rows)]


def test_returns_empty_when_insufficient_data():
    assert generate_insights([]).to_dict() == {"findings": [], "actions": [], "warnings": []}
    assert generate_insights(None).is_empty()

    two_rows = [
        make_row("01-01-2025", "A", "X", 1, 10),
        make_row("02-01-2025", "B", "Y", 1, 20),
    ]
    assert generate_insights(two_rows) == InsightResult()


def test_min_rows_is_configurable():
    rows = [make_row("01-01-2025", "A", "X", 1, 10), make_row("02-01-2025", "B", "Y", 1, 20)]
    out = generate_insights(rows, InsightsConfig(min_rows=2))
    assert out.findings


def test_trend_down_between_last_two_months():
    rows = _with_revenue(
        [
            make_row("01-01-2025", "A", "X", 10, 10),
            make_row("15-01-2025", "B", "X", 10, 10),
            make_row("01-02-2025", "A", "X", 5, 10),
            make_row("15-02-2025", "B", "X", 5, 10),
        ]
    )
    out = generate_insights(rows)

    assert out.findings[0] == "Revenue is down 50% in February vs January ($100 vs $200)."
    assert out.actions[0] == "Focus on promoting your top 3 products or run a small promotion."


def test_top_product_by_revenue():
    rows = _with_revenue(
        [
            make_row("01-01-2025", "Low", "X", 1, 1),
            make_row("02-01-2025", "High", "X", 100, 50),
            make_row("03-01-2025", "Mid", "X", 10, 10),
        ]
    )
    out = generate_insights(rows)

    assert "Top 3 products by revenue: High, Mid, Low." in out.findings
    assert "Restock and promote: High." in out.actions


def test_concentration_warning_when_top_three_dominate():
    rows = _with_revenue(
        [
            make_row("01-01-2025", "A", "X", 100, 100),
            make_row("02-01-2025", "B", "X", 50, 100),
            make_row("03-01-2025", "C", "X", 25, 100),
            make_row("04-01-2025", "D", "X", 1, 10),
            make_row("05-01-2025", "E", "X", 1, 10),
        ]
    )
    out = generate_insights(rows)

    assert "Over 100% of revenue depends on 3 products. Consider diversifying to reduce risk." in out.warnings
    assert "57% of revenue comes from your top product; 100% from the top 3." in out.findings


def test_concentration_threshold_is_inclusive_and_configurable():
    rows = [make_row(f"0{d}-01-2025", name, "X", 1, 10) for d, name in enumerate("ABCDE", start=1)]
    out = generate_insights(rows)

    assert "20% of revenue comes from your top product; 60% from the top 3." in out.findings
    assert any("diversifying" in w for w in out.warnings)

    relaxed = generate_insights(rows, InsightsConfig(concentration_warn_pct=61))
    assert not any("diversifying" in w for w in relaxed.warnings)


def test_missing_date_warning():
    rows = _with_revenue(
        [
            make_row("01-01-2025", "A", "X", 1, 10),
            make_row("", "B", "X", 1, 10),
            make_row("03-01-2025", "C", "X", 1, 10),
        ]
    )
    out = generate_insights(rows)

    assert out.warnings[0] == "1 row(s) have missing or invalid dates. Check your data."


def test_data_quality_warnings_in_order():
    rows = [
        make_row("01-01-2025", "A", "X", 0, 10),
        make_row("31-02-2025", "B", "X", 2, -5),
        make_row("02-01-2025", "C", "X", 1, 10),
        make_row("02-01-2025", "C", "X", 1, 10),
        {"date": "03-01-2025", "product": "D", "category": "X", "quantity": "abc", "price": 1},
    ]
    out = generate_insights(rows)

    assert out.warnings[:4] == [
        "1 row(s) have missing or invalid dates. Check your data.",
        "2 row(s) have zero or invalid quantity.",
        "1 row(s) have negative price.",
        "1 possible duplicate row(s). Review for data entry errors.",
    ]


def test_missing_quantity_field_is_not_a_quantity_warning():
    rows = [
        {"date": "01-01-2025", "product": "A", "category": "X", "price": 10, "revenue": 10},
        {"date": "02-01-2025", "product": "B", "category": "X", "price": 10, "revenue": 20},
        {"date": "03-01-2025", "product": "C", "category": "X", "price": 10, "revenue": 30},
    ]
    out = generate_insights(rows)
    assert not any("quantity" in w for w in out.warnings)


def test_volume_mismatch_full_output():
    rows = [
        make_row("01-03-2025", "Pens", "office", 20, 0.5),
        make_row("01-03-2025", "Laptop", "office", 2, 1000),
        {"date": "01-03-2025", "product": "Phone", "category": "Office", "quantity": 3, "price": 500},
    ]
    out = generate_insights(rows)

    assert out.findings == [
        "Top 3 products by revenue: Laptop, Phone, Pens.",
        "Top 3 products by units sold: Pens, Phone, Laptop.",
        "Pens sells a lot (80% of units) but brings in only 0% of revenue.",
        "Office is your top category ($3,510 revenue).",
        "57% of revenue comes from your top product; 100% from the top 3.",
    ]
    assert out.actions == [
        "Restock and promote: Laptop.",
        "Review price or bundles for Pens, you might be able to earn more per unit.",
        'Focus on category "Office", it drives the most revenue.',
        "Try to grow sales of other products so one slow month does not hurt too much.",
    ]
    assert out.warnings == [
        "Over 100% of revenue depends on 3 products. Consider diversifying to reduce risk.",
    ]


def _two_month_rows():
    return [
        make_row("06-01-2025", "Laptop", "Electronics", 1, 100),
        make_row("07-01-2025", "Ball", "Toys", 2, 100),
        make_row("03-02-2025", "Laptop", "Electronics", 3, 100),
        make_row("04-02-2025", "Ball", "Toys", 1, 100),
    ]


def test_monthly_dataset_full_output_is_capped():
    out = generate_insights(_two_month_rows())

    assert out.findings == [
        "Revenue is up 33% in February vs January ($400 vs $300).",
        "Top 3 products by revenue: Laptop, Ball.",
        "Top 3 products by units sold: Laptop, Ball.",
        "Electronics is your top category ($400 revenue).",
        "Electronics is your fastest-growing category (up 200% vs last period).",
        "Toys revenue is down 50% vs last period.",
    ]
    assert out.actions == [
        "Keep stock levels healthy for your best sellers.",
        "Restock and promote: Laptop.",
        'Focus on category "Electronics", it drives the most revenue.',
        "Promote Electronics, it is growing.",
        "Check why Toys is declining; restock or run a promo.",
    ]
    assert out.warnings == [
        "Over 100% of revenue depends on 3 products. Consider diversifying to reduce risk.",
    ]


def test_monthly_dataset_rules_past_the_cap():
    cfg = InsightsConfig(max_findings=20, max_actions=20)
    out = generate_insights(_two_month_rows(), cfg)

    assert out.findings[6:] == [
        "57% of revenue comes from your top product; 100% from the top 3.",
        "Laptop sells in many periods, showing steady demand.",
        "Laptop had a recent spike in sales and might need extra stock.",
    ]
    assert out.actions[5:] == [
        "Try to grow sales of other products so one slow month does not hurt too much.",
        "Keep Laptop in stock; reorder before you run out.",
        "Restock Laptop to avoid running out.",
    ]


def test_category_decline_needs_more_than_ten_points():
    rows = [
        make_row("06-01-2025", "Laptop", "Electronics", 1, 100),
        make_row("07-01-2025", "Ball", "Toys", 1, 100),
        make_row("03-02-2025", "Laptop", "Electronics", 1, 100),
        make_row("04-02-2025", "Ball", "Toys", 1, 95),
    ]
    out = generate_insights(rows, InsightsConfig(max_findings=20))

    assert not any("revenue is down" in f for f in out.findings)
    assert not any("fastest-growing" in f for f in out.findings)


def test_category_growth_ties_keep_first_seen_category():
    rows = [
        make_row("06-01-2025", "Bat", "Beta", 1, 100),
        make_row("06-01-2025", "Axe", "Alpha", 1, 100),
        make_row("03-02-2025", "Axe", "Alpha", 2, 100),
        make_row("03-02-2025", "Bat", "Beta", 2, 100),
    ]
    out = generate_insights(rows)

    assert "Beta is your fastest-growing category (up 100% vs last period)." in out.findings
    assert "Promote Beta, it is growing." in out.actions


def test_daily_rows_in_one_month_report_seasonality():
    rows = [
        make_row(f"{d:02d}-01-2025", "P", "X", 5, 10, id=d, revenue=50)
        for d in range(1, 21)
    ]
    out = generate_insights(rows)

    assert out.findings == [
        "Top 3 products by revenue: P.",
        "Top 3 products by units sold: P.",
        "X is your top category ($1,000 revenue).",
        "100% of revenue comes from your top product; 100% from the top 3.",
        "P sells in many periods, showing steady demand.",
        "Your best day for sales is Wednesday.",
    ]
    assert out.actions == [
        "Restock and promote: P.",
        'Focus on category "X", it drives the most revenue.',
        "Try to grow sales of other products so one slow month does not hurt too much.",
        "Keep P in stock; reorder before you run out.",
        "Schedule promotions or extra stock for Wednesdays.",
    ]
    assert out.warnings == [
        "Over 100% of revenue depends on 3 products. Consider diversifying to reduce risk.",
        "Revenue dropped in Week 2025-01-20. Confirm if real or a data issue.",
    ]
    # A single month never produces a trend line.
    assert not any(f.startswith("Revenue is") for f in out.findings)


def test_monthly_spike_is_reported_as_finding():
    rows = [
        make_row("10-01-2025", "A", "X", 1, 100),
        make_row("10-02-2025", "A", "X", 1, 100),
        make_row("10-03-2025", "A", "X", 1, 100),
        make_row("10-04-2025", "A", "X", 5, 100),
    ]
    out = generate_insights(rows, InsightsConfig(max_findings=20))

    assert (
        "Unusual revenue spike in April ($500 vs avg $200). Check for bulk orders or data errors."
        in out.findings
    )
    assert "Revenue dropped in January. Confirm if real or a data issue." in out.warnings
    assert "Your best month for sales is April." in out.findings


def test_duplicate_sentences_are_removed():
    rows = [
        make_row("10-01-2025", "A", "X", 1, 100),
        make_row("10-01-2026", "A", "X", 1, 100),
        make_row("10-02-2026", "A", "X", 1, 100),
        make_row("10-03-2026", "A", "X", 10, 100),
    ]
    out = generate_insights(rows, InsightsConfig(max_findings=50, max_actions=50))

    # Both Januaries drop below the average and share the month-name label.
    january = "Revenue dropped in January. Confirm if real or a data issue."
    assert out.warnings.count(january) == 1
    assert "Revenue dropped in February. Confirm if real or a data issue." in out.warnings
    for items in (out.findings, out.actions, out.warnings):
        assert len(items) == len(set(items))


def test_output_is_idempotent(sample_rows):
    first = generate_insights(sample_rows)
    second = generate_insights(sample_rows)
    assert first == second
    assert first.findings
    assert len(first.findings) <= 6
    assert len(first.actions) <= 5


_ORDER_FREE_MARKERS = (
    "Revenue is",
    "top category",
    "fastest-growing",
    "revenue is down",
    "of revenue comes from",
    "best day",
    "best month",
    "Unusual revenue spike",
)


def _order_free(lines):
    return [line for line in lines if any(marker in line for marker in _ORDER_FREE_MARKERS)]


def test_aggregate_findings_do_not_depend_on_row_order(sample_rows):
    cfg = InsightsConfig(max_findings=50, max_actions=50)
    spike_rows = [
        make_row("10-01-2025", "A", "X", 1, 100),
        make_row("10-02-2025", "A", "X", 1, 100),
        make_row("10-03-2025", "A", "X", 1, 100),
        make_row("10-04-2025", "A", "X", 5, 100),
    ]

    for rows in (sample_rows, spike_rows):
        forward = generate_insights(rows, cfg)
        backward = generate_insights(list(reversed(rows)), cfg)

        assert _order_free(forward.findings) == _order_free(backward.findings)
        assert forward.warnings == backward.warnings

    sample = _order_free(generate_insights(sample_rows, cfg).findings)
    assert "Stationery is your top category ($2,770 revenue)." in sample
    assert "Furniture revenue is down 71% vs last period." in sample
    assert any("best day" in line for line in sample)

    spikes = _order_free(generate_insights(spike_rows, cfg).findings)
    assert any(line.startswith("Unusual revenue spike in April") for line in spikes)
    assert "Your best month for sales is April." in spikes


def test_volume_mismatch_names_only_the_first_product():
    rows = [
        make_row("01-03-2025", "Pens", "Office", 20, 0.5),
        make_row("01-03-2025", "Clips", "Office", 20, 0.5),
        make_row("01-03-2025", "Laptop", "Office", 2, 1000),
    ]
    out = generate_insights(rows, InsightsConfig(max_findings=20))

    mismatches = [f for f in out.findings if "sells a lot" in f]
    assert mismatches == ["Pens sells a lot (48% of units) but brings in only 0% of revenue."]
    assert [a for a in out.actions if a.startswith("Review price")] == [
        "Review price or bundles for Pens, you might be able to earn more per unit."
    ]


def test_weekly_spike_averages_over_the_weeks_a_product_sold_in():
    # One month, three Monday-keyed weeks; B skips the middle week.
    rows = [
        make_row("06-01-2025", "A", "X", 1, 100),
        make_row("06-01-2025", "B", "X", 1, 100),
        make_row("13-01-2025", "A", "X", 1, 100),
        make_row("20-01-2025", "A", "X", 1, 100),
        make_row("20-01-2025", "B", "X", 1, 100),
    ]
    out = generate_insights(rows, InsightsConfig(max_findings=20, max_actions=20))

    assert "A sells in many periods, showing steady demand." in out.findings
    assert not any("recent spike" in f for f in out.findings)
    assert not any(a.startswith("Restock B") for a in out.actions)


def test_weekly_spike_is_reported_for_a_product_that_jumped():
    rows = [
        make_row("06-01-2025", "A", "X", 1, 100),
        make_row("06-01-2025", "B", "X", 1, 100),
        make_row("13-01-2025", "A", "X", 1, 100),
        make_row("20-01-2025", "A", "X", 1, 100),
        make_row("20-01-2025", "B", "X", 4, 100),
    ]
    out = generate_insights(rows, InsightsConfig(max_findings=20, max_actions=20))

    assert "B had a recent spike in sales and might need extra stock." in out.findings
    assert "Restock B to avoid running out." in out.actions


def test_values_outside_float_range_do_not_raise():
    huge_units = [
        make_row("01-01-2025", "A", "X", 10**400, 1),
        make_row("02-01-2025", "B", "X", 1, 10),
        make_row("03-01-2025", "C", "X", 1, 10),
    ]
    out = generate_insights(huge_units)
    assert "1 row(s) have zero or invalid quantity." in out.warnings
    assert "Top 3 products by revenue: B, C, A." in out.findings

    overflowing_totals = [
        make_row("01-01-2025", name, "X", 1, 1, revenue=1e308) for name in ("A", "B", "C")
    ]
    out = generate_insights(overflowing_totals)
    assert "X is your top category ($0 revenue)." in out.findings
    assert "0% of revenue comes from your top product; 0% from the top 3." in out.findings


def test_accepts_a_dataframe():
    df = pd.DataFrame(
        [
            make_row("01-01-2025", "A", "X", 1, 10),
            make_row("02-01-2025", "B", "X", 2, 10),
            make_row("03-01-2025", "C", "X", None, 10),
        ]
    )
    out = generate_insights(df)
    assert "Top 3 products by revenue: B, A, C." in out.findings
    assert "1 row(s) have zero or invalid quantity." in out.warnings


def test_accepts_a_dataframe_with_datetime_dates():
    df = pd.DataFrame(
        {
            "date": pd.to_datetime(["2025-01-01", "2025-01-02", "2025-01-03"]),
            "product": ["A", "B", "C"],
            "category": ["X", "X", "X"],
            "units": [1, 2, 3],
            "price": [10, 10, 10],
        }
    )
    out = generate_insights(df)

    assert not any("invalid dates" in w for w in out.warnings)
    assert "Your best day for sales is Friday." in out.findings
