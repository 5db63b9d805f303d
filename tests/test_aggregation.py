"""Tests for aggregation module - totals, daily series and category breakdown."""

from datetime import date, datetime, timedelta
from decimal import Decimal

from aggregation import (
    OTHER_CATEGORY,
    budget_percent,
    category_breakdown,
    daily_series,
    group_by_date,
    month_bounds,
    total_for_date,
    total_since,
)
from conftest import FOOD, TRANSPORT, make_row
from repository import CategoryRef

TODAY = date(2026, 10, 18)


class TestTotals:
    """Tests for total_for_date and total_since."""

    def test_empty_input_is_zero(self):
        assert total_for_date([], TODAY) == 0
        assert total_since([], TODAY) == 0

    def test_total_for_date_matches_only_that_day(self):
        rows = [make_row(20000, TODAY), make_row(5000, TODAY), make_row(99000, TODAY - timedelta(days=1))]
        assert total_for_date(rows, TODAY) == Decimal("25000")

    def test_total_for_date_accepts_datetime(self):
        rows = [make_row(20000, TODAY)]
        assert total_for_date(rows, datetime(2026, 10, 18, 23, 59)) == Decimal("20000")

    def test_total_since_threshold_is_inclusive(self):
        week_ago = TODAY - timedelta(days=7)
        rows = [make_row(1000, week_ago), make_row(2000, week_ago - timedelta(days=1)), make_row(4000, TODAY)]
        assert total_since(rows, week_ago) == Decimal("5000")

    def test_total_since_before_all_rows(self, sample_rows):
        assert total_since(sample_rows, date(2000, 1, 1)) == Decimal("300000")

    def test_decimal_sums_do_not_drift(self):
        rows = [make_row("0.10") for _ in range(10)]
        assert total_for_date(rows, TODAY) == Decimal("1.00")


class TestDailySeries:
    """Tests for the 7-day chart series."""

    def test_always_window_days_entries(self):
        assert len(daily_series([], TODAY)) == 7
        assert len(daily_series([make_row(1000, TODAY)], TODAY, window_days=14)) == 14

    def test_oldest_first_and_ends_today(self):
        series = daily_series([], TODAY)
        days = [b.day for b in series]
        assert days == sorted(days)
        assert days[0] == TODAY - timedelta(days=6)
        assert days[-1] == TODAY

    def test_buckets_sum_by_day(self):
        rows = [
            make_row(10000, TODAY),
            make_row(15000, TODAY),
            make_row(7000, TODAY - timedelta(days=3)),
            make_row(50000, TODAY - timedelta(days=30)),
        ]
        series = daily_series(rows, TODAY)
        assert series[-1].amount == Decimal("25000")
        assert series[-4].amount == Decimal("7000")
        assert sum(b.amount for b in series) == Decimal("32000")

    def test_weekday_labels(self):
        # 2026-10-18 is a Sunday
        series = daily_series([], TODAY)
        assert series[-1].label == "CN"
        assert series[-2].label == "T7"
        assert series[0].label == "T2"

    def test_same_input_same_output(self, sample_rows):
        assert daily_series(sample_rows, TODAY) == daily_series(sample_rows, TODAY)


class TestCategoryBreakdown:
    """Tests for grouping spend by category."""

    def test_empty(self):
        assert category_breakdown([]) == []

    def test_partition_is_complete(self, sample_rows):
        breakdown = category_breakdown(sample_rows)
        assert sum(c.value for c in breakdown) == sum(r.amount for r in sample_rows)

    def test_groups_in_first_seen_order(self, sample_rows):
        breakdown = category_breakdown(sample_rows)
        assert [(c.name, c.value) for c in breakdown] == [
            ("Food", Decimal("200000")),
            ("Transport", Decimal("100000")),
        ]
        assert breakdown[0].icon == FOOD.icon
        assert breakdown[1].color == TRANSPORT.color

    def test_unresolved_category_falls_back_to_other(self):
        breakdown = category_breakdown([make_row(3000, category=None), make_row(2000, category=None)])
        assert len(breakdown) == 1
        assert breakdown[0].name == OTHER_CATEGORY
        assert breakdown[0].value == Decimal("5000")
        assert breakdown[0].icon == "📦"

    def test_first_seen_metadata_wins(self):
        relabelled = CategoryRef(id=9, name="Food", icon="🍕", color="#000000")
        breakdown = category_breakdown([make_row(1000, category=FOOD), make_row(2000, category=relabelled)])
        assert len(breakdown) == 1
        assert breakdown[0].icon == FOOD.icon
        assert breakdown[0].color == FOOD.color


class TestHelpers:
    """Tests for budget percentage, month bounds and date grouping."""

    def test_budget_percent(self):
        assert budget_percent(Decimal("250000"), Decimal("500000")) == 50.0
        assert budget_percent(Decimal("900000"), Decimal("500000")) == 100.0
        assert budget_percent(Decimal("1000"), Decimal("0")) == 0.0

    def test_month_bounds(self):
        assert month_bounds(date(2026, 2, 14)) == (date(2026, 2, 1), date(2026, 2, 28))
        assert month_bounds(date(2026, 12, 31)) == (date(2026, 12, 1), date(2026, 12, 31))

    def test_group_by_date_newest_first(self, sample_rows):
        grouped = group_by_date(list(reversed(sample_rows)))
        assert list(grouped) == [date(2026, 10, 17), date(2026, 10, 16), date(2026, 10, 15)]
