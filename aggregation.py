"""Spending totals and chart series derived from transaction rows.

Everything here is a pure function of its arguments: pass the rows already
loaded for the page plus a reference "now". Amounts are summed as Decimal.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Union

OTHER_CATEGORY = "Khác"
OTHER_ICON = "📦"
OTHER_COLOR = "#6b7280"

# date.weekday(): Monday == 0
WEEKDAY_LABELS = ["T2", "T3", "T4", "T5", "T6", "T7", "CN"]

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class DailySpend:
    day: date
    label: str
    amount: Decimal


@dataclass
class CategorySpend:
    name: str
    value: Decimal
    icon: str
    color: str


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def _sum(rows) -> Decimal:
    return sum((Decimal(r.amount) for r in rows), Decimal(0))


def total_for_date(rows: Iterable, day: DateLike) -> Decimal:
    day = _as_date(day)
    return _sum(r for r in rows if r.transaction_date == day)


def total_since(rows: Iterable, threshold: DateLike) -> Decimal:
    """Sum of rows dated on or after ``threshold``."""
    threshold = _as_date(threshold)
    return _sum(r for r in rows if r.transaction_date >= threshold)


def total(rows: Iterable) -> Decimal:
    return _sum(rows)


def daily_series(rows: Iterable, now: DateLike, window_days: int = 7) -> List[DailySpend]:
    """One bucket per calendar day ending today, oldest first."""
    today = _as_date(now)
    by_day: Dict[date, Decimal] = {}
    for r in rows:
        by_day[r.transaction_date] = by_day.get(r.transaction_date, Decimal(0)) + Decimal(r.amount)

    series = []
    for offset in range(window_days - 1, -1, -1):
        day = today - timedelta(days=offset)
        series.append(DailySpend(day=day, label=WEEKDAY_LABELS[day.weekday()],
                                 amount=by_day.get(day, Decimal(0))))
    return series


def category_breakdown(rows: Iterable) -> List[CategorySpend]:
    """
    Sum per category name, in first-seen order.

    Rows without a resolved category fall under ``Khác``. When the same name
    shows up with different icon/color, the first row's metadata is kept.
    """
    groups: "OrderedDict[str, CategorySpend]" = OrderedDict()
    for r in rows:
        cat = r.category
        name = cat.name if cat and cat.name else OTHER_CATEGORY
        entry = groups.get(name)
        if entry is None:
            groups[name] = CategorySpend(
                name=name,
                value=Decimal(r.amount),
                icon=(cat.icon if cat else None) or OTHER_ICON,
                color=(cat.color if cat else None) or OTHER_COLOR,
            )
        else:
            entry.value += Decimal(r.amount)
    return list(groups.values())


def budget_percent(spent: Decimal, budget: Decimal) -> float:
    """Share of the monthly budget used, capped at 100."""
    if not budget or budget <= 0:
        return 0.0
    return float(min(Decimal(spent) / Decimal(budget) * 100, Decimal(100)))


def month_bounds(day: DateLike):
    """First and last calendar day of ``day``'s month."""
    day = _as_date(day)
    start = day.replace(day=1)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return start, next_month - timedelta(days=1)


def group_by_date(rows: Iterable) -> "OrderedDict[date, list]":
    """Rows bucketed by date, newest date first, row order kept inside a day."""
    grouped: "OrderedDict[date, list]" = OrderedDict()
    for r in sorted(rows, key=lambda r: r.transaction_date, reverse=True):
        grouped.setdefault(r.transaction_date, []).append(r)
    return grouped
