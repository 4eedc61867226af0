"""Aggregations over in-memory transactions, purchases and revenue entries.

Every function here is pure: it takes the full record lists (see
``store.Dataset``) plus a window and returns fresh values. Records only need
the attributes the ORM models expose, so plain objects work too.

Dates are compared as ISO ``yyyy-mm-dd`` strings, inclusive on both ends and
without any time-zone shift. A record whose date is missing matches no
window; a missing amount counts as zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional, Union

from store import Dataset

DateLike = Union[date, str]

PALETTE = ("#0088FE", "#00C49F", "#FFBB28", "#FF8042", "#8884d8", "#82ca9d")

OTHER_LABEL = "Other"
INGREDIENTS_LABEL = "Ingredient purchases"
OTHER_INCOME_LABEL = "Other income"
PERIOD_LABELS = {"morning": "Morning", "evening": "Evening"}
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True)
class PeriodTotals:
    revenue: float = 0
    expenses: float = 0

    @property
    def profit(self) -> float:
        return self.revenue - self.expenses

    def as_dict(self) -> dict[str, float]:
        return {
            "revenue": self.revenue,
            "expenses": self.expenses,
            "profit": self.profit,
        }


def date_key(value: object) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value or None
    return None


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _amount(value: object) -> float:
    return value or 0


def _value(record: object, attr: str) -> object:
    raw = getattr(record, attr, None)
    # str-based enums compare equal to their value already
    return getattr(raw, "value", raw)


def in_window(record: object, start: DateLike, end: DateLike) -> bool:
    key = date_key(getattr(record, "date", None))
    if key is None:
        return False
    return date_key(start) <= key <= date_key(end)


def _is_income(txn: object) -> bool:
    return _value(txn, "main_category") == "income"


def _is_expense(txn: object) -> bool:
    return _value(txn, "main_category") == "expense"


def period_totals(dataset: Dataset, start: DateLike, end: DateLike) -> PeriodTotals:
    revenue = 0
    expenses = 0
    for txn in dataset.transactions:
        if not in_window(txn, start, end):
            continue
        if _is_income(txn):
            revenue += _amount(getattr(txn, "amount", None))
        elif _is_expense(txn):
            expenses += _amount(getattr(txn, "amount", None))
    for entry in dataset.revenue_entries:
        if in_window(entry, start, end):
            revenue += _amount(getattr(entry, "amount", None))
    for purchase in dataset.purchases:
        if in_window(purchase, start, end):
            expenses += _amount(getattr(purchase, "total_price", None))
    return PeriodTotals(revenue=revenue, expenses=expenses)


def _activity_items(dataset: Dataset) -> Iterable[dict[str, object]]:
    for txn in dataset.transactions:
        income = _is_income(txn)
        prefix = "Income" if income else "Expense"
        yield {
            "source": "transaction",
            "id": getattr(txn, "id", None),
            "date": date_key(getattr(txn, "date", None)),
            "type": "in" if income else "out",
            "amount": _amount(getattr(txn, "amount", None)),
            "label": f"{prefix}: {getattr(txn, 'subcategory', '') or ''}",
        }
    for purchase in dataset.purchases:
        yield {
            "source": "purchase",
            "id": getattr(purchase, "id", None),
            "date": date_key(getattr(purchase, "date", None)),
            "type": "out",
            "amount": _amount(getattr(purchase, "total_price", None)),
            "label": f"Purchase: {getattr(purchase, 'item_name', '') or ''}",
        }
    for entry in dataset.revenue_entries:
        shift = PERIOD_LABELS.get(_value(entry, "period"), OTHER_LABEL)
        yield {
            "source": "revenue",
            "id": getattr(entry, "id", None),
            "date": date_key(getattr(entry, "date", None)),
            "type": "in",
            "amount": _amount(getattr(entry, "amount", None)),
            "label": f"{shift} sales: {getattr(entry, 'subcategory', '') or ''}",
        }


def recent_activity(
    dataset: Dataset, start: DateLike, end: DateLike, *, limit: int = 5
) -> list[dict[str, object]]:
    lo, hi = date_key(start), date_key(end)
    items = [
        item
        for item in _activity_items(dataset)
        if item["date"] is not None and lo <= item["date"] <= hi
    ]
    # sorted() is stable, so same-day items keep their union order
    items = sorted(items, key=lambda item: item["date"], reverse=True)
    return items[:limit]


def week_bounds(ref: DateLike) -> tuple[date, date]:
    day = _to_date(ref)
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def month_bounds(ref: DateLike) -> tuple[date, date]:
    day = _to_date(ref)
    first = day.replace(day=1)
    if first.month == 12:
        next_month = first.replace(year=first.year + 1, month=1)
    else:
        next_month = first.replace(month=first.month + 1)
    return first, next_month - date.resolution


def _day_of_month_label(day: date) -> str:
    return f"{day.day:02d}"


def _weekday_label(day: date) -> str:
    return WEEKDAY_LABELS[day.weekday()]


def daily_series(
    dataset: Dataset,
    start: DateLike,
    end: DateLike,
    *,
    label: Callable[[date], str] = _day_of_month_label,
) -> list[dict[str, object]]:
    """One point per calendar day in ``[start, end]``, including empty days."""
    first, last = _to_date(start), _to_date(end)
    days: list[date] = []
    current = first
    while current <= last:
        days.append(current)
        current += timedelta(days=1)

    revenue: dict[str, float] = {d.isoformat(): 0 for d in days}
    expenses: dict[str, float] = {d.isoformat(): 0 for d in days}

    def add(bucket: dict[str, float], record: object, attr: str) -> None:
        key = date_key(getattr(record, "date", None))
        if key in bucket:
            bucket[key] += _amount(getattr(record, attr, None))

    for txn in dataset.transactions:
        if _is_income(txn):
            add(revenue, txn, "amount")
        elif _is_expense(txn):
            add(expenses, txn, "amount")
    for entry in dataset.revenue_entries:
        add(revenue, entry, "amount")
    for purchase in dataset.purchases:
        add(expenses, purchase, "total_price")

    points = []
    for day in days:
        key = day.isoformat()
        points.append(
            {
                "date": key,
                "label": label(day),
                "revenue": revenue[key],
                "expenses": expenses[key],
                "profit": revenue[key] - expenses[key],
            }
        )
    return points


def weekly_series(dataset: Dataset, ref: DateLike) -> list[dict[str, object]]:
    start, end = week_bounds(ref)
    return daily_series(dataset, start, end, label=_weekday_label)


def monthly_series(dataset: Dataset, ref: DateLike) -> list[dict[str, object]]:
    start, end = month_bounds(ref)
    return daily_series(dataset, start, end)


def series_totals(points: Iterable[dict[str, object]]) -> PeriodTotals:
    revenue = 0
    expenses = 0
    for point in points:
        revenue += point["revenue"]
        expenses += point["expenses"]
    return PeriodTotals(revenue=revenue, expenses=expenses)


def _finish_breakdown(
    buckets: dict[str, float], *, sort_desc: bool
) -> list[dict[str, object]]:
    total = sum(buckets.values())
    if not total:
        return []
    rows = list(buckets.items())
    if sort_desc:
        rows.sort(key=lambda row: row[1], reverse=True)
    breakdown = []
    for idx, (name, amount) in enumerate(rows):
        breakdown.append(
            {
                "name": name,
                "amount": amount,
                "percent": amount / total * 100,
                "color": PALETTE[idx % len(PALETTE)],
            }
        )
    return breakdown


def expense_breakdown(
    dataset: Dataset,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    *,
    sort_desc: bool = False,
) -> list[dict[str, object]]:
    """Expenses grouped by subcategory, with all purchases in one bucket.

    Without a window every record counts.
    """
    windowed = start is not None and end is not None
    buckets: dict[str, float] = {}
    for txn in dataset.transactions:
        if not _is_expense(txn):
            continue
        if windowed and not in_window(txn, start, end):
            continue
        name = (getattr(txn, "subcategory", None) or "").strip() or OTHER_LABEL
        buckets[name] = buckets.get(name, 0) + _amount(getattr(txn, "amount", None))
    for purchase in dataset.purchases:
        if windowed and not in_window(purchase, start, end):
            continue
        buckets[INGREDIENTS_LABEL] = buckets.get(INGREDIENTS_LABEL, 0) + _amount(
            getattr(purchase, "total_price", None)
        )
    return _finish_breakdown(buckets, sort_desc=sort_desc)


def revenue_breakdown(
    dataset: Dataset,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    *,
    sort_desc: bool = False,
) -> list[dict[str, object]]:
    """Revenue grouped by shift, income transactions in a separate bucket."""
    windowed = start is not None and end is not None
    buckets: dict[str, float] = {}
    for entry in dataset.revenue_entries:
        if windowed and not in_window(entry, start, end):
            continue
        name = PERIOD_LABELS.get(_value(entry, "period"), OTHER_LABEL)
        buckets[name] = buckets.get(name, 0) + _amount(getattr(entry, "amount", None))
    for txn in dataset.transactions:
        if not _is_income(txn):
            continue
        if windowed and not in_window(txn, start, end):
            continue
        buckets[OTHER_INCOME_LABEL] = buckets.get(OTHER_INCOME_LABEL, 0) + _amount(
            getattr(txn, "amount", None)
        )
    return _finish_breakdown(buckets, sort_desc=sort_desc)
