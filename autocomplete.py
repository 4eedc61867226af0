from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from models import MainCategory, Purchase, RevenuePeriod
from store import RecordStore


def _matches(label: str, query: Optional[str]) -> bool:
    return query.lower() in label.lower()


def _newest_first(records: Iterable[object]) -> list[object]:
    return sorted(
        records,
        key=lambda r: (
            getattr(r, "created_at", None) or datetime.min,
            getattr(r, "id", None) or 0,
        ),
        reverse=True,
    )


def subcategory_suggestions(
    labels: Iterable[Optional[str]], query: Optional[str] = None
) -> list[str]:
    """Distinct non-blank labels in input order, narrowed by ``query``."""
    seen: dict[str, None] = {}
    for label in labels:
        if label and label not in seen:
            seen[label] = None
    unique = list(seen)
    if not query or not query.strip():
        return unique
    return [label for label in unique if _matches(label, query)]


def purchase_suggestions(
    purchases: Iterable[Purchase], query: Optional[str] = None
) -> list[dict[str, object]]:
    """Last known unit price and unit per item, most recently created wins."""
    latest: dict[str, dict[str, object]] = {}
    for purchase in _newest_first(purchases):
        if purchase.item_name in latest:
            continue
        latest[purchase.item_name] = {
            "item_name": purchase.item_name,
            "unit_price": purchase.unit_price,
            "unit": getattr(purchase.unit, "value", purchase.unit),
        }
    suggestions = list(latest.values())
    if not query or not query.strip():
        return suggestions
    return [s for s in suggestions if _matches(str(s["item_name"]), query)]


class AutocompleteService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.store = RecordStore(session)

    def transaction_subcategories(
        self, main_category: MainCategory, query: Optional[str] = None
    ) -> list[str]:
        records = [
            txn
            for txn in self.store.fetch_all("transactions")
            if txn.main_category == main_category
        ]
        return subcategory_suggestions(
            (txn.subcategory for txn in _newest_first(records)), query
        )

    def revenue_subcategories(
        self, period: RevenuePeriod, query: Optional[str] = None
    ) -> list[str]:
        records = [
            entry
            for entry in self.store.fetch_all("revenue_entries")
            if entry.period == period
        ]
        return subcategory_suggestions(
            (entry.subcategory for entry in _newest_first(records)), query
        )

    def purchase_items(self, query: Optional[str] = None) -> list[dict[str, object]]:
        return purchase_suggestions(self.store.fetch_all("purchases"), query)
