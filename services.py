from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy.orm import Session

from models import Purchase, RevenueEntry, RevenuePeriod, Transaction
from schemas import PurchaseBatchIn, RevenueBatchIn, TransactionIn
from store import RecordStore

logger = logging.getLogger(__name__)


class EmptyBatch(ValueError):
    pass


def compute_total_price(quantity: float, unit_price: int) -> int:
    total = Decimal(str(quantity)) * Decimal(unit_price)
    return int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class TransactionService:
    collection = "transactions"

    def __init__(self, session: Session) -> None:
        self.session = session
        self.store = RecordStore(session)

    def list_all(self) -> list[Transaction]:
        return self.store.fetch_all(self.collection)

    def create(self, data: TransactionIn) -> Transaction:
        txn = Transaction(
            date=data.date,
            main_category=data.main_category,
            subcategory=data.subcategory,
            description=data.description,
            amount=data.amount,
        )
        (created,) = self.store.insert_batch(self.collection, [txn])
        logger.info(
            f"transaction_created: id={created.id} date={created.date} "
            f"main_category={created.main_category.value} amount={created.amount}"
        )
        return created

    def delete(self, transaction_id: int) -> None:
        self.store.delete_by_id(self.collection, transaction_id)
        logger.info(f"transaction_deleted: id={transaction_id}")


class PurchaseService:
    collection = "purchases"

    def __init__(self, session: Session) -> None:
        self.session = session
        self.store = RecordStore(session)

    def list_all(self) -> list[Purchase]:
        return self.store.fetch_all(self.collection)

    def create_batch(self, data: PurchaseBatchIn) -> list[Purchase]:
        lines = [line for line in data.lines if line.is_complete()]
        if not lines:
            raise EmptyBatch("Fill in at least one complete line")
        purchases = [
            Purchase(
                date=data.date,
                item_name=line.item_name.strip(),
                quantity=line.quantity,
                unit=line.unit,
                unit_price=line.unit_price,
                # rounded half-up to a whole currency unit, see compute_total_price
                total_price=compute_total_price(line.quantity, line.unit_price),
            )
            for line in lines
        ]
        created = self.store.insert_batch(self.collection, purchases)
        logger.info(
            f"purchases_created: date={data.date} count={len(created)} "
            f"total={sum(p.total_price for p in created)}"
        )
        return created

    def delete(self, purchase_id: int) -> None:
        self.store.delete_by_id(self.collection, purchase_id)
        logger.info(f"purchase_deleted: id={purchase_id}")


class RevenueService:
    collection = "revenue_entries"

    def __init__(self, session: Session) -> None:
        self.session = session
        self.store = RecordStore(session)

    def list_all(self, period: Optional[RevenuePeriod] = None) -> list[RevenueEntry]:
        entries = self.store.fetch_all(self.collection)
        if period is None:
            return entries
        return [entry for entry in entries if entry.period == period]

    def create_batch(self, data: RevenueBatchIn) -> list[RevenueEntry]:
        lines = [line for line in data.lines if line.is_complete()]
        if not lines:
            raise EmptyBatch("Fill in at least one complete line")
        entries = [
            RevenueEntry(
                date=data.date,
                period=data.period,
                subcategory=line.subcategory.strip(),
                amount=line.amount,
                description=(line.description or "").strip() or None,
            )
            for line in lines
        ]
        created = self.store.insert_batch(self.collection, entries)
        logger.info(
            f"revenue_created: date={data.date} period={data.period.value} "
            f"count={len(created)} total={sum(e.amount for e in created)}"
        )
        return created

    def delete(self, entry_id: int) -> None:
        self.store.delete_by_id(self.collection, entry_id)
        logger.info(f"revenue_deleted: id={entry_id}")
