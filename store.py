from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Union

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from models import Purchase, RevenueEntry, Transaction

Record = Union[Transaction, Purchase, RevenueEntry]

COLLECTIONS: dict[str, type] = {
    "transactions": Transaction,
    "purchases": Purchase,
    "revenue_entries": RevenueEntry,
}


class RecordNotFound(ValueError):
    pass


@dataclass
class Dataset:
    transactions: list = field(default_factory=list)
    purchases: list = field(default_factory=list)
    revenue_entries: list = field(default_factory=list)


def _model_for(collection: str) -> type:
    try:
        return COLLECTIONS[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection}") from None


class RecordStore:
    """Whole-collection access to the three record tables.

    Reads never filter server side; callers narrow by date in memory.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def fetch_all(self, collection: str) -> list[Record]:
        model = _model_for(collection)
        stmt = select(model).order_by(
            model.date.desc(), model.created_at.desc(), model.id.desc()
        )
        return list(self.session.scalars(stmt).all())

    def insert_batch(self, collection: str, records: Sequence[Record]) -> list[Record]:
        model = _model_for(collection)
        for record in records:
            if not isinstance(record, model):
                raise ValueError(
                    f"Expected {model.__name__} for {collection}, "
                    f"got {type(record).__name__}"
                )
        try:
            self.session.add_all(records)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        for record in records:
            self.session.refresh(record)
        return list(records)

    def delete_by_id(self, collection: str, record_id: int) -> bool:
        model = _model_for(collection)
        try:
            result = self.session.execute(delete(model).where(model.id == record_id))
            if result.rowcount == 0:
                raise RecordNotFound(f"{model.__name__} {record_id} not found")
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return True

    def load_dataset(self) -> Dataset:
        transactions = self.fetch_all("transactions")
        purchases = self.fetch_all("purchases")
        revenue_entries = self.fetch_all("revenue_entries")
        return Dataset(
            transactions=transactions,
            purchases=purchases,
            revenue_entries=revenue_entries,
        )
