from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class MainCategory(str, Enum):
    expense = "expense"
    income = "income"


class RevenuePeriod(str, Enum):
    morning = "morning"
    evening = "evening"


class PurchaseUnit(str, Enum):
    kg = "kg"
    g = "g"
    l = "l"  # noqa: E741
    ml = "ml"
    pcs = "pcs"
    sac = "sac"
    carton = "carton"


class CreatedAtMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )


class User(Base, CreatedAtMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)


class Transaction(Base, CreatedAtMixin):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    main_category: Mapped[MainCategory] = mapped_column(
        SAEnum(MainCategory), nullable=False
    )
    subcategory: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_transactions_date", "date"),
        Index("ix_transactions_main_category_created", "main_category", "created_at"),
        CheckConstraint("amount >= 0", name="ck_transactions_amount_positive"),
    )


class Purchase(Base, CreatedAtMixin):
    __tablename__ = "purchases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    item_name: Mapped[str] = mapped_column(String(120), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[PurchaseUnit] = mapped_column(SAEnum(PurchaseUnit), nullable=False)
    unit_price: Mapped[int] = mapped_column(Integer, nullable=False)
    # quantity * unit_price at insert time; never recomputed
    total_price: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_purchases_date", "date"),
        Index("ix_purchases_item_created", "item_name", "created_at"),
        CheckConstraint("quantity > 0", name="ck_purchases_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_purchases_unit_price_positive"),
        CheckConstraint("total_price >= 0", name="ck_purchases_total_positive"),
    )


class RevenueEntry(Base, CreatedAtMixin):
    __tablename__ = "revenue_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    period: Mapped[RevenuePeriod] = mapped_column(
        SAEnum(RevenuePeriod), nullable=False
    )
    subcategory: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("ix_revenue_entries_date", "date"),
        Index("ix_revenue_entries_period_created", "period", "created_at"),
        CheckConstraint("amount >= 0", name="ck_revenue_entries_amount_positive"),
    )
