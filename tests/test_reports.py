from datetime import date

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session

from aggregation import INGREDIENTS_LABEL, OTHER_INCOME_LABEL
from database import Base
from models import MainCategory, RevenuePeriod
from periods import month_options, resolve_window
from reports import ReportService
from schemas import (
    PurchaseBatchIn,
    PurchaseLineIn,
    RevenueBatchIn,
    RevenueLineIn,
    TransactionIn,
)
from services import PurchaseService, RevenueService, TransactionService


def _seed(session: Session) -> None:
    transactions = TransactionService(session)
    transactions.create(
        TransactionIn(
            date=date(2025, 5, 6),
            main_category=MainCategory.expense,
            subcategory="Gaz",
            amount=4000,
        )
    )
    transactions.create(
        TransactionIn(
            date=date(2025, 5, 20),
            main_category=MainCategory.income,
            subcategory="Traiteur",
            amount=25000,
        )
    )
    transactions.create(
        TransactionIn(
            date=date(2025, 4, 30),
            main_category=MainCategory.expense,
            subcategory="Loyer",
            amount=90000,
        )
    )
    PurchaseService(session).create_batch(
        PurchaseBatchIn(
            date=date(2025, 5, 6),
            lines=[
                PurchaseLineIn(item_name="Farine", quantity=10, unit_price=600),
                PurchaseLineIn(
                    item_name="Oeufs", quantity=60, unit="pcs", unit_price=100
                ),
            ],
        )
    )
    revenue = RevenueService(session)
    for day in range(5, 11):
        revenue.create_batch(
            RevenueBatchIn(
                date=date(2025, 5, day),
                period=RevenuePeriod.morning,
                lines=[RevenueLineIn(subcategory="Crêpes", amount=5000)],
            )
        )
    revenue.create_batch(
        RevenueBatchIn(
            date=date(2025, 5, 7),
            period=RevenuePeriod.evening,
            lines=[RevenueLineIn(subcategory="Galettes", amount=8000)],
        )
    )


def test_dashboard_uses_month_of_reference_date() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        _seed(session)
        data = ReportService(session).dashboard(date(2025, 5, 7), limit=5)

        assert data["error"] is False
        assert data["window"].start == date(2025, 5, 1)
        assert data["window"].end == date(2025, 5, 31)
        assert data["totals"] == {
            "revenue": 25000 + 6 * 5000 + 8000,
            "expenses": 4000 + 6000 + 6000,
            "profit": 63000 - 16000,
        }
        recent = data["recent"]
        assert len(recent) == 5
        assert recent[0]["date"] == "2025-05-20"
        assert all(item["date"] >= "2025-05-01" for item in recent)

        trend = data["revenue_trend"]
        assert [p["date"] for p in trend][0] == "2025-05-05"
        assert len(trend) == 7
        assert trend[2]["revenue"] == 5000 + 8000

        names = [row["name"] for row in data["expense_breakdown"]]
        assert names == ["Gaz", INGREDIENTS_LABEL]

        revenue_rows = data["revenue_breakdown"]
        assert [row["name"] for row in revenue_rows] == [
            "Morning",
            "Evening",
            OTHER_INCOME_LABEL,
        ]
        assert [row["amount"] for row in revenue_rows] == [30000, 8000, 25000]


def test_weekly_and_monthly_reports_are_dense() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        _seed(session)
        service = ReportService(session)

        weekly = service.report("weekly", date(2025, 5, 7))
        assert len(weekly["series"]) == 7
        assert weekly["totals"]["revenue"] == 6 * 5000 + 8000
        assert weekly["totals"]["expenses"] == 4000 + 12000

        monthly = service.report("monthly", date(2025, 2, 14))
        assert len(monthly["series"]) == 28
        assert monthly["totals"] == {"revenue": 0, "expenses": 0, "profit": 0}


def test_analysis_report_sorts_breakdown_descending() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        _seed(session)
        analysis = ReportService(session).report("analysis", date(2025, 5, 15))

        breakdown = analysis["breakdown"]
        assert [row["name"] for row in breakdown] == [INGREDIENTS_LABEL, "Gaz"]
        assert breakdown[0]["percent"] == pytest.approx(75)
        assert sum(row["percent"] for row in breakdown) == pytest.approx(100)


def test_unknown_report_mode_is_rejected() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        with pytest.raises(ValueError):
            ReportService(session).report("yearly", date(2025, 5, 15))


def test_fetch_failure_degrades_to_empty_state() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        _seed(session)
        session.execute(text("DROP TABLE purchases"))
        session.commit()

        data = ReportService(session).dashboard(date(2025, 5, 7))
        assert data["error"] is True
        assert data["totals"] == {"revenue": 0, "expenses": 0, "profit": 0}
        assert data["recent"] == []
        assert data["expense_breakdown"] == []
        assert data["revenue_breakdown"] == []
        assert len(data["revenue_trend"]) == 7


def test_resolve_window_modes() -> None:
    ref = date(2025, 5, 7)
    assert resolve_window("weekly", ref).start == date(2025, 5, 5)
    assert resolve_window("monthly", ref).end == date(2025, 5, 31)
    custom = resolve_window("custom", ref, start="2025-05-01", end="2025-05-03")
    assert (custom.start, custom.end) == (date(2025, 5, 1), date(2025, 5, 3))
    with pytest.raises(ValueError):
        resolve_window("custom", ref, start="2025-05-03", end="2025-05-01")
    with pytest.raises(ValueError):
        resolve_window("quarterly", ref)


def test_month_options_cover_last_twelve_months() -> None:
    options = month_options(date(2025, 3, 18))
    assert len(options) == 12
    assert options[0] == {"value": "2025-03-01", "label": "2025-03"}
    assert options[2]["value"] == "2025-01-01"
    assert options[3]["value"] == "2024-12-01"
    assert options[-1]["value"] == "2024-04-01"
