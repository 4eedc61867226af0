from datetime import date, datetime

from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from autocomplete import (
    AutocompleteService,
    purchase_suggestions,
    subcategory_suggestions,
)
from database import Base
from models import MainCategory, Purchase, PurchaseUnit, RevenuePeriod
from schemas import (
    PurchaseBatchIn,
    PurchaseLineIn,
    RevenueBatchIn,
    RevenueLineIn,
    TransactionIn,
)
from services import PurchaseService, RevenueService, TransactionService
from store import RecordStore


def _purchase(item_name: str, unit_price: int, unit: PurchaseUnit, created_at):
    return Purchase(
        date=date(2025, 2, 1),
        item_name=item_name,
        quantity=1,
        unit=unit,
        unit_price=unit_price,
        total_price=unit_price,
        created_at=created_at,
    )


def test_most_recently_created_price_wins() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        RecordStore(session).insert_batch(
            "purchases",
            [
                _purchase("Farine", 650, PurchaseUnit.sac, datetime(2025, 2, 3, 9)),
                _purchase("Farine", 500, PurchaseUnit.kg, datetime(2025, 2, 1, 9)),
                _purchase("Lait", 900, PurchaseUnit.l, datetime(2025, 2, 2, 9)),
            ],
        )
        items = AutocompleteService(session).purchase_items()

        by_name = {item["item_name"]: item for item in items}
        assert by_name["Farine"] == {
            "item_name": "Farine",
            "unit_price": 650,
            "unit": "sac",
        }
        assert by_name["Lait"]["unit_price"] == 900
        assert [item["item_name"] for item in items] == ["Farine", "Lait"]


def test_later_batch_overrides_earlier_price() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        purchases = PurchaseService(session)
        purchases.create_batch(
            PurchaseBatchIn(
                date=date(2025, 2, 10),
                lines=[PurchaseLineIn(item_name="Beurre", quantity=1, unit_price=3000)],
            )
        )
        # an older purchase date entered later still counts as the latest price
        purchases.create_batch(
            PurchaseBatchIn(
                date=date(2025, 2, 1),
                lines=[PurchaseLineIn(item_name="Beurre", quantity=2, unit_price=3200)],
            )
        )
        (suggestion,) = AutocompleteService(session).purchase_items("beur")
        assert suggestion["unit_price"] == 3200


def test_purchase_suggestions_filter_case_insensitive() -> None:
    records = [
        _purchase("Sucre roux", 700, PurchaseUnit.kg, datetime(2025, 1, 2)),
        _purchase("Farine", 500, PurchaseUnit.kg, datetime(2025, 1, 1)),
    ]
    assert [s["item_name"] for s in purchase_suggestions(records, "SUC")] == [
        "Sucre roux"
    ]
    assert len(purchase_suggestions(records, "  ")) == 2
    assert purchase_suggestions(records, "chocolat") == []


def test_subcategory_suggestions_dedupe_and_filter() -> None:
    labels = ["Gaz", "Loyer", "gaz", "Gaz", None, "", "Transport"]
    assert subcategory_suggestions(labels) == ["Gaz", "Loyer", "gaz", "Transport"]
    assert subcategory_suggestions(labels, "") == ["Gaz", "Loyer", "gaz", "Transport"]
    assert subcategory_suggestions(labels, "GA") == ["Gaz", "gaz"]
    assert subcategory_suggestions(labels, "port") == ["Transport"]


def test_query_whitespace_is_part_of_the_match() -> None:
    labels = ["Sel", "Farine salee", "Gaz"]
    assert subcategory_suggestions(labels, "   ") == labels
    assert subcategory_suggestions(labels, " sa") == ["Farine salee"]
    assert subcategory_suggestions(labels, "sa") == ["Farine salee"]
    assert subcategory_suggestions(labels, "se ") == []


def test_transaction_subcategories_are_scoped_to_main_category() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        service = TransactionService(session)
        for main_category, subcategory in [
            (MainCategory.expense, "Gaz"),
            (MainCategory.income, "Traiteur"),
            (MainCategory.expense, "Électricité"),
            (MainCategory.expense, "Gaz"),
        ]:
            service.create(
                TransactionIn(
                    date=date(2025, 2, 1),
                    main_category=main_category,
                    subcategory=subcategory,
                    amount=100,
                )
            )

        autocomplete = AutocompleteService(session)
        expenses = autocomplete.transaction_subcategories(MainCategory.expense)
        assert sorted(expenses) == ["Gaz", "Électricité"]
        assert autocomplete.transaction_subcategories(MainCategory.income) == [
            "Traiteur"
        ]
        assert autocomplete.transaction_subcategories(
            MainCategory.expense, "élec"
        ) == ["Électricité"]


def test_revenue_subcategories_are_scoped_to_shift() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        service = RevenueService(session)
        service.create_batch(
            RevenueBatchIn(
                date=date(2025, 2, 1),
                period=RevenuePeriod.morning,
                lines=[
                    RevenueLineIn(subcategory="Crêpes sucrées", amount=1000),
                    RevenueLineIn(subcategory="Café", amount=500),
                ],
            )
        )
        service.create_batch(
            RevenueBatchIn(
                date=date(2025, 2, 1),
                period=RevenuePeriod.evening,
                lines=[RevenueLineIn(subcategory="Galettes", amount=2500)],
            )
        )

        autocomplete = AutocompleteService(session)
        assert sorted(autocomplete.revenue_subcategories(RevenuePeriod.morning)) == [
            "Café",
            "Crêpes sucrées",
        ]
        assert autocomplete.revenue_subcategories(RevenuePeriod.evening, "gal") == [
            "Galettes"
        ]
