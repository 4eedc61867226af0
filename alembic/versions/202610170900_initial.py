"""initial schema

Revision ID: 202610170900
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202610170900"
down_revision = None
branch_labels = None
depends_on = None


MAIN_CATEGORY = sa.Enum("expense", "income", name="maincategory")
REVENUE_PERIOD = sa.Enum("morning", "evening", name="revenueperiod")
PURCHASE_UNIT = sa.Enum(
    "kg", "g", "l", "ml", "pcs", "sac", "carton", name="purchaseunit"
)


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("main_category", MAIN_CATEGORY, nullable=False),
        sa.Column("subcategory", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount >= 0", name="ck_transactions_amount_positive"),
    )
    op.create_index("ix_transactions_date", "transactions", ["date"])
    op.create_index(
        "ix_transactions_main_category_created",
        "transactions",
        ["main_category", "created_at"],
    )

    op.create_table(
        "purchases",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("item_name", sa.String(length=120), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("unit", PURCHASE_UNIT, nullable=False),
        sa.Column("unit_price", sa.Integer(), nullable=False),
        sa.Column("total_price", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_purchases_quantity_positive"),
        sa.CheckConstraint("unit_price >= 0", name="ck_purchases_unit_price_positive"),
        sa.CheckConstraint("total_price >= 0", name="ck_purchases_total_positive"),
    )
    op.create_index("ix_purchases_date", "purchases", ["date"])
    op.create_index(
        "ix_purchases_item_created", "purchases", ["item_name", "created_at"]
    )

    op.create_table(
        "revenue_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("period", REVENUE_PERIOD, nullable=False),
        sa.Column("subcategory", sa.String(length=100), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount >= 0", name="ck_revenue_entries_amount_positive"),
    )
    op.create_index("ix_revenue_entries_date", "revenue_entries", ["date"])
    op.create_index(
        "ix_revenue_entries_period_created",
        "revenue_entries",
        ["period", "created_at"],
    )


def downgrade():
    op.drop_index("ix_revenue_entries_period_created", table_name="revenue_entries")
    op.drop_index("ix_revenue_entries_date", table_name="revenue_entries")
    op.drop_table("revenue_entries")
    op.drop_index("ix_purchases_item_created", table_name="purchases")
    op.drop_index("ix_purchases_date", table_name="purchases")
    op.drop_table("purchases")
    op.drop_index("ix_transactions_main_category_created", table_name="transactions")
    op.drop_index("ix_transactions_date", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("users")
    PURCHASE_UNIT.drop(op.get_bind(), checkfirst=True)
    REVENUE_PERIOD.drop(op.get_bind(), checkfirst=True)
    MAIN_CATEGORY.drop(op.get_bind(), checkfirst=True)
