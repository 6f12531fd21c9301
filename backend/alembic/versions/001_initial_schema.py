"""Initial schema — books, orders, invoices.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

Order status/payment_status defaults are server defaults too, so rows written by
any client get the canonical default at insert time.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "books",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("author", sa.String(200), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("image_url", sa.String(1000), nullable=True),
        sa.Column("price_minor", sa.BigInteger, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="published"),
        sa.Column("seller_email", sa.String(320), nullable=False),
        sa.Column("seller_name", sa.String(200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_books_seller_email", "books", ["seller_email"])

    op.create_table(
        "orders",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("book_id", UUID(as_uuid=True), nullable=False),
        sa.Column("book_title", sa.String(300), nullable=False),
        sa.Column("unit_amount_minor", sa.BigInteger, nullable=False),
        sa.Column("seller_email", sa.String(320), nullable=False),
        sa.Column("seller_name", sa.String(200), nullable=True),
        sa.Column("buyer_email", sa.String(320), nullable=False),
        sa.Column("buyer_name", sa.String(200), nullable=False),
        sa.Column("phone", sa.String(40), nullable=False),
        sa.Column("address", sa.Text, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="unpaid"),
        sa.Column("provider_txn_id", sa.String(255), nullable=True, unique=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_orders_book_id", "orders", ["book_id"])
    op.create_index("ix_orders_buyer_email", "orders", ["buyer_email"])
    op.create_index("ix_orders_seller_email", "orders", ["seller_email"])

    op.create_table(
        "invoices",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("order_id", UUID(as_uuid=True), nullable=False, unique=True),
        sa.Column("buyer_email", sa.String(320), nullable=False),
        sa.Column("book_title", sa.String(300), nullable=False),
        sa.Column("amount_minor", sa.BigInteger, nullable=False),
        sa.Column("provider_txn_id", sa.String(255), nullable=False, unique=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_invoices_buyer_email", "invoices", ["buyer_email"])


def downgrade() -> None:
    op.drop_index("ix_invoices_buyer_email", table_name="invoices")
    op.drop_table("invoices")
    op.drop_index("ix_orders_seller_email", table_name="orders")
    op.drop_index("ix_orders_buyer_email", table_name="orders")
    op.drop_index("ix_orders_book_id", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_books_seller_email", table_name="books")
    op.drop_table("books")
