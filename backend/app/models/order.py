"""Order ORM — the ledger row the state machine guards.

Invariants:
    - id is UUID primary key (client-side default)
    - book_title, unit_amount_minor, seller_* are a snapshot taken at creation, never updated
    - status defaults to "pending", payment_status to "unpaid" — written at insert
    - status / payment_status only change through OrderLedger compare-and-set
    - provider_txn_id unique: one provider transaction pays at most one order

Design Decisions:
    - book_id is the single canonical reference (UUID); no parallel string id
    - buyer_email / seller_email indexed: secondary access for "my orders" and librarian views
    - No FK to books: orders are removed by delete_by_book, not by DB cascade
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, BigInteger, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.core.domain_types import OrderStatus, PaymentStatus
from app.db.base import Base


class Order(Base):
    """A buyer's request to purchase one catalog item."""
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    book_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )

    # Snapshot at creation
    book_title: Mapped[str] = mapped_column(String(300), nullable=False)
    unit_amount_minor: Mapped[int] = mapped_column(BigInteger, nullable=False)
    seller_email: Mapped[str] = mapped_column(
        String(320), nullable=False, index=True,
    )
    seller_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Buyer + delivery contact
    buyer_email: Mapped[str] = mapped_column(
        String(320), nullable=False, index=True,
    )
    buyer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrderStatus.PENDING.value,
    )
    payment_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.UNPAID.value,
    )

    # Payment metadata
    provider_txn_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, unique=True,
    )
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
