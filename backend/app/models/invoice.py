"""Invoice ORM — durable, one-time record of a completed payment.

Invariants:
    - Exactly one invoice per paid order: order_id UNIQUE
    - Exactly one invoice per provider transaction: provider_txn_id UNIQUE
    - Never mutated or deleted by normal flow

Design Decisions:
    - Uniqueness enforced twice: InvoiceProjector checks first, constraints backstop races
    - order_id is a plain reference, not a FK: invoices outlive orders removed by a
      book deletion cascade (ADR: financial records are durable)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, BigInteger, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Invoice(Base):
    """Invoice derived from a confirmed payment."""
    __tablename__ = "invoices"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, unique=True,
    )
    buyer_email: Mapped[str] = mapped_column(
        String(320), nullable=False, index=True,
    )
    book_title: Mapped[str] = mapped_column(String(300), nullable=False)
    amount_minor: Mapped[int] = mapped_column(BigInteger, nullable=False)
    provider_txn_id: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True,
    )
    paid_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
