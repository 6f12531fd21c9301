"""Book ORM — catalog record the order core reads from.

Invariants:
    - price_minor is integer minor units (19.99 stored as 1999)
    - status defaults to "published" at insert; listing filters on it explicitly
    - seller_email identifies the librarian who owns the book

Design Decisions:
    - Catalog is external to the order core: orders snapshot what they need and never
      follow later edits (ADR: price must not float)
    - No ORM relationship to orders: cascade is an explicit ledger operation
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, BigInteger, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.core.domain_types import BookStatus
from app.db.base import Base


class Book(Base):
    """Catalog entry."""
    __tablename__ = "books"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    author: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    price_minor: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookStatus.PUBLISHED.value,
    )
    seller_email: Mapped[str] = mapped_column(
        String(320), nullable=False, index=True,
    )
    seller_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
