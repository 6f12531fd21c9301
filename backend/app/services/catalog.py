"""Catalog — book reads for the order core plus the thin catalog endpoints.

Invariants:
    - Only published books are orderable (get_orderable)
    - Listing defaults to status=published, newest first, optional limit (0 = no limit)
    - add_book writes status (default published) and created_at at insert
    - delete_book removes the book's orders in the same transaction (cascade via ledger)

Design Decisions:
    - Cascade is explicit (OrderLedger.delete_by_book) rather than a DB FK cascade:
      it stays visible in one place and is logged
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import BookStatus
from app.core.errors import BookNotFoundError
from app.core.money import to_minor_units
from app.models.book import Book
from app.schemas.book import BookCreate
from app.services.order_ledger import OrderLedger

logger = logging.getLogger(__name__)


class CatalogService:
    """Reads and administers catalog records."""

    def __init__(self, db: AsyncSession, ledger: OrderLedger | None = None):
        self.db = db
        self.ledger = ledger or OrderLedger(db)

    async def get(self, book_id: UUID) -> Book:
        book = await self.db.get(Book, book_id)
        if not book:
            raise BookNotFoundError(str(book_id))
        return book

    async def get_orderable(self, book_id: UUID) -> Book | None:
        book = await self.db.get(Book, book_id)
        if book is None or book.status != BookStatus.PUBLISHED.value:
            return None
        return book

    async def list_books(
        self, status: BookStatus = BookStatus.PUBLISHED, limit: int = 0,
    ) -> list[Book]:
        query = (
            select(Book)
            .where(Book.status == status.value)
            .order_by(Book.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def add_book(self, body: BookCreate) -> Book:
        book = Book(
            title=body.title,
            author=body.author,
            description=body.description,
            image_url=body.image_url,
            price_minor=to_minor_units(body.price),
            status=body.status.value,
            seller_email=body.seller_email,
            seller_name=body.seller_name,
        )
        self.db.add(book)
        await self.db.commit()
        await self.db.refresh(book)
        logger.info("Book added", extra={"book_id": str(book.id)})
        return book

    async def delete_book(self, book_id: UUID) -> int:
        """Delete a book and its orders. Returns the number of orders removed."""
        book = await self.get(book_id)
        removed = await self.ledger.delete_by_book(book.id)
        await self.db.delete(book)
        await self.db.commit()
        logger.info(
            f"Book deleted with {removed} order(s)", extra={"book_id": str(book_id)},
        )
        return removed
