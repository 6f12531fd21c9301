"""Book Schemas — catalog payloads.

Invariants:
    - BookCreate.price: positive Decimal, at most 2 places (stored as minor units)
    - status defaults to published when omitted
    - seller_email lowercased
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.domain_types import BookStatus
from app.core.money import from_minor_units
from app.models.book import Book
from app.schemas.order import EMAIL_PATTERN, normalize_email


class BookCreate(BaseModel):
    """Add a book to the catalog."""
    title: str = Field(min_length=1, max_length=300)
    author: str | None = Field(None, max_length=200)
    description: str | None = Field(None, max_length=10_000)
    image_url: str | None = Field(None, max_length=1000)
    price: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    status: BookStatus = BookStatus.PUBLISHED
    seller_email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    seller_name: str | None = Field(None, max_length=200)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        return v

    @field_validator("seller_email", mode="before")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v) if isinstance(v, str) else v


class BookResponse(BaseModel):
    id: UUID
    title: str
    author: str | None = None
    description: str | None = None
    image_url: str | None = None
    price: Decimal
    status: BookStatus
    seller_email: str
    seller_name: str | None = None
    created_at: datetime

    @classmethod
    def from_model(cls, book: Book) -> "BookResponse":
        return cls(
            id=book.id,
            title=book.title,
            author=book.author,
            description=book.description,
            image_url=book.image_url,
            price=from_minor_units(book.price_minor),
            status=BookStatus(book.status),
            seller_email=book.seller_email,
            seller_name=book.seller_name,
            created_at=book.created_at,
        )
