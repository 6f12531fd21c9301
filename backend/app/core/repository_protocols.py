"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE these protocols are never async themselves —
      the shell orchestrates the async calls around the pure logic
    - Compare-and-set methods return bool: False means the precondition went stale
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from app.core.domain_types import OrderStatus
from app.core.payment_event import PaymentEvent


class OrderLike(Protocol):
    """Structural contract for Order objects passed to the pure rules.

    Avoids coupling core rules to the ORM model while giving mypy
    real type information (unlike Any).
    """
    id: UUID
    book_id: UUID
    book_title: str
    unit_amount_minor: int
    seller_email: str
    buyer_email: str
    status: str
    payment_status: str
    provider_txn_id: str | None
    paid_at: datetime | None


class BookLike(Protocol):
    """Fields the core reads from a catalog record."""
    id: UUID
    title: str
    price_minor: int
    seller_email: str
    seller_name: str | None
    status: str


class CatalogReader(Protocol):
    """Contract for catalog reads — the core reserves nothing."""
    async def get_orderable(self, book_id: UUID) -> BookLike | None: ...


class OrderLedger(Protocol):
    """Contract for order persistence — implemented by shell."""
    async def add(self, order: OrderLike) -> OrderLike: ...
    async def get(self, order_id: UUID) -> OrderLike | None: ...
    async def get_by_provider_txn(self, provider_txn_id: str) -> OrderLike | None: ...
    async def reload(self, order: OrderLike) -> OrderLike: ...
    async def compare_and_set_status(
        self, order_id: UUID, expected: OrderStatus, new: OrderStatus,
    ) -> bool: ...
    async def compare_and_set_paid(
        self, order_id: UUID, provider_txn_id: str, paid_at: datetime,
    ) -> bool: ...
    async def list_by_buyer(self, buyer_email: str) -> list[OrderLike]: ...
    async def list_by_seller(self, seller_email: str) -> list[OrderLike]: ...
    async def delete_by_book(self, book_id: UUID) -> int: ...


class InvoiceLike(Protocol):
    """Fields callers read from a projected invoice."""
    id: UUID
    order_id: UUID
    provider_txn_id: str
    amount_minor: int


class InvoiceStore(Protocol):
    """Contract for invoice persistence — lookups drive projection idempotency."""
    async def find_for_payment(
        self, order_id: UUID, provider_txn_id: str,
    ) -> InvoiceLike | None: ...
    async def add(self, invoice: InvoiceLike) -> InvoiceLike: ...


class PaymentGateway(Protocol):
    """Contract for the external payment provider."""
    async def create_checkout(self, order: OrderLike) -> str: ...
    def verify_and_parse_event(
        self, raw_body: bytes, signature_header: str,
    ) -> PaymentEvent | None: ...
