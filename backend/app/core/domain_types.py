"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - OrderId, BookId, InvoiceId wrap UUIDs — never use bare UUID in domain logic
    - Amounts inside the core are integer minor units (MinorAmount)
    - All valid states encoded as Enums — no raw string matching
    - Defaults (PENDING, UNPAID, PUBLISHED) are written at insert, never inferred on read

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and store in String columns without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

OrderId = NewType("OrderId", UUID)
BookId = NewType("BookId", UUID)
InvoiceId = NewType("InvoiceId", UUID)


# ─── Value Types ─────────────────────────────────────────────────

MinorAmount = NewType("MinorAmount", int)   # cents for a 2-decimal currency


# ─── Enums ───────────────────────────────────────────────────────

class OrderStatus(str, Enum):
    """Order lifecycle states — maps to orders.status."""
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment axis — maps to orders.payment_status."""
    UNPAID = "unpaid"
    PAID = "paid"


class ActorRole(str, Enum):
    """Who is asking. user = buyer, librarian = seller."""
    USER = "user"
    LIBRARIAN = "librarian"
    ADMIN = "admin"


class BookStatus(str, Enum):
    """Catalog visibility — only published books can be ordered."""
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"


class PaymentDecision(str, Enum):
    """Outcome of evaluating a payment confirmation against an order."""
    APPLY = "apply"
    DUPLICATE = "duplicate"
