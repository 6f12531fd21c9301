"""Order Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - OrderCreate: book_id UUID, buyer contact fields stripped and non-empty
    - Emails lowercased at the boundary: ledger lookups compare lowercase
    - StatusChangeRequest.status is an OrderStatus; actor_role an ActorRole
    - PaymentConfirmRequest.amount is a positive Decimal with at most 2 places
    - Responses expose amounts as Decimal major units, never minor units

Design Decisions:
    - One explicit request model per operation, no dict bodies
    - from_model() classmethods keep minor→major conversion in one place
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.domain_types import ActorRole, OrderStatus, PaymentStatus
from app.core.money import from_minor_units
from app.models.order import Order
from app.schemas.invoice import InvoiceResponse

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def normalize_email(v: str) -> str:
    return v.strip().lower()


class OrderCreate(BaseModel):
    """Order placement — buyer identity + delivery contact."""
    book_id: UUID
    buyer_email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    buyer_name: str = Field(min_length=1, max_length=200)
    phone: str = Field(min_length=3, max_length=40)
    address: str = Field(min_length=3, max_length=2000)

    @field_validator("buyer_email", mode="before")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v) if isinstance(v, str) else v

    @field_validator("buyer_name", "phone", "address")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty or whitespace")
        return v


class StatusChangeRequest(BaseModel):
    """Status transition — who asks and what they want."""
    status: OrderStatus
    actor_email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    actor_role: ActorRole

    @field_validator("actor_email", mode="before")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v) if isinstance(v, str) else v


class PaymentConfirmRequest(BaseModel):
    """Synchronous capture result reported by the client."""
    provider_txn_id: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)


class OrderResponse(BaseModel):
    """Order response — public-facing order data."""
    id: UUID
    book_id: UUID
    book_title: str
    amount: Decimal
    seller_email: str
    seller_name: str | None = None
    buyer_email: str
    buyer_name: str
    phone: str
    address: str
    status: OrderStatus
    payment_status: PaymentStatus
    provider_txn_id: str | None = None
    paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            book_id=order.book_id,
            book_title=order.book_title,
            amount=from_minor_units(order.unit_amount_minor),
            seller_email=order.seller_email,
            seller_name=order.seller_name,
            buyer_email=order.buyer_email,
            buyer_name=order.buyer_name,
            phone=order.phone,
            address=order.address,
            status=OrderStatus(order.status),
            payment_status=PaymentStatus(order.payment_status),
            provider_txn_id=order.provider_txn_id,
            paid_at=order.paid_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PaymentResponse(BaseModel):
    """confirm_payment result. duplicate=True means nothing changed."""
    order: OrderResponse
    invoice: InvoiceResponse
    duplicate: bool


class CheckoutResponse(BaseModel):
    checkout_url: str
