"""Invoice Schemas — read-only invoice projection for API responses."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from app.core.money import from_minor_units
from app.models.invoice import Invoice


class InvoiceResponse(BaseModel):
    id: UUID
    order_id: UUID
    buyer_email: str
    book_title: str
    amount: Decimal
    provider_txn_id: str
    paid_at: datetime
    created_at: datetime

    @classmethod
    def from_model(cls, invoice: Invoice) -> "InvoiceResponse":
        return cls(
            id=invoice.id,
            order_id=invoice.order_id,
            buyer_email=invoice.buyer_email,
            book_title=invoice.book_title,
            amount=from_minor_units(invoice.amount_minor),
            provider_txn_id=invoice.provider_txn_id,
            paid_at=invoice.paid_at,
            created_at=invoice.created_at,
        )
