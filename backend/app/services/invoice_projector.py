"""Invoice Projector — exactly-once invoice derivation from a confirmed payment.

Invariants:
    - project() is idempotent: an invoice for the same order OR the same provider txn
      is returned as-is, never duplicated
    - Invoice fields come from the order's creation snapshot (title, amount, buyer)
    - Never commits: runs inside the payment confirmation's transaction
    - Buyer listing sorted by paid_at descending

Design Decisions:
    - Application-level check first, UNIQUE(order_id) / UNIQUE(provider_txn_id) as the
      structural backstop: a racing duplicate insert aborts its whole transaction and
      the redelivered confirmation then observes the winner as a duplicate
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.invoice import Invoice
from app.models.order import Order

logger = logging.getLogger(__name__)


class InvoiceProjector:
    """Creates invoices once per payment; reads them per buyer."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_for_payment(
        self, order_id: UUID, provider_txn_id: str,
    ) -> Invoice | None:
        result = await self.db.execute(
            select(Invoice)
            .where(or_(
                Invoice.order_id == order_id,
                Invoice.provider_txn_id == provider_txn_id,
            ))
            .limit(1)
        )
        return result.scalars().first()

    async def find_by_txn(self, provider_txn_id: str) -> Invoice | None:
        result = await self.db.execute(
            select(Invoice).where(Invoice.provider_txn_id == provider_txn_id).limit(1)
        )
        return result.scalars().first()

    async def project(
        self, order: Order, provider_txn_id: str, paid_at: datetime,
    ) -> Invoice:
        existing = await self.find_for_payment(order.id, provider_txn_id)
        if existing:
            logger.info(
                "Invoice already projected; skipping",
                extra={"order_id": str(order.id), "provider_txn_id": provider_txn_id},
            )
            return existing

        invoice = Invoice(
            order_id=order.id,
            buyer_email=order.buyer_email,
            book_title=order.book_title,
            amount_minor=order.unit_amount_minor,
            provider_txn_id=provider_txn_id,
            paid_at=paid_at,
        )
        self.db.add(invoice)
        await self.db.flush()
        logger.info(
            "Invoice projected",
            extra={"order_id": str(order.id), "provider_txn_id": provider_txn_id},
        )
        return invoice

    async def list_for_buyer(self, buyer_email: str) -> list[Invoice]:
        result = await self.db.execute(
            select(Invoice)
            .where(Invoice.buyer_email == buyer_email.strip().lower())
            .order_by(Invoice.paid_at.desc())
        )
        return list(result.scalars().all())
