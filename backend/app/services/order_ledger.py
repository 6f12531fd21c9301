"""Order Ledger — persistence of orders with per-order compare-and-set updates.

Invariants:
    - Status and payment changes are single conditional UPDATEs (WHERE id AND expected state)
    - rowcount 0 means the precondition went stale: caller re-reads, never blindly overwrites
    - Updates bypass the identity map (synchronize_session=False); callers reload() after
    - Lists are newest first
    - Never commits: the calling service owns the transaction boundary

Design Decisions:
    - Conditional UPDATE over SELECT ... FOR UPDATE: works identically on PostgreSQL and
      SQLite (tests), no lock held across awaits
    - Email lookups lowercase the key; schemas lowercase on write
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import OrderStatus, PaymentStatus
from app.models.order import Order

logger = logging.getLogger(__name__)


class OrderLedger:
    """SQLAlchemy-backed order store."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, order: Order) -> Order:
        self.db.add(order)
        await self.db.flush()
        return order

    async def get(self, order_id: UUID) -> Order | None:
        return await self.db.get(Order, order_id)

    async def get_by_provider_txn(self, provider_txn_id: str) -> Order | None:
        result = await self.db.execute(
            select(Order).where(Order.provider_txn_id == provider_txn_id).limit(1)
        )
        return result.scalars().first()

    async def reload(self, order: Order) -> Order:
        """Refresh an order from the database (after a conditional update)."""
        await self.db.refresh(order)
        return order

    async def compare_and_set_status(
        self, order_id: UUID, expected: OrderStatus, new: OrderStatus,
    ) -> bool:
        result = await self.db.execute(
            update(Order)
            .where(Order.id == order_id)
            .where(Order.status == expected.value)
            .values(status=new.value, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def compare_and_set_paid(
        self, order_id: UUID, provider_txn_id: str, paid_at: datetime,
    ) -> bool:
        result = await self.db.execute(
            update(Order)
            .where(Order.id == order_id)
            .where(Order.payment_status == PaymentStatus.UNPAID.value)
            .where(Order.status != OrderStatus.CANCELLED.value)
            .values(
                payment_status=PaymentStatus.PAID.value,
                provider_txn_id=provider_txn_id,
                paid_at=paid_at,
                updated_at=paid_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list_by_buyer(self, buyer_email: str) -> list[Order]:
        result = await self.db.execute(
            select(Order)
            .where(Order.buyer_email == buyer_email.strip().lower())
            .order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_by_seller(self, seller_email: str) -> list[Order]:
        result = await self.db.execute(
            select(Order)
            .where(Order.seller_email == seller_email.strip().lower())
            .order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_all(self, limit: int = 50, offset: int = 0) -> list[Order]:
        result = await self.db.execute(
            select(Order)
            .order_by(Order.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def delete_by_book(self, book_id: UUID) -> int:
        """Remove every order referencing a book. Returns rows deleted."""
        result = await self.db.execute(
            delete(Order)
            .where(Order.book_id == book_id)
            .execution_options(synchronize_session=False)
        )
        logger.info(
            f"Deleted {result.rowcount} order(s) for book",
            extra={"book_id": str(book_id)},
        )
        return result.rowcount
