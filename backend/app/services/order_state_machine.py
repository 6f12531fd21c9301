"""Order State Machine — the single authority that applies order status and payment changes.

Invariants:
    - Every change: read → pure validation (core/order_transitions.py) → compare-and-set
    - A lost compare-and-set re-reads and fails against the fresh state; nothing is overwritten
    - confirm_payment marks the order paid AND projects its invoice in one transaction
    - Same provider txn confirmed twice → one invoice, duplicate=True, no error
    - A provider txn that already paid another order is rejected before any write
    - Cancelled orders are never marked paid and never get an invoice
    - Callers (user route, librarian route, webhook) all go through this class

Design Decisions:
    - Impureim sandwich: IO here, rules in core — the rules are testable without a DB
    - Cancelling a paid order is a ledger-only change; no refund call is made and the
      order is logged for manual refund (ADR: refunds are out of scope)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import OrderStatus, PaymentDecision, PaymentStatus
from app.core.errors import (
    BookNotFoundError, ConcurrencyError, ErrorContext, InvalidTransitionError,
    OrderNotFoundError, ProviderTxnAlreadyUsedError,
)
from app.core.money import to_minor_units
from app.core.order_transitions import Actor, evaluate_payment, validate_transition
from app.models.invoice import Invoice
from app.models.order import Order
from app.services.catalog import CatalogService
from app.services.invoice_projector import InvoiceProjector
from app.services.order_ledger import OrderLedger

logger = logging.getLogger(__name__)


@dataclass
class PaymentResult:
    """Outcome of confirm_payment."""
    order: Order
    invoice: Invoice
    duplicate: bool


class OrderStateMachine:
    """Creates orders and drives their status / payment transitions."""

    def __init__(
        self,
        db: AsyncSession,
        ledger: OrderLedger | None = None,
        catalog: CatalogService | None = None,
        projector: InvoiceProjector | None = None,
    ):
        self.db = db
        self.ledger = ledger or OrderLedger(db)
        self.catalog = catalog or CatalogService(db, self.ledger)
        self.projector = projector or InvoiceProjector(db)

    async def get_order(self, order_id: UUID) -> Order:
        order = await self.ledger.get(order_id)
        if not order:
            raise OrderNotFoundError(str(order_id))
        return order

    # ─── Creation ────────────────────────────────────────────────

    async def create_order(
        self,
        *,
        book_id: UUID,
        buyer_email: str,
        buyer_name: str,
        phone: str,
        address: str,
    ) -> Order:
        """Snapshot the book and open a pending, unpaid order. No stock reservation."""
        book = await self.catalog.get_orderable(book_id)
        if not book:
            raise BookNotFoundError(str(book_id))

        order = Order(
            book_id=book.id,
            book_title=book.title,
            unit_amount_minor=book.price_minor,
            seller_email=book.seller_email,
            seller_name=book.seller_name,
            buyer_email=buyer_email,
            buyer_name=buyer_name,
            phone=phone,
            address=address,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.UNPAID.value,
        )
        await self.ledger.add(order)
        await self.db.commit()
        logger.info(
            "Order created",
            extra={"order_id": str(order.id), "book_id": str(book.id)},
        )
        return order

    # ─── Status axis ─────────────────────────────────────────────

    async def transition_status(
        self, order_id: UUID, requested: OrderStatus, actor: Actor,
    ) -> Order:
        order = await self.get_order(order_id)
        expected = validate_transition(order, requested, actor)

        applied = await self.ledger.compare_and_set_status(
            order.id, expected, requested,
        )
        if not applied:
            order = await self.ledger.reload(order)
            logger.warning(
                f"Lost status race: wanted {expected.value}→{requested.value}, "
                f"found {order.status}",
                extra={"order_id": str(order.id), "actor_role": actor.role.value},
            )
            raise InvalidTransitionError(
                order.status, requested.value,
                ErrorContext(
                    order_id=str(order.id),
                    user_message=(
                        f"Order changed concurrently and is now '{order.status}'; "
                        "reload it and retry if the change still applies"
                    ),
                ),
            )

        await self.db.commit()
        order = await self.ledger.reload(order)
        logger.info(
            f"Order {expected.value}→{requested.value}",
            extra={"order_id": str(order.id), "actor_role": actor.role.value},
        )
        if (
            requested == OrderStatus.CANCELLED
            and order.payment_status == PaymentStatus.PAID.value
        ):
            logger.warning(
                "Paid order cancelled; refund must be issued manually",
                extra={"order_id": str(order.id), "provider_txn_id": order.provider_txn_id},
            )
        return order

    # ─── Payment axis ────────────────────────────────────────────

    async def confirm_payment(
        self, order_id: UUID, provider_txn_id: str, amount: Decimal,
    ) -> PaymentResult:
        order = await self.get_order(order_id)
        amount_minor = to_minor_units(amount)

        decision = evaluate_payment(order, provider_txn_id, amount_minor)
        if decision == PaymentDecision.DUPLICATE:
            return await self._duplicate(order, provider_txn_id)
        await self._check_txn_unclaimed(order.id, provider_txn_id)

        paid_at = datetime.now(timezone.utc)
        applied = await self.ledger.compare_and_set_paid(
            order.id, provider_txn_id, paid_at,
        )
        if not applied:
            # Someone else moved the order first: judge again against fresh state
            order = await self.ledger.reload(order)
            decision = evaluate_payment(order, provider_txn_id, amount_minor)
            if decision == PaymentDecision.DUPLICATE:
                return await self._duplicate(order, provider_txn_id)
            raise ConcurrencyError(
                "Order changed while confirming payment",
                ErrorContext(order_id=str(order.id), provider_txn_id=provider_txn_id),
            )

        order = await self.ledger.reload(order)
        invoice = await self.projector.project(order, provider_txn_id, paid_at)
        await self.db.commit()
        logger.info(
            "Payment confirmed",
            extra={"order_id": str(order.id), "provider_txn_id": provider_txn_id},
        )
        return PaymentResult(order=order, invoice=invoice, duplicate=False)

    async def _check_txn_unclaimed(self, order_id: UUID, provider_txn_id: str) -> None:
        """A provider txn settles one order; invoices outlive deleted orders, so check both."""
        owner = await self.ledger.get_by_provider_txn(provider_txn_id)
        owner_id = owner.id if owner else None
        if owner_id is None:
            invoice = await self.projector.find_by_txn(provider_txn_id)
            owner_id = invoice.order_id if invoice else None
        if owner_id is not None and owner_id != order_id:
            raise ProviderTxnAlreadyUsedError(str(order_id), provider_txn_id)

    async def _duplicate(self, order: Order, provider_txn_id: str) -> PaymentResult:
        logger.info(
            "Duplicate payment confirmation ignored",
            extra={"order_id": str(order.id), "provider_txn_id": provider_txn_id},
        )
        invoice = await self.projector.project(order, provider_txn_id, order.paid_at)
        await self.db.commit()
        return PaymentResult(order=order, invoice=invoice, duplicate=True)
