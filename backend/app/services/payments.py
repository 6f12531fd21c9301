"""Payment Service — checkout creation and webhook ingestion around the state machine.

Invariants:
    - Checkout only for orders open for payment (not cancelled, not paid)
    - Webhook body reaches the gateway byte-for-byte; verification precedes any parsing
    - InvalidSignatureError propagates (generic 400) with no state touched
    - At most one confirm_payment per webhook delivery
    - Permanent domain rejections are logged and acknowledged (no mutation) so the
      provider stops redelivering; infrastructure errors propagate so it retries

Design Decisions:
    - Gateway injected (PaymentGateway protocol): routes pass the lifespan-scoped Stripe
      gateway, tests pass a fake
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    OrderAlreadyPaidError, OrderNotFoundError, PaymentAmountMismatchError,
    PaymentOnCancelledOrderError, ProviderTxnAlreadyUsedError,
)
from app.core.order_transitions import check_payable
from app.core.repository_protocols import PaymentGateway
from app.services.order_state_machine import OrderStateMachine

logger = logging.getLogger(__name__)

# Rejections that a redelivery can never fix
_PERMANENT_REJECTIONS = (
    OrderNotFoundError,
    PaymentOnCancelledOrderError,
    OrderAlreadyPaidError,
    PaymentAmountMismatchError,
    ProviderTxnAlreadyUsedError,
)


class PaymentService:
    """Bridges the payment gateway and the order state machine."""

    def __init__(
        self,
        db: AsyncSession,
        gateway: PaymentGateway,
        orders: OrderStateMachine | None = None,
    ):
        self.gateway = gateway
        self.orders = orders or OrderStateMachine(db)

    async def start_checkout(self, order_id: UUID) -> str:
        order = await self.orders.get_order(order_id)
        check_payable(order)
        return await self.gateway.create_checkout(order)

    async def handle_webhook(
        self, raw_body: bytes, signature_header: str | None,
    ) -> dict:
        event = self.gateway.verify_and_parse_event(raw_body, signature_header)
        if event is None:
            return {"received": True, "applied": False}

        try:
            result = await self.orders.confirm_payment(
                event.order_id, event.provider_txn_id, event.amount,
            )
        except _PERMANENT_REJECTIONS as e:
            logger.error(
                f"Webhook payment not applied: {e.message}",
                extra={
                    "error_code": e.code,
                    "order_id": str(event.order_id),
                    "provider_txn_id": event.provider_txn_id,
                    "event_type": event.event_type,
                },
            )
            return {"received": True, "applied": False}

        return {"received": True, "applied": not result.duplicate}
