"""Payment Event — typed, verified payment confirmation handed to the state machine.

Invariants:
    - Only constructed AFTER signature verification (webhook) or from a validated request (sync capture)
    - amount is Decimal major units; the state machine converts to minor units once
    - provider_txn_id is the idempotency key for confirmation and invoice projection
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


CHECKOUT_COMPLETED = "checkout.session.completed"


@dataclass(frozen=True)
class PaymentEvent:
    order_id: UUID
    provider_txn_id: str
    amount: Decimal
    event_type: str = CHECKOUT_COMPLETED
