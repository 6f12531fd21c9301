"""Order State Machine Rules — legal status edges, actor permissions, payment decisions.

Invariants:
    - Status edges: pending→shipped, shipped→delivered, pending→cancelled, shipped→cancelled
    - delivered and cancelled are terminal (no outgoing edges)
    - Requesting the current status is not an edge
    - unpaid→paid only while status != cancelled; any confirmation on a cancelled
      order is rejected, even a redelivery of the txn that paid it before cancellation
    - Every function is PURE: it raises a typed error or returns a decision, never mutates the order
    - Shell applies the mutation via the ledger's compare-and-set

Design Decisions:
    - Check order for transitions: party to order (Forbidden) → edge legality
      (InvalidTransition) → role allowed for edge (Forbidden). Terminal states therefore
      reject every party with InvalidTransition.
    - Same txn id on a paid order is a DUPLICATE decision, not an error (idempotent delivery)
    - Cancel after payment is allowed here; refund policy lives outside the machine
"""

from dataclasses import dataclass

from app.core.domain_types import (
    ActorRole, MinorAmount, OrderStatus, PaymentDecision, PaymentStatus,
)
from app.core.errors import (
    ErrorContext,
    ForbiddenError,
    InvalidTransitionError,
    OrderAlreadyPaidError,
    PaymentAmountMismatchError,
    PaymentOnCancelledOrderError,
)
from app.core.repository_protocols import OrderLike


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
    s for s, targets in ALLOWED_TRANSITIONS.items() if not targets
)

# Buyers may only withdraw an order nobody has shipped yet
_BUYER_EDGES: frozenset[tuple[OrderStatus, OrderStatus]] = frozenset({
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
})


@dataclass(frozen=True)
class Actor:
    """Identity + role of whoever requests a change."""
    email: str
    role: ActorRole


def is_legal_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS[current]


def _same_identity(a: str, b: str) -> bool:
    return a.strip().lower() == b.strip().lower()


def check_actor_is_party(order: OrderLike, actor: Actor) -> None:
    """Buyer must own the order, librarian must be its seller, admin always passes."""
    ctx = ErrorContext(order_id=str(order.id))
    if actor.role == ActorRole.ADMIN:
        return
    if actor.role == ActorRole.USER and not _same_identity(order.buyer_email, actor.email):
        raise ForbiddenError("Order belongs to another buyer", ctx)
    if actor.role == ActorRole.LIBRARIAN and not _same_identity(order.seller_email, actor.email):
        raise ForbiddenError("Order belongs to another seller", ctx)


def validate_transition(
    order: OrderLike, requested: OrderStatus, actor: Actor,
) -> OrderStatus:
    """Validate a status change request. Returns the status it was validated against."""
    current = OrderStatus(order.status)
    ctx = ErrorContext(order_id=str(order.id))

    check_actor_is_party(order, actor)

    if not is_legal_transition(current, requested):
        raise InvalidTransitionError(current.value, requested.value, ctx)

    if actor.role == ActorRole.USER and (current, requested) not in _BUYER_EDGES:
        raise ForbiddenError(
            f"Buyers may only cancel pending orders (order is '{current.value}')", ctx,
        )

    return current


def check_payable(order: OrderLike) -> None:
    """Checkout precondition: order open for payment."""
    if order.status == OrderStatus.CANCELLED.value:
        raise PaymentOnCancelledOrderError(str(order.id))
    if order.payment_status == PaymentStatus.PAID.value:
        raise OrderAlreadyPaidError(str(order.id))


def evaluate_payment(
    order: OrderLike, provider_txn_id: str, amount_minor: MinorAmount,
) -> PaymentDecision:
    """Decide whether a payment confirmation applies, is a duplicate, or is rejected."""
    order_id = str(order.id)
    ctx = ErrorContext(order_id=order_id, provider_txn_id=provider_txn_id)

    if order.status == OrderStatus.CANCELLED.value:
        raise PaymentOnCancelledOrderError(order_id, ctx)

    if order.payment_status == PaymentStatus.PAID.value:
        if order.provider_txn_id == provider_txn_id:
            return PaymentDecision.DUPLICATE
        raise OrderAlreadyPaidError(order_id, ctx)

    if amount_minor != order.unit_amount_minor:
        raise PaymentAmountMismatchError(order.unit_amount_minor, amount_minor, ctx)

    return PaymentDecision.APPLY
