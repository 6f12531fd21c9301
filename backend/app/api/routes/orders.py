"""Order Routes — placement, per-role views, status transitions, synchronous payment capture.

Invariants:
    - Routes never contain business logic (delegate to OrderStateMachine / OrderLedger)
    - Domain errors propagate to the global BookPorterError handler unchanged
    - Lists are newest first

Design Decisions:
    - Actor identity and role arrive in the request body: authentication is out of scope,
      the state machine still enforces who may request which edge
    - /my and /seller declared before /{order_id} so they are not parsed as UUIDs
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_order_state_machine, get_payment_service
from app.core.order_transitions import Actor
from app.schemas.invoice import InvoiceResponse
from app.schemas.order import (
    EMAIL_PATTERN,
    CheckoutResponse,
    OrderCreate,
    OrderResponse,
    PaymentConfirmRequest,
    PaymentResponse,
    StatusChangeRequest,
)
from app.services.order_state_machine import OrderStateMachine
from app.services.payments import PaymentService

router = APIRouter(prefix="/api/v1/orders", tags=["orders"])


@router.post(
    "", response_model=OrderResponse, status_code=status.HTTP_201_CREATED,
)
async def create_order(
    body: OrderCreate,
    machine: OrderStateMachine = Depends(get_order_state_machine),
):
    """Place an order for one published book."""
    order = await machine.create_order(
        book_id=body.book_id,
        buyer_email=body.buyer_email,
        buyer_name=body.buyer_name,
        phone=body.phone,
        address=body.address,
    )
    return OrderResponse.from_model(order)


@router.get("", response_model=list[OrderResponse])
async def list_all_orders(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    machine: OrderStateMachine = Depends(get_order_state_machine),
):
    """Admin view — every order."""
    orders = await machine.ledger.list_all(limit=limit, offset=offset)
    return [OrderResponse.from_model(o) for o in orders]


@router.get("/my", response_model=list[OrderResponse])
async def list_my_orders(
    email: str = Query(..., pattern=EMAIL_PATTERN),
    machine: OrderStateMachine = Depends(get_order_state_machine),
):
    """Buyer view."""
    orders = await machine.ledger.list_by_buyer(email)
    return [OrderResponse.from_model(o) for o in orders]


@router.get("/seller", response_model=list[OrderResponse])
async def list_seller_orders(
    email: str = Query(..., pattern=EMAIL_PATTERN),
    machine: OrderStateMachine = Depends(get_order_state_machine),
):
    """Librarian view — orders for books this seller owns."""
    orders = await machine.ledger.list_by_seller(email)
    return [OrderResponse.from_model(o) for o in orders]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    machine: OrderStateMachine = Depends(get_order_state_machine),
):
    order = await machine.get_order(order_id)
    return OrderResponse.from_model(order)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def change_status(
    order_id: UUID,
    body: StatusChangeRequest,
    machine: OrderStateMachine = Depends(get_order_state_machine),
):
    """Ship, deliver or cancel an order."""
    order = await machine.transition_status(
        order_id, body.status, Actor(email=body.actor_email, role=body.actor_role),
    )
    return OrderResponse.from_model(order)


@router.post("/{order_id}/payments", response_model=PaymentResponse)
async def confirm_payment(
    order_id: UUID,
    body: PaymentConfirmRequest,
    machine: OrderStateMachine = Depends(get_order_state_machine),
):
    """Synchronous capture path. Repeating the same txn id is a no-op."""
    result = await machine.confirm_payment(
        order_id, body.provider_txn_id, body.amount,
    )
    return PaymentResponse(
        order=OrderResponse.from_model(result.order),
        invoice=InvoiceResponse.from_model(result.invoice),
        duplicate=result.duplicate,
    )


@router.post("/{order_id}/checkout", response_model=CheckoutResponse)
async def create_checkout(
    order_id: UUID,
    payments: PaymentService = Depends(get_payment_service),
):
    """Start a hosted checkout; the client redirects to checkout_url."""
    url = await payments.start_checkout(order_id)
    return CheckoutResponse(checkout_url=url)
