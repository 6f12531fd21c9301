"""Order State Machine — service tests against a real (SQLite) ledger.

Tests cover:
    - create_order snapshots the book; later catalog edits do not move the price
    - create_order rejects missing / unpublished books
    - Full lifecycle pending→shipped→delivered then cancel fails
    - Rejected transitions leave the stored row unchanged
    - confirm_payment: invoice once, duplicate no-op, cancelled rejected, no invoice
    - 19.99 round-trips to the invoice exactly
    - A txn that paid one order cannot pay another, even after the first is deleted
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from app.core.domain_types import ActorRole, BookStatus, OrderStatus, PaymentStatus
from app.core.errors import (
    BookNotFoundError,
    ForbiddenError,
    InvalidTransitionError,
    OrderAlreadyPaidError,
    OrderNotFoundError,
    PaymentAmountMismatchError,
    PaymentOnCancelledOrderError,
    ProviderTxnAlreadyUsedError,
)
from app.core.order_transitions import Actor
from app.models.book import Book
from app.models.invoice import Invoice
from app.models.order import Order
from app.services.order_state_machine import OrderStateMachine

from tests.services.stripe_fakes import BUYER_EMAIL, SELLER_EMAIL

SELLER = Actor(SELLER_EMAIL, ActorRole.LIBRARIAN)
BUYER = Actor(BUYER_EMAIL, ActorRole.USER)


async def _place(machine: OrderStateMachine, book: Book) -> Order:
    return await machine.create_order(
        book_id=book.id,
        buyer_email=BUYER_EMAIL,
        buyer_name="Reader",
        phone="+1-555-0100",
        address="1 Library Lane",
    )


async def _invoice_count(db, order_id) -> int:
    result = await db.execute(
        select(func.count()).select_from(Invoice).where(Invoice.order_id == order_id),
    )
    return result.scalar_one()


# ─── create_order ────────────────────────────────────────────────

async def test_create_order_snapshots_book(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    order = await _place(machine, seed_book)

    assert order.status == OrderStatus.PENDING.value
    assert order.payment_status == PaymentStatus.UNPAID.value
    assert order.book_title == "Go in Practice"
    assert order.unit_amount_minor == 2500
    assert order.seller_email == SELLER_EMAIL
    assert order.provider_txn_id is None


async def test_price_does_not_float_with_catalog_edits(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    order = await _place(machine, seed_book)

    seed_book.price_minor = 9999
    seed_book.title = "Go in Practice, 2nd Edition"
    await test_db.commit()
    await test_db.refresh(order)

    assert order.unit_amount_minor == 2500
    assert order.book_title == "Go in Practice"


async def test_many_orders_for_same_book_are_unconstrained(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    orders = [await _place(machine, seed_book) for _ in range(5)]
    assert len({o.id for o in orders}) == 5


async def test_create_order_for_missing_book_fails(test_db):
    machine = OrderStateMachine(test_db)
    with pytest.raises(BookNotFoundError):
        await machine.create_order(
            book_id=uuid4(), buyer_email=BUYER_EMAIL, buyer_name="Reader",
            phone="555", address="nowhere",
        )


async def test_create_order_for_unpublished_book_fails(test_db, seed_book):
    seed_book.status = BookStatus.UNPUBLISHED.value
    await test_db.commit()
    machine = OrderStateMachine(test_db)
    with pytest.raises(BookNotFoundError):
        await _place(machine, seed_book)


# ─── transition_status ───────────────────────────────────────────

async def test_full_lifecycle_then_cancel_fails(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    order = await _place(machine, seed_book)

    order = await machine.transition_status(order.id, OrderStatus.SHIPPED, SELLER)
    assert order.status == "shipped"
    assert order.updated_at is not None

    order = await machine.transition_status(order.id, OrderStatus.DELIVERED, SELLER)
    assert order.status == "delivered"

    with pytest.raises(InvalidTransitionError):
        await machine.transition_status(order.id, OrderStatus.CANCELLED, SELLER)

    await test_db.refresh(order)
    assert order.status == "delivered"


async def test_rejected_transition_leaves_row_untouched(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    order = await _place(machine, seed_book)

    with pytest.raises(InvalidTransitionError):
        await machine.transition_status(order.id, OrderStatus.DELIVERED, SELLER)

    await test_db.refresh(order)
    assert order.status == "pending"
    assert order.updated_at is None


async def test_buyer_cancels_pending_order(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    order = await _place(machine, seed_book)
    order = await machine.transition_status(order.id, OrderStatus.CANCELLED, BUYER)
    assert order.status == "cancelled"


async def test_buyer_cannot_ship(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    order = await _place(machine, seed_book)
    with pytest.raises(ForbiddenError):
        await machine.transition_status(order.id, OrderStatus.SHIPPED, BUYER)


async def test_transition_unknown_order(test_db):
    machine = OrderStateMachine(test_db)
    with pytest.raises(OrderNotFoundError):
        await machine.transition_status(uuid4(), OrderStatus.SHIPPED, SELLER)


async def test_stale_read_loses_compare_and_set(test_db, seed_book):
    """Ledger CAS refuses an update whose expected status is no longer current."""
    machine = OrderStateMachine(test_db)
    order = await _place(machine, seed_book)
    await machine.transition_status(order.id, OrderStatus.SHIPPED, SELLER)

    applied = await machine.ledger.compare_and_set_status(
        order.id, OrderStatus.PENDING, OrderStatus.CANCELLED,
    )
    assert applied is False
    await test_db.refresh(order)
    assert order.status == "shipped"


# ─── confirm_payment ─────────────────────────────────────────────

async def test_confirm_payment_marks_paid_and_projects_invoice(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    order = await _place(machine, seed_book)

    result = await machine.confirm_payment(order.id, "pi_123", Decimal("25.00"))

    assert result.duplicate is False
    assert result.order.payment_status == "paid"
    assert result.order.provider_txn_id == "pi_123"
    assert result.order.paid_at is not None
    assert result.invoice.order_id == order.id
    assert result.invoice.amount_minor == 2500
    assert result.invoice.book_title == "Go in Practice"
    assert result.invoice.buyer_email == BUYER_EMAIL


async def test_confirm_payment_twice_is_idempotent(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    order = await _place(machine, seed_book)

    first = await machine.confirm_payment(order.id, "pi_123", Decimal("25.00"))
    second = await machine.confirm_payment(order.id, "pi_123", Decimal("25.00"))

    assert second.duplicate is True
    assert second.invoice.id == first.invoice.id
    assert second.order.payment_status == "paid"
    assert await _invoice_count(test_db, order.id) == 1


async def test_confirm_payment_with_other_txn_on_paid_order(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    order = await _place(machine, seed_book)
    await machine.confirm_payment(order.id, "pi_123", Decimal("25.00"))

    with pytest.raises(OrderAlreadyPaidError):
        await machine.confirm_payment(order.id, "pi_999", Decimal("25.00"))
    assert await _invoice_count(test_db, order.id) == 1


async def test_cancelled_order_cannot_be_paid(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    order = await _place(machine, seed_book)
    await machine.transition_status(order.id, OrderStatus.CANCELLED, SELLER)

    with pytest.raises(PaymentOnCancelledOrderError):
        await machine.confirm_payment(order.id, "pi_123", Decimal("25.00"))

    await test_db.refresh(order)
    assert order.payment_status == "unpaid"
    assert order.provider_txn_id is None
    assert await _invoice_count(test_db, order.id) == 0


async def test_amount_mismatch_leaves_order_unpaid(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    order = await _place(machine, seed_book)

    with pytest.raises(PaymentAmountMismatchError):
        await machine.confirm_payment(order.id, "pi_123", Decimal("1.00"))

    await test_db.refresh(order)
    assert order.payment_status == "unpaid"
    assert await _invoice_count(test_db, order.id) == 0


async def test_confirm_payment_unknown_order(test_db):
    machine = OrderStateMachine(test_db)
    with pytest.raises(OrderNotFoundError):
        await machine.confirm_payment(uuid4(), "pi_123", Decimal("1.00"))


async def test_19_99_round_trips_to_invoice(test_db):
    book = Book(
        title="Cheap Thrills", price_minor=1999, seller_email=SELLER_EMAIL,
    )
    test_db.add(book)
    await test_db.commit()

    machine = OrderStateMachine(test_db)
    order = await _place(machine, book)
    result = await machine.confirm_payment(order.id, "pi_1999", Decimal("19.99"))

    assert result.invoice.amount_minor == 1999


async def test_paid_order_may_still_be_cancelled(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    order = await _place(machine, seed_book)
    await machine.confirm_payment(order.id, "pi_123", Decimal("25.00"))

    order = await machine.transition_status(order.id, OrderStatus.CANCELLED, SELLER)

    assert order.status == "cancelled"
    assert order.payment_status == "paid"
    assert await _invoice_count(test_db, order.id) == 1


async def test_txn_that_paid_one_order_cannot_pay_another(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    first = await _place(machine, seed_book)
    second = await _place(machine, seed_book)
    await machine.confirm_payment(first.id, "pi_same", Decimal("25.00"))

    with pytest.raises(ProviderTxnAlreadyUsedError) as exc:
        await machine.confirm_payment(second.id, "pi_same", Decimal("25.00"))

    assert exc.value.http_status == 409
    await test_db.refresh(second)
    assert second.payment_status == "unpaid"
    assert second.provider_txn_id is None
    assert await _invoice_count(test_db, second.id) == 0
    assert await _invoice_count(test_db, first.id) == 1


async def test_txn_on_surviving_invoice_cannot_pay_new_order(test_db, seed_book):
    machine = OrderStateMachine(test_db)
    old = await _place(machine, seed_book)
    await machine.confirm_payment(old.id, "pi_gone", Decimal("25.00"))
    await machine.catalog.delete_book(seed_book.id)

    book = Book(title="Dune", price_minor=2500, seller_email=SELLER_EMAIL)
    test_db.add(book)
    await test_db.commit()
    fresh = await _place(machine, book)

    with pytest.raises(ProviderTxnAlreadyUsedError):
        await machine.confirm_payment(fresh.id, "pi_gone", Decimal("25.00"))
    await test_db.refresh(fresh)
    assert fresh.payment_status == "unpaid"
