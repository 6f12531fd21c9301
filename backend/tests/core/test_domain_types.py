"""Domain Types — verifies identity wrappers and enum wire values.

Tests:
    - NewType wrappers are callable and transparent
    - Enums serialize to the lowercase strings stored in the database
    - OrderStatus has exactly four members (the lifecycle is closed)
"""

from uuid import uuid4

from app.core.domain_types import (
    ActorRole, BookId, BookStatus, InvoiceId, MinorAmount, OrderId,
    OrderStatus, PaymentDecision, PaymentStatus,
)


def test_identity_types_wrap_uuid():
    uid = uuid4()
    assert OrderId(uid) == uid
    assert BookId(uid) == uid
    assert InvoiceId(uid) == uid


def test_minor_amount_is_int():
    assert MinorAmount(1999) == 1999


def test_order_status_values():
    assert [s.value for s in OrderStatus] == [
        "pending", "shipped", "delivered", "cancelled",
    ]


def test_payment_status_values():
    assert {s.value for s in PaymentStatus} == {"unpaid", "paid"}


def test_enums_compare_equal_to_strings():
    assert OrderStatus.SHIPPED == "shipped"
    assert ActorRole.LIBRARIAN == "librarian"
    assert BookStatus("unpublished") is BookStatus.UNPUBLISHED


def test_payment_decision_members():
    assert set(PaymentDecision) == {PaymentDecision.APPLY, PaymentDecision.DUPLICATE}
