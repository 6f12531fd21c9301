"""Payment Webhook Route — signature gate and idempotent application.

Tests cover:
    - Invalid / missing signature → 400 INVALID_SIGNATURE, order untouched
    - Valid checkout.session.completed → order paid + one invoice
    - Redelivery of the same event → acknowledged, no second invoice
    - Webhook for a cancelled order → acknowledged (applied=False), no invoice
    - Amount mismatch / unknown order → acknowledged, nothing applied
    - Txn already used by another order → acknowledged, second order stays unpaid
    - Signed payload that is not a JSON object → 400
    - Unrelated event types → acknowledged and ignored
"""

import json
from uuid import uuid4

from tests.services.stripe_fakes import BUYER_EMAIL, SELLER_EMAIL, sign_payload

WEBHOOK = "/api/v1/payments/webhook"


async def _place(client, book) -> str:
    res = await client.post("/api/v1/orders", json={
        "book_id": str(book.id), "buyer_email": BUYER_EMAIL, "buyer_name": "Reader",
        "phone": "555-0100", "address": "1 Library Lane",
    })
    return res.json()["id"]


async def _deliver(client, payload: str, header: str | None):
    headers = {"Content-Type": "application/json"}
    if header is not None:
        headers["Stripe-Signature"] = header
    return await client.post(WEBHOOK, content=payload.encode(), headers=headers)


async def _order(client, order_id) -> dict:
    return (await client.get(f"/api/v1/orders/{order_id}")).json()


async def _invoices(client) -> list:
    return (await client.get("/api/v1/invoices", params={"email": BUYER_EMAIL})).json()


async def test_invalid_signature_is_400_and_changes_nothing(client, seed_book, signer):
    order_id = await _place(client, seed_book)
    payload = signer.checkout_completed(order_id, 2500)

    res = await _deliver(client, payload, sign_payload(payload, secret="whsec_wrong"))

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_SIGNATURE"
    assert res.json()["error"]["message"] == "Webhook rejected"
    assert (await _order(client, order_id))["payment_status"] == "unpaid"
    assert await _invoices(client) == []


async def test_missing_signature_is_400(client, seed_book, signer):
    order_id = await _place(client, seed_book)
    res = await _deliver(client, signer.checkout_completed(order_id, 2500), None)
    assert res.status_code == 400


async def test_valid_webhook_marks_paid_and_invoices(client, seed_book, signer):
    order_id = await _place(client, seed_book)
    payload = signer.checkout_completed(order_id, 2500, payment_intent="pi_hook")

    res = await _deliver(client, payload, sign_payload(payload))

    assert res.status_code == 200
    assert res.json() == {"received": True, "applied": True}
    order = await _order(client, order_id)
    assert order["payment_status"] == "paid"
    assert order["provider_txn_id"] == "pi_hook"
    invoices = await _invoices(client)
    assert len(invoices) == 1
    assert invoices[0]["amount"] == "25.00"


async def test_redelivery_is_acknowledged_without_second_invoice(client, seed_book, signer):
    order_id = await _place(client, seed_book)
    payload = signer.checkout_completed(order_id, 2500)

    await _deliver(client, payload, sign_payload(payload))
    res = await _deliver(client, payload, sign_payload(payload))

    assert res.status_code == 200
    assert res.json() == {"received": True, "applied": False}
    assert len(await _invoices(client)) == 1


async def test_webhook_for_cancelled_order_is_acknowledged(client, seed_book, signer):
    order_id = await _place(client, seed_book)
    await client.patch(f"/api/v1/orders/{order_id}/status", json={
        "status": "cancelled", "actor_email": SELLER_EMAIL, "actor_role": "librarian",
    })
    payload = signer.checkout_completed(order_id, 2500)

    res = await _deliver(client, payload, sign_payload(payload))

    assert res.status_code == 200
    assert res.json()["applied"] is False
    order = await _order(client, order_id)
    assert order["status"] == "cancelled"
    assert order["payment_status"] == "unpaid"
    assert await _invoices(client) == []


async def test_amount_mismatch_is_acknowledged_not_applied(client, seed_book, signer):
    order_id = await _place(client, seed_book)
    payload = signer.checkout_completed(order_id, 100)

    res = await _deliver(client, payload, sign_payload(payload))

    assert res.status_code == 200
    assert res.json()["applied"] is False
    assert (await _order(client, order_id))["payment_status"] == "unpaid"


async def test_unknown_order_is_acknowledged(client, signer):
    payload = signer.checkout_completed(str(uuid4()), 2500)
    res = await _deliver(client, payload, sign_payload(payload))
    assert res.status_code == 200
    assert res.json()["applied"] is False


async def test_unrelated_event_type_is_ignored(client):
    payload = json.dumps({"id": "evt_9", "type": "customer.created", "data": {"object": {}}})
    res = await _deliver(client, payload, sign_payload(payload))
    assert res.status_code == 200
    assert res.json() == {"received": True, "applied": False}


async def test_txn_reused_for_another_order_is_acknowledged(client, seed_book, signer):
    first = await _place(client, seed_book)
    second = await _place(client, seed_book)
    paid = signer.checkout_completed(first, 2500, payment_intent="pi_reused")
    await _deliver(client, paid, sign_payload(paid))

    payload = signer.checkout_completed(second, 2500, payment_intent="pi_reused")
    res = await _deliver(client, payload, sign_payload(payload))

    assert res.status_code == 200
    assert res.json() == {"received": True, "applied": False}
    assert (await _order(client, second))["payment_status"] == "unpaid"
    assert len(await _invoices(client)) == 1


async def test_signed_non_object_payload_is_400(client):
    res = await _deliver(client, "[]", sign_payload("[]"))
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_SIGNATURE"
