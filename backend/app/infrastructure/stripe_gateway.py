"""Stripe Payment Gateway — Checkout session creation and signature-verified webhook parsing.

Invariants:
    - Webhook signature verified over the raw, untouched body BEFORE any field is read
    - Unverifiable payloads raise InvalidSignatureError and never reach the state machine
    - Only checkout.session.completed with payment_status=paid yields a PaymentEvent;
      every other event type returns None (acknowledged, ignored)
    - Checkout amount sent as integer minor units; order id carried in metadata
    - All Stripe failures mapped to GatewayUnavailableError (core/errors.py) — no retry here

Design Decisions:
    - Stripe SDK is synchronous: checkout creation runs in a worker thread so the event
      loop is never blocked (ADR: async shell around sync SDK)
    - stripe module injected (stripe_client): tests substitute a fake without patching globals
    - verify_header + json.loads on the verified bytes instead of construct_event: the
      parsed dict is independent of StripeObject's mapping behavior across SDK versions
"""

import asyncio
import json
import logging
from decimal import Decimal
from uuid import UUID

import stripe

from app.core.errors import (
    ErrorContext, GatewayUnavailableError, InvalidSignatureError,
)
from app.core.money import from_minor_units
from app.core.payment_event import CHECKOUT_COMPLETED, PaymentEvent
from app.core.repository_protocols import OrderLike

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Stripe-Signature"


class StripePaymentGateway:
    """Wraps the Stripe SDK with error mapping and webhook verification."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        currency: str = "usd",
        client_url: str = "http://localhost:5173",
        tolerance_seconds: int = 300,
        stripe_client=stripe,
    ):
        self._stripe = stripe_client
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency
        self.client_url = client_url.rstrip("/")
        self.tolerance_seconds = tolerance_seconds

    # ─── Checkout ────────────────────────────────────────────────

    async def create_checkout(self, order: OrderLike) -> str:
        """Create a Checkout Session for the order and return its redirect URL."""
        ctx = ErrorContext(order_id=str(order.id))
        try:
            session = await asyncio.to_thread(
                self._stripe.checkout.Session.create,
                api_key=self.api_key,
                **self._checkout_params(order),
            )
        except stripe.StripeError as e:
            logger.error(
                f"Stripe checkout failed: {e}",
                extra={"order_id": str(order.id), "error_code": type(e).__name__},
            )
            raise GatewayUnavailableError(str(e), type(e).__name__, context=ctx)
        except OSError as e:
            logger.error(
                f"Stripe transport failure: {e}", extra={"order_id": str(order.id)},
            )
            raise GatewayUnavailableError(str(e), "transport", context=ctx)

        url = getattr(session, "url", None)
        if not url:
            raise GatewayUnavailableError(
                "checkout session has no redirect url", "malformed_response",
                context=ctx,
            )
        logger.info(
            "Checkout session created",
            extra={"order_id": str(order.id), "provider_txn_id": getattr(session, "id", None)},
        )
        return url

    def _checkout_params(self, order: OrderLike) -> dict:
        order_id = str(order.id)
        return {
            "mode": "payment",
            "line_items": [{
                "price_data": {
                    "currency": self.currency,
                    "unit_amount": order.unit_amount_minor,
                    "product_data": {"name": order.book_title},
                },
                "quantity": 1,
            }],
            "customer_email": order.buyer_email,
            "client_reference_id": order_id,
            "metadata": {"order_id": order_id},
            "success_url": (
                f"{self.client_url}/payment/success?session_id={{CHECKOUT_SESSION_ID}}"
            ),
            "cancel_url": f"{self.client_url}/payment/cancelled?order_id={order_id}",
        }

    # ─── Webhook ─────────────────────────────────────────────────

    def verify_and_parse_event(
        self, raw_body: bytes, signature_header: str | None,
    ) -> PaymentEvent | None:
        """Verify signature, then parse. Returns None for event types we ignore."""
        if not signature_header:
            logger.warning("Webhook rejected: missing signature header")
            raise InvalidSignatureError()
        try:
            payload = raw_body.decode("utf-8")
            self._stripe.WebhookSignature.verify_header(
                payload, signature_header, self.webhook_secret,
                tolerance=self.tolerance_seconds,
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            logger.warning(f"Webhook rejected: signature verification failed ({e})")
            raise InvalidSignatureError()

        try:
            event = json.loads(payload)
        except json.JSONDecodeError:
            # Signed but malformed: the provider will not send this; treat as untrusted
            logger.warning("Webhook rejected: verified payload is not JSON")
            raise InvalidSignatureError()
        if not isinstance(event, dict):
            logger.warning("Webhook rejected: verified payload is not a JSON object")
            raise InvalidSignatureError()

        event_type = event.get("type", "unknown")
        logger.info(
            "Webhook received",
            extra={"event_type": event_type, "provider_txn_id": event.get("id")},
        )
        if event_type != CHECKOUT_COMPLETED:
            return None
        return _parse_checkout_completed(event)


def _parse_checkout_completed(event: dict) -> PaymentEvent | None:
    """Extract a PaymentEvent from a checkout.session.completed event."""
    data = event.get("data")
    session = data.get("object") if isinstance(data, dict) else None
    if not isinstance(session, dict):
        logger.warning(
            "Checkout completed event has no session object; ignoring",
            extra={"event_type": CHECKOUT_COMPLETED},
        )
        return None
    if session.get("payment_status") != "paid":
        # Delayed payment methods complete checkout before funds are captured
        logger.info(
            "Checkout completed without captured funds; ignoring",
            extra={"event_type": CHECKOUT_COMPLETED},
        )
        return None

    metadata = session.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    order_id = metadata.get("order_id") or session.get("client_reference_id")
    txn_id = session.get("payment_intent") or session.get("id")
    amount_total = session.get("amount_total")
    if not order_id or not txn_id or amount_total is None:
        logger.warning(
            "Checkout completed event missing order/txn/amount; ignoring",
            extra={"event_type": CHECKOUT_COMPLETED},
        )
        return None

    try:
        parsed_order_id = UUID(order_id)
    except ValueError:
        logger.warning(
            f"Checkout completed event has malformed order id {order_id!r}; ignoring",
        )
        return None

    amount: Decimal = from_minor_units(int(amount_total))
    return PaymentEvent(
        order_id=parsed_order_id,
        provider_txn_id=str(txn_id),
        amount=amount,
        event_type=CHECKOUT_COMPLETED,
    )
