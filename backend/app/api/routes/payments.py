"""Payment Webhook — provider notification ingress.

Invariants:
    - Raw body read with request.body() and handed over unchanged (signature covers bytes)
    - No Pydantic body model here: parsing before verification would break the signature
    - Invalid signature → generic 400 via the global handler, nothing else leaked

Design Decisions:
    - Always 200 once verified, even for ignored event types (provider expects an ack)
"""

from fastapi import APIRouter, Depends, Header, Request

from app.api.dependencies import get_payment_service
from app.services.payments import PaymentService

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    payments: PaymentService = Depends(get_payment_service),
):
    raw_body = await request.body()
    return await payments.handle_webhook(raw_body, stripe_signature)
