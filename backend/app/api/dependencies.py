"""Request Dependencies — wire lifespan-scoped resources into per-request services.

Invariants:
    - Payment gateway is constructed once in the lifespan and read from app.state
    - Services are built per request around that request's AsyncSession
    - No module-level clients: tests swap resources via app.dependency_overrides

Design Decisions:
    - FastAPI Depends over service locators: every route's collaborators are visible
      in its signature
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.repository_protocols import PaymentGateway
from app.infrastructure.database import get_db
from app.services.catalog import CatalogService
from app.services.invoice_projector import InvoiceProjector
from app.services.order_state_machine import OrderStateMachine
from app.services.payments import PaymentService


def get_payment_gateway(request: Request) -> PaymentGateway:
    gateway = getattr(request.app.state, "payment_gateway", None)
    if gateway is None:
        raise RuntimeError("Payment gateway not initialized")
    return gateway


def get_order_state_machine(
    db: AsyncSession = Depends(get_db),
) -> OrderStateMachine:
    return OrderStateMachine(db)


def get_catalog(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_invoice_projector(
    db: AsyncSession = Depends(get_db),
) -> InvoiceProjector:
    return InvoiceProjector(db)


def get_payment_service(
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> PaymentService:
    return PaymentService(db, gateway)
