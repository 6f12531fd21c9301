"""Invoice Routes — buyer's invoices, latest payment first."""

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_invoice_projector
from app.schemas.invoice import InvoiceResponse
from app.schemas.order import EMAIL_PATTERN
from app.services.invoice_projector import InvoiceProjector

router = APIRouter(prefix="/api/v1/invoices", tags=["invoices"])


@router.get("", response_model=list[InvoiceResponse])
async def list_invoices(
    email: str = Query(..., pattern=EMAIL_PATTERN),
    projector: InvoiceProjector = Depends(get_invoice_projector),
):
    invoices = await projector.list_for_buyer(email)
    return [InvoiceResponse.from_model(i) for i in invoices]
