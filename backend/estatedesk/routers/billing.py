"""Invoices raised against units. Overdue invoices drive the board's urgency flags."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from estatedesk.core.database import get_db
from estatedesk.core.errors import NotFoundError
from estatedesk.core.security import require_org_member, AuthenticatedUser
from estatedesk.models.billing import Invoice
from estatedesk.models.enums import InvoiceStatus
from estatedesk.models.property import Property, Unit
from estatedesk.schemas.billing import InvoiceCreate, InvoiceResponse, InvoiceStatusUpdate
from estatedesk.services.units import UnitService

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _org_invoices(org_id: UUID) -> Select:
    return (
        select(Invoice)
        .join(Unit, Invoice.unit_id == Unit.id)
        .join(Property, Unit.property_id == Property.id)
        .where(Property.org_id == org_id)
    )


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    data: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Raise an invoice against a unit (amount in cents)."""
    await UnitService(db).get(current_user.tenant_context(), data.unit_id)

    invoice = Invoice(**data.model_dump())
    db.add(invoice)
    await db.commit()
    await db.refresh(invoice)

    return InvoiceResponse.model_validate(invoice)


@router.get("", response_model=List[InvoiceResponse])
async def list_invoices(
    unit_id: Optional[UUID] = None,
    invoice_status: Optional[InvoiceStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Earliest due first."""
    query = _org_invoices(current_user.org_id)
    if unit_id:
        query = query.where(Invoice.unit_id == unit_id)
    if invoice_status:
        query = query.where(Invoice.status == invoice_status)

    result = await db.execute(query.order_by(Invoice.due_date))
    return [InvoiceResponse.model_validate(i) for i in result.scalars().all()]


@router.patch("/{invoice_id}/status", response_model=InvoiceResponse)
async def set_invoice_status(
    invoice_id: UUID,
    data: InvoiceStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Mark an invoice sent, paid or overdue."""
    invoice = await db.scalar(_org_invoices(current_user.org_id).where(Invoice.id == invoice_id))
    if invoice is None:
        raise NotFoundError("Invoice not found")

    invoice.status = data.status
    await db.commit()
    await db.refresh(invoice)

    return InvoiceResponse.model_validate(invoice)
