"""Maintenance tickets raised against units."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from estatedesk.core.database import get_db
from estatedesk.core.errors import NotFoundError
from estatedesk.core.security import require_org_member, AuthenticatedUser
from estatedesk.models.enums import TicketStatus
from estatedesk.models.maintenance import MaintenanceTicket
from estatedesk.models.property import Property, Unit
from estatedesk.schemas.maintenance import (
    MaintenanceCreate,
    MaintenanceResponse,
    MaintenanceStatusUpdate,
)
from estatedesk.services.units import UnitService

router = APIRouter(prefix="/maintenance", tags=["maintenance"])

CLOSED_TICKET_STATUSES = (TicketStatus.RESOLVED, TicketStatus.CLOSED)


def _org_tickets(org_id: UUID) -> Select:
    return (
        select(MaintenanceTicket)
        .join(Unit, MaintenanceTicket.unit_id == Unit.id)
        .join(Property, Unit.property_id == Property.id)
        .where(Property.org_id == org_id)
    )


@router.post("", response_model=MaintenanceResponse, status_code=status.HTTP_201_CREATED)
async def open_ticket(
    data: MaintenanceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Open a ticket. The unit must belong to the caller's organization."""
    await UnitService(db).get(current_user.tenant_context(), data.unit_id)

    ticket = MaintenanceTicket(created_by_id=current_user.db_user_id, **data.model_dump())
    db.add(ticket)
    await db.commit()
    await db.refresh(ticket)

    return MaintenanceResponse.model_validate(ticket)


@router.get("", response_model=List[MaintenanceResponse])
async def list_tickets(
    unit_id: Optional[UUID] = None,
    ticket_status: Optional[TicketStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Newest first, optionally narrowed to one unit or status."""
    query = _org_tickets(current_user.org_id)
    if unit_id:
        query = query.where(MaintenanceTicket.unit_id == unit_id)
    if ticket_status:
        query = query.where(MaintenanceTicket.status == ticket_status)

    result = await db.execute(query.order_by(MaintenanceTicket.created_at.desc()))
    return [MaintenanceResponse.model_validate(t) for t in result.scalars().all()]


@router.patch("/{ticket_id}/status", response_model=MaintenanceResponse)
async def set_ticket_status(
    ticket_id: UUID,
    data: MaintenanceStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    ticket = await db.scalar(
        _org_tickets(current_user.org_id).where(MaintenanceTicket.id == ticket_id)
    )
    if ticket is None:
        raise NotFoundError("Ticket not found")

    ticket.status = data.status
    # Reopening a ticket clears its completion time
    if data.status in CLOSED_TICKET_STATUSES:
        ticket.completed_at = ticket.completed_at or datetime.utcnow()
    else:
        ticket.completed_at = None

    await db.commit()
    await db.refresh(ticket)

    return MaintenanceResponse.model_validate(ticket)
