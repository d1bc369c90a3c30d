"""Maintenance ticket schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from estatedesk.models.enums import TicketPriority, TicketStatus
from estatedesk.schemas.base import BaseSchema, IDMixin, TimestampMixin


class MaintenanceCreate(BaseSchema):
    """Create maintenance ticket."""

    unit_id: UUID
    title: str = Field(..., min_length=3, max_length=255)
    description: Optional[str] = None
    priority: TicketPriority = TicketPriority.MEDIUM


class MaintenanceStatusUpdate(BaseSchema):
    """Move a ticket to a new status."""

    status: TicketStatus


class MaintenanceResponse(BaseSchema, IDMixin, TimestampMixin):
    """Maintenance ticket response."""

    unit_id: UUID
    created_by_id: Optional[UUID] = None
    title: str
    description: Optional[str] = None
    status: TicketStatus
    priority: TicketPriority
    completed_at: Optional[datetime] = None
