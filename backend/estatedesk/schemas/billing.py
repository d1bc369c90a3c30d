"""Invoice schemas."""

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import Field

from estatedesk.models.enums import InvoiceStatus
from estatedesk.schemas.base import BaseSchema, Cents, IDMixin, TimestampMixin


class InvoiceCreate(BaseSchema):
    """Create invoice (money in INTEGER CENTS)."""

    unit_id: UUID
    number: Optional[str] = Field(None, max_length=50)
    status: InvoiceStatus = InvoiceStatus.DRAFT
    due_date: date
    amount_cents: Cents


class InvoiceStatusUpdate(BaseSchema):
    status: InvoiceStatus


class InvoiceResponse(BaseSchema, IDMixin, TimestampMixin):
    """Invoice response."""

    unit_id: UUID
    number: Optional[str] = None
    status: InvoiceStatus
    due_date: date
    amount_cents: int
