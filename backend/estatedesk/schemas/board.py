"""Board view schemas shared by the API and the board client."""

from datetime import date, datetime
from typing import Optional, Union
from uuid import UUID

from pydantic import ConfigDict, Field

from estatedesk.models.enums import InvoiceStatus, TicketPriority, TicketStatus, UnitStatus
from estatedesk.schemas.base import BaseSchema
from estatedesk.schemas.property import PropertySummary

ALL_PROPERTIES = "all"


class TenantSummary(BaseSchema):
    id: UUID
    name: str
    email: Optional[str] = None


class BoardAttributes(BaseSchema):
    floor: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    size_sq_ft: Optional[float] = None


class InvoiceSummary(BaseSchema):
    id: UUID
    status: InvoiceStatus
    due_date: date
    amount_cents: int


class TicketSummary(BaseSchema):
    id: UUID
    title: str
    priority: TicketPriority
    status: TicketStatus
    created_at: datetime


class BoardUnit(BaseSchema):
    """A unit card with everything the filters and statistics look at."""

    id: UUID
    unit_number: str
    status: UnitStatus
    rent_amount_cents: Optional[int] = None
    property: PropertySummary
    tenant: Optional[TenantSummary] = None
    attributes: BoardAttributes = Field(default_factory=BoardAttributes)
    invoices: list[InvoiceSummary] = Field(default_factory=list)
    tickets: list[TicketSummary] = Field(default_factory=list)


class FilterState(BaseSchema):
    """Transient board filters. Every active filter must match."""

    # Search terms are matched verbatim, surrounding spaces included
    model_config = ConfigDict(str_strip_whitespace=False)

    search: str = ""
    property_id: Union[UUID, str] = ALL_PROPERTIES
    urgent_only: bool = False
    overdue_only: bool = False
    maintenance_only: bool = False

    @property
    def is_active(self) -> bool:
        return bool(
            self.search
            or self.property_id != ALL_PROPERTIES
            or self.urgent_only
            or self.overdue_only
            or self.maintenance_only
        )

    def reset(self) -> None:
        """Restore every filter to its default."""
        self.search = ""
        self.property_id = ALL_PROPERTIES
        self.urgent_only = False
        self.overdue_only = False
        self.maintenance_only = False


class BoardColumn(BaseSchema):
    status: UnitStatus
    title: str
    units: list[BoardUnit]

    @property
    def count(self) -> int:
        return len(self.units)


class BoardStats(BaseSchema):
    """Statistics over the currently visible units."""

    total_units: int = 0
    critical_units: int = 0
    overdue_units: int = 0
    overdue_amount_cents: int = 0
    urgent_maintenance_units: int = 0
    high_maintenance_units: int = 0
    maintenance_units: int = 0
    occupancy_rate: float = 0.0


class BoardResponse(BaseSchema):
    columns: list[BoardColumn]
    stats: BoardStats
    total_units: int
    visible_units: int
