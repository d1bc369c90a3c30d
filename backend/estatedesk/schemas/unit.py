"""Unit, status move and status history schemas."""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal, Optional
from uuid import UUID

from pydantic import ConfigDict, Field, field_validator

from estatedesk.models.enums import ActivityAction, UnitStatus
from estatedesk.schemas.base import BaseSchema, Cents, IDMixin, Notes, TimestampMixin, UnitNumber
from estatedesk.schemas.property import PropertySummary

if TYPE_CHECKING:
    from estatedesk.models.property import Unit
    from estatedesk.models.status_history import UnitStatusHistory


class UnitAttributes(BaseSchema):
    """Structured unit attributes plus a free-form extension map."""

    floor: Optional[int] = Field(None, ge=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)
    size_sq_ft: Optional[float] = Field(None, gt=0)
    deposit_amount_cents: Optional[Cents] = None
    description: Optional[str] = None
    extra: dict[str, Any] = Field(default_factory=dict)


ATTRIBUTE_COLUMNS = ("floor", "bedrooms", "bathrooms", "size_sq_ft", "deposit_amount_cents", "description")


class UnitFields(BaseSchema):
    """Fields shared by the unit create payloads."""

    unit_number: UnitNumber
    status: UnitStatus = UnitStatus.AVAILABLE
    rent_amount_cents: Optional[Cents] = None
    tenant_id: Optional[UUID] = None
    attributes: UnitAttributes = Field(default_factory=UnitAttributes)


class UnitCreate(UnitFields):
    """Create a new unit."""

    property_id: UUID


class UnitUpdate(BaseSchema):
    """Update unit. Status is changed only through the status endpoint."""

    model_config = ConfigDict(extra="forbid")

    unit_number: Optional[UnitNumber] = None
    rent_amount_cents: Optional[Cents] = None
    tenant_id: Optional[UUID] = None
    attributes: Optional[UnitAttributes] = None

    @field_validator("unit_number")
    @classmethod
    def unit_number_not_null(cls, value: Optional[str]) -> Optional[str]:
        # Omit the field to keep the current number
        if value is None:
            raise ValueError("unit_number cannot be null")
        return value


class UnitStatusMove(BaseSchema):
    """Request body for a status transition."""

    status: UnitStatus
    notes: Optional[Notes] = None


class UserSummary(BaseSchema):
    """Acting user reference."""

    id: UUID
    full_name: Optional[str] = None
    email: str


class StatusHistoryResponse(BaseSchema, IDMixin):
    """One status history entry."""

    unit_id: UUID
    sequence: int
    from_status: UnitStatus
    to_status: UnitStatus
    changed_by_user_id: Optional[UUID] = None
    changed_by: Optional[UserSummary] = None
    changed_at: datetime
    notes: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: "UnitStatusHistory") -> "StatusHistoryResponse":
        changed_by = entry.__dict__.get("changed_by")
        return cls(
            id=entry.id,
            unit_id=entry.unit_id,
            sequence=entry.sequence,
            from_status=entry.from_status,
            to_status=entry.to_status,
            changed_by_user_id=entry.changed_by_user_id,
            changed_by=UserSummary.model_validate(changed_by) if changed_by else None,
            changed_at=entry.changed_at,
            notes=entry.notes,
        )


class UnitResponse(BaseSchema, IDMixin, TimestampMixin):
    """Unit response."""

    property_id: UUID
    property: Optional[PropertySummary] = None
    tenant_id: Optional[UUID] = None
    unit_number: str
    status: UnitStatus
    rent_amount_cents: Optional[int] = None
    attributes: UnitAttributes

    @classmethod
    def from_unit(cls, unit: "Unit") -> "UnitResponse":
        # Only read relationships that were eager-loaded
        prop = unit.__dict__.get("property")
        return cls(
            id=unit.id,
            property_id=unit.property_id,
            property=PropertySummary.model_validate(prop) if prop else None,
            tenant_id=unit.tenant_id,
            unit_number=unit.unit_number,
            status=unit.status,
            rent_amount_cents=unit.rent_amount_cents,
            attributes=UnitAttributes(
                **{name: getattr(unit, name) for name in ATTRIBUTE_COLUMNS},
                extra=unit.extra_attributes or {},
            ),
            created_at=unit.created_at,
            updated_at=unit.updated_at,
        )


class UnitDetailResponse(UnitResponse):
    """Unit with its most recent status history."""

    status_history: list[StatusHistoryResponse] = Field(default_factory=list)


class PaginationMeta(BaseSchema):
    """Pagination block of a list response."""

    page: int
    per_page: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class UnitListResponse(BaseSchema):
    """Paginated unit listing."""

    data: list[UnitResponse]
    pagination: PaginationMeta


class UnitListQuery(BaseSchema):
    """Server-side unit listing filters."""

    search: Optional[str] = None
    status: Optional[UnitStatus] = None
    property_id: Optional[UUID] = None
    page: int = Field(1, ge=1)
    per_page: Optional[int] = None
    sort: Optional[str] = None
    dir: Literal["asc", "desc"] = "desc"


class ActivityResponse(BaseSchema, IDMixin):
    """Activity log entry for a unit."""

    user_id: Optional[UUID] = None
    action: ActivityAction
    entity_type: str
    entity_id: UUID
    payload: Optional[dict[str, Any]] = None
    created_at: datetime
