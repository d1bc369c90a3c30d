"""Property schemas."""

from typing import Optional
from uuid import UUID

from pydantic import Field

from estatedesk.schemas.base import BaseSchema, IDMixin, TimestampMixin


class PropertyCreate(BaseSchema):
    """Create a new property."""

    name: str = Field(..., min_length=2, max_length=255)
    address_line1: str = Field(..., min_length=2, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., min_length=2, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: str = "USA"
    description: Optional[str] = None


class PropertyUpdate(BaseSchema):
    """Update property."""

    name: Optional[str] = Field(None, min_length=2, max_length=255)
    address_line1: Optional[str] = Field(None, min_length=2, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, min_length=2, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = None
    description: Optional[str] = None


class PropertyResponse(BaseSchema, IDMixin, TimestampMixin):
    """Property response."""

    org_id: UUID
    name: str
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: str
    description: Optional[str] = None
    unit_count: int = 0


class PropertySummary(BaseSchema):
    """Minimal property reference embedded in unit payloads."""

    id: UUID
    name: str
