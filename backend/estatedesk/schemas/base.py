"""Shared schema configuration and field types."""

from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Money is always carried as integer minor units
Cents = Annotated[int, Field(ge=0)]

UnitNumber = Annotated[str, Field(min_length=1, max_length=50)]
Notes = Annotated[str, Field(max_length=1000)]


class BaseSchema(BaseModel):
    """Reads ORM rows directly and trims incoming strings."""

    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class IDMixin(BaseModel):
    id: UUID


class TimestampMixin(BaseModel):
    created_at: datetime
    updated_at: Optional[datetime] = None
