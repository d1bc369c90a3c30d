"""Properties router, including the property-scoped unit endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from estatedesk.core.database import get_db
from estatedesk.core.errors import NotFoundError
from estatedesk.core.security import require_org_member, AuthenticatedUser
from estatedesk.models.property import Property, Unit
from estatedesk.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
)
from estatedesk.schemas.unit import UnitCreate, UnitFields, UnitResponse
from estatedesk.services.units import UnitService

router = APIRouter(prefix="/properties", tags=["properties"])


async def _property_with_count(db: AsyncSession, org_id: UUID, property_id: UUID) -> PropertyResponse:
    result = await db.execute(
        select(Property, func.count(Unit.id).label("unit_count"))
        .outerjoin(Unit, Property.id == Unit.property_id)
        .where(Property.id == property_id, Property.org_id == org_id)
        .group_by(Property.id)
    )
    row = result.one_or_none()

    if not row:
        raise NotFoundError("Property not found")

    return PropertyResponse.model_validate(row[0]).model_copy(update={"unit_count": row[1]})


@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
async def create_property(
    data: PropertyCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Create a new property (org-scoped)."""
    prop = Property(org_id=current_user.org_id, **data.model_dump())
    db.add(prop)
    await db.commit()
    await db.refresh(prop)

    return PropertyResponse.model_validate(prop)


@router.get("", response_model=List[PropertyResponse])
async def list_properties(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """List all properties for the organization."""
    result = await db.execute(
        select(Property, func.count(Unit.id).label("unit_count"))
        .outerjoin(Unit, Property.id == Unit.property_id)
        .where(Property.org_id == current_user.org_id)
        .group_by(Property.id)
        .order_by(Property.name)
    )

    return [
        PropertyResponse.model_validate(prop).model_copy(update={"unit_count": unit_count})
        for prop, unit_count in result.all()
    ]


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Get a property by ID."""
    return await _property_with_count(db, current_user.org_id, property_id)


@router.patch("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: UUID,
    data: PropertyUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Update a property."""
    result = await db.execute(
        select(Property).where(
            Property.id == property_id,
            Property.org_id == current_user.org_id,
        )
    )
    prop = result.scalar_one_or_none()

    if not prop:
        raise NotFoundError("Property not found")

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(prop, field, value)

    await db.commit()

    return await _property_with_count(db, current_user.org_id, property_id)


# --- Units ---

@router.post("/{property_id}/units", response_model=UnitResponse, status_code=status.HTTP_201_CREATED)
async def create_property_unit(
    property_id: UUID,
    data: UnitFields,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Create a unit within a property."""
    unit = await UnitService(db).create(
        current_user.tenant_context(),
        UnitCreate(property_id=property_id, **data.model_dump()),
    )
    return UnitResponse.from_unit(unit)


@router.get("/{property_id}/units", response_model=List[UnitResponse])
async def list_property_units(
    property_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """List all units for a property."""
    units = await UnitService(db).get_by_property(current_user.tenant_context(), property_id)
    return [UnitResponse.from_unit(u) for u in units]
