"""Units router: listing, board, CRUD and the status transition endpoint."""

from typing import List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from estatedesk.core.database import get_db
from estatedesk.core.security import AuthenticatedUser, require_org_admin, require_org_member
from estatedesk.models.enums import UnitStatus
from estatedesk.schemas.board import ALL_PROPERTIES, BoardResponse, FilterState
from estatedesk.schemas.unit import (
    ActivityResponse,
    StatusHistoryResponse,
    UnitCreate,
    UnitDetailResponse,
    UnitListQuery,
    UnitListResponse,
    UnitResponse,
    UnitStatusMove,
    UnitUpdate,
)
from estatedesk.services.audit import ActivityService
from estatedesk.services.board import apply_filters, compute_stats, group_by_status, status_titles
from estatedesk.services.units import UnitService

router = APIRouter(prefix="/units", tags=["units"])


@router.get("", response_model=UnitListResponse)
async def list_units(
    search: Optional[str] = None,
    status: Optional[UnitStatus] = None,
    property_id: Optional[UUID] = None,
    page: int = Query(1, ge=1),
    per_page: Optional[int] = None,
    sort: Optional[str] = None,
    dir: Literal["asc", "desc"] = "desc",
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """List units for the organization (paginated)."""
    query = UnitListQuery(
        search=search,
        status=status,
        property_id=property_id,
        page=page,
        per_page=per_page,
        sort=sort,
        dir=dir,
    )
    units, pagination = await UnitService(db).list_units(current_user.tenant_context(), query)
    return UnitListResponse(
        data=[UnitResponse.from_unit(u) for u in units],
        pagination=pagination,
    )


@router.get("/board", response_model=BoardResponse)
async def get_board(
    property_id: Optional[UUID] = None,
    search: str = "",
    urgent_only: bool = False,
    overdue_only: bool = False,
    maintenance_only: bool = False,
    locale: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Board columns and statistics for the visible units."""
    units = await UnitService(db).list_board_units(current_user.tenant_context())
    filters = FilterState(
        search=search,
        property_id=property_id or ALL_PROPERTIES,
        urgent_only=urgent_only,
        overdue_only=overdue_only,
        maintenance_only=maintenance_only,
    )
    visible = apply_filters(units, filters)
    return BoardResponse(
        columns=group_by_status(visible, status_titles(locale)),
        stats=compute_stats(visible),
        total_units=len(units),
        visible_units=len(visible),
    )


@router.get("/by-status/{unit_status}", response_model=List[UnitResponse])
async def list_units_by_status(
    unit_status: UnitStatus,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Units currently in one status."""
    units = await UnitService(db).get_by_status(current_user.tenant_context(), unit_status)
    return [UnitResponse.from_unit(u) for u in units]


@router.post("", response_model=UnitResponse, status_code=status.HTTP_201_CREATED)
async def create_unit(
    data: UnitCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Create a unit. Records the initial status history entry."""
    unit = await UnitService(db).create(current_user.tenant_context(), data)
    return UnitResponse.from_unit(unit)


@router.get("/{unit_id}", response_model=UnitDetailResponse)
async def get_unit(
    unit_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Get a unit with its most recent status history."""
    unit, history = await UnitService(db).get_with_history(current_user.tenant_context(), unit_id)
    return UnitDetailResponse(
        **UnitResponse.from_unit(unit).model_dump(),
        status_history=[StatusHistoryResponse.from_entry(e) for e in history],
    )


@router.patch("/{unit_id}", response_model=UnitResponse)
async def update_unit(
    unit_id: UUID,
    data: UnitUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Update unit details. Status changes go through /status."""
    unit = await UnitService(db).update(current_user.tenant_context(), unit_id, data)
    return UnitResponse.from_unit(unit)


@router.patch("/{unit_id}/status", response_model=UnitResponse)
async def move_unit_status(
    unit_id: UUID,
    data: UnitStatusMove,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Transition a unit to a new status and record it in the history."""
    unit, _ = await UnitService(db).transition(
        current_user.tenant_context(), unit_id, data.status, data.notes
    )
    return UnitResponse.from_unit(unit)


@router.get("/{unit_id}/history", response_model=List[StatusHistoryResponse])
async def get_unit_history(
    unit_id: UUID,
    limit: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Status history, newest first. Omit `limit` for the full audit trail."""
    service = UnitService(db)
    ctx = current_user.tenant_context()
    await service.get(ctx, unit_id)
    entries = await service.history.history_for_unit(ctx, unit_id, limit=limit)
    return [StatusHistoryResponse.from_entry(e) for e in entries]


@router.get("/{unit_id}/activity", response_model=List[ActivityResponse])
async def get_unit_activity(
    unit_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Activity log for a unit. Entries remain after the unit is deleted."""
    entries = await ActivityService(db).list_for_entity(
        current_user.tenant_context(), "unit", unit_id
    )
    return [ActivityResponse.model_validate(e) for e in entries]


@router.delete("/{unit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_unit(
    unit_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_admin),
):
    """Permanently delete a unit (admin only)."""
    await UnitService(db).delete(current_user.tenant_context(), unit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
