"""Unit service: tenant-scoped unit queries and the status transition."""

import logging
import math
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager, selectinload

from estatedesk.core.config import get_settings
from estatedesk.core.context import TenantContext
from estatedesk.core.errors import ConflictError, NotFoundError
from estatedesk.models.enums import ActivityAction, UnitStatus
from estatedesk.models.property import Property, Unit
from estatedesk.models.status_history import UnitStatusHistory
from estatedesk.models.tenant import Tenant
from estatedesk.schemas.board import BoardUnit
from estatedesk.schemas.unit import (
    ATTRIBUTE_COLUMNS,
    PaginationMeta,
    UnitCreate,
    UnitListQuery,
    UnitUpdate,
)
from estatedesk.services.audit import ActivityService
from estatedesk.services.board import to_board_unit
from estatedesk.services.status_history import UNIT_CREATED_NOTE, StatusHistoryService
from estatedesk.services.transitions import coerce_status, validate_transition

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "unit_number": Unit.unit_number,
    "status": Unit.status,
    "rent_amount_cents": Unit.rent_amount_cents,
    "created_at": Unit.created_at,
    "updated_at": Unit.updated_at,
    "property.name": Property.name,
}


def build_pagination(page: int = 1, per_page: Optional[int] = None) -> tuple[int, int, int]:
    """Clamp paging input. Returns (page, per_page, offset)."""
    settings = get_settings()
    page = max(1, page or 1)
    per_page = min(settings.max_per_page, max(settings.min_per_page, per_page or settings.default_per_page))
    return page, per_page, (page - 1) * per_page


def build_pagination_meta(total: int, page: int, per_page: int) -> PaginationMeta:
    total_pages = math.ceil(total / per_page) if per_page else 0
    return PaginationMeta(
        page=page,
        per_page=per_page,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


class UnitService:
    """Tenant-scoped unit operations. Every method takes an explicit TenantContext."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.history = StatusHistoryService(db)
        self.activity = ActivityService(db)

    def _scoped(self, ctx: TenantContext):
        return (
            select(Unit)
            .join(Unit.property)
            .where(Property.org_id == ctx.org_id)
            .options(contains_eager(Unit.property))
        )

    async def _get_property(self, ctx: TenantContext, property_id: UUID) -> Property:
        result = await self.db.execute(
            select(Property).where(
                Property.id == property_id,
                Property.org_id == ctx.org_id,
            )
        )
        prop = result.scalar_one_or_none()
        if not prop:
            raise NotFoundError("Property not found")
        return prop

    async def _check_tenant(self, ctx: TenantContext, tenant_id: Optional[UUID]) -> None:
        if tenant_id is None:
            return
        result = await self.db.execute(
            select(Tenant.id).where(Tenant.id == tenant_id, Tenant.org_id == ctx.org_id)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Tenant not found")

    async def _check_unit_number(
        self,
        property_id: UUID,
        unit_number: str,
        exclude_unit_id: Optional[UUID] = None,
    ) -> None:
        query = select(Unit.id).where(
            Unit.property_id == property_id,
            Unit.unit_number == unit_number,
        )
        if exclude_unit_id is not None:
            query = query.where(Unit.id != exclude_unit_id)
        result = await self.db.execute(query)
        if result.first() is not None:
            raise ConflictError("Unit number already exists for this property")

    async def get(self, ctx: TenantContext, unit_id: UUID) -> Unit:
        """Unit with its property, or NotFoundError outside the caller's org."""
        result = await self.db.execute(
            self._scoped(ctx)
            .where(Unit.id == unit_id)
            .execution_options(populate_existing=True)
        )
        unit = result.scalar_one_or_none()
        if not unit:
            raise NotFoundError("Unit not found")
        return unit

    async def get_with_history(
        self,
        ctx: TenantContext,
        unit_id: UUID,
        history_limit: Optional[int] = None,
    ) -> tuple[Unit, list[UnitStatusHistory]]:
        """Unit plus its most recent history entries (display cap by default)."""
        if history_limit is None:
            history_limit = get_settings().history_display_limit
        unit = await self.get(ctx, unit_id)
        history = await self.history.history_for_unit(ctx, unit_id, limit=history_limit)
        return unit, history

    async def list_units(
        self,
        ctx: TenantContext,
        query: UnitListQuery,
    ) -> tuple[list[Unit], PaginationMeta]:
        """Paginated listing with search, status and property filters."""
        page, per_page, offset = build_pagination(query.page, query.per_page)

        conditions = [Property.org_id == ctx.org_id]
        if query.search:
            pattern = f"%{query.search}%"
            conditions.append(
                or_(Unit.unit_number.ilike(pattern), Property.name.ilike(pattern))
            )
        if query.status:
            conditions.append(Unit.status == query.status)
        if query.property_id:
            conditions.append(Unit.property_id == query.property_id)

        sort_column = SORT_COLUMNS.get(query.sort or "created_at", Unit.created_at)
        order = sort_column.asc() if query.dir == "asc" else sort_column.desc()

        result = await self.db.execute(
            select(Unit)
            .join(Unit.property)
            .where(*conditions)
            .options(contains_eager(Unit.property))
            .order_by(order, Unit.id)
            .offset(offset)
            .limit(per_page)
        )
        units = list(result.scalars().all())

        count_result = await self.db.execute(
            select(func.count(Unit.id)).join(Unit.property).where(*conditions)
        )
        total = count_result.scalar() or 0

        return units, build_pagination_meta(total, page, per_page)

    async def get_by_status(self, ctx: TenantContext, status: Union[UnitStatus, str]) -> list[Unit]:
        """Units in one status, most recently updated first."""
        status = coerce_status(status)
        result = await self.db.execute(
            self._scoped(ctx)
            .where(Unit.status == status)
            .order_by(Unit.updated_at.desc())
        )
        return list(result.scalars().all())

    async def get_by_property(self, ctx: TenantContext, property_id: UUID) -> list[Unit]:
        """Units of one property ordered by unit number."""
        await self._get_property(ctx, property_id)
        result = await self.db.execute(
            self._scoped(ctx)
            .where(Unit.property_id == property_id)
            .order_by(Unit.unit_number)
        )
        return list(result.scalars().all())

    async def list_board_units(
        self,
        ctx: TenantContext,
        property_id: Optional[UUID] = None,
    ) -> list[BoardUnit]:
        """Every unit in scope with the relations the board looks at."""
        query = (
            self._scoped(ctx)
            .options(
                selectinload(Unit.tenant),
                selectinload(Unit.invoices),
                selectinload(Unit.maintenance_tickets),
            )
            .order_by(Property.name, Unit.unit_number)
        )
        if property_id:
            query = query.where(Unit.property_id == property_id)

        result = await self.db.execute(query)
        return [to_board_unit(unit) for unit in result.scalars().all()]

    async def create(self, ctx: TenantContext, data: UnitCreate) -> Unit:
        """Create a unit and its initial history entry in one transaction."""
        prop = await self._get_property(ctx, data.property_id)
        await self._check_unit_number(prop.id, data.unit_number)
        await self._check_tenant(ctx, data.tenant_id)

        attributes = data.attributes
        unit = Unit(
            property_id=prop.id,
            unit_number=data.unit_number,
            status=data.status,
            rent_amount_cents=data.rent_amount_cents,
            tenant_id=data.tenant_id,
            extra_attributes=dict(attributes.extra),
            **{name: getattr(attributes, name) for name in ATTRIBUTE_COLUMNS},
        )

        try:
            self.db.add(unit)
            await self.db.flush()
            await self.history.record_transition(
                unit_id=unit.id,
                from_status=data.status,
                to_status=data.status,
                user_id=ctx.user_id,
                notes=UNIT_CREATED_NOTE,
            )
            await self.activity.log(
                ctx,
                action=ActivityAction.CREATE,
                entity_type="unit",
                entity_id=unit.id,
                payload={"unit_number": unit.unit_number, "status": unit.status.value},
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Unit number already exists for this property")

        logger.info(f"[UNITS] Created unit {unit.id} ({unit.unit_number}) as {unit.status.value}")
        return await self.get(ctx, unit.id)

    async def update(self, ctx: TenantContext, unit_id: UUID, data: UnitUpdate) -> Unit:
        """Update non-status fields, merging attributes into the existing ones."""
        unit = await self.get(ctx, unit_id)
        update_data = data.model_dump(exclude_unset=True, exclude={"attributes"})

        if "unit_number" in update_data and update_data["unit_number"] != unit.unit_number:
            await self._check_unit_number(unit.property_id, update_data["unit_number"], unit.id)
        if update_data.get("tenant_id") is not None:
            await self._check_tenant(ctx, update_data["tenant_id"])

        for field, value in update_data.items():
            setattr(unit, field, value)

        if data.attributes is not None:
            attributes = data.attributes.model_dump(exclude_unset=True)
            extra = attributes.pop("extra", None)
            for field, value in attributes.items():
                setattr(unit, field, value)
            if extra:
                unit.extra_attributes = {**(unit.extra_attributes or {}), **extra}

        try:
            # Logging flushes the pending unit changes
            await self.activity.log(
                ctx,
                action=ActivityAction.UPDATE,
                entity_type="unit",
                entity_id=unit.id,
                payload={"unit_number": unit.unit_number},
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Unit number already exists for this property")

        return await self.get(ctx, unit_id)

    async def transition(
        self,
        ctx: TenantContext,
        unit_id: UUID,
        to_status: Union[UnitStatus, str],
        notes: Optional[str] = None,
    ) -> tuple[Unit, UnitStatusHistory]:
        """Move a unit to a new status and record it, atomically.

        The unit update, its history entry and the activity entry are
        committed together or not at all.
        """
        target = coerce_status(to_status)
        unit = await self.get(ctx, unit_id)
        from_status = unit.status
        validate_transition(from_status, target)

        try:
            # A move committed since the read above leaves no row to update
            moved = await self.db.execute(
                update(Unit)
                .where(Unit.id == unit.id, Unit.status == from_status)
                .values(status=target)
                .execution_options(synchronize_session=False)
            )
            if moved.rowcount == 0:
                logger.warning(f"[UNITS] Unit {unit_id} left {from_status.value} before the move was written")
                raise ConflictError("Unit status changed concurrently, reload and retry")
            entry = await self.history.record_transition(
                unit_id=unit.id,
                from_status=from_status,
                to_status=target,
                user_id=ctx.user_id,
                notes=notes,
            )
            await self.activity.log_status_move(
                ctx,
                unit_id=unit.id,
                unit_number=unit.unit_number,
                from_status=from_status,
                to_status=target,
                notes=notes,
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(f"[UNITS] Concurrent transition rejected for unit {unit_id}")
            raise ConflictError("Unit status changed concurrently, reload and retry")
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"[UNITS] Unit {unit_id} status {from_status.value} -> {target.value} "
            f"by user {ctx.user_id}"
        )
        return await self.get(ctx, unit_id), entry

    async def delete(self, ctx: TenantContext, unit_id: UUID) -> None:
        """Hard delete. Administrative escape hatch outside the lifecycle."""
        unit = await self.get(ctx, unit_id)
        await self.activity.log(
            ctx,
            action=ActivityAction.DELETE,
            entity_type="unit",
            entity_id=unit.id,
            payload={"unit_number": unit.unit_number, "property_name": unit.property.name},
        )
        await self.db.delete(unit)
        await self.db.commit()
        logger.info(f"[UNITS] Deleted unit {unit_id}")
