"""Activity logging service."""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from estatedesk.core.context import TenantContext
from estatedesk.models.audit import ActivityLog
from estatedesk.models.enums import ActivityAction, UnitStatus


class ActivityService:
    """Service for creating activity log entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        ctx: TenantContext,
        action: ActivityAction,
        entity_type: str,
        entity_id: UUID,
        payload: Optional[dict[str, Any]] = None,
    ) -> ActivityLog:
        """Create an activity log entry in the caller's transaction."""
        entry = ActivityLog(
            org_id=ctx.org_id,
            user_id=ctx.user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            payload=payload or {},
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def log_status_move(
        self,
        ctx: TenantContext,
        unit_id: UUID,
        unit_number: str,
        from_status: UnitStatus,
        to_status: UnitStatus,
        notes: Optional[str] = None,
    ) -> ActivityLog:
        """Log a unit status transition."""
        return await self.log(
            ctx,
            action=ActivityAction.MOVE_STATUS,
            entity_type="unit",
            entity_id=unit_id,
            payload={
                "unit_number": unit_number,
                "from_status": from_status.value,
                "to_status": to_status.value,
                "notes": notes,
            },
        )

    async def list_for_entity(
        self,
        ctx: TenantContext,
        entity_type: str,
        entity_id: UUID,
    ) -> list[ActivityLog]:
        """Activity for one entity, newest first."""
        result = await self.db.execute(
            select(ActivityLog)
            .where(
                ActivityLog.org_id == ctx.org_id,
                ActivityLog.entity_type == entity_type,
                ActivityLog.entity_id == entity_id,
            )
            .order_by(ActivityLog.created_at.desc())
        )
        return list(result.scalars().all())
