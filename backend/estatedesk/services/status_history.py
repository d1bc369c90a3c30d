"""Status history ledger: append-only record of unit transitions."""

import logging
from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from estatedesk.core.context import TenantContext
from estatedesk.models.enums import UnitStatus
from estatedesk.models.property import Property, Unit
from estatedesk.models.status_history import UnitStatusHistory

logger = logging.getLogger(__name__)

UNIT_CREATED_NOTE = "Unit created"


class StatusHistoryService:
    """Service for appending to and reading the status history ledger."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record_transition(
        self,
        unit_id: UUID,
        from_status: UnitStatus,
        to_status: UnitStatus,
        user_id: Optional[UUID] = None,
        notes: Optional[str] = None,
    ) -> UnitStatusHistory:
        """Append one entry. Never touches earlier entries.

        The caller owns the transaction; the entry is flushed, not committed.
        """
        result = await self.db.execute(
            select(func.max(UnitStatusHistory.sequence)).where(
                UnitStatusHistory.unit_id == unit_id
            )
        )
        last_sequence = result.scalar() or 0

        entry = UnitStatusHistory(
            unit_id=unit_id,
            sequence=last_sequence + 1,
            from_status=from_status,
            to_status=to_status,
            changed_by_user_id=user_id,
            changed_at=datetime.utcnow(),
            notes=notes,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def history_for_unit(
        self,
        ctx: TenantContext,
        unit_id: UUID,
        limit: Optional[int] = None,
    ) -> list[UnitStatusHistory]:
        """Entries for a unit, most recent first.

        `limit=None` returns the whole chain (audit export).
        """
        query = (
            select(UnitStatusHistory)
            .join(Unit, UnitStatusHistory.unit_id == Unit.id)
            .join(Property, Unit.property_id == Property.id)
            .where(
                UnitStatusHistory.unit_id == unit_id,
                Property.org_id == ctx.org_id,
            )
            .options(selectinload(UnitStatusHistory.changed_by))
            .order_by(
                UnitStatusHistory.changed_at.desc(),
                UnitStatusHistory.sequence.desc(),
            )
        )
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())


def verify_chain(
    entries: Iterable[UnitStatusHistory],
    current_status: Optional[UnitStatus] = None,
) -> list[str]:
    """Check that history entries form an unbroken chain.

    Entries may be passed in any order; they are checked oldest first. Each
    entry's from_status must equal the previous entry's to_status, and the
    newest to_status must equal `current_status` when given. Returns a list
    of problems, empty when the chain is consistent.
    """
    ordered = sorted(entries, key=lambda e: (e.changed_at, e.sequence))
    problems: list[str] = []

    for previous, entry in zip(ordered, ordered[1:]):
        if entry.from_status != previous.to_status:
            problems.append(
                f"Entry {entry.sequence}: from_status '{entry.from_status.value}' "
                f"does not follow '{previous.to_status.value}'"
            )

    if ordered and current_status is not None and ordered[-1].to_status != current_status:
        problems.append(
            f"Latest entry ends at '{ordered[-1].to_status.value}' "
            f"but unit is '{current_status.value}'"
        )

    if problems:
        logger.warning(f"[HISTORY] Chain check found {len(problems)} problem(s)")
    return problems
