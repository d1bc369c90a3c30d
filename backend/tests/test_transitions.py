"""
Tests for the status transition table and the unit transition service.
"""
from datetime import datetime
from itertools import product

import pytest
from sqlalchemy import func, select

from estatedesk.core.errors import ConflictError, InvalidTransitionError, NotFoundError
from estatedesk.models import ActivityLog, Unit, UnitStatusHistory
from estatedesk.models.enums import BOARD_STATUSES, ActivityAction, UnitStatus
from estatedesk.services.status_history import verify_chain
from estatedesk.services.transitions import TRANSITIONS, coerce_status, validate_transition
from estatedesk.services.units import UnitService


async def _history(db, unit_id):
    result = await db.execute(
        select(UnitStatusHistory)
        .where(UnitStatusHistory.unit_id == unit_id)
        .order_by(UnitStatusHistory.sequence)
    )
    return list(result.scalars().all())


class TestTransitionTable:
    """The table and validator used by every status change."""

    def test_every_status_has_a_row(self):
        assert set(TRANSITIONS) == set(UnitStatus)

    def test_any_status_may_move_to_any_status(self):
        for source, target in product(UnitStatus, UnitStatus):
            assert validate_transition(source, target) == target

    def test_accepts_raw_values(self):
        assert validate_transition("available", "sold") == UnitStatus.SOLD

    def test_rejects_unknown_status(self):
        with pytest.raises(InvalidTransitionError) as exc:
            coerce_status("demolished")
        assert "demolished" in exc.value.message
        assert exc.value.status_code == 422

    def test_board_statuses_cover_the_enum_in_order(self):
        assert [s.value for s in BOARD_STATUSES] == [
            "available", "occupied", "maintenance", "reserved", "sold", "blocked",
        ]


class TestTransitionService:
    """UnitService.transition: unit update plus ledger append, atomically."""

    async def test_move_records_one_history_entry(self, db, ctx, user, make_unit):
        """U1 available -> occupied with a note."""
        unit = await make_unit("U1")

        moved, entry = await UnitService(db).transition(ctx, unit.id, UnitStatus.OCCUPIED, "tenant moved in")

        assert moved.status == UnitStatus.OCCUPIED
        assert entry.from_status == UnitStatus.AVAILABLE
        assert entry.to_status == UnitStatus.OCCUPIED
        assert entry.changed_by_user_id == user.id
        assert entry.notes == "tenant moved in"

        history = await _history(db, unit.id)
        assert len(history) == 2
        assert history[-1].id == entry.id
        assert history[-1].sequence == 2

    async def test_chain_stays_consistent_over_many_moves(self, db, ctx, make_unit):
        unit = await make_unit("U2")
        service = UnitService(db)
        path = [
            UnitStatus.RESERVED,
            UnitStatus.OCCUPIED,
            UnitStatus.MAINTENANCE,
            UnitStatus.MAINTENANCE,
            UnitStatus.AVAILABLE,
            UnitStatus.SOLD,
        ]
        for status in path:
            await service.transition(ctx, unit.id, status)

        current = await service.get(ctx, unit.id)
        history = await _history(db, unit.id)

        assert current.status == UnitStatus.SOLD
        assert [e.sequence for e in history] == list(range(1, len(path) + 2))
        assert verify_chain(history, current.status) == []

    async def test_self_transition_is_recorded(self, db, ctx, make_unit):
        unit = await make_unit("U3", status=UnitStatus.OCCUPIED)

        moved, entry = await UnitService(db).transition(ctx, unit.id, UnitStatus.OCCUPIED)

        assert moved.status == UnitStatus.OCCUPIED
        assert entry.from_status == entry.to_status == UnitStatus.OCCUPIED
        assert len(await _history(db, unit.id)) == 2

    async def test_invalid_status_changes_nothing(self, db, ctx, make_unit):
        unit = await make_unit("U4")

        with pytest.raises(InvalidTransitionError):
            await UnitService(db).transition(ctx, unit.id, "demolished")

        current = await UnitService(db).get(ctx, unit.id)
        assert current.status == UnitStatus.AVAILABLE
        assert len(await _history(db, unit.id)) == 1

    async def test_unit_in_another_org_is_not_found(self, db, ctx, other_ctx, make_unit):
        unit = await make_unit("U5")

        with pytest.raises(NotFoundError):
            await UnitService(db).transition(other_ctx, unit.id, UnitStatus.SOLD)

        current = await UnitService(db).get(ctx, unit.id)
        assert current.status == UnitStatus.AVAILABLE
        assert len(await _history(db, unit.id)) == 1

    async def test_move_writes_activity_entry(self, db, ctx, make_unit):
        unit = await make_unit("U6")

        await UnitService(db).transition(ctx, unit.id, UnitStatus.BLOCKED, "water damage")

        result = await db.execute(
            select(ActivityLog).where(
                ActivityLog.entity_id == unit.id,
                ActivityLog.action == ActivityAction.MOVE_STATUS,
            )
        )
        entry = result.scalar_one()
        assert entry.org_id == ctx.org_id
        assert entry.payload["from_status"] == "available"
        assert entry.payload["to_status"] == "blocked"
        assert entry.payload["notes"] == "water damage"

    async def test_sequence_collision_rolls_back(self, db, ctx, make_unit, session_factory):
        """A concurrent writer claiming the same chain position loses cleanly."""
        unit = await make_unit("U7")
        unit_id = unit.id
        service = UnitService(db)

        async def stale_append(unit_id, from_status, to_status, user_id=None, notes=None):
            entry = UnitStatusHistory(
                unit_id=unit_id,
                sequence=1,
                from_status=from_status,
                to_status=to_status,
                changed_at=datetime.utcnow(),
            )
            db.add(entry)
            await db.flush()
            return entry

        service.history.record_transition = stale_append

        with pytest.raises(ConflictError):
            await service.transition(ctx, unit_id, UnitStatus.OCCUPIED)

        async with session_factory() as fresh:
            status = await fresh.scalar(select(Unit.status).where(Unit.id == unit_id))
            count = await fresh.scalar(
                select(func.count(UnitStatusHistory.id)).where(UnitStatusHistory.unit_id == unit_id)
            )
        assert status == UnitStatus.AVAILABLE
        assert count == 1

    async def test_move_committed_after_read_conflicts(self, db, ctx, make_unit, session_factory):
        """Another session moves the unit between this move's read and its write."""
        unit = await make_unit("U8")
        unit_id = unit.id
        service = UnitService(db)
        read_unit = service.get
        raced = []

        async def read_then_race(context, unit_id):
            found = await read_unit(context, unit_id)
            if not raced:
                raced.append(unit_id)
                async with session_factory() as other:
                    await UnitService(other).transition(context, unit_id, UnitStatus.OCCUPIED)
            return found

        service.get = read_then_race

        with pytest.raises(ConflictError):
            await service.transition(ctx, unit_id, UnitStatus.RESERVED)

        async with session_factory() as fresh:
            status = await fresh.scalar(select(Unit.status).where(Unit.id == unit_id))
            history = await _history(fresh, unit_id)
        assert status == UnitStatus.OCCUPIED
        assert [(e.from_status, e.to_status) for e in history] == [
            (UnitStatus.AVAILABLE, UnitStatus.AVAILABLE),
            (UnitStatus.AVAILABLE, UnitStatus.OCCUPIED),
        ]
        assert verify_chain(history, status) == []
