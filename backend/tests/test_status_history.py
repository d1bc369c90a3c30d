"""
Tests for the append-only status history ledger.
"""
from datetime import datetime, timedelta
from uuid import uuid4

from estatedesk.models import UnitStatusHistory
from estatedesk.models.enums import UnitStatus
from estatedesk.services.status_history import UNIT_CREATED_NOTE, StatusHistoryService, verify_chain
from estatedesk.services.units import UnitService


def _entry(sequence, from_status, to_status, minutes):
    return UnitStatusHistory(
        id=uuid4(),
        unit_id=uuid4(),
        sequence=sequence,
        from_status=from_status,
        to_status=to_status,
        changed_at=datetime(2026, 1, 1) + timedelta(minutes=minutes),
    )


class TestLedgerWrites:
    """Entries written by unit creation and transitions."""

    async def test_creation_writes_initial_entry(self, db, ctx, user, make_unit):
        unit = await make_unit("A1", status=UnitStatus.RESERVED)

        history = await StatusHistoryService(db).history_for_unit(ctx, unit.id)

        assert len(history) == 1
        entry = history[0]
        assert entry.sequence == 1
        assert entry.from_status == entry.to_status == UnitStatus.RESERVED
        assert entry.notes == UNIT_CREATED_NOTE
        assert entry.changed_by_user_id == user.id

    async def test_record_transition_appends_next_sequence(self, db, make_unit):
        unit = await make_unit("A2")
        ledger = StatusHistoryService(db)

        first = await ledger.record_transition(unit.id, UnitStatus.AVAILABLE, UnitStatus.RESERVED)
        second = await ledger.record_transition(unit.id, UnitStatus.RESERVED, UnitStatus.SOLD)
        await db.commit()

        assert (first.sequence, second.sequence) == (2, 3)


class TestLedgerReads:
    """history_for_unit ordering, limits and tenant scope."""

    async def test_most_recent_first(self, db, ctx, make_unit):
        unit = await make_unit("B1")
        service = UnitService(db)
        await service.transition(ctx, unit.id, UnitStatus.RESERVED)
        await service.transition(ctx, unit.id, UnitStatus.OCCUPIED)

        history = await service.history.history_for_unit(ctx, unit.id)

        assert [e.to_status for e in history] == [
            UnitStatus.OCCUPIED,
            UnitStatus.RESERVED,
            UnitStatus.AVAILABLE,
        ]
        assert [e.sequence for e in history] == [3, 2, 1]
        assert history[0].changed_by is not None

    async def test_detail_view_is_capped_and_export_is_not(self, db, ctx, make_unit):
        unit = await make_unit("B2")
        service = UnitService(db)
        statuses = [UnitStatus.RESERVED, UnitStatus.AVAILABLE] * 6
        for status in statuses:
            await service.transition(ctx, unit.id, status)

        _, recent = await service.get_with_history(ctx, unit.id)
        everything = await service.history.history_for_unit(ctx, unit.id, limit=None)

        assert len(recent) == 10
        assert recent[0].sequence == len(statuses) + 1
        assert len(everything) == len(statuses) + 1

    async def test_other_org_sees_nothing(self, db, other_ctx, make_unit):
        unit = await make_unit("B3")

        history = await StatusHistoryService(db).history_for_unit(other_ctx, unit.id)

        assert history == []


class TestVerifyChain:
    """Consumer-side chain check."""

    def test_consistent_chain(self):
        entries = [
            _entry(1, UnitStatus.AVAILABLE, UnitStatus.AVAILABLE, 0),
            _entry(2, UnitStatus.AVAILABLE, UnitStatus.OCCUPIED, 1),
            _entry(3, UnitStatus.OCCUPIED, UnitStatus.MAINTENANCE, 2),
        ]
        assert verify_chain(entries, UnitStatus.MAINTENANCE) == []

    def test_order_of_input_does_not_matter(self):
        entries = [
            _entry(2, UnitStatus.AVAILABLE, UnitStatus.OCCUPIED, 1),
            _entry(1, UnitStatus.AVAILABLE, UnitStatus.AVAILABLE, 0),
        ]
        assert verify_chain(reversed(entries)) == []

    def test_detects_gap(self):
        entries = [
            _entry(1, UnitStatus.AVAILABLE, UnitStatus.AVAILABLE, 0),
            _entry(2, UnitStatus.RESERVED, UnitStatus.SOLD, 1),
        ]
        problems = verify_chain(entries)
        assert len(problems) == 1
        assert "Entry 2" in problems[0]

    def test_detects_head_mismatch(self):
        entries = [_entry(1, UnitStatus.AVAILABLE, UnitStatus.AVAILABLE, 0)]
        problems = verify_chain(entries, UnitStatus.BLOCKED)
        assert len(problems) == 1
        assert "blocked" in problems[0]

    def test_empty_chain(self):
        assert verify_chain([], UnitStatus.AVAILABLE) == []
