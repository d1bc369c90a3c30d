"""
Tests for the optimistic board coordinator and its API client.
"""
import asyncio
import json
from datetime import datetime
from uuid import UUID, uuid4

import httpx
import pytest

from estatedesk.client import (
    BoardState,
    MoveInProgressError,
    MoveOutcome,
    UnitsApiClient,
    UnitsApiError,
)
from estatedesk.core.errors import InvalidTransitionError
from estatedesk.main import app
from estatedesk.models.enums import UnitStatus
from estatedesk.schemas.board import BoardUnit, FilterState
from estatedesk.schemas.property import PropertySummary
from estatedesk.services.status_history import StatusHistoryService
from estatedesk.services.units import UnitService

PROPERTY = PropertySummary(id=uuid4(), name="Harbor Tower")


def card(number, status=UnitStatus.AVAILABLE):
    return BoardUnit(id=uuid4(), unit_number=number, status=status, property=PROPERTY)


def unit_payload(unit_id, status):
    return {
        "id": str(unit_id),
        "property_id": str(PROPERTY.id),
        "unit_number": "X",
        "status": status,
        "attributes": {},
        "created_at": datetime(2026, 1, 1).isoformat(),
    }


class Recorder:
    """MockTransport handler that records requests and replies with a fixed status."""

    def __init__(self, status_code=200):
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code >= 400:
            return httpx.Response(self.status_code, json={"detail": "Internal Server Error"})
        body = json.loads(request.content)
        unit_id = UUID(request.url.path.split("/")[-2])
        return httpx.Response(self.status_code, json=unit_payload(unit_id, body["status"]))


def make_board(handler, units):
    api = UnitsApiClient(base_url="http://test/v1", transport=httpx.MockTransport(handler))
    return BoardState(api, units)


class TestOptimisticMove:
    """move_unit state machine: APPLIED -> COMMITTED | ROLLED_BACK."""

    async def test_failed_call_rolls_back(self):
        """U2 available -> maintenance; backend answers 500."""
        u1, u2 = card("U1", UnitStatus.OCCUPIED), card("U2")
        handler = Recorder(500)
        board = make_board(handler, [u1, u2])

        move = await board.move_unit(u2.id, UnitStatus.MAINTENANCE)

        assert move.outcome == MoveOutcome.ROLLED_BACK
        assert board.get_unit(u2.id).status == UnitStatus.AVAILABLE
        assert board.get_unit(u1.id) == u1
        assert len(board.notifications) == 1
        assert board.notifications[0].level == "error"
        assert board.notifications[0].unit_id == u2.id
        assert not board.is_pending(u2.id)
        assert len(handler.requests) == 1

    async def test_rollback_restores_prior_status_for_every_target(self):
        for original in UnitStatus:
            for target in UnitStatus:
                if target == original:
                    continue
                unit = card("R1", original)
                board = make_board(Recorder(503), [unit])

                move = await board.move_unit(unit.id, target)

                assert move.outcome == MoveOutcome.ROLLED_BACK
                assert board.get_unit(unit.id) == unit

    async def test_successful_call_commits(self):
        unit = card("C1")
        handler = Recorder(200)
        board = make_board(handler, [unit])

        move = await board.move_unit(unit.id, "reserved", notes="deposit paid")

        assert move.outcome == MoveOutcome.COMMITTED
        assert move.from_status == UnitStatus.AVAILABLE
        assert board.get_unit(unit.id).status == UnitStatus.RESERVED
        assert board.notifications == []
        sent = json.loads(handler.requests[0].content)
        assert handler.requests[0].method == "PATCH"
        assert handler.requests[0].url.path == f"/v1/units/{unit.id}/status"
        assert sent == {"status": "reserved", "notes": "deposit paid"}

    async def test_network_error_rolls_back(self):
        unit = card("N1")

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        board = make_board(handler, [unit])
        move = await board.move_unit(unit.id, UnitStatus.SOLD)

        assert move.outcome == MoveOutcome.ROLLED_BACK
        assert board.get_unit(unit.id).status == UnitStatus.AVAILABLE
        assert "connection refused" in board.notifications[0].message

    async def test_malformed_success_body_rolls_back(self):
        unit = card("M1")

        def handler(request):
            return httpx.Response(200, json={"ok": True})

        board = make_board(handler, [unit])
        move = await board.move_unit(unit.id, UnitStatus.SOLD)

        assert move.outcome == MoveOutcome.ROLLED_BACK
        assert move.error == "Invalid UnitResponse in response"
        assert board.get_unit(unit.id) == unit
        assert len(board.notifications) == 1
        assert not board.is_pending(unit.id)

    async def test_reload_during_failed_move_is_kept(self):
        """A board reload while the call is in flight wins over the rollback snapshot."""
        unit = card("R2")
        fresh = unit.model_copy(update={"status": UnitStatus.SOLD, "unit_number": "R2-new"})
        started = asyncio.Event()
        release = asyncio.Event()

        async def handler(request):
            if request.method == "GET":
                return httpx.Response(
                    200,
                    json={
                        "columns": [
                            {"status": "sold", "title": "Sold", "units": [fresh.model_dump(mode="json")]},
                        ],
                        "stats": {},
                        "total_units": 1,
                        "visible_units": 1,
                    },
                )
            started.set()
            await release.wait()
            return httpx.Response(500, json={"detail": "Internal Server Error"})

        board = make_board(handler, [unit])
        task = asyncio.create_task(board.move_unit(unit.id, UnitStatus.OCCUPIED))
        await asyncio.wait_for(started.wait(), timeout=1)

        await board.load()
        release.set()
        move = await task

        assert move.outcome == MoveOutcome.ROLLED_BACK
        assert board.get_unit(unit.id) == fresh
        assert len(board.notifications) == 1

    async def test_unknown_unit_is_ignored(self):
        handler = Recorder()
        board = make_board(handler, [card("K1")])

        assert await board.move_unit(uuid4(), UnitStatus.SOLD) is None
        assert handler.requests == []

    async def test_same_status_makes_no_call(self):
        unit = card("S1", UnitStatus.OCCUPIED)
        handler = Recorder()
        board = make_board(handler, [unit])

        assert await board.move_unit(unit.id, UnitStatus.OCCUPIED) is None
        assert handler.requests == []

    async def test_invalid_status_is_rejected_before_any_call(self):
        unit = card("I1")
        handler = Recorder()
        board = make_board(handler, [unit])

        with pytest.raises(InvalidTransitionError):
            await board.move_unit(unit.id, "demolished")

        assert handler.requests == []
        assert board.get_unit(unit.id) == unit

    async def test_unit_is_locked_while_pending(self):
        unit, other = card("L1"), card("L2")
        started = asyncio.Event()
        release = asyncio.Event()
        seen = []

        async def handler(request):
            started.set()
            await release.wait()
            body = json.loads(request.content)
            return httpx.Response(200, json=unit_payload(unit.id, body["status"]))

        board = make_board(handler, [unit, other])
        board.subscribe(lambda state: seen.append(state.get_unit(unit.id).status))

        task = asyncio.create_task(board.move_unit(unit.id, UnitStatus.OCCUPIED))
        await asyncio.wait_for(started.wait(), timeout=1)

        # Optimistic state is visible before the call resolves
        assert board.is_pending(unit.id)
        assert board.get_unit(unit.id).status == UnitStatus.OCCUPIED
        with pytest.raises(MoveInProgressError):
            await board.move_unit(unit.id, UnitStatus.SOLD)

        release.set()
        move = await task

        assert move.outcome == MoveOutcome.COMMITTED
        assert not board.is_pending(unit.id)
        assert board.get_unit(other.id) == other
        assert seen == [UnitStatus.OCCUPIED, UnitStatus.OCCUPIED]


class TestBoardViews:
    """Filters, columns and stats read from the live collection."""

    async def test_views_track_moves_and_filters(self):
        units = [card("101"), card("102", UnitStatus.OCCUPIED), card("201")]
        board = make_board(Recorder(), units)

        await board.move_unit(units[0].id, UnitStatus.OCCUPIED)
        columns = {c.status: c.count for c in board.columns()}
        assert columns[UnitStatus.OCCUPIED] == 2
        assert board.stats().occupancy_rate == 66.7

        board.set_filters(search="10")
        assert [u.unit_number for u in board.filtered_units()] == ["101", "102"]

        board.clear_filters()
        assert board.filters == FilterState()
        assert len(board.filtered_units()) == 3

    async def test_unsubscribe(self):
        board = make_board(Recorder(), [])
        calls = []
        unsubscribe = board.subscribe(lambda state: calls.append(1))

        board.clear_filters()
        unsubscribe()
        board.clear_filters()

        assert calls == [1]

    async def test_load_replaces_collection(self):
        fetched = card("F1")

        def handler(request):
            assert request.url.path == "/v1/units/board"
            return httpx.Response(
                200,
                json={
                    "columns": [
                        {"status": "available", "title": "Available", "units": [fetched.model_dump(mode="json")]},
                    ],
                    "stats": {},
                    "total_units": 1,
                    "visible_units": 1,
                },
            )

        board = make_board(handler, [card("old")])
        await board.load()

        assert board.units == [fetched]


class TestUnitsApiClient:
    async def test_error_detail_is_kept(self):
        def handler(request):
            return httpx.Response(404, json={"detail": "Unit not found"})

        api = UnitsApiClient(base_url="http://test/v1", transport=httpx.MockTransport(handler))

        with pytest.raises(UnitsApiError) as exc:
            await api.update_status(uuid4(), UnitStatus.SOLD)

        assert exc.value.status_code == 404
        assert exc.value.detail == "Unit not found"

    async def test_bearer_token_is_sent(self):
        captured = []

        def handler(request):
            captured.append(request.headers.get("Authorization"))
            return httpx.Response(200, json=unit_payload(uuid4(), "sold"))

        api = UnitsApiClient(base_url="http://test/v1", token="abc", transport=httpx.MockTransport(handler))
        await api.update_status(uuid4(), UnitStatus.SOLD)

        assert captured == ["Bearer abc"]


class TestAgainstApi:
    """Coordinator talking to the real application."""

    async def test_commit_and_rollback_end_to_end(self, client, db, ctx, make_unit):
        kept = await make_unit("E1")
        gone = await make_unit("E2")
        board_units = await UnitService(db).list_board_units(ctx)

        api = UnitsApiClient(base_url="http://test/v1", transport=httpx.ASGITransport(app=app))
        board = BoardState(api, board_units)

        committed = await board.move_unit(kept.id, UnitStatus.OCCUPIED)
        assert committed.outcome == MoveOutcome.COMMITTED

        await UnitService(db).delete(ctx, gone.id)
        rolled_back = await board.move_unit(gone.id, UnitStatus.OCCUPIED)
        assert rolled_back.outcome == MoveOutcome.ROLLED_BACK
        assert rolled_back.error == "Unit not found"
        assert board.get_unit(gone.id).status == UnitStatus.AVAILABLE

        history = await StatusHistoryService(db).history_for_unit(ctx, kept.id)
        assert [e.to_status for e in history] == [UnitStatus.OCCUPIED, UnitStatus.AVAILABLE]
