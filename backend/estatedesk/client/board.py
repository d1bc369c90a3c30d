"""
Units board state with optimistic status moves.

A move is applied to the local collection first, then persisted through
the API. If the API call fails, the unit is restored from its snapshot and
an error notification is recorded. Filters, columns and statistics are
derived from the current collection on every read.

Move lifecycle: APPLIED -> COMMITTED | ROLLED_BACK
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Mapping, Optional, Union
from uuid import UUID

from estatedesk.client.units_api import UnitsApiClient, UnitsApiError
from estatedesk.models.enums import UnitStatus
from estatedesk.schemas.board import BoardColumn, BoardStats, BoardUnit, FilterState
from estatedesk.services.board import apply_filters, compute_stats, group_by_status
from estatedesk.services.transitions import validate_transition

logger = logging.getLogger(__name__)

Listener = Callable[["BoardState"], None]


class MoveOutcome(str, Enum):
    """State of one optimistic move."""
    APPLIED = "applied"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class PendingMove:
    """One status move and what became of it."""

    unit_id: UUID
    from_status: UnitStatus
    to_status: UnitStatus
    notes: Optional[str] = None
    outcome: MoveOutcome = MoveOutcome.APPLIED
    error: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True)
class Notification:
    """User-facing message produced by the board."""

    level: str
    message: str
    unit_id: Optional[UUID] = None


class MoveInProgressError(Exception):
    """A unit already has a status move in flight."""

    def __init__(self, unit_id: UUID):
        super().__init__(f"Unit {unit_id} already has a status change pending")
        self.unit_id = unit_id


class BoardState:
    """In-memory unit collection, filters and optimistic moves for one board."""

    def __init__(
        self,
        api: UnitsApiClient,
        units: Iterable[BoardUnit] = (),
        filters: Optional[FilterState] = None,
        titles: Optional[Mapping[UnitStatus, str]] = None,
    ):
        self.api = api
        self.filters = filters or FilterState()
        self.titles = titles
        self.notifications: list[Notification] = []
        self._units: dict[UUID, BoardUnit] = {unit.id: unit for unit in units}
        self._pending: dict[UUID, PendingMove] = {}
        self._listeners: list[Listener] = []

    # --- Collection ---

    @property
    def units(self) -> list[BoardUnit]:
        return list(self._units.values())

    def get_unit(self, unit_id: UUID) -> Optional[BoardUnit]:
        return self._units.get(unit_id)

    async def load(self, property_id: Optional[UUID] = None) -> None:
        """Replace the collection with the server's units."""
        units = await self.api.fetch_board_units(property_id=property_id)
        self._units = {unit.id: unit for unit in units}
        logger.info(f"[BOARD] Loaded {len(units)} units")
        self._notify()

    # --- Listeners ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # --- Filters ---

    def set_filters(self, **changes: Union[str, bool, UUID]) -> None:
        for name, value in changes.items():
            setattr(self.filters, name, value)
        self._notify()

    def clear_filters(self) -> None:
        self.filters.reset()
        self._notify()

    # --- Moves ---

    def is_pending(self, unit_id: UUID) -> bool:
        return unit_id in self._pending

    async def move_unit(
        self,
        unit_id: UUID,
        to_status: Union[UnitStatus, str],
        notes: Optional[str] = None,
    ) -> Optional[PendingMove]:
        """Move a unit to a new status, optimistically.

        Returns None when nothing was done (unknown unit, or the unit is
        already in `to_status`). API failures never escape: the unit is
        restored and the returned move is ROLLED_BACK.

        Raises:
            MoveInProgressError: the unit has a move in flight
            InvalidTransitionError: `to_status` is not a valid target
        """
        snapshot = self._units.get(unit_id)
        if snapshot is None:
            logger.debug(f"[BOARD] Ignoring move for unknown unit {unit_id}")
            return None
        if unit_id in self._pending:
            raise MoveInProgressError(unit_id)

        target = validate_transition(snapshot.status, to_status)
        if target == snapshot.status:
            return None

        move = PendingMove(
            unit_id=unit_id,
            from_status=snapshot.status,
            to_status=target,
            notes=notes,
        )
        self._pending[unit_id] = move
        optimistic = snapshot.model_copy(update={"status": target})
        self._units[unit_id] = optimistic
        self._notify()

        try:
            updated = await self.api.update_status(unit_id, target, notes)
        except UnitsApiError as e:
            # A reload during the call already holds fresher server data
            if self._units.get(unit_id) is optimistic:
                self._units[unit_id] = snapshot
            move.outcome = MoveOutcome.ROLLED_BACK
            move.error = e.detail
            self.notifications.append(
                Notification(
                    level="error",
                    message=f"Could not move unit {snapshot.unit_number} to {target.value}: {e.detail}",
                    unit_id=unit_id,
                )
            )
            logger.warning(
                f"[BOARD] Rolled back unit {unit_id} to {snapshot.status.value} "
                f"({e.status_code or 'network'}: {e.detail})"
            )
        else:
            current = self._units.get(unit_id)
            if current is not None:
                self._units[unit_id] = current.model_copy(update={"status": updated.status})
            move.outcome = MoveOutcome.COMMITTED
            logger.info(
                f"[BOARD] Unit {unit_id} moved {snapshot.status.value} -> {updated.status.value}"
            )
        finally:
            self._pending.pop(unit_id, None)

        self._notify()
        return move

    # --- Derived views ---

    def filtered_units(self, now: Optional[datetime] = None) -> list[BoardUnit]:
        return apply_filters(self._units.values(), self.filters, now)

    def columns(self, now: Optional[datetime] = None) -> list[BoardColumn]:
        return group_by_status(self.filtered_units(now), self.titles)

    def stats(self, now: Optional[datetime] = None) -> BoardStats:
        return compute_stats(self.filtered_units(now), now)
