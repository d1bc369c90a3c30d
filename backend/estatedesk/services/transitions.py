"""Unit status transition table and validator.

Every status change goes through `validate_transition`. The table is total
(any status may move to any status, itself included) because no stricter
rules have been agreed for the product yet. Tightening a row here is the
only change needed to forbid a move.
"""

from typing import Union

from estatedesk.core.errors import InvalidTransitionError
from estatedesk.models.enums import BOARD_STATUSES, UnitStatus

TRANSITIONS: dict[UnitStatus, frozenset[UnitStatus]] = {
    status: frozenset(BOARD_STATUSES) for status in BOARD_STATUSES
}


def coerce_status(value: Union[UnitStatus, str]) -> UnitStatus:
    """Parse a status value, raising InvalidTransitionError if unknown."""
    if isinstance(value, UnitStatus):
        return value
    try:
        return UnitStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in BOARD_STATUSES)
        raise InvalidTransitionError(f"Invalid unit status '{value}'. Must be one of: {allowed}")


def validate_transition(
    from_status: Union[UnitStatus, str],
    to_status: Union[UnitStatus, str],
) -> UnitStatus:
    """Check a move against the table and return the parsed target status."""
    source = coerce_status(from_status)
    target = coerce_status(to_status)
    if target not in TRANSITIONS[source]:
        raise InvalidTransitionError(
            f"Cannot move unit from '{source.value}' to '{target.value}'"
        )
    return target
