"""Services for EstateDesk."""

from estatedesk.services.audit import ActivityService
from estatedesk.services.status_history import StatusHistoryService, verify_chain
from estatedesk.services.transitions import TRANSITIONS, validate_transition
from estatedesk.services.units import UnitService

__all__ = [
    "ActivityService",
    "StatusHistoryService",
    "verify_chain",
    "TRANSITIONS",
    "validate_transition",
    "UnitService",
]
