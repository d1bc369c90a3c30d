"""Async board client for the EstateDesk API."""

from estatedesk.client.board import (
    BoardState,
    MoveInProgressError,
    MoveOutcome,
    Notification,
    PendingMove,
)
from estatedesk.client.units_api import UnitsApiClient, UnitsApiError

__all__ = [
    "BoardState",
    "MoveInProgressError",
    "MoveOutcome",
    "Notification",
    "PendingMove",
    "UnitsApiClient",
    "UnitsApiError",
]
