"""Enumeration types for the EstateDesk domain model."""

from enum import Enum


class UnitStatus(str, Enum):
    """Lifecycle status of a unit. Closed set."""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    RESERVED = "reserved"
    SOLD = "sold"
    BLOCKED = "blocked"


# Board column order
BOARD_STATUSES: tuple[UnitStatus, ...] = (
    UnitStatus.AVAILABLE,
    UnitStatus.OCCUPIED,
    UnitStatus.MAINTENANCE,
    UnitStatus.RESERVED,
    UnitStatus.SOLD,
    UnitStatus.BLOCKED,
)


class OrgRole(str, Enum):
    """Role within an organization."""
    ORG_OWNER = "ORG_OWNER"
    ORG_ADMIN = "ORG_ADMIN"
    ORG_AGENT = "ORG_AGENT"


class InvoiceStatus(str, Enum):
    """Status of a tenant invoice."""
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class TicketPriority(str, Enum):
    """Priority of a maintenance ticket."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TicketStatus(str, Enum):
    """Status of a maintenance ticket."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


# Tickets that still need work
ACTIVE_TICKET_STATUSES: frozenset[TicketStatus] = frozenset(
    {TicketStatus.OPEN, TicketStatus.IN_PROGRESS}
)


class ActivityAction(str, Enum):
    """Actions tracked in the activity log."""
    CREATE = "create"
    UPDATE = "update"
    MOVE_STATUS = "move_status"
    DELETE = "delete"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Persist enum values rather than member names."""
    return [member.value for member in enum_cls]
