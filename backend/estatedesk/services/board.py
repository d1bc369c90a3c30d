"""Board filters, column grouping and statistics.

Pure functions over `BoardUnit` values. The input collection is never
mutated; every call recomputes from scratch.
"""

from datetime import datetime, time
from typing import TYPE_CHECKING, Iterable, Mapping, Optional, Sequence

from estatedesk.models.enums import (
    ACTIVE_TICKET_STATUSES,
    BOARD_STATUSES,
    InvoiceStatus,
    TicketPriority,
    UnitStatus,
)
from estatedesk.schemas.board import (
    ALL_PROPERTIES,
    BoardAttributes,
    BoardColumn,
    BoardStats,
    BoardUnit,
    FilterState,
    InvoiceSummary,
    TenantSummary,
    TicketSummary,
)
from estatedesk.schemas.property import PropertySummary

if TYPE_CHECKING:
    from estatedesk.models.property import Unit

STATUS_TITLES: dict[str, dict[UnitStatus, str]] = {
    "en": {
        UnitStatus.AVAILABLE: "Available",
        UnitStatus.OCCUPIED: "Occupied",
        UnitStatus.MAINTENANCE: "Maintenance",
        UnitStatus.RESERVED: "Reserved",
        UnitStatus.SOLD: "Sold",
        UnitStatus.BLOCKED: "Blocked",
    },
    "es": {
        UnitStatus.AVAILABLE: "Disponible",
        UnitStatus.OCCUPIED: "Ocupada",
        UnitStatus.MAINTENANCE: "Mantenimiento",
        UnitStatus.RESERVED: "Reservada",
        UnitStatus.SOLD: "Vendida",
        UnitStatus.BLOCKED: "Bloqueada",
    },
    "fr": {
        UnitStatus.AVAILABLE: "Disponible",
        UnitStatus.OCCUPIED: "Occupé",
        UnitStatus.MAINTENANCE: "Maintenance",
        UnitStatus.RESERVED: "Réservé",
        UnitStatus.SOLD: "Vendu",
        UnitStatus.BLOCKED: "Bloqué",
    },
}


def status_titles(locale: Optional[str] = None) -> dict[UnitStatus, str]:
    """Column titles for a locale, English for anything unknown."""
    titles = dict(STATUS_TITLES["en"])
    if locale:
        titles.update(STATUS_TITLES.get(locale.split("-")[0].lower(), {}))
    return titles


# --- Unit predicates ---

def _is_past(due_date, now: datetime) -> bool:
    return datetime.combine(due_date, time.min) < now


def has_overdue_invoice(unit: BoardUnit, now: datetime) -> bool:
    """Overdue status AND due date strictly in the past."""
    return any(
        invoice.status == InvoiceStatus.OVERDUE and _is_past(invoice.due_date, now)
        for invoice in unit.invoices
    )


def has_overdue_status_invoice(unit: BoardUnit) -> bool:
    return any(invoice.status == InvoiceStatus.OVERDUE for invoice in unit.invoices)


def has_open_ticket(unit: BoardUnit, priority: Optional[TicketPriority] = None) -> bool:
    """Any open/in-progress ticket, optionally of one priority."""
    return any(
        ticket.status in ACTIVE_TICKET_STATUSES
        and (priority is None or ticket.priority == priority)
        for ticket in unit.tickets
    )


def has_urgent_issue(unit: BoardUnit) -> bool:
    """Overdue invoice or urgent open/in-progress ticket."""
    return has_overdue_status_invoice(unit) or has_open_ticket(unit, TicketPriority.URGENT)


def matches_search(unit: BoardUnit, search: str) -> bool:
    term = search.lower()
    if not term:
        return True
    candidates = [unit.unit_number, unit.property.name]
    if unit.tenant is not None:
        candidates.append(unit.tenant.name)
    return any(term in value.lower() for value in candidates)


def matches_property(unit: BoardUnit, property_id) -> bool:
    if property_id == ALL_PROPERTIES or property_id is None:
        return True
    return str(unit.property.id) == str(property_id)


def unit_matches(unit: BoardUnit, filters: FilterState, now: datetime) -> bool:
    """True when the unit satisfies every active filter."""
    if filters.search and not matches_search(unit, filters.search):
        return False
    if not matches_property(unit, filters.property_id):
        return False
    if filters.urgent_only and not has_urgent_issue(unit):
        return False
    if filters.overdue_only and not has_overdue_invoice(unit, now):
        return False
    if filters.maintenance_only and not has_open_ticket(unit):
        return False
    return True


# --- Board derivation ---

def apply_filters(
    units: Iterable[BoardUnit],
    filters: FilterState,
    now: Optional[datetime] = None,
) -> list[BoardUnit]:
    """Units passing every active filter, in source order."""
    now = now or datetime.utcnow()
    return [unit for unit in units if unit_matches(unit, filters, now)]


def group_by_status(
    units: Iterable[BoardUnit],
    titles: Optional[Mapping[UnitStatus, str]] = None,
) -> list[BoardColumn]:
    """Stable partition into one column per status, in board order."""
    titles = titles or status_titles()
    buckets: dict[UnitStatus, list[BoardUnit]] = {status: [] for status in BOARD_STATUSES}
    for unit in units:
        buckets[unit.status].append(unit)
    return [
        BoardColumn(status=status, title=titles.get(status, status.value.title()), units=buckets[status])
        for status in BOARD_STATUSES
    ]


def compute_stats(units: Sequence[BoardUnit], now: Optional[datetime] = None) -> BoardStats:
    """Statistics over the given (already filtered) units."""
    now = now or datetime.utcnow()
    stats = BoardStats(total_units=len(units))
    occupied = 0

    for unit in units:
        overdue = has_overdue_invoice(unit, now)
        urgent = has_open_ticket(unit, TicketPriority.URGENT)

        if overdue:
            stats.overdue_units += 1
            stats.overdue_amount_cents += sum(
                invoice.amount_cents
                for invoice in unit.invoices
                if invoice.status == InvoiceStatus.OVERDUE and _is_past(invoice.due_date, now)
            )
        if urgent:
            stats.urgent_maintenance_units += 1
        if overdue and urgent:
            stats.critical_units += 1
        if has_open_ticket(unit, TicketPriority.HIGH):
            stats.high_maintenance_units += 1
        if has_open_ticket(unit):
            stats.maintenance_units += 1
        if unit.status == UnitStatus.OCCUPIED:
            occupied += 1

    if units:
        stats.occupancy_rate = round(occupied / len(units) * 100, 1)
    return stats


def to_board_unit(unit: "Unit") -> BoardUnit:
    """Build a board card from a unit loaded with its relations."""
    tenant = unit.tenant
    return BoardUnit(
        id=unit.id,
        unit_number=unit.unit_number,
        status=unit.status,
        rent_amount_cents=unit.rent_amount_cents,
        property=PropertySummary(id=unit.property.id, name=unit.property.name),
        tenant=TenantSummary(id=tenant.id, name=tenant.name, email=tenant.email) if tenant else None,
        attributes=BoardAttributes(
            floor=unit.floor,
            bedrooms=unit.bedrooms,
            bathrooms=unit.bathrooms,
            size_sq_ft=unit.size_sq_ft,
        ),
        invoices=[InvoiceSummary.model_validate(invoice) for invoice in unit.invoices],
        tickets=[TicketSummary.model_validate(ticket) for ticket in unit.maintenance_tickets],
    )
