"""SQLAlchemy models for EstateDesk."""

from estatedesk.models.org import Organization, OrgMembership, User
from estatedesk.models.tenant import Tenant
from estatedesk.models.property import Property, Unit
from estatedesk.models.status_history import UnitStatusHistory
from estatedesk.models.billing import Invoice
from estatedesk.models.maintenance import MaintenanceTicket
from estatedesk.models.audit import ActivityLog

__all__ = [
    "User",
    "Organization",
    "OrgMembership",
    "Tenant",
    "Property",
    "Unit",
    "UnitStatusHistory",
    "Invoice",
    "MaintenanceTicket",
    "ActivityLog",
]
