"""Property and Unit models."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from estatedesk.core.database import Base
from estatedesk.models.enums import UnitStatus, enum_values

if TYPE_CHECKING:
    from estatedesk.models.org import Organization
    from estatedesk.models.tenant import Tenant
    from estatedesk.models.billing import Invoice
    from estatedesk.models.maintenance import MaintenanceTicket
    from estatedesk.models.status_history import UnitStatusHistory


class Property(Base):
    """A property (building/complex) owned/managed by an organization."""

    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    org_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Address
    address_line1: Mapped[str] = mapped_column(String(255), nullable=False)
    address_line2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[str] = mapped_column(String(50), default="USA")

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    org: Mapped["Organization"] = relationship("Organization", back_populates="properties")
    units: Mapped[list["Unit"]] = relationship(
        "Unit", back_populates="property", cascade="all, delete-orphan"
    )


class Unit(Base):
    """A rentable/sellable unit within a property.

    `status` is only changed through the transition service so that every
    change has a matching history entry.
    """

    __tablename__ = "units"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tenant_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    unit_number: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[UnitStatus] = mapped_column(
        SQLEnum(UnitStatus, name="unitstatus", values_callable=enum_values),
        default=UnitStatus.AVAILABLE,
        nullable=False,
        index=True,
    )

    # Money (INTEGER CENTS)
    rent_amount_cents: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    deposit_amount_cents: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    # Structured attributes
    floor: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    size_sq_ft: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Fields with no stable schema yet
    extra_attributes: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        default=dict,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    property: Mapped["Property"] = relationship("Property", back_populates="units")
    tenant: Mapped[Optional["Tenant"]] = relationship("Tenant", back_populates="units")
    status_history: Mapped[list["UnitStatusHistory"]] = relationship(
        "UnitStatusHistory",
        back_populates="unit",
        cascade="all, delete-orphan",
        order_by="UnitStatusHistory.sequence",
    )
    invoices: Mapped[list["Invoice"]] = relationship(
        "Invoice", back_populates="unit", cascade="all, delete-orphan"
    )
    maintenance_tickets: Mapped[list["MaintenanceTicket"]] = relationship(
        "MaintenanceTicket", back_populates="unit", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("property_id", "unit_number", name="uq_units_property_unit_number"),
    )
