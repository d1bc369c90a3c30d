"""UnitStatusHistory model - append-only ledger of unit status transitions."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from estatedesk.core.database import Base
from estatedesk.models.enums import UnitStatus, enum_values

if TYPE_CHECKING:
    from estatedesk.models.property import Unit
    from estatedesk.models.org import User


class UnitStatusHistory(Base):
    """One recorded status transition. Rows are never updated or deleted."""

    __tablename__ = "unit_status_history"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    unit_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("units.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Position in the unit's chain, 1-based
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    from_status: Mapped[UnitStatus] = mapped_column(
        SQLEnum(UnitStatus, name="unitstatus", values_callable=enum_values),
        nullable=False,
    )
    to_status: Mapped[UnitStatus] = mapped_column(
        SQLEnum(UnitStatus, name="unitstatus", values_callable=enum_values),
        nullable=False,
    )

    changed_by_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    changed_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    unit: Mapped["Unit"] = relationship("Unit", back_populates="status_history")
    changed_by: Mapped[Optional["User"]] = relationship("User", back_populates="status_changes")

    __table_args__ = (
        UniqueConstraint("unit_id", "sequence", name="uq_unit_status_history_sequence"),
    )
