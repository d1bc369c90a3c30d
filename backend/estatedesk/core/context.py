"""Explicit tenant context passed to every service call."""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class TenantContext:
    """Organization scope and acting user for one operation."""

    org_id: UUID
    user_id: Optional[UUID] = None
