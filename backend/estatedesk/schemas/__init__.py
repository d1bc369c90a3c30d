"""Pydantic schemas for the EstateDesk API."""

from estatedesk.schemas.property import *
from estatedesk.schemas.unit import *
from estatedesk.schemas.board import *
from estatedesk.schemas.maintenance import *
from estatedesk.schemas.billing import *
