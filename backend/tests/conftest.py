"""
Shared fixtures: a throwaway SQLite database per test, an organization with
one property, a unit factory and an API client authenticated as an org admin.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date
from uuid import uuid4

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import estatedesk.models  # noqa: F401
from estatedesk.core.context import TenantContext
from estatedesk.core.database import Base, get_db
from estatedesk.core.security import AuthenticatedUser, get_current_user
from estatedesk.main import app
from estatedesk.models import Invoice, MaintenanceTicket, Organization, OrgMembership, Property, User
from estatedesk.models.enums import InvoiceStatus, OrgRole, TicketPriority, TicketStatus, UnitStatus
from estatedesk.schemas.unit import UnitAttributes, UnitCreate
from estatedesk.services.units import UnitService


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'estatedesk.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


async def _create_org(db: AsyncSession, name: str, role: OrgRole = OrgRole.ORG_ADMIN):
    org = Organization(name=name, slug=f"{name.lower().replace(' ', '-')}-{uuid4().hex[:6]}")
    user = User(
        firebase_uid=f"uid-{uuid4().hex}",
        email=f"{uuid4().hex[:8]}@example.com",
        full_name=f"{name} Manager",
    )
    db.add_all([org, user])
    await db.flush()
    db.add(OrgMembership(org_id=org.id, user_id=user.id, role=role))
    await db.commit()
    return org, user


@pytest.fixture
async def org_user(db):
    return await _create_org(db, "Harbor Estates")


@pytest.fixture
def org(org_user):
    return org_user[0]


@pytest.fixture
def user(org_user):
    return org_user[1]


@pytest.fixture
def ctx(org, user):
    return TenantContext(org_id=org.id, user_id=user.id)


@pytest.fixture
async def other_ctx(db):
    other_org, other_user = await _create_org(db, "Rival Holdings")
    return TenantContext(org_id=other_org.id, user_id=other_user.id)


async def _create_property(db: AsyncSession, org_id, name: str) -> Property:
    prop = Property(org_id=org_id, name=name, address_line1="1 Main St", city="Springfield")
    db.add(prop)
    await db.commit()
    return prop


@pytest.fixture
async def prop(db, org):
    return await _create_property(db, org.id, "Harbor Tower")


@pytest.fixture
def create_property(db):
    async def factory(org_id, name: str) -> Property:
        return await _create_property(db, org_id, name)

    return factory


@pytest.fixture
def make_unit(db, ctx, prop):
    """Create a unit through the service, with its initial history entry."""

    async def factory(unit_number: str, status: UnitStatus = UnitStatus.AVAILABLE, property_id=None, context=None, **fields):
        attributes = fields.pop("attributes", None) or UnitAttributes()
        return await UnitService(db).create(
            context or ctx,
            UnitCreate(
                property_id=property_id or prop.id,
                unit_number=unit_number,
                status=status,
                attributes=attributes,
                **fields,
            ),
        )

    return factory


@pytest.fixture
def add_invoice(db):
    async def factory(unit_id, status: InvoiceStatus, due_date: date, amount_cents: int = 100_000) -> Invoice:
        invoice = Invoice(unit_id=unit_id, status=status, due_date=due_date, amount_cents=amount_cents)
        db.add(invoice)
        await db.commit()
        return invoice

    return factory


@pytest.fixture
def add_ticket(db):
    async def factory(unit_id, priority: TicketPriority, status: TicketStatus = TicketStatus.OPEN) -> MaintenanceTicket:
        ticket = MaintenanceTicket(unit_id=unit_id, title="Leaking tap", priority=priority, status=status)
        db.add(ticket)
        await db.commit()
        return ticket

    return factory


@pytest.fixture
def auth_user(org, user):
    current = AuthenticatedUser(uid=user.firebase_uid, email=user.email, email_verified=True)
    current.db_user_id = user.id
    current.org_id = org.id
    current.org_role = OrgRole.ORG_ADMIN.value
    return current


@pytest.fixture
async def client(session_factory, auth_user):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: auth_user

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
