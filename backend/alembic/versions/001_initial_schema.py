"""Initial EstateDesk schema

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-17

Units, status history ledger and the board inputs (invoices, tickets).
Money as INTEGER CENTS (BIGINT).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

orgrole = postgresql.ENUM('ORG_OWNER', 'ORG_ADMIN', 'ORG_AGENT', name='orgrole', create_type=False)
unitstatus = postgresql.ENUM(
    'available', 'occupied', 'maintenance', 'reserved', 'sold', 'blocked',
    name='unitstatus', create_type=False,
)
invoicestatus = postgresql.ENUM('draft', 'sent', 'paid', 'overdue', 'cancelled', name='invoicestatus', create_type=False)
ticketstatus = postgresql.ENUM('open', 'in_progress', 'resolved', 'closed', name='ticketstatus', create_type=False)
ticketpriority = postgresql.ENUM('low', 'medium', 'high', 'urgent', name='ticketpriority', create_type=False)
activityaction = postgresql.ENUM('create', 'update', 'move_status', 'delete', name='activityaction', create_type=False)

ENUMS = (orgrole, unitstatus, invoicestatus, ticketstatus, ticketpriority, activityaction)


def upgrade() -> None:
    bind = op.get_bind()
    # unitstatus is shared by three columns, so types are created once up front
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    # === USERS ===
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('firebase_uid', sa.String(128), unique=True, nullable=False, index=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === ORGANIZATIONS ===
    op.create_table(
        'organizations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), unique=True, nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === ORG MEMBERSHIPS ===
    op.create_table(
        'org_memberships',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('role', orgrole, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('org_id', 'user_id', name='uq_org_memberships_org_user'),
    )

    # === PROPERTIES ===
    op.create_table(
        'properties',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address_line1', sa.String(255), nullable=False),
        sa.Column('address_line2', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('state', sa.String(50), nullable=True),
        sa.Column('zip_code', sa.String(20), nullable=True),
        sa.Column('country', sa.String(50), default='USA'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === TENANTS ===
    op.create_table(
        'tenants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === UNITS ===
    op.create_table(
        'units',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('property_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenants.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('unit_number', sa.String(50), nullable=False),
        sa.Column('status', unitstatus, nullable=False, index=True),
        # Money as INTEGER CENTS (BIGINT)
        sa.Column('rent_amount_cents', sa.BigInteger(), nullable=True),
        sa.Column('deposit_amount_cents', sa.BigInteger(), nullable=True),
        sa.Column('floor', sa.Integer(), nullable=True),
        sa.Column('bedrooms', sa.Integer(), nullable=True),
        sa.Column('bathrooms', sa.Float(), nullable=True),
        sa.Column('size_sq_ft', sa.Float(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('extra_attributes', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('property_id', 'unit_number', name='uq_units_property_unit_number'),
    )

    # === UNIT STATUS HISTORY (append-only) ===
    op.create_table(
        'unit_status_history',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('unit_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('units.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('from_status', unitstatus, nullable=False),
        sa.Column('to_status', unitstatus, nullable=False),
        sa.Column('changed_by_user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('changed_at', sa.DateTime(), nullable=False, index=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.UniqueConstraint('unit_id', 'sequence', name='uq_unit_status_history_sequence'),
    )

    # === INVOICES ===
    op.create_table(
        'invoices',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('unit_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('units.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('number', sa.String(50), nullable=True),
        sa.Column('status', invoicestatus, nullable=False, index=True),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === MAINTENANCE TICKETS ===
    op.create_table(
        'maintenance_tickets',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('unit_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('units.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', ticketstatus, nullable=False, index=True),
        sa.Column('priority', ticketpriority, nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_maintenance_tickets_unit_status', 'maintenance_tickets', ['unit_id', 'status'])

    # === ACTIVITY LOG ===
    op.create_table(
        'activity_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('action', activityaction, nullable=False, index=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column('payload', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('activity_log')
    op.drop_index('ix_maintenance_tickets_unit_status')
    op.drop_table('maintenance_tickets')
    op.drop_table('invoices')
    op.drop_table('unit_status_history')
    op.drop_table('units')
    op.drop_table('tenants')
    op.drop_table('properties')
    op.drop_table('org_memberships')
    op.drop_table('organizations')
    op.drop_table('users')

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
