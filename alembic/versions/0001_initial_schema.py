"""Initial schema - locations, calendars, time periods, appointments, orders

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18

Commerce tables (products, variants, orders, line items) mirror the records
the booking workflow reads durations from.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create booking and commerce tables."""

    # ==========================================================================
    # Commerce
    # ==========================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('metadata', JSON_TYPE, nullable=True),
    )
    op.create_table(
        'product_variants',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('product_id', sa.Uuid(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('metadata', JSON_TYPE, nullable=True),
    )
    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        'line_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('order_id', sa.Uuid(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('variant_id', sa.Uuid(), sa.ForeignKey('product_variants.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
    )

    # ==========================================================================
    # Locations & Calendars
    # ==========================================================================
    op.create_table(
        'locations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('metadata', JSON_TYPE, nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'calendars',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('location_id', sa.Uuid(), sa.ForeignKey('locations.id', ondelete='CASCADE'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('color', sa.String(20), nullable=True),
        sa.Column('metadata', JSON_TYPE, nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_calendars_location', 'calendars', ['location_id'])
    op.create_index('idx_calendars_name', 'calendars', ['name'])

    op.create_table(
        'calendar_timeperiods',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('calendar_id', sa.Uuid(), sa.ForeignKey('calendars.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('metadata', JSON_TYPE, nullable=True),
        *_timestamps(),
        sa.CheckConstraint('start_at < end_at', name='ck_timeperiod_range'),
        sa.CheckConstraint(
            "type IN ('working_hour', 'breaktime', 'blocked', 'off')",
            name='ck_timeperiod_type',
        ),
    )
    op.create_index(
        'idx_timeperiods_calendar_range',
        'calendar_timeperiods',
        ['calendar_id', 'type', 'start_at', 'end_at'],
    )

    # ==========================================================================
    # Appointments
    # ==========================================================================
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('order_id', sa.Uuid(), sa.ForeignKey('orders.id', ondelete='SET NULL'), nullable=True),
        sa.Column('code', sa.String(32), nullable=True, unique=True),
        sa.Column('is_confirmed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('scheduled_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('scheduled_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notified_via_email_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notified_via_sms_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('metadata', JSON_TYPE, nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('draft', 'scheduled', 'canceled', 'requires_action', "
            "'pending', 'reschedule', 'on_progress', 'finished')",
            name='ck_appointment_status',
        ),
    )
    op.create_index('idx_appointments_order', 'appointments', ['order_id', 'status'])
    op.create_index('idx_appointments_schedule', 'appointments', ['scheduled_start', 'scheduled_end'])


def downgrade() -> None:
    """Drop booking and commerce tables."""
    op.drop_table('appointments')
    op.drop_table('calendar_timeperiods')
    op.drop_table('calendars')
    op.drop_table('locations')
    op.drop_table('line_items')
    op.drop_table('orders')
    op.drop_table('product_variants')
    op.drop_table('products')
