"""create scheduling tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:12:44.318204
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BOOKING_STATUSES = ('pending', 'confirmed', 'completed', 'cancelled')


def upgrade() -> None:
    op.create_table(
        'providers',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('business_name', sa.String(), nullable=False),
        sa.Column('staff_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'staff_members',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('provider_id', UUID(as_uuid=True), sa.ForeignKey('providers.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_staff_members_provider_id', 'staff_members', ['provider_id'])

    op.create_table(
        'schedules',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('provider_id', UUID(as_uuid=True), sa.ForeignKey('providers.id'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.String(), nullable=False),
        sa.Column('end_time', sa.String(), nullable=False),
        sa.Column('break_start_time', sa.String(), nullable=True),
        sa.Column('break_end_time', sa.String(), nullable=True),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('max_slots', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('timezone', sa.String(), nullable=False, server_default='Asia/Kolkata'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('provider_id', 'day_of_week', name='uq_schedules_provider_day'),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_schedules_day_of_week'),
    )
    op.create_index('ix_schedules_provider_id', 'schedules', ['provider_id'])

    op.create_table(
        'services',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('provider_id', UUID(as_uuid=True), sa.ForeignKey('providers.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_services_provider_id', 'services', ['provider_id'])

    op.create_table(
        'global_services',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('base_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('base_duration', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'provider_services',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('provider_id', UUID(as_uuid=True), sa.ForeignKey('providers.id'), nullable=False),
        sa.Column('global_service_id', UUID(as_uuid=True), sa.ForeignKey('global_services.id'), nullable=False),
        sa.Column('custom_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('custom_duration', sa.Integer(), nullable=True),
        sa.Column('is_offered', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_provider_services_provider_id', 'provider_services', ['provider_id'])

    op.create_table(
        'provider_service_table',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('provider_id', UUID(as_uuid=True), sa.ForeignKey('providers.id'), nullable=False),
        sa.Column('service_name', sa.String(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('time', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_provider_service_table_provider_id', 'provider_service_table', ['provider_id'])

    booking_status = sa.Enum(*BOOKING_STATUSES, name='booking_status_enum')
    op.create_table(
        'bookings',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('client_id', UUID(as_uuid=True), nullable=False),
        sa.Column('provider_id', UUID(as_uuid=True), sa.ForeignKey('providers.id'), nullable=False),
        sa.Column('staff_member_id', UUID(as_uuid=True), sa.ForeignKey('staff_members.id'), nullable=True),
        sa.Column('service_id', UUID(as_uuid=True), sa.ForeignKey('services.id'), nullable=True),
        sa.Column('global_service_id', UUID(as_uuid=True), sa.ForeignKey('global_services.id'), nullable=True),
        sa.Column('appointment_date', sa.DateTime(), nullable=False),
        sa.Column('appointment_end_time', sa.DateTime(), nullable=True),
        sa.Column('status', booking_status, nullable=False, server_default='pending'),
        sa.Column('service_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('platform_fee', sa.Numeric(10, 2), nullable=True),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('token_number', sa.String(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('payment_method', sa.String(), nullable=True, server_default='cash'),
        sa.Column('client_name', sa.String(), nullable=True),
        sa.Column('client_phone', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_bookings_token_number', 'bookings', ['token_number'], unique=True)
    op.create_index('ix_bookings_client_id', 'bookings', ['client_id'])
    op.create_index('ix_bookings_staff_member_id', 'bookings', ['staff_member_id'])
    op.create_index('ix_bookings_status', 'bookings', ['status'])
    op.create_index('ix_bookings_provider_appointment', 'bookings', ['provider_id', 'appointment_date'])

    if op.get_bind().dialect.name == 'postgresql':
        # Storage-level backstop for the booking creator: no two live bookings of
        # the same staff member may overlap. The buffer is configurable, so it is
        # left to the booking creator. A violation surfaces as an IntegrityError
        # naming the constraint and is retried.
        op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
        op.execute(
            """
            ALTER TABLE bookings ADD CONSTRAINT no_overlapping_bookings
            EXCLUDE USING gist (
                staff_member_id WITH =,
                tsrange(appointment_date, appointment_end_time) WITH &&
            )
            WHERE (status <> 'cancelled' AND staff_member_id IS NOT NULL AND appointment_end_time IS NOT NULL)
            """
        )


def downgrade() -> None:
    if op.get_bind().dialect.name == 'postgresql':
        op.execute('ALTER TABLE bookings DROP CONSTRAINT IF EXISTS no_overlapping_bookings')

    op.drop_index('ix_bookings_provider_appointment', 'bookings')
    op.drop_index('ix_bookings_status', 'bookings')
    op.drop_index('ix_bookings_staff_member_id', 'bookings')
    op.drop_index('ix_bookings_client_id', 'bookings')
    op.drop_index('ix_bookings_token_number', 'bookings')
    op.drop_table('bookings')
    sa.Enum(name='booking_status_enum').drop(op.get_bind(), checkfirst=True)

    op.drop_index('ix_provider_service_table_provider_id', 'provider_service_table')
    op.drop_table('provider_service_table')
    op.drop_index('ix_provider_services_provider_id', 'provider_services')
    op.drop_table('provider_services')
    op.drop_table('global_services')
    op.drop_index('ix_services_provider_id', 'services')
    op.drop_table('services')
    op.drop_index('ix_schedules_provider_id', 'schedules')
    op.drop_table('schedules')
    op.drop_index('ix_staff_members_provider_id', 'staff_members')
    op.drop_table('staff_members')
    op.drop_table('providers')
