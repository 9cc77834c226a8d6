"""initial booking schema

Revision ID: 20260101_000000
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260101_000000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Barbers and their schedule
    op.create_table(
        'barbers',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=False),
        sa.Column('languages', sa.JSON(), nullable=False),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_barbers_display_name', 'barbers', ['display_name'])

    op.create_table(
        'barber_working_hours',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('barber_id', sa.BigInteger(), nullable=False),
        sa.Column('weekday', sa.SmallInteger(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.ForeignKeyConstraint(['barber_id'], ['barbers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('barber_id', 'weekday', name='uq_working_hours_barber_weekday'),
        sa.CheckConstraint('weekday >= 0 AND weekday <= 6', name='ck_working_hours_weekday')
    )
    op.create_index('ix_barber_working_hours_barber_id', 'barber_working_hours', ['barber_id'])

    op.create_table(
        'barber_time_off',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('barber_id', sa.BigInteger(), nullable=False),
        sa.Column('start_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reason', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['barber_id'], ['barbers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_barber_time_off_barber_id', 'barber_time_off', ['barber_id'])
    op.create_index('ix_barber_time_off_start_datetime', 'barber_time_off', ['start_datetime'])

    # Customers
    op.create_table(
        'customers',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_customers_name', 'customers', ['name'])

    # Service catalog
    op.create_table(
        'services',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('base_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('duration_minutes > 0', name='ck_services_duration_positive'),
        sa.CheckConstraint('base_price >= 0', name='ck_services_price_non_negative')
    )
    op.create_index('ix_services_slug', 'services', ['slug'], unique=True)

    op.create_table(
        'service_translations',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('service_id', sa.BigInteger(), nullable=False),
        sa.Column('locale', sa.String(length=5), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.String(length=1000), nullable=True),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('service_id', 'locale', name='uq_service_translations_service_locale')
    )
    op.create_index('ix_service_translations_service_id', 'service_translations', ['service_id'])

    # Appointments and line items
    op.create_table(
        'appointments',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('customer_id', sa.BigInteger(), nullable=False),
        sa.Column('barber_id', sa.BigInteger(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('total_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['barber_id'], ['barbers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('end_time > start_time', name='ck_appointments_end_after_start')
    )
    op.create_index('ix_appointments_customer_id', 'appointments', ['customer_id'])
    op.create_index('ix_appointments_barber_id', 'appointments', ['barber_id'])
    op.create_index('ix_appointments_start_time', 'appointments', ['start_time'])
    op.create_index('ix_appointments_status', 'appointments', ['status'])
    # Conflict check: overlapping windows of one barber
    op.create_index(
        'ix_appointments_barber_window',
        'appointments',
        ['barber_id', 'start_time', 'end_time'],
        unique=False
    )

    op.create_table(
        'appointment_services',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('appointment_id', sa.BigInteger(), nullable=False),
        sa.Column('service_id', sa.BigInteger(), nullable=False),
        sa.Column('base_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('price_override', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['appointment_id'], ['appointments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_appointment_services_appointment_id', 'appointment_services', ['appointment_id'])
    op.create_index('ix_appointment_services_service_id', 'appointment_services', ['service_id'])


def downgrade() -> None:
    op.drop_table('appointment_services')
    op.drop_table('appointments')
    op.drop_table('service_translations')
    op.drop_table('services')
    op.drop_table('customers')
    op.drop_table('barber_time_off')
    op.drop_table('barber_working_hours')
    op.drop_table('barbers')
