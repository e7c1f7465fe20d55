"""initial scheduling schema

Revision ID: 4a1c2e9d7b30
Revises:
Create Date: 2026-10-18 10:12:44.301522

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '4a1c2e9d7b30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # 1. businesses
    op.create_table(
        'businesses',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('url_slug', sa.String(120), nullable=True, unique=True),
        sa.Column('business_hours', postgresql.JSONB, server_default=sa.text("'{}'::jsonb"), nullable=True),
        sa.Column('timezone', sa.String(50), server_default='Europe/Zurich', nullable=True),
        sa.Column('accept_appointments_automatically', sa.Boolean, server_default=sa.false(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('is_active', sa.Boolean, server_default=sa.true(), nullable=True)
    )

    # 2. employees + services + who-performs-what
    op.create_table(
        'employees',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String, nullable=True),
        sa.Column('working_hours', postgresql.JSONB, nullable=True),
        sa.Column('is_active', sa.Boolean, server_default=sa.true(), nullable=True),
        sa.Column('can_perform_services', sa.Boolean, server_default=sa.true(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True)
    )
    op.create_index('ix_employees_business_id', 'employees', ['business_id'])
    op.create_index('ix_employees_is_active', 'employees', ['is_active'])

    op.create_table(
        'services',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('duration', sa.Integer, server_default='30', nullable=False),
        sa.Column('buffer_before', sa.Integer, server_default='0', nullable=False),
        sa.Column('buffer_after', sa.Integer, server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean, server_default=sa.true(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('duration > 0', name='ck_services_duration_positive'),
        sa.CheckConstraint('buffer_before >= 0 AND buffer_after >= 0', name='ck_services_buffers_non_negative')
    )
    op.create_index('ix_services_business_id', 'services', ['business_id'])
    op.create_index('ix_services_is_active', 'services', ['is_active'])

    op.create_table(
        'employee_services',
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('employees.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('services.id', ondelete='CASCADE'), primary_key=True)
    )

    # 3. customers
    op.create_table(
        'customers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String, nullable=True),
        sa.Column('phone', sa.String(30), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True)
    )
    op.create_index('ix_customers_business_id', 'customers', ['business_id'])
    op.create_index('ix_customers_email', 'customers', ['email'])
    op.create_index('ix_customers_phone', 'customers', ['phone'])

    # 4. appointments (start/end are local wall-clock, buffer-expanded)
    op.create_table(
        'appointments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id'), nullable=False),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('employees.id'), nullable=False),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=False), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=False), nullable=False),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('status', sa.String(20), server_default='confirmed', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.Text, nullable=True),
        sa.CheckConstraint('end_time > start_time', name='ck_appointments_interval_positive'),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed', 'no_show')",
            name='ck_appointments_status'
        )
    )
    op.create_index('ix_appointments_business_id', 'appointments', ['business_id'])
    op.create_index('idx_appointments_employee_window', 'appointments', ['employee_id', 'start_time', 'end_time'])

    # No two active appointments of one employee may overlap, half-open ranges
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    op.execute("""
        ALTER TABLE appointments
        ADD CONSTRAINT ex_appointments_employee_no_overlap
        EXCLUDE USING gist (
            employee_id WITH =,
            tsrange(start_time, end_time, '[)') WITH &&
        )
        WHERE (status IN ('pending', 'confirmed'))
    """)

    # 5. schedule_exceptions
    op.create_table(
        'schedule_exceptions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('reason', sa.String, nullable=True),
        sa.Column('start_time', sa.String(5), nullable=True),
        sa.Column('end_time', sa.String(5), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.UniqueConstraint('employee_id', 'date', name='uq_schedule_exception_employee_date'),
        sa.CheckConstraint(
            "type IN ('unavailable', 'modified_hours', 'holiday')",
            name='ck_schedule_exceptions_type'
        )
    )
    op.create_index('ix_schedule_exceptions_employee_id', 'schedule_exceptions', ['employee_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_schedule_exceptions_employee_id', table_name='schedule_exceptions')
    op.drop_table('schedule_exceptions')

    op.execute("ALTER TABLE appointments DROP CONSTRAINT IF EXISTS ex_appointments_employee_no_overlap")
    op.drop_index('idx_appointments_employee_window', table_name='appointments')
    op.drop_index('ix_appointments_business_id', table_name='appointments')
    op.drop_table('appointments')

    op.drop_index('ix_customers_phone', table_name='customers')
    op.drop_index('ix_customers_email', table_name='customers')
    op.drop_index('ix_customers_business_id', table_name='customers')
    op.drop_table('customers')

    op.drop_table('employee_services')
    op.drop_index('ix_services_is_active', table_name='services')
    op.drop_index('ix_services_business_id', table_name='services')
    op.drop_table('services')
    op.drop_index('ix_employees_is_active', table_name='employees')
    op.drop_index('ix_employees_business_id', table_name='employees')
    op.drop_table('employees')

    op.drop_table('businesses')
