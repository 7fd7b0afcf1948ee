"""Initial contravention tracker schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    # SQL-standard CURRENT_TIMESTAMP works on SQLite and Postgres
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]


def upgrade() -> None:
    # Skip if tables already exist (e.g. DB created by app create_all())
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if 'employees' in inspector.get_table_names():
        return

    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('emp_code', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('department', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='USER'),
        sa.Column('reporting_manager_id', sa.Integer(), nullable=True),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['reporting_manager_id'], ['employees.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_employees_id'), 'employees', ['id'], unique=False)
    op.create_index(op.f('ix_employees_emp_code'), 'employees', ['emp_code'], unique=True)
    op.create_index(op.f('ix_employees_email'), 'employees', ['email'], unique=True)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('entity_type', sa.String(), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('meta_json', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['actor_id'], ['employees.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_audit_logs_id'), 'audit_logs', ['id'], unique=False)

    category = sa.Enum('DC_PROCUREMENT', 'SVP', 'MANPOWER', 'SIGNATORY', name='contraventioncategory')
    op.create_table(
        'contravention_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('category', category, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('default_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint('default_points >= 0', name='check_type_default_points_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index(op.f('ix_contravention_types_id'), 'contravention_types', ['id'], unique=False)
    op.create_index(op.f('ix_contravention_types_category'), 'contravention_types', ['category'], unique=False)

    contravention_status = sa.Enum(
        'PENDING_APPROVAL', 'PENDING_UPLOAD', 'PENDING_REVIEW', 'COMPLETED', 'REJECTED',
        name='contraventionstatus',
    )
    op.create_table(
        'contraventions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('reference_no', sa.String(length=30), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('logged_by_id', sa.Integer(), nullable=False),
        sa.Column('type_id', sa.Integer(), nullable=False),
        sa.Column('approver_id', sa.Integer(), nullable=True),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('status', contravention_status, nullable=False),
        sa.Column('incident_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('vendor', sa.String(length=200), nullable=True),
        sa.Column('value_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('justification', sa.Text(), nullable=True),
        sa.Column('mitigation', sa.Text(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('evidence_urls', sa.JSON(), nullable=True),
        sa.Column('approval_doc_url', sa.String(length=500), nullable=True),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('reviewed_by_id', sa.Integer(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('points >= 0', name='check_contravention_points_non_negative'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id']),
        sa.ForeignKeyConstraint(['logged_by_id'], ['employees.id']),
        sa.ForeignKeyConstraint(['type_id'], ['contravention_types.id']),
        sa.ForeignKeyConstraint(['approver_id'], ['employees.id']),
        sa.ForeignKeyConstraint(['reviewed_by_id'], ['employees.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_contraventions_id'), 'contraventions', ['id'], unique=False)
    op.create_index(op.f('ix_contraventions_reference_no'), 'contraventions', ['reference_no'], unique=True)
    op.create_index(op.f('ix_contraventions_employee_id'), 'contraventions', ['employee_id'], unique=False)
    op.create_index(op.f('ix_contraventions_logged_by_id'), 'contraventions', ['logged_by_id'], unique=False)
    op.create_index(op.f('ix_contraventions_type_id'), 'contraventions', ['type_id'], unique=False)
    op.create_index(op.f('ix_contraventions_approver_id'), 'contraventions', ['approver_id'], unique=False)
    op.create_index(op.f('ix_contraventions_status'), 'contraventions', ['status'], unique=False)
    op.create_index('ix_contraventions_employee_incident', 'contraventions', ['employee_id', 'incident_date'], unique=False)

    op.create_table(
        'employee_points',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('total_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_level', sa.String(length=50), nullable=True),
        sa.Column('last_calculated', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_employee_points_id'), 'employee_points', ['id'], unique=False)
    op.create_index(op.f('ix_employee_points_employee_id'), 'employee_points', ['employee_id'], unique=True)

    op.create_table(
        'points_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_points_id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.Enum('ADD', 'DECAY', 'CREDIT', name='pointseventkind'), nullable=False),
        sa.Column('delta', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('contravention_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("kind = 'ADD' OR delta <= 0", name='check_points_history_non_add_not_positive'),
        sa.ForeignKeyConstraint(['employee_points_id'], ['employee_points.id']),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id']),
        sa.ForeignKeyConstraint(['contravention_id'], ['contraventions.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_points_history_id'), 'points_history', ['id'], unique=False)
    op.create_index(op.f('ix_points_history_employee_points_id'), 'points_history', ['employee_points_id'], unique=False)
    op.create_index(op.f('ix_points_history_employee_id'), 'points_history', ['employee_id'], unique=False)
    op.create_index('ix_points_history_employee_created', 'points_history', ['employee_id', 'created_at'], unique=False)

    op.create_table(
        'fiscal_year_resets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('fiscal_year_start', sa.Date(), nullable=False),
        sa.Column('fiscal_year_label', sa.String(length=20), nullable=False),
        sa.Column('performed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('employees_reset', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_points_reset', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('performed_by', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['performed_by'], ['employees.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_fiscal_year_resets_id'), 'fiscal_year_resets', ['id'], unique=False)
    op.create_index(op.f('ix_fiscal_year_resets_fiscal_year_start'), 'fiscal_year_resets', ['fiscal_year_start'], unique=True)

    op.create_table(
        'escalations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('tier_code', sa.String(length=50), nullable=False),
        sa.Column('tier_name', sa.String(length=100), nullable=False),
        sa.Column('trigger_points', sa.Integer(), nullable=False),
        sa.Column('actions_required', sa.JSON(), nullable=False),
        sa.Column('actions_completed', sa.JSON(), nullable=False),
        sa.Column('triggered_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_escalations_id'), 'escalations', ['id'], unique=False)
    op.create_index(op.f('ix_escalations_employee_id'), 'escalations', ['employee_id'], unique=False)
    op.create_index('ix_escalations_employee_tier', 'escalations', ['employee_id', 'tier_code'], unique=False)

    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('points_credit', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.CheckConstraint('points_credit >= 0', name='check_course_points_credit_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index(op.f('ix_courses_id'), 'courses', ['id'], unique=False)

    op.create_table(
        'training_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('course_id', sa.Integer(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('ASSIGNED', 'IN_PROGRESS', 'COMPLETED', 'OVERDUE', 'WAIVED', name='trainingstatus'),
            nullable=False,
        ),
        sa.Column('assigned_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('completed_date', sa.Date(), nullable=True),
        sa.Column('points_credited', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('assigned_by', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id']),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id']),
        sa.ForeignKeyConstraint(['assigned_by'], ['employees.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('employee_id', 'course_id', name='uq_training_employee_course'),
    )
    op.create_index(op.f('ix_training_records_id'), 'training_records', ['id'], unique=False)
    op.create_index(op.f('ix_training_records_employee_id'), 'training_records', ['employee_id'], unique=False)
    op.create_index(op.f('ix_training_records_course_id'), 'training_records', ['course_id'], unique=False)

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('recipient_id', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(length=50), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['recipient_id'], ['employees.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_notifications_id'), 'notifications', ['id'], unique=False)
    op.create_index(op.f('ix_notifications_recipient_id'), 'notifications', ['recipient_id'], unique=False)
    op.create_index('ix_notifications_recipient_read', 'notifications', ['recipient_id', 'is_read'], unique=False)


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('training_records')
    op.drop_table('courses')
    op.drop_table('escalations')
    op.drop_table('fiscal_year_resets')
    op.drop_table('points_history')
    op.drop_table('employee_points')
    op.drop_table('contraventions')
    op.drop_table('contravention_types')
    op.drop_table('audit_logs')
    op.drop_table('employees')
    sa.Enum(name='trainingstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='pointseventkind').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='contraventionstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='contraventioncategory').drop(op.get_bind(), checkfirst=True)
