"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:12:04.118233

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


def upgrade() -> None:
    """Upgrade schema."""
    # Auth
    op.create_table(
        'roles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_system_role', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_roles_name', 'roles', ['name'], unique=True)

    op.create_table(
        'permissions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('module', sa.String(), nullable=False),
        sa.Column('menu', sa.String(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('label', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )
    op.create_index('ix_permissions_code', 'permissions', ['code'], unique=True)

    op.create_table(
        'role_permissions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('role_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('roles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('permission_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('permissions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('granted_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.UniqueConstraint('role_id', 'permission_id'),
    )

    op.create_table(
        'profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('role_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('roles.id'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_profiles_username', 'profiles', ['username'], unique=True)

    op.create_table(
        'user_roles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('roles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('assigned_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.UniqueConstraint('user_id', 'role_id'),
    )

    # Prospects
    op.create_table(
        'segments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('color', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )

    op.create_table(
        'prospects',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('phone_raw', sa.String(), nullable=True),
        sa.Column('phone_international', sa.String(), nullable=False),
        sa.Column('country_code', sa.String(), nullable=True),
        sa.Column('country', sa.String(), nullable=True),
        sa.Column('nom', sa.String(), nullable=True),
        sa.Column('prenom', sa.String(), nullable=True),
        sa.Column('cin', sa.String(), nullable=True),
        sa.Column('segment_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('segments.id'), nullable=False),
        sa.Column('ville', sa.String(), nullable=True),
        sa.Column('statut_contact', sa.String(), nullable=False, server_default='non contacté'),
        sa.Column('date_injection', sa.DateTime(timezone=True), nullable=True),
        sa.Column('date_rdv', sa.DateTime(timezone=True), nullable=True),
        sa.Column('decision_nettoyage', sa.String(), nullable=True),
        sa.Column('commentaire', sa.Text(), nullable=True),
        sa.Column('assigned_to', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_prospects_phone_international', 'prospects', ['phone_international'])

    op.create_table(
        'prospect_call_history',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('prospect_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('prospects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('call_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('call_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        sa.Column('status_before', sa.String(), nullable=True),
        sa.Column('status_after', sa.String(), nullable=True),
        sa.Column('commentaire', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )
    op.create_index('ix_prospect_call_history_prospect_id', 'prospect_call_history', ['prospect_id'])

    # Formations
    op.create_table(
        'corps_formation',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('color', sa.String(), nullable=True),
        sa.Column('icon', sa.String(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )

    op.create_table(
        'formations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=True),
        sa.Column('duration_hours', sa.Integer(), nullable=True),
        sa.Column('level', sa.String(), nullable=True),
        sa.Column('corps_formation_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('corps_formation.id'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'students',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('cin', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )
    op.create_index('ix_students_cin', 'students', ['cin'], unique=True)

    op.create_table(
        'sessions_formation',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('titre', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date_debut', sa.Date(), nullable=True),
        sa.Column('date_fin', sa.Date(), nullable=True),
        sa.Column('ville', sa.String(), nullable=True),
        sa.Column('segment_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('segments.id'), nullable=True),
        sa.Column('corps_formation_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('corps_formation.id'), nullable=True),
        sa.Column('statut', sa.String(), nullable=False, server_default='planifiee'),
        sa.Column('prix_total', sa.Numeric(12, 2), nullable=True),
        sa.Column('nombre_places', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'session_etudiants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('session_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('sessions_formation.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('formation_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('formations.id'), nullable=False),
        sa.Column('statut_paiement', sa.String(), nullable=False, server_default='impaye'),
        sa.Column('student_status', sa.String(), nullable=False, server_default='inscrit'),
        sa.Column('formation_original_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('discount_percentage', sa.Numeric(5, 2), nullable=True),
        sa.Column('discount_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('discount_reason', sa.Text(), nullable=True),
        sa.Column('montant_total', sa.Numeric(12, 2), nullable=True),
        sa.Column('montant_paye', sa.Numeric(12, 2), nullable=True),
        sa.Column('montant_du', sa.Numeric(12, 2), nullable=True),
        sa.Column('numero_bon', sa.String(), nullable=True),
        sa.Column('date_inscription', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('session_id', 'student_id'),
    )

    op.create_table(
        'student_payments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('session_etudiant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('session_etudiants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('payment_method', sa.String(), nullable=False),
        sa.Column('reference_number', sa.String(), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('recorded_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )

    # Certificates
    op.create_table(
        'template_folders',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('parent_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('template_folders.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )

    op.create_table(
        'certificate_templates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('template_config', sa.JSON(), nullable=False),
        sa.Column('folder_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('template_folders.id'), nullable=True),
        sa.Column('background_image_url', sa.String(), nullable=True),
        sa.Column('background_image_type', sa.String(), nullable=True),
        sa.Column('preview_image_url', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'custom_fonts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('font_family', sa.String(), nullable=False),
        sa.Column('file_url', sa.String(), nullable=False),
        sa.Column('file_format', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )

    op.create_table(
        'formation_templates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('formation_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('formations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('template_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('certificate_templates.id', ondelete='CASCADE'), nullable=False),
        sa.Column('document_type', sa.String(), nullable=False, server_default='certificat'),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.UniqueConstraint('formation_id', 'template_id'),
    )

    op.create_table(
        'certificates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('formation_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('formations.id'), nullable=False),
        sa.Column('template_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('certificate_templates.id'), nullable=False),
        sa.Column('certificate_number', sa.String(), nullable=False),
        sa.Column('completion_date', sa.Date(), nullable=False),
        sa.Column('grade', sa.String(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('issued_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.UniqueConstraint('student_id', 'formation_id'),
    )
    op.create_index('ix_certificates_certificate_number', 'certificates', ['certificate_number'], unique=True)

    # HR
    op.create_table(
        'hr_employees',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('employee_number', sa.String(), nullable=False),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('cin', sa.String(), nullable=True, unique=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('position', sa.String(), nullable=True),
        sa.Column('department', sa.String(), nullable=True),
        sa.Column('segment_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('segments.id'), nullable=True),
        sa.Column('hire_date', sa.Date(), nullable=True),
        sa.Column('employment_status', sa.String(), nullable=False, server_default='active'),
        sa.Column('requires_clocking', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('profile_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('manager_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_employees.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_hr_employees_employee_number', 'hr_employees', ['employee_number'], unique=True)

    op.create_table(
        'hr_employee_managers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('manager_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rank', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('employee_id', 'manager_id'),
    )

    op.create_table(
        'hr_contracts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('contract_type', sa.String(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('base_salary', sa.Numeric(12, 2), nullable=True),
        sa.Column('salary_currency', sa.String(), nullable=False, server_default='MAD'),
        sa.Column('payment_frequency', sa.String(), nullable=False, server_default='monthly'),
        sa.Column('working_hours_per_week', sa.Integer(), nullable=False, server_default='44'),
        sa.Column('trial_period_end', sa.Date(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='active'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'hr_employee_documents',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('document_type', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('file_url', sa.String(), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('verified_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )

    op.create_table(
        'hr_disciplinary_actions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('action_type', sa.String(), nullable=False),
        sa.Column('action_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration_days', sa.Integer(), nullable=True),
        sa.Column('issued_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )

    op.create_table(
        'hr_leave_types',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('code', sa.String(), nullable=False, unique=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('default_days', sa.Numeric(5, 1), nullable=False, server_default='0'),
        sa.Column('requires_approval', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('approval_workflow', sa.String(), nullable=False, server_default='n1'),
        sa.Column('deducts_from_balance', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('max_days_per_request', sa.Numeric(5, 1), nullable=True),
        sa.Column('color', sa.String(), nullable=False, server_default='#3B82F6'),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='99'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    schedule_days = []
    for day in ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday'):
        schedule_days.append(sa.Column(f'{day}_start', sa.String(5), nullable=True))
        schedule_days.append(sa.Column(f'{day}_end', sa.String(5), nullable=True))
    op.create_table(
        'hr_work_schedules',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *schedule_days,
        sa.Column('break_duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('weekly_hours', sa.Numeric(5, 2), nullable=False, server_default='44'),
        sa.Column('tolerance_late_minutes', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('tolerance_early_leave_minutes', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('min_hours_for_half_day', sa.Numeric(4, 2), nullable=False, server_default='4'),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'hr_employee_schedules',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('schedule_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_work_schedules.id'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )

    op.create_table(
        'hr_public_holidays',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('holiday_date', sa.Date(), nullable=False, unique=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )

    op.create_table(
        'hr_settings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('setting_key', sa.String(), nullable=False, unique=True),
        sa.Column('setting_value', sa.JSON(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )

    op.create_table(
        'hr_attendance_records',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('attendance_date', sa.Date(), nullable=False),
        sa.Column('check_in_time', sa.String(5), nullable=True),
        sa.Column('check_out_time', sa.String(5), nullable=True),
        sa.Column('break_minutes', sa.Integer(), nullable=True),
        sa.Column('worked_minutes', sa.Integer(), nullable=True),
        sa.Column('late_minutes', sa.Integer(), nullable=True),
        sa.Column('early_leave_minutes', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='present'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('source', sa.String(), nullable=False, server_default='manual'),
        sa.Column('is_manual_entry', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('original_check_in', sa.String(5), nullable=True),
        sa.Column('original_check_out', sa.String(5), nullable=True),
        sa.Column('corrected_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('correction_reason', sa.Text(), nullable=True),
        sa.Column('corrected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_anomaly', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('anomaly_type', sa.String(), nullable=True),
        sa.Column('anomaly_resolved', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('anomaly_resolved_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('anomaly_resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('anomaly_resolution_note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('employee_id', 'attendance_date'),
    )
    op.create_index('ix_hr_attendance_records_employee_id', 'hr_attendance_records', ['employee_id'])
    op.create_index('ix_hr_attendance_records_attendance_date', 'hr_attendance_records', ['attendance_date'])

    op.create_table(
        'hr_attendance_correction_requests',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('request_date', sa.Date(), nullable=False),
        sa.Column('requested_check_in', sa.String(5), nullable=True),
        sa.Column('requested_check_out', sa.String(5), nullable=True),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('current_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('approval_levels', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('n1_approver_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('n1_comment', sa.Text(), nullable=True),
        sa.Column('n1_action_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('n2_approver_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('n2_comment', sa.Text(), nullable=True),
        sa.Column('n2_action_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_comment', sa.Text(), nullable=True),
        sa.Column('admin_cancelled_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('admin_cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('admin_cancellation_reason', sa.Text(), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'hr_leave_requests',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('leave_type_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_leave_types.id'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('start_half_day', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('end_half_day', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('days_requested', sa.Numeric(5, 1), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('contact_during_leave', sa.String(), nullable=True),
        sa.Column('handover_notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('current_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('approval_levels', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('n1_approver_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('n1_comment', sa.Text(), nullable=True),
        sa.Column('n1_action_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('n2_approver_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('n2_comment', sa.Text(), nullable=True),
        sa.Column('n2_action_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_comment', sa.Text(), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_hr_leave_requests_employee_id', 'hr_leave_requests', ['employee_id'])

    op.create_table(
        'hr_leave_balances',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('leave_type_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_leave_types.id'), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('initial', sa.Numeric(5, 1), nullable=False, server_default='0'),
        sa.Column('taken', sa.Numeric(5, 1), nullable=False, server_default='0'),
        sa.Column('adjusted', sa.Numeric(5, 1), nullable=False, server_default='0'),
        sa.Column('adjustment_reason', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.UniqueConstraint('employee_id', 'leave_type_id', 'year'),
    )

    op.create_table(
        'hr_payroll_periods',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='open'),
        sa.Column('calculated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.UniqueConstraint('year', 'month'),
    )

    op.create_table(
        'hr_payslips',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('period_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_payroll_periods.id', ondelete='CASCADE'), nullable=False),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hr_employees.id'), nullable=False),
        sa.Column('base_salary', sa.Numeric(12, 2), nullable=False),
        sa.Column('worked_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('absent_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('absence_deduction', sa.Numeric(12, 2), nullable=True),
        sa.Column('gross_salary', sa.Numeric(12, 2), nullable=False),
        sa.Column('cnss_deduction', sa.Numeric(12, 2), nullable=True),
        sa.Column('amo_deduction', sa.Numeric(12, 2), nullable=True),
        sa.Column('total_deductions', sa.Numeric(12, 2), nullable=True),
        sa.Column('net_salary', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(), nullable=False, server_default='MAD'),
        sa.Column('lines', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.UniqueConstraint('period_id', 'employee_id'),
    )

    # Projects
    op.create_table(
        'projects',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='planning'),
        sa.Column('priority', sa.String(), nullable=False, server_default='normale'),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('budget', sa.Numeric(12, 2), nullable=True),
        sa.Column('manager_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('segment_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('segments.id'), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'project_actions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='SET NULL'), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('description_detail', sa.Text(), nullable=True),
        sa.Column('pilote_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('assigned_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('date_assignment', sa.Date(), nullable=True),
        sa.Column('deadline', sa.Date(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='a_faire'),
        sa.Column('commentaire', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_project_actions_project_id', 'project_actions', ['project_id'])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'project_actions',
        'projects',
        'hr_payslips',
        'hr_payroll_periods',
        'hr_leave_balances',
        'hr_leave_requests',
        'hr_attendance_correction_requests',
        'hr_attendance_records',
        'hr_settings',
        'hr_public_holidays',
        'hr_employee_schedules',
        'hr_work_schedules',
        'hr_leave_types',
        'hr_disciplinary_actions',
        'hr_employee_documents',
        'hr_contracts',
        'hr_employee_managers',
        'hr_employees',
        'certificates',
        'formation_templates',
        'custom_fonts',
        'certificate_templates',
        'template_folders',
        'student_payments',
        'session_etudiants',
        'sessions_formation',
        'students',
        'formations',
        'corps_formation',
        'prospect_call_history',
        'prospects',
        'segments',
        'user_roles',
        'profiles',
        'role_permissions',
        'permissions',
        'roles',
    ):
        op.drop_table(table)
