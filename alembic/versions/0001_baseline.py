"""Baseline migration - cases, case managers, and INA tables

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19

ina_reports and ina_visits are owned by the reports dashboards; they are
created here so a fresh database has everything the badge counts read.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create case-management tables."""

    # ==========================================================================
    # Case managers
    # ==========================================================================
    op.create_table(
        'case_managers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('pin', sa.String(50), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('status', sa.String(30), nullable=False, server_default='active'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('compliance_approved', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('nda_signed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('nda_signed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('nda_pdf_path', sa.Text(), nullable=True),
        sa.Column('nda_blockchain_hash', sa.String(64), nullable=True),
        sa.Column('nda_blockchain_timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('pin', name='uq_case_managers_pin'),
    )

    # ==========================================================================
    # Cases
    # ==========================================================================
    op.create_table(
        'cases',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('case_pin', sa.String(50), nullable=False),
        sa.Column('lawyer_pin', sa.String(50), nullable=False),
        sa.Column('lawyer_name', sa.String(255), nullable=False),
        sa.Column('client_name', sa.String(255), nullable=False),
        sa.Column('case_type', sa.String(100), nullable=False),
        sa.Column('assigned_cm_pin', sa.String(50), nullable=True),
        sa.Column('assigned_cm_name', sa.String(255), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('case_status', sa.String(50), nullable=False, server_default='pendingContact'),
        sa.Column('workflow_stage', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('stage_updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('consent_received_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('referral_data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('case_pin', name='uq_cases_case_pin'),
        sa.CheckConstraint('workflow_stage BETWEEN 1 AND 14', name='ck_cases_workflow_stage_range'),
    )
    op.create_index('idx_cases_assigned_status', 'cases', ['assigned_cm_pin', 'case_status'])
    op.create_index('idx_cases_stage_updated', 'cases', ['stage_updated_at'])
    op.create_index('idx_cases_status_stage', 'cases', ['case_status', 'workflow_stage'])

    # ==========================================================================
    # Case activity log (append-only)
    # ==========================================================================
    op.create_table(
        'case_activity_log',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('case_pin', sa.String(50), nullable=False),
        sa.Column('activity_type', sa.String(50), nullable=False),
        sa.Column('activity_description', sa.Text(), nullable=False),
        sa.Column('performed_by', sa.String(100), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('performed_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_case_activity_case_time', 'case_activity_log', ['case_pin', 'performed_at'])

    # ==========================================================================
    # INA reports and visits
    # ==========================================================================
    op.create_table(
        'ina_reports',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('case_pin', sa.String(50), nullable=False),
        sa.Column('first_reader_pin', sa.String(50), nullable=True),
        sa.Column('second_reader_pin', sa.String(50), nullable=True),
        sa.Column('payment_status', sa.String(30), nullable=False, server_default='notRequested'),
    )
    op.create_index('idx_ina_reports_case', 'ina_reports', ['case_pin'])
    op.create_index('idx_ina_reports_payment_status', 'ina_reports', ['payment_status'])

    op.create_table(
        'ina_visits',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('case_pin', sa.String(50), nullable=False),
        sa.Column('visit_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('visit_status', sa.String(30), nullable=False, server_default='scheduled'),
    )
    op.create_index('idx_ina_visits_date_status', 'ina_visits', ['visit_date', 'visit_status'])


def downgrade() -> None:
    """Drop case-management tables."""
    op.drop_table('ina_visits')
    op.drop_table('ina_reports')
    op.drop_table('case_activity_log')
    op.drop_table('cases')
    op.drop_table('case_managers')
