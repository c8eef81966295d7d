"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-02-09

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns() -> list:
    return [
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    # Create ENUM types
    op.execute("CREATE TYPE rule_set_status AS ENUM ('Active', 'Retired')")
    op.execute(
        "CREATE TYPE program_category AS ENUM "
        "('MAGI', 'NonMAGI_Aged', 'NonMAGI_Disabled', 'Pregnancy', 'SSI_Linked', 'Other')"
    )

    # Create rule_set_versions table
    op.create_table(
        'rule_set_versions',
        *_audit_columns(),
        sa.Column('jurisdiction_code', sa.String(length=2), nullable=False),
        sa.Column('version_label', sa.String(length=50), nullable=False),
        sa.Column('effective_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('status', postgresql.ENUM(name='rule_set_status', create_type=False), nullable=False, server_default='Active'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.UniqueConstraint('jurisdiction_code', 'version_label', name='uq_rule_set_version_label'),
        sa.CheckConstraint('end_date IS NULL OR effective_date <= end_date', name='ck_rule_set_version_dates'),
    )
    op.create_index('ix_rule_set_versions_jurisdiction_code', 'rule_set_versions', ['jurisdiction_code'])
    op.create_index('ix_rule_set_versions_status', 'rule_set_versions', ['status'])

    # Create program_definitions table
    op.create_table(
        'program_definitions',
        *_audit_columns(),
        sa.Column('program_code', sa.String(length=50), nullable=False),
        sa.Column('jurisdiction_code', sa.String(length=2), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', postgresql.ENUM(name='program_category', create_type=False), nullable=False, server_default='Other'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('description', sa.Text(), nullable=True),
        sa.UniqueConstraint('jurisdiction_code', 'program_code', name='uq_program_code_per_jurisdiction'),
    )
    op.create_index('ix_program_definitions_program_code', 'program_definitions', ['program_code'])
    op.create_index('ix_program_definitions_jurisdiction_code', 'program_definitions', ['jurisdiction_code'])

    # Create eligibility_rules table
    op.create_table(
        'eligibility_rules',
        *_audit_columns(),
        sa.Column('rule_set_version_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('program_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('program_code', sa.String(length=50), nullable=False),
        sa.Column('rule_expression', postgresql.JSONB(), nullable=False),
        sa.Column('priority', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('description', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['rule_set_version_id'], ['rule_set_versions.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['program_id'], ['program_definitions.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_eligibility_rules_rule_set_version_id', 'eligibility_rules', ['rule_set_version_id'])
    op.create_index('ix_eligibility_rules_program_id', 'eligibility_rules', ['program_id'])

    # Create federal_poverty_levels table
    op.create_table(
        'federal_poverty_levels',
        *_audit_columns(),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('household_size', sa.Integer(), nullable=False),
        sa.Column('annual_amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('jurisdiction_code', sa.String(length=2), nullable=True),
        sa.UniqueConstraint('year', 'household_size', 'jurisdiction_code', name='uq_fpl_year_size_jurisdiction'),
        sa.CheckConstraint('household_size BETWEEN 1 AND 8', name='ck_fpl_household_size'),
        sa.CheckConstraint('annual_amount_cents >= 0', name='ck_fpl_amount_non_negative'),
    )
    op.create_index('ix_federal_poverty_levels_year', 'federal_poverty_levels', ['year'])


def downgrade() -> None:
    op.drop_table('federal_poverty_levels')
    op.drop_table('eligibility_rules')
    op.drop_table('program_definitions')
    op.drop_table('rule_set_versions')
    op.execute("DROP TYPE IF EXISTS program_category")
    op.execute("DROP TYPE IF EXISTS rule_set_status")
