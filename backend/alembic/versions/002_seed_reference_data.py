"""Seed 2026 poverty levels and the Texas 2026 rule set

Revision ID: 002
Revises: 001
Create Date: 2026-02-11

"""
import uuid
from datetime import date
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Annual amounts in cents for household sizes 1-8
FPL_2026 = {
    None: [1458000, 1972000, 2486000, 3000000, 3514000, 4028000, 4542000, 5056000],
    'AK': [1822500, 2465000, 3107500, 3750000, 4392500, 5035000, 5677500, 6320000],
    'HI': [1676700, 2267800, 2858900, 3450000, 4041100, 4632200, 5223300, 5814400],
}

TX_RULE_SET_ID = uuid.UUID('6f1f4b8e-3c55-4d53-9a53-2b1f0c3e7a01')

TX_PROGRAMS = [
    ('TX_MAGI_ADULT', 'Adult Health Coverage', 'MAGI'),
    ('TX_MAGI_CHILD', 'Children Health Coverage', 'MAGI'),
    ('TX_MAGI_PREGNANT', 'Pregnant Women Coverage', 'Pregnancy'),
    ('TX_NONMAGI_AGED', 'Coverage for Adults 65 and Older', 'NonMAGI_Aged'),
    ('TX_NONMAGI_DISABLED', 'Disabled Adults Coverage', 'NonMAGI_Disabled'),
]

TX_RULES = [
    ('TX_MAGI_ADULT', 10, {
        'and': [
            {'>=': [{'var': 'age'}, 19]},
            {'<=': [{'var': 'age'}, 64]},
            {'<=': [{'var': 'household_income_percent_fpl'}, 138]},
            {'==': [{'var': 'citizenship_status'}, 'US_CITIZEN']},
        ]
    }),
    ('TX_MAGI_CHILD', 10, {
        'and': [
            {'<': [{'var': 'age'}, 19]},
            {'<=': [{'var': 'household_income_percent_fpl'}, 205]},
            {'==': [{'var': 'state_of_residence'}, 'TX']},
        ]
    }),
    ('TX_MAGI_PREGNANT', 10, {
        'and': [
            {'==': [{'var': 'is_pregnant'}, True]},
            {'<=': [{'var': 'household_income_percent_fpl'}, 198]},
        ]
    }),
    ('TX_NONMAGI_AGED', 10, {
        'and': [
            {'>=': [{'var': 'age'}, 65]},
            {'<=': [{'var': 'monthly_income_cents'}, 294300]},
        ]
    }),
    ('TX_NONMAGI_DISABLED', 10, {
        'and': [
            {'==': [{'var': 'has_disability'}, True]},
            {'<': [{'var': 'age'}, 65]},
            {'<=': [{'var': 'monthly_income_cents'}, 294300]},
        ]
    }),
]


def upgrade() -> None:
    fpl_table = sa.table(
        'federal_poverty_levels',
        sa.column('id', postgresql.UUID(as_uuid=True)),
        sa.column('year', sa.Integer()),
        sa.column('household_size', sa.Integer()),
        sa.column('annual_amount_cents', sa.BigInteger()),
        sa.column('jurisdiction_code', sa.String()),
    )
    op.bulk_insert(
        fpl_table,
        [
            {
                'id': uuid.uuid4(),
                'year': 2026,
                'household_size': size,
                'annual_amount_cents': amount,
                'jurisdiction_code': jurisdiction,
            }
            for jurisdiction, amounts in FPL_2026.items()
            for size, amount in enumerate(amounts, start=1)
        ],
    )

    op.execute(
        sa.text(
            "INSERT INTO rule_set_versions (id, jurisdiction_code, version_label, effective_date, status, description) "
            "VALUES (:id, 'TX', '2026.1', :effective_date, 'Active', 'Texas 2026 rules')"
        ).bindparams(id=TX_RULE_SET_ID, effective_date=date(2026, 1, 1))
    )

    program_ids = {}
    for code, name, category in TX_PROGRAMS:
        program_ids[code] = uuid.uuid4()
        op.execute(
            sa.text(
                "INSERT INTO program_definitions (id, program_code, jurisdiction_code, name, category) "
                "VALUES (:id, :code, 'TX', :name, CAST(:category AS program_category))"
            ).bindparams(id=program_ids[code], code=code, name=name, category=category)
        )

    rules_table = sa.table(
        'eligibility_rules',
        sa.column('id', postgresql.UUID(as_uuid=True)),
        sa.column('rule_set_version_id', postgresql.UUID(as_uuid=True)),
        sa.column('program_id', postgresql.UUID(as_uuid=True)),
        sa.column('program_code', sa.String()),
        sa.column('rule_expression', postgresql.JSONB()),
        sa.column('priority', sa.Integer()),
    )
    op.bulk_insert(
        rules_table,
        [
            {
                'id': uuid.uuid4(),
                'rule_set_version_id': TX_RULE_SET_ID,
                'program_id': program_ids[code],
                'program_code': code,
                'rule_expression': expression,
                'priority': priority,
            }
            for code, priority, expression in TX_RULES
        ],
    )


def downgrade() -> None:
    op.execute(
        sa.text("DELETE FROM eligibility_rules WHERE rule_set_version_id = :id").bindparams(id=TX_RULE_SET_ID)
    )
    op.execute("DELETE FROM program_definitions WHERE jurisdiction_code = 'TX'")
    op.execute(
        sa.text("DELETE FROM rule_set_versions WHERE id = :id").bindparams(id=TX_RULE_SET_ID)
    )
    op.execute("DELETE FROM federal_poverty_levels WHERE year = 2026")
