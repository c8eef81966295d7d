"""Tests for snapshot mapping and repository queries."""

from __future__ import annotations

import uuid
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from app.core.enums import ProgramCategory, RuleSetStatus
from app.models.domain.eligibility import (
    EligibilityRule,
    FederalPovertyLevel,
    ProgramDefinition,
    RuleSetVersion,
)
from app.repositories.fpl_repository import FederalPovertyLevelRepository
from app.repositories.rule_set_repository import (
    RuleSetRepository,
    to_rule_set_snapshot,
    to_rule_snapshot,
)

# ── Helpers ──────────────────────────────────────────────────────────


def _db_returning(*batches) -> AsyncMock:
    """Session whose successive execute() calls return the given rows."""
    results = []
    for rows in batches:
        result = MagicMock()
        result.scalars.return_value.all.return_value = list(rows)
        result.scalars.return_value.first.return_value = rows[0] if rows else None
        results.append(result)
    db = AsyncMock()
    db.execute.side_effect = results
    return db


def _version(label: str, effective: date, status=RuleSetStatus.ACTIVE) -> RuleSetVersion:
    return RuleSetVersion(
        id=uuid.uuid4(),
        jurisdiction_code="TX",
        version_label=label,
        effective_date=effective,
        end_date=None,
        status=status,
    )


def _rule(expression, program: ProgramDefinition | None) -> EligibilityRule:
    rule = EligibilityRule(
        id=uuid.uuid4(),
        rule_set_version_id=uuid.uuid4(),
        program_code="ADULT",
        rule_expression=expression,
        priority=3,
    )
    rule.program = program
    return rule


class TestSnapshots:
    def test_rule_set_snapshot(self):
        version = _version("2026.1", date(2026, 1, 1))
        snapshot = to_rule_set_snapshot(version)

        assert snapshot.id == str(version.id)
        assert snapshot.version_label == "2026.1"
        assert snapshot.status == RuleSetStatus.ACTIVE

    def test_rule_snapshot_serializes_expression(self):
        program = ProgramDefinition(
            program_code="ADULT", name="Adult Coverage", category=ProgramCategory.MAGI
        )
        snapshot = to_rule_snapshot(_rule({"==": [{"var": "b"}, 1]}, program))

        assert snapshot.expression == '{"==": [{"var": "b"}, 1]}'
        assert snapshot.priority == 3
        assert snapshot.display_name == "Adult Coverage"
        assert snapshot.category == ProgramCategory.MAGI

    def test_rule_without_program(self):
        snapshot = to_rule_snapshot(_rule("true", None))

        assert snapshot.expression == "true"
        assert snapshot.display_name == "ADULT"
        assert snapshot.category == ProgramCategory.OTHER


class TestRuleSetRepository:
    @pytest.mark.asyncio()
    async def test_selects_applicable_version(self):
        versions = [
            _version("2026.2", date(2026, 3, 1)),
            _version("2026.1", date(2026, 1, 1)),
        ]
        repo = RuleSetRepository(_db_returning(versions))

        snapshot = await repo.get_active_rule_set_version("TX", date(2026, 2, 1))

        assert snapshot.version_label == "2026.1"

    @pytest.mark.asyncio()
    async def test_no_applicable_version(self):
        repo = RuleSetRepository(_db_returning([]))

        assert await repo.get_active_rule_set_version("ZZ", date(2026, 2, 1)) is None

    @pytest.mark.asyncio()
    async def test_rules_become_snapshots(self):
        rows = [_rule({"var": "isCitizen"}, None)]
        repo = RuleSetRepository(_db_returning(rows))

        rules = await repo.get_rules_for_rule_set_version(uuid.uuid4())

        assert [r.program_code for r in rules] == ["ADULT"]
        assert rules[0].expression == '{"var": "isCitizen"}'

    @pytest.mark.asyncio()
    async def test_rules_of_inactive_programs_are_excluded(self):
        db = _db_returning([])
        repo = RuleSetRepository(db)

        await repo.get_rules_for_rule_set_version(uuid.uuid4())

        stmt = db.execute.await_args.args[0]
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert "EXISTS" in sql
        assert "program_definitions.is_active IS true" in sql


class TestFederalPovertyLevelRepository:
    @pytest.mark.asyncio()
    async def test_prefers_state_row(self):
        state_row = FederalPovertyLevel(year=2026, household_size=1, annual_amount_cents=1)
        db = _db_returning([state_row])

        row = await FederalPovertyLevelRepository(db).get_for_household(2026, 1, "AK")

        assert row is state_row
        assert db.execute.await_count == 1

    @pytest.mark.asyncio()
    async def test_falls_back_to_baseline(self):
        baseline = FederalPovertyLevel(year=2026, household_size=1, annual_amount_cents=2)
        db = _db_returning([], [baseline])

        row = await FederalPovertyLevelRepository(db).get_for_household(2026, 1, "TX")

        assert row is baseline
        assert db.execute.await_count == 2

    @pytest.mark.asyncio()
    async def test_baseline_only_without_jurisdiction(self):
        baseline = FederalPovertyLevel(year=2026, household_size=1, annual_amount_cents=2)
        db = _db_returning([baseline])

        row = await FederalPovertyLevelRepository(db).get_for_household(2026, 1)

        assert row is baseline
        assert db.execute.await_count == 1
