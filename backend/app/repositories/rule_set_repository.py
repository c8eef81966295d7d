"""Repository for rule set versions and their rules."""

import json
import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enums import ProgramCategory
from app.models.domain.eligibility import EligibilityRule, ProgramDefinition, RuleSetVersion
from app.repositories.base import BaseRepository
from app.services.rule_engine.base import RuleSetVersionSnapshot, RuleSnapshot
from app.services.rule_engine.selector import select_rule_set_version

logger = logging.getLogger(__name__)


def to_rule_set_snapshot(version: RuleSetVersion) -> RuleSetVersionSnapshot:
    """Copy a rule set version row into an immutable snapshot."""
    return RuleSetVersionSnapshot(
        id=str(version.id),
        jurisdiction_code=version.jurisdiction_code,
        version_label=version.version_label,
        effective_date=version.effective_date,
        end_date=version.end_date,
        status=version.status,
    )


def to_rule_snapshot(rule: EligibilityRule) -> RuleSnapshot:
    """Copy a rule row (with its program loaded) into an immutable snapshot."""
    expression = rule.rule_expression
    if not isinstance(expression, str):
        expression = json.dumps(expression, sort_keys=True)

    program = rule.program
    return RuleSnapshot(
        id=str(rule.id),
        rule_set_version_id=str(rule.rule_set_version_id),
        program_code=rule.program_code,
        expression=expression,
        priority=rule.priority,
        program_name=program.name if program is not None else None,
        category=program.category if program is not None else ProgramCategory.OTHER,
    )


class RuleSetRepository(BaseRepository[RuleSetVersion]):
    """
    Repository for RuleSetVersion with rule loading for the evaluator.

    All results are returned as snapshots so callers (and the cache) never
    hold live ORM objects.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the rule set repository.

        Args:
            db: Async database session
        """
        super().__init__(RuleSetVersion, db)

    async def get_versions_for_jurisdiction(
        self, jurisdiction_code: str
    ) -> List[RuleSetVersion]:
        """
        Retrieve every version for a jurisdiction, newest first.

        Args:
            jurisdiction_code: Normalized two-letter code

        Returns:
            Versions ordered by effective date then version label, descending
        """
        stmt = (
            select(RuleSetVersion)
            .where(RuleSetVersion.jurisdiction_code == jurisdiction_code)
            .order_by(
                RuleSetVersion.effective_date.desc(),
                RuleSetVersion.version_label.desc(),
            )
        )
        return await self._all(stmt)

    async def get_active_rule_set_version(
        self,
        jurisdiction_code: str,
        effective_date: date,
    ) -> Optional[RuleSetVersionSnapshot]:
        """
        Retrieve the rule set version that applies to a jurisdiction on a date.

        Args:
            jurisdiction_code: Normalized two-letter code
            effective_date: Date of the evaluation

        Returns:
            Snapshot of the selected version, or None if none applies
        """
        versions = await self.get_versions_for_jurisdiction(jurisdiction_code)
        selected = select_rule_set_version(versions, effective_date)
        if selected is None:
            logger.info(
                f"No active rule set for {jurisdiction_code} on {effective_date.isoformat()} "
                f"among {len(versions)} versions"
            )
            return None
        return to_rule_set_snapshot(selected)

    async def get_rules_for_rule_set_version(
        self, rule_set_version_id: UUID
    ) -> List[RuleSnapshot]:
        """
        Retrieve the rules of a version ordered by priority, programs loaded.

        Rules whose program is inactive are left out.

        Args:
            rule_set_version_id: ID of the rule set version

        Returns:
            Rule snapshots; empty if the version has no rules
        """
        stmt = (
            select(EligibilityRule)
            .where(EligibilityRule.rule_set_version_id == rule_set_version_id)
            .where(EligibilityRule.program.has(ProgramDefinition.is_active.is_(True)))
            .options(selectinload(EligibilityRule.program))
            .order_by(EligibilityRule.priority, EligibilityRule.program_code)
        )
        rules = await self._all(stmt)
        return [to_rule_snapshot(rule) for rule in rules]
