"""Asset test for the aged and disabled pathways."""

from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from app.core.enums import ProgramCategory
from app.core.exceptions import RuleEvaluationError
from app.services.rule_engine.base import FilterResult, RuleSnapshot, SecondaryFilter
from app.services.rule_engine.expressions import MISSING, resolve_answer, to_decimal
from app.services.rule_engine.glossary import plain_text

# Countable asset limits in cents for a single applicant
DEFAULT_ASSET_LIMITS_CENTS: Dict[str, int] = {
    "IL": 200_000,
    "CA": 300_000,
    "NY": 450_000,
    "TX": 200_000,
    "FL": 250_000,
}

ASSET_TESTED_CATEGORIES = frozenset(
    {ProgramCategory.NON_MAGI_AGED, ProgramCategory.NON_MAGI_DISABLED}
)


def _dollars(cents: Decimal) -> str:
    return f"${cents / 100:,.2f}"


class AssetLimitFilter(SecondaryFilter):
    """
    Demotes aged and disabled matches whose assets exceed the state limit.

    Income-based, pregnancy and SSI-linked pathways have no asset test.
    Applicants who did not report assets, and jurisdictions without a known
    limit, are not tested.
    """

    criterion_id = "asset_limit"

    def __init__(self, limits_cents: Optional[Mapping[str, int]] = None):
        self._limits = {
            code.upper(): limit
            for code, limit in (limits_cents or DEFAULT_ASSET_LIMITS_CENTS).items()
        }

    def limit_for(self, jurisdiction_code: str) -> Optional[int]:
        return self._limits.get((jurisdiction_code or "").strip().upper())

    def applies_to(self, rule: RuleSnapshot) -> bool:
        return rule.category in ASSET_TESTED_CATEGORIES

    def evaluate(
        self,
        answers: Mapping[str, Any],
        jurisdiction_code: str,
        rule: RuleSnapshot,
    ) -> FilterResult:
        limit = self.limit_for(jurisdiction_code)
        raw_assets = resolve_answer(answers, "assets_cents")
        if limit is None or raw_assets is MISSING:
            return FilterResult(passed=True)

        assets = to_decimal(raw_assets)
        if assets is None:
            raise RuleEvaluationError("Asset amount must be a number", rule_id=rule.id)
        if assets < 0:
            raise RuleEvaluationError("Asset amount must not be negative", rule_id=rule.id)

        if assets > limit:
            return FilterResult(
                passed=False,
                reason=(
                    f"{plain_text(rule.display_name)}: your assets of {_dollars(assets)} are over "
                    f"the {_dollars(Decimal(limit))} limit."
                ),
            )
        return FilterResult(passed=True)
