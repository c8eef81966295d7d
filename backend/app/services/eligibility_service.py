"""Eligibility service for resolving rules and running evaluations."""

import asyncio
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import NotFoundError, RulesUnavailableError, ValidationError
from app.repositories.fpl_repository import FederalPovertyLevelRepository
from app.repositories.rule_set_repository import RuleSetRepository
from app.services.rule_cache import RuleCache
from app.services.rule_engine.base import (
    EligibilityResult,
    EvaluationRequest,
    RuleSetVersionSnapshot,
    RuleSnapshot,
)
from app.services.rule_engine.engine import EligibilityEvaluator
from app.services.rule_engine.expressions import MISSING, resolve_answer, to_decimal
from app.services.rule_engine.fpl import (
    MAX_HOUSEHOLD_SIZE,
    MAX_TABLE_HOUSEHOLD_SIZE,
    MIN_HOUSEHOLD_SIZE,
    FplCalculator,
)

logger = logging.getLogger(__name__)

PERCENT_FPL_FIELD = "household_income_percent_fpl"


class EligibilityService:
    """
    Eligibility service to orchestrate a single evaluation.

    This service:
    - Validates and normalizes the request
    - Resolves the rule set and its rules through the cache, falling back to
      the repositories, under a fetch deadline
    - Derives the income-to-poverty-level percentage when it can
    - Runs the evaluator and returns its result unchanged
    """

    def __init__(
        self,
        db: Optional[AsyncSession],
        cache: RuleCache,
        evaluator: Optional[EligibilityEvaluator] = None,
        rule_set_repo: Optional[RuleSetRepository] = None,
        fpl_repo: Optional[FederalPovertyLevelRepository] = None,
        fetch_timeout_seconds: Optional[float] = None,
    ):
        """
        Initialize the eligibility service.

        Args:
            db: Async database session
            cache: Shared rule cache
            evaluator: Evaluator instance, shared across requests
            rule_set_repo: Override for the rule set repository
            fpl_repo: Override for the poverty level repository
            fetch_timeout_seconds: Deadline for loading rule data
        """
        self.db = db
        self.cache = cache
        self.evaluator = evaluator or EligibilityEvaluator()
        self.rule_set_repo = rule_set_repo or RuleSetRepository(db)
        self.fpl_repo = fpl_repo or FederalPovertyLevelRepository(db)
        self.fetch_timeout_seconds = (
            fetch_timeout_seconds
            if fetch_timeout_seconds is not None
            else settings.RULE_FETCH_TIMEOUT_SECONDS
        )

    @staticmethod
    def validate_request(
        jurisdiction_code: Any,
        effective_date: Any,
        answers: Any,
        program_code: Any = None,
    ) -> None:
        """
        Check the request shape before any rule data is loaded.

        Household size and income answers are checked here too, so a
        malformed answer is reported even when no rule set applies.

        Raises:
            ValidationError: With one entry per invalid field
        """
        errors: Dict[str, List[str]] = {}

        code = jurisdiction_code.strip() if isinstance(jurisdiction_code, str) else ""
        if not code:
            errors["jurisdictionCode"] = ["Jurisdiction code is required."]
        elif len(code) != 2 or not code.isalpha():
            errors["jurisdictionCode"] = ["Jurisdiction code must be a two-letter state code."]

        if not isinstance(effective_date, date):
            errors["effectiveDate"] = ["Effective date is required."]

        if answers is None:
            errors["answers"] = ["Answers are required."]
        elif not isinstance(answers, Mapping):
            errors["answers"] = ["Answers must be an object."]
        elif any(not isinstance(key, str) or not key.strip() for key in answers):
            errors["answers"] = ["Every answer needs a name."]
        else:
            for check in (EligibilityService._household_size, EligibilityService._annual_income):
                try:
                    check(answers)
                except ValidationError as e:
                    errors.update(e.errors)

        if program_code is not None and (
            not isinstance(program_code, str) or not program_code.strip()
        ):
            errors["programCode"] = ["Program code must not be blank."]

        if errors:
            raise ValidationError(errors=errors)

    async def evaluate(
        self,
        jurisdiction_code: str,
        effective_date: date,
        answers: Mapping[str, Any],
        cancel_event=None,
        program_code: Optional[str] = None,
    ) -> EligibilityResult:
        """
        Evaluate answers against the rules in force for a jurisdiction and date.

        Args:
            jurisdiction_code: Two-letter state code (any case, may be padded)
            effective_date: Date the evaluation applies to
            answers: Applicant answers keyed by field name
            cancel_event: Optional cancellation signal passed to the evaluator
            program_code: Only evaluate the rules of this program

        Returns:
            EligibilityResult from the evaluator

        Raises:
            ValidationError: If the request is malformed
            NotFoundError: If no rule set applies, or it has no rules for program_code
            RulesUnavailableError: If the selected rule set has no rules
            asyncio.TimeoutError: If loading rule data exceeds the deadline
        """
        self.validate_request(jurisdiction_code, effective_date, answers, program_code)
        code = jurisdiction_code.strip().upper()

        try:
            rule_set, rules, enriched = await asyncio.wait_for(
                self._prepare(code, effective_date, answers),
                timeout=self.fetch_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Loading rules for {code} on {effective_date.isoformat()} "
                f"exceeded {self.fetch_timeout_seconds:.1f}s"
            )
            raise

        if program_code is not None:
            rules = self._rules_for_program(rules, program_code, rule_set)

        request = EvaluationRequest(
            jurisdiction_code=code,
            effective_date=effective_date,
            answers=enriched,
        )
        return self.evaluator.evaluate(request, rule_set, rules, cancel_event=cancel_event)

    async def _prepare(
        self,
        jurisdiction_code: str,
        effective_date: date,
        answers: Mapping[str, Any],
    ) -> Tuple[RuleSetVersionSnapshot, Tuple[RuleSnapshot, ...], Mapping[str, Any]]:
        rule_set = await self.get_rule_set(jurisdiction_code, effective_date)
        rules = await self.get_rules(rule_set)
        enriched = await self._with_poverty_percentage(
            answers, jurisdiction_code, effective_date.year
        )
        return rule_set, rules, enriched

    async def get_rule_set(
        self, jurisdiction_code: str, effective_date: date
    ) -> RuleSetVersionSnapshot:
        """
        Resolve the applicable rule set version, cache first.

        Raises:
            NotFoundError: If no version applies
        """
        rule_set = self.cache.get_rule_set(jurisdiction_code, effective_date)
        if rule_set is not None:
            return rule_set

        rule_set = await self.rule_set_repo.get_active_rule_set_version(
            jurisdiction_code, effective_date
        )
        if rule_set is None:
            raise NotFoundError()

        self.cache.set_rule_set(jurisdiction_code, effective_date, rule_set)
        return rule_set

    async def get_rules(self, rule_set: RuleSetVersionSnapshot) -> Tuple[RuleSnapshot, ...]:
        """
        Resolve the rules of a rule set version, cache first.

        Raises:
            RulesUnavailableError: If the version has no rules
        """
        rules = self.cache.get_rules(rule_set.id)
        if rules:
            return rules

        rules = tuple(await self.rule_set_repo.get_rules_for_rule_set_version(rule_set.id))
        if not rules:
            logger.error(f"Rule set {rule_set.version_label} ({rule_set.id}) has no rules")
            raise RulesUnavailableError(rule_set.id)

        self.cache.set_rules(rule_set.id, rules)
        return rules

    @staticmethod
    def _rules_for_program(
        rules: Tuple[RuleSnapshot, ...],
        program_code: str,
        rule_set: RuleSetVersionSnapshot,
    ) -> Tuple[RuleSnapshot, ...]:
        """
        Narrow a rule set to one program.

        Raises:
            NotFoundError: If the rule set has no rules for the program
        """
        code = program_code.strip().upper()
        selected = tuple(rule for rule in rules if rule.program_code.upper() == code)
        if not selected:
            logger.info(f"Rule set {rule_set.version_label} has no rules for program {code}")
            raise NotFoundError(f"Rules not found for program {code}.")
        return selected

    async def _with_poverty_percentage(
        self,
        answers: Mapping[str, Any],
        jurisdiction_code: str,
        year: int,
    ) -> Mapping[str, Any]:
        """Return answers with the income-to-poverty percentage added when derivable."""
        if resolve_answer(answers, PERCENT_FPL_FIELD) is not MISSING:
            return answers

        household_size = self._household_size(answers)
        annual_income = self._annual_income(answers)
        if household_size is None or annual_income is None:
            return answers

        poverty_level = await self.get_poverty_level(jurisdiction_code, year, household_size)
        if poverty_level is None:
            logger.warning(
                f"No poverty level for {jurisdiction_code}, {year}, household of {household_size}"
            )
            return answers

        percent = FplCalculator.percent_of_fpl(annual_income, poverty_level)
        if percent is None:
            return answers
        return {**answers, PERCENT_FPL_FIELD: percent}

    async def get_poverty_level(
        self, jurisdiction_code: Optional[str], year: int, household_size: int
    ) -> Optional[int]:
        """Annual poverty level in cents for a household, cache first."""
        cached = self.cache.get_poverty_level(jurisdiction_code, year, household_size)
        if cached is not None:
            return cached

        if household_size <= MAX_TABLE_HOUSEHOLD_SIZE:
            row = await self.fpl_repo.get_for_household(year, household_size, jurisdiction_code)
            amount = row.annual_amount_cents if row is not None else None
        else:
            largest = await self.fpl_repo.get_for_household(
                year, MAX_TABLE_HOUSEHOLD_SIZE, jurisdiction_code
            )
            previous = await self.fpl_repo.get_for_household(
                year, MAX_TABLE_HOUSEHOLD_SIZE - 1, jurisdiction_code
            )
            amount = None
            if largest is not None and previous is not None:
                amount = FplCalculator.extend_for_large_household(
                    largest.annual_amount_cents,
                    previous.annual_amount_cents,
                    household_size,
                )

        if amount is not None:
            self.cache.set_poverty_level(jurisdiction_code, year, household_size, amount)
        return amount

    @staticmethod
    def _household_size(answers: Mapping[str, Any]) -> Optional[int]:
        raw = resolve_answer(answers, "household_size")
        if raw is MISSING:
            return None
        size = to_decimal(raw)
        if size is None or size != size.to_integral_value() or not (
            MIN_HOUSEHOLD_SIZE <= size <= MAX_HOUSEHOLD_SIZE
        ):
            raise ValidationError(
                errors={
                    "answers.household_size": [
                        f"Household size must be a whole number from "
                        f"{MIN_HOUSEHOLD_SIZE} to {MAX_HOUSEHOLD_SIZE}."
                    ]
                }
            )
        return int(size)

    @staticmethod
    def _annual_income(answers: Mapping[str, Any]) -> Optional[int]:
        for field_name, multiplier in (("annual_income_cents", 1), ("monthly_income_cents", 12)):
            raw = resolve_answer(answers, field_name)
            if raw is MISSING:
                continue
            amount = to_decimal(raw)
            if amount is None or amount < 0:
                raise ValidationError(
                    errors={f"answers.{field_name}": ["Income must be a number of cents, zero or more."]}
                )
            return int(amount * Decimal(multiplier))
        return None
