"""Eligibility evaluator coordinating rule evaluation, scoring and explanation."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from app.core.enums import CriterionStatus
from app.core.exceptions import (
    EvaluationCancelledError,
    RuleEvaluationError,
    RulesUnavailableError,
)
from app.services.rule_engine.base import (
    EligibilityResult,
    EvaluationRequest,
    ProgramMatch,
    RuleSetVersionSnapshot,
    RuleSnapshot,
    SecondaryFilter,
)
from app.services.rule_engine.expressions import (
    ExpressionCache,
    ExpressionOutcome,
    evaluate_expression,
)
from app.services.rule_engine.explanation import ExplanationBuilder
from app.services.rule_engine.filters import AssetLimitFilter
from app.services.rule_engine.pathways import PathwayIdentifier
from app.services.rule_engine.readability import ReadabilityValidator
from app.services.rule_engine.scoring import ConfidenceScoringPolicy

logger = logging.getLogger(__name__)

# Precedence when the same criterion shows up in several leaves
_STATUS_RANK = {
    CriterionStatus.UNMET: 0,
    CriterionStatus.MET: 1,
    CriterionStatus.MISSING: 2,
}


@dataclass(frozen=True)
class RuleOutcome:
    """Evaluation of one rule with its confidence score."""

    rule: RuleSnapshot
    expression: ExpressionOutcome
    score: int

    @property
    def matched(self) -> bool:
        return self.expression.matched


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EligibilityEvaluator:
    """
    Evaluates a request against the rules of a selected rule set.

    This class:
    - Parses each rule once through a shared expression cache
    - Records malformed rules as non-matches and keeps going
    - Keeps the highest-priority match per program
    - Runs secondary filters that may demote a match
    - Scores matches and builds the plain-language explanation

    The evaluator holds no per-request state; one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        scoring_policy: Optional[ConfidenceScoringPolicy] = None,
        explanation_builder: Optional[ExplanationBuilder] = None,
        expression_cache: Optional[ExpressionCache] = None,
        secondary_filters: Optional[Sequence[SecondaryFilter]] = None,
        pathway_identifier: Optional[PathwayIdentifier] = None,
        readability_validator: Optional[ReadabilityValidator] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.scoring = scoring_policy or ConfidenceScoringPolicy()
        self.explanations = explanation_builder or ExplanationBuilder()
        self.expression_cache = expression_cache or ExpressionCache()
        self.secondary_filters: Tuple[SecondaryFilter, ...] = tuple(
            secondary_filters if secondary_filters is not None else (AssetLimitFilter(),)
        )
        self.pathways = pathway_identifier or PathwayIdentifier()
        self.readability = readability_validator
        self.clock = clock

    def evaluate(
        self,
        request: EvaluationRequest,
        rule_set: RuleSetVersionSnapshot,
        rules: Sequence[RuleSnapshot],
        cancel_event=None,
    ) -> EligibilityResult:
        """
        Evaluate every rule of a rule set against the request answers.

        Args:
            request: Jurisdiction, effective date and answers
            rule_set: The selected rule set version
            rules: Rules belonging to the rule set
            cancel_event: Optional object with ``is_set()``; checked between rules

        Returns:
            EligibilityResult with matches, score, status and explanation

        Raises:
            ValueError: If the request or rule set is missing
            RulesUnavailableError: If no rules were supplied
            EvaluationCancelledError: If cancel_event was set before completion
        """
        if request is None:
            raise ValueError("An evaluation request is required")
        if rule_set is None:
            raise ValueError("A rule set version is required")
        if not rules:
            raise RulesUnavailableError(rule_set.id)

        answers = request.answers
        outcomes: List[RuleOutcome] = []
        diagnostics: List[str] = []

        for rule in rules:
            if cancel_event is not None and cancel_event.is_set():
                raise EvaluationCancelledError(
                    f"Evaluation cancelled after {len(outcomes)} of {len(rules)} rules"
                )
            try:
                outcomes.append(self._evaluate_rule(rule, answers))
            except RuleEvaluationError as e:
                logger.warning(
                    f"Rule {rule.id} ({rule.program_code}) could not be evaluated: {e.message}"
                )
                diagnostics.append(f"Rule {rule.id} for {rule.program_code}: {e.message}")

        winners = self._select_program_winners(outcomes)
        winners, disqualifying_factors, demoted = self._apply_secondary_filters(
            request, winners, diagnostics
        )

        matches = sorted(
            (
                ProgramMatch(
                    program_code=outcome.rule.program_code,
                    program_name=outcome.rule.display_name,
                    confidence_score=outcome.score,
                    explanation=self.explanations.describe_match(outcome.rule.display_name),
                )
                for outcome in winners.values()
            ),
            key=lambda match: (-match.confidence_score, match.program_code),
        )

        if matches:
            confidence = matches[0].confidence_score
        else:
            fields: Dict[str, None] = {}
            for outcome in outcomes:
                for name in outcome.expression.referenced_fields:
                    fields.setdefault(name, None)
            confidence = self.scoring.score(answers, False, referenced_fields=list(fields))

        considered = list(winners.values()) if winners else outcomes
        met, unmet, missing = self._collect_criteria(
            considered, matched_only=bool(winners), demoted_by=demoted
        )
        summary = self.explanations.summarize(met, unmet, missing, matched=bool(matches))
        self._check_readability(summary)

        result = EligibilityResult(
            status=self.scoring.status_for(confidence),
            matched_programs=tuple(matches),
            confidence_score=confidence,
            explanation=summary,
            explanation_items=tuple(self.explanations.build_items(met, unmet, missing)),
            rule_version_used=rule_set.version_label,
            evaluated_at=self.clock(),
            disqualifying_factors=tuple(disqualifying_factors),
            pathways=tuple(pathway.value for pathway in self.pathways.identify(answers)),
            diagnostics=tuple(diagnostics),
        )

        logger.info(
            f"Evaluated {len(rules)} rules for {request.jurisdiction_code} "
            f"({rule_set.version_label}): {len(matches)} matches, score {confidence}"
        )
        return result

    def _evaluate_rule(self, rule: RuleSnapshot, answers) -> RuleOutcome:
        try:
            tree = self.expression_cache.get_or_parse(
                str(rule.id), str(rule.rule_set_version_id), rule.expression
            )
            outcome = evaluate_expression(tree, answers)
        except RuleEvaluationError as e:
            e.rule_id = rule.id
            raise
        except RecursionError as e:
            raise RuleEvaluationError("Rule expression is nested too deeply", rule.id) from e

        score = self.scoring.score(
            answers,
            outcome.matched,
            referenced_fields=outcome.referenced_fields,
            used_default=outcome.used_default,
        )
        return RuleOutcome(rule=rule, expression=outcome, score=score)

    @staticmethod
    def _select_program_winners(outcomes: Sequence[RuleOutcome]) -> Dict[str, RuleOutcome]:
        """Keep one matched rule per program: highest priority, then score, then rule id."""
        by_program: Dict[str, List[RuleOutcome]] = {}
        for outcome in outcomes:
            if outcome.matched:
                by_program.setdefault(outcome.rule.program_code, []).append(outcome)

        winners: Dict[str, RuleOutcome] = {}
        for program_code in sorted(by_program):
            candidates = by_program[program_code]
            winners[program_code] = min(
                candidates,
                key=lambda o: (-o.rule.priority, -o.score, str(o.rule.id)),
            )
        return winners

    def _apply_secondary_filters(
        self,
        request: EvaluationRequest,
        winners: Dict[str, RuleOutcome],
        diagnostics: List[str],
    ) -> Tuple[Dict[str, RuleOutcome], List[str], List[str]]:
        kept: Dict[str, RuleOutcome] = {}
        factors: List[str] = []
        demoted_by: List[str] = []

        for program_code, outcome in winners.items():
            demoted = False
            for check in self.secondary_filters:
                if not check.applies_to(outcome.rule):
                    continue
                try:
                    result = check.evaluate(request.answers, request.jurisdiction_code, outcome.rule)
                except RuleEvaluationError as e:
                    logger.warning(
                        f"Secondary check {type(check).__name__} skipped for {program_code}: {e.message}"
                    )
                    diagnostics.append(f"{type(check).__name__} for {program_code}: {e.message}")
                    continue
                if not result.passed:
                    demoted = True
                    if result.reason:
                        factors.append(result.reason)
                    if check.criterion_id not in demoted_by:
                        demoted_by.append(check.criterion_id)
                    break
            if not demoted:
                kept[program_code] = outcome

        return kept, factors, demoted_by

    @staticmethod
    def _collect_criteria(
        outcomes: Sequence[RuleOutcome],
        matched_only: bool,
        demoted_by: Sequence[str],
    ) -> Tuple[List[str], List[str], List[str]]:
        """
        Group criteria into met, unmet and missing lists.

        For matched rules only satisfied and missing leaves count; an unused
        branch of an OR is not reported as unmet. A missing answer outranks
        any other outcome for its criterion, and met outranks unmet.
        """
        statuses: Dict[str, CriterionStatus] = {}
        for outcome in outcomes:
            for leaf in outcome.expression.leaves:
                if leaf.missing:
                    status = CriterionStatus.MISSING
                elif leaf.satisfied:
                    status = CriterionStatus.MET
                elif matched_only:
                    continue
                else:
                    status = CriterionStatus.UNMET

                current = statuses.get(leaf.criterion_id)
                if current is None or _STATUS_RANK[status] > _STATUS_RANK[current]:
                    statuses[leaf.criterion_id] = status

        for criterion in demoted_by:
            statuses[criterion] = CriterionStatus.UNMET

        met = [c for c, s in statuses.items() if s == CriterionStatus.MET]
        unmet = [c for c, s in statuses.items() if s == CriterionStatus.UNMET]
        missing = [c for c, s in statuses.items() if s == CriterionStatus.MISSING]
        return met, unmet, missing

    def _check_readability(self, summary: str) -> None:
        if self.readability is None:
            return
        score = self.readability.score(summary)
        if score < self.readability.target:
            logger.warning(
                f"Explanation reading ease {score:.1f} is below the target of "
                f"{self.readability.target:.1f}"
            )
