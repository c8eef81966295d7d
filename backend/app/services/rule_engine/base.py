"""Eligibility engine foundation: snapshots, request/result values and the filter interface."""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from app.core.enums import (
    CriterionStatus,
    EligibilityStatus,
    ProgramCategory,
    RuleSetStatus,
)


@dataclass(frozen=True)
class RuleSetVersionSnapshot:
    """
    Read-only view of a rule set version.

    Attributes:
        id: Rule set version identifier
        jurisdiction_code: Two-letter state code the rules apply to
        version_label: Human-readable version, reported as ruleVersionUsed
        effective_date: First day the version applies
        end_date: Last day the version applies, or None if open-ended
        status: Active or Retired; retired versions are never selected
    """

    id: str
    jurisdiction_code: str
    version_label: str
    effective_date: date
    end_date: Optional[date] = None
    status: RuleSetStatus = RuleSetStatus.ACTIVE

    def __post_init__(self):
        if self.end_date is not None and self.end_date < self.effective_date:
            raise ValueError(
                f"Rule set version {self.version_label} ends before it becomes effective"
            )


@dataclass(frozen=True)
class RuleSnapshot:
    """
    Read-only view of an eligibility rule.

    The expression is held as canonical JSON text so a snapshot can be shared
    between requests without any risk of in-place mutation.
    """

    id: str
    rule_set_version_id: str
    program_code: str
    expression: str
    priority: int = 0
    program_name: Optional[str] = None
    category: ProgramCategory = ProgramCategory.OTHER

    def __post_init__(self):
        if not isinstance(self.expression, str):
            object.__setattr__(
                self, "expression", json.dumps(self.expression, sort_keys=True)
            )

    @property
    def display_name(self) -> str:
        return self.program_name or self.program_code


@dataclass(frozen=True)
class EvaluationRequest:
    """Jurisdiction, effective date and answers for one evaluation."""

    jurisdiction_code: str
    effective_date: date
    answers: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "answers", MappingProxyType(dict(self.answers or {})))


@dataclass(frozen=True)
class ProgramMatch:
    """A program the applicant appears to qualify for."""

    program_code: str
    program_name: str
    confidence_score: int
    explanation: str


@dataclass(frozen=True)
class ExplanationItem:
    """One criterion's outcome with its plain-language message."""

    criterion_id: str
    message: str
    status: CriterionStatus
    glossary_reference: Optional[str] = None


@dataclass(frozen=True)
class EligibilityResult:
    """
    Outcome of evaluating a request against a rule set.

    Attributes:
        status: Likely, Possibly or Unlikely, from the confidence score
        matched_programs: Matches sorted by score descending, then program code
        confidence_score: Best program score, or the no-match score
        explanation: Plain-language summary
        explanation_items: Per-criterion outcomes
        rule_version_used: Version label of the rule set that was applied
        evaluated_at: UTC timestamp of the evaluation
        disqualifying_factors: Reasons matches were removed by secondary checks
        pathways: Eligibility pathways suggested by the answers
        diagnostics: Internal notes about rules that could not be evaluated
    """

    status: EligibilityStatus
    matched_programs: Tuple[ProgramMatch, ...]
    confidence_score: int
    explanation: str
    explanation_items: Tuple[ExplanationItem, ...]
    rule_version_used: str
    evaluated_at: datetime
    disqualifying_factors: Tuple[str, ...] = ()
    pathways: Tuple[str, ...] = ()
    diagnostics: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FilterResult:
    """Result of a secondary check on a matched program."""

    passed: bool
    reason: Optional[str] = None


class SecondaryFilter(ABC):
    """
    Abstract base class for checks applied after a rule has matched.

    A secondary filter can demote a match to a non-match without being part
    of the rule expression itself (for example an asset test that only some
    pathways have). Subclasses declare which rules they apply to and how the
    check is made.
    """

    #: Criterion reported as unmet when the filter demotes a match
    criterion_id: str = "secondary_check"

    @abstractmethod
    def applies_to(self, rule: RuleSnapshot) -> bool:
        """Return True if this filter should run for the matched rule."""

    @abstractmethod
    def evaluate(
        self,
        answers: Mapping[str, Any],
        jurisdiction_code: str,
        rule: RuleSnapshot,
    ) -> FilterResult:
        """
        Run the check for a matched rule.

        Args:
            answers: Applicant answers
            jurisdiction_code: Normalized jurisdiction of the request
            rule: The rule that matched

        Returns:
            FilterResult; ``passed=False`` demotes the match

        Raises:
            RuleEvaluationError: If the answers needed by the check are unusable
        """
