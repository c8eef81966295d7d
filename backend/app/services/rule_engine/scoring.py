"""Confidence scoring and status bands for eligibility results."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Optional

from app.core.enums import EligibilityStatus
from app.services.rule_engine.expressions import MISSING, resolve_answer

LIKELY_THRESHOLD = 85
POSSIBLY_THRESHOLD = 60

MATCHED_CERTAINTY = Decimal("1.0")
# A match that relied on a missing field being read as false
DEFAULTED_MATCH_CERTAINTY = Decimal("0.9")
UNMATCHED_CERTAINTY = Decimal("0.5")

# Completeness used when the referenced fields are unknown and no answer has a value
SPARSE_ANSWERS_COMPLETENESS = Decimal("0.5")


class ConfidenceScoringPolicy:
    """
    Maps a rule outcome and answer completeness to a 0-100 confidence score.

    score = round(100 x completeness x certainty), where completeness is the
    share of the rule's fields that have a value and certainty depends on
    whether the rule matched and whether a missing field was read as false.
    A match on complete answers scores 100 and a non-match scores 50.
    """

    @staticmethod
    def completeness(
        answers: Optional[Mapping[str, Any]],
        referenced_fields: Optional[Iterable[str]] = None,
    ) -> Decimal:
        """
        Share of referenced fields that are present and non-null.

        Args:
            answers: Applicant answers
            referenced_fields: Fields read by the rule; None when unknown

        Returns:
            Completeness between 0 and 1
        """
        answers = answers or {}
        if referenced_fields is None:
            if any(value is not None for value in answers.values()):
                return Decimal("1")
            return SPARSE_ANSWERS_COMPLETENESS

        fields = list(dict.fromkeys(referenced_fields))
        if not fields:
            return Decimal("1")

        present = sum(1 for name in fields if resolve_answer(answers, name) is not MISSING)
        return Decimal(present) / Decimal(len(fields))

    @staticmethod
    def certainty(rule_matched: bool, used_default: bool = False) -> Decimal:
        if not rule_matched:
            return UNMATCHED_CERTAINTY
        return DEFAULTED_MATCH_CERTAINTY if used_default else MATCHED_CERTAINTY

    @staticmethod
    def score(
        answers: Optional[Mapping[str, Any]],
        rule_matched: bool,
        referenced_fields: Optional[Iterable[str]] = None,
        used_default: bool = False,
    ) -> int:
        """
        Calculate the confidence score for one rule outcome.

        Args:
            answers: Applicant answers
            rule_matched: Whether the rule expression evaluated to true
            referenced_fields: Fields read by the rule, if known
            used_default: Whether evaluation read a missing field as false

        Returns:
            Integer score between 0 and 100
        """
        completeness = ConfidenceScoringPolicy.completeness(answers, referenced_fields)
        certainty = ConfidenceScoringPolicy.certainty(rule_matched, used_default)
        raw = (Decimal("100") * completeness * certainty).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        return max(0, min(100, int(raw)))

    @staticmethod
    def status_for(score: int) -> EligibilityStatus:
        """
        Map a score to its status band.

        Raises:
            ValueError: If the score is outside 0-100
        """
        if score < 0 or score > 100:
            raise ValueError(f"Confidence score must be between 0 and 100, got {score}")
        if score >= LIKELY_THRESHOLD:
            return EligibilityStatus.LIKELY
        if score >= POSSIBLY_THRESHOLD:
            return EligibilityStatus.POSSIBLY
        return EligibilityStatus.UNLIKELY
