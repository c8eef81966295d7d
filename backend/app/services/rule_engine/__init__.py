"""Eligibility engine for evaluating applicant answers against versioned rule sets."""

from .base import (
    EligibilityResult,
    EvaluationRequest,
    ExplanationItem,
    FilterResult,
    ProgramMatch,
    RuleSetVersionSnapshot,
    RuleSnapshot,
    SecondaryFilter,
)
from .engine import EligibilityEvaluator, RuleOutcome
from .explanation import ExplanationBuilder
from .expressions import ExpressionCache, evaluate_expression, parse_expression
from .readability import ReadabilityValidator
from .scoring import ConfidenceScoringPolicy
from .selector import select_rule_set_version

__all__ = [
    "ConfidenceScoringPolicy",
    "EligibilityEvaluator",
    "EligibilityResult",
    "EvaluationRequest",
    "ExplanationBuilder",
    "ExplanationItem",
    "ExpressionCache",
    "FilterResult",
    "ProgramMatch",
    "ReadabilityValidator",
    "RuleOutcome",
    "RuleSetVersionSnapshot",
    "RuleSnapshot",
    "SecondaryFilter",
    "evaluate_expression",
    "parse_expression",
    "select_rule_set_version",
]
