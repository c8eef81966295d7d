"""Exception types raised by the eligibility engine and its services."""

from typing import Dict, List, Optional


class EligibilityError(Exception):
    """Base class for all eligibility engine errors."""


class ValidationError(EligibilityError):
    """
    Raised when a request is structurally invalid.

    Attributes:
        errors: Field name mapped to the list of problems found for it
    """

    def __init__(
        self,
        message: str = "Validation failed. Please check the provided data.",
        errors: Optional[Dict[str, List[str]]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class NotFoundError(EligibilityError):
    """Raised when no active rule set covers the jurisdiction and date."""

    def __init__(self, message: str = "Rules not found for state or effective date."):
        super().__init__(message)
        self.message = message


class RuleEvaluationError(EligibilityError):
    """Raised when a single rule expression cannot be parsed or evaluated."""

    def __init__(self, message: str, rule_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.rule_id = rule_id


class RulesUnavailableError(EligibilityError):
    """Raised when a selected rule set has no rules to evaluate."""

    def __init__(self, rule_set_version_id: Optional[str] = None):
        super().__init__(
            f"No rules available for rule set version {rule_set_version_id}"
        )
        self.rule_set_version_id = rule_set_version_id


class EvaluationCancelledError(EligibilityError):
    """Raised when the caller cancels an evaluation before it completes."""
