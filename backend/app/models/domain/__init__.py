"""Domain models for the application."""

from app.models.domain.eligibility import (
    EligibilityRule,
    FederalPovertyLevel,
    ProgramDefinition,
    RuleSetVersion,
)

__all__ = [
    "RuleSetVersion",
    "ProgramDefinition",
    "EligibilityRule",
    "FederalPovertyLevel",
]
