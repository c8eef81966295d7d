"""Core enums for type safety across the application."""

from enum import Enum


class RuleSetStatus(str, Enum):
    """Lifecycle states of a versioned rule set."""

    ACTIVE = "Active"
    RETIRED = "Retired"


class EligibilityStatus(str, Enum):
    """Overall eligibility classification derived from the confidence score."""

    LIKELY = "Likely"
    POSSIBLY = "Possibly"
    UNLIKELY = "Unlikely"


class CriterionStatus(str, Enum):
    """Outcome of a single criterion in an explanation."""

    MET = "Met"
    UNMET = "Unmet"
    MISSING = "Missing"


class ProgramCategory(str, Enum):
    """Eligibility pathway a program belongs to."""

    MAGI = "MAGI"
    NON_MAGI_AGED = "NonMAGI_Aged"
    NON_MAGI_DISABLED = "NonMAGI_Disabled"
    PREGNANCY = "Pregnancy"
    SSI_LINKED = "SSI_Linked"
    OTHER = "Other"
