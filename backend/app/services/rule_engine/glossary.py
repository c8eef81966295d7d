"""Controlled vocabulary for explanation text.

Criterion identifiers coming from rule expressions are internal field names
(``isCitizen``, ``household_income_percent_fpl``). Everything the applicant
reads goes through this module first: known criteria map to a short display
name and a plain-language requirement sentence, and program acronyms map to a
spelled-out definition that can be attached to an explanation item.
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class CriterionDefinition:
    """Display name, requirement sentence and optional glossary term for a criterion."""

    name: str
    requirement: str
    glossary_term: Optional[str] = None


_CITIZENSHIP = CriterionDefinition(
    name="Citizenship",
    requirement="You must be a U.S. citizen or qualified immigrant.",
)
_INCOME = CriterionDefinition(
    name="Income Limit",
    requirement="Your household income must be below the limit for your household size.",
)
_INCOME_FPL = CriterionDefinition(
    name="Income Limit",
    requirement="Your household income must be below the limit for your household size.",
    glossary_term="FPL",
)
_ASSETS = CriterionDefinition(
    name="Asset Limit",
    requirement="The value of your savings and other things you own must be below the limit.",
)
_RESIDENCY = CriterionDefinition(
    name="State Residency",
    requirement="You must live in the state where you are applying.",
)
_AGE = CriterionDefinition(
    name="Age",
    requirement="You must be in the age group this program serves.",
)
_EMPLOYMENT = CriterionDefinition(
    name="Employment Status",
    requirement="Your work situation must fit the program rules.",
)
_FAMILY = CriterionDefinition(
    name="Family Structure",
    requirement="Your family situation must fit the program rules.",
)
_MEDICAL = CriterionDefinition(
    name="Medical Status",
    requirement="You must have a health condition or disability this program covers.",
)
_PREGNANCY = CriterionDefinition(
    name="Pregnancy",
    requirement="You must be pregnant to get this coverage.",
)
_SSI = CriterionDefinition(
    name="Disability Income",
    requirement="You must get monthly disability income from Social Security.",
    glossary_term="SSI",
)
_HOUSEHOLD_SIZE = CriterionDefinition(
    name="Household Size",
    requirement="We use the number of people in your home to find your limit.",
)

# Keys are snake_case; see normalize_identifier
CRITERION_GLOSSARY: Dict[str, CriterionDefinition] = {
    "citizenship": _CITIZENSHIP,
    "citizenship_requirement": _CITIZENSHIP,
    "citizenship_status": _CITIZENSHIP,
    "is_citizen": _CITIZENSHIP,
    "is_us_citizen": _CITIZENSHIP,
    "income": _INCOME,
    "income_threshold": _INCOME,
    "monthly_income": _INCOME,
    "monthly_income_cents": _INCOME,
    "annual_income": _INCOME,
    "annual_income_cents": _INCOME,
    "household_income": _INCOME,
    "household_income_percent_fpl": _INCOME_FPL,
    "asset_limit": _ASSETS,
    "assets": _ASSETS,
    "assets_cents": _ASSETS,
    "residency": _RESIDENCY,
    "residency_requirement": _RESIDENCY,
    "state_of_residence": _RESIDENCY,
    "age": _AGE,
    "age_requirement": _AGE,
    "employment": _EMPLOYMENT,
    "employment_status": _EMPLOYMENT,
    "family_structure": _FAMILY,
    "medical_status": _MEDICAL,
    "has_disability": _MEDICAL,
    "is_disabled": _MEDICAL,
    "disability": _MEDICAL,
    "is_pregnant": _PREGNANCY,
    "pregnancy": _PREGNANCY,
    "receives_ssi": _SSI,
    "household_size": _HOUSEHOLD_SIZE,
}

# Program acronyms and the definition shown next to an explanation item
JARGON_DEFINITIONS: Dict[str, str] = {
    "MAGI": "Modified Adjusted Gross Income: the income amount used to decide most health coverage.",
    "FPL": "Federal Poverty Level: a yearly income guide used to decide who can get help.",
    "FPIG": "Federal Poverty Income Guidelines: the yearly income guide used to decide who can get help.",
    "AMI": "Area Median Income: the middle income for families in your area.",
    "AGI": "Adjusted Gross Income: your total income minus some allowed amounts.",
    "SSI": "Supplemental Security Income: monthly cash help for people with low income who are older or have a disability.",
    "SSDI": "Social Security Disability Insurance: monthly payments for people who worked and now have a disability.",
    "TANF": "Temporary Assistance for Needy Families: cash help for families with children.",
    "CHIP": "Children's Health Insurance Program: low-cost health coverage for children.",
    "SNAP": "Supplemental Nutrition Assistance Program: help buying food.",
}

# Words that must never appear in applicant-facing text
FORBIDDEN_TERMS = (
    "algorithm",
    "regex",
    "JSONLogic",
    "MAGI",
    "FPIG",
    "AMI",
    "FPL",
    "XML",
    "JSON",
    "API",
    "payload",
    "schema",
    "normalized",
    "serialized",
    "deterministic",
    "cardinality",
    "relational",
    "denormalized",
)

# Plain replacement for a forbidden word found inside an identifier; None drops the word
PLAIN_WORDS: Dict[str, Optional[str]] = {
    "magi": "Household Income",
    "agi": "Income",
    "fpl": "Poverty Level",
    "fpig": "Poverty Level",
    "ami": "Area Income",
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")
_FORBIDDEN_LOWER = {term.lower() for term in FORBIDDEN_TERMS}


def split_identifier(identifier: str) -> list[str]:
    """Split a camelCase, snake_case, kebab-case or dotted identifier into words."""
    spaced = _CAMEL_BOUNDARY.sub(" ", identifier or "")
    return [word for word in _NON_ALNUM.split(spaced) if word]


def normalize_identifier(identifier: str) -> str:
    """Return the snake_case glossary key for an identifier."""
    return "_".join(word.lower() for word in split_identifier(identifier))


def lookup_criterion(identifier: str) -> Optional[CriterionDefinition]:
    """Find the glossary entry for a criterion identifier, if there is one."""
    return CRITERION_GLOSSARY.get(normalize_identifier(identifier))


def humanize_identifier(identifier: str) -> str:
    """
    Build a display name for an identifier the glossary does not know.

    Forbidden words are replaced with their plain phrase or dropped, so the
    result never carries format names or acronyms into applicant text.
    """
    words: list[str] = []
    for word in split_identifier(identifier):
        lowered = word.lower()
        if lowered in PLAIN_WORDS:
            replacement = PLAIN_WORDS[lowered]
            if replacement:
                words.append(replacement)
            continue
        if lowered in _FORBIDDEN_LOWER:
            continue
        words.append(word[:1].upper() + word[1:])
    return " ".join(words)


def plain_text(text: str) -> str:
    """Replace forbidden words in free text such as a program name."""
    words = []
    for word in (text or "").split():
        core = _NON_ALNUM.sub("", word).lower()
        if core in PLAIN_WORDS:
            replacement = PLAIN_WORDS[core]
            if replacement:
                words.append(replacement)
            continue
        if core in _FORBIDDEN_LOWER:
            continue
        words.append(word.replace("{", "").replace("}", ""))
    return " ".join(words)


def find_forbidden_terms(text: str) -> list[str]:
    """Return the forbidden terms present in text as whole words, in declaration order."""
    found = []
    for term in FORBIDDEN_TERMS:
        if re.search(rf"\b{re.escape(term)}\b", text or "", flags=re.IGNORECASE):
            found.append(term)
    return found
