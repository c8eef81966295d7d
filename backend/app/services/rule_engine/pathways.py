"""Identification of eligibility pathways from applicant answers."""

from typing import Any, List, Mapping

from app.core.enums import ProgramCategory
from app.services.rule_engine.expressions import MISSING, is_truthy, resolve_answer, to_decimal

AGED_THRESHOLD = 65
ADULT_MIN_AGE = 19


class PathwayIdentifier:
    """
    Suggests which eligibility pathways apply to an applicant.

    Reads ``age``, ``has_disability``, ``receives_ssi``, ``is_pregnant`` and
    ``sex``. Without an age no pathway is suggested.
    """

    def identify(self, answers: Mapping[str, Any]) -> List[ProgramCategory]:
        age_value = to_decimal(resolve_answer(answers, "age"))
        if age_value is None or age_value < 0:
            return []

        has_disability = is_truthy(resolve_answer(answers, "has_disability"))
        receives_ssi = is_truthy(resolve_answer(answers, "receives_ssi"))
        is_pregnant = is_truthy(resolve_answer(answers, "is_pregnant"))
        sex = resolve_answer(answers, "sex")
        is_female = sex is not MISSING and str(sex).strip().lower() in ("female", "f")

        pathways = set()
        if receives_ssi:
            pathways.add(ProgramCategory.SSI_LINKED)
        if age_value >= AGED_THRESHOLD:
            pathways.add(ProgramCategory.NON_MAGI_AGED)
        elif has_disability and not receives_ssi:
            pathways.add(ProgramCategory.NON_MAGI_DISABLED)
        if ADULT_MIN_AGE <= age_value < AGED_THRESHOLD and not has_disability and not receives_ssi:
            pathways.add(ProgramCategory.MAGI)
        if is_pregnant and is_female:
            pathways.add(ProgramCategory.PREGNANCY)

        return sorted(pathways, key=lambda pathway: pathway.value)
