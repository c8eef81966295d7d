"""Plain-language explanation of eligibility outcomes."""

from typing import List, Optional, Sequence

from app.core.enums import CriterionStatus
from app.services.rule_engine.base import ExplanationItem
from app.services.rule_engine.glossary import (
    JARGON_DEFINITIONS,
    humanize_identifier,
    lookup_criterion,
    plain_text,
)

_FALLBACK_NAME = "This requirement"

_ITEM_TEMPLATES = {
    CriterionStatus.MET: "✓ {name}: Requirement met",
    CriterionStatus.UNMET: "✗ {name}: Requirement not met. {requirement}",
    CriterionStatus.MISSING: "? {name}: Cannot determine (missing information)",
}

NO_CRITERIA_SUMMARY = "We could not check if you qualify with the answers given."


def _join(names: Sequence[str]) -> str:
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    return ", ".join(names[:-1]) + f", and {names[-1]}"


def _rules(names: Sequence[str]) -> str:
    return "rule" if len(names) == 1 else "rules"


class ExplanationBuilder:
    """
    Turns criterion outcomes into explanation items and a summary.

    Item messages and summaries only use glossary names and humanized
    identifiers, never raw field names or expression syntax.
    """

    def display_name(self, criterion_id: str) -> str:
        definition = lookup_criterion(criterion_id)
        if definition is not None:
            return definition.name
        return humanize_identifier(criterion_id) or _FALLBACK_NAME

    def requirement(self, criterion_id: str) -> str:
        definition = lookup_criterion(criterion_id)
        if definition is not None:
            return definition.requirement
        return "This requirement must be met."

    def glossary_reference(self, criterion_id: str) -> Optional[str]:
        definition = lookup_criterion(criterion_id)
        if definition is None or definition.glossary_term is None:
            return None
        return JARGON_DEFINITIONS.get(definition.glossary_term)

    def build_item(self, criterion_id: str, status: CriterionStatus) -> ExplanationItem:
        message = _ITEM_TEMPLATES[status].format(
            name=self.display_name(criterion_id),
            requirement=self.requirement(criterion_id),
        )
        return ExplanationItem(
            criterion_id=criterion_id,
            message=message,
            status=status,
            glossary_reference=self.glossary_reference(criterion_id),
        )

    def build_items(
        self,
        met: Sequence[str],
        unmet: Sequence[str],
        missing: Sequence[str],
    ) -> List[ExplanationItem]:
        """
        Build one explanation item per criterion.

        Met items come first, then unmet, then missing; each group keeps its
        input order.

        Args:
            met: Criterion identifiers that were satisfied
            unmet: Criterion identifiers that were not satisfied
            missing: Criterion identifiers that could not be checked

        Returns:
            List with exactly len(met) + len(unmet) + len(missing) items
        """
        items = [self.build_item(criterion, CriterionStatus.MET) for criterion in met or ()]
        items.extend(self.build_item(criterion, CriterionStatus.UNMET) for criterion in unmet or ())
        items.extend(
            self.build_item(criterion, CriterionStatus.MISSING) for criterion in missing or ()
        )
        return items

    def summarize(
        self,
        met: Sequence[str],
        unmet: Sequence[str],
        missing: Sequence[str],
        matched: Optional[bool] = None,
    ) -> str:
        """
        Compose the summary shown to the applicant.

        Args:
            met: Criterion identifiers that were satisfied
            unmet: Criterion identifiers that were not satisfied
            missing: Criterion identifiers that could not be checked
            matched: Whether at least one program matched. When omitted it is
                taken to be true only if nothing is unmet

        Returns:
            A short paragraph in plain language
        """
        met_names = self._names(met)
        unmet_names = self._names(unmet)
        missing_names = self._names(missing)

        if not (met_names or unmet_names or missing_names):
            return NO_CRITERIA_SUMMARY

        if matched is None:
            matched = not unmet_names

        if not matched and (unmet_names or not missing_names):
            sentences = ["You do not appear to qualify."]
        elif missing_names:
            sentences = ["You may be eligible, but we need more answers."]
        else:
            sentences = ["You appear to be eligible."]

        if met_names:
            sentences.append(f"You meet the {_join(met_names)} {_rules(met_names)}.")
        if unmet_names:
            sentences.append(f"You do not meet the {_join(unmet_names)} {_rules(unmet_names)}.")
        if missing_names:
            sentences.append(f"We still need answers for {_join(missing_names)}.")

        return " ".join(sentences)

    def describe_match(self, program_name: str) -> str:
        name = plain_text(program_name) or "this program"
        return f"You may qualify for {name}."

    def _names(self, criteria: Optional[Sequence[str]]) -> List[str]:
        # Several identifiers can share a display name (income fields, for example)
        names: dict[str, None] = {}
        for criterion in criteria or ():
            names.setdefault(self.display_name(criterion), None)
        return list(names)
