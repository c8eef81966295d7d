"""Selection of the applicable rule set version for a date."""

from datetime import date, datetime
from typing import Iterable, Optional, TypeVar

from app.core.enums import RuleSetStatus

VersionType = TypeVar("VersionType")


def is_applicable(version, request_date: date) -> bool:
    """Return True if the version is active and covers the date."""
    return (
        version.status == RuleSetStatus.ACTIVE
        and version.effective_date <= request_date
        and (version.end_date is None or version.end_date >= request_date)
    )


def select_rule_set_version(
    versions: Optional[Iterable[VersionType]],
    request_date: date,
) -> Optional[VersionType]:
    """
    Select the rule set version that applies on a date.

    Among active versions whose window contains the date, the one with the
    latest effective date wins. Versions sharing an effective date are
    ordered by version label and the greatest label is chosen.

    Args:
        versions: Candidate versions for one jurisdiction (snapshots or models)
        request_date: Date the evaluation applies to

    Returns:
        The selected version, or None if no candidate applies

    Raises:
        ValueError: If versions is None
    """
    if versions is None:
        raise ValueError("Candidate versions must not be None")
    if isinstance(request_date, datetime):
        request_date = request_date.date()

    candidates = [version for version in versions if is_applicable(version, request_date)]
    if not candidates:
        return None

    return max(candidates, key=lambda version: (version.effective_date, version.version_label))
