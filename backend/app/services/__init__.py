"""Service layer for business logic."""

from app.services.eligibility_service import EligibilityService
from app.services.rule_cache import RuleCache

__all__ = ["EligibilityService", "RuleCache"]
