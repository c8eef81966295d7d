"""Dependency injection for FastAPI endpoints."""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.session import get_db
from app.services.eligibility_service import EligibilityService
from app.services.rule_cache import RuleCache
from app.services.rule_engine.engine import EligibilityEvaluator
from app.services.rule_engine.readability import ReadabilityValidator

__all__ = ["get_db", "get_session", "get_rule_cache", "get_evaluator", "get_eligibility_service"]

# Process-wide instances; both only hold immutable data between requests
rule_cache = RuleCache(
    ttl_seconds=settings.RULE_CACHE_TTL_SECONDS,
    key_prefix=settings.RULE_CACHE_KEY_PREFIX,
    max_entries=settings.RULE_CACHE_MAX_ENTRIES,
)
evaluator = EligibilityEvaluator(
    readability_validator=(
        ReadabilityValidator(settings.READABILITY_TARGET)
        if settings.READABILITY_CHECK_ENABLED
        else None
    ),
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get database session dependency.

    This is an alias for get_db for clarity in endpoint signatures.
    """
    async for session in get_db():
        yield session


def get_rule_cache() -> RuleCache:
    return rule_cache


def get_evaluator() -> EligibilityEvaluator:
    return evaluator


def get_eligibility_service(
    db: Annotated[AsyncSession, Depends(get_session)],
    cache: Annotated[RuleCache, Depends(get_rule_cache)],
    shared_evaluator: Annotated[EligibilityEvaluator, Depends(get_evaluator)],
) -> EligibilityService:
    """Build the eligibility service for a request."""
    return EligibilityService(db, cache, evaluator=shared_evaluator)
