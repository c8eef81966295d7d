"""Health check endpoint."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.deps import get_rule_cache, get_session
from app.services.rule_cache import RuleCache

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(
    db: Annotated[AsyncSession, Depends(get_session)],
    cache: Annotated[RuleCache, Depends(get_rule_cache)],
) -> dict:
    """
    Health check endpoint.

    Verifies that the API is running and the rule database is reachable.

    Returns:
        dict: Health status with API, database and cache status
    """
    try:
        await db.execute(text("SELECT 1"))
        db_status = "healthy"
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database health check failed: {str(e)}")
        db_status = "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "api": "healthy",
        "database": db_status,
        "rule_cache_entries": len(cache),
    }
