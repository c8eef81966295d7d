"""Pydantic schemas for API validation and serialization."""

from app.models.schemas.eligibility import (
    EligibilityRequest,
    EligibilityResultResponse,
    ErrorResponse,
    ExplanationItemResponse,
    ProgramMatchResponse,
)

__all__ = [
    "EligibilityRequest",
    "EligibilityResultResponse",
    "ErrorResponse",
    "ExplanationItemResponse",
    "ProgramMatchResponse",
]
