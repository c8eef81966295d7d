"""Pydantic schemas for eligibility evaluation requests and results."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.enums import CriterionStatus, EligibilityStatus


class CamelModel(BaseModel):
    """Base schema that reads and writes camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ==================== Request Schemas ====================


class EligibilityRequest(CamelModel):
    """Schema for an eligibility evaluation request."""

    jurisdiction_code: str = Field(..., max_length=10, examples=["TX"])
    effective_date: date = Field(..., examples=["2026-02-01"])
    answers: dict[str, Any] = Field(
        ...,
        examples=[{"age": 34, "citizenship_status": "US_CITIZEN", "monthly_income": 1500}],
    )
    program_code: Optional[str] = Field(None, max_length=50, examples=["ADULT"])


# ==================== Result Schemas ====================


class ProgramMatchResponse(CamelModel):
    """Schema for a matched program."""

    program_code: str
    program_name: str
    confidence_score: int = Field(..., ge=0, le=100)
    explanation: str


class ExplanationItemResponse(CamelModel):
    """Schema for one criterion in the explanation."""

    criterion_id: str
    message: str
    status: CriterionStatus
    glossary_reference: Optional[str] = None


class EligibilityResultResponse(CamelModel):
    """Schema for an eligibility evaluation result."""

    status: EligibilityStatus
    matched_programs: list[ProgramMatchResponse] = []
    confidence_score: int = Field(..., ge=0, le=100)
    explanation: str
    explanation_items: list[ExplanationItemResponse] = []
    rule_version_used: str
    evaluated_at: datetime
    disqualifying_factors: list[str] = []
    pathways: list[str] = []


class ErrorResponse(BaseModel):
    """Schema for error details returned by the API."""

    message: str
    errors: Optional[dict[str, list[str]]] = None
