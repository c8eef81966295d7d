"""Eligibility evaluation endpoints."""

import asyncio
import logging
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.exceptions import NotFoundError, RulesUnavailableError, ValidationError
from app.deps import get_eligibility_service
from app.models.schemas.eligibility import (
    EligibilityRequest,
    EligibilityResultResponse,
    ErrorResponse,
)
from app.services.eligibility_service import EligibilityService

logger = logging.getLogger(__name__)

router = APIRouter()

RULES_UNAVAILABLE_MESSAGE = "Eligibility rules are not available right now. Please try again later."
TIMEOUT_MESSAGE = "The request took too long. Please try again."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


@router.post(
    "/evaluate",
    response_model=EligibilityResultResponse,
    status_code=status.HTTP_200_OK,
    summary="Evaluate eligibility",
    description="Evaluate applicant answers against the rules in force for a state and date",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def evaluate_eligibility(
    request: EligibilityRequest,
    service: Annotated[EligibilityService, Depends(get_eligibility_service)],
) -> EligibilityResultResponse:
    """
    Evaluate eligibility for one applicant.

    Selects the rule set for the jurisdiction and effective date, evaluates
    every rule against the answers, and returns matched programs, a
    confidence score, a status and a plain-language explanation.
    """
    try:
        result = await service.evaluate(
            jurisdiction_code=request.jurisdiction_code,
            effective_date=request.effective_date,
            answers=request.answers,
            program_code=request.program_code,
        )
        return EligibilityResultResponse.model_validate(asdict(result))

    except ValidationError as e:
        logger.info(f"Validation error evaluating eligibility: {e.errors}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": e.message, "errors": e.errors},
        )
    except NotFoundError as e:
        logger.info(
            f"{e.message} ({request.jurisdiction_code.strip().upper()} "
            f"on {request.effective_date.isoformat()})"
        )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": e.message},
        )
    except RulesUnavailableError as e:
        logger.error(f"Rules unavailable: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": RULES_UNAVAILABLE_MESSAGE},
        )
    except asyncio.TimeoutError:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail={"message": TIMEOUT_MESSAGE},
        )
    except Exception as e:
        logger.error(f"Error evaluating eligibility: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": UNEXPECTED_ERROR_MESSAGE},
        )
