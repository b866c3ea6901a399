import logging

import requests
from fastapi import APIRouter, Depends, HTTPException

from interviewxpert.api.deps import get_generation_service
from interviewxpert.engine.llm_client import UpstreamError, UpstreamNotConfiguredError
from interviewxpert.engine.parsing import QuestionParseError
from interviewxpert.schemas.generation import GenerateQuestionsRequest, GenerateQuestionsResponse
from interviewxpert.services.generation import GenerationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Question Generation"])


@router.post(
    "/generate-questions-a4f",
    response_model=GenerateQuestionsResponse,
    response_model_by_alias=True,
)
def generate_questions(
    payload: GenerateQuestionsRequest,
    service: GenerationService = Depends(get_generation_service),
):
    """
    Proxy to the A4F chat-completions API.

    Returns ``{questions, source, count}``; every failure carries ``error``
    and, where known, ``details``.
    """
    try:
        return service.generate(payload)
    except UpstreamNotConfiguredError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    except UpstreamError as exc:
        raise HTTPException(
            status_code=exc.status_code,
            detail={"error": str(exc), "details": exc.details},
        )
    except QuestionParseError as exc:
        raise HTTPException(
            status_code=502,
            detail={"error": str(exc), "details": exc.details},
        )
    except requests.RequestException as exc:
        logger.error(f"A4F request failed: {exc}")
        raise HTTPException(
            status_code=502,
            detail={"error": "Could not reach the question generation service.", "details": str(exc)},
        )
