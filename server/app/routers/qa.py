"""Question answering endpoint backed by the assistant orchestrator."""
from __future__ import annotations

import logging

from fastapi import APIRouter

from ..config import get_settings
from ..dependencies import get_orchestrator
from ..errors import ConfigurationError
from ..models import schemas
from ..services.orchestration import error_payload, greeting_payload, is_greeting

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/qa", tags=["qa"])


@router.post("/ask", response_model=schemas.AnswerResponse, response_model_by_alias=True)
async def ask(payload: schemas.AskRequest) -> schemas.AnswerResponse:
    """Answer a question within the caller's session."""

    if is_greeting(payload.query):
        return schemas.AnswerResponse(**greeting_payload(get_settings()).to_dict())

    try:
        orchestrator = get_orchestrator()
    except ConfigurationError as exc:
        logger.error("OpenAI API key or Assistant ID not found: %s", exc)
        return schemas.AnswerResponse(**error_payload(get_settings()).to_dict())

    result = await orchestrator.answer(payload.query, payload.guide, payload.session_id)
    return schemas.AnswerResponse(**result.to_dict())
