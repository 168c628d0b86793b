"""Guide chat endpoint."""
from __future__ import annotations

from fastapi import APIRouter

from ..dependencies import get_chat_service
from ..models import schemas

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=schemas.ChatResponse, response_model_by_alias=True)
async def chat(payload: schemas.ChatRequest) -> schemas.ChatResponse:
    """Run one guide chat turn, starting a new session when none is given."""

    reply = await get_chat_service().handle_chat(payload.user_id, payload.prompt, payload.session_id)
    return schemas.ChatResponse(response=reply.response, session_id=reply.session_id)
