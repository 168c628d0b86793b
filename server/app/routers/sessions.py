"""Session lookup endpoint."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException

from ..dependencies import get_session_store
from ..models import schemas

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("/{session_id}", response_model=schemas.SessionStatusResponse, response_model_by_alias=True)
async def get_session_status(session_id: str) -> schemas.SessionStatusResponse:
    """Return the persisted state for the requested session."""

    record = await get_session_store().get(session_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return schemas.SessionStatusResponse(
        session_id=record.session_id,
        thread_id=record.thread_id,
        guide_id=record.guide_id,
        last_active=record.last_active,
    )
