"""Pydantic models describing request and response payloads."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AskRequest(BaseModel):
    """Question submitted to the assistant."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(..., min_length=1, description="User question")
    guide: Optional[str] = Field(default=None, description="Guide persona; the configured default when omitted")
    session_id: Optional[str] = Field(default=None, alias="sessionId", description="Chat session to continue")


class AnswerResponse(BaseModel):
    """UI-ready answer returned for every question, including failures."""

    model_config = ConfigDict(populate_by_name=True)

    answer: str
    shortcuts: List[str] = Field(default_factory=list)
    background_color: str = Field(..., alias="backgroundColor")
    source: Literal["greeting", "openai_assistant_json", "openai_assistant", "error"]


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    prompt: str = Field(..., min_length=1)
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    session_id: str = Field(..., alias="sessionId")


class SessionStatusResponse(BaseModel):
    """Represents the persisted state of a session."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    thread_id: Optional[str] = Field(default=None, alias="threadId")
    guide_id: Optional[str] = Field(default=None, alias="guideId")
    last_active: Optional[datetime] = Field(default=None, alias="lastActive")
