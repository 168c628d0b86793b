"""Free-form chat with a guide persona, backed by the openai-agents runtime."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from agents import Agent, Runner

from app.services.guide_context import ABHI_SYSTEM_PROMPT
from app.services.session_store import HistoryStore
from app.services.text_normalizer import normalize

logger = logging.getLogger(__name__)


def build_guide_agent(model: str = "gpt-4o", instructions: str = ABHI_SYSTEM_PROMPT) -> Agent:
    return Agent(
        name="Abhi Guide Agent",
        instructions=instructions,
        tools=[],
        model=model,
    )


@dataclass(slots=True)
class ChatReply:
    response: str
    session_id: str


class GuideChatService:
    """Runs one chat turn with the stored history of the session as input."""

    def __init__(self, history: HistoryStore, *, agent: Optional[Agent] = None, model: str = "gpt-4o") -> None:
        self._history = history
        self._agent = agent or build_guide_agent(model=model)

    async def handle_chat(self, user_id: str, prompt: str, session_id: Optional[str] = None) -> ChatReply:
        session_id = session_id or str(uuid.uuid4())

        previous = await self._history.list_messages(user_id, session_id)
        input_items: list[Any] = [{"role": message.role, "content": message.content} for message in previous]
        input_items.append({"role": "user", "content": prompt})

        result = await Runner.run(self._agent, input=input_items)
        final_output = getattr(result, "final_output", None)
        if not isinstance(final_output, str):
            logger.debug("Guide agent returned non-string output: %r", final_output)
            final_output = "" if final_output is None else str(final_output)
        response = normalize(final_output)

        await self._remember(user_id, session_id, "user", prompt)
        await self._remember(user_id, session_id, "assistant", response)
        return ChatReply(response=response, session_id=session_id)

    async def _remember(self, user_id: str, session_id: str, role: str, content: str) -> None:
        # History writes are best-effort; the reply is returned regardless.
        try:
            await self._history.record_message(user_id, session_id, role, content)
        except Exception as exc:
            logger.warning("Failed to record %s message for session %s: %s", role, session_id, exc)
