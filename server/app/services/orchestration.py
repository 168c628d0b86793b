"""Session-scoped question answering against the OpenAI Assistants API."""
from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from typing_extensions import assert_never

from ..config import Settings
from ..errors import ConfigurationError, EmptyReplyError, InvalidHandleError
from .assistants_api import AssistantsAPI, RunConfig, RunState, ThreadMessage
from .guide_context import ContextProvider
from .response_decoding import PlainReply, StructuredReply, decode_reply
from .run_poller import PollSettings, RunPoller, Sleep
from .session_store import SessionRecord, SessionStore

logger = logging.getLogger(__name__)


ASSISTANT_OUTPUT_INSTRUCTIONS = """
INSTRUCTIONS:
- Respond with valid JSON only. Do not write any prose, markdown fences or commentary outside the JSON object.
- The JSON object must have exactly two top-level keys:
  "answer": a string holding the reply; markdown formatting is allowed.
  "shortcuts": an array of at most 4 short follow-up questions the user may want to ask next.
- Never include citations, source markers, file names, timestamps or emoji in "answer".
- If the knowledge base holds nothing relevant to the question, return "answer" as an empty string and "shortcuts" as an empty array.

OUTPUT JSON SCHEMA (must match exactly):
{
  "answer": "string",
  "shortcuts": ["string", ...]
}
"""

GREETING_KEYWORDS = ("hello", "hi", "hey", "good morning", "good afternoon", "good evening")
GREETING_REPLIES = (
    "Hello there! How can I help you today?",
    "Hi! What's on your mind?",
    "Hey! Ask me anything about The School of Breath.",
)
GREETING_SHORTCUTS = (
    "How do I start meditation?",
    "What breathing techniques do you recommend?",
    "Tell me about your courses",
)
ERROR_ANSWER = "I apologize, but I'm having trouble processing your question right now. Please try again later."

THREAD_SOURCE = "breathwork_app"


@dataclass
class AnswerPayload:
    """Caller-facing answer, independent of how the assistant replied."""

    answer: str
    source: str
    background_color: str
    shortcuts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "shortcuts": list(self.shortcuts),
            "backgroundColor": self.background_color,
            "source": self.source,
        }


class AssistantsBackend(Protocol):
    async def create_thread(self, metadata: dict[str, str]) -> str:
        ...

    async def add_message(self, thread_id: str, role: str, content: str) -> str:
        ...

    async def create_run(self, thread_id: str, config: RunConfig) -> str:
        ...

    async def get_run(self, thread_id: str, run_id: str) -> RunState:
        ...

    async def list_messages(self, thread_id: str) -> list[ThreadMessage]:
        ...


def is_greeting(query: str) -> bool:
    normalized = (query or "").strip().lower()
    return any(normalized.startswith(keyword) for keyword in GREETING_KEYWORDS)


def greeting_payload(settings: Settings, rng: Optional[random.Random] = None) -> AnswerPayload:
    """Canned reply for greeting-like input; needs no credentials and no I/O."""

    return AnswerPayload(
        answer=(rng or random).choice(GREETING_REPLIES),
        source="greeting",
        background_color=settings.answer_background_color,
        shortcuts=list(GREETING_SHORTCUTS),
    )


def error_payload(settings: Settings) -> AnswerPayload:
    return AnswerPayload(
        answer=ERROR_ANSWER,
        source="error",
        background_color=settings.error_background_color,
        shortcuts=[],
    )


def build_question(context: str, query: str) -> str:
    return f"Context: {context}\n\nUser Question: {query}"


class QAOrchestrator:
    """Answer one question per call inside a session-bound assistant thread.

    The thread id is stored on the session record and reused across turns. A
    thread the API no longer recognises is replaced once per turn, on message
    submission only; run creation and polling do not recover.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        session_store: SessionStore,
        context_provider: ContextProvider,
        api: Optional[AssistantsBackend] = None,
        poll_settings: Optional[PollSettings] = None,
        sleep: Sleep = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        missing = settings.missing_assistant_fields()
        if missing:
            raise ConfigurationError(f"Assistant configuration missing: {', '.join(missing)}")
        self._settings = settings
        self._store = session_store
        self._context = context_provider
        self._api: AssistantsBackend = api or AssistantsAPI.from_settings(settings)
        self._poller = RunPoller(
            self._api,
            settings=poll_settings
            or PollSettings(max_attempts=settings.run_max_attempts, poll_interval=settings.run_poll_interval),
            sleep=sleep,
        )
        self._rng = rng or random.Random()
        self._run_config = RunConfig(
            assistant_id=settings.openai_assistant_id or "",
            instructions=ASSISTANT_OUTPUT_INSTRUCTIONS,
            model=settings.openai_assistant_model,
            tools=[{"type": "file_search"}] if settings.assistant_file_search else [],
        )

    async def aclose(self) -> None:
        if isinstance(self._api, AssistantsAPI):
            await self._api.aclose()

    async def answer(self, query: str, guide_id: Optional[str] = None, session_id: Optional[str] = None) -> AnswerPayload:
        """Answer ``query``; failures come back as the uniform error payload."""

        if is_greeting(query):
            return greeting_payload(self._settings, self._rng)

        try:
            return await self._answer_with_assistant(query, guide_id, session_id)
        except Exception:
            # Provider detail stays in the logs; callers only see the apology.
            logger.exception("Error handling question for session %s", session_id)
            return error_payload(self._settings)

    async def _answer_with_assistant(
        self, query: str, requested_guide: Optional[str], session_id: Optional[str]
    ) -> AnswerPayload:
        record = await self._store.get(session_id) if session_id else None
        guide_id = self._resolve_guide(requested_guide, record)
        context = await self._context.get_context(guide_id)

        thread_id = await self._resolve_thread(guide_id, session_id, record)
        thread_id = await self._submit_question(thread_id, build_question(context, query), guide_id, session_id)

        run_id = await self._api.create_run(thread_id, self._run_config)
        logger.info("Run created: %s", run_id)
        await self._poller.wait(thread_id, run_id)

        text = await self._fetch_reply(thread_id)
        decoded = decode_reply(text)
        if isinstance(decoded, StructuredReply):
            if decoded.fallback:
                log_unanswered_question(query, session_id)
            payload = AnswerPayload(
                answer=decoded.answer,
                source="openai_assistant_json",
                background_color=self._settings.answer_background_color,
                shortcuts=decoded.shortcuts,
            )
        elif isinstance(decoded, PlainReply):
            payload = AnswerPayload(
                answer=decoded.text,
                source="openai_assistant",
                background_color=self._settings.answer_background_color,
                shortcuts=[],
            )
        else:
            assert_never(decoded)

        if session_id:
            await self._persist(session_id, guide_id=guide_id, last_active=_utcnow())
        return payload

    def _resolve_guide(self, requested: Optional[str], record: Optional[SessionRecord]) -> str:
        """Explicit guide first, then the one stored on the session, then the default."""

        guide = (requested or "").strip()
        if not guide and record is not None and record.guide_id:
            guide = record.guide_id
        return guide or self._settings.default_guide

    async def _resolve_thread(self, guide_id: str, session_id: Optional[str], record: Optional[SessionRecord]) -> str:
        if record is not None and record.thread_id:
            logger.info("Reusing thread %s for session %s", record.thread_id, session_id)
            return record.thread_id
        return await self._create_thread(guide_id, session_id)

    async def _create_thread(self, guide_id: str, session_id: Optional[str]) -> str:
        thread_id = await self._api.create_thread(
            {"source": THREAD_SOURCE, "guide": guide_id, "timestamp": _utcnow().isoformat()}
        )
        logger.info("Thread created: %s", thread_id)
        if session_id:
            await self._persist(session_id, thread_id=thread_id, guide_id=guide_id)
        return thread_id

    async def _submit_question(self, thread_id: str, content: str, guide_id: str, session_id: Optional[str]) -> str:
        """Post the user turn and return the thread it landed on."""

        try:
            message_id = await self._api.add_message(thread_id, "user", content)
        except InvalidHandleError:
            logger.warning("Thread %s not found; recreating it once for session %s", thread_id, session_id)
            thread_id = await self._create_thread(guide_id, session_id)
            # A second InvalidHandleError propagates.
            message_id = await self._api.add_message(thread_id, "user", content)
        logger.info("Message added: %s", message_id)
        return thread_id

    async def _fetch_reply(self, thread_id: str) -> str:
        messages = await self._api.list_messages(thread_id)
        assistant_message = next((message for message in messages if message.role == "assistant"), None)
        if assistant_message is None:
            raise EmptyReplyError("No assistant message found in response")
        if not assistant_message.text:
            raise EmptyReplyError("Assistant message has no text content")
        logger.info("Assistant response received successfully")
        return assistant_message.text

    async def _persist(self, session_id: str, **fields: Any) -> None:
        # Best-effort: a failed write is logged and the turn carries on.
        try:
            await self._store.update(session_id, **fields)
        except Exception as exc:
            logger.warning("Failed to persist %s for session %s: %s", sorted(fields), session_id, exc)


def log_unanswered_question(question: str, session_id: Optional[str] = None) -> None:
    logger.info('Unanswered question logged: "%s" from session %s', question, session_id or "anonymous")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
