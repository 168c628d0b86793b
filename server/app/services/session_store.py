"""Session persistence boundary used by the orchestrator and guide chat."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Optional, Protocol


@dataclass(slots=True)
class SessionRecord:
    """Persisted state of one chat session.

    The orchestrator only reads and writes ``thread_id``, ``guide_id`` and
    ``last_active``; everything else about a session belongs to the store.
    """

    session_id: str
    thread_id: Optional[str] = None
    guide_id: Optional[str] = None
    last_active: Optional[datetime] = None


@dataclass(slots=True)
class StoredMessage:
    role: str
    content: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


SESSION_FIELDS = frozenset({"thread_id", "guide_id", "last_active"})


class SessionStore(Protocol):
    async def get(self, session_id: str) -> Optional[SessionRecord]:
        ...

    async def update(self, session_id: str, **fields: Any) -> None:
        """Upsert the given fields onto the session record."""
        ...


class HistoryStore(Protocol):
    async def list_messages(self, user_id: str, session_id: str) -> list[StoredMessage]:
        ...

    async def record_message(self, user_id: str, session_id: str, role: str, content: str) -> None:
        ...


def check_session_fields(fields: dict[str, Any]) -> None:
    unknown = set(fields) - SESSION_FIELDS
    if unknown:
        raise ValueError(f"Unknown session fields: {sorted(unknown)}")


class InMemorySessionStore:
    """Process-local store used when Supabase is not configured, and in tests."""

    def __init__(self) -> None:
        self._sessions: dict[str, SessionRecord] = {}
        self._messages: dict[tuple[str, str], list[StoredMessage]] = {}
        self._lock = asyncio.Lock()

    async def get(self, session_id: str) -> Optional[SessionRecord]:
        record = self._sessions.get(session_id)
        # Hand out copies so callers cannot mutate stored state in place.
        return replace(record) if record is not None else None

    async def update(self, session_id: str, **fields: Any) -> None:
        check_session_fields(fields)
        async with self._lock:
            record = self._sessions.get(session_id) or SessionRecord(session_id=session_id)
            self._sessions[session_id] = replace(record, **fields)

    async def list_messages(self, user_id: str, session_id: str) -> list[StoredMessage]:
        return list(self._messages.get((user_id, session_id), []))

    async def record_message(self, user_id: str, session_id: str, role: str, content: str) -> None:
        async with self._lock:
            self._messages.setdefault((user_id, session_id), []).append(
                StoredMessage(role=role, content=content)
            )
