"""Supabase-backed session and message persistence."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Optional

from supabase import Client, create_client

from ..config import Settings
from ..errors import ConfigurationError
from .session_store import SessionRecord, StoredMessage, check_session_fields

logger = logging.getLogger(__name__)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        # Postgres may return a trailing "Z", which fromisoformat rejects before 3.11.
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return None


class SupabaseSessionStore:
    """Session store over two Supabase tables.

    ``session_table`` holds one row per ``session_id``; ``message_table`` holds
    the guide chat history keyed by ``user_id`` and ``session_id``.
    """

    def __init__(self, settings: Settings, *, client: Client | None = None) -> None:
        if client is None and not settings.supabase_enabled:
            raise ConfigurationError("Supabase credentials missing; persistence disabled")
        self._settings = settings
        self._client: Client | None = client
        self._lock = asyncio.Lock()

    def _ensure_client(self) -> Client:
        if self._client is None:
            self._client = create_client(self._settings.supabase_url, self._settings.supabase_service_role_key)
        return self._client

    async def _execute(self, fn: Callable[[Client], Any]) -> Any:
        # supabase-py is synchronous; keep its calls off the event loop.
        async with self._lock:
            try:
                return await asyncio.to_thread(lambda: fn(self._ensure_client()))
            except Exception:
                logger.exception("Supabase persistence operation failed")
                raise

    @staticmethod
    def _filter_none(data: dict[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in data.items() if value is not None}

    async def get(self, session_id: str) -> Optional[SessionRecord]:
        table = self._settings.session_table
        result = await self._execute(
            lambda client: client.table(table).select("*").eq("session_id", session_id).limit(1).execute()
        )
        rows = getattr(result, "data", None)
        if not isinstance(rows, list) or not rows:
            return None
        row = rows[0]
        return SessionRecord(
            session_id=session_id,
            thread_id=row.get("thread_id"),
            guide_id=row.get("guide_id"),
            last_active=_parse_timestamp(row.get("last_active")),
        )

    async def update(self, session_id: str, **fields: Any) -> None:
        check_session_fields(fields)
        payload = self._filter_none(fields)
        if isinstance(payload.get("last_active"), datetime):
            payload["last_active"] = payload["last_active"].isoformat()
        payload["session_id"] = session_id
        table = self._settings.session_table
        await self._execute(
            lambda client: client.table(table).upsert(payload, on_conflict="session_id").execute()
        )

    async def list_messages(self, user_id: str, session_id: str) -> list[StoredMessage]:
        table = self._settings.message_table
        result = await self._execute(
            lambda client: client.table(table)
            .select("role, content, created_at")
            .eq("user_id", user_id)
            .eq("session_id", session_id)
            .order("created_at")
            .execute()
        )
        rows = getattr(result, "data", None) or []
        messages = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            message = StoredMessage(role=str(row.get("role")), content=str(row.get("content") or ""))
            created_at = _parse_timestamp(row.get("created_at"))
            if created_at is not None:
                message.created_at = created_at
            messages.append(message)
        return messages

    async def record_message(self, user_id: str, session_id: str, role: str, content: str) -> None:
        table = self._settings.message_table
        data = {"user_id": user_id, "session_id": session_id, "role": role, "content": content}
        await self._execute(lambda client: client.table(table).insert(data).execute())
