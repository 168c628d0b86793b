"""Async client for the OpenAI Assistants v2 REST endpoints used by the orchestrator."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ..config import Settings
from ..errors import ConfigurationError, InvalidHandleError, ProviderError, RateLimitedError

logger = logging.getLogger(__name__)


@dataclass
class RunConfig:
    """Per-run options sent alongside ``assistant_id`` when a run is created."""

    assistant_id: str
    instructions: str
    model: Optional[str] = None
    tools: list[dict[str, Any]] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "assistant_id": self.assistant_id,
            "instructions": self.instructions,
        }
        if self.model:
            payload["model"] = self.model
        if self.tools:
            payload["tools"] = self.tools
        return payload


@dataclass
class RunState:
    run_id: str
    status: str
    last_error: Optional[str] = None


@dataclass
class ThreadMessage:
    role: str
    text: Optional[str]


class AssistantsAPI:
    """Thin wrapper over threads, messages and runs.

    HTTP 404 maps to :class:`InvalidHandleError`, 429 to
    :class:`RateLimitedError`; every other failure is a :class:`ProviderError`.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY missing; assistant calls disabled")
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "OpenAI-Beta": "assistants=v2",
        }
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings: Settings, *, client: Optional[httpx.AsyncClient] = None) -> "AssistantsAPI":
        return cls(
            api_key=settings.openai_api_key or "",
            base_url=settings.openai_base_url,
            timeout=settings.request_timeout,
            client=client,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, *, json: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._client.request(method, url, headers=self._headers, json=json)
        except httpx.HTTPError as exc:
            raise ProviderError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code >= 400:
            detail = _error_detail(resp)
            message = f"{method} {path} returned {resp.status_code}: {detail}"
            if resp.status_code == 404:
                raise InvalidHandleError(message, status_code=404, detail=detail)
            if resp.status_code == 429:
                raise RateLimitedError(message, status_code=429, detail=detail)
            raise ProviderError(message, status_code=resp.status_code, detail=detail)

        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderError(f"{method} {path} returned a non-JSON body", status_code=resp.status_code) from exc
        if not isinstance(data, dict):
            raise ProviderError(f"{method} {path} returned an unexpected body", status_code=resp.status_code)
        return data

    @staticmethod
    def _require_id(data: dict[str, Any], what: str) -> str:
        value = data.get("id")
        if not isinstance(value, str) or not value:
            raise ProviderError(f"Failed to create {what}: no id returned")
        return value

    async def create_thread(self, metadata: dict[str, str]) -> str:
        data = await self._request("POST", "/threads", json={"metadata": metadata})
        return self._require_id(data, "thread")

    async def add_message(self, thread_id: str, role: str, content: str) -> str:
        data = await self._request(
            "POST",
            f"/threads/{thread_id}/messages",
            json={"role": role, "content": content},
        )
        return self._require_id(data, "message")

    async def create_run(self, thread_id: str, config: RunConfig) -> str:
        data = await self._request("POST", f"/threads/{thread_id}/runs", json=config.to_payload())
        return self._require_id(data, "run")

    async def get_run(self, thread_id: str, run_id: str) -> RunState:
        data = await self._request("GET", f"/threads/{thread_id}/runs/{run_id}")
        status = data.get("status")
        if not isinstance(status, str):
            raise ProviderError(f"Run {run_id} returned no status")
        last_error = data.get("last_error")
        message = last_error.get("message") if isinstance(last_error, dict) else None
        return RunState(run_id=run_id, status=status, last_error=message)

    async def list_messages(self, thread_id: str) -> list[ThreadMessage]:
        """Return thread messages newest first (the API's default ``order=desc``)."""

        data = await self._request("GET", f"/threads/{thread_id}/messages")
        items = data.get("data")
        if not isinstance(items, list):
            raise ProviderError("Invalid messages response structure")
        return [ThreadMessage(role=str(item.get("role")), text=_first_text(item)) for item in items if isinstance(item, dict)]


def _first_text(message: dict[str, Any]) -> Optional[str]:
    content = message.get("content")
    if not isinstance(content, list) or not content:
        return None
    first = content[0]
    if not isinstance(first, dict):
        return None
    text = first.get("text")
    if isinstance(text, dict):
        value = text.get("value")
        return value if isinstance(value, str) else None
    return None


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return str(body["error"].get("message") or body["error"])
    return str(body)[:200]
