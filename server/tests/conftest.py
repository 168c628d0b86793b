from __future__ import annotations

from typing import Optional

import pytest

from app.config import Settings
from app.errors import InvalidHandleError
from app.services.assistants_api import RunConfig, RunState, ThreadMessage
from app.services.guide_context import StaticGuideContextProvider
from app.services.session_store import InMemorySessionStore


class FakeAssistants:
    """Scripted stand-in for the assistants REST API."""

    def __init__(
        self,
        *,
        statuses: Optional[list] = None,
        reply: Optional[str] = '{"answer": "Breathe slowly.", "shortcuts": []}',
        add_message_errors: Optional[list[Exception]] = None,
    ) -> None:
        self.statuses = list(statuses or ["queued", "in_progress", "completed"])
        self.reply = reply
        self.add_message_errors = list(add_message_errors or [])
        self.threads_created: list[dict[str, str]] = []
        self.messages: list[tuple[str, str, str]] = []
        self.runs: list[tuple[str, RunConfig]] = []
        self.status_calls = 0
        self.calls = 0

    async def create_thread(self, metadata: dict[str, str]) -> str:
        self.calls += 1
        self.threads_created.append(metadata)
        return f"thread_{len(self.threads_created)}"

    async def add_message(self, thread_id: str, role: str, content: str) -> str:
        self.calls += 1
        if self.add_message_errors:
            raise self.add_message_errors.pop(0)
        self.messages.append((thread_id, role, content))
        return f"msg_{len(self.messages)}"

    async def create_run(self, thread_id: str, config: RunConfig) -> str:
        self.calls += 1
        self.runs.append((thread_id, config))
        return f"run_{len(self.runs)}"

    async def get_run(self, thread_id: str, run_id: str) -> RunState:
        self.calls += 1
        self.status_calls += 1
        step = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(step, Exception):
            raise step
        if isinstance(step, RunState):
            return step
        return RunState(run_id=run_id, status=step)

    async def list_messages(self, thread_id: str) -> list[ThreadMessage]:
        self.calls += 1
        messages = [ThreadMessage(role="user", text="question")]
        if self.reply is not None:
            messages.insert(0, ThreadMessage(role="assistant", text=self.reply))
        return messages


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def not_found() -> InvalidHandleError:
    return InvalidHandleError("No thread found", status_code=404)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="sk-test",
        openai_assistant_id="asst_test",
        openai_base_url="https://api.test/v1",
        openai_assistant_model=None,
        assistant_file_search=True,
        supabase_url=None,
        supabase_service_role_key=None,
        default_guide="abhi",
        run_max_attempts=60,
        run_poll_interval=1.0,
    )


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def context_provider() -> StaticGuideContextProvider:
    return StaticGuideContextProvider({"abhi": "You are Abhi."})


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()
