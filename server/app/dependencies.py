"""FastAPI dependency providers for the shared services."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional, Union

from .ai_agents.guide_chat import GuideChatService
from .config import Settings, get_settings
from .services.guide_context import StaticGuideContextProvider
from .services.orchestration import QAOrchestrator
from .services.session_store import InMemorySessionStore
from .services.supabase_persistence import SupabaseSessionStore

logger = logging.getLogger(__name__)

AppSessionStore = Union[InMemorySessionStore, SupabaseSessionStore]

_orchestrator: Optional[QAOrchestrator] = None


@lru_cache(maxsize=1)
def get_session_store() -> AppSessionStore:
    settings = get_settings()
    if settings.supabase_enabled:
        return SupabaseSessionStore(settings)
    logger.warning("Supabase not configured; sessions are kept in memory")
    return InMemorySessionStore()


@lru_cache(maxsize=1)
def get_context_provider() -> StaticGuideContextProvider:
    return StaticGuideContextProvider()


def get_orchestrator() -> QAOrchestrator:
    """Return the shared orchestrator, building it on first use.

    Raises ``ConfigurationError`` while credentials are missing, so a later
    request can succeed once the environment is fixed.
    """

    global _orchestrator
    if _orchestrator is None:
        settings: Settings = get_settings()
        _orchestrator = QAOrchestrator(
            settings,
            session_store=get_session_store(),
            context_provider=get_context_provider(),
        )
    return _orchestrator


@lru_cache(maxsize=1)
def get_chat_service() -> GuideChatService:
    return GuideChatService(get_session_store(), model=get_settings().openai_chat_model)


async def shutdown() -> None:
    global _orchestrator
    if _orchestrator is not None:
        await _orchestrator.aclose()
        _orchestrator = None
