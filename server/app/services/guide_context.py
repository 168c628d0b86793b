"""Guide personas whose system context frames every question."""
from __future__ import annotations

from typing import Mapping, Optional, Protocol

from ..errors import AssistantError


ABHI_SYSTEM_PROMPT = (
    "You are Abhi, a 43-year-old mental health expert and founder of Meditate with Abhi "
    "and The School of Breath. You blend ancient yogic wisdom with modern neuroscience. "
    "Keep responses concise, warm, and focused on meditation, breathwork, and wellness."
)

GUIDE_PROMPTS: dict[str, str] = {
    "abhi": ABHI_SYSTEM_PROMPT,
}


class UnknownGuideError(AssistantError):
    """No system context is registered for the requested guide."""


class ContextProvider(Protocol):
    async def get_context(self, guide_id: str) -> str:
        ...


class StaticGuideContextProvider:
    """Serves guide system prompts from an in-process mapping."""

    def __init__(self, prompts: Optional[Mapping[str, str]] = None) -> None:
        self._prompts = dict(GUIDE_PROMPTS if prompts is None else prompts)

    @property
    def guides(self) -> list[str]:
        return sorted(self._prompts)

    async def get_context(self, guide_id: str) -> str:
        key = (guide_id or "").strip().lower()
        try:
            return self._prompts[key]
        except KeyError:
            raise UnknownGuideError(f"No context registered for guide {guide_id!r}") from None
