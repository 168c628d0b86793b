"""Exception hierarchy for the assistant pipeline.

Everything raised inside a turn derives from :class:`AssistantError` so the
orchestrator can convert it into the uniform error payload at a single point.
"""
from __future__ import annotations

from typing import Optional


class AssistantError(RuntimeError):
    """Base class for failures while answering a question."""


class ConfigurationError(AssistantError):
    """Credentials or assistant identifiers are missing."""


class ProviderError(AssistantError):
    """The remote assistants service returned an unusable response."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, detail: object = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class RateLimitedError(ProviderError):
    """Transient provider error (HTTP 429); safe to retry after a backoff."""


class InvalidHandleError(ProviderError):
    """The referenced thread (or run) does not exist on the remote service."""


class RunError(AssistantError):
    """A run ended without producing a usable reply."""

    def __init__(self, message: str, *, run_id: Optional[str] = None, status: Optional[str] = None) -> None:
        super().__init__(message)
        self.run_id = run_id
        self.status = status


class RunFailedError(RunError):
    pass


class RunExpiredError(RunError):
    pass


class RunCancelledError(RunError):
    pass


class RunTimeoutError(RunError):
    """The run was still queued or in progress after the last polling attempt."""


class EmptyReplyError(AssistantError):
    """The thread holds no assistant message, or the message has no text."""
