"""Polling loop that drives an assistant run to a terminal state."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from ..errors import (
    RateLimitedError,
    RunCancelledError,
    RunExpiredError,
    RunFailedError,
    RunTimeoutError,
)
from .assistants_api import RunState

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

PENDING_STATUSES = {"queued", "in_progress", "cancelling"}
# Statuses that end a run without a reply we can use.
FAILED_STATUSES = {"failed", "incomplete", "requires_action"}


class RunStatusSource(Protocol):
    async def get_run(self, thread_id: str, run_id: str) -> RunState:
        ...


@dataclass
class PollSettings:
    max_attempts: int = 60
    poll_interval: float = 1.0
    in_progress_delay: float = 0.5
    settle_delay: float = 0.5
    rate_limit_backoff: float = 2.0


class RunPoller:
    """Poll ``get_run`` until the run completes, fails or runs out of attempts.

    Every attempt counts toward ``max_attempts``, including attempts that hit
    a rate limit; those wait ``rate_limit_backoff`` instead of failing.
    """

    def __init__(self, api: RunStatusSource, *, settings: PollSettings | None = None, sleep: Sleep = asyncio.sleep) -> None:
        self._api = api
        self._settings = settings or PollSettings()
        self._sleep = sleep

    async def wait(self, thread_id: str, run_id: str) -> RunState:
        cfg = self._settings
        status = "queued"
        for attempt in range(1, cfg.max_attempts + 1):
            await self._sleep(cfg.poll_interval)
            try:
                state = await self._api.get_run(thread_id, run_id)
            except RateLimitedError:
                logger.warning("Rate limited polling run %s, waiting %.1fs", run_id, cfg.rate_limit_backoff)
                await self._sleep(cfg.rate_limit_backoff)
                continue

            status = state.status
            logger.info("Run %s status (attempt %d): %s", run_id, attempt, status)

            if status == "completed":
                # Give the message list a moment to catch up with the run.
                await self._sleep(cfg.settle_delay)
                return state
            if status in FAILED_STATUSES:
                raise RunFailedError(
                    f"Assistant run failed: {state.last_error or 'Unknown error'}",
                    run_id=run_id,
                    status=status,
                )
            if status == "expired":
                raise RunExpiredError("Assistant run expired", run_id=run_id, status=status)
            if status == "cancelled":
                raise RunCancelledError("Assistant run was cancelled", run_id=run_id, status=status)
            if status not in PENDING_STATUSES:
                logger.warning("Run %s reported unknown status %r; continuing to poll", run_id, status)
            if status == "in_progress":
                await self._sleep(cfg.in_progress_delay)

        raise RunTimeoutError(
            f"Assistant run timed out after {cfg.max_attempts} attempts (last status: {status})",
            run_id=run_id,
            status=status,
        )
