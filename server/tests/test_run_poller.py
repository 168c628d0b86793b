from __future__ import annotations

import asyncio

import pytest

from app.errors import (
    RateLimitedError,
    RunCancelledError,
    RunExpiredError,
    RunFailedError,
    RunTimeoutError,
)
from app.services.assistants_api import RunState
from app.services.run_poller import PollSettings, RunPoller
from conftest import FakeAssistants


def _run(coro):  # noqa: ANN001
    return asyncio.run(coro)


def _poller(api, sleep, **overrides):  # noqa: ANN001
    return RunPoller(api, settings=PollSettings(**overrides), sleep=sleep)


def test_completes_after_queued_and_in_progress(sleep):
    api = FakeAssistants(statuses=["queued", "in_progress", "completed"])
    state = _run(_poller(api, sleep).wait("thread_1", "run_1"))
    assert state.status == "completed"
    assert api.status_calls == 3
    # tick, tick + in_progress delay, tick + settle delay
    assert sleep.delays == [1.0, 1.0, 0.5, 1.0, 0.5]


def test_failed_run_reports_provider_error(sleep):
    api = FakeAssistants(statuses=[RunState(run_id="run_1", status="failed", last_error="server_error")])
    with pytest.raises(RunFailedError) as excinfo:
        _run(_poller(api, sleep).wait("thread_1", "run_1"))
    assert "server_error" in str(excinfo.value)
    assert excinfo.value.status == "failed"


@pytest.mark.parametrize(
    ("status", "error"),
    [("expired", RunExpiredError), ("cancelled", RunCancelledError), ("requires_action", RunFailedError)],
)
def test_terminal_statuses_raise_distinct_errors(sleep, status, error):
    api = FakeAssistants(statuses=["queued", status])
    with pytest.raises(error):
        _run(_poller(api, sleep).wait("thread_1", "run_1"))
    assert api.status_calls == 2


def test_times_out_when_run_never_finishes(sleep):
    api = FakeAssistants(statuses=["in_progress"])
    with pytest.raises(RunTimeoutError) as excinfo:
        _run(_poller(api, sleep, max_attempts=5).wait("thread_1", "run_1"))
    assert api.status_calls == 5
    assert excinfo.value.status == "in_progress"


def test_completion_on_last_attempt_is_not_a_timeout(sleep):
    api = FakeAssistants(statuses=["queued", "queued", "completed"])
    state = _run(_poller(api, sleep, max_attempts=3).wait("thread_1", "run_1"))
    assert state.status == "completed"


def test_rate_limit_backs_off_and_keeps_polling(sleep):
    api = FakeAssistants(statuses=[RateLimitedError("slow down", status_code=429), "completed"])
    state = _run(_poller(api, sleep).wait("thread_1", "run_1"))
    assert state.status == "completed"
    assert sleep.delays == [1.0, 2.0, 1.0, 0.5]


def test_rate_limits_count_toward_attempt_ceiling(sleep):
    api = FakeAssistants(statuses=[RateLimitedError("slow down", status_code=429)])
    with pytest.raises(RunTimeoutError):
        _run(_poller(api, sleep, max_attempts=4).wait("thread_1", "run_1"))
    assert api.status_calls == 4
