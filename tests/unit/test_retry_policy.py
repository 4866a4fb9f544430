"""Unit tests for RetryPolicy."""

import pytest

from userview.application.services.retry_policy import RetryPolicy
from userview.domain.exceptions import (
    ClientRejection,
    NetworkFailure,
    ParseFailure,
    ServerFailure,
    TimeoutFailure,
)


# ── Helpers ──────────────────────────────────────────────────────────


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _flaky(errors: list[Exception], result="ok"):
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        if errors:
            raise errors.pop(0)
        return result

    return operation, calls


# ── Tests ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_succeeds_without_retry():
    sleep = RecordingSleep()
    operation, calls = _flaky([])

    assert await RetryPolicy(sleep=sleep).run(operation) == "ok"
    assert calls["count"] == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_retries_transient_failures_with_backoff_schedule():
    sleep = RecordingSleep()
    operation, calls = _flaky(
        [NetworkFailure("down"), TimeoutFailure("slow"), ServerFailure("boom", 503)]
    )

    assert await RetryPolicy(sleep=sleep).run(operation) == "ok"
    assert calls["count"] == 4
    assert sleep.delays == [0.5, 1.0, 2.0]


@pytest.mark.asyncio
async def test_two_server_failures_then_success_waits_half_then_one_second():
    sleep = RecordingSleep()
    operation, calls = _flaky([ServerFailure("boom", 500), ServerFailure("boom", 502)])

    assert await RetryPolicy(sleep=sleep).run(operation) == "ok"
    assert calls["count"] == 3
    assert sleep.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_gives_up_after_three_retries():
    sleep = RecordingSleep()
    operation, calls = _flaky([ServerFailure("boom", 500) for _ in range(5)])

    with pytest.raises(ServerFailure):
        await RetryPolicy(sleep=sleep).run(operation)

    assert calls["count"] == 4
    assert sleep.delays == [0.5, 1.0, 2.0]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error", [ClientRejection("bad filter", 400), ParseFailure("not json")]
)
async def test_final_errors_are_not_retried(error):
    sleep = RecordingSleep()
    operation, calls = _flaky([error])

    with pytest.raises(type(error)):
        await RetryPolicy(sleep=sleep).run(operation)

    assert calls["count"] == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_unclassified_errors_propagate_immediately():
    sleep = RecordingSleep()
    operation, calls = _flaky([KeyError("bug")])

    with pytest.raises(KeyError):
        await RetryPolicy(sleep=sleep).run(operation)

    assert calls["count"] == 1


def test_delay_schedule_repeats_last_value():
    policy = RetryPolicy(max_retries=5, delays=(0.5, 1.0))
    assert [policy.delay_for(i) for i in range(4)] == [0.5, 1.0, 1.0, 1.0]


def test_negative_max_retries_rejected():
    with pytest.raises(ValueError):
        RetryPolicy(max_retries=-1)
