"""Unit tests for MutationCoordinator — optimistic apply, confirm, rollback."""

import asyncio

import pytest

from userview.application.services.mutation_coordinator import MutationCoordinator
from userview.application.services.query_cache import QueryCache
from userview.domain.entities import (
    ListParams,
    MutationState,
    ParameterFingerprint,
    StatusUpdateResult,
    User,
    UserStatus,
)
from userview.domain.exceptions import ClientRejection, NetworkFailure, ServerFailure

from tests.fakes import FakeUserTransport, make_page


# ── Helpers ──────────────────────────────────────────────────────────


PAGE_1 = ParameterFingerprint.from_params(ListParams(page=1))
PAGE_2 = ParameterFingerprint.from_params(ListParams(page=2))


def _setup(transport: FakeUserTransport):
    cache = QueryCache()
    cache.set(PAGE_1, transport.page)
    return MutationCoordinator(cache, transport), cache


def _status_of(cache: QueryCache, fingerprint, user_id: str) -> UserStatus:
    return cache.get_payload(fingerprint).find(user_id).status


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


# ── Tests ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_optimistic_value_visible_before_server_responds():
    gate = asyncio.Event()
    transport = FakeUserTransport(update_gate=gate)
    coordinator, cache = _setup(transport)

    task = asyncio.create_task(coordinator.update_status("u2", UserStatus.INACTIVE, PAGE_1))
    await _settle()

    assert _status_of(cache, PAGE_1, "u2") is UserStatus.INACTIVE
    assert coordinator.is_pending("u2")
    assert coordinator.last_state("u2") is MutationState.APPLYING

    gate.set()
    result = await task

    assert result.state is MutationState.CONFIRMED
    assert not coordinator.is_pending("u2")


@pytest.mark.asyncio
async def test_confirm_merges_server_value_into_page_only():
    transport = FakeUserTransport(server_status=UserStatus.ACTIVE)
    coordinator, cache = _setup(transport)
    cache.set(PAGE_2, make_page(2))

    result = await coordinator.update_status("u1", UserStatus.INACTIVE, PAGE_1)

    # The server answered with "active", which wins over the optimistic value
    assert _status_of(cache, PAGE_1, "u1") is UserStatus.ACTIVE
    assert result.user.status is UserStatus.ACTIVE
    assert coordinator.last_state("u1") is MutationState.CONFIRMED
    # No invalidation: both pages stay fresh
    assert cache.is_fresh(PAGE_1)
    assert cache.is_fresh(PAGE_2)


@pytest.mark.asyncio
async def test_confirm_leaves_other_records_untouched():
    transport = FakeUserTransport()
    coordinator, cache = _setup(transport)
    before = cache.get_payload(PAGE_1)

    await coordinator.update_status("u2", UserStatus.INACTIVE, PAGE_1)

    after = cache.get_payload(PAGE_1)
    assert after.find("u1") is before.find("u1")
    assert after.find("u3") is before.find("u3")
    assert after.total_count == before.total_count


@pytest.mark.asyncio
async def test_confirm_only_merges_fields_the_server_sent():
    class PartialTransport(FakeUserTransport):
        async def update_user_status(self, user_id, status):
            return StatusUpdateResult(
                success=True,
                user=User(user_id=user_id, status=status),
                fields=frozenset({"status"}),
            )

    transport = PartialTransport()
    coordinator, cache = _setup(transport)

    await coordinator.update_status("u1", UserStatus.INACTIVE, PAGE_1)

    merged = cache.get_payload(PAGE_1).find("u1")
    assert merged.status is UserStatus.INACTIVE
    assert merged.name == "User 1"
    assert merged.email == "user1@example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [NetworkFailure("offline"), ServerFailure("boom", 500), ClientRejection("forbidden", 403)],
)
async def test_failure_restores_exact_previous_payload(error):
    transport = FakeUserTransport(update_error=error)
    coordinator, cache = _setup(transport)
    previous = cache.get_payload(PAGE_1)

    with pytest.raises(type(error)):
        await coordinator.update_status("u2", UserStatus.INACTIVE, PAGE_1)

    assert cache.get_payload(PAGE_1) == previous
    assert coordinator.last_state("u2") is MutationState.ROLLED_BACK
    assert not coordinator.is_pending("u2")


@pytest.mark.asyncio
async def test_mutation_is_never_retried():
    transport = FakeUserTransport(update_error=ServerFailure("unavailable", 503))
    coordinator, _ = _setup(transport)

    with pytest.raises(ServerFailure):
        await coordinator.update_status("u1", UserStatus.INACTIVE, PAGE_1)

    assert len(transport.update_calls) == 1


@pytest.mark.asyncio
async def test_rollback_restores_stale_flag():
    transport = FakeUserTransport(update_error=NetworkFailure("offline"))
    coordinator, cache = _setup(transport)
    cache.invalidate_all()

    with pytest.raises(NetworkFailure):
        await coordinator.update_status("u1", UserStatus.INACTIVE, PAGE_1)

    assert cache.get(PAGE_1).invalidated


@pytest.mark.asyncio
async def test_absent_page_means_no_optimistic_edit_and_no_rollback():
    transport = FakeUserTransport(update_error=NetworkFailure("offline"))
    coordinator, cache = _setup(transport)

    with pytest.raises(NetworkFailure):
        await coordinator.update_status("u1", UserStatus.INACTIVE, PAGE_2)

    assert PAGE_2 not in cache
    assert _status_of(cache, PAGE_1, "u1") is UserStatus.ACTIVE


@pytest.mark.asyncio
async def test_rollback_after_concurrent_write_restores_only_that_record():
    gate = asyncio.Event()
    transport = FakeUserTransport(
        update_gate=gate, update_error=NetworkFailure("offline")
    )
    coordinator, cache = _setup(transport)

    task = asyncio.create_task(coordinator.update_status("u1", UserStatus.INACTIVE, PAGE_1))
    await _settle()
    # A second edit lands on the same page while the first is in flight
    cache.update(
        PAGE_1,
        lambda payload: payload.replace_user("u3", lambda u: u.with_status(UserStatus.INACTIVE)),
    )
    gate.set()
    with pytest.raises(NetworkFailure):
        await task

    assert _status_of(cache, PAGE_1, "u1") is UserStatus.ACTIVE
    assert _status_of(cache, PAGE_1, "u3") is UserStatus.INACTIVE


@pytest.mark.asyncio
async def test_without_fingerprint_every_page_is_invalidated_on_confirm():
    transport = FakeUserTransport()
    coordinator, cache = _setup(transport)
    cache.set(PAGE_2, make_page(2))

    await coordinator.update_status("u1", UserStatus.INACTIVE)

    assert not cache.is_fresh(PAGE_1)
    assert not cache.is_fresh(PAGE_2)
    # Nothing was edited optimistically
    assert _status_of(cache, PAGE_1, "u1") is UserStatus.ACTIVE


@pytest.mark.asyncio
async def test_cancelled_mutation_rolls_back():
    """A caller timeout cancels the update and restores the page."""
    gate = asyncio.Event()
    transport = FakeUserTransport(update_gate=gate)
    coordinator, cache = _setup(transport)
    before = cache.get_payload(PAGE_1)

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(
            coordinator.update_status("u1", UserStatus.INACTIVE, PAGE_1), 0.02
        )

    assert cache.get_payload(PAGE_1) == before
    assert coordinator.last_state("u1") is MutationState.ROLLED_BACK
    assert not coordinator.is_pending("u1")
