"""Unit tests for QueryCache."""

from userview.application.services.query_cache import QueryCache
from userview.domain.entities import (
    FINGERPRINT_LIST,
    FINGERPRINT_ROOT,
    CollectionResponse,
    ListParams,
    ParameterFingerprint,
    UserStatus,
)

from tests.fakes import make_page


# ── Helpers ──────────────────────────────────────────────────────────


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _fp(page: int = 1) -> ParameterFingerprint:
    return ParameterFingerprint.from_params(ListParams(page=page))


# ── Tests ────────────────────────────────────────────────────────────


def test_set_then_get_returns_payload():
    cache = QueryCache(clock=FakeClock())
    payload = make_page(2)

    entry = cache.set(_fp(), payload)

    assert cache.get(_fp()) is entry
    assert cache.get_payload(_fp()) is payload
    assert entry.version == 1
    assert _fp() in cache
    assert len(cache) == 1


def test_get_missing_returns_none():
    cache = QueryCache()
    assert cache.get(_fp()) is None
    assert cache.get_payload(_fp()) is None


def test_set_bumps_version_and_replaces_entry():
    cache = QueryCache(clock=FakeClock())
    first = cache.set(_fp(), make_page(1))
    second = cache.set(_fp(), make_page(2))

    assert second.version == first.version + 1
    assert first.payload.total_count == 1
    assert cache.get_payload(_fp()).total_count == 2


def test_freshness_follows_stale_time():
    clock = FakeClock()
    cache = QueryCache(stale_time=300.0, clock=clock)
    cache.set(_fp(), make_page())

    clock.now += 299.0
    assert cache.is_fresh(_fp())

    clock.now += 1.0
    assert not cache.is_fresh(_fp())


def test_update_is_noop_when_entry_absent():
    cache = QueryCache()
    calls = []

    result = cache.update(_fp(), lambda payload: calls.append(payload) or payload)

    assert result is None
    assert calls == []
    assert _fp() not in cache


def test_update_keeps_fetched_at_and_previous_payload_untouched():
    clock = FakeClock()
    cache = QueryCache(clock=clock)
    original = cache.set(_fp(), make_page(3))
    clock.now += 50.0

    updated = cache.update(
        _fp(),
        lambda payload: payload.replace_user("u2", lambda u: u.with_status(UserStatus.INACTIVE)),
    )

    assert updated.fetched_at == original.fetched_at
    assert updated.version == original.version + 1
    assert updated.payload.find("u2").status is UserStatus.INACTIVE
    # The earlier snapshot is still intact
    assert original.payload.find("u2").status is UserStatus.ACTIVE


def test_invalidate_by_prefix_marks_matching_entries_stale():
    cache = QueryCache(clock=FakeClock())
    cache.set(_fp(1), make_page())
    cache.set(_fp(2), make_page())
    other = ParameterFingerprint(parts=("groups", "list", 1))
    cache.set(other, CollectionResponse())

    count = cache.invalidate(FINGERPRINT_LIST)

    assert count == 2
    assert not cache.is_fresh(_fp(1))
    assert not cache.is_fresh(_fp(2))
    assert cache.is_fresh(other)
    # Stale data stays readable
    assert cache.get_payload(_fp(1)) is not None


def test_invalidate_all_hits_every_entry():
    cache = QueryCache(clock=FakeClock())
    cache.set(_fp(1), make_page())
    cache.set(ParameterFingerprint(parts=("groups",)), CollectionResponse())

    assert cache.invalidate_all() == 2
    assert all(cache.get(fp).invalidated for fp in cache)


def test_invalidate_root_prefix_matches_list_keys():
    cache = QueryCache(clock=FakeClock())
    cache.set(_fp(1), make_page())

    assert cache.invalidate(FINGERPRINT_ROOT) == 1


def test_set_after_invalidate_is_fresh_again():
    cache = QueryCache(clock=FakeClock())
    cache.set(_fp(), make_page())
    cache.invalidate_all()

    cache.set(_fp(), make_page())

    assert cache.is_fresh(_fp())


def test_set_restores_captured_entry_fields():
    clock = FakeClock()
    cache = QueryCache(clock=clock)
    cache.set(_fp(), make_page())

    entry = cache.set(_fp(), make_page(), fetched_at=5.0, invalidated=True)

    assert entry.fetched_at == 5.0
    assert entry.invalidated
    assert not cache.is_fresh(_fp())


def test_remove_and_clear():
    cache = QueryCache()
    cache.set(_fp(1), make_page())
    cache.set(_fp(2), make_page())

    cache.remove(_fp(1))
    assert list(cache) == [_fp(2)]

    cache.clear()
    assert len(cache) == 0
