"""Query cache — last known server page per parameter fingerprint.

One instance is constructed per view session and passed to the fetch
orchestrator and the mutation coordinator; there is no module-level cache.
All operations are synchronous, so on a single event loop no two writes
interleave.
"""

import logging
import time
from collections.abc import Callable, Iterator

from userview.domain.entities import (
    CacheEntry,
    CollectionResponse,
    ParameterFingerprint,
)
from userview.infrastructure.logging.colored_logger import CacheLogger, CacheStage

logger = logging.getLogger(__name__)
clog = CacheLogger("QueryCache")

DEFAULT_STALE_TIME = 300.0

PayloadUpdater = Callable[[CollectionResponse], CollectionResponse]


class QueryCache:
    """Keyed store of immutable CacheEntry snapshots.

    Every write replaces the entry object; payloads are never mutated in
    place, so any previously read payload stays a valid historical snapshot.
    """

    def __init__(
        self,
        stale_time: float = DEFAULT_STALE_TIME,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._stale_time = stale_time
        self._clock = clock
        self._entries: dict[ParameterFingerprint, CacheEntry] = {}

    @property
    def stale_time(self) -> float:
        return self._stale_time

    def get(self, fingerprint: ParameterFingerprint) -> CacheEntry | None:
        return self._entries.get(fingerprint)

    def get_payload(self, fingerprint: ParameterFingerprint) -> CollectionResponse | None:
        entry = self._entries.get(fingerprint)
        return entry.payload if entry is not None else None

    def set(
        self,
        fingerprint: ParameterFingerprint,
        payload: CollectionResponse,
        *,
        fetched_at: float | None = None,
        invalidated: bool = False,
    ) -> CacheEntry:
        """Insert or replace the entry; no merge.

        ``fetched_at`` and ``invalidated`` default to a fresh entry; rollback
        passes the captured values to put an entry back exactly as it was.
        """
        previous = self._entries.get(fingerprint)
        entry = CacheEntry(
            payload=payload,
            fetched_at=self._clock() if fetched_at is None else fetched_at,
            version=previous.version + 1 if previous is not None else 1,
            invalidated=invalidated,
        )
        self._entries[fingerprint] = entry
        clog.event(CacheStage.STORE, str(fingerprint), version=entry.version)
        return entry

    def update(
        self, fingerprint: ParameterFingerprint, updater: PayloadUpdater
    ) -> CacheEntry | None:
        """Apply a pure transform to an existing entry; no-op when absent.

        Keeps ``fetched_at`` and the invalidated flag: a local edit says
        nothing about how fresh the rest of the page is.
        """
        previous = self._entries.get(fingerprint)
        if previous is None:
            return None
        entry = CacheEntry(
            payload=updater(previous.payload),
            fetched_at=previous.fetched_at,
            version=previous.version + 1,
            invalidated=previous.invalidated,
        )
        self._entries[fingerprint] = entry
        clog.event(CacheStage.STORE, f"{fingerprint} (update)", version=entry.version)
        return entry

    def is_fresh(self, fingerprint: ParameterFingerprint) -> bool:
        entry = self._entries.get(fingerprint)
        if entry is None or entry.invalidated:
            return False
        return (self._clock() - entry.fetched_at) < self._stale_time

    def invalidate(self, prefix: tuple = ()) -> int:
        """Mark every entry whose key starts with ``prefix`` as stale.

        Payloads stay readable so the view can keep showing them while a
        refetch is in flight. Returns the number of entries marked.
        """
        count = 0
        for fingerprint, entry in list(self._entries.items()):
            if fingerprint.startswith(prefix) and not entry.invalidated:
                self._entries[fingerprint] = CacheEntry(
                    payload=entry.payload,
                    fetched_at=entry.fetched_at,
                    version=entry.version + 1,
                    invalidated=True,
                )
                count += 1
        clog.event(CacheStage.INVALIDATE, "/".join(map(str, prefix)) or "*", entries=count)
        return count

    def invalidate_all(self) -> int:
        return self.invalidate(())

    def remove(self, fingerprint: ParameterFingerprint) -> None:
        self._entries.pop(fingerprint, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._entries

    def __iter__(self) -> Iterator[ParameterFingerprint]:
        return iter(list(self._entries))
