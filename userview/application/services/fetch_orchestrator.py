"""Fetch orchestrator — cache-first page loading with single-flight requests.

Resolves a ListParams against the QueryCache: a fresh entry is returned
without touching the network, otherwise exactly one request per fingerprint
is in flight at any time and every concurrent caller awaits it.

Each started request gets a request id. A response only populates the cache
when its id is still the latest one issued for its fingerprint, so a request
abandoned through ``cancel`` or a caller timeout can never write after the
fact. A timeout abandons the request without cancelling it: other callers
waiting on the same fingerprint still receive its result.
"""

import asyncio
import itertools
import logging

from userview.application.interfaces import UserTransport
from userview.application.services.query_cache import QueryCache
from userview.application.services.retry_policy import RetryPolicy
from userview.domain.entities import (
    CollectionResponse,
    ListParams,
    ParameterFingerprint,
)
from userview.domain.exceptions import NetworkFailure, TimeoutFailure
from userview.infrastructure.logging.colored_logger import CacheLogger, CacheStage

logger = logging.getLogger(__name__)
clog = CacheLogger("QueryCache")


class FetchOrchestrator:
    """Loads pages through the cache, deduplicating concurrent requests."""

    def __init__(
        self,
        cache: QueryCache,
        transport: UserTransport,
        retry_policy: RetryPolicy | None = None,
    ):
        self._cache = cache
        self._transport = transport
        self._retry = retry_policy or RetryPolicy()
        self._request_ids = itertools.count(1)
        self._latest: dict[ParameterFingerprint, int] = {}
        self._in_flight: dict[ParameterFingerprint, tuple[int, asyncio.Task]] = {}

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @staticmethod
    def fingerprint(params: ListParams) -> ParameterFingerprint:
        return ParameterFingerprint.from_params(params)

    def in_flight(self, fingerprint: ParameterFingerprint) -> bool:
        return fingerprint in self._in_flight

    async def fetch(
        self,
        params: ListParams,
        *,
        force: bool = False,
        timeout: float | None = None,
    ) -> CollectionResponse:
        """Return the page for ``params``, from cache when fresh.

        ``force`` skips the freshness check but still joins a request that
        is already in flight. When ``timeout`` expires this caller gets
        ``TimeoutFailure`` and the request is abandoned: it keeps running
        for the other waiters but its response no longer reaches the cache.

        Raises:
            UserApiError: The final error once retries are exhausted, or
                ``NetworkFailure`` when the request was cancelled through
                ``cancel``.
        """
        fingerprint = self.fingerprint(params)
        if not force and self._cache.is_fresh(fingerprint):
            clog.event(CacheStage.HIT, str(fingerprint))
            payload = self._cache.get_payload(fingerprint)
            if payload is not None:
                return payload

        task = self._start(fingerprint, params)
        try:
            if timeout is None:
                return await asyncio.shield(task)
            return await asyncio.wait_for(asyncio.shield(task), timeout)
        except asyncio.TimeoutError as e:
            self._abandon(fingerprint, task)
            raise TimeoutFailure(f"Fetching {fingerprint} timed out after {timeout}s") from e
        except asyncio.CancelledError:
            if task.cancelled() and not _caller_cancelled():
                raise NetworkFailure(
                    f"Request for {fingerprint} was cancelled before it completed"
                ) from None
            raise

    def prefetch(self, params: ListParams) -> asyncio.Task | None:
        """Warm the cache for ``params`` without waiting for the result."""
        fingerprint = self.fingerprint(params)
        if self._cache.is_fresh(fingerprint):
            return None
        return self._start(fingerprint, params)

    def cancel(self, fingerprint: ParameterFingerprint) -> bool:
        """Abandon the in-flight request for ``fingerprint``, if any."""
        self._latest.pop(fingerprint, None)
        running = self._in_flight.pop(fingerprint, None)
        if running is None:
            return False
        running[1].cancel()
        logger.debug("Abandoned request %d for %s", running[0], fingerprint)
        return True

    def cancel_all(self) -> int:
        return sum(self.cancel(fp) for fp in list(self._in_flight))

    # ── Internals ─────────────────────────────────────────────────────

    def _start(self, fingerprint: ParameterFingerprint, params: ListParams) -> asyncio.Task:
        running = self._in_flight.get(fingerprint)
        if running is not None:
            return running[1]

        request_id = next(self._request_ids)
        self._latest[fingerprint] = request_id
        task = asyncio.create_task(self._run(fingerprint, params.normalized(), request_id))
        self._in_flight[fingerprint] = (request_id, task)
        task.add_done_callback(
            lambda t: self._finished(fingerprint, request_id, t)
        )
        return task

    async def _run(
        self, fingerprint: ParameterFingerprint, params: ListParams, request_id: int
    ) -> CollectionResponse:
        clog.notice(CacheStage.FETCH, str(fingerprint), request=request_id)
        payload = await self._retry.run(
            lambda: self._transport.fetch_users(params), label=str(fingerprint)
        )
        if self._latest.get(fingerprint) != request_id:
            logger.debug(
                "Discarding superseded response %d for %s", request_id, fingerprint
            )
            return payload
        self._cache.set(fingerprint, payload)
        return payload

    def _finished(
        self, fingerprint: ParameterFingerprint, request_id: int, task: asyncio.Task
    ) -> None:
        running = self._in_flight.get(fingerprint)
        if running is not None and running[0] == request_id:
            del self._in_flight[fingerprint]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug("Request %d for %s failed: %s", request_id, fingerprint, error)


def _caller_cancelled() -> bool:
    current = asyncio.current_task()
    return current is not None and current.cancelling() > 0
