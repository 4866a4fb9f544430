"""Mutation coordinator — optimistic status changes scoped to one cached page.

A status change walks ``IDLE → APPLYING → CONFIRMED | ROLLED_BACK``:

1. APPLYING: the previous payload is captured and the cached page is edited
   synchronously, before the request is sent, so the view updates at once.
2. CONFIRMED: the server's copy of the user is merged into the same page,
   one record only. Nothing is invalidated, so nothing is refetched.
3. ROLLED_BACK: on any failure, cancellation included, the captured
   payload is put back and the error is re-raised for the caller to report.

Requests are never retried here.
"""

import logging
from collections.abc import Callable

from userview.application.interfaces import UserTransport
from userview.application.services.query_cache import QueryCache
from userview.domain.entities import (
    CollectionResponse,
    MutationResult,
    MutationSnapshot,
    MutationState,
    ParameterFingerprint,
    StatusUpdateResult,
    User,
    UserStatus,
)
from userview.infrastructure.logging.colored_logger import CacheLogger, CacheStage

logger = logging.getLogger(__name__)
mlog = CacheLogger("MutationCoordinator")


class MutationCoordinator:
    """Runs status mutations against the transport with optimistic caching."""

    def __init__(self, cache: QueryCache, transport: UserTransport):
        self._cache = cache
        self._transport = transport
        self._pending: dict[str, int] = {}
        self._states: dict[str, MutationState] = {}

    def is_pending(self, user_id: str) -> bool:
        return self._pending.get(user_id, 0) > 0

    def last_state(self, user_id: str) -> MutationState:
        return self._states.get(user_id, MutationState.IDLE)

    async def update_status(
        self,
        user_id: str,
        status: UserStatus,
        fingerprint: ParameterFingerprint | None = None,
    ) -> MutationResult:
        """Change ``user_id``'s status, editing the cached page optimistically.

        Without a ``fingerprint`` nothing is edited up front and every cached
        page is invalidated once the server confirms.

        Raises:
            UserApiError: The transport failure, after the rollback.
            asyncio.CancelledError: When the caller is cancelled, after the
                rollback.
        """
        snapshot = self._apply(user_id, status, fingerprint)
        self._pending[user_id] = self._pending.get(user_id, 0) + 1
        try:
            result = await self._transport.update_user_status(user_id, status)
        except BaseException as e:
            # Cancellation rolls back too; the request outcome is unknown.
            if snapshot is not None:
                self._rollback(user_id, snapshot)
            self._states[user_id] = MutationState.ROLLED_BACK
            mlog.failure(CacheStage.ROLLBACK, f"user {user_id} → {status.value}", error=e)
            raise
        finally:
            self._release(user_id)

        self._confirm(user_id, result, fingerprint)
        self._states[user_id] = MutationState.CONFIRMED
        return MutationResult(
            state=MutationState.CONFIRMED,
            user=result.user,
            message=result.message,
        )

    # ── Protocol steps ────────────────────────────────────────────────

    def _apply(
        self,
        user_id: str,
        status: UserStatus,
        fingerprint: ParameterFingerprint | None,
    ) -> MutationSnapshot | None:
        self._states[user_id] = MutationState.APPLYING
        if fingerprint is None:
            return None

        previous = self._cache.get(fingerprint)
        entry = self._cache.update(
            fingerprint,
            _replace_with(user_id, lambda u: u.with_status(status)),
        )
        mlog.notice(
            CacheStage.OPTIMISTIC,
            f"user {user_id} → {status.value}",
            page=str(fingerprint),
            cached=entry is not None,
        )
        return MutationSnapshot(
            fingerprint=fingerprint,
            previous_entry=previous,
            applied_version=entry.version if entry is not None else None,
        )

    def _rollback(self, user_id: str, snapshot: MutationSnapshot) -> None:
        previous = snapshot.previous_entry
        if previous is None:
            return
        current = self._cache.get(snapshot.fingerprint)
        if current is None or current.version == snapshot.applied_version:
            self._cache.set(
                snapshot.fingerprint,
                previous.payload,
                fetched_at=previous.fetched_at,
                invalidated=previous.invalidated,
            )
            return

        # Another write landed after ours; only undo our own record.
        logger.warning(
            "Page %s changed during mutation of %s, restoring that record only",
            snapshot.fingerprint,
            user_id,
        )
        original = previous.payload.find(user_id)
        if original is not None:
            self._cache.update(
                snapshot.fingerprint,
                _replace_with(user_id, lambda _: original),
            )

    def _confirm(
        self,
        user_id: str,
        result: StatusUpdateResult,
        fingerprint: ParameterFingerprint | None,
    ) -> None:
        if fingerprint is None:
            self._cache.invalidate_all()
            mlog.notice(CacheStage.CONFIRM, f"user {user_id} (all pages invalidated)")
            return

        server_user = result.user
        fields = result.fields or frozenset({"status"})
        self._cache.update(
            fingerprint,
            _replace_with(server_user.user_id, lambda u: u.merged_with(server_user, fields)),
        )
        mlog.notice(
            CacheStage.CONFIRM,
            f"user {user_id} = {server_user.status.value}",
            page=str(fingerprint),
        )

    def _release(self, user_id: str) -> None:
        remaining = self._pending.get(user_id, 0) - 1
        if remaining > 0:
            self._pending[user_id] = remaining
        else:
            self._pending.pop(user_id, None)


def _replace_with(
    user_id: str, transform: Callable[[User], User]
) -> Callable[[CollectionResponse], CollectionResponse]:
    return lambda payload: payload.replace_user(user_id, transform)
