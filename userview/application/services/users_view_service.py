"""Users view service — one list view session over the cache core.

Owns the ViewState. The state is read from the URL once (``hydrate``) and
from then on every change is written back to the URL, never the other way
round. The text query goes through a debouncer: ``raw_query`` follows every
keystroke, ``debounced_query`` (and therefore the URL and the fetch) only
changes once typing pauses.
"""

import logging
from collections.abc import Callable
from dataclasses import replace

from userview.application.services.column_preferences import ColumnPreferences
from userview.application.services.debounced_value import DebouncedValue
from userview.application.services.fetch_orchestrator import FetchOrchestrator
from userview.application.services.mutation_coordinator import MutationCoordinator
from userview.application.services.url_state_codec import UrlStateCodec
from userview.domain.entities import (
    CollectionResponse,
    ListParams,
    MutationResult,
    ParameterFingerprint,
    SortOrder,
    StatusFilter,
    UserStatus,
    ViewState,
)

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_DELAY = 0.3


class UsersViewService:
    """Orchestrates URL sync, debounced search, loading and row mutations."""

    def __init__(
        self,
        codec: UrlStateCodec,
        orchestrator: FetchOrchestrator,
        coordinator: MutationCoordinator,
        columns: ColumnPreferences | None = None,
        *,
        debounce_delay: float = DEFAULT_DEBOUNCE_DELAY,
        on_url_change: Callable[[str], None] | None = None,
        auto_fetch: bool = True,
    ):
        self._codec = codec
        self._orchestrator = orchestrator
        self._coordinator = coordinator
        self._columns = columns
        self._debounce_delay = debounce_delay
        self._on_url_change = on_url_change
        self._auto_fetch = auto_fetch

        self._state = replace(
            codec.with_defaults(), column_visibility=self._column_snapshot()
        )
        self._url = codec.encode(self._state)
        self._debouncer: DebouncedValue[str] = DebouncedValue(
            "", debounce_delay, self._on_query_settled
        )

    # ── Read side ─────────────────────────────────────────────────────

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def url(self) -> str:
        return self._url

    @property
    def params(self) -> ListParams:
        return self._codec.to_list_params(self._state)

    @property
    def fingerprint(self) -> ParameterFingerprint:
        return self._codec.fingerprint(self._state)

    def current_page(self) -> CollectionResponse | None:
        """Cached page for the current view, fresh or not."""
        return self._orchestrator.cache.get_payload(self.fingerprint)

    def is_updating(self, user_id: str) -> bool:
        return self._coordinator.is_pending(user_id)

    def is_column_visible(self, column: str) -> bool:
        return self._columns.is_visible(column) if self._columns else True

    # ── State changes ─────────────────────────────────────────────────

    def hydrate(self, query_string: str) -> ViewState:
        """Initialize the state from a URL query string."""
        decoded = self._codec.decode(query_string)
        self._debouncer.close()
        self._debouncer = DebouncedValue(
            decoded.debounced_query, self._debounce_delay, self._on_query_settled
        )
        self._commit(replace(decoded, column_visibility=self._column_snapshot()))
        return self._state

    def set_query(self, raw_query: str) -> None:
        """Record a keystroke; the search is applied once typing pauses."""
        self._debouncer.set(raw_query)
        self._commit(replace(self._state, raw_query=raw_query, page=0))

    def set_status(self, status: StatusFilter | str) -> None:
        self._commit(replace(self._state, status=StatusFilter(status), page=0))

    def set_pagination(self, page: int, page_size: int | None = None) -> None:
        """Change the 0-based page index and optionally the page size."""
        self._commit(
            replace(
                self._state,
                page=page,
                page_size=page_size if page_size is not None else self._state.page_size,
            )
        )

    def set_sort(self, sort_by: str, sort_order: SortOrder | str = SortOrder.ASC) -> None:
        self._commit(replace(self._state, sort_by=sort_by, sort_order=SortOrder(sort_order)))

    def clear_sort(self) -> None:
        self._commit(replace(self._state, sort_by=None, sort_order=None))

    def set_column_visible(self, column: str, visible: bool) -> None:
        if self._columns is None:
            raise RuntimeError("No column preference store configured")
        self._columns.set_visible(column, visible)
        self._state = replace(self._state, column_visibility=self._column_snapshot())

    # ── Network ───────────────────────────────────────────────────────

    async def load(self, *, force: bool = False, timeout: float | None = None) -> CollectionResponse:
        """Fetch the page for the current state (cache first)."""
        return await self._orchestrator.fetch(self.params, force=force, timeout=timeout)

    async def toggle_status(self, user_id: str, status: UserStatus | str) -> MutationResult:
        """Change a user's status with an optimistic edit of the visible page."""
        return await self._coordinator.update_status(
            user_id, UserStatus(status), self.fingerprint
        )

    def close(self) -> None:
        """Cancel the pending search; nothing fires after this."""
        self._debouncer.close()

    # ── Internals ─────────────────────────────────────────────────────

    def _on_query_settled(self, value: str) -> None:
        self._commit(replace(self._state, debounced_query=value))

    def _commit(self, state: ViewState) -> None:
        normalized = self._codec.normalize(state)
        previous_fingerprint = self._codec.fingerprint(self._state)
        self._state = replace(
            normalized,
            raw_query=state.raw_query,
            column_visibility=state.column_visibility,
        )

        if self._auto_fetch and self.fingerprint != previous_fingerprint:
            self._orchestrator.prefetch(self.params)

        url = self._codec.encode(self._state)
        if url != self._url:
            self._url = url
            logger.debug("View URL changed: ?%s", url)
            if self._on_url_change is not None:
                self._on_url_change(url)

    def _column_snapshot(self) -> tuple[tuple[str, bool], ...]:
        return self._columns.as_tuple() if self._columns else ()
