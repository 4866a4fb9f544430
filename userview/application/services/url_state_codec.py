"""URL state codec — ViewState <-> canonical query string.

The query string is the only shareable state of the view. Field order is
fixed (``page, pageSize, status, query, sortBy, sortOrder``), ``page`` is
1-based in the URL and 0-based in ViewState, and default values are dropped
for ``status`` and ``query``. Anything that does not parse falls back to its
default rather than reaching the network as a filter.
"""

from dataclasses import replace
from urllib.parse import parse_qs, urlencode

from userview.domain.entities import (
    ListParams,
    ParameterFingerprint,
    SortOrder,
    StatusFilter,
    ViewState,
)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Older links used "search" for the text query.
_QUERY_KEYS = ("query", "search")


class UrlStateCodec:
    """Bidirectional mapping between ViewState and its query string."""

    def __init__(
        self,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    def decode(self, query_string: str) -> ViewState:
        """Parse a query string (with or without a leading '?')."""
        raw = parse_qs(query_string.lstrip("?"), keep_blank_values=True)

        def first(key: str) -> str | None:
            values = raw.get(key)
            return values[0] if values else None

        query = ""
        for key in _QUERY_KEYS:
            candidate = first(key)
            if candidate is not None:
                query = candidate
                break

        sort_by, sort_order = self._sort_pair(first("sortBy"), first("sortOrder"))
        query = query.strip()
        return ViewState(
            page=self._page_index(first("page")),
            page_size=self._page_size(first("pageSize")),
            status=self._status(first("status")),
            raw_query=query,
            debounced_query=query,
            sort_by=sort_by,
            sort_order=sort_order,
        )

    def encode(self, state: ViewState) -> str:
        """Serialize the URL-owned part of ``state``.

        Uses the debounced query: the URL only ever shows a query that has
        already been sent to the server.
        """
        state = self.normalize(state)
        pairs: list[tuple[str, str]] = [
            ("page", str(state.page + 1)),
            ("pageSize", str(state.page_size)),
        ]
        if state.status is not StatusFilter.ALL:
            pairs.append(("status", state.status.value))
        if state.debounced_query:
            pairs.append(("query", state.debounced_query))
        if state.sort_by and state.sort_order:
            pairs.append(("sortBy", state.sort_by))
            pairs.append(("sortOrder", state.sort_order.value))
        return urlencode(pairs)

    def normalize(self, state: ViewState) -> ViewState:
        """Clamp ``state`` to what ``decode`` would produce from its URL."""
        sort_by, sort_order = self._sort_pair(state.sort_by, state.sort_order)
        query = state.debounced_query.strip()
        return ViewState(
            page=max(0, state.page),
            page_size=self._clamp_page_size(state.page_size),
            status=self._status(state.status),
            raw_query=query,
            debounced_query=query,
            sort_by=sort_by,
            sort_order=sort_order,
        )

    def to_list_params(self, state: ViewState) -> ListParams:
        """Network parameters for ``state`` (1-based page, debounced query)."""
        state = self.normalize(state)
        return ListParams(
            page=state.page + 1,
            page_size=state.page_size,
            query=state.debounced_query or None,
            status=state.status.as_user_status(),
            sort_by=state.sort_by,
            sort_order=state.sort_order,
        ).normalized()

    def fingerprint(self, state: ViewState) -> ParameterFingerprint:
        return ParameterFingerprint.from_params(self.to_list_params(state))

    def with_defaults(self) -> ViewState:
        return replace(ViewState(), page_size=self._default_page_size)

    # ── Field parsers ─────────────────────────────────────────────────

    @staticmethod
    def _page_index(raw: str | None) -> int:
        try:
            return max(0, int(raw) - 1) if raw is not None else 0
        except ValueError:
            return 0

    def _page_size(self, raw: str | None) -> int:
        try:
            value = int(raw) if raw is not None else self._default_page_size
        except ValueError:
            value = self._default_page_size
        return self._clamp_page_size(value)

    def _clamp_page_size(self, value: int) -> int:
        if value <= 0:
            return self._default_page_size
        return min(value, self._max_page_size)

    @staticmethod
    def _status(raw: str | None) -> StatusFilter:
        if raw in (StatusFilter.ACTIVE.value, StatusFilter.INACTIVE.value):
            return StatusFilter(raw)
        return StatusFilter.ALL

    @staticmethod
    def _sort_pair(
        sort_by: str | None, sort_order: str | None
    ) -> tuple[str | None, SortOrder | None]:
        """Both or neither: a lone field or an unknown order means no sort."""
        sort_by = (sort_by or "").strip()
        if not sort_by or sort_order not in (SortOrder.ASC.value, SortOrder.DESC.value):
            return None, None
        return sort_by, SortOrder(sort_order)
