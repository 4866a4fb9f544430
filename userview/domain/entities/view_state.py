"""Domain entities for the list view — filter, sort and pagination state."""

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum

from .user import UserStatus

FINGERPRINT_ROOT = ("users",)
FINGERPRINT_LIST = ("users", "list")


class StatusFilter(str, Enum):
    """Status dropdown values. ``ALL`` means no status filter."""

    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"

    def as_user_status(self) -> UserStatus | None:
        if self is StatusFilter.ALL:
            return None
        return UserStatus(self.value)


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class ViewState:
    """Everything the list view needs to render one page.

    ``page`` is 0-based here; the URL carries it 1-based. ``raw_query`` is
    what the user typed, ``debounced_query`` is what was last sent to the
    server.
    """

    page: int = 0
    page_size: int = 10
    status: StatusFilter = StatusFilter.ALL
    raw_query: str = ""
    debounced_query: str = ""
    sort_by: str | None = None
    sort_order: SortOrder | None = None
    column_visibility: tuple[tuple[str, bool], ...] = ()


@dataclass(frozen=True)
class ListParams:
    """Network parameters for ``GET /users`` (page is 1-based)."""

    page: int = 1
    page_size: int = 10
    query: str | None = None
    status: UserStatus | None = None
    sort_by: str | None = None
    sort_order: SortOrder | None = None

    def normalized(self) -> "ListParams":
        """Collapse equivalent spellings so equal views share a cache key."""
        query = (self.query or "").strip() or None
        sort_by = self.sort_by or None
        sort_order = self.sort_order if sort_by else None
        if sort_order is None:
            sort_by = None
        return ListParams(
            page=max(1, self.page),
            page_size=self.page_size,
            query=query,
            status=self.status,
            sort_by=sort_by,
            sort_order=sort_order,
        )


@dataclass(frozen=True)
class ParameterFingerprint:
    """Canonical cache key for one list view.

    Built only through ``from_params`` so field insertion order and default
    spellings never leak into the key.
    """

    parts: tuple = field(default=FINGERPRINT_LIST)

    @classmethod
    def from_params(cls, params: ListParams) -> "ParameterFingerprint":
        p = params.normalized()
        return cls(
            parts=FINGERPRINT_LIST
            + (
                p.page,
                p.page_size,
                p.query,
                p.status.value if p.status else None,
                p.sort_by,
                p.sort_order.value if p.sort_order else None,
            )
        )

    def startswith(self, prefix: tuple) -> bool:
        return self.parts[: len(prefix)] == tuple(prefix)

    @property
    def digest(self) -> str:
        blob = json.dumps(list(self.parts), separators=(",", ":")).encode("utf-8")
        return hashlib.sha256(blob).hexdigest()

    def __str__(self) -> str:
        return "/".join("-" if part is None else str(part) for part in self.parts)
