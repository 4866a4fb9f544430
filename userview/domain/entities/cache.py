"""Domain entities for cached pages and in-flight mutations."""

from dataclasses import dataclass
from enum import Enum

from .user import CollectionResponse, User
from .view_state import ParameterFingerprint


@dataclass(frozen=True)
class CacheEntry:
    """Last known server response for one fingerprint.

    ``version`` increases on every write to the key, so a holder of an old
    entry can tell whether someone else wrote after it.
    """

    payload: CollectionResponse
    fetched_at: float
    version: int = 1
    invalidated: bool = False


class MutationState(str, Enum):
    """Lifecycle of a single status mutation attempt."""

    IDLE = "idle"
    APPLYING = "applying"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class MutationSnapshot:
    """Cache state captured before an optimistic edit, used for rollback."""

    fingerprint: ParameterFingerprint
    previous_entry: CacheEntry | None
    applied_version: int | None = None

    @property
    def previous_payload(self) -> CollectionResponse | None:
        return self.previous_entry.payload if self.previous_entry is not None else None


@dataclass(frozen=True)
class StatusUpdateResult:
    """Server confirmation of ``PATCH /users/{id}``.

    ``fields`` names the attributes the server actually sent; only those are
    merged into the cached record.
    """

    success: bool
    user: User
    message: str = ""
    fields: frozenset[str] = frozenset()


@dataclass(frozen=True)
class MutationResult:
    """Outcome returned to the caller of a status mutation."""

    state: MutationState
    user: User | None = None
    message: str = ""
