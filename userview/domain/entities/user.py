"""Domain entities for the user collection — framework-independent, immutable."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class UserStatus(str, Enum):
    """Account status as stored by the server."""

    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class UserGroup:
    """A group membership shown in the Groups column."""

    group_id: str
    group_name: str


@dataclass(frozen=True)
class User:
    """A single record of the collection.

    Identity is ``user_id``. The client only ever edits its cached copy;
    every edit returns a new instance so earlier snapshots stay valid.
    """

    user_id: str
    name: str = ""
    email: str = ""
    status: UserStatus = UserStatus.ACTIVE
    groups: tuple[UserGroup, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        # Read-only copy, so snapshots never share a mutable dict
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    def with_status(self, status: UserStatus) -> "User":
        """Return a copy with only the status replaced."""
        return replace(self, status=status)

    def merged_with(self, other: "User", fields: Iterable[str]) -> "User":
        """Return a copy taking ``fields`` from ``other`` (server wins)."""
        changes = {name: getattr(other, name) for name in fields if name != "user_id"}
        if not changes:
            return self
        return replace(self, **changes)


@dataclass(frozen=True)
class CollectionResponse:
    """One page of the collection as returned by the server.

    ``items`` keeps the server's sort order. ``total_count`` is the size of
    the whole filtered collection, not of this page.
    """

    items: tuple[User, ...] = ()
    total_count: int = 0

    def find(self, user_id: str) -> User | None:
        for user in self.items:
            if user.user_id == user_id:
                return user
        return None

    def replace_user(
        self, user_id: str, transform: Callable[[User], User]
    ) -> "CollectionResponse":
        """Return a new page with ``transform`` applied to one record only."""
        items = tuple(
            transform(user) if user.user_id == user_id else user
            for user in self.items
        )
        return CollectionResponse(items=items, total_count=self.total_count)
