"""Shared fakes for the user transport and preference store."""

import asyncio

from userview.domain.entities import (
    CollectionResponse,
    ListParams,
    StatusUpdateResult,
    User,
    UserGroup,
    UserStatus,
)


def make_users(count: int, status: UserStatus = UserStatus.ACTIVE) -> tuple[User, ...]:
    return tuple(
        User(
            user_id=f"u{i}",
            name=f"User {i}",
            email=f"user{i}@example.com",
            status=status,
            groups=(UserGroup(group_id="g1", group_name="Admins"),),
        )
        for i in range(1, count + 1)
    )


def make_page(count: int = 3, total_count: int | None = None) -> CollectionResponse:
    return CollectionResponse(
        items=make_users(count),
        total_count=total_count if total_count is not None else count,
    )


class FakeUserTransport:
    """In-memory UserTransport that records calls.

    ``fetch_errors`` are raised one per call before fetches start
    succeeding. A ``*_gate`` event holds the call until it is set.
    """

    def __init__(
        self,
        page: CollectionResponse | None = None,
        *,
        fetch_errors: list[Exception] | None = None,
        update_error: Exception | None = None,
        server_status: UserStatus | None = None,
        fetch_gate: asyncio.Event | None = None,
        update_gate: asyncio.Event | None = None,
    ):
        self.page = page or make_page()
        self.fetch_errors = list(fetch_errors or [])
        self.update_error = update_error
        self.server_status = server_status
        self.fetch_gate = fetch_gate
        self.update_gate = update_gate
        self.fetch_calls: list[ListParams] = []
        self.update_calls: list[tuple[str, UserStatus]] = []

    async def fetch_users(self, params: ListParams) -> CollectionResponse:
        self.fetch_calls.append(params)
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        return self.page

    async def update_user_status(self, user_id: str, status: UserStatus) -> StatusUpdateResult:
        self.update_calls.append((user_id, status))
        if self.update_gate is not None:
            await self.update_gate.wait()
        if self.update_error is not None:
            raise self.update_error
        existing = self.page.find(user_id) or User(user_id=user_id)
        confirmed = existing.with_status(self.server_status or status)
        return StatusUpdateResult(
            success=True,
            user=confirmed,
            message="User status updated",
            fields=frozenset({"status"}),
        )


class MemoryStore:
    """Dict-backed KeyValueStore."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value
