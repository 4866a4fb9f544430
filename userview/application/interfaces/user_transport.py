"""Abstract user transport — port for the user collection HTTP API.

The cache and mutation layer only depends on this interface; the httpx
adapter and test fakes implement it.
"""

from abc import ABC, abstractmethod

from userview.domain.entities import (
    CollectionResponse,
    ListParams,
    StatusUpdateResult,
    UserStatus,
)


class UserTransport(ABC):
    """Port — defines what the application layer needs from the user API."""

    @abstractmethod
    async def fetch_users(self, params: ListParams) -> CollectionResponse:
        """Fetch one page of users.

        Args:
            params: Normalized list parameters (1-based page).

        Returns:
            The page of users plus the total count of the filtered collection.

        Raises:
            UserApiError: Classified as network, timeout, client rejection,
                server or parse failure.
        """
        ...

    @abstractmethod
    async def update_user_status(
        self, user_id: str, status: UserStatus
    ) -> StatusUpdateResult:
        """Change a user's status and return the server's version of the user.

        Raises:
            UserApiError: On any failure; callers must not assume the change
                was applied.
        """
        ...
