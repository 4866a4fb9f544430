"""User API client — implements the UserTransport interface.

Talks to the user collection API (``GET /users``, ``PATCH /users/{id}``)
with httpx and translates every failure into the classified domain errors
the cache layer retries or rolls back on.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from userview.application.interfaces import UserTransport
from userview.application.schemas import (
    ApiErrorBody,
    StatusUpdateRequest,
    StatusUpdateResponse,
    UsersListResponse,
)
from userview.domain.entities import (
    CollectionResponse,
    ListParams,
    StatusUpdateResult,
    UserStatus,
)
from userview.domain.exceptions import (
    ClientRejection,
    NetworkFailure,
    ParseFailure,
    TimeoutFailure,
    UserApiError,
    error_for_status,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class HttpUserTransport(UserTransport):
    """Infrastructure adapter — connects to the user collection API.

    An injected ``httpx.AsyncClient`` is reused and left open; without one,
    a short-lived client is created per request.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._http_client = http_client

    @staticmethod
    def build_query(params: ListParams) -> dict[str, str]:
        """Query parameters for ``GET /users``; optional filters are omitted."""
        query: dict[str, str] = {
            "page": str(params.page),
            "pageSize": str(params.page_size),
        }
        if params.query:
            query["query"] = params.query
        if params.status is not None:
            query["status"] = params.status.value
        if params.sort_by:
            query["sortBy"] = params.sort_by
            if params.sort_order is not None:
                query["sortOrder"] = params.sort_order.value
        return query

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def fetch_users(self, params: ListParams) -> CollectionResponse:
        url = f"{self._base_url}/users"
        body = await self._send(
            "GET", url, "Failed to fetch users", params=self.build_query(params)
        )
        try:
            return UsersListResponse.model_validate(body).to_entity()
        except ValidationError as e:
            raise ParseFailure(f"Unexpected users payload: {e.error_count()} error(s)", 200) from e

    async def update_user_status(
        self, user_id: str, status: UserStatus
    ) -> StatusUpdateResult:
        url = f"{self._base_url}/users/{user_id}"
        body = await self._send(
            "PATCH",
            url,
            "Failed to update user status",
            json=StatusUpdateRequest(status=status).model_dump(mode="json"),
        )
        try:
            result = StatusUpdateResponse.model_validate(body).to_entity()
        except ValidationError as e:
            raise ParseFailure(f"Unexpected status update payload: {e.error_count()} error(s)", 200) from e

        if not result.success:
            raise ClientRejection(result.message or "Status update was not applied", 200)
        return result

    async def _send(self, method: str, url: str, context: str, **kwargs: Any) -> Any:
        """Issue a request and return the decoded JSON body of a 2xx response."""
        client = await self._get_client()
        should_close = self._http_client is None

        try:
            response = await client.request(method, url, timeout=self._timeout, **kwargs)
        except httpx.TimeoutException as e:
            raise TimeoutFailure(f"{context}: request timed out after {self._timeout:g}s") from e
        except httpx.TransportError as e:
            raise NetworkFailure(
                "Network request failed. Please check your connection."
            ) from e
        finally:
            if should_close:
                await client.aclose()

        if not response.is_success:
            raise self._error_from_response(response, context)

        try:
            return response.json()
        except ValueError as e:
            raise ParseFailure(f"{context}: response is not JSON", response.status_code) from e

    @staticmethod
    def _error_from_response(response: httpx.Response, context: str) -> UserApiError:
        """Build the classified error for a non-2xx response.

        The body is optional: anything that is not a JSON object is ignored
        and the message falls back to the reason phrase.
        """
        details: dict[str, Any] = {}
        message: str | None = None
        if "application/json" in response.headers.get("content-type", ""):
            try:
                parsed = ApiErrorBody.model_validate(response.json())
                details = parsed.details()
                message = parsed.message
            except (ValueError, ValidationError):
                logger.debug("Ignoring unreadable error body from %s", response.url)

        reason = response.reason_phrase or f"HTTP {response.status_code}"
        return error_for_status(
            response.status_code,
            message or f"{context}: {reason}",
            details,
        )
