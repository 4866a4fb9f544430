"""Domain-specific exceptions — framework-independent."""

from enum import Enum
from typing import Any


class FailureKind(str, Enum):
    """Classification of a failed request, used for retry and messaging."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    CLIENT_REJECTION = "client_rejection"
    SERVER = "server"
    PARSE = "parse"


_RETRYABLE = frozenset({FailureKind.NETWORK, FailureKind.TIMEOUT, FailureKind.SERVER})


class UserApiError(Exception):
    """Raised when a call to the user collection API fails.

    The view layer only needs ``kind`` to pick a message; ``status_code`` is
    0 when no response reached the client.
    """

    kind: FailureKind = FailureKind.NETWORK

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        details: dict[str, Any] | None = None,
    ):
        self.status_code = status_code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{self.kind.value}] {status_code}: {message}")

    @property
    def retryable(self) -> bool:
        return self.kind in _RETRYABLE


class NetworkFailure(UserApiError):
    """No response reached the client."""

    kind = FailureKind.NETWORK


class TimeoutFailure(UserApiError):
    """The request exceeded its timeout."""

    kind = FailureKind.TIMEOUT


class ClientRejection(UserApiError):
    """4xx — the server understood the request and declined it."""

    kind = FailureKind.CLIENT_REJECTION


class ServerFailure(UserApiError):
    """5xx — the server is unavailable or failed."""

    kind = FailureKind.SERVER


class ParseFailure(UserApiError):
    """A 2xx response whose body does not match the expected shape."""

    kind = FailureKind.PARSE


def error_for_status(
    status_code: int, message: str, details: dict[str, Any] | None = None
) -> UserApiError:
    """Build the classified error for a non-2xx HTTP status."""
    if 400 <= status_code < 500:
        return ClientRejection(message, status_code, details)
    return ServerFailure(message, status_code, details)


class RenderFailure(Exception):
    """Reported to a RenderBoundary when a render step cannot complete."""

    def __init__(self, message: str, cause: BaseException | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)
