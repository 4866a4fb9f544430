"""Retry policy for page fetches — fixed backoff schedule, classified errors."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from userview.domain.exceptions import UserApiError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_DELAYS = (0.5, 1.0, 2.0)


class RetryPolicy:
    """Retries retryable ``UserApiError``s with a fixed delay schedule.

    With the defaults an operation runs at most four times (one attempt plus
    three retries), waiting 0.5 s, 1 s and 2 s between attempts. Client
    rejections and parse failures are raised on the first attempt.
    """

    def __init__(
        self,
        max_retries: int = 3,
        delays: Sequence[float] = DEFAULT_DELAYS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._max_retries = max_retries
        self._delays = tuple(delays) or (0.0,)
        self._sleep = sleep

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def delay_for(self, retry_index: int) -> float:
        """Delay before retry number ``retry_index`` (0-based)."""
        return self._delays[min(retry_index, len(self._delays) - 1)]

    def should_retry(self, error: BaseException, retry_index: int) -> bool:
        return (
            isinstance(error, UserApiError)
            and error.retryable
            and retry_index < self._max_retries
        )

    async def run(self, operation: Callable[[], Awaitable[T]], *, label: str = "") -> T:
        """Run ``operation`` until it succeeds or the error is final."""
        retry_index = 0
        while True:
            try:
                return await operation()
            except UserApiError as e:
                if not self.should_retry(e, retry_index):
                    raise
                delay = self.delay_for(retry_index)
                logger.warning(
                    "Retrying %s after %s (retry %d/%d in %.1fs)",
                    label or "request",
                    e.kind.value,
                    retry_index + 1,
                    self._max_retries,
                    delay,
                )
                await self._sleep(delay)
                retry_index += 1
