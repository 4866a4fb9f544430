"""Debounced value — propagates an input only after it has been stable."""

import asyncio
import logging
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DebouncedValue(Generic[T]):
    """Delays a rapidly changing value until it stops changing for ``delay``.

    Every ``set`` restarts the timer; there is no leading-edge emission and
    intermediate values are dropped. Timers run on the current asyncio loop,
    so ``set`` must be called from inside it.
    """

    def __init__(
        self,
        initial: T,
        delay: float,
        on_emit: Callable[[T], None] | None = None,
    ) -> None:
        self._value = initial
        self._delay = delay
        self._on_emit = on_emit
        self._pending_value: T = initial
        self._handle: asyncio.TimerHandle | None = None
        self._waiters: list[asyncio.Future[T]] = []
        self._closed = False

    @property
    def value(self) -> T:
        """The last emitted value."""
        return self._value

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def set(self, value: T) -> None:
        """Record a new input and restart the delay."""
        if self._closed:
            raise RuntimeError("DebouncedValue is closed")
        self._pending_value = value
        self._arm()

    def reconfigure(self, delay: float) -> None:
        """Change the delay; a pending value restarts with the new delay."""
        self._delay = delay
        if self._handle is not None:
            self._arm()

    def cancel(self) -> None:
        """Drop the pending value without emitting it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def close(self) -> None:
        """Cancel any pending emission; the emitter never fires again."""
        self.cancel()
        self._closed = True
        for waiter in self._waiters:
            if not waiter.done():
                waiter.cancel()
        self._waiters.clear()

    async def wait(self) -> T:
        """Wait for the next emission and return its value."""
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[T] = loop.create_future()
        self._waiters.append(waiter)
        return await waiter

    def _arm(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if self._closed:
            return
        self._value = self._pending_value
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(self._value)
        if self._on_emit is not None:
            try:
                self._on_emit(self._value)
            except Exception:
                logger.exception("Debounced emit callback failed")
