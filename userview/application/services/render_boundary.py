"""Render boundary — contains failures of the top-level render step.

Wraps the render entry point: a failure is recorded and a fallback output is
returned instead of propagating. Once tripped, the boundary keeps returning
the fallback until ``reset`` is called, so a broken view is not re-rendered
on every request.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from userview.domain.exceptions import RenderFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RenderResult(Generic[T]):
    """Either the rendered value (``ok``) or the fallback and its error."""

    ok: bool
    value: T
    error: BaseException | None = None


class RenderBoundary(Generic[T]):
    def __init__(self, fallback: Callable[[BaseException], T]):
        self._fallback = fallback
        self._error: BaseException | None = None
        self._error_count = 0

    @property
    def has_error(self) -> bool:
        return self._error is not None

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def error_count(self) -> int:
        return self._error_count

    def report(self, error: BaseException) -> None:
        """Trip the boundary with ``error``."""
        self._error = error
        self._error_count += 1
        logger.error(
            "Render boundary caught %s: %s (count=%d)",
            type(error).__name__,
            error,
            self._error_count,
        )

    def reset(self) -> None:
        """Leave the error state; the next ``run`` renders again."""
        self._error = None

    async def run(self, render: Callable[[], Awaitable[T]]) -> RenderResult[T]:
        if self._error is not None:
            return RenderResult(ok=False, value=self._fallback(self._error), error=self._error)
        try:
            value = await render()
        except RenderFailure as e:
            self.report(e)
        except Exception as e:
            self.report(RenderFailure(str(e) or type(e).__name__, cause=e))
        else:
            return RenderResult(ok=True, value=value)
        return RenderResult(ok=False, value=self._fallback(self._error), error=self._error)
