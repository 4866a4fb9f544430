"""Colored cache logger — ANSI-colored console tracing of cache traffic.

Makes it easy to follow a page through fetch, optimistic edit and
confirmation in the terminal.

Color scheme:
    🔵 Blue    — Cache hits / writes
    🟡 Yellow  — Network fetches
    🟣 Magenta — Optimistic edits
    🟢 Green   — Server confirmations
    🔴 Red     — Rollbacks / errors
"""

import logging
from typing import Any


class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    GRAY = "\033[90m"


class CacheStage:
    """Predefined stages with colors and icons."""

    HIT = ("HIT", _Colors.BLUE, "📦")
    STORE = ("STORE", _Colors.BLUE, "💾")
    INVALIDATE = ("INVALIDATE", _Colors.GRAY, "♻️")
    FETCH = ("FETCH", _Colors.YELLOW, "🌐")
    OPTIMISTIC = ("OPTIMISTIC", _Colors.MAGENTA, "⚡")
    CONFIRM = ("CONFIRM", _Colors.GREEN, "✅")
    ROLLBACK = ("ROLLBACK", _Colors.RED, "↩️")


class CacheLogger:
    """Color-coded logger for cache and mutation events.

    Usage:
        log = CacheLogger("QueryCache")
        log.event(CacheStage.STORE, "users/list/1/10", version=3)
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def event(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log a cache event with its stage color at DEBUG."""
        self._emit(logging.DEBUG, stage, message, kwargs)

    def notice(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log a cache event with its stage color at INFO."""
        self._emit(logging.INFO, stage, message, kwargs)

    def failure(
        self, stage: tuple[str, str, str], message: str, error: BaseException | None = None
    ) -> None:
        """Log a failed step in red."""
        label, _, icon = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.warning(formatted)

    def _emit(
        self, level: int, stage: tuple[str, str, str], message: str, details: dict[str, Any]
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        label, color, icon = stage
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        if details:
            joined = " | ".join(f"{k}={v}" for k, v in details.items())
            formatted += f" {_Colors.GRAY}({joined}){_Colors.RESET}"
        self._logger.log(level, formatted)
