"""Column visibility preferences, persisted in a local key-value store."""

import json
import logging
from typing import Any, Generic, TypeVar

from userview.application.interfaces import KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PersistentState(Generic[T]):
    """A JSON value that is loaded from the store once and saved on every set.

    A missing or unreadable value falls back to ``default``; a failing write
    is logged and the in-memory value is kept.
    """

    def __init__(self, store: KeyValueStore, key: str, default: T):
        self._store = store
        self._key = key
        self._value: T = self._load(default)

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        try:
            self._store.set_item(self._key, json.dumps(value))
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Error saving %s to preferences: %s", self._key, exc)

    def _load(self, default: T) -> T:
        try:
            raw = self._store.get_item(self._key)
            return json.loads(raw) if raw else default
        except (OSError, ValueError) as exc:
            logger.warning("Error loading %s from preferences: %s", self._key, exc)
            return default


class ColumnPreferences:
    """Which table columns are visible. Unknown columns are visible."""

    def __init__(self, store: KeyValueStore, key: str = "users.columnVisibility"):
        self._state: PersistentState[dict[str, Any]] = PersistentState(store, key, {})

    def is_visible(self, column: str) -> bool:
        return bool(self._columns().get(column, True))

    def set_visible(self, column: str, visible: bool) -> None:
        updated = dict(self._columns())
        updated[column] = visible
        self._state.set(updated)

    def toggle(self, column: str) -> bool:
        visible = not self.is_visible(column)
        self.set_visible(column, visible)
        return visible

    def as_tuple(self) -> tuple[tuple[str, bool], ...]:
        """Snapshot for ViewState, sorted by column key."""
        return tuple(sorted((k, bool(v)) for k, v in self._columns().items()))

    def _columns(self) -> dict[str, Any]:
        value = self._state.value
        return value if isinstance(value, dict) else {}
