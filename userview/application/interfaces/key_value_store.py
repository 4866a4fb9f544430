"""Abstract key-value store — port for locally persisted view preferences."""

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Port — string keys to string values, surviving across sessions."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored string, or None when the key was never written."""
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Persist ``value`` under ``key``, replacing any previous value."""
        ...
