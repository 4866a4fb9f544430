from .user_transport import UserTransport
from .key_value_store import KeyValueStore

__all__ = [
    "UserTransport",
    "KeyValueStore",
]
