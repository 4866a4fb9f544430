from .user import CollectionResponse, User, UserGroup, UserStatus
from .view_state import (
    FINGERPRINT_LIST,
    FINGERPRINT_ROOT,
    ListParams,
    ParameterFingerprint,
    SortOrder,
    StatusFilter,
    ViewState,
)
from .cache import (
    CacheEntry,
    MutationResult,
    MutationSnapshot,
    MutationState,
    StatusUpdateResult,
)

__all__ = [
    "CollectionResponse",
    "User",
    "UserGroup",
    "UserStatus",
    "FINGERPRINT_LIST",
    "FINGERPRINT_ROOT",
    "ListParams",
    "ParameterFingerprint",
    "SortOrder",
    "StatusFilter",
    "ViewState",
    "CacheEntry",
    "MutationResult",
    "MutationSnapshot",
    "MutationState",
    "StatusUpdateResult",
]
