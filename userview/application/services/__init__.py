from .debounced_value import DebouncedValue
from .url_state_codec import UrlStateCodec
from .query_cache import QueryCache
from .retry_policy import RetryPolicy
from .fetch_orchestrator import FetchOrchestrator
from .mutation_coordinator import MutationCoordinator
from .render_boundary import RenderBoundary, RenderResult
from .column_preferences import ColumnPreferences, PersistentState
from .users_view_service import UsersViewService

__all__ = [
    "DebouncedValue",
    "UrlStateCodec",
    "QueryCache",
    "RetryPolicy",
    "FetchOrchestrator",
    "MutationCoordinator",
    "RenderBoundary",
    "RenderResult",
    "ColumnPreferences",
    "PersistentState",
    "UsersViewService",
]
