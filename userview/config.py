from pathlib import Path

from pydantic_settings import BaseSettings
from functools import lru_cache

_PROJECT_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _PROJECT_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Users View"
    app_version: str = "0.1.0"
    app_env: str = "development"

    # Remote user collection API
    api_base_url: str = "http://localhost:8020/api"
    request_timeout: float = 30.0

    # Query cache & fetching
    stale_time: float = 300.0                # seconds a page is served without refetch
    retry_max: int = 3
    retry_delays: tuple[float, ...] = (0.5, 1.0, 2.0)

    # View defaults
    debounce_delay: float = 0.3
    default_page_size: int = 10
    max_page_size: int = 100

    # Column visibility preferences (local key-value store)
    preferences_file: str = "data/preferences.json"
    column_visibility_key: str = "users.columnVisibility"

    # Logging — per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_http: str = "WARNING"          # httpx / httpcore — outbound HTTP
    log_level_cache: str = "INFO"            # query cache / fetch orchestrator
    log_level_mutation: str = "INFO"         # optimistic mutations

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
        "env_prefix": "USERVIEW_",
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
