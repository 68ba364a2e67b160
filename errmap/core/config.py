"""Application configuration helpers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os

DEFAULT_APP_NAME = "errmap"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class AppSettings:
    """Runtime settings for the hosting FastAPI app."""

    app_name: str
    log_level: str


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Load application settings from the environment."""
    return AppSettings(
        app_name=os.getenv("ERRMAP_APP_NAME", DEFAULT_APP_NAME),
        log_level=os.getenv("ERRMAP_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    )
