"""Runtime settings for the repository layer, sourced from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_STREAM_BATCH_SIZE = 100
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class RepositorySettings:
    allow_global_update: bool
    sql_echo: bool
    stream_batch_size: int


def _normalize_bool(value: str | None, default: bool = False) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


def _normalize_positive_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


@lru_cache(maxsize=None)
def get_settings() -> RepositorySettings:
    """Return the cached settings state sourced from the environment."""
    return RepositorySettings(
        # Unfiltered bulk updates touch every row; must be opted into explicitly.
        allow_global_update=_normalize_bool(os.getenv("RECORDSTORE_ALLOW_GLOBAL_UPDATE"), default=False),
        sql_echo=_normalize_bool(os.getenv("RECORDSTORE_SQL_ECHO"), default=False),
        stream_batch_size=_normalize_positive_int(
            os.getenv("RECORDSTORE_STREAM_BATCH_SIZE"), DEFAULT_STREAM_BATCH_SIZE
        ),
    )


def refresh_settings_cache() -> None:
    """Invalidate cached settings (useful for tests)."""
    get_settings.cache_clear()


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging from ``LOG_LEVEL`` unless a level is given."""
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
