"""Unified configuration schema for front_desk_sync.

Defines Pydantic models for the unified config structure with dedicated
sections for the booking API, the sync timers and logging.  Includes an
adapter that flattens the sections into the ``Config`` dataclass.

Usage:
    from front_desk_sync.config_schema import (
        UnifiedConfig, build_config, to_fallbacks,
    )

    raw = load_hierarchical_config()
    unified = build_config(raw)
    fallbacks = to_fallbacks(unified)
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ApiConfig(BaseModel):
    """Booking API connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    url: str | None = Field(default=None, description="Booking API base URL")
    timeout: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="HTTP request timeout in seconds",
    )
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """Offline sync engine settings.

    Attributes:
        state_dir: Directory holding the outbox and snapshot records.
        drain_interval: Seconds between outbox drain ticks.
        poll_interval: Seconds between connectivity polls; also the
            signal evaluation window.
        feed_interval: Seconds between live feed refreshes.
    """

    state_dir: str | None = Field(
        default=None, description="Local state directory"
    )
    drain_interval: float = Field(default=1.0, gt=0, le=3600)
    poll_interval: float = Field(default=0.5, gt=0, le=3600)
    feed_interval: float = Field(default=5.0, gt=0, le=3600)

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Aggregates all config sections. Every section has sensible defaults,
    so ``UnifiedConfig()`` (zero-config) is always valid.
    """

    api: ApiConfig = Field(default_factory=ApiConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully: anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


# ---------------------------------------------------------------------------
# Adapter: UnifiedConfig -> load_config() fallbacks
# ---------------------------------------------------------------------------


def to_fallbacks(unified: UnifiedConfig) -> dict[str, Any]:
    """Flatten the ``api`` and ``sync`` sections into the fallback dict
    accepted by ``load_config(yaml_fallbacks=...)``.

    ``None`` values are dropped so they never shadow built-in defaults.

    Args:
        unified: The unified config produced by ``build_config()``.

    Returns:
        Flat dict keyed by the names ``load_config()`` looks up.
    """
    flat: dict[str, Any] = {}
    flat.update(unified.api.model_dump())
    flat.update(unified.sync.model_dump())
    return {k: v for k, v in flat.items() if v is not None}
