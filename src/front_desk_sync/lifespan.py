"""Lifespan management for sync engine startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .config import Config, load_config
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import UnifiedConfig, build_config, to_fallbacks
from .core.client import BookingApiClient
from .sync.engine import SyncEngine
from .sync.models import Scope

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr so stdout stays reserved for the dashboard."""
    print(msg, file=sys.stderr, flush=True)


def resolve_config(
    config_overrides: dict[str, Any] | None = None,
) -> tuple[Config, UnifiedConfig]:
    """
    Merge every configuration source into a validated ``Config``.

    Precedence: CLI overrides > env vars (.env loaded first) > YAML config
    > defaults.

    Returns:
        The flat ``Config`` plus the ``UnifiedConfig`` it was built from
        (callers read the ``logging`` section from it).

    Raises:
        RuntimeError: If configuration is missing or invalid.
    """
    try:
        # .env first, so ${VAR} interpolation in YAML can see its values
        load_dotenv()

        sources = []
        config_files = discover_config_files()
        unified = build_config(load_hierarchical_config())
        if config_files:
            sources.append(f"config file: {config_files[0]}")

        overrides = config_overrides or {}
        config = load_config(
            url=overrides.get("url"),
            state_dir=overrides.get("state_dir"),
            insecure=overrides.get("insecure", False),
            debug=overrides.get("debug", False),
            yaml_fallbacks=to_fallbacks(unified),
        )

        if overrides:
            sources.append("CLI arguments")
        sources.append("environment variables")
        logger.info("Configuration loaded from: %s", ", ".join(sources))
    except (ValueError, yaml.YAMLError) as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        _stderr_print("  Ensure FRONT_DESK_API_URL is set.")
        raise RuntimeError(
            f"Configuration error: {e}. Ensure FRONT_DESK_API_URL is set."
        ) from e

    return config, unified


@asynccontextmanager
async def sync_engine(
    scope: Scope,
    config: Config | None = None,
    config_overrides: dict[str, Any] | None = None,
    start: bool = True,
) -> AsyncIterator[SyncEngine]:
    """
    Build a ``SyncEngine`` for *scope* and guarantee its teardown.

    On startup:
    - Resolve configuration unless a ``Config`` is passed in
    - Create the API client and the engine (loads outbox and snapshot)
    - Fetch the live booking list once; an unreachable backend is not an
      error, the engine simply starts offline on cached data
    - Start the drain, poll and feed loops when *start* is true

    On shutdown:
    - Cancel the loops, even if the body raised

    Raises:
        RuntimeError: If configuration is invalid.
    """
    logger.info("Front desk sync starting...")
    _stderr_print("Front desk sync starting...")

    if config is None:
        config, _ = resolve_config(config_overrides)
    _stderr_print(f"  API URL: {config.api_url}")
    _stderr_print(f"  State directory: {config.state_dir}")

    client = BookingApiClient(config)
    engine = SyncEngine(
        client,
        scope,
        Path(config.state_dir),
        drain_interval=config.drain_interval,
        poll_interval=config.poll_interval,
        feed_interval=config.feed_interval,
    )

    if await engine.feed.refresh():
        _stderr_print(
            f"  Connected. {len(engine.base())} bookings for hotel "
            f"{scope.hotel_id} on {scope.today}."
        )
    elif engine.is_offline:
        logger.warning("Backend unreachable, starting in offline mode")
        _stderr_print(
            "  Backend unreachable. Starting in offline mode with cached data."
        )
    else:
        _stderr_print("  Live bookings unavailable. Showing cached data.")

    if engine.outbox.pending:
        _stderr_print(
            f"  {len(engine.outbox.pending)} offline check-in(s) waiting to sync."
        )

    if start:
        engine.start()
    try:
        yield engine
    finally:
        await engine.stop()
        logger.info("Front desk sync shutting down")
