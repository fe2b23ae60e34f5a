"""Configuration for the front-desk sync engine.

Reads backend connection and timer settings from CLI args, environment
variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    FRONT_DESK_API_URL: Booking API base URL (required)
    FRONT_DESK_STATE_DIR: Directory for the outbox and snapshots
        (optional, default: .front_desk/state)
    FRONT_DESK_DRAIN_INTERVAL: Outbox drain tick in seconds (optional, default: 1.0)
    FRONT_DESK_POLL_INTERVAL: Connectivity poll in seconds (optional, default: 0.5)
    FRONT_DESK_FEED_INTERVAL: Live feed refresh in seconds (optional, default: 5.0)
    FRONT_DESK_TIMEOUT: HTTP request timeout in seconds (optional, default: 10.0)
    FRONT_DESK_INSECURE: Skip SSL verification (optional, default: false)
    FRONT_DESK_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = ".front_desk/state"


@dataclass
class Config:
    api_url: str
    state_dir: str = DEFAULT_STATE_DIR
    drain_interval: float = 1.0
    poll_interval: float = 0.5
    feed_interval: float = 5.0
    request_timeout: float = 10.0
    insecure: bool = False
    debug: bool = False


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If URL format is invalid or an interval is not positive.
    """
    # Normalize URL: strip whitespace
    config.api_url = config.api_url.strip()

    if not config.api_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid API URL '{config.api_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.api_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid API URL '{config.api_url}': URL must include a hostname"
        )

    # Strip trailing slash after validation (safe now that scheme/host are verified)
    config.api_url = config.api_url.removesuffix("/")

    if not config.state_dir.strip():
        raise ValueError(
            "State directory cannot be empty. Set FRONT_DESK_STATE_DIR environment variable."
        )

    for name in (
        "drain_interval",
        "poll_interval",
        "feed_interval",
        "request_timeout",
    ):
        if getattr(config, name) <= 0:
            raise ValueError(f"Invalid {name} {getattr(config, name)}: must be > 0")

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _get_float(
    env_key: str, fallbacks: dict, fb_key: str, default: float
) -> float:
    """Resolve a numeric setting: env > YAML > default."""
    raw = os.getenv(env_key)
    if raw is not None:
        try:
            value = float(raw)
        except ValueError:
            raise ValueError(
                f"Invalid {env_key} '{raw}': must be a positive number of seconds"
            ) from None
        if value <= 0:
            raise ValueError(
                f"Invalid {env_key} '{raw}': must be a positive number of seconds"
            )
        return value
    if fb_key in fallbacks:
        return float(fallbacks[fb_key])
    return default


def load_config(
    url: str | None = None,
    state_dir: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        url: Override API URL (takes precedence over env var and YAML).
        state_dir: Override state directory.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict of values from the YAML ``api`` and
            ``sync`` sections.  Used when CLI arg and env var are unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If the API URL is missing after checking all sources,
            or any value is invalid.
    """
    fb = yaml_fallbacks or {}

    # --- String fields: CLI > env > YAML > default ---

    api_url = url or os.getenv("FRONT_DESK_API_URL") or fb.get("url")
    if not api_url:
        raise ValueError(
            "API URL not found. Set FRONT_DESK_API_URL environment variable, "
            "pass --url CLI argument, or add 'api.url' to config.yml."
        )

    final_state_dir = (
        state_dir
        or os.getenv("FRONT_DESK_STATE_DIR")
        or fb.get("state_dir")
        or DEFAULT_STATE_DIR
    )

    # --- Boolean fields: CLI > env > YAML > default ---

    if insecure:
        final_insecure = True
    else:
        env_insecure = _get_bool_env("FRONT_DESK_INSECURE")
        if env_insecure is not None:
            final_insecure = env_insecure
        else:
            final_insecure = bool(fb.get("insecure", False))

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("FRONT_DESK_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    # --- Numeric fields: env > YAML > default ---

    config = Config(
        api_url=api_url,
        state_dir=final_state_dir,
        drain_interval=_get_float(
            "FRONT_DESK_DRAIN_INTERVAL", fb, "drain_interval", 1.0
        ),
        poll_interval=_get_float(
            "FRONT_DESK_POLL_INTERVAL", fb, "poll_interval", 0.5
        ),
        feed_interval=_get_float(
            "FRONT_DESK_FEED_INTERVAL", fb, "feed_interval", 5.0
        ),
        request_timeout=_get_float(
            "FRONT_DESK_TIMEOUT", fb, "timeout", 10.0
        ),
        insecure=final_insecure,
        debug=final_debug,
    )

    validate_config(config)

    return config
