"""
Hierarchical YAML configuration loader for front_desk_sync.

Finds config files by convention, expands ``${VAR}`` references, resolves
``!include`` directives and merges the files so the project-level file wins.

Usage:
    from front_desk_sync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FRONT_DESK_CONFIG"

# ${VAR} or ${VAR:-fallback}
_ENV_REF = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


# ---------------------------------------------------------------------------
# Env var expansion
# ---------------------------------------------------------------------------


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-fallback}`` references in *value*.

    An unset or empty variable expands to its fallback, or to ``""`` when
    no fallback is given.  A ``${`` without a closing brace is kept as is.
    """

    def _expand(match: re.Match) -> str:
        current = os.environ.get(match.group(1))
        if current:
            return current
        fallback = match.group(2)
        return fallback if fallback is not None else ""

    return _ENV_REF.sub(_expand, value)


def _expand_tree(node: Any) -> Any:
    """Apply ``interpolate_env_vars`` to every string in a nested structure."""
    if isinstance(node, str):
        return interpolate_env_vars(node)
    if isinstance(node, list):
        return [_expand_tree(item) for item in node]
    if isinstance(node, dict):
        return {key: _expand_tree(item) for key, item in node.items()}
    return node


# ---------------------------------------------------------------------------
# YAML loading with !include
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader subclass that understands ``!include other.yml``.

    A dedicated subclass keeps the global ``yaml.SafeLoader`` untouched.
    The chain of files being loaded is carried on the loader instance so
    circular includes are reported instead of recursing forever.
    """


def _include(loader: ConfigLoader, node: yaml.ScalarNode) -> Any:
    raw_path: str = loader.construct_scalar(node)
    target = Path(raw_path)
    if not target.is_absolute():
        target = Path(loader.name).resolve().parent / target
    target = target.resolve()

    chain: list[Path] = getattr(loader, "_include_stack", [])
    if target in chain:
        cycle = " -> ".join(str(p) for p in [*chain, target])
        raise ValueError(f"Circular include detected: {cycle}")
    if not target.exists():
        raise FileNotFoundError(
            f"Include file not found: {target} "
            f"(referenced from {Path(loader.name).resolve()})"
        )
    return _load_yaml(target, chain=[*chain, target])


ConfigLoader.add_constructor("!include", _include)


def _load_yaml(path: Path, *, chain: list[Path] | None = None) -> Any:
    """Parse one YAML file with ``ConfigLoader``."""
    path = path.resolve()
    with open(path, "r", encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader._include_stack = chain or [path]  # type: ignore[attr-defined]
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# File discovery
# ---------------------------------------------------------------------------


def discover_config_files() -> list[Path]:
    """Return the config files that exist, highest precedence first.

    Candidates:
        1. The path named by ``FRONT_DESK_CONFIG``.
        2. ``.front_desk/config.yml`` in the working directory.
        3. ``~/.config/front_desk/config.yml``.
    """
    candidates: list[Path] = []

    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())

    candidates.append(Path.cwd() / ".front_desk" / "config.yml")
    candidates.append(Path.home() / ".config" / "front_desk" / "config.yml")

    return [p for p in candidates if p.exists()]


_STARTER_CONFIG = """\
# front-desk-sync configuration
#
# Every value can also come from the environment:
#   FRONT_DESK_API_URL, FRONT_DESK_STATE_DIR, FRONT_DESK_DRAIN_INTERVAL,
#   FRONT_DESK_POLL_INTERVAL, FRONT_DESK_FEED_INTERVAL, FRONT_DESK_TIMEOUT
#
# api:
#   url: http://localhost:3000
#   timeout: 10
#
# sync:
#   state_dir: .front_desk/state
#   drain_interval: 1.0
#   poll_interval: 0.5
#   feed_interval: 5.0
#
# logging:
#   level: INFO
#   file: null
"""


def ensure_config(target: Path | None = None) -> Path:
    """Return the active config file, writing a commented starter if none exists.

    Args:
        target: Where to create the starter file.  Defaults to
            ``.front_desk/config.yml`` in the working directory.

    Returns:
        Path to the existing or newly created config file.
    """
    existing = discover_config_files()
    if existing:
        logger.debug("Config file already exists: %s", existing[0])
        return existing[0]

    config_path = target or Path.cwd() / ".front_desk" / "config.yml"
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", config_path)
    return config_path


# ---------------------------------------------------------------------------
# Hierarchical merge
# ---------------------------------------------------------------------------


def load_hierarchical_config() -> dict[str, Any]:
    """Load every discovered config file and merge them.

    Files are applied from lowest to highest precedence; each file's
    top-level sections replace the same sections from earlier files.
    Env var references are expanded after the merge.

    Returns an empty dict when no config file exists (zero-config).
    """
    paths = discover_config_files()
    if not paths:
        logger.debug("No config files found, using zero-config defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = _load_yaml(path)
        except Exception:
            logger.exception("Failed to load config file %s", path)
            raise

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )

    return _expand_tree(merged)
