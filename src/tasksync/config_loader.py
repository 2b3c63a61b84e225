"""
YAML config file discovery and merging for tasksync.

Several files may apply at once (explicit path, project, user). They are
merged top-level key by key, the more specific file winning, and then
``${VAR}`` references are expanded from the environment.

Usage:
    from tasksync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# ${NAME} or ${NAME:-fallback}
_ENV_REF = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Expand ``${NAME}`` and ``${NAME:-fallback}`` references in *value*.

    Unset or empty variables expand to the fallback, or to ``""`` when no
    fallback is given.
    """

    def _expand(match: re.Match) -> str:
        return os.environ.get(match.group(1)) or match.group(2) or ""

    return _ENV_REF.sub(_expand, value)


def _interpolate_recursive(obj: Any) -> Any:
    match obj:
        case str():
            return interpolate_env_vars(obj)
        case dict():
            return {key: _interpolate_recursive(val) for key, val in obj.items()}
        case list():
            return [_interpolate_recursive(item) for item in obj]
        case _:
            return obj


def discover_config_files() -> list[Path]:
    """Config files that exist, most specific first.

    Candidates, in order:
        1. the path in ``TASKSYNC_CONFIG``
        2. ``./.tasksync/config.yml``
        3. ``./.tasksync/config.yaml``
        4. ``~/.config/tasksync/config.yml``
    """
    project_dir = Path.cwd() / ".tasksync"
    candidates = [
        project_dir / "config.yml",
        project_dir / "config.yaml",
        Path.home() / ".config" / "tasksync" / "config.yml",
    ]

    explicit = os.environ.get("TASKSYNC_CONFIG")
    if explicit:
        candidates.insert(0, Path(explicit).expanduser().resolve())

    return [path for path in candidates if path.exists()]


def _load_yaml(path: Path) -> Any:
    with open(path, encoding="utf-8") as fh:
        return yaml.safe_load(fh)


def load_hierarchical_config() -> dict[str, Any]:
    """Read every discovered file and merge them into one dict.

    Returns ``{}`` when no file exists. A file whose root is not a mapping
    is skipped with a warning; a file that fails to parse raises.
    """
    paths = discover_config_files()
    if not paths:
        logger.debug("No config files found, using defaults")
        return {}

    merged: dict[str, Any] = {}
    # Least specific first so later updates win.
    for path in reversed(paths):
        logger.debug("Reading config file %s", path)
        try:
            data = _load_yaml(path)
        except Exception:
            logger.exception("Could not read config file %s", path)
            raise

        if data is None:
            continue
        if not isinstance(data, dict):
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )
            continue
        merged.update(data)

    return _interpolate_recursive(merged)
