"""
Config file discovery and merging.

blogsync reads YAML files from up to three places.  Later (more specific)
files replace whole top-level sections of earlier ones, so a project file
that sets ``site:`` drops every ``site`` key from the global file.
``${VAR}`` references are expanded once all files are merged, after
``.env`` has been loaded by the CLI.

Usage:
    from blogsync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV = "BLOGSYNC_CONFIG"
PROJECT_DIR = ".blogsync"
PROJECT_NAMES = ("config.yml", "config.yaml")
GLOBAL_PATH = Path(".config") / "blogsync" / "config.yml"

# ${NAME} or ${NAME:-fallback}
_REF = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<fallback>.*?))?\}")


class ConfigFileError(ValueError):
    """A config file could not be read or is not valid YAML."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"{path}: {reason}")


def interpolate_env_vars(value: str) -> str:
    """Expand ``${NAME}`` and ``${NAME:-fallback}`` from the environment.

    An unset or empty variable yields its fallback, or "" without one.
    An unterminated ``${`` is kept as written.
    """
    return _REF.sub(
        lambda m: os.environ.get(m["name"]) or (m["fallback"] or ""), value
    )


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {key: _interpolate_recursive(val) for key, val in obj.items()}
    if isinstance(obj, list):
        return list(map(_interpolate_recursive, obj))
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    return obj


def _candidates() -> list[Path]:
    found = []
    explicit = os.environ.get(CONFIG_ENV)
    if explicit:
        found.append(Path(explicit).expanduser().resolve())
    project = Path.cwd() / PROJECT_DIR
    found.extend(project / name for name in PROJECT_NAMES)
    found.append(Path.home() / GLOBAL_PATH)
    return found


def discover_config_files() -> list[Path]:
    """Return the config files that exist, most specific first.

    Order: ``$BLOGSYNC_CONFIG``, ``./.blogsync/config.yml``,
    ``./.blogsync/config.yaml``, ``~/.config/blogsync/config.yml``.
    """
    return [path for path in _candidates() if path.is_file()]


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse one config file; an empty file or a non-mapping root gives {}."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigFileError(path, exc.strerror or str(exc)) from exc
    except yaml.YAMLError as exc:
        raise ConfigFileError(path, f"invalid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "ignoring %s: top level is a %s, not a mapping",
            path,
            type(data).__name__,
        )
        return {}
    return data


def load_hierarchical_config() -> dict[str, Any]:
    """Merge every discovered config file into one raw mapping.

    Returns {} when there is no config file at all.

    Raises:
        ConfigFileError: a discovered file is unreadable or malformed.
    """
    merged: dict[str, Any] = {}
    for path in reversed(discover_config_files()):
        logger.debug("reading config %s", path)
        merged.update(read_config_file(path))
    return _interpolate_recursive(merged)
