"""Project configuration: ``.bakelint/config.yml`` with defaults."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING

import yaml

from bakelint.errors import ConfigError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_DIR = ".bakelint"
CONFIG_FILE = "config.yml"

# Category name -> folder beneath the source dir.
CATEGORY_FOLDERS: dict[str, str] = {
    "api": "api",
    "controller": "controller",
    "function": "function",
    "database": "database",
    "component": "component",
}


@dataclass(frozen=True)
class BakelintConfig:
    """Layout and guidance settings for one project."""

    source_dir: str = "src"
    guidance_dir: str = ".opencode/agent"
    docs_folders: tuple[str, ...] = ("docs", ".opencode", "one-off-scripts")
    api_router: str = "src/api-router.ts"
    log_file: str | None = None
    ignore_dirs: tuple[str, ...] = ("node_modules", ".git")

    def folder(self, category: str) -> str:
        """Return the project-relative folder of *category*, e.g. ``src/api``."""
        return f"{self.source_dir}/{CATEGORY_FOLDERS[category]}"

    def guidance(self, topic: str) -> str:
        """Return the trailing pointer appended to error texts."""
        return f"You might want to read {self.guidance_dir}/{topic}.md"


DEFAULT_CONFIG = BakelintConfig()

_STR_KEYS = frozenset({"source_dir", "guidance_dir", "api_router"})
_LIST_KEYS = frozenset({"docs_folders", "ignore_dirs"})


def load_config(project_root: Path) -> BakelintConfig:
    """Load ``.bakelint/config.yml`` from *project_root*.

    Falls back to defaults when the file is missing or unreadable.

    Raises
    ------
    ConfigError
        When the file parses but holds values of the wrong type.
    """
    config_path = project_root / CONFIG_DIR / CONFIG_FILE
    if not config_path.is_file():
        return DEFAULT_CONFIG

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using default configuration", config_path)
        return DEFAULT_CONFIG

    if data is None:
        return DEFAULT_CONFIG
    if not isinstance(data, dict):
        msg = f"{config_path}: expected a mapping at the top level"
        raise ConfigError(msg)

    known = {f.name for f in fields(BakelintConfig)}
    kwargs: dict[str, object] = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Unknown config key '%s' in %s", key, config_path)
            continue
        if key in _STR_KEYS:
            if not isinstance(value, str) or not value.strip():
                msg = f"{config_path}: '{key}' must be a non-empty string"
                raise ConfigError(msg)
            kwargs[key] = value.strip().strip("/")
        elif key in _LIST_KEYS:
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                msg = f"{config_path}: '{key}' must be a list of strings"
                raise ConfigError(msg)
            kwargs[key] = tuple(v.strip("/") for v in value)
        elif key == "log_file":
            if value is not None and not isinstance(value, str):
                msg = f"{config_path}: 'log_file' must be a string or null"
                raise ConfigError(msg)
            kwargs[key] = value

    return BakelintConfig(**kwargs)  # type: ignore[arg-type]
