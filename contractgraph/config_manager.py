"""TOML-backed settings for impact gating.

Settings live in the ``[impact]`` section of ``~/.contractgraph/config.toml``
and may be overridden per project by a ``contractgraph.toml`` in the working
directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from . import config

logger = logging.getLogger(__name__)

SECTION = "impact"

DEFAULT_SETTINGS: Dict[str, Any] = {
    "fail_on_breaking": True,
    "fail_on_changes": False,
}


def _read_toml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}


def load_full_config() -> Dict[str, Any]:
    """Load the entire global TOML config (all sections)."""
    return _read_toml(config.CONFIG_FILE)


def load_config(project_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Resolve settings: defaults, then global config, then project config."""
    settings = DEFAULT_SETTINGS.copy()
    settings.update(load_full_config().get(SECTION, {}))
    project_root = project_dir if project_dir is not None else Path.cwd()
    project_file = project_root / config.PROJECT_CONFIG_NAME
    settings.update(_read_toml(project_file).get(SECTION, {}))
    return settings


def save_config(**settings: Any) -> bool:
    """Persist impact settings to the global config, preserving other sections."""
    unknown = set(settings) - set(DEFAULT_SETTINGS)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
    full = load_full_config()
    section = full.setdefault(SECTION, {})
    section.update(settings)
    config.ensure_base_dirs()
    try:
        with open(config.CONFIG_FILE, "w", encoding="utf-8") as f:
            toml.dump(full, f)
    except OSError as exc:
        logger.warning("Could not write %s: %s", config.CONFIG_FILE, exc)
        return False
    return True
