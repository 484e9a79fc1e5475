"""Configuration paths for contractgraph settings."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("CONTRACTGRAPH_HOME", str(Path.home() / ".contractgraph"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
PROJECT_CONFIG_NAME = "contractgraph.toml"


def ensure_base_dirs() -> None:
    """Create the config directory if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
