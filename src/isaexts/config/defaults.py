"""Default configuration values and paths."""

from __future__ import annotations

from pathlib import Path

CONFIG_ENV_VAR = "ISAEXTS_CONFIG"

CONFIG_FILE_NAMES = [
    "isaexts.yaml",
    "isaexts.yml",
    ".isaexts.yaml",
    ".isaexts.yml",
]

CONFIG_SEARCH_PATHS = [
    Path.cwd(),
    Path.home() / ".config" / "isaexts",
    Path.home(),
]

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_BATCH_SIZE = 1
