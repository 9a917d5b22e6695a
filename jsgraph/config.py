"""Configuration paths and limits for jsgraph.

Values come from the environment first, then the ``[graph]`` section of
``<JSGRAPH_HOME>/config.toml``, then built-in defaults.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict

from .config_manager import load_graph_config

logger = logging.getLogger(__name__)

BASE_DIR = Path(os.environ.get("JSGRAPH_HOME", str(Path.home() / ".jsgraph"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
STATE_FILE = BASE_DIR / "state.json"

DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024

SUPPORTED_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".mjs")
IGNORE_DIRS = frozenset({"node_modules", ".git", "dist", "build", ".next", "coverage"})

# Order in which a relative import source is tried against the project files.
IMPORT_RESOLUTION_SUFFIXES = (".js", ".ts", ".jsx", ".tsx", "/index.js", "/index.ts")

SEARCH_RESULT_LIMIT = 50
CALL_GRAPH_FUNCTION_LIMIT = 5

_graph_config: Dict[str, Any] = load_graph_config(CONFIG_FILE)


def _int_setting(env_name: str, key: str, default: int) -> int:
    raw = os.environ.get(env_name, _graph_config.get(key, default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid %s value %r, using %d", env_name, raw, default)
        return default


CACHE_DIR = Path(
    os.environ.get("JSGRAPH_CACHE_DIR", _graph_config.get("cache_dir", str(BASE_DIR / "cache")))
).expanduser()
MAX_FILE_SIZE = _int_setting("JSGRAPH_MAX_FILE_SIZE", "max_file_size", DEFAULT_MAX_FILE_SIZE)

