"""TOML configuration file support for jsgraph."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import toml

logger = logging.getLogger(__name__)

GRAPH_SECTION = "graph"


def load_full_config(config_file: Path) -> Dict[str, Any]:
    """Load the entire TOML config (all sections).

    A missing file yields an empty dict. An unparsable file is logged and
    ignored so that defaults still apply.
    """
    if not config_file.exists():
        return {}
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", config_file, exc)
        return {}


def load_graph_config(config_file: Path) -> Dict[str, Any]:
    """Return the ``[graph]`` section, or an empty dict."""
    section = load_full_config(config_file).get(GRAPH_SECTION, {})
    if not isinstance(section, dict):
        logger.warning("Section [%s] in %s is not a table", GRAPH_SECTION, config_file)
        return {}
    return section

