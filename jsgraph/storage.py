"""Persistence layer for project graphs.

Each project graph is one JSON document ``graph_<md5>.json`` in the cache
directory. The hash is taken over the project *path* string, not the file
contents, so an entry goes stale when sources change; callers that need a
fresh graph rebuild with ``force=True``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import config
from .errors import CacheCorruptedError
from .graph import GraphStore
from .models import node_from_dict

logger = logging.getLogger(__name__)

ENTRY_PREFIX = "graph_"
ENTRY_SUFFIX = ".json"


def project_hash(project_path: str) -> str:
    return hashlib.md5(project_path.encode("utf-8")).hexdigest()


# ===================================================================
# Serialization
# ===================================================================

def graph_to_dict(store: GraphStore) -> Dict[str, Any]:
    return {
        "metadata": {
            "createdAt": store.metadata.get("created_at"),
            "updatedAt": store.metadata.get("updated_at"),
            "projectPath": store.metadata.get("project_path"),
        },
        "projectHash": store.project_hash,
        "nodes": [{"id": nid, **node.to_dict()} for nid, node in store.iter_nodes()],
        "edges": [edge.to_dict() for edge in store.iter_edges()],
        "fileIndex": [
            {"file": file, "nodeIds": store.file_node_ids(file)}
            for file in store.files()
        ],
    }


def graph_from_dict(payload: Dict[str, Any]) -> GraphStore:
    """Rebuild a store from :func:`graph_to_dict` output.

    Raises ``KeyError``/``TypeError``/``ValueError`` on malformed input;
    :class:`GraphCache` turns those into :class:`CacheCorruptedError`.
    """
    if not isinstance(payload, dict):
        raise TypeError("cache document must be a JSON object")
    store = GraphStore()
    meta = payload.get("metadata") or {}
    store.metadata = {
        "created_at": meta.get("createdAt"),
        "updated_at": meta.get("updatedAt"),
        "project_path": meta.get("projectPath"),
    }
    store.project_hash = payload.get("projectHash")

    for raw in payload.get("nodes") or []:
        store.add_node(raw["id"], node_from_dict(raw))
    for raw in payload.get("edges") or []:
        store.add_edge(raw["from"], raw["to"], raw["type"])
    for entry in payload.get("fileIndex") or []:
        store.set_file_index(entry["file"], list(entry["nodeIds"]))
    return store


# ===================================================================
# GraphCache
# ===================================================================

class GraphCache:
    """Save, load, delete and list cached project graphs."""

    def __init__(self, cache_dir: Optional[Path] = None) -> None:
        self.cache_dir = Path(cache_dir) if cache_dir is not None else config.CACHE_DIR

    def entry_path(self, project_path: str) -> Path:
        return self.cache_dir / f"{ENTRY_PREFIX}{project_hash(project_path)}{ENTRY_SUFFIX}"

    def save(self, store: GraphStore, project_path: str) -> Path:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        path = self.entry_path(project_path)

        store.project_hash = project_hash(project_path)
        store.metadata["project_path"] = project_path
        store.touch()

        path.write_text(json.dumps(graph_to_dict(store), indent=2), encoding="utf-8")
        logger.info("Graph saved to %s", path)
        return path

    def load(self, project_path: str) -> Optional[GraphStore]:
        """Return the cached store, ``None`` if there is no entry.

        Raises :class:`CacheCorruptedError` when the entry cannot be decoded.
        """
        path = self.entry_path(project_path)
        if not path.exists():
            logger.info("No cached graph found for %s", project_path)
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            store = graph_from_dict(payload)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CacheCorruptedError(str(path), str(exc)) from exc
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise CacheCorruptedError(str(path), f"malformed document ({exc!r})") from exc
        logger.info("Graph loaded from %s", path)
        return store

    def delete(self, project_path: str) -> bool:
        """Remove one entry. ``False`` means there was nothing to delete."""
        path = self.entry_path(project_path)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Graph deleted: %s", path)
        return True

    def delete_all(self) -> int:
        deleted = 0
        for path in self._entries():
            path.unlink()
            deleted += 1
        return deleted

    def list(self) -> List[Dict[str, Any]]:
        """Summaries of every readable entry; unreadable ones are skipped."""
        summaries: List[Dict[str, Any]] = []
        for path in self._entries():
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
                meta = payload.get("metadata") or {}
                summaries.append({
                    "file": path.name,
                    "project_path": meta.get("projectPath"),
                    "created_at": meta.get("createdAt"),
                    "updated_at": meta.get("updatedAt"),
                    "node_count": len(payload.get("nodes") or []),
                    "edge_count": len(payload.get("edges") or []),
                })
            except (OSError, ValueError, AttributeError, TypeError) as exc:
                logger.error("Error reading %s: %s", path.name, exc)
        return summaries

    def _entries(self) -> List[Path]:
        if not self.cache_dir.exists():
            return []
        return sorted(self.cache_dir.glob(f"{ENTRY_PREFIX}*{ENTRY_SUFFIX}"))


# ===================================================================
# ProjectState  (remembers the active project for the CLI)
# ===================================================================

class ProjectState:
    """Persist which project path the CLI is currently working on."""

    def __init__(self, state_file: Optional[Path] = None) -> None:
        self.state_file = Path(state_file) if state_file is not None else config.STATE_FILE

    def set_current_project(self, project_path: Optional[str]) -> None:
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        self.state_file.write_text(
            json.dumps({"current_project": project_path}, indent=2),
            encoding="utf-8",
        )

    def get_current_project(self) -> Optional[str]:
        if not self.state_file.exists():
            return None
        try:
            payload = json.loads(self.state_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return None
        return payload.get("current_project")

    def unload_project(self) -> None:
        self.set_current_project(None)
