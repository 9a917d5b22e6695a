"""Coordinates building, caching and querying one project graph at a time."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import CacheCorruptedError, GraphNotLoadedError
from .graph import GraphStore
from .parser import FactExtractor
from .query import QueryEngine
from .resolver import build_graph
from .storage import GraphCache

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class GraphOrchestrator:
    """Owns the current graph and exposes the analysis and query operations.

    Each instance holds its own store, so several projects can be loaded
    side by side in one process.
    """

    def __init__(
        self,
        cache: Optional[GraphCache] = None,
        extractor: Optional[FactExtractor] = None,
        max_file_size: Optional[int] = None,
    ) -> None:
        self.cache = cache or GraphCache()
        self.extractor = extractor
        self.max_file_size = max_file_size
        self.store: Optional[GraphStore] = None
        self.project_path: Optional[str] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def analyze(self, path: PathLike, force: bool = False) -> Dict[str, Any]:
        project_path = _project_key(path)

        if not force:
            try:
                cached = self.cache.load(project_path)
            except CacheCorruptedError as exc:
                logger.warning("%s; rebuilding", exc)
                cached = None
            if cached is not None:
                self._set_current(cached, project_path)
                return {
                    "success": True,
                    "message": "Project loaded from cache",
                    "cached": True,
                    "stats": _summary(cached),
                }

        store, stats = build_graph(
            Path(project_path),
            extractor=self.extractor,
            max_file_size=self.max_file_size,
        )
        self.cache.save(store, project_path)
        self._set_current(store, project_path)
        return {
            "success": True,
            "message": "Project analyzed and cached successfully",
            "cached": False,
            "stats": stats.to_dict(),
        }

    def load_cached(self, path: PathLike) -> Dict[str, Any]:
        project_path = _project_key(path)
        try:
            store = self.cache.load(project_path)
        except CacheCorruptedError as exc:
            logger.warning("%s", exc)
            return {"success": False, "message": f"Cached graph is corrupted: {exc.reason}"}
        if store is None:
            return {"success": False, "message": "No cached graph found for this project"}
        self._set_current(store, project_path)
        return {"success": True, "message": "Graph loaded from cache", "stats": _summary(store)}

    def clear_cache(self, path: Optional[PathLike] = None) -> Dict[str, Any]:
        if path is None:
            count = self.cache.delete_all()
            return {"success": True, "message": f"Cleared {count} cached graphs"}
        deleted = self.cache.delete(_project_key(path))
        return {
            "success": deleted,
            "message": "Cache cleared for project" if deleted else "No cache found for project",
        }

    def list_cached(self) -> Dict[str, Any]:
        graphs = self.cache.list()
        return {"count": len(graphs), "cached_graphs": graphs}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def query(self) -> QueryEngine:
        if self.store is None:
            raise GraphNotLoadedError("No graph loaded. Analyze or load a project first.")
        return QueryEngine(self.store)

    def find_symbol(self, query: str, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        return self.query.find_symbol(query, kind)

    def get_dependencies(self, symbol_id: str, depth: int = 1) -> List[Dict[str, Any]]:
        return self.query.get_dependencies(symbol_id, depth)

    def get_dependents(self, symbol_id: str, depth: int = 1) -> List[Dict[str, Any]]:
        return self.query.get_dependents(symbol_id, depth)

    def get_call_graph(self, function_name: str, depth: int = 2) -> Dict[str, Dict[str, Any]]:
        return self.query.get_call_graph(function_name, depth)

    def get_file_symbols(self, file: str) -> List[Dict[str, Any]]:
        return self.query.get_file_symbols(file)

    def get_graph_stats(self) -> Dict[str, Any]:
        return self.query.get_graph_stats()

    # ------------------------------------------------------------------

    def _set_current(self, store: GraphStore, project_path: str) -> None:
        self.store = store
        self.project_path = project_path


def _summary(store: GraphStore) -> Dict[str, Any]:
    return {
        "node_count": store.node_count,
        "edge_count": store.edge_count,
        "metadata": dict(store.metadata),
    }


def _project_key(path: PathLike) -> str:
    return str(Path(path).resolve())
