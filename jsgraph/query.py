"""Read-only queries over one loaded :class:`GraphStore`."""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Optional

from . import config
from .graph import GraphStore


class QueryEngine:
    """Stateless façade answering search and traversal queries."""

    def __init__(self, store: GraphStore) -> None:
        self.store = store

    def find_symbol(
        self,
        query: str,
        kind: Optional[str] = None,
        limit: int = config.SEARCH_RESULT_LIMIT,
    ) -> List[Dict[str, Any]]:
        hits = self.store.search_nodes(query, kind)
        return [hit.to_dict() for hit in hits[:limit]]

    def get_dependencies(self, symbol_id: str, depth: int = 1) -> List[Dict[str, Any]]:
        """Edges leaving *symbol_id* (what it uses)."""
        return [c.to_dict() for c in self.store.get_connections(symbol_id, "outgoing", depth)]

    def get_dependents(self, symbol_id: str, depth: int = 1) -> List[Dict[str, Any]]:
        """Edges entering *symbol_id* (what uses it)."""
        return [c.to_dict() for c in self.store.get_connections(symbol_id, "incoming", depth)]

    def get_call_graph(self, function_name: str, depth: int = 2) -> Dict[str, Dict[str, Any]]:
        """``calls`` edges around the first few functions matching *function_name*.

        Returns an empty dict when no function matches.
        """
        call_graph: Dict[str, Dict[str, Any]] = {}
        hits = self.store.search_nodes(function_name, "function")
        for hit in hits[: config.CALL_GRAPH_FUNCTION_LIMIT]:
            connections = self.store.get_connections(hit.node_id, "both", depth)
            call_graph[hit.node_id] = {
                "function": hit.to_dict(),
                "connections": [c.to_dict() for c in connections if c.edge_type == "calls"],
            }
        return call_graph

    def get_file_symbols(self, file: str) -> List[Dict[str, Any]]:
        symbols = []
        for node_id in self.store.file_node_ids(file):
            node = self.store.get_node(node_id)
            if node is not None:
                symbols.append({"id": node_id, **node.to_dict()})
        return sorted(symbols, key=lambda s: s["line"] or 0)

    def get_graph_stats(self) -> Dict[str, Any]:
        node_types = Counter(node.kind for _, node in self.store.iter_nodes())
        edge_types = Counter(edge.edge_type for edge in self.store.iter_edges())
        return {
            "total_nodes": self.store.node_count,
            "total_edges": self.store.edge_count,
            "file_count": len(self.store.files()),
            "node_types": dict(node_types),
            "edge_types": dict(edge_types),
        }
