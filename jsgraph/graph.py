"""In-memory code relationship graph.

Edges live once in an arena list; the forward and reverse indexes hold
arena positions and are only ever updated together by :meth:`add_edge`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from .models import DIRECTIONS, Connection, Edge, Node, SearchHit


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class GraphStore:
    """Nodes, typed directed edges, reverse index and per-file index."""

    def __init__(self) -> None:
        self._nodes: Dict[str, Node] = {}
        self._edges: List[Edge] = []
        self._outgoing: Dict[str, List[int]] = {}
        self._incoming: Dict[str, List[int]] = {}
        # dict keys double as an insertion-ordered set
        self._file_index: Dict[str, Dict[str, None]] = {}
        created = _now()
        self.metadata: Dict[str, Any] = {
            "created_at": created,
            "updated_at": created,
            "project_path": None,
        }
        self.project_hash: Optional[str] = None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_node(self, node_id: str, node: Node) -> None:
        """Insert or overwrite the node at *node_id* (last write wins)."""
        self._nodes[node_id] = node
        self._outgoing.setdefault(node_id, [])
        self._incoming.setdefault(node_id, [])
        self._file_index.setdefault(node.file, {})[node_id] = None

    def add_edge(self, src: str, dst: str, edge_type: str) -> Edge:
        """Append an edge. Endpoints are not validated."""
        edge = Edge(src=src, dst=dst, edge_type=edge_type)
        position = len(self._edges)
        self._edges.append(edge)
        self._outgoing.setdefault(src, []).append(position)
        self._incoming.setdefault(dst, []).append(position)
        return edge

    def set_file_index(self, file: str, node_ids: List[str]) -> None:
        """Replace the file index entry for *file* (used when loading)."""
        self._file_index[file] = dict.fromkeys(node_ids)

    def touch(self) -> None:
        self.metadata["updated_at"] = _now()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def iter_nodes(self) -> Iterator[tuple]:
        """Yield ``(node_id, node)`` pairs in insertion order."""
        return iter(self._nodes.items())

    def iter_edges(self) -> Iterator[Edge]:
        """Yield edges grouped by source, in the order sources first appeared."""
        for positions in self._outgoing.values():
            for position in positions:
                yield self._edges[position]

    def outgoing(self, node_id: str) -> List[Edge]:
        return [self._edges[p] for p in self._outgoing.get(node_id, [])]

    def incoming(self, node_id: str) -> List[Edge]:
        return [self._edges[p] for p in self._incoming.get(node_id, [])]

    def file_node_ids(self, file: str) -> List[str]:
        return list(self._file_index.get(file, {}))

    def files(self) -> List[str]:
        return list(self._file_index)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    # ------------------------------------------------------------------
    # Traversal and search
    # ------------------------------------------------------------------

    def get_connections(
        self,
        node_id: str,
        direction: str = "both",
        depth: int = 1,
    ) -> List[Connection]:
        """Collect edges reachable from *node_id* within *depth* hops.

        Depth-first; each node is expanded at most once per call, so cycles
        terminate. ``depth=0`` returns no edges.
        """
        if direction not in DIRECTIONS:
            raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")

        result: List[Connection] = []
        if depth <= 0:
            return result

        follow_out = direction in ("outgoing", "both")
        follow_in = direction in ("incoming", "both")
        visited: Set[str] = {node_id}
        # explicit stack of (pending steps, hops); long chains would overflow recursion
        stack = [(self._steps(node_id, follow_out, follow_in), 0)]
        while stack:
            steps, hops = stack[-1]
            step = next(steps, None)
            if step is None:
                stack.pop()
                continue
            edge, neighbor = step
            result.append(self._connection(edge))
            if hops + 1 < depth and neighbor not in visited:
                visited.add(neighbor)
                stack.append((self._steps(neighbor, follow_out, follow_in), hops + 1))
        return result

    def _steps(self, node_id: str, follow_out: bool, follow_in: bool) -> Iterator[Tuple[Edge, str]]:
        """Yield ``(edge, neighbor)`` for *node_id*: outgoing edges first, then incoming."""
        if follow_out:
            for position in self._outgoing.get(node_id, []):
                edge = self._edges[position]
                yield edge, edge.dst
        if follow_in:
            for position in self._incoming.get(node_id, []):
                edge = self._edges[position]
                yield edge, edge.src

    def search_nodes(self, query: str, kind: Optional[str] = None) -> List[SearchHit]:
        """Case-insensitive substring search over node names and file paths.

        Name matches score 2, file-only matches score 1. Ties keep insertion
        order.
        """
        needle = query.lower()
        hits: List[SearchHit] = []
        for node_id, node in self._nodes.items():
            if kind and node.kind != kind:
                continue
            name_match = needle in node.name.lower()
            file_match = needle in node.file.lower()
            if name_match or file_match:
                hits.append(SearchHit(node_id=node_id, node=node, score=2 if name_match else 1))
        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits

    def _connection(self, edge: Edge) -> Connection:
        return Connection(
            from_id=edge.src,
            to_id=edge.dst,
            edge_type=edge.edge_type,
            from_node=self._nodes.get(edge.src),
            to_node=self._nodes.get(edge.dst),
        )
