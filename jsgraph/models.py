"""Core data models shared by extraction, resolution, storage and queries."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Dict, List, Optional

NODE_KINDS = ("function", "class", "variable")
EDGE_TYPES = ("imports", "calls", "extends")
DIRECTIONS = ("outgoing", "incoming", "both")


def node_id(file: str, name: str, line: int) -> str:
    return f"{file}:{name}:{line}"


def import_site_id(file: str, line: int) -> str:
    return f"{file}:import:{line}"


def call_site_id(file: str, line: int) -> str:
    return f"{file}:{line}"


# ===================================================================
# Nodes
# ===================================================================

@dataclass
class Node:
    """A declared symbol. Concrete kinds subclass this."""

    kind: ClassVar[str] = ""

    name: str
    file: str
    line: int

    @property
    def node_id(self) -> str:
        return node_id(self.file, self.name, self.line)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind}
        payload.update(asdict(self))
        return payload


@dataclass
class FunctionNode(Node):
    kind: ClassVar[str] = "function"

    params: List[str] = field(default_factory=list)
    is_async: bool = False
    is_generator: bool = False

    @property
    def param_count(self) -> int:
        return len(self.params)


@dataclass
class ClassNode(Node):
    kind: ClassVar[str] = "class"

    superclass: Optional[str] = None
    methods: List[Dict[str, Any]] = field(default_factory=list)
    properties: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class VariableNode(Node):
    kind: ClassVar[str] = "variable"

    declaration: str = "var"


NODE_TYPES: Dict[str, type] = {
    FunctionNode.kind: FunctionNode,
    ClassNode.kind: ClassNode,
    VariableNode.kind: VariableNode,
}


def node_from_dict(payload: Dict[str, Any]) -> Node:
    """Rebuild a node from :meth:`Node.to_dict` output.

    Raises ``KeyError`` for an unknown kind and ``TypeError`` for
    unexpected or missing fields.
    """
    data = dict(payload)
    data.pop("id", None)
    kind = data.pop("kind")
    cls = NODE_TYPES[kind]
    return cls(**data)


# ===================================================================
# Edges
# ===================================================================

@dataclass(frozen=True)
class Edge:
    src: str
    dst: str
    edge_type: str

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.src, "to": self.dst, "type": self.edge_type}


@dataclass
class Connection:
    """One edge reached during a traversal, with both endpoints' data."""

    from_id: str
    to_id: str
    edge_type: str
    from_node: Optional[Node]
    to_node: Optional[Node]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_id,
            "to": self.to_id,
            "type": self.edge_type,
            "from_data": self.from_node.to_dict() if self.from_node else None,
            "to_data": self.to_node.to_dict() if self.to_node else None,
        }


@dataclass
class SearchHit:
    node_id: str
    node: Node
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.node_id, **self.node.to_dict(), "score": self.score}


# ===================================================================
# Facts produced by the extractor
# ===================================================================

@dataclass
class ImportFact:
    source: str
    imported: str
    local: str
    line: int

    @property
    def is_default(self) -> bool:
        return self.imported == "default"


@dataclass
class ExportFact:
    exported: str
    line: int
    local: Optional[str] = None


@dataclass
class CallFact:
    name: str
    line: int
    arguments: int = 0


@dataclass
class FileFacts:
    """Everything the extractor observed in one file, not yet linked."""

    symbols: List[Node] = field(default_factory=list)
    imports: List[ImportFact] = field(default_factory=list)
    exports: List[ExportFact] = field(default_factory=list)
    calls: List[CallFact] = field(default_factory=list)

    @property
    def has_default_export(self) -> bool:
        return any(exp.exported == "default" for exp in self.exports)


# ===================================================================
# Build results
# ===================================================================

@dataclass
class BuildStats:
    node_count: int = 0
    edge_count: int = 0
    file_count: int = 0
    skipped: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
