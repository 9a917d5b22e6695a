"""Tests for the QueryEngine."""

from jsgraph.graph import GraphStore
from jsgraph.models import FunctionNode, VariableNode
from jsgraph.query import QueryEngine
from jsgraph.resolver import build_graph


def test_find_symbol_returns_scored_dicts(small_store: GraphStore):
    """Test that results carry the node id, fields and score."""
    results = QueryEngine(small_store).find_symbol("run")
    assert results == [{
        "id": "a.js:run:5",
        "kind": "function",
        "name": "run",
        "file": "a.js",
        "line": 5,
        "params": [],
        "is_async": False,
        "is_generator": False,
        "score": 2,
    }]


def test_find_symbol_caps_results():
    """Test that results are capped at 50 by default."""
    store = GraphStore()
    for i in range(60):
        node = VariableNode(name=f"item{i}", file="big.js", line=i + 1)
        store.add_node(node.node_id, node)

    engine = QueryEngine(store)
    assert len(engine.find_symbol("item")) == 50
    assert len(engine.find_symbol("item", limit=10)) == 10
    assert engine.find_symbol("item")[0]["name"] == "item0"


def test_find_symbol_kind_filter(small_store: GraphStore):
    """Test filtering by node kind."""
    results = QueryEngine(small_store).find_symbol("", kind="variable")
    assert [r["name"] for r in results] == ["config"]


def test_dependencies_and_dependents(small_store: GraphStore):
    """Test outgoing and incoming one-hop lookups."""
    engine = QueryEngine(small_store)

    deps = engine.get_dependencies("b.js:Child:3")
    assert [(d["from"], d["to"], d["type"]) for d in deps] == [("b.js:Child:3", "b.js:Base:1", "extends")]
    assert deps[0]["to_data"]["name"] == "Base"

    dependents = engine.get_dependents("a.js:run:5")
    assert [(d["from"], d["type"]) for d in dependents] == [("b.js:import:1", "imports")]
    assert dependents[0]["from_data"] is None


def test_dependencies_of_unknown_symbol(small_store: GraphStore):
    """Test lookups for an id that is not in the graph."""
    assert QueryEngine(small_store).get_dependencies("nope:x:1", depth=3) == []


def test_call_graph_keeps_only_call_edges(sample_project_path):
    """Test that the call graph drops non-call edges."""
    store, _ = build_graph(sample_project_path)
    graph = QueryEngine(store).get_call_graph("fetchUser", depth=1)

    assert list(graph) == ["src/utils.js:fetchUser:7"]
    entry = graph["src/utils.js:fetchUser:7"]
    assert entry["function"]["name"] == "fetchUser"
    # the imports edge into fetchUser is filtered out
    assert [(c["from"], c["type"]) for c in entry["connections"]] == [("src/app.ts:7", "calls")]


def test_call_graph_limits_matched_functions():
    """Test that at most five functions are expanded."""
    store = GraphStore()
    for i in range(8):
        node = FunctionNode(name=f"handler{i}", file="h.js", line=i + 1)
        store.add_node(node.node_id, node)

    graph = QueryEngine(store).get_call_graph("handler")

    assert list(graph) == [f"h.js:handler{i}:{i + 1}" for i in range(5)]
    assert all(entry["connections"] == [] for entry in graph.values())


def test_call_graph_ignores_non_functions(small_store: GraphStore):
    """Test that classes and variables never match."""
    assert QueryEngine(small_store).get_call_graph("config") == {}
    assert QueryEngine(small_store).get_call_graph("Base") == {}


def test_file_symbols_sorted_by_line(make_project):
    """Test that file symbols come back in line order."""
    root = make_project({"m.js": "function b(){}\nfunction a(){}\nclass C{}\n"})
    store, _ = build_graph(root)

    symbols = QueryEngine(store).get_file_symbols("m.js")

    assert [(s["name"], s["line"]) for s in symbols] == [("b", 1), ("a", 2), ("C", 3)]
    assert symbols[2]["id"] == "m.js:C:3"
    assert symbols[2]["kind"] == "class"


def test_file_symbols_unknown_file(small_store: GraphStore):
    """Test file symbols for a file with no declarations."""
    assert QueryEngine(small_store).get_file_symbols("missing.js") == []


def test_graph_stats(sample_project_path):
    """Test per-kind and per-type counts for the sample project."""
    store, _ = build_graph(sample_project_path)
    stats = QueryEngine(store).get_graph_stats()

    assert stats["total_nodes"] == 8
    assert stats["total_edges"] == 8
    assert stats["file_count"] == 4
    assert stats["node_types"] == {"function": 3, "class": 3, "variable": 2}
    assert stats["edge_types"] == {"imports": 4, "calls": 3, "extends": 1}


def test_graph_stats_empty_store():
    """Test stats of an empty graph."""
    stats = QueryEngine(GraphStore()).get_graph_stats()
    assert stats == {
        "total_nodes": 0,
        "total_edges": 0,
        "file_count": 0,
        "node_types": {},
        "edge_types": {},
    }
