"""Tests for GraphOrchestrator lifecycle and query delegation."""

from pathlib import Path

import pytest

from jsgraph.errors import GraphNotLoadedError
from jsgraph.orchestrator import GraphOrchestrator
from jsgraph.storage import GraphCache


@pytest.fixture
def orchestrator(temp_cache: GraphCache) -> GraphOrchestrator:
    return GraphOrchestrator(cache=temp_cache)


def test_analyze_builds_then_uses_cache(orchestrator: GraphOrchestrator, sample_project_path: Path):
    """Test that the first analyze builds and the second loads from cache."""
    first = orchestrator.analyze(sample_project_path)
    assert first["success"]
    assert first["cached"] is False
    assert first["message"] == "Project analyzed and cached successfully"
    assert first["stats"]["node_count"] == 8
    assert first["stats"]["edge_count"] == 8
    assert first["stats"]["file_count"] == 4

    second = GraphOrchestrator(cache=orchestrator.cache).analyze(sample_project_path)
    assert second["cached"] is True
    assert second["message"] == "Project loaded from cache"
    assert second["stats"]["node_count"] == 8
    assert second["stats"]["metadata"]["project_path"] == str(sample_project_path.resolve())


def test_force_rebuild_picks_up_changes(orchestrator: GraphOrchestrator, make_project):
    """Test that a stale cache is served until a forced rebuild."""
    root = make_project({"a.js": "function one(){}\n"})
    orchestrator.analyze(root)

    (root / "b.js").write_text("function two(){}\n", encoding="utf-8")
    stale = orchestrator.analyze(root)
    assert stale["cached"] is True
    assert stale["stats"]["node_count"] == 1

    fresh = orchestrator.analyze(root, force=True)
    assert fresh["cached"] is False
    assert fresh["stats"]["node_count"] == 2


def test_relative_and_absolute_paths_share_a_cache_entry(
    orchestrator: GraphOrchestrator, make_project, monkeypatch
):
    """Test that path spellings of one directory share an entry."""
    root = make_project({"a.js": "function one(){}\n"})
    orchestrator.analyze(root)

    monkeypatch.chdir(root.parent)
    result = orchestrator.analyze(Path(root.name))
    assert result["cached"] is True
    assert orchestrator.project_path == str(root.resolve())


def test_corrupted_cache_is_rebuilt(orchestrator: GraphOrchestrator, make_project):
    """Test that analyze rebuilds over a corrupted entry."""
    root = make_project({"a.js": "function one(){}\n"})
    entry = orchestrator.cache.entry_path(str(root.resolve()))
    entry.parent.mkdir(parents=True, exist_ok=True)
    entry.write_text("{broken", encoding="utf-8")

    result = orchestrator.analyze(root)

    assert result["success"]
    assert result["cached"] is False
    assert orchestrator.cache.load(str(root.resolve())).node_count == 1


def test_load_cached(orchestrator: GraphOrchestrator, make_project):
    """Test loading a cached graph, before and after it exists."""
    root = make_project({"a.js": "function one(){}\n"})
    missing = orchestrator.load_cached(root)
    assert missing == {"success": False, "message": "No cached graph found for this project"}

    GraphOrchestrator(cache=orchestrator.cache).analyze(root)
    loaded = orchestrator.load_cached(root)
    assert loaded["success"]
    assert loaded["stats"]["node_count"] == 1
    assert orchestrator.find_symbol("one")[0]["id"] == "a.js:one:1"


def test_load_cached_reports_corruption(orchestrator: GraphOrchestrator, make_project):
    """Test that load_cached reports a corrupted entry instead of raising."""
    root = make_project({"a.js": ""})
    entry = orchestrator.cache.entry_path(str(root.resolve()))
    entry.parent.mkdir(parents=True, exist_ok=True)
    entry.write_text("[]", encoding="utf-8")

    result = orchestrator.load_cached(root)

    assert result["success"] is False
    assert result["message"].startswith("Cached graph is corrupted")
    assert orchestrator.store is None


def test_load_cached_summary_describes_loaded_graph(orchestrator: GraphOrchestrator, sample_project_path: Path):
    """Test that the load summary reports the graph that was just loaded."""
    GraphOrchestrator(cache=orchestrator.cache).analyze(sample_project_path)

    result = orchestrator.load_cached(sample_project_path)

    assert result["stats"] == {
        "node_count": orchestrator.store.node_count,
        "edge_count": orchestrator.store.edge_count,
        "metadata": orchestrator.store.metadata,
    }
    assert result["stats"]["metadata"] is not orchestrator.store.metadata


def test_clear_cache_without_entry(orchestrator: GraphOrchestrator):
    """Test clearing a project that has nothing cached."""
    result = orchestrator.clear_cache("/x")
    assert result == {"success": False, "message": "No cache found for project"}


def test_clear_cache_for_project_and_all(orchestrator: GraphOrchestrator, make_project, sample_project_path):
    """Test clearing one project, then everything."""
    root = make_project({"a.js": "function one(){}\n"})
    orchestrator.analyze(root)
    orchestrator.analyze(sample_project_path)
    assert orchestrator.list_cached()["count"] == 2

    assert orchestrator.clear_cache(root) == {"success": True, "message": "Cache cleared for project"}
    assert orchestrator.list_cached()["count"] == 1

    assert orchestrator.clear_cache() == {"success": True, "message": "Cleared 1 cached graphs"}
    assert orchestrator.list_cached() == {"count": 0, "cached_graphs": []}


def test_queries_require_a_loaded_graph(orchestrator: GraphOrchestrator):
    """Test that queries fail before anything is loaded."""
    with pytest.raises(GraphNotLoadedError):
        orchestrator.find_symbol("x")
    with pytest.raises(GraphNotLoadedError):
        orchestrator.get_graph_stats()


def test_query_delegation(orchestrator: GraphOrchestrator, sample_project_path: Path):
    """Test that query methods reach the loaded graph."""
    orchestrator.analyze(sample_project_path)

    deps = orchestrator.get_dependencies("src/models/user.js:User:9")
    assert [d["to"] for d in deps] == ["src/models/user.js:Model:3"]

    dependents = orchestrator.get_dependents("src/app.ts:main:5")
    assert [d["from"] for d in dependents] == ["src/app.ts:11"]

    symbols = orchestrator.get_file_symbols("src/app.ts")
    assert [s["name"] for s in symbols] == ["main", "log"]

    assert "src/app.ts:main:5" in orchestrator.get_call_graph("main")
    assert orchestrator.get_graph_stats()["total_nodes"] == 8


def test_orchestrators_do_not_share_graphs(temp_cache: GraphCache, make_project, sample_project_path):
    """Test that two orchestrators keep separate graphs."""
    root = make_project({"a.js": "function one(){}\n"})
    first = GraphOrchestrator(cache=temp_cache)
    second = GraphOrchestrator(cache=temp_cache)

    first.analyze(root)
    second.analyze(sample_project_path)

    assert first.get_graph_stats()["total_nodes"] == 1
    assert second.get_graph_stats()["total_nodes"] == 8
    assert first.find_symbol("fetchUser") == []
