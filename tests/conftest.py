"""Pytest configuration and fixtures for jsgraph tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest

from jsgraph.graph import GraphStore
from jsgraph.models import ClassNode, FunctionNode, VariableNode
from jsgraph.storage import GraphCache


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample JS/TS test project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture(autouse=True)
def isolated_home(temp_dir: Path, monkeypatch) -> Path:
    """Point cache and state storage at a temporary home for every test."""
    home = temp_dir / "home"
    monkeypatch.setattr("jsgraph.config.BASE_DIR", home)
    monkeypatch.setattr("jsgraph.config.CACHE_DIR", home / "cache")
    monkeypatch.setattr("jsgraph.config.STATE_FILE", home / "state.json")
    return home


@pytest.fixture
def temp_cache(temp_dir: Path) -> GraphCache:
    """Create a GraphCache with temporary storage."""
    return GraphCache(temp_dir / "cache")


@pytest.fixture
def make_project(temp_dir: Path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{relative_path: source}`` into a fresh project directory."""

    def _make(files: Dict[str, str]) -> Path:
        root = temp_dir / "project"
        for rel_path, source in files.items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(source, encoding="utf-8")
        root.mkdir(parents=True, exist_ok=True)
        return root

    return _make


@pytest.fixture
def small_store() -> GraphStore:
    """A hand-built store: a.js helper/run, b.js Base/Child/config."""
    store = GraphStore()
    nodes = [
        FunctionNode(name="helper", file="a.js", line=1, params=["identifier"]),
        FunctionNode(name="run", file="a.js", line=5),
        ClassNode(name="Base", file="b.js", line=1),
        ClassNode(name="Child", file="b.js", line=3, superclass="Base"),
        VariableNode(name="config", file="b.js", line=10, declaration="const"),
    ]
    for node in nodes:
        store.add_node(node.node_id, node)
    store.add_edge("a.js:6", "a.js:helper:1", "calls")
    store.add_edge("b.js:Child:3", "b.js:Base:1", "extends")
    store.add_edge("b.js:import:1", "a.js:run:5", "imports")
    return store
