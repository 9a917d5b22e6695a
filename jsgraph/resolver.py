"""Heuristic cross-file linking of extracted facts into a :class:`GraphStore`.

Resolution is best effort: an import, call or ``extends`` clause whose
target cannot be found is silently left unlinked. Calls and ``extends``
link to *every* same-named declaration, so such edges mean "possible
target", not "the" target.
"""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from . import config
from .graph import GraphStore
from .models import (
    BuildStats,
    ClassNode,
    FileFacts,
    ImportFact,
    call_site_id,
    import_site_id,
)
from .parser import FactExtractor, JSFactExtractor, discover_files

logger = logging.getLogger(__name__)


class GraphResolver:
    """Builds a graph from the facts of every file in a project."""

    def __init__(self, file_facts: Dict[str, FileFacts]) -> None:
        self.file_facts = file_facts
        # (kind, name) -> node ids, in fact order
        self._by_kind_name: Dict[Tuple[str, str], List[str]] = {}

    def build(self, store: Optional[GraphStore] = None) -> GraphStore:
        store = store if store is not None else GraphStore()

        for facts in self.file_facts.values():
            for symbol in facts.symbols:
                store.add_node(symbol.node_id, symbol)
                self._by_kind_name.setdefault((symbol.kind, symbol.name), []).append(symbol.node_id)

        for file, facts in self.file_facts.items():
            for imp in facts.imports:
                self._link_import(store, file, imp)
            for call in facts.calls:
                for target in self._candidates(store, "function", call.name):
                    store.add_edge(call_site_id(file, call.line), target, "calls")
            for symbol in facts.symbols:
                if isinstance(symbol, ClassNode) and symbol.superclass:
                    for target in self._candidates(store, "class", symbol.superclass):
                        store.add_edge(symbol.node_id, target, "extends")

        return store

    def resolve_import_path(self, importer: str, source: str) -> Optional[str]:
        """Map a relative import source to a project file, or ``None``."""
        if not source.startswith("."):
            return None
        base = posixpath.normpath(posixpath.join(posixpath.dirname(importer), source))
        for suffix in config.IMPORT_RESOLUTION_SUFFIXES:
            candidate = base + suffix
            if candidate in self.file_facts:
                return candidate
        return None

    def _link_import(self, store: GraphStore, file: str, imp: ImportFact) -> None:
        target_file = self.resolve_import_path(file, imp.source)
        if target_file is None:
            return
        target = self.file_facts[target_file]
        default_match = imp.is_default and target.has_default_export
        for symbol in target.symbols:
            if symbol.name == imp.local or default_match:
                if store.has_node(symbol.node_id):
                    store.add_edge(import_site_id(file, imp.line), symbol.node_id, "imports")

    def _candidates(self, store: GraphStore, kind: str, name: str) -> List[str]:
        return [nid for nid in self._by_kind_name.get((kind, name), []) if store.has_node(nid)]


def collect_facts(
    project_root: Path,
    files: Sequence[str],
    extractor: FactExtractor,
    stats: BuildStats,
    max_file_size: int,
) -> Dict[str, FileFacts]:
    """Extract facts per file; oversized or failing files are skipped."""
    file_facts: Dict[str, FileFacts] = {}
    for rel_path in files:
        full_path = project_root / rel_path
        try:
            size = full_path.stat().st_size
            if size > max_file_size:
                logger.warning("Skipping %s: %d bytes exceeds maximum file size %d", rel_path, size, max_file_size)
                stats.skipped.append(rel_path)
                continue
            file_facts[rel_path] = extractor.extract_file(project_root, rel_path)
        except Exception as exc:
            logger.warning("Failed to extract facts from %s: %s", rel_path, exc)
            stats.errors[rel_path] = str(exc)
    return file_facts


def build_graph(
    project_root: Path,
    extractor: Optional[FactExtractor] = None,
    max_file_size: Optional[int] = None,
) -> Tuple[GraphStore, BuildStats]:
    """Discover, extract and resolve a whole project into a fresh store."""
    extractor = extractor or JSFactExtractor()
    limit = config.MAX_FILE_SIZE if max_file_size is None else max_file_size
    files = discover_files(project_root)
    stats = BuildStats(file_count=len(files))

    file_facts = collect_facts(project_root, files, extractor, stats, limit)
    store = GraphResolver(file_facts).build()
    store.metadata["project_path"] = str(project_root)

    stats.node_count = store.node_count
    stats.edge_count = store.edge_count
    logger.info(
        "Built graph for %s: %d nodes, %d edges, %d files (%d skipped, %d failed)",
        project_root, stats.node_count, stats.edge_count, stats.file_count,
        len(stats.skipped), len(stats.errors),
    )
    return store, stats
