"""Graph export helpers for DOT and simple standalone HTML outputs."""

from __future__ import annotations

from html import escape
from pathlib import Path
from typing import Dict, List

from .graph import GraphStore


def export_dot(store: GraphStore, output_file: Path, focus: str = "") -> None:
    selected = _focused_subgraph(store, focus)

    lines = ["digraph CodeGraph {"]
    lines.append("  rankdir=LR;")

    for node_id in selected["nodes"]:
        node = store.get_node(node_id)
        if node is None:
            lines.append(f'  "{_esc(node_id)}" [label="{_esc(node_id)}", shape=plaintext];')
            continue
        label = "\\n".join(_esc(part) for part in (node.kind, node.name, f"{node.file}:{node.line}"))
        lines.append(f'  "{_esc(node_id)}" [label="{label}"];')

    for edge in selected["edges"]:
        lines.append(
            f'  "{_esc(edge["from"])}" -> "{_esc(edge["to"])}" [label="{edge["type"]}"];'
        )

    lines.append("}")
    output_file.write_text("\n".join(lines), encoding="utf-8")


def export_html(store: GraphStore, output_file: Path, focus: str = "") -> None:
    """Export the graph as a self-contained HTML page listing nodes and edges."""
    selected = _focused_subgraph(store, focus)
    node_items = "\n".join(
        f"    <li><code>{escape(node_id)}</code> {escape(_html_label(store, node_id))}</li>"
        for node_id in selected["nodes"]
    )
    edge_items = "\n".join(
        f'    <li><code>{escape(e["from"])}</code> <em>{escape(e["type"])}</em> <code>{escape(e["to"])}</code></li>'
        for e in selected["edges"]
    )
    title = f"jsgraph: {focus}" if focus else "jsgraph"
    page = _HTML_PAGE.format(
        title=escape(title),
        node_count=len(selected["nodes"]),
        edge_count=len(selected["edges"]),
        node_items=node_items,
        edge_items=edge_items,
    )
    output_file.write_text(page, encoding="utf-8")


def _html_label(store: GraphStore, node_id: str) -> str:
    node = store.get_node(node_id)
    if node is None:
        return "(site)"
    return f"{node.kind} {node.name} at {node.file}:{node.line}"


_HTML_PAGE = """<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>{title}</title>
  <style>body {{ font-family: monospace; margin: 2em; }} em {{ color: #0a7; }}</style>
</head>
<body>
  <h1>{title}</h1>
  <h2>Nodes ({node_count})</h2>
  <ul>
{node_items}
  </ul>
  <h2>Edges ({edge_count})</h2>
  <ul>
{edge_items}
  </ul>
</body>
</html>
"""


def _focused_subgraph(store: GraphStore, focus: str) -> Dict[str, List]:
    """Whole graph, or the focus nodes plus their direct edges.

    Synthetic import/call sites appear as endpoints of kept edges.
    """
    edges = [edge.to_dict() for edge in store.iter_edges()]
    all_ids = [node_id for node_id, _ in store.iter_nodes()]

    focus_ids = set()
    if focus:
        focus_ids = {
            node_id
            for node_id, node in store.iter_nodes()
            if focus in node_id or focus in node.name
        }

    if not focus_ids:
        node_subset = dict.fromkeys(all_ids)
        for e in edges:
            node_subset.setdefault(e["from"], None)
            node_subset.setdefault(e["to"], None)
        return {"nodes": list(node_subset), "edges": edges}

    edge_subset = [e for e in edges if e["from"] in focus_ids or e["to"] in focus_ids]
    node_subset = set(focus_ids)
    for e in edge_subset:
        node_subset.add(e["from"])
        node_subset.add(e["to"])
    return {"nodes": sorted(node_subset), "edges": edge_subset}


def _esc(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')
