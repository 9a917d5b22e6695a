"""Fact extraction for JavaScript / TypeScript sources using Tree-sitter.

Tree-sitter gives an error-tolerant concrete syntax tree, so a file with
broken syntax still yields whatever declarations can be recognised. The
extractor only reports file-local facts; linking across files is the
resolver's job.
"""

from __future__ import annotations

import importlib
import logging
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Optional

from tree_sitter import Language, Parser as TSParser

from . import config
from .errors import GrammarUnavailableError
from .models import (
    CallFact,
    ClassNode,
    ExportFact,
    FileFacts,
    FunctionNode,
    ImportFact,
    VariableNode,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Extension -> grammar mapping
# ---------------------------------------------------------------------------
LANGUAGE_MAP: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
}

# language -> (module, attribute returning the Language capsule)
_GRAMMAR_MODULES: Dict[str, tuple] = {
    "javascript": ("tree_sitter_javascript", "language"),
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
}

_FUNCTION_TYPES = {"function_declaration", "generator_function_declaration"}
_CLASS_TYPES = {"class_declaration", "abstract_class_declaration"}
_VARIABLE_TYPES = {"lexical_declaration", "variable_declaration"}
_FIELD_TYPES = {"field_definition", "public_field_definition"}


# ===================================================================
# File discovery
# ===================================================================

def discover_files(
    project_root: Path,
    extensions: Iterable[str] = config.SUPPORTED_EXTENSIONS,
    ignore_dirs: Iterable[str] = config.IGNORE_DIRS,
) -> List[str]:
    """Return sorted project-relative POSIX paths of analyzable files."""
    wanted = set(extensions)
    ignored = set(ignore_dirs)
    found: List[str] = []
    for path in project_root.rglob("*"):
        if path.suffix not in wanted or not path.is_file():
            continue
        rel = path.relative_to(project_root)
        if any(part in ignored for part in rel.parts[:-1]):
            continue
        # dotfiles and dot-directories are never analyzed
        if any(part.startswith(".") for part in rel.parts):
            continue
        found.append(rel.as_posix())
    return sorted(found)


# ===================================================================
# Abstract extractor interface
# ===================================================================

class FactExtractor(ABC):
    """Turns one file's text into :class:`FileFacts`."""

    @abstractmethod
    def extract(self, rel_path: str, source: str) -> FileFacts:
        """Extract facts from *source*; *rel_path* is recorded on every symbol."""
        ...

    def extract_file(self, project_root: Path, rel_path: str) -> FileFacts:
        source = (project_root / rel_path).read_text(encoding="utf-8", errors="ignore")
        return self.extract(rel_path, source)


# ===================================================================
# Tree-sitter extractor
# ===================================================================

class JSFactExtractor(FactExtractor):
    """Declarations, imports, exports and call sites from JS/TS files."""

    def __init__(self) -> None:
        self._parsers: Dict[str, TSParser] = {}

    def _parser_for(self, rel_path: str) -> TSParser:
        suffix = PurePosixPath(rel_path).suffix
        lang = LANGUAGE_MAP.get(suffix)
        if lang is None:
            raise GrammarUnavailableError(f"No grammar mapped for '{suffix}' files")
        if lang not in self._parsers:
            mod_name, attr = _GRAMMAR_MODULES[lang]
            try:
                mod = importlib.import_module(mod_name)
            except ImportError as exc:
                raise GrammarUnavailableError(
                    f"Grammar package '{mod_name}' is not installed. "
                    f"Install with: pip install {mod_name.replace('_', '-')}"
                ) from exc
            self._parsers[lang] = TSParser(Language(getattr(mod, attr)()))
            logger.debug("Loaded tree-sitter parser for %s", lang)
        return self._parsers[lang]

    def extract(self, rel_path: str, source: str) -> FileFacts:
        tree = self._parser_for(rel_path).parse(source.encode("utf-8"))
        facts = FileFacts()

        # Iterative pre-order walk; deeply nested sources would overflow recursion.
        stack: List[Any] = [tree.root_node]
        while stack:
            node = stack.pop()
            kind = node.type
            if kind in _FUNCTION_TYPES:
                self._function(node, rel_path, facts)
            elif kind in _CLASS_TYPES:
                self._class(node, rel_path, facts)
            elif kind in _VARIABLE_TYPES:
                self._variables(node, rel_path, facts)
            elif kind == "import_statement":
                self._imports(node, facts)
            elif kind == "export_statement":
                self._exports(node, facts)
            elif kind == "call_expression":
                self._call(node, facts)
            stack.extend(reversed(node.children))
        return facts

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    @staticmethod
    def _function(node: Any, rel_path: str, facts: FileFacts) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        params_node = node.child_by_field_name("parameters")
        params = [p.type for p in params_node.named_children if p.type != "comment"] if params_node else []
        facts.symbols.append(FunctionNode(
            name=_text(name_node),
            file=rel_path,
            line=_line(node),
            params=params,
            is_async=_has_token(node, "async"),
            is_generator=node.type == "generator_function_declaration",
        ))

    @staticmethod
    def _class(node: Any, rel_path: str, facts: FileFacts) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        methods: List[Dict[str, Any]] = []
        properties: List[Dict[str, Any]] = []
        body = node.child_by_field_name("body")
        for member in body.named_children if body is not None else []:
            if member.type == "method_definition":
                member_name = member.child_by_field_name("name")
                if member_name is None:
                    continue
                methods.append({
                    "name": _text(member_name),
                    "kind": _method_kind(member, _text(member_name)),
                    "static": _has_token(member, "static"),
                })
            elif member.type in _FIELD_TYPES:
                field_name = member.child_by_field_name("property") or member.child_by_field_name("name")
                if field_name is None:
                    continue
                properties.append({
                    "name": _text(field_name),
                    "static": _has_token(member, "static"),
                })
        facts.symbols.append(ClassNode(
            name=_text(name_node),
            file=rel_path,
            line=_line(node),
            superclass=_superclass_name(node),
            methods=methods,
            properties=properties,
        ))

    @staticmethod
    def _variables(node: Any, rel_path: str, facts: FileFacts) -> None:
        declaration = node.children[0].type if node.children else "var"
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                continue
            facts.symbols.append(VariableNode(
                name=_text(name_node),
                file=rel_path,
                line=_line(node),
                declaration=declaration,
            ))

    # ------------------------------------------------------------------
    # Module relations
    # ------------------------------------------------------------------

    @staticmethod
    def _imports(node: Any, facts: FileFacts) -> None:
        source_node = node.child_by_field_name("source")
        if source_node is None:
            return
        source = _string_value(source_node)
        line = _line(node)
        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        if clause is None:
            return
        for part in clause.named_children:
            if part.type == "identifier":
                facts.imports.append(ImportFact(source, "default", _text(part), line))
            elif part.type == "namespace_import":
                local = next((c for c in part.named_children if c.type == "identifier"), None)
                if local is not None:
                    facts.imports.append(ImportFact(source, "*", _text(local), line))
            elif part.type == "named_imports":
                for specifier in part.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    imported = specifier.child_by_field_name("name")
                    if imported is None:
                        continue
                    alias = specifier.child_by_field_name("alias")
                    imported_name = _string_value(imported) if imported.type == "string" else _text(imported)
                    local_name = _text(alias) if alias is not None else imported_name
                    facts.imports.append(ImportFact(source, imported_name, local_name, line))

    @staticmethod
    def _exports(node: Any, facts: FileFacts) -> None:
        line = _line(node)
        if _has_token(node, "default"):
            facts.exports.append(ExportFact(exported="default", line=line))
            return
        if node.child_by_field_name("declaration") is not None:
            return
        clause = next((c for c in node.named_children if c.type == "export_clause"), None)
        if clause is None:
            return
        for specifier in clause.named_children:
            if specifier.type != "export_specifier":
                continue
            local = specifier.child_by_field_name("name")
            if local is None:
                continue
            alias = specifier.child_by_field_name("alias")
            exported = alias if alias is not None else local
            facts.exports.append(ExportFact(exported=_text(exported), line=line, local=_text(local)))

    @staticmethod
    def _call(node: Any, facts: FileFacts) -> None:
        args = node.child_by_field_name("arguments")
        if args is None or args.type != "arguments":
            return  # tagged template literal
        callee = node.child_by_field_name("function")
        name = _callee_name(callee) if callee is not None else None
        if name is None:
            return
        count = sum(1 for a in args.named_children if a.type != "comment")
        facts.calls.append(CallFact(name=name, line=_line(node), arguments=count))


# ===================================================================
# Shared helpers
# ===================================================================

def _text(node: Any) -> str:
    return node.text.decode("utf-8")


def _line(node: Any) -> int:
    return node.start_point[0] + 1


def _has_token(node: Any, token: str) -> bool:
    return any(child.type == token for child in node.children)


def _string_value(node: Any) -> str:
    raw = _text(node)
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "'\"`":
        return raw[1:-1]
    return raw


def _method_kind(member: Any, name: str) -> str:
    if _has_token(member, "get"):
        return "get"
    if _has_token(member, "set"):
        return "set"
    if name == "constructor":
        return "constructor"
    return "method"


def _superclass_name(class_node: Any) -> Optional[str]:
    """Return the superclass name when it is a plain identifier."""
    heritage = next((c for c in class_node.named_children if c.type == "class_heritage"), None)
    if heritage is None:
        return None
    # TypeScript wraps the expression in an extends_clause
    extends = next((c for c in heritage.named_children if c.type == "extends_clause"), None)
    if extends is not None:
        target = extends.child_by_field_name("value")
    elif heritage.named_children and heritage.named_children[0].type != "implements_clause":
        target = heritage.named_children[0]
    else:
        target = None
    if target is None or target.type != "identifier":
        return None
    return _text(target)


def _callee_name(callee: Any) -> Optional[str]:
    """``foo`` for identifier callees, ``obj.prop`` for simple member callees."""
    if callee.type == "identifier":
        return _text(callee)
    if callee.type == "member_expression":
        obj = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        if obj is not None and prop is not None and obj.type == "identifier" and prop.type == "property_identifier":
            return f"{_text(obj)}.{_text(prop)}"
    return None
