"""Exception types raised by the graph engine."""

from __future__ import annotations


class JSGraphError(Exception):
    """Base class for every error raised by jsgraph."""


class CacheCorruptedError(JSGraphError):
    """A cache entry exists but cannot be decoded into a graph."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Corrupted graph cache {path}: {reason}")
        self.path = path
        self.reason = reason


class GraphNotLoadedError(JSGraphError):
    """A query was issued before any graph was analyzed or loaded."""


class GrammarUnavailableError(JSGraphError):
    """No tree-sitter grammar could be loaded for a file type."""
