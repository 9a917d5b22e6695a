"""jsgraph: code relationship graphs for JavaScript and TypeScript projects."""

__version__ = "0.1.0"
