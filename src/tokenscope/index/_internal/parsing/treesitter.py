"""Tree-sitter parsing for token extraction and position lookups.

Tree-sitter is error tolerant: invalid input still produces a tree in which
the broken region is wrapped in ERROR/MISSING nodes, so intact regions can
still be visited.

Tree-sitter reports columns as byte offsets. ``ParseResult`` converts
between byte columns and character columns so callers deal only in
editor-style (line, character) positions.
"""

from __future__ import annotations

import importlib
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tree_sitter

from tokenscope.core.formats import grammar_for_path
from tokenscope.index.models import Position

# grammar name -> (module, language function)
GRAMMAR_MODULES: dict[str, tuple[str, str]] = {
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
    "json": ("tree_sitter_json", "language"),
}

_languages: dict[str, Any] = {}
_languages_lock = threading.Lock()


def get_language(grammar: str) -> Any:
    """Get or load a tree-sitter Language (cached, thread-safe)."""
    with _languages_lock:
        if grammar in _languages:
            return _languages[grammar]
        spec = GRAMMAR_MODULES.get(grammar)
        if spec is None:
            raise ValueError(f"Language not available: {grammar}")
        module_name, func_name = spec
        try:
            mod = importlib.import_module(module_name)
            lang = tree_sitter.Language(getattr(mod, func_name)())
        except (ImportError, AttributeError) as err:
            raise ValueError(f"Language not available: {grammar}") from err
        _languages[grammar] = lang
        return lang


@dataclass
class ParseResult:
    """Result of parsing a document."""

    tree: Any  # tree-sitter Tree
    grammar: str
    source: bytes
    error_count: int
    total_nodes: int
    _lines: list[bytes] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self._lines = self.source.split(b"\n")

    @property
    def root_node(self) -> Any:
        return self.tree.root_node

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    def position_of(self, node: Any) -> Position:
        """Start of a node as a (line, character) position."""
        row, byte_col = node.start_point
        return Position(row, self._char_column(row, byte_col))

    def byte_point(self, line: int, character: int) -> tuple[int, int]:
        """Convert an editor position to a tree-sitter (row, byte column) point."""
        if line < 0 or line >= len(self._lines):
            return (max(line, 0), 0)
        text = self._lines[line].decode("utf-8", errors="replace")
        return (line, len(text[:character].encode("utf-8")))

    def _char_column(self, row: int, byte_col: int) -> int:
        if row >= len(self._lines):
            return byte_col
        return len(self._lines[row][:byte_col].decode("utf-8", errors="replace"))

    def node_at(self, line: int, character: int) -> Any:
        """Smallest named node covering the position."""
        point = self.byte_point(line, character)
        return self.root_node.named_descendant_for_point_range(point, point)


def node_text(node: Any) -> str:
    """Exact source text of a node."""
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def walk(node: Any) -> Iterator[Any]:
    """Pre-order traversal over all named descendants (including node)."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.named_children))


def _count_nodes(root: Any) -> tuple[int, int]:
    error_count = 0
    total_nodes = 0
    stack = [root]
    while stack:
        node = stack.pop()
        total_nodes += 1
        if node.type == "ERROR" or node.is_missing:
            error_count += 1
        stack.extend(node.children)
    return error_count, total_nodes


@dataclass
class TreeSitterParser:
    """
    Tree-sitter parser for token extraction.

    One instance per thread: the underlying ``tree_sitter.Parser`` is
    stateful. Language objects are shared.

    Usage::

        parser = TreeSitterParser()
        result = parser.parse(Path("src/theme.tsx"), content)
        for node in walk(result.root_node):
            ...
    """

    _parser: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self._parser = tree_sitter.Parser()

    def parse(
        self, path: Path, content: bytes | None = None, *, fallback: str | None = None
    ) -> ParseResult:
        """
        Parse a file with Tree-sitter.

        Args:
            path: Path to file (used for grammar detection)
            content: File content as bytes. If None, reads from path.
            fallback: Grammar for extensions configured into a format
                that have no grammar of their own (e.g. ".vue").

        Returns:
            ParseResult with tree, grammar, and error info.
        """
        grammar = grammar_for_path(path) or fallback
        if grammar is None:
            raise ValueError(f"Unsupported file extension: {path.suffix}")
        return self.parse_with(grammar, content if content is not None else path.read_bytes())

    def parse_with(self, grammar: str, content: bytes) -> ParseResult:
        self._parser.language = get_language(grammar)
        tree = self._parser.parse(content)
        error_count, total_nodes = _count_nodes(tree.root_node)
        return ParseResult(
            tree=tree,
            grammar=grammar,
            source=content,
            error_count=error_count,
            total_nodes=total_nodes,
        )
