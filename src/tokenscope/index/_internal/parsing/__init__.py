"""Parsing layer: tree-sitter wrappers."""

from tokenscope.index._internal.parsing.treesitter import (
    ParseResult,
    TreeSitterParser,
    get_language,
    node_text,
    walk,
)

__all__ = ["ParseResult", "TreeSitterParser", "get_language", "node_text", "walk"]
