"""Declarative-document extractor for JSON-like config files.

Parsed with the tree-sitter JSON grammar, which treats comments as extras.
A trailing comma shows up either as an ERROR node holding only the comma
(objects) or as a MISSING value right before the closing bracket (arrays);
both are tolerated. Any other syntax error marks the document malformed
and it yields no definitions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from tokenscope.index._internal.extraction.heuristics import is_token_name
from tokenscope.index._internal.parsing.treesitter import ParseResult, node_text
from tokenscope.index.models import Position, SourceKind, TokenDefinition

if TYPE_CHECKING:
    from tree_sitter import Node

logger = structlog.get_logger()

# Location inside the document is not carried for this format.
DOCUMENT_POSITION = Position(0, 0)

_SCALAR_TYPES = frozenset({"string", "number"})
_CLOSERS = frozenset({"]", "}"})


def _is_tolerated_error(node: Node) -> bool:
    """ERROR node made only of commas (and comments), i.e. a trailing comma."""
    for child in node.children:
        if child.type == "comment":
            continue
        if child.type != "," and node_text(child).strip(", \t\r\n"):
            return False
    return True


def _is_trailing_comma_gap(node: Node) -> bool:
    """MISSING value inserted between a comma and the closing bracket.

    A trailing comma in an array recovers this way rather than as an ERROR.
    """
    before = _adjacent_token(node, forward=False)
    after = _adjacent_token(node, forward=True)
    return (
        before is not None
        and before.type == ","
        and after is not None
        and after.type in _CLOSERS
    )


def _adjacent_token(node: Node, *, forward: bool) -> Node | None:
    sibling = node.next_sibling if forward else node.prev_sibling
    while sibling is not None and sibling.type == "comment":
        sibling = sibling.next_sibling if forward else sibling.prev_sibling
    return sibling


def is_malformed(result: ParseResult) -> bool:
    if not result.has_errors:
        return False
    stack = [result.root_node]
    while stack:
        node = stack.pop()
        if node.is_missing:
            if not _is_trailing_comma_gap(node):
                return True
            continue
        if node.type == "ERROR":
            if not _is_tolerated_error(node):
                return True
            continue
        stack.extend(node.children)
    return False


def _key_text(pair: Node) -> str | None:
    key = pair.child_by_field_name("key")
    if key is None:
        return None
    if key.type == "string":
        text = node_text(key)
        return text[1:-1] if len(text) >= 2 else text
    return node_text(key)


class DocumentTokenExtractor:
    """Token definitions from one parsed JSON document."""

    def __init__(self, result: ParseResult, uri: str) -> None:
        self._result = result
        self._uri = uri
        self._definitions: list[TokenDefinition] = []

    def extract(self) -> list[TokenDefinition]:
        if is_malformed(self._result):
            logger.warning(
                "document_malformed",
                uri=self._uri,
                error_count=self._result.error_count,
            )
            return []
        self._definitions = []
        for value in self._result.root_node.named_children:
            self._visit(value, [])
        return self._definitions

    def _visit(self, node: Node, path: list[str]) -> None:
        if node.type == "object":
            for pair in node.named_children:
                if pair.type != "pair":
                    continue
                key = _key_text(pair)
                value = pair.child_by_field_name("value")
                if key is None or value is None:
                    continue
                if value.type in _SCALAR_TYPES:
                    if is_token_name(key):
                        self._record(key, value, path)
                else:
                    self._visit(value, [*path, key])
        elif node.type == "array":
            elements = [
                c for c in node.named_children if c.type != "comment" and not c.is_missing
            ]
            for index, element in enumerate(elements):
                self._visit(element, [*path, str(index)])

    def _record(self, key: str, value: Node, path: list[str]) -> None:
        self._definitions.append(
            TokenDefinition(
                name=key,
                uri=self._uri,
                value=node_text(value),
                position=DOCUMENT_POSITION,
                source_kind=SourceKind.JSON_PATH,
                context=".".join(path) or None,
            )
        )


def extract_document_tokens(result: ParseResult, uri: str) -> list[TokenDefinition]:
    """Token definitions from a parsed JSON document, in document order."""
    return DocumentTokenExtractor(result, uri).extract()
