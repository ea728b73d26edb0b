"""Single-document resolution of the token under the cursor.

Static evaluation only: an access chain such as ``theme.token.colorPrimary``
resolves when ``theme`` is bound in the same file to an object literal and
every step of the chain lands on another object literal with a matching
key. Nothing is imported, called or evaluated.

Tokens destructured from a theme hook (``const { token } = useToken()``)
have no static value. For those, every ``token.<name>`` access in the file
is returned as a HOOK_USAGE annotation instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tokenscope.index._internal.extraction.syntax import (
    TOKEN_KEY,
    find_property,
    literal_value,
    member_chain,
    unwrap,
)
from tokenscope.index._internal.parsing.treesitter import ParseResult, node_text, walk
from tokenscope.index.models import SourceKind, TokenDefinition

if TYPE_CHECKING:
    from tree_sitter import Node

HOOK_FUNCTIONS = frozenset({"useToken", "getToken"})

# Node types that can carry the word under the cursor
_NAME_TYPES = frozenset(
    {"identifier", "property_identifier", "shorthand_property_identifier"}
)

# Chain end values reported as a local answer
_LOCAL_VALUE_TYPES = frozenset({"string", "number", "identifier"})

# Local value shown when a chain stops on a nested object
OBJECT_PLACEHOLDER = "[object]"

# Blocks that bound a const/let declaration
_SCOPE_TYPES = frozenset(
    {"program", "statement_block", "class_body", "for_statement", "for_in_statement"}
)


@dataclass
class LocalResolution:
    """Outcome of resolving a word inside its own document."""

    value: str | None = None
    chain: list[str] | None = None
    usages: list[TokenDefinition] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.value is not None


def name_node_at(result: ParseResult, line: int, character: int, word: str) -> Node | None:
    """Identifier-like node spelling ``word`` under the cursor.

    Tries the character before the cursor too, so a cursor placed right
    after the word still finds it.
    """
    for column in (character, character - 1):
        if column < 0:
            continue
        node = result.node_at(line, column)
        if node is not None and node.type in _NAME_TYPES and node_text(node) == word:
            return node
    return None


def access_chain(node: Node) -> list[str] | None:
    """Chain ending at ``node``: ``a.b.c`` for the ``c`` of a member access,
    ``[name]`` for a bare identifier."""
    parent = node.parent
    if parent is not None and parent.type == "member_expression":
        prop = parent.child_by_field_name("property")
        if prop is not None and prop == node:
            return member_chain(parent)
    if node.type == "identifier":
        return [node_text(node)]
    return None


def _scope_of(node: Node) -> Node | None:
    current = node.parent
    while current is not None and current.type not in _SCOPE_TYPES:
        current = current.parent
    return current


def _encloses(outer: Node, inner: Node) -> bool:
    return outer.start_byte <= inner.start_byte and inner.end_byte <= outer.end_byte


def variable_initializer(root: Node, name: str, near: Node | None = None) -> Node | None:
    """Initializer of the ``name = ...`` declarator visible from ``near``.

    The declarator in the innermost block enclosing ``near`` wins, so a
    shadowing declaration inside a function hides the module-level one.
    Without ``near`` the first declarator in the file is used.
    """
    best: Node | None = None
    best_span: int | None = None
    for node in walk(root):
        if node.type != "variable_declarator":
            continue
        target = node.child_by_field_name("name")
        if target is None or target.type != "identifier" or node_text(target) != name:
            continue
        value = node.child_by_field_name("value")
        if value is None:
            continue
        if near is None:
            return unwrap(value)
        scope = _scope_of(node) or root
        if not _encloses(scope, near):
            continue
        span = scope.end_byte - scope.start_byte
        if best_span is None or span < best_span:
            best, best_span = value, span
    return unwrap(best)


def evaluate_chain(root: Node, chain: list[str], near: Node | None = None) -> str | None:
    """Static value at the end of ``chain``, or None.

    A chain of two or more segments ending on a nested object literal
    yields ``OBJECT_PLACEHOLDER``.
    """
    value = variable_initializer(root, chain[0], near)
    for key in chain[1:]:
        if value is None or value.type != "object":
            return None
        value = unwrap(find_property(value, key))
    if value is None:
        return None
    if value.type == "object" and len(chain) > 1:
        return OBJECT_PLACEHOLDER
    if value.type not in _LOCAL_VALUE_TYPES:
        return None
    return literal_value(value)


def hook_token_bindings(root: Node) -> dict[str, str]:
    """Local names bound to ``token`` by a hook destructuring -> hook call text."""
    bindings: dict[str, str] = {}
    for node in walk(root):
        if node.type != "variable_declarator":
            continue
        pattern = node.child_by_field_name("name")
        value = unwrap(node.child_by_field_name("value"))
        if pattern is None or pattern.type != "object_pattern" or value is None:
            continue
        if value.type == "await_expression" and value.named_children:
            value = unwrap(value.named_children[0])
        if value is None or value.type != "call_expression":
            continue
        function = value.child_by_field_name("function")
        hook = node_text(function)
        if hook.rsplit(".", 1)[-1] not in HOOK_FUNCTIONS:
            continue
        for element in pattern.named_children:
            if element.type == "shorthand_property_identifier_pattern":
                if node_text(element) == TOKEN_KEY:
                    bindings[TOKEN_KEY] = hook
            elif element.type == "pair_pattern":
                key = element.child_by_field_name("key")
                alias = element.child_by_field_name("value")
                if (
                    key is not None
                    and alias is not None
                    and node_text(key) == TOKEN_KEY
                    and alias.type == "identifier"
                ):
                    bindings[node_text(alias)] = hook
    return bindings


def hook_usages(result: ParseResult, uri: str, word: str) -> list[TokenDefinition]:
    """Every ``<hook token>.<word>`` access in the document, in source order."""
    bindings = hook_token_bindings(result.root_node)
    if not bindings:
        return []
    usages: list[TokenDefinition] = []
    for node in walk(result.root_node):
        if node.type != "member_expression":
            continue
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is None or prop is None or obj.type != "identifier":
            continue
        variable = node_text(obj)
        if variable in bindings and node_text(prop) == word:
            usages.append(
                TokenDefinition(
                    name=word,
                    uri=uri,
                    value=f"{variable}.{word}",
                    position=result.position_of(prop),
                    source_kind=SourceKind.HOOK_USAGE,
                    context=bindings[variable],
                )
            )
    return usages


def resolve_local(
    result: ParseResult, uri: str, line: int, character: int, word: str
) -> LocalResolution:
    """Resolve ``word`` at a position using only this document."""
    resolution = LocalResolution()
    node = name_node_at(result, line, character, word)
    if node is not None:
        resolution.chain = access_chain(node)
        if resolution.chain:
            resolution.value = evaluate_chain(result.root_node, resolution.chain, node)
    if resolution.value is None:
        resolution.usages = hook_usages(result, uri, word)
    return resolution
