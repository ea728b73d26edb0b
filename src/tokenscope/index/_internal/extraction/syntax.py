"""Node helpers for the tree-sitter TypeScript/TSX grammars.

Shared by the script extractor (index time) and the local resolver
(query time), so both read object literals the same way.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import TYPE_CHECKING

from tokenscope.index._internal.parsing.treesitter import node_text

if TYPE_CHECKING:
    from tree_sitter import Node

THEME_CONFIG_TYPE = "ThemeConfig"
TOKEN_KEY = "token"

_THEME_CONFIG_ANNOTATION_RE = re.compile(rf"^:\s*(?:[\w$]+\.)*{THEME_CONFIG_TYPE}\b")

# Wrappers that don't change which object literal a value denotes.
_TRANSPARENT_WRAPPERS = frozenset(
    {"parenthesized_expression", "as_expression", "satisfies_expression", "non_null_expression"}
)


def unwrap(node: Node | None) -> Node | None:
    """Strip parentheses and type-only wrappers (``as``/``satisfies``/``!``)."""
    while node is not None and node.type in _TRANSPARENT_WRAPPERS:
        node = node.named_children[0] if node.named_children else None
    return node


def property_key(pair: Node) -> str | None:
    """Static key name of a ``pair`` node, or None for computed keys."""
    key = pair.child_by_field_name("key")
    if key is None:
        return None
    if key.type in ("property_identifier", "number", "private_property_identifier"):
        return node_text(key)
    if key.type == "string":
        return _string_contents(key)
    return None


def literal_value(node: Node) -> str:
    """Value text stored for a definition.

    string -> text between the quotes exactly as written
    number, identifier -> their text
    anything else -> verbatim source text of the expression
    """
    if node.type == "string":
        return _string_contents(node)
    return node_text(node)


def is_static_literal(node: Node | None) -> bool:
    return node is not None and node.type in ("string", "number")


def _string_contents(node: Node) -> str:
    text = node_text(node)
    if len(text) >= 2 and text[0] in "'\"" and text[-1] == text[0]:
        return text[1:-1]
    return text


def object_properties(obj: Node) -> Iterator[tuple[str, Node, Node]]:
    """Yield (key, key_node, value_node) for static properties of an object.

    Shorthand properties (``{ colorPrimary }``) yield the identifier as both
    key and value. Spreads, methods and computed keys are skipped.
    """
    for child in obj.named_children:
        if child.type == "pair":
            key = property_key(child)
            value = child.child_by_field_name("value")
            key_node = child.child_by_field_name("key")
            if key is not None and value is not None and key_node is not None:
                yield key, key_node, value
        elif child.type == "shorthand_property_identifier":
            yield node_text(child), child, child


def find_property(obj: Node, key: str) -> Node | None:
    """Value node of the last static property named ``key`` (last one wins)."""
    found = None
    for name, _key_node, value in object_properties(obj):
        if name == key:
            found = value
    return found


def nested_token_object(obj: Node | None) -> Node | None:
    """The object literal under the ``token`` key of an object literal."""
    obj = unwrap(obj)
    if obj is None or obj.type != "object":
        return None
    value = unwrap(find_property(obj, TOKEN_KEY))
    if value is None or value.type != "object":
        return None
    return value


def is_theme_config_annotation(type_annotation: Node | None) -> bool:
    if type_annotation is None:
        return False
    return bool(_THEME_CONFIG_ANNOTATION_RE.match(node_text(type_annotation)))


def enclosing_variable_name(node: Node) -> str | None:
    """Name of the nearest enclosing ``const x = ...`` declarator, if any."""
    current = node.parent
    while current is not None:
        if current.type == "variable_declarator":
            name = current.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                return node_text(name)
            return None
        current = current.parent
    return None


def jsx_element_name(element: Node) -> str:
    """Last segment of a JSX element name (``antd.ConfigProvider`` -> ``ConfigProvider``)."""
    name = element.child_by_field_name("name")
    if name is None:
        return ""
    return node_text(name).rsplit(".", 1)[-1]


def jsx_attribute_expression(element: Node, attribute: str) -> Node | None:
    """Expression inside ``attribute={...}`` on a JSX opening/self-closing element."""
    for attr in element.named_children:
        if attr.type != "jsx_attribute" or not attr.named_children:
            continue
        if node_text(attr.named_children[0]) != attribute:
            continue
        for value in attr.named_children[1:]:
            if value.type == "jsx_expression":
                inner = [c for c in value.named_children if c.type != "comment"]
                return inner[0] if inner else None
    return None


def member_chain(node: Node) -> list[str] | None:
    """Access chain of a member expression rooted at an identifier.

    ``theme.token.colorPrimary`` -> ``["theme", "token", "colorPrimary"]``.
    Returns None for chains with calls, subscripts or other roots.
    """
    chain: list[str] = []
    current: Node | None = node
    while current is not None and current.type == "member_expression":
        prop = current.child_by_field_name("property")
        if prop is None:
            return None
        chain.append(node_text(prop))
        current = current.child_by_field_name("object")
    if current is None or current.type != "identifier":
        return None
    chain.append(node_text(current))
    chain.reverse()
    return chain
