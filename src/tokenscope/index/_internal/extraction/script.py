"""Structured-source extractor for TS/TSX/JS/JSX files.

Runs three independent detector passes over one tree-sitter tree:

1. ThemeConfig: ``const theme: ThemeConfig = { token: { ... } }``
2. ConfigProvider: ``<ConfigProvider theme={{ token: { ... } }}>``
3. Heuristic: any ``key: value`` pair whose key looks like a token name

The heuristic pass re-visits properties already reported by the structural
passes. Both entries are kept: each carries its own provenance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from tokenscope.index._internal.extraction.heuristics import is_token_name
from tokenscope.index._internal.extraction.syntax import (
    enclosing_variable_name,
    is_theme_config_annotation,
    jsx_attribute_expression,
    jsx_element_name,
    literal_value,
    nested_token_object,
    object_properties,
    property_key,
)
from tokenscope.index._internal.parsing.treesitter import ParseResult, node_text, walk
from tokenscope.index.models import SourceKind, TokenDefinition

if TYPE_CHECKING:
    from tree_sitter import Node

logger = structlog.get_logger()

CONFIG_PROVIDER = "ConfigProvider"

_JSX_ELEMENT_TYPES = frozenset({"jsx_opening_element", "jsx_self_closing_element"})


class ScriptTokenExtractor:
    """Token definitions from one parsed script document."""

    def __init__(self, result: ParseResult, uri: str) -> None:
        self._result = result
        self._uri = uri

    def extract(self) -> list[TokenDefinition]:
        if self._result.has_errors:
            logger.debug(
                "script_parse_errors",
                uri=self._uri,
                error_count=self._result.error_count,
            )
        definitions: list[TokenDefinition] = []
        definitions.extend(self.theme_config_definitions())
        definitions.extend(self.config_provider_definitions())
        definitions.extend(self.heuristic_definitions())
        return definitions

    # ------------------------------------------------------------------
    # Pass 1: ThemeConfig-typed variables
    # ------------------------------------------------------------------

    def theme_config_variables(self) -> set[str]:
        """Names of variables declared with a ThemeConfig type annotation."""
        names: set[str] = set()
        for node in walk(self._result.root_node):
            if node.type != "variable_declarator":
                continue
            name = node.child_by_field_name("name")
            if name is None or name.type != "identifier":
                continue
            if is_theme_config_annotation(node.child_by_field_name("type")):
                names.add(node_text(name))
        return names

    def theme_config_definitions(self) -> list[TokenDefinition]:
        variables = self.theme_config_variables()
        if not variables:
            return []

        definitions: list[TokenDefinition] = []
        for node in walk(self._result.root_node):
            if node.type == "variable_declarator":
                target = node.child_by_field_name("name")
                value = node.child_by_field_name("value")
            elif node.type == "assignment_expression":
                target = node.child_by_field_name("left")
                value = node.child_by_field_name("right")
            else:
                continue
            if target is None or target.type != "identifier":
                continue
            variable = node_text(target)
            if variable not in variables:
                continue
            token_obj = nested_token_object(value)
            if token_obj is not None:
                definitions.extend(
                    self._token_object_definitions(
                        token_obj, SourceKind.THEME_CONFIG_LITERAL, context=variable
                    )
                )
        return definitions

    # ------------------------------------------------------------------
    # Pass 2: <ConfigProvider theme={{ token: {...} }}>
    # ------------------------------------------------------------------

    def config_provider_definitions(self) -> list[TokenDefinition]:
        definitions: list[TokenDefinition] = []
        for node in walk(self._result.root_node):
            if node.type not in _JSX_ELEMENT_TYPES or jsx_element_name(node) != CONFIG_PROVIDER:
                continue
            token_obj = nested_token_object(jsx_attribute_expression(node, "theme"))
            if token_obj is not None:
                definitions.extend(
                    self._token_object_definitions(
                        token_obj, SourceKind.CONFIG_PROVIDER_LITERAL, context=CONFIG_PROVIDER
                    )
                )
        return definitions

    # ------------------------------------------------------------------
    # Pass 3: token-like property names anywhere
    # ------------------------------------------------------------------

    def heuristic_definitions(self) -> list[TokenDefinition]:
        definitions: list[TokenDefinition] = []
        for node in walk(self._result.root_node):
            if node.type != "pair":
                continue
            key = property_key(node)
            if key is None or not is_token_name(key):
                continue
            key_node = node.child_by_field_name("key")
            value = node.child_by_field_name("value")
            if key_node is None or value is None:
                continue
            definitions.append(
                self._definition(
                    key,
                    key_node,
                    value,
                    SourceKind.HEURISTIC_LITERAL,
                    context=enclosing_variable_name(node),
                )
            )
        return definitions

    # ------------------------------------------------------------------

    def _token_object_definitions(
        self, token_obj: Node, kind: SourceKind, context: str | None
    ) -> list[TokenDefinition]:
        return [
            self._definition(key, key_node, value, kind, context)
            for key, key_node, value in object_properties(token_obj)
        ]

    def _definition(
        self,
        name: str,
        key_node: Node,
        value: Node,
        kind: SourceKind,
        context: str | None,
    ) -> TokenDefinition:
        return TokenDefinition(
            name=name,
            uri=self._uri,
            value=literal_value(value),
            position=self._result.position_of(key_node),
            source_kind=kind,
            context=context,
        )


def extract_script_tokens(result: ParseResult, uri: str) -> list[TokenDefinition]:
    """Token definitions from a parsed script document, in pass order."""
    return ScriptTokenExtractor(result, uri).extract()
