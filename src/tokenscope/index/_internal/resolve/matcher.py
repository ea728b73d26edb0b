"""Workspace fallback: pick and group index candidates for a query.

Tie-break when several definitions share a name, applied only after the
word is confirmed as a syntactic node on the query line:

1. a definition in the requesting document
2. a definition whose source kind comes from the requesting document's format
3. the first definition in scan order
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from tokenscope.core.formats import DocumentFormat
from tokenscope.index._internal.parsing.treesitter import TreeSitterParser, node_text, walk
from tokenscope.index.models import SourceKind, TokenDefinition


@dataclass
class MatchResult:
    """Index candidates for one word, grouped for presentation."""

    candidates: list[TokenDefinition] = field(default_factory=list)
    groups: dict[SourceKind, list[TokenDefinition]] = field(default_factory=dict)
    best: TokenDefinition | None = None
    confirmed: bool = False


def group_by_kind(definitions: list[TokenDefinition]) -> dict[SourceKind, list[TokenDefinition]]:
    """Group by source kind; groups and their members keep index order."""
    groups: dict[SourceKind, list[TokenDefinition]] = {}
    for definition in definitions:
        groups.setdefault(definition.source_kind, []).append(definition)
    return groups


def pick_best(
    candidates: list[TokenDefinition], uri: str, fmt: DocumentFormat | None
) -> TokenDefinition | None:
    if not candidates:
        return None
    for definition in candidates:
        if definition.uri == uri:
            return definition
    if fmt is not None:
        for definition in candidates:
            if definition.source_kind.origin_format == fmt:
                return definition
    return candidates[0]


def _matches_word(text: str, word: str) -> bool:
    return text == word or (len(text) >= 2 and text[0] in "'\"" and text[1:-1] == word)


def confirm_word_on_line(
    text: str,
    grammar: str | None,
    line: int,
    character: int,
    word: str,
    parser: TreeSitterParser | None = None,
) -> bool:
    """Whether a node spelling ``word`` starts on ``line`` at or before the cursor.

    Grammar-backed documents are re-parsed. Style sheets have no grammar, so
    the line is searched for a whole-word occurrence instead.
    """
    if grammar is None:
        lines = text.split("\n")
        if line < 0 or line >= len(lines):
            return False
        pattern = re.compile(rf"(?<![\w-]){re.escape(word)}(?![\w-])")
        return any(m.start() <= character for m in pattern.finditer(lines[line]))

    result = (parser or TreeSitterParser()).parse_with(grammar, text.encode("utf-8"))
    for node in walk(result.root_node):
        if node.start_point[0] != line or result.position_of(node).character > character:
            continue
        if _matches_word(node_text(node), word):
            return True
    return False


def match_definitions(
    candidates: list[TokenDefinition],
    uri: str,
    fmt: DocumentFormat | None,
    *,
    confirmed: bool,
) -> MatchResult:
    """Group candidates and, when warranted, pick the best one.

    A single candidate is always the best match. With several, the
    tie-break runs only if the word was confirmed on the query line.
    """
    match = MatchResult(
        candidates=candidates,
        groups=group_by_kind(candidates),
        confirmed=confirmed,
    )
    if len(candidates) == 1:
        match.best = candidates[0]
    elif candidates and confirmed:
        match.best = pick_best(candidates, uri, fmt)
    return match
