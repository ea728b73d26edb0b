"""Query-time resolution: word lookup, local evaluation, index matching."""

from tokenscope.index._internal.resolve.local import LocalResolution, resolve_local
from tokenscope.index._internal.resolve.matcher import (
    MatchResult,
    confirm_word_on_line,
    group_by_kind,
    match_definitions,
    pick_best,
)
from tokenscope.index._internal.resolve.positions import (
    resolve_word,
    token_property_at_position,
    word_at_position,
)

__all__ = [
    "LocalResolution",
    "MatchResult",
    "confirm_word_on_line",
    "group_by_kind",
    "match_definitions",
    "pick_best",
    "resolve_local",
    "resolve_word",
    "token_property_at_position",
    "word_at_position",
]
