"""Data model for the token index and position queries.

Positions are 0-based lines and characters, matching editor protocols.
Characters count code points in the line text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from tokenscope.core.formats import DocumentFormat

# ============================================================================
# ENUMS
# ============================================================================


class SourceKind(str, Enum):
    """Structural pattern that produced a definition (its provenance)."""

    CONFIG_PROVIDER_LITERAL = "config_provider_literal"
    THEME_CONFIG_LITERAL = "theme_config_literal"
    HEURISTIC_LITERAL = "heuristic_literal"
    JSON_PATH = "json_path"
    STYLE_VARIABLE = "style_variable"
    # Query-time only: never stored in the index
    HOOK_USAGE = "hook_usage"

    @property
    def origin_format(self) -> DocumentFormat:
        """Document format whose extractor produces this kind."""
        return _ORIGIN_FORMAT[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


_ORIGIN_FORMAT: dict[SourceKind, DocumentFormat] = {
    SourceKind.CONFIG_PROVIDER_LITERAL: DocumentFormat.SCRIPT,
    SourceKind.THEME_CONFIG_LITERAL: DocumentFormat.SCRIPT,
    SourceKind.HEURISTIC_LITERAL: DocumentFormat.SCRIPT,
    SourceKind.HOOK_USAGE: DocumentFormat.SCRIPT,
    SourceKind.JSON_PATH: DocumentFormat.DOCUMENT,
    SourceKind.STYLE_VARIABLE: DocumentFormat.STYLESHEET,
}

_LABELS: dict[SourceKind, str] = {
    SourceKind.CONFIG_PROVIDER_LITERAL: "ConfigProvider theme",
    SourceKind.THEME_CONFIG_LITERAL: "ThemeConfig object",
    SourceKind.HEURISTIC_LITERAL: "Token-like property",
    SourceKind.JSON_PATH: "JSON document",
    SourceKind.STYLE_VARIABLE: "Style variable",
    SourceKind.HOOK_USAGE: "Hook usage",
}


class AnswerKind(str, Enum):
    """Outcome of a hover query."""

    LOCAL = "local"  # answered from the requesting document alone
    WORKSPACE = "workspace"  # candidates from the token index
    EMPTY = "empty"  # nothing matched
    NOT_READY = "not_ready"  # no root yet, or the first scan has not published


class FileEventKind(str, Enum):
    """File-change notification kind."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


# ============================================================================
# POSITIONS
# ============================================================================


@dataclass(frozen=True, slots=True, order=True)
class Position:
    line: int
    character: int


@dataclass(frozen=True, slots=True)
class Range:
    start: Position
    end: Position


@dataclass(frozen=True, slots=True)
class Location:
    uri: str
    range: Range


@dataclass(frozen=True, slots=True)
class PositionQuery:
    """The unit of every hover/definition request."""

    uri: str
    line: int
    character: int

    @property
    def position(self) -> Position:
        return Position(self.line, self.character)


def path_to_uri(path: str | Path) -> str:
    return Path(path).resolve().as_uri()


def uri_to_path(uri: str) -> Path:
    """Convert a ``file://`` URI (or a bare path) to a filesystem path."""
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(url2pathname(unquote(parsed.path)))
    return Path(uri)


# ============================================================================
# DEFINITIONS
# ============================================================================


@dataclass(frozen=True, slots=True)
class TokenDefinition:
    """One recorded occurrence of a token value assignment.

    ``value`` holds the literal's exact source text, or for non-literal
    initializers the verbatim expression text. Never an evaluated value.
    """

    name: str
    uri: str
    value: str
    position: Position
    source_kind: SourceKind
    context: str | None = None

    @property
    def sort_key(self) -> tuple[str, int, int, str]:
        return (self.uri, self.position.line, self.position.character, self.source_kind.value)

    def location(self) -> Location:
        """Location spanning exactly the name's length from the stored position."""
        start = self.position
        end = Position(start.line, start.character + len(self.name))
        return Location(uri=self.uri, range=Range(start=start, end=end))


@dataclass
class ScanStats:
    """Statistics from one full scan."""

    generation: int
    files_discovered: int = 0
    files_indexed: int = 0
    files_failed: int = 0
    definitions: int = 0
    token_names: int = 0
    duration_seconds: float = 0.0
    published: bool = False
    enumeration_errors: list[str] = field(default_factory=list)


@dataclass
class ResolvedAnswer:
    """Result of a hover query."""

    kind: AnswerKind
    word: str = ""
    local_value: str | None = None
    usages: list[TokenDefinition] = field(default_factory=list)
    groups: dict[SourceKind, list[TokenDefinition]] = field(default_factory=dict)
    best: TokenDefinition | None = None
    description: str | None = None

    @classmethod
    def not_ready(cls, word: str = "") -> ResolvedAnswer:
        return cls(kind=AnswerKind.NOT_READY, word=word)

    @classmethod
    def empty(cls, word: str = "") -> ResolvedAnswer:
        return cls(kind=AnswerKind.EMPTY, word=word)

    @property
    def is_empty(self) -> bool:
        return self.kind in (AnswerKind.EMPTY, AnswerKind.NOT_READY)

    @property
    def definitions(self) -> list[TokenDefinition]:
        """All grouped workspace definitions, flattened in group order."""
        return [d for defs in self.groups.values() for d in defs]

    def to_markdown(self) -> str:
        """Render hover contents."""
        if self.kind == AnswerKind.NOT_READY:
            return "_Token index is still being built._"
        if self.kind == AnswerKind.EMPTY:
            return ""

        lines: list[str] = [f"## Token `{self.word}`"]
        if self.description:
            lines.append(self.description)
        if self.local_value is not None:
            lines.append("")
            lines.append(f"**Value:** `{self.local_value}`")
        if self.usages:
            lines.append("")
            lines.append(f"_Provided by a theme hook ({len(self.usages)} usage(s) in this file)._")
        if self.best is not None:
            lines.append("")
            lines.append(
                f"**Best match:** `{self.best.value}` ({_short_location(self.best)})"
            )
        for kind, defs in self.groups.items():
            lines.append("")
            lines.append(f"### {kind.label}")
            for d in defs:
                suffix = f" in `{d.context}`" if d.context else ""
                lines.append(f"- `{d.value}`{suffix} ({_short_location(d)})")
        return "\n".join(lines)


def _short_location(definition: TokenDefinition) -> str:
    name = uri_to_path(definition.uri).name
    return f"{name}:{definition.position.line + 1}"
