"""Canonical document format definitions.

This module defines the authoritative mapping of:
- File extensions -> document format (script, document, stylesheet)
- Document format -> tree-sitter grammar (where one is used)

Formats are a closed set. Every supported extension maps to exactly one
format, and every format is bound to exactly one extractor (see
``tokenscope.index._internal.extraction``). Dispatch is by extension only.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class DocumentFormat(str, Enum):
    """Source form a token definition can come from."""

    SCRIPT = "script"  # TS, TSX, JS, JSX
    DOCUMENT = "document"  # JSON, JSONC
    STYLESHEET = "stylesheet"  # CSS, Less, SCSS, Sass


@dataclass(frozen=True, slots=True)
class FormatSpec:
    """Canonical definition for a document format.

    Attributes:
        format: The format tag
        extensions: File extensions including dot (lowercase)
        grammars: Extension -> tree-sitter grammar name, when parsed with one
    """

    format: DocumentFormat
    extensions: frozenset[str]
    grammars: tuple[tuple[str, str], ...] = ()

    def grammar_for(self, ext: str) -> str | None:
        for candidate, grammar in self.grammars:
            if candidate == ext:
                return grammar
        return None


# =============================================================================
# Format Definitions
# =============================================================================
# .ts uses the plain typescript grammar: the tsx grammar misreads `<T>expr`
# type assertions as JSX. Everything else with JSX-capable syntax uses tsx.

ALL_FORMATS: tuple[FormatSpec, ...] = (
    FormatSpec(
        format=DocumentFormat.SCRIPT,
        extensions=frozenset({".ts", ".mts", ".cts", ".tsx", ".js", ".mjs", ".cjs", ".jsx"}),
        grammars=(
            (".ts", "typescript"),
            (".mts", "typescript"),
            (".cts", "typescript"),
            (".tsx", "tsx"),
            (".js", "tsx"),
            (".mjs", "tsx"),
            (".cjs", "tsx"),
            (".jsx", "tsx"),
        ),
    ),
    FormatSpec(
        format=DocumentFormat.DOCUMENT,
        extensions=frozenset({".json", ".jsonc"}),
        grammars=((".json", "json"), (".jsonc", "json")),
    ),
    FormatSpec(
        format=DocumentFormat.STYLESHEET,
        extensions=frozenset({".css", ".less", ".scss", ".sass"}),
    ),
)

_BY_FORMAT: dict[DocumentFormat, FormatSpec] = {spec.format: spec for spec in ALL_FORMATS}


def get_format_spec(fmt: DocumentFormat) -> FormatSpec:
    return _BY_FORMAT[fmt]


def default_extensions(fmt: DocumentFormat) -> list[str]:
    """Sorted default extensions for a format (config defaults)."""
    return sorted(_BY_FORMAT[fmt].extensions)


def all_extensions() -> frozenset[str]:
    result: frozenset[str] = frozenset()
    for spec in ALL_FORMATS:
        result |= spec.extensions
    return result


def detect_format(
    path: str | Path,
    extensions: dict[DocumentFormat, frozenset[str]] | None = None,
) -> DocumentFormat | None:
    """Detect the document format of a path from its extension.

    Args:
        path: File path or name
        extensions: Optional per-format extension override (from config)

    Returns:
        The format, or None if the extension is not supported.
    """
    ext = Path(path).suffix.lower()
    if not ext:
        return None
    if extensions is None:
        extensions = {spec.format: spec.extensions for spec in ALL_FORMATS}
    for fmt, exts in extensions.items():
        if ext in exts:
            return fmt
    return None


def grammar_for_path(path: str | Path) -> str | None:
    """Tree-sitter grammar name for a path, or None for line-scanned formats."""
    ext = Path(path).suffix.lower()
    for spec in ALL_FORMATS:
        grammar = spec.grammar_for(ext)
        if grammar is not None:
            return grammar
    return None


__all__ = [
    "DocumentFormat",
    "FormatSpec",
    "ALL_FORMATS",
    "get_format_spec",
    "default_extensions",
    "all_extensions",
    "detect_format",
    "grammar_for_path",
]
