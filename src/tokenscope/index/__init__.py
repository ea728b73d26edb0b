"""Index module - design-token extraction, indexing and resolution.

This module provides:
- Extraction: script (tree-sitter TS/TSX), JSON document and style-sheet extractors
- Token index: name -> ordered definitions with provenance
- Resolution: hover and go-to-definition over open documents plus the index

Public API is in `tokenscope.index.ops`:
- TokenEngine: query facade
- TokenScanner: scan orchestrator, sole writer of the index

Internal implementations are in `tokenscope.index._internal/`.
"""

from tokenscope.index.models import (
    AnswerKind,
    FileEventKind,
    Location,
    Position,
    PositionQuery,
    Range,
    ResolvedAnswer,
    ScanStats,
    SourceKind,
    TokenDefinition,
    path_to_uri,
    uri_to_path,
)
from tokenscope.index.ops import TokenEngine, TokenScanner
from tokenscope.index.store import TokenIndex

__all__ = [
    # Public API (ops.py)
    "TokenEngine",
    "TokenScanner",
    "TokenIndex",
    # Enums
    "AnswerKind",
    "FileEventKind",
    "SourceKind",
    # Data models
    "Location",
    "Position",
    "PositionQuery",
    "Range",
    "ResolvedAnswer",
    "ScanStats",
    "TokenDefinition",
    "path_to_uri",
    "uri_to_path",
]
