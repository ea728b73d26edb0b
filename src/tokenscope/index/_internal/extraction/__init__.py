"""Format extractors and their dispatch table.

Each DocumentFormat is bound to exactly one extractor. Extractors take the
raw file bytes and the definition URI and return definitions in discovery
order. File-level failures raise ExtractionError; the scanner isolates them.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import structlog

from tokenscope.core.errors import ExtractionError
from tokenscope.core.formats import DocumentFormat
from tokenscope.index._internal.extraction.document import extract_document_tokens
from tokenscope.index._internal.extraction.heuristics import describe, is_token_name
from tokenscope.index._internal.extraction.script import extract_script_tokens
from tokenscope.index._internal.extraction.stylesheet import extract_stylesheet_tokens
from tokenscope.index._internal.parsing.treesitter import TreeSitterParser
from tokenscope.index.models import TokenDefinition

Extractor = Callable[[Path, bytes, str, TreeSitterParser], list[TokenDefinition]]

logger = structlog.get_logger()


def _decode(path: Path, content: bytes) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ExtractionError.parse_failed(str(path), f"not valid UTF-8: {e}") from e


def _extract_script(
    path: Path, content: bytes, uri: str, parser: TreeSitterParser
) -> list[TokenDefinition]:
    _decode(path, content)
    result = parser.parse(path, content, fallback="tsx")
    return extract_script_tokens(result, uri)


def _extract_document(
    path: Path, content: bytes, uri: str, parser: TreeSitterParser
) -> list[TokenDefinition]:
    _decode(path, content)
    result = parser.parse(path, content, fallback="json")
    return extract_document_tokens(result, uri)


def _extract_stylesheet(
    path: Path,
    content: bytes,
    uri: str,
    parser: TreeSitterParser,  # noqa: ARG001
) -> list[TokenDefinition]:
    return extract_stylesheet_tokens(_decode(path, content), uri)


EXTRACTORS: dict[DocumentFormat, Extractor] = {
    DocumentFormat.SCRIPT: _extract_script,
    DocumentFormat.DOCUMENT: _extract_document,
    DocumentFormat.STYLESHEET: _extract_stylesheet,
}


def extract_content(
    fmt: DocumentFormat,
    path: Path,
    content: bytes,
    uri: str,
    parser: TreeSitterParser | None = None,
) -> list[TokenDefinition]:
    """Run the extractor bound to ``fmt`` over in-memory content."""
    extractor = EXTRACTORS.get(fmt)
    if extractor is None:
        raise ExtractionError.unsupported(str(path))
    return extractor(path, content, uri, parser or TreeSitterParser())


def extract_file(
    fmt: DocumentFormat,
    path: Path,
    uri: str,
    *,
    max_bytes: int | None = None,
    parser: TreeSitterParser | None = None,
) -> list[TokenDefinition]:
    """Read one file and run its extractor.

    Raises:
        ExtractionError: The file could not be read or decoded.
    """
    try:
        size = path.stat().st_size
        if max_bytes is not None and size > max_bytes:
            logger.debug("file_too_large", path=str(path), size=size, limit=max_bytes)
            return []
        content = path.read_bytes()
    except OSError as e:
        raise ExtractionError.unreadable(str(path), e.strerror or str(e)) from e
    return extract_content(fmt, path, content, uri, parser)


__all__ = [
    "EXTRACTORS",
    "Extractor",
    "describe",
    "extract_content",
    "extract_file",
    "is_token_name",
]
