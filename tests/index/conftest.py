"""Shared fixtures for index tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from tokenscope.index._internal.parsing import ParseResult, TreeSitterParser

WorkspaceFactory = Callable[[dict[str, str | bytes]], Path]


@pytest.fixture
def parser() -> TreeSitterParser:
    return TreeSitterParser()


@pytest.fixture
def parse_tsx(parser: TreeSitterParser) -> Callable[[str], ParseResult]:
    """Parse TSX source text."""

    def _parse(source: str) -> ParseResult:
        return parser.parse_with("tsx", source.encode("utf-8"))

    return _parse


@pytest.fixture
def parse_json(parser: TreeSitterParser) -> Callable[[str], ParseResult]:
    """Parse JSON source text."""

    def _parse(source: str) -> ParseResult:
        return parser.parse_with("json", source.encode("utf-8"))

    return _parse


@pytest.fixture
def make_workspace(tmp_path: Path) -> WorkspaceFactory:
    """Create files under a fresh workspace root and return the root."""

    def _make(files: dict[str, str | bytes]) -> Path:
        root = tmp_path / "workspace"
        root.mkdir(exist_ok=True)
        for rel_path, content in files.items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content)
        return root

    return _make
