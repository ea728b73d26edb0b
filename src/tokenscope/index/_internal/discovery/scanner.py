"""Workspace file enumeration with directory pruning.

Walks the workspace once, pruning ignored directory names at every depth,
and keeps files whose extension belongs to a supported document format.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import structlog

logger = structlog.get_logger()


@dataclass
class EnumerationResult:
    """Candidate files plus the I/O errors hit along the way."""

    paths: list[Path] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def enumerate_files(
    root: Path,
    ignored_dirs: frozenset[str],
    extensions: frozenset[str],
) -> EnumerationResult:
    """List supported files under root.

    Args:
        root: Workspace root
        ignored_dirs: Directory names pruned at any nesting depth
        extensions: Lowercase extensions (with dot) to keep

    Returns:
        Absolute paths in sorted order, plus per-directory error messages.
        A directory that cannot be read is reported and skipped; its
        siblings are still enumerated.
    """
    result = EnumerationResult()
    root = root.resolve()

    def on_error(err: OSError) -> None:
        message = f"{err.filename}: {err.strerror or err}"
        result.errors.append(message)
        logger.warning("enumeration_error", path=str(err.filename), error=str(err))

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        # Prune in-place to skip whole subtrees
        dirnames[:] = [d for d in dirnames if d not in ignored_dirs]
        for filename in filenames:
            ext = os.path.splitext(filename)[1].lower()
            if ext in extensions:
                result.paths.append(Path(dirpath) / filename)

    result.paths.sort()
    logger.debug(
        "files_enumerated",
        root=str(root),
        count=len(result.paths),
        errors=len(result.errors),
    )
    return result
