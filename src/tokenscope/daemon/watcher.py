"""Workspace file watcher built on ``watchfiles.awatch``.

The directory tree is walked up front (pruning ignored names) and every
surviving directory gets its own non-recursive watch, so ``node_modules``
and friends never cost a watch. A new directory restarts the watch so it
is picked up. Raw changes are buffered in a sliding debounce window and
then forwarded one ``(path, kind)`` notification per changed path. Added and
deleted directories are forwarded too.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import time
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from watchfiles import Change, awatch

from tokenscope.core.excludes import PRUNABLE_DIRS, is_ignored_path
from tokenscope.index.models import FileEventKind

logger = structlog.get_logger()

CHANGE_KINDS: dict[Change, FileEventKind] = {
    Change.added: FileEventKind.ADDED,
    Change.modified: FileEventKind.MODIFIED,
    Change.deleted: FileEventKind.DELETED,
}

DEBOUNCE_WINDOW_SEC = 0.3
MAX_DEBOUNCE_WAIT_SEC = 2.0

_FLUSH_POLL_SEC = 0.1
_RETRY_DELAY_SEC = 1.0

_FORMAT_LABELS: dict[str, str] = {
    ".ts": "TypeScript",
    ".tsx": "TSX",
    ".js": "JavaScript",
    ".jsx": "JSX",
    ".json": "JSON",
    ".css": "CSS",
    ".less": "Less",
    ".scss": "SCSS",
    ".sass": "Sass",
}


def _collect_watch_dirs(repo_root: Path, ignored_dirs: frozenset[str]) -> list[Path]:
    """The root plus every directory below it that is not pruned."""
    collected = [repo_root]
    with contextlib.suppress(OSError):
        for current, subdirs, _files in os.walk(repo_root):
            subdirs[:] = [name for name in subdirs if name not in ignored_dirs]
            collected.extend(Path(current, name) for name in subdirs)
    return collected


def _summarize_changes_by_type(paths: list[Path]) -> str:
    """Human summary for logs, e.g. ``"2 TSX files, 1 Less file"``."""
    by_suffix = Counter(path.suffix.lower() for path in paths)
    top = by_suffix.most_common(3)

    pieces = []
    for suffix, count in top:
        label = _FORMAT_LABELS.get(suffix) or (suffix[1:].upper() if suffix else "other")
        pieces.append(f"{count} {label} {'file' if count == 1 else 'files'}")

    rest = len(paths) - sum(count for _suffix, count in top)
    if rest:
        pieces.append(f"{rest} {'other' if rest == 1 else 'others'}")
    return ", ".join(pieces)


@dataclass
class FileWatcher:
    """Debounced watcher forwarding per-file notifications to ``on_event``.

    A burst of changes is held until ``debounce_window`` seconds pass with
    nothing new, or until ``max_debounce_wait`` seconds after its first
    change. Within one burst the latest kind recorded for a path wins.
    """

    repo_root: Path
    on_event: Callable[[Path, FileEventKind], object]
    is_relevant: Callable[[Path], bool] = lambda _path: True
    ignored_dirs: frozenset[str] = PRUNABLE_DIRS
    debounce_window: float = DEBOUNCE_WINDOW_SEC
    max_debounce_wait: float = MAX_DEBOUNCE_WAIT_SEC

    _watch_task: asyncio.Task[None] | None = field(default=None, init=False)
    _debounce_task: asyncio.Task[None] | None = field(default=None, init=False)
    _stop_event: asyncio.Event = field(default_factory=asyncio.Event, init=False)
    _pending_changes: dict[Path, FileEventKind] = field(default_factory=dict, init=False)
    _first_change_time: float = field(default=0.0, init=False)
    _last_change_time: float = field(default=0.0, init=False)
    _watched_dirs: set[Path] = field(default_factory=set, init=False)

    @property
    def pending(self) -> dict[Path, FileEventKind]:
        return dict(self._pending_changes)

    async def start(self) -> None:
        if self._watch_task is not None:
            return
        self._stop_event.clear()
        self._watch_task = asyncio.create_task(self._watch_loop())
        logger.info(
            "file_watcher_started",
            repo_root=str(self.repo_root),
            debounce_window=self.debounce_window,
        )

    async def stop(self) -> None:
        """Stop watching; changes already buffered are still delivered."""
        self._stop_event.set()

        debounce, self._debounce_task = self._debounce_task, None
        if debounce is not None:
            debounce.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await debounce

        self._flush_pending()

        watch, self._watch_task = self._watch_task, None
        if watch is not None:
            watch.cancel()
            with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
                await asyncio.wait_for(watch, timeout=2.0)

        logger.info("file_watcher_stopped")

    def _queue_change(self, path: Path, kind: FileEventKind) -> None:
        now = time.monotonic()
        if not self._pending_changes:
            self._first_change_time = now
        self._last_change_time = now
        self._pending_changes[path] = kind

    def _should_flush(self) -> bool:
        if not self._pending_changes:
            return False
        now = time.monotonic()
        quiet = now - self._last_change_time >= self.debounce_window
        overdue = now - self._first_change_time >= self.max_debounce_wait
        return quiet or overdue

    def _flush_pending(self) -> None:
        """Hand the buffered burst to ``on_event`` in path order."""
        if not self._pending_changes:
            return
        burst = sorted(self._pending_changes.items())
        self._pending_changes = {}
        self._first_change_time = self._last_change_time = 0.0

        logger.info(
            "changes_detected",
            count=len(burst),
            summary=_summarize_changes_by_type([path for path, _kind in burst]),
        )
        for path, kind in burst:
            self.on_event(path, kind)

    async def _debounce_flush_loop(self) -> None:
        with contextlib.suppress(asyncio.CancelledError):
            while not self._stop_event.is_set():
                await asyncio.sleep(_FLUSH_POLL_SEC)
                if self._should_flush():
                    self._flush_pending()

    async def _watch_loop(self) -> None:
        self._debounce_task = asyncio.create_task(self._debounce_flush_loop())
        try:
            while not self._stop_event.is_set():
                await self._watch_once()
        except asyncio.CancelledError:
            pass
        finally:
            if self._debounce_task is not None:
                self._debounce_task.cancel()

    async def _watch_once(self) -> None:
        """One awatch session; returns when a restart is needed or on stop."""
        dirs = _collect_watch_dirs(self.repo_root, self.ignored_dirs)
        self._watched_dirs = set(dirs)
        logger.debug("watch_dirs_collected", count=len(dirs))
        try:
            async for changes in awatch(
                *dirs,
                recursive=False,
                step=100,
                stop_event=self._stop_event,
                ignore_permission_denied=True,
            ):
                if self._handle_changes(changes):
                    logger.info("watcher_restart_requested", reason="new_directories")
                    return
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._stop_event.is_set():
                return
            logger.error("watcher_error", error=str(e))
            await asyncio.sleep(_RETRY_DELAY_SEC)

    def _handle_changes(self, changes: set[tuple[Change, str]]) -> bool:
        """Buffer one raw batch. True when a new directory needs a watch.

        A new directory is also forwarded, since it may arrive with files
        already inside (a move into the workspace). A deleted one is
        forwarded so its files leave the index.
        """
        restart = False
        for change, raw_path in changes:
            path = Path(raw_path)
            try:
                rel = path.relative_to(self.repo_root)
            except ValueError:
                continue
            if is_ignored_path(rel.parts, self.ignored_dirs):
                continue

            if path.is_dir():
                if change != Change.added or path.name in self.ignored_dirs:
                    continue
                if path in self._watched_dirs:
                    continue
                logger.info("new_directory_detected", path=str(rel))
                restart = True
            elif change == Change.deleted:
                self._watched_dirs.discard(path)

            if self.is_relevant(path):
                self._queue_change(path, CHANGE_KINDS[change])
                logger.debug("path_queued", path=str(rel), change=change.name)
            else:
                logger.debug("path_ignored", path=str(rel))
        return restart
