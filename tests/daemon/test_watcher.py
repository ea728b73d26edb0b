"""Tests for the workspace file watcher.

Tests cover:
- _collect_watch_dirs() directory walk and pruning
- _summarize_changes_by_type() log summaries
- FileWatcher debouncing and flush order
- Raw change handling (ignore set, relevance filter, new directories)
- Start/stop lifecycle against a real awatch loop
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from watchfiles import Change

from tokenscope.core.excludes import HARDCODED_DIRS, PRUNABLE_DIRS
from tokenscope.daemon.watcher import (
    CHANGE_KINDS,
    DEBOUNCE_WINDOW_SEC,
    MAX_DEBOUNCE_WAIT_SEC,
    FileWatcher,
    _collect_watch_dirs,
    _summarize_changes_by_type,
)
from tokenscope.index.models import FileEventKind

if TYPE_CHECKING:
    from collections.abc import Generator


class TestCollectWatchDirs:
    """Tests for _collect_watch_dirs function."""

    def test_includes_repo_root(self, tmp_path: Path) -> None:
        """Repo root is always included in the watch list."""
        dirs = _collect_watch_dirs(tmp_path, PRUNABLE_DIRS)
        assert tmp_path in dirs

    def test_excludes_hardcoded_dirs(self, tmp_path: Path) -> None:
        """VCS and tokenscope data directories are never watched."""
        (tmp_path / ".git").mkdir()
        (tmp_path / ".tokenscope").mkdir()
        (tmp_path / "src").mkdir()

        dir_names = {d.name for d in _collect_watch_dirs(tmp_path, PRUNABLE_DIRS)}

        assert HARDCODED_DIRS.isdisjoint(dir_names)
        assert "src" in dir_names

    def test_excludes_prunable_dirs(self, tmp_path: Path) -> None:
        """Dependency and build directories are excluded."""
        (tmp_path / "src").mkdir()
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "dist").mkdir()

        dir_names = {d.name for d in _collect_watch_dirs(tmp_path, PRUNABLE_DIRS)}

        assert "src" in dir_names
        assert "node_modules" not in dir_names
        assert "dist" not in dir_names

    def test_walks_recursively(self, tmp_path: Path) -> None:
        """Collects nested directories."""
        (tmp_path / "src" / "theme" / "dark").mkdir(parents=True)

        dirs = set(_collect_watch_dirs(tmp_path, PRUNABLE_DIRS))

        assert tmp_path / "src" / "theme" / "dark" in dirs

    def test_prunes_nested_ignored_dirs(self, tmp_path: Path) -> None:
        """Ignored names are pruned at any depth, with their subtrees."""
        (tmp_path / "packages" / "ui" / "node_modules" / "antd").mkdir(parents=True)

        dir_names = {d.name for d in _collect_watch_dirs(tmp_path, PRUNABLE_DIRS)}

        assert "ui" in dir_names
        assert "node_modules" not in dir_names
        assert "antd" not in dir_names

    def test_custom_ignore_set(self, tmp_path: Path) -> None:
        """Extra ignored names from configuration are honored."""
        (tmp_path / "generated").mkdir()

        dirs = _collect_watch_dirs(tmp_path, PRUNABLE_DIRS | {"generated"})

        assert tmp_path / "generated" not in dirs


class TestSummarizeChanges:
    """Tests for _summarize_changes_by_type."""

    def test_single_type(self) -> None:
        summary = _summarize_changes_by_type([Path("a.tsx"), Path("b.tsx")])
        assert summary == "2 TSX files"

    def test_mixed_types(self) -> None:
        paths = [Path("theme.json"), Path("vars.less"), Path("App.tsx"), Path("Card.tsx")]
        summary = _summarize_changes_by_type(paths)

        assert summary.startswith("2 TSX files")
        assert "1 JSON file" in summary
        assert "1 Less file" in summary

    def test_overflow_counted_as_others(self) -> None:
        """Only the three most common types are named."""
        paths = [Path("a.ts"), Path("b.json"), Path("c.less"), Path("d.scss"), Path("e.css")]
        summary = _summarize_changes_by_type(paths)
        assert summary.endswith("2 others")

    def test_unknown_extension(self) -> None:
        assert _summarize_changes_by_type([Path("file.xyz")]) == "1 XYZ file"

    def test_empty_list(self) -> None:
        assert _summarize_changes_by_type([]) == ""


class TestChangeKinds:
    def test_every_change_mapped(self) -> None:
        """Every watchfiles change type maps to a notification kind."""
        assert set(CHANGE_KINDS) == set(Change)
        assert CHANGE_KINDS[Change.deleted] == FileEventKind.DELETED


class TestFileWatcherDebouncing:
    """Tests for FileWatcher debouncing behavior."""

    @pytest.fixture
    def events(self) -> list[tuple[Path, FileEventKind]]:
        return []

    @pytest.fixture
    def watcher(
        self, tmp_path: Path, events: list[tuple[Path, FileEventKind]]
    ) -> Generator[FileWatcher, None, None]:
        """Create a FileWatcher recording delivered events."""
        watcher = FileWatcher(
            repo_root=tmp_path,
            on_event=lambda path, kind: events.append((path, kind)),
            debounce_window=0.1,
            max_debounce_wait=0.5,
        )
        yield watcher

    def test_debounce_constants(self) -> None:
        """Debounce constants have sensible relative values."""
        assert 0 < DEBOUNCE_WINDOW_SEC < MAX_DEBOUNCE_WAIT_SEC < 10.0

    def test_queue_change_adds_to_pending(self, watcher: FileWatcher) -> None:
        path = Path("theme.ts")
        watcher._queue_change(path, FileEventKind.MODIFIED)
        assert watcher.pending == {path: FileEventKind.MODIFIED}

    def test_last_kind_wins(self, watcher: FileWatcher) -> None:
        """Within one window a later change replaces the earlier kind."""
        path = Path("theme.ts")
        watcher._queue_change(path, FileEventKind.ADDED)
        watcher._queue_change(path, FileEventKind.DELETED)
        assert watcher.pending == {path: FileEventKind.DELETED}

    def test_queue_change_sets_timestamps(self, watcher: FileWatcher) -> None:
        watcher._queue_change(Path("theme.ts"), FileEventKind.MODIFIED)
        assert watcher._first_change_time > 0
        assert watcher._last_change_time > 0

    def test_should_flush_after_window(self, watcher: FileWatcher) -> None:
        """_should_flush returns True after the quiet window."""
        watcher._queue_change(Path("theme.ts"), FileEventKind.MODIFIED)
        watcher._last_change_time = time.monotonic() - watcher.debounce_window - 0.01
        assert watcher._should_flush() is True

    def test_should_not_flush_during_window(self, watcher: FileWatcher) -> None:
        watcher._queue_change(Path("theme.ts"), FileEventKind.MODIFIED)
        assert watcher._should_flush() is False

    def test_should_flush_after_max_wait(self, watcher: FileWatcher) -> None:
        """A steady stream of changes is flushed once the max wait is hit."""
        watcher._queue_change(Path("theme.ts"), FileEventKind.MODIFIED)
        watcher._first_change_time = time.monotonic() - watcher.max_debounce_wait - 0.01
        assert watcher._should_flush() is True

    def test_nothing_pending_never_flushes(self, watcher: FileWatcher) -> None:
        assert watcher._should_flush() is False

    def test_flush_delivers_in_path_order(
        self, watcher: FileWatcher, events: list[tuple[Path, FileEventKind]]
    ) -> None:
        watcher._queue_change(Path("b.less"), FileEventKind.MODIFIED)
        watcher._queue_change(Path("a.json"), FileEventKind.ADDED)

        watcher._flush_pending()

        assert events == [
            (Path("a.json"), FileEventKind.ADDED),
            (Path("b.less"), FileEventKind.MODIFIED),
        ]

    def test_flush_pending_clears_state(self, watcher: FileWatcher) -> None:
        watcher._queue_change(Path("theme.ts"), FileEventKind.MODIFIED)
        watcher._flush_pending()

        assert watcher.pending == {}
        assert watcher._first_change_time == 0.0
        assert watcher._last_change_time == 0.0


class TestHandleChanges:
    """Tests for raw change handling."""

    @pytest.fixture
    def watcher(self, tmp_path: Path) -> FileWatcher:
        return FileWatcher(
            repo_root=tmp_path,
            on_event=lambda _path, _kind: None,
            is_relevant=lambda path: path.suffix in {".ts", ".json"},
        )

    def test_relevant_change_queued(self, watcher: FileWatcher, tmp_path: Path) -> None:
        path = tmp_path / "theme.ts"
        restart = watcher._handle_changes({(Change.modified, str(path))})

        assert restart is False
        assert watcher.pending == {path: FileEventKind.MODIFIED}

    def test_irrelevant_change_dropped(self, watcher: FileWatcher, tmp_path: Path) -> None:
        watcher._handle_changes({(Change.modified, str(tmp_path / "README.md"))})
        assert watcher.pending == {}

    def test_ignored_dir_dropped(self, watcher: FileWatcher, tmp_path: Path) -> None:
        path = tmp_path / "node_modules" / "antd" / "theme.ts"
        watcher._handle_changes({(Change.added, str(path))})
        assert watcher.pending == {}

    def test_outside_root_dropped(self, watcher: FileWatcher, tmp_path: Path) -> None:
        outside = tmp_path.parent / "elsewhere.ts"
        watcher._handle_changes({(Change.added, str(outside))})
        assert watcher.pending == {}

    def test_new_directory_requests_restart(self, watcher: FileWatcher, tmp_path: Path) -> None:
        """A new directory must be watched, so the awatch loop restarts."""
        new_dir = tmp_path / "themes"
        new_dir.mkdir()

        assert watcher._handle_changes({(Change.added, str(new_dir))}) is True
        assert watcher.pending == {}

    def test_new_ignored_directory_no_restart(
        self, watcher: FileWatcher, tmp_path: Path
    ) -> None:
        new_dir = tmp_path / "node_modules"
        new_dir.mkdir()

        assert watcher._handle_changes({(Change.added, str(new_dir))}) is False


class TestDirectoryChanges:
    """Directories appearing or disappearing are forwarded for a rescan."""

    @pytest.fixture
    def events(self) -> list[tuple[Path, FileEventKind]]:
        return []

    @pytest.fixture
    def watcher(self, tmp_path: Path, events: list[tuple[Path, FileEventKind]]) -> FileWatcher:
        return FileWatcher(
            repo_root=tmp_path, on_event=lambda path, kind: events.append((path, kind))
        )

    def test_new_directory_with_files_forwarded(
        self,
        watcher: FileWatcher,
        events: list[tuple[Path, FileEventKind]],
        tmp_path: Path,
    ) -> None:
        """Files moved in with their directory produce no events of their own."""
        theme_dir = tmp_path / "theme"
        theme_dir.mkdir()
        (theme_dir / "tokens.tsx").write_text("export const t = { colorPrimary: '#1' };\n")

        assert watcher._handle_changes({(Change.added, str(theme_dir))}) is True
        watcher._flush_pending()

        assert events == [(theme_dir, FileEventKind.ADDED)]

    def test_deleted_directory_forwarded(
        self,
        watcher: FileWatcher,
        events: list[tuple[Path, FileEventKind]],
        tmp_path: Path,
    ) -> None:
        gone = tmp_path / "theme"
        watcher._watched_dirs = {tmp_path, gone}

        assert watcher._handle_changes({(Change.deleted, str(gone))}) is False
        watcher._flush_pending()

        assert events == [(gone, FileEventKind.DELETED)]
        assert gone not in watcher._watched_dirs

    def test_directory_modification_ignored(self, watcher: FileWatcher, tmp_path: Path) -> None:
        """Metadata churn on an existing directory is not a structural change."""
        (tmp_path / "src").mkdir()
        watcher._handle_changes({(Change.modified, str(tmp_path / "src"))})
        assert watcher.pending == {}

    def test_already_watched_directory_not_forwarded(
        self, watcher: FileWatcher, tmp_path: Path
    ) -> None:
        src = tmp_path / "src"
        src.mkdir()
        watcher._watched_dirs = {tmp_path, src}

        assert watcher._handle_changes({(Change.added, str(src))}) is False
        assert watcher.pending == {}


class TestFileWatcherLifecycle:
    """Tests against a running awatch loop."""

    @pytest.mark.asyncio
    async def test_detects_new_file(self, tmp_path: Path) -> None:
        """A file written under the root is delivered after the quiet window."""
        (tmp_path / "src").mkdir()
        events: list[tuple[Path, FileEventKind]] = []
        watcher = FileWatcher(
            repo_root=tmp_path,
            on_event=lambda path, kind: events.append((path, kind)),
            debounce_window=0.05,
            max_debounce_wait=0.2,
        )

        await watcher.start()
        try:
            await asyncio.sleep(0.2)
            (tmp_path / "src" / "theme.ts").write_text("export const t = {};\n")
            for _ in range(40):
                if events:
                    break
                await asyncio.sleep(0.1)
        finally:
            await watcher.stop()

        assert tmp_path / "src" / "theme.ts" in {path for path, _kind in events}

    @pytest.mark.asyncio
    async def test_collects_watch_dirs(self, tmp_path: Path) -> None:
        (tmp_path / "src" / "theme").mkdir(parents=True)
        (tmp_path / "node_modules").mkdir()
        watcher = FileWatcher(repo_root=tmp_path, on_event=lambda _path, _kind: None)

        await watcher.start()
        try:
            await asyncio.sleep(0.2)
            watched_names = {d.name for d in watcher._watched_dirs}
            assert "src" in watched_names
            assert "theme" in watched_names
            assert "node_modules" not in watched_names
        finally:
            await watcher.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_tasks(self, tmp_path: Path) -> None:
        watcher = FileWatcher(repo_root=tmp_path, on_event=lambda _path, _kind: None)

        await watcher.start()
        await asyncio.sleep(0.1)
        await watcher.stop()

        assert watcher._watch_task is None
        assert watcher._debounce_task is None

    @pytest.mark.asyncio
    async def test_stop_flushes_pending(self, tmp_path: Path) -> None:
        """Changes seen before stop() are still delivered."""
        events: list[tuple[Path, FileEventKind]] = []
        watcher = FileWatcher(
            repo_root=tmp_path, on_event=lambda path, kind: events.append((path, kind))
        )
        watcher._queue_change(tmp_path / "a.json", FileEventKind.MODIFIED)

        await watcher.stop()

        assert events == [(tmp_path / "a.json", FileEventKind.MODIFIED)]
