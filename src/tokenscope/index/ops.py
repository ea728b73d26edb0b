"""High-level orchestration of the token engine.

This module implements the two entry points of the engine:

- TokenScanner: owns the token index and is its only writer. A full scan
  enumerates the workspace, fans per-file extraction out to a thread pool,
  merges the results in path order and publishes a new index by swapping
  it in. A scan generation counter keeps a late-finishing stale scan from
  replacing a newer one.
- TokenEngine: the facade a requester talks to. It holds open-document
  snapshots and answers hover and go-to-definition queries from the last
  published index.

Every file-change notification triggers a debounced full re-scan. This
rebuild-everything model costs a whole-workspace pass per change; the
trade is correctness by reconstruction over incremental patching.
"""

from __future__ import annotations

import asyncio
import contextlib
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from tokenscope.config.models import ScanConfig, TokenScopeConfig
from tokenscope.core.errors import ExtractionError
from tokenscope.core.excludes import build_ignored_dirs, is_ignored_path
from tokenscope.core.formats import DocumentFormat, detect_format, grammar_for_path
from tokenscope.core.logging import query_scope
from tokenscope.index._internal.discovery import enumerate_files
from tokenscope.index._internal.extraction import describe, extract_file
from tokenscope.index._internal.parsing import TreeSitterParser
from tokenscope.index._internal.resolve import (
    confirm_word_on_line,
    match_definitions,
    resolve_local,
    resolve_word,
)
from tokenscope.index.models import (
    AnswerKind,
    FileEventKind,
    Location,
    Position,
    ResolvedAnswer,
    ScanStats,
    TokenDefinition,
    path_to_uri,
    uri_to_path,
)
from tokenscope.index.store import TokenIndex

if TYPE_CHECKING:
    from tokenscope.daemon.watcher import FileWatcher

logger = structlog.get_logger()


class TokenScanner:
    """
    Scan orchestrator with a single-writer index.

    The published ``TokenIndex`` is never mutated: each scan builds a fresh
    one and replaces the reference. Readers holding the old index keep a
    consistent (if stale) view.

    Usage::

        scanner = TokenScanner(ScanConfig())
        stats = await scanner.full_scan(Path("/repo"))
        scanner.index.lookup("colorPrimary")
    """

    def __init__(
        self,
        config: ScanConfig | None = None,
        *,
        debounce_seconds: float = 0.3,
    ) -> None:
        self.config = config or ScanConfig()
        self.debounce_seconds = debounce_seconds

        self._ignored_dirs = build_ignored_dirs(self.config.extra_ignored_dirs)
        self._extensions = self.config.extension_map()
        self._all_extensions = frozenset().union(*self._extensions.values())

        self._root: Path | None = None
        self._index: TokenIndex | None = None
        self._generation = 0
        self._published_generation = 0
        self._last_stats: ScanStats | None = None

        self._executor: ThreadPoolExecutor | None = None
        self._local = threading.local()
        self._debounce_task: asyncio.Task[None] | None = None
        self._scan_tasks: set[asyncio.Task[ScanStats]] = set()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def root(self) -> Path | None:
        return self._root

    @property
    def index(self) -> TokenIndex | None:
        """Last published index, or None before the first scan publishes."""
        return self._index

    @property
    def ready(self) -> bool:
        return self._root is not None and self._index is not None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def last_stats(self) -> ScanStats | None:
        return self._last_stats

    @property
    def extensions(self) -> dict[DocumentFormat, frozenset[str]]:
        return self._extensions

    @property
    def ignored_dirs(self) -> frozenset[str]:
        return self._ignored_dirs

    def set_root(self, root: Path) -> None:
        """Set the workspace root. A different root drops the published index."""
        root = Path(root).resolve()
        if root != self._root:
            self._root = root
            self._index = None
            logger.info("workspace_root_set", root=str(root))

    # ------------------------------------------------------------------
    # Full scan
    # ------------------------------------------------------------------

    async def full_scan(self, root: Path | None = None) -> ScanStats:
        """
        Enumerate, extract and publish a new index.

        Per-file failures are logged and skipped; they never fail the scan.
        The result is published only if no newer scan has published first.
        """
        if root is not None:
            self.set_root(root)
        if self._root is None:
            msg = "No workspace root set"
            raise RuntimeError(msg)

        scan_root = self._root
        self._generation += 1
        generation = self._generation
        start_time = time.time()
        logger.info("scan_started", root=str(scan_root), generation=generation)

        enumeration = await asyncio.to_thread(
            enumerate_files, scan_root, self._ignored_dirs, self._all_extensions
        )
        stats = ScanStats(
            generation=generation,
            files_discovered=len(enumeration.paths),
            enumeration_errors=list(enumeration.errors),
        )

        loop = asyncio.get_running_loop()
        executor = self._ensure_executor()
        results = await asyncio.gather(
            *(loop.run_in_executor(executor, self._extract_one, path) for path in enumeration.paths)
        )

        # Merge in enumeration order, not completion order
        index = TokenIndex()
        for definitions in results:
            if definitions is None:
                stats.files_failed += 1
                continue
            stats.files_indexed += 1
            index.extend(definitions)

        stats.definitions = index.definition_count
        stats.token_names = len(index)
        stats.duration_seconds = time.time() - start_time

        if generation <= self._published_generation or scan_root != self._root:
            logger.info(
                "scan_superseded",
                generation=generation,
                published_generation=self._published_generation,
            )
            return stats

        self._index = index
        self._published_generation = generation
        self._last_stats = stats
        stats.published = True
        logger.info(
            "scan_completed",
            generation=generation,
            files=stats.files_indexed,
            failed=stats.files_failed,
            definitions=stats.definitions,
            names=stats.token_names,
            duration=round(stats.duration_seconds, 3),
        )
        return stats

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.max_workers,
                thread_name_prefix="tokenscope-extract",
            )
        return self._executor

    def _thread_parser(self) -> TreeSitterParser:
        parser: TreeSitterParser | None = getattr(self._local, "parser", None)
        if parser is None:
            parser = TreeSitterParser()
            self._local.parser = parser
        return parser

    def _extract_one(self, path: Path) -> list[TokenDefinition] | None:
        """Extract one file (thread pool). None means the file failed."""
        fmt = detect_format(path, self._extensions)
        if fmt is None:
            return []
        try:
            definitions = extract_file(
                fmt,
                path,
                path_to_uri(path),
                max_bytes=self.config.max_file_size_kb * 1024,
                parser=self._thread_parser(),
            )
        except ExtractionError as e:
            logger.warning(
                "file_extraction_failed",
                path=str(path),
                code=e.error_name,
                retryable=e.retryable,
                error=e.message,
            )
            return None
        except Exception as e:
            # One broken file must not abort the scan
            logger.warning(
                "file_extraction_failed", path=str(path), error=str(e), exc_info=True
            )
            return None
        logger.debug("file_extracted", path=str(path), format=fmt.value, count=len(definitions))
        return definitions

    # ------------------------------------------------------------------
    # File events
    # ------------------------------------------------------------------

    def is_relevant(self, path: Path) -> bool:
        """Whether a change to ``path`` can affect the index.

        Supported files count, and so do directories: one that appears may
        already hold files, and one that disappears takes its indexed files
        with it.
        """
        if self._root is None:
            return False
        try:
            rel_path = path.resolve().relative_to(self._root)
        except ValueError:
            return False
        if is_ignored_path(rel_path.parts, self._ignored_dirs):
            return False
        if detect_format(path, self._extensions) is not None:
            return True
        if not rel_path.parts or rel_path.name in self._ignored_dirs:
            return False
        return path.is_dir() or self._indexes_under(path)

    def _indexes_under(self, directory: Path) -> bool:
        """True if the published index holds files below ``directory``."""
        if self._index is None:
            return False
        prefix = path_to_uri(directory).rstrip("/") + "/"
        return any(uri.startswith(prefix) for uri in self._index.uris())

    def on_file_event(self, path: Path | str, kind: FileEventKind) -> bool:
        """Schedule a debounced full re-scan for a relevant change.

        Must be called from the event loop thread. Returns True if a
        re-scan was scheduled.
        """
        path = Path(path)
        if self._root is not None and not path.is_absolute():
            path = self._root / path
        if not self.is_relevant(path):
            logger.debug("file_event_ignored", path=str(path), kind=kind.value)
            return False
        logger.debug("file_event", path=str(path), kind=kind.value)
        self._schedule_rescan()
        return True

    def _schedule_rescan(self) -> None:
        loop = asyncio.get_running_loop()

        # Restart the quiet window
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()

        self._debounce_task = loop.create_task(self._debounced_rescan())

    async def _debounced_rescan(self) -> None:
        try:
            await asyncio.sleep(self.debounce_seconds)
        except asyncio.CancelledError:
            return
        # The scan runs in its own task so a later event cannot cancel it
        task = asyncio.get_running_loop().create_task(self.full_scan())
        self._scan_tasks.add(task)
        task.add_done_callback(self._on_scan_done)

    def _on_scan_done(self, task: asyncio.Task[ScanStats]) -> None:
        self._scan_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("rescan_failed", error=str(exc))

    async def wait_for_rescan(self) -> None:
        """Wait until any pending debounce window and triggered scans finish."""
        if self._debounce_task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._debounce_task
        if self._scan_tasks:
            await asyncio.gather(*self._scan_tasks, return_exceptions=True)

    async def stop(self) -> None:
        """Cancel pending re-scans and shut down the worker pool."""
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._debounce_task
        self._debounce_task = None

        if self._scan_tasks:
            await asyncio.gather(*self._scan_tasks, return_exceptions=True)

        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None


class TokenEngine:
    """
    Query facade over a TokenScanner.

    The requester supplies the workspace root, open-document snapshots and
    file-change notifications; it asks hover and definition questions by
    document URI and position.

    Queries never wait for a scan. Before a root is set and the first scan
    has published, hover answers NOT_READY and definitions are empty.

    Usage::

        engine = TokenEngine(load_config(repo_root))
        await engine.full_scan(repo_root)
        engine.open_document(uri, text)
        answer = engine.hover_query(uri, Position(12, 18))
        print(answer.to_markdown())
    """

    def __init__(self, config: TokenScopeConfig | None = None) -> None:
        self.config = config or TokenScopeConfig()
        self.scanner = TokenScanner(
            self.config.scan,
            debounce_seconds=self.config.watcher.debounce_sec,
        )
        self._documents: dict[str, str] = {}
        self._parser = TreeSitterParser()
        self._watcher: FileWatcher | None = None

    @property
    def ready(self) -> bool:
        return self.scanner.ready

    @property
    def index(self) -> TokenIndex | None:
        return self.scanner.index

    def set_root(self, root: Path) -> None:
        self.scanner.set_root(root)

    async def full_scan(self, root: Path | None = None) -> ScanStats:
        return await self.scanner.full_scan(root)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def open_document(self, uri: str, text: str) -> None:
        """Register (or replace) the live text of an open document."""
        self._documents[uri] = text

    def close_document(self, uri: str) -> None:
        self._documents.pop(uri, None)

    def document_text(self, uri: str) -> str | None:
        """Open-document snapshot, else the file's text on disk."""
        if uri in self._documents:
            return self._documents[uri]
        try:
            return uri_to_path(uri).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def hover_query(self, uri: str, position: Position) -> ResolvedAnswer:
        """Resolve the token under the cursor.

        Local resolution in the requesting document comes first; the
        workspace index is the fallback.
        """
        with query_scope("hover", uri):
            answer = self._hover(uri, position)
            logger.debug(
                "hover_resolved",
                word=answer.word,
                kind=answer.kind.value,
                candidates=len(answer.definitions),
                usages=len(answer.usages),
            )
        return answer

    def _hover(self, uri: str, position: Position) -> ResolvedAnswer:
        index = self.scanner.index
        if not self.scanner.ready or index is None:
            return ResolvedAnswer.not_ready()

        text = self.document_text(uri)
        if text is None:
            return ResolvedAnswer.empty()
        word = resolve_word(text, position.line, position.character)
        if not word:
            return ResolvedAnswer.empty()

        path = uri_to_path(uri)
        fmt = detect_format(path, self.scanner.extensions)
        grammar = grammar_for_path(path)
        description = describe(word)

        usages: list[TokenDefinition] = []
        if fmt == DocumentFormat.SCRIPT:
            result = self._parser.parse(path, text.encode("utf-8"), fallback="tsx")
            local = resolve_local(result, uri, position.line, position.character, word)
            if local.resolved:
                return ResolvedAnswer(
                    kind=AnswerKind.LOCAL,
                    word=word,
                    local_value=local.value,
                    description=description,
                )
            usages = local.usages

        candidates = index.lookup(word)
        if not candidates and not usages:
            return ResolvedAnswer.empty(word)

        confirmed = len(candidates) > 1 and confirm_word_on_line(
            text, grammar, position.line, position.character, word, self._parser
        )
        match = match_definitions(candidates, uri, fmt, confirmed=confirmed)
        return ResolvedAnswer(
            kind=AnswerKind.WORKSPACE if candidates else AnswerKind.LOCAL,
            word=word,
            usages=usages,
            groups=match.groups,
            best=match.best,
            description=description,
        )

    def definition_query(self, uri: str, position: Position) -> list[Location]:
        """Locations of every indexed definition of the word under the cursor."""
        with query_scope("definition", uri):
            locations = self._definitions(uri, position)
            logger.debug("definition_resolved", count=len(locations))
        return locations

    def _definitions(self, uri: str, position: Position) -> list[Location]:
        index = self.scanner.index
        if not self.scanner.ready or index is None:
            return []
        text = self.document_text(uri)
        if text is None:
            return []
        word = resolve_word(text, position.line, position.character)
        if not word:
            return []
        return [definition.location() for definition in index.lookup(word)]

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------

    def on_file_event(self, path: Path | str, kind: FileEventKind) -> bool:
        return self.scanner.on_file_event(path, kind)

    async def start_watching(self) -> None:
        """Watch the workspace root and forward changes to on_file_event."""
        if self._watcher is not None or not self.config.watcher.enabled:
            return
        root = self.scanner.root
        if root is None:
            msg = "No workspace root set"
            raise RuntimeError(msg)

        from tokenscope.daemon.watcher import FileWatcher

        self._watcher = FileWatcher(
            repo_root=root,
            on_event=self.on_file_event,
            is_relevant=self.scanner.is_relevant,
            ignored_dirs=self.scanner.ignored_dirs,
            debounce_window=self.config.watcher.debounce_sec,
            max_debounce_wait=self.config.watcher.max_debounce_wait_sec,
        )
        await self._watcher.start()

    async def stop(self) -> None:
        if self._watcher is not None:
            await self._watcher.stop()
            self._watcher = None
        await self.scanner.stop()
