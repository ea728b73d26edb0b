"""tokenscope daemon - workspace file watching."""

from tokenscope.daemon.watcher import FileWatcher

__all__ = ["FileWatcher"]
