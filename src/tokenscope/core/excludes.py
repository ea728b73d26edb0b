"""Directory names pruned from every workspace walk.

Used by the file enumerator, the watcher and file-event filtering, so a
directory that is never scanned is never watched either.

HARDCODED_DIRS: VCS internals and tokenscope's own data directory.
DEFAULT_PRUNABLE_DIRS: installed packages, framework build output and
tool caches, grouped by origin in ``PRUNABLE_GROUPS``.

A directory whose *name* is in the set is pruned at any nesting depth,
together with its whole subtree. ``ScanConfig.extra_ignored_dirs`` adds
names on top.
"""

from __future__ import annotations

from collections.abc import Iterable

HARDCODED_DIRS: frozenset[str] = frozenset({".git", ".svn", ".hg", ".bzr", ".tokenscope"})

PRUNABLE_GROUPS: dict[str, tuple[str, ...]] = {
    # Installed third-party code: antd's own token sources live here
    "packages": (
        "node_modules",
        "bower_components",
        "jspm_packages",
        ".pnpm-store",
        ".yarn",
        ".npm",
        "vendor",
    ),
    # Framework and bundler output
    "build": (
        "dist",
        "build",
        "out",
        ".next",
        ".nuxt",
        ".output",
        ".svelte-kit",
        ".umi",
        ".umi-production",
        ".docusaurus",
        ".expo",
        ".angular",
        "storybook-static",
    ),
    # Caches and reports
    "caches": (
        ".cache",
        ".turbo",
        ".parcel-cache",
        ".eslintcache",
        ".nx",
        "coverage",
        ".nyc_output",
        "tmp",
        "temp",
    ),
    # Editors and other toolchains sharing the repo
    "other": (
        ".idea",
        ".vscode",
        ".vs",
        "__pycache__",
        ".venv",
        "venv",
        ".tox",
        "target",
    ),
}

DEFAULT_PRUNABLE_DIRS: frozenset[str] = frozenset(
    name for names in PRUNABLE_GROUPS.values() for name in names
)

PRUNABLE_DIRS: frozenset[str] = HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS


def build_ignored_dirs(extra: Iterable[str] = ()) -> frozenset[str]:
    """The built-in set plus configured names (surrounding slashes dropped)."""
    names = (name.strip("/") for name in extra)
    return PRUNABLE_DIRS | frozenset(name for name in names if name)


def is_ignored_path(rel_parts: Iterable[str], ignored_dirs: frozenset[str]) -> bool:
    """True if a directory component of a workspace-relative path is ignored.

    The last component is the file itself and is not checked.
    """
    parts = list(rel_parts)
    return not ignored_dirs.isdisjoint(parts[:-1])


__all__ = [
    "DEFAULT_PRUNABLE_DIRS",
    "HARDCODED_DIRS",
    "PRUNABLE_DIRS",
    "PRUNABLE_GROUPS",
    "build_ignored_dirs",
    "is_ignored_path",
]
