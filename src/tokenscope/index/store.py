"""In-memory token index.

Maps token name (case-sensitive) to the ordered definitions found for it.
Multiple definitions per name are kept; nothing is deduplicated across
source kinds or files. Order is the order definitions were appended.

A ``TokenIndex`` is built by one scan and then only read. A newer scan
builds a fresh instance and the scanner swaps it in.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from tokenscope.index.models import TokenDefinition


class TokenIndex:
    """Name -> ordered list of TokenDefinition."""

    def __init__(self, definitions: Iterable[TokenDefinition] = ()) -> None:
        self._by_name: dict[str, list[TokenDefinition]] = {}
        self._count = 0
        self.extend(definitions)

    def append(self, definition: TokenDefinition) -> None:
        self._by_name.setdefault(definition.name, []).append(definition)
        self._count += 1

    def extend(self, definitions: Iterable[TokenDefinition]) -> None:
        for definition in definitions:
            self.append(definition)

    def lookup(self, name: str) -> list[TokenDefinition]:
        """Definitions for ``name`` in index order (empty if unknown)."""
        return list(self._by_name.get(name, ()))

    def names(self) -> list[str]:
        return sorted(self._by_name)

    def definitions_for_uri(self, uri: str) -> list[TokenDefinition]:
        return [d for defs in self._by_name.values() for d in defs if d.uri == uri]

    def uris(self) -> set[str]:
        """Every document URI that contributed a definition."""
        return {d.uri for defs in self._by_name.values() for d in defs}

    def normalized(self) -> dict[str, list[TokenDefinition]]:
        """Contents with each name's list sorted by (uri, position, kind).

        Two indexes built from the same files compare equal after this,
        whatever order their files completed in.
        """
        return {
            name: sorted(defs, key=lambda d: d.sort_key)
            for name, defs in sorted(self._by_name.items())
        }

    @property
    def definition_count(self) -> int:
        return self._count

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_name)

    def __repr__(self) -> str:
        return f"TokenIndex(names={len(self._by_name)}, definitions={self._count})"
