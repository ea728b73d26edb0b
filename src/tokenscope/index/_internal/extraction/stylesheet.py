"""Style-variable extractor for CSS-like files (Less, SCSS, Sass, CSS).

Line oriented, no grammar. Every ``@name`` / ``$name`` on every line is
recorded, so declarations and usages (and at-rules such as ``@media``) are
all reported. Treat these entries as mentions, not authoritative
definitions.
"""

from __future__ import annotations

import re

from tokenscope.index.models import Position, SourceKind, TokenDefinition

VARIABLE_RE = re.compile(r"[@$]([A-Za-z_][\w-]*)")


def extract_stylesheet_tokens(text: str, uri: str) -> list[TokenDefinition]:
    """Style variable mentions with the exact position of their sigil."""
    definitions: list[TokenDefinition] = []
    for line_no, line in enumerate(text.split("\n")):
        for match in VARIABLE_RE.finditer(line):
            name = match.group(1)
            definitions.append(
                TokenDefinition(
                    name=name,
                    uri=uri,
                    value=name,
                    position=Position(line_no, match.start()),
                    source_kind=SourceKind.STYLE_VARIABLE,
                )
            )
    return definitions
