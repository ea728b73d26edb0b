"""Word lookup at an editor position.

Both lookups work on the raw line text, so they answer even when the
document does not parse.
"""

from __future__ import annotations

import re

# camelCase, kebab-case (style variables) and plain identifiers
WORD_RE = re.compile(r"[\w-]+")

# token.x, theme.token.x, a.b.token.x
TOKEN_PROPERTY_RE = re.compile(r"(?:\w+\.)*\btoken\.(\w+)")


def line_text(text: str, line: int) -> str | None:
    lines = text.split("\n")
    if line < 0 or line >= len(lines):
        return None
    return lines[line].rstrip("\r")


def word_at_position(text: str, line: int, character: int) -> str | None:
    """Maximal ``[\\w-]+`` run whose span contains the cursor.

    The end is inclusive: a cursor just past the last character still
    addresses the word.
    """
    current = line_text(text, line)
    if current is None:
        return None
    for match in WORD_RE.finditer(current):
        if match.start() <= character <= match.end():
            return match.group(0)
    return None


def token_property_at_position(text: str, line: int, character: int) -> str | None:
    """Name accessed through a ``token`` object, when the cursor is on it.

    For ``theme.token.colorPrimary`` this returns ``colorPrimary`` only if
    the cursor is over ``colorPrimary``; over ``token`` or ``theme`` it
    returns None.
    """
    current = line_text(text, line)
    if current is None:
        return None
    for match in TOKEN_PROPERTY_RE.finditer(current):
        if match.start(1) <= character <= match.end(1):
            return match.group(1)
    return None


def resolve_word(text: str, line: int, character: int) -> str | None:
    """Token property under the cursor if there is one, else the plain word."""
    return token_property_at_position(text, line, character) or word_at_position(
        text, line, character
    )
