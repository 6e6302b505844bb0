"""The escaped text primitive shared by almost every property.

A value runs until the first unescaped ``,``, ``;`` or ``:`` or the end of
the record. Inside it, a backslash may only precede one of those three
characters. There is no escape for the backslash itself, nor for line
breaks, so strings holding either cannot be written.
"""
from __future__ import annotations

from .errors import EscapeError, VCardContractError
from .scanner import LINE_BREAKS, Cursor

STOP_CHARS = ",;:"
ESCAPE = "\\"


def escape(value: str) -> str:
    """Backslash-prefix every stop character; nothing else changes."""
    if ESCAPE in value or any(ch in value for ch in LINE_BREAKS):
        raise VCardContractError(
            f"text value cannot hold a backslash or a line break: {value!r}"
        )
    chars: list[str] = []
    for char in value:
        if char in STOP_CHARS:
            chars.append(ESCAPE)
        chars.append(char)
    return "".join(chars)


def read_escaped(cursor: Cursor) -> str:
    """Consume one escaped string and return it with escapes resolved."""
    text = cursor.text
    end = len(text)
    chars: list[str] = []
    while cursor.pos < end:
        char = text[cursor.pos]
        if char in STOP_CHARS or char in LINE_BREAKS:
            break
        if char == ESCAPE:
            following = text[cursor.pos + 1:cursor.pos + 2]
            if not following or following in LINE_BREAKS:
                raise cursor.error(EscapeError, "dangling backslash at end of record")
            if following not in STOP_CHARS:
                raise cursor.error(
                    EscapeError, f"backslash may only escape ',', ';' or ':', not {following!r}"
                )
            chars.append(following)
            cursor.advance(2)
            continue
        chars.append(char)
        cursor.advance()
    return "".join(chars)


def read_escaped_list(cursor: Cursor, separator: str) -> tuple[str, ...]:
    """Read ``separator``-joined escaped strings.

    A lone empty component is the empty list, so ``()`` and ``""`` print
    the same way.
    """
    items = [read_escaped(cursor)]
    while cursor.consume(separator):
        items.append(read_escaped(cursor))
    if items == [""]:
        return ()
    return tuple(items)


def end_of_value(cursor: Cursor) -> None:
    """Fail if an unescaped stop character sits where the record should end."""
    if not cursor.at_line_end():
        raise cursor.error(
            EscapeError, f"unescaped {cursor.peek()!r} inside a text value"
        )


def unescape(value: str) -> str:
    """Decode a standalone escaped string."""
    cursor = Cursor(value)
    result = read_escaped(cursor)
    if not cursor.at_end():
        raise cursor.error(EscapeError, f"unescaped {cursor.peek()!r} in {value!r}")
    return result


def join_escaped(values: tuple[str, ...] | list[str], separator: str) -> str:
    return separator.join(escape(v) for v in values)
