from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Iterator

from .errors import ParseError, StructuralError

# Characters that may open a folded continuation line.
FOLD_CHARS = " \t\v"
LINE_BREAKS = "\r\n"


class Cursor:
    """A read position over an immutable text buffer.

    Every grammar in the package reads through a cursor. Consumption is
    explicit (``consume``, ``expect``, ``match``); ``backtrack`` restores the
    position when an optional group fails to parse.
    """

    def __init__(self, text: str, pos: int = 0) -> None:
        self.text = text
        self.pos = pos

    def __repr__(self) -> str:
        return f"Cursor(pos={self.pos}, ahead={self.text[self.pos:self.pos + 20]!r})"

    # ── Inspection ─────────────────────────────────────────────────────────────

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def at_line_end(self) -> bool:
        return self.at_end() or self.text[self.pos] in LINE_BREAKS

    def peek(self) -> str:
        """Return the next character, or '' at end of input."""
        return self.text[self.pos:self.pos + 1]

    def startswith(self, literal: str) -> bool:
        return self.text.startswith(literal, self.pos)

    def location(self, pos: int | None = None) -> tuple[int, int]:
        """1-based (line, column) of ``pos``, defaulting to the current one."""
        if pos is None:
            pos = self.pos
        line = self.text.count("\n", 0, pos) + 1
        column = pos - (self.text.rfind("\n", 0, pos) + 1) + 1
        return line, column

    # ── Consumption ────────────────────────────────────────────────────────────

    def advance(self, count: int = 1) -> None:
        self.pos += count

    def consume(self, literal: str) -> bool:
        if self.startswith(literal):
            self.pos += len(literal)
            return True
        return False

    def consume_any(self, literals: tuple[str, ...]) -> str | None:
        """Consume the first of ``literals`` found here and return it."""
        for literal in literals:
            if self.consume(literal):
                return literal
        return None

    def expect(self, literal: str, error: type[ParseError] = StructuralError) -> None:
        if not self.consume(literal):
            raise self.error(error, f"expected {literal!r}, found {self._found()}")

    def match(self, pattern: re.Pattern[str]) -> re.Match[str] | None:
        m = pattern.match(self.text, self.pos)
        if m is not None:
            self.pos = m.end()
        return m

    def read_line(self) -> str:
        """Consume and return everything up to the next CR, LF or end of input."""
        start = self.pos
        end = len(self.text)
        for index in range(start, end):
            if self.text[index] in LINE_BREAKS:
                end = index
                break
        self.pos = end
        return self.text[start:end]

    def read_folded(self, terminator: str) -> str:
        """Read a line plus any continuation lines that follow it.

        A continuation is a line that starts with a space, tab or vertical
        tab right after ``terminator``; that one character is dropped and the
        rest is appended.
        """
        parts = [self.read_line()]
        step = len(terminator)
        while self.startswith(terminator):
            lead = self.text[self.pos + step:self.pos + step + 1]
            if not lead or lead not in FOLD_CHARS:
                break
            self.pos += step + 1
            parts.append(self.read_line())
        return "".join(parts)

    @contextmanager
    def backtrack(self) -> Iterator[None]:
        """Restore the position if the enclosed parse raises."""
        saved = self.pos
        try:
            yield
        except ParseError:
            self.pos = saved
            raise

    # ── Errors ─────────────────────────────────────────────────────────────────

    def error(
        self,
        error: type[ParseError],
        message: str,
        pos: int | None = None,
    ) -> ParseError:
        if pos is None:
            pos = self.pos
        line, column = self.location(pos)
        return error(message, offset=pos, line=line, column=column)

    def _found(self) -> str:
        if self.at_end():
            return "end of input"
        return repr(self.text[self.pos:self.pos + 10])
