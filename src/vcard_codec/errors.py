"""Exception hierarchy for the vCard codec.

Decode failures are ``ParseError`` subclasses and always carry the position
at which the grammar gave up. Contract violations by the caller (rendering a
tree whose tag and property disagree, or text that cannot be escaped) are
``VCardContractError`` and never come out of ``decode``.
"""
from __future__ import annotations


class VCardError(Exception):
    """Root of every error raised by this package."""


class ParseError(VCardError, ValueError):
    def __init__(
        self,
        message: str,
        *,
        offset: int = 0,
        line: int = 1,
        column: int = 1,
        tag: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.line = line
        self.column = column
        self.tag = tag

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        where = f"line {self.line}, column {self.column}"
        if self.tag:
            return f"{self.kind} in {self.tag} at {where}: {self.message}"
        return f"{self.kind} at {where}: {self.message}"


class StructuralError(ParseError):
    """BEGIN/END framing, separators or record terminators are wrong."""


class UnknownTagError(ParseError):
    """A tag is neither a known keyword nor ``X-`` prefixed."""


class ValueFormatError(ParseError):
    """A payload does not have the shape its tag requires."""


class EscapeError(ParseError):
    """Bad backslash escape, or a stop character left unescaped."""


class DateFormatError(ValueFormatError):
    pass


class NumericFormatError(ValueFormatError):
    pass


class RecursionLimitError(ParseError):
    """Embedded AGENT vCards are nested deeper than allowed."""


class VCardContractError(VCardError, TypeError):
    """The caller handed the printer something it must never receive."""


class TagMismatchError(VCardContractError):
    pass
