"""Entry and document grammars.

A document is a run of vCards separated by single newlines. Inside a vCard
each entry is one logical record terminated by CRLF; a vCard embedded in an
AGENT value uses bare LF instead, so the recursive call carries its own
terminator and depth.
"""
from __future__ import annotations

import logging
import re
from typing import Iterator

from .config import DEFAULT_SETTINGS, CodecSettings
from .errors import (
    RecursionLimitError,
    StructuralError,
    UnknownTagError,
    ValueFormatError,
)
from .model import Document, Entry, Tag, VCard
from .properties import (
    BEGIN,
    CRLF,
    END,
    LF,
    VCARD_KEYWORDS,
    FieldContext,
    decode_property,
)
from .scanner import Cursor
from .text import read_escaped

logger = logging.getLogger(__name__)

SEPARATORS = (";", ",", ":")

_GROUP = re.compile(r"item(\d+)\.")
_TAG_TOKEN = re.compile(r"[A-Za-z0-9-]*")


class Parser:
    def __init__(self, text: str, settings: CodecSettings | None = None) -> None:
        self.cursor = Cursor(text)
        self.settings = settings or DEFAULT_SETTINGS

    def iter_vcards(self) -> Iterator[VCard]:
        cursor = self.cursor
        while not cursor.at_end():
            yield self.read_vcard(depth=0, terminator=CRLF)
            if cursor.at_end():
                return
            # \n between cards; a CRLF or a trailing newline is tolerated
            if cursor.consume_any((CRLF, LF)) is None:
                raise cursor.error(
                    StructuralError, f"expected a newline after END:VCARD, found {cursor.peek()!r}"
                )

    # ── VCard ──────────────────────────────────────────────────────────────────

    def read_vcard(self, depth: int, terminator: str) -> VCard:
        cursor = self.cursor
        start = cursor.pos
        if depth > self.settings.max_nesting_depth:
            raise cursor.error(
                RecursionLimitError,
                f"embedded vCards nested deeper than {self.settings.max_nesting_depth} levels",
            )
        cursor.expect(BEGIN)
        self._read_vcard_keyword()
        cursor.expect(terminator)

        entries: list[Entry] = []
        while not cursor.startswith(END):
            if cursor.at_end():
                raise cursor.error(StructuralError, "input ends before END:VCARD")
            entries.append(self.read_entry(depth, terminator))
        if not entries:
            raise cursor.error(StructuralError, "a vCard needs at least one entry", start)

        cursor.expect(END)
        self._read_vcard_keyword()
        return VCard(tuple(entries))

    def _read_vcard_keyword(self) -> None:
        if self.cursor.consume_any(VCARD_KEYWORDS) is None:
            raise self.cursor.error(StructuralError, "expected VCARD or vCard")

    def _read_nested(self, depth: int) -> VCard:
        return self.read_vcard(depth, LF)

    # ── Entry ──────────────────────────────────────────────────────────────────

    def read_entry(self, depth: int, terminator: str) -> Entry:
        cursor = self.cursor
        start = cursor.pos
        if cursor.startswith(BEGIN):
            raise cursor.error(StructuralError, "BEGIN:VCARD inside a vCard; is an END:VCARD missing?")

        prefix = None
        group = cursor.match(_GROUP)
        if group is not None:
            prefix = int(group.group(1))
            if prefix < 1:
                raise cursor.error(ValueFormatError, "group index must be a positive integer", start)

        tag, name = self._read_tag()

        sep = cursor.peek()
        if sep not in SEPARATORS:
            raise cursor.error(StructuralError, "expected ';', ',' or ':' after the property tag")
        cursor.advance()

        ctx = FieldContext(
            cursor=cursor,
            sep=sep,
            terminator=terminator,
            depth=depth,
            settings=self.settings,
            read_nested=self._read_nested,
            extension_name=name,
        )
        prop = decode_property(tag, ctx)

        if not cursor.consume(terminator):
            if cursor.at_end():
                raise cursor.error(StructuralError, "record is not terminated before end of input")
            raise cursor.error(
                StructuralError, f"expected {terminator!r} at end of record, found {cursor.peek()!r}"
            )
        return Entry(tag=tag, property=prop, prefix=prefix)

    def _read_tag(self) -> tuple[Tag, str | None]:
        cursor = self.cursor
        start = cursor.pos
        if cursor.consume("X-"):
            name = read_escaped(cursor)
            if not name:
                raise cursor.error(UnknownTagError, "X- extension tag without a name", start)
            return Tag.EXTENSION, name

        token = cursor.match(_TAG_TOKEN).group()
        tag = Tag.from_keyword(token)
        if tag is Tag.ITEM:
            raise cursor.error(
                StructuralError, "'item' must be followed by a group index and '.'", start
            )
        if tag is None or tag is Tag.EXTENSION:
            raise cursor.error(UnknownTagError, f"unknown property tag {token!r}", start)
        return tag, None


def iter_decode(text: str, settings: CodecSettings | None = None) -> Iterator[VCard]:
    """Yield vCards one at a time; the generator is single-pass."""
    return Parser(text, settings).iter_vcards()


def decode(text: str, settings: CodecSettings | None = None) -> Document:
    document = Document(tuple(iter_decode(text, settings)))
    logger.debug("decoded %d vCard(s) from %d characters", len(document), len(text))
    return document
