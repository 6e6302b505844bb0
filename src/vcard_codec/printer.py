from __future__ import annotations

import logging

from .config import DEFAULT_SETTINGS, CodecSettings
from .errors import VCardContractError
from .model import Document, Entry, VCard
from .properties import BEGIN, CRLF, END, LF, RenderContext, encode_property, keyword_for

logger = logging.getLogger(__name__)


def fold(head: str, body: str, width: int, eol: str) -> str:
    """Lay ``head + body`` out in lines of at most ``width`` characters.

    Only ``body`` is split; continuation lines start with a single space.
    """
    first = max(width - len(head), 1)
    lines = [head + body[:first]]
    step = width - 1
    for index in range(first, len(body), step):
        lines.append(" " + body[index:index + step])
    return eol.join(lines)


class Printer:
    def __init__(self, settings: CodecSettings | None = None) -> None:
        self.settings = settings or DEFAULT_SETTINGS
        self._context = RenderContext(self.settings, self._render_nested)
        self._depth = 0

    def render_vcard(self, card: VCard, eol: str = CRLF) -> str:
        if not isinstance(card, VCard):
            raise VCardContractError(f"expected a VCard, got {type(card).__name__}")
        lines = [BEGIN + "VCARD"]
        lines.extend(self.render_entry(entry, eol) for entry in card.entries)
        lines.append(END + "VCARD")
        return eol.join(lines)

    def render_entry(self, entry: Entry, eol: str = CRLF) -> str:
        rendered = encode_property(entry, self._context)
        head = f"item{entry.prefix}." if entry.prefix is not None else ""
        head += keyword_for(entry)
        head += f";{rendered.params}:" if rendered.params is not None else ":"
        width = self.settings.fold_width
        if rendered.foldable and width and len(head) + len(rendered.value) > width:
            return fold(head, rendered.value, width, eol)
        return head + rendered.value

    def _render_nested(self, card: VCard) -> str:
        limit = self.settings.max_nesting_depth
        if self._depth >= limit:
            raise VCardContractError(f"embedded vCards nested deeper than {limit} levels")
        self._depth += 1
        try:
            return self.render_vcard(card, LF)
        finally:
            self._depth -= 1


def encode(document: Document, settings: CodecSettings | None = None) -> str:
    """Render a whole document; vCards are joined by a single newline."""
    printer = Printer(settings)
    text = LF.join(printer.render_vcard(card) for card in document)
    logger.debug("encoded %d vCard(s)", len(document))
    return text


def encode_vcard(card: VCard, settings: CodecSettings | None = None) -> str:
    return Printer(settings).render_vcard(card)
