"""Primitive value grammars: dates, numbers, time zones, qualifiers, data.

Each ``read_*`` function consumes from a cursor and returns a plain value;
each ``format_*`` function is its inverse. Anchored fields (dates, numbers,
zones) take the rest of the physical line and must match it entirely.
"""
from __future__ import annotations

import datetime as dt
import re
from decimal import Decimal

from .errors import (
    DateFormatError,
    NumericFormatError,
    ValueFormatError,
    VCardContractError,
)
from .model import Base64, Binary, Data, KeywordEnum, TzText, Uri
from .scanner import LINE_BREAKS, Cursor
from .text import end_of_value, escape, join_escaped, read_escaped, read_escaped_list

TYPE_HEADS = ("TYPE=", "type=")
DATE_MARKER = "value=date"
URI_HEAD = "VALUE=uri"
TEXT_HEAD = "VALUE=text"
BINARY_HEAD = "ENCODING=b"
BASE64_HEAD = "BASE64"

_DATE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_VERSION = re.compile(r"(\d+)\.(\d+)")
_DECIMAL = r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)"
_GEO = re.compile(rf"({_DECIMAL});({_DECIMAL})")
_OFFSET = re.compile(r"([+-])(\d{2}):?(\d{2})")
_BODY = re.compile(r"[A-Za-z0-9+/]+={0,2}")


def _rev_pattern(separator: str) -> re.Pattern[str]:
    sep = re.escape(separator)
    return re.compile(rf"(\d{{4}}-\d{{2}}-\d{{2}})(?:T(\d{{2}}){sep}(\d{{2}}){sep}(\d{{2}})(Z)?)?")


_REV_PATTERNS = {":": _rev_pattern(":"), "-": _rev_pattern("-")}


# ── Numbers ────────────────────────────────────────────────────────────────────

def read_version(cursor: Cursor) -> tuple[int, int]:
    start = cursor.pos
    m = _VERSION.fullmatch(cursor.read_line())
    if m is None:
        raise cursor.error(NumericFormatError, "version must look like <major>.<minor>", start)
    return int(m.group(1)), int(m.group(2))


def read_geo(cursor: Cursor) -> tuple[float, float]:
    start = cursor.pos
    m = _GEO.fullmatch(cursor.read_line())
    if m is None:
        raise cursor.error(
            NumericFormatError, "expected <latitude>;<longitude> as decimal numbers", start
        )
    return float(m.group(1)), float(m.group(2))


def format_decimal(value: float) -> str:
    number = Decimal(repr(float(value)))
    if not number.is_finite():
        raise VCardContractError(f"cannot write non-finite number {value!r}")
    return format(number, "f")


# ── Dates and times ────────────────────────────────────────────────────────────

def _to_date(cursor: Cursor, text: str, start: int) -> dt.date:
    try:
        return dt.date.fromisoformat(text)
    except ValueError as exc:
        raise cursor.error(DateFormatError, f"invalid date {text!r}: {exc}", start) from exc


def read_date(cursor: Cursor) -> dt.date:
    start = cursor.pos
    line = cursor.read_line()
    if _DATE.fullmatch(line) is None:
        raise cursor.error(DateFormatError, f"expected YYYY-MM-DD, found {line!r}", start)
    return _to_date(cursor, line, start)


def read_revision(cursor: Cursor, separator: str) -> tuple[dt.date, dt.time | None]:
    start = cursor.pos
    line = cursor.read_line()
    m = _REV_PATTERNS[separator].fullmatch(line)
    if m is None:
        shape = f"YYYY-MM-DD[THH{separator}MM{separator}SS[Z]]"
        raise cursor.error(DateFormatError, f"expected {shape}, found {line!r}", start)
    date = _to_date(cursor, m.group(1), start)
    if m.group(2) is None:
        return date, None
    tzinfo = dt.timezone.utc if m.group(5) else None
    try:
        time = dt.time(int(m.group(2)), int(m.group(3)), int(m.group(4)), tzinfo=tzinfo)
    except ValueError as exc:
        raise cursor.error(DateFormatError, f"invalid time in {line!r}: {exc}", start) from exc
    return date, time


def format_revision(date: dt.date, time: dt.time | None, separator: str) -> str:
    if time is None:
        return date.isoformat()
    offset = time.utcoffset()
    if time.microsecond or (offset is not None and offset != dt.timedelta(0)):
        raise VCardContractError(f"REV time must be whole seconds in UTC or local: {time!r}")
    clock = separator.join(f"{part:02d}" for part in (time.hour, time.minute, time.second))
    return f"{date.isoformat()}T{clock}{'Z' if offset is not None else ''}"


# ── Time zones ─────────────────────────────────────────────────────────────────

def read_zone(cursor: Cursor) -> TzText | dt.timezone:
    if cursor.consume(TEXT_HEAD + ":"):
        return TzText(cursor.read_line())
    start = cursor.pos
    line = cursor.read_line()
    if line == "Z":
        return dt.timezone.utc
    m = _OFFSET.fullmatch(line)
    if m is None:
        raise cursor.error(NumericFormatError, f"expected a UTC offset like -05:00, found {line!r}", start)
    hours, minutes = int(m.group(2)), int(m.group(3))
    if hours > 23 or minutes > 59:
        raise cursor.error(NumericFormatError, f"UTC offset out of range: {line!r}", start)
    delta = dt.timedelta(hours=hours, minutes=minutes)
    return dt.timezone(-delta if m.group(1) == "-" else delta)


def format_zone(zone: TzText | dt.timezone) -> tuple[str | None, str]:
    if isinstance(zone, TzText):
        if any(ch in zone.text for ch in LINE_BREAKS):
            raise VCardContractError("TZ text cannot span lines")
        return TEXT_HEAD, zone.text
    minutes = int(zone.utcoffset(None).total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    hours, minutes = divmod(abs(minutes), 60)
    return None, f"{sign}{hours:02d}:{minutes:02d}"


# ── Qualifiers ─────────────────────────────────────────────────────────────────

def read_qualifiers(cursor: Cursor, kind: type[KeywordEnum]) -> tuple:
    """Read zero or more ``TYPE=a,b;TYPE=c`` blocks and the closing ``:``.

    Each block's token list stops in front of the ``;`` that opens the next
    block or the ``:`` that opens the value; the peeked character then
    decides which one follows. An empty list is just the ``:``, so
    ``TEL;:+1`` has no qualifiers.
    """
    found = []
    while True:
        if cursor.consume(":"):
            return tuple(found)
        if cursor.consume(";"):  # empty block
            continue
        if cursor.consume_any(TYPE_HEADS) is None:
            raise cursor.error(ValueFormatError, "expected a TYPE= qualifier block or ':'")
        while True:
            token_start = cursor.pos
            token = read_escaped(cursor)
            member = kind.from_keyword(token)
            if member is None:
                raise cursor.error(
                    ValueFormatError, f"unknown {kind.__name__} qualifier {token!r}", token_start
                )
            found.append(member)
            if not cursor.consume(","):
                break
        follow = cursor.peek()
        if follow == ";":
            cursor.advance()
        elif follow != ":":
            raise cursor.error(ValueFormatError, "qualifier blocks must end with ':'")


def format_qualifiers(types: tuple[KeywordEnum, ...], kind: type[KeywordEnum]) -> str | None:
    if not types:
        return None
    for member in types:
        if not isinstance(member, kind):
            raise VCardContractError(f"{member!r} is not a {kind.__name__} qualifier")
    return "TYPE=" + ",".join(member.keyword for member in types)


def read_type_tokens(cursor: Cursor) -> tuple[str, ...]:
    """Read ``TYPE=tok,tok`` and stop in front of the following ``;`` or ``:``."""
    if cursor.consume_any(TYPE_HEADS) is None:
        raise cursor.error(ValueFormatError, "expected TYPE=")
    start = cursor.pos
    tokens = read_escaped_list(cursor, ",")
    if not tokens or "" in tokens:
        raise cursor.error(ValueFormatError, "empty TYPE token", start)
    if cursor.peek() not in (";", ":"):
        raise cursor.error(ValueFormatError, "TYPE tokens must be followed by ';' or ':'")
    return tokens


def format_type_tokens(tokens: tuple[str, ...]) -> str:
    return "TYPE=" + join_escaped(tokens, ",")


# ── Data ───────────────────────────────────────────────────────────────────────

def _read_body(cursor: Cursor, terminator: str) -> str:
    start = cursor.pos
    body = cursor.read_folded(terminator)
    if _BODY.fullmatch(body) is None:
        raise cursor.error(ValueFormatError, "binary body is not base64 text", start)
    return body


def read_data(cursor: Cursor, terminator: str) -> Data:
    if cursor.consume(URI_HEAD + ":"):
        uri = read_escaped(cursor)
        end_of_value(cursor)
        return Uri(uri)
    if cursor.consume(BINARY_HEAD):
        media_type: tuple[str, ...] = ()
        if cursor.consume(";"):
            media_type = read_type_tokens(cursor)
        cursor.expect(":", ValueFormatError)
        return Binary(_read_body(cursor, terminator), media_type)
    if cursor.consume(BASE64_HEAD + ":"):
        return Base64(_read_body(cursor, terminator))
    raise cursor.error(ValueFormatError, "expected VALUE=uri:, ENCODING=b or BASE64:")


def format_data(data: Data) -> tuple[str, str, bool]:
    """Return (parameters, value, foldable) for a data payload."""
    if isinstance(data, Uri):
        return URI_HEAD, escape(data.uri), False
    if isinstance(data, Binary):
        params = BINARY_HEAD
        if data.media_type:
            params += ";" + format_type_tokens(data.media_type)
        return params, _checked_body(data.data), True
    if isinstance(data, Base64):
        return BASE64_HEAD, _checked_body(data.data), True
    raise VCardContractError(f"not a data payload: {data!r}")


def _checked_body(body: str) -> str:
    if _BODY.fullmatch(body) is None:
        raise VCardContractError("binary body must be unfolded base64 text")
    return body
