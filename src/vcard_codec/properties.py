"""Tag -> payload grammar dispatch.

The shape of a record's value depends on the tag read in front of it, so
every tag owns exactly one grammar here: the property class it produces, a
decoder reading from the field context, and an encoder returning the
parameter segment and value text. The parser and the printer only ever go
through ``decode_property`` and ``encode_property``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .config import CodecSettings
from .errors import ParseError, ValueFormatError, VCardContractError
from .model import (
    Address,
    AddrType,
    Agent,
    Birthday,
    Categories,
    Class,
    Classification,
    CommonName,
    Email,
    EmailType,
    Entry,
    Extension,
    Geo,
    IndividualNames,
    Key,
    Label,
    Logo,
    Mailer,
    Names,
    Nickname,
    Note,
    Organization,
    Photo,
    ProductId,
    Revision,
    Role,
    SortString,
    Sound,
    Tag,
    Telephone,
    TelType,
    TimeZone,
    Title,
    Uid,
    Uri,
    Url,
    VCard,
    VCardProperty,
    Version,
    check_pairing,
)
from .scanner import Cursor
from .text import end_of_value, escape, join_escaped, read_escaped, read_escaped_list
from .values import (
    DATE_MARKER,
    TYPE_HEADS,
    URI_HEAD,
    format_data,
    format_decimal,
    format_qualifiers,
    format_revision,
    format_type_tokens,
    format_zone,
    read_data,
    read_date,
    read_geo,
    read_qualifiers,
    read_revision,
    read_type_tokens,
    read_version,
    read_zone,
)

CRLF = "\r\n"
LF = "\n"
BEGIN = "BEGIN:"
END = "END:"
VCARD_KEYWORDS = ("VCARD", "vCard")


@dataclass(frozen=True)
class FieldContext:
    """What a payload decoder may see: the cursor just past the separator."""

    cursor: Cursor
    sep: str
    terminator: str
    depth: int
    settings: CodecSettings
    read_nested: Callable[[int], VCard]
    extension_name: str | None = None


@dataclass(frozen=True)
class RenderContext:
    settings: CodecSettings
    render_nested: Callable[[VCard], str]


@dataclass(frozen=True)
class Rendered:
    params: str | None
    value: str
    foldable: bool = False


@dataclass(frozen=True)
class PropertyGrammar:
    cls: type[VCardProperty]
    decode: Callable[[FieldContext], VCardProperty]
    encode: Callable[[VCardProperty, RenderContext], Rendered]


GRAMMARS: dict[Tag, PropertyGrammar] = {}


def _register(cls, decode, encode) -> None:
    GRAMMARS[cls.tag] = PropertyGrammar(cls, decode, encode)


# ── Public entry points ────────────────────────────────────────────────────────

def decode_property(tag: Tag, ctx: FieldContext) -> VCardProperty:
    grammar = GRAMMARS[tag]
    try:
        return grammar.decode(ctx)
    except ParseError as exc:
        if exc.tag is None:
            exc.tag = f"X-{ctx.extension_name}" if tag is Tag.EXTENSION else tag.keyword
        raise


def encode_property(entry: Entry, ctx: RenderContext) -> Rendered:
    check_pairing(entry.tag, entry.property)
    return GRAMMARS[entry.tag].encode(entry.property, ctx)


def keyword_for(entry: Entry) -> str:
    if entry.tag is Tag.EXTENSION:
        return "X-" + escape(entry.property.name)
    return entry.tag.keyword


# ── Shared pieces ──────────────────────────────────────────────────────────────

def _read_text(cursor: Cursor) -> str:
    value = read_escaped(cursor)
    end_of_value(cursor)
    return value


def _read_list(cursor: Cursor, separator: str) -> tuple[str, ...]:
    values = read_escaped_list(cursor, separator)
    end_of_value(cursor)
    return values


def _read_fields(cursor: Cursor, count: int) -> list[str]:
    parts = []
    for index in range(count):
        if index:
            cursor.expect(";", ValueFormatError)
        parts.append(read_escaped(cursor))
    end_of_value(cursor)
    return parts


def _read_types(ctx: FieldContext, kind) -> tuple:
    # "TEL:" carries no qualifier blocks; "TEL;" and "TEL," must
    if ctx.sep == ":":
        return ()
    return read_qualifiers(ctx.cursor, kind)


def _optional_type(cursor: Cursor, closer: str) -> tuple[str, ...]:
    """Read ``TYPE=...`` followed by ``closer``, or nothing at all."""
    if not any(cursor.startswith(head) for head in TYPE_HEADS):
        return ()
    try:
        with cursor.backtrack():
            tokens = read_type_tokens(cursor)
            cursor.expect(closer, ValueFormatError)
    except ValueFormatError:
        return ()
    return tokens


# ── Plain text properties ──────────────────────────────────────────────────────

def _text_grammar(cls):
    def decode(ctx: FieldContext):
        return cls(_read_text(ctx.cursor))

    def encode(prop, ctx: RenderContext) -> Rendered:
        return Rendered(None, escape(prop.value))

    _register(cls, decode, encode)


for _cls in (CommonName, Mailer, Title, Role, Note, ProductId, SortString, Url):
    _text_grammar(_cls)


def _list_grammar(cls, attr: str, separator: str):
    def decode(ctx: FieldContext):
        return cls(_read_list(ctx.cursor, separator))

    def encode(prop, ctx: RenderContext) -> Rendered:
        return Rendered(None, join_escaped(getattr(prop, attr), separator))

    _register(cls, decode, encode)


_list_grammar(Nickname, "values", ",")
_list_grammar(Organization, "units", ";")
_list_grammar(Categories, "values", ",")


# ── VERSION / N ────────────────────────────────────────────────────────────────

def _decode_version(ctx: FieldContext) -> Version:
    major, minor = read_version(ctx.cursor)
    return Version(major, minor)


def _encode_version(prop: Version, ctx: RenderContext) -> Rendered:
    return Rendered(None, f"{prop.major}.{prop.minor}")


_register(Version, _decode_version, _encode_version)

_NAME_PARTS = ("family", "given", "additional", "prefixes", "suffixes")


def _decode_names(ctx: FieldContext) -> Names:
    cursor = ctx.cursor
    parts = []
    for index in range(len(_NAME_PARTS)):
        if index:
            cursor.expect(";", ValueFormatError)
        parts.append(read_escaped_list(cursor, ","))
    end_of_value(cursor)
    return Names(IndividualNames(*parts))


def _encode_names(prop: Names, ctx: RenderContext) -> Rendered:
    return Rendered(
        None, ";".join(join_escaped(getattr(prop.names, part), ",") for part in _NAME_PARTS)
    )


_register(Names, _decode_names, _encode_names)


# ── Qualified properties: ADR, LABEL, TEL, EMAIL ───────────────────────────────

def _decode_address(ctx: FieldContext) -> Address:
    types = _read_types(ctx, AddrType)
    return Address(types, *_read_fields(ctx.cursor, 7))


def _encode_address(prop: Address, ctx: RenderContext) -> Rendered:
    fields = (
        prop.po_box, prop.extended, prop.street, prop.locality,
        prop.region, prop.postal_code, prop.country,
    )
    return Rendered(format_qualifiers(prop.types, AddrType), join_escaped(fields, ";"))


_register(Address, _decode_address, _encode_address)


def _qualified_grammar(cls, kind, attr: str):
    def decode(ctx: FieldContext):
        types = _read_types(ctx, kind)
        return cls(_read_text(ctx.cursor), types)

    def encode(prop, ctx: RenderContext) -> Rendered:
        return Rendered(format_qualifiers(prop.types, kind), escape(getattr(prop, attr)))

    _register(cls, decode, encode)


_qualified_grammar(Label, AddrType, "value")
_qualified_grammar(Telephone, TelType, "number")
_qualified_grammar(Email, EmailType, "address")


# ── Dates: BDAY, REV ───────────────────────────────────────────────────────────

def _decode_birthday(ctx: FieldContext) -> Birthday:
    marker = ctx.cursor.consume(DATE_MARKER + ":")
    return Birthday(read_date(ctx.cursor), marker)


def _encode_birthday(prop: Birthday, ctx: RenderContext) -> Rendered:
    return Rendered(DATE_MARKER if prop.value_marker else None, prop.date.isoformat())


_register(Birthday, _decode_birthday, _encode_birthday)


def _decode_revision(ctx: FieldContext) -> Revision:
    date, time = read_revision(ctx.cursor, ctx.settings.rev_time_separator)
    return Revision(date, time)


def _encode_revision(prop: Revision, ctx: RenderContext) -> Rendered:
    return Rendered(None, format_revision(prop.date, prop.time, ctx.settings.rev_time_separator))


_register(Revision, _decode_revision, _encode_revision)


# ── TZ / GEO / CLASS ───────────────────────────────────────────────────────────

def _decode_zone(ctx: FieldContext) -> TimeZone:
    return TimeZone(read_zone(ctx.cursor))


def _encode_zone(prop: TimeZone, ctx: RenderContext) -> Rendered:
    params, value = format_zone(prop.zone)
    return Rendered(params, value)


_register(TimeZone, _decode_zone, _encode_zone)


def _decode_geo(ctx: FieldContext) -> Geo:
    latitude, longitude = read_geo(ctx.cursor)
    return Geo(latitude, longitude)


def _encode_geo(prop: Geo, ctx: RenderContext) -> Rendered:
    return Rendered(None, f"{format_decimal(prop.latitude)};{format_decimal(prop.longitude)}")


_register(Geo, _decode_geo, _encode_geo)


def _decode_class(ctx: FieldContext) -> Classification:
    cursor = ctx.cursor
    start = cursor.pos
    token = cursor.read_line()
    value = Class.from_keyword(token)
    if value is None:
        raise cursor.error(ValueFormatError, f"unknown access class {token!r}", start)
    return Classification(value)


def _encode_class(prop: Classification, ctx: RenderContext) -> Rendered:
    return Rendered(None, prop.value.keyword)


_register(Classification, _decode_class, _encode_class)


# ── Data: PHOTO, LOGO, SOUND, KEY ──────────────────────────────────────────────

def _data_grammar(cls):
    def decode(ctx: FieldContext):
        return cls(read_data(ctx.cursor, ctx.terminator))

    def encode(prop, ctx: RenderContext) -> Rendered:
        return Rendered(*format_data(prop.data))

    _register(cls, decode, encode)


_data_grammar(Photo)
_data_grammar(Logo)


def _formatted_data_grammar(cls):
    def decode(ctx: FieldContext):
        fmt = _optional_type(ctx.cursor, ";")
        return cls(read_data(ctx.cursor, ctx.terminator), fmt)

    def encode(prop, ctx: RenderContext) -> Rendered:
        params, value, foldable = format_data(prop.data)
        if prop.format:
            params = format_type_tokens(prop.format) + ";" + params
        return Rendered(params, value, foldable)

    _register(cls, decode, encode)


_formatted_data_grammar(Sound)
_formatted_data_grammar(Key)


# ── UID ────────────────────────────────────────────────────────────────────────

def _decode_uid(ctx: FieldContext) -> Uid:
    uid_type = _optional_type(ctx.cursor, ":")
    return Uid(_read_text(ctx.cursor), uid_type)


def _encode_uid(prop: Uid, ctx: RenderContext) -> Rendered:
    params = format_type_tokens(prop.type) if prop.type else None
    return Rendered(params, escape(prop.value))


_register(Uid, _decode_uid, _encode_uid)


# ── AGENT ──────────────────────────────────────────────────────────────────────

def _decode_agent(ctx: FieldContext) -> Agent:
    cursor = ctx.cursor
    if cursor.consume(URI_HEAD + ":"):
        return Agent(Uri(_read_text(cursor)))
    if cursor.startswith(BEGIN):
        return Agent(ctx.read_nested(ctx.depth + 1))
    raise cursor.error(ValueFormatError, "expected VALUE=uri: or an embedded BEGIN:VCARD")


def _encode_agent(prop: Agent, ctx: RenderContext) -> Rendered:
    if isinstance(prop.data, Uri):
        return Rendered(URI_HEAD, escape(prop.data.uri))
    if isinstance(prop.data, VCard):
        return Rendered(None, ctx.render_nested(prop.data))
    raise VCardContractError(f"AGENT holds neither a URI nor a vCard: {prop.data!r}")


_register(Agent, _decode_agent, _encode_agent)


# ── X- extensions ──────────────────────────────────────────────────────────────

def _decode_extension(ctx: FieldContext) -> Extension:
    return Extension(ctx.extension_name, _read_text(ctx.cursor))


def _encode_extension(prop: Extension, ctx: RenderContext) -> Rendered:
    return Rendered(None, escape(prop.value))


_register(Extension, _decode_extension, _encode_extension)
