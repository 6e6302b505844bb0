from __future__ import annotations

import base64
import datetime as dt
from dataclasses import dataclass, fields
from enum import Enum
from typing import ClassVar, Iterator, Union

from .errors import TagMismatchError, VCardContractError


class KeywordEnum(Enum):
    """Enum whose value is the tuple of accepted spellings, canonical first."""

    @property
    def keyword(self) -> str:
        return self.value[0]

    @property
    def keywords(self) -> tuple[str, ...]:
        return self.value

    @classmethod
    def from_keyword(cls, token: str):
        for member in cls:
            if token in member.value:
                return member
        return None


class Tag(KeywordEnum):
    VERSION = ("VERSION",)
    N = ("N",)
    FN = ("FN",)
    NICKNAME = ("NICKNAME",)
    PHOTO = ("PHOTO",)
    BDAY = ("BDAY",)
    ADR = ("ADR",)
    LABEL = ("LABEL",)
    TEL = ("TEL",)
    EMAIL = ("EMAIL",)
    MAILER = ("MAILER",)
    TZ = ("TZ",)
    GEO = ("GEO",)
    TITLE = ("TITLE",)
    ROLE = ("ROLE",)
    LOGO = ("LOGO",)
    AGENT = ("AGENT",)
    ORG = ("ORG",)
    CATEGORIES = ("CATEGORIES",)
    NOTE = ("NOTE",)
    PRODID = ("PRODID",)
    REV = ("REV",)
    SORT_STRING = ("SORT-STRING",)
    SOUND = ("SOUND",)
    UID = ("UID",)
    URL = ("URL",)
    CLASS = ("CLASS",)
    KEY = ("KEY",)
    EXTENSION = ("X-",)
    ITEM = ("item",)  # group marker, only valid as an item<N>. prefix


class AddrType(KeywordEnum):
    DOMESTIC = ("DOM", "dom")
    INTERNATIONAL = ("INTL", "intl")
    POSTAL = ("POSTAL", "postal")
    PARCEL = ("PARCEL", "parcel")
    HOME = ("HOME", "home")
    WORK = ("WORK", "work")
    PREFERRED = ("PREF", "pref")


class TelType(KeywordEnum):
    HOME = ("HOME",)
    MESSAGE = ("MSG",)
    WORK = ("WORK",)
    VOICE = ("VOICE",)
    FAX = ("FAX",)
    CELL = ("CELL",)
    VIDEO = ("VIDEO",)
    PAGER = ("PAGER",)
    BBS = ("BBS",)
    MODEM = ("MODEM",)
    CAR = ("CAR",)
    ISDN = ("ISDN",)
    PCS = ("PCS",)
    PREFERRED = ("PREF", "pref")


class EmailType(KeywordEnum):
    INTERNET = ("INTERNET",)
    X400 = ("X400",)
    PREFERRED = ("PREF", "pref")


class Class(KeywordEnum):
    PUBLIC = ("PUBLIC",)
    PRIVATE = ("PRIVATE",)
    CONFIDENTIAL = ("CONFIDENTIAL",)


def _freeze(obj, *names: str) -> None:
    # frozen dataclasses accept lists from callers but store tuples
    for name in names:
        object.__setattr__(obj, name, tuple(getattr(obj, name)))


def _freeze_types(obj, kind: type[KeywordEnum]) -> None:
    _freeze(obj, "types")
    for member in obj.types:
        if not isinstance(member, kind):
            raise VCardContractError(
                f"{type(obj).__name__} qualifiers must be {kind.__name__}, got {member!r}"
            )


# ── Data payloads ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Uri:
    uri: str


@dataclass(frozen=True)
class Binary:
    """Inline ``ENCODING=b`` data; ``data`` is the unfolded base64 body."""

    data: str
    media_type: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _freeze(self, "media_type")

    def decoded(self) -> bytes:
        return base64.b64decode(self.data)


@dataclass(frozen=True)
class Base64:
    """Legacy ``BASE64:`` tagged body."""

    data: str

    def decoded(self) -> bytes:
        return base64.b64decode(self.data)


Data = Union[Uri, Binary, Base64]


@dataclass(frozen=True)
class TzText:
    text: str


@dataclass(frozen=True)
class IndividualNames:
    family: tuple[str, ...] = ()
    given: tuple[str, ...] = ()
    additional: tuple[str, ...] = ()
    prefixes: tuple[str, ...] = ()
    suffixes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _freeze(self, *(f.name for f in fields(self)))


# ── Properties ─────────────────────────────────────────────────────────────────

class VCardProperty:
    """Base of every property variant. ``tag`` ties a variant to its Tag."""

    tag: ClassVar[Tag]


@dataclass(frozen=True)
class Version(VCardProperty):
    tag: ClassVar[Tag] = Tag.VERSION
    major: int = 3
    minor: int = 0


@dataclass(frozen=True)
class Names(VCardProperty):
    tag: ClassVar[Tag] = Tag.N
    names: IndividualNames


@dataclass(frozen=True)
class CommonName(VCardProperty):
    tag: ClassVar[Tag] = Tag.FN
    value: str


@dataclass(frozen=True)
class Nickname(VCardProperty):
    tag: ClassVar[Tag] = Tag.NICKNAME
    values: tuple[str, ...]

    def __post_init__(self) -> None:
        _freeze(self, "values")


@dataclass(frozen=True)
class Photo(VCardProperty):
    tag: ClassVar[Tag] = Tag.PHOTO
    data: Data


@dataclass(frozen=True)
class Birthday(VCardProperty):
    tag: ClassVar[Tag] = Tag.BDAY
    date: dt.date
    value_marker: bool = False  # written as value=date


@dataclass(frozen=True)
class Address(VCardProperty):
    tag: ClassVar[Tag] = Tag.ADR
    types: tuple[AddrType, ...] = ()
    po_box: str = ""
    extended: str = ""
    street: str = ""
    locality: str = ""
    region: str = ""
    postal_code: str = ""
    country: str = ""

    def __post_init__(self) -> None:
        _freeze_types(self, AddrType)


@dataclass(frozen=True)
class Label(VCardProperty):
    tag: ClassVar[Tag] = Tag.LABEL
    value: str
    types: tuple[AddrType, ...] = ()

    def __post_init__(self) -> None:
        _freeze_types(self, AddrType)


@dataclass(frozen=True)
class Telephone(VCardProperty):
    tag: ClassVar[Tag] = Tag.TEL
    number: str
    types: tuple[TelType, ...] = ()

    def __post_init__(self) -> None:
        _freeze_types(self, TelType)


@dataclass(frozen=True)
class Email(VCardProperty):
    tag: ClassVar[Tag] = Tag.EMAIL
    address: str
    types: tuple[EmailType, ...] = ()

    def __post_init__(self) -> None:
        _freeze_types(self, EmailType)


@dataclass(frozen=True)
class Mailer(VCardProperty):
    tag: ClassVar[Tag] = Tag.MAILER
    value: str


@dataclass(frozen=True)
class TimeZone(VCardProperty):
    tag: ClassVar[Tag] = Tag.TZ
    zone: Union[TzText, dt.timezone]


@dataclass(frozen=True)
class Geo(VCardProperty):
    tag: ClassVar[Tag] = Tag.GEO
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Title(VCardProperty):
    tag: ClassVar[Tag] = Tag.TITLE
    value: str


@dataclass(frozen=True)
class Role(VCardProperty):
    tag: ClassVar[Tag] = Tag.ROLE
    value: str


@dataclass(frozen=True)
class Logo(VCardProperty):
    tag: ClassVar[Tag] = Tag.LOGO
    data: Data


@dataclass(frozen=True)
class Agent(VCardProperty):
    """Either a URI to the agent's vCard or the vCard itself."""

    tag: ClassVar[Tag] = Tag.AGENT
    data: Union[Uri, "VCard"]


@dataclass(frozen=True)
class Organization(VCardProperty):
    tag: ClassVar[Tag] = Tag.ORG
    units: tuple[str, ...]

    def __post_init__(self) -> None:
        _freeze(self, "units")


@dataclass(frozen=True)
class Categories(VCardProperty):
    tag: ClassVar[Tag] = Tag.CATEGORIES
    values: tuple[str, ...]

    def __post_init__(self) -> None:
        _freeze(self, "values")


@dataclass(frozen=True)
class Note(VCardProperty):
    tag: ClassVar[Tag] = Tag.NOTE
    value: str


@dataclass(frozen=True)
class ProductId(VCardProperty):
    tag: ClassVar[Tag] = Tag.PRODID
    value: str


@dataclass(frozen=True)
class Revision(VCardProperty):
    tag: ClassVar[Tag] = Tag.REV
    date: dt.date
    time: dt.time | None = None


@dataclass(frozen=True)
class SortString(VCardProperty):
    tag: ClassVar[Tag] = Tag.SORT_STRING
    value: str


@dataclass(frozen=True)
class Sound(VCardProperty):
    tag: ClassVar[Tag] = Tag.SOUND
    data: Data
    format: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _freeze(self, "format")


@dataclass(frozen=True)
class Uid(VCardProperty):
    tag: ClassVar[Tag] = Tag.UID
    value: str
    type: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _freeze(self, "type")


@dataclass(frozen=True)
class Url(VCardProperty):
    tag: ClassVar[Tag] = Tag.URL
    value: str


@dataclass(frozen=True)
class Classification(VCardProperty):
    tag: ClassVar[Tag] = Tag.CLASS
    value: Class


@dataclass(frozen=True)
class Key(VCardProperty):
    tag: ClassVar[Tag] = Tag.KEY
    data: Data
    format: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _freeze(self, "format")


@dataclass(frozen=True)
class Extension(VCardProperty):
    """An ``X-`` property; ``name`` excludes the ``X-`` prefix."""

    tag: ClassVar[Tag] = Tag.EXTENSION
    name: str
    value: str

    @property
    def keyword(self) -> str:
        return f"X-{self.name}"


# ── Containers ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Entry:
    tag: Tag
    property: VCardProperty
    prefix: int | None = None

    def __post_init__(self) -> None:
        check_pairing(self.tag, self.property)
        if self.prefix is not None and (
            isinstance(self.prefix, bool) or not isinstance(self.prefix, int) or self.prefix < 1
        ):
            raise ValueError(f"group index must be a positive integer, got {self.prefix!r}")

    @classmethod
    def of(cls, prop: VCardProperty, prefix: int | None = None) -> "Entry":
        return cls(tag=prop.tag, property=prop, prefix=prefix)


def check_pairing(tag: Tag, prop: object) -> None:
    if not isinstance(prop, VCardProperty) or not isinstance(tag, Tag) or type(prop).tag is not tag:
        raise TagMismatchError(
            f"property {type(prop).__name__} cannot be stored under tag {tag!r}"
        )


@dataclass(frozen=True)
class VCard:
    entries: tuple[Entry, ...]

    def __post_init__(self) -> None:
        _freeze(self, "entries")
        if not self.entries:
            raise ValueError("a vCard needs at least one entry")
        for entry in self.entries:
            if not isinstance(entry, Entry):
                raise TagMismatchError(
                    f"vCard entries must be Entry objects, got {type(entry).__name__}; "
                    "wrap properties with Entry.of()"
                )

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def find(self, tag: Tag) -> VCardProperty | None:
        """First property stored under ``tag``; entry order is not fixed."""
        for entry in self.entries:
            if entry.tag is tag:
                return entry.property
        return None

    def find_all(self, tag: Tag) -> list[VCardProperty]:
        return [entry.property for entry in self.entries if entry.tag is tag]

    @property
    def common_name(self) -> str | None:
        prop = self.find(Tag.FN)
        return prop.value if prop is not None else None

    @property
    def names(self) -> IndividualNames | None:
        prop = self.find(Tag.N)
        return prop.names if prop is not None else None


@dataclass(frozen=True)
class Document:
    vcards: tuple[VCard, ...] = ()

    def __post_init__(self) -> None:
        _freeze(self, "vcards")

    def __iter__(self) -> Iterator[VCard]:
        return iter(self.vcards)

    def __len__(self) -> int:
        return len(self.vcards)

    def __getitem__(self, index: int) -> VCard:
        return self.vcards[index]
