from __future__ import annotations

import datetime as dt

import pytest

from vcard_codec.errors import (
    DateFormatError,
    NumericFormatError,
    StructuralError,
    ValueFormatError,
)
from vcard_codec.model import AddrType, Base64, Binary, EmailType, TelType, TzText, Uri
from vcard_codec.scanner import Cursor
from vcard_codec.values import (
    format_data,
    format_decimal,
    format_revision,
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


# ── Cursor primitives ──────────────────────────────────────────────────────────

def test_backtrack_restores_position():
    cursor = Cursor("abc")
    with pytest.raises(StructuralError):
        with cursor.backtrack():
            cursor.advance(2)
            cursor.expect("z")
    assert cursor.pos == 0


def test_read_folded_joins_continuation_lines():
    cursor = Cursor("AB\r\n CD\r\n\tEF\r\n\vGH\r\nX")
    assert cursor.read_folded("\r\n") == "ABCDEFGH"
    assert cursor.startswith("\r\nX")


def test_read_folded_uses_given_terminator():
    cursor = Cursor("AB\n CD\nEND")
    assert cursor.read_folded("\n") == "ABCD"
    assert cursor.startswith("\nEND")


def test_location_is_one_based():
    assert Cursor("ab\ncd", 4).location() == (2, 2)
    assert Cursor("ab\ncd", 0).location() == (1, 1)


# ── Numbers ────────────────────────────────────────────────────────────────────

def test_read_version():
    assert read_version(Cursor("3.0")) == (3, 0)
    with pytest.raises(NumericFormatError):
        read_version(Cursor("three"))


def test_read_geo():
    assert read_geo(Cursor("37.386013;-122.082932")) == (37.386013, -122.082932)
    assert read_geo(Cursor("+1;.5")) == (1.0, 0.5)


@pytest.mark.parametrize("text", ["37.386013", "abc;1", "1;2;3", "1,2"])
def test_read_geo_rejects_bad_pairs(text):
    with pytest.raises(NumericFormatError):
        read_geo(Cursor(text))


def test_format_decimal_never_uses_exponents():
    assert format_decimal(-122.082932) == "-122.082932"
    assert format_decimal(1e-05) == "0.00001"
    assert format_decimal(2.0) == "2.0"


# ── Dates ──────────────────────────────────────────────────────────────────────

def test_read_date():
    assert read_date(Cursor("1996-04-15")) == dt.date(1996, 4, 15)


@pytest.mark.parametrize("text", ["19960415", "1996-13-01", "1996-04-15x", "1996-02-30"])
def test_read_date_is_anchored(text):
    with pytest.raises(DateFormatError):
        read_date(Cursor(text))


def test_read_revision_colon_style():
    date, time = read_revision(Cursor("1995-10-31T22:27:10Z"), ":")
    assert date == dt.date(1995, 10, 31)
    assert time == dt.time(22, 27, 10, tzinfo=dt.timezone.utc)


def test_read_revision_dash_style():
    date, time = read_revision(Cursor("1995-10-31T22-27-10Z"), "-")
    assert time == dt.time(22, 27, 10, tzinfo=dt.timezone.utc)
    with pytest.raises(DateFormatError):
        read_revision(Cursor("1995-10-31T22-27-10Z"), ":")


def test_read_revision_date_only_and_local_time():
    assert read_revision(Cursor("1995-10-31"), ":") == (dt.date(1995, 10, 31), None)
    _, time = read_revision(Cursor("1995-10-31T08:00:00"), ":")
    assert time == dt.time(8, 0, 0) and time.tzinfo is None


def test_format_revision():
    time = dt.time(22, 27, 10, tzinfo=dt.timezone.utc)
    assert format_revision(dt.date(1995, 10, 31), time, ":") == "1995-10-31T22:27:10Z"
    assert format_revision(dt.date(1995, 10, 31), time, "-") == "1995-10-31T22-27-10Z"
    assert format_revision(dt.date(1995, 10, 31), None, ":") == "1995-10-31"


# ── Time zones ─────────────────────────────────────────────────────────────────

def test_read_zone_offsets():
    assert read_zone(Cursor("-05:00")) == dt.timezone(dt.timedelta(hours=-5))
    assert read_zone(Cursor("-0500")) == dt.timezone(dt.timedelta(hours=-5))
    assert read_zone(Cursor("+05:30")) == dt.timezone(dt.timedelta(hours=5, minutes=30))
    assert read_zone(Cursor("Z")) == dt.timezone.utc


def test_read_zone_text_form_keeps_raw_text():
    zone = read_zone(Cursor("VALUE=text:-05:00; EST; Raleigh/North America"))
    assert zone == TzText("-05:00; EST; Raleigh/North America")


@pytest.mark.parametrize("text", ["EST", "-5", "+25:00", "value=text:x"])
def test_read_zone_rejects_bad_offsets(text):
    with pytest.raises(NumericFormatError):
        read_zone(Cursor(text))


def test_format_zone():
    assert format_zone(dt.timezone(dt.timedelta(hours=-5))) == (None, "-05:00")
    assert format_zone(dt.timezone.utc) == (None, "+00:00")
    assert format_zone(TzText("EST")) == ("VALUE=text", "EST")


# ── Qualifiers ─────────────────────────────────────────────────────────────────

def test_qualifiers_keep_order_and_consume_colon():
    cursor = Cursor("TYPE=WORK,VOICE:+1-555-5555")
    assert read_qualifiers(cursor, TelType) == (TelType.WORK, TelType.VOICE)
    assert cursor.pos == len("TYPE=WORK,VOICE:")


def test_qualifier_blocks_are_flattened():
    cursor = Cursor("type=HOME;TYPE=pref:x")
    assert read_qualifiers(cursor, AddrType) == (AddrType.HOME, AddrType.PREFERRED)


def test_qualifier_casing_is_exact():
    assert read_qualifiers(Cursor("TYPE=home:x"), AddrType) == (AddrType.HOME,)
    with pytest.raises(ValueFormatError):
        read_qualifiers(Cursor("TYPE=Home:x"), AddrType)
    with pytest.raises(ValueFormatError):
        read_qualifiers(Cursor("TYPE=home:x"), TelType)
    with pytest.raises(ValueFormatError):
        read_qualifiers(Cursor("Type=HOME:x"), AddrType)


def test_unknown_qualifier_is_reported_at_token():
    with pytest.raises(ValueFormatError) as info:
        read_qualifiers(Cursor("TYPE=INTERNET,SPAM:x"), EmailType)
    assert info.value.column == len("TYPE=INTERNET,") + 1


def test_type_tokens_stop_before_separator():
    cursor = Cursor("TYPE=BASIC;VALUE=uri:x")
    assert read_type_tokens(cursor) == ("BASIC",)
    assert cursor.peek() == ";"


# ── Data ───────────────────────────────────────────────────────────────────────

def test_read_data_forms():
    assert read_data(Cursor("VALUE=uri:http\\://example.com/a.gif"), "\r\n") == Uri(
        "http://example.com/a.gif"
    )
    assert read_data(Cursor("ENCODING=b;TYPE=JPEG:QUJD\r\n REVG"), "\r\n") == Binary(
        "QUJDREVG", ("JPEG",)
    )
    assert read_data(Cursor("ENCODING=b:QUJD"), "\r\n") == Binary("QUJD")
    assert read_data(Cursor("BASE64:aGVsbG8="), "\r\n") == Base64("aGVsbG8=")


def test_read_data_rejects_unknown_forms():
    with pytest.raises(ValueFormatError):
        read_data(Cursor("http\\://example.com"), "\r\n")
    with pytest.raises(ValueFormatError):
        read_data(Cursor("ENCODING=b:not base64!"), "\r\n")


def test_format_data():
    assert format_data(Uri("http://x")) == ("VALUE=uri", "http\\://x", False)
    assert format_data(Binary("QUJD", ("JPEG",))) == ("ENCODING=b;TYPE=JPEG", "QUJD", True)
    assert format_data(Base64("aGVsbG8=")) == ("BASE64", "aGVsbG8=", True)
