from __future__ import annotations

import dataclasses

import pytest

from vcard_codec.errors import TagMismatchError, VCardContractError
from vcard_codec.model import (
    Address,
    AddrType,
    Class,
    CommonName,
    Document,
    Email,
    EmailType,
    Entry,
    Extension,
    IndividualNames,
    Label,
    Names,
    Tag,
    Telephone,
    TelType,
    VCard,
)


def _card(*props) -> VCard:
    return VCard(tuple(Entry.of(p) for p in props))


# ── Keywords ───────────────────────────────────────────────────────────────────

def test_keyword_lookup_is_case_exact():
    assert Tag.from_keyword("SORT-STRING") is Tag.SORT_STRING
    assert Tag.from_keyword("sort-string") is None
    assert AddrType.from_keyword("intl") is AddrType.INTERNATIONAL
    assert AddrType.from_keyword("Intl") is None
    assert TelType.from_keyword("pref") is TelType.PREFERRED
    assert TelType.from_keyword("cell") is None


def test_canonical_keyword_is_first_alternative():
    assert AddrType.HOME.keyword == "HOME"
    assert AddrType.HOME.keywords == ("HOME", "home")
    assert Class.PRIVATE.keyword == "PRIVATE"


# ── Entry pairing ──────────────────────────────────────────────────────────────

def test_entry_of_derives_tag():
    entry = Entry.of(Telephone("+1-555-5555"))
    assert entry.tag is Tag.TEL
    assert Entry.of(Extension("FOO", "bar")).tag is Tag.EXTENSION


@pytest.mark.parametrize(
    "tag, prop",
    [
        (Tag.TEL, Email("a@example.com")),
        (Tag.ITEM, CommonName("x")),
        (Tag.FN, "just a string"),
    ],
)
def test_entry_rejects_mismatched_property(tag, prop):
    with pytest.raises(TagMismatchError):
        Entry(tag, prop)


@pytest.mark.parametrize("prefix", [0, -1, True, "1"])
def test_entry_prefix_must_be_positive_int(prefix):
    with pytest.raises(ValueError):
        Entry.of(CommonName("x"), prefix=prefix)


# ── Immutability ───────────────────────────────────────────────────────────────

def test_lists_are_stored_as_tuples():
    tel = Telephone("+1", [TelType.WORK, TelType.FAX])
    assert tel.types == (TelType.WORK, TelType.FAX)
    names = IndividualNames(["Doe"], ["Jane"])
    assert names.family == ("Doe",)
    assert names.suffixes == ()


def test_tree_is_frozen():
    card = _card(CommonName("x"))
    with pytest.raises(dataclasses.FrozenInstanceError):
        card.entries[0].property.value = "y"
    with pytest.raises(dataclasses.FrozenInstanceError):
        card.entries = ()


def test_vcard_needs_entries():
    with pytest.raises(ValueError):
        VCard(())


def test_vcard_entries_must_be_entries():
    with pytest.raises(TagMismatchError):
        VCard((CommonName("x"),))


@pytest.mark.parametrize(
    "build",
    [
        lambda: Telephone("+1", (AddrType.POSTAL,)),
        lambda: Email("a@example.com", [TelType.WORK]),
        lambda: Label("x", (EmailType.INTERNET,)),
        lambda: Address((TelType.HOME,), street="Main St"),
        lambda: Telephone("+1", ("WORK",)),
    ],
)
def test_qualifiers_must_belong_to_the_property(build):
    with pytest.raises(VCardContractError):
        build()


# ── Lookups ────────────────────────────────────────────────────────────────────

def test_lookups_search_the_entries():
    card = _card(
        Email("a@example.com", (EmailType.INTERNET,)),
        Names(IndividualNames(("Doe",), ("Jane",))),
        Email("b@example.com"),
        CommonName("Jane Doe"),
    )
    assert card.common_name == "Jane Doe"
    assert card.names.given == ("Jane",)
    assert [e.address for e in card.find_all(Tag.EMAIL)] == ["a@example.com", "b@example.com"]
    assert card.find(Tag.ORG) is None


def test_missing_names_are_none():
    card = _card(Telephone("+1"))
    assert card.common_name is None
    assert card.names is None


def test_document_behaves_like_a_sequence():
    doc = Document([_card(CommonName("a")), _card(CommonName("b"))])
    assert len(doc) == 2
    assert doc[1].common_name == "b"
    assert [c.common_name for c in doc] == ["a", "b"]
