#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

import logging

import pytest

from iccerrors import TagOutOfBoundsError, TruncatedError
from icctags import CurveType, RawType, TextType, XYZType
from icctagtable import (
    TagEntry,
    group_shared_tags,
    pack_tag_table,
    parse_tag_table,
    tag_table_size,
    uses_shared_tags,
)


GAMMA = CurveType((563,))
WHITE = XYZType(((0.5, 1.0, 0.25),))


def test_tag_table_size():
    assert tag_table_size(0) == 4
    assert tag_table_size(10) == 124


def test_pack_shared():
    tags = {"rTRC": GAMMA, "wtpt": WHITE, "gTRC": GAMMA, "bTRC": GAMMA}
    tag_table = pack_tag_table(tags, share_tags=True)
    first = 128 + tag_table_size(4)
    assert tag_table.entries == [
        TagEntry("rTRC", first, 14),
        TagEntry("wtpt", first + 16, 20),
        TagEntry("gTRC", first, 14),
        TagEntry("bTRC", first, 14),
    ]
    # 14 bytes padded to 16, then 20 bytes
    assert len(tag_table.elements_bytes) == 36
    assert tag_table.elements_bytes[14:16] == b"\x00\x00"
    assert len(tag_table.tag_table_bytes) == tag_table_size(4)
    assert uses_shared_tags(tag_table.entries)


def test_pack_unshared():
    tags = {"rTRC": GAMMA, "gTRC": GAMMA}
    tag_table = pack_tag_table(tags, share_tags=False)
    first = 128 + tag_table_size(2)
    assert tag_table.entries == [
        TagEntry("rTRC", first, 14),
        TagEntry("gTRC", first + 16, 14),
    ]
    assert len(tag_table.elements_bytes) == 32
    assert not uses_shared_tags(tag_table.entries)


def test_group_shared_tags():
    tags = {"wtpt": WHITE, "rTRC": GAMMA, "bkpt": WHITE}
    assert group_shared_tags(tags) == [
        (WHITE.pack(), ["wtpt", "bkpt"]),
        (GAMMA.pack(), ["rTRC"]),
    ]


def test_parse_shared(make_blob):
    blob = make_blob(
        [("rTRC", 0), ("gTRC", 0), ("cprt", 1)],
        [GAMMA.pack(), TextType("CC0").pack()],
    )
    tags, entries = parse_tag_table(blob)
    assert list(tags) == ["rTRC", "gTRC", "cprt"]
    assert tags["rTRC"] == GAMMA
    assert tags["gTRC"] == GAMMA
    assert tags["cprt"] == TextType("CC0")
    assert entries[0].offset == entries[1].offset
    assert uses_shared_tags(entries)


def test_parse_duplicate_signature(make_blob, caplog):
    blob = make_blob(
        [("cprt", 0), ("wtpt", 1), ("cprt", 2)],
        [TextType("first").pack(), WHITE.pack(), TextType("last").pack()],
    )
    with caplog.at_level(logging.WARNING):
        tags, entries = parse_tag_table(blob)
    # last value wins, first position is kept
    assert list(tags) == ["cprt", "wtpt"]
    assert tags["cprt"] == TextType("last")
    assert len(entries) == 3
    assert "duplicate tag signature" in caplog.text


def test_parse_unknown_type(make_blob):
    payload = b"priv\x00\x00\x00\x00\x00\x00\x00\x02\x01\x02"
    blob = make_blob([("priv", 0)], [payload])
    tags, _ = parse_tag_table(blob)
    assert tags["priv"] == RawType(payload)


def test_parse_out_of_bounds(make_blob):
    blob = make_blob([("cprt", 0)], [TextType("CC0").pack()])
    # drop the last tagged element byte and its padding
    blob = blob[:-1]
    with pytest.raises(TagOutOfBoundsError) as excinfo:
        parse_tag_table(blob)
    assert excinfo.value.signature == "cprt"
    assert excinfo.value.size == 12


def test_parse_truncated_table(make_blob):
    blob = make_blob([("cprt", 0), ("wtpt", 1)], [TextType("CC0").pack(), WHITE.pack()])
    with pytest.raises(TruncatedError):
        parse_tag_table(blob[: 128 + 10])
    with pytest.raises(TruncatedError):
        parse_tag_table(blob[:130])
