#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

import json

import pytest

from iccprofile import ICCProfile
from icctags import RawType
from icctext import format_value, iter_items, to_matrix, todict, tojson, tostring


@pytest.fixture
def profile(display_p3_builder):
    return ICCProfile.parse(display_p3_builder.to_bytes())


def test_iter_items(profile):
    items = list(iter_items(profile))
    assert items[0] == (("profile_size",), 524)
    keys = [key_path for key_path, _ in items]
    assert ("tag_count",) in keys
    assert keys.index(("profile_id",)) < keys.index(("tag_count",))
    assert keys.index(("tag_count",)) < keys.index(("desc", "tag_type"))
    d = dict(items)
    assert d[("tag_count",)] == 10
    assert d[("profile_device_class",)] == "mntr"
    assert d[("date_and_time",)] == "2024-01-01T12:00:00"
    assert d[("rendering_intent",)] == "perceptual"
    assert d[("desc", "tag_type")] == "textDescriptionType"
    assert d[("desc", "ascii")] == "Display P3"
    assert d[("rTRC", "function_type")] == 3


def test_matrix_tag(profile):
    values = dict(iter_items(profile))[("chad", "values")]
    assert len(values) == 3
    assert all(len(row) == 3 for row in values)
    assert values[0][0] == pytest.approx(1.047882, abs=1e-5)


def test_to_matrix():
    assert to_matrix((1, 2, 3, 4), 2) == ((1, 2), (3, 4))
    assert to_matrix((1, 2, 3), 2) == (1, 2, 3)


def test_format_value():
    assert format_value([1, 2.5, "a", None, True]) == '[1, 2.5, "a", null, true]'
    assert format_value(0.12345678) == "0.123457"
    assert format_value(((1, 0), (0, 1))) == "[[1, 0], [0, 1]]"


def test_tostring_one_line(profile):
    out = tostring(profile, as_one_line=True)
    assert "\n" not in out
    assert out.startswith("profile_size: 524 ")
    assert 'tag "cprt" { tag_type: "textType" text: "CC0" }' in out


def test_tostring_multi_line(profile):
    out = tostring(profile, as_one_line=False)
    assert 'tag "cprt" {\n  tag_type: "textType"\n  text: "CC0"\n}' in out
    assert "\ntag_count: 10\n" in out


def test_tostring_raw_tag():
    profile = ICCProfile(tags={"priv": RawType(b"priv\x00\x00\x00\x00\x01")})
    out = tostring(profile, as_one_line=True)
    assert 'tag "priv" { tag_type: "priv" element_size: 9 data: "70726976000000000' in out


def test_todict(profile):
    d = todict(profile)
    assert d["profile_version_number"] == "4.3.0"
    assert d["tag_count"] == 10
    assert d["tags"]["cprt"] == {"tag_type": "textType", "text": "CC0"}
    assert d["tags"]["wtpt"]["xyz"] == pytest.approx((0.950455, 1.0, 1.08905), abs=1e-4)


def test_todict_short(profile):
    d = todict(profile, short=True)
    assert d["profile_version"] == "4.3.0"
    assert d["profile_class"] == "Display Device Profile"
    assert d["color_space"] == "RGB "
    assert d["profile_description"] == "Display P3"
    assert d["profile_copyright"] == "CC0"
    assert len(d["red_trc"]) == 5
    assert len(d["chromatic_adaptation"]) == 3
    assert "gray_trc" not in d


def test_tojson(profile):
    d = json.loads(tojson(profile, short=True))
    assert d["profile_description"] == "Display P3"
    d = json.loads(tojson(profile, short=False))
    assert d["tags"]["bTRC"]["function_type"] == 3
    assert d["profile_id"] == "00" * 16
