#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

import datetime
import struct

import pytest

import iccnumbers


@pytest.mark.parametrize(
    "value, blob",
    [
        (0.0, b"\x00\x00\x00\x00"),
        (1.0, b"\x00\x01\x00\x00"),
        (-1.0, b"\xff\xff\x00\x00"),
        (0.5, b"\x00\x00\x80\x00"),
        (0.9642, b"\x00\x00\xf6\xd6"),
        (0.8249, b"\x00\x00\xd3\x2d"),
    ],
)
def test_s15Fixed16Number(value, blob):
    assert iccnumbers.pack_s15Fixed16Number(value) == blob
    assert iccnumbers.parse_s15Fixed16Number(blob) == pytest.approx(value, abs=1e-5)


def test_s15Fixed16Number_is_stable():
    blob = iccnumbers.pack_s15Fixed16Number(0.950455)
    value = iccnumbers.parse_s15Fixed16Number(blob)
    assert value == 62289 / 65536
    assert iccnumbers.pack_s15Fixed16Number(value) == blob


@pytest.mark.parametrize("value", [-32768.5, 32768.0, float("nan")])
def test_s15Fixed16Number_out_of_range(value):
    with pytest.raises(ValueError):
        iccnumbers.pack_s15Fixed16Number(value)


def test_u16Fixed16Number():
    assert iccnumbers.pack_u16Fixed16Number(1.5) == b"\x00\x01\x80\x00"
    assert iccnumbers.parse_u16Fixed16Number(b"\xff\xff\x00\x00") == 65535.0
    with pytest.raises(ValueError):
        iccnumbers.pack_u16Fixed16Number(-0.5)


def test_u8Fixed8Number():
    assert iccnumbers.pack_u8Fixed8Number(2.2) == b"\x02\x33"
    assert iccnumbers.parse_u8Fixed8Number(b"\x01\x00") == 1.0
    with pytest.raises(ValueError):
        iccnumbers.pack_u8Fixed8Number(256.0)


def test_XYZNumber():
    blob = iccnumbers.pack_XYZNumber((1.0, 0.5, -1.0))
    assert blob == b"\x00\x01\x00\x00\x00\x00\x80\x00\xff\xff\x00\x00"
    assert iccnumbers.parse_XYZNumber(blob) == (1.0, 0.5, -1.0)


def test_dateTimeNumber():
    date_and_time = (2024, 1, 2, 3, 4, 5)
    blob = iccnumbers.pack_dateTimeNumber(date_and_time)
    assert blob == struct.pack(">6H", *date_and_time)
    assert iccnumbers.parse_dateTimeNumber(blob) == date_and_time
    assert iccnumbers.str_dateTimeNumber(date_and_time) == "2024-01-02T03:04:05"
    assert (
        iccnumbers.datetime_to_dateTimeNumber(datetime.datetime(2024, 1, 2, 3, 4, 5))
        == date_and_time
    )


def test_signature():
    assert iccnumbers.parse_signature(b"desc") == "desc"
    assert iccnumbers.pack_signature("XYZ ") == b"XYZ "
    assert iccnumbers.pack_signature(0x6D6E7472) == b"mntr"
    # non-ascii bytes survive a parse/pack cycle
    blob = b"\xff\x00ab"
    assert iccnumbers.pack_signature(iccnumbers.parse_signature(blob)) == blob
    with pytest.raises(ValueError):
        iccnumbers.pack_signature("abc")
    assert not iccnumbers.is_signature("abcde")
    assert not iccnumbers.is_signature("€123")
    assert iccnumbers.is_signature(iccnumbers.NULL_SIGNATURE)


@pytest.mark.parametrize(
    "size, pad, padded", [(0, 0, 0), (1, 3, 4), (4, 0, 4), (101, 3, 104)]
)
def test_alignment(size, pad, padded):
    assert iccnumbers.pad_size(size) == pad
    assert iccnumbers.padded_size(size) == padded


def test_escape():
    assert iccnumbers.escape_string("RGB ") == "RGB\\x20"
