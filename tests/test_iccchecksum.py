#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

import hashlib

import pytest

from iccchecksum import (
    get_profile_id,
    md5checksum,
    profile_id_is_set,
    set_profile_id,
    verify_profile_id,
)
from iccerrors import TruncatedError
from icctags import TextType


@pytest.fixture
def blob(make_blob):
    return make_blob([("cprt", 0)], [TextType("CC0").pack()])


def test_md5checksum_ignores_zeroed_fields(blob):
    checksum = md5checksum(blob)
    data = bytearray(blob)
    data[44:48] = b"\x00\x00\x00\x01"
    data[64:68] = b"\x00\x00\x00\x03"
    data[84:100] = b"\xff" * 16
    assert md5checksum(data) == checksum


def test_md5checksum_covers_the_rest(blob):
    checksum = md5checksum(blob)
    data = bytearray(blob)
    data[-2] ^= 0x01
    assert md5checksum(data) != checksum
    data = bytearray(blob)
    # device model
    data[52] ^= 0x01
    assert md5checksum(data) != checksum


def test_md5checksum_is_md5(blob):
    assert md5checksum(blob) == hashlib.md5(blob).digest()
    assert len(md5checksum(blob)) == 16


def test_md5checksum_truncated():
    with pytest.raises(TruncatedError):
        md5checksum(bytes(100))


def test_set_and_verify(blob):
    assert verify_profile_id(blob) is None
    data = bytearray(blob)
    checksum = set_profile_id(data)
    assert get_profile_id(data) == checksum
    assert profile_id_is_set(checksum)
    assert verify_profile_id(bytes(data)) is True
    # setting it again gives the same value
    assert set_profile_id(data) == checksum


def test_verify_mismatch(blob):
    data = bytearray(blob)
    set_profile_id(data)
    data[-2] ^= 0x01
    assert verify_profile_id(bytes(data)) is False


def test_profile_id_is_set():
    assert not profile_id_is_set(bytes(16))
    assert profile_id_is_set(b"\x00" * 15 + b"\x01")
