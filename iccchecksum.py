#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

"""Profile ID (section 7.2.18).

The profile ID is the MD5 digest of the entire profile, after the
profile flags (bytes 44 to 47), rendering intent (bytes 64 to 67) and
profile ID (bytes 84 to 99) header fields have been temporarily
replaced with zeros. A profile ID of all zeros means "not computed".
"""


import hashlib

from iccerrors import TruncatedError
from iccheader import HEADER_SIZE, PROFILE_ID_OFFSET, PROFILE_ID_SIZE


PROFILE_FLAGS_OFFSET = 44
RENDERING_INTENT_OFFSET = 64

# (offset, size) of the header fields zeroed before hashing
ZEROED_FIELDS = (
    (PROFILE_FLAGS_OFFSET, 4),
    (RENDERING_INTENT_OFFSET, 4),
    (PROFILE_ID_OFFSET, PROFILE_ID_SIZE),
)


def md5checksum(blob):
    if len(blob) < HEADER_SIZE:
        raise TruncatedError(HEADER_SIZE, len(blob))
    data = bytearray(blob)
    for offset, size in ZEROED_FIELDS:
        data[offset : offset + size] = bytes(size)
    return hashlib.md5(data).digest()


def set_profile_id(data):
    """Computes the profile ID and writes it into data (a bytearray)."""
    checksum = md5checksum(data)
    data[PROFILE_ID_OFFSET : PROFILE_ID_OFFSET + PROFILE_ID_SIZE] = checksum
    return checksum


def get_profile_id(blob):
    return bytes(blob[PROFILE_ID_OFFSET : PROFILE_ID_OFFSET + PROFILE_ID_SIZE])


def profile_id_is_set(profile_id):
    return any(profile_id)


def verify_profile_id(blob):
    """Checks the profile ID stored in a profile blob.

    Returns True if the ID is set and matches the profile contents,
    False if it does not match, and None if the ID was never computed.
    """
    profile_id = get_profile_id(blob)
    if not profile_id_is_set(profile_id):
        return None
    return profile_id == md5checksum(blob)
