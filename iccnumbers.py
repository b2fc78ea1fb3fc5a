#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

"""Basic number and signature encodings used by ICC profiles.

All multi-byte values are big-endian (ICC.1:2022-05, section 4).
Fixed-point numbers are returned as python floats.
"""


import datetime
import string
import struct


# decode a bytes string into a string containing only characters
# from the POSIX portable filename character set. For all other
# characters, use "\\x%02x".
#
# The Open Group Base Specifications Issue 7, 2018 edition
# IEEE Std 1003.1-2017, 3.282 Portable Filename Character Set
PORTABLE_FILENAME_CHARACTER_SET = frozenset(
    string.ascii_uppercase + string.ascii_lowercase + string.digits + "._-"
)


def escape_string(str_in):
    str_out = "".join(
        c if c in PORTABLE_FILENAME_CHARACTER_SET else f"\\x{ord(c):02x}"
        for c in str_in
    )
    return str_out


# fixed-point numbers (section 4.6, 4.7, 4.9)
S15FIXED16_MIN = -32768.0
S15FIXED16_MAX = 32767.0 + 65535.0 / 65536.0
U16FIXED16_MAX = 65535.0 + 65535.0 / 65536.0
U8FIXED8_MAX = 255.0 + 255.0 / 256.0


def parse_s15Fixed16Number(blob):
    return struct.unpack(">i", blob[0:4])[0] / 65536.0


def pack_s15Fixed16Number(value):
    if not S15FIXED16_MIN <= value <= S15FIXED16_MAX:
        raise ValueError(f"s15Fixed16Number out of range: {value}")
    return struct.pack(">i", round(value * 65536.0))


def parse_u16Fixed16Number(blob):
    return struct.unpack(">I", blob[0:4])[0] / 65536.0


def pack_u16Fixed16Number(value):
    if not 0.0 <= value <= U16FIXED16_MAX:
        raise ValueError(f"u16Fixed16Number out of range: {value}")
    return struct.pack(">I", round(value * 65536.0))


def parse_u8Fixed8Number(blob):
    return struct.unpack(">H", blob[0:2])[0] / 256.0


def pack_u8Fixed8Number(value):
    if not 0.0 <= value <= U8FIXED8_MAX:
        raise ValueError(f"u8Fixed8Number out of range: {value}")
    return struct.pack(">H", round(value * 256.0))


def parse_XYZNumber(blob):
    cie_x = parse_s15Fixed16Number(blob[0:4])
    cie_y = parse_s15Fixed16Number(blob[4:8])
    cie_z = parse_s15Fixed16Number(blob[8:12])
    return (cie_x, cie_y, cie_z)


def pack_XYZNumber(xyz_number):
    cie_x, cie_y, cie_z = xyz_number
    return (
        pack_s15Fixed16Number(cie_x)
        + pack_s15Fixed16Number(cie_y)
        + pack_s15Fixed16Number(cie_z)
    )


# dateTimeNumber (section 4.2)
def parse_dateTimeNumber(blob):
    # year, month, day, hour, minute, sec
    return struct.unpack(">HHHHHH", blob[0:12])


def pack_dateTimeNumber(date_and_time):
    return struct.pack(">HHHHHH", *date_and_time)


def str_dateTimeNumber(date_and_time):
    year, month, day, hour, minute, sec = date_and_time
    return f"{year}-{month:02}-{day:02}T{hour:02}:{minute:02}:{sec:02}"


def datetime_to_dateTimeNumber(value):
    return (value.year, value.month, value.day, value.hour, value.minute, value.second)


def now_dateTimeNumber():
    return datetime_to_dateTimeNumber(datetime.datetime.now(datetime.timezone.utc))


# 4-byte signatures. latin-1 maps every byte to exactly one character,
# so non-ascii signatures survive a parse/pack cycle.
SIGNATURE_ENCODING = "latin-1"
NULL_SIGNATURE = "\x00\x00\x00\x00"


def parse_signature(blob):
    return blob[0:4].decode(SIGNATURE_ENCODING)


def pack_signature(signature):
    if isinstance(signature, int):
        return struct.pack(">I", signature)
    blob = signature.encode(SIGNATURE_ENCODING)
    if len(blob) != 4:
        raise ValueError(f'signature must be 4 bytes long: "{signature}"')
    return blob


def is_signature(signature):
    try:
        pack_signature(signature)
    except (ValueError, UnicodeEncodeError, struct.error):
        return False
    return True


# tag data alignment (section 7.2.1)
def pad_size(size):
    return (4 - size % 4) % 4


def padded_size(size):
    return size + pad_size(size)
