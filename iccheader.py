#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

"""ICC profile header codec.

The structure of an ICC Profile blob is:
- icc profile header [128 bytes]
- tag table
- tagged element data

This module deals with the first part (ICC.1:2022-05, section 7.2).
"""


import dataclasses
import enum
import struct

from iccerrors import BadMagicError, TruncatedError
from iccnumbers import (
    NULL_SIGNATURE,
    escape_string,
    pack_dateTimeNumber,
    pack_signature,
    pack_XYZNumber,
    parse_dateTimeNumber,
    parse_signature,
    parse_XYZNumber,
    str_dateTimeNumber,
)


HEADER_SIZE = 128
PROFILE_FILE_SIGNATURE = "acsp"
PROFILE_FILE_SIGNATURE_OFFSET = 36
PROFILE_ID_OFFSET = 84
PROFILE_ID_SIZE = 16
NULL_PROFILE_ID = bytes(PROFILE_ID_SIZE)

# PCS illuminant, must be D50 (section 7.2.16)
D50 = (0.9642, 1.0, 0.8249)

# (major, minor) pairs accepted when setting a version
VALID_VERSIONS = (
    (2, 0),
    (2, 1),
    (2, 2),
    (2, 3),
    (2, 4),
    (4, 0),
    (4, 2),
    (4, 3),
    (4, 4),
    (5, 0),
)
DEFAULT_VERSION = (4, 3, 0)

# Table 11
DEVICE_CLASS = {
    "scnr": "Input Device Profile",
    "mntr": "Display Device Profile",
    "prtr": "Output Device Profile",
    "link": "DeviceLink profile",
    "spac": "ColorSpace Conversion profile",
    "abst": "Abstract profile",
    "nmcl": "Named colour profile",
}


class RenderingIntent(enum.IntEnum):
    PERCEPTUAL = 0
    MEDIA_RELATIVE_COLORIMETRIC = 1
    SATURATION = 2
    ICC_ABSOLUTE_COLORIMETRIC = 3


def parse_VersionNumber(blob):
    major, second_byte, _ = struct.unpack(">BBH", blob[0:4])
    minor = (second_byte >> 4) & 0x0F
    bug_fix = second_byte & 0x0F
    return (major, minor, bug_fix)


def pack_VersionNumber(profile_version_number):
    major, minor, bug_fix = profile_version_number
    second_byte = (minor << 4) | bug_fix
    # bytes 10 and 11 are reserved
    return struct.pack(">BBH", major, second_byte, 0)


def parse_version_string(version_str):
    """Parses "4.3" or "4.3.0" into a (major, minor, bug_fix) tuple."""
    values = [int(v) for v in version_str.split(".")]
    if not 2 <= len(values) <= 3:
        raise ValueError(f"invalid version number: {version_str!r}")
    if len(values) == 2:
        values.append(0)
    return tuple(values)


def str_VersionNumber(profile_version_number):
    major, minor, bug_fix = profile_version_number
    return f"{major}.{minor}.{bug_fix}"


@dataclasses.dataclass(frozen=True)
class ICCHeader:
    profile_size: int = HEADER_SIZE
    preferred_cmm_type: str = NULL_SIGNATURE
    profile_version_number: tuple = DEFAULT_VERSION
    profile_device_class: str = "mntr"
    color_space: str = NULL_SIGNATURE
    profile_connection_space: str = "XYZ "
    date_and_time: tuple = (0, 0, 0, 0, 0, 0)
    profile_file_signature: str = PROFILE_FILE_SIGNATURE
    primary_platform_signature: str = NULL_SIGNATURE
    profile_flags: int = 0
    device_manufacturer: str = NULL_SIGNATURE
    device_model: str = NULL_SIGNATURE
    device_attributes: int = 0
    rendering_intent: int = RenderingIntent.PERCEPTUAL
    xyz_illuminant: tuple = D50
    profile_creator_field: str = NULL_SIGNATURE
    profile_id: bytes = NULL_PROFILE_ID

    @classmethod
    def parse(cls, blob):
        if len(blob) < HEADER_SIZE:
            raise TruncatedError(HEADER_SIZE, len(blob))
        magic = blob[PROFILE_FILE_SIGNATURE_OFFSET : PROFILE_FILE_SIGNATURE_OFFSET + 4]
        if magic != PROFILE_FILE_SIGNATURE.encode("ascii"):
            raise BadMagicError(bytes(magic))
        i = 0
        profile_size = struct.unpack(">I", blob[i : i + 4])[0]
        i += 4
        preferred_cmm_type = parse_signature(blob[i : i + 4])
        i += 4
        profile_version_number = parse_VersionNumber(blob[i : i + 4])
        i += 4
        profile_device_class = parse_signature(blob[i : i + 4])
        i += 4
        color_space = parse_signature(blob[i : i + 4])
        i += 4
        profile_connection_space = parse_signature(blob[i : i + 4])
        i += 4
        date_and_time = parse_dateTimeNumber(blob[i : i + 12])
        i += 12
        profile_file_signature = parse_signature(blob[i : i + 4])
        i += 4
        primary_platform_signature = parse_signature(blob[i : i + 4])
        i += 4
        profile_flags = struct.unpack(">I", blob[i : i + 4])[0]
        i += 4
        device_manufacturer = parse_signature(blob[i : i + 4])
        i += 4
        device_model = parse_signature(blob[i : i + 4])
        i += 4
        device_attributes = struct.unpack(">Q", blob[i : i + 8])[0]
        i += 8
        rendering_intent = struct.unpack(">I", blob[i : i + 4])[0]
        i += 4
        xyz_illuminant = parse_XYZNumber(blob[i : i + 12])
        i += 12
        profile_creator_field = parse_signature(blob[i : i + 4])
        i += 4
        profile_id = bytes(blob[i : i + PROFILE_ID_SIZE])
        # the remaining 28 bytes are reserved
        return cls(
            profile_size=profile_size,
            preferred_cmm_type=preferred_cmm_type,
            profile_version_number=profile_version_number,
            profile_device_class=profile_device_class,
            color_space=color_space,
            profile_connection_space=profile_connection_space,
            date_and_time=date_and_time,
            profile_file_signature=profile_file_signature,
            primary_platform_signature=primary_platform_signature,
            profile_flags=profile_flags,
            device_manufacturer=device_manufacturer,
            device_model=device_model,
            device_attributes=device_attributes,
            rendering_intent=rendering_intent,
            xyz_illuminant=xyz_illuminant,
            profile_creator_field=profile_creator_field,
            profile_id=profile_id,
        )

    def pack(self):
        header = b"".join(
            (
                struct.pack(">I", self.profile_size),
                pack_signature(self.preferred_cmm_type),
                pack_VersionNumber(self.profile_version_number),
                pack_signature(self.profile_device_class),
                pack_signature(self.color_space),
                pack_signature(self.profile_connection_space),
                pack_dateTimeNumber(self.date_and_time),
                pack_signature(self.profile_file_signature),
                pack_signature(self.primary_platform_signature),
                struct.pack(">I", self.profile_flags),
                pack_signature(self.device_manufacturer),
                pack_signature(self.device_model),
                struct.pack(">Q", self.device_attributes),
                struct.pack(">I", self.rendering_intent),
                pack_XYZNumber(self.xyz_illuminant),
                pack_signature(self.profile_creator_field),
                bytes(self.profile_id).ljust(PROFILE_ID_SIZE, b"\x00"),
                bytes(28),  # reserved
            )
        )
        assert len(header) == HEADER_SIZE, f"invalid header size: {len(header)}"
        return header

    def replace(self, **changes):
        return dataclasses.replace(self, **changes)

    def str_VersionNumber(self):
        return str_VersionNumber(self.profile_version_number)

    def str_dateTimeNumber(self):
        return str_dateTimeNumber(self.date_and_time)

    def profile_id_is_set(self):
        return any(self.profile_id)

    def items(self):
        yield "profile_size", self.profile_size
        yield "preferred_cmm_type", escape_string(self.preferred_cmm_type)
        yield "profile_version_number", self.str_VersionNumber()
        yield "profile_device_class", self.profile_device_class
        yield "color_space", self.color_space
        yield "profile_connection_space", self.profile_connection_space
        yield "date_and_time", self.str_dateTimeNumber()
        yield "profile_file_signature", self.profile_file_signature
        yield "primary_platform_signature", escape_string(
            self.primary_platform_signature
        )
        yield "profile_flags", self.profile_flags
        yield "device_manufacturer", escape_string(self.device_manufacturer)
        yield "device_model", escape_string(self.device_model)
        yield "device_attributes", self.device_attributes
        yield "rendering_intent", self.rendering_intent_name()
        yield "xyz_illuminant", tuple(self.xyz_illuminant)
        yield "profile_creator_field", escape_string(self.profile_creator_field)
        yield "profile_id", self.profile_id.hex()

    def todict(self):
        return dict(self.items())

    def rendering_intent_name(self):
        try:
            return RenderingIntent(self.rendering_intent).name.lower()
        except ValueError:
            return self.rendering_intent
