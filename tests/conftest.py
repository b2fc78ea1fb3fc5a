#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

import datetime
import struct

import pytest

from iccbuilder import ICCProfileBuilder
from iccheader import ICCHeader
from iccnumbers import pad_size


DISPLAY_P3_TRC = [2.39999, 0.94786, 0.05214, 0.07739, 0.04045]
BRADFORD_D65_TO_D50 = [
    [1.047882, 0.022919, -0.050201],
    [0.029587, 0.990479, -0.017059],
    [-0.009232, 0.015076, 0.751678],
]


@pytest.fixture
def display_p3_builder():
    return (
        ICCProfileBuilder.new("mntr")
        .with_color_space("RGB ")
        .with_creation_date(datetime.datetime(2024, 1, 1, 12, 0, 0))
        .with_tag("desc")
        .as_text_description("Display P3")
        .with_tag("cprt")
        .as_text("CC0")
        .with_tag("wtpt")
        .as_xyz_array([0.950455, 1.0, 1.08905])
        .with_tag("rXYZ")
        .as_xyz_array([0.515121, 0.241196, -0.001053])
        .with_tag("gXYZ")
        .as_xyz_array([0.291977, 0.692245, 0.041885])
        .with_tag("bXYZ")
        .as_xyz_array([0.157104, 0.066574, 0.784073])
        .with_tag("rTRC")
        .as_parametric_curve(DISPLAY_P3_TRC)
        .with_tag("gTRC")
        .as_parametric_curve(DISPLAY_P3_TRC)
        .with_tag("bTRC")
        .as_parametric_curve(DISPLAY_P3_TRC)
        .with_tag("chad")
        .as_s15fixed16_array(BRADFORD_D65_TO_D50)
    )


@pytest.fixture
def make_blob():
    """Assembles a profile by hand.

    entries is a list of (signature, payload_index) pairs, so several
    entries can point to the same payload. Every payload gets its own
    (4-byte aligned) location.
    """

    def _make_blob(entries, payloads, header=None):
        data_start = 128 + 4 + 12 * len(entries)
        offsets = []
        data = b""
        for payload in payloads:
            offsets.append(data_start + len(data))
            data += payload + bytes(pad_size(len(payload)))
        table = struct.pack(">I", len(entries))
        for signature, index in entries:
            table += signature.encode("latin-1")
            table += struct.pack(">II", offsets[index], len(payloads[index]))
        if header is None:
            header = ICCHeader(date_and_time=(2024, 1, 1, 0, 0, 0))
        header = header.replace(profile_size=data_start + len(data))
        return header.pack() + table + data

    return _make_blob
