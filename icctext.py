#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

"""Text projection of an ICC profile.

`iter_items()` walks a profile as (key_path, value) pairs: one
(field,) path per header field, and one (tag_signature, field) path per
tag field. Values are scalars, flat tuples, or tuples of rows
(matrices). `tostring()` and `todict()` render those pairs as text and
as a JSON-ready dictionary.
"""


import itertools
import json

from iccheader import DEVICE_CLASS
from iccnumbers import escape_string
from icctags import (
    ChromaticityType,
    CurveType,
    MultiLocalizedUnicodeType,
    ParametricCurveType,
    S15Fixed16ArrayType,
    TextDescriptionType,
    TextType,
    XYZType,
    tag_type_name,
)


TABSTR = "  "

# tags whose s15Fixed16ArrayType values are a matrix: signature -> columns
MATRIX_TAGS = {
    "chad": 3,
}

# (tag_signature, key) pairs listed by the short summary
SUMMARY_TAGS = (
    ("desc", "profile_description"),
    ("cprt", "profile_copyright"),
    ("dmnd", "device_mfg_desc"),
    ("dmdd", "device_model_desc"),
    ("wtpt", "media_white_point"),
    ("bkpt", "media_black_point"),
    ("lumi", "luminance"),
    ("chad", "chromatic_adaptation"),
    ("rXYZ", "red_matrix_column"),
    ("gXYZ", "green_matrix_column"),
    ("bXYZ", "blue_matrix_column"),
    ("rTRC", "red_trc"),
    ("gTRC", "green_trc"),
    ("bTRC", "blue_trc"),
    ("kTRC", "gray_trc"),
    ("chrm", "chromaticity"),
)


def to_matrix(values, columns):
    if columns <= 0 or len(values) % columns != 0:
        return tuple(values)
    return tuple(
        tuple(values[i : i + columns]) for i in range(0, len(values), columns)
    )


def iter_tag_items(signature, tag):
    yield "tag_type", tag_type_name(tag)
    for key, value in tag.items():
        if isinstance(tag, S15Fixed16ArrayType) and signature in MATRIX_TAGS:
            value = to_matrix(value, MATRIX_TAGS[signature])
        yield key, value


def iter_items(profile):
    for key, value in profile.header.items():
        yield (key,), value
    yield ("tag_count",), len(profile.tags)
    for signature, tag in profile.tags.items():
        for key, value in iter_tag_items(signature, tag):
            yield (signature, key), value


def format_number(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    return repr(round(value, 6))


def format_value(value):
    """Renders a value in a single line."""
    if isinstance(value, (tuple, list)):
        return "[" + ", ".join(format_value(v) for v in value) + "]"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if value is None:
        return "null"
    return format_number(value)


def _prefix(tabsize):
    return " " if tabsize == -1 else ("\n" + TABSTR * tabsize)


def tostring(profile, as_one_line=False):
    tabsize = -1 if as_one_line else 0
    child_tabsize = tabsize if as_one_line else tabsize + 1
    out = ""
    for section, items in itertools.groupby(
        iter_items(profile), key=lambda item: item[0][:-1]
    ):
        if section:
            (signature,) = section
            out += f'{_prefix(tabsize)}tag "{escape_string(signature)}" {{'
            for key_path, value in items:
                out += f"{_prefix(child_tabsize)}{key_path[-1]}: {format_value(value)}"
            out += f"{_prefix(tabsize)}}}"
        else:
            for (key,), value in items:
                out += f"{_prefix(tabsize)}{key}: {format_value(value)}"
    return out.strip()


def todict(profile, short=False):
    if short:
        return reduce_info(profile)
    d = {}
    for key_path, value in iter_items(profile):
        if len(key_path) == 1:
            d[key_path[0]] = value
        else:
            signature, key = key_path
            d.setdefault("tags", {}).setdefault(signature, {})[key] = value
    return d


def summary_value(signature, tag):
    if isinstance(tag, TextType):
        return tag.text
    elif isinstance(tag, TextDescriptionType):
        return tag.ascii
    elif isinstance(tag, MultiLocalizedUnicodeType):
        return tag.get()
    elif isinstance(tag, XYZType):
        return tag.numbers[0] if len(tag.numbers) == 1 else tag.numbers
    elif isinstance(tag, S15Fixed16ArrayType):
        return to_matrix(tag.numbers, MATRIX_TAGS.get(signature, 0))
    elif isinstance(tag, CurveType):
        return tag.gamma if len(tag.values) == 1 else tag.values
    elif isinstance(tag, ParametricCurveType):
        return tag.parameters
    elif isinstance(tag, ChromaticityType):
        return tag.coordinates
    return None


def reduce_info(profile):
    header = profile.header
    dout = {
        "profile_version": header.str_VersionNumber(),
        "profile_class": DEVICE_CLASS.get(
            header.profile_device_class, header.profile_device_class
        ),
        "color_space": header.color_space,
        "profile_connection_space": header.profile_connection_space,
        "xyz_illuminant": header.xyz_illuminant,
    }
    for signature, key in SUMMARY_TAGS:
        tag = profile.tags.get(signature)
        if tag is None:
            continue
        value = summary_value(signature, tag)
        if value is not None:
            dout[key] = value
    return dout


def tojson(profile, short=False):
    return json.dumps(todict(profile, short), indent=4)
