#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

"""ICC tag table (section 7.3).

The tag table is a tag count followed by one (signature, offset, size)
entry per tag. Offsets are counted from the start of the profile, and
every tagged element starts on a 4-byte boundary. The padding bytes are
not included in the element size.

Elements with identical bytes can be shared: the tag table then has
several entries pointing to the same (offset, size).
"""


import collections
import logging
import struct

from iccerrors import TagOutOfBoundsError, TruncatedError
from iccheader import HEADER_SIZE
from iccnumbers import escape_string, pack_signature, padded_size, parse_signature
from icctags import parse_tag


logger = logging.getLogger(__name__)

TAG_COUNT_SIZE = 4
TAG_ENTRY_SIZE = 12


TagEntry = collections.namedtuple("TagEntry", ("signature", "offset", "size"))

TagTable = collections.namedtuple(
    "TagTable", ("tag_table_bytes", "elements_bytes", "entries")
)


def tag_table_size(tag_count):
    return TAG_COUNT_SIZE + TAG_ENTRY_SIZE * tag_count


def parse_tag_table(blob):
    """Parses the tag table and the tagged elements it points to.

    Returns a (tags, entries) tuple, where tags is a dict mapping tag
    signatures to tags, and entries is the list of TagEntry's in file order.

    When a signature appears more than once, the last entry wins, but the
    tag keeps the position where it was first seen.
    """
    i = HEADER_SIZE
    if len(blob) < i + TAG_COUNT_SIZE:
        raise TruncatedError(i + TAG_COUNT_SIZE, len(blob))
    tag_count = struct.unpack(">I", blob[i : i + 4])[0]
    i += 4
    if len(blob) < HEADER_SIZE + tag_table_size(tag_count):
        raise TruncatedError(HEADER_SIZE + tag_table_size(tag_count), len(blob))
    tags = {}
    entries = []
    for _ in range(tag_count):
        header_signature = parse_signature(blob[i : i + 4])
        i += 4
        header_offset, header_size = struct.unpack(">II", blob[i : i + 8])
        i += 8
        if header_offset + header_size > len(blob):
            raise TagOutOfBoundsError(
                header_signature, header_offset, header_size, len(blob)
            )
        entries.append(TagEntry(header_signature, header_offset, header_size))
        tag = parse_tag(
            blob[header_offset : header_offset + header_size], header_signature
        )
        if header_signature in tags:
            logger.warning(
                f'duplicate tag signature: "{escape_string(header_signature)}", '
                "using the last entry"
            )
        tags[header_signature] = tag
    return tags, entries


def uses_shared_tags(entries):
    # duplicate offsets in the tag table imply shared elements
    offsets = [entry.offset for entry in entries]
    return len(set(offsets)) != len(offsets)


def group_shared_tags(tags):
    """Groups tag signatures whose packed elements are byte-identical.

    Returns a list of (element_bytes, [signatures]) tuples, in the order
    of the first signature of each group.
    """
    groups = {}
    for signature, tag in tags.items():
        groups.setdefault(tag.pack(), []).append(signature)
    return list(groups.items())


def pack_tag_table(tags, share_tags=True):
    """Lays out the tag table and the tagged elements.

    Returns a TagTable with the tag table bytes (count and entries), the
    tagged element bytes (each element padded to 4 bytes), and the
    entries with their final absolute offsets.
    """
    if share_tags:
        groups = group_shared_tags(tags)
    else:
        groups = [(tag.pack(), [signature]) for signature, tag in tags.items()]
    offset = HEADER_SIZE + tag_table_size(len(tags))
    location = {}
    elements = []
    for element_bytes, signatures in groups:
        size = len(element_bytes)
        for signature in signatures:
            location[signature] = (offset, size)
        elements.append(element_bytes.ljust(padded_size(size), b"\x00"))
        offset += padded_size(size)
    # entries follow the tag order, not the group order
    entries = [TagEntry(signature, *location[signature]) for signature in tags]
    tag_table_bytes = struct.pack(">I", len(entries))
    for entry in entries:
        tag_table_bytes += pack_signature(entry.signature)
        tag_table_bytes += struct.pack(">II", entry.offset, entry.size)
    return TagTable(tag_table_bytes, b"".join(elements), entries)
