#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

"""ICC profile: a header plus an ordered collection of tags."""


import logging

from iccchecksum import set_profile_id
from iccheader import HEADER_SIZE, ICCHeader
from icctags import resolve_tag_signature
from icctagtable import pack_tag_table, parse_tag_table, uses_shared_tags


logger = logging.getLogger(__name__)


class ICCProfile:
    """A decoded ICC profile.

    `tags` maps tag signatures to tag values. Its order is the order of
    the tag table when the profile is written.

    `share_tags` controls whether tags with byte-identical elements share
    a single element when the profile is written. A parsed profile keeps
    the choice made by the file it was read from.
    """

    def __init__(self, header=None, tags=None, share_tags=True):
        self.header = header if header is not None else ICCHeader()
        self.tags = dict(tags) if tags is not None else {}
        self.share_tags = share_tags
        # tag table as read from the input, as TagEntry's
        self.tag_table = []

    @classmethod
    def parse(cls, blob):
        blob = bytes(blob)
        header = ICCHeader.parse(blob)
        if header.profile_size != len(blob):
            logger.warning(
                f"header profile_size ({header.profile_size}) does not match "
                f"the profile length ({len(blob)})"
            )
        tags, tag_table = parse_tag_table(blob)
        profile = cls(header, tags, share_tags=uses_shared_tags(tag_table))
        profile.tag_table = tag_table
        return profile

    @classmethod
    def read(cls, infile):
        with open(infile, "rb") as fin:
            blob = fin.read()
        return cls.parse(blob)

    def pack(self, share_tags=None, profile_id=False):
        """Serializes the profile.

        The header is updated in place with the final profile size, and,
        if profile_id is set, with the newly-computed profile ID.
        Otherwise the current profile ID is written as-is.
        """
        tag_table = self._layout(share_tags)
        profile_size = self._profile_size(tag_table)
        header = self.header.replace(profile_size=profile_size)
        data = bytearray(header.pack())
        data += tag_table.tag_table_bytes
        data += tag_table.elements_bytes
        if profile_id:
            header = header.replace(profile_id=set_profile_id(data))
        self.header = header
        self.tag_table = tag_table.entries
        return bytes(data)

    def write(self, outfile, share_tags=None, profile_id=False):
        blob = self.pack(share_tags, profile_id)
        with open(outfile, "wb") as fout:
            fout.write(blob)
        return blob

    def _layout(self, share_tags=None):
        if share_tags is None:
            share_tags = self.share_tags
        return pack_tag_table(self.tags, share_tags)

    @staticmethod
    def _profile_size(tag_table):
        return (
            HEADER_SIZE + len(tag_table.tag_table_bytes) + len(tag_table.elements_bytes)
        )

    def size(self, share_tags=None):
        return self._profile_size(self._layout(share_tags))

    def __eq__(self, other):
        if not isinstance(other, ICCProfile):
            return NotImplemented
        return self.header == other.header and list(self.tags.items()) == list(
            other.tags.items()
        )

    def __contains__(self, signature):
        return resolve_tag_signature(signature) in self.tags

    def get_tag(self, signature, default=None):
        return self.tags.get(resolve_tag_signature(signature), default)

    def with_header(self, **changes):
        return ICCProfile(self.header.replace(**changes), self.tags, self.share_tags)

    def without_tag(self, signature):
        signature = resolve_tag_signature(signature)
        tags = {sig: tag for sig, tag in self.tags.items() if sig != signature}
        return ICCProfile(self.header, tags, self.share_tags)

    def profile_id_is_set(self):
        return self.header.profile_id_is_set()


def remove_copyright(profile):
    # elements shared with other tags survive: sharing is recomputed on write
    if "cprt" not in profile.tags:
        logger.info("no copyrightTag to remove")
        return profile
    logger.info("removing copyrightTag")
    return profile.without_tag("cprt")
