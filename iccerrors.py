#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

"""Exceptions raised while reading, building, and writing ICC profiles."""


class ICCError(Exception):
    pass


class ParseError(ICCError):
    """The input cannot be read as an ICC profile."""


class BadMagicError(ParseError):
    def __init__(self, magic):
        self.magic = magic
        super().__init__(f"invalid icc header: {magic!r} != b'acsp'")


class TruncatedError(ParseError):
    def __init__(self, needed, available):
        self.needed = needed
        self.available = available
        super().__init__(
            f"truncated icc profile: need {needed} bytes, got {available}"
        )


class TagOutOfBoundsError(ParseError):
    def __init__(self, signature, offset, size, available):
        self.signature = signature
        self.offset = offset
        self.size = size
        self.available = available
        super().__init__(
            f'tag "{signature}" out of bounds: offset: {offset} size: {size} '
            f"profile_size: {available}"
        )


class DecodeError(ICCError):
    """A tag payload does not follow the layout of its tag type.

    Only raised by the per-type parsers. A profile read never lets it
    escape: the tag is kept as raw bytes instead.
    """


class BuilderError(ICCError):
    pass


class InvalidTagValueError(BuilderError):
    def __init__(self, signature, reason):
        self.signature = signature
        self.reason = reason
        super().__init__(f'invalid value for tag "{signature}": {reason}')
