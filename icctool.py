#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

"""icctool: An ICC Profile Parser/Generator.

This module can parse, edit, and write an ICC Profile, per
[ICC.1:2022-05](https://www.color.org/specification/ICC.1-2022-05.pdf).

Edition features: removing copyrightTag elements, forcing the version
number, (re)computing the profile ID, and sharing identical tag elements.
"""


import argparse
import logging
import sys

from _version import __version__
from iccchecksum import verify_profile_id
from iccerrors import ICCError
from iccheader import parse_version_string
from iccprofile import ICCProfile, remove_copyright
from icctext import tojson, tostring


logger = logging.getLogger("icctool")

default_values = {
    "debug": 0,
    "remove_copyright": False,
    "print": False,
    "json": False,
    "short": True,
    "as_one_line": True,
    "force_version_number": None,
    "profile_id": False,
    "check_profile_id": False,
    "share_tags": None,
    "write": False,
    "infile": None,
    "outfile": None,
}

LOG_LEVELS = {
    -1: logging.ERROR,
    0: logging.WARNING,
    1: logging.INFO,
}


def setup_logging(debug):
    level = LOG_LEVELS.get(debug, logging.DEBUG)
    logging.basicConfig(
        level=level, format="%(levelname)s: %(name)s: %(message)s", stream=sys.stderr
    )


def parse_icc_profile(infile, force_version_number):
    logger.info(f"file: {infile}")
    with open(infile, "rb") as fin:
        blob = fin.read()
    profile = ICCProfile.parse(blob)
    if force_version_number is not None:
        profile = profile.with_header(
            profile_version_number=parse_version_string(force_version_number)
        )
    return profile, blob


def write_icc_profile(profile, outfile, share_tags, profile_id):
    blob = profile.pack(share_tags=share_tags, profile_id=profile_id)
    with open(outfile, "wb") as fout:
        fout.write(blob)
    logger.info(f"wrote {len(blob)} bytes to {outfile}")


def get_options(argv):
    """Generic option parser.

    Args:
        argv: list containing arguments

    Returns:
        Namespace - An argparse.ArgumentParser-generated option object
    """
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "-v",
        "--version",
        action="store_true",
        dest="version",
        default=False,
        help="Print version",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="count",
        dest="debug",
        default=default_values["debug"],
        help="Increase verbosity (use multiple times for more)",
    )
    parser.add_argument(
        "--quiet",
        action="store_const",
        dest="debug",
        const=-1,
        help="Zero verbosity",
    )
    parser.add_argument(
        "--remove-copyright",
        dest="remove_copyright",
        action="store_true",
        default=default_values["remove_copyright"],
        help="Remove copyright",
    )
    parser.add_argument(
        "--print",
        dest="print",
        action="store_true",
        default=default_values["print"],
        help="Print input ICC profile in text format",
    )
    parser.add_argument(
        "--force-version-number",
        action="store",
        dest="force_version_number",
        default=default_values["force_version_number"],
        metavar="FORCED-VERSION-NUMBER",
        help="force version number",
    )
    parser.add_argument(
        "--as-one-line",
        dest="as_one_line",
        action="store_true",
        default=default_values["as_one_line"],
        help="Print output as one line%s"
        % (" [default]" if default_values["as_one_line"] else ""),
    )
    parser.add_argument(
        "--noas-one-line",
        dest="as_one_line",
        action="store_false",
        help="Print output as multiple lines%s"
        % (" [default]" if not default_values["as_one_line"] else ""),
    )
    parser.add_argument(
        "--json",
        dest="json",
        action="store_true",
        default=default_values["json"],
        help="Dump output in scriptable mode (JSON)%s"
        % (" [default]" if default_values["json"] else ""),
    )
    parser.add_argument(
        "--no-json",
        dest="json",
        action="store_false",
        help="Dump output in non-scriptable mode%s"
        % (" [default]" if not default_values["json"] else ""),
    )
    parser.add_argument(
        "--short",
        dest="short",
        action="store_true",
        default=default_values["short"],
        help="Short JSON Version%s" % (" [default]" if default_values["short"] else ""),
    )
    parser.add_argument(
        "--no-short",
        dest="short",
        action="store_false",
        help="Long JSON Version%s"
        % (" [default]" if not default_values["short"] else ""),
    )
    parser.add_argument(
        "--profile-id",
        dest="profile_id",
        action="store_true",
        default=default_values["profile_id"],
        help="Compute the profile ID when writing",
    )
    parser.add_argument(
        "--check-profile-id",
        dest="check_profile_id",
        action="store_true",
        default=default_values["check_profile_id"],
        help="Check the profile ID of the input ICC profile",
    )
    parser.add_argument(
        "--share-tags",
        dest="share_tags",
        action="store_true",
        default=default_values["share_tags"],
        help="Share identical tag elements when writing "
        "[default: same as the input profile]",
    )
    parser.add_argument(
        "--no-share-tags",
        dest="share_tags",
        action="store_false",
        help="Write every tag element separately",
    )
    parser.add_argument(
        "--write",
        dest="write",
        action="store_true",
        default=default_values["write"],
        help="Write ICC profile in binary format",
    )
    parser.add_argument(
        "-i",
        "--infile",
        dest="infile",
        type=str,
        default=default_values["infile"],
        metavar="input-file",
        help="input file",
    )
    parser.add_argument(
        "-o",
        "--outfile",
        dest="outfile",
        type=str,
        default=default_values["outfile"],
        metavar="output-file",
        help="output file",
    )
    # do the parsing
    options = parser.parse_args(argv[1:])
    # implement version
    if options.version:
        print(f"version: {__version__}")
        sys.exit(0)
    return options


def main(argv):
    # parse options
    options = get_options(argv)
    setup_logging(options.debug)
    # get infile/outfile
    if options.infile == "-" or options.infile is None:
        options.infile = "/dev/fd/0"
    if options.outfile == "-" or options.outfile is None:
        options.outfile = "/dev/fd/1"
    logger.debug(options)
    # parse input profile
    profile, blob = parse_icc_profile(options.infile, options.force_version_number)
    if options.check_profile_id:
        valid = verify_profile_id(blob)
        status = {None: "not set", True: "valid", False: "invalid"}[valid]
        with open(options.outfile, "a") as fout:
            fout.write(f"profile_id: {status}\n")
        return 0 if valid is not False else 1
    if options.print:
        # dump contents
        with open(options.outfile, "a") as fout:
            fout.write(tostring(profile, options.as_one_line) + "\n")
        return 0
    elif options.json:
        # dump contents
        with open(options.outfile, "a") as fout:
            fout.write(tojson(profile, options.short) + "\n")
        return 0
    if options.remove_copyright:
        # remove copyrights
        profile = remove_copyright(profile)
    if options.write:
        # a stored profile ID is stale once the contents change
        profile_id = options.profile_id or (
            profile.profile_id_is_set() and profile.pack(options.share_tags) != blob
        )
        write_icc_profile(profile, options.outfile, options.share_tags, profile_id)
    return 0


def main_entry():
    try:
        sys.exit(main(sys.argv))
    except ICCError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    # at least the CLI program name: (CLI) execution
    main_entry()
