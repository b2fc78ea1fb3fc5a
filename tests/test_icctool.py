#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

import json

import pytest

import icctool
from iccchecksum import verify_profile_id
from iccprofile import ICCProfile


@pytest.fixture
def infile(display_p3_builder, tmp_path):
    path = tmp_path / "p3.icc"
    path.write_bytes(display_p3_builder.to_bytes())
    return str(path)


def run(*args):
    return icctool.main(["icctool", *args])


def test_print(infile, tmp_path):
    outfile = tmp_path / "out.txt"
    assert run("--print", "-i", infile, "-o", str(outfile)) == 0
    out = outfile.read_text()
    assert out.startswith("profile_size: 524 ")
    assert 'tag "desc" {' in out


def test_print_multi_line(infile, tmp_path):
    outfile = tmp_path / "out.txt"
    assert run("--print", "--noas-one-line", "-i", infile, "-o", str(outfile)) == 0
    assert "\n  text: \"CC0\"\n" in outfile.read_text()


def test_json(infile, tmp_path):
    outfile = tmp_path / "out.json"
    assert run("--json", "-i", infile, "-o", str(outfile)) == 0
    assert json.loads(outfile.read_text())["profile_copyright"] == "CC0"
    outfile.unlink()
    assert run("--json", "--no-short", "-i", infile, "-o", str(outfile)) == 0
    assert json.loads(outfile.read_text())["tags"]["cprt"]["text"] == "CC0"


def test_remove_copyright(infile, tmp_path):
    outfile = tmp_path / "out.icc"
    assert run("--remove-copyright", "--write", "-i", infile, "-o", str(outfile)) == 0
    profile = ICCProfile.read(outfile)
    assert "cprt" not in profile
    assert "desc" in profile


def test_write_profile_id(infile, tmp_path):
    outfile = tmp_path / "out.icc"
    assert run("--write", "--profile-id", "-i", infile, "-o", str(outfile)) == 0
    assert verify_profile_id(outfile.read_bytes()) is True
    result = tmp_path / "check.txt"
    assert run("--check-profile-id", "-i", str(outfile), "-o", str(result)) == 0
    assert result.read_text() == "profile_id: valid\n"


def test_check_profile_id_not_set(infile, tmp_path):
    result = tmp_path / "check.txt"
    assert run("--check-profile-id", "-i", infile, "-o", str(result)) == 0
    assert result.read_text() == "profile_id: not set\n"


def test_check_profile_id_invalid(infile, tmp_path):
    with open(infile, "rb") as fin:
        blob = bytearray(fin.read())
    blob[84:100] = b"\x01" * 16
    bad = tmp_path / "bad.icc"
    bad.write_bytes(bytes(blob))
    result = tmp_path / "check.txt"
    assert run("--check-profile-id", "-i", str(bad), "-o", str(result)) == 1
    assert result.read_text() == "profile_id: invalid\n"


def test_no_share_tags(infile, tmp_path):
    outfile = tmp_path / "out.icc"
    assert run("--write", "--no-share-tags", "-i", infile, "-o", str(outfile)) == 0
    # three separate 32-byte parametric curves
    assert len(outfile.read_bytes()) == 524 + 64


def test_force_version_number(infile, tmp_path):
    outfile = tmp_path / "out.icc"
    args = ("--force-version-number", "2.1", "--write", "-i", infile, "-o", str(outfile))
    assert run(*args) == 0
    assert ICCProfile.read(outfile).header.profile_version_number == (2, 1, 0)


def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        run("--version")
    assert excinfo.value.code == 0
    assert "version: " in capsys.readouterr().out


def test_main_entry_error(tmp_path, monkeypatch, capsys):
    bad = tmp_path / "bad.icc"
    bad.write_bytes(bytes(200))
    monkeypatch.setattr("sys.argv", ["icctool", "--print", "-i", str(bad)])
    with pytest.raises(SystemExit) as excinfo:
        icctool.main_entry()
    assert excinfo.value.code == 1
    assert "error: " in capsys.readouterr().err


@pytest.fixture
def infile_with_id(display_p3_builder, tmp_path):
    path = tmp_path / "p3-id.icc"
    path.write_bytes(display_p3_builder.with_profile_id().to_bytes())
    return str(path)


@pytest.mark.parametrize(
    "edit",
    [
        ("--remove-copyright",),
        ("--force-version-number", "2.1"),
        ("--no-share-tags",),
    ],
)
def test_edit_recomputes_profile_id(infile_with_id, tmp_path, edit):
    outfile = tmp_path / "out.icc"
    assert run(*edit, "--write", "-i", infile_with_id, "-o", str(outfile)) == 0
    blob = outfile.read_bytes()
    assert verify_profile_id(blob) is True
    with open(infile_with_id, "rb") as fin:
        assert blob[84:100] != fin.read()[84:100]


def test_unedited_keeps_profile_id(infile_with_id, tmp_path):
    outfile = tmp_path / "out.icc"
    assert run("--write", "-i", infile_with_id, "-o", str(outfile)) == 0
    with open(infile_with_id, "rb") as fin:
        assert outfile.read_bytes() == fin.read()


def test_edit_without_profile_id_stays_unset(infile, tmp_path):
    outfile = tmp_path / "out.icc"
    assert run("--remove-copyright", "--write", "-i", infile, "-o", str(outfile)) == 0
    assert verify_profile_id(outfile.read_bytes()) is None
