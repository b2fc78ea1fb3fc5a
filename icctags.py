#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

"""ICC tag types.

Every tag in the tagged element data area starts with a 4-byte tag type
signature (the "element signature") followed by 4 reserved bytes. The
element signature selects one of the types below. Any element whose
type is unknown, or whose payload does not follow the layout of its
type, is kept as a RawType, so that writing a profile never drops data.
"""


import dataclasses
import logging
import struct
import types
import typing

from iccerrors import DecodeError
from iccnumbers import (
    escape_string,
    pack_dateTimeNumber,
    pack_s15Fixed16Number,
    pack_signature,
    pack_u16Fixed16Number,
    pack_u8Fixed8Number,
    pack_XYZNumber,
    parse_dateTimeNumber,
    parse_s15Fixed16Number,
    parse_signature,
    parse_u16Fixed16Number,
    parse_u8Fixed8Number,
    parse_XYZNumber,
    str_dateTimeNumber,
)


logger = logging.getLogger(__name__)

RESERVED = bytes(4)


def _check_element(blob, element_signature, min_size):
    if len(blob) < min_size:
        raise DecodeError(
            f'"{element_signature}" element too short: {len(blob)} < {min_size}'
        )
    if parse_signature(blob) != element_signature:
        raise DecodeError(
            f'invalid element signature: "{escape_string(parse_signature(blob))}" '
            f'!= "{element_signature}"'
        )


def _check_array(blob, item_size, element_signature):
    if (len(blob) - 8) % item_size != 0:
        raise DecodeError(
            f'"{element_signature}" element size {len(blob)} is not 8 + '
            f"{item_size} * n"
        )
    return (len(blob) - 8) // item_size


def _check_numbers(numbers, pack_number):
    for number in numbers:
        pack_number(number)


def _check_xyz_numbers(numbers):
    for xyz_number in numbers:
        if len(xyz_number) != 3:
            raise ValueError(f"XYZNumber needs 3 values: {xyz_number}")
        pack_XYZNumber(xyz_number)


@dataclasses.dataclass(frozen=True)
class RawType:
    """An element kept as the exact bytes it was read from."""

    type_name: typing.ClassVar[str] = "rawType"

    data: bytes = b""

    @property
    def type_signature(self):
        return parse_signature(self.data) if len(self.data) >= 4 else None

    @classmethod
    def parse(cls, blob):
        return cls(bytes(blob))

    def pack(self):
        return bytes(self.data)

    def validate(self):
        if not isinstance(self.data, (bytes, bytearray)):
            raise ValueError(f"raw data must be bytes, not {type(self.data).__name__}")

    def items(self):
        yield "element_size", len(self.data)
        yield "data", self.data.hex()


@dataclasses.dataclass(frozen=True)
class TextType:
    type_signature: typing.ClassVar[str] = "text"
    type_name: typing.ClassVar[str] = "textType"

    text: str = ""

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 8)
        # the text is 7-bit ascii, null-terminated
        text = bytes(blob[8:]).split(b"\x00", 1)[0]
        try:
            return cls(text.decode("ascii"))
        except UnicodeDecodeError as exc:
            raise DecodeError(f"textType is not 7-bit ascii: {exc}") from exc

    def pack(self):
        return (
            pack_signature(self.type_signature)
            + RESERVED
            + self.text.encode("ascii")
            + b"\x00"
        )

    def validate(self):
        self.text.encode("ascii")
        if "\x00" in self.text:
            raise ValueError("text cannot contain a null character")

    def items(self):
        yield "text", self.text


@dataclasses.dataclass(frozen=True)
class TextDescriptionType:
    """ICC.1:2001-04 textDescriptionType (V2 only)."""

    type_signature: typing.ClassVar[str] = "desc"
    type_name: typing.ClassVar[str] = "textDescriptionType"
    MACINTOSH_DESCRIPTION_SIZE: typing.ClassVar[int] = 67

    ascii: str = ""
    unicode: str = ""
    unicode_language_code: int = 0
    scriptcode_code: int = 0
    mac_script_name: str = ""

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 12)
        try:
            i = 8
            ascii_length = struct.unpack(">I", blob[i : i + 4])[0]
            i += 4
            ascii_bytes = bytes(blob[i : i + ascii_length])
            if len(ascii_bytes) != ascii_length:
                raise DecodeError("textDescriptionType ascii description truncated")
            ascii = ascii_bytes.split(b"\x00", 1)[0].decode("ascii")
            i += ascii_length
            unicode_language_code, unicode_length = struct.unpack(
                ">II", blob[i : i + 8]
            )
            i += 8
            # unicode_length counts 16-bit characters
            unicode_bytes = bytes(blob[i : i + 2 * unicode_length])
            if len(unicode_bytes) != 2 * unicode_length:
                raise DecodeError("textDescriptionType unicode description truncated")
            unicode = unicode_bytes.decode("utf-16-be").split("\x00", 1)[0]
            i += 2 * unicode_length
            scriptcode_code, macintosh_length = struct.unpack(">HB", blob[i : i + 3])
            i += 3
            if macintosh_length > cls.MACINTOSH_DESCRIPTION_SIZE:
                raise DecodeError(
                    f"invalid macintosh description length: {macintosh_length}"
                )
            mac_script_name = (
                bytes(blob[i : i + macintosh_length])
                .split(b"\x00", 1)[0]
                .decode("latin-1")
            )
        except (struct.error, UnicodeDecodeError) as exc:
            raise DecodeError(f"invalid textDescriptionType: {exc}") from exc
        return cls(
            ascii=ascii,
            unicode=unicode,
            unicode_language_code=unicode_language_code,
            scriptcode_code=scriptcode_code,
            mac_script_name=mac_script_name,
        )

    def pack(self):
        ascii_bytes = self.ascii.encode("ascii") + b"\x00"
        tag = pack_signature(self.type_signature) + RESERVED
        tag += struct.pack(">I", len(ascii_bytes)) + ascii_bytes
        if self.unicode:
            unicode_bytes = (self.unicode + "\x00").encode("utf-16-be")
        else:
            unicode_bytes = b""
        tag += struct.pack(
            ">II", self.unicode_language_code, len(unicode_bytes) // 2
        )
        tag += unicode_bytes
        mac_bytes = self.mac_script_name.encode("latin-1")
        if mac_bytes:
            mac_bytes += b"\x00"
        tag += struct.pack(">HB", self.scriptcode_code, len(mac_bytes))
        tag += mac_bytes.ljust(self.MACINTOSH_DESCRIPTION_SIZE, b"\x00")
        return tag

    def validate(self):
        self.ascii.encode("ascii")
        self.unicode.encode("utf-16-be")
        if "\x00" in self.ascii or "\x00" in self.unicode:
            raise ValueError("description cannot contain a null character")
        if len(self.mac_script_name.encode("latin-1")) >= self.MACINTOSH_DESCRIPTION_SIZE:
            raise ValueError(
                f"macintosh description longer than "
                f"{self.MACINTOSH_DESCRIPTION_SIZE - 1} bytes"
            )
        struct.pack(">IH", self.unicode_language_code, self.scriptcode_code)

    def items(self):
        yield "ascii", self.ascii
        if self.unicode:
            yield "unicode", self.unicode
        if self.unicode_language_code:
            yield "unicode_language_code", self.unicode_language_code
        if self.scriptcode_code:
            yield "scriptcode_code", self.scriptcode_code
        if self.mac_script_name:
            yield "mac_script_name", self.mac_script_name


@dataclasses.dataclass(frozen=True)
class MultiLocalizedUnicodeType:
    """Strings with a (language, country) record each.

    `records` is a tuple of (language, country, text) tuples, where
    language and country are 2-letter ISO 639-1 and ISO 3166-1 codes.
    An empty country is stored as two null bytes.
    """

    type_signature: typing.ClassVar[str] = "mluc"
    type_name: typing.ClassVar[str] = "multiLocalizedUnicodeType"
    RECORD_SIZE: typing.ClassVar[int] = 12

    records: tuple = ()

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 16)
        number_of_names, name_record_size = struct.unpack(">II", blob[8:16])
        if name_record_size < cls.RECORD_SIZE:
            raise DecodeError(f"invalid mluc record size: {name_record_size}")
        records = []
        i = 16
        for _ in range(number_of_names):
            record = bytes(blob[i : i + cls.RECORD_SIZE])
            if len(record) != cls.RECORD_SIZE:
                raise DecodeError("mluc record table truncated")
            language_code = record[0:2].decode("latin-1")
            country_code = record[2:4].decode("latin-1").rstrip("\x00")
            length, offset = struct.unpack(">II", record[4:12])
            if offset + length > len(blob):
                raise DecodeError(
                    f"mluc string out of bounds: offset: {offset} length: {length}"
                )
            try:
                content = bytes(blob[offset : offset + length]).decode("utf-16-be")
            except UnicodeDecodeError as exc:
                raise DecodeError(f"invalid mluc string: {exc}") from exc
            records.append((language_code, country_code, content))
            i += name_record_size
        return cls(tuple(records))

    def pack(self):
        tag = pack_signature(self.type_signature) + RESERVED
        tag += struct.pack(">II", len(self.records), self.RECORD_SIZE)
        offset = len(tag) + self.RECORD_SIZE * len(self.records)
        strings = b""
        for language_code, country_code, content in self.records:
            content_bytes = content.encode("utf-16-be")
            tag += language_code.encode("latin-1")
            tag += country_code.encode("latin-1").ljust(2, b"\x00")
            tag += struct.pack(">II", len(content_bytes), offset + len(strings))
            strings += content_bytes
        return tag + strings

    def validate(self):
        for record in self.records:
            if len(record) != 3:
                raise ValueError(f"mluc record needs (language, country, text): {record}")
            language_code, country_code, content = record
            if len(language_code.encode("latin-1")) != 2:
                raise ValueError(f"invalid language code: {language_code!r}")
            if len(country_code.encode("latin-1")) not in (0, 2):
                raise ValueError(f"invalid country code: {country_code!r}")
            content.encode("utf-16-be")

    def get(self, language_code="en", country_code=None):
        """Returns the text for a locale, or the first text if there is no match."""
        for language, country, content in self.records:
            if language == language_code and country_code in (None, country):
                return content
        return self.records[0][2] if self.records else None

    def items(self):
        for language_code, country_code, content in self.records:
            key = f"{language_code}-{country_code}" if country_code else language_code
            yield key, content


@dataclasses.dataclass(frozen=True)
class XYZType:
    type_signature: typing.ClassVar[str] = "XYZ "
    type_name: typing.ClassVar[str] = "XYZType"

    numbers: tuple = ()

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 8)
        count = _check_array(blob, 12, cls.type_signature)
        return cls(
            tuple(parse_XYZNumber(blob[8 + 12 * j : 20 + 12 * j]) for j in range(count))
        )

    def pack(self):
        tag = pack_signature(self.type_signature) + RESERVED
        for xyz_number in self.numbers:
            tag += pack_XYZNumber(xyz_number)
        return tag

    def validate(self):
        if not self.numbers:
            raise ValueError("XYZType needs at least one XYZNumber")
        _check_xyz_numbers(self.numbers)

    def items(self):
        if len(self.numbers) == 1:
            yield "xyz", self.numbers[0]
        else:
            yield "xyz", self.numbers


@dataclasses.dataclass(frozen=True)
class S15Fixed16ArrayType:
    type_signature: typing.ClassVar[str] = "sf32"
    type_name: typing.ClassVar[str] = "s15Fixed16ArrayType"

    numbers: tuple = ()

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 8)
        count = _check_array(blob, 4, cls.type_signature)
        return cls(
            tuple(
                parse_s15Fixed16Number(blob[8 + 4 * j : 12 + 4 * j])
                for j in range(count)
            )
        )

    def pack(self):
        tag = pack_signature(self.type_signature) + RESERVED
        for number in self.numbers:
            tag += pack_s15Fixed16Number(number)
        return tag

    def validate(self):
        _check_numbers(self.numbers, pack_s15Fixed16Number)

    def items(self):
        yield "values", self.numbers


@dataclasses.dataclass(frozen=True)
class U16Fixed16ArrayType:
    type_signature: typing.ClassVar[str] = "uf32"
    type_name: typing.ClassVar[str] = "u16Fixed16ArrayType"

    numbers: tuple = ()

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 8)
        count = _check_array(blob, 4, cls.type_signature)
        return cls(
            tuple(
                parse_u16Fixed16Number(blob[8 + 4 * j : 12 + 4 * j])
                for j in range(count)
            )
        )

    def pack(self):
        tag = pack_signature(self.type_signature) + RESERVED
        for number in self.numbers:
            tag += pack_u16Fixed16Number(number)
        return tag

    def validate(self):
        _check_numbers(self.numbers, pack_u16Fixed16Number)

    def items(self):
        yield "values", self.numbers


@dataclasses.dataclass(frozen=True)
class CurveType:
    """A tone curve.

    No entries is the identity, a single entry is a u8Fixed8Number gamma,
    and 2 or more entries are a table sampled over [0, 1].
    """

    type_signature: typing.ClassVar[str] = "curv"
    type_name: typing.ClassVar[str] = "curveType"

    values: tuple = ()

    @classmethod
    def from_gamma(cls, gamma):
        return cls((struct.unpack(">H", pack_u8Fixed8Number(gamma))[0],))

    @property
    def gamma(self):
        if len(self.values) != 1:
            return None
        return parse_u8Fixed8Number(struct.pack(">H", self.values[0]))

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 12)
        curve_count = struct.unpack(">I", blob[8:12])[0]
        if len(blob) < 12 + 2 * curve_count:
            raise DecodeError(
                f"curveType too short for {curve_count} entries: {len(blob)}"
            )
        return cls(struct.unpack(f">{curve_count}H", blob[12 : 12 + 2 * curve_count]))

    def pack(self):
        tag = pack_signature(self.type_signature) + RESERVED
        tag += struct.pack(f">I{len(self.values)}H", len(self.values), *self.values)
        return tag

    def validate(self):
        for value in self.values:
            if not isinstance(value, int) or not 0 <= value <= 0xFFFF:
                raise ValueError(f"curve entries must be uInt16Number: {value!r}")

    def items(self):
        if not self.values:
            yield "identity", True
        elif len(self.values) == 1:
            yield "gamma", self.gamma
        else:
            yield "values", self.values


@dataclasses.dataclass(frozen=True)
class ParametricCurveType:
    type_signature: typing.ClassVar[str] = "para"
    type_name: typing.ClassVar[str] = "parametricCurveType"
    # Table 68: function type -> number of parameters
    NUM_PARAMETERS: typing.ClassVar[dict] = {
        0: 1,
        1: 3,
        2: 4,
        3: 5,
        4: 7,
    }
    PARAMETER_NAMES: typing.ClassVar[str] = "gabcdef"

    function_type: int = 0
    parameters: tuple = (1.0,)

    @classmethod
    def function_type_for(cls, num_parameters):
        for function_type, count in cls.NUM_PARAMETERS.items():
            if count == num_parameters:
                return function_type
        raise ValueError(
            f"no parametric curve takes {num_parameters} parameters "
            f"(valid counts: {sorted(cls.NUM_PARAMETERS.values())})"
        )

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 12)
        function_type = struct.unpack(">H", blob[8:10])[0]
        num_parameters = cls.NUM_PARAMETERS.get(function_type)
        if num_parameters is None:
            raise DecodeError(f"invalid parametric curve function type: {function_type}")
        if len(blob) < 12 + 4 * num_parameters:
            raise DecodeError(
                f"parametricCurveType too short for function type {function_type}"
            )
        parameters = tuple(
            parse_s15Fixed16Number(blob[12 + 4 * j : 16 + 4 * j])
            for j in range(num_parameters)
        )
        return cls(function_type, parameters)

    def pack(self):
        tag = pack_signature(self.type_signature) + RESERVED
        tag += struct.pack(">HH", self.function_type, 0)
        for parameter in self.parameters:
            tag += pack_s15Fixed16Number(parameter)
        return tag

    def validate(self):
        num_parameters = self.NUM_PARAMETERS.get(self.function_type)
        if num_parameters is None:
            raise ValueError(f"invalid function type: {self.function_type}")
        if len(self.parameters) != num_parameters:
            raise ValueError(
                f"function type {self.function_type} needs {num_parameters} "
                f"parameters, got {len(self.parameters)}"
            )
        _check_numbers(self.parameters, pack_s15Fixed16Number)

    def items(self):
        yield "function_type", self.function_type
        yield "parameters", self.parameters


@dataclasses.dataclass(frozen=True)
class ChromaticityType:
    type_signature: typing.ClassVar[str] = "chrm"
    type_name: typing.ClassVar[str] = "chromaticityType"
    # Table 36
    PHOSPHOR_OR_COLORANT_TYPE: typing.ClassVar[dict] = {
        0: "unknown",
        1: "ITU-R BT.709",
        2: "SMPTE RP145-1994",
        3: "EBU Tech.3213-E",
        4: "P22",
    }

    phosphor_colorant_type: int = 0
    coordinates: tuple = ()

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 12)
        num_device_channels, phosphor_colorant_type = struct.unpack(">HH", blob[8:12])
        if len(blob) < 12 + 8 * num_device_channels:
            raise DecodeError(
                f"chromaticityType too short for {num_device_channels} channels"
            )
        coordinates = []
        i = 12
        for _ in range(num_device_channels):
            cie_xy_coordinate_x = parse_u16Fixed16Number(blob[i : i + 4])
            cie_xy_coordinate_y = parse_u16Fixed16Number(blob[i + 4 : i + 8])
            coordinates.append((cie_xy_coordinate_x, cie_xy_coordinate_y))
            i += 8
        return cls(phosphor_colorant_type, tuple(coordinates))

    def pack(self):
        tag = pack_signature(self.type_signature) + RESERVED
        tag += struct.pack(">HH", len(self.coordinates), self.phosphor_colorant_type)
        for cie_xy_coordinate_x, cie_xy_coordinate_y in self.coordinates:
            tag += pack_u16Fixed16Number(cie_xy_coordinate_x)
            tag += pack_u16Fixed16Number(cie_xy_coordinate_y)
        return tag

    def validate(self):
        if not self.coordinates:
            raise ValueError("chromaticityType needs at least one channel")
        if self.phosphor_colorant_type not in self.PHOSPHOR_OR_COLORANT_TYPE:
            raise ValueError(
                f"invalid phosphor or colorant type: {self.phosphor_colorant_type}"
            )
        for coordinate in self.coordinates:
            if len(coordinate) != 2:
                raise ValueError(f"chromaticity needs (x, y) pairs: {coordinate}")
            _check_numbers(coordinate, pack_u16Fixed16Number)

    def items(self):
        yield "phosphor_colorant_type", self.PHOSPHOR_OR_COLORANT_TYPE.get(
            self.phosphor_colorant_type, self.phosphor_colorant_type
        )
        yield "coordinates", self.coordinates


@dataclasses.dataclass(frozen=True)
class SignatureType:
    type_signature: typing.ClassVar[str] = "sig "
    type_name: typing.ClassVar[str] = "signatureType"

    signature: str = "\x00\x00\x00\x00"

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 12)
        return cls(parse_signature(blob[8:12]))

    def pack(self):
        return (
            pack_signature(self.type_signature)
            + RESERVED
            + pack_signature(self.signature)
        )

    def validate(self):
        pack_signature(self.signature)

    def items(self):
        yield "signature", escape_string(self.signature)


@dataclasses.dataclass(frozen=True)
class MeasurementType:
    type_signature: typing.ClassVar[str] = "meas"
    type_name: typing.ClassVar[str] = "measurementType"
    # Table 50
    STANDARD_OBSERVER: typing.ClassVar[dict] = {
        0: "unknown",
        1: "CIE 1931",
        2: "CIE 1964",
    }
    # Table 51
    MEASUREMENT_GEOMETRY: typing.ClassVar[dict] = {
        0: "unknown",
        1: "0/45 or 45/0",
        2: "0/d or d/0",
    }
    # Table 53
    STANDARD_ILLUMINANT: typing.ClassVar[dict] = {
        0: "unknown",
        1: "D50",
        2: "D65",
        3: "D93",
        4: "F2",
        5: "D55",
        6: "A",
        7: "Equi-Power (E)",
        8: "F8",
    }

    observer: int = 0
    backing: tuple = (0.0, 0.0, 0.0)
    geometry: int = 0
    flare: float = 0.0
    illuminant_type: int = 0

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 36)
        observer = struct.unpack(">I", blob[8:12])[0]
        backing = parse_XYZNumber(blob[12:24])
        geometry = struct.unpack(">I", blob[24:28])[0]
        flare = parse_u16Fixed16Number(blob[28:32])
        illuminant_type = struct.unpack(">I", blob[32:36])[0]
        return cls(observer, backing, geometry, flare, illuminant_type)

    def pack(self):
        return (
            pack_signature(self.type_signature)
            + RESERVED
            + struct.pack(">I", self.observer)
            + pack_XYZNumber(self.backing)
            + struct.pack(">I", self.geometry)
            + pack_u16Fixed16Number(self.flare)
            + struct.pack(">I", self.illuminant_type)
        )

    def validate(self):
        if self.observer not in self.STANDARD_OBSERVER:
            raise ValueError(f"invalid standard observer: {self.observer}")
        if self.geometry not in self.MEASUREMENT_GEOMETRY:
            raise ValueError(f"invalid measurement geometry: {self.geometry}")
        if self.illuminant_type not in self.STANDARD_ILLUMINANT:
            raise ValueError(f"invalid standard illuminant: {self.illuminant_type}")
        _check_xyz_numbers((self.backing,))
        if not 0.0 <= self.flare <= 1.0:
            raise ValueError(f"flare must be in [0, 1]: {self.flare}")

    def items(self):
        yield "observer", self.STANDARD_OBSERVER.get(self.observer, self.observer)
        yield "backing", self.backing
        yield "geometry", self.MEASUREMENT_GEOMETRY.get(self.geometry, self.geometry)
        yield "flare", self.flare
        yield "illuminant_type", self.STANDARD_ILLUMINANT.get(
            self.illuminant_type, self.illuminant_type
        )


@dataclasses.dataclass(frozen=True)
class ViewingConditionsType:
    type_signature: typing.ClassVar[str] = "view"
    type_name: typing.ClassVar[str] = "viewingConditionsType"

    illuminant: tuple = (0.0, 0.0, 0.0)
    surround: tuple = (0.0, 0.0, 0.0)
    illuminant_type: int = 0

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 36)
        illuminant = parse_XYZNumber(blob[8:20])
        surround = parse_XYZNumber(blob[20:32])
        illuminant_type = struct.unpack(">I", blob[32:36])[0]
        return cls(illuminant, surround, illuminant_type)

    def pack(self):
        return (
            pack_signature(self.type_signature)
            + RESERVED
            + pack_XYZNumber(self.illuminant)
            + pack_XYZNumber(self.surround)
            + struct.pack(">I", self.illuminant_type)
        )

    def validate(self):
        _check_xyz_numbers((self.illuminant, self.surround))
        if self.illuminant_type not in MeasurementType.STANDARD_ILLUMINANT:
            raise ValueError(f"invalid standard illuminant: {self.illuminant_type}")

    def items(self):
        yield "illuminant", self.illuminant
        yield "surround", self.surround
        yield "illuminant_type", MeasurementType.STANDARD_ILLUMINANT.get(
            self.illuminant_type, self.illuminant_type
        )


@dataclasses.dataclass(frozen=True)
class DateTimeType:
    type_signature: typing.ClassVar[str] = "dtim"
    type_name: typing.ClassVar[str] = "dateTimeType"

    date_and_time: tuple = (0, 0, 0, 0, 0, 0)

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 20)
        return cls(parse_dateTimeNumber(blob[8:20]))

    def pack(self):
        return (
            pack_signature(self.type_signature)
            + RESERVED
            + pack_dateTimeNumber(self.date_and_time)
        )

    def validate(self):
        if len(self.date_and_time) != 6:
            raise ValueError(f"dateTimeNumber needs 6 values: {self.date_and_time}")
        pack_dateTimeNumber(self.date_and_time)

    def items(self):
        yield "date_and_time", str_dateTimeNumber(self.date_and_time)


def _unpack_tables(blob, offset, count, entries, sample_format):
    """Reads count tables of entries samples each, starting at offset."""
    size = count * entries * struct.calcsize(">" + sample_format)
    if offset + size > len(blob):
        raise DecodeError(
            f"table data out of bounds: offset: {offset} size: {size} "
            f"element size: {len(blob)}"
        )
    values = struct.unpack(
        f">{count * entries}{sample_format}", blob[offset : offset + size]
    )
    tables = tuple(
        tuple(values[j * entries : (j + 1) * entries]) for j in range(count)
    )
    return tables, offset + size


def _pack_tables(tables, sample_format):
    return b"".join(
        struct.pack(f">{len(table)}{sample_format}", *table) for table in tables
    )


def _check_tables(tables, count, entries, max_value, what):
    if len(tables) != count:
        raise ValueError(f"{what}: need {count} tables, got {len(tables)}")
    for table in tables:
        if len(table) != entries:
            raise ValueError(f"{what}: need {entries} entries, got {len(table)}")
        for value in table:
            if not isinstance(value, int) or not 0 <= value <= max_value:
                raise ValueError(f"{what}: invalid value {value!r}")


def _check_end(blob, offset, element_signature):
    # trailing bytes would not survive a parse/pack cycle
    if offset != len(blob):
        raise DecodeError(
            f'"{element_signature}" element has {len(blob) - offset} trailing bytes'
        )


IDENTITY_MATRIX = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0)


@dataclasses.dataclass(frozen=True)
class Lut8Type:
    """lut8Type: a 3x3 matrix, input tables, a CLUT, and output tables.

    `clut` holds one tuple of output samples per grid point, with the
    first input channel varying slowest. Channel counts are the number
    of input and output tables.
    """

    type_signature: typing.ClassVar[str] = "mft1"
    type_name: typing.ClassVar[str] = "lut8Type"
    HEADER_SIZE: typing.ClassVar[int] = 48
    SAMPLE_FORMAT: typing.ClassVar[str] = "B"
    MAX_SAMPLE: typing.ClassVar[int] = 0xFF
    TABLE_ENTRIES: typing.ClassVar[int] = 256

    grid_points: int = 2
    matrix: tuple = IDENTITY_MATRIX
    input_tables: tuple = ()
    clut: tuple = ()
    output_tables: tuple = ()

    @property
    def input_channels(self):
        return len(self.input_tables)

    @property
    def output_channels(self):
        return len(self.output_tables)

    @classmethod
    def _parse_table_entries(cls, blob):
        return cls.TABLE_ENTRIES, cls.TABLE_ENTRIES

    def _pack_table_entries(self):
        return b""

    def _check_table_entries(self):
        return self.TABLE_ENTRIES, self.TABLE_ENTRIES

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, cls.HEADER_SIZE)
        input_channels, output_channels, grid_points, padding = struct.unpack(
            ">BBBB", blob[8:12]
        )
        if not input_channels or not output_channels:
            raise DecodeError(
                f"{cls.type_name} needs input and output channels: "
                f"{input_channels} {output_channels}"
            )
        if padding:
            raise DecodeError(f"{cls.type_name} padding byte is not zero")
        matrix = tuple(
            parse_s15Fixed16Number(blob[12 + 4 * j : 16 + 4 * j]) for j in range(9)
        )
        input_entries, output_entries = cls._parse_table_entries(blob)
        i = cls.HEADER_SIZE
        input_tables, i = _unpack_tables(
            blob, i, input_channels, input_entries, cls.SAMPLE_FORMAT
        )
        clut, i = _unpack_tables(
            blob, i, grid_points**input_channels, output_channels, cls.SAMPLE_FORMAT
        )
        output_tables, i = _unpack_tables(
            blob, i, output_channels, output_entries, cls.SAMPLE_FORMAT
        )
        _check_end(blob, i, cls.type_signature)
        return cls(grid_points, matrix, input_tables, clut, output_tables)

    def pack(self):
        tag = pack_signature(self.type_signature) + RESERVED
        tag += struct.pack(
            ">BBBB", self.input_channels, self.output_channels, self.grid_points, 0
        )
        for number in self.matrix:
            tag += pack_s15Fixed16Number(number)
        tag += self._pack_table_entries()
        tag += _pack_tables(self.input_tables, self.SAMPLE_FORMAT)
        tag += _pack_tables(self.clut, self.SAMPLE_FORMAT)
        tag += _pack_tables(self.output_tables, self.SAMPLE_FORMAT)
        return tag

    def validate(self):
        if not 1 <= self.input_channels <= 15 or not 1 <= self.output_channels <= 15:
            raise ValueError(
                f"invalid channel counts: {self.input_channels} {self.output_channels}"
            )
        if not isinstance(self.grid_points, int) or not 2 <= self.grid_points <= 255:
            raise ValueError(f"invalid number of grid points: {self.grid_points!r}")
        if len(self.matrix) != 9:
            raise ValueError(f"matrix needs 9 values, got {len(self.matrix)}")
        _check_numbers(self.matrix, pack_s15Fixed16Number)
        input_entries, output_entries = self._check_table_entries()
        _check_tables(
            self.input_tables,
            self.input_channels,
            input_entries,
            self.MAX_SAMPLE,
            "input tables",
        )
        _check_tables(
            self.clut,
            self.grid_points**self.input_channels,
            self.output_channels,
            self.MAX_SAMPLE,
            "clut",
        )
        _check_tables(
            self.output_tables,
            self.output_channels,
            output_entries,
            self.MAX_SAMPLE,
            "output tables",
        )

    def items(self):
        yield "input_channels", self.input_channels
        yield "output_channels", self.output_channels
        yield "grid_points", self.grid_points
        yield "matrix", tuple(self.matrix[i : i + 3] for i in range(0, 9, 3))
        yield "input_tables", self.input_tables
        yield "clut", self.clut
        yield "output_tables", self.output_tables


@dataclasses.dataclass(frozen=True)
class Lut16Type(Lut8Type):
    """lut16Type: lut8Type with 16-bit samples and sized 1-D tables."""

    type_signature: typing.ClassVar[str] = "mft2"
    type_name: typing.ClassVar[str] = "lut16Type"
    HEADER_SIZE: typing.ClassVar[int] = 52
    SAMPLE_FORMAT: typing.ClassVar[str] = "H"
    MAX_SAMPLE: typing.ClassVar[int] = 0xFFFF
    MIN_TABLE_ENTRIES: typing.ClassVar[int] = 2
    MAX_TABLE_ENTRIES: typing.ClassVar[int] = 4096

    @classmethod
    def _parse_table_entries(cls, blob):
        return struct.unpack(">HH", blob[48:52])

    def _pack_table_entries(self):
        return struct.pack(
            ">HH", len(self.input_tables[0]), len(self.output_tables[0])
        )

    def _check_table_entries(self):
        entries = (len(self.input_tables[0]), len(self.output_tables[0]))
        for count in entries:
            if not self.MIN_TABLE_ENTRIES <= count <= self.MAX_TABLE_ENTRIES:
                raise ValueError(f"invalid number of table entries: {count}")
        return entries


@dataclasses.dataclass(frozen=True)
class VideoCardGammaType:
    """Apple video card gamma ("vcgt"), a private tag type.

    A table has one tuple of samples per channel, with 1 or 2 bytes per
    sample. A formula has one (gamma, min, max) tuple for each of red,
    green and blue.
    """

    type_signature: typing.ClassVar[str] = "vcgt"
    type_name: typing.ClassVar[str] = "videoCardGammaType"
    TABLE: typing.ClassVar[int] = 0
    FORMULA: typing.ClassVar[int] = 1
    SAMPLE_FORMATS: typing.ClassVar[dict] = {1: "B", 2: "H"}
    CHANNEL_NAMES: typing.ClassVar[tuple] = ("red", "green", "blue")

    gamma_type: int = 0
    entry_size: int = 2
    table: tuple = ()
    formula: tuple = ()

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, 12)
        gamma_type = struct.unpack(">I", blob[8:12])[0]
        if gamma_type == cls.TABLE:
            if len(blob) < 18:
                raise DecodeError(f"vcgt table too short: {len(blob)}")
            channels, entry_count, entry_size = struct.unpack(">HHH", blob[12:18])
            if not channels:
                raise DecodeError("vcgt table has no channels")
            sample_format = cls.SAMPLE_FORMATS.get(entry_size)
            if sample_format is None:
                raise DecodeError(f"unsupported vcgt entry size: {entry_size}")
            table, i = _unpack_tables(blob, 18, channels, entry_count, sample_format)
            _check_end(blob, i, cls.type_signature)
            return cls(gamma_type, entry_size, table=table)
        elif gamma_type == cls.FORMULA:
            if len(blob) != 12 + 36:
                raise DecodeError(f"invalid vcgt formula size: {len(blob)}")
            values = [
                parse_u16Fixed16Number(blob[12 + 4 * j : 16 + 4 * j]) for j in range(9)
            ]
            formula = tuple(tuple(values[j : j + 3]) for j in range(0, 9, 3))
            return cls(gamma_type, 0, formula=formula)
        raise DecodeError(f"unknown vcgt type: {gamma_type}")

    def pack(self):
        tag = pack_signature(self.type_signature) + RESERVED
        tag += struct.pack(">I", self.gamma_type)
        if self.gamma_type == self.TABLE:
            entry_count = len(self.table[0]) if self.table else 0
            tag += struct.pack(">HHH", len(self.table), entry_count, self.entry_size)
            tag += _pack_tables(self.table, self.SAMPLE_FORMATS[self.entry_size])
        else:
            for channel in self.formula:
                for number in channel:
                    tag += pack_u16Fixed16Number(number)
        return tag

    def validate(self):
        if self.gamma_type == self.TABLE:
            if self.entry_size not in self.SAMPLE_FORMATS:
                raise ValueError(f"invalid entry size: {self.entry_size!r}")
            if not self.table:
                raise ValueError("vcgt table needs at least one channel")
            _check_tables(
                self.table,
                len(self.table),
                len(self.table[0]),
                256**self.entry_size - 1,
                "vcgt table",
            )
        elif self.gamma_type == self.FORMULA:
            if len(self.formula) != 3:
                raise ValueError("vcgt formula needs red, green and blue values")
            for channel in self.formula:
                if len(channel) != 3:
                    raise ValueError(f"vcgt formula needs (gamma, min, max): {channel}")
                _check_numbers(channel, pack_u16Fixed16Number)
        else:
            raise ValueError(f"invalid vcgt type: {self.gamma_type!r}")

    def items(self):
        if self.gamma_type == self.TABLE:
            yield "gamma_type", "table"
            yield "entry_size", self.entry_size
            yield "table", self.table
        else:
            yield "gamma_type", "formula"
            for name, channel in zip(self.CHANNEL_NAMES, self.formula):
                yield name, channel


def _parse_name(blob, what):
    name, _, rest = bytes(blob).partition(b"\x00")
    if any(rest):
        raise DecodeError(f"{what} has data after its null terminator")
    try:
        return name.decode("ascii")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"{what} is not 7-bit ascii: {exc}") from exc


def _pack_name(name, size):
    blob = name.encode("ascii")
    if len(blob) >= size:
        raise ValueError(f"name longer than {size - 1} bytes: {name!r}")
    return blob.ljust(size, b"\x00")


@dataclasses.dataclass(frozen=True)
class NamedColor2Type:
    """Named colors, each with PCS and optional device coordinates.

    `colors` is a tuple of (root_name, pcs, device) tuples. The pcs and
    device values are the encoded uInt16 numbers.
    """

    type_signature: typing.ClassVar[str] = "ncl2"
    type_name: typing.ClassVar[str] = "namedColor2Type"
    NAME_SIZE: typing.ClassVar[int] = 32
    HEADER_SIZE: typing.ClassVar[int] = 84

    vendor_flags: int = 0
    prefix: str = ""
    suffix: str = ""
    colors: tuple = ()

    @property
    def device_coordinates(self):
        return len(self.colors[0][2]) if self.colors else 0

    @classmethod
    def parse(cls, blob):
        _check_element(blob, cls.type_signature, cls.HEADER_SIZE)
        vendor_flags, count, device_coordinates = struct.unpack(">III", blob[8:20])
        prefix = _parse_name(blob[20:52], "ncl2 prefix")
        suffix = _parse_name(blob[52:84], "ncl2 suffix")
        entry_size = cls.NAME_SIZE + 2 * (3 + device_coordinates)
        if cls.HEADER_SIZE + count * entry_size != len(blob):
            raise DecodeError(
                f"ncl2 element size {len(blob)} does not match {count} colors"
            )
        colors = []
        i = cls.HEADER_SIZE
        for _ in range(count):
            root_name = _parse_name(blob[i : i + cls.NAME_SIZE], "ncl2 color name")
            i += cls.NAME_SIZE
            values = struct.unpack(
                f">{3 + device_coordinates}H", blob[i : i + entry_size - cls.NAME_SIZE]
            )
            i += entry_size - cls.NAME_SIZE
            colors.append((root_name, values[:3], values[3:]))
        return cls(vendor_flags, prefix, suffix, tuple(colors))

    def pack(self):
        tag = pack_signature(self.type_signature) + RESERVED
        tag += struct.pack(
            ">III", self.vendor_flags, len(self.colors), self.device_coordinates
        )
        tag += _pack_name(self.prefix, self.NAME_SIZE)
        tag += _pack_name(self.suffix, self.NAME_SIZE)
        for root_name, pcs, device in self.colors:
            tag += _pack_name(root_name, self.NAME_SIZE)
            tag += struct.pack(f">{3 + len(device)}H", *pcs, *device)
        return tag

    def validate(self):
        struct.pack(">I", self.vendor_flags)
        _pack_name(self.prefix, self.NAME_SIZE)
        _pack_name(self.suffix, self.NAME_SIZE)
        for color in self.colors:
            if len(color) != 3:
                raise ValueError(f"named color needs (name, pcs, device): {color}")
            root_name, pcs, device = color
            _pack_name(root_name, self.NAME_SIZE)
            _check_tables((pcs,), 1, 3, 0xFFFF, f"named color {root_name!r} pcs")
            _check_tables(
                (device,),
                1,
                self.device_coordinates,
                0xFFFF,
                f"named color {root_name!r} device",
            )

    def items(self):
        if self.vendor_flags:
            yield "vendor_flags", self.vendor_flags
        yield "prefix", self.prefix
        yield "suffix", self.suffix
        yield "device_coordinates", self.device_coordinates
        yield "colors", tuple(
            (self.prefix + root_name + self.suffix, pcs, device)
            for root_name, pcs, device in self.colors
        )


# read-only dispatch table: element signature -> tag type
TAG_TYPE_REGISTRY = types.MappingProxyType(
    {
        tag_type.type_signature: tag_type
        for tag_type in (
            TextType,
            TextDescriptionType,
            MultiLocalizedUnicodeType,
            XYZType,
            S15Fixed16ArrayType,
            U16Fixed16ArrayType,
            CurveType,
            ParametricCurveType,
            ChromaticityType,
            SignatureType,
            MeasurementType,
            ViewingConditionsType,
            DateTimeType,
            Lut8Type,
            Lut16Type,
            VideoCardGammaType,
            NamedColor2Type,
        )
    }
)


# list including the following elements per entry:
# (tag_name, header_signature, (list of allowed tag types))
LUT_AB_TYPES = ("lut8Type", "lut16Type", "lutAToBType")
LUT_BA_TYPES = ("lut8Type", "lut16Type", "lutBToAType")
TRC_TYPES = ("curveType", "parametricCurveType")
MPE_TYPES = ("multiProcessElementsType",)
# V2 profiles use textDescriptionType and textType for text tags
DESCRIPTION_TYPES = ("multiLocalizedUnicodeType", "textDescriptionType")
TAG_HEADER_TABLE = (
    ("AToB0Tag", "A2B0", LUT_AB_TYPES),
    ("AToB1Tag", "A2B1", LUT_AB_TYPES),
    ("AToB2Tag", "A2B2", LUT_AB_TYPES),
    ("blueMatrixColumnTag", "bXYZ", ("XYZType",)),
    ("blueTRCTag", "bTRC", TRC_TYPES),
    ("BToA0Tag", "B2A0", LUT_BA_TYPES),
    ("BToA1Tag", "B2A1", LUT_BA_TYPES),
    ("BToA2Tag", "B2A2", LUT_BA_TYPES),
    ("BToD0Tag", "B2D0", MPE_TYPES),
    ("BToD1Tag", "B2D1", MPE_TYPES),
    ("BToD2Tag", "B2D2", MPE_TYPES),
    ("BToD3Tag", "B2D3", MPE_TYPES),
    ("calibrationDateTimeTag", "calt", ("dateTimeType",)),
    ("charTargetTag", "targ", ("textType",)),
    ("chromaticAdaptationTag", "chad", ("s15Fixed16ArrayType",)),
    ("chromaticityTag", "chrm", ("chromaticityType",)),
    ("cicpTag", "cicp", ("cicpType",)),
    ("colorantOrderTag", "clro", ("colorantOrderType",)),
    ("colorantTableTag", "clrt", ("colorantTableType",)),
    ("colorantTableOutTag", "clot", ("colorantTableType",)),
    ("colorimetricIntentImageStateTag", "ciis", ("signatureType",)),
    ("copyrightTag", "cprt", ("multiLocalizedUnicodeType", "textType")),
    ("deviceMfgDescTag", "dmnd", DESCRIPTION_TYPES),
    ("deviceModelDescTag", "dmdd", DESCRIPTION_TYPES),
    ("DToB0Tag", "D2B0", MPE_TYPES),
    ("DToB1Tag", "D2B1", MPE_TYPES),
    ("DToB2Tag", "D2B2", MPE_TYPES),
    ("DToB3Tag", "D2B3", MPE_TYPES),
    ("gamutTag", "gamt", LUT_BA_TYPES),
    ("grayTRCTag", "kTRC", TRC_TYPES),
    ("greenMatrixColumnTag", "gXYZ", ("XYZType",)),
    ("greenTRCTag", "gTRC", TRC_TYPES),
    ("luminanceTag", "lumi", ("XYZType",)),
    ("measurementTag", "meas", ("measurementType",)),
    ("metadataTag", "meta", ("dictType",)),
    ("mediaBlackPointTag", "bkpt", ("XYZType",)),
    ("mediaWhitePointTag", "wtpt", ("XYZType",)),
    ("namedColor2Tag", "ncl2", ("namedColor2Type",)),
    ("outputResponseTag", "resp", ("responseCurveSet16Type",)),
    ("perceptualRenderingIntentGamutTag", "rig0", ("signatureType",)),
    ("preview0Tag", "pre0", LUT_AB_TYPES + ("lutBToAType",)),
    ("preview1Tag", "pre1", LUT_BA_TYPES),
    ("preview2Tag", "pre2", LUT_BA_TYPES),
    ("profileDescriptionTag", "desc", DESCRIPTION_TYPES),
    ("profileSequenceDescTag", "pseq", ("profileSequenceDescType",)),
    ("profileSequenceIdentifierTag", "psid", ("profileSequenceIdentifierType",)),
    ("redMatrixColumnTag", "rXYZ", ("XYZType",)),
    ("redTRCTag", "rTRC", TRC_TYPES),
    ("saturationRenderingIntentGamutTag", "rig2", ("signatureType",)),
    ("technologyTag", "tech", ("signatureType",)),
    ("viewingCondDescTag", "vued", DESCRIPTION_TYPES),
    ("viewingConditionsTag", "view", ("viewingConditionsType",)),
    # Apple private tag
    ("videoCardGammaTag", "vcgt", ("videoCardGammaType",)),
)


# produces a dictionary with tag signatures as keys, and names as values
def read_tag_header_table(table=TAG_HEADER_TABLE):
    return {signature: name for (name, signature, _) in table}


TAG_SIGNATURE_NAMES = types.MappingProxyType(read_tag_header_table())
TAG_NAME_SIGNATURES = types.MappingProxyType(
    {name: signature for (signature, name) in TAG_SIGNATURE_NAMES.items()}
)
TAG_ALLOWED_TYPES = types.MappingProxyType(
    {signature: allowed for (_, signature, allowed) in TAG_HEADER_TABLE}
)


def resolve_tag_signature(signature_or_name):
    """Accepts either a tag signature ("cprt") or a tag name ("copyrightTag")."""
    return TAG_NAME_SIGNATURES.get(signature_or_name, signature_or_name)


def tag_type_name(tag):
    if isinstance(tag, RawType):
        return tag.type_signature
    return tag.type_name


def parse_tag(blob, header_signature=None):
    """Decodes one tagged element, falling back to RawType."""
    if header_signature is not None and header_signature not in TAG_SIGNATURE_NAMES:
        logger.debug(f'unknown tag signature: "{escape_string(header_signature)}"')
    if len(blob) < 4:
        logger.warning(
            f'tag "{header_signature}" is too short ({len(blob)} bytes), keeping it raw'
        )
        return RawType.parse(blob)
    element_signature = parse_signature(blob)
    tag_type = TAG_TYPE_REGISTRY.get(element_signature)
    if tag_type is None:
        logger.debug(
            f'no parser for header_signature: "{header_signature}" '
            f'element_signature: "{escape_string(element_signature)}"'
        )
        return RawType.parse(blob)
    try:
        tag = tag_type.parse(blob)
    except (DecodeError, struct.error) as exc:
        logger.warning(
            f'cannot decode tag "{header_signature}" as {tag_type.type_name}: '
            f"{exc}, keeping it raw"
        )
        return RawType.parse(blob)
    allowed_types = TAG_ALLOWED_TYPES.get(header_signature)
    if allowed_types is not None and tag_type.type_name not in allowed_types:
        logger.info(
            f'tag "{header_signature}" uses {tag_type.type_name}, '
            f"expected one of {allowed_types}"
        )
    return tag
