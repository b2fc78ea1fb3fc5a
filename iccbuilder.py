#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

"""ICC profile builder.

A builder is an immutable value: every `with_*()` call returns a new
builder, and leaves the one it was called on untouched. Invalid values
raise a BuilderError, and the builder keeps its previous state.

    blob = (
        ICCProfileBuilder.new("mntr")
        .with_tag("desc").as_text_description("Display P3")
        .with_tag("wtpt").as_xyz_array([0.950455, 1.0, 1.08905])
        .with_profile_id()
        .to_bytes()
    )
"""


import datetime
import numbers
import struct
import types

from iccerrors import BuilderError, DecodeError, InvalidTagValueError
from iccheader import (
    DEVICE_CLASS,
    NULL_PROFILE_ID,
    VALID_VERSIONS,
    ICCHeader,
    RenderingIntent,
    parse_version_string,
    str_VersionNumber,
)
from iccnumbers import (
    datetime_to_dateTimeNumber,
    is_signature,
    now_dateTimeNumber,
    pack_dateTimeNumber,
    pack_signature,
    pack_XYZNumber,
    parse_signature,
)
from iccprofile import ICCProfile
from icctags import (
    IDENTITY_MATRIX,
    TAG_TYPE_REGISTRY,
    ChromaticityType,
    CurveType,
    DateTimeType,
    Lut8Type,
    Lut16Type,
    MeasurementType,
    MultiLocalizedUnicodeType,
    NamedColor2Type,
    ParametricCurveType,
    RawType,
    S15Fixed16ArrayType,
    SignatureType,
    TextDescriptionType,
    TextType,
    U16Fixed16ArrayType,
    ViewingConditionsType,
    VideoCardGammaType,
    XYZType,
    resolve_tag_signature,
)


def _to_signature(field, value):
    if isinstance(value, int):
        try:
            value = parse_signature(pack_signature(value))
        except struct.error as exc:
            raise BuilderError(f"invalid {field}: {value}") from exc
    if not is_signature(value):
        raise BuilderError(f"{field} must be a 4-byte signature: {value!r}")
    return value


def _to_dateTimeNumber(value):
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(datetime.timezone.utc)
        return datetime_to_dateTimeNumber(value)
    value = tuple(value)
    if len(value) != 6:
        raise ValueError(f"dateTimeNumber needs 6 values: {value}")
    pack_dateTimeNumber(value)
    return value


def _flatten(values):
    """Flattens a matrix (a sequence of rows) into a tuple of floats."""
    flat = []
    for value in values:
        if isinstance(value, numbers.Real):
            flat.append(float(value))
        else:
            flat.extend(float(v) for v in value)
    return tuple(flat)


def _xyz_numbers(values):
    flat = _flatten(values)
    if not flat or len(flat) % 3 != 0:
        raise ValueError(f"need a multiple of 3 values for XYZ numbers, got {len(flat)}")
    return tuple(flat[i : i + 3] for i in range(0, len(flat), 3))


def _tables(tables):
    return tuple(tuple(table) for table in tables)


def _mluc_records(entries):
    """Accepts a text, a {"en-US": text} dict, or (language, country, text) tuples."""
    if isinstance(entries, str):
        return (("en", "US", entries),)
    if isinstance(entries, dict):
        records = []
        for locale, content in entries.items():
            language_code, _, country_code = locale.partition("-")
            records.append((language_code, country_code, content))
        return tuple(records)
    return tuple(tuple(record) for record in entries)


class TagSetter:
    """Sets the value of one tag, returning a new builder.

    Each `as_*()` method builds one tag type. Returned by
    `ICCProfileBuilder.with_tag()`.
    """

    def __init__(self, builder, signature):
        self.builder = builder
        self.signature = signature

    def _set(self, make_tag):
        try:
            tag = make_tag()
            tag.validate()
            # store the value as it will be read back
            tag = type(tag).parse(tag.pack())
        except (AttributeError, TypeError, ValueError, struct.error, DecodeError) as exc:
            raise InvalidTagValueError(self.signature, str(exc)) from exc
        return self.builder._with_tag_value(self.signature, tag)

    def as_tag(self, tag):
        if not isinstance(tag, (RawType,) + tuple(TAG_TYPE_REGISTRY.values())):
            raise InvalidTagValueError(
                self.signature, f"not a tag type: {type(tag).__name__}"
            )
        return self._set(lambda: tag)

    def as_text(self, text):
        return self._set(lambda: TextType(text))

    def as_text_description(
        self,
        ascii,
        unicode="",
        unicode_language_code=0,
        scriptcode_code=0,
        mac_script_name="",
    ):
        return self._set(
            lambda: TextDescriptionType(
                ascii, unicode, unicode_language_code, scriptcode_code, mac_script_name
            )
        )

    def as_multi_localized_unicode(self, entries):
        return self._set(lambda: MultiLocalizedUnicodeType(_mluc_records(entries)))

    def as_xyz_array(self, values):
        return self._set(lambda: XYZType(_xyz_numbers(values)))

    def as_s15fixed16_array(self, values):
        return self._set(lambda: S15Fixed16ArrayType(_flatten(values)))

    def as_u16fixed16_array(self, values):
        return self._set(lambda: U16Fixed16ArrayType(_flatten(values)))

    def as_curve(self, values=()):
        return self._set(lambda: CurveType(tuple(values)))

    def as_gamma(self, gamma):
        return self._set(lambda: CurveType.from_gamma(gamma))

    def as_parametric_curve(self, parameters, function_type=None):
        def make_tag():
            values = _flatten(parameters)
            if function_type is None:
                return ParametricCurveType(
                    ParametricCurveType.function_type_for(len(values)), values
                )
            return ParametricCurveType(function_type, values)

        return self._set(make_tag)

    def as_chromaticity(self, coordinates, phosphor_colorant_type=0):
        return self._set(
            lambda: ChromaticityType(
                phosphor_colorant_type,
                tuple((float(x), float(y)) for x, y in coordinates),
            )
        )

    def as_signature(self, signature):
        return self._set(lambda: SignatureType(signature))

    def as_measurement(
        self,
        observer=1,
        backing=(0.0, 0.0, 0.0),
        geometry=0,
        flare=0.0,
        illuminant_type=1,
    ):
        return self._set(
            lambda: MeasurementType(
                observer, _xyz_numbers(backing)[0], geometry, float(flare), illuminant_type
            )
        )

    def as_viewing_conditions(self, illuminant, surround, illuminant_type=1):
        return self._set(
            lambda: ViewingConditionsType(
                _xyz_numbers(illuminant)[0], _xyz_numbers(surround)[0], illuminant_type
            )
        )

    def as_date_time(self, value):
        return self._set(lambda: DateTimeType(_to_dateTimeNumber(value)))

    def _as_lut(self, tag_type, input_tables, clut, output_tables, grid_points, matrix):
        def make_tag():
            return tag_type(
                grid_points,
                _flatten(matrix),
                _tables(input_tables),
                _tables(clut),
                _tables(output_tables),
            )

        return self._set(make_tag)

    def as_lut8(
        self, input_tables, clut, output_tables, grid_points=2, matrix=IDENTITY_MATRIX
    ):
        return self._as_lut(
            Lut8Type, input_tables, clut, output_tables, grid_points, matrix
        )

    def as_lut16(
        self, input_tables, clut, output_tables, grid_points=2, matrix=IDENTITY_MATRIX
    ):
        return self._as_lut(
            Lut16Type, input_tables, clut, output_tables, grid_points, matrix
        )

    def as_video_card_gamma_table(self, table, entry_size=2):
        return self._set(
            lambda: VideoCardGammaType(
                VideoCardGammaType.TABLE, entry_size, table=_tables(table)
            )
        )

    def as_video_card_gamma_formula(self, red, green, blue):
        """Each channel is a (gamma, min, max) tuple."""
        return self._set(
            lambda: VideoCardGammaType(
                VideoCardGammaType.FORMULA,
                0,
                formula=tuple(
                    tuple(float(value) for value in channel)
                    for channel in (red, green, blue)
                ),
            )
        )

    def as_named_color2(self, colors, prefix="", suffix="", vendor_flags=0):
        """colors is a list of (root_name, pcs, device) tuples."""
        return self._set(
            lambda: NamedColor2Type(
                vendor_flags,
                prefix,
                suffix,
                tuple(
                    (root_name, tuple(pcs), tuple(device))
                    for root_name, pcs, device in colors
                ),
            )
        )

    def as_raw(self, data):
        return self._set(lambda: RawType(bytes(data)))

    def as_hex(self, hex_str):
        return self._set(lambda: RawType(bytes.fromhex(hex_str)))


class ICCProfileBuilder:
    def __init__(
        self,
        header=None,
        tags=None,
        creation_date=None,
        compute_profile_id=False,
        share_tags=True,
    ):
        self._header = header if header is not None else ICCHeader()
        self._tags = types.MappingProxyType(dict(tags) if tags is not None else {})
        # None means "use the time when the profile is built"
        self._creation_date = creation_date
        self._compute_profile_id = compute_profile_id
        self._share_tags = share_tags

    @classmethod
    def new(cls, device_class="mntr"):
        return cls().with_device_class(device_class)

    @classmethod
    def from_profile(cls, profile):
        # an edited profile gets a new ID if the original one had one
        return cls(
            header=profile.header.replace(profile_id=NULL_PROFILE_ID),
            tags=profile.tags,
            creation_date=profile.header.date_and_time,
            compute_profile_id=profile.profile_id_is_set(),
            share_tags=profile.share_tags,
        )

    def _replace(self, **changes):
        state = {
            "header": self._header,
            "tags": self._tags,
            "creation_date": self._creation_date,
            "compute_profile_id": self._compute_profile_id,
            "share_tags": self._share_tags,
        }
        state.update(changes)
        return ICCProfileBuilder(**state)

    def _with_header(self, **changes):
        return self._replace(header=self._header.replace(**changes))

    def _with_tag_value(self, signature, tag):
        tags = dict(self._tags)
        tags[signature] = tag
        return self._replace(tags=tags)

    @property
    def header(self):
        return self._header

    @property
    def tags(self):
        return self._tags

    @property
    def compute_profile_id(self):
        return self._compute_profile_id

    @property
    def share_tags(self):
        return self._share_tags

    # header fields
    def with_version(self, version):
        try:
            if isinstance(version, str):
                version = parse_version_string(version)
            version = tuple(int(v) for v in version)
            if len(version) == 2:
                version += (0,)
            major, minor, bug_fix = version
        except (TypeError, ValueError) as exc:
            raise BuilderError(f"invalid version: {version!r}") from exc
        if (major, minor) not in VALID_VERSIONS or not 0 <= bug_fix <= 0x0F:
            raise BuilderError(
                f"unsupported ICC version: {str_VersionNumber((major, minor, bug_fix))}"
            )
        return self._with_header(profile_version_number=(major, minor, bug_fix))

    def with_device_class(self, device_class):
        if device_class not in DEVICE_CLASS:
            raise BuilderError(
                f"invalid device class: {device_class!r} "
                f"(valid: {', '.join(DEVICE_CLASS)})"
            )
        return self._with_header(profile_device_class=device_class)

    def with_color_space(self, color_space):
        return self._with_header(color_space=_to_signature("color space", color_space))

    def with_pcs(self, pcs):
        return self._with_header(
            profile_connection_space=_to_signature("profile connection space", pcs)
        )

    def with_rendering_intent(self, rendering_intent):
        try:
            rendering_intent = RenderingIntent(rendering_intent)
        except ValueError as exc:
            raise BuilderError(f"invalid rendering intent: {rendering_intent!r}") from exc
        return self._with_header(rendering_intent=rendering_intent)

    def with_creation_date(self, value):
        try:
            date_and_time = _to_dateTimeNumber(value)
        except (TypeError, ValueError, struct.error) as exc:
            raise BuilderError(f"invalid creation date: {value!r}") from exc
        return self._replace(creation_date=date_and_time)

    def with_pcs_illuminant(self, xyz):
        try:
            xyz = tuple(float(v) for v in xyz)
            pack_XYZNumber(xyz)
        except (TypeError, ValueError) as exc:
            raise BuilderError(f"invalid PCS illuminant: {xyz!r}") from exc
        return self._with_header(xyz_illuminant=xyz)

    def with_cmm(self, cmm):
        return self._with_header(preferred_cmm_type=_to_signature("cmm", cmm))

    def with_platform(self, platform):
        return self._with_header(
            primary_platform_signature=_to_signature("platform", platform)
        )

    def with_manufacturer(self, manufacturer):
        return self._with_header(
            device_manufacturer=_to_signature("manufacturer", manufacturer)
        )

    def with_model(self, model):
        return self._with_header(device_model=_to_signature("model", model))

    def with_creator(self, creator):
        return self._with_header(
            profile_creator_field=_to_signature("creator", creator)
        )

    def with_flags(self, flags):
        if not isinstance(flags, int) or not 0 <= flags <= 0xFFFFFFFF:
            raise BuilderError(f"invalid profile flags: {flags!r}")
        return self._with_header(profile_flags=flags)

    def with_device_attributes(self, device_attributes):
        if not isinstance(device_attributes, int) or not 0 <= device_attributes < 2**64:
            raise BuilderError(f"invalid device attributes: {device_attributes!r}")
        return self._with_header(device_attributes=device_attributes)

    def with_profile_id(self):
        return self._replace(compute_profile_id=True)

    def without_profile_id(self):
        return self._replace(compute_profile_id=False)

    def with_shared_tags(self, share_tags=True):
        return self._replace(share_tags=bool(share_tags))

    # tags
    def with_tag(self, signature):
        if not isinstance(signature, str):
            raise InvalidTagValueError(signature, "tag signature must be a str")
        signature = resolve_tag_signature(signature)
        if not is_signature(signature):
            raise InvalidTagValueError(signature, "tag signature must be 4 bytes long")
        return TagSetter(self, signature)

    def without_tag(self, signature):
        signature = resolve_tag_signature(signature)
        tags = {sig: tag for sig, tag in self._tags.items() if sig != signature}
        return self._replace(tags=tags)

    # finalize
    def build(self):
        date_and_time = self._creation_date
        if date_and_time is None:
            date_and_time = now_dateTimeNumber()
        header = self._header.replace(date_and_time=date_and_time)
        return ICCProfile(header, dict(self._tags), share_tags=self._share_tags)

    def to_bytes(self):
        return self.build().pack(profile_id=self._compute_profile_id)

    def write(self, outfile):
        return self.build().write(outfile, profile_id=self._compute_profile_id)
