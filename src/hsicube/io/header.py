"""ENVI header encoding and decoding.

An ENVI header is a text file starting with the ``ENVI`` magic line followed
by ``key = value`` pairs. Keys are case-insensitive and list values are
written as ``{v1, v2, ...}``, possibly spanning several lines. Decoding
collects every missing or invalid key before failing so a single
:class:`~hsicube.exceptions.MalformedHeader` reports all of them.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

import numpy as np

from hsicube.data.cube import default_metadata
from hsicube.exceptions import InvalidArgument, MalformedHeader

from .dtypes import ENVI_DTYPES, code_for_dtype, dtype_for_code

if TYPE_CHECKING:
    from hsicube.data.cube import Datacube

__all__ = [
    "ENVI_MAGIC",
    "EnviHeader",
    "INTERLEAVES",
    "decode_header",
    "encode_header",
    "format_header",
    "host_byte_order",
]

ENVI_MAGIC = "ENVI"
INTERLEAVES = ("bsq", "bil", "bip")
DEFAULT_DESCRIPTION = "Datacube written by hsicube"
MIN_DECIMALS = 6

_MANDATORY = ("samples", "lines", "bands", "data type")
_KNOWN = frozenset(
    (
        *_MANDATORY,
        "header offset",
        "file type",
        "interleave",
        "byte order",
        "wavelength units",
        "wavelength",
        "fwhm",
        "description",
        "pixel type",
    )
)


def host_byte_order() -> int:
    """ENVI byte order flag of the running machine (0 little, 1 big endian)."""

    return 0 if sys.byteorder == "little" else 1


@dataclass(frozen=True)
class EnviHeader:
    """Typed view of the ENVI header keys used by the reader and writer."""

    samples: int
    lines: int
    bands: int
    data_type: int
    interleave: str = "bsq"
    byte_order: int = 0
    header_offset: int = 0
    file_type: str = "ENVI Standard"
    wavelength: tuple[float, ...] | None = None
    fwhm: tuple[float, ...] | None = None
    wavelength_unit: str | None = None
    description: str | None = None
    pixel_type: str | None = None
    extra: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @property
    def shape(self) -> tuple[int, int, int]:
        """Array shape in ``(row, column, band)`` order."""

        return self.lines, self.samples, self.bands

    @property
    def dtype(self) -> np.dtype:
        """Element type including the declared byte order."""

        endian = "<" if self.byte_order == 0 else ">"
        return dtype_for_code(self.data_type, self.pixel_type).newbyteorder(endian)

    @property
    def payload_size(self) -> int:
        """Expected number of payload bytes after the header offset."""

        return self.samples * self.lines * self.bands * self.dtype.itemsize


def encode_header(cube: Datacube) -> EnviHeader:
    """Derive the header describing ``cube`` as a band-sequential payload."""

    code, pixel_type = code_for_dtype(cube.dtype)
    height, width, bands = cube.size
    return EnviHeader(
        samples=width,
        lines=height,
        bands=bands,
        data_type=code,
        interleave="bsq",
        byte_order=host_byte_order(),
        header_offset=0,
        wavelength=tuple(float(v) for v in cube.wavelength),
        fwhm=tuple(float(v) for v in cube.fwhm),
        wavelength_unit=cube.wavelength_unit,
        description=DEFAULT_DESCRIPTION,
        pixel_type=pixel_type,
    )


def _format_list(values: Sequence[float], decimals: int) -> str:
    return "{" + ", ".join(f"{v:.{decimals}f}" for v in values) + "}"


def format_header(header: EnviHeader, *, decimals: int = MIN_DECIMALS) -> str:
    """Render ``header`` as ENVI header text.

    Wavelength and FWHM values are written with ``decimals`` digits after
    the decimal point, which must be at least six.
    """

    if decimals < MIN_DECIMALS:
        raise InvalidArgument(f"At least {MIN_DECIMALS} decimals are required, got {decimals}")

    lines = [ENVI_MAGIC]
    if header.description is not None:
        lines.append(f"description = {{{header.description}}}")
    lines.extend(
        [
            f"samples = {header.samples}",
            f"lines = {header.lines}",
            f"bands = {header.bands}",
            f"header offset = {header.header_offset}",
            f"file type = {header.file_type}",
            f"data type = {header.data_type}",
            f"interleave = {header.interleave}",
            f"byte order = {header.byte_order}",
        ]
    )
    if header.pixel_type is not None:
        lines.append(f"pixel type = {header.pixel_type}")
    if header.wavelength_unit is not None:
        lines.append(f"wavelength units = {header.wavelength_unit}")
    if header.wavelength is not None:
        lines.append(f"wavelength = {_format_list(header.wavelength, decimals)}")
    if header.fwhm is not None:
        lines.append(f"fwhm = {_format_list(header.fwhm, decimals)}")
    for key, value in header.extra.items():
        lines.append(f"{key} = {value}")
    return "\n".join(lines) + "\n"


def _split_pairs(text: str) -> tuple[str | None, dict[str, str]]:
    """Split header text into the magic line and raw ``key -> value`` strings."""

    magic: str | None = None
    data: dict[str, str] = {}
    collecting: str | None = None
    buffer: list[str] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if magic is None:
            magic = line
            continue
        if collecting is not None:
            buffer.append(line)
            if line.endswith("}"):
                data[collecting] = " ".join(buffer)
                collecting = None
                buffer = []
            continue
        if line.startswith(";") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = " ".join(key.strip().lower().split())
        value = value.strip()
        if value.startswith("{") and not value.endswith("}"):
            collecting = key
            buffer = [value]
            continue
        data[key] = value
    if collecting is not None:
        data[collecting] = " ".join(buffer)
    return magic, data


def _parse_envi_list(value: str) -> list[str]:
    text = value.strip()
    if text.startswith("{"):
        text = text[1:]
    if text.endswith("}"):
        text = text[:-1]
    parts = [part.strip() for part in text.split(",")]
    return [part for part in parts if part]


def _strip_braces(value: str) -> str:
    text = value.strip()
    if text.startswith("{") and text.endswith("}"):
        text = text[1:-1].strip()
    return text


def decode_header(text: str) -> EnviHeader:
    """Parse ENVI header text into an :class:`EnviHeader`.

    Raises :class:`~hsicube.exceptions.MalformedHeader` listing every missing
    or invalid key. Absent wavelength, FWHM, or wavelength unit keys are
    replaced by the same defaults as :meth:`Datacube.from_array`, each with a
    :class:`~hsicube.exceptions.MetadataWarning`.
    """

    magic, raw = _split_pairs(text)
    problems: list[str] = []
    if magic is None or magic.upper() != ENVI_MAGIC:
        problems.append(f"first line must be {ENVI_MAGIC!r}, got {magic!r}")

    ints: dict[str, int] = {}
    for key in _MANDATORY:
        if key not in raw:
            problems.append(f"missing {key!r}")
            continue
        try:
            value = int(raw[key])
        except ValueError:
            problems.append(f"invalid {key!r}: {raw[key]!r} is not an integer")
            continue
        if value < 0:
            problems.append(f"invalid {key!r}: {value} is negative")
            continue
        ints[key] = value
    if "data type" in ints and ints["data type"] not in ENVI_DTYPES:
        problems.append(f"unsupported 'data type' code {ints['data type']}")

    header_offset = 0
    if "header offset" in raw:
        try:
            header_offset = int(raw["header offset"])
            if header_offset < 0:
                raise ValueError
        except ValueError:
            problems.append(f"invalid 'header offset': {raw['header offset']!r}")

    interleave = raw.get("interleave", "bsq").strip().lower()
    if interleave not in INTERLEAVES:
        problems.append(f"invalid 'interleave': {raw['interleave']!r}, expected one of {INTERLEAVES}")

    byte_order = 0
    if "byte order" in raw:
        if raw["byte order"].strip() in ("0", "1"):
            byte_order = int(raw["byte order"])
        else:
            problems.append(f"invalid 'byte order': {raw['byte order']!r}, expected 0 or 1")

    lists: dict[str, tuple[float, ...] | None] = {"wavelength": None, "fwhm": None}
    for key in lists:
        if key not in raw:
            continue
        try:
            values = tuple(float(token) for token in _parse_envi_list(raw[key]))
        except ValueError:
            problems.append(f"invalid {key!r}: list contains non-numeric entries")
            continue
        if "bands" in ints and len(values) != ints["bands"]:
            problems.append(f"invalid {key!r}: {len(values)} values for {ints['bands']} bands")
            continue
        lists[key] = values

    if problems:
        raise MalformedHeader(problems)

    wavelength_unit = raw.get("wavelength units")
    if wavelength_unit is not None:
        wavelength_unit = _strip_braces(wavelength_unit)
    wavelength, fwhm, wavelength_unit = default_metadata(
        ints["bands"], lists["wavelength"], lists["fwhm"], wavelength_unit, stacklevel=3
    )

    description = raw.get("description")
    return EnviHeader(
        samples=ints["samples"],
        lines=ints["lines"],
        bands=ints["bands"],
        data_type=ints["data type"],
        interleave=interleave,
        byte_order=byte_order,
        header_offset=header_offset,
        file_type=_strip_braces(raw.get("file type", "ENVI Standard")),
        wavelength=tuple(float(v) for v in np.asarray(wavelength, dtype=np.float64)),
        fwhm=tuple(float(v) for v in np.asarray(fwhm, dtype=np.float64)),
        wavelength_unit=wavelength_unit,
        description=_strip_braces(description) if description is not None else None,
        pixel_type=raw.get("pixel type"),
        extra={key: value for key, value in raw.items() if key not in _KNOWN},
    )
