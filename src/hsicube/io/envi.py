"""Reading and writing :class:`~hsicube.data.cube.Datacube` objects as ENVI file pairs.

A cube is stored as a text header (``.hdr``) and a raw binary data file
(``.dat``) sharing a basename. The ENVI format has no field for the physical
quantity, so :func:`read` returns ``"Unknown"`` unless the caller supplies one.

Writing is not atomic across the pair: if the data file cannot be written
after the header was, an inconsistent header is left on disk.
"""

from __future__ import annotations

import logging
from pathlib import Path

from hsicube.config import DEFAULT_SETTINGS, HsicubeSettings
from hsicube.data.cube import UNKNOWN, Datacube
from hsicube.data.provenance import ProvenanceLog
from hsicube.exceptions import DataExists, HeaderExists, HeaderNotFound, InvalidArgument
from hsicube.utils.io import StrPath, read_text, with_suffix, write_text

from .header import decode_header, encode_header, format_header
from .payload import decode_payload, encode_payload

__all__ = ["data_path_for", "find_header", "header_path_for", "read", "write"]

logger = logging.getLogger(__name__)


def header_path_for(path: StrPath, settings: HsicubeSettings | None = None) -> Path:
    """Header file written for ``path``: its suffix replaced (or appended)."""

    settings = settings or DEFAULT_SETTINGS
    return with_suffix(path, settings.header_suffix)


def data_path_for(path: StrPath, settings: HsicubeSettings | None = None) -> Path:
    """Data file written for ``path``: its suffix replaced (or appended)."""

    settings = settings or DEFAULT_SETTINGS
    return with_suffix(path, settings.data_suffix)


def write(
    cube: Datacube,
    path: StrPath,
    overwrite: bool = False,
    *,
    settings: HsicubeSettings | None = None,
) -> tuple[Path, Path]:
    """Write ``cube`` as an ENVI header/data pair derived from ``path``.

    Returns ``(header_path, data_path)``. Raises
    :class:`~hsicube.exceptions.HeaderExists` or
    :class:`~hsicube.exceptions.DataExists` when a target already exists and
    ``overwrite`` is false.
    """

    settings = settings or DEFAULT_SETTINGS
    if not isinstance(cube, Datacube):
        raise InvalidArgument(f"Expected a Datacube, got {type(cube).__name__}")
    if not isinstance(overwrite, bool):
        raise InvalidArgument("overwrite must be a boolean")

    header_path = header_path_for(path, settings)
    data_path = data_path_for(path, settings)
    if header_path.exists() and not overwrite:
        raise HeaderExists(f"Header file {header_path} already exists; pass overwrite=True to replace it")
    if data_path.exists() and not overwrite:
        raise DataExists(f"Data file {data_path} already exists; pass overwrite=True to replace it")

    header = encode_header(cube)
    text = format_header(header, decimals=settings.wavelength_decimals)
    payload = encode_payload(cube.data, header)

    logger.info("Writing %s cube to %s and %s", "x".join(map(str, cube.size)), header_path, data_path)
    write_text(header_path, text)
    with data_path.open("wb") as stream:
        stream.write(payload)
    logger.debug("Wrote %d header characters and %d payload bytes", len(text), len(payload))
    return header_path, data_path


def find_header(path: StrPath, settings: HsicubeSettings | None = None) -> Path:
    """Locate the header belonging to a data (or header) file path.

    Tries ``scene.hdr`` then ``scene.dat.hdr`` for ``scene.dat``. Raises
    :class:`~hsicube.exceptions.HeaderNotFound` when none exists.
    """

    settings = settings or DEFAULT_SETTINGS
    p = Path(path)
    suffix = settings.header_suffix
    if p.suffix.lower() == suffix.lower():
        candidates = [p]
    else:
        candidates = [
            with_suffix(p, suffix),
            with_suffix(p, suffix.upper()),
            p.with_name(p.name + suffix),
            p.with_name(p.name + suffix.upper()),
        ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    raise HeaderNotFound(f"No header file found for {p} (looked for {', '.join(map(str, candidates))})")


def read(
    path: StrPath,
    quantity: str | None = None,
    *,
    settings: HsicubeSettings | None = None,
) -> Datacube:
    """Read an ENVI header/data pair into a :class:`~hsicube.data.cube.Datacube`.

    ``path`` names the data file (or its header). The returned cube's
    quantity is ``quantity`` when given, otherwise ``"Unknown"``.
    """

    settings = settings or DEFAULT_SETTINGS
    header_path = find_header(path, settings)
    data_path = Path(path)
    if data_path.suffix.lower() == settings.header_suffix.lower():
        data_path = data_path_for(data_path, settings)
    elif not data_path.suffix:
        data_path = data_path_for(data_path, settings)
    if not data_path.is_file():
        raise FileNotFoundError(f"Data file not found: {data_path}")

    header = decode_header(read_text(header_path, errors="replace"))
    with data_path.open("rb") as stream:
        buffer = stream.read()
    data = decode_payload(buffer, header)
    logger.info("Read %s cube from %s", "x".join(map(str, header.shape)), data_path)

    history = ProvenanceLog.created().append(
        "Cube read from ENVI file",
        "read",
        {"header": str(header_path), "data": str(data_path), "quantity": quantity},
    )
    return Datacube(
        data=data,
        wavelength=header.wavelength,
        fwhm=header.fwhm,
        wavelength_unit=header.wavelength_unit,
        quantity=UNKNOWN if quantity is None else quantity,
        files=(str(data_path),),
        history=history,
    )
