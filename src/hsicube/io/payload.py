"""Raw binary payload encoding for ENVI data files.

The payload layout is fully described by an :class:`~hsicube.io.header.EnviHeader`:
its element type code, byte order and interleave. In memory arrays are always
``(row, column, band)`` in native byte order.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike

from hsicube.exceptions import MalformedHeader, ShapeMismatch

from .header import INTERLEAVES, EnviHeader

__all__ = ["decode_payload", "encode_payload"]

# Position of the (row, column, band) axes in each on-disk layout.
_DISK_AXES: dict[str, tuple[int, int, int]] = {
    "bsq": (2, 0, 1),  # band, line, sample
    "bil": (0, 2, 1),  # line, band, sample
    "bip": (0, 1, 2),  # line, sample, band
}


def _disk_axes(header: EnviHeader) -> tuple[int, int, int]:
    try:
        return _DISK_AXES[header.interleave]
    except KeyError:
        raise MalformedHeader(
            f"invalid 'interleave': {header.interleave!r}, expected one of {INTERLEAVES}"
        ) from None


def encode_payload(data: ArrayLike, header: EnviHeader) -> bytes:
    """Serialise ``data`` in the interleave, byte order and element type of ``header``."""

    arr = np.asarray(data)
    if arr.ndim == 2:
        arr = arr[:, :, np.newaxis]
    if arr.shape != header.shape:
        raise ShapeMismatch(f"Data shape {arr.shape} does not match header shape {header.shape}")
    disk = np.transpose(arr, _disk_axes(header))
    return np.ascontiguousarray(disk, dtype=header.dtype).tobytes()


def decode_payload(buffer: bytes, header: EnviHeader) -> np.ndarray:
    """Decode a data file's bytes into a native ``(row, column, band)`` array.

    The first ``header.header_offset`` bytes are skipped; the remainder must
    be exactly ``samples * lines * bands * element size`` bytes long.
    """

    axes = _disk_axes(header)
    dtype = header.dtype
    payload = memoryview(buffer)[header.header_offset :]
    if payload.nbytes != header.payload_size:
        raise MalformedHeader(
            f"data size mismatch: expected {header.payload_size} bytes for "
            f"{header.lines}x{header.samples}x{header.bands} {dtype.name} values, "
            f"found {payload.nbytes}"
        )
    disk_shape = tuple(header.shape[axis] for axis in axes)
    disk = np.frombuffer(payload, dtype=dtype).reshape(disk_shape)
    arr = np.transpose(disk, np.argsort(axes))
    return np.ascontiguousarray(arr, dtype=dtype.newbyteorder("="))
