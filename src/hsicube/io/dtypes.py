"""ENVI ``data type`` codes and their NumPy element types."""

from __future__ import annotations

import numpy as np
from numpy.typing import DTypeLike

from hsicube.exceptions import InvalidArgument, MalformedHeader

__all__ = [
    "ENVI_DTYPES",
    "SIGNED_BYTE",
    "code_for_dtype",
    "dtype_for_code",
]

ENVI_DTYPES: dict[int, np.dtype] = {
    1: np.dtype(np.uint8),
    2: np.dtype(np.int16),
    3: np.dtype(np.int32),
    4: np.dtype(np.float32),
    5: np.dtype(np.float64),
    6: np.dtype(np.complex64),
    9: np.dtype(np.complex128),
    12: np.dtype(np.uint16),
    13: np.dtype(np.uint32),
    14: np.dtype(np.int64),
    15: np.dtype(np.uint64),
}

# ENVI has no signed byte code; int8 payloads are tagged with ``pixel type``.
SIGNED_BYTE = "signedbyte"

_CODES = {dtype: code for code, dtype in ENVI_DTYPES.items()}


def dtype_for_code(code: int, pixel_type: str | None = None) -> np.dtype:
    """Return the native-order dtype for an ENVI ``data type`` code."""

    if code not in ENVI_DTYPES:
        raise MalformedHeader(f"unsupported 'data type' code {code!r}")
    if code == 1 and pixel_type is not None and pixel_type.strip().lower() == SIGNED_BYTE:
        return np.dtype(np.int8)
    return ENVI_DTYPES[code]


def code_for_dtype(dtype: DTypeLike) -> tuple[int, str | None]:
    """Return ``(code, pixel_type)`` for a NumPy dtype."""

    dt = np.dtype(dtype).newbyteorder("=")
    if dt == np.dtype(np.int8):
        return 1, SIGNED_BYTE
    try:
        return _CODES[dt], None
    except KeyError:
        raise InvalidArgument(f"Data type {dt} cannot be stored in an ENVI file") from None
