"""ENVI interchange codec and whole-object persistence for datacubes."""

from __future__ import annotations

from .dtypes import ENVI_DTYPES, code_for_dtype, dtype_for_code
from .envi import data_path_for, find_header, header_path_for, read, write
from .header import EnviHeader, decode_header, encode_header, format_header
from .payload import decode_payload, encode_payload
from .persistence import LoadResult, load_cubes, save_cubes

__all__ = [
    "ENVI_DTYPES",
    "EnviHeader",
    "LoadResult",
    "code_for_dtype",
    "data_path_for",
    "decode_header",
    "decode_payload",
    "dtype_for_code",
    "encode_header",
    "encode_payload",
    "find_header",
    "format_header",
    "header_path_for",
    "load_cubes",
    "read",
    "save_cubes",
    "write",
]
