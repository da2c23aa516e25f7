"""hsicube: immutable hyperspectral datacubes and ENVI file interchange.

The :class:`Datacube` value keeps an array and its spectral metadata
consistent through every transformation and records each step in a
provenance log. :func:`read` and :func:`write` exchange cubes as ENVI
header/data file pairs; :func:`save_cubes` and :func:`load_cubes` persist the
objects themselves.
"""

from __future__ import annotations

import importlib
from typing import Any

from .config import HsicubeSettings, load_settings
from .data import Datacube, ProvenanceLog, ProvenanceRecord
from .exceptions import (
    DataExists,
    DataTypeWarning,
    HeaderExists,
    HeaderNotFound,
    HsicubeError,
    InvalidArgument,
    MalformedHeader,
    MetadataWarning,
    OperandIncompatible,
    ShapeMismatch,
)
from .io import find_header, load_cubes, read, save_cubes, write
from .version import __version__

__all__ = [
    "__version__",
    "DataExists",
    "DataTypeWarning",
    "Datacube",
    "HeaderExists",
    "HeaderNotFound",
    "HsicubeError",
    "HsicubeSettings",
    "InvalidArgument",
    "MalformedHeader",
    "MetadataWarning",
    "OperandIncompatible",
    "ProvenanceLog",
    "ProvenanceRecord",
    "ShapeMismatch",
    "find_header",
    "load_cubes",
    "load_settings",
    "read",
    "save_cubes",
    "write",
    "utils",
]

_SUBMODULES = {"utils"}


def __getattr__(name: str) -> Any:
    if name in _SUBMODULES:
        module = importlib.import_module(f"{__name__}.{name}")
        globals()[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
