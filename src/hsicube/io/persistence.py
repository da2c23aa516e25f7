"""Whole-object save and restore of one or more cubes.

Cubes are stored in a compressed NumPy archive: one array per cube plus a
JSON blob holding its metadata and provenance log, and a top-level schema
version tag. Loading a file written under another schema version is allowed;
the result is flagged as possibly incompatible and a warning is logged.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from hsicube.config import DEFAULT_SETTINGS, HsicubeSettings
from hsicube.data.cube import SCHEMA_VERSION, Datacube
from hsicube.data.provenance import ProvenanceLog
from hsicube.exceptions import InvalidArgument
from hsicube.utils.io import StrPath

__all__ = ["LoadResult", "load_cubes", "save_cubes"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadResult:
    """Cubes restored by :func:`load_cubes` with their schema compatibility."""

    cubes: tuple[Datacube, ...]
    schema_version: str
    compatible: bool

    def __len__(self) -> int:
        return len(self.cubes)

    def __iter__(self) -> Iterator[Datacube]:
        return iter(self.cubes)

    def __getitem__(self, index: int) -> Datacube:
        return self.cubes[index]


def _encode_metadata(cube: Datacube) -> str:
    return json.dumps(
        {
            "wavelength": cube.wavelength.tolist(),
            "fwhm": cube.fwhm.tolist(),
            "wavelength_unit": cube.wavelength_unit,
            "quantity": cube.quantity,
            "files": list(cube.files),
            "history": cube.history.to_list(),
            "schema_version": cube.schema_version,
        }
    )


def _decode_cube(data: np.ndarray, meta: dict[str, Any], fallback_version: str) -> Datacube:
    return Datacube(
        data=data,
        wavelength=meta["wavelength"],
        fwhm=meta["fwhm"],
        wavelength_unit=meta["wavelength_unit"],
        quantity=meta["quantity"],
        files=tuple(meta.get("files", ())),
        history=ProvenanceLog.from_list(meta.get("history", [])),
        schema_version=str(meta.get("schema_version", fallback_version)),
    )


def save_cubes(
    cubes: Datacube | Iterable[Datacube],
    path: StrPath,
    overwrite: bool = False,
    *,
    settings: HsicubeSettings | None = None,
) -> Path:
    """Save one cube or a sequence of cubes to ``path``.

    The persistence suffix (``.cb`` by default) is appended when ``path`` has
    no suffix. Existing files are only replaced when ``overwrite`` is true.
    """

    settings = settings or DEFAULT_SETTINGS
    items = (cubes,) if isinstance(cubes, Datacube) else tuple(cubes)
    if not items:
        raise InvalidArgument("Nothing to save: no cubes given")
    if not all(isinstance(cube, Datacube) for cube in items):
        raise InvalidArgument("Only Datacube objects can be saved")
    if not isinstance(overwrite, bool):
        raise InvalidArgument("overwrite must be a boolean")

    target = Path(path)
    if not target.suffix:
        target = target.with_name(target.name + settings.persistence_suffix)
    if target.exists() and not overwrite:
        raise FileExistsError(f"{target} already exists; pass overwrite=True to replace it")

    payload: dict[str, np.ndarray] = {
        "schema_version": np.asarray(SCHEMA_VERSION),
        "count": np.asarray(len(items)),
    }
    for index, cube in enumerate(items):
        payload[f"cube{index}_data"] = np.asarray(cube.data)
        payload[f"cube{index}_meta"] = np.asarray(_encode_metadata(cube))

    logger.info("Saving %d cube(s) to %s", len(items), target)
    with target.open("wb") as stream:
        np.savez_compressed(stream, **payload)
    return target


def load_cubes(path: StrPath) -> LoadResult:
    """Load cubes saved by :func:`save_cubes`.

    A schema version differing from the current one logs a warning and sets
    ``compatible=False``; loading still proceeds.
    """

    source = Path(path)
    logger.info("Loading cube data from %s", source)
    with np.load(source, allow_pickle=False) as archive:
        try:
            stored_version = str(archive["schema_version"])
            count = int(archive["count"])
            cubes = tuple(
                _decode_cube(
                    archive[f"cube{index}_data"],
                    json.loads(str(archive[f"cube{index}_meta"])),
                    stored_version,
                )
                for index in range(count)
            )
        except KeyError as exc:
            raise InvalidArgument(f"{source} is not a saved cube file: missing {exc}") from exc

    versions = {stored_version, *(cube.schema_version for cube in cubes)}
    compatible = versions == {SCHEMA_VERSION}
    if not compatible:
        logger.warning(
            "Saved object has version %s, while current version is %s. Proceed with caution.",
            ", ".join(sorted(versions)),
            SCHEMA_VERSION,
        )
    logger.info("Loaded %d cube(s)", len(cubes))
    return LoadResult(cubes=cubes, schema_version=stored_version, compatible=compatible)
