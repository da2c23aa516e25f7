from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

from hsicube.exceptions import InvalidArgument, ShapeMismatch

if TYPE_CHECKING:
    from .cube import Datacube

__all__ = [
    "as_cube_array",
    "check_band_vector",
    "check_numeric",
    "check_quantity",
    "is_natural",
    "padded_size",
    "validate_cube",
]


def padded_size(data: np.ndarray) -> tuple[int, int, int]:
    """Return ``data.shape`` padded with trailing singleton axes to length three."""

    if data.ndim > 3 or data.ndim < 2:
        raise ShapeMismatch(f"Data dimensions must be 2 or 3, got shape {data.shape}")
    shape = tuple(int(n) for n in data.shape) + (1,) * (3 - data.ndim)
    return shape  # type: ignore[return-value]


def check_numeric(data: np.ndarray) -> None:
    if data.dtype == np.bool_ or not np.issubdtype(data.dtype, np.number):
        raise InvalidArgument(f"Cube data must be numeric, got dtype {data.dtype}")


def as_cube_array(data: Any) -> np.ndarray:
    """Coerce ``data`` into a numeric ``(row, col, band)`` array."""

    arr = np.asarray(data)
    check_numeric(arr)
    return arr.reshape(padded_size(arr))


def check_band_vector(values: np.ndarray, band_count: int, name: str) -> None:
    if values.ndim != 1 or values.shape[0] != band_count:
        raise ShapeMismatch(
            f"Given {name} values ({values.size}) do not match the data band count ({band_count})"
        )


def check_quantity(quantity: Any) -> None:
    if not isinstance(quantity, str) or not quantity:
        raise InvalidArgument("Quantity must be a non-empty string")


def is_natural(values: Any) -> np.ndarray:
    """Elementwise test for positive integral values."""

    arr = np.asarray(values)
    if arr.dtype == np.bool_ or not np.issubdtype(arr.dtype, np.number):
        return np.zeros(arr.shape, dtype=bool)
    if np.issubdtype(arr.dtype, np.complexfloating):
        return np.zeros(arr.shape, dtype=bool)
    with np.errstate(invalid="ignore"):
        return np.isfinite(arr) & (arr > 0) & (np.mod(arr, 1) == 0)


def validate_cube(cube: Datacube) -> None:
    """Check every structural invariant of a cube.

    Called from every construction path, so an invalid cube can never be
    observed.
    """

    data = cube.data
    check_numeric(data)
    if data.ndim != 3:
        raise ShapeMismatch(f"Cube data must be three-dimensional, got shape {data.shape}")
    band_count = int(data.shape[2])
    check_band_vector(cube.wavelength, band_count, "wavelength")
    check_band_vector(cube.fwhm, band_count, "FWHM")
    check_quantity(cube.quantity)
    if not isinstance(cube.wavelength_unit, str):
        raise InvalidArgument("Wavelength unit must be a string")
    if not isinstance(cube.schema_version, str) or not cube.schema_version:
        raise InvalidArgument("Schema version must be a non-empty string")
