"""Immutable hyperspectral cube value and its transformations.

This module defines :class:`Datacube`, a frozen value holding a
``(row, column, band)`` array together with wavelength, FWHM, wavelength unit,
physical quantity, originating files, and a :class:`ProvenanceLog`. Every
operation returns a new cube with exactly one provenance record appended; the
stored arrays are read-only so in-place edits are impossible.

Pixel coordinates are 1-based ``(x, y)`` pairs (``x`` is the column, ``y``
the row) and band indices are 1-based, matching :attr:`Datacube.bands`.
"""

from __future__ import annotations

import dataclasses
import os
import warnings
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

import numpy as np
import xarray as xr
from numpy.typing import ArrayLike

from hsicube.exceptions import (
    DataTypeWarning,
    InvalidArgument,
    MetadataWarning,
    OperandIncompatible,
    ShapeMismatch,
)
from hsicube.utils.array import readonly

from .provenance import ProvenanceLog
from .validators import as_cube_array, is_natural, validate_cube

__all__ = [
    "BAND_INDEX_UNIT",
    "Datacube",
    "SCHEMA_VERSION",
    "UNKNOWN",
    "default_metadata",
]

SCHEMA_VERSION = "1.0.0"
UNKNOWN = "Unknown"
BAND_INDEX_UNIT = "Band index"

_UNSET: Any = object()
_XR_DIMS = ("y", "x", "band")


def _band_vector(values: ArrayLike, name: str) -> np.ndarray:
    try:
        arr = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"{name} values must be numeric") from exc
    if arr.ndim > 1 and sum(1 for n in arr.shape if n != 1) > 1:
        raise ShapeMismatch(f"{name} values must be a vector, got shape {arr.shape}")
    return arr.reshape(-1)


def _normalize_files(files: Any) -> tuple[str, ...]:
    if files is None:
        return ()
    if isinstance(files, (str, os.PathLike)):
        return (os.fspath(files),)
    return tuple(os.fspath(f) for f in files)


def _arrays_equal(a: np.ndarray, b: np.ndarray) -> bool:
    if a.shape != b.shape:
        return False
    if np.issubdtype(a.dtype, np.inexact) and np.issubdtype(b.dtype, np.inexact):
        return bool(np.array_equal(a, b, equal_nan=True))
    return bool(np.array_equal(a, b))


def default_metadata(
    band_count: int,
    wavelength: ArrayLike | None,
    fwhm: ArrayLike | None,
    wavelength_unit: str | None,
    *,
    stacklevel: int = 2,
) -> tuple[ArrayLike, ArrayLike, str]:
    """Fill in missing spectral metadata, warning once per defaulted field.

    Missing wavelengths become band numbers ``1..n`` with unit
    ``"Band index"``; a missing unit alongside given wavelengths becomes
    ``"Unknown"``; missing FWHM values become zeros.
    """

    wavelength_given = wavelength is not None
    if not wavelength_given:
        warnings.warn(
            "Wavelengths not given, using band numbering.",
            MetadataWarning,
            stacklevel=stacklevel,
        )
        wavelength = np.arange(1, band_count + 1, dtype=np.float64)
    if wavelength_unit is None:
        wavelength_unit = UNKNOWN if wavelength_given else BAND_INDEX_UNIT
        warnings.warn(
            f'Wavelength unit not given, setting to "{wavelength_unit}".',
            MetadataWarning,
            stacklevel=stacklevel,
        )
    if fwhm is None:
        warnings.warn("FWHM values not given, setting to zero.", MetadataWarning, stacklevel=stacklevel)
        fwhm = np.zeros(band_count, dtype=np.float64)
    return wavelength, fwhm, wavelength_unit


@dataclass(frozen=True, eq=False)
class Datacube:
    """Hyperspectral datacube with metadata that is kept consistent.

    Prefer :meth:`from_array` for construction from raw data: it substitutes
    defaults for missing metadata and records the construction in the
    provenance log. The plain constructor requires every metadata field and
    is used by readers and internal derivations.

    Equality compares data (including dtype) and metadata; the provenance log
    and schema version are audit information and do not participate.
    """

    data: np.ndarray
    wavelength: np.ndarray
    fwhm: np.ndarray
    wavelength_unit: str
    quantity: str
    files: tuple[str, ...] = ()
    history: ProvenanceLog = field(default_factory=ProvenanceLog.created)
    schema_version: str = SCHEMA_VERSION

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", readonly(as_cube_array(self.data)))
        object.__setattr__(self, "wavelength", readonly(_band_vector(self.wavelength, "Wavelength")))
        object.__setattr__(self, "fwhm", readonly(_band_vector(self.fwhm, "FWHM")))
        object.__setattr__(self, "files", _normalize_files(self.files))
        if not isinstance(self.history, ProvenanceLog):
            raise InvalidArgument("history must be a ProvenanceLog")
        object.__setattr__(self, "history", self.history.with_creation_marker())
        validate_cube(self)

    # ---------- Construction ----------

    @classmethod
    def from_array(
        cls,
        data: ArrayLike,
        *,
        wavelength: ArrayLike | None = None,
        fwhm: ArrayLike | None = None,
        wavelength_unit: str | None = None,
        quantity: str | None = None,
        files: Iterable[str | os.PathLike[str]] | str | os.PathLike[str] | None = None,
        history: ProvenanceLog | None = None,
    ) -> Datacube:
        """Construct a cube from an array, defaulting any omitted metadata.

        Each defaulted field emits one :class:`~hsicube.exceptions.MetadataWarning`.
        Supplied wavelength or FWHM vectors that disagree with the band count
        raise :class:`~hsicube.exceptions.ShapeMismatch`.
        """

        return cls._construct(
            data,
            wavelength=wavelength,
            fwhm=fwhm,
            wavelength_unit=wavelength_unit,
            quantity=quantity,
            files=files,
            history=history,
            description="Cube constructed from array data",
            operation="from_array",
        )

    @classmethod
    def _construct(
        cls,
        data: ArrayLike,
        *,
        wavelength: ArrayLike | None,
        fwhm: ArrayLike | None,
        wavelength_unit: str | None,
        quantity: str | None,
        files: Any,
        history: ProvenanceLog | None,
        description: str,
        operation: str,
    ) -> Datacube:
        array = as_cube_array(data)
        band_count = int(array.shape[2])

        if quantity is None:
            warnings.warn(f"Quantity not given, setting to {UNKNOWN}.", MetadataWarning, stacklevel=3)
            quantity = UNKNOWN
        wavelength, fwhm, wavelength_unit = default_metadata(
            band_count, wavelength, fwhm, wavelength_unit, stacklevel=4
        )

        if history is not None and not isinstance(history, ProvenanceLog):
            raise InvalidArgument("history must be a ProvenanceLog")
        log = ProvenanceLog.created() if history is None else history.with_creation_marker()
        log = log.append(
            description,
            operation,
            {
                "size": tuple(int(n) for n in array.shape),
                "dtype": str(array.dtype),
                "wavelength": _band_vector(wavelength, "Wavelength"),
                "fwhm": _band_vector(fwhm, "FWHM"),
                "wavelength_unit": wavelength_unit,
                "quantity": quantity,
                "files": _normalize_files(files),
            },
        )
        return cls(
            data=array,
            wavelength=wavelength,
            fwhm=fwhm,
            wavelength_unit=wavelength_unit,
            quantity=quantity,
            files=files,
            history=log,
        )

    def _derive(
        self,
        description: str,
        operation: str,
        parameters: dict[str, Any] | None = None,
        *,
        data: Any = _UNSET,
        **changes: Any,
    ) -> Datacube:
        """Return a copy with ``changes`` applied and one provenance record appended."""

        if data is not _UNSET:
            array = as_cube_array(data)
            if array.dtype != self.data.dtype and self.data.size:
                warnings.warn(
                    f"Data type changes from {self.data.dtype} to {array.dtype}",
                    DataTypeWarning,
                    stacklevel=3,
                )
            changes["data"] = array
        changes["history"] = self.history.append(description, operation, parameters)
        return dataclasses.replace(self, **changes)

    def updated(
        self,
        *,
        data: ArrayLike = _UNSET,
        wavelength: ArrayLike = _UNSET,
        fwhm: ArrayLike = _UNSET,
        wavelength_unit: str = _UNSET,
        quantity: str = _UNSET,
        files: Iterable[str | os.PathLike[str]] = _UNSET,
    ) -> Datacube:
        """Copy the cube, replacing only the fields that are passed.

        Giving ``wavelength`` without ``wavelength_unit`` resets the unit to
        ``"Unknown"`` since the old unit no longer describes the new values.
        """

        overrides = {
            name: value
            for name, value in (
                ("data", data),
                ("wavelength", wavelength),
                ("fwhm", fwhm),
                ("wavelength_unit", wavelength_unit),
                ("quantity", quantity),
                ("files", files),
            )
            if value is not _UNSET
        }
        if "wavelength" in overrides and "wavelength_unit" not in overrides:
            overrides["wavelength_unit"] = UNKNOWN
        if "data" in overrides:
            data_value = overrides.pop("data")
            return self._derive(
                "Metadata updated", "updated", {"fields": ["data", *overrides]}, data=data_value, **overrides
            )
        return self._derive("Metadata updated", "updated", {"fields": list(overrides)}, **overrides)

    def with_data(self, data: ArrayLike) -> Datacube:
        return self.updated(data=data)

    def with_wavelength(self, wavelength: ArrayLike, wavelength_unit: str | None = None) -> Datacube:
        if wavelength_unit is None:
            return self.updated(wavelength=wavelength)
        return self.updated(wavelength=wavelength, wavelength_unit=wavelength_unit)

    def with_fwhm(self, fwhm: ArrayLike) -> Datacube:
        return self.updated(fwhm=fwhm)

    def with_quantity(self, quantity: str) -> Datacube:
        return self.updated(quantity=quantity)

    # ---------- Basic properties ----------

    @property
    def size(self) -> tuple[int, int, int]:
        """Return ``(height, width, bands)``; always three components."""

        height, width, bands = self.data.shape
        return int(height), int(width), int(bands)

    @property
    def height(self) -> int:
        return self.size[0]

    @property
    def width(self) -> int:
        return self.size[1]

    @property
    def band_count(self) -> int:
        return self.size[2]

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def bands(self) -> np.ndarray:
        """1-based band indices ``1..band_count``."""

        return np.arange(1, self.band_count + 1)

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    @property
    def min(self) -> Any:
        if self.data.size == 0:
            return None
        return self.data.min()

    @property
    def max(self) -> Any:
        if self.data.size == 0:
            return None
        return self.data.max()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Datacube):
            return NotImplemented
        return (
            self.data.dtype == other.data.dtype
            and _arrays_equal(self.data, other.data)
            and _arrays_equal(self.wavelength, other.wavelength)
            and _arrays_equal(self.fwhm, other.fwhm)
            and self.wavelength_unit == other.wavelength_unit
            and self.quantity == other.quantity
            and self.files == other.files
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"Datacube(size={self.size}, dtype={self.data.dtype}, quantity={self.quantity!r}, "
            f"wavelength_unit={self.wavelength_unit!r}, files={len(self.files)}, "
            f"history={len(self.history)} entries)"
        )

    # ---------- Utilities ----------

    def in_bounds(self, coords: ArrayLike) -> bool:
        """Check whether 1-based ``(x, y)`` or ``(x, y, b)`` coordinates lie in the cube.

        ``coords`` may be a single coordinate or an ``N x 2`` / ``N x 3``
        array. Every value must be a positive integer, otherwise
        :class:`~hsicube.exceptions.InvalidArgument` is raised.
        """

        cx = np.asarray(coords)
        if cx.ndim == 1:
            cx = cx.reshape(1, -1)
        if cx.ndim != 2 or cx.shape[1] not in (2, 3):
            raise InvalidArgument(f"Coordinates must be (x, y) or (x, y, b) rows, got shape {cx.shape}")
        if not np.all(is_natural(cx)):
            raise InvalidArgument("Coordinate values must be natural numbers")

        inside = bool(np.all(cx[:, 0] <= self.width) and np.all(cx[:, 1] <= self.height))
        if cx.shape[1] > 2:
            inside = inside and bool(np.all(cx[:, 2] <= self.band_count))
        return inside

    @staticmethod
    def check_operands(a: object, b: object) -> None:
        """Raise :class:`OperandIncompatible` unless ``a`` and ``b`` are same-sized cubes."""

        if not isinstance(a, Datacube) or not isinstance(b, Datacube):
            raise OperandIncompatible("Both operands must be Datacubes")
        if a.size != b.size:
            raise OperandIncompatible(f"Operand sizes {a.size} and {b.size} are incompatible")

    # ---------- Rearrangement ----------

    def flip(self, direction: Literal["ud", "lr"] = "ud") -> Datacube:
        """Flip the image upside-down (``"ud"``) or left-to-right (``"lr"``)."""

        if direction == "ud":
            return self._derive("Flipped upside-down", "flipud", data=self.data[::-1, :, :])
        if direction == "lr":
            return self._derive("Flipped left-to-right", "fliplr", data=self.data[:, ::-1, :])
        raise InvalidArgument(f"Flip direction must be 'ud' or 'lr', got {direction!r}")

    def flipud(self) -> Datacube:
        return self.flip("ud")

    def fliplr(self) -> Datacube:
        return self.flip("lr")

    def rot90(self, k: int = 1) -> Datacube:
        """Rotate the image ``k`` times counter-clockwise in 90 degree steps."""

        if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
            raise InvalidArgument(f"Rotation count must be an integer, got {k!r}")
        return self._derive(
            "Rotated counterclockwise k times",
            "rot90",
            {"k": int(k)},
            data=np.rot90(self.data, int(k), axes=(0, 1)),
        )

    def tile(self, factors: Sequence[int]) -> Datacube:
        """Repeat the data ``(ny, nx, nb)`` times along (rows, columns, bands).

        Wavelength and FWHM are repeated ``nb`` times so they stay aligned
        with the bands.
        """

        ns = np.asarray(factors)
        if ns.shape != (3,) or not np.all(is_natural(ns)):
            raise InvalidArgument("Replication factors must be given for all dimensions as ([ny, nx, nb])")
        reps = tuple(int(n) for n in ns)
        return self._derive(
            "Repeated data",
            "tile",
            {"factors": reps},
            data=np.tile(self.data, reps),
            wavelength=np.tile(self.wavelength, reps[2]),
            fwhm=np.tile(self.fwhm, reps[2]),
        )

    def to_spectra_list(self) -> Datacube:
        """Reshape into a ``(height*width, 1, bands)`` list of spectra (row-major)."""

        return self._derive(
            "Reshaped into a list of spectra",
            "to_spectra_list",
            data=self.data.reshape(self.area, 1, self.band_count),
        )

    def from_spectra_list(self, width: int, height: int) -> Datacube:
        """Reshape a list of spectra into a ``height x width`` image.

        Inverse of :meth:`to_spectra_list`; ``width * height`` must equal the
        number of spectra.
        """

        if not np.all(is_natural([width, height])):
            raise InvalidArgument("Width and height must be positive integers")
        width, height = int(width), int(height)
        if width * height != self.area:
            raise InvalidArgument(
                f"Cannot reshape {self.area} spectra into a {height} x {width} image"
            )
        spectra = self.data.reshape(self.area, self.band_count)
        return self._derive(
            "Reshaped a list of spectra into an image",
            "from_spectra_list",
            {"width": width, "height": height},
            data=spectra.reshape(height, width, self.band_count),
        )

    # ---------- Slicing ----------

    def crop(self, top_left: Sequence[int], bottom_right: Sequence[int]) -> Datacube:
        """Crop to the inclusive rectangle between two 1-based ``(x, y)`` corners."""

        tl = np.asarray(top_left).reshape(-1)
        br = np.asarray(bottom_right).reshape(-1)
        if tl.shape != (2,) or br.shape != (2,):
            raise InvalidArgument("Crop corners must be (x, y) pairs")
        if not self.in_bounds(np.vstack([tl, br])):
            raise InvalidArgument(f"Crop corners {tl.tolist()} and {br.tolist()} exceed the image size")
        x1, y1 = (int(v) for v in tl)
        x2, y2 = (int(v) for v in br)
        if x1 > x2 or y1 > y2:
            raise InvalidArgument("The top-left corner must not lie right of or below the bottom-right corner")
        return self._derive(
            "Cropped spatially",
            "crop",
            {"top_left": (x1, y1), "bottom_right": (x2, y2)},
            data=self.data[y1 - 1 : y2, x1 - 1 : x2, :],
        )

    def select_bands(self, indices: ArrayLike) -> Datacube:
        """Keep the given bands, as 1-based indices or a boolean band mask."""

        sel = np.asarray(indices)
        if sel.dtype == np.bool_:
            if sel.shape != (self.band_count,):
                raise InvalidArgument(
                    f"Band mask must have one entry per band ({self.band_count}), got shape {sel.shape}"
                )
            idx = np.flatnonzero(sel)
        else:
            sel = sel.reshape(-1)
            if not np.all(is_natural(sel)) or np.any(sel > self.band_count):
                raise InvalidArgument(f"Band indices must be integers in 1..{self.band_count}")
            idx = sel.astype(np.intp) - 1
        if idx.size == 0:
            raise InvalidArgument("At least one band must be selected")
        return self._derive(
            "Selected bands",
            "select_bands",
            {"bands": (idx + 1).tolist()},
            data=self.data[:, :, idx],
            wavelength=self.wavelength[idx],
            fwhm=self.fwhm[idx],
        )

    def mask_spatial(self, mask: ArrayLike) -> Datacube:
        """Return the spectra under a ``height x width`` boolean mask as a list."""

        m = self._spatial_mask(mask, (self.height, self.width))
        spectra = self.data[m]
        return self._derive(
            "Masked spatially",
            "mask_spatial",
            {"mask": m},
            data=spectra.reshape(spectra.shape[0], 1, self.band_count),
        )

    def unmask(self, mask: ArrayLike) -> Datacube:
        """Scatter a list of spectra back into an image using ``mask``.

        Inverse of :meth:`mask_spatial`. Pixels outside the mask are zero.
        """

        m = np.asarray(mask)
        if m.ndim != 2:
            raise InvalidArgument(f"Mask must be a two-dimensional boolean image, got shape {m.shape}")
        m = self._spatial_mask(m, m.shape)
        count = int(m.sum())
        if self.width != 1 or self.height != count:
            raise InvalidArgument(
                f"Unmasking needs a list of {count} spectra, got a cube of size {self.size}"
            )
        out = np.zeros(m.shape + (self.band_count,), dtype=self.data.dtype)
        out[m] = self.data[:, 0, :]
        return self._derive("Unmasked a list of spectra into an image", "unmask", {"mask": m}, data=out)

    def select_pixels(self, coords: ArrayLike) -> Datacube:
        """Return the spectra at 1-based ``(x, y)`` coordinates as a list."""

        cx = np.asarray(coords)
        if cx.ndim == 1:
            cx = cx.reshape(1, -1)
        if cx.ndim != 2 or cx.shape[1] != 2:
            raise InvalidArgument(f"Pixel coordinates must be (x, y) rows, got shape {cx.shape}")
        if not self.in_bounds(cx):
            raise InvalidArgument("Pixel coordinates exceed the image size")
        xs = cx[:, 0].astype(np.intp) - 1
        ys = cx[:, 1].astype(np.intp) - 1
        spectra = self.data[ys, xs, :]
        return self._derive(
            "Selected pixels",
            "select_pixels",
            {"coords": cx.astype(np.intp)},
            data=spectra.reshape(spectra.shape[0], 1, self.band_count),
        )

    def take_first_n(self, n: int) -> Datacube:
        """Take the first ``n`` spectra of the row-major list form."""

        if isinstance(n, bool) or not np.all(is_natural(n)) or np.ndim(n) != 0:
            raise InvalidArgument(f"The number of spectra must be a positive integer, got {n!r}")
        n = int(n)
        if n > self.area:
            raise InvalidArgument(f"Cannot take {n} spectra from a cube with {self.area} pixels")
        spectra = self.data.reshape(self.area, self.band_count)[:n]
        return self._derive(
            "Took the first n spectra",
            "take_first_n",
            {"n": n},
            data=spectra.reshape(n, 1, self.band_count),
        )

    @staticmethod
    def _spatial_mask(mask: ArrayLike, shape: tuple[int, ...]) -> np.ndarray:
        m = np.asarray(mask)
        if m.dtype != np.bool_:
            raise InvalidArgument("Mask must be a boolean array")
        if m.shape != shape:
            raise InvalidArgument(f"Mask shape {m.shape} does not match the image shape {shape}")
        return m.copy()

    # ---------- Arithmetic ----------

    def add(self, other: Datacube, quantity: str | None = None) -> Datacube:
        return self._arithmetic(other, np.add, "+", "Added with another Cube", "add", quantity)

    def subtract(self, other: Datacube, quantity: str | None = None) -> Datacube:
        return self._arithmetic(other, np.subtract, "-", "Subtracted by another Cube", "subtract", quantity)

    def multiply(self, other: Datacube, quantity: str | None = None) -> Datacube:
        return self._arithmetic(
            other, np.multiply, "*", "Multiplied elementwise by another Cube", "multiply", quantity
        )

    def divide(self, other: Datacube, quantity: str | None = None) -> Datacube:
        return self._arithmetic(
            other, np.true_divide, "/", "Divided elementwise by another Cube", "divide", quantity
        )

    def _arithmetic(
        self,
        other: Datacube,
        ufunc: np.ufunc,
        symbol: str,
        description: str,
        operation: str,
        quantity: str | None,
    ) -> Datacube:
        self.check_operands(self, other)
        if quantity is None:
            quantity = f"({self.quantity} {symbol} {other.quantity})"
        return self._derive(
            description,
            operation,
            {"other_history": other.history},
            data=ufunc(self.data, other.data),
            quantity=quantity,
            files=self.files + other.files,
        )

    # ---------- Mapping ----------

    def map(self, func: Callable[..., ArrayLike], *args: Any, quantity: str | None = None) -> Datacube:
        """Apply ``func(data, *args)`` to the whole array.

        The result must keep the band count unless the metadata can follow;
        otherwise :class:`~hsicube.exceptions.ShapeMismatch` is raised.
        """

        changes: dict[str, Any] = {} if quantity is None else {"quantity": quantity}
        return self._derive(
            "Applied a function to the data",
            "map",
            {"function": func, "args": args},
            data=func(self.data, *args),
            **changes,
        )

    def map_spectra(
        self, func: Callable[..., ArrayLike], *args: Any, quantity: str | None = None
    ) -> Datacube:
        """Apply ``func(spectrum, *args)`` to every pixel spectrum."""

        if self.area == 0:
            raise InvalidArgument("Cannot map spectra of an empty cube")
        result = np.apply_along_axis(func, 2, self.data, *args)
        changes: dict[str, Any] = {} if quantity is None else {"quantity": quantity}
        return self._derive(
            "Applied a function to each spectrum",
            "map_spectra",
            {"function": func, "args": args},
            data=result,
            **changes,
        )

    def map_bands(
        self, func: Callable[..., ArrayLike], *args: Any, quantity: str | None = None
    ) -> Datacube:
        """Apply ``func(band_image, *args)`` to every band and restack the results."""

        layers = [np.asarray(func(self.data[:, :, b], *args)) for b in range(self.band_count)]
        shapes = {layer.shape for layer in layers}
        if len(shapes) > 1 or any(layer.ndim != 2 for layer in layers):
            raise InvalidArgument(f"Band function must return equally sized 2-D images, got shapes {shapes}")
        if layers:
            result = np.stack(layers, axis=2)
        else:
            result = self.data
        changes: dict[str, Any] = {} if quantity is None else {"quantity": quantity}
        return self._derive(
            "Applied a function to each band",
            "map_bands",
            {"function": func, "args": args},
            data=result,
            **changes,
        )

    # ---------- Reductions ----------

    def mean_over_rows(self) -> Datacube:
        """Mean spectrum of each column, shape ``(1, width, bands)``."""

        self._require_pixels()
        return self._derive(
            "Reduced to spatially columnwise means",
            "mean_over_rows",
            data=np.mean(self.data, axis=0, keepdims=True),
        )

    def mean_over_columns(self) -> Datacube:
        """Mean spectrum of each row, shape ``(height, 1, bands)``."""

        self._require_pixels()
        return self._derive(
            "Reduced to spatially rowwise means",
            "mean_over_columns",
            data=np.mean(self.data, axis=1, keepdims=True),
        )

    def mean(self, skipna: bool = False) -> Datacube:
        """Spatial mean spectrum, shape ``(1, 1, bands)``.

        With ``skipna`` NaN values are ignored.
        """

        self._require_pixels()
        reducer = np.nanmean if skipna else np.mean
        return self._derive(
            "Reduced to spatial mean",
            "mean",
            {"skipna": bool(skipna)},
            data=reducer(self.data, axis=(0, 1), keepdims=True),
        )

    def spatial_median(self) -> Datacube:
        """Spatial median spectrum, shape ``(1, 1, bands)``."""

        self._require_pixels()
        spectra = self.data.reshape(self.area, self.band_count)
        return self._derive(
            "Reduced to spatial median",
            "spatial_median",
            data=np.median(spectra, axis=0).reshape(1, 1, self.band_count),
        )

    def _require_pixels(self) -> None:
        if self.area == 0:
            raise InvalidArgument("Cannot reduce a cube without pixels")

    # ---------- xarray interop ----------

    def to_xarray(self) -> xr.DataArray:
        """Return the cube as an :class:`xarray.DataArray` with ``(y, x, band)`` dims."""

        height, width, _ = self.size
        return xr.DataArray(
            np.array(self.data),
            dims=_XR_DIMS,
            coords={
                "y": np.arange(height, dtype=np.int64),
                "x": np.arange(width, dtype=np.int64),
                "band": self.bands,
                "wavelength": ("band", np.array(self.wavelength)),
                "fwhm": ("band", np.array(self.fwhm)),
            },
            attrs={
                "quantity": self.quantity,
                "wavelength_unit": self.wavelength_unit,
                "files": list(self.files),
                "schema_version": self.schema_version,
            },
            name=self.quantity,
        )

    @classmethod
    def from_xarray(cls, array: xr.DataArray) -> Datacube:
        """Create a cube from a 3-D :class:`xarray.DataArray`.

        Arrays with ``y``/``x``/``band`` dims are transposed into that order;
        other arrays are taken in their existing dimension order. Wavelength
        and FWHM come from coordinates of the same names, quantity, unit and
        files from attributes; missing values fall back to the defaults of
        :meth:`from_array`.
        """

        if array.ndim not in (2, 3):
            raise ShapeMismatch(f"DataArray must have 2 or 3 dimensions, got {array.dims}")
        if set(_XR_DIMS).issubset(array.dims):
            array = array.transpose(*_XR_DIMS)

        attrs = dict(array.attrs)
        wavelength = array.coords["wavelength"].values if "wavelength" in array.coords else None
        fwhm = array.coords["fwhm"].values if "fwhm" in array.coords else None
        return cls._construct(
            np.asarray(array.values),
            wavelength=wavelength,
            fwhm=fwhm,
            wavelength_unit=attrs.get("wavelength_unit"),
            quantity=attrs.get("quantity"),
            files=attrs.get("files"),
            history=None,
            description="Cube constructed from an xarray DataArray",
            operation="from_xarray",
        )
