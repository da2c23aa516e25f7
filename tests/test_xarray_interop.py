from __future__ import annotations

import numpy as np
import pytest
import xarray as xr

from hsicube import Datacube, MetadataWarning, ShapeMismatch


def test_to_xarray(cube: Datacube) -> None:
    arr = cube.to_xarray()

    assert arr.dims == ("y", "x", "band")
    assert arr.shape == cube.size
    np.testing.assert_array_equal(arr["wavelength"].values, cube.wavelength)
    np.testing.assert_array_equal(arr["band"].values, cube.bands)
    assert arr.attrs["quantity"] == "Radiance"
    assert arr.attrs["wavelength_unit"] == "Nanometers"


def test_xarray_round_trip(cube: Datacube) -> None:
    restored = Datacube.from_xarray(cube.to_xarray())
    assert restored == cube
    assert restored.history.descriptions[-1] == "Cube constructed from an xarray DataArray"


def test_from_xarray_reorders_dimensions(cube: Datacube) -> None:
    transposed = cube.to_xarray().transpose("band", "x", "y")
    assert Datacube.from_xarray(transposed) == cube


def test_from_xarray_defaults_missing_metadata() -> None:
    arr = xr.DataArray(np.zeros((2, 3)), dims=("y", "x"))
    with pytest.warns(MetadataWarning):
        cube = Datacube.from_xarray(arr)
    assert cube.size == (2, 3, 1)
    assert cube.quantity == "Unknown"


def test_from_xarray_rejects_higher_rank() -> None:
    with pytest.raises(ShapeMismatch):
        Datacube.from_xarray(xr.DataArray(np.zeros((1, 1, 1, 1))))
