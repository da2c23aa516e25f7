"""Shared fixtures for the hsicube test suite."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest

from hsicube import Datacube


def _make_cube(
    height: int = 3,
    width: int = 4,
    bands: int = 5,
    *,
    dtype: np.dtype | type = np.float64,
    quantity: str = "Radiance",
) -> Datacube:
    """Cube with every metadata field given so no defaults are applied."""

    data = np.arange(height * width * bands).reshape(height, width, bands).astype(dtype)
    return Datacube.from_array(
        data,
        wavelength=np.linspace(400.0, 900.0, bands),
        fwhm=np.full(bands, 2.5),
        wavelength_unit="Nanometers",
        quantity=quantity,
    )


@pytest.fixture
def make_cube() -> Callable[..., Datacube]:
    return _make_cube


@pytest.fixture
def cube() -> Datacube:
    return _make_cube()


@pytest.fixture
def other_cube() -> Datacube:
    base = _make_cube(quantity="Irradiance")
    return base.updated(data=np.ones(base.size), files=["other.dat"])
