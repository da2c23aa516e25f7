from __future__ import annotations

import numpy as np
import pytest

from hsicube import Datacube, InvalidArgument, ShapeMismatch


def test_size_accessors(cube: Datacube) -> None:
    assert cube.size == (3, 4, 5)
    assert (cube.height, cube.width, cube.band_count) == (3, 4, 5)
    assert cube.area == 12
    np.testing.assert_array_equal(cube.bands, [1, 2, 3, 4, 5])
    assert cube.min == 0
    assert cube.max == 59


def test_empty_cube_has_no_extrema() -> None:
    cube = Datacube.from_array(
        np.zeros((0, 0, 2)), wavelength=[1.0, 2.0], fwhm=[0.0, 0.0], wavelength_unit="nm", quantity="Q"
    )
    assert cube.area == 0
    assert cube.min is None
    assert cube.max is None
    with pytest.raises(InvalidArgument):
        cube.mean()


@pytest.mark.parametrize(
    "coords, expected",
    [
        ((1, 1), True),
        ((4, 3), True),
        ((5, 1), False),
        ((1, 4), False),
        ((4, 3, 5), True),
        ((4, 3, 6), False),
        ([[1, 1], [4, 3]], True),
        ([[1, 1], [4, 4]], False),
    ],
)
def test_in_bounds(cube: Datacube, coords, expected: bool) -> None:
    assert cube.in_bounds(coords) is expected


@pytest.mark.parametrize("coords", [(0, 1), (1, -2), (1.5, 1), (1,), (1, 2, 3, 4)])
def test_in_bounds_rejects_non_natural_coordinates(cube: Datacube, coords) -> None:
    with pytest.raises(InvalidArgument):
        cube.in_bounds(coords)


def test_flips(cube: Datacube) -> None:
    np.testing.assert_array_equal(cube.flipud().data, cube.data[::-1])
    np.testing.assert_array_equal(cube.fliplr().data, cube.data[:, ::-1])
    assert cube.flip("ud") == cube.flipud()
    assert cube.flipud().history.descriptions[-1] == "Flipped upside-down"
    with pytest.raises(InvalidArgument):
        cube.flip("diagonal")  # type: ignore[arg-type]


def test_rot90_moves_top_right_pixel_to_top_left(cube: Datacube) -> None:
    rotated = cube.rot90()
    assert rotated.size == (4, 3, 5)
    np.testing.assert_array_equal(rotated.data[0, 0], cube.data[0, -1])
    assert rotated.rot90(-1) == cube
    assert cube.rot90(4) == cube
    with pytest.raises(InvalidArgument):
        cube.rot90(1.5)  # type: ignore[arg-type]


def test_tile_repeats_data_and_band_metadata(cube: Datacube) -> None:
    tiled = cube.tile((2, 3, 2))

    assert tiled.size == (6, 12, 10)
    np.testing.assert_array_equal(tiled.data[3:, 4:8, 5:], cube.data)
    np.testing.assert_array_equal(tiled.wavelength, np.tile(cube.wavelength, 2))
    np.testing.assert_array_equal(tiled.fwhm, np.tile(cube.fwhm, 2))
    assert cube.tile((1, 1, 1)) == cube


@pytest.mark.parametrize("factors", [(0, 1, 1), (1, 1), (1, 1.5, 1)])
def test_tile_rejects_invalid_factors(cube: Datacube, factors) -> None:
    with pytest.raises(InvalidArgument):
        cube.tile(factors)


def test_spectra_list_round_trip(cube: Datacube) -> None:
    spectra = cube.to_spectra_list()

    assert spectra.size == (12, 1, 5)
    np.testing.assert_array_equal(spectra.data[1, 0], cube.data[0, 1])
    assert spectra.from_spectra_list(4, 3) == cube
    assert spectra.from_spectra_list(2, 6).size == (6, 2, 5)
    with pytest.raises(InvalidArgument):
        spectra.from_spectra_list(5, 3)


def test_crop_is_inclusive_and_one_based(cube: Datacube) -> None:
    cropped = cube.crop((2, 1), (3, 2))
    assert cropped.size == (2, 2, 5)
    np.testing.assert_array_equal(cropped.data, cube.data[0:2, 1:3])
    assert cube.crop((1, 1), (4, 3)) == cube


@pytest.mark.parametrize(
    "top_left, bottom_right",
    [((1, 1), (5, 1)), ((3, 1), (2, 2)), ((0, 1), (2, 2)), ((1, 1, 1), (2, 2))],
)
def test_crop_rejects_invalid_corners(cube: Datacube, top_left, bottom_right) -> None:
    with pytest.raises(InvalidArgument):
        cube.crop(top_left, bottom_right)


def test_select_bands_by_index_and_mask(cube: Datacube) -> None:
    picked = cube.select_bands([1, 3])

    assert picked.band_count == 2
    np.testing.assert_array_equal(picked.wavelength, [400.0, 650.0])
    np.testing.assert_array_equal(picked.data, cube.data[:, :, [0, 2]])
    assert cube.select_bands(np.array([True, False, True, False, False])) == picked


@pytest.mark.parametrize("indices", [[0], [6], [], np.array([True, False])])
def test_select_bands_rejects_invalid_selections(cube: Datacube, indices) -> None:
    with pytest.raises(InvalidArgument):
        cube.select_bands(indices)


def test_mask_and_unmask(cube: Datacube) -> None:
    mask = np.zeros((3, 4), dtype=bool)
    mask[0, 1] = True
    mask[2, 3] = True

    spectra = cube.mask_spatial(mask)
    assert spectra.size == (2, 1, 5)
    np.testing.assert_array_equal(spectra.data[:, 0], cube.data[mask])

    image = spectra.unmask(mask)
    assert image.size == cube.size
    np.testing.assert_array_equal(image.data[mask], cube.data[mask])
    assert np.all(image.data[~mask] == 0)


def test_mask_must_match_image(cube: Datacube) -> None:
    with pytest.raises(InvalidArgument):
        cube.mask_spatial(np.ones((4, 3), dtype=bool))
    with pytest.raises(InvalidArgument):
        cube.mask_spatial(np.ones((3, 4)))
    with pytest.raises(InvalidArgument):
        cube.unmask(np.ones((3, 4), dtype=bool))


def test_select_pixels_uses_x_y_order(cube: Datacube) -> None:
    picked = cube.select_pixels([[1, 1], [4, 3]])

    assert picked.size == (2, 1, 5)
    np.testing.assert_array_equal(picked.data[0, 0], cube.data[0, 0])
    np.testing.assert_array_equal(picked.data[1, 0], cube.data[2, 3])
    with pytest.raises(InvalidArgument):
        cube.select_pixels([[5, 1]])


def test_take_first_n(cube: Datacube) -> None:
    first = cube.take_first_n(2)

    assert first.size == (2, 1, 5)
    np.testing.assert_array_equal(first.data[:, 0], cube.data[0, :2])
    for n in (0, 13, True):
        with pytest.raises(InvalidArgument):
            cube.take_first_n(n)


def test_map_functions(cube: Datacube) -> None:
    doubled = cube.map(np.multiply, 2, quantity="Double radiance")
    assert doubled.quantity == "Double radiance"
    np.testing.assert_array_equal(doubled.data, cube.data * 2)

    assert cube.map_spectra(lambda s: s * 2) == doubled.with_quantity(cube.quantity)
    assert cube.map_bands(np.flipud) == cube.flipud()


def test_map_must_keep_band_metadata_consistent(cube: Datacube) -> None:
    with pytest.raises(ShapeMismatch):
        cube.map(lambda data: data[:, :, :2])
    with pytest.raises(InvalidArgument):
        cube.map_bands(lambda band: band[0])


def test_reductions(cube: Datacube) -> None:
    rows = cube.mean_over_rows()
    columns = cube.mean_over_columns()

    assert rows.size == (1, 4, 5)
    assert columns.size == (3, 1, 5)
    np.testing.assert_allclose(rows.data[0], cube.data.mean(axis=0))
    np.testing.assert_allclose(columns.data[:, 0], cube.data.mean(axis=1))
    np.testing.assert_allclose(cube.mean().data.reshape(-1), cube.data.mean(axis=(0, 1)))
    np.testing.assert_allclose(
        cube.spatial_median().data.reshape(-1), np.median(cube.data.reshape(-1, 5), axis=0)
    )


def test_mean_can_skip_nan() -> None:
    data = np.array([[[1.0], [np.nan]], [[3.0], [5.0]]])
    cube = Datacube.from_array(data, wavelength=[1.0], fwhm=[0.0], wavelength_unit="nm", quantity="Q")

    assert np.isnan(cube.mean().data.item())
    assert cube.mean(skipna=True).data.item() == pytest.approx(3.0)
