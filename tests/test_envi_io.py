from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from hsicube import (
    DataExists,
    Datacube,
    HeaderExists,
    HeaderNotFound,
    HsicubeSettings,
    MalformedHeader,
    find_header,
    read,
    write,
)

_DTYPES = [np.int8, np.uint8, np.int16, np.uint16, np.int32, np.uint32, np.int64, np.float32, np.float64]


@st.composite
def _cubes(draw) -> Datacube:
    height = draw(st.integers(min_value=1, max_value=4))
    width = draw(st.integers(min_value=1, max_value=4))
    bands = draw(st.integers(min_value=1, max_value=5))
    dtype = np.dtype(draw(st.sampled_from(_DTYPES)))
    if dtype.kind == "f":
        values = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, width=dtype.itemsize * 8)
    else:
        info = np.iinfo(dtype)
        values = st.integers(min_value=int(info.min), max_value=int(info.max))
    data = np.asarray(
        draw(st.lists(values, min_size=height * width * bands, max_size=height * width * bands)),
        dtype=dtype,
    ).reshape(height, width, bands)
    wavelength = draw(
        st.lists(
            st.floats(min_value=0.0, max_value=1e4, allow_nan=False).map(lambda v: round(v, 6)),
            min_size=bands,
            max_size=bands,
        )
    )
    return Datacube.from_array(
        data,
        wavelength=wavelength,
        fwhm=np.zeros(bands),
        wavelength_unit="Nanometers",
        quantity="Radiance",
    )


@settings(max_examples=30, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(_cubes())
def test_write_read_round_trip(tmp_path: Path, cube: Datacube) -> None:
    header_path, data_path = write(cube, tmp_path / "scene", overwrite=True)
    restored = read(data_path, quantity=cube.quantity)

    assert restored.dtype == cube.dtype
    np.testing.assert_array_equal(restored.data, cube.data)
    np.testing.assert_allclose(restored.wavelength, cube.wavelength, atol=1e-6)
    np.testing.assert_array_equal(restored.fwhm, cube.fwhm)
    assert restored.wavelength_unit == cube.wavelength_unit
    assert restored.quantity == cube.quantity
    assert restored.files == (str(data_path),)


def test_written_pair_and_read_history(tmp_path: Path) -> None:
    cube = Datacube.from_array(
        np.ones((3, 2, 5)),
        wavelength=[10, 20, 30, 40, 50],
        wavelength_unit="nm",
        fwhm=[0, 0, 0, 0, 0],
        quantity="Testdata",
    )
    header_path, data_path = write(cube, tmp_path / "t")

    assert header_path == tmp_path / "t.hdr"
    assert data_path == tmp_path / "t.dat"
    assert header_path.read_text(encoding="utf-8").startswith("ENVI\n")

    restored = read(tmp_path / "t.dat")
    np.testing.assert_array_equal(restored.data, np.ones((3, 2, 5)))
    np.testing.assert_array_equal(restored.wavelength, [10, 20, 30, 40, 50])
    assert restored.wavelength_unit == "nm"
    assert restored.quantity == "Unknown"
    assert restored.history.descriptions == ["Object created", "Cube read from ENVI file"]
    assert read(tmp_path / "t.hdr", quantity="Testdata") == cube.updated(files=[str(data_path)])


def test_write_refuses_to_overwrite(tmp_path: Path, cube: Datacube) -> None:
    write(cube, tmp_path / "scene.dat")

    with pytest.raises(HeaderExists):
        write(cube, tmp_path / "scene.dat")
    (tmp_path / "scene.hdr").unlink()
    with pytest.raises(DataExists):
        write(cube, tmp_path / "scene.dat")
    with pytest.raises(FileExistsError):
        write(cube, tmp_path / "scene.dat")


def test_overwrite_replaces_content(tmp_path: Path, cube: Datacube) -> None:
    write(cube, tmp_path / "scene")
    flipped = cube.flipud()
    write(flipped, tmp_path / "scene", overwrite=True)

    np.testing.assert_array_equal(read(tmp_path / "scene.dat").data, flipped.data)


def test_missing_header(tmp_path: Path) -> None:
    with pytest.raises(HeaderNotFound):
        read(tmp_path / "missing.dat")
    with pytest.raises(FileNotFoundError):
        read(tmp_path / "missing.dat")


def test_missing_data_file(tmp_path: Path, cube: Datacube) -> None:
    _, data_path = write(cube, tmp_path / "scene")
    data_path.unlink()
    with pytest.raises(FileNotFoundError):
        read(data_path)


def test_find_header_alternatives(tmp_path: Path) -> None:
    data_path = tmp_path / "scene.img"
    data_path.write_bytes(b"")
    appended = tmp_path / "scene.img.hdr"
    appended.write_text("ENVI\n", encoding="utf-8")
    assert find_header(data_path) == appended

    replaced = tmp_path / "scene.hdr"
    replaced.write_text("ENVI\n", encoding="utf-8")
    assert find_header(data_path) == replaced
    assert find_header(replaced) == replaced


def test_truncated_data_file(tmp_path: Path, cube: Datacube) -> None:
    _, data_path = write(cube, tmp_path / "scene")
    data_path.write_bytes(data_path.read_bytes()[:-1])
    with pytest.raises(MalformedHeader):
        read(data_path)


def test_custom_suffixes_and_decimals(tmp_path: Path, cube: Datacube) -> None:
    custom = HsicubeSettings(header_suffix="HDR", data_suffix=".raw", wavelength_decimals=8)
    header_path, data_path = write(cube, tmp_path / "scene", settings=custom)

    assert header_path.name == "scene.HDR"
    assert data_path.name == "scene.raw"
    assert "400.00000000," in header_path.read_text(encoding="utf-8")
    restored = read(data_path, settings=custom)
    np.testing.assert_array_equal(restored.data, cube.data)


def test_write_does_not_create_directories(tmp_path: Path, cube: Datacube) -> None:
    with pytest.raises(FileNotFoundError):
        write(cube, tmp_path / "absent" / "scene")
    assert not (tmp_path / "absent").exists()
