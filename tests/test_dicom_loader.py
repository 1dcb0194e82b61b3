import logging

import numpy as np
import pytest

from config import LoaderConfig
from core.errors import FileReadError, InsufficientSlices, MissingField, VolumeLoadError
from loaders.dicom_loader import DICOMSeriesLoader, list_slice_files, load_image_volume


def test_list_skips_hidden_and_index_files(series_folder):
    (series_folder / ".DS_Store").write_bytes(b"x")
    (series_folder / "DICOMDIR").write_bytes(b"x")
    (series_folder / "nested").mkdir()

    files = list_slice_files(series_folder)

    assert [f.name for f in files] == ["z00.dcm", "z05.dcm", "z10.dcm"]


def test_list_missing_folder(tmp_path):
    with pytest.raises(FileNotFoundError):
        list_slice_files(tmp_path / "nope")


def test_list_rejects_file(write_slice):
    with pytest.raises(NotADirectoryError):
        list_slice_files(write_slice(slice_location=0.0))


def test_load_folder_end_to_end(series_folder):
    volume = DICOMSeriesLoader().load(series_folder)

    assert volume.texture_extent == (4, 3, 3)
    assert volume.voxel_spacing == pytest.approx((0.5, 0.5, 5.0))
    assert volume.origin == pytest.approx((-10.0, -20.0, 0.0))
    np.testing.assert_array_equal(volume.data[0], np.zeros((3, 4)))
    np.testing.assert_array_equal(volume.data[1], np.full((3, 4), 5.0))
    np.testing.assert_array_equal(volume.data[2], np.full((3, 4), 10.0))


def test_parallel_and_sequential_reads_agree(series_folder):
    files = list_slice_files(series_folder)

    sequential = load_image_volume(files, LoaderConfig(max_workers=1))
    parallel = load_image_volume(reversed(files), LoaderConfig(max_workers=4))

    np.testing.assert_array_equal(sequential.voxels, parallel.voxels)
    assert sequential.voxel_spacing == parallel.voxel_spacing
    assert sequential.orientation_basis == parallel.orientation_basis


@pytest.mark.parametrize("max_workers", [1, 3])
def test_missing_position_aborts_load(series_folder, write_slice, max_workers):
    write_slice(name="broken.dcm", folder=series_folder, columns=4, rows=3,
                pixels=np.zeros(12), omit=("ImagePositionPatient",))

    with pytest.raises(MissingField) as excinfo:
        DICOMSeriesLoader(LoaderConfig(max_workers=max_workers)).load(series_folder)

    assert excinfo.value.field == "ImagePositionPatient"
    assert excinfo.value.path.name == "broken.dcm"


def test_corrupt_file_aborts_load(series_folder, caplog):
    (series_folder / "junk.dcm").write_text("not dicom")

    with caplog.at_level(logging.ERROR):
        with pytest.raises(FileReadError):
            DICOMSeriesLoader().load(series_folder)

    assert "junk.dcm" in caplog.text


def test_single_slice_folder(tmp_path, write_slice):
    write_slice(folder=tmp_path / "one", slice_location=0.0)

    with pytest.raises(InsufficientSlices):
        DICOMSeriesLoader().load(tmp_path / "one")


def test_errors_share_a_base_class(tmp_path):
    with pytest.raises(VolumeLoadError):
        load_image_volume([tmp_path / "missing.dcm", tmp_path / "also-missing.dcm"])


def test_can_load(series_folder, tmp_path):
    loader = DICOMSeriesLoader()
    empty = tmp_path / "empty"
    empty.mkdir()

    assert loader.can_load(series_folder)
    assert not loader.can_load(empty)
    assert not loader.can_load(tmp_path / "absent")


def test_success_is_logged(series_folder, caplog):
    with caplog.at_level(logging.INFO):
        DICOMSeriesLoader().load(series_folder)

    assert "Assembled volume 4x3x3" in caplog.text


def test_non_square_pixels_map_to_patient_space(tmp_path, write_slice):
    folder = tmp_path / "aniso"
    for z in (0.0, 3.0):
        # 0.5 mm between rows, 2.0 mm between columns
        write_slice(folder=folder, columns=3, rows=2, position=(0.0, 0.0, z),
                    slice_location=z, pixel_spacing=(0.5, 2.0), pixels=np.zeros(6))

    volume = DICOMSeriesLoader().load(folder)
    affine = volume.affine()

    assert volume.column_spacing == pytest.approx(2.0)
    assert volume.row_spacing == pytest.approx(0.5)
    np.testing.assert_allclose(affine[:3, 0], [2.0, 0.0, 0.0])
    np.testing.assert_allclose(affine[:3, 1], [0.0, 0.5, 0.0])
    np.testing.assert_allclose(affine[:3, 2], [0.0, 0.0, 3.0])
    last_voxel = affine @ np.array([2, 1, 1, 1.0])
    np.testing.assert_allclose(last_voxel[:3], [4.0, 0.5, 3.0])
