import numpy as np
import pytest

from volume.image_volume import ImageVolume, apply_window


@pytest.fixture
def volume():
    return ImageVolume(
        columns=3,
        rows=2,
        slice_count=2,
        voxel_spacing=(0.5, 0.25, 2.0),
        origin=(10.0, 20.0, 30.0),
        orientation_basis=((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)),
        voxels=np.arange(12, dtype=np.float32) * 100 - 400,
    )


def test_data_view_is_slice_row_column(volume):
    assert volume.shape == (2, 2, 3)
    assert volume.data[1, 0, 2] == 8 * 100 - 400
    np.testing.assert_array_equal(volume.get_slice(0), volume.data[0])
    assert volume.get_slice(1, axis=2).shape == (2, 2)


def test_texture_layout(volume):
    assert volume.texture_extent == (3, 2, 2)
    assert volume.bytes_per_row == 12
    assert volume.rows_per_image == 2
    payload = volume.to_texture_bytes()
    assert len(payload) == volume.bytes_per_row * volume.rows * volume.slice_count
    np.testing.assert_array_equal(np.frombuffer(payload, dtype="<f4"), volume.voxels)


def test_affine_maps_indices_to_patient(volume):
    affine = volume.affine()
    column, row, slice_index = 2, 1, 1
    point = affine @ np.array([column, row, slice_index, 1.0])

    # voxel_spacing keeps PixelSpacing order: 0.5 mm between rows, 0.25 between columns
    assert point[:3] == pytest.approx((10.5, 20.5, 32.0))


def test_voxel_count_is_validated():
    with pytest.raises(ValueError):
        ImageVolume(
            columns=2,
            rows=2,
            slice_count=2,
            voxel_spacing=(1.0, 1.0, 1.0),
            origin=(0.0, 0.0, 0.0),
            orientation_basis=((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)),
            voxels=np.zeros(7),
        )


def test_source_buffer_is_copied():
    source = np.zeros(8, dtype=np.float32)
    volume = ImageVolume(2, 2, 2, (1.0, 1.0, 1.0), (0.0, 0.0, 0.0),
                         ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)), source)

    source[0] = 99.0

    assert volume.voxels[0] == 0.0
    assert source.flags.writeable


def test_window_bounds(volume):
    display = volume.apply_window(window_center=0.0, window_width=400.0)

    assert display.dtype == np.uint8
    assert display.shape == volume.shape
    assert display.min() == 0
    assert display.max() == 255


def test_window_width_floor():
    out = apply_window(np.array([-1.0, 0.0, 1.0]), 0.0, 0.0)
    np.testing.assert_array_equal(out, [0, 127, 255])


def test_named_spacings(volume):
    assert volume.row_spacing == 0.5
    assert volume.column_spacing == 0.25
    assert volume.slice_spacing == 2.0
