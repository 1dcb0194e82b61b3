import math

import numpy as np
import pytest

from core.errors import DegenerateSpacing, InconsistentGeometry, InsufficientSlices, InvalidField
from volume.assembler import assemble_volume, sort_slices


def test_three_slices_sorted_and_concatenated(make_record):
    records = [make_record(10.0), make_record(0.0), make_record(5.0)]

    volume = assemble_volume(records)

    assert volume.slice_count == 3
    assert (volume.columns, volume.rows) == (2, 2)
    assert volume.voxels.size == 2 * 2 * 3
    np.testing.assert_array_equal(
        volume.voxels,
        [0.0] * 4 + [5.0] * 4 + [10.0] * 4,
    )
    assert volume.voxel_spacing == pytest.approx((0.5, 0.5, 5.0))
    assert volume.origin == (0.0, 0.0, 0.0)
    assert volume.orientation_basis == (
        (1.0, 0.0, 0.0),
        (0.0, 1.0, 0.0),
        pytest.approx((0.0, 0.0, 1.0)),
    )


@pytest.mark.parametrize("count", [2, 5, 17])
def test_voxel_count_matches_slices(make_record, count):
    records = [make_record(float(i), columns=3, rows=4) for i in range(count)]

    volume = assemble_volume(records)

    assert volume.voxels.size == 3 * 4 * count
    assert volume.data.shape == (count, 4, 3)


def test_input_order_does_not_matter(make_record):
    records = [make_record(z, fill=z * 2) for z in (-4.0, -1.5, 0.0, 2.5, 9.0)]

    forward = assemble_volume(records)
    backward = assemble_volume(list(reversed(records)))

    np.testing.assert_array_equal(forward.voxels, backward.voxels)
    assert forward.voxel_spacing == backward.voxel_spacing
    assert forward.origin == backward.origin
    assert forward.orientation_basis == backward.orientation_basis


def test_spacing_averaged_between_first_and_last(make_record):
    # Uneven gaps: only the end points enter the spacing
    records = [make_record(z) for z in (0.0, 1.0, 9.0)]

    volume = assemble_volume(records)

    assert volume.voxel_spacing[2] == pytest.approx(4.5)


def test_oblique_stack_direction(make_record):
    step = np.array([1.0, 2.0, 2.0])
    records = [
        make_record(float(i), position=tuple(step * i + [5.0, 5.0, 5.0]))
        for i in range(4)
    ]

    volume = assemble_volume(records)

    assert volume.voxel_spacing[2] == pytest.approx(3.0)
    assert volume.orientation_basis[2] == pytest.approx((1 / 3, 2 / 3, 2 / 3))
    assert volume.origin == (5.0, 5.0, 5.0)


@pytest.mark.parametrize("count", [0, 1])
def test_insufficient_slices(make_record, count):
    records = [make_record(float(i)) for i in range(count)]

    with pytest.raises(InsufficientSlices) as excinfo:
        assemble_volume(records)
    assert excinfo.value.count == count


def test_duplicate_positions_are_degenerate(make_record):
    records = [make_record(0.0, position=(1.0, 1.0, 1.0)),
               make_record(1.0, position=(1.0, 1.0, 1.0))]

    with pytest.raises(DegenerateSpacing) as excinfo:
        assemble_volume(records)
    assert excinfo.value.spacing == 0.0


def test_mismatched_dimensions_rejected(make_record, tmp_path):
    odd = make_record(2.0, columns=3, rows=2, source=tmp_path / "odd.dcm")
    records = [make_record(0.0), make_record(1.0), odd]

    with pytest.raises(InconsistentGeometry) as excinfo:
        assemble_volume(records)
    assert excinfo.value.field == "dimensions"
    assert excinfo.value.path == tmp_path / "odd.dcm"


def test_mismatched_pixel_spacing_rejected(make_record):
    records = [make_record(0.0), make_record(1.0, pixel_spacing=(0.5, 0.6))]

    with pytest.raises(InconsistentGeometry) as excinfo:
        assemble_volume(records)
    assert excinfo.value.field == "pixel spacing"


def test_pixel_spacing_within_tolerance_accepted(make_record):
    records = [make_record(0.0), make_record(1.0, pixel_spacing=(0.5000001, 0.5))]

    volume = assemble_volume(records)
    assert volume.voxel_spacing[0] == 0.5


def test_equal_locations_keep_input_order(make_record):
    a = make_record(1.0, fill=100.0, position=(0.0, 0.0, 0.0))
    b = make_record(1.0, fill=200.0, position=(0.0, 0.0, 0.0))
    c = make_record(2.0, fill=300.0, position=(0.0, 0.0, 2.0))

    assert [r.samples[0] for r in sort_slices([b, c, a])] == [200.0, 100.0, 300.0]
    volume = assemble_volume([b, a, c])
    np.testing.assert_array_equal(volume.voxels[:4], [200.0] * 4)
    np.testing.assert_array_equal(volume.voxels[4:8], [100.0] * 4)


def test_result_is_read_only(make_record):
    volume = assemble_volume([make_record(0.0), make_record(1.0)])

    with pytest.raises(ValueError):
        volume.voxels[0] = 1.0
    assert all(math.isfinite(v) for v in volume.voxel_spacing)


def test_nan_location_is_rejected_in_any_order(make_record):
    records = [
        make_record(0.0),
        make_record(float("nan"), position=(0.0, 0.0, 7.0), fill=9.0, source="odd.dcm"),
        make_record(5.0),
        make_record(10.0),
    ]

    for ordering in (records, records[::-1]):
        with pytest.raises(InvalidField) as excinfo:
            assemble_volume(ordering)
        assert excinfo.value.field == "SliceLocation"
