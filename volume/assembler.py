"""
Volume Assembler

Orders parsed slices along the stacking axis, derives the 3D geometry
and concatenates their samples into a single ImageVolume.
"""

import math
from typing import TYPE_CHECKING, Iterable, List, Sequence
import numpy as np

from core.errors import DegenerateSpacing, InconsistentGeometry, InsufficientSlices, InvalidField
from .image_volume import ImageVolume

if TYPE_CHECKING:
    from loaders.slice_reader import SliceRecord


# Relative tolerance when comparing pixel spacing between slices
DEFAULT_SPACING_TOLERANCE = 1e-4

# Inter-slice distances at or below this are treated as coincident slices
MIN_SLICE_SPACING = 1e-12


def sort_slices(records: Iterable["SliceRecord"]) -> List["SliceRecord"]:
    """
    Sort by slice location; equal locations keep their input order.

    Raises:
        InvalidField: If a location is NaN or infinite, which has no order
    """
    records = list(records)
    for record in records:
        if not math.isfinite(record.slice_location):
            raise InvalidField(
                "SliceLocation", f"not a finite number: {record.slice_location}", record.source
            )
    return sorted(records, key=lambda record: record.slice_location)


def check_geometry(
    records: Sequence["SliceRecord"],
    spacing_tolerance: float = DEFAULT_SPACING_TOLERANCE
) -> None:
    """
    Verify every slice shares the first slice's grid and pixel spacing.

    Raises:
        InconsistentGeometry: On the first mismatching slice
    """
    reference = records[0]
    for record in records[1:]:
        if (record.columns, record.rows) != (reference.columns, reference.rows):
            raise InconsistentGeometry(
                "dimensions",
                (reference.columns, reference.rows),
                (record.columns, record.rows),
                record.source,
            )
        if not np.allclose(
            record.pixel_spacing_2d,
            reference.pixel_spacing_2d,
            rtol=spacing_tolerance,
            atol=0.0,
        ):
            raise InconsistentGeometry(
                "pixel spacing",
                tuple(reference.pixel_spacing_2d),
                tuple(record.pixel_spacing_2d),
                record.source,
            )


def assemble_volume(
    records: Iterable["SliceRecord"],
    spacing_tolerance: float = DEFAULT_SPACING_TOLERANCE
) -> ImageVolume:
    """
    Build an ImageVolume from parsed slices.

    Spacing along the stacking axis is the average step between the first
    and last slice; intermediate slices are not resampled.

    Args:
        records: Slices in any order
        spacing_tolerance: Relative tolerance for pixel spacing comparison

    Returns:
        Fully populated ImageVolume

    Raises:
        InsufficientSlices: Fewer than two slices
        InvalidField: A slice location is not finite
        InconsistentGeometry: Slices differ in grid size or pixel spacing
        DegenerateSpacing: First and last slice share a position
    """
    records = list(records)
    if len(records) < 2:
        raise InsufficientSlices(len(records))

    records = sort_slices(records)
    check_geometry(records, spacing_tolerance)

    first, last = records[0], records[-1]
    steps = len(records) - 1

    step_vector = (np.asarray(last.position, dtype=np.float64)
                   - np.asarray(first.position, dtype=np.float64)) / steps
    slice_spacing = float(np.linalg.norm(step_vector))
    if not math.isfinite(slice_spacing) or slice_spacing <= MIN_SLICE_SPACING:
        raise DegenerateSpacing(slice_spacing)

    stacking_axis = tuple(float(c) for c in step_vector / slice_spacing)

    voxel_spacing = (
        float(first.pixel_spacing_2d[0]),
        float(first.pixel_spacing_2d[1]),
        slice_spacing,
    )
    orientation_basis = (
        tuple(float(c) for c in first.orientation[0]),
        tuple(float(c) for c in first.orientation[1]),
        stacking_axis,
    )

    voxels = np.concatenate([record.samples for record in records])

    return ImageVolume(
        columns=first.columns,
        rows=first.rows,
        slice_count=len(records),
        voxel_spacing=voxel_spacing,
        origin=tuple(float(c) for c in first.position),
        orientation_basis=orientation_basis,
        voxels=voxels,
    )
