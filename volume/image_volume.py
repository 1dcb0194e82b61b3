"""
Image Volume Data Structure

Defines the assembled 3D volume handed to the renderer.
"""

from dataclasses import dataclass
from typing import Tuple
import numpy as np


Vec3 = Tuple[float, float, float]

# Bytes per voxel in the uploaded 3D texture (float32)
TEXEL_SIZE = 4


@dataclass(frozen=True, eq=False)
class ImageVolume:
    """
    Stack of slices assembled into a dense voxel buffer.

    Attributes:
        columns: Voxels along the row direction
        rows: Voxels along the column direction
        slice_count: Number of slices (>= 2)
        voxel_spacing: (row spacing, column spacing, slice spacing) in mm;
            the first two keep DICOM PixelSpacing order
        origin: Patient coordinates of the first voxel
        orientation_basis: Row axis, column axis and stacking axis unit vectors
        voxels: Flat float32 buffer, slice-major then row-major
    """
    columns: int
    rows: int
    slice_count: int
    voxel_spacing: Vec3
    origin: Vec3
    orientation_basis: Tuple[Vec3, Vec3, Vec3]
    voxels: np.ndarray

    def __post_init__(self):
        voxels = np.array(self.voxels, dtype=np.float32).ravel()
        expected = self.columns * self.rows * self.slice_count
        if voxels.size != expected:
            raise ValueError(f"Expected {expected} voxels, got {voxels.size}")
        voxels.flags.writeable = False
        object.__setattr__(self, "voxels", voxels)

    @property
    def data(self) -> np.ndarray:
        """Read-only (slice, row, column) view of the voxels."""
        return self.voxels.reshape(self.slice_count, self.rows, self.columns)

    @property
    def shape(self) -> Tuple[int, int, int]:
        return (self.slice_count, self.rows, self.columns)

    @property
    def num_slices(self) -> int:
        return self.slice_count

    @property
    def row_spacing(self) -> float:
        """Distance between adjacent rows, i.e. along the column axis."""
        return self.voxel_spacing[0]

    @property
    def column_spacing(self) -> float:
        """Distance between adjacent columns, i.e. along the row axis."""
        return self.voxel_spacing[1]

    @property
    def slice_spacing(self) -> float:
        return self.voxel_spacing[2]

    @property
    def texture_extent(self) -> Tuple[int, int, int]:
        """3D texture size as (width, height, depth)."""
        return (self.columns, self.rows, self.slice_count)

    @property
    def bytes_per_row(self) -> int:
        return self.columns * TEXEL_SIZE

    @property
    def rows_per_image(self) -> int:
        return self.rows

    def to_texture_bytes(self) -> bytes:
        """Little-endian float32 payload for a 3D texture upload."""
        return self.voxels.astype("<f4", copy=False).tobytes()

    def affine(self) -> np.ndarray:
        """
        4x4 matrix mapping (column, row, slice, 1) indices to patient coordinates.
        """
        steps = (self.column_spacing, self.row_spacing, self.slice_spacing)
        matrix = np.eye(4)
        for axis in range(3):
            matrix[:3, axis] = np.asarray(self.orientation_basis[axis]) * steps[axis]
        matrix[:3, 3] = self.origin
        return matrix

    def value_range(self) -> Tuple[float, float]:
        return float(self.voxels.min()), float(self.voxels.max())

    def get_slice(self, index: int, axis: int = 0) -> np.ndarray:
        """Get a 2D slice along specified axis (0=stacking, 1=row, 2=column)."""
        data = self.data
        if axis == 0:
            return data[index, :, :]
        elif axis == 1:
            return data[:, index, :]
        else:
            return data[:, :, index]

    def apply_window(
        self,
        window_center: float,
        window_width: float
    ) -> np.ndarray:
        """
        Apply windowing to convert physical values to display range [0, 255].

        Args:
            window_center: Center of the window
            window_width: Width of the window

        Returns:
            uint8 array suitable for display, shaped like ``data``
        """
        return apply_window(self.data, window_center, window_width)


def apply_window(values: np.ndarray, window_center: float, window_width: float) -> np.ndarray:
    """Clip ``values`` to the window and scale to uint8."""
    window_width = max(1.0, float(window_width))
    lower = window_center - window_width / 2
    upper = window_center + window_width / 2

    windowed = np.clip(values, lower, upper)
    normalized = (windowed - lower) / (upper - lower)
    return (normalized * 255).astype(np.uint8)
