"""
Slice Viewer

Framework-agnostic 2D visualization of an ImageVolume: windowed
slices at the current depth and planes rotated through the stack.
"""

from typing import Optional
import numpy as np
from scipy.ndimage import map_coordinates

from config import DEFAULT_VIEWER, ViewerConfig
from core.base import BaseVisualizer
from volume.image_volume import ImageVolume, apply_window
from .view_state import ViewState


# Window presets for CT viewing
WINDOW_PRESETS = DEFAULT_VIEWER.window_presets


class SliceViewer(BaseVisualizer):
    """
    Framework-agnostic slice viewer for an ImageVolume.

    This class handles the data logic for slice viewing,
    independent of any GUI framework.
    """

    def __init__(self, config: ViewerConfig = DEFAULT_VIEWER):
        self._config = config
        self._volume: Optional[ImageVolume] = None
        self._state = ViewState(config)
        self._window_center: float = config.window_center
        self._window_width: float = config.window_width

    def set_volume(self, volume: ImageVolume) -> None:
        """
        Set the volume to view and reset depth and rotation.

        Args:
            volume: Assembled ImageVolume
        """
        self._volume = volume
        self._state.reset()

    def clear(self) -> None:
        self._volume = None

    def set_slice(self, index: int) -> None:
        """Set the current slice index."""
        if self._volume is None:
            return
        last = self._volume.slice_count - 1
        index = max(0, min(index, last))
        self._state.set_slice_position(index / last if last > 0 else 0.0)

    def set_window(self, center: float, width: float) -> None:
        """Set window center and width for display."""
        self._window_center = center
        self._window_width = max(1.0, width)

    def apply_preset(self, name: str) -> bool:
        """Apply a named window preset; returns False for unknown names."""
        preset = self._config.window_presets.get(name)
        if preset is None:
            return False
        self.set_window(preset["center"], preset["width"])
        return True

    def get_windowed_slice(self) -> Optional[np.ndarray]:
        """
        Get the slice nearest the current depth with windowing applied.

        Returns:
            2D uint8 array (rows, columns), or None if no volume loaded
        """
        if self._volume is None:
            return None

        slice_data = self._volume.get_slice(self.current_slice)
        return apply_window(slice_data, self._window_center, self._window_width)

    def get_rotated_plane(self) -> Optional[np.ndarray]:
        """
        Sample a plane through the current depth, rotated about the column axis.

        The plane keeps the image rows and swings its horizontal axis out of
        the slice plane by the current rotation. Distances are physical, so
        anisotropic voxel spacing does not skew the view. Samples outside the
        volume show as the window floor.

        Returns:
            2D uint8 array (rows, columns), or None if no volume loaded
        """
        if self._volume is None:
            return None

        volume = self._volume
        spacing_x = volume.column_spacing
        spacing_z = volume.slice_spacing
        angle = self._state.rotation

        depth = self._state.slice_position * (volume.slice_count - 1) * spacing_z
        center_x = (volume.columns - 1) / 2 * spacing_x

        # Physical horizontal offset of each output column from the plane centre
        offsets = (np.arange(volume.columns) - (volume.columns - 1) / 2) * spacing_x
        x_index = (center_x + offsets * np.cos(angle)) / spacing_x
        z_index = (depth + offsets * np.sin(angle)) / spacing_z

        row_index, column = np.meshgrid(
            np.arange(volume.rows, dtype=np.float64),
            np.arange(volume.columns),
            indexing="ij",
        )
        coords = np.stack([
            z_index[column],
            row_index,
            x_index[column],
        ])

        floor = self._window_center - max(1.0, self._window_width) / 2
        plane = map_coordinates(volume.data, coords, order=1, mode="constant", cval=floor)
        return apply_window(plane, self._window_center, self._window_width)

    @property
    def volume(self) -> Optional[ImageVolume]:
        return self._volume

    @property
    def state(self) -> ViewState:
        """Depth/rotation state shared with the input handlers."""
        return self._state

    @property
    def num_slices(self) -> int:
        """Get total number of slices."""
        return self._volume.slice_count if self._volume is not None else 0

    @property
    def current_slice(self) -> int:
        """Get current slice index."""
        return self._state.slice_index(self.num_slices)

    @property
    def window_center(self) -> float:
        """Get current window center."""
        return self._window_center

    @property
    def window_width(self) -> float:
        """Get current window width."""
        return self._window_width
