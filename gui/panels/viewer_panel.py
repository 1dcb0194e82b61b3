"""
Viewer Panel

Displays windowed planes of an ImageVolume with depth, rotation and
window/level controls.
"""

import math
from typing import Optional
import numpy as np

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGroupBox,
    QLabel, QSlider, QComboBox
)
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QImage, QPixmap, QKeyEvent

from config import DEFAULT_VIEWER, ViewerConfig
from visualization.slice_viewer import SliceViewer
from volume.image_volume import ImageVolume


# Slider resolution for the fractional depth and the rotation angle
DEPTH_STEPS = 1000
ROTATION_STEPS = 360


class ViewerPanel(QWidget):
    """Panel for viewing volume planes with window/level controls."""

    view_changed = Signal()

    def __init__(self, parent: Optional[QWidget] = None, config: ViewerConfig = DEFAULT_VIEWER):
        super().__init__(parent)

        self._config = config
        self._viewer = SliceViewer(config)
        self.setFocusPolicy(Qt.StrongFocus)

        self._setup_ui()

    def _setup_ui(self) -> None:
        """Set up the panel UI."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        # Image display area
        view_group = QGroupBox("Volume View")
        view_layout = QVBoxLayout(view_group)

        self._image_label = QLabel("No volume loaded")
        self._image_label.setAlignment(Qt.AlignCenter)
        self._image_label.setMinimumSize(400, 400)
        self._image_label.setStyleSheet("background-color: #000000; color: #AAAAAA;")
        view_layout.addWidget(self._image_label)

        self._info_label = QLabel("")
        view_layout.addWidget(self._info_label)

        layout.addWidget(view_group, stretch=1)

        # Depth and rotation
        nav_group = QGroupBox("Navigation (arrow keys)")
        nav_layout = QVBoxLayout(nav_group)

        depth_row = QHBoxLayout()
        depth_row.addWidget(QLabel("Depth:"))
        self._depth_slider = QSlider(Qt.Horizontal)
        self._depth_slider.setRange(0, DEPTH_STEPS)
        self._depth_slider.valueChanged.connect(self._on_depth_changed)
        depth_row.addWidget(self._depth_slider, stretch=1)
        self._depth_label = QLabel("0 / 0")
        self._depth_label.setMinimumWidth(70)
        depth_row.addWidget(self._depth_label)
        nav_layout.addLayout(depth_row)

        rotation_row = QHBoxLayout()
        rotation_row.addWidget(QLabel("Rotation:"))
        self._rotation_slider = QSlider(Qt.Horizontal)
        self._rotation_slider.setRange(-ROTATION_STEPS // 2, ROTATION_STEPS // 2)
        self._rotation_slider.valueChanged.connect(self._on_rotation_changed)
        rotation_row.addWidget(self._rotation_slider, stretch=1)
        self._rotation_label = QLabel("0°")
        self._rotation_label.setMinimumWidth(70)
        rotation_row.addWidget(self._rotation_label)
        nav_layout.addLayout(rotation_row)

        layout.addWidget(nav_group)

        # Window/Level controls
        wl_group = QGroupBox("Window/Level")
        wl_layout = QVBoxLayout(wl_group)

        preset_row = QHBoxLayout()
        preset_row.addWidget(QLabel("Preset:"))
        self._preset_combo = QComboBox()
        for preset_name in self._config.window_presets.keys():
            self._preset_combo.addItem(preset_name)
        self._preset_combo.setCurrentText("Soft Tissue")
        self._preset_combo.currentTextChanged.connect(self._on_preset_changed)
        preset_row.addWidget(self._preset_combo, stretch=1)
        wl_layout.addLayout(preset_row)

        self._wc_slider, self._wc_label = self._add_slider_row(
            wl_layout, "Center:", -1000, 3000, int(self._config.window_center)
        )
        self._ww_slider, self._ww_label = self._add_slider_row(
            wl_layout, "Width:", 1, 4000, int(self._config.window_width)
        )

        layout.addWidget(wl_group)
        self._sync_controls()

    def _add_slider_row(self, parent_layout, title: str, low: int, high: int, value: int):
        row = QHBoxLayout()
        row.addWidget(QLabel(title))
        slider = QSlider(Qt.Horizontal)
        slider.setRange(low, high)
        slider.setValue(value)
        slider.valueChanged.connect(self._on_window_changed)
        row.addWidget(slider, stretch=1)
        label = QLabel(str(value))
        label.setMinimumWidth(50)
        row.addWidget(label)
        parent_layout.addLayout(row)
        return slider, label

    def set_volume(self, volume: Optional[ImageVolume]) -> None:
        """
        Set the volume to display; None clears the view.

        Args:
            volume: Assembled ImageVolume
        """
        if volume is None:
            self._viewer.clear()
            self._image_label.clear()
            self._image_label.setText("No volume loaded")
            self._info_label.setText("")
            return

        self._viewer.set_volume(volume)
        low, high = volume.value_range()
        self._info_label.setText(
            f"{volume.columns} x {volume.rows} x {volume.slice_count} voxels, "
            f"spacing {volume.column_spacing:.3f} x {volume.row_spacing:.3f} x "
            f"{volume.slice_spacing:.3f} mm, "
            f"range [{low:.0f}, {high:.0f}]"
        )
        self._sync_controls()
        self._update_display()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """Arrow keys step depth (up/down) and rotation (left/right)."""
        state = self._viewer.state
        key = event.key()
        if key == Qt.Key_Up:
            state.step_slice(+1)
        elif key == Qt.Key_Down:
            state.step_slice(-1)
        elif key == Qt.Key_Left:
            state.rotate(+1)
        elif key == Qt.Key_Right:
            state.rotate(-1)
        else:
            super().keyPressEvent(event)
            return
        self._sync_controls()
        self._update_display()

    def _sync_controls(self) -> None:
        """Push the view state into the sliders without re-triggering them."""
        state = self._viewer.state
        for slider, value in (
            (self._depth_slider, round(state.slice_position * DEPTH_STEPS)),
            (self._rotation_slider, round(math.degrees(state.rotation))),
        ):
            slider.blockSignals(True)
            slider.setValue(value)
            slider.blockSignals(False)
        self._update_labels()

    def _update_labels(self) -> None:
        self._depth_label.setText(f"{self._viewer.current_slice} / {self._viewer.num_slices}")
        self._rotation_label.setText(f"{math.degrees(self._viewer.state.rotation):.0f}°")

    def _on_depth_changed(self, value: int) -> None:
        self._viewer.state.set_slice_position(value / DEPTH_STEPS)
        self._update_labels()
        self._update_display()

    def _on_rotation_changed(self, value: int) -> None:
        self._viewer.state.set_rotation(math.radians(value))
        self._update_labels()
        self._update_display()

    def _on_preset_changed(self, preset_name: str) -> None:
        """Handle preset combo change."""
        if not self._viewer.apply_preset(preset_name):
            return
        for slider, label, value in (
            (self._wc_slider, self._wc_label, self._viewer.window_center),
            (self._ww_slider, self._ww_label, self._viewer.window_width),
        ):
            slider.blockSignals(True)
            slider.setValue(int(value))
            slider.blockSignals(False)
            label.setText(str(int(value)))
        self._update_display()

    def _on_window_changed(self) -> None:
        """Handle window/level slider change."""
        wc = self._wc_slider.value()
        ww = self._ww_slider.value()
        self._wc_label.setText(str(wc))
        self._ww_label.setText(str(ww))
        self._viewer.set_window(wc, ww)

        # Set combo to Custom if values don't match any preset
        match = "Custom"
        for name, preset in self._config.window_presets.items():
            if preset["center"] == wc and preset["width"] == ww:
                match = name
                break
        self._preset_combo.blockSignals(True)
        self._preset_combo.setCurrentText(match)
        self._preset_combo.blockSignals(False)

        self._update_display()

    def _update_display(self) -> None:
        """Update the image display."""
        if self._viewer.volume is None:
            return

        if self._viewer.state.rotation == 0.0:
            image = self._viewer.get_windowed_slice()
        else:
            image = self._viewer.get_rotated_plane()

        image = np.ascontiguousarray(image)
        height, width = image.shape
        q_image = QImage(image.data, width, height, width, QImage.Format_Grayscale8)
        pixmap = QPixmap.fromImage(q_image.copy())
        scaled = pixmap.scaled(
            self._image_label.size(),
            Qt.KeepAspectRatio,
            Qt.SmoothTransformation
        )
        self._image_label.setPixmap(scaled)
        self.view_changed.emit()

    @property
    def viewer(self) -> SliceViewer:
        return self._viewer

    @property
    def window_center(self) -> float:
        """Get current window center."""
        return self._viewer.window_center

    @property
    def window_width(self) -> float:
        """Get current window width."""
        return self._viewer.window_width
