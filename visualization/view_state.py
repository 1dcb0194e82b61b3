"""
View State

Interactive depth and rotation controls for the volume view, driven
by arrow keys or sliders.
"""

from dataclasses import dataclass, field
from typing import Optional

from config import DEFAULT_VIEWER, ViewerConfig


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


@dataclass
class ViewState:
    """
    Current slice depth and in-plane rotation.

    Attributes:
        slice_position: Depth through the stack as a fraction in [0, 1]
        rotation: Rotation about the column axis in radians, in [-limit, limit]
    """
    config: ViewerConfig = field(default_factory=lambda: DEFAULT_VIEWER)
    slice_position: Optional[float] = None
    rotation: float = 0.0

    def __post_init__(self):
        if self.slice_position is None:
            self.slice_position = self.config.initial_slice_position
        self.set_slice_position(self.slice_position)
        self.set_rotation(self.rotation)

    def set_slice_position(self, position: float) -> None:
        self.slice_position = _clamp(float(position), 0.0, 1.0)

    def set_rotation(self, angle: float) -> None:
        limit = self.config.rotation_limit
        self.rotation = _clamp(float(angle), -limit, limit)

    def step_slice(self, direction: int) -> float:
        """Move one step deeper (+1) or shallower (-1)."""
        self.set_slice_position(self.slice_position + direction * self.config.slice_step)
        return self.slice_position

    def rotate(self, direction: int) -> float:
        """Rotate one step counter-clockwise (+1) or clockwise (-1)."""
        self.set_rotation(self.rotation + direction * self.config.rotation_step)
        return self.rotation

    def slice_index(self, num_slices: int) -> int:
        """Nearest slice index for the current depth."""
        if num_slices <= 0:
            return 0
        return int(round(self.slice_position * (num_slices - 1)))

    def reset(self) -> None:
        self.slice_position = self.config.initial_slice_position
        self.rotation = 0.0
