"""
DICOM Volume Viewer Configuration

Contains constants and default settings for loading and viewing volumes.
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass
class LoaderConfig:
    """Configuration for reading a slice series."""
    max_workers: Optional[int] = None  # Thread pool size; 1 reads sequentially
    skip_hidden: bool = True  # Ignore dotfiles when listing a folder
    spacing_tolerance: float = 1e-4  # Relative pixel spacing tolerance between slices


@dataclass
class ViewerConfig:
    """Configuration for the slice viewer controls."""
    window_center: float = 40.0
    window_width: float = 400.0
    initial_slice_position: float = 0.01  # Fraction of the stack depth
    slice_step: float = 0.05
    rotation_step: float = 0.1  # Radians per key press
    rotation_limit: float = math.pi

    # Window/Level presets
    window_presets: dict = field(default_factory=lambda: {
        "Bone": {"center": 500, "width": 2000},
        "Soft Tissue": {"center": 40, "width": 400},
        "Lung": {"center": -600, "width": 1500},
        "Brain": {"center": 40, "width": 80},
        "Liver": {"center": 60, "width": 160},
        "Custom": {"center": 0, "width": 1000},
    })


@dataclass
class DICOMConfig:
    """Configuration for DICOM export."""
    patient_name: str = "Anonymous^Patient"
    patient_id: str = "VOLUME001"
    study_description: str = "Volume Export"
    series_description: str = "Reassembled Volume"
    manufacturer: str = "DICOM Volume Viewer"
    institution_name: str = "Research Institution"


@dataclass
class GUIConfig:
    """Configuration for GUI appearance."""
    window_title: str = "DICOM Volume Viewer"
    window_size: Tuple[int, int] = (1200, 900)
    min_size: Tuple[int, int] = (800, 600)
    font_family: str = "Segoe UI"
    font_size: int = 10


# Default configurations
DEFAULT_LOADER = LoaderConfig()
DEFAULT_VIEWER = ViewerConfig()
DEFAULT_DICOM = DICOMConfig()
DEFAULT_GUI = GUIConfig()
