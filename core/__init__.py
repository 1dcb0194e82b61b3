"""
Core Package

Contains the error taxonomy and abstract interfaces of the viewer.
The Qt-backed DataManager lives in core.data_manager and is imported
explicitly by the GUI.
"""

from .errors import (
    VolumeLoadError,
    FileReadError,
    MissingField,
    InvalidField,
    InsufficientSlices,
    InconsistentGeometry,
    DegenerateSpacing,
)

__all__ = [
    'VolumeLoadError',
    'FileReadError',
    'MissingField',
    'InvalidField',
    'InsufficientSlices',
    'InconsistentGeometry',
    'DegenerateSpacing',
]
