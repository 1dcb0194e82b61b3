"""
Volume Package

Contains the assembled volume type and the slice-stacking assembler.
"""

from .image_volume import ImageVolume, apply_window
from .assembler import assemble_volume, sort_slices, check_geometry

__all__ = [
    'ImageVolume',
    'apply_window',
    'assemble_volume',
    'sort_slices',
    'check_geometry',
]
