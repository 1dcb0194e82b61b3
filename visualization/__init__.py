"""
Visualization Package

Contains framework-agnostic viewing logic for assembled volumes.
"""

from .slice_viewer import SliceViewer, WINDOW_PRESETS
from .view_state import ViewState

__all__ = [
    'SliceViewer',
    'ViewState',
    'WINDOW_PRESETS',
]
