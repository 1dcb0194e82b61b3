"""
GUI Panels Package

Contains all panel widgets for the application.
"""

from .viewer_panel import ViewerPanel
from .log_panel import LogViewerPanel

# Alias for consistency
LogPanel = LogViewerPanel

__all__ = [
    'ViewerPanel',
    'LogViewerPanel',
    'LogPanel',
]
