"""GUI package for the DICOM Volume Viewer."""

from .panels import ViewerPanel, LogPanel
from .main_window import MainWindow
from .workers import LoaderWorker, ExportWorker

__all__ = [
    "MainWindow",
    "ViewerPanel",
    "LogPanel",
    "LoaderWorker",
    "ExportWorker",
]
