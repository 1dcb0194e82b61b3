"""
Background Workers

QThread workers for long-running operations (loading, export).
"""

import logging
import traceback
from pathlib import Path

from PySide6.QtCore import QThread, Signal

from config import DEFAULT_LOADER, LoaderConfig
from core.errors import VolumeLoadError
from exporters.dicom import DICOMExporter
from loaders.dicom_loader import DICOMSeriesLoader
from volume.image_volume import ImageVolume


class LoaderWorker(QThread):
    """Background worker for loading a DICOM series folder."""

    progress = Signal(float)
    finished = Signal(object, str)  # Emits (ImageVolume, folder)
    error = Signal(str)

    def __init__(self, folder: str | Path, config: LoaderConfig = DEFAULT_LOADER):
        super().__init__()
        self.folder = str(folder)
        self.config = config

    def run(self):
        try:
            self.progress.emit(0.0)

            loader = DICOMSeriesLoader(self.config)
            volume = loader.load(self.folder)

            self.progress.emit(1.0)
            self.finished.emit(volume, self.folder)

        except VolumeLoadError as e:
            # Already logged by the loader
            self.error.emit(str(e))
        except OSError as e:
            logging.error(f"Cannot open folder: {e}")
            self.error.emit(str(e))
        except Exception as e:
            logging.error(f"Loading error: {e}\n{traceback.format_exc()}")
            self.error.emit(str(e))


class ExportWorker(QThread):
    """Background worker for DICOM export."""

    progress = Signal(float)
    finished = Signal(list)  # Emits list of file paths
    error = Signal(str)

    def __init__(
        self,
        volume: ImageVolume,
        output_dir: str,
        window_center: float,
        window_width: float
    ):
        super().__init__()
        self.volume = volume
        self.output_dir = output_dir
        self.window_center = window_center
        self.window_width = window_width

    def run(self):
        try:
            exporter = DICOMExporter()
            files = exporter.export(
                self.volume,
                self.output_dir,
                window_center=self.window_center,
                window_width=self.window_width,
                progress_callback=self.progress.emit,
            )
            logging.info(f"Exported {len(files)} slices to {self.output_dir}")
            self.finished.emit(files)

        except Exception as e:
            logging.error(f"Export error: {e}\n{traceback.format_exc()}")
            self.error.emit(str(e))
