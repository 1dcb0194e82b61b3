"""
Main Window

The main application window for the DICOM Volume Viewer.
"""

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QSplitter,
    QFileDialog, QProgressBar, QStatusBar,
    QMessageBox, QProgressDialog
)
from PySide6.QtCore import Qt, QThread, Slot
from PySide6.QtGui import QAction

from config import DEFAULT_GUI, DEFAULT_LOADER, GUIConfig, LoaderConfig
from core.data_manager import DataManager
from volume.image_volume import ImageVolume
from .panels import ViewerPanel, LogViewerPanel
from .workers import LoaderWorker, ExportWorker


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(
        self,
        gui_config: GUIConfig = DEFAULT_GUI,
        loader_config: LoaderConfig = DEFAULT_LOADER
    ):
        super().__init__()

        self._gui_config = gui_config
        self._loader_config = loader_config
        self._data_manager = DataManager(self)
        self._worker: Optional[QThread] = None
        self._progress_dialog: Optional[QProgressDialog] = None

        self._setup_ui()
        self._setup_menu()
        self._connect_signals()

    def _setup_ui(self) -> None:
        """Set up the main window UI."""
        self.setWindowTitle(self._gui_config.window_title)
        self.setMinimumSize(*self._gui_config.min_size)
        self.resize(*self._gui_config.window_size)

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(8, 8, 8, 8)

        splitter = QSplitter(Qt.Vertical)

        self._viewer_panel = ViewerPanel()
        splitter.addWidget(self._viewer_panel)

        self._log_panel = LogViewerPanel()
        splitter.addWidget(self._log_panel)

        splitter.setCollapsible(0, False)
        splitter.setStretchFactor(0, 1)
        splitter.setSizes([700, 150])

        main_layout.addWidget(splitter)

        # Status bar
        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)

        self._progress_bar = QProgressBar()
        self._progress_bar.setMaximumWidth(200)
        self._progress_bar.setVisible(False)
        self._status_bar.addPermanentWidget(self._progress_bar)

        self._status_bar.showMessage("Ready")

    def _setup_menu(self) -> None:
        """Set up the menu bar."""
        menubar = self.menuBar()

        # File menu
        file_menu = menubar.addMenu("File")

        open_action = QAction("Open DICOM Folder...", self)
        open_action.setShortcut("Ctrl+O")
        open_action.triggered.connect(self._on_open_folder)
        file_menu.addAction(open_action)

        file_menu.addSeparator()

        self._export_action = QAction("Export DICOM...", self)
        self._export_action.setShortcut("Ctrl+E")
        self._export_action.setEnabled(False)
        self._export_action.triggered.connect(self._on_export)
        file_menu.addAction(self._export_action)

        file_menu.addSeparator()

        exit_action = QAction("Exit", self)
        exit_action.setShortcut("Ctrl+Q")
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        # Help menu
        help_menu = menubar.addMenu("Help")

        about_action = QAction("About", self)
        about_action.triggered.connect(self._on_about)
        help_menu.addAction(about_action)

    def _connect_signals(self) -> None:
        """Connect widget signals."""
        self._data_manager.volume_changed.connect(self._on_volume_changed)

    # ========== Helper Methods ==========

    def _create_progress_dialog(self, title: str) -> QProgressDialog:
        """Create and configure a modal progress dialog."""
        dialog = QProgressDialog(title, "Cancel", 0, 100, self)
        dialog.setWindowModality(Qt.WindowModal)
        dialog.setAutoClose(False)
        dialog.setAutoReset(False)
        dialog.setCancelButton(None)  # Workers don't support interruption
        dialog.show()
        return dialog

    def _close_progress_dialog(self) -> None:
        """Close and clean up the progress dialog."""
        if self._progress_dialog:
            self._progress_dialog.close()
            self._progress_dialog = None

    def _show_error(self, title: str, message: str) -> None:
        """Display an error message and restore UI state."""
        self._close_progress_dialog()
        self._export_action.setEnabled(self._data_manager.has_volume)
        self._status_bar.showMessage(f"Error: {message}")
        QMessageBox.critical(self, title, f"An error occurred:\n\n{message}")

    def _worker_busy(self) -> bool:
        if self._worker is not None and self._worker.isRunning():
            QMessageBox.warning(
                self,
                "Task Running",
                "Please wait for the current task to complete."
            )
            return True
        return False

    # ========== Loading ==========

    def _on_open_folder(self) -> None:
        """Handle File > Open DICOM Folder."""
        folder = QFileDialog.getExistingDirectory(self, "Select DICOM Series Folder")
        if folder:
            self.load_folder(folder)

    def load_folder(self, folder: str | Path) -> None:
        """Start loading a series folder in the background."""
        if self._worker_busy():
            return

        self._status_bar.showMessage(f"Loading {folder}...")
        self._progress_dialog = self._create_progress_dialog("Loading DICOM Series...")

        self._worker = LoaderWorker(folder, self._loader_config)
        self._worker.progress.connect(self._on_progress)
        self._worker.finished.connect(self._on_load_finished)
        self._worker.error.connect(self._on_load_error)
        self._worker.start()

    @Slot(object, str)
    def _on_load_finished(self, volume: ImageVolume, folder: str) -> None:
        self._close_progress_dialog()
        self._data_manager.set_volume(volume, folder)
        self._status_bar.showMessage(
            f"Loaded {volume.slice_count} slices from {Path(folder).name}"
        )

    @Slot(str)
    def _on_load_error(self, error_msg: str) -> None:
        self._show_error("Load Error", error_msg)

    @Slot(object)
    def _on_volume_changed(self, volume: Optional[ImageVolume]) -> None:
        self._viewer_panel.set_volume(volume)
        self._export_action.setEnabled(volume is not None)
        self._viewer_panel.setFocus()

    # ========== Export ==========

    def _on_export(self) -> None:
        """Export the loaded volume to DICOM."""
        volume = self._data_manager.volume
        if volume is None:
            QMessageBox.warning(self, "No Data", "Please open a DICOM series first.")
            return
        if self._worker_busy():
            return

        output_dir = QFileDialog.getExistingDirectory(self, "Select Output Directory")
        if not output_dir:
            return

        self._export_action.setEnabled(False)
        self._status_bar.showMessage("Exporting DICOM...")
        self._progress_dialog = self._create_progress_dialog("Exporting DICOM Series...")

        self._worker = ExportWorker(
            volume=volume,
            output_dir=output_dir,
            window_center=self._viewer_panel.window_center,
            window_width=self._viewer_panel.window_width
        )
        self._worker.progress.connect(self._on_progress)
        self._worker.finished.connect(self._on_export_finished)
        self._worker.error.connect(self._on_export_error)
        self._worker.start()

    @Slot(float)
    def _on_progress(self, progress: float) -> None:
        if self._progress_dialog:
            self._progress_dialog.setValue(int(progress * 100))

    @Slot(list)
    def _on_export_finished(self, files: list) -> None:
        self._close_progress_dialog()
        self._export_action.setEnabled(True)
        self._status_bar.showMessage(f"Exported {len(files)} DICOM files")
        QMessageBox.information(
            self,
            "Export Complete",
            f"Successfully exported {len(files)} DICOM files."
        )

    @Slot(str)
    def _on_export_error(self, error_msg: str) -> None:
        self._show_error("Export Error", error_msg)

    def _on_about(self) -> None:
        """Show about dialog."""
        QMessageBox.about(
            self,
            f"About {self._gui_config.window_title}",
            f"<h3>{self._gui_config.window_title}</h3>"
            "<p>Version 1.0</p>"
            "<p>Loads a DICOM slice series into a 3D volume and displays "
            "windowed planes through it.</p>"
            "<ul>"
            "<li>Up/Down: move through the stack</li>"
            "<li>Left/Right: rotate the viewing plane</li>"
            "</ul>"
        )

    def closeEvent(self, event) -> None:
        self._log_panel.detach()
        logging.info("Viewer closed")
        super().closeEvent(event)
