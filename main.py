"""
DICOM Volume Viewer

Main entry point for the application.
"""

import sys
from pathlib import Path
from PySide6.QtWidgets import QApplication, QMessageBox
from PySide6.QtGui import QFont

from config import DEFAULT_GUI
from gui.main_window import MainWindow
import logging


def setup_logging():
    """Configure logging to stdout."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def main():
    """Application entry point. An optional argument names a series folder."""
    setup_logging()

    app = QApplication(sys.argv)
    app.setApplicationName(DEFAULT_GUI.window_title)
    app.setApplicationVersion("1.0")
    app.setOrganizationName("Research")
    app.setFont(QFont(DEFAULT_GUI.font_family, DEFAULT_GUI.font_size))

    window = MainWindow()

    args = app.arguments()[1:]
    if args:
        folder = Path(args[0])
        if not folder.is_dir():
            logging.error(f"Not a DICOM folder: {folder}")
            QMessageBox.critical(None, "Startup Error", f"Not a DICOM folder:\n\n{folder}")
            sys.exit(1)
        window.load_folder(folder)

    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
