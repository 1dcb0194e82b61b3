"""
Log Viewer Panel

Shows application log records (load progress, fallbacks, failures)
inside the main window.
"""

import logging
from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QPlainTextEdit, QHBoxLayout,
    QPushButton, QComboBox, QLabel
)
from PySide6.QtCore import Signal, Slot, QObject
from PySide6.QtGui import QFont


# Keep the widget bounded on long sessions
MAX_LOG_LINES = 2000

LEVEL_PREFIX = {
    logging.DEBUG: "  ",
    logging.INFO: "  ",
    logging.WARNING: "! ",
    logging.ERROR: "!!",
    logging.CRITICAL: "!!",
}


class LogEmitter(QObject):
    """Helper object to emit signals from the logging handler."""
    log_message = Signal(str, int)


class QLogHandler(logging.Handler):
    """
    Logging handler that forwards records to the GUI thread via a signal.
    """

    def __init__(self, parent=None):
        super().__init__()
        self.emitter = LogEmitter(parent)

    def emit(self, record):
        msg = self.format(record)
        self.emitter.log_message.emit(msg, record.levelno)


class LogViewerPanel(QWidget):
    """Panel for viewing application logs."""

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._setup_ui()
        self._setup_logging()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        toolbar = QHBoxLayout()
        toolbar.setContentsMargins(4, 4, 4, 0)
        toolbar.addWidget(QLabel("Show:"))

        self._level_combo = QComboBox()
        self._level_combo.addItems(["DEBUG", "INFO", "WARNING", "ERROR"])
        self._level_combo.setCurrentText("INFO")
        self._level_combo.currentTextChanged.connect(self._on_level_changed)
        toolbar.addWidget(self._level_combo)
        toolbar.addStretch()

        clear_btn = QPushButton("Clear")
        clear_btn.setFixedWidth(60)
        clear_btn.clicked.connect(self.clear_logs)
        toolbar.addWidget(clear_btn)

        layout.addLayout(toolbar)

        self._text_edit = QPlainTextEdit()
        self._text_edit.setReadOnly(True)
        self._text_edit.setMaximumBlockCount(MAX_LOG_LINES)
        self._text_edit.setLineWrapMode(QPlainTextEdit.NoWrap)

        font = QFont("Consolas", 9)
        if not font.exactMatch():
            font = QFont("Monospace", 9)
        self._text_edit.setFont(font)

        layout.addWidget(self._text_edit)

    def _setup_logging(self) -> None:
        """Attach a handler to the root logger; the combo filters what is shown."""
        self._handler = QLogHandler(self)
        self._handler.setLevel(logging.INFO)
        self._handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        ))
        self._handler.emitter.log_message.connect(self._append_log)
        logging.getLogger().addHandler(self._handler)

    def _on_level_changed(self, text: str) -> None:
        level = getattr(logging, text)
        self._handler.setLevel(level)
        # Debug records never reach the handler unless the root lets them through
        root = logging.getLogger()
        if root.level > level:
            root.setLevel(level)

    @Slot(str, int)
    def _append_log(self, msg: str, levelno: int) -> None:
        prefix = LEVEL_PREFIX.get(levelno, "  ")
        self._text_edit.appendPlainText(f"{prefix} {msg}")

    def clear_logs(self) -> None:
        """Clear the log display."""
        self._text_edit.clear()

    def detach(self) -> None:
        """Remove the handler from the root logger."""
        logging.getLogger().removeHandler(self._handler)
