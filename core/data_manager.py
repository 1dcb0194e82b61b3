"""
Data Manager

Owns the currently loaded ImageVolume and notifies views when it changes.
"""

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QObject, Signal

from volume.image_volume import ImageVolume


class DataManager(QObject):
    """
    Manages application data state.

    A volume is never modified after loading; a new load replaces it
    wholesale and emits ``volume_changed``.
    """

    # Signals
    volume_changed = Signal(object)  # Emits ImageVolume or None

    def __init__(self, parent=None):
        super().__init__(parent)

        self._volume: Optional[ImageVolume] = None
        self._source: Optional[Path] = None

    @property
    def volume(self) -> Optional[ImageVolume]:
        """Current image volume."""
        return self._volume

    @property
    def source(self) -> Optional[Path]:
        """Folder the current volume was loaded from."""
        return self._source

    @property
    def has_volume(self) -> bool:
        """Whether a volume is loaded."""
        return self._volume is not None

    def set_volume(self, volume: Optional[ImageVolume], source: Optional[str | Path] = None) -> None:
        """
        Replace the current volume.

        Args:
            volume: ImageVolume instance or None to clear
            source: Folder the volume came from
        """
        self._volume = volume
        self._source = Path(source) if source is not None else None
        self.volume_changed.emit(volume)
        if volume is not None:
            logging.info(f"Volume set: {volume.shape} from {self._source}")

    def clear(self) -> None:
        """Clear all data."""
        self._volume = None
        self._source = None
        self.volume_changed.emit(None)
        logging.info("Data cleared")
