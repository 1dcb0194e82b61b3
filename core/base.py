"""
Core Base Classes

Abstract interfaces shared by volume loaders and visualizers.
"""

from abc import ABC, abstractmethod

from volume.image_volume import ImageVolume


class BaseLoader(ABC):
    """Abstract base class for volume loaders."""

    @abstractmethod
    def load(self, source: str) -> ImageVolume:
        """
        Load a volume from a source.

        Args:
            source: Path to the data source

        Returns:
            Assembled ImageVolume
        """
        pass

    def can_load(self, source: str) -> bool:
        """
        Check if this loader can handle the given source.

        Args:
            source: Path to check

        Returns:
            True if this loader can handle the source
        """
        return True


class BaseVisualizer(ABC):
    """Abstract base class for volume visualizers."""

    @abstractmethod
    def set_volume(self, volume: ImageVolume) -> None:
        """
        Set the volume to visualize.

        Args:
            volume: ImageVolume to display
        """
        pass

    def clear(self) -> None:
        """Clear the visualization."""
        pass
