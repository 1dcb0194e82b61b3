"""
Volume Loading Errors

Typed failures raised by the slice reader and the volume assembler.
All of them derive from VolumeLoadError so callers can abort a load
with a single except clause.
"""

from pathlib import Path
from typing import Optional


class VolumeLoadError(ValueError):
    """Base class for every failure of the volume assembly pipeline."""

    def __init__(self, message: str, path: Optional[str | Path] = None):
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            message = f"{self.path}: {message}"
        super().__init__(message)


class FileReadError(VolumeLoadError):
    """A slice file could not be opened or parsed."""

    def __init__(self, path: str | Path, reason: str):
        self.reason = reason
        super().__init__(f"cannot read slice file ({reason})", path)


class MissingField(VolumeLoadError):
    """A required metadata element is absent from a slice."""

    def __init__(self, field: str, path: Optional[str | Path] = None):
        self.field = field
        super().__init__(f"missing required field '{field}'", path)


class InvalidField(VolumeLoadError):
    """A required metadata element is present but unusable."""

    def __init__(self, field: str, reason: str, path: Optional[str | Path] = None):
        self.field = field
        self.reason = reason
        super().__init__(f"invalid field '{field}' ({reason})", path)


class InsufficientSlices(VolumeLoadError):
    """Fewer than two slices were supplied to the assembler."""

    def __init__(self, count: int):
        self.count = count
        super().__init__(f"need at least two slices to build a volume, got {count}")


class InconsistentGeometry(VolumeLoadError):
    """A slice does not share the grid size or pixel spacing of the stack."""

    def __init__(
        self,
        field: str,
        expected,
        found,
        path: Optional[str | Path] = None
    ):
        self.field = field
        self.expected = expected
        self.found = found
        super().__init__(
            f"inconsistent {field}: expected {expected}, found {found}", path
        )


class DegenerateSpacing(VolumeLoadError):
    """First and last slice share a position, so no stacking axis exists."""

    def __init__(self, spacing: float):
        self.spacing = spacing
        super().__init__(
            f"inter-slice spacing is {spacing!r}; slices must not share a position"
        )
