"""
DICOM Slice Reader

Parses a single DICOM slice file into a SliceRecord: grid size,
in-plane geometry, stacking location and rescaled pixel samples.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple
import numpy as np

import pydicom
from pydicom.dataset import Dataset

from core.errors import FileReadError, InvalidField, MissingField
from .fields import (
    element_value,
    optional_float,
    parse_float,
    required_floats,
    required_int,
    resolve,
)


Vec3 = Tuple[float, float, float]

DEFAULT_RESCALE_INTERCEPT = 0.0
DEFAULT_RESCALE_SLOPE = 1.0


@dataclass(eq=False)
class SliceRecord:
    """
    One parsed slice with physical units applied.

    Attributes:
        columns: Pixels per row
        rows: Pixels per column
        slice_location: Scalar position along the stacking axis
        pixel_spacing_2d: Distance between pixel centres (mm)
        position: Patient coordinates of the first pixel (mm)
        orientation: Row and column direction cosines
        samples: Flat float32 array (row-major) of rescaled values
        source: File the record was read from, if any
        location_from_position: SliceLocation was absent and position z was used
        rescale_defaulted: Slope or intercept was absent/malformed and defaulted
    """
    columns: int
    rows: int
    slice_location: float
    pixel_spacing_2d: Tuple[float, float]
    position: Vec3
    orientation: Tuple[Vec3, Vec3]
    samples: np.ndarray
    source: Optional[Path] = None
    location_from_position: bool = False
    rescale_defaulted: bool = False

    def __post_init__(self):
        if self.columns <= 0 or self.rows <= 0:
            raise ValueError(
                f"Slice dimensions must be positive, got {self.columns}x{self.rows}"
            )
        self.samples = np.asarray(self.samples, dtype=np.float32).ravel()
        if self.samples.size != self.columns * self.rows:
            raise ValueError(
                f"Expected {self.columns * self.rows} samples, got {self.samples.size}"
            )

    @property
    def pixel_count(self) -> int:
        return self.columns * self.rows


def read_slice(path: str | Path) -> SliceRecord:
    """
    Read one DICOM slice file.

    Args:
        path: Path to the slice file

    Returns:
        SliceRecord with rescaled samples

    Raises:
        FileReadError: If the file cannot be opened or is not valid DICOM
        MissingField: If a required element is absent
        InvalidField: If a required element has the wrong arity or type
    """
    path = Path(path)
    try:
        # dcmread opens and closes the file itself
        ds = pydicom.dcmread(path)
    except Exception as e:
        raise FileReadError(path, str(e) or type(e).__name__) from e

    return slice_from_dataset(ds, path)


def slice_from_dataset(ds: Dataset, source: Optional[str | Path] = None) -> SliceRecord:
    """Build a SliceRecord from an already parsed dataset."""
    source = Path(source) if source is not None else None

    columns = required_int(ds, "Columns", source)
    rows = required_int(ds, "Rows", source)
    position = required_floats(ds, "ImagePositionPatient", 3, source)
    pixel_spacing = required_floats(ds, "PixelSpacing", 2, source)
    cosines = required_floats(ds, "ImageOrientationPatient", 6, source)
    orientation = (cosines[:3], cosines[3:])

    location = _slice_location(ds, position, source)

    intercept = optional_float(ds, "RescaleIntercept", DEFAULT_RESCALE_INTERCEPT)
    slope = optional_float(ds, "RescaleSlope", DEFAULT_RESCALE_SLOPE)

    raw = _raw_samples(ds, columns * rows, source)
    samples = rescale(raw, slope.value, intercept.value)

    return SliceRecord(
        columns=columns,
        rows=rows,
        slice_location=location.value,
        pixel_spacing_2d=pixel_spacing,
        position=position,
        orientation=orientation,
        samples=samples,
        source=source,
        location_from_position=location.used_fallback,
        rescale_defaulted=slope.used_fallback or intercept.used_fallback,
    )


def rescale(raw: np.ndarray, slope: float, intercept: float) -> np.ndarray:
    """Convert stored values to physical units: raw * slope + intercept."""
    return (raw.astype(np.float64) * slope + intercept).astype(np.float32)


def _slice_location(ds: Dataset, position, source):
    try:
        raw = element_value(ds, "SliceLocation")
    except ValueError as e:
        raise InvalidField("SliceLocation", str(e), source)

    location = parse_float(raw)
    if raw is not None and location is None:
        raise InvalidField("SliceLocation", f"not a finite number: {raw!r}", source)
    return resolve(location, position[2])


def _raw_samples(ds: Dataset, expected: int, source) -> np.ndarray:
    """Interpret PixelData as signed 16-bit samples."""
    if "PixelData" not in ds:
        raise MissingField("PixelData", source)

    bits = element_value(ds, "BitsAllocated")
    if bits is not None and int(bits) != 16:
        raise InvalidField("BitsAllocated", f"expected 16, got {bits}", source)

    dtype = np.dtype("<i2")
    transfer_syntax = None
    if hasattr(ds, "file_meta"):
        transfer_syntax = ds.file_meta.get("TransferSyntaxUID")
    if transfer_syntax is not None:
        try:
            compressed = transfer_syntax.is_compressed
            little_endian = transfer_syntax.is_little_endian
        except ValueError as e:
            # Private or unknown UIDs carry no encoding information
            raise FileReadError(
                source or "<dataset>",
                f"unsupported transfer syntax {transfer_syntax}: {e}"
            ) from e
        if compressed:
            raise FileReadError(
                source or "<dataset>",
                f"compressed transfer syntax {transfer_syntax.name} is not supported"
            )
        if not little_endian:
            dtype = np.dtype(">i2")

    data = ds.PixelData
    # A trailing padding byte is allowed, extra frames are not
    if not expected * 2 <= len(data) <= expected * 2 + 1:
        raise FileReadError(
            source or "<dataset>",
            f"pixel data holds {len(data) // 2} samples, expected {expected}"
        )

    return np.frombuffer(data, dtype=dtype, count=expected)
