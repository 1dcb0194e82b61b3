"""
Loaders Package

Contains the DICOM slice reader and the series loader.
"""

from .slice_reader import (
    SliceRecord,
    read_slice,
    slice_from_dataset,
)
from .dicom_loader import (
    DICOMSeriesLoader,
    list_slice_files,
    load_image_volume,
)

__all__ = [
    'SliceRecord',
    'read_slice',
    'slice_from_dataset',
    'DICOMSeriesLoader',
    'list_slice_files',
    'load_image_volume',
]
