"""Shared fixtures: synthetic DICOM slices written with pydicom."""

from pathlib import Path

import numpy as np
import pytest
from pydicom.dataset import FileDataset, FileMetaDataset
from pydicom.uid import CTImageStorage, ExplicitVRLittleEndian, generate_uid

from loaders.slice_reader import SliceRecord


AXIAL = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0)


def build_dataset(
    columns=2,
    rows=2,
    position=(0.0, 0.0, 0.0),
    slice_location=None,
    pixel_spacing=(0.5, 0.5),
    orientation=AXIAL,
    pixels=None,
    slope=None,
    intercept=None,
    omit=(),
    transfer_syntax=ExplicitVRLittleEndian,
):
    """Minimal CT slice dataset; ``omit`` drops elements by keyword."""
    file_meta = FileMetaDataset()
    file_meta.MediaStorageSOPClassUID = CTImageStorage
    file_meta.MediaStorageSOPInstanceUID = generate_uid()
    file_meta.TransferSyntaxUID = transfer_syntax

    ds = FileDataset("", {}, file_meta=file_meta, preamble=b"\x00" * 128)
    ds.set_original_encoding(False, file_meta.TransferSyntaxUID.is_little_endian)
    ds.SOPClassUID = CTImageStorage
    ds.SOPInstanceUID = file_meta.MediaStorageSOPInstanceUID
    ds.Modality = "CT"
    ds.SamplesPerPixel = 1
    ds.PhotometricInterpretation = "MONOCHROME2"
    ds.BitsAllocated = 16
    ds.BitsStored = 16
    ds.HighBit = 15
    ds.PixelRepresentation = 1

    ds.Columns = columns
    ds.Rows = rows
    ds.ImagePositionPatient = [str(v) for v in position]
    ds.PixelSpacing = [str(v) for v in pixel_spacing]
    ds.ImageOrientationPatient = [str(v) for v in orientation]
    if slice_location is not None:
        ds.SliceLocation = str(slice_location)
    if slope is not None:
        ds.RescaleSlope = slope
    if intercept is not None:
        ds.RescaleIntercept = intercept

    if pixels is None:
        pixels = np.arange(columns * rows, dtype=np.int16)
    # pydicom writes OW bytes as given, so match the transfer syntax here
    byte_order = "<" if file_meta.TransferSyntaxUID.is_little_endian else ">"
    ds.PixelData = np.asarray(pixels, dtype=f"{byte_order}i2").tobytes()

    for keyword in omit:
        if keyword in ds:
            del ds[keyword]
    return ds


@pytest.fixture
def write_slice(tmp_path):
    """Write a synthetic slice file and return its path."""
    counter = {"n": 0}

    def _write(name=None, folder=None, **kwargs) -> Path:
        counter["n"] += 1
        folder = Path(folder) if folder is not None else tmp_path
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / (name or f"slice_{counter['n']:03d}.dcm")
        build_dataset(**kwargs).save_as(path, enforce_file_format=True)
        return path

    return _write


@pytest.fixture
def make_record():
    """Build a SliceRecord in memory, filling samples with ``fill``."""

    def _make(
        slice_location,
        position=None,
        columns=2,
        rows=2,
        pixel_spacing=(0.5, 0.5),
        orientation=((1.0, 0.0, 0.0), (0.0, 1.0, 0.0)),
        fill=None,
        source=None,
    ):
        if position is None:
            position = (0.0, 0.0, float(slice_location))
        value = slice_location if fill is None else fill
        return SliceRecord(
            columns=columns,
            rows=rows,
            slice_location=float(slice_location),
            pixel_spacing_2d=pixel_spacing,
            position=position,
            orientation=orientation,
            samples=np.full(columns * rows, value, dtype=np.float32),
            source=source,
        )

    return _make


@pytest.fixture
def series_folder(tmp_path, write_slice):
    """Folder with a 4x3 three-slice series written out of order."""
    folder = tmp_path / "series"
    for z in (10.0, 0.0, 5.0):
        pixels = np.full(12, int(z), dtype=np.int16)
        write_slice(
            name=f"z{int(z):02d}.dcm",
            folder=folder,
            columns=4,
            rows=3,
            position=(-10.0, -20.0, z),
            slice_location=z,
            pixels=pixels,
        )
    return folder
