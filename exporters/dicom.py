"""
DICOM Exporter

Writes an ImageVolume back out as a DICOM series whose geometry and
rescale tags the slice reader recovers.
"""

from pathlib import Path
from datetime import datetime
from typing import Optional, Callable, Tuple
import numpy as np

from pydicom.dataset import FileDataset, FileMetaDataset
from pydicom.uid import (
    generate_uid,
    ExplicitVRLittleEndian,
    CTImageStorage,
)
from pydicom.valuerep import format_number_as_ds

from config import DEFAULT_DICOM, DICOMConfig
from volume.image_volume import ImageVolume


INT16_MIN = -32768
INT16_MAX = 32767


def _ds(value: float) -> str:
    """Format a float to fit the 16-character DS limit."""
    return format_number_as_ds(float(value))


def rescale_parameters(volume: ImageVolume) -> Tuple[float, float]:
    """
    Choose (slope, intercept) so every voxel fits a signed 16-bit sample.

    Integer-valued volumes already inside the int16 range keep slope 1.0
    and intercept 0.0, so they round-trip exactly.
    """
    low, high = volume.value_range()
    voxels = volume.voxels
    if low >= INT16_MIN and high <= INT16_MAX and np.all(np.equal(np.mod(voxels, 1), 0)):
        return 1.0, 0.0

    if high == low:
        return 1.0, low
    slope = (high - low) / (INT16_MAX - INT16_MIN)
    intercept = low - INT16_MIN * slope
    return slope, intercept


# Slope growth per retry when DS rounding pushes a voxel out of int16
SLOPE_WIDENING = 1.01
MAX_WIDENING_STEPS = 64


def _fits_int16(value: float, slope: float, intercept: float) -> bool:
    stored = (value - intercept) / slope
    # np.rint rounds halves to even, so the bounds are exclusive
    return INT16_MIN - 0.5 < stored < INT16_MAX + 0.5


def quantized_rescale(volume: ImageVolume) -> Tuple[float, float]:
    """
    Rescale factors exactly as written to the DS elements.

    Rounding slope and intercept to DS strings can move the extreme voxels
    past the int16 limits. When it does, the slope is widened and the
    intercept re-centred on the value range until both extremes fit.

    Raises:
        ValueError: If the value range cannot be represented
    """
    slope, intercept = rescale_parameters(volume)
    low, high = volume.value_range()

    for _ in range(MAX_WIDENING_STEPS):
        q_slope, q_intercept = float(_ds(slope)), float(_ds(intercept))
        if _fits_int16(low, q_slope, q_intercept) and _fits_int16(high, q_slope, q_intercept):
            return q_slope, q_intercept
        slope *= SLOPE_WIDENING
        # Map the middle of the value range to the middle of int16 (-0.5)
        intercept = (low + high) / 2 + 0.5 * slope

    raise ValueError(f"Value range [{low}, {high}] does not fit signed 16-bit samples")


class DICOMExporter:
    """
    Exports image volumes as DICOM series.

    Creates one CT Image Storage file per slice, stored as signed
    16-bit samples with rescale slope/intercept.
    """

    def __init__(self, config: DICOMConfig = DEFAULT_DICOM):
        """
        Initialize DICOM exporter with metadata.

        Args:
            config: Patient/study/series descriptions written to each file
        """
        self.config = config
        self.reset_uids()

    def export(
        self,
        volume: ImageVolume,
        output_dir: str | Path,
        window_center: float = 40.0,
        window_width: float = 400.0,
        progress_callback: Optional[Callable[[float], None]] = None
    ) -> list[Path]:
        """
        Export a volume as a DICOM series.

        Args:
            volume: ImageVolume to export
            output_dir: Directory to save DICOM files
            window_center: Default window center
            window_width: Default window width
            progress_callback: Optional callback(progress: 0.0-1.0)

        Returns:
            List of paths to created DICOM files
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        rescale_slope, rescale_intercept = quantized_rescale(volume)
        origin = np.asarray(volume.origin, dtype=np.float64)
        stacking_axis = np.asarray(volume.orientation_basis[2], dtype=np.float64)
        step = stacking_axis * volume.voxel_spacing[2]

        created_files = []
        num_slices = volume.slice_count

        for i in range(num_slices):
            # Stored Value = (Value - Intercept) / Slope
            # float64, since float32 loses whole units at large intercepts
            slice_data = volume.get_slice(i).astype(np.float64)
            stored_values = np.rint((slice_data - rescale_intercept) / rescale_slope).astype("<i2")

            position = origin + i * step
            ds = self._create_dataset(
                volume=volume,
                slice_index=i,
                position=position,
                slice_location=float(np.dot(position, stacking_axis)),
                window_center=window_center,
                window_width=window_width,
                rescale_slope=rescale_slope,
                rescale_intercept=rescale_intercept
            )
            ds.PixelData = stored_values.tobytes()

            filename = output_dir / f"IMG_{i:04d}.dcm"
            ds.save_as(filename, enforce_file_format=True)
            created_files.append(filename)

            if progress_callback is not None:
                progress_callback((i + 1) / num_slices)

        return created_files

    def _create_dataset(
        self,
        volume: ImageVolume,
        slice_index: int,
        position: np.ndarray,
        slice_location: float,
        window_center: float,
        window_width: float,
        rescale_slope: float,
        rescale_intercept: float
    ) -> FileDataset:
        """Create a DICOM dataset for a single slice."""

        file_meta = FileMetaDataset()
        file_meta.MediaStorageSOPClassUID = CTImageStorage
        file_meta.MediaStorageSOPInstanceUID = generate_uid()
        file_meta.TransferSyntaxUID = ExplicitVRLittleEndian
        file_meta.ImplementationClassUID = generate_uid()
        file_meta.ImplementationVersionName = "DCMVOL_1.0"

        ds = FileDataset(
            filename_or_obj="",
            dataset={},
            file_meta=file_meta,
            preamble=b"\x00" * 128
        )

        # Patient Module
        ds.PatientName = self.config.patient_name
        ds.PatientID = self.config.patient_id
        ds.PatientBirthDate = ""
        ds.PatientSex = "O"

        # General Study Module
        ds.StudyInstanceUID = self.study_instance_uid
        ds.StudyDate = self.study_date
        ds.StudyTime = self.study_time
        ds.ReferringPhysicianName = ""
        ds.StudyID = "1"
        ds.AccessionNumber = ""
        ds.StudyDescription = self.config.study_description

        # General Series Module
        ds.SeriesInstanceUID = self.series_instance_uid
        ds.SeriesNumber = 1
        ds.Modality = "CT"
        ds.SeriesDescription = self.config.series_description

        # Frame of Reference Module
        ds.FrameOfReferenceUID = self.frame_of_reference_uid
        ds.PositionReferenceIndicator = ""

        # General Equipment Module
        ds.Manufacturer = self.config.manufacturer
        ds.InstitutionName = self.config.institution_name

        # Image Pixel Module
        ds.ImageType = ["DERIVED", "SECONDARY"]
        ds.SamplesPerPixel = 1
        ds.PhotometricInterpretation = "MONOCHROME2"
        ds.Rows = volume.rows
        ds.Columns = volume.columns
        ds.BitsAllocated = 16
        ds.BitsStored = 16
        ds.HighBit = 15
        ds.PixelRepresentation = 1  # Signed

        # Image Plane Module
        ds.PixelSpacing = [_ds(volume.voxel_spacing[0]), _ds(volume.voxel_spacing[1])]
        ds.SliceThickness = _ds(volume.voxel_spacing[2])
        ds.SpacingBetweenSlices = _ds(volume.voxel_spacing[2])
        ds.ImagePositionPatient = [_ds(c) for c in position]
        row_axis, column_axis = volume.orientation_basis[0], volume.orientation_basis[1]
        ds.ImageOrientationPatient = [_ds(c) for c in (*row_axis, *column_axis)]
        ds.SliceLocation = _ds(slice_location)
        ds.InstanceNumber = slice_index + 1

        # SOP Common Module
        ds.SOPClassUID = CTImageStorage
        ds.SOPInstanceUID = file_meta.MediaStorageSOPInstanceUID

        ds.RescaleSlope = _ds(rescale_slope)
        ds.RescaleIntercept = _ds(rescale_intercept)

        ds.WindowCenter = _ds(window_center)
        ds.WindowWidth = _ds(window_width)

        ds.ContentDate = self.study_date
        ds.ContentTime = self.study_time
        ds.ImageComments = f"Slice {slice_index + 1} of {volume.slice_count}"

        return ds

    def reset_uids(self) -> None:
        """Generate new UIDs for a new series."""
        self.study_instance_uid = generate_uid()
        self.series_instance_uid = generate_uid()
        self.frame_of_reference_uid = generate_uid()

        now = datetime.now()
        self.study_date = now.strftime("%Y%m%d")
        self.study_time = now.strftime("%H%M%S.%f")
