"""
DICOM Series Loader

Reads every slice file of a series and assembles them into an
ImageVolume. Files may be read on a thread pool; the assembler's sort
makes the read order irrelevant to the result.
"""

import concurrent.futures
import logging
import time
from pathlib import Path
from typing import Iterable, List, Optional

from config import DEFAULT_LOADER, LoaderConfig
from core.base import BaseLoader
from core.errors import VolumeLoadError
from volume.assembler import assemble_volume
from volume.image_volume import ImageVolume
from .slice_reader import SliceRecord, read_slice


# Index files that live next to slices but carry no pixel data
IGNORED_NAMES = {"DICOMDIR"}


def list_slice_files(folder: str | Path, skip_hidden: bool = True) -> List[Path]:
    """
    List candidate slice files in a folder, sorted by name.

    Args:
        folder: Directory holding one series
        skip_hidden: Ignore dotfiles

    Returns:
        Regular files in the folder

    Raises:
        FileNotFoundError: If the folder doesn't exist
        NotADirectoryError: If the path is not a folder
    """
    folder = Path(folder)
    if not folder.exists():
        raise FileNotFoundError(f"DICOM folder not found: {folder}")
    if not folder.is_dir():
        raise NotADirectoryError(f"Not a folder: {folder}")

    files = []
    for entry in sorted(folder.iterdir()):
        if not entry.is_file():
            continue
        if skip_hidden and entry.name.startswith("."):
            continue
        if entry.name.upper() in IGNORED_NAMES:
            continue
        files.append(entry)
    return files


def read_slices(paths: Iterable[str | Path], max_workers: Optional[int] = None) -> List[SliceRecord]:
    """
    Read slice files, stopping at the first failure.

    Results keep the order of ``paths`` whether or not a pool is used.
    """
    paths = [Path(p) for p in paths]
    if max_workers == 1 or len(paths) < 2:
        return [read_slice(path) for path in paths]

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(read_slice, path) for path in paths]
        try:
            return [future.result() for future in futures]
        except VolumeLoadError:
            for future in futures:
                future.cancel()
            raise


def load_image_volume(
    paths: Iterable[str | Path],
    config: LoaderConfig = DEFAULT_LOADER
) -> ImageVolume:
    """
    Assemble a volume from slice file paths.

    Args:
        paths: Slice files of one series, in any order
        config: Loader settings

    Returns:
        Assembled ImageVolume

    Raises:
        VolumeLoadError: On the first unreadable slice or assembly failure
    """
    paths = list(paths)
    start = time.perf_counter()
    logging.info(f"Reading {len(paths)} slice files...")

    try:
        records = read_slices(paths, config.max_workers)
        volume = assemble_volume(records, config.spacing_tolerance)
    except VolumeLoadError as e:
        logging.error(f"Volume load failed: {e}")
        raise

    _log_degradations(records)

    elapsed = time.perf_counter() - start
    logging.info(
        f"Assembled volume {volume.columns}x{volume.rows}x{volume.slice_count}, "
        f"spacing {tuple(round(s, 4) for s in volume.voxel_spacing)} mm "
        f"in {elapsed:.2f}s"
    )
    return volume


def _log_degradations(records: List[SliceRecord]) -> None:
    """Report optional fields that fell back to defaults."""
    fallback_locations = [r for r in records if r.location_from_position]
    if fallback_locations:
        logging.debug(
            f"{len(fallback_locations)} slices lack SliceLocation; "
            "using ImagePositionPatient z"
        )
    defaulted = [r for r in records if r.rescale_defaulted]
    if defaulted:
        logging.debug(
            f"{len(defaulted)} slices lack usable rescale parameters; "
            "using slope 1.0, intercept 0.0"
        )


class DICOMSeriesLoader(BaseLoader):
    """
    Loads a folder holding one DICOM series.

    Directory listing, parallel reading and assembly in one call.
    """

    def __init__(self, config: LoaderConfig = DEFAULT_LOADER):
        self.config = config
        self.files: List[Path] = []

    def can_load(self, source: str | Path) -> bool:
        """A source is loadable if it is a folder with at least one file."""
        try:
            return len(list_slice_files(source, self.config.skip_hidden)) > 0
        except OSError:
            return False

    def load(self, source: str | Path) -> ImageVolume:
        """
        Load the series in ``source``.

        Raises:
            FileNotFoundError: If the folder doesn't exist
            VolumeLoadError: If any slice fails or the stack is invalid
        """
        self.files = list_slice_files(source, self.config.skip_hidden)
        logging.info(f"Loading DICOM series: {source} ({len(self.files)} files)")
        return load_image_volume(self.files, self.config)
