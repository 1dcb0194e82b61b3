"""
Exporters Package

Contains exporters for various data formats.
"""

from .dicom import DICOMExporter

__all__ = ['DICOMExporter']
