"""Ingest pipeline for scanning directories and reading embedded metadata."""

from .pipeline import has_images_for_path, ingest_directory, ingest_file
from .scanner import SUPPORTED_EXTENSIONS, is_image_file, normalize_directory, scan_directory
from .tag_reader import EXIF_COLUMNS, IPTC_COLUMNS, open_metadata, read_capture_time, read_columns

__all__ = [
    "EXIF_COLUMNS",
    "IPTC_COLUMNS",
    "SUPPORTED_EXTENSIONS",
    "has_images_for_path",
    "ingest_directory",
    "ingest_file",
    "is_image_file",
    "normalize_directory",
    "open_metadata",
    "read_capture_time",
    "read_columns",
    "scan_directory",
]
