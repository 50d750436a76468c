from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from PIL import ExifTags, Image, IptcImagePlugin
from PIL.TiffImagePlugin import IFDRational

from photo_catalog.core.errors import MetadataUnavailable

# (exif table column, metadata key). Keys use the exiv2 naming scheme
# "<family>.<group>.<tag>"; ExifRow must carry a column for every entry.
EXIF_COLUMNS: tuple[tuple[str, str], ...] = (
    ("camera_make", "Exif.Image.Make"),
    ("camera_model", "Exif.Image.Model"),
    ("exposure_time", "Exif.Photo.ExposureTime"),
    ("f_number", "Exif.Photo.FNumber"),
    ("exposure_program", "Exif.Photo.ExposureProgram"),
    ("iso_speed", "Exif.Photo.ISOSpeedRatings"),
    ("exif_version", "Exif.Photo.ExifVersion"),
    ("datetime_original", "Exif.Photo.DateTimeOriginal"),
    ("offset_time_original", "Exif.Photo.OffsetTimeOriginal"),
    ("shutter_speed", "Exif.Photo.ShutterSpeedValue"),
    ("aperture_value", "Exif.Photo.ApertureValue"),
    ("brightness_value", "Exif.Photo.BrightnessValue"),
    ("metering_mode", "Exif.Photo.MeteringMode"),
    ("flash", "Exif.Photo.Flash"),
    ("exposure_mode", "Exif.Photo.ExposureMode"),
    ("white_balance", "Exif.Photo.WhiteBalance"),
    ("focal_length", "Exif.Photo.FocalLength"),
    ("focal_length_in_35mm_film", "Exif.Photo.FocalLengthIn35mmFilm"),
    ("sharpness", "Exif.Photo.Sharpness"),
    ("lens_specification", "Exif.Photo.LensSpecification"),
    ("lens_make", "Exif.Photo.LensMake"),
    ("lens_model", "Exif.Photo.LensModel"),
    ("body_serial_number", "Exif.Photo.BodySerialNumber"),
    ("saturation", "Exif.Photo.Saturation"),
    ("contrast", "Exif.Photo.Contrast"),
    ("gps_latitude", "Exif.GPSInfo.GPSLatitude"),
    ("gps_latitude_ref", "Exif.GPSInfo.GPSLatitudeRef"),
    ("gps_longitude", "Exif.GPSInfo.GPSLongitude"),
    ("gps_longitude_ref", "Exif.GPSInfo.GPSLongitudeRef"),
    ("gps_altitude", "Exif.GPSInfo.GPSAltitude"),
    ("gps_timestamp", "Exif.GPSInfo.GPSTimeStamp"),
    ("gps_status", "Exif.GPSInfo.GPSStatus"),
    ("artist", "Exif.Image.Artist"),
)

IPTC_COLUMNS: tuple[tuple[str, str], ...] = (
    ("copyright", "Iptc.Application2.Copyright"),
    ("city", "Iptc.Application2.City"),
    ("creator", "Iptc.Application2.Byline"),
    ("country_iso_code", "Iptc.Application2.CountryCode"),
    ("country_name", "Iptc.Application2.CountryName"),
    ("description", "Iptc.Application2.Caption"),
)

CAPTURE_TIME_KEYS = ("Exif.Photo.DateTimeOriginal", "Exif.Image.DateTime")
EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"

_EXIF_TAG_IDS = {name: tag for tag, name in ExifTags.TAGS.items()}
_GPS_TAG_IDS = {name: tag for tag, name in ExifTags.GPSTAGS.items()}
# IPTC-IIM record 2 dataset numbers.
_IPTC_DATASETS = {
    "Copyright": (2, 116),
    "City": (2, 90),
    "Byline": (2, 80),
    "CountryCode": (2, 100),
    "CountryName": (2, 101),
    "Caption": (2, 120),
}


def _format_value(value: object) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, IFDRational):
        if value.denominator in (0, 1):
            text = str(value.numerator)
        else:
            text = f"{value.numerator}/{value.denominator}"
    elif isinstance(value, bytes):
        text = value.decode("utf-8", errors="replace")
    elif isinstance(value, (tuple, list)):
        parts = [_format_value(item) for item in value]
        text = " ".join(part for part in parts if part is not None)
    else:
        text = str(value)
    text = text.strip("\x00").strip()
    return text or None


class MetadataReader:
    """String lookups over the EXIF and IPTC blocks of one file."""

    def __init__(
        self,
        ifds: dict[str, dict[int, object]],
        iptc: dict[tuple[int, int], object] | None = None,
    ) -> None:
        self._ifds = ifds
        self._iptc = iptc or {}

    @classmethod
    def from_pillow(
        cls, exif: Image.Exif, iptc: dict[tuple[int, int], object] | None
    ) -> "MetadataReader":
        ifds = {
            "Image": dict(exif),
            "Photo": dict(exif.get_ifd(ExifTags.IFD.Exif)),
            "GPSInfo": dict(exif.get_ifd(ExifTags.IFD.GPSInfo)),
        }
        return cls(ifds, iptc)

    def is_empty(self) -> bool:
        return not self._iptc and not any(self._ifds.values())

    def get_tag_string(self, key: str) -> Optional[str]:
        family, group, name = key.split(".", 2)
        if family == "Iptc":
            dataset = _IPTC_DATASETS.get(name)
            if dataset is None:
                raise KeyError(f"Unsupported IPTC key: {key}")
            return _format_value(self._iptc.get(dataset))
        if family != "Exif":
            raise KeyError(f"Unsupported metadata key: {key}")

        if group == "GPSInfo":
            tag = _GPS_TAG_IDS.get(name)
            groups: tuple[str, ...] = ("GPSInfo",)
        else:
            tag = _EXIF_TAG_IDS.get(name)
            # Writers disagree on IFD0 vs the Exif sub-IFD for several tags.
            groups = (group, "Photo" if group == "Image" else "Image")
        if tag is None:
            raise KeyError(f"Unsupported EXIF key: {key}")
        for ifd_name in groups:
            value = _format_value(self._ifds.get(ifd_name, {}).get(tag))
            if value is not None:
                return value
        return None

    def has_tag(self, key: str) -> bool:
        return self.get_tag_string(key) is not None


def open_metadata(path: str | Path) -> MetadataReader:
    """Read embedded metadata or raise MetadataUnavailable."""
    try:
        with Image.open(path) as img:
            exif = img.getexif()
            iptc = IptcImagePlugin.getiptcinfo(img)
            reader = MetadataReader.from_pillow(exif, iptc)
    except Exception as exc:
        # Unsupported formats (most RAW files), truncated or corrupt files.
        raise MetadataUnavailable(f"{path}: {exc}") from exc
    if reader.is_empty():
        raise MetadataUnavailable(f"{path}: no embedded metadata")
    return reader


def read_columns(reader: MetadataReader, columns: tuple[tuple[str, str], ...]) -> dict[str, str]:
    """Resolve a column table to the columns that actually have a value."""
    resolved: dict[str, str] = {}
    for column, key in columns:
        value = reader.get_tag_string(key)
        if value is not None:
            resolved[column] = value
    return resolved


def read_capture_time(reader: MetadataReader) -> Optional[str]:
    for key in CAPTURE_TIME_KEYS:
        value = reader.get_tag_string(key)
        if not value:
            continue
        try:
            captured = datetime.strptime(value, EXIF_DATETIME_FORMAT)
        except ValueError:
            continue
        return captured.strftime("%Y-%m-%dT%H:%M:%S.000Z")
    return None
