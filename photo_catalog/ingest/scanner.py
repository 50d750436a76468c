from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from stat import S_ISDIR

from photo_catalog.core.errors import DirectoryScanError
from photo_catalog.core.models import LibraryFile

logger = logging.getLogger(__name__)

REGULAR_IMAGE_EXTENSIONS = frozenset(
    {"jpg", "jpeg", "jpe", "png", "gif", "bmp", "webp", "tif", "tiff"}
)
RAW_IMAGE_EXTENSIONS = frozenset(
    {
        "raf", "cr2", "mrw", "arw", "srf", "sr2", "mef", "orf", "srw", "erf", "kdc", "dcs",
        "rw2", "dcr", "dng", "pef", "crw", "raw", "iiq", "3rf", "nrw", "nef", "mos", "ari",
    }
)
SUPPORTED_EXTENSIONS = REGULAR_IMAGE_EXTENSIONS | RAW_IMAGE_EXTENSIONS


def _extension(path: Path) -> str:
    return path.suffix[1:].lower()


def is_regular_image(path: str | Path) -> bool:
    return _extension(Path(path)) in REGULAR_IMAGE_EXTENSIONS


def is_raw_image(path: str | Path) -> bool:
    return _extension(Path(path)) in RAW_IMAGE_EXTENSIONS


def is_image_file(path: str | Path) -> bool:
    return _extension(Path(path)) in SUPPORTED_EXTENSIONS


def format_timestamp(timestamp: float) -> str:
    """Render a POSIX timestamp as ISO-8601 UTC with millisecond precision."""
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _created_timestamp(stat: os.stat_result) -> float:
    # st_birthtime exists on macOS/BSD and recent Windows builds; st_ctime elsewhere.
    return getattr(stat, "st_birthtime", stat.st_ctime)


def normalize_directory(directory: str | Path) -> str:
    """Absolute, normalized form used as the parent_path key of the catalog."""
    return os.path.abspath(os.path.expanduser(str(directory)))


def scan_directory(directory: str | Path) -> list[LibraryFile]:
    """List image files directly inside ``directory`` with their filesystem attributes."""
    root_path = Path(normalize_directory(directory))
    try:
        entries = sorted(root_path.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        raise DirectoryScanError(str(root_path), exc.strerror or str(exc)) from exc

    files: list[LibraryFile] = []
    for path in entries:
        if not is_image_file(path):
            continue
        try:
            str(path).encode("utf-8")
        except UnicodeEncodeError:
            logger.warning("Scan: skipping %r (file name is not valid UTF-8)", path)
            continue
        try:
            info = path.stat()
        except OSError as exc:
            logger.warning("Scan: skipping %s (%s)", path, exc)
            continue
        if S_ISDIR(info.st_mode):
            continue
        files.append(
            LibraryFile(
                original_file_name=path.name,
                base_name=path.stem,
                extension=path.suffix[1:],
                file_created_time=format_timestamp(_created_timestamp(info)),
                file_modified_time=format_timestamp(info.st_mtime),
                path=str(path),
                parent_path=str(root_path),
            )
        )
    logger.debug("Scan: %d image files in %s", len(files), root_path)
    return files
