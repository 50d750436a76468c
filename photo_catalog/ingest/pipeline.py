from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from photo_catalog.core.errors import DirectoryScanError, MetadataUnavailable
from photo_catalog.core.models import IngestResult, IngestStatus, LibraryFile
from photo_catalog.index import ExifRow, ImageRow, IptcRow, LibraryFileRow

from .scanner import normalize_directory, scan_directory
from .tag_reader import (
    EXIF_COLUMNS,
    IPTC_COLUMNS,
    MetadataReader,
    open_metadata,
    read_capture_time,
    read_columns,
)

logger = logging.getLogger(__name__)


def _open_metadata_or_none(path: str) -> MetadataReader | None:
    try:
        return open_metadata(path)
    except MetadataUnavailable as exc:
        logger.debug("Ingest: no metadata for %s (%s)", path, exc)
        return None


def insert_library_file(session: Session, file: LibraryFile) -> LibraryFileRow:
    row = LibraryFileRow(**file.model_dump())
    session.add(row)
    session.flush()
    return row


def insert_image(
    session: Session,
    library_file: LibraryFileRow,
    meta: MetadataReader | None,
) -> ImageRow:
    """Insert the curation row; capture time falls back to the file's created time."""
    capture_time = read_capture_time(meta) if meta is not None else None
    row = ImageRow(
        library_file_id=library_file.id,
        capture_time=capture_time or library_file.file_created_time,
    )
    session.add(row)
    session.flush()
    return row


def insert_metadata(
    session: Session,
    image: ImageRow,
    library_file: LibraryFileRow,
    meta: MetadataReader | None,
) -> tuple[ExifRow, IptcRow]:
    """Write the sparse EXIF/IPTC pair, or the degenerate pair when metadata is missing."""
    if meta is None:
        exif = ExifRow(image_id=image.id, datetime_original=library_file.file_created_time)
        iptc = IptcRow(image_id=image.id)
    else:
        exif = ExifRow(image_id=image.id, **read_columns(meta, EXIF_COLUMNS))
        iptc = IptcRow(image_id=image.id, **read_columns(meta, IPTC_COLUMNS))
    session.add_all([exif, iptc])
    session.flush()
    return exif, iptc


def ingest_file(session: Session, file: LibraryFile) -> ImageRow:
    library_file = insert_library_file(session, file)
    meta = _open_metadata_or_none(file.path)
    image = insert_image(session, library_file, meta)
    insert_metadata(session, image, library_file, meta)
    return image


def ingest_directory(root: str | Path, session: Session) -> IngestResult:
    """Scan a directory and catalog every image file in one transaction."""
    logger.info("Ingest: scanning %s", root)
    try:
        files = scan_directory(root)
    except DirectoryScanError as exc:
        logger.warning("Ingest: %s", exc)
        return IngestResult(
            directory=exc.directory, status=IngestStatus.scan_failed, error=exc.reason
        )

    directory = normalize_directory(root)
    if not files:
        logger.info("Ingest: no image files in %s", directory)
        return IngestResult(directory=directory, status=IngestStatus.empty)

    try:
        for file in files:
            ingest_file(session, file)
        session.commit()
    except Exception:
        session.rollback()
        logger.error("Ingest: rolled back %s", directory)
        raise
    logger.info("Ingest: catalogued %d files from %s", len(files), directory)
    return IngestResult(
        directory=directory, status=IngestStatus.ingested, ingested=len(files)
    )


def has_images_for_path(session: Session, directory: str | Path) -> bool:
    count = session.scalar(
        select(func.count())
        .select_from(LibraryFileRow)
        .where(LibraryFileRow.parent_path == normalize_directory(directory))
    )
    return bool(count)
