import logging
import os
import re
from pathlib import Path

import pytest
from PIL import Image
from PIL.TiffImagePlugin import IFDRational
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from photo_catalog.core.errors import DirectoryScanError
from photo_catalog.core.models import IngestStatus
from photo_catalog.index import ExifRow, ImageRow, IptcRow, LibraryFileRow
from photo_catalog.ingest import has_images_for_path, ingest_directory, pipeline, scan_directory
from photo_catalog.ingest.scanner import (
    RAW_IMAGE_EXTENSIONS,
    REGULAR_IMAGE_EXTENSIONS,
    SUPPORTED_EXTENSIONS,
    format_timestamp,
    is_image_file,
    is_raw_image,
)
from photo_catalog.search import query_images

ISO_MILLIS = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def _make_image(path: Path, with_exif: bool = False) -> None:
    img = Image.new("RGB", (10, 10), color="red")
    if with_exif:
        exif = Image.Exif()
        exif[36867] = "2021:01:02 03:04:05"
        exif[306] = "2021:01:02 03:04:05"  # fallback DateTime
        exif[271] = "TestMake"
        exif[272] = "TestModel"
        exif[33434] = IFDRational(1, 60)  # ExposureTime 1/60s
        exif[33437] = IFDRational(4, 1)  # FNumber f/4
        exif[34855] = 200  # ISO
        exif[42036] = "TestLens"
        img.save(path, exif=exif)
    else:
        img.save(path)


def _count(session, row_type) -> int:
    return session.scalar(select(func.count()).select_from(row_type))


def test_scan_directory_keeps_only_images(tmp_path: Path) -> None:
    _make_image(tmp_path / "a.jpg")
    _make_image(tmp_path / "b.PNG")
    (tmp_path / "c.NEF").write_bytes(b"raw sensor data")
    (tmp_path / "notes.txt").write_text("skip me")
    (tmp_path / "README").write_text("no extension")
    (tmp_path / "album.jpg").mkdir()

    files = scan_directory(tmp_path)

    assert [f.original_file_name for f in files] == ["a.jpg", "b.PNG", "c.NEF"]
    png = files[1]
    assert png.base_name == "b"
    assert png.extension == "PNG"
    assert png.path == str(tmp_path / "b.PNG")
    assert png.parent_path == str(tmp_path)
    assert ISO_MILLIS.match(png.file_created_time)
    assert ISO_MILLIS.match(png.file_modified_time)


def test_scan_directory_skips_unreadable_entry(tmp_path: Path) -> None:
    _make_image(tmp_path / "good.jpg")
    (tmp_path / "broken.jpg").symlink_to(tmp_path / "missing-target.jpg")

    files = scan_directory(tmp_path)

    assert [f.original_file_name for f in files] == ["good.jpg"]


def test_ingest_skips_file_name_that_is_not_utf8(tmp_path: Path, session, caplog) -> None:
    _make_image(tmp_path / "ok.jpg")
    try:
        with open(os.path.join(os.fsencode(tmp_path), b"caf\xe9.jpg"), "wb") as handle:
            handle.write(b"not really a jpeg")
    except OSError:
        pytest.skip("filesystem rejects non-UTF-8 file names")

    with caplog.at_level(logging.WARNING, logger="photo_catalog.ingest.scanner"):
        result = ingest_directory(tmp_path, session)

    assert result.status is IngestStatus.ingested
    assert result.ingested == 1
    assert [row.original_file_name for row in session.scalars(select(LibraryFileRow))] == ["ok.jpg"]
    assert "not valid UTF-8" in caplog.text


def test_scan_directory_missing_raises(tmp_path: Path) -> None:
    with pytest.raises(DirectoryScanError) as excinfo:
        scan_directory(tmp_path / "nope")
    assert excinfo.value.directory == str(tmp_path / "nope")


def test_extension_predicates() -> None:
    assert is_raw_image("IMG_0001.CR2")
    assert is_image_file("holiday.jpe")
    assert is_image_file("/photos/scan.TIFF")
    assert not is_image_file("README")
    assert not is_image_file("movie.mp4")
    assert SUPPORTED_EXTENSIONS == REGULAR_IMAGE_EXTENSIONS | RAW_IMAGE_EXTENSIONS


def test_format_timestamp_has_millisecond_precision() -> None:
    assert format_timestamp(0) == "1970-01-01T00:00:00.000Z"
    assert format_timestamp(1.2345) == "1970-01-01T00:00:01.234Z"


def test_ingest_directory_writes_all_tables(tmp_path: Path, session) -> None:
    _make_image(tmp_path / "with_exif.jpg", with_exif=True)
    _make_image(tmp_path / "plain.png")
    (tmp_path / "raw.nef").write_bytes(b"not really a raw file")
    (tmp_path / "ignore.txt").write_text("skip me")

    result = ingest_directory(tmp_path, session)

    assert result.status is IngestStatus.ingested
    assert result.ingested == 3
    assert _count(session, LibraryFileRow) == 3
    assert _count(session, ImageRow) == 3
    assert _count(session, ExifRow) == 3
    assert _count(session, IptcRow) == 3

    records = query_images(session, str(tmp_path))
    assert len(records) == 3

    with_exif = session.scalar(
        select(LibraryFileRow).where(LibraryFileRow.original_file_name == "with_exif.jpg")
    )
    assert with_exif.image.capture_time == "2021-01-02T03:04:05.000Z"
    assert with_exif.image.exif.camera_make == "TestMake"
    assert with_exif.image.exif.exposure_time == "1/60"
    assert with_exif.image.exif.f_number == "4"
    assert with_exif.image.exif.iso_speed == "200"
    assert with_exif.image.exif.artist is None
    assert with_exif.image.iptc is not None
    assert with_exif.image.iptc.city is None


def test_ingest_falls_back_when_metadata_is_missing(tmp_path: Path, session) -> None:
    _make_image(tmp_path / "plain.png")
    (tmp_path / "corrupt.jpg").write_bytes(b"\xff\xd8 truncated")

    ingest_directory(tmp_path, session)

    for library_file in session.scalars(select(LibraryFileRow)).all():
        image = library_file.image
        assert image.capture_time == library_file.file_created_time
        assert image.rating == 0
        assert image.flag == "unpicked"
        assert image.color_label == "none"
        assert image.exif.datetime_original == library_file.file_created_time
        assert image.exif.camera_make is None
        assert image.iptc.image_id == image.id


def test_ingest_empty_directory_reports_empty(tmp_path: Path, session) -> None:
    (tmp_path / "notes.txt").write_text("nothing to see")

    result = ingest_directory(tmp_path, session)

    assert result.status is IngestStatus.empty
    assert result.ingested == 0
    assert _count(session, LibraryFileRow) == 0


def test_ingest_unreadable_directory_reports_scan_failure(tmp_path: Path, session, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="photo_catalog.ingest.pipeline"):
        result = ingest_directory(tmp_path / "missing", session)

    assert result.status is IngestStatus.scan_failed
    assert result.error
    assert any("Cannot scan" in message for message in caplog.messages)


def test_ingest_rolls_back_the_whole_directory(tmp_path: Path, session, monkeypatch) -> None:
    for name in ("a.jpg", "b.jpg", "c.jpg"):
        _make_image(tmp_path / name)
    original = pipeline.insert_metadata
    calls = {"n": 0}

    def failing_insert(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("store went away")
        return original(*args, **kwargs)

    monkeypatch.setattr(pipeline, "insert_metadata", failing_insert)

    with pytest.raises(RuntimeError):
        ingest_directory(tmp_path, session)

    assert _count(session, LibraryFileRow) == 0
    assert _count(session, ImageRow) == 0


def test_reingest_violates_unique_path_and_keeps_first_ingest(tmp_path: Path, session) -> None:
    _make_image(tmp_path / "a.jpg")
    _make_image(tmp_path / "b.jpg")
    ingest_directory(tmp_path, session)

    with pytest.raises(IntegrityError):
        ingest_directory(tmp_path, session)

    assert _count(session, LibraryFileRow) == 2
    assert len(query_images(session, str(tmp_path))) == 2


def test_has_images_for_path(tmp_path: Path, session) -> None:
    _make_image(tmp_path / "a.jpg")
    assert not has_images_for_path(session, tmp_path)

    ingest_directory(tmp_path, session)

    assert has_images_for_path(session, tmp_path)
    assert has_images_for_path(session, f"{tmp_path}/")
    assert not has_images_for_path(session, tmp_path / "elsewhere")
