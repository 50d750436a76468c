from __future__ import annotations

from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Integer,
    MetaData,
    String,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    relationship,
    sessionmaker,
)

from photo_catalog.core.env import store_timeout

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=convention)


class LibraryFileRow(Base):
    __tablename__ = "library_file"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    original_file_name: Mapped[str] = mapped_column(String, nullable=False)
    base_name: Mapped[str] = mapped_column(String, nullable=False)
    extension: Mapped[str] = mapped_column(String, nullable=False)
    file_created_time: Mapped[str] = mapped_column(String, nullable=False)
    file_modified_time: Mapped[str] = mapped_column(String, nullable=False)
    path: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    parent_path: Mapped[str] = mapped_column(String, nullable=False, index=True)

    image: Mapped[Optional["ImageRow"]] = relationship(
        back_populates="library_file", cascade="all, delete-orphan", uselist=False
    )


class ImageRow(Base):
    __tablename__ = "image"
    __table_args__ = (
        CheckConstraint("rating >= 0", name="rating_non_negative"),
        CheckConstraint("flag IN ('unpicked', 'picked', 'rejected')", name="flag_value"),
        CheckConstraint(
            "color_label IN ('none', 'red', 'yellow', 'green', 'blue', 'purple')",
            name="color_label_value",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    library_file_id: Mapped[int] = mapped_column(
        ForeignKey("library_file.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    flag: Mapped[str] = mapped_column(String, nullable=False, default="unpicked")
    color_label: Mapped[str] = mapped_column(String, nullable=False, default="none")
    capture_time: Mapped[str] = mapped_column(String, nullable=False)

    library_file: Mapped[LibraryFileRow] = relationship(back_populates="image")
    exif: Mapped[Optional["ExifRow"]] = relationship(
        back_populates="image", cascade="all, delete-orphan", uselist=False
    )
    iptc: Mapped[Optional["IptcRow"]] = relationship(
        back_populates="image", cascade="all, delete-orphan", uselist=False
    )
    tags: Mapped[list["TagRow"]] = relationship(
        back_populates="image", cascade="all, delete-orphan"
    )


class ExifRow(Base):
    """Sparse EXIF attributes; the columns mirror ``tag_reader.EXIF_COLUMNS``."""

    __tablename__ = "exif"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    image_id: Mapped[int] = mapped_column(
        ForeignKey("image.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    camera_make: Mapped[Optional[str]] = mapped_column(String)
    camera_model: Mapped[Optional[str]] = mapped_column(String)
    exposure_time: Mapped[Optional[str]] = mapped_column(String)
    f_number: Mapped[Optional[str]] = mapped_column(String)
    exposure_program: Mapped[Optional[str]] = mapped_column(String)
    iso_speed: Mapped[Optional[str]] = mapped_column(String)
    exif_version: Mapped[Optional[str]] = mapped_column(String)
    datetime_original: Mapped[Optional[str]] = mapped_column(String)
    offset_time_original: Mapped[Optional[str]] = mapped_column(String)
    shutter_speed: Mapped[Optional[str]] = mapped_column(String)
    aperture_value: Mapped[Optional[str]] = mapped_column(String)
    brightness_value: Mapped[Optional[str]] = mapped_column(String)
    metering_mode: Mapped[Optional[str]] = mapped_column(String)
    flash: Mapped[Optional[str]] = mapped_column(String)
    exposure_mode: Mapped[Optional[str]] = mapped_column(String)
    white_balance: Mapped[Optional[str]] = mapped_column(String)
    focal_length: Mapped[Optional[str]] = mapped_column(String)
    focal_length_in_35mm_film: Mapped[Optional[str]] = mapped_column(String)
    sharpness: Mapped[Optional[str]] = mapped_column(String)
    lens_specification: Mapped[Optional[str]] = mapped_column(String)
    lens_make: Mapped[Optional[str]] = mapped_column(String)
    lens_model: Mapped[Optional[str]] = mapped_column(String)
    body_serial_number: Mapped[Optional[str]] = mapped_column(String)
    saturation: Mapped[Optional[str]] = mapped_column(String)
    contrast: Mapped[Optional[str]] = mapped_column(String)
    gps_latitude: Mapped[Optional[str]] = mapped_column(String)
    gps_latitude_ref: Mapped[Optional[str]] = mapped_column(String)
    gps_longitude: Mapped[Optional[str]] = mapped_column(String)
    gps_longitude_ref: Mapped[Optional[str]] = mapped_column(String)
    gps_altitude: Mapped[Optional[str]] = mapped_column(String)
    gps_timestamp: Mapped[Optional[str]] = mapped_column(String)
    gps_status: Mapped[Optional[str]] = mapped_column(String)
    artist: Mapped[Optional[str]] = mapped_column(String)

    image: Mapped[ImageRow] = relationship(back_populates="exif")


class IptcRow(Base):
    __tablename__ = "iptc"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    image_id: Mapped[int] = mapped_column(
        ForeignKey("image.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    copyright: Mapped[Optional[str]] = mapped_column(String)
    city: Mapped[Optional[str]] = mapped_column(String)
    creator: Mapped[Optional[str]] = mapped_column(String)
    country_iso_code: Mapped[Optional[str]] = mapped_column(String)
    country_name: Mapped[Optional[str]] = mapped_column(String)
    description: Mapped[Optional[str]] = mapped_column(String)

    image: Mapped[ImageRow] = relationship(back_populates="iptc")


class TagRow(Base):
    __tablename__ = "tag"

    # No uniqueness on (image_id, tag_name); remove_keyword deletes every copy.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    image_id: Mapped[int] = mapped_column(
        ForeignKey("image.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tag_name: Mapped[str] = mapped_column(String, nullable=False)

    image: Mapped[ImageRow] = relationship(back_populates="tags")


def _enable_sqlite_foreign_keys(dbapi_connection: object, _: object) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _timeout_connect_args(database_url: str, timeout: float) -> dict:
    if database_url.startswith("sqlite"):
        return {"timeout": timeout}
    if database_url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={int(timeout * 1000)}"}
    return {}


def create_engine_from_url(database_url: str, timeout: float | None = None) -> Engine:
    """Create an engine whose store calls give up after ``timeout`` seconds."""
    timeout = store_timeout() if timeout is None else timeout
    engine = create_engine(
        database_url,
        future=True,
        connect_args=_timeout_connect_args(database_url, timeout),
    )
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_db(database_url: str | Engine) -> Engine:
    engine = (
        database_url if isinstance(database_url, Engine) else create_engine_from_url(database_url)
    )
    Base.metadata.create_all(engine)
    return engine


def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False, class_=Session, future=True)
