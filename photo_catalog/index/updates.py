from __future__ import annotations

import os

from sqlalchemy import select
from sqlalchemy.orm import Session

from photo_catalog.core.errors import ImageNotFoundError
from photo_catalog.core.models import ColorLabel, Flag
from photo_catalog.index.schema import ImageRow, LibraryFileRow


def resolve_image_id(session: Session, image_path: str) -> int:
    """Look up the image id for a catalogued file path."""
    path = os.path.abspath(os.path.expanduser(image_path))
    image_id = session.scalar(
        select(ImageRow.id)
        .join(LibraryFileRow, ImageRow.library_file_id == LibraryFileRow.id)
        .where(LibraryFileRow.path == path)
    )
    if image_id is None:
        raise ImageNotFoundError(image_path)
    return image_id


def _load_image(session: Session, image_path: str) -> ImageRow:
    image = session.get(ImageRow, resolve_image_id(session, image_path))
    if image is None:
        raise ImageNotFoundError(image_path)
    return image


def update_rating(session: Session, image_path: str, rating: int) -> ImageRow:
    if rating < 0:
        raise ValueError("Rating must be zero or greater")
    image = _load_image(session, image_path)
    image.rating = rating
    session.flush()
    return image


def update_flag(session: Session, image_path: str, flag: Flag | str) -> ImageRow:
    image = _load_image(session, image_path)
    image.flag = Flag(flag).value
    session.flush()
    return image


def update_color_label(
    session: Session, image_path: str, color_label: ColorLabel | str
) -> ImageRow:
    image = _load_image(session, image_path)
    image.color_label = ColorLabel(color_label).value
    session.flush()
    return image
