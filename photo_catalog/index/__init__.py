"""Relational catalog layer for photo_catalog."""

from .keywords import add_keyword, list_keywords, remove_keyword
from .schema import (
    Base,
    ExifRow,
    ImageRow,
    IptcRow,
    LibraryFileRow,
    TagRow,
    create_engine_from_url,
    init_db,
    session_factory,
)
from .updates import resolve_image_id, update_color_label, update_flag, update_rating

__all__ = [
    "Base",
    "ExifRow",
    "ImageRow",
    "IptcRow",
    "LibraryFileRow",
    "TagRow",
    "add_keyword",
    "create_engine_from_url",
    "init_db",
    "list_keywords",
    "remove_keyword",
    "resolve_image_id",
    "session_factory",
    "update_color_label",
    "update_flag",
    "update_rating",
]
