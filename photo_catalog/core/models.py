from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Flag(str, Enum):
    unpicked = "unpicked"
    picked = "picked"
    rejected = "rejected"


class ColorLabel(str, Enum):
    none = "none"
    red = "red"
    yellow = "yellow"
    green = "green"
    blue = "blue"
    purple = "purple"


class SortKey(str, Enum):
    """Columns a catalog listing may be ordered by."""

    default = "default"
    capture_time = "capture_time"
    file_created_time = "file_created_time"
    file_modified_time = "file_modified_time"
    original_file_name = "original_file_name"
    base_name = "base_name"
    extension = "extension"
    rating = "rating"
    flag = "flag"
    color_label = "color_label"


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"


class IngestStatus(str, Enum):
    ingested = "ingested"
    empty = "empty"
    scan_failed = "scan_failed"


class LibraryFile(BaseModel):
    original_file_name: str
    base_name: str
    extension: str
    file_created_time: str
    file_modified_time: str
    path: str
    parent_path: str


class ImageRecord(BaseModel):
    original_file_name: str
    base_name: str
    extension: str
    file_created_time: str
    file_modified_time: str
    path: str
    parent_path: str
    rating: int
    flag: Flag
    color_label: ColorLabel
    capture_time: str
    tags: list[str] = Field(default_factory=list)


class ImageFilter(BaseModel):
    """Listing filter; ``None`` on flag or color label means no restriction."""

    min_rating: int = Field(default=0, ge=0)
    flag: Optional[Flag] = None
    color_label: Optional[ColorLabel] = None

    @classmethod
    def from_sentinels(
        cls, rating: int = 0, flag: str = "unpicked", color_label: str = "none"
    ) -> "ImageFilter":
        """
        Build a filter from UI-style values.

        ``"unpicked"`` and ``"none"`` are read as "don't care", so a caller using
        this form cannot ask for unpicked or unlabeled images specifically.
        """
        flag_value = Flag(flag)
        label_value = ColorLabel(color_label)
        return cls(
            min_rating=rating,
            flag=None if flag_value is Flag.unpicked else flag_value,
            color_label=None if label_value is ColorLabel.none else label_value,
        )


class CatalogQuery(BaseModel):
    parent_path: str
    filter: ImageFilter = Field(default_factory=ImageFilter)
    sort_key: SortKey = SortKey.default
    sort_direction: SortDirection = SortDirection.asc


class IngestResult(BaseModel):
    directory: str
    status: IngestStatus
    ingested: int = 0
    error: Optional[str] = None
