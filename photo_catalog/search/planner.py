from __future__ import annotations

from typing import Optional

from photo_catalog.core.errors import InvalidSortError
from photo_catalog.core.models import CatalogQuery, ImageFilter, SortDirection, SortKey
from photo_catalog.ingest.scanner import normalize_directory


def _parse_sort_key(value: SortKey | str) -> SortKey:
    try:
        return SortKey(value)
    except ValueError:
        raise InvalidSortError(f"Unknown sort key: {value!r}") from None


def _parse_direction(value: SortDirection | str) -> SortDirection:
    if isinstance(value, SortDirection):
        return value
    if not isinstance(value, str):
        raise InvalidSortError(f"Sort direction must be 'asc' or 'desc', got {value!r}")
    try:
        return SortDirection(value.strip().lower())
    except ValueError:
        raise InvalidSortError(f"Sort direction must be 'asc' or 'desc', got {value!r}") from None


def plan_query(
    parent_path: str,
    image_filter: Optional[ImageFilter] = None,
    sort_key: SortKey | str = SortKey.default,
    sort_direction: SortDirection | str = SortDirection.asc,
) -> CatalogQuery:
    """Validate listing arguments; only allow-listed sort keys reach the SQL."""
    return CatalogQuery(
        parent_path=normalize_directory(parent_path),
        filter=image_filter or ImageFilter(),
        sort_key=_parse_sort_key(sort_key),
        sort_direction=_parse_direction(sort_direction),
    )
