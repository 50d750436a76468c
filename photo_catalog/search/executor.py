from __future__ import annotations

import json
import logging
from typing import Optional

from sqlalchemy import JSON, ColumnElement, Select, func, select
from sqlalchemy.orm import Session

from photo_catalog.core.models import (
    CatalogQuery,
    ImageFilter,
    ImageRecord,
    SortDirection,
    SortKey,
)
from photo_catalog.index.schema import ImageRow, LibraryFileRow, TagRow

from .planner import plan_query

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    SortKey.capture_time: ImageRow.capture_time,
    SortKey.file_created_time: LibraryFileRow.file_created_time,
    SortKey.file_modified_time: LibraryFileRow.file_modified_time,
    SortKey.original_file_name: LibraryFileRow.original_file_name,
    SortKey.base_name: LibraryFileRow.base_name,
    SortKey.extension: LibraryFileRow.extension,
    SortKey.rating: ImageRow.rating,
    SortKey.flag: ImageRow.flag,
    SortKey.color_label: ImageRow.color_label,
}


def _tags_aggregate(dialect_name: str) -> ColumnElement:
    if dialect_name == "postgresql":
        return func.json_agg(TagRow.tag_name, type_=JSON)
    return func.json_group_array(TagRow.tag_name, type_=JSON)


def filter_conditions(parent_path: str, image_filter: ImageFilter) -> list[ColumnElement[bool]]:
    """Predicates for a listing; each expression carries its own bound value."""
    conditions: list[ColumnElement[bool]] = [
        LibraryFileRow.parent_path == parent_path,
        ImageRow.rating >= image_filter.min_rating,
    ]
    if image_filter.flag is not None:
        conditions.append(ImageRow.flag == image_filter.flag.value)
    if image_filter.color_label is not None:
        conditions.append(ImageRow.color_label == image_filter.color_label.value)
    return conditions


def build_statement(query: CatalogQuery, dialect_name: str = "sqlite") -> Select:
    stmt = (
        select(
            LibraryFileRow.original_file_name,
            LibraryFileRow.base_name,
            LibraryFileRow.extension,
            LibraryFileRow.file_created_time,
            LibraryFileRow.file_modified_time,
            LibraryFileRow.path,
            LibraryFileRow.parent_path,
            ImageRow.rating,
            ImageRow.flag,
            ImageRow.color_label,
            ImageRow.capture_time,
            _tags_aggregate(dialect_name).label("tags"),
        )
        .select_from(LibraryFileRow)
        .join(ImageRow, ImageRow.library_file_id == LibraryFileRow.id)
        .outerjoin(TagRow, TagRow.image_id == ImageRow.id)
        .where(*filter_conditions(query.parent_path, query.filter))
        .group_by(ImageRow.id, LibraryFileRow.id)
    )
    if query.sort_key is not SortKey.default:
        column = SORT_COLUMNS[query.sort_key]
        ordering = column.desc() if query.sort_direction is SortDirection.desc else column.asc()
        stmt = stmt.order_by(ordering, ImageRow.id)
    return stmt


def _decode_tags(raw: object) -> list[str]:
    if isinstance(raw, str):
        raw = json.loads(raw)
    # The left join yields a single null for untagged images.
    return sorted(tag for tag in raw or [] if tag is not None)


def execute_query(session: Session, query: CatalogQuery) -> list[ImageRecord]:
    stmt = build_statement(query, session.get_bind().dialect.name)
    records: list[ImageRecord] = []
    for row in session.execute(stmt):
        values = row._asdict()
        values["tags"] = _decode_tags(values.get("tags"))
        records.append(ImageRecord(**values))
    logger.debug("Query: %d images under %s", len(records), query.parent_path)
    return records


def query_images(
    session: Session,
    parent_path: str,
    image_filter: Optional[ImageFilter] = None,
    sort_key: SortKey | str = SortKey.default,
    sort_direction: SortDirection | str = SortDirection.asc,
) -> list[ImageRecord]:
    """List catalogued images in one directory, filtered and optionally sorted."""
    return execute_query(
        session, plan_query(parent_path, image_filter, sort_key, sort_direction)
    )
