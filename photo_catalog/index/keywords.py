from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from photo_catalog.index.schema import TagRow
from photo_catalog.index.updates import resolve_image_id

logger = logging.getLogger(__name__)


def list_keywords(session: Session) -> list[str]:
    """Distinct tag names across the whole catalog."""
    return list(session.scalars(select(TagRow.tag_name).distinct().order_by(TagRow.tag_name)))


def add_keyword(session: Session, image_path: str, tag_name: str) -> TagRow:
    keyword = tag_name.strip()
    if not keyword:
        raise ValueError("Keyword is required")
    tag = TagRow(image_id=resolve_image_id(session, image_path), tag_name=keyword)
    session.add(tag)
    session.flush()
    return tag


def remove_keyword(session: Session, image_path: str, tag_name: str) -> int:
    """Delete every copy of ``tag_name`` on the image; returns the number removed."""
    keyword = tag_name.strip()
    image_id = resolve_image_id(session, image_path)
    result = session.execute(
        delete(TagRow).where(TagRow.image_id == image_id, TagRow.tag_name == keyword)
    )
    session.flush()
    removed = result.rowcount or 0
    if not removed:
        logger.debug("Keywords: %r not set on %s", keyword, image_path)
    return removed
