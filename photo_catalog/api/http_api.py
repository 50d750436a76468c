from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from photo_catalog.core.env import configure_logging, database_url, load_dotenv_if_present
from photo_catalog.core.errors import ImageNotFoundError, InvalidSortError
from photo_catalog.core.models import (
    ColorLabel,
    Flag,
    ImageFilter,
    IngestStatus,
    SortDirection,
    SortKey,
)
from photo_catalog.index import (
    add_keyword,
    init_db,
    list_keywords,
    remove_keyword,
    session_factory,
    update_color_label,
    update_flag,
    update_rating,
)
from photo_catalog.ingest import has_images_for_path, ingest_directory
from photo_catalog.search import query_images

app = FastAPI(title="Photo Catalog API")

load_dotenv_if_present()
configure_logging()

DATABASE_URL = database_url()
engine = init_db(DATABASE_URL)
SessionLocal = session_factory(engine)


class IngestRequest(BaseModel):
    directory: str


class KeywordRequest(BaseModel):
    image_path: str
    tag: str


class RatingUpdate(BaseModel):
    image_path: str
    rating: int = Field(ge=0)


class FlagUpdate(BaseModel):
    image_path: str
    flag: Flag


class ColorLabelUpdate(BaseModel):
    image_path: str
    color_label: ColorLabel


def get_session() -> Session:
    with SessionLocal() as session:
        yield session


def _not_found(exc: ImageNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/images/exists")
def images_exist(path: str, session: Session = Depends(get_session)) -> dict:
    return {"path": path, "has_images": has_images_for_path(session, path)}


@app.post("/ingest")
def ingest(req: IngestRequest, session: Session = Depends(get_session)) -> dict:
    result = ingest_directory(req.directory, session)
    if result.status is IngestStatus.scan_failed:
        raise HTTPException(status_code=400, detail=f"Cannot scan {result.directory}: {result.error}")
    return result.model_dump(mode="json")


@app.get("/images")
def list_images(
    path: str,
    min_rating: int = Query(0, ge=0),
    flag: Optional[Flag] = None,
    color_label: Optional[ColorLabel] = None,
    sort: str = SortKey.default.value,
    order: str = SortDirection.asc.value,
    session: Session = Depends(get_session),
) -> dict:
    image_filter = ImageFilter(min_rating=min_rating, flag=flag, color_label=color_label)
    try:
        records = query_images(session, path, image_filter, sort, order)
    except InvalidSortError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"images": [record.model_dump(mode="json") for record in records]}


@app.get("/keywords")
def keywords(session: Session = Depends(get_session)) -> dict:
    return {"keywords": list_keywords(session)}


@app.post("/keywords")
def create_keyword(req: KeywordRequest, session: Session = Depends(get_session)) -> dict:
    try:
        add_keyword(session, req.image_path, req.tag)
    except ImageNotFoundError as exc:
        raise _not_found(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    session.commit()
    return {"image_path": req.image_path, "tag": req.tag.strip()}


@app.delete("/keywords")
def delete_keyword(req: KeywordRequest, session: Session = Depends(get_session)) -> dict:
    try:
        removed = remove_keyword(session, req.image_path, req.tag)
    except ImageNotFoundError as exc:
        raise _not_found(exc) from exc
    session.commit()
    return {"image_path": req.image_path, "tag": req.tag.strip(), "removed": removed}


@app.put("/images/rating")
def set_rating(req: RatingUpdate, session: Session = Depends(get_session)) -> dict:
    try:
        image = update_rating(session, req.image_path, req.rating)
    except ImageNotFoundError as exc:
        raise _not_found(exc) from exc
    session.commit()
    return {"image_path": req.image_path, "rating": image.rating}


@app.put("/images/flag")
def set_flag(req: FlagUpdate, session: Session = Depends(get_session)) -> dict:
    try:
        image = update_flag(session, req.image_path, req.flag)
    except ImageNotFoundError as exc:
        raise _not_found(exc) from exc
    session.commit()
    return {"image_path": req.image_path, "flag": image.flag}


@app.put("/images/color-label")
def set_color_label(req: ColorLabelUpdate, session: Session = Depends(get_session)) -> dict:
    try:
        image = update_color_label(session, req.image_path, req.color_label)
    except ImageNotFoundError as exc:
        raise _not_found(exc) from exc
    session.commit()
    return {"image_path": req.image_path, "color_label": image.color_label}
