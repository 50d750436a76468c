from __future__ import annotations

import pytest

from photo_catalog.index import ImageRow, LibraryFileRow, TagRow, init_db, session_factory

DESKTOP = "/Users/fancy-name/Desktop"
PICTURES = "/Users/fancy-name/Pictures"

# (file name, rating, flag, color label)
DESKTOP_IMAGES = [
    ("abc.jpg", 0, "unpicked", "none"),
    ("b.jpg", 1, "unpicked", "none"),
    ("c.jpg", 0, "rejected", "none"),
    ("d.jpg", 1, "picked", "red"),
    ("e.jpg", 3, "picked", "green"),
    ("f.jpg", 4, "picked", "green"),
    ("g.jpg", 5, "rejected", "green"),
    ("h.jpg", 2, "picked", "green"),
    ("i.jpg", 2, "unpicked", "none"),
    ("j.jpg", 3, "unpicked", "blue"),
    ("k.jpg", 4, "picked", "blue"),
    ("l.jpg", 5, "unpicked", "red"),
    ("m.jpg", 2, "rejected", "yellow"),
    ("n.jpg", 3, "unpicked", "none"),
    ("o.jpg", 4, "picked", "none"),
    ("p.jpg", 2, "unpicked", "purple"),
]

DESKTOP_TAGS = {
    "abc.jpg": ["travel", "nature"],
    "e.jpg": ["nature"],
    "f.jpg": ["family", "beach", "nature"],
    "k.jpg": ["city"],
}


def add_catalog_image(
    session,
    directory: str,
    name: str,
    *,
    rating: int = 0,
    flag: str = "unpicked",
    color_label: str = "none",
    capture_time: str = "2023-01-01T10:00:00.000Z",
    tags: list[str] | None = None,
) -> ImageRow:
    base_name, _, extension = name.rpartition(".")
    library_file = LibraryFileRow(
        original_file_name=name,
        base_name=base_name,
        extension=extension,
        file_created_time="2023-01-01T09:00:00.000Z",
        file_modified_time="2023-01-01T09:30:00.000Z",
        path=f"{directory}/{name}",
        parent_path=directory,
    )
    image = ImageRow(
        library_file=library_file,
        rating=rating,
        flag=flag,
        color_label=color_label,
        capture_time=capture_time,
    )
    image.tags = [TagRow(tag_name=tag) for tag in tags or []]
    session.add_all([library_file, image])
    return image


def seed_catalog(session) -> None:
    for index, (name, rating, flag, color_label) in enumerate(DESKTOP_IMAGES, start=1):
        add_catalog_image(
            session,
            DESKTOP,
            name,
            rating=rating,
            flag=flag,
            color_label=color_label,
            capture_time=f"2023-01-{index:02d}T10:00:00.000Z",
            tags=DESKTOP_TAGS.get(name),
        )
    add_catalog_image(session, PICTURES, "x.jpg", rating=5, tags=["nature"])
    add_catalog_image(session, PICTURES, "y.jpg", rating=5, flag="picked", color_label="green")
    session.flush()


@pytest.fixture
def session():
    engine = init_db("sqlite+pysqlite:///:memory:")
    SessionLocal = session_factory(engine)
    with SessionLocal() as session:
        yield session


@pytest.fixture
def catalog(session):
    """Session over the 16-image desktop fixture plus two images elsewhere."""
    seed_catalog(session)
    session.commit()
    return session
