from __future__ import annotations


class CatalogError(Exception):
    """Base class for catalog failures raised by photo_catalog."""


class DirectoryScanError(CatalogError):
    """The directory to ingest could not be listed."""

    def __init__(self, directory: str, reason: str) -> None:
        super().__init__(f"Cannot scan {directory}: {reason}")
        self.directory = directory
        self.reason = reason


class MetadataUnavailable(CatalogError):
    """A file carries no readable embedded metadata."""


class ImageNotFoundError(CatalogError, LookupError):
    def __init__(self, image_path: str) -> None:
        super().__init__(f"No image catalogued at {image_path}")
        self.image_path = image_path


class InvalidSortError(CatalogError, ValueError):
    pass
