#!/usr/bin/env python
"""
Catalog the image files of one directory.

Usage:
  python scripts/ingest.py /absolute/path/to/photos
  DATABASE_URL=sqlite+pysqlite:///./photo_catalog.db python scripts/ingest.py ~/Pictures
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from photo_catalog.core.env import configure_logging, database_url, load_dotenv_if_present
from photo_catalog.core.models import IngestStatus
from photo_catalog.index import init_db, session_factory
from photo_catalog.ingest import ingest_directory


def main() -> int:
    parser = argparse.ArgumentParser(description="Catalog the images in a directory.")
    parser.add_argument("directory", type=Path, help="Directory containing photos (not recursed)")
    args = parser.parse_args()

    load_dotenv_if_present()
    configure_logging()
    engine = init_db(database_url())
    SessionLocal = session_factory(engine)

    with SessionLocal() as session:
        result = ingest_directory(args.directory, session)

    if result.status is IngestStatus.scan_failed:
        print(f"Could not read {result.directory}: {result.error}", file=sys.stderr)
        return 1
    if result.status is IngestStatus.empty:
        print(f"No supported photos found in {result.directory}")
    else:
        print(f"Ingest complete: {result.ingested} files catalogued from {result.directory}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
