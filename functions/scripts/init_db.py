"""
Create the starter tables (posts, settings, users, comments) in DATABASE_URL.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from vibeflare.config import get_settings
from vibeflare.db import create_database_engine
from vibeflare.schema import create_starter_tables

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Create starter CMS tables")
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="SQLAlchemy URL (defaults to DATABASE_URL)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    database_url = args.database_url or get_settings().database_url
    if not database_url:
        logger.error("No database configured; pass --database-url or set DATABASE_URL")
        return 1

    engine = create_database_engine(database_url)
    try:
        tables = create_starter_tables(engine)
    finally:
        engine.dispose()
    logger.info("Starter tables ready: %s", ", ".join(tables))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
