"""
Seed demo projects and subscription plans into the backend database.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio.config import get_settings
from portfolio.db import SqlDbClient
from portfolio.seed import seed_demo_data

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the portfolio database")
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="SQLAlchemy URL; defaults to DATABASE_URL from the environment",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    database_url = args.database_url or get_settings().database_url
    if not database_url:
        logger.error("No database URL given and DATABASE_URL is not set")
        return 1

    db = SqlDbClient(database_url)
    projects_added, plans_added = seed_demo_data(db)
    if not (projects_added or plans_added):
        logger.info("Tables already contain data, nothing to seed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
