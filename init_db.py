# init_db.py

import argparse
import logging

from delphi_api.config import settings
from delphi_api.core.logging import configure_logging
from delphi_api.db import models  # noqa: F401  registers every table on Base.metadata
from delphi_api.db.seed import seed_catalogue, seed_template
from delphi_api.db.session import Base, SessionLocal, engine

logger = logging.getLogger("init_db")


def init(seed: bool = True, template_owner: int = None):
    logger.info("Connecting to database...")
    logger.info("Creating tables (if not exist)...")
    Base.metadata.create_all(bind=engine)

    if seed:
        db = SessionLocal()
        try:
            seed_catalogue(db)
            if template_owner is not None:
                seed_template(db, template_owner)
        finally:
            db.close()

    logger.info("Done.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create tables and seed default data")
    parser.add_argument("--no-seed", action="store_true", help="only create tables")
    parser.add_argument("--template-owner", type=int, help="user id that owns the template protocol")
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL)
    init(seed=not args.no_seed, template_owner=args.template_owner)
