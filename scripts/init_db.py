"""Create the database and its tables (``database/schema.sql``).

    python scripts/init_db.py [--env testing] [--seed]
"""
from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from loguru import logger

from config import get_settings_module

from src.activity_tracker.activity_tracker.common.logging import setup_logger
from src.activity_tracker.activity_tracker.database.bootstrap import (
    apply_schema,
    apply_seed_sql,
    ensure_demo_users,
    list_tables,
)
from src.activity_tracker.activity_tracker.database.connection import DBConfig


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--env", help="settings module suffix (development, production, testing)")
    parser.add_argument("--seed", action="store_true", help="also create the demo accounts and sample week")
    args = parser.parse_args(argv)

    settings = importlib.import_module(f"config.{args.env}" if args.env else get_settings_module())
    setup_logger(level=getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)
    target = DBConfig.from_settings(db_config).describe()

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    logger.info(f"{target}: tables {', '.join(sorted(list_tables(db_config)))}")

    if args.seed:
        ensure_demo_users(db_config)
        apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
        logger.info(f"{target}: demo data loaded")


if __name__ == "__main__":
    main()
