"""Load the demo accounts and the sample October 2024 week.

The accounts are upserted first: ``seed.sql`` finds the employee by email.
"""
from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from loguru import logger

from config import get_settings_module

from src.activity_tracker.activity_tracker.common.logging import setup_logger
from src.activity_tracker.activity_tracker.database.bootstrap import DEMO_ACCOUNTS, apply_seed_sql, ensure_demo_users
from src.activity_tracker.activity_tracker.database.connection import DBConfig


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    setup_logger(level=getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    ensure_demo_users(db_config)
    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")

    logger.info(f"Seeded {DBConfig.from_settings(db_config).describe()}")
    for email, _first, _last, _position, password, role in DEMO_ACCOUNTS:
        logger.info(f"  {role:<8} {email} / {password}")


if __name__ == "__main__":
    main()
