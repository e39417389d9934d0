from __future__ import annotations

import importlib
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask
from loguru import logger

from config import get_settings_module

from .catalog.loader import load_catalog
from .common.logging import setup_logger
from .common.web import init_auth
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .database.connection import DBConfig
from .export.controller import register as register_export
from .timesheets.controller import register as register_timesheets
from .users.controller import register as register_users

REPO_ROOT = Path(__file__).resolve().parents[3]


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    """Build the Flask app.

    ``container`` lets tests inject in-memory repositories; when omitted the
    MySQL-backed container is built from the settings module.
    """
    load_dotenv(override=False)
    app = Flask(__name__, template_folder=str(REPO_ROOT / "templates"))

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    setup_logger(level=getattr(settings, "LOG_LEVEL", "INFO"), log_file=getattr(settings, "LOG_FILE", None))
    logger.info(f"settings={settings_module}")

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(f"db={DBConfig.from_settings(db_config).describe()}")

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info(f"schema ready (tables={len(list_tables(db_config))})")
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            secret_key=app.secret_key,
            catalog=load_catalog(getattr(settings, "CATALOG_PATH", None)),
            reset_max_age=int(getattr(settings, "RESET_TOKEN_MAX_AGE", 3600)),
        )

    init_auth(app, container.auth_service)
    register_users(app, container)
    register_timesheets(app, container)
    register_export(app, container)

    return app
