from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable

from loguru import logger
from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig

# email, first name, last name, position, password, role
DEMO_ACCOUNTS = (
    ("admin@example.com", "Admin", "Demo", "Manager", "admin123", "admin"),
    ("jean.dupont@example.com", "Jean", "Dupont", "Développeur Senior", "employee123", "employee"),
    ("marie.martin@example.com", "Marie", "Martin", "Consultant", "employee123", "employee"),
)


def _connect(db_config: dict, *, with_database: bool = True):
    return DatabaseConnection.for_config(DBConfig.from_settings(db_config)).connect(with_database=with_database)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema/seed files (handles ';' inside quotes).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_sql_file(db_config: dict, path: str | Path) -> None:
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_settings(db_config)
    conn = _connect(db_config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    _exec_sql_file(db_config, schema_path)
    logger.info(f"Schema applied from {schema_path}")


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _exec_sql_file(db_config, seed_path)
    logger.info(f"Seed applied from {seed_path}")


def ensure_demo_users(db_config: dict) -> None:
    """Create (or reset) the demo admin and employee accounts."""
    conn = _connect(db_config)
    try:
        cur = conn.cursor(dictionary=True)

        def upsert_user(email: str, first_name: str, last_name: str, position: str, password: str, role: str) -> None:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
            existing = cur.fetchone()
            if existing:
                cur.execute(
                    """
                    UPDATE users
                    SET first_name=%s, last_name=%s, position=%s, password_hash=%s, role=%s, is_active=1
                    WHERE email=%s
                    """,
                    (first_name, last_name, position, password_hash, role, email),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (email, first_name, last_name, position, password_hash, role)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (email, first_name, last_name, position, password_hash, role),
                )

        for account in DEMO_ACCOUNTS:
            upsert_user(*account)

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
