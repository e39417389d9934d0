from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, email, first_name, last_name, position, role, password_hash, is_active, created_at"


def _to_user(row: dict[str, Any]) -> User:
    return User(
        user_id=int(row["user_id"]),
        email=row["email"],
        first_name=row.get("first_name") or "",
        last_name=row.get("last_name") or "",
        position=row.get("position"),
        role=Role(row["role"]),
        password_hash=row["password_hash"],
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (user_id,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email.lower(),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create_user(
        self,
        *,
        email: str,
        first_name: str,
        last_name: str,
        position: str,
        password_hash: str,
        role: Role,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(email, first_name, last_name, position, role, password_hash, is_active, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,1,%s)
                """,
                (email.lower(), first_name, last_name, position, role.value, password_hash, datetime.now()),
            )
            return int(cur.lastrowid)

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, user_id))
            return cur.rowcount > 0

    def update_password_hash(self, user_id: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET password_hash=%s WHERE user_id=%s", (password_hash, user_id))
            return cur.rowcount > 0

    def list_all(self, *, role: Optional[Role] = None) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            if role is None:
                cur.execute(f"SELECT {_COLUMNS} FROM users ORDER BY last_name, first_name")
            else:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM users WHERE role=%s ORDER BY last_name, first_name",
                    (role.value,),
                )
            return [_to_user(r) for r in fetchall(cur)]
