from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Iterable, Mapping

from ..common.datetime_utils import parse_iso_date
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import DayRecord
from .repository import MonthlyDataRepository


def _load_document(raw: Any) -> dict:
    if raw is None:
        return {}
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        raw = json.loads(raw) if raw.strip() else {}
    return dict(raw)


def _to_records(document: Mapping[str, Any]) -> dict[str, DayRecord]:
    return {key: DayRecord.from_dict(parse_iso_date(key), value) for key, value in document.items()}


class MySQLMonthlyDataRepository(MonthlyDataRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_month(self, user_id: int, year: int, month: int) -> dict[str, DayRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT data FROM monthly_data WHERE user_id=%s AND year=%s AND month=%s",
                (user_id, year, month),
            )
            row = fetchone(cur)
            if not row:
                return {}
            return _to_records(_load_document(row["data"]))

    def save_month(self, user_id: int, year: int, month: int, days: Mapping[str, DayRecord]) -> None:
        self.save_months(user_id, {(year, month): days})

    def save_months(self, user_id: int, months: Mapping[tuple[int, int], Mapping[str, DayRecord]]) -> None:
        now = datetime.now()
        with db_cursor(self._conn_factory) as (_, cur):
            for (year, month), days in months.items():
                cur.execute(
                    "SELECT data FROM monthly_data WHERE user_id=%s AND year=%s AND month=%s FOR UPDATE",
                    (user_id, year, month),
                )
                row = fetchone(cur)
                document = _load_document(row["data"]) if row else {}
                for key, record in days.items():
                    document[key] = record.to_dict()

                cur.execute(
                    """
                    INSERT INTO monthly_data(user_id, year, month, data, updated_at)
                    VALUES(%s,%s,%s,%s,%s)
                    ON DUPLICATE KEY UPDATE data=VALUES(data), updated_at=VALUES(updated_at)
                    """,
                    (user_id, year, month, json.dumps(document, ensure_ascii=False, sort_keys=True), now),
                )

    def list_for_user(self, user_id: int) -> Iterable[tuple[int, int, dict[str, DayRecord]]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT year, month, data FROM monthly_data WHERE user_id=%s ORDER BY year, month",
                (user_id,),
            )
            rows = fetchall(cur)
        return [(int(r["year"]), int(r["month"]), _to_records(_load_document(r["data"]))) for r in rows]
