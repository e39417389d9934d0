from __future__ import annotations

from typing import Iterable, Mapping, Protocol

from .model import DayRecord


class MonthlyDataRepository(Protocol):
    """Document store: one document per (user_id, year, month).

    Keys of a document are ISO dates (YYYY-MM-DD). Writes merge at date level:
    supplied dates replace the stored ones, the others are kept.
    """

    def get_month(self, user_id: int, year: int, month: int) -> dict[str, DayRecord]:
        raise NotImplementedError

    def save_month(self, user_id: int, year: int, month: int, days: Mapping[str, DayRecord]) -> None:
        raise NotImplementedError

    def save_months(self, user_id: int, months: Mapping[tuple[int, int], Mapping[str, DayRecord]]) -> None:
        """Write several month documents in one transaction."""

        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Iterable[tuple[int, int, dict[str, DayRecord]]]:
        raise NotImplementedError
