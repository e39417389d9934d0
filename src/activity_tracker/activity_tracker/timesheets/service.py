from __future__ import annotations

import calendar
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from loguru import logger

from ..catalog.model import DEFAULT_CATALOG, Catalog
from ..common.datetime_utils import to_iso, today_local
from ..core.enums import Weekday
from ..core.exceptions import AuthenticationError
from .model import AllocationRow, CalendarDay, DayRecord, MonthView, SessionDraft, WeekBounds, WeekView
from .reconciler import (
    apply_week,
    compute_week_bounds,
    day_records_to_rows,
    drop_blank_rows,
    flags_from_day_records,
    rows_to_day_records,
)
from .repository import MonthlyDataRepository

MONTH_VIEW_CACHE_SIZE = 256


@dataclass(frozen=True)
class SubmissionResult:
    bounds: WeekBounds
    days: dict[str, DayRecord]

    @property
    def filled_days(self) -> int:
        return sum(1 for d in self.days.values() if d.activities)


def blank_row() -> AllocationRow:
    return AllocationRow(client=None, activity=None, time_classification=None)


class TimesheetService:
    """Use case: load, edit and submit a week of allocations."""

    def __init__(
        self,
        monthly: MonthlyDataRepository,
        *,
        catalog: Catalog = DEFAULT_CATALOG,
        clock: Callable[[], date] = today_local,
        cache_size: int = MONTH_VIEW_CACHE_SIZE,
    ):
        self._monthly = monthly
        self._catalog = catalog
        self._today = clock
        self._cache_size = max(1, int(cache_size))
        # LRU of month calendars, per process
        self._month_views: OrderedDict[tuple[int, int, int], MonthView] = OrderedDict()

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    def new_draft(self, anchor: date) -> SessionDraft:
        return SessionDraft(anchor=anchor, rows=(blank_row(),))

    def load_week(self, *, user_id: int, anchor: Optional[date] = None, editing: bool = False) -> WeekView:
        anchor = anchor or self._today()
        bounds = compute_week_bounds(anchor)
        by_weekday = self._week_records(user_id, bounds)

        if editing:
            rows = day_records_to_rows(by_weekday, catalog=self._catalog)
            telework, restaurant = flags_from_day_records(by_weekday)
            draft = SessionDraft(
                anchor=anchor,
                rows=tuple(rows) or (blank_row(),),
                telework_by_weekday=telework,
                restaurant_by_weekday=restaurant,
                editing=True,
            )
        else:
            draft = self.new_draft(anchor)

        return WeekView(
            bounds=bounds,
            draft=draft,
            saved_days=tuple(by_weekday[d] for d in Weekday.ordered()),
            month=self.month_view(user_id=user_id, year=anchor.year, month=anchor.month),
        )

    def submit_week(self, *, user_id: Optional[int], draft: SessionDraft) -> SubmissionResult:
        """Validate the grid and replace the seven days of the week in the store.

        Nothing is written when validation fails; the draft is left untouched
        so the caller can show it again.
        """
        if not user_id:
            raise AuthenticationError("Utilisateur non authentifié")

        bounds = compute_week_bounds(draft.anchor)
        week_days = rows_to_day_records(
            drop_blank_rows(draft.rows),
            bounds.dates,
            draft.telework_by_weekday,
            draft.restaurant_by_weekday,
            catalog=self._catalog,
        )

        per_month: dict[tuple[int, int], dict[str, DayRecord]] = {}
        for key, record in week_days.items():
            per_month.setdefault((record.date.year, record.date.month), {})[key] = record

        updated: dict[tuple[int, int], dict[str, DayRecord]] = {}
        for (year, month), days in per_month.items():
            current = self._monthly.get_month(user_id, year, month)
            updated[(year, month)] = apply_week(current, days)

        self._monthly.save_months(user_id, updated)

        for (year, month), days in updated.items():
            self._remember((user_id, year, month), build_month_view(year, month, days))

        result = SubmissionResult(bounds=bounds, days=week_days)
        logger.info(
            f"Week {bounds.iso_year}-W{bounds.iso_week:02d} saved for user={user_id} "
            f"({result.filled_days} day(s) with activities)"
        )
        return result

    def month_view(self, *, user_id: int, year: int, month: int) -> MonthView:
        key = (user_id, year, month)
        view = self._month_views.get(key)
        if view is None:
            view = build_month_view(year, month, self._monthly.get_month(user_id, year, month))
        self._remember(key, view)
        return view

    def _remember(self, key: tuple[int, int, int], view: MonthView) -> None:
        self._month_views[key] = view
        self._month_views.move_to_end(key)
        while len(self._month_views) > self._cache_size:
            self._month_views.popitem(last=False)

    def _week_records(self, user_id: int, bounds: WeekBounds) -> dict[Weekday, DayRecord]:
        months: dict[tuple[int, int], dict[str, DayRecord]] = {}
        out: dict[Weekday, DayRecord] = {}
        for day, day_date in zip(Weekday.ordered(), bounds.dates):
            key = (day_date.year, day_date.month)
            if key not in months:
                months[key] = self._monthly.get_month(user_id, *key)
            out[day] = months[key].get(to_iso(day_date)) or DayRecord.empty(day_date)
        return out


def build_month_view(year: int, month: int, days: dict[str, DayRecord]) -> MonthView:
    first_weekday, days_in_month = calendar.monthrange(year, month)
    out = []
    for n in range(1, days_in_month + 1):
        current = date(year, month, n)
        record = days.get(to_iso(current)) or DayRecord.empty(current)
        out.append(
            CalendarDay(
                date=current,
                is_weekend=current.weekday() >= 5,
                values=tuple(a.value for a in record.activities),
                total=record.total,
                absence=record.absence.type,
            )
        )
    return MonthView(year=year, month=month, leading_blanks=first_weekday, days=tuple(out))
