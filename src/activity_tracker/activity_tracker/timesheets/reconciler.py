"""Weekly allocation reconciler.

Converts between the editable weekly grid (``AllocationRow`` lines) and the
persisted per-day records of a month document, and enforces the rule that a
day's ``Present`` allocations add up to 1.0.

Everything here is pure: no store access, no Flask.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Mapping, Optional, Sequence

from ..catalog.model import DEFAULT_CATALOG, Catalog
from ..common.datetime_utils import to_iso
from ..core.constants import (
    ALLOCATION_STEP_DIGITS,
    INTERNAL_CLIENT,
    MAX_ALLOCATION,
    MIN_ALLOCATION,
    SUM_TOLERANCE,
)
from ..core.enums import AbsenceType, TimeClassification, Weekday
from ..core.exceptions import ErrorKind, ValidationError
from .model import AbsenceInfo, ActivityEntry, AllocationRow, DayRecord, WeekBounds

WEEKDAY_LABELS = {
    Weekday.MONDAY: "lundi",
    Weekday.TUESDAY: "mardi",
    Weekday.WEDNESDAY: "mercredi",
    Weekday.THURSDAY: "jeudi",
    Weekday.FRIDAY: "vendredi",
    Weekday.SATURDAY: "samedi",
    Weekday.SUNDAY: "dimanche",
}


def compute_week_bounds(anchor: date) -> WeekBounds:
    """Return the ISO week (Monday..Sunday) containing ``anchor``.

    The week number comes from ``isocalendar`` so days at the turn of the year
    resolve to the ISO year they belong to (2021-01-03 is in week 53 of 2020).
    """
    monday = anchor - timedelta(days=anchor.weekday())
    iso_year, iso_week, _ = anchor.isocalendar()
    return WeekBounds(monday=monday, sunday=monday + timedelta(days=6), iso_week=iso_week, iso_year=iso_year)


def validate_allocation_value(raw, previous: Optional[float] = None) -> Optional[float]:
    """Guard for a single grid cell.

    Empty input clears the cell. Anything outside [0.1, 1.0] (or not a number)
    is ignored and ``previous`` is kept.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        text = raw.strip().replace(",", ".")
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return previous
    else:
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return previous

    if value != value or value < MIN_ALLOCATION or value > MAX_ALLOCATION:
        return previous
    return round(value, ALLOCATION_STEP_DIGITS)


def drop_blank_rows(rows: Sequence[AllocationRow]) -> list[AllocationRow]:
    """The grid always carries a trailing empty line; it is not a submission."""
    return [r for r in rows if not r.is_blank]


def _normalize_row(row: AllocationRow, catalog: Optional[Catalog]) -> AllocationRow:
    if row.time_classification is None:
        raise ValidationError(
            "Veuillez choisir la nature (présent/absent) de chaque ligne",
            kind=ErrorKind.MISSING_FIELD,
        )

    client = (row.client or "").strip()
    if row.time_classification == TimeClassification.ABSENT:
        client = INTERNAL_CLIENT
    activity = (row.activity or "").strip()
    if not client or not activity:
        raise ValidationError(
            "Veuillez sélectionner un client et une activité pour chaque ligne",
            kind=ErrorKind.MISSING_FIELD,
        )

    if catalog is not None:
        if activity not in catalog.activities_for(row.time_classification):
            raise ValidationError(f"Activité inconnue : {activity}")
        if client not in catalog.clients_for(row.time_classification):
            raise ValidationError(f"Client inconnu : {client}")

    if client == row.client and activity == row.activity:
        return row
    return AllocationRow(
        client=client,
        activity=activity,
        time_classification=row.time_classification,
        values_by_weekday=dict(row.values_by_weekday),
    )


def check_allocation_sums(rows: Sequence[AllocationRow]) -> None:
    """Raise one SUM_MISMATCH error listing every weekday whose Present total is not 1.0."""
    mismatches: list[tuple[Weekday, float]] = []
    for day in Weekday.ordered():
        values = [
            r.value_for(day)
            for r in rows
            if r.time_classification == TimeClassification.PRESENT and (r.value_for(day) or 0) > 0
        ]
        if not values:
            continue
        total = round(sum(values), 2)
        if abs(total - 1.0) > SUM_TOLERANCE:
            mismatches.append((day, total))

    if mismatches:
        details = ", ".join(f"{WEEKDAY_LABELS[d]} = {total:g}" for d, total in mismatches)
        raise ValidationError(
            f"Le total des activités doit être égal à 1 par jour ({details})",
            kind=ErrorKind.SUM_MISMATCH,
            mismatches=mismatches,
        )


def rows_to_day_records(
    rows: Sequence[AllocationRow],
    week_dates: Sequence[date],
    telework_by_weekday: Mapping[Weekday, bool],
    restaurant_by_weekday: Mapping[Weekday, bool],
    *,
    catalog: Optional[Catalog] = None,
) -> dict[str, DayRecord]:
    """Build the seven day records of a week from the grid.

    Each returned record is a full replacement for its date. Entries keep the
    input row order. Raises ``ValidationError`` before producing anything if a
    row is incomplete or a day's Present total is off.
    """
    if len(week_dates) != 7:
        raise ValueError("week_dates must contain exactly 7 dates")

    rows = [_normalize_row(r, catalog) for r in rows]
    check_allocation_sums(rows)

    out: dict[str, DayRecord] = {}
    for day, day_date in zip(Weekday.ordered(), week_dates):
        activities: list[ActivityEntry] = []
        absence_type = AbsenceType.PRESENT
        for row in rows:
            value = row.value_for(day)
            if not value or value <= 0:
                continue
            activities.append(ActivityEntry(client=row.client, activity=row.activity, value=value))
            if row.time_classification == TimeClassification.ABSENT:
                absence_type = AbsenceType.ABSENT

        out[to_iso(day_date)] = DayRecord(
            date=day_date,
            activities=tuple(activities),
            absence=AbsenceInfo(
                type=absence_type,
                telework=bool(telework_by_weekday.get(day, False)),
                restaurant_ticket=bool(restaurant_by_weekday.get(day, False)),
            ),
        )
    return out


def _entry_classification(record: DayRecord, entry: ActivityEntry, catalog: Catalog) -> TimeClassification:
    # A non-Présent day may still carry Present work next to its absence row.
    if (
        record.absence.type != AbsenceType.PRESENT
        and entry.client == INTERNAL_CLIENT
        and entry.activity in catalog.absence_reasons
    ):
        return TimeClassification.ABSENT
    return TimeClassification.PRESENT


def day_records_to_rows(
    day_records_by_weekday: Mapping[Weekday, DayRecord],
    *,
    catalog: Catalog = DEFAULT_CATALOG,
) -> list[AllocationRow]:
    """Rebuild the editable grid from stored days (edit mode).

    Rows are keyed by ``(client, activity, classification)`` and emitted in
    first-seen order. An entry is Absent only on a non-Présent day when it is an
    ``interne`` absence reason; everything else comes back Present, so the
    reloaded grid can be submitted again unchanged. A pair that is Present on
    one day and Absent on another yields two rows.
    """
    grid: dict[tuple[str, str, TimeClassification], dict[Weekday, float]] = {}
    for day in Weekday.ordered():
        record = day_records_by_weekday.get(day)
        if record is None:
            continue
        for entry in record.activities:
            classification = _entry_classification(record, entry, catalog)
            values = grid.setdefault((entry.client, entry.activity, classification), {})
            values[day] = round(values.get(day, 0.0) + entry.value, 2)

    return [
        AllocationRow(client=client, activity=activity, time_classification=classification, values_by_weekday=values)
        for (client, activity, classification), values in grid.items()
    ]


def flags_from_day_records(day_records_by_weekday: Mapping[Weekday, DayRecord]) -> tuple[dict, dict]:
    telework = {day: rec.absence.telework for day, rec in day_records_by_weekday.items()}
    restaurant = {day: rec.absence.restaurant_ticket for day, rec in day_records_by_weekday.items()}
    return telework, restaurant


def apply_week(month_days: Mapping[str, DayRecord], week_days: Mapping[str, DayRecord]) -> dict[str, DayRecord]:
    """Return a copy of ``month_days`` where every week date is replaced wholesale."""
    merged = dict(month_days)
    merged.update(week_days)
    return merged
