from __future__ import annotations

from datetime import date

import pytest

from src.activity_tracker.activity_tracker.catalog.model import DEFAULT_CATALOG
from src.activity_tracker.activity_tracker.core.enums import AbsenceType, TimeClassification, Weekday
from src.activity_tracker.activity_tracker.core.exceptions import ErrorKind, ValidationError
from src.activity_tracker.activity_tracker.timesheets.model import (
    AbsenceInfo,
    ActivityEntry,
    AllocationRow,
    DayRecord,
)
from src.activity_tracker.activity_tracker.timesheets.reconciler import (
    apply_week,
    compute_week_bounds,
    day_records_to_rows,
    drop_blank_rows,
    rows_to_day_records,
    validate_allocation_value,
)

MON, TUE, WED = Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY
PRESENT, ABSENT = TimeClassification.PRESENT, TimeClassification.ABSENT


def _week(anchor=date(2024, 10, 14)):
    return compute_week_bounds(anchor).dates


def _row(client, activity, classification=PRESENT, **values):
    return AllocationRow(
        client=client,
        activity=activity,
        time_classification=classification,
        values_by_weekday={Weekday(k): v for k, v in values.items()},
    )


def test_week_bounds_monday_to_sunday():
    bounds = compute_week_bounds(date(2024, 10, 16))

    assert bounds.monday == date(2024, 10, 14)
    assert bounds.sunday == date(2024, 10, 20)
    assert bounds.iso_week == 42
    assert len(bounds.dates) == 7


def test_week_bounds_same_for_every_day_of_the_week():
    expected = compute_week_bounds(date(2024, 10, 14))
    for d in range(14, 21):
        assert compute_week_bounds(date(2024, 10, d)) == expected


def test_week_bounds_sunday_belongs_to_previous_monday():
    bounds = compute_week_bounds(date(2024, 10, 20))
    assert bounds.monday == date(2024, 10, 14)


@pytest.mark.parametrize(
    "anchor, monday, iso_year, iso_week",
    [
        (date(2020, 12, 31), date(2020, 12, 28), 2020, 53),
        (date(2021, 1, 3), date(2020, 12, 28), 2020, 53),
        (date(2024, 12, 30), date(2024, 12, 30), 2025, 1),
    ],
)
def test_week_bounds_iso_year_boundary(anchor, monday, iso_year, iso_week):
    bounds = compute_week_bounds(anchor)

    assert bounds.monday == monday
    assert (bounds.iso_year, bounds.iso_week) == (iso_year, iso_week)


def test_full_day_split_between_two_rows_is_accepted():
    rows = [
        _row("Orange", "Service projet", monday=0.6),
        _row("SFR", "Avant-vente", monday=0.4),
    ]

    days = rows_to_day_records(rows, _week(), {}, {})

    monday = days["2024-10-14"]
    assert [(a.client, a.value) for a in monday.activities] == [("Orange", 0.6), ("SFR", 0.4)]
    assert monday.absence.type == AbsenceType.PRESENT
    assert monday.total == 1.0
    assert set(days) == {f"2024-10-{d}" for d in range(14, 21)}


def test_sum_mismatch_lists_every_bad_day():
    rows = [
        _row("Orange", "Service projet", monday=0.6, tuesday=0.5),
        _row("SFR", "Avant-vente", monday=0.3, wednesday=1.0),
    ]

    with pytest.raises(ValidationError) as exc:
        rows_to_day_records(rows, _week(), {}, {})

    assert exc.value.kind == ErrorKind.SUM_MISMATCH
    assert exc.value.mismatches == ((MON, 0.9), (TUE, 0.5))
    assert "lundi" in str(exc.value)
    assert "mardi" in str(exc.value)


def test_absent_row_marks_the_day_absent_with_internal_client():
    rows = [_row(None, "maladie", ABSENT, wednesday=1.0)]

    days = rows_to_day_records(rows, _week(), {}, {}, catalog=DEFAULT_CATALOG)

    wednesday = days["2024-10-16"]
    assert wednesday.absence.type == AbsenceType.ABSENT
    assert wednesday.activities == (ActivityEntry(client="interne", activity="maladie", value=1.0),)
    assert days["2024-10-14"].activities == ()
    assert days["2024-10-14"].absence.type == AbsenceType.PRESENT


def test_absent_values_do_not_count_toward_present_total():
    rows = [
        _row(None, "congés", ABSENT, monday=0.5),
        _row("Orange", "Service projet", monday=1.0),
    ]

    days = rows_to_day_records(rows, _week(), {}, {})

    assert days["2024-10-14"].absence.type == AbsenceType.ABSENT
    assert len(days["2024-10-14"].activities) == 2


def test_flags_are_copied_to_each_day():
    rows = [_row("Orange", "Service projet", monday=1.0)]

    days = rows_to_day_records(rows, _week(), {MON: True}, {MON: True, TUE: True})

    assert days["2024-10-14"].absence == AbsenceInfo(AbsenceType.PRESENT, telework=True, restaurant_ticket=True)
    assert days["2024-10-15"].absence.telework is False
    assert days["2024-10-15"].absence.restaurant_ticket is True


def test_row_without_classification_is_missing_field():
    rows = [AllocationRow(client="Orange", activity="Service projet", time_classification=None,
                          values_by_weekday={MON: 1.0})]

    with pytest.raises(ValidationError) as exc:
        rows_to_day_records(rows, _week(), {}, {})

    assert exc.value.kind == ErrorKind.MISSING_FIELD


def test_present_row_without_client_is_missing_field():
    with pytest.raises(ValidationError) as exc:
        rows_to_day_records([_row(None, "Service projet", monday=1.0)], _week(), {}, {})

    assert exc.value.kind == ErrorKind.MISSING_FIELD


def test_unknown_client_is_rejected_with_catalog():
    with pytest.raises(ValidationError) as exc:
        rows_to_day_records([_row("Acme", "Service projet", monday=1.0)], _week(), {}, {}, catalog=DEFAULT_CATALOG)

    assert exc.value.kind == ErrorKind.INVALID_VALUE


def test_week_dates_must_have_seven_entries():
    with pytest.raises(ValueError):
        rows_to_day_records([], _week()[:6], {}, {})


def test_empty_grid_yields_seven_empty_days():
    days = rows_to_day_records([], _week(), {}, {})

    assert len(days) == 7
    assert all(d.activities == () for d in days.values())


def test_round_trip_rows_to_days_and_back():
    rows = [
        _row("Orange", "Service projet", monday=0.6, tuesday=1.0),
        _row("SFR", "Avant-vente", monday=0.4, friday=1.0),
    ]
    days = rows_to_day_records(rows, _week(), {}, {})
    by_weekday = {Weekday.from_date(rec.date): rec for rec in days.values()}

    assert day_records_to_rows(by_weekday) == rows


def test_rows_rebuilt_from_absent_day_are_absent():
    days = rows_to_day_records([_row(None, "maladie", ABSENT, wednesday=1.0)], _week(), {}, {})
    by_weekday = {Weekday.from_date(rec.date): rec for rec in days.values()}

    rows = day_records_to_rows(by_weekday)

    assert rows == [_row("interne", "maladie", ABSENT, wednesday=1.0)]


def test_same_pair_present_and_absent_is_split_into_two_rows():
    by_weekday = {
        MON: DayRecord(
            date=date(2024, 10, 14),
            activities=(ActivityEntry("interne", "formation", 1.0),),
        ),
        TUE: DayRecord(
            date=date(2024, 10, 15),
            activities=(ActivityEntry("interne", "formation", 1.0),),
            absence=AbsenceInfo(type=AbsenceType.FORMATION),
        ),
    }

    rows = day_records_to_rows(by_weekday)

    assert rows == [
        _row("interne", "formation", PRESENT, monday=1.0),
        _row("interne", "formation", ABSENT, tuesday=1.0),
    ]


def test_present_work_on_an_absent_day_stays_present():
    rows = [
        _row("Orange", "Service projet", monday=1.0),
        _row(None, "congés", ABSENT, monday=0.5),
    ]
    days = rows_to_day_records(rows, _week(), {}, {}, catalog=DEFAULT_CATALOG)
    by_weekday = {Weekday.from_date(rec.date): rec for rec in days.values()}

    reloaded = day_records_to_rows(by_weekday, catalog=DEFAULT_CATALOG)

    assert reloaded == [
        _row("Orange", "Service projet", PRESENT, monday=1.0),
        _row("interne", "congés", ABSENT, monday=0.5),
    ]
    assert rows_to_day_records(reloaded, _week(), {}, {}, catalog=DEFAULT_CATALOG) == days


def test_internal_work_on_an_absent_day_stays_present():
    by_weekday = {
        MON: DayRecord(
            date=date(2024, 10, 14),
            activities=(ActivityEntry("interne", "interne", 0.5), ActivityEntry("interne", "maladie", 0.5)),
            absence=AbsenceInfo(type=AbsenceType.ABSENT),
        )
    }

    assert day_records_to_rows(by_weekday) == [
        _row("interne", "interne", PRESENT, monday=0.5),
        _row("interne", "maladie", ABSENT, monday=0.5),
    ]


def test_duplicate_entries_on_same_day_are_summed():
    by_weekday = {
        MON: DayRecord(
            date=date(2024, 10, 14),
            activities=(ActivityEntry("Orange", "Commercial", 0.5), ActivityEntry("Orange", "Commercial", 0.5)),
        )
    }

    assert day_records_to_rows(by_weekday) == [_row("Orange", "Commercial", monday=1.0)]


def test_drop_blank_rows_keeps_partial_rows():
    rows = [
        AllocationRow(client=None, activity=None, time_classification=None),
        AllocationRow(client="Orange", activity=None, time_classification=None),
    ]

    assert drop_blank_rows(rows) == [rows[1]]


def test_apply_week_replaces_only_week_dates():
    old = DayRecord(date=date(2024, 10, 1), activities=(ActivityEntry("SNCF", "Commercial", 1.0),))
    stale = DayRecord(date=date(2024, 10, 14), activities=(ActivityEntry("TDF", "Commercial", 1.0),))
    fresh = DayRecord.empty(date(2024, 10, 14))

    merged = apply_week({"2024-10-01": old, "2024-10-14": stale}, {"2024-10-14": fresh})

    assert merged == {"2024-10-01": old, "2024-10-14": fresh}


@pytest.mark.parametrize(
    "raw, previous, expected",
    [
        ("0.5", None, 0.5),
        ("0,5", None, 0.5),
        (1, None, 1.0),
        ("0.34", None, 0.3),
        ("", 0.7, None),
        (None, 0.7, None),
        ("1.5", 0.3, 0.3),
        ("0.05", 0.3, 0.3),
        ("abc", 0.4, 0.4),
        ("nan", 0.6, 0.6),
        ("-1", None, None),
        ("0", None, None),
        ("0", 0.4, 0.4),
        (0, 0.4, 0.4),
        ("1.01", 0.4, 0.4),
    ],
)
def test_validate_allocation_value(raw, previous, expected):
    assert validate_allocation_value(raw, previous) == expected


@pytest.mark.parametrize("tenths", range(1, 11))
def test_every_tenth_between_0_1_and_1_is_accepted(tenths):
    raw = str(tenths / 10)

    assert validate_allocation_value(raw, previous=0.7) == tenths / 10
    assert validate_allocation_value(raw.replace(".", ","), previous=0.7) == tenths / 10
