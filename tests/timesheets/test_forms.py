from __future__ import annotations

from datetime import date

import pytest
from werkzeug.datastructures import MultiDict

from src.activity_tracker.activity_tracker.core.enums import TimeClassification, Weekday
from src.activity_tracker.activity_tracker.core.exceptions import ValidationError
from src.activity_tracker.activity_tracker.timesheets.forms import (
    apply_grid_action,
    draft_from_form,
    draft_from_json,
    draft_to_json,
)
from src.activity_tracker.activity_tracker.timesheets.model import SessionDraft
from src.activity_tracker.activity_tracker.timesheets.service import blank_row

TODAY = date(2024, 10, 16)


def test_draft_from_form_reads_rows_and_flags():
    form = MultiDict(
        {
            "week": "2024-10-14",
            "row_count": "2",
            "rows-0-client": "Orange",
            "rows-0-activity": "Service projet",
            "rows-0-classification": "present",
            "rows-0-monday": "0,6",
            "rows-1-client": "",
            "rows-1-activity": "maladie",
            "rows-1-classification": "absent",
            "rows-1-tuesday": "1",
            "telework-monday": "1",
            "restaurant-friday": "on",
        }
    )

    draft = draft_from_form(form, default_anchor=TODAY)

    assert draft.anchor == date(2024, 10, 14)
    assert draft.rows[0].values_by_weekday == {Weekday.MONDAY: 0.6}
    assert draft.rows[0].time_classification == TimeClassification.PRESENT
    assert draft.rows[1].client is None
    assert draft.rows[1].time_classification == TimeClassification.ABSENT
    assert draft.telework_by_weekday[Weekday.MONDAY] is True
    assert draft.telework_by_weekday[Weekday.TUESDAY] is False
    assert draft.restaurant_by_weekday[Weekday.FRIDAY] is True
    assert draft.editing is False


def test_out_of_range_cell_keeps_previous_value():
    form = MultiDict(
        {
            "row_count": "1",
            "rows-0-monday": "3",
            "rows-0-monday-prev": "0.5",
            "rows-0-tuesday": "abc",
        }
    )

    draft = draft_from_form(form, default_anchor=TODAY)

    assert draft.anchor == TODAY
    assert draft.rows[0].values_by_weekday == {Weekday.MONDAY: 0.5}


def test_form_without_rows_has_one_blank_row():
    draft = draft_from_form(MultiDict(), default_anchor=TODAY)
    assert draft.rows == (blank_row(),)


def test_bad_week_is_rejected():
    with pytest.raises(ValidationError):
        draft_from_form(MultiDict({"week": "14/10/2024"}), default_anchor=TODAY)


def test_add_and_remove_rows_keep_at_least_one():
    draft = SessionDraft(anchor=TODAY, rows=(blank_row(),))

    grown = apply_grid_action(draft, "add_row")
    assert len(grown.rows) == 2

    shrunk = apply_grid_action(grown, "remove_row-0")
    assert len(shrunk.rows) == 1
    assert len(apply_grid_action(shrunk, "remove_row-0").rows) == 1
    assert len(apply_grid_action(grown, "remove_row-9").rows) == 2


def test_json_payload_round_trips_through_draft():
    payload = {
        "week": "2024-10-14",
        "rows": [
            {
                "client": "Orange",
                "activity": "Service projet",
                "classification": "present",
                "values": {"monday": 0.6, "tuesday": 1},
            }
        ],
        "telework": {"monday": True},
        "restaurant": {},
    }

    draft = draft_from_json(payload, default_anchor=TODAY)
    out = draft_to_json(draft)

    assert out["week"] == "2024-10-14"
    assert out["rows"][0]["values"] == {"monday": 0.6, "tuesday": 1.0}
    assert out["telework"]["monday"] is True
    assert out["restaurant"]["sunday"] is False


def test_json_payload_must_be_an_object():
    with pytest.raises(ValidationError):
        draft_from_json(["nope"], default_anchor=TODAY)


@pytest.mark.parametrize(
    "payload",
    [
        {"rows": {"client": "Orange"}},
        {"rows": ["Orange"]},
        {"rows": [{"client": 12, "activity": "Service projet"}]},
        {"rows": [{"client": "Orange", "activity": ["Service projet"]}]},
        {"rows": [{"client": "Orange", "values": [0.5, 0.5]}]},
        {"rows": [], "telework": ["monday"]},
        {"rows": [], "restaurant": "monday"},
    ],
)
def test_malformed_json_fields_are_validation_errors(payload):
    with pytest.raises(ValidationError):
        draft_from_json(payload, default_anchor=TODAY)
