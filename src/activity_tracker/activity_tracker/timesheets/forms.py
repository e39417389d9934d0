"""Conversion between the HTTP payloads of the weekly grid and ``SessionDraft``."""
from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_iso_date, to_iso
from ..core.enums import TimeClassification, Weekday
from ..core.exceptions import ValidationError
from .model import AllocationRow, DayRecord, SessionDraft, WeekView
from .reconciler import validate_allocation_value
from .service import blank_row

MAX_ROWS = 50


def _parse_classification(raw: Any) -> Optional[TimeClassification]:
    try:
        return TimeClassification(str(raw or "").strip().lower())
    except ValueError:
        return None


def _parse_anchor(raw: Any, default: date) -> date:
    if not raw:
        return default
    try:
        return parse_iso_date(str(raw))
    except ValueError:
        raise ValidationError("Date de semaine invalide (AAAA-MM-JJ)")


def _checked(form: Mapping[str, Any], key: str) -> bool:
    return str(form.get(key) or "").strip().lower() in {"1", "on", "true", "yes"}


def draft_from_form(form: Mapping[str, Any], *, default_anchor: date) -> SessionDraft:
    """Read the grid posted by the tracker page.

    Field names: ``rows-<i>-client``, ``rows-<i>-activity``,
    ``rows-<i>-classification``, ``rows-<i>-<weekday>`` (and ``-prev`` holding
    the value shown before the edit), ``telework-<weekday>``,
    ``restaurant-<weekday>``.
    """
    anchor = _parse_anchor(form.get("week"), default_anchor)
    try:
        row_count = min(int(form.get("row_count") or 0), MAX_ROWS)
    except ValueError:
        row_count = 0

    rows = []
    for i in range(row_count):
        prefix = f"rows-{i}"
        values: dict[Weekday, float] = {}
        for day in Weekday.ordered():
            previous = validate_allocation_value(form.get(f"{prefix}-{day.value}-prev"))
            value = validate_allocation_value(form.get(f"{prefix}-{day.value}"), previous)
            if value is not None:
                values[day] = value
        rows.append(
            AllocationRow(
                client=(form.get(f"{prefix}-client") or "").strip() or None,
                activity=(form.get(f"{prefix}-activity") or "").strip() or None,
                time_classification=_parse_classification(form.get(f"{prefix}-classification")),
                values_by_weekday=values,
            )
        )

    return SessionDraft(
        anchor=anchor,
        rows=tuple(rows) or (blank_row(),),
        telework_by_weekday={d: _checked(form, f"telework-{d.value}") for d in Weekday.ordered()},
        restaurant_by_weekday={d: _checked(form, f"restaurant-{d.value}") for d in Weekday.ordered()},
        editing=_checked(form, "editing"),
    )


def apply_grid_action(draft: SessionDraft, action: str) -> SessionDraft:
    """Handle the add/remove row buttons; at least one row always remains."""
    rows = list(draft.rows)
    if action == "add_row" and len(rows) < MAX_ROWS:
        rows.append(blank_row())
    elif action.startswith("remove_row-") and len(rows) > 1:
        try:
            index = int(action.split("-", 1)[1])
        except ValueError:
            index = -1
        if 0 <= index < len(rows):
            del rows[index]
    return SessionDraft(
        anchor=draft.anchor,
        rows=tuple(rows),
        telework_by_weekday=draft.telework_by_weekday,
        restaurant_by_weekday=draft.restaurant_by_weekday,
        editing=draft.editing,
    )


def _text(raw: Mapping[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Ligne invalide")
    return value.strip() or None


def _mapping(raw: Mapping[str, Any], key: str, message: str) -> Mapping[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, Mapping):
        raise ValidationError(message)
    return value


def draft_from_json(payload: Mapping[str, Any], *, default_anchor: date) -> SessionDraft:
    if not isinstance(payload, Mapping):
        raise ValidationError("Corps JSON invalide")

    raw_rows = payload.get("rows") or []
    if not isinstance(raw_rows, list):
        raise ValidationError("Lignes invalides")

    rows = []
    for raw in raw_rows:
        if not isinstance(raw, Mapping):
            raise ValidationError("Ligne invalide")
        raw_values = _mapping(raw, "values", "Ligne invalide")
        values: dict[Weekday, float] = {}
        for day in Weekday.ordered():
            value = validate_allocation_value(raw_values.get(day.value))
            if value is not None:
                values[day] = value
        rows.append(
            AllocationRow(
                client=_text(raw, "client"),
                activity=_text(raw, "activity"),
                time_classification=_parse_classification(raw.get("classification")),
                values_by_weekday=values,
            )
        )

    telework = _mapping(payload, "telework", "Télétravail invalide")
    restaurant = _mapping(payload, "restaurant", "Tickets restaurant invalides")
    return SessionDraft(
        anchor=_parse_anchor(payload.get("week"), default_anchor),
        rows=tuple(rows),
        telework_by_weekday={d: bool(telework.get(d.value)) for d in Weekday.ordered()},
        restaurant_by_weekday={d: bool(restaurant.get(d.value)) for d in Weekday.ordered()},
        editing=bool(payload.get("editing")),
    )


def draft_to_json(draft: SessionDraft) -> dict:
    return {
        "week": to_iso(draft.anchor),
        "editing": draft.editing,
        "rows": [
            {
                "client": r.client,
                "activity": r.activity,
                "classification": r.time_classification.value if r.time_classification else None,
                "values": {d.value: v for d, v in r.values_by_weekday.items()},
            }
            for r in draft.rows
        ],
        "telework": {d.value: bool(v) for d, v in draft.telework_by_weekday.items()},
        "restaurant": {d.value: bool(v) for d, v in draft.restaurant_by_weekday.items()},
    }


def day_to_json(record: DayRecord) -> dict:
    return {"date": to_iso(record.date), **record.to_dict(), "total": record.total}


def week_view_to_json(view: WeekView) -> dict:
    return {
        "monday": to_iso(view.bounds.monday),
        "sunday": to_iso(view.bounds.sunday),
        "iso_week": view.bounds.iso_week,
        "iso_year": view.bounds.iso_year,
        "draft": draft_to_json(view.draft),
        "days": [day_to_json(d) for d in view.saved_days],
    }
