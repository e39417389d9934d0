from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Mapping, Optional

from ..core.enums import AbsenceType, TimeClassification, Weekday


def _as_flag(value: Any) -> bool:
    # Older documents stored the flags as "0"/"1" strings.
    if isinstance(value, str):
        return value.strip() == "1"
    return bool(value)


@dataclass(frozen=True)
class AllocationRow:
    """Une ligne de la grille hebdomadaire : (client, activité, nature) + valeur par jour."""

    client: Optional[str]
    activity: Optional[str]
    time_classification: Optional[TimeClassification]
    values_by_weekday: dict[Weekday, float] = field(default_factory=dict)

    def value_for(self, day: Weekday) -> Optional[float]:
        return self.values_by_weekday.get(day)

    @property
    def is_blank(self) -> bool:
        return not self.client and not self.activity and not any(self.values_by_weekday.values())


@dataclass(frozen=True)
class ActivityEntry:
    client: str
    activity: str
    value: float

    def to_dict(self) -> dict:
        return {"client": self.client, "activity": self.activity, "value": self.value}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ActivityEntry":
        value = raw.get("value")
        return cls(
            client=str(raw.get("client") or ""),
            activity=str(raw.get("activity") or ""),
            value=float(value) if value not in (None, "") else 1.0,
        )


@dataclass(frozen=True)
class AbsenceInfo:
    type: AbsenceType = AbsenceType.PRESENT
    telework: bool = False
    restaurant_ticket: bool = False

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "telework": self.telework,
            "restaurant_ticket": self.restaurant_ticket,
        }

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "AbsenceInfo":
        if not raw:
            return cls()
        try:
            absence_type = AbsenceType(raw.get("type") or AbsenceType.PRESENT.value)
        except ValueError:
            absence_type = AbsenceType.ABSENT
        return cls(
            type=absence_type,
            telework=_as_flag(raw.get("telework")),
            restaurant_ticket=_as_flag(raw.get("restaurant_ticket", raw.get("restaurantTicket"))),
        )


@dataclass(frozen=True)
class DayRecord:
    """Entité persistée : une journée d'un document mensuel."""

    date: date
    activities: tuple[ActivityEntry, ...] = ()
    absence: AbsenceInfo = field(default_factory=AbsenceInfo)

    @classmethod
    def empty(cls, day: date) -> "DayRecord":
        return cls(date=day)

    @property
    def total(self) -> float:
        return round(sum(a.value for a in self.activities), 2)

    def to_dict(self) -> dict:
        return {
            "activities": [a.to_dict() for a in self.activities],
            "absence": self.absence.to_dict(),
        }

    @classmethod
    def from_dict(cls, day: date, raw: Optional[Mapping[str, Any]]) -> "DayRecord":
        if not raw:
            return cls.empty(day)
        return cls(
            date=day,
            activities=tuple(ActivityEntry.from_dict(a) for a in raw.get("activities") or ()),
            absence=AbsenceInfo.from_dict(raw.get("absence")),
        )


@dataclass(frozen=True)
class WeekBounds:
    monday: date
    sunday: date
    iso_week: int
    iso_year: int

    @property
    def dates(self) -> tuple[date, ...]:
        return tuple(self.monday + timedelta(days=i) for i in range(7))


@dataclass(frozen=True)
class SessionDraft:
    """Editable state of the weekly grid.

    Passed into and returned from the reconciler instead of living in
    module-level or request-global state.
    """

    anchor: date
    rows: tuple[AllocationRow, ...] = ()
    telework_by_weekday: dict[Weekday, bool] = field(default_factory=dict)
    restaurant_by_weekday: dict[Weekday, bool] = field(default_factory=dict)
    editing: bool = False


@dataclass(frozen=True)
class CalendarDay:
    date: date
    is_weekend: bool
    values: tuple[float, ...]
    total: float
    absence: AbsenceType


@dataclass(frozen=True)
class MonthView:
    """Read-model for the month calendar (computed once per data change)."""

    year: int
    month: int
    leading_blanks: int
    days: tuple[CalendarDay, ...]


@dataclass(frozen=True)
class WeekView:
    bounds: WeekBounds
    draft: SessionDraft
    saved_days: tuple[DayRecord, ...]
    month: MonthView
