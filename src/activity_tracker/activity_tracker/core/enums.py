from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Rôle utilisateur utilisé pour le contrôle d'accès."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class Weekday(str, Enum):
    """Jours de la semaine, lundi en premier (ordre ISO)."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def ordered(cls) -> tuple["Weekday", ...]:
        return tuple(cls)

    @classmethod
    def from_date(cls, value) -> "Weekday":
        return cls.ordered()[value.weekday()]


class TimeClassification(str, Enum):
    """Nature d'une ligne de la grille hebdomadaire."""

    PRESENT = "present"
    ABSENT = "absent"


class AbsenceType(str, Enum):
    """Type d'absence enregistré pour une journée."""

    PRESENT = "Présent"
    ABSENT = "Absent"
    CONGES = "Congés"
    MALADIE = "Maladie"
    RECUPERATION = "Récupération"
    FORMATION = "Formation"
