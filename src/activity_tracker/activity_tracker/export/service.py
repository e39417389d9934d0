from __future__ import annotations

from typing import Optional

from loguru import logger

from ..core.enums import AbsenceType, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..timesheets.repository import MonthlyDataRepository
from ..users.repository import UserRepository
from .model import ExportRow


def format_amount(value: Optional[float]) -> str:
    """0.5 -> "0.5", 1.0 -> "1"."""
    if value is None:
        return "1"
    return f"{round(float(value), 2):g}"


def _flag(value: bool) -> str:
    return "1" if value else "0"


class ExportService:
    """Use case: flatten every employee's month documents into export rows."""

    def __init__(self, users: UserRepository, monthly: MonthlyDataRepository):
        self._users = users
        self._monthly = monthly

    def build_rows(self, *, current_role: Role) -> list[ExportRow]:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Vous n'avez pas les droits nécessaires")

        rows: list[ExportRow] = []
        for user in self._users.list_all(role=Role.EMPLOYEE):
            name = f"{user.first_name} {user.last_name}".strip() or user.email
            for _year, _month, days in self._monthly.list_for_user(user.user_id):
                for record in days.values():
                    absence = record.absence
                    absence_label = "" if absence.type == AbsenceType.PRESENT else absence.type.value
                    common = {
                        "collaborator": name,
                        "day": record.date,
                        "telework": _flag(absence.telework),
                        "restaurant_ticket": _flag(absence.restaurant_ticket),
                        "absence": absence_label,
                    }
                    if record.activities:
                        for entry in record.activities:
                            rows.append(
                                ExportRow(
                                    client=entry.client,
                                    activity=entry.activity,
                                    amount=format_amount(entry.value),
                                    **common,
                                )
                            )
                    elif absence.type != AbsenceType.PRESENT:
                        rows.append(ExportRow(client="", activity="", amount="1", **common))

        rows.sort(key=lambda r: (r.collaborator.casefold(), r.day))
        logger.info(f"Export built: {len(rows)} row(s)")
        return rows

    def build_rows_or_fail(self, *, current_role: Role) -> list[ExportRow]:
        rows = self.build_rows(current_role=current_role)
        if not rows:
            raise ValidationError("Aucune donnée trouvée pour les employés")
        return rows
