from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class ExportRow:
    """Une ligne du fichier d'export (collaborateur, jour, activité)."""

    collaborator: str
    day: date
    client: str
    activity: str
    amount: str
    telework: str
    restaurant_ticket: str
    absence: str

    def as_csv_dict(self) -> dict[str, str]:
        return {
            "Nom du collaborateur": self.collaborator,
            "Date": self.day.strftime("%d/%m/%Y"),
            "Client": self.client,
            "Activité": self.activity,
            "Somme": self.amount,
            "TTV": self.telework,
            "TR": self.restaurant_ticket,
            "Absence": self.absence,
        }


CSV_HEADERS = ("Nom du collaborateur", "Date", "Client", "Activité", "Somme", "TTV", "TR", "Absence")
