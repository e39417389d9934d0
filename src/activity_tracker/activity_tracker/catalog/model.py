from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import INTERNAL_CLIENT
from ..core.enums import TimeClassification


@dataclass(frozen=True)
class Catalog:
    """Listes de référence proposées dans les formulaires.

    Ce sont des données de configuration : les modifier ne demande aucun
    changement de code (voir ``loader.load_catalog``).
    """

    clients: tuple[str, ...]
    activities: tuple[str, ...]
    absence_reasons: tuple[str, ...]
    positions: tuple[str, ...]

    def activities_for(self, classification: TimeClassification) -> tuple[str, ...]:
        if classification == TimeClassification.ABSENT:
            return self.absence_reasons
        return self.activities

    def clients_for(self, classification: TimeClassification) -> tuple[str, ...]:
        if classification == TimeClassification.ABSENT:
            return (INTERNAL_CLIENT,)
        return self.clients


DEFAULT_CATALOG = Catalog(
    clients=(
        "Bouygues",
        "AFD",
        "Orange",
        "Free",
        "SFR",
        "Ericson",
        "TDF",
        "SNCF",
        "Autres clients France",
        "ARCEP Burkina",
        "Orange Sénégal",
        "ARCEP Togo",
        "Togocell - YAS",
        "Lillybelle Togo",
        "ARTP Sénégal",
        "Autres clients export",
    ),
    activities=(
        "Support de maintenance",
        "Service projet",
        "Avant-vente",
        "Supply chain",
        "Commercial",
        "interne",
    ),
    absence_reasons=("congés", "maladie", "récupération", "formation"),
    positions=(
        "Développeur Senior",
        "Développeur Junior",
        "Chef de Projet",
        "Commercial",
        "Responsable RH",
        "Comptable",
        "Chef d'équipe",
        "Analyste",
        "Consultant",
        "Manager",
        "Autre",
    ),
)
