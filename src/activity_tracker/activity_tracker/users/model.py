from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Entité du domaine : un collaborateur (ou un administrateur).

    Objet de données pur, sans accès à la base.
    """

    user_id: int
    email: str
    first_name: str
    last_name: str
    position: Optional[str]
    role: Role
    password_hash: str
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email
