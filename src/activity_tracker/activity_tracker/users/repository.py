from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Interface du dépôt des utilisateurs.

    Les services dépendent de cette interface, pas d'une base concrète.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        email: str,
        first_name: str,
        last_name: str,
        position: str,
        password_hash: str,
        role: Role,
    ) -> int:
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def update_password_hash(self, user_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    def list_all(self, *, role: Optional[Role] = None) -> Sequence[User]:
        raise NotImplementedError
