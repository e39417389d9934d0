from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.activity_tracker.activity_tracker.core.enums import Role
from src.activity_tracker.activity_tracker.core.exceptions import StoreUnavailableError
from src.activity_tracker.activity_tracker.users.model import User


class InMemoryUsers:
    def __init__(self):
        self._next_id = 1
        self._by_id: dict[int, User] = {}

    def add(self, *, email, password="secret123", first_name="Jean", last_name="Dupont",
            position="Consultant", role=Role.EMPLOYEE, is_active=True) -> User:
        user_id = self.create_user(
            email=email,
            first_name=first_name,
            last_name=last_name,
            position=position,
            password_hash=generate_password_hash(password),
            role=role,
        )
        if not is_active:
            self.set_active(user_id, is_active=False)
        return self._by_id[user_id]

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._by_id.values() if u.email == email), None)

    def create_user(self, *, email, first_name, last_name, position, password_hash, role) -> int:
        user_id = self._next_id
        self._next_id += 1
        self._by_id[user_id] = User(
            user_id=user_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            position=position,
            role=role,
            password_hash=password_hash,
            created_at=datetime(2024, 10, 1, 9, 0, 0),
        )
        return user_id

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        user = self._by_id.get(int(user_id))
        if not user:
            return False
        self._by_id[user.user_id] = replace(user, is_active=is_active)
        return True

    def update_password_hash(self, user_id: int, password_hash: str) -> bool:
        user = self._by_id.get(int(user_id))
        if not user:
            return False
        self._by_id[user.user_id] = replace(user, password_hash=password_hash)
        return True

    def list_all(self, *, role=None):
        return [u for u in self._by_id.values() if role is None or u.role == role]


class InMemoryMonthlyData:
    """Month documents keyed by (user_id, year, month); merges at date level like MySQL."""

    def __init__(self):
        self.documents: dict[tuple[int, int, int], dict] = {}
        self.reads = 0
        self.writes = 0
        self.fail_reads = False
        self.fail_writes = False

    def get_month(self, user_id, year, month):
        if self.fail_reads:
            raise StoreUnavailableError("Base de données indisponible")
        self.reads += 1
        return dict(self.documents.get((user_id, year, month), {}))

    def save_month(self, user_id, year, month, days):
        self.save_months(user_id, {(year, month): days})

    def save_months(self, user_id, months):
        if self.fail_writes:
            raise StoreUnavailableError("Base de données indisponible")
        self.writes += 1
        for (year, month), days in months.items():
            self.documents.setdefault((user_id, year, month), {}).update(days)

    def list_for_user(self, user_id):
        return [
            (year, month, dict(days))
            for (uid, year, month), days in sorted(self.documents.items())
            if uid == user_id
        ]


@pytest.fixture()
def users_repo():
    return InMemoryUsers()


@pytest.fixture()
def monthly_repo():
    return InMemoryMonthlyData()
