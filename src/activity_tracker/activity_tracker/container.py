from __future__ import annotations

from dataclasses import dataclass

from .catalog.model import DEFAULT_CATALOG, Catalog
from .core.constants import DEFAULT_RESET_TOKEN_MAX_AGE
from .database.connection import DBConfig, DatabaseConnection
from .export.service import ExportService
from .timesheets.mysql_monthly_repository import MySQLMonthlyDataRepository
from .timesheets.repository import MonthlyDataRepository
from .timesheets.service import TimesheetService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    catalog: Catalog

    users_repo: UserRepository
    monthly_repo: MonthlyDataRepository

    auth_service: AuthService
    user_service: UserService
    timesheet_service: TimesheetService
    export_service: ExportService


def build_services(
    *,
    users_repo: UserRepository,
    monthly_repo: MonthlyDataRepository,
    secret_key: str,
    catalog: Catalog = DEFAULT_CATALOG,
    reset_max_age: int = DEFAULT_RESET_TOKEN_MAX_AGE,
) -> Container:
    return Container(
        catalog=catalog,
        users_repo=users_repo,
        monthly_repo=monthly_repo,
        auth_service=AuthService(users_repo, secret_key=secret_key, catalog=catalog, reset_max_age=reset_max_age),
        user_service=UserService(users_repo),
        timesheet_service=TimesheetService(monthly_repo, catalog=catalog),
        export_service=ExportService(users_repo, monthly_repo),
    )


def build_container(
    *,
    db_config: dict,
    secret_key: str,
    catalog: Catalog = DEFAULT_CATALOG,
    reset_max_age: int = DEFAULT_RESET_TOKEN_MAX_AGE,
) -> Container:
    conn = DatabaseConnection.for_config(DBConfig.from_settings(db_config))

    return build_services(
        users_repo=MySQLUserRepository(conn),
        monthly_repo=MySQLMonthlyDataRepository(conn),
        secret_key=secret_key,
        catalog=catalog,
        reset_max_age=reset_max_age,
    )
