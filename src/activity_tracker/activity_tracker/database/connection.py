from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Mapping

import mysql.connector
from loguru import logger

from ..core.exceptions import StoreUnavailableError


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_settings(cls, db_config: Mapping[str, Any]) -> "DBConfig":
        """Build from a settings ``DB_CONFIG`` dict (see ``config/*.py``)."""
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "activity_tracker")),
        )

    def describe(self) -> str:
        # never includes the password
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Connection factory shared by the MySQL repositories.

    One factory per ``DBConfig``; each operation opens a short-lived
    connection. Driver failures surface as ``StoreUnavailableError``.
    """

    _instances: ClassVar[dict[DBConfig, "DatabaseConnection"]] = {}

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    @classmethod
    def for_config(cls, config: DBConfig) -> "DatabaseConnection":
        instance = cls._instances.get(config)
        if instance is None:
            instance = cls._instances[config] = cls(config)
        return instance

    def connect(self, *, with_database: bool = True):
        kwargs = dict(
            host=self._config.host,
            port=self._config.port,
            user=self._config.user,
            password=self._config.password,
        )
        if with_database:
            kwargs["database"] = self._config.database
        try:
            return mysql.connector.connect(**kwargs)
        except mysql.connector.Error as e:
            logger.error(f"Database connection failed ({self._config.describe()}): {e}")
            raise StoreUnavailableError("Base de données indisponible") from e
