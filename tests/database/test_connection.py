from __future__ import annotations

import mysql.connector
import pytest

from src.activity_tracker.activity_tracker.core.exceptions import StoreUnavailableError
from src.activity_tracker.activity_tracker.database.connection import DatabaseConnection, DBConfig

SETTINGS = {"host": "db", "port": "3307", "user": "tracker", "password": "s3cret", "database": "tracker_test"}


def test_db_config_defaults():
    config = DBConfig.from_settings({})

    assert config == DBConfig("localhost", 3306, "root", "", "activity_tracker")


def test_describe_hides_password():
    config = DBConfig.from_settings(SETTINGS)

    assert config.port == 3307
    assert config.describe() == "tracker@db:3307/tracker_test"
    assert "s3cret" not in config.describe()


def test_factory_is_shared_per_config():
    config = DBConfig.from_settings(SETTINGS)
    other = DBConfig.from_settings({**SETTINGS, "database": "tracker_other"})

    assert DatabaseConnection.for_config(config) is DatabaseConnection.for_config(DBConfig.from_settings(SETTINGS))
    assert DatabaseConnection.for_config(other) is not DatabaseConnection.for_config(config)
    assert DatabaseConnection.for_config(other).config.database == "tracker_other"


def test_connect_passes_database_only_when_asked(monkeypatch):
    calls = []
    monkeypatch.setattr(mysql.connector, "connect", lambda **kwargs: calls.append(kwargs) or object())
    conn = DatabaseConnection(DBConfig.from_settings(SETTINGS))

    conn.connect()
    conn.connect(with_database=False)

    assert calls[0]["database"] == "tracker_test"
    assert "database" not in calls[1]
    assert calls[1]["port"] == 3307


def test_driver_error_becomes_store_unavailable(monkeypatch):
    def _refuse(**kwargs):
        raise mysql.connector.Error("Can't connect to MySQL server")

    monkeypatch.setattr(mysql.connector, "connect", _refuse)

    with pytest.raises(StoreUnavailableError) as exc:
        DatabaseConnection(DBConfig.from_settings(SETTINGS)).connect()

    assert isinstance(exc.value.__cause__, mysql.connector.Error)
