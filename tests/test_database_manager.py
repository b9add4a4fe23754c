import sqlite3
from datetime import datetime

import pytest

from d3server.config import Config
from d3server.crypto_utils import hash_password
from d3server.database_manager import (
    DatabaseError,
    DatabaseManager,
    current_timestamp,
)

EXPECTED_TABLES = {
    "accounts",
    "characters",
    "items",
    "game_sessions",
    "friends",
    "clans",
    "clan_members",
}


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture
def manager(db_path):
    config = Config()
    config.set_value("Database", "FilePath", str(db_path))
    with DatabaseManager(config) as db:
        yield db


def _rows(db_path, query, values=()):
    with sqlite3.connect(db_path) as conn:
        return conn.execute(query, values).fetchall()


def test_init_creates_all_tables(db_path):
    config = Config()
    config.set_value("Database", "FilePath", str(db_path))
    db = DatabaseManager(config)
    db.init()
    try:
        assert db.account_exists("hero") is False
        names = {
            row[0]
            for row in _rows(db_path, "SELECT name FROM sqlite_master WHERE type='table'")
        }
        assert EXPECTED_TABLES <= names
    finally:
        db.close()


def test_create_account_and_exists(manager):
    password = "password"
    assert not manager.account_exists("hero")
    assert manager.create_account("hero", "hero@example.com", password, "Hero#1234")
    assert manager.account_exists("hero")


def test_duplicate_account_rejected(manager):
    password = "password"
    assert manager.create_account("hero", "hero@example.com", password, "Hero#1")
    assert not manager.create_account("hero", "other@example.com", password, "Hero#2")
    assert _rows(manager_path(manager), "SELECT COUNT(*) FROM accounts") == [(1,)]


def manager_path(manager):
    return manager._config.database.file_path


def test_verify_password(manager):
    password = "password"
    manager.create_account("hero", "hero@example.com", password, "Hero#1")
    assert manager.verify_account_password("hero", password)
    assert not manager.verify_account_password("hero", "secret")
    assert not manager.verify_account_password("nobody", password)


def test_stored_hash_uses_salt(manager, db_path):
    password = "password"
    manager.create_account("hero", "hero@example.com", password, "Hero#1")
    ((stored, salt, created, updated, tag),) = _rows(
        db_path,
        "SELECT password_hash, salt, created_at, updated_at, battle_tag FROM accounts",
    )
    assert stored == hash_password(password, salt)
    assert len(salt) == 32
    assert created == updated
    assert tag == "Hero#1"


def test_execute_query_binds_typed_params(manager, db_path):
    assert manager.account_exists("typed") is False
    manager.execute_query(
        "INSERT INTO accounts (login, password_hash, salt, is_banned, account_level, "
        "last_login, created_at, updated_at, battle_tag) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);",
        [
            ("text", "typed"),
            ("text", "hash"),
            ("text", "salt"),
            ("int", "1"),
            ("int64", "5"),
            ("null", ""),
            ("text", "then"),
            ("text", "now"),
            ("text", "Typed#1"),
        ],
    )
    assert manager.account_exists("typed") is True
    assert _rows(
        db_path, "SELECT is_banned, account_level, last_login FROM accounts"
    ) == [(1, 5, None)]

    manager.execute_query(
        "INSERT INTO characters (account_id, name, class_id, created_at, "
        "updated_at, last_played) VALUES (?, ?, ?, ?, ?, ?);",
        [
            ("int", "7"),
            ("text", "Nephalem"),
            ("int64", "3"),
            ("text", "then"),
            ("text", "now"),
            ("null", ""),
        ],
    )
    rows = _rows(
        db_path, "SELECT account_id, name, class_id, level, last_played FROM characters"
    )
    assert rows == [(7, "Nephalem", 3, 1, None)]


def test_execute_query_bad_int_raises(manager):
    with pytest.raises(DatabaseError):
        manager.execute_query(
            "SELECT ?;", [("int", "abc")]
        )


def test_execute_query_invalid_sql_raises(manager):
    with pytest.raises(DatabaseError):
        manager.execute_query("SELEKT nothing FROM nowhere;")


def test_constraint_violation_raises(manager):
    with pytest.raises(DatabaseError):
        manager.execute_query(
            "INSERT INTO accounts (login) VALUES (?);", [("text", "incomplete")]
        )


def test_not_initialized_raises(db_path):
    config = Config()
    config.set_value("Database", "FilePath", str(db_path))
    db = DatabaseManager(config)
    with pytest.raises(DatabaseError):
        db.account_exists("hero")


def test_closed_after_context(db_path):
    config = Config()
    config.set_value("Database", "FilePath", str(db_path))
    with DatabaseManager(config) as db:
        assert not db.account_exists("hero")
    with pytest.raises(DatabaseError):
        db.account_exists("hero")


def test_init_on_directory_raises(tmp_path):
    config = Config()
    config.set_value("Database", "FilePath", str(tmp_path))
    with pytest.raises(DatabaseError):
        DatabaseManager(config).init()


def test_data_persists_across_reopen(db_path):
    config = Config()
    config.set_value("Database", "FilePath", str(db_path))
    password = "password"
    with DatabaseManager(config) as db:
        db.create_account("hero", "hero@example.com", password, "Hero#1")
    with DatabaseManager(config) as db:
        assert db.verify_account_password("hero", password)


def test_current_timestamp_format():
    stamp = current_timestamp()
    parsed = datetime.strptime(stamp, "%Y-%m-%d %H:%M:%S")
    assert parsed.strftime("%Y-%m-%d %H:%M:%S") == stamp
    assert abs((datetime.now() - parsed).total_seconds()) < 5