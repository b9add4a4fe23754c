"""SQLite persistence for accounts, characters, items, sessions, friends and clans."""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from .config import Config
from .crypto_utils import generate_salt, hash_password, verify_password

_log = logging.getLogger("d3server.database")

_SCHEMA = (
    """CREATE TABLE IF NOT EXISTS accounts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        login TEXT UNIQUE NOT NULL,
        email TEXT,
        password_hash TEXT NOT NULL,
        salt TEXT NOT NULL,
        is_banned INTEGER DEFAULT 0,
        last_login TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        account_level INTEGER DEFAULT 0,
        battle_tag TEXT NOT NULL
    );""",
    """CREATE TABLE IF NOT EXISTS characters (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        account_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        class_id INTEGER NOT NULL,
        level INTEGER DEFAULT 1,
        experience INTEGER DEFAULT 0,
        is_hardcore INTEGER DEFAULT 0,
        is_deleted INTEGER DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        gender INTEGER DEFAULT 0,
        flags INTEGER DEFAULT 0,
        last_played TEXT,
        FOREIGN KEY (account_id) REFERENCES accounts(id)
    );""",
    """CREATE TABLE IF NOT EXISTS items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        owner_id INTEGER NOT NULL,
        item_id INTEGER NOT NULL,
        quality INTEGER DEFAULT 0,
        equipped_slot INTEGER DEFAULT -1,
        attributes TEXT,
        created_at TEXT NOT NULL,
        is_identified INTEGER DEFAULT 1,
        stack_count INTEGER DEFAULT 1,
        enchant_level INTEGER DEFAULT 0,
        FOREIGN KEY (owner_id) REFERENCES characters(id)
    );""",
    """CREATE TABLE IF NOT EXISTS game_sessions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        session_name TEXT NOT NULL,
        difficulty INTEGER DEFAULT 0,
        max_players INTEGER DEFAULT 4,
        is_public INTEGER DEFAULT 0,
        created_at TEXT NOT NULL,
        created_by_account_id INTEGER NOT NULL,
        game_mode TEXT DEFAULT 'Story',
        act_id INTEGER DEFAULT 0,
        FOREIGN KEY (created_by_account_id) REFERENCES accounts(id)
    );""",
    """CREATE TABLE IF NOT EXISTS friends (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        account_id INTEGER NOT NULL,
        friend_account_id INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        is_favorite INTEGER DEFAULT 0,
        FOREIGN KEY (account_id) REFERENCES accounts(id),
        FOREIGN KEY (friend_account_id) REFERENCES accounts(id)
    );""",
    """CREATE TABLE IF NOT EXISTS clans (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT,
        leader_account_id INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        member_count INTEGER DEFAULT 0,
        tag TEXT NOT NULL,
        level INTEGER DEFAULT 1,
        FOREIGN KEY (leader_account_id) REFERENCES accounts(id)
    );""",
    """CREATE TABLE IF NOT EXISTS clan_members (
        clan_id INTEGER NOT NULL,
        account_id INTEGER NOT NULL,
        joined_at TEXT NOT NULL,
        rank INTEGER DEFAULT 0,
        PRIMARY KEY (clan_id, account_id),
        FOREIGN KEY (clan_id) REFERENCES clans(id),
        FOREIGN KEY (account_id) REFERENCES accounts(id)
    );""",
)


class DatabaseError(Exception):
    """Raised when the database cannot be opened or a statement fails."""


@dataclass
class AccountData:
    """A game account."""

    id: int = 0
    login: str = ""
    email: str = ""
    password_hash: str = ""
    salt: str = ""
    is_banned: bool = False
    last_login: str = ""
    created_at: str = ""
    updated_at: str = ""
    account_level: int = 0
    battle_tag: str = ""


@dataclass
class CharacterData:
    """A character belonging to an account."""

    id: int = 0
    account_id: int = 0
    name: str = ""
    class_id: int = 0
    level: int = 1
    experience: int = 0
    is_hardcore: bool = False
    is_deleted: bool = False
    created_at: str = ""
    updated_at: str = ""
    gender: int = 0
    flags: int = 0
    last_played: str = ""


@dataclass
class ItemData:
    """An item owned by a character; ``equipped_slot`` is -1 when not equipped."""

    id: int = 0
    owner_id: int = 0
    item_id: int = 0
    quality: int = 0
    equipped_slot: int = -1
    attributes: str = ""
    created_at: str = ""
    is_identified: bool = True
    stack_count: int = 1
    enchant_level: int = 0


@dataclass
class GameSessionData:
    """A hosted game session."""

    id: int = 0
    session_name: str = ""
    difficulty: int = 0
    max_players: int = 4
    is_public: bool = False
    created_at: str = ""
    created_by_account_id: int = 0
    game_mode: str = ""
    act_id: int = 0


@dataclass
class FriendData:
    """A friend relationship between two accounts."""

    id: int = 0
    account_id: int = 0
    friend_account_id: int = 0
    created_at: str = ""
    is_favorite: bool = False


@dataclass
class ClanData:
    """A clan."""

    id: int = 0
    name: str = ""
    description: str = ""
    leader_account_id: int = 0
    created_at: str = ""
    member_count: int = 0
    tag: str = ""
    level: int = 1


def current_timestamp() -> str:
    """Local time formatted as ``YYYY-MM-DD HH:MM:SS``."""
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _convert(kind: str, value: Any) -> Any:
    try:
        if kind in ("int", "int64"):
            return int(str(value).strip())
        if kind == "double":
            return float(str(value).strip())
    except ValueError as exc:
        raise DatabaseError(f"cannot bind {value!r} as {kind}") from exc
    if kind == "null":
        return None
    return str(value)


class DatabaseManager:
    """Owns the SQLite connection and the account operations on it."""

    def __init__(self, config: Config) -> None:
        self._config = config
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def init(self) -> None:
        """Open the database named by the configuration and create missing tables."""
        path = self._config.database.file_path
        try:
            conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
            for statement in _SCHEMA:
                conn.execute(statement)
        except sqlite3.Error as exc:
            _log.error("Cannot open database %s: %s", path, exc)
            raise DatabaseError(f"Cannot open database {path}: {exc}") from exc
        with self._lock:
            if self._conn is not None:
                self._conn.close()
            self._conn = conn

    def close(self) -> None:
        """Close the connection; calling it again does nothing."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "DatabaseManager":
        if self._conn is None:
            self.init()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise DatabaseError("database is not open")
        return self._conn

    def _run(self, query: str, values: Sequence[Any] = ()) -> sqlite3.Cursor:
        with self._lock:
            try:
                return self._connection().execute(query, tuple(values))
            except sqlite3.Error as exc:
                raise DatabaseError(f"query failed: {exc}") from exc

    def execute_query(
        self, query: str, params: Iterable[tuple[str, Any]] = ()
    ) -> None:
        """Run one statement with typed parameters.

        Each parameter is a ``(kind, value)`` pair where kind is ``int``,
        ``int64``, ``double``, ``null`` or anything else for text.
        """
        values = [_convert(kind, value) for kind, value in params]
        self._run(query, values)

    def account_exists(self, login: str) -> bool:
        """Whether an account with ``login`` exists."""
        row = self._run(
            "SELECT COUNT(*) FROM accounts WHERE login = ?;", (login,)
        ).fetchone()
        return bool(row and row[0] > 0)

    def verify_account_password(self, login: str, password: str) -> bool:
        """Whether ``password`` matches the stored hash of account ``login``."""
        row = self._run(
            "SELECT password_hash, salt FROM accounts WHERE login = ?;", (login,)
        ).fetchone()
        if row is None:
            return False
        stored_hash, salt = row
        return verify_password(password, stored_hash, salt)

    def create_account(
        self, login: str, email: str, password: str, battle_tag: str
    ) -> bool:
        """Create an account; returns False when the login is already taken."""
        with self._lock:
            if self.account_exists(login):
                return False
            salt = generate_salt()
            password_hash = hash_password(password, salt)
            timestamp = current_timestamp()
            self.execute_query(
                "INSERT INTO accounts (login, email, password_hash, salt, "
                "created_at, updated_at, battle_tag) VALUES (?, ?, ?, ?, ?, ?, ?);",
                [
                    ("text", login),
                    ("text", email),
                    ("text", password_hash),
                    ("text", salt),
                    ("text", timestamp),
                    ("text", timestamp),
                    ("text", battle_tag),
                ],
            )
        return True