"""Server configuration held as INI-style sections of string values."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Mapping, Union

_log = logging.getLogger("d3server.config")

PathLike = Union[str, Path]

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1

_DEFAULTS: dict[str, dict[str, str]] = {
    "Database": {
        "Type": "sqlite",
        "FilePath": "d3server.db",
        "AccountsDB": "accounts",
        "WorldsDB": "worlds",
    },
    "Network": {
        "BindIP": "0.0.0.0",
        "PublicIP": "127.0.0.1",
        "BattleNetPort": "1119",
        "GameServerPort": "1120",
        "RestApiPort": "8080",
        "EnableSSL": "true",
        "SSLCertPath": "certs/server.crt",
        "SSLKeyPath": "certs/server.key",
    },
    "Server": {
        "ServerName": "D3Server",
        "MaxPlayers": "1000",
        "MaxAccountsPerIP": "10",
        "MaxCharactersPerAccount": "10",
        "DefaultLocale": "enUS",
        "MOTD": "Welcome to D3Server!",
        "EnableDebug": "false",
        "LogLevel": "INFO",
        "LogPath": "logs/d3server.log",
    },
}


class ConfigError(Exception):
    """Raised when configuration cannot be read, written or interpreted."""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database settings."""

    type: str
    file_path: str
    accounts_db: str
    worlds_db: str


@dataclass(frozen=True)
class NetworkConfig:
    """Network settings."""

    bind_ip: str
    public_ip: str
    battle_net_port: int
    game_server_port: int
    rest_api_port: int
    enable_ssl: bool
    ssl_cert_path: str
    ssl_key_path: str


@dataclass(frozen=True)
class ServerConfig:
    """General server settings."""

    server_name: str
    max_players: int
    max_accounts_per_ip: int
    max_characters_per_account: int
    default_locale: str
    motd: str
    enable_debug: bool
    log_level: str
    log_path: str


def _lookup(values: Mapping[str, Mapping[str, str]], section: str, key: str, default: str) -> str:
    return values.get(section, {}).get(key, default)


def _to_int(section: str, key: str, text: str) -> int:
    """Read the leading integer of ``text`` the way a C string-to-int does."""
    match = _INT_PREFIX.match(text)
    if match is None:
        raise ConfigError(f"[{section}] {key}: not an integer: {text!r}")
    number = int(match.group(1))
    if not _INT_MIN <= number <= _INT_MAX:
        raise ConfigError(f"[{section}] {key}: integer out of range: {text!r}")
    return number


def _parse(
    values: Mapping[str, Mapping[str, str]],
) -> tuple[DatabaseConfig, NetworkConfig, ServerConfig]:
    def text(section: str, key: str) -> str:
        return _lookup(values, section, key, _DEFAULTS[section][key])

    def number(section: str, key: str) -> int:
        return _to_int(section, key, text(section, key))

    def flag(section: str, key: str) -> bool:
        return text(section, key) == "true"

    database = DatabaseConfig(
        type=text("Database", "Type"),
        file_path=text("Database", "FilePath"),
        accounts_db=text("Database", "AccountsDB"),
        worlds_db=text("Database", "WorldsDB"),
    )
    network = NetworkConfig(
        bind_ip=text("Network", "BindIP"),
        public_ip=text("Network", "PublicIP"),
        battle_net_port=number("Network", "BattleNetPort"),
        game_server_port=number("Network", "GameServerPort"),
        rest_api_port=number("Network", "RestApiPort"),
        enable_ssl=flag("Network", "EnableSSL"),
        ssl_cert_path=text("Network", "SSLCertPath"),
        ssl_key_path=text("Network", "SSLKeyPath"),
    )
    server = ServerConfig(
        server_name=text("Server", "ServerName"),
        max_players=number("Server", "MaxPlayers"),
        max_accounts_per_ip=number("Server", "MaxAccountsPerIP"),
        max_characters_per_account=number("Server", "MaxCharactersPerAccount"),
        default_locale=text("Server", "DefaultLocale"),
        motd=text("Server", "MOTD"),
        enable_debug=flag("Server", "EnableDebug"),
        log_level=text("Server", "LogLevel"),
        log_path=text("Server", "LogPath"),
    )
    return database, network, server


class Config:
    """Sectioned key/value configuration with typed views of the known settings."""

    def __init__(self) -> None:
        self._values: dict[str, dict[str, str]] = {
            section: dict(entries) for section, entries in _DEFAULTS.items()
        }
        self._database, self._network, self._server = _parse(self._values)

    @property
    def database(self) -> DatabaseConfig:
        return self._database

    @property
    def network(self) -> NetworkConfig:
        return self._network

    @property
    def server(self) -> ServerConfig:
        return self._server

    def _staged(self) -> dict[str, dict[str, str]]:
        return {section: dict(entries) for section, entries in self._values.items()}

    def _commit(self, values: dict[str, dict[str, str]]) -> None:
        database, network, server = _parse(values)
        self._values = values
        self._database, self._network, self._server = database, network, server

    def load_from_file(self, path: PathLike) -> None:
        """Merge settings from an INI-style file over the current ones."""
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {path}")
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Failed to open configuration file: {path}: {exc}") from exc

        staged = self._staged()
        section = ""
        for raw in content.splitlines():
            if not raw or raw[0] in "#;":
                continue
            line = raw.strip()
            if not line:
                continue
            if line[0] == "[" and line[-1] == "]":
                section = line[1:-1]
                continue
            key, sep, value = line.partition("=")
            if sep:
                staged.setdefault(section, {})[key.strip()] = value.strip()

        self._commit(staged)
        _log.info("Configuration loaded from: %s", path)

    def save_to_file(self, path: PathLike) -> None:
        """Write every non-empty section to ``path``."""
        lines = [
            "# D3Server Configuration File",
            f"# Generated on {datetime.now():%Y-%m-%d %H:%M:%S}",
            "",
        ]
        for section, entries in self._values.items():
            if not entries:
                continue
            lines.append(f"[{section}]")
            lines.extend(f"{key} = {value}" for key, value in entries.items())
            lines.append("")
        try:
            Path(path).write_text("\n".join(lines) + "\n", encoding="utf-8")
        except OSError as exc:
            raise ConfigError(
                f"Failed to open configuration file for writing: {path}: {exc}"
            ) from exc
        _log.info("Configuration saved to: %s", path)

    def set_value(self, section: str, key: str, value: str) -> None:
        """Set one value; the typed views are refreshed."""
        staged = self._staged()
        staged.setdefault(section, {})[key] = value
        self._commit(staged)

    def get_value(self, section: str, key: str, default: str = "") -> str:
        """Return the stored value, or ``default`` when it is absent."""
        return _lookup(self._values, section, key, default)

    def sections(self) -> dict[str, dict[str, str]]:
        """Return a copy of all sections and their values."""
        return self._staged()