# d3server

Building blocks for a Battle.net-style game server. The package uses only the
standard library.

| Module | What it provides |
| --- | --- |
| `d3server.config` | `Config`, which holds sections of string settings read from an INI-style file. It has typed views: `DatabaseConfig`, `NetworkConfig` and `ServerConfig`. |
| `d3server.logger` | One shared, named logger for the process. It writes to the console, to a rotating log file, or to both. |
| `d3server.protocol` | The 12-byte `PacketHeader`, `build_packet`, and the `ServiceId` and `AuthMethod` ids. |
| `d3server.crypto_utils` | `generate_salt`, `hash_password` (SHA-256 of salt followed by password) and `verify_password`. |
| `d3server.database_manager` | `DatabaseManager`, which holds the SQLite schema for accounts, characters, items, game sessions, friends and clans, and handles account creation and password checks. |
| `d3server.server` | `Server`, which runs `Component` objects in threads and shuts them down in reverse order. |

## Installation

Install from a checkout with `pip install .`. The package needs Python 3.10 or
later and has no runtime dependencies. To run the tests, install the `test`
extra and run `pytest`.

## Configuration

```python
from d3server.config import Config, ConfigError

config = Config()                       # every known setting starts at its default
config.load_from_file("d3server.ini")   # values from the file replace the current ones
config.set_value("Network", "BattleNetPort", "1119")

print(config.network.battle_net_port)   # 1119
print(config.server.motd)               # "Welcome to D3Server!"
print(config.get_value("Server", "MOTD", ""))
config.save_to_file("d3server.ini")
```

A configuration file looks like this:

```ini
# lines starting with '#' or ';' are comments
[Network]
BindIP = 0.0.0.0
BattleNetPort = 1119

[Server]
ServerName = D3Server
MaxAccountsPerIP = 10
```

The typed views read numeric settings by their leading integer, which must fit
in 32 bits. A setting is true only when its value is exactly `true`. A missing
file, a file that cannot be read or written, or a numeric setting that is not
a number raises `ConfigError`. When `load_from_file` or `set_value` fails, the
configuration stays as it was. `sections()` returns a copy of every section.

## Packets

```python
from d3server.protocol import AuthMethod, PacketHeader, ServiceId, build_packet

packet = build_packet(ServiceId.AUTHENTICATION, AuthMethod.AUTH_CHALLENGE_REQUEST, 7, b"")
header = PacketHeader.deserialize(packet)
assert header.request_id == 7
assert header.serialize() == packet[:PacketHeader.SIZE]
```

A header is packed little-endian in this order: service id (16 bits), method
id (16 bits), request id (32 bits) and body length (32 bits).
`MAX_PACKET_BODY_SIZE` is 64 KiB. A buffer that is too short, or a field that
does not fit, raises `ProtocolError`.

## Accounts

```python
from d3server.config import Config
from d3server.database_manager import DatabaseManager

config = Config()
config.set_value("Database", "FilePath", "accounts.db")

password = "password"
with DatabaseManager(config) as db:     # opens the file and creates missing tables
    assert db.create_account("alice", "alice@example.com", password, "Alice#1234")
    assert not db.create_account("alice", "alice@example.com", password, "Alice#1234")
    assert db.account_exists("alice")
    assert db.verify_account_password("alice", password)
```

`execute_query(query, params)` runs one statement. Each parameter is a
`(kind, value)` pair, where the kind is `int`, `int64`, `double`, `null`, or
anything else for text. If the database cannot be opened, or a statement
fails, `DatabaseError` is raised. `current_timestamp()` returns the local time
as `YYYY-MM-DD HH:MM:SS`. The dataclasses `AccountData`, `CharacterData`,
`ItemData`, `GameSessionData`, `FriendData` and `ClanData` describe the rows of
each table.

## Running components together

Subclass `d3server.server.Component` and implement `init()`, `run()` and
`shutdown()`. Then pass three components to `Server`:

```python
from d3server.server import Server

server = Server(config, db_manager, battle_net, game, rest, loop_interval=1.0)
server.init()      # raises RuntimeError if a component's init() fails or returns False
server.run()       # starts each component in a thread; blocks until shutdown()
```

Call `server.shutdown()` from another thread. It stops the components in
reverse order and waits for their threads to finish.

## Logging

Call `d3server.logger.init_logger(name, log_file_path, level, console_output,
file_output)` once at start-up. The level may be a number or a name such as
`"debug"`, `"info"` or `"warning"`. Later calls return the existing logger.
`get_logger()` returns the shared logger, or `None` before a successful setup.
`is_initialized()` reports whether setup has happened. `reset_logger()` closes
the outputs and clears the setup.

## What this package does not do

The package contains no network front end. It does not listen on
`NetworkConfig.battle_net_port`, accept client connections, read packets from
sockets or answer the authentication handshake. It also ships no game server,
no REST API and no command-line program. `Server` only runs whatever
`Component` objects you give it. Apart from account creation, lookup and
password checks, `DatabaseManager` creates the character, item, session,
friend and clan tables but has no operations on them; use `execute_query` for
those.