"""Game server building blocks: configuration, logging, packet protocol, password hashing, SQLite accounts and component orchestration."""

__version__ = "1.0.0"

__all__ = [
    "config",
    "crypto_utils",
    "database_manager",
    "logger",
    "protocol",
    "server",
]