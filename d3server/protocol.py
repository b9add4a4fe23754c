"""Wire format of the Battle.net packet header and related constants."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar

_HEADER = struct.Struct("<HHII")

MAX_PACKET_BODY_SIZE = 1024 * 64
MAX_PACKET_FULL_SIZE = _HEADER.size + MAX_PACKET_BODY_SIZE


class ServiceId(IntEnum):
    """Known service identifiers."""

    AUTHENTICATION = 0x0001
    CONNECTION = 0x0002
    FRIENDS = 0x0003
    GAME_UTILITIES = 0x0004


class AuthMethod(IntEnum):
    """Method identifiers of the authentication service."""

    AUTH_CHALLENGE_REQUEST = 0x0001
    AUTH_CHALLENGE_RESPONSE = 0x0002
    AUTH_SESSION_REQUEST = 0x0003
    AUTH_SESSION_RESPONSE = 0x0004
    LOGON_QUEUE_UPDATE = 0x0005
    LOGON_SUCCESS = 0x0006


class ProtocolError(Exception):
    """Raised when a packet cannot be encoded or decoded."""


@dataclass
class PacketHeader:
    """Fixed-size header preceding every packet body."""

    SIZE: ClassVar[int] = _HEADER.size

    service_id: int = 0
    method_id: int = 0
    request_id: int = 0
    body_length: int = 0

    def serialize(self) -> bytes:
        """Encode the header as exactly ``SIZE`` bytes."""
        try:
            return _HEADER.pack(
                self.service_id, self.method_id, self.request_id, self.body_length
            )
        except struct.error as exc:
            raise ProtocolError(f"header field out of range: {exc}") from exc

    @classmethod
    def deserialize(cls, data: bytes) -> "PacketHeader":
        """Decode a header from the first ``SIZE`` bytes of ``data``."""
        if len(data) < cls.SIZE:
            raise ProtocolError(
                f"header needs {cls.SIZE} bytes, got {len(data)}"
            )
        service_id, method_id, request_id, body_length = _HEADER.unpack_from(data)
        return cls(service_id, method_id, request_id, body_length)


def build_packet(service_id: int, method_id: int, request_id: int, body: bytes = b"") -> bytes:
    """Return a header for ``body`` followed by the body itself."""
    body = bytes(body)
    header = PacketHeader(service_id, method_id, request_id, len(body))
    return header.serialize() + body