"""Value types produced by store reads.

Key values form a closed set of frozen variants, one per Redis data type.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .errors import ProtocolError


class RedisType(Enum):
    STRING = "String"
    LIST = "List"
    SET = "Set"
    HASH = "Hash"
    ZSET = "Zset"
    JSON = "Json"
    UNKNOWN = "Unknown"

    @classmethod
    def from_reply(cls, reply: str) -> RedisType:
        """Map a ``TYPE`` reply to a type tag; unknown names become ``UNKNOWN``."""
        return _TYPE_REPLIES.get(reply, cls.UNKNOWN)


_TYPE_REPLIES = {
    "string": RedisType.STRING,
    "list": RedisType.LIST,
    "set": RedisType.SET,
    "hash": RedisType.HASH,
    "zset": RedisType.ZSET,
    "ReJSON-RL": RedisType.JSON,
}


@dataclass(frozen=True)
class StringValue:
    text: str


@dataclass(frozen=True)
class ListValue:
    items: tuple[str, ...] = ()


@dataclass(frozen=True)
class SetValue:
    members: frozenset[str] = frozenset()


@dataclass(frozen=True)
class HashValue:
    """Hash fields in reply order."""

    fields: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class ZsetValue:
    """Sorted-set members with scores, ascending by score."""

    members: tuple[tuple[str, float], ...] = ()


@dataclass(frozen=True)
class UnknownValue:
    pass


KeyValue = Union[StringValue, ListValue, SetValue, HashValue, ZsetValue, UnknownValue]


@dataclass(frozen=True)
class KeyMetadata:
    """Everything the keyspace table shows for one key."""

    key: str
    type: RedisType
    size: int
    ttl: int
    value: KeyValue = field(default_factory=UnknownValue)

    @property
    def expires(self) -> bool:
        return self.ttl >= 0


TTL_NO_EXPIRY = -1


def _optional_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _optional_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class ServerInfo:
    """Flat summary of the ``INFO`` reply."""

    version: str
    os: str
    memory: str
    total_memory: str
    used_cpu_sys: float | None = None
    used_cpu_user: float | None = None
    connected_clients: int | None = None
    maxclients: int | None = None

    REQUIRED_FIELDS = (
        "redis_version",
        "os",
        "used_memory_human",
        "total_system_memory_human",
    )

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> ServerInfo:
        """Build from ``INFO`` key/value pairs.

        Unknown keys are ignored. Missing required keys raise ``ProtocolError``;
        unparsable optional numbers become ``None``.
        """
        missing = [name for name in cls.REQUIRED_FIELDS if name not in data]
        if missing:
            raise ProtocolError(f"INFO reply is missing {', '.join(missing)}")
        return cls(
            version=str(data["redis_version"]),
            os=str(data["os"]),
            memory=str(data["used_memory_human"]),
            total_memory=str(data["total_system_memory_human"]),
            used_cpu_sys=_optional_float(data.get("used_cpu_sys")),
            used_cpu_user=_optional_float(data.get("used_cpu_user")),
            connected_clients=_optional_int(data.get("connected_clients")),
            maxclients=_optional_int(data.get("maxclients")),
        )


@dataclass(frozen=True)
class KeysPage:
    """A non-empty page of keys and the cursor to continue the scan from."""

    cursor: int
    keys: tuple[KeyMetadata, ...]


@dataclass(frozen=True)
class NoKeys:
    """A scan step that returned no key names.

    Falsy, so callers can tell it apart from a populated page with a plain
    truth test. ``cursor`` is where the scan continues (``0`` once exhausted).
    """

    cursor: int = 0

    def __bool__(self) -> bool:
        return False


NO_KEYS = NoKeys()

KeysList = Union[KeysPage, NoKeys]


__all__ = [
    "RedisType",
    "StringValue",
    "ListValue",
    "SetValue",
    "HashValue",
    "ZsetValue",
    "UnknownValue",
    "KeyValue",
    "KeyMetadata",
    "TTL_NO_EXPIRY",
    "ServerInfo",
    "KeysPage",
    "NoKeys",
    "NO_KEYS",
    "KeysList",
]
