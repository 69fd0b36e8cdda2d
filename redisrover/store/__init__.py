"""Store layer: Redis reads, page fetches, and the background runner.

The runner lives in ``redisrover.store.runner`` and is imported from there;
this package only re-exports the value and error types.
"""

from .errors import FetchFailure, ProtocolError, StoreConnectionError, StoreError
from .events import FetchKeys
from .types import (
    NO_KEYS,
    HashValue,
    KeyMetadata,
    KeysList,
    KeysPage,
    KeyValue,
    ListValue,
    NoKeys,
    RedisType,
    ServerInfo,
    SetValue,
    StringValue,
    UnknownValue,
    ZsetValue,
)

__all__ = [
    "StoreError",
    "StoreConnectionError",
    "ProtocolError",
    "FetchFailure",
    "FetchKeys",
    "RedisType",
    "KeyValue",
    "StringValue",
    "ListValue",
    "SetValue",
    "HashValue",
    "ZsetValue",
    "UnknownValue",
    "KeyMetadata",
    "ServerInfo",
    "KeysList",
    "KeysPage",
    "NoKeys",
    "NO_KEYS",
]
