"""Read-only Redis commands used by the keyspace browser.

Every function takes a ``redis.asyncio.Redis`` handle created with
``decode_responses=True``. The handle is backed by a connection pool, so
concurrent calls on the same handle do not block each other.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator

import redis.asyncio as aioredis
from redis import exceptions as redis_exceptions

from ..pagination import SCAN_DONE
from .errors import ProtocolError, StoreConnectionError, StoreError
from .types import (
    HashValue,
    KeyValue,
    ListValue,
    RedisType,
    ServerInfo,
    SetValue,
    StringValue,
    UnknownValue,
    ZsetValue,
)

MATCH_ALL = "*"
VALUE_ENCODING_ERRORS = "backslashreplace"


@contextlib.contextmanager
def _translate_errors(command: str) -> Iterator[None]:
    """Re-raise redis-py failures as store errors."""
    try:
        yield
    except StoreError:
        raise
    except (redis_exceptions.ConnectionError, redis_exceptions.TimeoutError) as exc:
        raise StoreConnectionError(f"{command}: {exc}") from exc
    except redis_exceptions.RedisError as exc:
        raise ProtocolError(f"{command}: {exc}") from exc
    except (UnicodeDecodeError, TypeError, ValueError) as exc:
        # Undecodable bytes or a reply of the wrong shape for the command.
        raise ProtocolError(f"{command}: unreadable reply: {exc}") from exc


def connect(url: str, socket_timeout: float | None = None) -> aioredis.Redis:
    """Create a pooled client that decodes replies to ``str``.

    Values that are not valid UTF-8 (pickles, compressed blobs) decode with
    backslash escapes instead of failing the read.
    """
    return aioredis.from_url(
        url,
        decode_responses=True,
        encoding_errors=VALUE_ENCODING_ERRORS,
        socket_timeout=socket_timeout,
    )


def parse_info(blob: str) -> dict[str, str]:
    """Parse an ``INFO`` text blob into a flat mapping.

    Section headers (``# Server``), empty lines, and lines without a ``:``
    separator are skipped. Values are stripped of surrounding whitespace.
    """
    out: dict[str, str] = {}
    for line in blob.splitlines():
        if not line or line.startswith("#"):
            continue
        header, sep, value = line.partition(":")
        if not sep:
            continue
        out[header] = value.strip()
    return out


async def fetch_info(client: aioredis.Redis) -> ServerInfo:
    with _translate_errors("INFO"):
        reply = await client.execute_command("INFO")
    # redis-py installs a response callback for INFO that already parses the
    # blob; raw text only shows up when callbacks are disabled.
    if isinstance(reply, bytes):
        reply = reply.decode("utf-8", errors="replace")
    if isinstance(reply, str):
        data: dict[str, object] = dict(parse_info(reply))
    elif isinstance(reply, dict):
        data = reply
    else:
        raise ProtocolError(f"INFO: unexpected reply type {type(reply).__name__}")
    return ServerInfo.from_mapping(data)


async def scan(
    client: aioredis.Redis,
    cursor: int | None,
    pattern: str | None,
    count: int | None = None,
) -> tuple[int, list[str]]:
    """Run one ``SCAN cursor MATCH pattern`` step.

    The number of returned names is decided by the server; it can be zero even
    when the returned cursor is not ``0``.
    """
    with _translate_errors("SCAN"):
        next_cursor, names = await client.scan(
            cursor=cursor or SCAN_DONE,
            match=pattern or MATCH_ALL,
            count=count,
        )
    try:
        return int(next_cursor), [str(name) for name in names]
    except (TypeError, ValueError) as exc:
        raise ProtocolError(f"SCAN: malformed cursor {next_cursor!r}") from exc


async def key_type(client: aioredis.Redis, key: str) -> RedisType:
    with _translate_errors("TYPE"):
        reply = await client.type(key)
    return RedisType.from_reply(str(reply))


async def key_ttl(client: aioredis.Redis, key: str) -> int:
    with _translate_errors("TTL"):
        return int(await client.ttl(key))


async def key_memory_usage(client: aioredis.Redis, key: str) -> int:
    """Return ``MEMORY USAGE`` in bytes; a key that vanished reports ``0``."""
    with _translate_errors("MEMORY USAGE"):
        reply = await client.memory_usage(key)
        return max(0, int(reply)) if reply is not None else 0


async def key_value(client: aioredis.Redis, key: str, r_type: RedisType) -> KeyValue:
    """Read the full value of ``key`` with the command matching ``r_type``."""
    if r_type is RedisType.STRING:
        with _translate_errors("GET"):
            text = await client.get(key)
        return StringValue(text=text if text is not None else "")
    if r_type is RedisType.LIST:
        with _translate_errors("LRANGE"):
            items = await client.lrange(key, 0, -1)
        return ListValue(items=tuple(items))
    if r_type is RedisType.SET:
        with _translate_errors("SMEMBERS"):
            members = await client.smembers(key)
        return SetValue(members=frozenset(members))
    if r_type is RedisType.HASH:
        with _translate_errors("HGETALL"):
            fields = await client.hgetall(key)
        return HashValue(fields=tuple(fields.items()))
    if r_type is RedisType.ZSET:
        with _translate_errors("ZRANGE"):
            members = await client.zrange(key, 0, -1, withscores=True)
            return ZsetValue(members=tuple((member, float(score)) for member, score in members))
    return UnknownValue()


__all__ = [
    "MATCH_ALL",
    "connect",
    "parse_info",
    "fetch_info",
    "scan",
    "key_type",
    "key_ttl",
    "key_memory_usage",
    "key_value",
]
