"""Page fetch: one scan step plus concurrent per-key metadata reads."""

from __future__ import annotations

import asyncio

import redis.asyncio as aioredis
from loguru import logger

from . import client as store
from .errors import FetchFailure, StoreError
from .types import KeyMetadata, KeysList, KeysPage, NoKeys


async def fetch_key_metadata(client: aioredis.Redis, key: str) -> KeyMetadata:
    """Read type, then ttl, memory usage, and value of ``key`` concurrently."""
    r_type = await store.key_type(client, key)
    ttl, size, value = await asyncio.gather(
        store.key_ttl(client, key),
        store.key_memory_usage(client, key),
        store.key_value(client, key, r_type),
    )
    return KeyMetadata(key=key, type=r_type, size=size, ttl=ttl, value=value)


async def _fetch_one(client: aioredis.Redis, key: str) -> KeyMetadata:
    try:
        return await fetch_key_metadata(client, key)
    except StoreError as exc:
        raise FetchFailure(key, exc) from exc


async def fetch_metadata_for_keys(client: aioredis.Redis, keys: list[str]) -> list[KeyMetadata]:
    """Fan out one task per key and join the results in input order.

    The first failure cancels the remaining tasks and is re-raised as
    ``FetchFailure``; no partial list is returned.
    """
    tasks = [asyncio.ensure_future(_fetch_one(client, key)) for key in keys]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        # Collect the cancelled siblings so none is left with an unretrieved result.
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def fetch_keys_with_meta(
    client: aioredis.Redis,
    cursor: int | None = None,
    pattern: str | None = None,
    page_size: int | None = None,
) -> KeysList:
    """Fetch one page of the keyspace starting at ``cursor``.

    Returns ``NoKeys`` when the scan step yields no names (empty store, a
    pattern matching nothing, or an empty intermediate step) and ``KeysPage``
    otherwise.
    """
    next_cursor, names = await store.scan(client, cursor, pattern, count=page_size)
    if not names:
        logger.debug("scan cursor={} pattern={!r} returned no keys", cursor, pattern)
        return NoKeys(cursor=next_cursor)

    keys = await fetch_metadata_for_keys(client, names)
    logger.debug("fetched {} keys, next cursor {}", len(keys), next_cursor)
    return KeysPage(cursor=next_cursor, keys=tuple(keys))


__all__ = [
    "fetch_key_metadata",
    "fetch_metadata_for_keys",
    "fetch_keys_with_meta",
]
