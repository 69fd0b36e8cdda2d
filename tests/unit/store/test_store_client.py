"""Tests for the read-only Redis command wrappers.

Covers INFO parsing, value decoding per type, and error translation.
"""

from __future__ import annotations

import unittest

from redis import exceptions as redis_exceptions

from fakes import INFO_TEXT, FakeRedis
from redisrover.store import client as store
from redisrover.store.errors import ProtocolError, StoreConnectionError
from redisrover.store.types import (
    HashValue,
    ListValue,
    RedisType,
    ServerInfo,
    SetValue,
    StringValue,
    UnknownValue,
    ZsetValue,
)


class ParseInfoTests(unittest.TestCase):
    def test_skips_headers_blank_lines_and_lines_without_separator(self) -> None:
        parsed = store.parse_info("# Server\r\nredis_version:7.2.4\r\n\r\ngarbage\r\nos:Linux\r\n")
        self.assertEqual(parsed, {"redis_version": "7.2.4", "os": "Linux"})

    def test_splits_on_first_colon_and_strips_value(self) -> None:
        parsed = store.parse_info("executable:/usr/bin/redis-server \r\nrole: master\r\n")
        self.assertEqual(parsed["executable"], "/usr/bin/redis-server")
        self.assertEqual(parsed["role"], "master")

    def test_full_blob_builds_server_info(self) -> None:
        info = ServerInfo.from_mapping(store.parse_info(INFO_TEXT))
        self.assertEqual(info.version, "7.2.4")
        self.assertEqual(info.memory, "1.05M")
        self.assertEqual(info.total_memory, "15.54G")
        self.assertEqual(info.connected_clients, 3)
        self.assertEqual(info.maxclients, 10000)
        self.assertAlmostEqual(info.used_cpu_user, 2.5)

    def test_missing_required_field_is_protocol_error(self) -> None:
        with self.assertRaises(ProtocolError) as ctx:
            ServerInfo.from_mapping({"redis_version": "7", "os": "Linux"})
        self.assertIn("used_memory_human", str(ctx.exception))

    def test_unparsable_optional_numbers_become_none(self) -> None:
        info = ServerInfo.from_mapping(
            {
                "redis_version": "7",
                "os": "Linux",
                "used_memory_human": "1M",
                "total_system_memory_human": "2G",
                "connected_clients": "many",
            }
        )
        self.assertIsNone(info.connected_clients)
        self.assertIsNone(info.used_cpu_sys)


class RedisTypeTests(unittest.TestCase):
    def test_known_replies_map_to_tags(self) -> None:
        self.assertIs(RedisType.from_reply("zset"), RedisType.ZSET)
        self.assertIs(RedisType.from_reply("ReJSON-RL"), RedisType.JSON)

    def test_unknown_reply_maps_to_unknown(self) -> None:
        self.assertIs(RedisType.from_reply("stream"), RedisType.UNKNOWN)
        self.assertIs(RedisType.from_reply("none"), RedisType.UNKNOWN)


class StoreCommandTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.redis = FakeRedis()
        self.redis.strings["greeting"] = "hello"
        self.redis.lists["queue"] = ["a", "b"]
        self.redis.sets["tags"] = {"x", "y"}
        self.redis.hashes["user:1"] = {"name": "ada", "lang": "en"}
        self.redis.zsets["board"] = [("bob", 3.0), ("amy", 1.5)]

    async def test_fetch_info_accepts_text_reply(self) -> None:
        info = await store.fetch_info(self.redis)
        self.assertEqual(info.os, "Linux 6.1.0 x86_64")

    async def test_fetch_info_accepts_parsed_reply(self) -> None:
        self.redis.info_reply = {
            "redis_version": "7.0.0",
            "os": "Darwin",
            "used_memory_human": "900K",
            "total_system_memory_human": "16G",
            "connected_clients": 1,
        }
        info = await store.fetch_info(self.redis)
        self.assertEqual(info.version, "7.0.0")
        self.assertEqual(info.connected_clients, 1)

    async def test_fetch_info_missing_fields_is_protocol_error(self) -> None:
        self.redis.info_reply = "# Server\r\nredis_version:7\r\n"
        with self.assertRaises(ProtocolError):
            await store.fetch_info(self.redis)

    async def test_scan_defaults_cursor_and_pattern(self) -> None:
        next_cursor, names = await store.scan(self.redis, None, None, count=2)
        self.assertEqual(self.redis.scan_calls[0], (0, "*", 2))
        self.assertEqual(next_cursor, 2)
        self.assertEqual(len(names), 2)

    async def test_values_decode_per_type(self) -> None:
        self.assertEqual(
            await store.key_value(self.redis, "greeting", RedisType.STRING), StringValue("hello")
        )
        self.assertEqual(
            await store.key_value(self.redis, "queue", RedisType.LIST), ListValue(("a", "b"))
        )
        self.assertEqual(
            await store.key_value(self.redis, "tags", RedisType.SET), SetValue(frozenset({"x", "y"}))
        )
        self.assertEqual(
            await store.key_value(self.redis, "user:1", RedisType.HASH),
            HashValue((("name", "ada"), ("lang", "en"))),
        )
        self.assertEqual(
            await store.key_value(self.redis, "board", RedisType.ZSET),
            ZsetValue((("amy", 1.5), ("bob", 3.0))),
        )
        self.assertEqual(await store.key_value(self.redis, "doc", RedisType.JSON), UnknownValue())

    async def test_memory_usage_of_vanished_key_is_zero(self) -> None:
        self.assertEqual(await store.key_memory_usage(self.redis, "gone"), 0)

    async def test_connection_errors_are_translated(self) -> None:
        self.redis.scan_error = redis_exceptions.ConnectionError("refused")
        with self.assertRaises(StoreConnectionError) as ctx:
            await store.scan(self.redis, None, None)
        self.assertIn("SCAN", str(ctx.exception))

    async def test_reply_errors_are_protocol_errors(self) -> None:
        self.redis.info_error = redis_exceptions.ResponseError("NOPERM")
        with self.assertRaises(ProtocolError):
            await store.fetch_info(self.redis)

    async def test_undecodable_value_is_protocol_error(self) -> None:
        self.redis.value_errors["greeting"] = UnicodeDecodeError(
            "utf-8", b"\x80\xff", 0, 1, "invalid start byte"
        )
        with self.assertRaises(ProtocolError) as ctx:
            await store.key_value(self.redis, "greeting", RedisType.STRING)
        self.assertIn("GET", str(ctx.exception))

    async def test_malformed_score_is_protocol_error(self) -> None:
        self.redis.zsets["board"] = [("amy", "not-a-number")]
        with self.assertRaises(ProtocolError):
            await store.key_value(self.redis, "board", RedisType.ZSET)


class ConnectTests(unittest.IsolatedAsyncioTestCase):
    async def test_client_replaces_undecodable_bytes(self) -> None:
        client = store.connect("redis://localhost:6379/0", socket_timeout=1.5)
        try:
            kwargs = client.connection_pool.connection_kwargs
            self.assertTrue(kwargs["decode_responses"])
            self.assertEqual(kwargs["encoding_errors"], store.VALUE_ENCODING_ERRORS)
            self.assertEqual(kwargs["socket_timeout"], 1.5)
        finally:
            await client.aclose()


if __name__ == "__main__":
    unittest.main()
