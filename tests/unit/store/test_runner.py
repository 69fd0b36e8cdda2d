"""Tests for the background runner: key-refresh handling, info polling, shutdown."""

from __future__ import annotations

import asyncio
import unittest

from redis import exceptions as redis_exceptions

from fakes import FakeRedis
from redisrover.actions import Action, ErrorAction
from redisrover.state import SharedState
from redisrover.store.errors import StoreConnectionError
from redisrover.store.events import FetchKeys
from redisrover.store.runner import EventHandler, FetchPublisher, Runner
from redisrover.store.types import KeysPage, NoKeys


class EventHandlerTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.redis = FakeRedis()
        self.state = SharedState()
        self.emitted: list = []
        self.handler = EventHandler(self.redis, self.state, self.emitted.append)

    async def test_first_page_stages_next_cursor_without_moving(self) -> None:
        self.redis.strings.update({"a": "1", "b": "2"})
        self.redis.scan_replies[0] = (12, ["a", "b"])

        await self.handler.handle(FetchKeys())

        pagination = self.state.pagination_snapshot()
        self.assertIsNone(pagination.cursor)
        self.assertEqual(pagination.next_cursor, 12)
        self.assertEqual([meta.key for meta in self.state.keys], ["a", "b"])
        self.assertEqual(self.emitted, [Action.LOAD_KEYS_INTO_KEY_SPACE])

    async def test_store_error_keeps_stale_keys_and_reports(self) -> None:
        self.redis.strings["a"] = "1"
        await self.handler.handle(FetchKeys())
        before = self.state.keys

        self.redis.scan_error = redis_exceptions.ConnectionError("refused")
        await self.handler.handle(FetchKeys())

        self.assertEqual(self.state.keys, before)
        self.assertIn("refused", self.state.last_error)
        self.assertIsInstance(self.emitted[-1], ErrorAction)
        self.assertTrue(self.emitted[-1].message.startswith("Failed to load keys"))

    async def test_success_after_error_clears_last_error(self) -> None:
        self.state.set_last_error("old")
        await self.handler.handle(FetchKeys())
        self.assertIsNone(self.state.last_error)
        self.assertEqual(self.state.keys, ())

    async def test_event_overrides_cursor_and_pattern(self) -> None:
        await self.handler.handle(FetchKeys(cursor=30, pattern="user:*"))
        self.assertEqual(self.redis.scan_calls[0][:2], (30, "user:*"))

    async def test_result_for_superseded_cursor_is_discarded(self) -> None:
        state = self.state

        async def fetch(client, cursor, pattern, page_size):
            with state.pagination() as pagination:
                pagination.set_filter("moved:*")
            return NoKeys(cursor=9)

        handler = EventHandler(self.redis, state, self.emitted.append, fetch=fetch)
        await handler.handle(FetchKeys())

        self.assertIsNone(state.pagination_snapshot().next_cursor)
        self.assertEqual(self.emitted, [])

    async def test_empty_step_after_populated_page_clears_keys(self) -> None:
        self.redis.strings.update({"a": "1", "b": "2"})
        self.redis.scan_replies[0] = (12, ["a", "b"])
        await self.handler.handle(FetchKeys())
        self.assertEqual(len(self.state.keys), 2)

        with self.state.pagination() as pagination:
            pagination.advance()
        self.redis.scan_replies[12] = (0, [])
        await self.handler.handle(FetchKeys())

        pagination = self.state.pagination_snapshot()
        self.assertEqual(self.state.keys, ())
        self.assertEqual((pagination.cursor, pagination.next_cursor), (12, 0))
        self.assertTrue(pagination.is_exhausted)
        self.assertEqual(self.emitted, [Action.LOAD_KEYS_INTO_KEY_SPACE] * 2)

    async def test_undecodable_value_fails_only_its_page(self) -> None:
        self.redis.strings.update({"blob": "?", "name": "rover"})
        self.redis.value_errors["blob"] = UnicodeDecodeError("utf-8", b"\x80", 0, 1, "invalid start byte")

        await self.handler.handle(FetchKeys())

        self.assertEqual(self.state.keys, ())
        self.assertIn("blob", self.state.last_error)
        self.assertIsInstance(self.emitted[-1], ErrorAction)


class FetchPublisherTests(unittest.IsolatedAsyncioTestCase):
    async def test_full_queue_drops_request(self) -> None:
        queue: asyncio.Queue[FetchKeys] = asyncio.Queue(maxsize=1)
        publisher = FetchPublisher(queue)
        self.assertTrue(publisher.publish_nowait())
        self.assertFalse(publisher.publish_nowait(FetchKeys(cursor=3)))
        self.assertEqual(queue.get_nowait(), FetchKeys())


class RunnerTests(unittest.IsolatedAsyncioTestCase):
    async def test_published_request_loads_keys_then_stop_joins_tasks(self) -> None:
        redis = FakeRedis()
        redis.strings["k"] = "v"
        state = SharedState()
        loaded = asyncio.Event()
        emitted: list = []

        def emit(action) -> None:
            emitted.append(action)
            if action is Action.LOAD_KEYS_INTO_KEY_SPACE:
                loaded.set()

        runner = Runner(redis, state, emit, info_interval=60)
        runner.start()
        await runner.publisher().publish()
        await asyncio.wait_for(loaded.wait(), timeout=2)

        self.assertEqual([meta.key for meta in state.keys], ["k"])
        self.assertIsNotNone(state.info)
        self.assertEqual(state.info.version, "7.2.4")

        await runner.stop()
        self.assertFalse(runner.running)
        self.assertTrue(runner.cancel_event.is_set())

    async def test_info_failure_is_reported_once_until_recovery(self) -> None:
        redis = FakeRedis()
        state = SharedState()
        emitted: list = []
        calls = 0

        async def fetch_info(client):
            nonlocal calls
            calls += 1
            raise StoreConnectionError("INFO: down")

        runner = Runner(redis, state, emitted.append, info_interval=0.01, fetch_info=fetch_info)
        runner.start()
        while calls < 3:
            await asyncio.sleep(0.01)
        await runner.stop()

        errors = [action for action in emitted if isinstance(action, ErrorAction)]
        self.assertEqual(len(errors), 1)
        self.assertIsNone(state.info)

    async def test_stop_aborts_a_task_stuck_past_the_grace_period(self) -> None:
        redis = FakeRedis()
        state = SharedState()
        started = asyncio.Event()

        async def fetch_page(client, cursor, pattern, page_size):
            started.set()
            await asyncio.sleep(60)
            return KeysPage(cursor=0, keys=())

        runner = Runner(redis, state, lambda action: None, info_interval=60, fetch_page=fetch_page)
        runner.start()
        await runner.publisher().publish()
        await asyncio.wait_for(started.wait(), timeout=2)

        await asyncio.wait_for(runner.stop(grace=0.05), timeout=2)
        self.assertFalse(runner.running)

    async def test_consumer_keeps_serving_after_unexpected_error(self) -> None:
        state = SharedState()
        loaded = asyncio.Event()
        emitted: list = []
        calls = 0

        async def fetch_page(client, cursor, pattern, page_size):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("malformed reply")
            return NoKeys(cursor=0)

        def emit(action) -> None:
            emitted.append(action)
            if action is Action.LOAD_KEYS_INTO_KEY_SPACE:
                loaded.set()

        runner = Runner(FakeRedis(), state, emit, info_interval=60, fetch_page=fetch_page)
        runner.start()
        await runner.publisher().publish()
        await runner.publisher().publish()
        await asyncio.wait_for(loaded.wait(), timeout=2)
        await runner.stop()

        self.assertEqual(calls, 2)
        self.assertIsInstance(emitted[0], ErrorAction)
        self.assertIn("malformed reply", emitted[0].message)
        self.assertIsNone(state.last_error)

    async def test_request_dequeued_with_cancellation_is_returned(self) -> None:
        runner = Runner(FakeRedis(), SharedState(), lambda action: None, info_interval=60)
        self.assertTrue(runner.publisher().publish_nowait(FetchKeys(cursor=7)))
        runner.cancel_event.set()

        self.assertEqual(await runner._next_event(), FetchKeys(cursor=7))
        self.assertIsNone(await runner._next_event())


if __name__ == "__main__":
    unittest.main()
