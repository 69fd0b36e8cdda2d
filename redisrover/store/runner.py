"""Background tasks that keep the shared snapshot fresh.

``Runner`` supervises two asyncio tasks sharing one cancellation event:

- the info poller refreshes ``SharedState.info`` on a fixed period;
- the key-refresh consumer serves ``FetchKeys`` requests from a bounded
  queue, loads one page per request, and posts
  ``Action.LOAD_KEYS_INTO_KEY_SPACE`` when new keys are in place.

Failures of either task are reported to the UI as ``ErrorAction``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from loguru import logger

from ..actions import Action, AnyAction, ErrorAction
from ..state import SharedState
from . import client as store
from .errors import StoreError
from .events import FetchKeys
from .fetcher import fetch_keys_with_meta
from .types import KeysList, ServerInfo

EVENT_QUEUE_CAPACITY = 50
INFO_REFRESH_SECONDS = 2.0
SHUTDOWN_GRACE_SECONDS = 0.1

ActionSink = Callable[[AnyAction], None]
FetchPage = Callable[..., Awaitable[KeysList]]
FetchInfo = Callable[[aioredis.Redis], Awaitable[ServerInfo]]


class FetchPublisher:
    """Producer handle for the key-refresh queue; any number may exist."""

    def __init__(self, queue: asyncio.Queue[FetchKeys]) -> None:
        self._queue = queue

    async def publish(self, event: FetchKeys | None = None) -> None:
        """Queue a request, waiting for room when the queue is full."""
        await self._queue.put(event if event is not None else FetchKeys())

    def publish_nowait(self, event: FetchKeys | None = None) -> bool:
        """Queue a request without waiting; a full queue drops it."""
        try:
            self._queue.put_nowait(event if event is not None else FetchKeys())
        except asyncio.QueueFull:
            logger.warning("key refresh queue is full; dropping {}", event)
            return False
        return True


class EventHandler:
    """Turns one ``FetchKeys`` request into a page load."""

    def __init__(
        self,
        client: aioredis.Redis,
        state: SharedState,
        emit: ActionSink,
        fetch: FetchPage = fetch_keys_with_meta,
    ) -> None:
        self._client = client
        self._state = state
        self._emit = emit
        self._fetch = fetch

    async def handle(self, event: FetchKeys) -> None:
        with self._state.pagination() as pagination:
            origin = (pagination.cursor, pagination.pattern)
            page_size = pagination.page_size
        cursor = event.cursor if event.cursor is not None else origin[0]
        pattern = event.pattern if event.pattern is not None else origin[1]

        try:
            result = await self._fetch(self._client, cursor, pattern, page_size)
        except StoreError as exc:
            logger.error("loading keys (cursor={}, pattern={!r}) failed: {}", cursor, pattern, exc)
            self._state.set_last_error(str(exc))
            self._emit(ErrorAction(f"Failed to load keys: {exc}"))
            return

        with self._state.pagination() as pagination:
            if (pagination.cursor, pagination.pattern) != origin:
                # Pagination moved while this page was in flight; a newer
                # request is already queued behind us.
                logger.debug("discarding page for superseded cursor {}", cursor)
                return
            pagination.stage_next(result.cursor)

        if result:
            self._state.replace_keys(result.keys)
        else:
            self._state.clear_keys()
        self._state.set_last_error(None)
        self._emit(Action.LOAD_KEYS_INTO_KEY_SPACE)


class Runner:
    def __init__(
        self,
        client: aioredis.Redis,
        state: SharedState,
        emit: ActionSink,
        *,
        info_interval: float = INFO_REFRESH_SECONDS,
        capacity: int = EVENT_QUEUE_CAPACITY,
        cancel: asyncio.Event | None = None,
        fetch_page: FetchPage = fetch_keys_with_meta,
        fetch_info: FetchInfo = store.fetch_info,
    ) -> None:
        self._client = client
        self._state = state
        self._emit = emit
        self._info_interval = info_interval
        self._cancel = cancel if cancel is not None else asyncio.Event()
        self._queue: asyncio.Queue[FetchKeys] = asyncio.Queue(maxsize=max(1, capacity))
        self._fetch_page = fetch_page
        self._fetch_info = fetch_info
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def cancel_event(self) -> asyncio.Event:
        return self._cancel

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def publisher(self) -> FetchPublisher:
        return FetchPublisher(self._queue)

    def start(self) -> None:
        if self.running:
            return
        self._tasks = [
            self._spawn(self._poll_info(), "info-poller"),
            self._spawn(self._consume_events(), "key-refresh"),
        ]

    async def stop(self, grace: float = SHUTDOWN_GRACE_SECONDS) -> None:
        """Signal cancellation and wait ``grace`` seconds per task before aborting it."""
        self._cancel.set()
        for task in self._tasks:
            if task.done():
                continue
            done, _ = await asyncio.wait({task}, timeout=grace)
            if not done:
                logger.warning("{} did not stop within {}s; aborting", task.get_name(), grace)
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
        self._tasks = []

    def _spawn(self, coro: Awaitable[None], name: str) -> asyncio.Task[None]:
        task = asyncio.ensure_future(coro)
        task.set_name(name)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            logger.debug("{} stopped", task.get_name())
            return
        logger.opt(exception=exc).error("{} crashed", task.get_name())
        self._emit(ErrorAction(f"Background task {task.get_name()} stopped: {exc}"))

    async def _wait_cancelled(self, timeout: float) -> bool:
        """Sleep up to ``timeout``; return ``True`` if cancellation fired."""
        try:
            await asyncio.wait_for(self._cancel.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _poll_info(self) -> None:
        healthy = True
        while not self._cancel.is_set():
            try:
                info = await self._fetch_info(self._client)
            except StoreError as exc:
                # Keep the previous snapshot; the next tick retries.
                logger.warning("server info refresh failed: {}", exc)
                if healthy:
                    self._emit(ErrorAction(f"Server info refresh failed: {exc}"))
                healthy = False
            else:
                self._state.set_info(info)
                healthy = True
            if await self._wait_cancelled(self._info_interval):
                break

    async def _next_event(self) -> FetchKeys | None:
        """Wait for the next request, or ``None`` once cancellation fires.

        A request dequeued in the same step as cancellation is still returned.
        """
        getter = asyncio.ensure_future(self._queue.get())
        stopper = asyncio.ensure_future(self._cancel.wait())
        try:
            done, _ = await asyncio.wait({getter, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in (getter, stopper):
                if not waiter.done():
                    waiter.cancel()
        if getter in done:
            return getter.result()
        return None

    async def _consume_events(self) -> None:
        handler = EventHandler(self._client, self._state, self._emit, fetch=self._fetch_page)
        while not self._cancel.is_set():
            event = await self._next_event()
            if event is None:
                break
            try:
                await handler.handle(event)
            except Exception as exc:
                logger.opt(exception=exc).error("key refresh for {} failed unexpectedly", event)
                self._state.set_last_error(str(exc))
                self._emit(ErrorAction(f"Failed to load keys: {exc}"))


__all__ = [
    "EVENT_QUEUE_CAPACITY",
    "INFO_REFRESH_SECONDS",
    "SHUTDOWN_GRACE_SECONDS",
    "FetchPublisher",
    "EventHandler",
    "Runner",
]
