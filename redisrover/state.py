"""Process-wide snapshot shared by background tasks and the UI.

Each field has its own lock. Reading pagination and then keys is two critical
sections; nothing here promises the fields change together.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from .pagination import PaginationState
from .store.types import KeyMetadata, ServerInfo


class SharedState:
    def __init__(self, pagination: PaginationState | None = None) -> None:
        self._info: ServerInfo | None = None
        self._keys: tuple[KeyMetadata, ...] = ()
        self._pagination = pagination if pagination is not None else PaginationState()
        self._last_error: str | None = None
        self._info_lock = threading.Lock()
        self._keys_lock = threading.Lock()
        self._pagination_lock = threading.Lock()
        self._error_lock = threading.Lock()

    @property
    def info(self) -> ServerInfo | None:
        with self._info_lock:
            return self._info

    def set_info(self, info: ServerInfo) -> None:
        with self._info_lock:
            self._info = info

    @property
    def keys(self) -> tuple[KeyMetadata, ...]:
        with self._keys_lock:
            return self._keys

    def replace_keys(self, keys: tuple[KeyMetadata, ...] | list[KeyMetadata]) -> None:
        with self._keys_lock:
            self._keys = tuple(keys)

    def clear_keys(self) -> None:
        with self._keys_lock:
            self._keys = ()

    @property
    def last_error(self) -> str | None:
        with self._error_lock:
            return self._last_error

    def set_last_error(self, message: str | None) -> None:
        with self._error_lock:
            self._last_error = message

    def pagination_snapshot(self) -> PaginationState:
        """Return a detached copy of the pagination state."""
        with self._pagination_lock:
            return copy.deepcopy(self._pagination)

    @contextmanager
    def pagination(self) -> Iterator[PaginationState]:
        """Hold the pagination lock for an in-place update.

        The block must not await; the lock is a thread lock.
        """
        with self._pagination_lock:
            yield self._pagination


__all__ = ["SharedState"]
