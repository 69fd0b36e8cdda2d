"""Error taxonomy for store reads.

Cooperative shutdown uses ``asyncio.CancelledError`` and is not part of this
hierarchy.
"""

from __future__ import annotations


class StoreError(Exception):
    """Base class for every failure raised by the store layer."""


class StoreConnectionError(StoreError):
    """Transport, timeout, or authentication failure."""


class ProtocolError(StoreError):
    """Reply could not be interpreted (error reply, missing INFO fields...)."""


class FetchFailure(StoreError):
    """One key of a page fan-out failed; the whole page is discarded."""

    def __init__(self, key: str, cause: BaseException) -> None:
        super().__init__(f"failed to fetch metadata for {key!r}: {cause}")
        self.key = key
        self.cause = cause


__all__ = [
    "StoreError",
    "StoreConnectionError",
    "ProtocolError",
    "FetchFailure",
]
