"""Requests published to the key-refresh task."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FetchKeys:
    """Reload one keyspace page.

    ``cursor`` and ``pattern`` override the pagination state for this request
    only; ``None`` means use whatever the pagination state holds.
    """

    cursor: int | None = None
    pattern: str | None = None


__all__ = ["FetchKeys"]
