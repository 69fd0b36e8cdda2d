"""Cursor pagination over ``SCAN``.

States are implicit in field values:

- start: ``cursor is None``
- mid-iteration: ``cursor`` holds the token the current page was scanned from
- exhausted: ``next_cursor == SCAN_DONE``

``history`` only ever holds cursors that were navigated forward from, and
popping it is the only way back.
"""

from __future__ import annotations

from dataclasses import dataclass, field

SCAN_DONE = 0


@dataclass
class PaginationState:
    cursor: int | None = None
    next_cursor: int | None = None
    pattern: str | None = None
    page_size: int | None = None
    history: list[int] = field(default_factory=list)

    @property
    def is_exhausted(self) -> bool:
        return self.next_cursor == SCAN_DONE

    @property
    def page_number(self) -> int:
        """One-based index of the current page."""
        if self.cursor is None:
            return 1
        return len(self.history) + 2

    def advance(self) -> bool:
        """Move to the page staged by the last fetch.

        Returns ``False`` without touching anything when the scan is exhausted
        or no fetch has staged a cursor yet.
        """
        if self.next_cursor is None or self.next_cursor == SCAN_DONE:
            return False
        if self.cursor is not None:
            self.history.append(self.cursor)
        self.cursor = self.next_cursor
        self.next_cursor = None
        return True

    def retreat(self) -> bool:
        """Go back one page; an empty history returns to the start."""
        if self.cursor is None:
            return False
        self.cursor = self.history.pop() if self.history else None
        self.next_cursor = None
        return True

    def stage_next(self, cursor: int) -> None:
        self.next_cursor = cursor

    def set_filter(self, pattern: str | None) -> None:
        """Replace the match pattern.

        Cursor and history are left alone; call ``restart`` to rescan with
        the new pattern from the first page.
        """
        self.pattern = pattern or None

    def restart(self) -> None:
        self.cursor = None
        self.next_cursor = None
        self.history.clear()


__all__ = ["SCAN_DONE", "PaginationState"]
