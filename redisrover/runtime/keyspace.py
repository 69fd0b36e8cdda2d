"""Keyspace tab view state: the loaded page and the selected row."""

from __future__ import annotations

from dataclasses import dataclass

from ..store.types import KeyMetadata


@dataclass
class KeySpaceView:
    keys: tuple[KeyMetadata, ...] = ()
    selected: int | None = None
    cursor: int | None = None
    pattern: str | None = None
    page_number: int = 1
    exhausted: bool = False
    filter_buffer: str = ""

    def set_keys(self, keys: tuple[KeyMetadata, ...]) -> None:
        """Replace the page and drop the selection."""
        self.keys = tuple(keys)
        self.selected = None

    def scroll_next(self) -> None:
        """Select the next row, wrapping to the top; no rows means no selection."""
        if not self.keys:
            self.selected = None
            return
        self.selected = 0 if self.selected is None else (self.selected + 1) % len(self.keys)

    def scroll_previous(self) -> None:
        """Select the previous row, wrapping to the bottom."""
        if not self.keys:
            self.selected = None
            return
        last = len(self.keys) - 1
        self.selected = last if self.selected is None else (self.selected + last) % len(self.keys)

    @property
    def selected_key(self) -> KeyMetadata | None:
        if self.selected is None or not (0 <= self.selected < len(self.keys)):
            return None
        return self.keys[self.selected]

    def open_filter(self) -> None:
        self.filter_buffer = self.pattern or ""

    def confirm_filter(self) -> str | None:
        """Return the pattern typed in the popup; empty input clears the filter."""
        pattern = self.filter_buffer.strip() or None
        self.filter_buffer = ""
        return pattern


__all__ = ["KeySpaceView"]
