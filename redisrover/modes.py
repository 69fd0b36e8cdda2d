"""UI modes and the single-slot mode history."""

from __future__ import annotations

from enum import Enum


class Mode(Enum):
    COMMON = "Common"
    INFO = "Info"
    KEYSPACE = "KeySpace"
    CMD = "Cmd"
    POPUP_ERROR = "PopupError"
    POPUP_INFO = "PopupInfo"
    POPUP_CONFIRM = "PopupConfirm"
    POPUP_FILTER = "PopupFilter"

    @classmethod
    def from_name(cls, name: str) -> Mode:
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"unknown mode: {name!r}") from None


TAB_MODES = (Mode.INFO, Mode.KEYSPACE)


class ModeTracker:
    """Current mode plus one remembered previous mode.

    Only one level of ``back`` is recoverable: entering a new mode overwrites
    the remembered one. ``base`` is the last tab shown, so ``back`` out of an
    overlay whose history was overwritten still lands on a tab.
    """

    def __init__(self, initial: Mode = Mode.INFO) -> None:
        self.current = initial
        self.previous: Mode | None = None
        self.base = initial if initial in TAB_MODES else Mode.INFO

    def enter(self, mode: Mode) -> None:
        if mode is self.current:
            return
        if self.current in TAB_MODES:
            self.base = self.current
        self.previous = self.current
        self.current = mode

    def back(self) -> Mode:
        """Return to the remembered mode, or the last tab, and forget it."""
        if self.previous is not None:
            self.current = self.previous
            self.previous = None
        elif self.current not in TAB_MODES:
            self.current = self.base
        return self.current

    def switch(self, mode: Mode) -> None:
        """Change mode without remembering where we came from (tab switches)."""
        self.current = mode
        self.previous = None
        if mode in TAB_MODES:
            self.base = mode


__all__ = ["Mode", "TAB_MODES", "ModeTracker"]
