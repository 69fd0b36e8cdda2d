"""Raw-mode terminal session for the browser UI.

Switches stdin to raw mode and stdout to the alternate screen, and writes
whole frames.
"""

from __future__ import annotations

import contextlib
import os
import termios
import tty

ENTER_SCREEN = b"\x1b[?1049h\x1b[?25l"
LEAVE_SCREEN = b"\x1b[?25h\x1b[?1049l"
CLEAR_HOME = "\x1b[H\x1b[2J"
FALLBACK_SIZE = (80, 24)


class TerminalController:
    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._cooked_attrs = termios.tcgetattr(stdin_fd)
        self.active = False

    def enter(self) -> None:
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, ENTER_SCREEN)
        self.active = True

    def leave(self) -> None:
        """Restore the cursor, the primary screen, and cooked tty attributes."""
        if not self.active:
            return
        self.active = False
        os.write(self.stdout_fd, LEAVE_SCREEN)
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._cooked_attrs)

    def size(self) -> tuple[int, int]:
        """Current ``(columns, rows)``; 80x24 when stdout is not a terminal."""
        try:
            term = os.get_terminal_size(self.stdout_fd)
        except OSError:
            return FALLBACK_SIZE
        return term.columns, term.lines

    def write_frame(self, frame: str) -> None:
        os.write(self.stdout_fd, (CLEAR_HOME + frame).encode("utf-8", errors="replace"))

    @contextlib.contextmanager
    def raw_mode(self):
        self.enter()
        try:
            yield self
        finally:
            self.leave()


__all__ = ["TerminalController"]
