"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into key tokens: printable
characters are returned as-is, everything else as an upper-case name
(``ENTER``, ``ESC``, ``UP``, ``CTRL_D`` ...).
"""

from __future__ import annotations

import os
import select

ESC_SEQUENCE_TIMEOUT_MS = 25
_PENDING_BYTES: list[bytes] = []

_CONTROL_NAMES = {
    b"\t": "TAB",
    b"\r": "ENTER",
    b"\n": "ENTER",
    b"\x08": "BACKSPACE",
    b"\x7f": "BACKSPACE",
}

_CSI_FINAL = {
    b"A": "UP",
    b"B": "DOWN",
    b"C": "RIGHT",
    b"D": "LEFT",
    b"H": "HOME",
    b"F": "END",
    b"Z": "BACKTAB",
}


def _next_byte(fd: int, timeout_ms: int | None) -> bytes | None:
    """One byte from ``fd``; ``None`` on timeout or EOF. No timeout blocks."""
    timeout = None if timeout_ms is None else max(0.0, timeout_ms / 1000.0)
    readable, _, _ = select.select([fd], [], [], timeout)
    if not readable:
        return None
    return os.read(fd, 1) or None


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _decode_escape(fd: int) -> str:
    """Decode what follows an ESC byte: a CSI/SS3 key or a bare ESC."""
    introducer = _next_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if introducer is None:
        return "ESC"
    if introducer not in (b"[", b"O"):
        # ESC followed by an ordinary key: hand the key back for the next read.
        _PENDING_BYTES.append(introducer)
        return "ESC"
    final = _next_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    while final is not None and not 0x40 <= final[0] <= 0x7E:
        final = _next_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if final is None:
        return "ESC"
    # Unsupported sequences (function keys, modifiers) collapse to ESC.
    return _CSI_FINAL.get(final, "ESC")


def read_key(fd: int, timeout_ms: int | None = None) -> str:
    """Read one key token; ``""`` when nothing arrived within ``timeout_ms``."""
    byte = _PENDING_BYTES.pop(0) if _PENDING_BYTES else _next_byte(fd, timeout_ms)
    if byte is None:
        return ""
    if byte == b"\x1b":
        return _decode_escape(fd)
    if byte in _CONTROL_NAMES:
        return _CONTROL_NAMES[byte]
    lead = byte[0]
    if lead < 0x1B:
        return f"CTRL_{chr(lead + 0x40)}"

    raw = byte
    for _ in range(_utf8_length(lead) - 1):
        more = _next_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if more is None:
            break
        raw += more
    return raw.decode("utf-8", errors="replace")


__all__ = ["ESC_SEQUENCE_TIMEOUT_MS", "read_key"]
