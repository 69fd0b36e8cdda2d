"""Plain ANSI rendering of the app state.

Produces one full frame as a string; nothing here touches the terminal or
mutates state.
"""

from __future__ import annotations

import re
import unicodedata

from .input.keybindings import format_key_sequence
from .modes import TAB_MODES, Mode
from .runtime.app import App
from .store.types import (
    HashValue,
    KeyMetadata,
    ListValue,
    ServerInfo,
    SetValue,
    StringValue,
    TTL_NO_EXPIRY,
    ZsetValue,
)

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
RESET = "\033[0m"
BOLD = "\033[1m"
REVERSE = "\033[7m"
DIM = "\033[2m"
TITLE = "\033[1;38;5;81m"
KEY = "\033[38;5;229m"
ERROR = "\033[1;38;5;203m"

HIGHLIGHT_SYMBOL = ">> "
_BYTE_UNITS = ("B", "KiB", "MiB", "GiB", "TiB")


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to ``max_cols`` display columns, keeping escapes."""
    if max_cols <= 0 or not text:
        return ""
    out: list[str] = []
    col = 0
    i = 0
    while i < len(text) and col < max_cols:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        width = 2 if unicodedata.east_asian_width(ch) in {"W", "F"} else 1
        if ch in "\r\n\t":
            ch, width = " ", 1
        if col + width > max_cols:
            break
        out.append(ch)
        col += width
        i += 1
    return "".join(out) + RESET


def format_size(size: int) -> str:
    value = float(size)
    for unit in _BYTE_UNITS:
        if value < 1024 or unit == _BYTE_UNITS[-1]:
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.2f} {unit}"
        value /= 1024
    return f"{size} B"


def _base_tab(app: App) -> Mode:
    """Tab underneath the current popup or command line."""
    if app.mode in TAB_MODES:
        return app.mode
    return app.modes.base


def _tabs_line(app: App) -> str:
    parts = [f"{TITLE} redisrover {RESET}"]
    base = _base_tab(app)
    for mode in TAB_MODES:
        label = mode.value
        parts.append(f"{REVERSE} {label} {RESET}" if mode is base else f" {label} ")
    return " ".join(parts)


def _or_dash(value: object) -> str:
    return "-" if value is None else str(value)


def _ttl_text(ttl: int) -> str:
    return "-" if ttl == TTL_NO_EXPIRY else str(ttl)


def info_lines(info: ServerInfo | None) -> list[str]:
    if info is None:
        return [f"{DIM}Waiting for server info...{RESET}"]
    rows = [
        ("Version", info.version),
        ("OS", info.os),
        ("Memory", f"{info.memory} / {info.total_memory}"),
        ("CPU sys/user", f"{info.used_cpu_sys or 0:.2f}s / {info.used_cpu_user or 0:.2f}s"),
        ("Clients", f"{_or_dash(info.connected_clients)} / {_or_dash(info.maxclients)}"),
    ]
    return [f"{BOLD}{label:<14}{RESET}{value}" for label, value in rows]


def value_lines(meta: KeyMetadata) -> list[str]:
    """Describe one key's value, one line per element."""
    lines = [
        f"{BOLD}Key:{RESET} {meta.key}",
        f"{BOLD}Type:{RESET} {meta.type.value}  {BOLD}TTL:{RESET} {_ttl_text(meta.ttl)}"
        f"  {BOLD}Size:{RESET} {format_size(meta.size)}",
    ]
    value = meta.value
    if isinstance(value, StringValue):
        lines.append(f"Value: {value.text}")
    elif isinstance(value, ListValue):
        lines.extend(f"  [{idx}] {item}" for idx, item in enumerate(value.items))
    elif isinstance(value, SetValue):
        lines.extend(f"  - {member}" for member in sorted(value.members))
    elif isinstance(value, HashValue):
        lines.extend(f"  {field}: {item}" for field, item in value.fields)
    elif isinstance(value, ZsetValue):
        lines.extend(f"  {member} ({score:g})" for member, score in value.members)
    else:
        lines.append(f"{DIM}(value preview not available){RESET}")
    return lines


def keyspace_lines(app: App, rows: int) -> list[str]:
    view = app.keyspace
    cursor = view.cursor if view.cursor is not None else 0
    status = "end" if view.exhausted else "more"
    lines = [
        f"{BOLD}Cursor:{RESET} {cursor}  {BOLD}Page:{RESET} {view.page_number} ({status})"
        f"  {BOLD}Pattern:{RESET} {view.pattern or '*'}",
        f"{BOLD}   {'Type':<8}{'Key':<40}{'TTL(s)':>8}  {'Size':>12}{RESET}",
    ]
    if not view.keys:
        lines.append(f"{DIM}   (no keys){RESET}")
    for idx, meta in enumerate(view.keys):
        marker = HIGHLIGHT_SYMBOL if idx == view.selected else "   "
        row = f"{marker}{meta.type.value:<8}{meta.key[:39]:<40}{_ttl_text(meta.ttl):>8}  {format_size(meta.size):>12}"
        lines.append(f"{REVERSE}{row}{RESET}" if idx == view.selected else row)

    selected = view.selected_key
    if selected is not None:
        lines.append("")
        lines.extend(value_lines(selected))
    return lines[:rows]


def help_lines(app: App) -> list[str]:
    lines = [f"{TITLE}KEYS{RESET}"]
    for mode in (app.mode, Mode.COMMON):
        for sequence, command in sorted(app.resolver.bindings.table(mode).items()):
            lines.append(f"{KEY}{format_key_sequence(sequence):<12}{RESET} {command.value}")
    return lines


def footer_line(app: App) -> str:
    if app.mode is Mode.POPUP_ERROR and app.error_message:
        return f"{ERROR}Error:{RESET} {app.error_message}  {DIM}(enter to close){RESET}"
    if app.mode is Mode.POPUP_FILTER:
        return f"{BOLD}Pattern:{RESET} {app.keyspace.filter_buffer}█"
    if app.mode is Mode.CMD:
        return f":{app.cmd_buffer}█"
    last_error = app.state.last_error
    if last_error:
        return f"{DIM}stale: {last_error}{RESET}"
    return f"{DIM}? help  q quit{RESET}"


def render_frame(app: App, width: int, height: int) -> str:
    """Build a full frame of ``height`` rows clipped to ``width`` columns."""
    body_rows = max(0, height - 2)
    if app.show_help:
        body = help_lines(app)
    elif _base_tab(app) is Mode.INFO:
        body = info_lines(app.state.info)
    else:
        body = keyspace_lines(app, body_rows)
    body = body[:body_rows] + [""] * max(0, body_rows - len(body))
    lines = [_tabs_line(app), *body, footer_line(app)]
    return "\r\n".join(clip_ansi_line(line, width) for line in lines)


__all__ = [
    "clip_ansi_line",
    "format_size",
    "info_lines",
    "value_lines",
    "keyspace_lines",
    "help_lines",
    "footer_line",
    "render_frame",
]
