"""Persistent JSON config helpers.

Holds connection defaults and keybinding overrides. All access is defensive:
malformed or missing config falls back to built-in defaults.
"""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger
from platformdirs import user_config_dir

from ..actions import Command
from ..input.keybindings import DEFAULT_KEYBINDINGS, KeyBindings, parse_key_sequence
from ..modes import Mode

APP_NAME = "redisrover"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

DEFAULT_URL = "redis://localhost:6379"
DEFAULT_TICK_RATE = 4.0
DEFAULT_FRAME_RATE = 30.0


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config {}: {}", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def load_url() -> str:
    value = load_config().get("url")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_URL


def _load_positive_number(key: str, default: float) -> float:
    """Read a positive number; booleans and other types fall back to ``default``."""
    value = load_config().get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return default
    return float(value)


def load_tick_rate() -> float:
    return _load_positive_number("tick_rate", DEFAULT_TICK_RATE)


def load_frame_rate() -> float:
    return _load_positive_number("frame_rate", DEFAULT_FRAME_RATE)


def load_page_size() -> int | None:
    value = load_config().get("page_size")
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return None
    return value


def load_keybindings() -> KeyBindings:
    """Return default keybindings with user overrides applied per entry.

    The config shape is ``{"keybindings": {"KeySpace": {"<x>": "Quit"}}}``.
    Unknown modes, unknown commands, and malformed sequences are dropped.
    """
    bindings = KeyBindings.from_notation(DEFAULT_KEYBINDINGS)
    overrides = load_config().get("keybindings")
    if not isinstance(overrides, dict):
        return bindings

    for mode_name, table in overrides.items():
        if not isinstance(table, dict):
            continue
        try:
            mode = Mode.from_name(str(mode_name))
        except ValueError as exc:
            logger.warning("config keybindings: {}", exc)
            continue
        for notation, command_name in table.items():
            if not isinstance(notation, str) or not isinstance(command_name, str):
                continue
            try:
                sequence = parse_key_sequence(notation)
                command = Command.from_name(command_name)
            except ValueError as exc:
                logger.warning("config keybindings[{}]: {}", mode_name, exc)
                continue
            bindings.bind(mode, sequence, command)
    return bindings


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "DEFAULT_URL",
    "DEFAULT_TICK_RATE",
    "DEFAULT_FRAME_RATE",
    "load_config",
    "load_url",
    "load_tick_rate",
    "load_frame_rate",
    "load_page_size",
    "load_keybindings",
]
