"""Input layer: raw key decoding and keybinding resolution."""

from .keybindings import (
    DEFAULT_KEYBINDINGS,
    KeyBindings,
    KeySequenceResolver,
    format_key_sequence,
    parse_key_sequence,
)
from .reader import ESC_SEQUENCE_TIMEOUT_MS, read_key

__all__ = [
    "read_key",
    "ESC_SEQUENCE_TIMEOUT_MS",
    "DEFAULT_KEYBINDINGS",
    "KeyBindings",
    "KeySequenceResolver",
    "parse_key_sequence",
    "format_key_sequence",
]
