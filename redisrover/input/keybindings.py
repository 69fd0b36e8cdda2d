"""Mode-scoped keybinding tables and multi-key sequence resolution."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from ..actions import Command
from ..modes import Mode

KeySequence = tuple[str, ...]

_SEQUENCE_RE = re.compile(r"<([^<>]+|<|>)>")

_KEY_NAMES = {
    "enter": "ENTER",
    "cr": "ENTER",
    "esc": "ESC",
    "escape": "ESC",
    "tab": "TAB",
    "backspace": "BACKSPACE",
    "bs": "BACKSPACE",
    "space": " ",
    "up": "UP",
    "down": "DOWN",
    "left": "LEFT",
    "right": "RIGHT",
    "lt": "<",
    "gt": ">",
}


def _key_token(name: str) -> str:
    if len(name) == 1:
        return name
    lowered = name.strip().lower()
    if lowered in _KEY_NAMES:
        return _KEY_NAMES[lowered]
    return lowered.replace("-", "_").upper()


def parse_key_sequence(text: str) -> KeySequence:
    """Parse ``"<g><g>"`` style notation into reader key tokens.

    Single characters are kept as-is (case-sensitive); named keys such as
    ``<enter>`` or ``<ctrl-d>`` map to the tokens ``read_key`` produces.
    """
    tokens: list[str] = []
    pos = 0
    for match in _SEQUENCE_RE.finditer(text):
        if match.start() != pos:
            break
        tokens.append(_key_token(match.group(1)))
        pos = match.end()
    if not tokens or pos != len(text):
        raise ValueError(f"invalid key sequence: {text!r}")
    return tuple(tokens)


def format_key_sequence(sequence: Iterable[str]) -> str:
    """Render tokens back into ``<...>`` notation for help and logs."""
    out = []
    for token in sequence:
        name = token if len(token) == 1 else token.lower().replace("_", "-")
        out.append(f"<{name}>")
    return "".join(out)


DEFAULT_KEYBINDINGS: dict[Mode, dict[str, Command]] = {
    Mode.COMMON: {
        "<q>": Command.QUIT,
        "<ctrl-c>": Command.QUIT,
        "<?>": Command.HELP,
        "<tab>": Command.NEXT_TAB,
        "<]>": Command.NEXT_TAB,
        "<[>": Command.PREVIOUS_TAB,
        "<backtab>": Command.PREVIOUS_TAB,
        "<:>": Command.ENTER_CMD,
    },
    Mode.INFO: {},
    Mode.KEYSPACE: {
        "<j>": Command.SCROLL_DOWN,
        "<down>": Command.SCROLL_DOWN,
        "<k>": Command.SCROLL_UP,
        "<up>": Command.SCROLL_UP,
        "<g><g>": Command.REFRESH_SPACE,
        "<n>": Command.LOAD_NEXT_PAGE,
        "<right>": Command.LOAD_NEXT_PAGE,
        "<p>": Command.LOAD_PREVIOUS_PAGE,
        "<left>": Command.LOAD_PREVIOUS_PAGE,
        "</>": Command.ENTER_POPUP,
        "<d><f>": Command.DELETE_FILTER,
    },
    Mode.CMD: {
        "<esc>": Command.PREVIOUS_MODE,
        "<ctrl-c>": Command.QUIT,
    },
    Mode.POPUP_FILTER: {
        "<enter>": Command.SET_FILTER,
        "<esc>": Command.CLOSE_POPUP,
        "<ctrl-c>": Command.QUIT,
    },
    Mode.POPUP_ERROR: {
        "<enter>": Command.CLOSE_POPUP,
        "<esc>": Command.CLOSE_POPUP,
    },
    Mode.POPUP_INFO: {
        "<enter>": Command.CLOSE_POPUP,
        "<esc>": Command.CLOSE_POPUP,
    },
    Mode.POPUP_CONFIRM: {
        "<esc>": Command.CLOSE_POPUP,
    },
}


class KeyBindings:
    """Per-mode ``key sequence -> Command`` tables.

    Lookups try the active mode first and then ``Mode.COMMON``. Matching is
    whole-sequence equality, never prefix.
    """

    def __init__(self) -> None:
        self._tables: dict[Mode, dict[KeySequence, Command]] = {}

    @classmethod
    def from_notation(cls, tables: Mapping[Mode, Mapping[str, Command]]) -> KeyBindings:
        bindings = cls()
        for mode, table in tables.items():
            for notation, command in table.items():
                bindings.bind(mode, parse_key_sequence(notation), command)
        return bindings

    @classmethod
    def defaults(cls) -> KeyBindings:
        return cls.from_notation(DEFAULT_KEYBINDINGS)

    def bind(self, mode: Mode, sequence: KeySequence, command: Command) -> KeyBindings:
        """Bind one sequence, replacing any existing binding for it."""
        self._tables.setdefault(mode, {})[tuple(sequence)] = command
        return self

    def table(self, mode: Mode) -> dict[KeySequence, Command]:
        return dict(self._tables.get(mode, {}))

    def lookup(self, mode: Mode, sequence: KeySequence, *, fallback: bool = True) -> Command | None:
        command = self._tables.get(mode, {}).get(sequence)
        if command is None and fallback and mode is not Mode.COMMON:
            command = self._tables.get(Mode.COMMON, {}).get(sequence)
        return command


class KeySequenceResolver:
    """Accumulates key presses until they resolve to a command.

    A key bound on its own resolves immediately without touching the
    accumulator. Otherwise it is appended and the whole accumulated sequence
    is looked up. The accumulator empties on resolution and on ``reset``,
    which the app calls on every tick.
    """

    def __init__(self, bindings: KeyBindings) -> None:
        self.bindings = bindings
        self.pending: list[str] = []

    def feed(self, mode: Mode, key: str, *, fallback: bool = True) -> Command | None:
        command = self.bindings.lookup(mode, (key,), fallback=fallback)
        if command is not None:
            self.pending.clear()
            return command

        self.pending.append(key)
        command = self.bindings.lookup(mode, tuple(self.pending), fallback=fallback)
        if command is not None:
            self.pending.clear()
        return command

    def reset(self) -> None:
        self.pending.clear()


__all__ = [
    "KeySequence",
    "parse_key_sequence",
    "format_key_sequence",
    "DEFAULT_KEYBINDINGS",
    "KeyBindings",
    "KeySequenceResolver",
]
