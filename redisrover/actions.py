"""User intents (commands) and the effects the engine applies (actions).

Keybindings resolve to a ``Command``; every command maps to exactly one
``Action`` through ``command_to_action``. Actions add system events (tick,
render, resize) and the notifications posted by background tasks.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class Command(Enum):
    QUIT = "Quit"
    HELP = "Help"
    NEXT_TAB = "NextTab"
    PREVIOUS_TAB = "PreviousTab"
    ENTER_CMD = "EnterCmd"
    PREVIOUS_MODE = "PreviousMode"
    SCROLL_DOWN = "ScrollDown"
    SCROLL_UP = "ScrollUp"
    REFRESH_SPACE = "RefreshSpace"
    LOAD_NEXT_PAGE = "LoadNextPage"
    LOAD_PREVIOUS_PAGE = "LoadPreviousPage"
    ENTER_POPUP = "EnterPopup"
    CLOSE_POPUP = "ClosePopup"
    SET_FILTER = "SetFilter"
    DELETE_FILTER = "DeleteFilter"
    IGNORE = "Ignore"

    @classmethod
    def from_name(cls, name: str) -> Command:
        """Look up a command by its config name (``"LoadNextPage"``)."""
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"unknown command: {name!r}") from None


class Action(Enum):
    TICK = "Tick"
    RENDER = "Render"
    REFRESH = "Refresh"
    HELP = "Help"
    QUIT = "Quit"
    NEXT_TAB = "NextTab"
    PREVIOUS_TAB = "PreviousTab"
    ENTER_CMD = "EnterCmd"
    PREVIOUS_MODE = "PreviousMode"
    SCROLL_DOWN = "ScrollDown"
    SCROLL_UP = "ScrollUp"
    REFRESH_SPACE = "RefreshSpace"
    LOAD_NEXT_PAGE = "LoadNextPage"
    LOAD_PREVIOUS_PAGE = "LoadPreviousPage"
    ENTER_POPUP = "EnterPopup"
    CLOSE_POPUP = "ClosePopup"
    SET_FILTER = "SetFilter"
    DELETE_FILTER = "DeleteFilter"
    IGNORE = "Ignore"
    LOAD_KEYS_INTO_KEY_SPACE = "LoadKeysIntoKeySpace"


@dataclass(frozen=True)
class ResizeAction:
    width: int
    height: int


@dataclass(frozen=True)
class ErrorAction:
    """A failure that should be shown to the user."""

    message: str


AnyAction = Union[Action, ResizeAction, ErrorAction]

COMMAND_ACTIONS: dict[Command, Action] = {
    Command.QUIT: Action.QUIT,
    Command.HELP: Action.HELP,
    Command.NEXT_TAB: Action.NEXT_TAB,
    Command.PREVIOUS_TAB: Action.PREVIOUS_TAB,
    Command.ENTER_CMD: Action.ENTER_CMD,
    Command.PREVIOUS_MODE: Action.PREVIOUS_MODE,
    Command.SCROLL_DOWN: Action.SCROLL_DOWN,
    Command.SCROLL_UP: Action.SCROLL_UP,
    Command.REFRESH_SPACE: Action.REFRESH_SPACE,
    Command.LOAD_NEXT_PAGE: Action.LOAD_NEXT_PAGE,
    Command.LOAD_PREVIOUS_PAGE: Action.LOAD_PREVIOUS_PAGE,
    Command.ENTER_POPUP: Action.ENTER_POPUP,
    Command.CLOSE_POPUP: Action.CLOSE_POPUP,
    Command.SET_FILTER: Action.SET_FILTER,
    Command.DELETE_FILTER: Action.DELETE_FILTER,
    Command.IGNORE: Action.IGNORE,
}


def command_to_action(command: Command) -> Action:
    return COMMAND_ACTIONS[command]


__all__ = [
    "Command",
    "Action",
    "ResizeAction",
    "ErrorAction",
    "AnyAction",
    "COMMAND_ACTIONS",
    "command_to_action",
]
