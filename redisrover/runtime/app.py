"""Interactive controller: turns key tokens into actions and applies them.

The controller owns everything the renderer reads besides the shared
snapshot: current mode, keyspace view, popup buffers, and the pending action
queue. Background tasks post actions through ``dispatch``.
"""

from __future__ import annotations

from collections import deque

from loguru import logger

from ..actions import Action, AnyAction, Command, ErrorAction, ResizeAction, command_to_action
from ..input.keybindings import KeyBindings, KeySequenceResolver
from ..modes import TAB_MODES, Mode, ModeTracker
from ..state import SharedState
from ..store.events import FetchKeys
from ..store.runner import FetchPublisher
from .keyspace import KeySpaceView

TEXT_ENTRY_MODES = frozenset({Mode.POPUP_FILTER, Mode.CMD})
_QUIET_ACTIONS = frozenset({Action.TICK, Action.RENDER})


class App:
    def __init__(
        self,
        state: SharedState,
        publisher: FetchPublisher,
        bindings: KeyBindings | None = None,
        *,
        initial_mode: Mode = Mode.INFO,
    ) -> None:
        self.state = state
        self.publisher = publisher
        self.resolver = KeySequenceResolver(bindings if bindings is not None else KeyBindings.defaults())
        self.modes = ModeTracker(initial_mode)
        self.keyspace = KeySpaceView()
        self.actions: deque[AnyAction] = deque()
        self.cmd_buffer = ""
        self.error_message: str | None = None
        self.show_help = False
        self.size: tuple[int, int] = (80, 24)
        self.should_quit = False
        self.dirty = True

    @property
    def mode(self) -> Mode:
        return self.modes.current

    def dispatch(self, action: AnyAction) -> None:
        """Queue an action for the next ``process_actions`` pass."""
        self.actions.append(action)

    def process_actions(self) -> int:
        """Apply every queued action, including ones queued while applying."""
        handled = 0
        while self.actions:
            self.handle_action(self.actions.popleft())
            handled += 1
        return handled

    def handle_key(self, key: str) -> Action | None:
        """Resolve one key token in the current mode and queue its action."""
        mode = self.modes.current
        if mode in TEXT_ENTRY_MODES:
            command = self.resolver.feed(mode, key, fallback=False)
            if command is None:
                self.resolver.reset()
                self._edit_text(mode, key)
                return None
        else:
            command = self.resolver.feed(mode, key)
        if command is None:
            return None

        action = command_to_action(command)
        logger.debug("key {!r} in {} -> {}", key, mode.value, action.value)
        self.dispatch(action)
        return action

    def _edit_text(self, mode: Mode, key: str) -> None:
        if mode is Mode.CMD:
            if key == "ENTER":
                self._run_command_line()
            elif key == "BACKSPACE":
                self.cmd_buffer = self.cmd_buffer[:-1]
            elif len(key) == 1 and key.isprintable():
                self.cmd_buffer += key
        else:
            view = self.keyspace
            if key == "BACKSPACE":
                view.filter_buffer = view.filter_buffer[:-1]
            elif len(key) == 1 and key.isprintable():
                view.filter_buffer += key
        self.dirty = True

    def _run_command_line(self) -> None:
        text = self.cmd_buffer.strip()
        self.cmd_buffer = ""
        self.modes.back()
        if not text:
            return
        try:
            command = Command.from_name(text)
        except ValueError:
            self.dispatch(ErrorAction(f"Unknown command: {text}"))
            return
        self.dispatch(command_to_action(command))

    def request_fetch(self, event: FetchKeys | None = None) -> bool:
        return self.publisher.publish_nowait(event)

    def handle_action(self, action: AnyAction) -> None:
        if isinstance(action, ErrorAction):
            logger.info("showing error: {}", action.message)
            self.error_message = action.message
            self.modes.enter(Mode.POPUP_ERROR)
            self.dirty = True
            return
        if isinstance(action, ResizeAction):
            self.size = (action.width, action.height)
            self.dirty = True
            return

        if action not in _QUIET_ACTIONS:
            logger.debug("action {}", action.value)

        if action is Action.TICK:
            self.resolver.reset()
            return
        if action is Action.RENDER:
            self.dirty = True
            return

        if action is Action.QUIT:
            self.should_quit = True
        elif action is Action.HELP:
            self.show_help = not self.show_help
        elif action in (Action.NEXT_TAB, Action.PREVIOUS_TAB):
            self._cycle_tab(1 if action is Action.NEXT_TAB else -1)
        elif action is Action.ENTER_CMD:
            self.cmd_buffer = ""
            self.modes.enter(Mode.CMD)
        elif action is Action.PREVIOUS_MODE:
            self.modes.back()
        elif action is Action.SCROLL_DOWN:
            self.keyspace.scroll_next()
        elif action is Action.SCROLL_UP:
            self.keyspace.scroll_previous()
        elif action is Action.REFRESH:
            self.request_fetch()
        elif action is Action.REFRESH_SPACE:
            with self.state.pagination() as pagination:
                pagination.restart()
            self.request_fetch()
        elif action is Action.LOAD_NEXT_PAGE:
            with self.state.pagination() as pagination:
                pagination.advance()
            self.request_fetch()
        elif action is Action.LOAD_PREVIOUS_PAGE:
            with self.state.pagination() as pagination:
                moved = pagination.retreat()
            if moved:
                self.request_fetch()
        elif action is Action.ENTER_POPUP:
            self.keyspace.open_filter()
            self.modes.enter(Mode.POPUP_FILTER)
        elif action is Action.CLOSE_POPUP:
            if self.modes.current is Mode.POPUP_ERROR:
                self.error_message = None
            self.modes.back()
        elif action is Action.SET_FILTER:
            pattern = self.keyspace.confirm_filter()
            self._apply_filter(pattern)
            self.modes.back()
        elif action is Action.DELETE_FILTER:
            self._apply_filter(None)
        elif action is Action.LOAD_KEYS_INTO_KEY_SPACE:
            self._load_keys_into_view()
        self.dirty = True

    def _cycle_tab(self, step: int) -> None:
        if self.modes.current not in TAB_MODES:
            return
        index = TAB_MODES.index(self.modes.current)
        self.modes.switch(TAB_MODES[(index + step) % len(TAB_MODES)])

    def _apply_filter(self, pattern: str | None) -> None:
        with self.state.pagination() as pagination:
            pagination.set_filter(pattern)
            pagination.restart()
        self.keyspace.pattern = pattern
        self.request_fetch()

    def _load_keys_into_view(self) -> None:
        view = self.keyspace
        view.set_keys(self.state.keys)
        pagination = self.state.pagination_snapshot()
        view.cursor = pagination.cursor
        view.pattern = pagination.pattern
        view.page_number = pagination.page_number
        view.exhausted = pagination.is_exhausted


__all__ = ["TEXT_ENTRY_MODES", "App"]
