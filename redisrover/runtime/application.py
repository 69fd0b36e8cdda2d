"""Composition root: wires the Redis client, runner, app, and terminal."""

from __future__ import annotations

import sys

from loguru import logger

from ..actions import Action, AnyAction
from ..input.keybindings import KeyBindings
from ..modes import Mode
from ..pagination import PaginationState
from ..state import SharedState
from ..store.client import connect
from ..store.runner import Runner
from .app import App
from .loop import RuntimeLoopTiming, run_main_loop
from .terminal import TerminalController


async def run_app(
    url: str,
    *,
    timing: RuntimeLoopTiming,
    bindings: KeyBindings,
    page_size: int | None = None,
    socket_timeout: float | None = None,
) -> None:
    """Browse the Redis server at ``url`` until the user quits."""
    stdin_fd = sys.stdin.fileno()
    stdout_fd = sys.stdout.fileno()
    if not sys.stdin.isatty():
        raise SystemExit("redisrover needs an interactive terminal on stdin.")

    client = connect(url, socket_timeout=socket_timeout)
    state = SharedState(PaginationState(page_size=page_size))
    app: App | None = None

    def emit(action: AnyAction) -> None:
        if app is not None:
            app.dispatch(action)

    runner = Runner(client, state, emit)
    app = App(state, runner.publisher(), bindings, initial_mode=Mode.INFO)
    app.dispatch(Action.REFRESH)

    logger.info("connecting to {}", url)
    terminal = TerminalController(stdin_fd, stdout_fd)
    runner.start()
    try:
        with terminal.raw_mode():
            await run_main_loop(app, terminal, stdin_fd, timing)
    finally:
        await runner.stop()
        await client.aclose()
        logger.info("session closed")


__all__ = ["run_app"]
