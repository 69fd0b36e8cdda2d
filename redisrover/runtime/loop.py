"""Main interactive event loop for the terminal UI.

Feeds key tokens into the app, posts tick/resize actions, applies queued
actions, and redraws when the app is dirty. Feature logic lives in ``App``.
"""

from __future__ import annotations

import asyncio
import signal
import time
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from ..actions import Action, ResizeAction
from ..input.reader import read_key
from ..render import render_frame
from .app import App
from .terminal import TerminalController

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)


@dataclass(frozen=True)
class RuntimeLoopTiming:
    """Ticks per second (key-sequence window) and frames per second."""

    tick_rate: float
    frame_rate: float


def drain_input(app: App, stdin_fd: int) -> int:
    """Feed every key already available on ``stdin_fd`` to the app."""
    count = 0
    while True:
        key = read_key(stdin_fd, timeout_ms=0)
        if not key:
            return count
        app.handle_key(key)
        count += 1


async def run_main_loop(
    app: App,
    terminal: TerminalController,
    stdin_fd: int,
    timing: RuntimeLoopTiming,
    *,
    render: Callable[[App, int, int], str] = render_frame,
    signals: tuple[signal.Signals, ...] = SHUTDOWN_SIGNALS,
) -> None:
    """Run until the app sets ``should_quit``.

    Each of ``signals`` queues a quit, so the caller's cleanup still runs.
    """
    loop = asyncio.get_running_loop()

    def request_quit(sig: signal.Signals) -> None:
        logger.info("received {}; shutting down", sig.name)
        app.dispatch(Action.QUIT)

    for sig in signals:
        loop.add_signal_handler(sig, request_quit, sig)
    loop.add_reader(stdin_fd, drain_input, app, stdin_fd)
    tick_seconds = 1.0 / timing.tick_rate
    frame_seconds = 1.0 / timing.frame_rate
    last_tick = time.monotonic()
    last_size: tuple[int, int] | None = None
    try:
        while not app.should_quit:
            now = time.monotonic()
            if now - last_tick >= tick_seconds:
                last_tick = now
                app.dispatch(Action.TICK)
                app.dispatch(Action.RENDER)

            size = terminal.size()
            if size != last_size:
                last_size = size
                app.dispatch(ResizeAction(width=size[0], height=size[1]))

            app.process_actions()
            if app.dirty:
                width, height = app.size
                terminal.write_frame(render(app, width, height))
                app.dirty = False
            await asyncio.sleep(frame_seconds)
    finally:
        loop.remove_reader(stdin_fd)
        for sig in signals:
            loop.remove_signal_handler(sig)


__all__ = ["SHUTDOWN_SIGNALS", "RuntimeLoopTiming", "drain_input", "run_main_loop"]
