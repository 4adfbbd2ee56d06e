"""Interaction loop and session orchestration.

fetch → parse → ViewState, then draw / read one key / transition until quit.
The fetch happens before the terminal is touched; a failed fetch never
enters the terminal session.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger
from rich.console import Console

from .fetch import DEFAULT_TIMEOUT, fetch_exposition
from .parser import parse
from .state import Key, ViewState, apply_key, initial_state
from .terminal import Session, TerminalSession
from .view import render

log = logger.bind(component="app")


def run(state: ViewState, session: Session) -> ViewState:
    """Drive the session until the quit key; returns the final state."""
    while True:
        width, height = session.size
        session.draw(render(state, width, height))

        key = session.read_key()
        if key is Key.QUIT:
            log.debug("Quit at offset {offset}", offset=state.offset)
            return state
        state = apply_key(state, key)


def load(endpoint: str, *, timeout: float = DEFAULT_TIMEOUT) -> ViewState:
    """Fetch and parse the endpoint.

    Raises:
        FetchError: When the endpoint cannot be read. Parse failures do not
            raise; they become the Failed state shown in the UI.
    """
    text = fetch_exposition(endpoint, timeout=timeout)
    return initial_state(endpoint, parse(text))


def dashboard(
    endpoint: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    console: Console | None = None,
    session_factory: Callable[[Console | None], Session] = TerminalSession,
) -> ViewState:
    """Fetch once, then run the interactive listing until the user quits."""
    state = load(endpoint, timeout=timeout)
    if state.error is not None:
        log.warning("Showing parse error for {endpoint}", endpoint=endpoint)

    with session_factory(console) as session:
        return run(state, session)
