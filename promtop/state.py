"""View state: frozen state plus pure transitions.

The state is fixed at startup to either Loaded (a parsed document) or
Failed (the parse error); only the scroll offset moves afterwards, and only
through the transitions below.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, auto

from .model import ExpositionDocument, ParseError, ParseOutcome


class Key(Enum):
    UP = auto()
    DOWN = auto()
    QUIT = auto()
    OTHER = auto()


@dataclass(frozen=True, slots=True)
class ViewState:
    """Parse outcome plus the selected row.

    ``offset`` is clamped to the listed rows (one per family), not to the
    rows that fit on screen. The viewport only picks which window of rows
    is drawn (``view.visible_window``), so the selection survives a resize
    and always stays visible.
    """

    endpoint: str
    outcome: ParseOutcome
    offset: int = 0

    @property
    def document(self) -> ExpositionDocument | None:
        return self.outcome if isinstance(self.outcome, ExpositionDocument) else None

    @property
    def error(self) -> ParseError | None:
        return self.outcome if isinstance(self.outcome, ParseError) else None

    @property
    def row_count(self) -> int:
        document = self.document
        return len(document) if document is not None else 0

    @property
    def max_offset(self) -> int:
        return max(0, self.row_count - 1)


def initial_state(endpoint: str, outcome: ParseOutcome) -> ViewState:
    return ViewState(endpoint=endpoint, outcome=outcome)


# --- Transitions (pure) ---


def scroll_down(state: ViewState) -> ViewState:
    offset = min(state.offset + 1, state.max_offset)
    return state if offset == state.offset else replace(state, offset=offset)


def scroll_up(state: ViewState) -> ViewState:
    offset = max(state.offset - 1, 0)
    return state if offset == state.offset else replace(state, offset=offset)


def apply_key(state: ViewState, key: Key) -> ViewState:
    match key:
        case Key.DOWN:
            return scroll_down(state)
        case Key.UP:
            return scroll_up(state)
        case _:
            return state
