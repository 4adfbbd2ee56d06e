"""Render pipeline: maps a ViewState to Rich renderables.

Nothing here mutates state; the same (state, width, height) always renders
the same frame.
"""

from __future__ import annotations

from rich.console import Group, RenderableType
from rich.padding import Padding
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text

from .model import ExpositionDocument, ParseError
from .state import ViewState
from .summary import DisplayRow, summarize

# --- Styles ---

DIM = Style(color="bright_black")
BRIGHT = Style(bold=True)
BADGE = Style(color="black", bgcolor="cyan", bold=True)
HIGHLIGHT = Style(color="black", bgcolor="bright_green")
ERROR = Style(color="red", bold=True, blink=True)

HIGHLIGHT_SYMBOL = ">> "

# Margin (1 each side) + header line.
_CHROME_LINES = 3
# Panel top and bottom borders.
_BORDER_LINES = 2


def _content_height(height: int) -> int:
    return max(0, height - _CHROME_LINES)


def visible_window(offset: int, total: int, capacity: int) -> range:
    """Rows to draw so that ``offset`` stays on screen."""
    if capacity <= 0 or total <= 0:
        return range(0)
    start = max(0, min(offset - capacity + 1, total - capacity))
    return range(start, min(total, start + capacity))


# --- Header ---


def render_header(state: ViewState) -> Text:
    header = Text(no_wrap=True, overflow="ellipsis")
    header.append(" promtop ", style=BADGE)
    header.append("  ")
    header.append(state.endpoint, style=BRIGHT)

    match state.outcome:
        case ExpositionDocument() as document:
            header.append(f"  {len(document)} families", style=DIM)
            if len(document):
                header.append(f"  {state.offset + 1}/{len(document)}", style=DIM)
        case ParseError():
            header.append("  parse error", style=Style(color="red"))

    header.append("  ↑/↓ scroll · q quit", style=DIM)
    return header


# --- Content ---


def _row_cells(row: DisplayRow, selected: bool) -> tuple[Text, Text, Text]:
    marker = HIGHLIGHT_SYMBOL if selected else " " * len(HIGHLIGHT_SYMBOL)
    name = Text(marker)
    name.append(row.name, style=BRIGHT)
    return name, Text(row.type_label), Text(row.summary)


def render_table(document: ExpositionDocument, offset: int, height: int) -> Panel:
    table = Table(
        box=None,
        show_header=False,
        expand=True,
        padding=(0, 1),
        pad_edge=False,
    )
    table.add_column("name", ratio=3, justify="left", no_wrap=True, overflow="ellipsis")
    table.add_column("type", ratio=1, justify="center", no_wrap=True, overflow="ellipsis")
    table.add_column("summary", ratio=1, justify="right", no_wrap=True, overflow="ellipsis")

    families = document.families
    capacity = max(0, height - _BORDER_LINES)
    for index in visible_window(offset, len(families), capacity):
        selected = index == offset
        row = summarize(families[index])
        table.add_row(*_row_cells(row, selected), style=HIGHLIGHT if selected else None)

    return Panel(table, title="Metrics", title_align="left", height=max(height, _BORDER_LINES))


def render_error(endpoint: str, error: ParseError) -> Text:
    return Text(f"Metrics from {endpoint} could not be parsed: {error}", style=ERROR)


def render(state: ViewState, width: int, height: int) -> RenderableType:
    """Build one frame: a header line above the content region."""
    content_height = _content_height(height)

    match state.outcome:
        case ExpositionDocument() as document:
            content: RenderableType = render_table(document, state.offset, content_height)
        case ParseError() as error:
            content = render_error(state.endpoint, error)

    header = render_header(state)
    header.truncate(max(1, width - 2), overflow="ellipsis")
    return Padding(Group(header, content), (1, 1))
