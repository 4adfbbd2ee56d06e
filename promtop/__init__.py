"""promtop - browse a metrics endpoint from the terminal.

Example:

    from promtop import parse, summarize

    document = parse('http_requests_total{method="GET"} 1027\\n')
    for family in document:
        print(summarize(family))

    # Interactive: fetch once, then scroll with the arrow keys, q to quit
    from promtop import dashboard

    dashboard("localhost:8080/metrics")
"""

__version__ = "0.1.0"

from loguru import logger

# Disabled by default (library behavior); see promtop.logging
logger.disable("promtop")

# Data model
from promtop.model import (
    ExpositionDocument,
    MetricFamily,
    MetricType,
    ParseError,
    ParseOutcome,
    Sample,
)

# Parsing and summarizing
from promtop.parser import parse
from promtop.summary import MULTIPLE_LABELSETS, DisplayRow, format_value, summarize

# View state
from promtop.state import Key, ViewState, apply_key, initial_state, scroll_down, scroll_up

# Rendering
from promtop.view import render

# Fetch and interaction
from promtop.fetch import FetchError, fetch_exposition, normalize_endpoint
from promtop.app import dashboard, load, run

__all__ = [
    "__version__",
    # Model
    "ExpositionDocument",
    "MetricFamily",
    "MetricType",
    "ParseError",
    "ParseOutcome",
    "Sample",
    # Parsing
    "parse",
    "summarize",
    "format_value",
    "DisplayRow",
    "MULTIPLE_LABELSETS",
    # State
    "Key",
    "ViewState",
    "apply_key",
    "initial_state",
    "scroll_down",
    "scroll_up",
    # Rendering
    "render",
    # Fetch / app
    "FetchError",
    "fetch_exposition",
    "normalize_endpoint",
    "dashboard",
    "load",
    "run",
]
