from __future__ import annotations

from collections.abc import Callable, Iterable
from io import StringIO

import pytest
from rich.console import Console, RenderableType

from promtop.model import ExpositionDocument
from promtop.parser import parse
from promtop.state import Key


class FakeSession:
    """Scripted stand-in for TerminalSession."""

    def __init__(self, keys: Iterable[Key], size: tuple[int, int] = (120, 30)) -> None:
        self._keys = list(keys)
        self.size = size
        self.frames: list[RenderableType] = []
        self.entered = False
        self.exited = False

    def __enter__(self) -> FakeSession:
        self.entered = True
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.exited = True

    def draw(self, renderable: RenderableType) -> None:
        self.frames.append(renderable)

    def read_key(self) -> Key:
        return self._keys.pop(0)


def capture(renderable: RenderableType, width: int = 120) -> str:
    buf = StringIO()
    console = Console(file=buf, color_system=None, width=width)
    console.print(renderable)
    return buf.getvalue()


def document_of(*names: str) -> ExpositionDocument:
    outcome = parse("".join(f"{name} 1\n" for name in names))
    assert isinstance(outcome, ExpositionDocument)
    return outcome


@pytest.fixture
def make_session() -> Callable[..., FakeSession]:
    return FakeSession


@pytest.fixture
def render_text() -> Callable[..., str]:
    return capture


@pytest.fixture
def documents() -> Callable[..., ExpositionDocument]:
    return document_of
