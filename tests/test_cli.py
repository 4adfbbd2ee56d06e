"""Tests for the command-line entry point."""

from __future__ import annotations

import sys

import pytest

import promtop.app as app_module
import promtop.cli as cli_module
from promtop import __version__
from promtop.cli import EXIT_FAILURE, EXIT_INTERRUPTED, EXIT_OK, build_parser, main
from promtop.fetch import FetchError
from promtop.terminal import TerminalError

pytestmark = [pytest.mark.unit]


@pytest.fixture(autouse=True)
def _no_log_file(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PROMTOP_LOG_FILE", raising=False)
    monkeypatch.delenv("PROMTOP_LOG_LEVEL", raising=False)


def _dashboard_raising(exc: BaseException):
    def dashboard(endpoint: str) -> None:
        raise exc

    return dashboard


class TestParser:
    def test_endpoint_is_positional(self) -> None:
        args = build_parser().parse_args(["localhost:9100"])
        assert args.endpoint == "localhost:9100"

    def test_missing_endpoint_is_usage_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as info:
            main([])
        assert info.value.code == 2
        assert "ENDPOINT" in capsys.readouterr().err

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as info:
            main(["--version"])
        assert info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestMain:
    def test_success(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[str] = []
        monkeypatch.setattr(cli_module, "dashboard", seen.append)

        assert main(["localhost:9100"]) == EXIT_OK
        assert seen == ["localhost:9100"]

    def test_fetch_error_is_reported(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str],
    ) -> None:
        error = FetchError(url="http://localhost:9100", reason="Not Found", status=404)
        monkeypatch.setattr(cli_module, "dashboard", _dashboard_raising(error))

        assert main(["localhost:9100"]) == EXIT_FAILURE
        err = capsys.readouterr().err
        assert "error" in err
        assert "HTTP 404" in err

    def test_terminal_error_is_reported(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str],
    ) -> None:
        error = TerminalError("standard input is not a terminal")
        monkeypatch.setattr(cli_module, "dashboard", _dashboard_raising(error))

        assert main(["localhost:9100"]) == EXIT_FAILURE
        assert "not a terminal" in capsys.readouterr().err

    def test_missing_stdin_is_reported(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr(app_module, "fetch_exposition", lambda *_, **__: "up 1\n")
        monkeypatch.setattr(sys, "stdin", None)

        assert main(["localhost:9100"]) == EXIT_FAILURE
        assert "standard input is not available" in capsys.readouterr().err

    def test_interrupt(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cli_module, "dashboard", _dashboard_raising(KeyboardInterrupt()))
        assert main(["localhost:9100"]) == EXIT_INTERRUPTED

    def test_unexpected_errors_propagate(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cli_module, "dashboard", _dashboard_raising(ZeroDivisionError()))
        with pytest.raises(ZeroDivisionError):
            main(["localhost:9100"])

    def test_invalid_log_level_is_usage_error(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path,
    ) -> None:
        monkeypatch.setenv("PROMTOP_LOG_FILE", str(tmp_path / "promtop.log"))
        monkeypatch.setenv("PROMTOP_LOG_LEVEL", "chatty")

        with pytest.raises(SystemExit) as info:
            main(["localhost:9100"])
        assert info.value.code == 2

    def test_log_file_written_when_enabled(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path,
    ) -> None:
        log_file = tmp_path / "promtop.log"
        monkeypatch.setenv("PROMTOP_LOG_FILE", str(log_file))
        error = FetchError(url="http://localhost:9100", reason="Not Found", status=404)
        monkeypatch.setattr(cli_module, "dashboard", _dashboard_raising(error))

        assert main(["localhost:9100"]) == EXIT_FAILURE
        assert log_file.exists()
