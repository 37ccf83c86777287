"""Tests for callspec.output -- stdout/stderr discipline and formats."""

from __future__ import annotations

import json

import pytest

from callspec import output as output_module
from callspec.output import (
    OutputFormat,
    OutputManager,
    dump,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture
def plain() -> OutputManager:
    manager = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(manager)
    return manager


class TestFormatResolution:
    def test_auto_is_plain_when_captured(self) -> None:
        assert OutputManager().format == OutputFormat.PLAIN

    def test_explicit_format_kept(self) -> None:
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON

    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        assert output_module._should_disable_color()

    def test_dumb_terminal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert output_module._should_disable_color()


class TestDump:
    def test_plain_dump_to_stdout(self, plain: OutputManager, capsys: pytest.CaptureFixture[str]) -> None:
        dump("Response=", {"status": 200})
        captured = capsys.readouterr()
        assert captured.out.startswith("Response= {")
        assert json.loads(captured.out[len("Response= "):]) == {"status": 200}
        assert captured.err == ""

    def test_non_serialisable_values(self, plain: OutputManager, capsys: pytest.CaptureFixture[str]) -> None:
        dump("x =", {"when": object})
        assert "<class 'object'>" in capsys.readouterr().out


class TestTables:
    def test_plain(self, plain: OutputManager, capsys: pytest.CaptureFixture[str]) -> None:
        plain.print_table(["A", "B"], [["1", "2"]])
        assert capsys.readouterr().out == "A\tB\n1\t2\n"

    def test_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.JSON).print_table(["A", "B"], [["1", "2"]])
        assert json.loads(capsys.readouterr().out) == [{"A": "1", "B": "2"}]


class TestDiagnostics:
    def test_streams(self, plain: OutputManager, capsys: pytest.CaptureFixture[str]) -> None:
        plain.info("info")
        plain.warning("careful")
        plain.error("broken")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "info" in captured.err
        assert "Warning: careful" in captured.err
        assert "Error: broken" in captured.err

    def test_quiet(self, capsys: pytest.CaptureFixture[str]) -> None:
        manager = OutputManager(no_color=True, quiet=True)
        manager.info("hidden")
        manager.success("hidden too")
        manager.warning("shown")
        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err

    def test_debug_only_when_verbose(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(no_color=True).debug("quiet debug")
        OutputManager(no_color=True, verbose=True).debug("loud debug")
        err = capsys.readouterr().err
        assert "quiet debug" not in err
        assert "[debug] loud debug" in err


class TestGlobalInstance:
    def test_lazy_default(self) -> None:
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_and_reset(self) -> None:
        manager = OutputManager(no_color=True)
        set_output(manager)
        assert get_output() is manager
        reset_output()
        assert get_output() is not manager
