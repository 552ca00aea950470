"""Tests for psr.output.console module."""

from __future__ import annotations

from psr.output.console import MockConsole, Style


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.DIM) == "dim"


class TestMockConsole:
    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs[0].message == "hello"
        assert console.outputs[0].style == Style.DEFAULT

    def test_levels(self) -> None:
        console = MockConsole()
        console.success("saved")
        console.warning("no changelog")
        console.error("rejected")
        assert console.has_success()
        assert console.has_warning()
        assert console.has_error()
        assert console.messages == ["OK saved", "warning: no changelog", "error: rejected"]

    def test_status_records_and_runs_block(self) -> None:
        console = MockConsole()
        ran = False
        with console.status("Releasing MyPlugin 1.0.0..."):
            ran = True
        assert ran
        assert console.find("Releasing")[0].style == Style.DIM

    def test_count_and_clear(self) -> None:
        console = MockConsole()
        console.print("a", Style.DIM)
        console.print("b", Style.DIM)
        assert console.count(Style.DIM) == 2
        console.clear()
        assert console.outputs == []
