"""Tests for the event model and self diagnostics."""

import io

import pytest

from mongosink import selflog
from mongosink.events import LogLevel, ScalarValue


class TestLogLevel:
    def test_levels_are_ordered(self):
        assert (
            LogLevel.VERBOSE
            < LogLevel.DEBUG
            < LogLevel.INFORMATION
            < LogLevel.WARNING
            < LogLevel.ERROR
            < LogLevel.FATAL
        )


class TestScalarValueRendering:
    @pytest.mark.parametrize(
        "value, rendered",
        [
            ("key", '"key"'),
            ('say "hi"', '"say \\"hi\\""'),
            ('a\\b', '"a\\b"'),
            ('line\none', '"line\none"'),
            ('x\ud800', '"x\ud800"'),
            (None, "null"),
            (42, "42"),
            (True, "True"),
            (1.5, "1.5"),
        ],
    )
    def test_str(self, value, rendered):
        assert str(ScalarValue(value)) == rendered


class TestSelfLog:
    def test_callable_output_receives_timestamped_line(self, diagnostics):
        selflog.write_line("failed: %s", "boom")

        assert len(diagnostics) == 1
        timestamp, _, message = diagnostics[0].partition(" ")
        assert message == "failed: boom"
        assert timestamp.endswith("+00:00")

    def test_stream_output(self):
        stream = io.StringIO()
        selflog.enable(stream)
        try:
            selflog.write_line("plain message")
        finally:
            selflog.disable()

        assert stream.getvalue().endswith("plain message\n")

    def test_disabled_output_only_logs(self, caplog):
        selflog.disable()

        selflog.write_line("only logged %d", 1)

        assert [r.getMessage() for r in caplog.records if r.name == "mongosink.selflog"] == ["only logged 1"]

    def test_enable_none_raises(self):
        with pytest.raises(TypeError):
            selflog.enable(None)
