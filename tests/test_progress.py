"""Tests for the multi-page progress line."""

import io

from ghrest.progress import ProgressReporter


class TestProgressReporter:
    def test_known_total(self) -> None:
        stream = io.StringIO()
        reporter = ProgressReporter(activity="Listing issues", stream=stream)

        reporter.update(2, 4)

        assert stream.getvalue() == "\r[Listing issues] page 2 of 4 (50%)"
        assert reporter.active

    def test_unknown_total(self) -> None:
        stream = io.StringIO()
        reporter = ProgressReporter(stream=stream)

        reporter.update(3, 0)

        assert "page 3 of unknown | Elapsed:" in stream.getvalue()

    def test_shorter_line_padded(self) -> None:
        stream = io.StringIO()
        reporter = ProgressReporter(stream=stream)

        reporter.update(10, 100)
        first_len = len(stream.getvalue())
        reporter.update(1, 2)

        assert len(stream.getvalue()) == 2 * first_len

    def test_stop_clears_line_and_is_idempotent(self) -> None:
        stream = io.StringIO()
        reporter = ProgressReporter(stream=stream)
        reporter.update(1, 2)
        written = len(stream.getvalue())

        reporter.stop()
        after_first_stop = stream.getvalue()
        reporter.stop()

        assert after_first_stop.endswith("\r" + " " * written + "\r")
        assert stream.getvalue() == after_first_stop
        assert not reporter.active

    def test_stop_without_output_writes_nothing(self) -> None:
        stream = io.StringIO()
        ProgressReporter(stream=stream).stop()
        assert stream.getvalue() == ""

    def test_context_manager(self) -> None:
        stream = io.StringIO()
        with ProgressReporter(stream=stream) as reporter:
            assert reporter.active
            reporter.update(1, 1)
        assert not reporter.active
        assert stream.getvalue().endswith("\r")

    def test_format_duration(self) -> None:
        assert ProgressReporter._format_duration(5) == "5s"
        assert ProgressReporter._format_duration(125) == "2m5s"
        assert ProgressReporter._format_duration(3700) == "1h1m"
