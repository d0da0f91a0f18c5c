"""Progress display for multi-page fetches."""

from __future__ import annotations

import sys
import time
from typing import Any, TextIO


class ProgressReporter:
    """Writes a single, self-overwriting progress line to stderr.

    Acquire with start() (or ``with``), release with stop(). stop() clears the
    line and is safe to call more than once.

    Usage:
        with ProgressReporter(activity="Listing issues") as reporter:
            for page in pages:
                reporter.update(page_number, total_pages)
    """

    def __init__(self, activity: str = "Fetching", unit: str = "page", stream: TextIO | None = None) -> None:
        """Initialize the progress reporter.

        Args:
            activity: Label shown before the counter.
            unit: Unit name for display (e.g. "page").
            stream: Output stream, stderr by default.
        """
        self._activity = activity
        self._unit = unit
        self._stream = stream if stream is not None else sys.stderr
        self._start_time = 0.0
        self._last_print_len = 0
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        self._start_time = time.monotonic()
        self._active = True

    def update(self, current: int, total: int | None = None) -> None:
        """Show ``current`` of ``total``; a total of None or 0 means unknown."""
        if not self._active:
            self.start()

        if total:
            percent = min(100.0, (current / total) * 100)
            line = f"\r[{self._activity}] {self._unit} {current} of {total} ({percent:.0f}%)"
        else:
            elapsed = self._format_duration(time.monotonic() - self._start_time)
            line = f"\r[{self._activity}] {self._unit} {current} of unknown | Elapsed: {elapsed}"

        # Pad to clear previous line if it was longer
        if len(line) < self._last_print_len:
            line = line + " " * (self._last_print_len - len(line))
        self._last_print_len = len(line)

        self._stream.write(line)
        self._stream.flush()

    def stop(self) -> None:
        """Clear the progress line."""
        if self._last_print_len > 0:
            self._stream.write("\r" + " " * self._last_print_len + "\r")
            self._stream.flush()
            self._last_print_len = 0
        self._active = False

    def __enter__(self) -> ProgressReporter:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()

    @staticmethod
    def _format_duration(seconds: float) -> str:
        """Format a duration in seconds as a human-readable string."""
        if seconds < 60:
            return f"{seconds:.0f}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes}m{secs}s"
        else:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            return f"{hours}h{minutes}m"
