"""CLI progress indicator shown while a request is pending."""

from __future__ import annotations

import os
import shutil
import sys
import threading
import time
from typing import TextIO

_BOLD = "\x1b[1m"
_GREY = "\x1b[38;2;150;157;165m"
_RESET = "\x1b[0m"


def progress_line(label: str, start: float | None = None) -> tuple[str, float]:
    now = time.monotonic()
    origin = now if start is None else start
    elapsed = max(0, int(now - origin))
    minutes, seconds = divmod(elapsed, 60)
    return f"• {label} ({minutes}m {seconds:02d}s)", origin


class ProgressTicker:
    """Redraws one status line on a TTY; prints a single line otherwise."""

    def __init__(
        self,
        label: str,
        stream: TextIO | None = None,
        interval_s: float = 1.0,
    ) -> None:
        self.label = label
        self.start: float | None = None
        self.stream = stream or sys.stdout
        self.interval_s = max(0.01, interval_s)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._enabled = bool(getattr(self.stream, "isatty", lambda: False)())
        self._started = False

    def start_ticking(self) -> None:
        line, self.start = progress_line(self.label)
        if not self._enabled:
            self.stream.write(f"{_BOLD}{line}{_RESET}\n")
            self.stream.flush()
            return
        self._write_in_place(f"{_BOLD}{line}{_RESET}")
        self._started = True
        self._thread.start()

    def stop(self, summary: str = "Finished in") -> None:
        if self._started:
            self._stop.set()
            self._thread.join()
        elapsed = max(0, int(time.monotonic() - (self.start or time.monotonic())))
        width = _resolve_terminal_width(self.stream, 100)
        styled = f"{_GREY}{_separator_line(f'{summary} {_format_duration(elapsed)}', width)}{_RESET}"
        if self._enabled:
            self._write_in_place(styled)
            self.stream.write("\n")
        else:
            self.stream.write(f"{styled}\n")
        self.stream.flush()

    def _run(self) -> None:
        while not self._stop.wait(self.interval_s):
            line, _ = progress_line(self.label, self.start)
            self._write_in_place(f"{_BOLD}{line}{_RESET}")

    def _write_in_place(self, line: str) -> None:
        self.stream.write("\r")
        self.stream.write(line)
        self.stream.write("\033[K")
        self.stream.flush()


def _format_duration(seconds: int) -> str:
    minutes, secs = divmod(seconds, 60)
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"


def _separator_line(label: str, width: int) -> str:
    content = f" {label} "
    if width <= len(content) + 2:
        return content.strip()
    remaining = width - len(content)
    left = remaining // 2
    right = remaining - left
    return f"{'─' * left}{content}{'─' * right}"


def _resolve_terminal_width(stream: TextIO | None, fallback: int) -> int:
    if stream and hasattr(stream, "fileno"):
        try:
            return os.get_terminal_size(stream.fileno()).columns
        except (OSError, ValueError):
            pass
    return shutil.get_terminal_size(fallback=(fallback, 20)).columns
