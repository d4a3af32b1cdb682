"""Elapsed-time display for a running dive session."""
from __future__ import annotations

import math
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

TICK_SECONDS = 1.0


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_elapsed(seconds: int) -> str:
    """``HH:MM:SS``, zero padded; hours keep counting past 99."""
    hours, rest = divmod(max(int(seconds), 0), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def whole_seconds_between(start: datetime, end: datetime) -> int:
    return math.floor((end - start).total_seconds())


class SessionClock:
    """Recomputes elapsed seconds once per tick on a background thread.

    The value is for display only. ``on_tick`` (if given) receives the new
    elapsed count after every recompute. ``stop()`` cancels the tick and
    resets the display to zero.
    """

    def __init__(
        self,
        now: Callable[[], datetime] = utc_now,
        on_tick: Optional[Callable[[int], None]] = None,
        interval: float = TICK_SECONDS,
    ):
        self._now = now
        self._on_tick = on_tick
        self._interval = interval
        self._start: Optional[datetime] = None
        self._elapsed = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None

    @property
    def elapsed(self) -> int:
        return self._elapsed

    @property
    def display(self) -> str:
        return format_elapsed(self._elapsed)

    def start(self, start_instant: datetime) -> None:
        self.stop()
        self._start = start_instant
        self._stop_event = threading.Event()
        self.tick()
        self._thread = threading.Thread(target=self._run, name="dive-session-clock", daemon=True)
        self._thread.start()

    def tick(self) -> int:
        if self._start is not None:
            self._elapsed = whole_seconds_between(self._start, self._now())
            if self._on_tick is not None:
                self._on_tick(self._elapsed)
        return self._elapsed

    def stop(self) -> None:
        thread, self._thread = self._thread, None
        if thread is not None:
            self._stop_event.set()
            if thread is not threading.current_thread():
                thread.join()
        self._start = None
        self._elapsed = 0

    def _run(self) -> None:
        stop_event = self._stop_event
        while not stop_event.wait(self._interval):
            self.tick()


def parse_instant(value) -> datetime:
    """Accept a datetime or an ISO 8601 string; naive values are taken as UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value
