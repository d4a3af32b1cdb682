"""
Session clock tests.
"""
import threading
from datetime import datetime, timedelta, timezone

import pytest

from divelog.client.clock import SessionClock, format_elapsed, parse_instant, whole_seconds_between


@pytest.mark.parametrize(
    "seconds, text",
    [(0, "00:00:00"), (59, "00:00:59"), (61, "00:01:01"), (3661, "01:01:01"), (360000, "100:00:00"), (-5, "00:00:00")],
)
def test_format_elapsed(seconds, text):
    assert format_elapsed(seconds) == text


def test_whole_seconds_floor():
    start = datetime(2024, 3, 10, 8, 0, tzinfo=timezone.utc)
    assert whole_seconds_between(start, start + timedelta(seconds=9.9)) == 9


def test_start_ticks_immediately(fake_now):
    clock = SessionClock(now=fake_now, interval=60)
    try:
        clock.start(fake_now() - timedelta(seconds=75))
        assert clock.running
        assert clock.elapsed == 75
        assert clock.display == "00:01:15"
    finally:
        clock.stop()


def test_tick_recomputes_from_start_instant(fake_now):
    seen = []
    clock = SessionClock(now=fake_now, on_tick=seen.append, interval=60)
    try:
        clock.start(fake_now())
        fake_now.advance(5)
        clock.tick()
        fake_now.advance(3600)
        clock.tick()
    finally:
        clock.stop()
    assert seen == [0, 5, 3605]


def test_stop_resets_display(fake_now):
    clock = SessionClock(now=fake_now, interval=60)
    clock.start(fake_now() - timedelta(seconds=30))
    clock.stop()
    assert not clock.running
    assert clock.elapsed == 0
    assert clock.display == "00:00:00"
    clock.stop()  # idempotent


def test_background_thread_ticks(fake_now):
    ticked = threading.Event()
    calls = []

    def on_tick(value):
        calls.append(value)
        if len(calls) >= 2:
            ticked.set()

    clock = SessionClock(now=fake_now, on_tick=on_tick, interval=0.01)
    try:
        clock.start(fake_now())
        assert ticked.wait(2)
    finally:
        clock.stop()


def test_restart_replaces_previous_tick(fake_now):
    clock = SessionClock(now=fake_now, interval=60)
    try:
        clock.start(fake_now() - timedelta(seconds=10))
        first = clock._thread
        clock.start(fake_now() - timedelta(seconds=20))
        assert clock._thread is not first
        assert not first.is_alive()
        assert clock.elapsed == 20
    finally:
        clock.stop()


def test_parse_instant():
    expected = datetime(2024, 3, 10, 8, 0, tzinfo=timezone.utc)
    assert parse_instant("2024-03-10T08:00:00Z") == expected
    assert parse_instant("2024-03-10T08:00:00") == expected
    assert parse_instant("2024-03-10T10:00:00+02:00") == expected
    assert parse_instant(expected) is expected
