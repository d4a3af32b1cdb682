"""
Dive helper tests: clock-time placement and dive numbering.
"""
from datetime import datetime, timedelta, timezone

import pytest

from divelog.utils.dives import as_utc, combine_clock_time, next_dive_no


def test_as_utc_treats_naive_as_utc():
    naive = datetime(2024, 3, 10, 8, 0)
    assert as_utc(naive) == datetime(2024, 3, 10, 8, 0, tzinfo=timezone.utc)


def test_as_utc_converts_offsets():
    local = datetime(2024, 3, 10, 10, 0, tzinfo=timezone(timedelta(hours=2)))
    assert as_utc(local) == datetime(2024, 3, 10, 8, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "clock, expected",
    [
        ("7:05", datetime(2024, 3, 10, 7, 5, 0, tzinfo=timezone.utc)),
        ("23:59:59", datetime(2024, 3, 10, 23, 59, 59, tzinfo=timezone.utc)),
    ],
)
def test_combine_clock_time_keeps_day(clock, expected):
    base = datetime(2024, 3, 10, 14, 30, 12, 999)
    assert combine_clock_time(base, clock) == expected


def test_combine_clock_time_rejects_impossible_time():
    with pytest.raises(ValueError):
        combine_clock_time(datetime(2024, 3, 10), "24:00")


def test_next_dive_no_starts_at_one(db_session, job):
    assert next_dive_no(db_session, job.id) == 1


def test_next_dive_no_follows_highest(db_session, job, started_dive):
    assert next_dive_no(db_session, job.id) == 2
