from datetime import datetime, timedelta, timezone

import pytest

from errors import ValidationError
from intervals import Interval, intervals_overlap, to_utc

from conftest import utc


def iv(h1, m1, h2, m2):
    return Interval(utc(2024, 1, 1, h1, m1), utc(2024, 1, 1, h2, m2))


@pytest.mark.parametrize("a, b, expected", [
    (iv(9, 0, 10, 0), iv(9, 30, 10, 30), True),
    (iv(9, 0, 10, 0), iv(8, 0, 9, 0), False),    # touching at the start
    (iv(9, 0, 10, 0), iv(10, 0, 11, 0), False),  # touching at the end
    (iv(9, 0, 10, 0), iv(9, 15, 9, 45), True),   # contained
    (iv(9, 0, 10, 0), iv(8, 0, 11, 0), True),    # containing
    (iv(9, 0, 10, 0), iv(11, 0, 12, 0), False),
])
def test_overlap_is_half_open_and_symmetric(a, b, expected):
    assert a.overlaps(b) is expected
    assert b.overlaps(a) is expected


def test_interval_overlaps_itself():
    a = iv(9, 0, 10, 0)
    assert a.overlaps(a)


@pytest.mark.parametrize("start, end", [
    (utc(2024, 1, 1, 9), utc(2024, 1, 1, 9)),
    (utc(2024, 1, 1, 10), utc(2024, 1, 1, 9)),
])
def test_empty_or_inverted_interval_rejected(start, end):
    with pytest.raises(ValidationError):
        Interval(start, end)


def test_covers_is_closed_on_both_ends():
    a = iv(9, 0, 10, 0)
    assert a.covers(utc(2024, 1, 1, 9, 0))
    assert a.covers(utc(2024, 1, 1, 9, 30))
    assert a.covers(utc(2024, 1, 1, 10, 0))
    assert not a.covers(utc(2024, 1, 1, 10, 0, 1))


def test_covers_and_overlaps_disagree_at_the_boundary():
    morning = iv(9, 0, 10, 0)
    next_meeting = iv(10, 0, 11, 0)
    assert not morning.overlaps(next_meeting)
    assert morning.covers(next_meeting.start)


def test_naive_datetimes_are_read_as_utc():
    a = Interval(datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
    assert a.start == utc(2024, 1, 1, 9)


def test_offsets_are_normalised():
    plus_two = timezone(timedelta(hours=2))
    assert to_utc(datetime(2024, 1, 1, 11, tzinfo=plus_two)) == utc(2024, 1, 1, 9)
    assert intervals_overlap(
        datetime(2024, 1, 1, 11, tzinfo=plus_two), datetime(2024, 1, 1, 12, tzinfo=plus_two),
        utc(2024, 1, 1, 9, 30), utc(2024, 1, 1, 10, 30),
    )
