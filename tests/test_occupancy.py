from models import Booking
from occupancy import most_used_room, rooms_in_use, users_in_rooms

from conftest import utc

NOON = utc(2024, 1, 1, 12, 0)


def booking(room_id, start_h, end_h, primary=1, invited=()):
    return Booking(
        room_id=room_id,
        primary_user_id=primary,
        invited_user_ids=list(invited),
        title="t",
        description="d",
        start_time=utc(2024, 1, 1, start_h),
        end_time=utc(2024, 1, 1, end_h),
    )


def test_most_used_room_empty():
    assert most_used_room([]) is None


def test_most_used_room_single_room():
    assert most_used_room([booking(4, 9, 10), booking(4, 11, 12)]) == 4


def test_most_used_room_strict_maximum():
    assert most_used_room([booking(1, 9, 10), booking(2, 9, 10), booking(2, 11, 12)]) == 2


def test_most_used_room_tie_goes_to_first_seen():
    bookings = [booking(5, 9, 10), booking(3, 9, 10), booking(3, 11, 12), booking(5, 11, 12)]
    assert most_used_room(bookings) == 5
    assert most_used_room(list(reversed(bookings))) == 5
    assert most_used_room(bookings[1:3] + [bookings[0], bookings[3]]) == 3


def test_rooms_in_use_counts_distinct_rooms():
    bookings = [booking(1, 11, 13), booking(1, 10, 14), booking(2, 12, 15), booking(3, 8, 9)]
    assert rooms_in_use(bookings, NOON) == 2


def test_rooms_in_use_includes_bookings_ending_or_starting_at_the_instant():
    assert rooms_in_use([booking(1, 10, 12), booking(2, 12, 13)], NOON) == 2


def test_users_in_rooms():
    bookings = [
        booking(1, 11, 13, primary=1, invited=[2, 3]),
        booking(2, 11, 13, primary=4, invited=[3]),
        booking(3, 8, 9, primary=5, invited=[6]),
    ]
    result = users_in_rooms(bookings, NOON)
    assert (result.primary_count, result.invited_count, result.total) == (2, 2, 4)


def test_user_primary_on_one_and_invited_on_another_counts_twice():
    bookings = [
        booking(1, 11, 13, primary=1, invited=[2]),
        booking(2, 11, 13, primary=2, invited=[]),
    ]
    result = users_in_rooms(bookings, NOON)
    assert result.primary_count == 2
    assert result.invited_count == 1
    assert result.total == 3


def test_users_in_rooms_nobody_present():
    result = users_in_rooms([booking(1, 8, 9)], NOON)
    assert result.total == 0
