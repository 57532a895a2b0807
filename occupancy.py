from collections import Counter
from datetime import datetime
from typing import Optional, Sequence

from pydantic import BaseModel

from intervals import Interval


class UsersInRooms(BaseModel):
    primary_count: int
    invited_count: int
    total: int


def most_used_room(bookings: Sequence) -> Optional[int]:
    """Room with the most bookings.

    Ties go to the room seen first in ``bookings``: Counter keeps insertion
    order and ``max`` returns the first maximal key.
    """
    counts = Counter(b.room_id for b in bookings)
    if not counts:
        return None
    return max(counts, key=counts.__getitem__)


def active_bookings(bookings: Sequence, instant: datetime) -> list:
    return [b for b in bookings if Interval.of(b).covers(instant)]


def rooms_in_use(bookings: Sequence, instant: datetime) -> int:
    return len({b.room_id for b in active_bookings(bookings, instant)})


def users_in_rooms(bookings: Sequence, instant: datetime) -> UsersInRooms:
    active = active_bookings(bookings, instant)
    primary = {b.primary_user_id for b in active}
    invited = {uid for b in active for uid in b.invited_user_ids}
    # A user can be organizer on one booking and invitee on another: counted twice
    return UsersInRooms(
        primary_count=len(primary),
        invited_count=len(invited),
        total=len(primary) + len(invited),
    )
