from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from intervals import Interval
from slots import TimeSlot


def free_slots(slots: Sequence[TimeSlot], booked: Iterable[Interval]) -> List[TimeSlot]:
    """Slots that do not intersect any booked interval (half-open)."""
    booked = list(booked)
    return [
        slot for slot in slots
        if not any(slot.interval.overlaps(b) for b in booked)
    ]


def compute_availability(
    slots: Sequence[TimeSlot],
    booked: Mapping[int, Sequence[Interval]],
    rooms: Optional[Iterable[int]] = None,
) -> Dict[int, List[TimeSlot]]:
    """
    Free slots per room.

    With a ``rooms`` roster every roster room is present in roster order, and
    a room with nothing booked gets the full slot list. Without a roster only
    rooms that appear in ``booked`` are returned.
    """
    roster = list(rooms) if rooms is not None else list(booked.keys())
    return {room_id: free_slots(slots, booked.get(room_id, ())) for room_id in roster}


def group_intervals_by_room(bookings) -> Dict[int, List[Interval]]:
    booked: Dict[int, List[Interval]] = {}
    for b in bookings:
        booked.setdefault(b.room_id, []).append(Interval.of(b))
    return booked
