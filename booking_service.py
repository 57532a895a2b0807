"""
Booking writes: overlap detection and the per-room write lock.

Reading the room's bookings, deciding there is no conflict and committing the
new row all happen while holding that room's lock, so two overlapping
requests for the same room cannot both pass the check. The lock registry is
per process; a multi-process deployment needs a storage-level exclusion
constraint instead.
"""
import asyncio
import weakref
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app_logger import get_logger
from errors import OverlapError, ValidationError
from intervals import Interval
from models import Booking
from permissions import room_belongs_to_user
from repository import BookingRepository, UserRepository
from schemas import BookingCreate, BookingUpdate

log = get_logger("bookings")


class RoomLocks:
    """Per-room locks, kept only while some request holds or waits on one."""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()

    def for_room(self, room_id: int) -> asyncio.Lock:
        lock = self._locks.get(room_id)
        if lock is None:
            lock = self._locks[room_id] = asyncio.Lock()
        return lock

    def __len__(self):
        return len(self._locks)


room_locks = RoomLocks()


async def has_overlap(
    session: AsyncSession,
    room_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_booking_id: Optional[int] = None,
) -> bool:
    return await find_conflict(session, room_id, Interval(start_time, end_time), exclude_booking_id) is not None


async def find_conflict(
    session: AsyncSession,
    room_id: int,
    candidate: Interval,
    exclude_booking_id: Optional[int] = None,
) -> Optional[Booking]:
    existing = await BookingRepository(session).list_for_room(room_id, exclude_booking_id)
    return next((b for b in existing if Interval.of(b).overlaps(candidate)), None)


async def _check_room(session: AsyncSession, room_id: int, user_id: int) -> None:
    if not await room_belongs_to_user(session, room_id, user_id):
        raise ValidationError(f"Could not find room with id: {room_id}")


async def _check_users(session: AsyncSession, user_ids) -> None:
    missing = await UserRepository(session).missing_ids(user_ids)
    if missing:
        raise ValidationError(f"Could not find user with id: {missing[0]}")


async def create_booking(session: AsyncSession, data: BookingCreate, requesting_user_id: int) -> Booking:
    await _check_room(session, data.room_id, requesting_user_id)
    candidate = Interval(data.start_time, data.end_time)

    primary_user_id = data.primary_user_id if data.primary_user_id is not None else requesting_user_id
    invited = list(dict.fromkeys(data.invited_user_ids))
    await _check_users(session, [primary_user_id, *invited])

    async with room_locks.for_room(data.room_id):
        if await find_conflict(session, data.room_id, candidate) is not None:
            log.info("Rejected booking on room %s: overlaps %s - %s", data.room_id, candidate.start, candidate.end)
            raise OverlapError(data.room_id, candidate.start, candidate.end)
        booking = await BookingRepository(session).create(Booking(
            room_id=data.room_id,
            primary_user_id=primary_user_id,
            invited_user_ids=invited,
            title=data.title,
            description=data.description,
            start_time=candidate.start,
            end_time=candidate.end,
        ))
    log.info("Booking %s created on room %s by user %s", booking.id, booking.room_id, requesting_user_id)
    return booking


async def update_booking(session: AsyncSession, booking: Booking, data: BookingUpdate, requesting_user_id: int) -> Booking:
    """Partial update; only supplied fields change. Caller has already checked access."""
    changes = data.model_dump(exclude_unset=True)
    # Explicit nulls on required columns mean "leave as is"
    changes = {k: v for k, v in changes.items() if v is not None}

    if "room_id" in changes:
        await _check_room(session, changes["room_id"], requesting_user_id)
    if "invited_user_ids" in changes:
        changes["invited_user_ids"] = list(dict.fromkeys(changes["invited_user_ids"]))
    referenced = [changes.get("primary_user_id"), *changes.get("invited_user_ids", [])]
    await _check_users(session, [uid for uid in referenced if uid is not None])

    room_id = changes.get("room_id", booking.room_id)
    merged = Interval(changes.get("start_time", booking.start_time), changes.get("end_time", booking.end_time))
    moved = (
        room_id != booking.room_id
        or merged.start != booking.start_time
        or merged.end != booking.end_time
    )

    repo = BookingRepository(session)
    if not moved:
        return await repo.update(booking, changes)

    async with room_locks.for_room(room_id):
        if await find_conflict(session, room_id, merged, exclude_booking_id=booking.id) is not None:
            log.info("Rejected update of booking %s: overlaps on room %s", booking.id, room_id)
            raise OverlapError(room_id, merged.start, merged.end)
        changes.update(start_time=merged.start, end_time=merged.end)
        updated = await repo.update(booking, changes)
    log.info("Booking %s moved to room %s %s - %s", updated.id, room_id, merged.start, merged.end)
    return updated


async def delete_booking(session: AsyncSession, booking: Booking) -> None:
    booking_id = booking.id
    await BookingRepository(session).delete(booking)
    log.info("Booking %s deleted", booking_id)
