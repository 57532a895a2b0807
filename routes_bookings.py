from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

import booking_service
import settings
from availability import compute_availability, group_intervals_by_room
from database import get_session
from deps import get_current_user
from errors import NotFoundError, PermissionDenied, ValidationError
from intervals import to_utc, utc_now
from models import Booking, User
from occupancy import most_used_room, rooms_in_use, users_in_rooms
from permissions import can_access_booking, visible_rooms
from repository import BookingRepository
from schemas import (
    AvailabilityResponse,
    BookedInterval,
    BookingCreate,
    BookingRead,
    BookingUpdate,
    RoomBookings,
    RoomTimeSlots,
)
from slots import generate_slots

router = APIRouter(prefix="/bookings", tags=["bookings"])


async def _visible_bookings(session: AsyncSession, user: User, start=None, end=None):
    rooms = await visible_rooms(session, user.id)
    bookings = await BookingRepository(session).list_for_rooms([r.id for r in rooms], start, end)
    return rooms, bookings


async def _get_visible_booking(session: AsyncSession, user: User, booking_id: int) -> Booking:
    _, bookings = await _visible_bookings(session, user)
    booking = next((b for b in bookings if b.id == booking_id), None)
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def _opt_utc(value: Optional[datetime]) -> Optional[datetime]:
    return to_utc(value) if value is not None else None


# --- GET /bookings ---
@router.get("")
async def list_bookings(
    primary_user: Optional[bool] = None,
    invited_user: Optional[bool] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    _, bookings = await _visible_bookings(session, user, _opt_utc(start_time), _opt_utc(end_time))
    if primary_user is not None:
        bookings = [b for b in bookings if (b.primary_user_id == user.id) == primary_user]
    if invited_user is not None:
        bookings = [b for b in bookings if (user.id in b.invited_user_ids) == invited_user]
    return {
        "bookingCount": len(bookings),
        "bookings": [BookingRead.model_validate(b) for b in bookings],
    }


# --- GET /bookings/room ---
@router.get("/room")
async def bookings_per_room(
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    start = _opt_utc(start_time) or utc_now()
    rooms, bookings = await _visible_bookings(session, user, start, _opt_utc(end_time))

    per_room = {room.id: [] for room in rooms}
    for b in bookings:
        per_room[b.room_id].append(BookedInterval.model_validate(b))
    return {
        "bookingsPerRoom": [
            RoomBookings(room_id=room_id, bookings=items) for room_id, items in per_room.items()
        ]
    }


# --- GET /bookings/available-time-slots ---
@router.get("/available-time-slots", response_model=AvailabilityResponse)
async def available_time_slots(
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    interval: int = Query(default=settings.DEFAULT_SLOT_INTERVAL_MINUTES, ge=1),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    now = utc_now()
    start = _opt_utc(start_time) or now
    end = _opt_utc(end_time) or now + timedelta(hours=settings.DEFAULT_AVAILABILITY_WINDOW_HOURS)
    if start >= end:
        raise ValidationError("start_time must be before end_time")
    if (end - start) / timedelta(minutes=interval) > settings.MAX_AVAILABILITY_SLOTS:
        raise ValidationError(
            f"Window too large: at most {settings.MAX_AVAILABILITY_SLOTS} slots of {interval} minutes per query"
        )

    rooms, all_bookings = await _visible_bookings(session, user)
    in_window = await BookingRepository(session).list_for_rooms([r.id for r in rooms], start, end)

    slots = generate_slots(start, end, interval)
    free = compute_availability(slots, group_intervals_by_room(in_window), rooms=[r.id for r in rooms])

    return AvailabilityResponse(
        availableTimeSlots=[RoomTimeSlots(room_id=rid, time_slots=s) for rid, s in free.items()],
        mostUsedRoom=most_used_room(in_window),
        numberOfRoomsInUse=rooms_in_use(all_bookings, now),
        numberOfUsersInRooms=users_in_rooms(all_bookings, now),
    )


# --- GET /bookings/{booking_id} ---
@router.get("/{booking_id}", response_model=BookingRead)
async def get_booking(
    booking_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await _get_visible_booking(session, user, booking_id)


# --- POST /bookings ---
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    booking = await booking_service.create_booking(session, data, user.id)
    return {"booking": BookingRead.model_validate(booking)}


async def _get_accessible_booking(session: AsyncSession, user: User, booking_id: int, action: str) -> Booking:
    booking = await BookingRepository(session).get(booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    if not can_access_booking(booking, user.id):
        raise PermissionDenied(f"You do not have permission to {action} this booking", error="Forbidden")
    return booking


# --- PUT /bookings/{booking_id} ---
@router.put("/{booking_id}", response_model=BookingRead)
async def update_booking(
    booking_id: int,
    data: BookingUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    booking = await _get_accessible_booking(session, user, booking_id, "update")
    return await booking_service.update_booking(session, booking, data, user.id)


# --- DELETE /bookings/{booking_id} ---
@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    booking = await _get_accessible_booking(session, user, booking_id, "delete")
    deleted = BookingRead.model_validate(booking)
    await booking_service.delete_booking(session, booking)
    return {"message": "Booking deleted successfully", "booking": deleted}
