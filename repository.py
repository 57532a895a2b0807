"""
Data access for the four tables.

Routes and the booking service go through these classes instead of building
queries inline. Writes commit immediately; a unique-constraint violation is
rolled back and surfaced as ``ConflictError``.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from errors import ConflictError
from models import Booking, Room, Space, SpaceMember, User


class _Repository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _all(self, statement) -> list:
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def _first(self, statement):
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def save(self, obj, conflict_message: str = "Duplicate value"):
        try:
            self.session.add(obj)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError(conflict_message)
        await self.session.refresh(obj)
        return obj


class UserRepository(_Repository):
    async def get(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self._first(select(User).where(User.email == email))

    async def list_by_ids(self, user_ids: Iterable[int]) -> List[User]:
        ids = set(user_ids)
        if not ids:
            return []
        return await self._all(select(User).where(User.id.in_(ids)).order_by(User.id))

    async def missing_ids(self, user_ids: Iterable[int]) -> List[int]:
        wanted = set(user_ids)
        found = {u.id for u in await self.list_by_ids(wanted)}
        return sorted(wanted - found)

    async def create(self, user: User) -> User:
        return await self.save(user, f"A user with email {user.email} already exists")

    async def update(self, user: User, changes: dict) -> User:
        for field, value in changes.items():
            setattr(user, field, value)
        return await self.save(user, f"A user with email {user.email} already exists")

    async def delete(self, user: User) -> None:
        """Removes the user and everything hanging off them.

        Spaces they administer go with their rooms and bookings; bookings they
        organize are deleted; they are dropped from memberships and invitee lists.
        """
        spaces = SpaceRepository(self.session)
        for space in await spaces.list_administered_by(user.id):
            await spaces.delete_cascade(space, commit=False)

        await self.session.execute(delete(Booking).where(Booking.primary_user_id == user.id))
        await self.session.execute(delete(SpaceMember).where(SpaceMember.user_id == user.id))
        for booking in await self._all(select(Booking)):
            if user.id in booking.invited_user_ids:
                booking.invited_user_ids = [uid for uid in booking.invited_user_ids if uid != user.id]
                self.session.add(booking)

        await self.session.delete(user)
        await self.session.commit()


class SpaceRepository(_Repository):
    async def get(self, space_id: int) -> Optional[Space]:
        return await self.session.get(Space, space_id)

    async def get_by_invite_code(self, invite_code: str) -> Optional[Space]:
        return await self._first(select(Space).where(Space.invite_code == invite_code))

    async def list_for_user(self, user_id: int) -> List[Space]:
        """Spaces where the user is admin or a listed member."""
        member_of = select(SpaceMember.space_id).where(SpaceMember.user_id == user_id)
        return await self._all(
            select(Space)
            .where(or_(Space.admin_id == user_id, Space.id.in_(member_of)))
            .order_by(Space.id)
        )

    async def list_administered_by(self, user_id: int) -> List[Space]:
        return await self._all(select(Space).where(Space.admin_id == user_id))

    async def member_ids(self, space_id: int) -> List[int]:
        result = await self.session.execute(
            select(SpaceMember.user_id).where(SpaceMember.space_id == space_id).order_by(SpaceMember.id)
        )
        return list(result.scalars().all())

    async def member_ids_by_space(self, space_ids: Iterable[int]) -> Dict[int, List[int]]:
        ids = set(space_ids)
        members: Dict[int, List[int]] = {sid: [] for sid in ids}
        if not ids:
            return members
        rows = await self._all(
            select(SpaceMember).where(SpaceMember.space_id.in_(ids)).order_by(SpaceMember.id)
        )
        for row in rows:
            members[row.space_id].append(row.user_id)
        return members

    async def create(self, space: Space) -> Space:
        return await self.save(space, "Invite code already in use")

    async def update(self, space: Space, changes: dict) -> Space:
        for field, value in changes.items():
            setattr(space, field, value)
        return await self.save(space, "Invite code already in use")

    async def add_member(self, space: Space, user_id: int) -> SpaceMember:
        membership = SpaceMember(space_id=space.id, user_id=user_id)
        return await self.save(membership, f"User is already a member of space: {space.id}")

    async def replace_members(self, space: Space, user_ids: Iterable[int]) -> None:
        await self.session.execute(delete(SpaceMember).where(SpaceMember.space_id == space.id))
        for uid in dict.fromkeys(user_ids):
            if uid != space.admin_id:
                self.session.add(SpaceMember(space_id=space.id, user_id=uid))
        await self.session.commit()

    async def delete_cascade(self, space: Space, commit: bool = True) -> None:
        room_ids = select(Room.id).where(Room.space_id == space.id)
        await self.session.execute(delete(Booking).where(Booking.room_id.in_(room_ids)))
        await self.session.execute(delete(Room).where(Room.space_id == space.id))
        await self.session.execute(delete(SpaceMember).where(SpaceMember.space_id == space.id))
        await self.session.delete(space)
        if commit:
            await self.session.commit()


class RoomRepository(_Repository):
    async def get(self, room_id: int) -> Optional[Room]:
        return await self.session.get(Room, room_id)

    async def list_for_spaces(self, space_ids: Iterable[int]) -> List[Room]:
        ids = set(space_ids)
        if not ids:
            return []
        return await self._all(select(Room).where(Room.space_id.in_(ids)).order_by(Room.id))

    async def create(self, room: Room) -> Room:
        return await self.save(room)

    async def update(self, room: Room, changes: dict) -> Room:
        for field, value in changes.items():
            setattr(room, field, value)
        return await self.save(room)

    async def delete_cascade(self, room: Room) -> None:
        await self.session.execute(delete(Booking).where(Booking.room_id == room.id))
        await self.session.delete(room)
        await self.session.commit()


class BookingRepository(_Repository):
    async def get(self, booking_id: int) -> Optional[Booking]:
        return await self.session.get(Booking, booking_id)

    async def list_for_room(self, room_id: int, exclude_booking_id: Optional[int] = None) -> List[Booking]:
        statement = select(Booking).where(Booking.room_id == room_id)
        if exclude_booking_id is not None:
            statement = statement.where(Booking.id != exclude_booking_id)
        return await self._all(statement.order_by(Booking.start_time))

    async def list_for_rooms(
        self,
        room_ids: Iterable[int],
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
    ) -> List[Booking]:
        """Bookings in the given rooms, optionally only those intersecting a window (half-open)."""
        ids = set(room_ids)
        if not ids:
            return []
        statement = select(Booking).where(Booking.room_id.in_(ids))
        if window_start is not None:
            statement = statement.where(Booking.end_time > window_start)
        if window_end is not None:
            statement = statement.where(Booking.start_time < window_end)
        return await self._all(statement.order_by(Booking.start_time, Booking.id))

    async def create(self, booking: Booking) -> Booking:
        return await self.save(booking)

    async def update(self, booking: Booking, changes: dict) -> Booking:
        for field, value in changes.items():
            setattr(booking, field, value)
        return await self.save(booking)

    async def delete(self, booking: Booking) -> None:
        await self.session.delete(booking)
        await self.session.commit()
