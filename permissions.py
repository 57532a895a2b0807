"""
Authorization predicates. Nothing here raises; callers turn a False into
PermissionDenied (403) or, for scoped lookups, NotFoundError.
"""
from typing import Iterable, List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession

from models import Booking, Room, Space
from repository import RoomRepository, SpaceRepository


def can_access_booking(booking: Booking, user_id: int) -> bool:
    return user_id == booking.primary_user_id or user_id in (booking.invited_user_ids or [])


def is_space_admin(space: Optional[Space], user_id: int) -> bool:
    return space is not None and user_id == space.admin_id


def effective_member_ids(space: Space, member_ids: Iterable[int]) -> Set[int]:
    """The admin is a member whether or not they are listed."""
    return {space.admin_id, *member_ids}


async def visible_rooms(session: AsyncSession, user_id: int) -> List[Room]:
    """user -> spaces (admin or member) -> rooms"""
    spaces = await SpaceRepository(session).list_for_user(user_id)
    return await RoomRepository(session).list_for_spaces(s.id for s in spaces)


async def room_belongs_to_user(session: AsyncSession, room_id: int, user_id: int) -> bool:
    return any(room.id == room_id for room in await visible_rooms(session, user_id))


async def is_room_admin(
    session: AsyncSession,
    user_id: int,
    space_id: Optional[int] = None,
    room_id: Optional[int] = None,
) -> bool:
    """Admin of the room's space. An explicit space_id (new rooms) wins over room_id."""
    if space_id is None and room_id is not None:
        room = await RoomRepository(session).get(room_id)
        if room is None:
            return False
        space_id = room.space_id
    if space_id is None:
        return False
    space = await SpaceRepository(session).get(space_id)
    return is_space_admin(space, user_id)
