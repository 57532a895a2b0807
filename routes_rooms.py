from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app_logger import get_logger
from database import get_session
from deps import get_current_user
from errors import NotFoundError, PermissionDenied
from models import Room, User
from permissions import is_room_admin, visible_rooms
from repository import RoomRepository
from schemas import RoomCreate, RoomRead, RoomUpdate

log = get_logger("rooms")

router = APIRouter(prefix="/rooms", tags=["rooms"])


def _not_admin(space_id: int) -> PermissionDenied:
    return PermissionDenied(
        "You must be the space administrator to manage its rooms",
        error=f"Unauthorised. User is not administrator for space: {space_id}",
    )


async def _get_room(session: AsyncSession, room_id: int) -> Room:
    room = await RoomRepository(session).get(room_id)
    if room is None:
        raise NotFoundError("Room not found")
    return room


@router.get("")
async def list_rooms(user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    rooms = await visible_rooms(session, user.id)
    return {"roomCount": len(rooms), "rooms": [RoomRead.model_validate(r) for r in rooms]}


@router.get("/{room_id}", response_model=RoomRead)
async def get_room(room_id: int, user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    room = next((r for r in await visible_rooms(session, user.id) if r.id == room_id), None)
    if room is None:
        raise NotFoundError("Room not found")
    return room


@router.post("", response_model=RoomRead, status_code=status.HTTP_201_CREATED)
async def create_room(data: RoomCreate, user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    if not await is_room_admin(session, user.id, space_id=data.space_id):
        raise _not_admin(data.space_id)
    room = await RoomRepository(session).create(Room(**data.model_dump()))
    log.info("Room %s created in space %s", room.id, room.space_id)
    return room


@router.put("/{room_id}", response_model=RoomRead)
async def update_room(
    room_id: int,
    data: RoomUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    room = await _get_room(session, room_id)
    if not await is_room_admin(session, user.id, room_id=room.id):
        raise _not_admin(room.space_id)

    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    target_space = changes.get("space_id", room.space_id)
    if target_space != room.space_id and not await is_room_admin(session, user.id, space_id=target_space):
        raise _not_admin(target_space)
    return await RoomRepository(session).update(room, changes)


@router.delete("/{room_id}")
async def delete_room(room_id: int, user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    room = await _get_room(session, room_id)
    if not await is_room_admin(session, user.id, room_id=room.id):
        raise _not_admin(room.space_id)
    await RoomRepository(session).delete_cascade(room)
    log.info("Room %s deleted with its bookings", room_id)
    return {"message": "Room deleted successfully"}
