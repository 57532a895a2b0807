from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app_logger import get_logger
from database import get_session
from deps import get_current_user
from errors import ConflictError, NotFoundError, PermissionDenied, ValidationError
from models import Space, User
from permissions import effective_member_ids, is_space_admin
from repository import SpaceRepository, UserRepository
from schemas import SpaceCreate, SpaceJoin, SpaceRead, SpaceUpdate
from security import generate_invite_code

log = get_logger("spaces")

router = APIRouter(prefix="/spaces", tags=["spaces"])

INVITE_CODE_ATTEMPTS = 5


def _read(space: Space, member_ids: List[int]) -> SpaceRead:
    return SpaceRead(
        id=space.id,
        admin_id=space.admin_id,
        user_ids=member_ids,
        name=space.name,
        description=space.description,
        invite_code=space.invite_code,
        capacity=space.capacity,
    )


async def _get_visible_space(session: AsyncSession, user: User, space_id: int) -> Space:
    repo = SpaceRepository(session)
    space = await repo.get(space_id)
    if space is None or user.id not in effective_member_ids(space, await repo.member_ids(space.id)):
        raise NotFoundError("Space not found")
    return space


async def _get_admin_space(session: AsyncSession, user: User, space_id: int) -> Space:
    space = await _get_visible_space(session, user, space_id)
    if not is_space_admin(space, user.id):
        raise PermissionDenied(
            "Only the space administrator can change this space",
            error=f"Unauthorised. User is not administrator for space: {space_id}",
        )
    return space


async def _check_users_exist(session: AsyncSession, user_ids) -> None:
    missing = await UserRepository(session).missing_ids(user_ids)
    if missing:
        raise ValidationError(f"Could not find user with id: {missing[0]}")


@router.get("")
async def list_spaces(user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    repo = SpaceRepository(session)
    spaces = await repo.list_for_user(user.id)
    members = await repo.member_ids_by_space(s.id for s in spaces)
    return {"spaceCount": len(spaces), "spaces": [_read(s, members[s.id]) for s in spaces]}


@router.get("/{space_id}", response_model=SpaceRead)
async def get_space(space_id: int, user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    space = await _get_visible_space(session, user, space_id)
    return _read(space, await SpaceRepository(session).member_ids(space.id))


@router.post("", response_model=SpaceRead, status_code=status.HTTP_201_CREATED)
async def create_space(data: SpaceCreate, user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    await _check_users_exist(session, data.user_ids)
    repo = SpaceRepository(session)

    # Invite codes are random; a collision surfaces as a unique violation, so just draw again
    for attempt in range(INVITE_CODE_ATTEMPTS):
        try:
            space = await repo.create(Space(
                admin_id=user.id,
                name=data.name,
                description=data.description,
                capacity=data.capacity,
                invite_code=generate_invite_code(),
            ))
            break
        except ConflictError:
            log.warning("Invite code collision (attempt %s)", attempt + 1)
    else:
        raise ConflictError("Could not allocate a unique invite code")

    await repo.replace_members(space, data.user_ids)
    log.info("Space %s created by user %s", space.id, user.id)
    return _read(space, await repo.member_ids(space.id))


@router.post("/join", response_model=SpaceRead)
async def join_space(data: SpaceJoin, user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    repo = SpaceRepository(session)
    space = await repo.get_by_invite_code(data.invite_code)
    if space is None:
        raise NotFoundError("Invalid invite code")
    if user.id in effective_member_ids(space, await repo.member_ids(space.id)):
        raise ConflictError(f"User is already a member of space: {space.id}")
    await repo.add_member(space, user.id)
    log.info("User %s joined space %s", user.id, space.id)
    return _read(space, await repo.member_ids(space.id))


@router.put("/{space_id}", response_model=SpaceRead)
async def update_space(
    space_id: int,
    data: SpaceUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    space = await _get_admin_space(session, user, space_id)
    repo = SpaceRepository(session)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    member_ids = changes.pop("user_ids", None)

    if member_ids is not None:
        await _check_users_exist(session, member_ids)
    if changes:
        space = await repo.update(space, changes)
    if member_ids is not None:
        await repo.replace_members(space, member_ids)
    return _read(space, await repo.member_ids(space.id))


@router.delete("/{space_id}")
async def delete_space(space_id: int, user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    space = await _get_admin_space(session, user, space_id)
    await SpaceRepository(session).delete_cascade(space)
    log.info("Space %s deleted with its rooms and bookings", space_id)
    return {"message": "Space deleted successfully"}
