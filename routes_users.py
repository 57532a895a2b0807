from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

import settings
from app_logger import get_logger
from database import get_session
from deps import get_current_user
from errors import AuthenticationError, ConflictError, NotFoundError, PermissionDenied
from models import User
from repository import SpaceRepository, UserRepository
from schemas import TokenRefresh, UserLogin, UserRead, UserRegister, UserUpdate, UserWithSpaces
from security import generate_user_token, hash_password, read_token, sign_token, token_matches_user, verify_password

log = get_logger("users")

router = APIRouter(prefix="/users", tags=["users"])


async def _visible_users(session: AsyncSession, user: User) -> list[UserWithSpaces]:
    """Everyone sharing a space with the caller, plus the caller."""
    spaces_repo = SpaceRepository(session)
    spaces = await spaces_repo.list_for_user(user.id)
    members = await spaces_repo.member_ids_by_space(s.id for s in spaces)

    space_ids_by_user: dict[int, list[int]] = {user.id: []}
    for space in spaces:
        for uid in dict.fromkeys([space.admin_id, *members[space.id]]):
            space_ids_by_user.setdefault(uid, []).append(space.id)

    users = await UserRepository(session).list_by_ids(space_ids_by_user)
    return [
        UserWithSpaces(**UserRead.model_validate(u).model_dump(), space_ids=space_ids_by_user[u.id])
        for u in users
    ]


@router.post("/register")
async def register(data: UserRegister, session: AsyncSession = Depends(get_session)):
    repo = UserRepository(session)
    if await repo.get_by_email(data.email) is not None:
        raise ConflictError(f"A user with email {data.email} already exists")
    fields = data.model_dump()
    fields["password"] = hash_password(data.password)
    user = await repo.create(User(**fields))
    log.info("Registered user %s", user.id)
    return {"user": UserRead.model_validate(user)}


@router.post("/login")
async def login(data: UserLogin, session: AsyncSession = Depends(get_session)):
    user = await UserRepository(session).get_by_email(data.email)
    if user is None:
        raise NotFoundError("User not found.")
    if not verify_password(data.password, user.password):
        log.info("Failed login for user %s", user.id)
        raise AuthenticationError("Invalid password.")
    return {"jwt": generate_user_token(user)}


@router.post("/token-refresh")
async def token_refresh(data: TokenRefresh, session: AsyncSession = Depends(get_session)):
    payload, encrypted = read_token(data.jwt)
    user_id = payload.get("user_id")
    user = await UserRepository(session).get(user_id) if isinstance(user_id, int) else None
    if not token_matches_user(payload, user):
        raise AuthenticationError()
    return {"jwt": sign_token(encrypted)}


@router.get("")
async def list_users(user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    users = await _visible_users(session, user)
    return {"userCount": len(users), "users": users}


@router.get("/{user_id}", response_model=UserWithSpaces)
async def get_user(user_id: int, user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    found = next((u for u in await _visible_users(session, user) if u.id == user_id), None)
    if found is None:
        raise NotFoundError("User not found")
    return found


def _ensure_self(user: User, user_id: int, action: str) -> None:
    if user.id != user_id:
        raise PermissionDenied(f"Unauthorised. You can only {action} your own account.")


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: int,
    response: Response,
    data: UserUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    _ensure_self(user, user_id, "update")
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if "password" in changes:
        changes["password"] = hash_password(changes["password"])
    updated = await UserRepository(session).update(user, changes)
    # The token rotated on the way in still carries the old credentials
    if "password" in changes or "email" in changes:
        response.headers[settings.TOKEN_HEADER] = generate_user_token(updated)
    return updated


@router.delete("/{user_id}", status_code=status.HTTP_200_OK)
async def delete_user(user_id: int, user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    _ensure_self(user, user_id, "delete")
    await UserRepository(session).delete(user)
    log.info("Deleted user %s", user_id)
    return {"message": "User deleted successfully"}
