from fastapi import Depends, Header, Response
from sqlalchemy.ext.asyncio import AsyncSession

import settings
from app_logger import get_logger
from database import get_session
from errors import AuthenticationError
from models import User
from repository import UserRepository
from security import read_token, sign_token, token_matches_user

log = get_logger("auth")


async def get_current_user(
    response: Response,
    jwt: str | None = Header(default=None),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Verifies the ``jwt`` header and sends a rotated token back in the same header."""
    payload, encrypted = read_token(jwt)
    user_id = payload.get("user_id")
    user = await UserRepository(session).get(user_id) if isinstance(user_id, int) else None
    if not token_matches_user(payload, user):
        log.info("Rejected token for user id %s", payload.get("user_id"))
        raise AuthenticationError()
    response.headers[settings.TOKEN_HEADER] = sign_token(encrypted)
    return user
