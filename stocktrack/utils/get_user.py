from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.core.db import get_db
from stocktrack.core.exceptions import AuthenticationError, AuthorizationError
from stocktrack.core.security import decode_access_token
from stocktrack.constants.error_codes import ErrorCode
from stocktrack.models.users.user_models import User
from stocktrack.utils.logger import get_logger

logger = get_logger("auth.guard")


async def get_current_user(
    request: Request,
    authorization: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not authorization or not authorization.startswith("Bearer "):
        logger.warning("Missing bearer token")
        raise AuthenticationError("Access token required")

    token = authorization.split("Bearer ", 1)[1].strip()
    payload = decode_access_token(token)

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token", ErrorCode.INVALID_TOKEN)

    user = await db.get(User, user_id)

    if not user:
        logger.warning("Token user not found", extra={"user_id": user_id})
        raise AuthenticationError("User not found", ErrorCode.INVALID_TOKEN)

    if not user.is_active:
        logger.warning("Inactive user access blocked", extra={"user_id": user.id})
        raise AuthorizationError("User account is inactive", ErrorCode.USER_INACTIVE)

    if user.token_version != payload.get("token_version"):
        logger.warning("Token version mismatch", extra={"user_id": user.id})
        raise AuthenticationError("Session expired", ErrorCode.SESSION_EXPIRED)

    # plain id: the ORM row is expired once the request session rolls back
    request.state.user_id = user.id
    return user
