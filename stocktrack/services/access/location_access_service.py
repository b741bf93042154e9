# stocktrack/services/access/location_access_service.py

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.core.exceptions import AuthorizationError
from stocktrack.constants.error_codes import ErrorCode
from stocktrack.models.enums.user_role import UserRole
from stocktrack.models.inventory.location_models import UserLocation
from stocktrack.utils.logger import get_logger

logger = get_logger(__name__)


def is_admin(user) -> bool:
    return user.role == UserRole.admin.value


async def has_location_access(db: AsyncSession, user, location_id: int) -> bool:
    if is_admin(user):
        return True

    assigned = await db.scalar(
        select(UserLocation.id).where(
            UserLocation.user_id == user.id,
            UserLocation.location_id == location_id,
        )
    )
    return assigned is not None


async def ensure_location_access(
    db: AsyncSession,
    user,
    location_id: int,
    message: str = "Access denied to this location",
) -> None:
    if not await has_location_access(db, user, location_id):
        logger.warning(
            "Location access denied",
            extra={"user_id": user.id, "location_id": location_id},
        )
        raise AuthorizationError(message, ErrorCode.LOCATION_ACCESS_DENIED)


def location_scope(column, user):
    """Filter clause restricting ``column`` to the user's locations, or None for admins."""
    if is_admin(user):
        return None
    return column.in_(
        select(UserLocation.location_id).where(UserLocation.user_id == user.id)
    )
