from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.models.users.user_models import User
from stocktrack.models.base.mixins import utc_now
from stocktrack.core.security import verify_password, hash_password, create_access_token
from stocktrack.core.config import ACCESS_TOKEN_EXPIRE_MINUTES
from stocktrack.core.exceptions import AuthenticationError, ValidationError
from stocktrack.constants.error_codes import ErrorCode
from stocktrack.constants.activity_codes import ActivityCode
from stocktrack.schemas.auth.auth_schemas import LoginData, ProfileData
from stocktrack.schemas.inventory.location_schemas import LocationOut
from stocktrack.services.users.user_services import assigned_locations, build_user_detail
from stocktrack.utils.activity_helpers import emit_activity
from stocktrack.utils.logger import get_logger

logger = get_logger("auth.service")


async def _profile_parts(db: AsyncSession, user: User):
    locations = await assigned_locations(db, user.id)
    return (
        await build_user_detail(db, user),
        [LocationOut.model_validate(l) for l in locations],
    )


# =====================================================
# LOGIN
# =====================================================
async def login_user(db: AsyncSession, username: str, password: str) -> LoginData:
    logger.info("Authenticating user", extra={"username": username})

    result = await db.execute(select(User).where(User.username == username))
    user = result.scalars().first()

    if not user or not verify_password(password, user.password_hash):
        logger.warning("Invalid credentials", extra={"username": username})
        raise AuthenticationError("Invalid credentials", ErrorCode.INVALID_CREDENTIALS)

    if not user.is_active:
        logger.warning("Inactive user login blocked", extra={"username": username})
        raise AuthenticationError("User account is inactive", ErrorCode.USER_INACTIVE)

    user.last_login = utc_now()

    access_token = create_access_token(
        subject=user.id,
        role=user.role,
        token_version=user.token_version,
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )

    await emit_activity(db, actor=user, code=ActivityCode.LOGIN, table_name="users", record_id=user.id)
    await db.commit()

    logger.info("Login successful", extra={"user_id": user.id})

    detail, locations = await _profile_parts(db, user)
    return LoginData(token=access_token, user=detail, assigned_locations=locations)


# =====================================================
# PROFILE
# =====================================================
async def get_profile(db: AsyncSession, user: User) -> ProfileData:
    detail, locations = await _profile_parts(db, user)
    return ProfileData(user=detail, assigned_locations=locations)


# =====================================================
# CHANGE PASSWORD
# =====================================================
async def change_password(db: AsyncSession, user: User, current_password: str, new_password: str):
    if not verify_password(current_password, user.password_hash):
        logger.warning("Password change rejected", extra={"user_id": user.id})
        raise ValidationError("Current password is incorrect", ErrorCode.PASSWORD_MISMATCH)

    user.password_hash = hash_password(new_password)

    await emit_activity(db, actor=user, code=ActivityCode.CHANGE_PASSWORD, table_name="users", record_id=user.id)
    await db.commit()

    logger.info("Password changed", extra={"user_id": user.id})


# =====================================================
# LOGOUT
# =====================================================
async def logout_user(db: AsyncSession, user: User):
    logger.info("Logging out user", extra={"user_id": user.id})

    # outstanding tokens carry the old version and stop validating
    user.token_version += 1

    await emit_activity(db, actor=user, code=ActivityCode.LOGOUT, table_name="users", record_id=user.id)
    await db.commit()

    logger.info("Logout successful", extra={"user_id": user.id})
