from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, delete

from stocktrack.models.users.user_models import User
from stocktrack.models.inventory.location_models import Location, UserLocation
from stocktrack.models.enums.record_status import RecordStatus
from stocktrack.models.enums.user_role import UserRole
from stocktrack.schemas.users.user_schemas import (
    UserCreateSchema,
    UserUpdateSchema,
    UserListFilters,
    UserDetailSchema,
    AssignedLocationSchema,
    UserListData,
)
from stocktrack.core.security import hash_password
from stocktrack.core.exceptions import ConflictError, NotFoundError, ValidationError
from stocktrack.constants.error_codes import ErrorCode
from stocktrack.constants.activity_codes import ActivityCode
from stocktrack.utils.activity_helpers import emit_activity
from stocktrack.utils.response import build_pagination
from stocktrack.utils.logger import get_logger

logger = get_logger(__name__)


# =========================
# HELPERS
# =========================
async def assigned_locations(db: AsyncSession, user_id: int) -> list[Location]:
    result = await db.execute(
        select(Location)
        .join(UserLocation, UserLocation.location_id == Location.id)
        .where(
            UserLocation.user_id == user_id,
            Location.status == RecordStatus.active,
        )
        .order_by(Location.name.asc())
    )
    return list(result.scalars().all())


async def build_user_detail(db: AsyncSession, user: User) -> UserDetailSchema:
    locations = await assigned_locations(db, user.id)
    return UserDetailSchema(
        id=user.id,
        username=user.username,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
        is_active=user.is_active,
        last_login=user.last_login,
        created_at=user.created_at,
        assigned_locations=[AssignedLocationSchema.model_validate(l) for l in locations],
    )


async def _replace_assignments(db: AsyncSession, user_id: int, location_ids: list[int]):
    await db.execute(delete(UserLocation).where(UserLocation.user_id == user_id))

    unique_ids = sorted(set(location_ids))
    if not unique_ids:
        return

    found = (
        await db.execute(
            select(Location.id).where(
                Location.id.in_(unique_ids),
                Location.status == RecordStatus.active,
            )
        )
    ).scalars().all()

    missing = sorted(set(unique_ids) - set(found))
    if missing:
        raise NotFoundError(
            "Location not found",
            ErrorCode.LOCATION_NOT_FOUND,
            details={"location_ids": missing},
        )

    for location_id in unique_ids:
        db.add(UserLocation(user_id=user_id, location_id=location_id))


# =========================
# CREATE USER
# =========================
async def create_user(db: AsyncSession, payload: UserCreateSchema, admin: User) -> UserDetailSchema:
    exists = await db.scalar(
        select(User.id).where(
            or_(User.username == payload.username, User.email == payload.email)
        )
    )
    if exists:
        raise ConflictError("Username or email already exists", ErrorCode.USER_EXISTS)

    user = User(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role.value,
    )

    try:
        db.add(user)
        await db.flush()

        if payload.role == UserRole.manager and payload.location_ids:
            await _replace_assignments(db, user.id, payload.location_ids)

        await emit_activity(
            db,
            actor=admin,
            code=ActivityCode.CREATE_USER,
            table_name="users",
            record_id=user.id,
            target_name=user.username,
            target_role=user.role.capitalize(),
        )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(user)

    logger.info("User created", extra={"user_id": user.id})
    return await build_user_detail(db, user)


# =========================
# LIST USERS
# =========================
async def list_users(db: AsyncSession, filters: UserListFilters) -> UserListData:
    conditions = []

    if filters.search:
        term = f"%{filters.search}%"
        conditions.append(
            or_(
                User.username.ilike(term),
                User.email.ilike(term),
                User.first_name.ilike(term),
                User.last_name.ilike(term),
            )
        )

    if filters.role:
        conditions.append(User.role == filters.role.value)

    if filters.is_active is not None:
        conditions.append(User.is_active == filters.is_active)

    total = await db.scalar(
        select(func.count()).select_from(select(User.id).where(*conditions).subquery())
    )

    result = await db.execute(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((filters.page - 1) * filters.limit)
        .limit(filters.limit)
    )

    return UserListData(
        items=[await build_user_detail(db, u) for u in result.scalars().all()],
        pagination=build_pagination(filters.page, filters.limit, total or 0),
    )


# =========================
# GET USER BY ID
# =========================
async def get_user_by_id(db: AsyncSession, user_id: int) -> UserDetailSchema:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found", ErrorCode.USER_NOT_FOUND)
    return await build_user_detail(db, user)


# =========================
# UPDATE USER
# =========================
async def update_user(
    db: AsyncSession,
    user_id: int,
    payload: UserUpdateSchema,
    admin: User,
) -> UserDetailSchema:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found", ErrorCode.USER_NOT_FOUND)

    updates = payload.model_dump(exclude_unset=True, exclude={"location_ids"})
    if not updates and payload.location_ids is None:
        raise ValidationError("No changes detected")

    if user.id == admin.id and (
        updates.get("is_active") is False or updates.get("role") == UserRole.manager
    ):
        raise ValidationError("Admins cannot demote or deactivate themselves")

    changes: list[str] = []
    for field, new_value in updates.items():
        if new_value is None:
            continue
        if isinstance(new_value, UserRole):
            new_value = new_value.value
        old_value = getattr(user, field)
        if old_value != new_value:
            changes.append(f"{field}: {old_value} → {new_value}")
            setattr(user, field, new_value)

    # deactivation or demotion ends existing sessions
    if any(c.startswith(("is_active:", "role:")) for c in changes):
        user.token_version += 1

    try:
        if user.role == UserRole.admin.value:
            await db.execute(delete(UserLocation).where(UserLocation.user_id == user.id))
        elif payload.location_ids is not None:
            await _replace_assignments(db, user.id, payload.location_ids)
            changes.append(f"location_ids: {sorted(set(payload.location_ids))}")

        await emit_activity(
            db,
            actor=admin,
            code=ActivityCode.UPDATE_USER,
            table_name="users",
            record_id=user.id,
            target_name=user.username,
            changes=", ".join(changes) or "no field changes",
        )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(user)
    logger.info("User updated", extra={"user_id": user.id})
    return await build_user_detail(db, user)
