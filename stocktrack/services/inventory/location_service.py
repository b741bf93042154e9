from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, delete
from sqlalchemy.exc import IntegrityError

from stocktrack.models.inventory.location_models import Location, UserLocation
from stocktrack.models.inventory.inventory_record_models import InventoryRecord
from stocktrack.models.users.user_models import User
from stocktrack.models.enums.record_status import RecordStatus
from stocktrack.models.enums.user_role import UserRole
from stocktrack.schemas.inventory.location_schemas import (
    LocationCreate,
    LocationUpdate,
    LocationOut,
    LocationManagerOut,
    LocationInventorySummary,
    LocationDetailOut,
    LocationListData,
)
from stocktrack.core.exceptions import ConflictError, NotFoundError, ValidationError
from stocktrack.constants.error_codes import ErrorCode
from stocktrack.constants.activity_codes import ActivityCode
from stocktrack.utils.activity_helpers import emit_activity
from stocktrack.utils.response import build_pagination
from stocktrack.utils.logger import get_logger

logger = get_logger(__name__)


# =====================================================
# MAPPER
# =====================================================
def _map_location(loc: Location) -> LocationOut:
    return LocationOut.model_validate(loc)


async def _get_active_location(db: AsyncSession, location_id: int) -> Location:
    location = await db.get(Location, location_id)
    if not location or location.status != RecordStatus.active:
        raise NotFoundError("Location not found", ErrorCode.LOCATION_NOT_FOUND)
    return location


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: int | None = None):
    stmt = select(Location.id).where(Location.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Location.id != exclude_id)

    if await db.scalar(stmt):
        raise ConflictError("Location name already exists", ErrorCode.LOCATION_NAME_EXISTS)


async def _inventory_summary(db: AsyncSession, location_id: int) -> LocationInventorySummary:
    row = (
        await db.execute(
            select(
                func.count(InventoryRecord.id),
                func.coalesce(func.sum(InventoryRecord.quantity), 0),
                func.coalesce(func.sum(InventoryRecord.reserved_quantity), 0),
            ).where(InventoryRecord.location_id == location_id)
        )
    ).one()
    return LocationInventorySummary(
        total_products=row[0],
        total_quantity=int(row[1]),
        total_reserved=int(row[2]),
    )


async def _managers(db: AsyncSession, location_id: int) -> list[LocationManagerOut]:
    rows = (
        await db.execute(
            select(
                User.id,
                User.username,
                User.first_name,
                User.last_name,
                User.email,
                UserLocation.assigned_at,
            )
            .join(UserLocation, UserLocation.user_id == User.id)
            .where(UserLocation.location_id == location_id)
            .order_by(User.username.asc())
        )
    ).all()
    return [LocationManagerOut(**r._mapping) for r in rows]


# =====================================================
# LIST LOCATIONS
# =====================================================
async def list_locations(
    db: AsyncSession,
    *,
    search: str | None,
    is_active: bool | None,
    page: int,
    limit: int,
) -> LocationListData:
    filters = []

    if search:
        filters.append(
            or_(
                Location.name.ilike(f"%{search}%"),
                Location.city.ilike(f"%{search}%"),
                Location.state.ilike(f"%{search}%"),
            )
        )

    if is_active is None or is_active:
        filters.append(Location.status == RecordStatus.active)
    else:
        filters.append(Location.status == RecordStatus.retired)

    total = await db.scalar(
        select(func.count()).select_from(select(Location.id).where(*filters).subquery())
    )

    result = await db.execute(
        select(Location)
        .where(*filters)
        .order_by(Location.name.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )

    return LocationListData(
        items=[_map_location(loc) for loc in result.scalars().all()],
        pagination=build_pagination(page, limit, total or 0),
    )


# =====================================================
# GET LOCATION
# =====================================================
async def get_location(db: AsyncSession, location_id: int) -> LocationDetailOut:
    location = await _get_active_location(db, location_id)

    return LocationDetailOut(
        **_map_location(location).model_dump(),
        managers=await _managers(db, location_id),
        inventory_summary=await _inventory_summary(db, location_id),
    )


# =====================================================
# CREATE LOCATION
# =====================================================
async def create_location(db: AsyncSession, payload: LocationCreate, current_user) -> LocationOut:
    await _ensure_name_free(db, payload.name)

    location = Location(
        **payload.model_dump(),
        status=RecordStatus.active,
        created_by_id=current_user.id,
        updated_by_id=current_user.id,
    )
    db.add(location)

    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Location name already exists", ErrorCode.LOCATION_NAME_EXISTS)

    await emit_activity(
        db,
        actor=current_user,
        code=ActivityCode.CREATE_LOCATION,
        table_name="locations",
        record_id=location.id,
        target_name=location.name,
    )

    await db.commit()
    await db.refresh(location)

    logger.info("Location created", extra={"location_id": location.id})
    return _map_location(location)


# =====================================================
# UPDATE LOCATION
# =====================================================
async def update_location(
    db: AsyncSession,
    location_id: int,
    payload: LocationUpdate,
    current_user,
) -> LocationOut:
    location = await _get_active_location(db, location_id)

    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No changes detected")

    if "name" in updates and updates["name"] != location.name:
        await _ensure_name_free(db, updates["name"], exclude_id=location_id)

    changes: list[str] = []
    for field, new_value in updates.items():
        old_value = getattr(location, field)
        if old_value != new_value:
            changes.append(f"{field}: {old_value} → {new_value}")
            setattr(location, field, new_value)

    if not changes:
        raise ValidationError("No actual changes detected")

    location.updated_by_id = current_user.id

    await emit_activity(
        db,
        actor=current_user,
        code=ActivityCode.UPDATE_LOCATION,
        table_name="locations",
        record_id=location.id,
        target_name=location.name,
        changes=", ".join(changes),
    )

    await db.commit()
    await db.refresh(location)
    return _map_location(location)


# =====================================================
# RETIRE LOCATION
# =====================================================
async def retire_location(db: AsyncSession, location_id: int, current_user) -> None:
    location = await _get_active_location(db, location_id)

    summary = await _inventory_summary(db, location_id)
    if summary.total_quantity > 0:
        raise ConflictError(
            "Cannot delete location with existing inventory",
            ErrorCode.LOCATION_HAS_STOCK,
            details={"total_quantity": summary.total_quantity},
        )

    managers = await db.scalar(
        select(func.count(UserLocation.id)).where(UserLocation.location_id == location_id)
    )
    if managers:
        raise ConflictError(
            "Cannot delete location with assigned managers",
            ErrorCode.LOCATION_HAS_MANAGERS,
            details={"managers": managers},
        )

    location.status = RecordStatus.retired
    location.updated_by_id = current_user.id

    await emit_activity(
        db,
        actor=current_user,
        code=ActivityCode.RETIRE_LOCATION,
        table_name="locations",
        record_id=location.id,
        target_name=location.name,
    )

    await db.commit()
    logger.info("Location retired", extra={"location_id": location.id})


# =====================================================
# MANAGER ASSIGNMENT
# =====================================================
async def assign_manager(db: AsyncSession, location_id: int, user_id: int, current_user) -> None:
    location = await _get_active_location(db, location_id)

    manager = await db.get(User, user_id)
    if not manager or not manager.is_active or manager.role != UserRole.manager.value:
        raise NotFoundError("Manager not found", ErrorCode.MANAGER_NOT_FOUND)

    exists = await db.scalar(
        select(UserLocation.id).where(
            UserLocation.user_id == user_id,
            UserLocation.location_id == location_id,
        )
    )
    if exists:
        raise ConflictError(
            "Manager is already assigned to this location",
            ErrorCode.MANAGER_ALREADY_ASSIGNED,
        )

    db.add(UserLocation(user_id=user_id, location_id=location_id))

    await emit_activity(
        db,
        actor=current_user,
        code=ActivityCode.ASSIGN_MANAGER,
        table_name="user_locations",
        record_id=location.id,
        manager_name=manager.username,
        target_name=location.name,
    )

    await db.commit()


async def remove_manager(db: AsyncSession, location_id: int, user_id: int, current_user) -> None:
    location = await db.get(Location, location_id)
    if not location:
        raise NotFoundError("Location not found", ErrorCode.LOCATION_NOT_FOUND)

    result = await db.execute(
        delete(UserLocation).where(
            UserLocation.user_id == user_id,
            UserLocation.location_id == location_id,
        )
    )
    if not result.rowcount:
        raise NotFoundError("Manager assignment not found", ErrorCode.ASSIGNMENT_NOT_FOUND)

    manager = await db.get(User, user_id)

    await emit_activity(
        db,
        actor=current_user,
        code=ActivityCode.REMOVE_MANAGER,
        table_name="user_locations",
        record_id=location.id,
        manager_name=manager.username if manager else user_id,
        target_name=location.name,
    )

    await db.commit()
