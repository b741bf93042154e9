from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from stocktrack.core.db import get_db
from stocktrack.schemas.inventory.location_schemas import (
    LocationCreate,
    LocationUpdate,
    LocationOut,
    LocationDetailOut,
    LocationListData,
    AssignManagerRequest,
)
from stocktrack.schemas.inventory.inventory_schemas import InventoryOut
from stocktrack.services.inventory.location_service import (
    list_locations,
    get_location,
    create_location,
    update_location,
    retire_location,
    assign_manager,
    remove_manager,
)
from stocktrack.services.inventory.inventory_service import get_location_inventory
from stocktrack.utils.check_roles import require_admin
from stocktrack.utils.response import APIResponse, success_response
from stocktrack.utils.logger import get_logger

router = APIRouter(prefix="/locations", tags=["Locations"])
logger = get_logger(__name__)


# =====================================================
# CRUD
# =====================================================
@router.get("", response_model=APIResponse[LocationListData])
async def list_locations_api(
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
    search: str | None = Query(None),
    is_active: bool | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    data = await list_locations(db, search=search, is_active=is_active, page=page, limit=limit)
    return success_response("Locations fetched successfully", data)


@router.post("", response_model=APIResponse[LocationOut], status_code=201)
async def create_location_api(
    payload: LocationCreate,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
):
    logger.info("Create location", extra={"location_name": payload.name})
    location = await create_location(db, payload, admin)
    return success_response("Location created successfully", location)


@router.get("/{location_id}", response_model=APIResponse[LocationDetailOut])
async def get_location_api(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
):
    location = await get_location(db, location_id)
    return success_response("Location fetched successfully", location)


@router.put("/{location_id}", response_model=APIResponse[LocationOut])
async def update_location_api(
    location_id: int,
    payload: LocationUpdate,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
):
    logger.info("Update location", extra={"location_id": location_id})
    location = await update_location(db, location_id, payload, admin)
    return success_response("Location updated successfully", location)


@router.delete("/{location_id}", response_model=APIResponse[None])
async def delete_location_api(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
):
    logger.info("Retire location", extra={"location_id": location_id})
    await retire_location(db, location_id, admin)
    return success_response("Location deleted successfully")


# =====================================================
# MANAGERS
# =====================================================
@router.post("/{location_id}/assign-manager", response_model=APIResponse[None])
async def assign_manager_api(
    location_id: int,
    payload: AssignManagerRequest,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
):
    await assign_manager(db, location_id, payload.user_id, admin)
    return success_response("Manager assigned successfully")


@router.delete("/{location_id}/remove-manager/{user_id}", response_model=APIResponse[None])
async def remove_manager_api(
    location_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
):
    await remove_manager(db, location_id, user_id, admin)
    return success_response("Manager removed successfully")


# =====================================================
# INVENTORY
# =====================================================
@router.get("/{location_id}/inventory", response_model=APIResponse[List[InventoryOut]])
async def location_inventory_api(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
):
    items = await get_location_inventory(db, location_id, admin)
    return success_response("Location inventory fetched successfully", items)
