from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.core.db import get_db
from stocktrack.schemas.users.user_schemas import (
    UserCreateSchema,
    UserUpdateSchema,
    UserListFilters,
    UserDetailSchema,
    UserListData,
)
from stocktrack.services.users.user_services import (
    create_user,
    list_users,
    get_user_by_id,
    update_user,
)
from stocktrack.utils.check_roles import require_admin
from stocktrack.utils.response import APIResponse, success_response
from stocktrack.utils.logger import get_logger

router = APIRouter(prefix="/users", tags=["Users"])
logger = get_logger(__name__)


@router.post("", response_model=APIResponse[UserDetailSchema], status_code=201)
async def create_user_api(
    payload: UserCreateSchema,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
):
    logger.info("Create user request", extra={"username": payload.username})
    user = await create_user(db, payload, admin)
    return success_response("User created successfully", user)


@router.get("", response_model=APIResponse[UserListData])
async def list_users_api(
    filters: UserListFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
):
    logger.info("List users request", extra=filters.model_dump(exclude_none=True, mode="json"))
    users = await list_users(db, filters)
    return success_response("Users fetched", users)


@router.get("/{user_id}", response_model=APIResponse[UserDetailSchema])
async def get_user_api(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
):
    user = await get_user_by_id(db, user_id)
    return success_response("User fetched", user)


@router.put("/{user_id}", response_model=APIResponse[UserDetailSchema])
async def update_user_api(
    user_id: int,
    payload: UserUpdateSchema,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
):
    logger.info("Update user", extra={"user_id": user_id})
    user = await update_user(db, user_id, payload, admin)
    return success_response("User updated successfully", user)
