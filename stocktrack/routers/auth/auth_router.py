from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.core.db import get_db
from stocktrack.schemas.auth.auth_schemas import (
    LoginRequest,
    ChangePasswordRequest,
    LoginData,
    ProfileData,
)
from stocktrack.services.auth.auth_service import (
    login_user,
    get_profile,
    change_password,
    logout_user,
)
from stocktrack.utils.get_user import get_current_user
from stocktrack.utils.response import APIResponse, success_response
from stocktrack.utils.logger import get_logger

logger = get_logger("auth.router")

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=APIResponse[LoginData])
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Login attempt", extra={"username": payload.username})

    data = await login_user(db, payload.username, payload.password)
    return success_response("Login successful", data)


@router.get("/profile", response_model=APIResponse[ProfileData])
async def profile(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    data = await get_profile(db, current_user)
    return success_response("Profile fetched successfully", data)


@router.put("/change-password", response_model=APIResponse[None])
async def change_password_api(
    payload: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    await change_password(db, current_user, payload.current_password, payload.new_password)
    return success_response("Password changed successfully")


@router.post("/logout", response_model=APIResponse[None])
async def logout(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    logger.info(
        "Logout request",
        extra={"user_id": current_user.id, "username": current_user.username},
    )

    await logout_user(db, current_user)
    return success_response("Logged out successfully")
