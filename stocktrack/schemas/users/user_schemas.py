from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime
from fastapi import Query

from stocktrack.models.enums.user_role import UserRole
from stocktrack.utils.response import Pagination


# =========================
# CREATE / UPDATE
# =========================
class UserCreateSchema(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    role: UserRole
    location_ids: List[int] = []


class UserUpdateSchema(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    location_ids: Optional[List[int]] = None


# =========================
# LIST FILTERS
# =========================
class UserListFilters(BaseModel):
    search: Optional[str] = Query(None)
    role: Optional[UserRole] = Query(None)
    is_active: Optional[bool] = Query(None)
    page: int = Query(1, ge=1)
    limit: int = Query(20, ge=1, le=100)


# =========================
# RESPONSE SCHEMAS
# =========================
class AssignedLocationSchema(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class UserDetailSchema(BaseModel):
    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    last_login: Optional[datetime]
    created_at: datetime
    assigned_locations: List[AssignedLocationSchema] = []


class UserListData(BaseModel):
    items: List[UserDetailSchema]
    pagination: Pagination
