from pydantic import BaseModel, Field
from typing import List, Literal

from stocktrack.schemas.inventory.location_schemas import LocationOut
from stocktrack.schemas.users.user_schemas import UserDetailSchema


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class LoginData(BaseModel):
    token: str
    token_type: Literal["bearer"] = "bearer"
    user: UserDetailSchema
    assigned_locations: List[LocationOut]


class ProfileData(BaseModel):
    user: UserDetailSchema
    assigned_locations: List[LocationOut]
