from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime

from stocktrack.models.enums.record_status import RecordStatus
from stocktrack.utils.response import Pagination


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=50)
    state: Optional[str] = Field(None, max_length=50)
    country: Optional[str] = Field(None, max_length=50)
    postal_code: Optional[str] = Field(None, max_length=20)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None


class LocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=50)
    state: Optional[str] = Field(None, max_length=50)
    country: Optional[str] = Field(None, max_length=50)
    postal_code: Optional[str] = Field(None, max_length=20)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, value):
        if value is None:
            raise ValueError("Location name cannot be null")
        value = value.strip()
        if not value:
            raise ValueError("Location name cannot be blank")
        return value


class LocationOut(BaseModel):
    id: int
    name: str
    address: Optional[str]
    city: Optional[str]
    state: Optional[str]
    country: Optional[str]
    postal_code: Optional[str]
    phone: Optional[str]
    email: Optional[str]

    status: RecordStatus
    is_active: bool

    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class LocationManagerOut(BaseModel):
    id: int
    username: str
    first_name: str
    last_name: str
    email: str
    assigned_at: datetime


class LocationInventorySummary(BaseModel):
    total_products: int
    total_quantity: int
    total_reserved: int


class LocationDetailOut(LocationOut):
    managers: List[LocationManagerOut] = []
    inventory_summary: LocationInventorySummary


class LocationListData(BaseModel):
    items: List[LocationOut]
    pagination: Pagination


class AssignManagerRequest(BaseModel):
    user_id: int
