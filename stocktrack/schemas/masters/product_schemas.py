# stocktrack/schemas/masters/product_schemas.py

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

from stocktrack.models.enums.record_status import RecordStatus
from stocktrack.utils.response import Pagination


class ProductCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    brand: Optional[str] = Field(default=None, max_length=100)
    unit_price: Decimal = Field(ge=0)
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    reorder_level: int = Field(default=0, ge=0)


class ProductUpdate(BaseModel):
    # sku is immutable after creation
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    brand: Optional[str] = Field(default=None, max_length=100)
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    reorder_level: Optional[int] = Field(default=None, ge=0)

    class Config:
        extra = "forbid"

    @field_validator("name", "unit_price", "reorder_level")
    @classmethod
    def not_null(cls, value):
        # omit the field to keep it; null would clear a required column
        if value is None:
            raise ValueError("Field cannot be null")
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("Field cannot be blank")
        return value


class ProductOut(BaseModel):
    id: int
    sku: str
    name: str
    description: Optional[str]
    category: Optional[str]
    brand: Optional[str]
    unit_price: Decimal
    cost_price: Optional[Decimal]
    reorder_level: int

    status: RecordStatus
    is_active: bool

    total_stock: int = 0
    total_reserved: int = 0

    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ProductInventoryOut(BaseModel):
    inventory_id: int
    location_id: int
    location_name: str
    city: Optional[str]
    state: Optional[str]
    quantity: int
    reserved_quantity: int
    last_updated: datetime


class ProductDetailOut(ProductOut):
    inventory: List[ProductInventoryOut] = []


class ProductListData(BaseModel):
    items: List[ProductOut]
    pagination: Pagination
