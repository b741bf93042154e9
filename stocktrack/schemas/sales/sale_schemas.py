from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

from stocktrack.utils.response import Pagination


# ==============================
# INPUT SCHEMAS
# ==============================
class SaleCustomer(BaseModel):
    customer_name: Optional[str] = Field(default=None, max_length=100)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = Field(default=None, max_length=20)


class SaleCreate(SaleCustomer):
    product_id: int
    location_id: int
    quantity: int = Field(ge=1, description="Units sold")
    unit_price: Decimal = Field(ge=0)


class SaleUpdate(BaseModel):
    quantity: Optional[int] = Field(default=None, ge=1)
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    customer_name: Optional[str] = Field(default=None, max_length=100)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = Field(default=None, max_length=20)


# ==============================
# OUTPUT SCHEMAS
# ==============================
class SaleOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    sku: str
    location_id: int
    location_name: str

    quantity: int
    unit_price: Decimal
    total_amount: Decimal

    customer_name: Optional[str]
    customer_email: Optional[str]
    customer_phone: Optional[str]

    created_by: int
    created_by_username: str
    sale_date: datetime
    updated_at: Optional[datetime]


class SaleListData(BaseModel):
    items: List[SaleOut]
    pagination: Pagination


# ==============================
# ANALYTICS
# ==============================
class SalesTotals(BaseModel):
    total_sales: int
    total_revenue: Decimal


class LocationSales(BaseModel):
    location_id: int
    location_name: str
    sales_count: int
    revenue: Decimal


class ProductSales(BaseModel):
    product_id: int
    product_name: str
    sku: str
    sales_count: int
    total_quantity: int
    revenue: Decimal


class SalesSummaryOut(BaseModel):
    summary: SalesTotals
    sales_by_location: List[LocationSales]
    top_products: List[ProductSales]


# ==============================
# BULK UPLOAD
# ==============================
class BulkUploadRowResult(BaseModel):
    row: int
    success: bool
    message: str
    sale_id: Optional[int] = None


class BulkUploadResult(BaseModel):
    total: int
    succeeded: int
    failed: int
    results: List[BulkUploadRowResult]
