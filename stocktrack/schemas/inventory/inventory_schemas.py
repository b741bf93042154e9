from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

from stocktrack.constants.transaction_type import StockTransactionType
from stocktrack.utils.response import Pagination


# ==============================
# INPUT SCHEMAS
# ==============================
class StockMutationFields(BaseModel):
    quantity: int = Field(ge=0)
    transaction_type: StockTransactionType
    reason: str = Field(max_length=255)
    reference_number: Optional[str] = Field(default=None, max_length=100)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Reason is required")
        return value


class StockChangeRequest(StockMutationFields):
    product_id: int
    location_id: int


class InventoryUpdateRequest(StockMutationFields):
    pass


class BulkUpdateItem(StockMutationFields):
    inventory_id: int


class BulkUpdateRequest(BaseModel):
    updates: List[BulkUpdateItem] = Field(min_length=1)


# ==============================
# OUTPUT SCHEMAS
# ==============================
class InventoryOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    sku: str
    category: Optional[str]
    brand: Optional[str]
    unit_price: Decimal
    reorder_level: int

    location_id: int
    location_name: str
    city: Optional[str]
    state: Optional[str]

    quantity: int
    reserved_quantity: int
    last_updated: datetime


class InventoryListData(BaseModel):
    items: List[InventoryOut]
    pagination: Pagination


class StockTransactionOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    sku: str
    location_id: int
    location_name: str

    transaction_type: StockTransactionType
    quantity: int
    previous_quantity: int
    new_quantity: int
    reason: str
    reference_number: Optional[str]

    created_by: int
    created_by_username: str
    created_at: datetime


class StockTransactionListData(BaseModel):
    items: List[StockTransactionOut]
    pagination: Pagination


class StockChangeOut(BaseModel):
    inventory: InventoryOut
    transaction: StockTransactionOut


class BulkUpdateItemResult(BaseModel):
    inventory_id: int
    success: bool
    message: str
    previous_quantity: Optional[int] = None
    new_quantity: Optional[int] = None


class BulkUpdateResult(BaseModel):
    succeeded: int
    failed: int
    results: List[BulkUpdateItemResult]


class ReconcileOut(BaseModel):
    inventory_id: int
    product_id: int
    location_id: int
    recorded_quantity: int
    reconstructed_quantity: int
    transaction_count: int
    consistent: bool
