from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from stocktrack.core.db import get_db
from stocktrack.constants.transaction_type import StockTransactionType
from stocktrack.schemas.inventory.inventory_schemas import (
    StockChangeRequest,
    InventoryUpdateRequest,
    BulkUpdateRequest,
    InventoryOut,
    InventoryListData,
    StockTransactionListData,
    StockChangeOut,
    BulkUpdateResult,
    ReconcileOut,
)
from stocktrack.services.inventory import inventory_service
from stocktrack.utils.check_roles import require_manager_or_admin
from stocktrack.utils.response import APIResponse, success_response
from stocktrack.utils.logger import get_logger

router = APIRouter(prefix="/inventory", tags=["Inventory"])
logger = get_logger(__name__)


@router.get("", response_model=APIResponse[InventoryListData])
async def list_inventory_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
    location_id: int | None = Query(None),
    product_id: int | None = Query(None),
    low_stock: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    data = await inventory_service.list_inventory(
        db,
        user,
        location_id=location_id,
        product_id=product_id,
        low_stock=low_stock,
        page=page,
        limit=limit,
    )
    return success_response("Inventory fetched successfully", data)


@router.post("", response_model=APIResponse[StockChangeOut], status_code=201)
async def stock_change_api(
    payload: StockChangeRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    logger.info(
        "Stock change requested",
        extra={
            "product_id": payload.product_id,
            "location_id": payload.location_id,
            "transaction_type": payload.transaction_type.value,
        },
    )
    data = await inventory_service.create_stock_change(db, payload, user)
    return success_response("Inventory updated successfully", data)


# ---------------- static paths before /{inventory_id} ----------------
@router.post("/bulk-update", response_model=APIResponse[BulkUpdateResult])
async def bulk_update_api(
    payload: BulkUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    logger.info("Bulk inventory update", extra={"items": len(payload.updates)})
    data = await inventory_service.bulk_update(db, payload, user)
    return success_response(
        f"Bulk update completed. {data.succeeded} successful, {data.failed} failed.",
        data,
    )


@router.get("/low-stock", response_model=APIResponse[List[InventoryOut]])
async def low_stock_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
    location_id: int | None = Query(None),
):
    items = await inventory_service.list_low_stock(db, user, location_id)
    return success_response("Low stock items fetched successfully", items)


@router.get("/transactions", response_model=APIResponse[StockTransactionListData])
async def list_transactions_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
    location_id: int | None = Query(None),
    product_id: int | None = Query(None),
    transaction_type: StockTransactionType | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    data = await inventory_service.list_transactions(
        db,
        user,
        location_id=location_id,
        product_id=product_id,
        transaction_type=transaction_type,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return success_response("Transactions fetched successfully", data)


@router.get("/location/{location_id}", response_model=APIResponse[List[InventoryOut]])
async def location_inventory_api(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    items = await inventory_service.get_location_inventory(db, location_id, user)
    return success_response("Location inventory fetched successfully", items)


# ---------------- by record id ----------------
@router.put("/{inventory_id}", response_model=APIResponse[StockChangeOut])
async def update_inventory_api(
    inventory_id: int,
    payload: InventoryUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    logger.info("Inventory record update", extra={"inventory_id": inventory_id})
    data = await inventory_service.update_inventory(db, inventory_id, payload, user)
    return success_response("Inventory updated successfully", data)


@router.get("/{inventory_id}/reconcile", response_model=APIResponse[ReconcileOut])
async def reconcile_api(
    inventory_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    data = await inventory_service.reconcile(db, inventory_id, user)
    return success_response("Inventory reconciled", data)
