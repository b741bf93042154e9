from datetime import date

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from stocktrack.core.db import get_db
from stocktrack.core.exceptions import ValidationError
from stocktrack.constants.error_codes import ErrorCode
from stocktrack.schemas.sales.sale_schemas import (
    SaleCreate,
    SaleUpdate,
    SaleOut,
    SaleListData,
    SalesSummaryOut,
    BulkUploadResult,
)
from stocktrack.services.sales import sales_service
from stocktrack.services.sales.sales_import_service import import_sales
from stocktrack.utils.check_roles import require_manager_or_admin
from stocktrack.utils.response import APIResponse, success_response
from stocktrack.utils.logger import get_logger

router = APIRouter(prefix="/sales", tags=["Sales"])
logger = get_logger(__name__)


@router.get("", response_model=APIResponse[SaleListData])
async def list_sales_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
    location_id: int | None = Query(None),
    product_id: int | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    data = await sales_service.list_sales(
        db,
        user,
        location_id=location_id,
        product_id=product_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return success_response("Sales fetched successfully", data)


@router.post("", response_model=APIResponse[SaleOut], status_code=201)
async def create_sale_api(
    payload: SaleCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    logger.info(
        "Create sale",
        extra={"product_id": payload.product_id, "location_id": payload.location_id},
    )
    sale = await sales_service.create_sale(db, payload, user)
    return success_response("Sale created successfully", sale)


# ---------------- static paths before /{sale_id} ----------------
@router.get("/analytics/summary", response_model=APIResponse[SalesSummaryOut])
async def sales_summary_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
    location_id: int | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
):
    data = await sales_service.sales_summary(
        db,
        user,
        location_id=location_id,
        start_date=start_date,
        end_date=end_date,
    )
    return success_response("Sales summary fetched successfully", data)


@router.post("/bulk-upload", response_model=APIResponse[BulkUploadResult])
async def bulk_upload_api(
    file: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    if file is None:
        raise ValidationError("No file uploaded", ErrorCode.INVALID_UPLOAD)

    logger.info("Bulk sale upload", extra={"upload_name": file.filename, "user_id": user.id})
    content = await file.read()

    data = await import_sales(db, content, user)
    return success_response(
        f"Bulk upload completed. {data.succeeded} successful, {data.failed} failed.",
        data,
    )


# ---------------- by sale id ----------------
@router.get("/{sale_id}", response_model=APIResponse[SaleOut])
async def get_sale_api(
    sale_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    sale = await sales_service.get_sale(db, sale_id, user)
    return success_response("Sale fetched successfully", sale)


@router.put("/{sale_id}", response_model=APIResponse[SaleOut])
async def update_sale_api(
    sale_id: int,
    payload: SaleUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    logger.info("Update sale", extra={"sale_id": sale_id})
    sale = await sales_service.update_sale(db, sale_id, payload, user)
    return success_response("Sale updated successfully", sale)


@router.delete("/{sale_id}", response_model=APIResponse[None])
async def delete_sale_api(
    sale_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    logger.info("Delete sale", extra={"sale_id": sale_id})
    await sales_service.delete_sale(db, sale_id, user)
    return success_response("Sale deleted successfully")
