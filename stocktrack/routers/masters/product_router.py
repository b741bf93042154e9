# stocktrack/routers/masters/product_router.py

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from stocktrack.core.db import get_db
from stocktrack.schemas.masters.product_schemas import (
    ProductCreate,
    ProductUpdate,
    ProductOut,
    ProductDetailOut,
    ProductListData,
)
from stocktrack.services.masters.product_service import (
    create_product,
    list_products,
    get_product,
    update_product,
    retire_product,
    list_categories,
    list_brands,
)
from stocktrack.utils.check_roles import require_manager_or_admin
from stocktrack.utils.response import APIResponse, success_response
from stocktrack.utils.logger import get_logger

router = APIRouter(prefix="/products", tags=["Products"])
logger = get_logger(__name__)


@router.get("", response_model=APIResponse[ProductListData])
async def list_products_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
    search: str | None = Query(None, description="Search by name, SKU or description"),
    category: str | None = Query(None),
    brand: str | None = Query(None),
    is_active: bool | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    data = await list_products(
        db,
        search=search,
        category=category,
        brand=brand,
        is_active=is_active,
        page=page,
        limit=limit,
    )
    return success_response("Products fetched successfully", data)


# static paths go before /{product_id}
@router.get("/categories/list", response_model=APIResponse[List[str]])
async def list_categories_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    return success_response("Categories fetched successfully", await list_categories(db))


@router.get("/brands/list", response_model=APIResponse[List[str]])
async def list_brands_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    return success_response("Brands fetched successfully", await list_brands(db))


@router.post("", response_model=APIResponse[ProductOut], status_code=201)
async def create_product_api(
    payload: ProductCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    logger.info("Create product", extra={"sku": payload.sku})
    product = await create_product(db, payload, user)
    return success_response("Product created successfully", product)


@router.get("/{product_id}", response_model=APIResponse[ProductDetailOut])
async def get_product_api(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    product = await get_product(db, product_id)
    return success_response("Product fetched successfully", product)


@router.put("/{product_id}", response_model=APIResponse[ProductOut])
async def update_product_api(
    product_id: int,
    payload: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    logger.info("Update product", extra={"product_id": product_id})
    product = await update_product(db, product_id, payload, user)
    return success_response("Product updated successfully", product)


@router.delete("/{product_id}", response_model=APIResponse[None])
async def delete_product_api(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_manager_or_admin),
):
    logger.info("Retire product", extra={"product_id": product_id})
    await retire_product(db, product_id, user)
    return success_response("Product deleted successfully")
