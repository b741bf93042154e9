# stocktrack/services/masters/product_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError

from stocktrack.models.masters.product_models import Product
from stocktrack.models.inventory.inventory_record_models import InventoryRecord
from stocktrack.models.inventory.location_models import Location
from stocktrack.models.enums.record_status import RecordStatus
from stocktrack.schemas.masters.product_schemas import (
    ProductCreate,
    ProductUpdate,
    ProductOut,
    ProductInventoryOut,
    ProductDetailOut,
    ProductListData,
)
from stocktrack.core.exceptions import ConflictError, NotFoundError, ValidationError
from stocktrack.constants.error_codes import ErrorCode
from stocktrack.constants.activity_codes import ActivityCode
from stocktrack.utils.activity_helpers import emit_activity
from stocktrack.utils.response import build_pagination
from stocktrack.utils.logger import get_logger

logger = get_logger(__name__)


# =====================================================
# HELPERS
# =====================================================
def _map_product(product: Product, total_stock: int = 0, total_reserved: int = 0) -> ProductOut:
    return ProductOut(
        id=product.id,
        sku=product.sku,
        name=product.name,
        description=product.description,
        category=product.category,
        brand=product.brand,
        unit_price=product.unit_price,
        cost_price=product.cost_price,
        reorder_level=product.reorder_level,
        status=product.status,
        is_active=product.is_active,
        total_stock=total_stock or 0,
        total_reserved=total_reserved or 0,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def _stock_totals_subquery():
    return (
        select(
            InventoryRecord.product_id.label("product_id"),
            func.sum(InventoryRecord.quantity).label("total_stock"),
            func.sum(InventoryRecord.reserved_quantity).label("total_reserved"),
        )
        .group_by(InventoryRecord.product_id)
        .subquery()
    )


async def _get_active_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if not product or product.status != RecordStatus.active:
        raise NotFoundError("Product not found", ErrorCode.PRODUCT_NOT_FOUND)
    return product


async def _total_stock(db: AsyncSession, product_id: int) -> tuple[int, int]:
    row = (
        await db.execute(
            select(
                func.coalesce(func.sum(InventoryRecord.quantity), 0),
                func.coalesce(func.sum(InventoryRecord.reserved_quantity), 0),
            ).where(InventoryRecord.product_id == product_id)
        )
    ).one()
    return int(row[0]), int(row[1])


# ---------------- LIST ----------------
async def list_products(
    db: AsyncSession,
    *,
    search: str | None,
    category: str | None,
    brand: str | None,
    is_active: bool | None,
    page: int,
    limit: int,
) -> ProductListData:
    filters = []

    if search:
        filters.append(
            or_(
                Product.name.ilike(f"%{search}%"),
                Product.sku.ilike(f"%{search}%"),
                Product.description.ilike(f"%{search}%"),
            )
        )

    if category:
        filters.append(Product.category == category)

    if brand:
        filters.append(Product.brand == brand)

    # default view hides retired products
    if is_active is None or is_active:
        filters.append(Product.status == RecordStatus.active)
    else:
        filters.append(Product.status == RecordStatus.retired)

    total = await db.scalar(
        select(func.count()).select_from(select(Product.id).where(*filters).subquery())
    )

    totals = _stock_totals_subquery()
    rows = (
        await db.execute(
            select(Product, totals.c.total_stock, totals.c.total_reserved)
            .outerjoin(totals, totals.c.product_id == Product.id)
            .where(*filters)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
    ).all()

    return ProductListData(
        items=[_map_product(p, stock, reserved) for p, stock, reserved in rows],
        pagination=build_pagination(page, limit, total or 0),
    )


# ---------------- GET ----------------
async def get_product(db: AsyncSession, product_id: int) -> ProductDetailOut:
    product = await _get_active_product(db, product_id)

    rows = (
        await db.execute(
            select(
                InventoryRecord.id.label("inventory_id"),
                InventoryRecord.location_id,
                Location.name.label("location_name"),
                Location.city,
                Location.state,
                InventoryRecord.quantity,
                InventoryRecord.reserved_quantity,
                InventoryRecord.last_updated,
            )
            .join(Location, Location.id == InventoryRecord.location_id)
            .where(
                InventoryRecord.product_id == product_id,
                Location.status == RecordStatus.active,
            )
            .order_by(Location.name.asc())
        )
    ).all()

    inventory = [ProductInventoryOut(**r._mapping) for r in rows]

    base = _map_product(
        product,
        total_stock=sum(i.quantity for i in inventory),
        total_reserved=sum(i.reserved_quantity for i in inventory),
    )
    return ProductDetailOut(**base.model_dump(), inventory=inventory)


# ---------------- CREATE ----------------
async def create_product(db: AsyncSession, payload: ProductCreate, user) -> ProductOut:
    exists = await db.scalar(select(Product.id).where(Product.sku == payload.sku))
    if exists:
        raise ConflictError("SKU already exists", ErrorCode.PRODUCT_SKU_EXISTS)

    product = Product(
        **payload.model_dump(),
        status=RecordStatus.active,
        created_by_id=user.id,
        updated_by_id=user.id,
    )
    db.add(product)

    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        # lost a race on the unique SKU
        raise ConflictError("SKU already exists", ErrorCode.PRODUCT_SKU_EXISTS)

    await emit_activity(
        db,
        actor=user,
        code=ActivityCode.CREATE_PRODUCT,
        table_name="products",
        record_id=product.id,
        target_name=product.name,
        sku=product.sku,
    )

    await db.commit()
    await db.refresh(product)

    logger.info("Product created", extra={"product_id": product.id, "sku": product.sku})
    return _map_product(product)


# ---------------- UPDATE ----------------
async def update_product(
    db: AsyncSession,
    product_id: int,
    payload: ProductUpdate,
    user,
) -> ProductOut:
    product = await _get_active_product(db, product_id)

    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No changes detected")

    # -------------------------------------------------
    # CHANGE TRACKING
    # -------------------------------------------------
    changes: list[str] = []
    for field, new_value in updates.items():
        old_value = getattr(product, field)
        if old_value != new_value:
            changes.append(f"{field}: {old_value} → {new_value}")
            setattr(product, field, new_value)

    if not changes:
        raise ValidationError("No actual changes detected")

    product.updated_by_id = user.id

    await emit_activity(
        db,
        actor=user,
        code=ActivityCode.UPDATE_PRODUCT,
        table_name="products",
        record_id=product.id,
        target_name=product.name,
        changes=", ".join(changes),
    )

    await db.commit()
    await db.refresh(product)

    total_stock, total_reserved = await _total_stock(db, product.id)
    return _map_product(product, total_stock, total_reserved)


# ---------------- RETIRE ----------------
async def retire_product(db: AsyncSession, product_id: int, user) -> None:
    product = await _get_active_product(db, product_id)

    total_stock, _ = await _total_stock(db, product.id)
    if total_stock > 0:
        raise ConflictError(
            "Cannot delete product with existing inventory",
            ErrorCode.PRODUCT_HAS_STOCK,
            details={"total_stock": total_stock},
        )

    product.status = RecordStatus.retired
    product.updated_by_id = user.id

    await emit_activity(
        db,
        actor=user,
        code=ActivityCode.RETIRE_PRODUCT,
        table_name="products",
        record_id=product.id,
        target_name=product.name,
    )

    await db.commit()
    logger.info("Product retired", extra={"product_id": product.id})


# ---------------- LOOKUPS ----------------
async def list_categories(db: AsyncSession) -> list[str]:
    result = await db.execute(
        select(Product.category)
        .where(Product.category.is_not(None), Product.status == RecordStatus.active)
        .distinct()
        .order_by(Product.category.asc())
    )
    return list(result.scalars().all())


async def list_brands(db: AsyncSession) -> list[str]:
    result = await db.execute(
        select(Product.brand)
        .where(Product.brand.is_not(None), Product.status == RecordStatus.active)
        .distinct()
        .order_by(Product.brand.asc())
    )
    return list(result.scalars().all())
