"""Sales.

Each write runs as one unit of work: the ``Sale`` row and its ledger entry
commit together or not at all.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.models.sales.sale_models import Sale
from stocktrack.models.masters.product_models import Product
from stocktrack.models.inventory.location_models import Location
from stocktrack.models.users.user_models import User
from stocktrack.schemas.sales.sale_schemas import (
    SaleCreate,
    SaleUpdate,
    SaleOut,
    SaleListData,
    SalesTotals,
    LocationSales,
    ProductSales,
    SalesSummaryOut,
)
from stocktrack.services.access.location_access_service import (
    ensure_location_access,
    location_scope,
)
from stocktrack.services.inventory import ledger_service
from stocktrack.core.exceptions import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from stocktrack.constants.error_codes import ErrorCode
from stocktrack.constants.activity_codes import ActivityCode
from stocktrack.constants.transaction_type import StockTransactionType
from stocktrack.utils.activity_helpers import emit_activity
from stocktrack.utils.decimal_utils import line_total
from stocktrack.utils.response import build_pagination
from stocktrack.utils.logger import get_logger

logger = get_logger(__name__)

TOP_PRODUCTS_LIMIT = 10


# =====================================================
# QUERY HELPERS
# =====================================================
def _sale_select():
    return (
        select(
            Sale.id,
            Sale.product_id,
            Product.name.label("product_name"),
            Product.sku,
            Sale.location_id,
            Location.name.label("location_name"),
            Sale.quantity,
            Sale.unit_price,
            Sale.total_amount,
            Sale.customer_name,
            Sale.customer_email,
            Sale.customer_phone,
            Sale.created_by,
            User.username.label("created_by_username"),
            Sale.sale_date,
            Sale.updated_at,
        )
        .join(Product, Product.id == Sale.product_id)
        .join(Location, Location.id == Sale.location_id)
        .join(User, User.id == Sale.created_by)
    )


def _date_filters(start_date: date | None, end_date: date | None) -> list:
    filters = []
    if start_date:
        filters.append(Sale.sale_date >= datetime.combine(start_date, time.min))
    if end_date:
        filters.append(Sale.sale_date < datetime.combine(end_date + timedelta(days=1), time.min))
    return filters


async def _get_sale_out(db: AsyncSession, sale_id: int) -> SaleOut:
    row = (await db.execute(_sale_select().where(Sale.id == sale_id))).one()
    return SaleOut(**row._mapping)


async def _get_sale(db: AsyncSession, sale_id: int, *, lock: bool = False) -> Sale:
    if not lock:
        sale = await db.get(Sale, sale_id)
    else:
        # sale row is locked before its inventory row; populate_existing
        # overwrites any stale copy already in the identity map
        sale = (
            await db.execute(
                select(Sale)
                .where(Sale.id == sale_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
    if not sale:
        raise NotFoundError("Sale not found", ErrorCode.SALE_NOT_FOUND)
    return sale


# =====================================================
# CREATE (NO COMMIT)
# =====================================================
async def record_sale(
    db: AsyncSession,
    *,
    product_id: int,
    location_id: int,
    quantity: int,
    unit_price: Decimal,
    customer_name: str | None,
    customer_email: str | None,
    customer_phone: str | None,
    user,
    reason: str = "Sale transaction",
    reference_prefix: str = "SALE",
) -> Sale:
    """Insert a sale and take its quantity out of stock. Caller commits."""
    await ensure_location_access(db, user, location_id)

    await ledger_service.get_active_product(db, product_id)
    await ledger_service.get_active_location(db, location_id)

    record = await ledger_service.lock_inventory_record(db, product_id, location_id)
    available = record.quantity if record else 0
    if available < quantity:
        raise InsufficientStockError(
            details={"available": available, "requested": quantity},
        )

    sale = Sale(
        product_id=product_id,
        location_id=location_id,
        quantity=quantity,
        unit_price=unit_price,
        total_amount=line_total(quantity, unit_price),
        customer_name=customer_name,
        customer_email=customer_email,
        customer_phone=customer_phone,
        created_by=user.id,
    )
    db.add(sale)
    await db.flush()

    await ledger_service.apply_stock_change(
        db,
        product_id=product_id,
        location_id=location_id,
        transaction_type=StockTransactionType.OUT,
        quantity=quantity,
        reason=reason,
        reference_number=f"{reference_prefix}-{sale.id}",
        actor=user,
    )

    await emit_activity(
        db,
        actor=user,
        code=ActivityCode.CREATE_SALE,
        table_name="sales",
        record_id=sale.id,
        target_id=sale.id,
        quantity=quantity,
        product_id=product_id,
        location_id=location_id,
    )
    return sale


# ---------------- CREATE ----------------
async def create_sale(db: AsyncSession, payload: SaleCreate, user) -> SaleOut:
    try:
        sale = await record_sale(
            db,
            product_id=payload.product_id,
            location_id=payload.location_id,
            quantity=payload.quantity,
            unit_price=payload.unit_price,
            customer_name=payload.customer_name,
            customer_email=payload.customer_email,
            customer_phone=payload.customer_phone,
            user=user,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Sale created", extra={"sale_id": sale.id, "user_id": user.id})
    return await _get_sale_out(db, sale.id)


# ---------------- UPDATE ----------------
async def update_sale(db: AsyncSession, sale_id: int, payload: SaleUpdate, user) -> SaleOut:
    sale = await _get_sale(db, sale_id, lock=True)
    await ensure_location_access(db, user, sale.location_id)

    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No changes detected")

    try:
        changes: list[str] = []
        new_quantity = updates.get("quantity") or sale.quantity

        if new_quantity != sale.quantity:
            record = await ledger_service.lock_inventory_record(
                db, sale.product_id, sale.location_id
            )
            if not record:
                raise NotFoundError("Inventory record not found", ErrorCode.INVENTORY_NOT_FOUND)

            # stock already sold under this sale counts as available again
            available = record.quantity + sale.quantity
            if new_quantity > available:
                raise InsufficientStockError(
                    details={"available": available, "requested": new_quantity},
                )

            await ledger_service.apply_stock_delta(
                db,
                record=record,
                delta=sale.quantity - new_quantity,
                reason="Sale update",
                reference_number=f"SALE-UPDATE-{sale.id}",
                actor=user,
            )

        for field, new_value in updates.items():
            if new_value is None and field in {"quantity", "unit_price"}:
                continue
            old_value = getattr(sale, field)
            if old_value != new_value:
                changes.append(f"{field}: {old_value} → {new_value}")
                setattr(sale, field, new_value)

        if not changes:
            raise ValidationError("No actual changes detected")

        sale.total_amount = line_total(sale.quantity, sale.unit_price)

        await emit_activity(
            db,
            actor=user,
            code=ActivityCode.UPDATE_SALE,
            table_name="sales",
            record_id=sale.id,
            target_id=sale.id,
            changes=", ".join(changes),
        )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return await _get_sale_out(db, sale.id)


# ---------------- DELETE ----------------
async def delete_sale(db: AsyncSession, sale_id: int, user) -> None:
    sale = await _get_sale(db, sale_id, lock=True)
    await ensure_location_access(db, user, sale.location_id)

    try:
        # restock even if the product or location was retired since
        await ledger_service.apply_stock_change(
            db,
            product_id=sale.product_id,
            location_id=sale.location_id,
            transaction_type=StockTransactionType.IN,
            quantity=sale.quantity,
            reason="Sale deletion",
            reference_number=f"SALE-DELETE-{sale.id}",
            actor=user,
            require_active=False,
        )

        await emit_activity(
            db,
            actor=user,
            code=ActivityCode.DELETE_SALE,
            table_name="sales",
            record_id=sale.id,
            target_id=sale.id,
            quantity=sale.quantity,
        )

        await db.delete(sale)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Sale deleted", extra={"sale_id": sale_id, "user_id": user.id})


# ---------------- LIST / GET ----------------
async def list_sales(
    db: AsyncSession,
    user,
    *,
    location_id: int | None,
    product_id: int | None,
    start_date: date | None,
    end_date: date | None,
    page: int,
    limit: int,
) -> SaleListData:
    filters = _date_filters(start_date, end_date)

    scope = location_scope(Sale.location_id, user)
    if scope is not None:
        filters.append(scope)

    if location_id:
        await ensure_location_access(db, user, location_id)
        filters.append(Sale.location_id == location_id)

    if product_id:
        filters.append(Sale.product_id == product_id)

    total = await db.scalar(
        select(func.count()).select_from(select(Sale.id).where(*filters).subquery())
    )

    rows = (
        await db.execute(
            _sale_select()
            .where(*filters)
            .order_by(Sale.sale_date.desc(), Sale.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
    ).all()

    return SaleListData(
        items=[SaleOut(**r._mapping) for r in rows],
        pagination=build_pagination(page, limit, total or 0),
    )


async def get_sale(db: AsyncSession, sale_id: int, user) -> SaleOut:
    sale = await _get_sale(db, sale_id)
    await ensure_location_access(db, user, sale.location_id)
    return await _get_sale_out(db, sale.id)


# ---------------- ANALYTICS ----------------
async def sales_summary(
    db: AsyncSession,
    user,
    *,
    location_id: int | None,
    start_date: date | None,
    end_date: date | None,
) -> SalesSummaryOut:
    filters = _date_filters(start_date, end_date)

    scope = location_scope(Sale.location_id, user)
    if scope is not None:
        filters.append(scope)

    if location_id:
        await ensure_location_access(db, user, location_id)
        filters.append(Sale.location_id == location_id)

    revenue = func.coalesce(func.sum(Sale.total_amount), 0)

    totals = (
        await db.execute(select(func.count(Sale.id), revenue).where(*filters))
    ).one()

    by_location = (
        await db.execute(
            select(
                Location.id.label("location_id"),
                Location.name.label("location_name"),
                func.count(Sale.id).label("sales_count"),
                revenue.label("revenue"),
            )
            .join(Location, Location.id == Sale.location_id)
            .where(*filters)
            .group_by(Location.id, Location.name)
            .order_by(revenue.desc())
        )
    ).all()

    top_products = (
        await db.execute(
            select(
                Product.id.label("product_id"),
                Product.name.label("product_name"),
                Product.sku,
                func.count(Sale.id).label("sales_count"),
                func.coalesce(func.sum(Sale.quantity), 0).label("total_quantity"),
                revenue.label("revenue"),
            )
            .join(Product, Product.id == Sale.product_id)
            .where(*filters)
            .group_by(Product.id, Product.name, Product.sku)
            .order_by(revenue.desc())
            .limit(TOP_PRODUCTS_LIMIT)
        )
    ).all()

    return SalesSummaryOut(
        summary=SalesTotals(total_sales=totals[0], total_revenue=totals[1]),
        sales_by_location=[LocationSales(**r._mapping) for r in by_location],
        top_products=[ProductSales(**r._mapping) for r in top_products],
    )
