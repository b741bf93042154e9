from datetime import date, datetime, time, timedelta

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.models.inventory.inventory_record_models import InventoryRecord
from stocktrack.models.inventory.location_models import Location
from stocktrack.models.inventory.stock_transaction_models import StockTransaction
from stocktrack.models.masters.product_models import Product
from stocktrack.models.users.user_models import User
from stocktrack.models.enums.record_status import RecordStatus
from stocktrack.schemas.inventory.inventory_schemas import (
    StockChangeRequest,
    InventoryUpdateRequest,
    BulkUpdateRequest,
    InventoryOut,
    InventoryListData,
    StockTransactionOut,
    StockTransactionListData,
    StockChangeOut,
    BulkUpdateItemResult,
    BulkUpdateResult,
    ReconcileOut,
)
from stocktrack.services.access.location_access_service import (
    ensure_location_access,
    location_scope,
)
from stocktrack.services.inventory import ledger_service
from stocktrack.core.exceptions import NotFoundError
from stocktrack.constants.error_codes import ErrorCode
from stocktrack.constants.transaction_type import StockTransactionType
from stocktrack.utils.response import build_pagination
from stocktrack.utils.logger import get_logger

logger = get_logger(__name__)


# =====================================================
# QUERY BUILDERS
# =====================================================
def _inventory_select():
    return (
        select(
            InventoryRecord.id,
            InventoryRecord.product_id,
            Product.name.label("product_name"),
            Product.sku,
            Product.category,
            Product.brand,
            Product.unit_price,
            Product.reorder_level,
            InventoryRecord.location_id,
            Location.name.label("location_name"),
            Location.city,
            Location.state,
            InventoryRecord.quantity,
            InventoryRecord.reserved_quantity,
            InventoryRecord.last_updated,
        )
        .join(Product, Product.id == InventoryRecord.product_id)
        .join(Location, Location.id == InventoryRecord.location_id)
    )


def _transaction_select():
    return (
        select(
            StockTransaction.id,
            StockTransaction.product_id,
            Product.name.label("product_name"),
            Product.sku,
            StockTransaction.location_id,
            Location.name.label("location_name"),
            StockTransaction.transaction_type,
            StockTransaction.quantity,
            StockTransaction.previous_quantity,
            StockTransaction.new_quantity,
            StockTransaction.reason,
            StockTransaction.reference_number,
            StockTransaction.created_by,
            User.username.label("created_by_username"),
            StockTransaction.created_at,
        )
        .join(Product, Product.id == StockTransaction.product_id)
        .join(Location, Location.id == StockTransaction.location_id)
        .join(User, User.id == StockTransaction.created_by)
    )


def _active_filters():
    return [
        Product.status == RecordStatus.active,
        Location.status == RecordStatus.active,
    ]


async def _paginate(db: AsyncSession, stmt, page: int, limit: int):
    total = await db.scalar(select(func.count()).select_from(stmt.subquery()))
    rows = (
        await db.execute(stmt.offset((page - 1) * limit).limit(limit))
    ).all()
    return total or 0, rows


async def _get_inventory_out(db: AsyncSession, inventory_id: int) -> InventoryOut:
    row = (
        await db.execute(_inventory_select().where(InventoryRecord.id == inventory_id))
    ).one()
    return InventoryOut(**row._mapping)


async def _get_transaction_out(db: AsyncSession, transaction_id: int) -> StockTransactionOut:
    row = (
        await db.execute(_transaction_select().where(StockTransaction.id == transaction_id))
    ).one()
    return StockTransactionOut(**row._mapping)


async def _get_record(db: AsyncSession, inventory_id: int) -> InventoryRecord:
    record = await db.get(InventoryRecord, inventory_id)
    if not record:
        raise NotFoundError("Inventory record not found", ErrorCode.INVENTORY_NOT_FOUND)
    return record


# =====================================================
# LIST INVENTORY
# =====================================================
async def list_inventory(
    db: AsyncSession,
    user,
    *,
    location_id: int | None,
    product_id: int | None,
    low_stock: bool,
    page: int,
    limit: int,
) -> InventoryListData:
    filters = _active_filters()

    scope = location_scope(InventoryRecord.location_id, user)
    if scope is not None:
        filters.append(scope)

    if location_id:
        await ensure_location_access(db, user, location_id)
        filters.append(InventoryRecord.location_id == location_id)

    if product_id:
        filters.append(InventoryRecord.product_id == product_id)

    if low_stock:
        filters.append(InventoryRecord.quantity <= Product.reorder_level)

    stmt = _inventory_select().where(*filters).order_by(
        Product.name.asc(), Location.name.asc()
    )
    total, rows = await _paginate(db, stmt, page, limit)

    return InventoryListData(
        items=[InventoryOut(**r._mapping) for r in rows],
        pagination=build_pagination(page, limit, total),
    )


# =====================================================
# LOCATION INVENTORY
# =====================================================
async def get_location_inventory(db: AsyncSession, location_id: int, user) -> list[InventoryOut]:
    location = await db.get(Location, location_id)
    if not location or location.status != RecordStatus.active:
        raise NotFoundError("Location not found", ErrorCode.LOCATION_NOT_FOUND)

    await ensure_location_access(db, user, location_id)

    rows = (
        await db.execute(
            _inventory_select()
            .where(
                InventoryRecord.location_id == location_id,
                Product.status == RecordStatus.active,
            )
            .order_by(Product.name.asc())
        )
    ).all()
    return [InventoryOut(**r._mapping) for r in rows]


# =====================================================
# LOW STOCK
# =====================================================
async def list_low_stock(db: AsyncSession, user, location_id: int | None = None) -> list[InventoryOut]:
    filters = _active_filters()
    filters.append(InventoryRecord.quantity <= Product.reorder_level)

    scope = location_scope(InventoryRecord.location_id, user)
    if scope is not None:
        filters.append(scope)

    if location_id:
        await ensure_location_access(db, user, location_id)
        filters.append(InventoryRecord.location_id == location_id)

    rows = (
        await db.execute(
            _inventory_select()
            .where(*filters)
            .order_by(InventoryRecord.quantity.asc(), Product.name.asc())
        )
    ).all()
    return [InventoryOut(**r._mapping) for r in rows]


# =====================================================
# STOCK CHANGE
# =====================================================
async def create_stock_change(db: AsyncSession, payload: StockChangeRequest, user) -> StockChangeOut:
    try:
        entry = await ledger_service.apply_stock_change(
            db,
            product_id=payload.product_id,
            location_id=payload.location_id,
            transaction_type=payload.transaction_type,
            quantity=payload.quantity,
            reason=payload.reason,
            reference_number=payload.reference_number,
            actor=user,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    inventory_id = await db.scalar(
        select(InventoryRecord.id).where(
            InventoryRecord.product_id == payload.product_id,
            InventoryRecord.location_id == payload.location_id,
        )
    )
    return StockChangeOut(
        inventory=await _get_inventory_out(db, inventory_id),
        transaction=await _get_transaction_out(db, entry.id),
    )


async def update_inventory(
    db: AsyncSession,
    inventory_id: int,
    payload: InventoryUpdateRequest,
    user,
) -> StockChangeOut:
    record = await _get_record(db, inventory_id)

    try:
        entry = await ledger_service.apply_stock_change(
            db,
            product_id=record.product_id,
            location_id=record.location_id,
            transaction_type=payload.transaction_type,
            quantity=payload.quantity,
            reason=payload.reason,
            reference_number=payload.reference_number,
            actor=user,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return StockChangeOut(
        inventory=await _get_inventory_out(db, inventory_id),
        transaction=await _get_transaction_out(db, entry.id),
    )


async def bulk_update(db: AsyncSession, payload: BulkUpdateRequest, user) -> BulkUpdateResult:
    results = await ledger_service.apply_bulk_changes(db, payload.updates, user)
    succeeded = sum(1 for r in results if r["success"])

    logger.info(
        "Bulk inventory update finished",
        extra={"succeeded": succeeded, "failed": len(results) - succeeded},
    )

    return BulkUpdateResult(
        succeeded=succeeded,
        failed=len(results) - succeeded,
        results=[BulkUpdateItemResult(**r) for r in results],
    )


# =====================================================
# TRANSACTIONS
# =====================================================
async def list_transactions(
    db: AsyncSession,
    user,
    *,
    location_id: int | None,
    product_id: int | None,
    transaction_type: StockTransactionType | None,
    start_date: date | None,
    end_date: date | None,
    page: int,
    limit: int,
) -> StockTransactionListData:
    filters = []

    scope = location_scope(StockTransaction.location_id, user)
    if scope is not None:
        filters.append(scope)

    if location_id:
        await ensure_location_access(db, user, location_id)
        filters.append(StockTransaction.location_id == location_id)

    if product_id:
        filters.append(StockTransaction.product_id == product_id)

    if transaction_type:
        filters.append(StockTransaction.transaction_type == transaction_type)

    if start_date:
        filters.append(StockTransaction.created_at >= datetime.combine(start_date, time.min))

    if end_date:
        # inclusive of the whole end day
        filters.append(
            StockTransaction.created_at < datetime.combine(end_date + timedelta(days=1), time.min)
        )

    stmt = _transaction_select().where(*filters).order_by(
        StockTransaction.created_at.desc(), StockTransaction.id.desc()
    )
    total, rows = await _paginate(db, stmt, page, limit)

    return StockTransactionListData(
        items=[StockTransactionOut(**r._mapping) for r in rows],
        pagination=build_pagination(page, limit, total),
    )


# =====================================================
# RECONCILE
# =====================================================
async def reconcile(db: AsyncSession, inventory_id: int, user) -> ReconcileOut:
    record = await _get_record(db, inventory_id)
    await ensure_location_access(db, user, record.location_id)

    reconstructed, count = await ledger_service.reconstruct_quantity(
        db, record.product_id, record.location_id
    )

    if reconstructed != record.quantity:
        logger.warning(
            "Inventory drift detected",
            extra={
                "inventory_id": record.id,
                "recorded": record.quantity,
                "reconstructed": reconstructed,
            },
        )

    return ReconcileOut(
        inventory_id=record.id,
        product_id=record.product_id,
        location_id=record.location_id,
        recorded_quantity=record.quantity,
        reconstructed_quantity=reconstructed,
        transaction_count=count,
        consistent=reconstructed == record.quantity,
    )
