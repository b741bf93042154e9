"""Inventory ledger.

Every change to ``InventoryRecord.quantity`` goes through this module and
leaves exactly one ``StockTransaction`` behind. Functions here flush but never
commit: the caller owns the unit of work, so a sale and its ledger entry land
(or roll back) together.
"""

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.constants.activity_codes import ActivityCode
from stocktrack.constants.error_codes import ErrorCode
from stocktrack.constants.transaction_type import StockTransactionType
from stocktrack.core.exceptions import (
    AppException,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from stocktrack.models.base.mixins import utc_now
from stocktrack.models.enums.record_status import RecordStatus
from stocktrack.models.inventory.inventory_record_models import InventoryRecord
from stocktrack.models.inventory.location_models import Location
from stocktrack.models.inventory.stock_transaction_models import StockTransaction
from stocktrack.models.masters.product_models import Product
from stocktrack.services.access.location_access_service import ensure_location_access
from stocktrack.utils.activity_helpers import emit_activity
from stocktrack.utils.logger import get_logger

logger = get_logger(__name__)


# =====================================================
# PURE RULES
# =====================================================
def coerce_transaction_type(value) -> StockTransactionType:
    try:
        return StockTransactionType(value)
    except ValueError:
        raise ValidationError(
            "Invalid transaction type",
            ErrorCode.INVALID_TRANSACTION_TYPE,
        )


def compute_new_quantity(
    transaction_type: StockTransactionType,
    previous_quantity: int,
    quantity: int,
) -> int:
    if transaction_type == StockTransactionType.IN:
        return previous_quantity + quantity

    if transaction_type == StockTransactionType.OUT:
        if quantity > previous_quantity:
            raise InsufficientStockError(
                details={"available": previous_quantity, "requested": quantity},
            )
        return previous_quantity - quantity

    # adjustment is an absolute set
    return quantity


def replay(entries: Iterable[StockTransaction]) -> int:
    """Rebuild a quantity from its transaction log, oldest first."""
    quantity = 0
    for entry in entries:
        if entry.transaction_type == StockTransactionType.IN:
            quantity += entry.quantity
        elif entry.transaction_type == StockTransactionType.OUT:
            quantity -= entry.quantity
        else:
            quantity = entry.new_quantity
    return quantity


def _validate_mutation(quantity, reason: str | None) -> str:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
        raise ValidationError("Quantity must be a non-negative integer")

    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Reason is required")
    return reason


# =====================================================
# LOOKUPS
# =====================================================
async def get_active_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if not product or product.status != RecordStatus.active:
        raise NotFoundError("Product not found or inactive", ErrorCode.PRODUCT_NOT_FOUND)
    return product


async def get_active_location(db: AsyncSession, location_id: int) -> Location:
    location = await db.get(Location, location_id)
    if not location or location.status != RecordStatus.active:
        raise NotFoundError("Location not found or inactive", ErrorCode.LOCATION_NOT_FOUND)
    return location


async def lock_inventory_record(
    db: AsyncSession,
    product_id: int,
    location_id: int,
) -> InventoryRecord | None:
    result = await db.execute(
        select(InventoryRecord)
        .where(
            InventoryRecord.product_id == product_id,
            InventoryRecord.location_id == location_id,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


# =====================================================
# WRITE PATH
# =====================================================
async def _append_entry(
    db: AsyncSession,
    *,
    record: InventoryRecord | None,
    product_id: int,
    location_id: int,
    transaction_type: StockTransactionType,
    quantity: int,
    new_quantity: int,
    reason: str,
    reference_number: str | None,
    actor,
) -> StockTransaction:
    previous_quantity = record.quantity if record else 0

    try:
        if record is None:
            record = InventoryRecord(
                product_id=product_id,
                location_id=location_id,
                quantity=new_quantity,
                reserved_quantity=0,
            )
            db.add(record)
        else:
            record.quantity = new_quantity
            record.last_updated = utc_now()

        entry = StockTransaction(
            product_id=product_id,
            location_id=location_id,
            transaction_type=transaction_type,
            quantity=quantity,
            previous_quantity=previous_quantity,
            new_quantity=new_quantity,
            reason=reason,
            reference_number=reference_number,
            created_by=actor.id,
        )
        db.add(entry)

        await db.flush()

    except IntegrityError:
        raise ConflictError("Concurrent inventory update detected")

    # activity log rides the same transaction (NO COMMIT HERE)
    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.STOCK_CHANGE,
        table_name="inventory",
        record_id=record.id,
        transaction_type=transaction_type.value,
        quantity=quantity,
        product_id=product_id,
        location_id=location_id,
        previous_quantity=previous_quantity,
        new_quantity=new_quantity,
        reference_number=reference_number or "-",
    )

    logger.info(
        "Stock %s applied",
        transaction_type.value,
        extra={
            "product_id": product_id,
            "location_id": location_id,
            "previous_quantity": previous_quantity,
            "new_quantity": new_quantity,
        },
    )
    return entry


async def apply_stock_change(
    db: AsyncSession,
    *,
    product_id: int,
    location_id: int,
    transaction_type,
    quantity: int,
    reason: str,
    actor,
    reference_number: str | None = None,
    require_active: bool = True,
) -> StockTransaction:
    """Apply one in/out/adjustment mutation to a (product, location) pair.

    The inventory row is read under ``SELECT ... FOR UPDATE``. Nothing is
    written when the mutation would take stock below zero.
    """
    transaction_type = coerce_transaction_type(transaction_type)
    reason = _validate_mutation(quantity, reason)

    if require_active:
        await get_active_product(db, product_id)
        await get_active_location(db, location_id)

    await ensure_location_access(db, actor, location_id)

    record = await lock_inventory_record(db, product_id, location_id)
    previous_quantity = record.quantity if record else 0

    new_quantity = compute_new_quantity(transaction_type, previous_quantity, quantity)

    return await _append_entry(
        db,
        record=record,
        product_id=product_id,
        location_id=location_id,
        transaction_type=transaction_type,
        quantity=quantity,
        new_quantity=new_quantity,
        reason=reason,
        reference_number=reference_number,
        actor=actor,
    )


async def apply_stock_delta(
    db: AsyncSession,
    *,
    record: InventoryRecord,
    delta: int,
    reason: str,
    actor,
    reference_number: str | None = None,
) -> StockTransaction:
    """Write an adjustment entry carrying a signed delta.

    ``record`` must already be locked by the caller.
    """
    new_quantity = record.quantity + delta
    if new_quantity < 0:
        raise InsufficientStockError(
            details={"available": record.quantity, "requested": -delta},
        )

    return await _append_entry(
        db,
        record=record,
        product_id=record.product_id,
        location_id=record.location_id,
        transaction_type=StockTransactionType.ADJUSTMENT,
        quantity=delta,
        new_quantity=new_quantity,
        reason=reason,
        reference_number=reference_number,
        actor=actor,
    )


# =====================================================
# BULK
# =====================================================
async def apply_bulk_changes(db: AsyncSession, updates, actor) -> list[dict]:
    """Apply each update in its own transaction and report per item.

    A failing item is rolled back alone; later items still run.
    """
    results = []

    for update in updates:
        try:
            record = await db.get(InventoryRecord, update.inventory_id)
            if not record:
                raise NotFoundError(
                    "Inventory record not found",
                    ErrorCode.INVENTORY_NOT_FOUND,
                )

            entry = await apply_stock_change(
                db,
                product_id=record.product_id,
                location_id=record.location_id,
                transaction_type=update.transaction_type,
                quantity=update.quantity,
                reason=update.reason,
                reference_number=update.reference_number,
                actor=actor,
            )
            await db.commit()

            results.append(
                {
                    "inventory_id": update.inventory_id,
                    "success": True,
                    "message": "Updated successfully",
                    "previous_quantity": entry.previous_quantity,
                    "new_quantity": entry.new_quantity,
                }
            )

        except AppException as exc:
            await db.rollback()
            await db.refresh(actor)
            results.append(
                {
                    "inventory_id": update.inventory_id,
                    "success": False,
                    "message": exc.detail,
                }
            )

        except SQLAlchemyError:
            await db.rollback()
            await db.refresh(actor)
            logger.exception(
                "Bulk inventory item failed",
                extra={"inventory_id": update.inventory_id},
            )
            results.append(
                {
                    "inventory_id": update.inventory_id,
                    "success": False,
                    "message": "Internal server error",
                }
            )

    return results


# =====================================================
# RECONCILIATION
# =====================================================
async def reconstruct_quantity(
    db: AsyncSession,
    product_id: int,
    location_id: int,
) -> tuple[int, int]:
    result = await db.execute(
        select(StockTransaction)
        .where(
            StockTransaction.product_id == product_id,
            StockTransaction.location_id == location_id,
        )
        .order_by(StockTransaction.created_at.asc(), StockTransaction.id.asc())
    )
    entries = result.scalars().all()
    return replay(entries), len(entries)
