import csv
import io
from decimal import Decimal, InvalidOperation

from pydantic import ValidationError as SchemaError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.core.config import MAX_UPLOAD_ROWS
from stocktrack.core.exceptions import AppException, ValidationError
from stocktrack.constants.error_codes import ErrorCode
from stocktrack.constants.activity_codes import ActivityCode
from stocktrack.models.enums.record_status import RecordStatus
from stocktrack.models.inventory.inventory_record_models import InventoryRecord
from stocktrack.models.inventory.location_models import Location
from stocktrack.models.masters.product_models import Product
from stocktrack.schemas.sales.sale_schemas import (
    BulkUploadRowResult,
    BulkUploadResult,
    SaleCustomer,
)
from stocktrack.services.access.location_access_service import has_location_access
from stocktrack.services.sales.sales_service import record_sale
from stocktrack.utils.activity_helpers import emit_activity
from stocktrack.utils.logger import get_logger

logger = get_logger(__name__)

REQUIRED_COLUMNS = ("product_sku", "location_name", "quantity", "unit_price")

# header occupies row 1
FIRST_DATA_ROW = 2


class RowRejected(Exception):
    """A CSV row failed validation; the message goes straight into the result."""


def parse_csv(content: bytes) -> list[dict]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("File must be UTF-8 encoded CSV", ErrorCode.INVALID_UPLOAD)

    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValidationError("CSV file is empty", ErrorCode.INVALID_UPLOAD)

    missing = [c for c in REQUIRED_COLUMNS if c not in reader.fieldnames]
    if missing:
        raise ValidationError(
            "CSV is missing required columns",
            ErrorCode.INVALID_UPLOAD,
            details={"missing": missing},
        )

    rows = list(reader)
    if len(rows) > MAX_UPLOAD_ROWS:
        raise ValidationError(
            f"CSV exceeds {MAX_UPLOAD_ROWS} rows",
            ErrorCode.INVALID_UPLOAD,
        )
    return rows


def _clean(row: dict, key: str) -> str | None:
    value = (row.get(key) or "").strip()
    return value or None


def _parse_row(row: dict) -> dict:
    if any(not _clean(row, c) for c in REQUIRED_COLUMNS):
        raise RowRejected("Missing required fields")

    try:
        quantity = int(_clean(row, "quantity"))
    except ValueError:
        raise RowRejected("Invalid quantity")
    if quantity <= 0:
        raise RowRejected("Invalid quantity")

    try:
        unit_price = Decimal(_clean(row, "unit_price"))
    except InvalidOperation:
        raise RowRejected("Invalid unit price")
    if not unit_price.is_finite() or unit_price < 0:
        raise RowRejected("Invalid unit price")

    # same customer rules as POST /sales
    try:
        customer = SaleCustomer(
            customer_name=_clean(row, "customer_name"),
            customer_email=_clean(row, "customer_email"),
            customer_phone=_clean(row, "customer_phone"),
        )
    except SchemaError as exc:
        field = exc.errors()[0]["loc"][0]
        raise RowRejected(f"Invalid {str(field).replace('_', ' ')}")

    return {
        "sku": _clean(row, "product_sku"),
        "location_name": _clean(row, "location_name"),
        "quantity": quantity,
        "unit_price": unit_price,
        **customer.model_dump(),
    }


async def _resolve_row(db: AsyncSession, parsed: dict, user) -> tuple[int, int]:
    product_id = await db.scalar(
        select(Product.id).where(
            Product.sku == parsed["sku"],
            Product.status == RecordStatus.active,
        )
    )
    if not product_id:
        raise RowRejected(f'Product with SKU "{parsed["sku"]}" not found')

    location_id = await db.scalar(
        select(Location.id).where(
            Location.name == parsed["location_name"],
            Location.status == RecordStatus.active,
        )
    )
    if not location_id:
        raise RowRejected(f'Location "{parsed["location_name"]}" not found')

    if not await has_location_access(db, user, location_id):
        raise RowRejected("Access denied to this location")

    available = await db.scalar(
        select(InventoryRecord.quantity).where(
            InventoryRecord.product_id == product_id,
            InventoryRecord.location_id == location_id,
        )
    )
    if available is None:
        raise RowRejected("No inventory found for this product at this location")
    if available < parsed["quantity"]:
        raise RowRejected("Insufficient stock for this sale")

    return product_id, location_id


async def import_sales(db: AsyncSession, content: bytes, user) -> BulkUploadResult:
    """Create one sale per CSV row, each in its own transaction."""
    rows = parse_csv(content)
    results: list[BulkUploadRowResult] = []

    for index, row in enumerate(rows):
        row_number = index + FIRST_DATA_ROW

        try:
            parsed = _parse_row(row)
            product_id, location_id = await _resolve_row(db, parsed, user)

            sale = await record_sale(
                db,
                product_id=product_id,
                location_id=location_id,
                quantity=parsed["quantity"],
                unit_price=parsed["unit_price"],
                customer_name=parsed["customer_name"],
                customer_email=parsed["customer_email"],
                customer_phone=parsed["customer_phone"],
                user=user,
                reason="Bulk sale upload",
                reference_prefix="BULK-SALE",
            )
            await db.commit()

            results.append(
                BulkUploadRowResult(
                    row=row_number,
                    success=True,
                    message="Sale created successfully",
                    sale_id=sale.id,
                )
            )

        except RowRejected as exc:
            await db.rollback()
            await db.refresh(user)
            results.append(BulkUploadRowResult(row=row_number, success=False, message=str(exc)))

        except AppException as exc:
            await db.rollback()
            await db.refresh(user)
            results.append(BulkUploadRowResult(row=row_number, success=False, message=exc.message))

        except SQLAlchemyError:
            await db.rollback()
            await db.refresh(user)
            logger.exception("Bulk sale row failed", extra={"row": row_number})
            results.append(
                BulkUploadRowResult(row=row_number, success=False, message="Internal server error")
            )

    succeeded = sum(1 for r in results if r.success)
    failed = len(results) - succeeded

    await emit_activity(
        db,
        actor=user,
        code=ActivityCode.BULK_UPLOAD_SALES,
        table_name="sales",
        total=len(results),
        succeeded=succeeded,
        failed=failed,
    )
    await db.commit()

    logger.info(
        "Bulk sale upload finished",
        extra={"user_id": user.id, "succeeded": succeeded, "failed": failed},
    )

    return BulkUploadResult(
        total=len(results),
        succeeded=succeeded,
        failed=failed,
        results=results,
    )
