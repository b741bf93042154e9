# stocktrack/services/auth/activity_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, asc

from stocktrack.models.support.activity_models import ActivityLog
from stocktrack.schemas.auth.activity_schemas import (
    ActivityOut,
    ActivityFilters,
    ActivityListData,
)
from stocktrack.utils.response import build_pagination
from stocktrack.utils.logger import get_logger

logger = get_logger(__name__)


async def list_activities(
    *,
    db: AsyncSession,
    filters: ActivityFilters,
) -> ActivityListData:
    # -------------------------
    # Filters
    # -------------------------
    conditions = []

    if filters.user_id:
        conditions.append(ActivityLog.user_id == filters.user_id)

    if filters.username:
        conditions.append(ActivityLog.username_snapshot.ilike(f"%{filters.username}%"))

    if filters.action:
        conditions.append(ActivityLog.action == filters.action.value)

    if filters.table_name:
        conditions.append(ActivityLog.table_name == filters.table_name)

    # -------------------------
    # Sorting + pagination
    # -------------------------
    order_fn = desc if filters.sort_order == "desc" else asc

    query = (
        select(ActivityLog)
        .where(*conditions)
        .order_by(order_fn(ActivityLog.created_at), order_fn(ActivityLog.id))
        .limit(filters.limit)
        .offset((filters.page - 1) * filters.limit)
    )

    total = await db.scalar(select(func.count(ActivityLog.id)).where(*conditions))
    result = await db.execute(query)

    logger.info(
        "Activities fetched",
        extra={"total": total, "page": filters.page, "limit": filters.limit},
    )

    return ActivityListData(
        items=[ActivityOut.model_validate(a) for a in result.scalars().all()],
        pagination=build_pagination(filters.page, filters.limit, total or 0),
    )
