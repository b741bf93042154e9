# stocktrack/routers/auth/activity_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stocktrack.core.db import get_db
from stocktrack.schemas.auth.activity_schemas import ActivityFilters, ActivityListData
from stocktrack.services.auth.activity_service import list_activities
from stocktrack.utils.check_roles import require_admin
from stocktrack.utils.response import APIResponse, success_response
from stocktrack.utils.logger import get_logger

router = APIRouter(prefix="/activities", tags=["Activities"])
logger = get_logger(__name__)


@router.get("", response_model=APIResponse[ActivityListData])
async def list_activities_api(
    filters: ActivityFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_admin),
):
    logger.info(
        "List activities requested",
        extra=filters.model_dump(exclude_none=True, mode="json"),
    )

    result = await list_activities(db=db, filters=filters)
    return success_response("Activities fetched successfully", result)
