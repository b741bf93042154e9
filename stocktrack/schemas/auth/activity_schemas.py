# stocktrack/schemas/auth/activity_schemas.py

from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from fastapi import Query

from stocktrack.constants.activity_codes import ActivityCode
from stocktrack.utils.response import Pagination


class ActivityFilters(BaseModel):
    user_id: Optional[int] = Query(None)
    username: Optional[str] = Query(None)
    action: Optional[ActivityCode] = Query(None)
    table_name: Optional[str] = Query(None)

    page: int = Query(1, ge=1)
    limit: int = Query(20, ge=1, le=100)

    sort_order: str = Query("desc", pattern="^(asc|desc)$")


class ActivityOut(BaseModel):
    id: int
    user_id: Optional[int]
    username_snapshot: str
    action: str
    table_name: Optional[str]
    record_id: Optional[int]
    message: str
    created_at: datetime

    class Config:
        from_attributes = True


class ActivityListData(BaseModel):
    items: List[ActivityOut]
    pagination: Pagination
