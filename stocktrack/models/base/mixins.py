from datetime import datetime, timezone

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func

from stocktrack.models.enums.record_status import RecordStatus


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        onupdate=utc_now
    )


class StatusMixin:
    """Soft delete as a tagged state. Retired rows are hidden from lookups."""

    status = Column(
        Enum(RecordStatus, name="record_status"),
        default=RecordStatus.active,
        nullable=False,
        index=True,
    )

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.active


class AuditMixin:
    @declared_attr
    def created_by_id(cls):
        return Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    @declared_attr
    def updated_by_id(cls):
        return Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
