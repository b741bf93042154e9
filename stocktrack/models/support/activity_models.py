from sqlalchemy import Column, Integer, String, ForeignKey, Index
from stocktrack.core.db import Base
from stocktrack.models.base.mixins import TimestampMixin


class ActivityLog(Base, TimestampMixin):
    """Immutable audit log. APPEND-ONLY. Never updated, never deleted."""

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    username_snapshot = Column(String(50), nullable=False, index=True)
    action = Column(String(50), nullable=False, index=True)
    table_name = Column(String(50), nullable=True)
    record_id = Column(Integer, nullable=True)
    message = Column(String(500), nullable=False)

    __table_args__ = (Index("ix_activity_log_user_created", "user_id", "created_at"),)

    def __repr__(self):
        return f"<ActivityLog id={self.id} user={self.username_snapshot} action={self.action}>"
