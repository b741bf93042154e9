from sqlalchemy import Column, Integer, String, Index, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from stocktrack.core.db import Base
from stocktrack.models.base.mixins import TimestampMixin, StatusMixin, AuditMixin, utc_now


class Location(Base, TimestampMixin, StatusMixin, AuditMixin):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    address = Column(String(500), nullable=True)
    city = Column(String(50), nullable=True, index=True)
    state = Column(String(50), nullable=True)
    country = Column(String(50), nullable=True)
    postal_code = Column(String(20), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(100), nullable=True)

    __table_args__ = (Index("ix_location_city_state", "city", "state"),)

    def __repr__(self):
        return f"<Location id={self.id} name={self.name} status={self.status}>"


class UserLocation(Base):
    """Manager to location assignment. Admins never need rows here."""

    __tablename__ = "user_locations"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "location_id", name="uq_user_location"),)

    def __repr__(self):
        return f"<UserLocation user_id={self.user_id} location_id={self.location_id}>"
