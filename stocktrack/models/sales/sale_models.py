from decimal import Decimal

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Index, CheckConstraint
from stocktrack.core.db import Base
from stocktrack.models.base.mixins import TimestampMixin, utc_now


class Sale(Base, TimestampMixin):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    customer_name = Column(String(100), nullable=True)
    customer_email = Column(String(100), nullable=True)
    customer_phone = Column(String(20), nullable=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    sale_date = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    __table_args__ = (
        Index("ix_sale_location_date", "location_id", "sale_date"),
        CheckConstraint("quantity >= 1", name="ck_sale_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_sale_unit_price_non_negative"),
    )

    def __repr__(self):
        return f"<Sale id={self.id} product_id={self.product_id} location_id={self.location_id} qty={self.quantity}>"
