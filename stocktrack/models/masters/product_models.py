from sqlalchemy import Column, Integer, String, Text, Numeric, Index, CheckConstraint
from stocktrack.core.db import Base
from stocktrack.models.base.mixins import TimestampMixin, StatusMixin, AuditMixin


class Product(Base, TimestampMixin, StatusMixin, AuditMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    sku = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    brand = Column(String(100), nullable=True, index=True)
    unit_price = Column(Numeric(10, 2), nullable=False)
    cost_price = Column(Numeric(10, 2), nullable=True)
    reorder_level = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index("ix_product_category_brand", "category", "brand"),
        CheckConstraint("unit_price >= 0", name="ck_product_unit_price_non_negative"),
        CheckConstraint("cost_price IS NULL OR cost_price >= 0", name="ck_product_cost_price_non_negative"),
        CheckConstraint("reorder_level >= 0", name="ck_product_reorder_level_non_negative"),
    )

    def __repr__(self):
        return f"<Product id={self.id} sku={self.sku} name={self.name}>"
