from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey, Index
from sqlalchemy.sql import func
from stocktrack.core.db import Base
from stocktrack.constants.transaction_type import StockTransactionType
from stocktrack.models.base.mixins import utc_now


class StockTransaction(Base):
    """Immutable ledger entry. APPEND-ONLY. Never updated, never deleted."""

    __tablename__ = "stock_transactions"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    transaction_type = Column(
        Enum(
            StockTransactionType,
            name="stock_transaction_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        index=True,
    )
    # signed for sale-update adjustments; new_quantity is authoritative on replay
    quantity = Column(Integer, nullable=False)
    previous_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=False)
    reference_number = Column(String(100), nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_stock_transaction_product_location", "product_id", "location_id"),
    )

    def __repr__(self):
        return (
            f"<StockTransaction id={self.id} {self.transaction_type.value} qty={self.quantity} "
            f"{self.previous_quantity}->{self.new_quantity} ref={self.reference_number}>"
        )
