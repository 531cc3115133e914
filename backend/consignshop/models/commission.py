from sqlalchemy import Column, Integer, String, Numeric, DateTime, Date, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from consignshop.core.database import Base
import enum


class CommissionStatus(str, enum.Enum):
    PENDING = "pending"
    CALCULATED = "calculated"
    PAID = "paid"


PAYABLE_STATUSES = (CommissionStatus.PENDING, CommissionStatus.CALCULATED)


class CommissionTracking(Base):
    """Commission owed to one consignor for one period"""
    __tablename__ = "commission_tracking"
    __table_args__ = (
        UniqueConstraint("consignor_id", "period_start", "period_end", name="uq_commission_tracking_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    consignor_id = Column(Integer, ForeignKey("consignors.id"), nullable=False, index=True)

    # Period (inclusive on both ends)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False, index=True)

    # Totals frozen at generation time
    total_sales = Column(Numeric(12, 2), nullable=False, default=0)
    total_commission = Column(Numeric(12, 2), nullable=False, default=0)

    status = Column(
        Enum(CommissionStatus, name="commission_status", values_callable=lambda e: [m.value for m in e]),
        default=CommissionStatus.PENDING,
        nullable=False,
        index=True,
    )
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)

    # Timestamps
    generated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    consignor = relationship("Consignor", back_populates="commission_tracking")
    items = relationship(
        "CommissionItem",
        back_populates="tracking",
        cascade="all, delete-orphan",
        order_by="CommissionItem.id",
    )
    payments = relationship("CommissionPayment", back_populates="tracking", order_by="CommissionPayment.id")


class CommissionItem(Base):
    """One contributing sale line of a commission report"""
    __tablename__ = "commission_items"

    id = Column(Integer, primary_key=True, index=True)
    commission_tracking_id = Column(
        Integer, ForeignKey("commission_tracking.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sale_item_id = Column(Integer, ForeignKey("sale_items.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    sale_amount = Column(Numeric(10, 2), nullable=False)
    commission_rate = Column(Numeric(5, 4), nullable=False, default=0)
    commission_amount = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    tracking = relationship("CommissionTracking", back_populates="items")
    sale_item = relationship("SaleItem")


class CommissionPayment(Base):
    __tablename__ = "commission_payments"

    id = Column(Integer, primary_key=True, index=True)
    commission_tracking_id = Column(Integer, ForeignKey("commission_tracking.id"), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_method = Column(String, nullable=False)  # cash, check, bank_transfer, card, ...

    # Optional reference details
    transaction_reference = Column(String, nullable=True)
    bank_name = Column(String, nullable=True)
    account_last_four = Column(String(4), nullable=True)
    card_last_four = Column(String(4), nullable=True)
    card_type = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tracking = relationship("CommissionTracking", back_populates="payments")
