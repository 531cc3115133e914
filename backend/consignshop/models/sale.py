from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from consignshop.core.database import Base


class SaleHeader(Base):
    __tablename__ = "sale_header"

    id = Column(Integer, primary_key=True, index=True)

    invoice_number = Column(String, unique=True, nullable=False, index=True)
    sale_date = Column(DateTime(timezone=True), nullable=False, index=True)

    customer_name = Column(String, nullable=True)
    payment_method = Column(String, nullable=True)

    # Totals
    subtotal = Column(Numeric(10, 2), default=0, nullable=False)
    total_amount = Column(Numeric(10, 2), default=0, nullable=False)

    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.id")


class SaleItem(Base):
    """A line of a sale. Consignor, agreement and rate are snapshotted at time of sale."""
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)

    sale_id = Column(Integer, ForeignKey("sale_header.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    consignor_id = Column(Integer, ForeignKey("consignors.id", ondelete="SET NULL"), nullable=True, index=True)
    agreement_id = Column(Integer, ForeignKey("agreements.id", ondelete="SET NULL"), nullable=True)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    line_total = Column(Numeric(10, 2), nullable=False)

    commission_rate = Column(Numeric(5, 4), default=0, nullable=False)
    commission = Column(Numeric(10, 2), default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    sale = relationship("SaleHeader", back_populates="items")
    product = relationship("Product")
    consignor = relationship("Consignor")
    agreement = relationship("Agreement")

    @property
    def product_name(self):
        return self.product.name if self.product else None

    @property
    def invoice_number(self):
        return self.sale.invoice_number if self.sale else None

    @property
    def sale_date(self):
        return self.sale.sale_date if self.sale else None
