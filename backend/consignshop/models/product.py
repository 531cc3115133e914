from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from consignshop.core.database import Base
import enum


class ProductStatus(str, enum.Enum):
    PENDING = "pending"
    IN_STOCK = "in_stock"
    SOLD = "sold"
    PAID = "paid"
    RETURNED = "returned"
    DONATED = "donated"


# Statuses a product can be sold from
SELLABLE_STATUSES = (ProductStatus.IN_STOCK.value, ProductStatus.PAID.value)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String, nullable=False)
    category = Column(String, nullable=False)
    condition = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    consignor_id = Column(Integer, ForeignKey("consignors.id"), nullable=False, index=True)

    # Pricing
    expected_price = Column(Numeric(10, 2), nullable=False)
    minimum_price = Column(Numeric(10, 2), nullable=False)

    quantity = Column(Integer, default=0, nullable=False)
    image_url = Column(String, nullable=True)
    status = Column(String, default=ProductStatus.PENDING.value, nullable=False, index=True)
    barcode = Column(String, unique=True, nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    consignor = relationship("Consignor", back_populates="products")
    location = relationship("ProductLocation", back_populates="product", uselist=False, cascade="all, delete-orphan")
    agreements = relationship("Agreement", back_populates="product", cascade="all, delete-orphan")


class ProductLocation(Base):
    """Where a product sits on the shop floor. One row per product."""
    __tablename__ = "product_locations"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)

    floor = Column(String, nullable=False)
    aisle = Column(String, nullable=False)
    rack_shelf = Column(String, nullable=False)
    bin_number = Column(String, nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    barcode = Column(String, nullable=False)
    staff_member_id = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    product = relationship("Product", back_populates="location")
