from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from consignshop.core.database import Base


class Consignor(Base):
    """People who bring goods into the shop to be sold on commission"""
    __tablename__ = "consignors"

    id = Column(Integer, primary_key=True, index=True)

    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    phone_number = Column(String, nullable=False)
    address = Column(Text, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships (no cascade: deleting a consignor with products must fail)
    products = relationship("Product", back_populates="consignor", passive_deletes="all")
    agreements = relationship("Agreement", back_populates="consignor", passive_deletes="all")
    commission_tracking = relationship("CommissionTracking", back_populates="consignor", passive_deletes="all")
