from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from consignshop.core.database import Base
import enum


class UnsoldItemPolicy(str, enum.Enum):
    KEEP = "keep"
    RETURN = "return"
    DONATE = "donate"


class Agreement(Base):
    """Consignment terms for one product/consignor pair"""
    __tablename__ = "agreements"

    id = Column(Integer, primary_key=True, index=True)

    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    consignor_id = Column(Integer, ForeignKey("consignors.id"), nullable=False, index=True)

    commission_rate = Column(Numeric(5, 4), nullable=False)  # e.g., 0.4000 for 40%

    # What happens to the item if it does not sell
    unsold_item_policy = Column(String, nullable=True)  # keep, return, donate
    return_fallback_days = Column(Integer, nullable=True)  # only when policy == return

    discount_schedule_enabled = Column(Boolean, default=False, nullable=False)

    # Store buys the item outright instead of consigning it
    store_purchase_option = Column(Boolean, default=False, nullable=False)
    store_purchase_percentage = Column(Numeric(5, 2), default=0, nullable=False)

    agreement_acknowledged = Column(Boolean, default=False, nullable=False)
    acknowledgment_date = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    product = relationship("Product", back_populates="agreements")
    consignor = relationship("Consignor", back_populates="agreements")
    progressive_discounts = relationship(
        "ProgressiveDiscount",
        back_populates="agreement",
        cascade="all, delete-orphan",
        order_by="ProgressiveDiscount.days_after_listing",
    )
    charity_donations = relationship("CharityDonation", back_populates="agreement", cascade="all, delete-orphan")


class ProgressiveDiscount(Base):
    """One step of an agreement's markdown schedule"""
    __tablename__ = "progressive_discounts"

    id = Column(Integer, primary_key=True, index=True)
    agreement_id = Column(Integer, ForeignKey("agreements.id", ondelete="CASCADE"), nullable=False, index=True)

    days_after_listing = Column(Integer, nullable=False)
    discount_percent = Column(Numeric(5, 2), nullable=False)

    agreement = relationship("Agreement", back_populates="progressive_discounts")


class CharityDonation(Base):
    __tablename__ = "charity_donations"

    id = Column(Integer, primary_key=True, index=True)
    agreement_id = Column(Integer, ForeignKey("agreements.id", ondelete="CASCADE"), nullable=False, index=True)

    charity_choice = Column(String, nullable=False)

    agreement = relationship("Agreement", back_populates="charity_donations")
