from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class SaleItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)
    unit_price: Optional[Decimal] = Field(None, ge=0)  # defaults to the product's expected price


class SaleCreate(BaseModel):
    invoice_number: Optional[str] = None
    sale_date: Optional[datetime] = None
    customer_name: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    items: List[SaleItemCreate] = Field(..., min_length=1)


class SaleUpdate(BaseModel):
    invoice_number: Optional[str] = None
    sale_date: Optional[datetime] = None
    customer_name: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("invoice_number", "sale_date", mode="before")
    @classmethod
    def _not_null(cls, v):
        # Optional only so the field can be left out
        if v is None:
            raise ValueError("cannot be null")
        return v


class SaleItem(BaseModel):
    id: int
    sale_id: int
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    consignor_id: Optional[int] = None
    agreement_id: Optional[int] = None
    quantity: int
    unit_price: float
    line_total: float
    commission_rate: float
    commission: float

    class Config:
        from_attributes = True


class Sale(BaseModel):
    id: int
    invoice_number: str
    sale_date: datetime
    customer_name: Optional[str] = None
    payment_method: Optional[str] = None
    subtotal: float
    total_amount: float
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SaleWithItems(Sale):
    items: List[SaleItem] = Field(default_factory=list)
