from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from consignshop.schemas.consignor import ConsignorContact


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    condition: str = Field(..., min_length=1)
    expected_price: Decimal = Field(..., ge=0)
    minimum_price: Decimal = Field(..., ge=0)
    consignor_id: int
    description: Optional[str] = None
    quantity: int = Field(default=0, ge=0)
    image_url: Optional[str] = None
    barcode: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    condition: Optional[str] = None
    description: Optional[str] = None
    expected_price: Optional[Decimal] = Field(None, ge=0)
    minimum_price: Optional[Decimal] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None
    consignor_id: Optional[int] = None
    status: Optional[str] = None
    barcode: Optional[str] = None

    @field_validator(
        "name", "category", "condition", "expected_price", "minimum_price",
        "quantity", "consignor_id", "status",
        mode="before",
    )
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v


class ProductLocationUpdate(BaseModel):
    floor: str = Field(..., min_length=1)
    aisle: str = Field(..., min_length=1)
    rack_shelf: str = Field(..., min_length=1)
    bin_number: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=0)
    barcode: str = Field(..., min_length=1)
    staff_member_id: Optional[str] = None
    notes: Optional[str] = None


class ProductLocation(BaseModel):
    id: int
    product_id: int
    floor: str
    aisle: str
    rack_shelf: str
    bin_number: str
    quantity: int
    barcode: str
    staff_member_id: Optional[str] = None
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Product(BaseModel):
    id: int
    name: str
    category: str
    condition: str
    consignor_id: int
    description: Optional[str] = None
    expected_price: float
    minimum_price: float
    quantity: int
    image_url: Optional[str] = None
    status: str
    barcode: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    consignors: Optional[ConsignorContact] = Field(None, validation_alias="consignor")

    class Config:
        from_attributes = True
        populate_by_name = True


class ProductForSale(Product):
    """Product as shown at the register"""
    price: float
    consignor_name: Optional[str] = None
