from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


class ConsignorBase(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone_number: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)


class ConsignorCreate(ConsignorBase):
    is_active: bool = True


class ConsignorUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("full_name", "email", "phone_number", "address", "is_active", mode="before")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v


class ConsignorInDB(ConsignorBase):
    id: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Consignor(ConsignorInDB):
    pass


class ConsignorContact(BaseModel):
    """Consignor fields embedded in product and commission responses"""
    full_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None

    class Config:
        from_attributes = True
