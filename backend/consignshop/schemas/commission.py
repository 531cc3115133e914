from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from consignshop.models.commission import CommissionStatus
from consignshop.schemas.consignor import ConsignorContact


class CommissionPaymentCreate(BaseModel):
    # Required, but checked by the service so missing fields get its message
    commission_tracking_id: Optional[int] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    payment_date: Optional[date] = None
    payment_method: Optional[str] = None
    transaction_reference: Optional[str] = None
    bank_name: Optional[str] = None
    account_last_four: Optional[str] = Field(None, max_length=4)
    card_last_four: Optional[str] = Field(None, max_length=4)
    card_type: Optional[str] = None


class CommissionPayment(BaseModel):
    id: int
    commission_tracking_id: int
    amount: float
    payment_date: date
    payment_method: str
    transaction_reference: Optional[str] = None
    bank_name: Optional[str] = None
    account_last_four: Optional[str] = None
    card_last_four: Optional[str] = None
    card_type: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SaleItemContext(BaseModel):
    """The sale line a commission item was computed from"""
    id: int
    sale_id: int
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    quantity: int
    unit_price: float
    line_total: float
    invoice_number: Optional[str] = None
    sale_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommissionItem(BaseModel):
    id: int
    commission_tracking_id: int
    sale_item_id: int
    product_id: Optional[int] = None
    sale_amount: float
    commission_rate: float
    commission_amount: float
    sale_items: Optional[SaleItemContext] = Field(None, validation_alias="sale_item")

    class Config:
        from_attributes = True
        populate_by_name = True


class CommissionTracking(BaseModel):
    id: int
    consignor_id: int
    period_start: date
    period_end: date
    total_sales: float
    total_commission: float
    status: CommissionStatus
    paid_amount: float
    generated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    consignors: Optional[ConsignorContact] = Field(None, validation_alias="consignor")

    class Config:
        from_attributes = True
        populate_by_name = True


class CommissionReport(CommissionTracking):
    commission_items: List[CommissionItem] = Field(default_factory=list, validation_alias="items")
    payments: List[CommissionPayment] = Field(default_factory=list)


class CommissionReportResponse(BaseModel):
    message: str
    report: Optional[CommissionReport] = None


class CommissionDetails(BaseModel):
    header: CommissionTracking
    items: List[CommissionItem]
    payment: Optional[CommissionPayment] = None


class CommissionVerification(BaseModel):
    success: bool
    message: str
    commission_id: int
    total_commission: float


class PaymentRecorded(BaseModel):
    success: bool
    payment: CommissionPayment
