from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from consignshop.models.agreement import UnsoldItemPolicy


class DiscountStep(BaseModel):
    days: int = Field(..., ge=0)
    percent: Decimal = Field(..., ge=0, le=100)


class AgreementPayload(BaseModel):
    """Agreement body after camelCase keys have been translated to snake_case"""
    product_id: int
    consignor_id: int
    commission_rate: Decimal = Field(..., ge=0, le=1)
    unsold_item_policy: Optional[UnsoldItemPolicy] = None
    return_fallback_days: Optional[int] = Field(None, ge=0)
    discount_schedule: List[DiscountStep] = Field(default_factory=list)
    charity_choice: Optional[str] = None
    agreement_acknowledged: bool = False
    acknowledgment_date: Optional[datetime] = None
    store_purchase_option: bool = False
    store_purchase_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)

    @field_validator("acknowledgment_date", mode="before")
    @classmethod
    def _blank_date_is_none(cls, v):
        if v == "":
            return None
        return v

    @field_validator("discount_schedule", mode="before")
    @classmethod
    def _accept_stored_step_names(cls, v):
        # Clients echo back either {days, percent} or the stored column names
        if not v:
            return []
        steps = []
        for step in v:
            if isinstance(step, dict) and "days" not in step and "days_after_listing" in step:
                step = {"days": step["days_after_listing"], "percent": step.get("discount_percent")}
            steps.append(step)
        return steps
