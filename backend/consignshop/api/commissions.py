"""Commission API — period reports, listings, verification and payment."""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from consignshop.core.database import get_db
from consignshop.schemas.commission import (
    CommissionDetails, CommissionPaymentCreate, CommissionReportResponse,
    CommissionTracking, CommissionVerification, PaymentRecorded,
)
from consignshop.services.commission import CommissionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/commissions", tags=["commissions"])


@router.get("/report", response_model=CommissionReportResponse)
def get_or_create_commission_report(
    consignor_id: Optional[str] = Query(None),
    period_start: Optional[str] = Query(None, description="YYYY-MM-DD"),
    period_end: Optional[str] = Query(None, description="YYYY-MM-DD"),
    db: Session = Depends(get_db),
):
    """Generate (first call) or replay (later calls) a consignor's commission report for a period"""
    logger.info(f"GET /api/commissions/report consignor_id={consignor_id} period={period_start}..{period_end}")
    report = CommissionService(db).get_or_create_report(consignor_id, period_start, period_end)
    if report is None:
        return {"message": "No sales found for this period.", "report": None}
    return {"message": "Commission report processed successfully.", "report": report}


@router.get("/unpaid", response_model=List[CommissionTracking])
def list_unpaid_commissions(db: Session = Depends(get_db)):
    return CommissionService(db).list_unpaid()


@router.get("/paid", response_model=List[CommissionTracking])
def list_paid_commissions(db: Session = Depends(get_db)):
    return CommissionService(db).list_paid()


@router.get("/{tracking_id}/details", response_model=CommissionDetails)
def get_commission_details(tracking_id: int, db: Session = Depends(get_db)):
    return CommissionService(db).get_details(tracking_id)


@router.get("/{tracking_id}/verify", response_model=CommissionVerification)
def verify_commission(tracking_id: int, db: Session = Depends(get_db)):
    """Check that a commission can still be paid"""
    tracking = CommissionService(db).verify(tracking_id)
    return {
        "success": True,
        "message": "Commission is valid for payment",
        "commission_id": tracking.id,
        "total_commission": tracking.total_commission,
    }


@router.post("/payment", response_model=PaymentRecorded, status_code=201)
def record_commission_payment(body: CommissionPaymentCreate, db: Session = Depends(get_db)):
    logger.info(f"POST /api/commissions/payment tracking={body.commission_tracking_id} amount={body.amount}")
    payment = CommissionService(db).record_payment(
        body.commission_tracking_id,
        body.amount,
        body.payment_date,
        body.payment_method,
        transaction_reference=body.transaction_reference,
        bank_name=body.bank_name,
        account_last_four=body.account_last_four,
        card_last_four=body.card_last_four,
        card_type=body.card_type,
    )
    return {"success": True, "payment": payment}
