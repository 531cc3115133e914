"""Reports API — dashboard aggregations."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from consignshop.core.database import get_db
from consignshop.services.reports import consignor_commissions

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/consignor-commissions")
def get_consignor_commissions(
    date_range: Optional[str] = Query(None, alias="dateRange", description="this-year or last-month"),
    db: Session = Depends(get_db),
):
    """Sales and commission owed per consignor for the dashboard"""
    return consignor_commissions(db, date_range)
