"""Dashboard aggregation of sales and commission per consignor."""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from consignshop.models.consignor import Consignor
from consignshop.models.product import Product
from consignshop.models.sale import SaleHeader, SaleItem
from consignshop.services.naming import to_camel_case

logger = logging.getLogger(__name__)

THIS_YEAR = "this-year"
LAST_MONTH = "last-month"


def resolve_date_range(date_range: Optional[str], now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Concrete [start, end] window for a symbolic range. Unknown values mean this-year."""
    now = now or datetime.utcnow()
    if date_range == LAST_MONTH:
        first_of_this_month = datetime(now.year, now.month, 1)
        start = first_of_this_month - relativedelta(months=1)
        # End of the last calendar day of the previous month
        end = first_of_this_month - timedelta(microseconds=1)
        return start, end
    return datetime(now.year, 1, 1), now


def consignor_commissions(db: Session, date_range: Optional[str], now: Optional[datetime] = None) -> List[Dict]:
    """Total sales and commission per consignor within the window.

    ``commissionRate`` is the rate of the last line seen for the consignor, not
    an average over the period.
    """
    start, end = resolve_date_range(date_range, now)
    logger.info(f"Consignor commissions for {date_range or THIS_YEAR}: {start} .. {end}")

    rows = (
        db.query(
            SaleItem.id,
            SaleItem.line_total,
            SaleItem.commission_rate,
            Consignor.id.label("consignor_id"),
            Consignor.full_name,
        )
        .select_from(SaleItem)
        .join(SaleHeader, SaleItem.sale_id == SaleHeader.id)
        .outerjoin(Product, SaleItem.product_id == Product.id)
        .outerjoin(Consignor, Product.consignor_id == Consignor.id)
        .filter(SaleHeader.sale_date >= start, SaleHeader.sale_date <= end)
        .order_by(SaleItem.id)
        .all()
    )

    totals: Dict[int, Dict] = {}
    for row in rows:
        if row.consignor_id is None:
            logger.warning(f"Missing joined product or consignor data for sale line {row.id}")
            continue
        if not row.full_name or row.commission_rate is None or row.line_total is None:
            logger.warning(f"Incomplete data for commission calculation on sale line {row.id}")
            continue

        entry = totals.setdefault(row.consignor_id, {
            "consignor_id": row.consignor_id,
            "consignor_name": row.full_name,
            "total_sales": Decimal("0"),
            "commission_rate": row.commission_rate,
            "commission_amount": Decimal("0"),
        })
        entry["total_sales"] += row.line_total
        entry["commission_amount"] += row.line_total * row.commission_rate
        entry["commission_rate"] = row.commission_rate

    return [
        to_camel_case({
            "consignor_id": entry["consignor_id"],
            "consignor_name": entry["consignor_name"],
            "total_sales": float(entry["total_sales"]),
            "commission_rate": float(entry["commission_rate"]),
            "commission_amount": round(float(entry["commission_amount"]), 2),
        })
        for entry in totals.values()
    ]
