"""Commission engine.

Lifecycle of a commission report:
1. First request for (consignor, period) sums that consignor's sale lines in the
   period and freezes the result as a tracking record plus one item per line
2. Later requests for the same key replay the frozen record, even if sales change
3. A single payment of exactly ``total_commission`` moves it to paid; there is no
   way back
"""
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Union

from dateutil.parser import isoparse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from consignshop.core.errors import (
    ConflictError, ConsistencyError, NotFoundError, StoreError, ValidationError,
    UNIQUE_VIOLATION, store_error_code,
)
from consignshop.models.commission import (
    CommissionItem, CommissionPayment, CommissionStatus, CommissionTracking, PAYABLE_STATUSES,
)
from consignshop.models.sale import SaleHeader, SaleItem

logger = logging.getLogger(__name__)

DateLike = Union[date, str]


def _parse_date(value: DateLike, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return isoparse(str(value)).date()
    except (ValueError, OverflowError):
        raise ValidationError(f"Invalid {field}: {value}. Expected YYYY-MM-DD.")


def _parse_consignor_id(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid Consignor ID.")


class CommissionService:

    def __init__(self, db: Session):
        self.db = db

    # ── Report generation ────────────────────────────────────────

    def get_or_create_report(
        self,
        consignor_id,
        period_start: DateLike,
        period_end: DateLike,
    ) -> Optional[CommissionTracking]:
        """Return the commission report for a consignor and period, creating it on first request.

        Returns None when the consignor has no sales in the period; nothing is
        written in that case.
        """
        if consignor_id in (None, "") or not period_start or not period_end:
            raise ValidationError("Consignor ID, period start, and period end are required.")

        consignor_id = _parse_consignor_id(consignor_id)
        start = _parse_date(period_start, "period_start")
        end = _parse_date(period_end, "period_end")

        existing = self._find_tracking(consignor_id, start, end)
        if existing:
            logger.info(f"Replaying commission report {existing.id} for consignor {consignor_id} ({start}..{end})")
            return existing

        sale_items = self._sale_items_in_period(consignor_id, start, end)
        if not sale_items:
            logger.info(f"No sales for consignor {consignor_id} between {start} and {end}")
            return None

        total_sales = sum((item.line_total or Decimal("0") for item in sale_items), Decimal("0"))
        total_commission = sum((item.commission or Decimal("0") for item in sale_items), Decimal("0"))

        now = datetime.utcnow()
        tracking = CommissionTracking(
            consignor_id=consignor_id,
            period_start=start,
            period_end=end,
            total_sales=total_sales,
            total_commission=total_commission,
            status=CommissionStatus.PENDING,
            paid_amount=Decimal("0"),
            generated_at=now,
            updated_at=now,
        )
        self.db.add(tracking)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            if store_error_code(e) == UNIQUE_VIOLATION:
                # Lost a race with a concurrent request for the same period
                winner = self._find_tracking(consignor_id, start, end)
                if winner:
                    return winner
            logger.error(f"Error creating commission tracking for consignor {consignor_id}: {e}")
            raise StoreError("Error creating commission report", error=str(e.orig))
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating commission tracking for consignor {consignor_id}: {e}")
            raise StoreError("Error creating commission report", error=str(e))

        self.db.add_all([
            CommissionItem(
                commission_tracking_id=tracking.id,
                sale_item_id=item.id,
                product_id=item.product_id,
                sale_amount=item.line_total,
                commission_rate=self._rate_for(item),
                commission_amount=item.commission or Decimal("0"),
            )
            for item in sale_items
        ])
        try:
            self.db.flush()
            self.db.commit()
        except SQLAlchemyError as e:
            # Rolling back discards the header flushed above with the items
            self.db.rollback()
            logger.error(f"Error creating commission items for consignor {consignor_id}; report discarded: {e}")
            raise StoreError("Error creating commission items; commission report was not saved", error=str(e))

        self.db.refresh(tracking)
        logger.info(
            f"Commission report {tracking.id} created for consignor {consignor_id}: "
            f"{len(sale_items)} items, sales {total_sales}, commission {total_commission}"
        )
        return tracking

    def _find_tracking(self, consignor_id: int, start: date, end: date) -> Optional[CommissionTracking]:
        return (
            self.db.query(CommissionTracking)
            .filter(
                CommissionTracking.consignor_id == consignor_id,
                CommissionTracking.period_start == start,
                CommissionTracking.period_end == end,
            )
            .first()
        )

    def _sale_items_in_period(self, consignor_id: int, start: date, end: date) -> List[SaleItem]:
        """Sale lines of a consignor whose sale date falls on or between start and end"""
        window_start = datetime.combine(start, datetime.min.time())
        window_end = datetime.combine(end + timedelta(days=1), datetime.min.time())
        return (
            self.db.query(SaleItem)
            .join(SaleHeader, SaleItem.sale_id == SaleHeader.id)
            .options(joinedload(SaleItem.agreement), joinedload(SaleItem.product))
            .filter(
                SaleItem.consignor_id == consignor_id,
                SaleHeader.sale_date >= window_start,
                SaleHeader.sale_date < window_end,
            )
            .order_by(SaleItem.id)
            .all()
        )

    @staticmethod
    def _rate_for(item: SaleItem) -> Decimal:
        if item.agreement is not None and item.agreement.commission_rate is not None:
            return item.agreement.commission_rate
        return item.commission_rate or Decimal("0")

    # ── Verification and payment ─────────────────────────────────

    def _get_tracking(self, tracking_id) -> CommissionTracking:
        tracking = (
            self.db.query(CommissionTracking)
            .filter(CommissionTracking.id == tracking_id)
            .first()
        )
        if not tracking:
            raise NotFoundError("Commission not found")
        return tracking

    def verify(self, tracking_id) -> CommissionTracking:
        """Raise unless the tracking record can be paid"""
        tracking = self._get_tracking(tracking_id)
        if tracking.status == CommissionStatus.PAID:
            raise ConflictError("Commission has already been paid")
        return tracking

    def record_payment(
        self,
        tracking_id,
        amount,
        payment_date,
        payment_method: str,
        transaction_reference: Optional[str] = None,
        bank_name: Optional[str] = None,
        account_last_four: Optional[str] = None,
        card_last_four: Optional[str] = None,
        card_type: Optional[str] = None,
    ) -> CommissionPayment:
        """Pay a commission in full and mark it paid.

        The payment row is committed before the status change so it is never
        lost; if the status change then fails a ConsistencyError tells the
        operator which half completed.
        """
        if not tracking_id or amount in (None, "") or not payment_date or not payment_method:
            raise ValidationError(
                "Missing required fields (commission_tracking_id, amount, payment_date, payment_method)"
            )

        try:
            paid = Decimal(str(amount))
        except InvalidOperation:
            raise ValidationError(f"Invalid payment amount: {amount}")
        pay_date = _parse_date(payment_date, "payment_date")

        tracking = self._get_tracking(tracking_id)
        if tracking.status not in PAYABLE_STATUSES:
            raise ConflictError("Commission has already been paid")

        owed = Decimal(str(tracking.total_commission))
        if paid != owed:
            raise ValidationError(f"Payment amount ({amount}) must match commission amount ({owed})")

        payment = CommissionPayment(
            commission_tracking_id=tracking.id,
            amount=paid,
            payment_date=pay_date,
            payment_method=payment_method,
            transaction_reference=transaction_reference,
            bank_name=bank_name,
            account_last_four=account_last_four,
            card_last_four=card_last_four,
            card_type=card_type,
        )
        self.db.add(payment)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error inserting payment for commission {tracking_id}: {e}")
            raise StoreError("Error recording payment", error=str(e))

        payment_id = payment.id

        tracking.status = CommissionStatus.PAID
        tracking.paid_amount = paid
        tracking.updated_at = datetime.utcnow()
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Payment {payment_id} inserted but commission {tracking_id} status update failed: {e}")
            raise ConsistencyError(
                "Payment inserted but failed to update commission status",
                error=f"payment_id={payment_id}: {e}",
            )

        self.db.refresh(payment)
        logger.info(f"Commission {tracking_id} paid: {paid} via {payment_method} (payment {payment_id})")
        return payment

    # ── Listings ─────────────────────────────────────────────────

    def list_unpaid(self) -> List[CommissionTracking]:
        return (
            self.db.query(CommissionTracking)
            .options(joinedload(CommissionTracking.consignor))
            .filter(CommissionTracking.status.in_(PAYABLE_STATUSES))
            .order_by(CommissionTracking.period_end.asc())
            .all()
        )

    def list_paid(self) -> List[CommissionTracking]:
        return (
            self.db.query(CommissionTracking)
            .options(joinedload(CommissionTracking.consignor))
            .filter(CommissionTracking.status == CommissionStatus.PAID)
            .order_by(CommissionTracking.updated_at.desc())
            .all()
        )

    def get_details(self, tracking_id) -> dict:
        """Header, items and (when paid) the payment of one commission"""
        tracking = self._get_tracking(tracking_id)
        payment = None
        if tracking.status == CommissionStatus.PAID and tracking.payments:
            payment = tracking.payments[0]
        return {
            "header": tracking,
            "items": tracking.items,
            "payment": payment,
        }
