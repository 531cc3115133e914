"""Commission engine: report generation, verification and payment."""
from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from consignshop.core.errors import (
    ConflictError, ConsistencyError, NotFoundError, StoreError, ValidationError,
)
from consignshop.models import (
    CommissionItem, CommissionPayment, CommissionStatus, CommissionTracking,
)
from consignshop.services.commission import CommissionService
from tests.conftest import make_agreement, make_consignor, make_product, make_sale


def _disk_error():
    return OperationalError("INSERT", {}, Exception("disk I/O error"))


class TestReportGeneration:

    def test_first_request_freezes_totals(self, db, january_sales):
        report = CommissionService(db).get_or_create_report(7, "2024-01-01", "2024-01-31")

        assert report.consignor_id == 7
        assert report.period_start == date(2024, 1, 1)
        assert report.period_end == date(2024, 1, 31)
        assert report.total_sales == Decimal("150.00")
        assert report.total_commission == Decimal("15.00")
        assert report.status == CommissionStatus.PENDING
        assert report.paid_amount == Decimal("0")
        assert sorted(i.sale_amount for i in report.items) == [Decimal("50.00"), Decimal("100.00")]
        assert sum(i.commission_amount for i in report.items) == report.total_commission

    def test_second_request_replays_same_record(self, db, january_sales):
        service = CommissionService(db)
        first = service.get_or_create_report("7", "2024-01-01", "2024-01-31")
        second = service.get_or_create_report("7", "2024-01-01", "2024-01-31")

        assert first.id == second.id
        assert db.query(CommissionTracking).count() == 1
        assert db.query(CommissionItem).count() == 2

    def test_replay_ignores_later_sales(self, db, january_sales):
        service = CommissionService(db)
        first = service.get_or_create_report(7, date(2024, 1, 1), date(2024, 1, 31))

        late_entry = make_product(db, january_sales, name="Mirror")
        make_sale(db, datetime(2024, 1, 20, 9, 0), [(late_entry, "40.00", "0.10")])

        again = service.get_or_create_report(7, date(2024, 1, 1), date(2024, 1, 31))
        assert again.id == first.id
        assert again.total_sales == Decimal("150.00")

    def test_no_sales_writes_nothing(self, db, january_sales):
        report = CommissionService(db).get_or_create_report(7, "2024-02-01", "2024-02-29")

        assert report is None
        assert db.query(CommissionTracking).count() == 0

    def test_only_the_consignors_own_sales_count(self, db, january_sales):
        other = make_consignor(db, suffix="other")
        rug = make_product(db, other, name="Rug")
        make_sale(db, datetime(2024, 1, 15), [(rug, "300.00", "0.50")])

        report = CommissionService(db).get_or_create_report(7, "2024-01-01", "2024-01-31")
        assert report.total_sales == Decimal("150.00")
        assert report.total_commission == Decimal("15.00")

    def test_item_rate_comes_from_agreement(self, db):
        consignor = make_consignor(db)
        desk = make_product(db, consignor, name="Desk")
        agreement = make_agreement(db, desk, "0.25")
        sale = make_sale(db, datetime(2024, 3, 3), [(desk, "80.00", "0.25")])
        sale.items[0].agreement_id = agreement.id
        db.commit()

        report = CommissionService(db).get_or_create_report(consignor.id, "2024-03-01", "2024-03-31")
        assert report.items[0].commission_rate == Decimal("0.2500")
        assert report.total_commission == Decimal("20.00")

    @pytest.mark.parametrize("consignor_id,start,end", [
        (None, "2024-01-01", "2024-01-31"),
        (7, None, "2024-01-31"),
        (7, "2024-01-01", ""),
    ])
    def test_missing_input_is_rejected(self, db, consignor_id, start, end):
        with pytest.raises(ValidationError) as exc:
            CommissionService(db).get_or_create_report(consignor_id, start, end)
        assert exc.value.message == "Consignor ID, period start, and period end are required."

    def test_bad_consignor_id_is_rejected(self, db):
        with pytest.raises(ValidationError) as exc:
            CommissionService(db).get_or_create_report("seven", "2024-01-01", "2024-01-31")
        assert exc.value.message == "Invalid Consignor ID."

    def test_bad_date_is_rejected(self, db):
        with pytest.raises(ValidationError):
            CommissionService(db).get_or_create_report(7, "January", "2024-01-31")

    def test_trailing_garbage_after_date_is_rejected(self, db, january_sales):
        with pytest.raises(ValidationError) as exc:
            CommissionService(db).get_or_create_report(7, "2024-01-01nonsense", "2024-01-31xyz")

        assert exc.value.message.startswith("Invalid period_start")
        assert db.query(CommissionTracking).count() == 0

    def test_item_failure_discards_report(self, db, january_sales):
        @event.listens_for(db, "before_flush")
        def fail_on_items(session, flush_context, instances):
            if any(isinstance(obj, CommissionItem) for obj in session.new):
                raise _disk_error()

        try:
            with pytest.raises(StoreError) as exc:
                CommissionService(db).get_or_create_report(7, "2024-01-01", "2024-01-31")
        finally:
            event.remove(db, "before_flush", fail_on_items)

        assert exc.value.message == "Error creating commission items; commission report was not saved"
        assert db.query(CommissionTracking).count() == 0
        assert db.query(CommissionItem).count() == 0

    def test_concurrent_create_returns_winner(self, db, session_factory, january_sales):
        rival_ids = []

        @event.listens_for(db, "before_flush")
        def rival_inserts_first(session, flush_context, instances):
            if rival_ids or not any(isinstance(obj, CommissionTracking) for obj in session.new):
                return
            rival = session_factory()
            try:
                row = CommissionTracking(
                    consignor_id=7,
                    period_start=date(2024, 1, 1),
                    period_end=date(2024, 1, 31),
                    total_sales=Decimal("150.00"),
                    total_commission=Decimal("15.00"),
                    status=CommissionStatus.PENDING,
                    paid_amount=Decimal("0"),
                )
                rival.add(row)
                rival.commit()
                rival_ids.append(row.id)
            finally:
                rival.close()

        try:
            report = CommissionService(db).get_or_create_report(7, "2024-01-01", "2024-01-31")
        finally:
            event.remove(db, "before_flush", rival_inserts_first)

        assert report.id == rival_ids[0]
        assert db.query(CommissionTracking).count() == 1


class TestVerification:

    def test_pending_commission_is_payable(self, db, january_sales):
        service = CommissionService(db)
        report = service.get_or_create_report(7, "2024-01-01", "2024-01-31")
        assert service.verify(report.id).id == report.id

    def test_unknown_commission(self, db):
        with pytest.raises(NotFoundError) as exc:
            CommissionService(db).verify(999)
        assert exc.value.message == "Commission not found"

    def test_paid_commission_is_not_payable(self, db, january_sales):
        service = CommissionService(db)
        report = service.get_or_create_report(7, "2024-01-01", "2024-01-31")
        service.record_payment(report.id, Decimal("15.00"), date(2024, 2, 5), "cash")

        with pytest.raises(ConflictError) as exc:
            service.verify(report.id)
        assert exc.value.message == "Commission has already been paid"


class TestPayment:

    @pytest.fixture
    def report(self, db, january_sales):
        return CommissionService(db).get_or_create_report(7, "2024-01-01", "2024-01-31")

    def test_exact_payment_marks_paid(self, db, report):
        payment = CommissionService(db).record_payment(
            report.id, "15", "2024-02-05", "check", transaction_reference="CHK-1042",
        )

        db.refresh(report)
        assert payment.amount == Decimal("15.00")
        assert payment.payment_date == date(2024, 2, 5)
        assert payment.transaction_reference == "CHK-1042"
        assert report.status == CommissionStatus.PAID
        assert report.paid_amount == Decimal("15.00")
        assert db.query(CommissionPayment).filter_by(commission_tracking_id=report.id).count() == 1

    def test_second_payment_is_rejected(self, db, report):
        service = CommissionService(db)
        service.record_payment(report.id, Decimal("15.00"), date(2024, 2, 5), "cash")

        with pytest.raises(ConflictError) as exc:
            service.record_payment(report.id, Decimal("15.00"), date(2024, 2, 6), "cash")
        assert exc.value.message == "Commission has already been paid"
        assert db.query(CommissionPayment).count() == 1

    def test_calculated_status_is_payable(self, db, report):
        report.status = CommissionStatus.CALCULATED
        db.commit()

        CommissionService(db).record_payment(report.id, Decimal("15.00"), date(2024, 2, 5), "cash")
        db.refresh(report)
        assert report.status == CommissionStatus.PAID

    def test_amount_mismatch_names_both_values(self, db, report):
        with pytest.raises(ValidationError) as exc:
            CommissionService(db).record_payment(report.id, Decimal("14.99"), date(2024, 2, 5), "cash")

        assert "14.99" in exc.value.message
        assert "15.00" in exc.value.message
        assert db.query(CommissionPayment).count() == 0
        db.refresh(report)
        assert report.status == CommissionStatus.PENDING

    def test_unknown_commission(self, db):
        with pytest.raises(NotFoundError):
            CommissionService(db).record_payment(404, Decimal("1.00"), date(2024, 2, 5), "cash")

    @pytest.mark.parametrize("field", ["tracking_id", "amount", "payment_date", "payment_method"])
    def test_missing_field_is_rejected(self, db, report, field):
        args = {
            "tracking_id": report.id,
            "amount": Decimal("15.00"),
            "payment_date": date(2024, 2, 5),
            "payment_method": "cash",
        }
        args[field] = None

        with pytest.raises(ValidationError) as exc:
            CommissionService(db).record_payment(**args)
        assert exc.value.message.startswith("Missing required fields")

    def test_failed_status_update_reports_partial_completion(self, db, report):
        @event.listens_for(db, "before_flush")
        def fail_on_status(session, flush_context, instances):
            if any(isinstance(obj, CommissionTracking) for obj in session.dirty):
                raise _disk_error()

        try:
            with pytest.raises(ConsistencyError) as exc:
                CommissionService(db).record_payment(report.id, Decimal("15.00"), date(2024, 2, 5), "cash")
        finally:
            event.remove(db, "before_flush", fail_on_status)

        assert exc.value.message == "Payment inserted but failed to update commission status"
        assert db.query(CommissionPayment).count() == 1
        db.refresh(report)
        assert report.status == CommissionStatus.PENDING


class TestListings:

    def test_unpaid_and_paid(self, db, january_sales):
        service = CommissionService(db)
        january = service.get_or_create_report(7, "2024-01-01", "2024-01-31")
        make_sale(db, datetime(2024, 2, 2), [(january.items[0].sale_item.product, "20.00", "0.10")])
        february = service.get_or_create_report(7, "2024-02-01", "2024-02-29")

        assert [t.id for t in service.list_unpaid()] == [january.id, february.id]

        service.record_payment(january.id, Decimal("15.00"), date(2024, 2, 5), "cash")
        assert [t.id for t in service.list_unpaid()] == [february.id]
        assert [t.id for t in service.list_paid()] == [january.id]

    def test_details_include_payment_once_paid(self, db, january_sales):
        service = CommissionService(db)
        report = service.get_or_create_report(7, "2024-01-01", "2024-01-31")

        details = service.get_details(report.id)
        assert details["header"].id == report.id
        assert len(details["items"]) == 2
        assert details["payment"] is None

        service.record_payment(report.id, Decimal("15.00"), date(2024, 2, 5), "cash")
        db.expire_all()
        assert service.get_details(report.id)["payment"].amount == Decimal("15.00")

    def test_details_of_unknown_commission(self, db):
        with pytest.raises(NotFoundError):
            CommissionService(db).get_details(12345)
