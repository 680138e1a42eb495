"""Tests for the four-step payment workflow."""

import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from printbroker.models import JobActivity
from printbroker.schemas.job import JobCreateRequest
from printbroker.services.errors import ConflictError, JobNotFoundError, PreconditionFailedError, TransientStoreError
from printbroker.services.job_creation_service import create_job
from printbroker.services.payment_service import (
    CUSTOMER_FIRST_HINT,
    RESEND_NOTICE_HINT,
    build_notice,
    downstream_payment_amount,
    get_payment_snapshot,
    mark_customer_paid,
    mark_customer_unpaid,
    mark_downstream_paid,
    mark_partner_paid,
    send_invoice_notice,
)


@pytest.fixture
def job(test_db, customer):
    request = JobCreateRequest(
        title="Spring self-mailer",
        customer_id=customer.id,
        quantity=10000,
        sell_price=Decimal("900.00"),
        size_name="7 1/4 x 16 3/8",
        paper_source="SELF_SUPPLIED",
        routing_type="PARTNER_INTERMEDIARY",
    )
    return create_job(test_db, request).job


def _activities(db, job_id, action=None):
    query = db.query(JobActivity).filter(JobActivity.job_id == job_id)
    if action:
        query = query.filter(JobActivity.action == action)
    return query.all()


class TestCustomerPayment:
    """Step 1."""

    def test_defaults_to_sell_price(self, test_db, job):
        updated = mark_customer_paid(test_db, job.id, changed_by="ops@broker")

        assert updated.customer_payment_amount == Decimal("900.00")
        assert updated.customer_payment_date is not None
        entries = _activities(test_db, job.id, "PAYMENT_UPDATED")
        assert len(entries) == 1
        assert entries[0].field == "customer_payment_date"
        assert entries[0].changed_by == "ops@broker"

    def test_explicit_amount_and_aware_date(self, test_db, job):
        paid_at = datetime(2025, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=-5)))
        updated = mark_customer_paid(test_db, job.id, amount=Decimal("850.5"), paid_at=paid_at)

        assert updated.customer_payment_amount == Decimal("850.50")
        assert updated.customer_payment_date == datetime(2025, 3, 1, 17, 0)

    def test_same_date_twice_writes_one_audit_entry(self, test_db, job):
        paid_at = datetime(2025, 3, 1, 9, 30)
        mark_customer_paid(test_db, job.id, paid_at=paid_at)
        mark_customer_paid(test_db, job.id, paid_at=paid_at)

        assert len(_activities(test_db, job.id, "PAYMENT_UPDATED")) == 1

    def test_unpaid_clears_payment(self, test_db, job):
        mark_customer_paid(test_db, job.id)
        updated = mark_customer_unpaid(test_db, job.id)

        assert updated.customer_payment_date is None
        assert updated.customer_payment_amount is None
        assert len(_activities(test_db, job.id, "PAYMENT_UPDATED")) == 2

    def test_unknown_job(self, test_db):
        with pytest.raises(JobNotFoundError):
            mark_customer_paid(test_db, "missing")


class TestPartnerPayment:
    """Step 2."""

    def test_requires_customer_payment(self, test_db, job, recording_sender):
        with pytest.raises(PreconditionFailedError) as exc_info:
            mark_partner_paid(test_db, job.id, sender=recording_sender)

        assert exc_info.value.hint == CUSTOMER_FIRST_HINT
        assert recording_sender.sent == []
        assert _activities(test_db, job.id, "PAYMENT_UPDATED") == []

    def test_records_partner_total_and_sends_notice(self, test_db, job, recording_sender):
        mark_customer_paid(test_db, job.id)

        updated, outcome = mark_partner_paid(test_db, job.id, sender=recording_sender)

        assert updated.partner_payment_amount == Decimal("212.92")
        assert updated.partner_payment_date is not None
        assert outcome.sent
        assert updated.notice_sent_at is not None
        assert updated.notice_sent_to == "billing@partner.example.com"
        notice, recipient = recording_sender.sent[0]
        assert notice["job_no"] == updated.job_no
        assert notice["partner_payment_amount"] == 212.92
        assert len(_activities(test_db, job.id, "NOTICE_SENT")) == 1

    def test_second_call_conflicts_with_existing_state(self, test_db, job, recording_sender):
        mark_customer_paid(test_db, job.id)
        mark_partner_paid(test_db, job.id, sender=recording_sender)

        with pytest.raises(ConflictError) as exc_info:
            mark_partner_paid(test_db, job.id, sender=recording_sender)

        assert exc_info.value.hint == RESEND_NOTICE_HINT
        assert exc_info.value.details["existing_amount"] == 212.92
        assert len(recording_sender.sent) == 1
        partner_entries = [
            a for a in _activities(test_db, job.id, "PAYMENT_UPDATED") if a.field == "partner_payment_date"
        ]
        assert len(partner_entries) == 1

    def test_notice_failure_keeps_payment(self, test_db, job, failing_sender, caplog):
        mark_customer_paid(test_db, job.id)

        updated, outcome = mark_partner_paid(test_db, job.id, sender=failing_sender)

        assert not outcome.sent
        assert "broker unreachable" in outcome.error
        assert updated.partner_payment_date is not None
        assert updated.notice_sent_at is None
        assert updated.notice_last_error == "broker unreachable"
        assert len(_activities(test_db, job.id, "NOTICE_FAILED")) == 1
        assert "Invoice notice for job" in caplog.text

    def test_without_notice(self, test_db, job, recording_sender):
        mark_customer_paid(test_db, job.id)

        _, outcome = mark_partner_paid(test_db, job.id, sender=recording_sender, send_notice=False)

        assert outcome is None
        assert recording_sender.sent == []

    def test_concurrent_calls_record_once(self, session_factory, test_db, job):
        mark_customer_paid(test_db, job.id)
        successes = []
        failures = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def worker():
            db = session_factory()
            try:
                barrier.wait()
                mark_partner_paid(db, job.id, send_notice=False)
                with lock:
                    successes.append(True)
            except (ConflictError, TransientStoreError) as e:
                with lock:
                    failures.append(e)
            finally:
                db.close()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(successes) == 1
        assert len(failures) == 7
        test_db.expire_all()
        partner_entries = [
            a for a in _activities(test_db, job.id, "PAYMENT_UPDATED") if a.field == "partner_payment_date"
        ]
        assert len(partner_entries) == 1


class TestInvoiceNotice:
    """Step 3."""

    def test_allowed_before_any_payment(self, test_db, job, recording_sender):
        updated, outcome = send_invoice_notice(test_db, job.id, recording_sender, recipient="ap@partner.example.com")

        assert outcome.sent
        assert updated.notice_sent_to == "ap@partner.example.com"
        assert updated.notice_generated_at is not None

    def test_resend_keeps_first_generation_time(self, test_db, job, recording_sender):
        first, _ = send_invoice_notice(test_db, job.id, recording_sender)
        generated_at = first.notice_generated_at

        second, _ = send_invoice_notice(test_db, job.id, recording_sender)

        assert second.notice_generated_at == generated_at
        assert len(recording_sender.sent) == 2

    def test_failure_is_recorded(self, test_db, job, failing_sender):
        updated, outcome = send_invoice_notice(test_db, job.id, failing_sender)

        assert not outcome.sent
        assert updated.notice_last_error == "broker unreachable"

    def test_notice_payload(self, test_db, job):
        notice = build_notice(job)

        assert notice["base_job_id"] == job.base_job_id
        assert notice["print_total"] == 347.40
        assert notice["partner_payment_date"] is None


class TestDownstreamPayment:
    """Step 4."""

    def test_amount_from_manufacturer_po(self, job):
        assert downstream_payment_amount(job) == Decimal("347.40")

    def test_amount_without_po_uses_print_rate(self, job):
        job.purchase_orders = []
        assert downstream_payment_amount(job) == Decimal("347.40")

        job.print_cpm = Decimal("30")
        assert downstream_payment_amount(job) == Decimal("300.00")

    def test_no_ordering_guard(self, test_db, job):
        updated = mark_downstream_paid(test_db, job.id)

        assert updated.downstream_payment_amount == Decimal("347.40")
        assert updated.downstream_payment_date is not None

    def test_snapshot(self, test_db, job):
        mark_customer_paid(test_db, job.id)
        snapshot = get_payment_snapshot(test_db, job)

        assert snapshot.sell_price == 900.0
        assert snapshot.partner_total == 212.92
        assert snapshot.customer_payment_amount == 900.0
        assert snapshot.partner_payment_amount == 0.0
        assert snapshot.partner_payment_date is None
