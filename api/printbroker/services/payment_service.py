"""
Payment workflow.

Four steps per job:
1. Customer -> broker payment (amount = sell price unless overridden);
   "unpaid" clears it
2. Broker -> partner payment (amount = partner total of the profit split)
   - requires step 1, never recorded twice
   - sends the downstream invoice notice after commit; a failed notice
     never undoes the payment
3. Downstream invoice notice: send or resend at any time
4. Partner -> manufacturer payment (amount from the partner -> manufacturer
   PO, else print rate x quantity); no ordering guard

Each step writes one audit entry.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from printbroker.config import settings
from printbroker.constants import ActivityAction, CompanyIds
from printbroker.db.transaction import unit_of_work
from printbroker.models.job import Job
from printbroker.schemas.payment import PaymentSnapshot
from printbroker.services.activity_service import record_change
from printbroker.services.errors import ConflictError, JobNotFoundError, PreconditionFailedError
from printbroker.services.notice_sender import BaseNoticeSender
from printbroker.services.pricing_service import (
    THOUSAND,
    calculate_job_tier_pricing,
    round_money,
    to_decimal,
    to_money_float,
)
from printbroker.services.pricing_table import get_size_pricing
from printbroker.services.profit_split_service import get_partner_total
from printbroker.services.serializers import payment_snapshot

logger = logging.getLogger(__name__)

RESEND_NOTICE_HINT = "To resend the invoice notice, use the send invoice notice operation instead"
CUSTOMER_FIRST_HINT = "Use mark customer paid first"


@dataclass
class NoticeOutcome:
    sent: bool
    recipient: Optional[str] = None
    error: Optional[str] = None


def _utc_naive(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.utcnow()
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _payment_tx(db: Session, label: str):
    return unit_of_work(
        db,
        max_wait_seconds=settings.payment_tx_max_wait_seconds,
        timeout_seconds=settings.payment_tx_timeout_seconds,
        label=label,
    )


def _load_job(db: Session, job_id: str, for_update: bool = False) -> Job:
    query = db.query(Job).filter(Job.id == job_id)
    if for_update:
        query = query.with_for_update().populate_existing()
    job = query.first()
    if not job:
        raise JobNotFoundError(f"Job {job_id} not found")
    return job


def get_payment_snapshot(db: Session, job: Job) -> PaymentSnapshot:
    return payment_snapshot(job, get_partner_total(db, job))


# Step 1

def mark_customer_paid(
    db: Session,
    job_id: str,
    amount: Optional[Decimal] = None,
    paid_at: Optional[datetime] = None,
    changed_by: Optional[str] = None,
) -> Job:
    """
    Record the customer's payment.

    Args:
        db: Database session
        job_id: Job ID
        amount: Amount received; defaults to the job's sell price
        paid_at: Payment date; defaults to now
        changed_by: Actor for the audit log

    Returns:
        Updated job

    Raises:
        JobNotFoundError: If job not found
    """
    with _payment_tx(db, "mark_customer_paid"):
        job = _load_job(db, job_id, for_update=True)
        old_date = job.customer_payment_date
        new_date = _utc_naive(paid_at)

        job.customer_payment_date = new_date
        job.customer_payment_amount = round_money(amount if amount is not None else job.sell_price)
        record_change(
            db, job, ActivityAction.PAYMENT_UPDATED, "customer_payment_date", old_date, new_date, changed_by
        )

    logger.info(f"Customer payment recorded for job {job.job_no}: {job.customer_payment_amount}")
    return job


def mark_customer_unpaid(db: Session, job_id: str, changed_by: Optional[str] = None) -> Job:
    """Clear the customer's payment amount and date."""
    with _payment_tx(db, "mark_customer_unpaid"):
        job = _load_job(db, job_id, for_update=True)
        old_date = job.customer_payment_date

        job.customer_payment_date = None
        job.customer_payment_amount = None
        record_change(
            db, job, ActivityAction.PAYMENT_UPDATED, "customer_payment_date", old_date, None, changed_by
        )

    logger.info(f"Customer payment cleared for job {job.job_no}")
    return job


# Step 2

def _check_partner_guards(job: Job) -> None:
    if job.customer_payment_date is None:
        logger.warning(f"Rejected partner payment for job {job.job_no}: customer has not paid")
        raise PreconditionFailedError(
            "Cannot pay partner before customer payment received",
            hint=CUSTOMER_FIRST_HINT,
            details={"job_no": job.job_no},
        )
    if job.partner_payment_date is not None:
        logger.warning(f"Rejected duplicate partner payment for job {job.job_no}")
        raise ConflictError(
            "Partner payment already recorded",
            hint=RESEND_NOTICE_HINT,
            details={
                "job_no": job.job_no,
                "existing_amount": to_money_float(job.partner_payment_amount),
                "existing_date": job.partner_payment_date.isoformat(),
            },
        )


def mark_partner_paid(
    db: Session,
    job_id: str,
    sender: Optional[BaseNoticeSender] = None,
    paid_at: Optional[datetime] = None,
    send_notice: bool = True,
    changed_by: Optional[str] = None,
) -> Tuple[Job, Optional[NoticeOutcome]]:
    """
    Record the broker's payment to the partner.

    The guards are evaluated on the locked row and enforced again by a
    conditional UPDATE, so two concurrent calls cannot both record a payment.

    Args:
        db: Database session
        job_id: Job ID
        sender: Notice sender; no notice is sent when None
        paid_at: Payment date; defaults to now
        send_notice: Send the downstream invoice notice after recording
        changed_by: Actor for the audit log

    Returns:
        Tuple of (updated job, notice outcome or None)

    Raises:
        JobNotFoundError: If job not found
        PreconditionFailedError: If the customer has not paid
        ConflictError: If the partner payment is already recorded
    """
    with _payment_tx(db, "mark_partner_paid"):
        job = _load_job(db, job_id, for_update=True)
        _check_partner_guards(job)

        new_date = _utc_naive(paid_at)
        amount = round_money(get_partner_total(db, job))

        result = db.execute(
            update(Job)
            .where(
                Job.id == job.id,
                Job.partner_payment_date.is_(None),
                Job.customer_payment_date.isnot(None),
            )
            .values(partner_payment_date=new_date, partner_payment_amount=amount, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        db.refresh(job)
        if result.rowcount == 0:
            # Another request changed the row between our read and write
            _check_partner_guards(job)

        record_change(db, job, ActivityAction.PAYMENT_UPDATED, "partner_payment_date", None, new_date, changed_by)

    logger.info(f"Partner payment recorded for job {job.job_no}: {amount}")

    outcome = None
    if send_notice and sender is not None:
        outcome = _send_notice(db, job, build_notice(job), sender, settings.notice_recipient, changed_by)
    return job, outcome


# Step 3

def build_notice(job: Job) -> dict:
    """Payload for the downstream invoice document."""
    tiers = calculate_job_tier_pricing(job)
    return {
        "job_id": job.id,
        "job_no": job.job_no,
        "base_job_id": job.base_job_id,
        "title": job.title,
        "quantity": job.quantity,
        "size_name": tiers.size_name,
        "paper_source": job.paper_source,
        "customer_po_number": job.customer_po_number,
        "partner_po_number": job.partner_po_number,
        "print_cpm": to_money_float(tiers.tier1.print_cpm),
        "print_total": to_money_float(tiers.tier1.print_total),
        "paper_total": to_money_float(tiers.tier1.paper_total),
        "partner_payment_amount": to_money_float(job.partner_payment_amount),
        "partner_payment_date": job.partner_payment_date.isoformat() if job.partner_payment_date else None,
    }


def _send_notice(
    db: Session,
    job: Job,
    notice: dict,
    sender: BaseNoticeSender,
    recipient: str,
    changed_by: Optional[str],
) -> NoticeOutcome:
    """Send outside any transaction, then record the outcome in its own transaction."""
    try:
        receipt = sender.send(notice, recipient)
    except Exception as e:
        # Delivery problems are recorded on the job; they never fail the payment
        logger.error(f"Invoice notice for job {job.job_no} to {recipient} failed: {e}")
        with _payment_tx(db, "record_notice_failure"):
            job = _load_job(db, job.id, for_update=True)
            job.notice_last_error = str(e)[:1000]
            record_change(db, job, ActivityAction.NOTICE_FAILED, "notice_last_error", None, str(e), changed_by)
        return NoticeOutcome(sent=False, recipient=recipient, error=str(e))

    with _payment_tx(db, "record_notice_sent"):
        job = _load_job(db, job.id, for_update=True)
        old_sent_at = job.notice_sent_at
        if job.notice_generated_at is None:
            job.notice_generated_at = receipt.sent_at
        job.notice_sent_at = receipt.sent_at
        job.notice_sent_to = receipt.sent_to
        job.notice_last_error = None
        record_change(db, job, ActivityAction.NOTICE_SENT, "notice_sent_at", old_sent_at, receipt.sent_at, changed_by)

    logger.info(f"Invoice notice for job {job.job_no} sent to {receipt.sent_to}")
    return NoticeOutcome(sent=True, recipient=receipt.sent_to)


def send_invoice_notice(
    db: Session,
    job_id: str,
    sender: BaseNoticeSender,
    recipient: Optional[str] = None,
    changed_by: Optional[str] = None,
) -> Tuple[Job, NoticeOutcome]:
    """
    Send or resend the downstream invoice notice. Always allowed.

    Raises:
        JobNotFoundError: If job not found
    """
    job = _load_job(db, job_id)
    notice = build_notice(job)
    db.commit()  # release the read before talking to the sender
    outcome = _send_notice(db, job, notice, sender, recipient or settings.notice_recipient, changed_by)
    return job, outcome


# Step 4

def downstream_payment_amount(job: Job) -> Decimal:
    """
    What the partner owes the manufacturer.

    Taken from the partner -> manufacturer PO (buy cost, else mfg cost);
    without one, print rate x quantity using the job's rate or the table's.
    """
    for po in job.purchase_orders:
        if po.origin_company_id == CompanyIds.PARTNER and po.target_company_id == CompanyIds.MANUFACTURER:
            cost = po.buy_cost if po.buy_cost else po.mfg_cost
            return round_money(cost)

    rate = job.print_cpm
    if rate is None:
        size_pricing = get_size_pricing(job.size_name)
        rate = size_pricing.print_cpm if size_pricing else None
    if rate is None or not job.quantity:
        return round_money(0)
    return round_money(to_decimal(rate) * Decimal(job.quantity) / THOUSAND)


def mark_downstream_paid(
    db: Session,
    job_id: str,
    paid_at: Optional[datetime] = None,
    changed_by: Optional[str] = None,
) -> Job:
    """
    Record the partner's payment to the manufacturer.

    Raises:
        JobNotFoundError: If job not found
    """
    with _payment_tx(db, "mark_downstream_paid"):
        job = _load_job(db, job_id, for_update=True)
        old_date = job.downstream_payment_date
        new_date = _utc_naive(paid_at)

        job.downstream_payment_date = new_date
        job.downstream_payment_amount = downstream_payment_amount(job)
        record_change(
            db, job, ActivityAction.PAYMENT_UPDATED, "downstream_payment_date", old_date, new_date, changed_by
        )

    logger.info(f"Downstream payment recorded for job {job.job_no}: {job.downstream_payment_amount}")
    return job
